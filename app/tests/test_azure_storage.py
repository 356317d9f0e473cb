"""Azure Blob Storageバックエンドのテスト（MagicMockクライアント使用）"""

import io
import uuid
from unittest.mock import MagicMock, call

import pytest
from azure.core.exceptions import HttpResponseError, ResourceExistsError

from services.file_storage import (
    StorageAccessError,
    StorageAlreadyExistsError,
    StorageNotFoundError,
    uuid_id_mapper,
)
from services.file_storage.backends.azure import DELETE_BATCH_SIZE, AzureFileStorageService


@pytest.fixture
def container_client():
    client = MagicMock()
    client.container_name = "test-container"
    client.exists.return_value = True
    return client


@pytest.fixture
def azure_storage(container_client):
    return AzureFileStorageService(container_client, uuid_id_mapper)


def test_container_is_created_when_missing():
    client = MagicMock()
    client.container_name = "new-container"
    client.exists.return_value = False

    AzureFileStorageService(client, uuid_id_mapper)

    client.create_container.assert_called_once_with()


def test_existing_container_is_reused(container_client, azure_storage):
    container_client.create_container.assert_not_called()


def test_create(azure_storage, container_client):
    blob = container_client.get_blob_client.return_value
    blob.exists.return_value = False
    file_id = uuid.uuid4()

    azure_storage.create(file_id, b"data")

    container_client.get_blob_client.assert_called_with(azure_storage.generate_path(file_id))
    blob.upload_blob.assert_called_once_with(b"data", overwrite=False)


def test_create_race_is_already_exists(azure_storage, container_client):
    blob = container_client.get_blob_client.return_value
    blob.exists.return_value = False
    blob.upload_blob.side_effect = ResourceExistsError(message="BlobAlreadyExists")

    with pytest.raises(StorageAlreadyExistsError):
        azure_storage.create(uuid.uuid4(), b"data")


def test_create_from_stream(azure_storage, container_client):
    blob = container_client.get_blob_client.return_value
    blob.exists.return_value = False
    stream = io.BytesIO(b"data")

    azure_storage.create_from_stream(uuid.uuid4(), stream, 4)

    blob.upload_blob.assert_called_once_with(stream, length=4, overwrite=False)
    assert stream.closed


def test_get_size_missing(azure_storage, container_client):
    container_client.get_blob_client.return_value.exists.return_value = False
    with pytest.raises(StorageNotFoundError):
        azure_storage.get_size(uuid.uuid4())


def test_range_uses_offset_and_length(azure_storage, container_client):
    blob = container_client.get_blob_client.return_value
    blob.exists.return_value = True
    blob.download_blob.return_value.readall.return_value = b"x" * 10

    assert azure_storage.get_bytes_range(uuid.uuid4(), 10, 20) == b"x" * 10
    blob.download_blob.assert_called_once_with(offset=10, length=10)


def test_range_past_end_is_empty(azure_storage, container_client):
    """開始位置がファイル長以上の範囲は空"""
    blob = container_client.get_blob_client.return_value
    blob.exists.return_value = True
    error = HttpResponseError(message="InvalidRange")
    error.status_code = 416
    blob.download_blob.side_effect = error

    assert azure_storage.get_bytes_range(uuid.uuid4(), 20, 30) == b""


def test_get_stream_is_closeable(azure_storage, container_client):
    """返されたストリームはクローズ可能でwith文で使える"""
    blob = container_client.get_blob_client.return_value
    blob.exists.return_value = True
    blob.download_blob.return_value.readinto.side_effect = lambda buffer: buffer.write(b"Hello World")

    with azure_storage.get_stream(uuid.uuid4()) as stream:
        assert stream.read() == b"Hello World"
    assert stream.closed

    stream = azure_storage.get_stream(uuid.uuid4())
    stream.close()


def test_delete_all_in_batches(azure_storage, container_client):
    names = [f"blob-{i}" for i in range(DELETE_BATCH_SIZE + 10)]
    container_client.list_blob_names.return_value = iter(names)

    azure_storage.delete_all()

    assert container_client.delete_blobs.call_args_list == [
        call(*names[:DELETE_BATCH_SIZE]),
        call(*names[DELETE_BATCH_SIZE:]),
    ]
    container_client.delete_container.assert_not_called()


def test_api_error_is_wrapped(azure_storage, container_client):
    container_client.get_blob_client.return_value.exists.side_effect = HttpResponseError(message="boom")
    with pytest.raises(StorageAccessError):
        azure_storage.exists(uuid.uuid4())
