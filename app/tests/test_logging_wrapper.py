"""ロギングラッパーのテスト"""

import io
import logging
import uuid

import pytest

from services.file_storage import (
    InMemoryFileStorageService,
    LoggingFileStorageServiceWrapper,
    StorageNotFoundError,
    uuid_id_mapper,
)

LOGGER_NAME = "services.file_storage.backends.memory.InMemoryFileStorageService"
FILE_ID = uuid.UUID("467f28f8-5a5a-4f10-9fce-ed2b5eb5ddd4")
PATH = "4/6/7/f/28f8-5a5a-4f10-9fce-ed2b5eb5ddd4"


@pytest.fixture
def wrapper():
    return LoggingFileStorageServiceWrapper(InMemoryFileStorageService(uuid_id_mapper))


def _messages(caplog):
    return [record.getMessage() for record in caplog.records if record.name == LOGGER_NAME]


def test_delegates_identity(wrapper):
    assert wrapper.storage_description == "In memory file storage"
    assert wrapper.id_mapper is uuid_id_mapper
    assert wrapper.generate_path(FILE_ID) == PATH
    assert isinstance(wrapper.service, InMemoryFileStorageService)


def test_logs_operations_at_debug(wrapper, caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

    wrapper.create(FILE_ID, b"Hello World")
    assert wrapper.get_bytes_range(FILE_ID, 0, 5) == b"Hello"
    wrapper.delete_all()

    messages = _messages(caplog)
    assert f"create('{FILE_ID} -> {PATH}', 11 bytes)" in messages
    assert f"get_bytes_range('{FILE_ID} -> {PATH}', 0, 5)" in messages
    assert "delete_all()" in messages
    assert all(record.levelno == logging.DEBUG for record in caplog.records if record.name == LOGGER_NAME)


def test_no_output_above_debug(wrapper, caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    wrapper.create(FILE_ID, b"data")
    assert _messages(caplog) == []


def test_errors_pass_through(wrapper):
    with pytest.raises(StorageNotFoundError):
        wrapper.get_bytes(FILE_ID)


def test_stream_create_closes_stream(wrapper):
    stream = io.BytesIO(b"data")
    wrapper.create_from_stream(FILE_ID, stream, 4)
    assert stream.closed
    assert wrapper.service.get_bytes(FILE_ID) == b"data"


def test_overwrite_through_wrapper(wrapper):
    wrapper.create(FILE_ID, b"first")
    wrapper.create(FILE_ID, b"second", overwrite=True)
    assert wrapper.get_bytes(FILE_ID) == b"second"
