"""Azure Blob Storageバックエンド

azure-storage-blobのContainerClientを使用する。
コンテナが存在しない場合は初期化時に作成する。
"""

import io
import logging
from typing import Any, BinaryIO, Optional

from azure.core.exceptions import AzureError, HttpResponseError, ResourceExistsError

from ..exceptions import StorageAccessError, StorageAlreadyExistsError, StorageError, StorageNotFoundError
from ..ids import IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)

# Blob Batch APIの1リクエストあたりの上限
DELETE_BATCH_SIZE = 256

# 開始位置がファイル長以上の範囲指定に対するHTTPステータス
RANGE_NOT_SATISFIABLE = 416


class AzureFileStorageService(FileStorageService):
    """Azure Blob Storageバックエンド"""

    def __init__(self, container_client, id_mapper: Optional[IdMapper] = None):
        """
        Azureバックエンドを初期化

        Args:
            container_client: azure.storage.blob.ContainerClient
            id_mapper: IDマッパー
        """
        super().__init__(id_mapper)
        self.container_client = container_client
        try:
            if not container_client.exists():
                container_client.create_container()
                logger.info(f"Azure container created: {container_client.container_name}")
        except AzureError as e:
            raise StorageError(f"Unable to initialize Azure container: {container_client.container_name}") from e
        logger.info(f"AzureFileStorageService initialized: container={container_client.container_name}")

    @property
    def storage_description(self) -> str:
        return "Azure Storage"

    def _blob(self, id: Any):
        return self.container_client.get_blob_client(self.generate_path(id))

    def exists(self, id: Any) -> bool:
        try:
            return self._blob(id).exists()
        except AzureError as e:
            raise StorageAccessError(f"Unable to check existence of file with ID: {id}") from e

    def get_size(self, id: Any) -> int:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get file size with ID: {id} - file does not exist")
        try:
            return self._blob(id).get_blob_properties().size
        except AzureError as e:
            raise StorageAccessError(f"Unable to get file size with ID: {id}") from e

    def _create(self, id: Any, data: bytes) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        try:
            self._blob(id).upload_blob(data, overwrite=False)
        except ResourceExistsError as e:
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists") from e
        except AzureError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"Azure upload success: {self.generate_path(id)}")

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        try:
            self._blob(id).upload_blob(stream, length=content_size, overwrite=False)
        except ResourceExistsError as e:
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists") from e
        except AzureError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"Azure upload success: {self.generate_path(id)} ({content_size} bytes)")

    def delete(self, id: Any) -> None:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found")
        try:
            self._blob(id).delete_blob()
        except AzureError as e:
            raise StorageAccessError(f"Unable to delete file with ID: {id}") from e
        logger.debug(f"Azure delete success: {self.generate_path(id)}")

    def get_bytes(self, id: Any) -> bytes:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes from file with ID: {id} - file not found")
        try:
            return self._blob(id).download_blob().readall()
        except AzureError as e:
            raise StorageAccessError(f"Unable to get bytes from file with ID: {id}") from e

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        self.validate_range(id, start, end)
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes range from file with ID: {id} - file not found")
        if start == end:
            return b''
        try:
            return self._blob(id).download_blob(offset=start, length=end - start).readall()
        except HttpResponseError as e:
            if e.status_code == RANGE_NOT_SATISFIABLE:
                return b''
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e
        except AzureError as e:
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e

    def get_stream(self, id: Any) -> BinaryIO:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get input stream from file with ID: {id} - file not found")
        buffer = io.BytesIO()
        try:
            # StorageStreamDownloaderはclose()を持たないため、クローズ可能なバッファへ読み込む
            self._blob(id).download_blob().readinto(buffer)
        except AzureError as e:
            raise StorageAccessError(f"Unable to get input stream from file with ID: {id}") from e
        buffer.seek(0)
        return buffer

    def delete_all(self) -> None:
        try:
            names = list(self.container_client.list_blob_names())
            for i in range(0, len(names), DELETE_BATCH_SIZE):
                self.container_client.delete_blobs(*names[i:i + DELETE_BATCH_SIZE])
        except AzureError as e:
            raise StorageAccessError("Unable to delete all available files") from e
