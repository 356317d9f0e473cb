"""Google Cloud Storageバックエンド

google-cloud-storageのクライアントを使用する。
バケットが存在しない場合は初期化時に作成する。
"""

import logging
from typing import Any, BinaryIO, Optional

from google.api_core.exceptions import GoogleAPIError, PreconditionFailed, RequestRangeNotSatisfiable

from ..exceptions import StorageAccessError, StorageAlreadyExistsError, StorageError, StorageNotFoundError
from ..ids import IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)


class GcsFileStorageService(FileStorageService):
    """Google Cloud Storageバックエンド"""

    def __init__(self, client, bucket_name: str, id_mapper: Optional[IdMapper] = None):
        """
        GCSバックエンドを初期化

        Args:
            client: google.cloud.storage.Client
            bucket_name: バケット名。存在しない場合は作成する
            id_mapper: IDマッパー
        """
        super().__init__(id_mapper)
        self.client = client
        try:
            bucket = client.lookup_bucket(bucket_name)
            if bucket is None:
                bucket = client.create_bucket(bucket_name)
                logger.info(f"GCS bucket created: {bucket_name}")
        except GoogleAPIError as e:
            raise StorageError(f"Unable to initialize GCS bucket: {bucket_name}") from e
        self.bucket = bucket
        logger.info(f"GcsFileStorageService initialized: bucket={bucket_name}")

    @property
    def storage_description(self) -> str:
        return "Google Cloud Storage"

    def exists(self, id: Any) -> bool:
        try:
            return self.bucket.blob(self.generate_path(id)).exists()
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to check existence of file with ID: {id}") from e

    def get_size(self, id: Any) -> int:
        try:
            blob = self.bucket.get_blob(self.generate_path(id))
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to get file size with ID: {id}") from e
        if blob is None:
            raise StorageNotFoundError(f"Unable to get file size with ID: {id} - file does not exist")
        return blob.size

    def _create(self, id: Any, data: bytes) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        path = self.generate_path(id)
        try:
            # if_generation_match=0: 既存オブジェクトがあれば失敗させる
            self.bucket.blob(path).upload_from_string(data, if_generation_match=0)
        except PreconditionFailed as e:
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists") from e
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"GCS upload success: {path}")

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        path = self.generate_path(id)
        try:
            self.bucket.blob(path).upload_from_file(stream, size=content_size, if_generation_match=0)
        except PreconditionFailed as e:
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists") from e
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"GCS upload success: {path} ({content_size} bytes)")

    def delete(self, id: Any) -> None:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found")
        path = self.generate_path(id)
        try:
            self.bucket.blob(path).delete()
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to delete file with ID: {id}") from e
        logger.debug(f"GCS delete success: {path}")

    def get_bytes(self, id: Any) -> bytes:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes from file with ID: {id} - file not found")
        try:
            return self.bucket.blob(self.generate_path(id)).download_as_bytes()
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to get bytes from file with ID: {id}") from e

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        self.validate_range(id, start, end)
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes range from file with ID: {id} - file not found")
        if start == end:
            return b''
        try:
            # download_as_bytesのendは終端を含む
            return self.bucket.blob(self.generate_path(id)).download_as_bytes(start=start, end=end - 1)
        except RequestRangeNotSatisfiable:
            # 開始位置がファイル長以上の場合は空として扱う
            return b''
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e

    def get_stream(self, id: Any) -> BinaryIO:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get input stream from file with ID: {id} - file not found")
        try:
            return self.bucket.blob(self.generate_path(id)).open('rb')
        except GoogleAPIError as e:
            raise StorageAccessError(f"Unable to get input stream from file with ID: {id}") from e

    def delete_all(self) -> None:
        try:
            for blob in self.client.list_blobs(self.bucket):
                blob.delete()
        except GoogleAPIError as e:
            raise StorageAccessError("Unable to delete all available files") from e
