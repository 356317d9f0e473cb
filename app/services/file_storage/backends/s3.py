"""S3ストレージバックエンド

AWS S3およびS3互換ストレージ（MinIO等）に対応。
boto3クライアントは外部で生成されたものを受け取る。
"""

import logging
from typing import Any, BinaryIO, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import StorageAccessError, StorageAlreadyExistsError, StorageNotFoundError
from ..ids import IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)

# head_objectで「存在しない」を表すエラーコード
NOT_FOUND_CODES = frozenset({'404', 'NoSuchKey', 'NotFound'})

# 開始位置がファイル長以上の範囲指定に対するエラーコード
INVALID_RANGE_CODE = 'InvalidRange'


class S3FileStorageService(FileStorageService):
    """S3ストレージバックエンド"""

    def __init__(self, client, bucket_name: str, id_mapper: Optional[IdMapper] = None):
        """
        S3バックエンドを初期化

        Args:
            client: boto3のS3クライアント
            bucket_name: バケット名
            id_mapper: IDマッパー
        """
        super().__init__(id_mapper)
        self.client = client
        self.bucket_name = bucket_name
        logger.info(f"S3FileStorageService initialized: bucket={self.bucket_name}")

    @property
    def storage_description(self) -> str:
        return "S3 file storage"

    def exists(self, id: Any) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=self.generate_path(id))
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in NOT_FOUND_CODES:
                return False
            raise StorageAccessError(f"Unable to check existence of file with ID: {id}") from e
        except BotoCoreError as e:
            raise StorageAccessError(f"Unable to check existence of file with ID: {id}") from e

    def get_size(self, id: Any) -> int:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get file size with ID: {id} - file does not exist")
        try:
            response = self.client.head_object(Bucket=self.bucket_name, Key=self.generate_path(id))
            return response['ContentLength']
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError(f"Unable to get file size with ID: {id}") from e

    def _create(self, id: Any, data: bytes) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        path = self.generate_path(id)
        try:
            self.client.put_object(Bucket=self.bucket_name, Key=path, Body=data)
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"S3 upload success: {path}")

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        path = self.generate_path(id)
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=stream,
                ContentLength=content_size
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"S3 upload success: {path} ({content_size} bytes)")

    def delete(self, id: Any) -> None:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found")
        path = self.generate_path(id)
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=path)
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError(f"Unable to delete file with ID: {id}") from e
        logger.debug(f"S3 delete success: {path}")

    def get_bytes(self, id: Any) -> bytes:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes from file with ID: {id} - file not found")
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=self.generate_path(id))
            return response['Body'].read()
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError(f"Unable to get bytes from file with ID: {id}") from e

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        self.validate_range(id, start, end)
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes range from file with ID: {id} - file not found")
        if start == end:
            # S3のRangeヘッダーでは空範囲を表現できない
            return b''
        try:
            response = self.client.get_object(
                Bucket=self.bucket_name,
                Key=self.generate_path(id),
                Range=f"bytes={start}-{end - 1}"
            )
            return response['Body'].read()
        except ClientError as e:
            if e.response.get('Error', {}).get('Code', '') == INVALID_RANGE_CODE:
                # ファイル長を超える範囲は他のバックエンドと同様に空として扱う
                return b''
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e
        except BotoCoreError as e:
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e

    def get_stream(self, id: Any) -> BinaryIO:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get input stream from file with ID: {id} - file not found")
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=self.generate_path(id))
            return response['Body']
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError(f"Unable to get input stream from file with ID: {id}") from e

    def delete_all(self) -> None:
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket_name):
                contents = page.get('Contents', [])
                if not contents:
                    continue
                self.client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={'Objects': [{'Key': obj['Key']} for obj in contents]}
                )
        except (ClientError, BotoCoreError) as e:
            raise StorageAccessError("Unable to delete all available files") from e
