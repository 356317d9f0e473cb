"""ローカルファイルシステムストレージバックエンド

設定されたルートディレクトリ配下にファイルを保存する。
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from ..exceptions import (
    StorageAccessError,
    StorageAlreadyExistsError,
    StorageError,
    StorageNotFoundError,
)
from ..ids import IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)


class SystemFileStorageService(FileStorageService):
    """ローカルファイルシステムストレージバックエンド"""

    def __init__(self, root_location: Union[str, Path], id_mapper: Optional[IdMapper] = None):
        """
        ローカルバックエンドを初期化

        Args:
            root_location: ルートディレクトリ。存在しない場合は作成する
            id_mapper: IDマッパー
        """
        super().__init__(id_mapper)
        self.root_path = Path(root_location)
        try:
            self.root_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create directory: {self.root_path}") from e
        logger.info(f"SystemFileStorageService initialized: path={self.root_path}")

    @property
    def storage_description(self) -> str:
        return "File system storage"

    def _get_full_path(self, id: Any) -> Path:
        """IDをフルパスに変換"""
        return self.root_path / self.generate_path(id)

    def exists(self, id: Any) -> bool:
        try:
            return self._get_full_path(id).is_file()
        except OSError as e:
            raise StorageAccessError(f"Unable to check existence of file with ID: {id}") from e

    def get_size(self, id: Any) -> int:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get file size with ID: {id} - file does not exist")
        try:
            return self._get_full_path(id).stat().st_size
        except OSError as e:
            raise StorageAccessError(f"Unable to get file size with ID: {id}") from e

    def _create(self, id: Any, data: bytes) -> None:
        full_path = self._prepare_new_file(id)
        try:
            with open(full_path, 'xb') as f:
                f.write(data)
        except FileExistsError as e:
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists") from e
        except OSError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"Local save success: {full_path}")

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        full_path = self._prepare_new_file(id)
        try:
            with open(full_path, 'xb') as f:
                shutil.copyfileobj(stream, f)
        except FileExistsError as e:
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists") from e
        except OSError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"Local save success: {full_path} ({content_size} bytes)")

    def _prepare_new_file(self, id: Any) -> Path:
        """既存チェックを行い、親ディレクトリを作成する"""
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        full_path = self._get_full_path(id)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        return full_path

    def delete(self, id: Any) -> None:
        full_path = self._get_full_path(id)
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found: {full_path}")
        try:
            full_path.unlink()
        except OSError as e:
            raise StorageAccessError(f"Unable to delete file with ID: {id}") from e
        logger.debug(f"Local delete success: {full_path}")

    def get_bytes(self, id: Any) -> bytes:
        full_path = self._get_full_path(id)
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes from file with ID: {id} - file not found: {full_path}")
        try:
            return full_path.read_bytes()
        except OSError as e:
            raise StorageAccessError(f"Unable to get bytes from file with ID: {id}") from e

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        self.validate_range(id, start, end)
        full_path = self._get_full_path(id)
        if self.does_not_exist(id):
            raise StorageNotFoundError(
                f"Unable to get bytes range from file with ID: {id} - file not found: {full_path}"
            )
        try:
            with open(full_path, 'rb') as f:
                f.seek(start)
                return f.read(end - start)
        except OSError as e:
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e

    def get_stream(self, id: Any) -> BinaryIO:
        full_path = self._get_full_path(id)
        if self.does_not_exist(id):
            raise StorageNotFoundError(
                f"Unable to get input stream from file with ID: {id} - file not found: {full_path}"
            )
        try:
            return open(full_path, 'rb')
        except OSError as e:
            raise StorageAccessError(f"Unable to get input stream from file with ID: {id}") from e

    def delete_all(self) -> None:
        if not self.root_path.exists():
            return
        try:
            # ファイル → 空ディレクトリの順に削除（ポストオーダー）
            for dir_path, dir_names, file_names in os.walk(self.root_path, topdown=False):
                for file_name in file_names:
                    os.remove(os.path.join(dir_path, file_name))
                for dir_name in dir_names:
                    os.rmdir(os.path.join(dir_path, dir_name))
            self.root_path.rmdir()
        except OSError as e:
            raise StorageAccessError("Unable to delete all available files") from e
        logger.debug(f"Local delete_all success: {self.root_path}")
