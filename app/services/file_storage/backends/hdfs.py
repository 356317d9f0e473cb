"""HDFSストレージバックエンド

pyarrow.fsのファイルシステムハンドル（HadoopFileSystem等）を使用する。
すべてのパスは設定されたルートディレクトリ配下に解決される。
"""

import logging
from typing import Any, BinaryIO, Optional

import pyarrow as pa
from pyarrow import fs as pafs

from ..exceptions import StorageAccessError, StorageAlreadyExistsError, StorageConfigError, StorageNotFoundError
from ..ids import SEPARATOR, IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 10_240


class HdfsFileStorageService(FileStorageService):
    """HDFSストレージバックエンド"""

    def __init__(self, filesystem: pafs.FileSystem, root_directory: str, id_mapper: Optional[IdMapper] = None):
        """
        HDFSバックエンドを初期化

        Args:
            filesystem: pyarrow.fs.FileSystem（通常はHadoopFileSystem）
            root_directory: ルートディレクトリ。delete_allの対象範囲
            id_mapper: IDマッパー

        Raises:
            StorageConfigError: ルートディレクトリがファイルシステムのルート（/）の場合
        """
        super().__init__(id_mapper)
        self.filesystem = filesystem
        self.root_directory = root_directory.rstrip(SEPARATOR)
        if not self.root_directory:
            raise StorageConfigError(f"HDFS root directory must not be the filesystem root: {root_directory!r}")
        logger.info(f"HdfsFileStorageService initialized: root={self.root_directory}")

    @property
    def storage_description(self) -> str:
        return "HDFS storage"

    def _get_full_path(self, id: Any) -> str:
        return f"{self.root_directory}{SEPARATOR}{self.generate_path(id)}"

    def exists(self, id: Any) -> bool:
        try:
            info = self.filesystem.get_file_info(self._get_full_path(id))
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to verify file existence with ID: {id}") from e
        return info.type == pafs.FileType.File

    def get_size(self, id: Any) -> int:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get file size with ID: {id} - file does not exist")
        try:
            return self.filesystem.get_file_info(self._get_full_path(id)).size
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to get file size with ID: {id}") from e

    def _create(self, id: Any, data: bytes) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        full_path = self._get_full_path(id)
        try:
            self.filesystem.create_dir(full_path.rsplit(SEPARATOR, 1)[0], recursive=True)
            with self.filesystem.open_output_stream(full_path) as out:
                out.write(data)
                # 書き込み内容を他のクライアントから見えるようにする
                out.flush()
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"HDFS save success: {full_path}")

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        full_path = self._get_full_path(id)
        try:
            self.filesystem.create_dir(full_path.rsplit(SEPARATOR, 1)[0], recursive=True)
            with self.filesystem.open_output_stream(full_path) as out:
                while True:
                    chunk = stream.read(COPY_BUFFER_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
                out.flush()
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"HDFS save success: {full_path} ({content_size} bytes)")

    def delete(self, id: Any) -> None:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found")
        try:
            self.filesystem.delete_file(self._get_full_path(id))
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to delete file with ID: {id}") from e

    def get_bytes(self, id: Any) -> bytes:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes from file with ID: {id} - file not found")
        try:
            with self.filesystem.open_input_stream(self._get_full_path(id)) as f:
                return f.read()
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to get bytes from file with ID: {id}") from e

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        """範囲を読み込む。ファイル長を超える範囲は切り詰めて返す"""
        self.validate_range(id, start, end)
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get bytes range from file with ID: {id} - file not found")
        try:
            with self.filesystem.open_input_file(self._get_full_path(id)) as f:
                length = min(end - start, max(f.size() - start, 0))
                if length == 0:
                    return b''
                return f.read_at(length, start)
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to get bytes range from file with ID: {id}") from e

    def get_stream(self, id: Any) -> BinaryIO:
        if self.does_not_exist(id):
            raise StorageNotFoundError(f"Unable to get input stream from file with ID: {id} - file not found")
        try:
            return self.filesystem.open_input_stream(self._get_full_path(id))
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError(f"Unable to get input stream from file with ID: {id}") from e

    def delete_all(self) -> None:
        try:
            self.filesystem.delete_dir_contents(self.root_directory, missing_dir_ok=True)
        except (OSError, pa.ArrowException) as e:
            raise StorageAccessError("Unable to delete all available files") from e
