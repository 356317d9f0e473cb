"""インメモリストレージバックエンド

プロセス内の辞書にファイル内容を保持する。テストや一時データ用。
"""

import io
import logging
import threading
from typing import Any, BinaryIO, Dict, Optional

from ..exceptions import StorageAccessError, StorageAlreadyExistsError, StorageNotFoundError
from ..ids import IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)


class InMemoryFileStorageService(FileStorageService):
    """インメモリストレージバックエンド（スレッドセーフ）"""

    def __init__(self, id_mapper: Optional[IdMapper] = None):
        super().__init__(id_mapper)
        self._files: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    @property
    def storage_description(self) -> str:
        return "In memory file storage"

    def exists(self, id: Any) -> bool:
        return self.generate_path(id) in self._files

    def get_size(self, id: Any) -> int:
        return len(self._load(id, "get file size"))

    def _create(self, id: Any, data: bytes) -> None:
        self._store(id, bytes(data))

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        if self.exists(id):
            raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
        try:
            data = stream.read()
        except OSError as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        self._store(id, data)

    def _store(self, id: Any, data: bytes) -> None:
        path = self.generate_path(id)
        with self._lock:
            if path in self._files:
                raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
            self._files[path] = data

    def _load(self, id: Any, operation: str) -> bytes:
        data = self._files.get(self.generate_path(id))
        if data is None:
            raise StorageNotFoundError(f"Unable to {operation} with ID: {id} - file not found")
        return data

    def delete(self, id: Any) -> None:
        path = self.generate_path(id)
        with self._lock:
            if self._files.pop(path, None) is None:
                raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found")

    def get_bytes(self, id: Any) -> bytes:
        return self._load(id, "get bytes from file")

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        self.validate_range(id, start, end)
        return self._load(id, "get bytes range from file")[start:end]

    def get_stream(self, id: Any) -> BinaryIO:
        return io.BytesIO(self._load(id, "get input stream from file"))

    def delete_all(self) -> None:
        with self._lock:
            self._files.clear()
