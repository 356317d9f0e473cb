"""ロギングラッパー

任意のFileStorageServiceをラップし、各操作をDEBUGレベルでログ出力してから
そのまま委譲する。戻り値・例外は一切変更しない。
"""

import logging
from typing import Any, BinaryIO

from .backends.base import FileStorageService
from .ids import IdMapper


class LoggingFileStorageServiceWrapper(FileStorageService):
    """デバッグログを出力するFileStorageServiceラッパー"""

    def __init__(self, service: FileStorageService):
        super().__init__(service.id_mapper)
        self._service = service
        service_class = type(service)
        self._logger = logging.getLogger(f"{service_class.__module__}.{service_class.__name__}")

    @property
    def service(self) -> FileStorageService:
        """ラップ対象のサービス"""
        return self._service

    @property
    def storage_description(self) -> str:
        return self._service.storage_description

    @property
    def id_mapper(self) -> IdMapper:
        return self._service.id_mapper

    def generate_path(self, id: Any) -> str:
        return self._service.generate_path(id)

    def exists(self, id: Any) -> bool:
        self._logger.debug(f"exists('{id} -> {self.generate_path(id)}')")
        return self._service.exists(id)

    def does_not_exist(self, id: Any) -> bool:
        self._logger.debug(f"does_not_exist('{id} -> {self.generate_path(id)}')")
        return self._service.does_not_exist(id)

    def get_size(self, id: Any) -> int:
        self._logger.debug(f"get_size('{id} -> {self.generate_path(id)}')")
        return self._service.get_size(id)

    def _create(self, id: Any, data: bytes) -> None:
        self._logger.debug(f"create('{id} -> {self.generate_path(id)}', {len(data)} bytes)")
        self._service.create(id, data)

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        self._logger.debug(f"create_from_stream('{id} -> {self.generate_path(id)}', {stream!r}, {content_size})")
        self._service.create_from_stream(id, stream, content_size)

    def delete(self, id: Any) -> None:
        self._logger.debug(f"delete('{id} -> {self.generate_path(id)}')")
        self._service.delete(id)

    def get_bytes(self, id: Any) -> bytes:
        self._logger.debug(f"get_bytes('{id} -> {self.generate_path(id)}')")
        return self._service.get_bytes(id)

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        self._logger.debug(f"get_bytes_range('{id} -> {self.generate_path(id)}', {start}, {end})")
        return self._service.get_bytes_range(id, start, end)

    def get_stream(self, id: Any) -> BinaryIO:
        self._logger.debug(f"get_stream('{id} -> {self.generate_path(id)}')")
        return self._service.get_stream(id)

    def delete_all(self) -> None:
        self._logger.debug("delete_all()")
        self._service.delete_all()
