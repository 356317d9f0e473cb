"""ファイルストレージレジストリ

生成済みストレージインスタンスを名前で管理する。
起動時に生成し、設定処理中に登録し、必要に応じて参照する。
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .backends.base import FileStorageService
from .config import FileStorageSettings
from .exceptions import BackendNotRegisteredError, StorageConfigError
from .factory import StorageClients, create_file_storage
from .ids import IdMapper
from .logging_wrapper import LoggingFileStorageServiceWrapper

logger = logging.getLogger(__name__)


def _qualified_name(obj) -> str:
    module = getattr(obj, "__module__", None) or type(obj).__module__
    return f"{module}.{getattr(obj, '__qualname__', type(obj).__qualname__)}"


class FileStorageRegistry:
    """ストレージインスタンスのレジストリ"""

    def __init__(self):
        self._services: Dict[str, FileStorageService] = {}

    def register(self, name: str, service: FileStorageService) -> FileStorageService:
        """
        インスタンスを登録する

        Raises:
            StorageConfigError: 同名のインスタンスが登録済みの場合
        """
        if name in self._services:
            raise StorageConfigError(f"File storage already registered: {name}")
        self._services[name] = service
        return service

    def get(self, name: str) -> FileStorageService:
        """
        名前からインスタンスを取得

        Raises:
            BackendNotRegisteredError: 未登録の名前が指定された場合
        """
        if name not in self._services:
            available = ", ".join(self._services)
            raise BackendNotRegisteredError(f"Unknown file storage: {name}. Available: {available}")
        return self._services[name]

    def names(self) -> List[str]:
        """登録済み名前一覧を取得"""
        return list(self._services)

    def items(self) -> List[Tuple[str, FileStorageService]]:
        return list(self._services.items())

    def __contains__(self, name: str) -> bool:
        return name in self._services

    def __len__(self) -> int:
        return len(self._services)

    def __iter__(self) -> Iterator[str]:
        return iter(self._services)

    def describe(self) -> Dict[str, Dict[str, str]]:
        """
        登録済みインスタンスの説明を取得

        Returns:
            Dict: {name: {'description', 'storage_service', 'id_mapper'}}
        """
        result = {}
        for name, service in self._services.items():
            implementation = service
            if isinstance(service, LoggingFileStorageServiceWrapper):
                implementation = service.service
            result[name] = {
                'description': service.storage_description,
                'storage_service': _qualified_name(type(implementation)),
                'id_mapper': _qualified_name(service.id_mapper),
            }
        return result

    def clear(self) -> None:
        """テスト用: レジストリをクリア"""
        self._services.clear()


def build_registry(
    settings: FileStorageSettings,
    clients: Optional[StorageClients] = None,
    id_mappers: Optional[Dict[str, IdMapper]] = None,
    registry: Optional[FileStorageRegistry] = None
) -> FileStorageRegistry:
    """
    設定されたすべてのインスタンスを生成してレジストリに登録する

    Args:
        settings: ファイルストレージ設定
        clients: 生成済みベンダークライアント
        id_mappers: インスタンスキーごとのカスタムIDマッパー
        registry: 登録先（Noneの場合は新規作成）

    Raises:
        StorageConfigError: 設定が不正な場合（起動時に即座に失敗する）
    """
    registry = registry if registry is not None else FileStorageRegistry()
    id_mappers = id_mappers or {}
    if not settings.instances:
        return registry

    logger.info(f"Generating {len(settings.instances)} FileStorageService instance(s)")
    for key, config in settings.instances.items():
        service = create_file_storage(config, clients, id_mappers.get(key))
        registry.register(config.name, service)
    return registry
