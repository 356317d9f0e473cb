"""File Storage Module - 統合ファイルストレージサービス

ファイルシステム、S3、GCS、Azure、HDFS、SFTP、インメモリを
単一のインターフェースで扱うためのストレージ抽象化レイヤー。

使用例:
    import uuid
    from services.file_storage import InMemoryFileStorageService, uuid_id_mapper

    storage = InMemoryFileStorageService(uuid_id_mapper)
    file_id = uuid.uuid4()
    storage.create(file_id, b"Hello World")
    data = storage.get_bytes_range(file_id, 0, 5)
"""

from .backends.base import FileStorageService
from .backends.local import SystemFileStorageService
from .backends.memory import InMemoryFileStorageService
from .backends.s3 import S3FileStorageService
from .config import FileStorageConfig, FileStorageSettings, StorageType
from .exceptions import (
    BackendNotRegisteredError,
    StorageAccessError,
    StorageAlreadyExistsError,
    StorageConfigError,
    StorageError,
    StorageNotFoundError,
    StorageUnsupportedError,
)
from .factory import BACKEND_FACTORIES, StorageClients, create_file_storage
from .ids import (
    ID_MAPPERS,
    SEPARATOR,
    FileStorageId,
    IdMapper,
    KsuidFileStorageId,
    PathFileStorageId,
    UUIDFileStorageId,
    join_path,
    ksuid_id_mapper,
    sharded_path,
    string_id_mapper,
    uuid_id_mapper,
)
from .logging_wrapper import LoggingFileStorageServiceWrapper
from .registry import FileStorageRegistry, build_registry

__all__ = [
    'FileStorageService',
    'SystemFileStorageService',
    'InMemoryFileStorageService',
    'S3FileStorageService',
    'LoggingFileStorageServiceWrapper',
    'FileStorageConfig',
    'FileStorageSettings',
    'StorageType',
    'StorageClients',
    'BACKEND_FACTORIES',
    'create_file_storage',
    'FileStorageRegistry',
    'build_registry',
    'FileStorageId',
    'UUIDFileStorageId',
    'KsuidFileStorageId',
    'PathFileStorageId',
    'IdMapper',
    'ID_MAPPERS',
    'SEPARATOR',
    'sharded_path',
    'join_path',
    'uuid_id_mapper',
    'ksuid_id_mapper',
    'string_id_mapper',
    'StorageError',
    'StorageNotFoundError',
    'StorageAlreadyExistsError',
    'StorageUnsupportedError',
    'StorageAccessError',
    'StorageConfigError',
    'BackendNotRegisteredError',
]

__version__ = '1.0.0'
