"""ストレージ生成ファクトリ

StorageTypeから生成関数へのディスパッチテーブルで、設定に対応する
FileStorageServiceを生成する。ベンダークライアント（boto3、GCS、Azure、HDFS）は
StorageClientsで外部から渡すことができ、渡されない場合のみ設定から生成する。

GCS / Azure / HDFS / SFTP は追加依存が必要:
    pip install 'labcode-file-storage[gcs]'   # 等
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import boto3

from .backends.base import FileStorageService
from .backends.local import SystemFileStorageService
from .backends.memory import InMemoryFileStorageService
from .backends.s3 import S3FileStorageService
from .config import FileStorageConfig, StorageType
from .exceptions import BackendNotRegisteredError, StorageConfigError
from .ids import ID_MAPPERS, IdMapper
from .logging_wrapper import LoggingFileStorageServiceWrapper

logger = logging.getLogger(__name__)


@dataclass
class StorageClients:
    """外部で生成済みのベンダークライアント"""
    s3: Any = None
    gcs: Any = None
    azure_container: Any = None
    hdfs: Any = None


def _missing_extra(backend: str, extra: str) -> str:
    return (
        f"{backend} storage backend requires extra dependencies. "
        f"Install with: pip install 'labcode-file-storage[{extra}]'"
    )


def _create_system(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    return SystemFileStorageService(config.system.root_location, id_mapper)


def _create_in_memory(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    return InMemoryFileStorageService(id_mapper)


def _create_sftp(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    try:
        from .backends.sftp import SftpFileStorageService
    except ImportError as exc:
        raise StorageConfigError(_missing_extra("SFTP", "sftp")) from exc
    sftp = config.sftp
    return SftpFileStorageService(
        remote_host=sftp.remote_host,
        remote_port=sftp.remote_port,
        username=sftp.username,
        password=sftp.password,
        root_directory=sftp.root_directory,
        connect_options=sftp.connect_options,
        id_mapper=id_mapper
    )


def _create_s3(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    client = clients.s3
    if client is None:
        client_kwargs = {
            'aws_access_key_id': config.s3.access_key_id,
            'aws_secret_access_key': config.s3.secret_access_key,
            'region_name': config.s3.region
        }
        if config.s3.endpoint_url:
            client_kwargs['endpoint_url'] = config.s3.endpoint_url
        client = boto3.client('s3', **client_kwargs)
    return S3FileStorageService(client, config.s3.bucket_name, id_mapper)


def _create_gcs(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    try:
        from .backends.gcs import GcsFileStorageService
    except ImportError as exc:
        raise StorageConfigError(_missing_extra("GCS", "gcs")) from exc
    client = clients.gcs
    if client is None:
        from google.cloud import storage
        client = storage.Client(project=config.gcs.project)
    return GcsFileStorageService(client, config.gcs.bucket_name, id_mapper)


def _create_azure(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    try:
        from .backends.azure import AzureFileStorageService
    except ImportError as exc:
        raise StorageConfigError(_missing_extra("Azure", "azure")) from exc
    container_client = clients.azure_container
    if container_client is None:
        if not config.azure.connection_string:
            raise StorageConfigError(
                "Missing configuration for azure connection string: "
                f"{config.property_name('azure.connection-string')}"
            )
        from azure.storage.blob import ContainerClient
        container_client = ContainerClient.from_connection_string(
            config.azure.connection_string, config.azure.container_name
        )
    return AzureFileStorageService(container_client, id_mapper)


def _create_hdfs(config: FileStorageConfig, clients: StorageClients, id_mapper: IdMapper) -> FileStorageService:
    try:
        from .backends.hdfs import HdfsFileStorageService
    except ImportError as exc:
        raise StorageConfigError(_missing_extra("HDFS", "hdfs")) from exc
    filesystem = clients.hdfs
    if filesystem is None:
        if not config.hdfs.host:
            raise StorageConfigError(f"Missing configuration for hdfs host: {config.property_name('hdfs.host')}")
        from pyarrow import fs as pafs
        filesystem = pafs.HadoopFileSystem(config.hdfs.host, config.hdfs.port, user=config.hdfs.user)
    return HdfsFileStorageService(filesystem, config.hdfs.root_directory, id_mapper)


BackendFactory = Callable[[FileStorageConfig, StorageClients, IdMapper], FileStorageService]

BACKEND_FACTORIES: Dict[StorageType, BackendFactory] = {
    StorageType.SYSTEM: _create_system,
    StorageType.IN_MEMORY: _create_in_memory,
    StorageType.SFTP: _create_sftp,
    StorageType.S3: _create_s3,
    StorageType.GCS: _create_gcs,
    StorageType.AZURE: _create_azure,
    StorageType.HDFS: _create_hdfs,
}


def resolve_id_mapper(config: FileStorageConfig, id_mapper: Optional[IdMapper] = None) -> IdMapper:
    """明示指定 > 設定名（ID_MAPPERS）の順でIDマッパーを解決"""
    if id_mapper is not None:
        return id_mapper
    if config.id_mapper is None:
        raise StorageConfigError(f"Missing configuration for id mapper: {config.property_name('id-mapper')}")
    return ID_MAPPERS[config.id_mapper]


def create_file_storage(
    config: FileStorageConfig,
    clients: Optional[StorageClients] = None,
    id_mapper: Optional[IdMapper] = None
) -> FileStorageService:
    """
    設定からFileStorageServiceを生成する

    Args:
        config: インスタンス設定
        clients: 生成済みベンダークライアント
        id_mapper: カスタムIDマッパー（設定のid_mapperより優先）

    Returns:
        FileStorageService: logging_enabledの場合はLoggingFileStorageServiceWrapperでラップ済み

    Raises:
        StorageConfigError: 設定が不正な場合
        BackendNotRegisteredError: 生成関数が未登録の種別の場合
    """
    config.validate()
    mapper = resolve_id_mapper(config, id_mapper)
    factory = BACKEND_FACTORIES.get(config.type)
    if factory is None:
        raise BackendNotRegisteredError(f"Not configured to create storage of this type: {config.type}")

    service = factory(config, clients or StorageClients(), mapper)
    if config.logging_enabled:
        service = LoggingFileStorageServiceWrapper(service)
    logger.debug(
        f"Processing file storage configuration '{config.property_name('*')}' into implementation "
        f"'{type(service).__name__}' as '{config.name}'"
    )
    return service
