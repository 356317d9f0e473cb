"""ファイルストレージ設定クラス

環境変数または辞書からの設定読み込みを一元管理。
複数のストレージインスタンスをキーごとに定義できる。

環境変数の例:
    FILE_STORAGE_INSTANCES=widget,trinket
    FILE_STORAGE_WIDGET_TYPE=InMemory
    FILE_STORAGE_WIDGET_NAME=widgetFileStorage
    FILE_STORAGE_WIDGET_ID_MAPPER=uuid
    FILE_STORAGE_TRINKET_TYPE=S3
    FILE_STORAGE_TRINKET_NAME=trinketS3FileStorage
    FILE_STORAGE_TRINKET_ID_MAPPER=ksuid
    FILE_STORAGE_TRINKET_S3_BUCKET_NAME=test-bucket
"""

import json
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .exceptions import StorageConfigError
from .ids import ID_MAPPERS

CONFIG_PREFIX = "file-storage"
ENV_PREFIX = "FILE_STORAGE"


class StorageType(str, Enum):
    """ストレージ種別"""
    SYSTEM = "system"
    IN_MEMORY = "inmemory"
    SFTP = "sftp"
    S3 = "s3"
    GCS = "gcs"
    AZURE = "azure"
    HDFS = "hdfs"

    @classmethod
    def parse(cls, value: Any) -> 'StorageType':
        """大文字小文字・区切り文字を無視して種別を解決（'InMemory', 'in_memory'等）"""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace('_', '').replace('-', '')
        for member in cls:
            if member.value == normalized:
                return member
        available = ", ".join(member.value for member in cls)
        raise StorageConfigError(f"Unknown storage type: {value}. Available: {available}")


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _from_mapping(cls, data: Optional[Mapping[str, Any]]):
    """dataclassのフィールドに一致するキーのみを使って生成"""
    if data is None:
        return None
    names = {f.name for f in fields(cls)}
    normalized = {str(k).replace('-', '_'): v for k, v in data.items()}
    return cls(**{k: v for k, v in normalized.items() if k in names})


@dataclass
class SystemConfig:
    """ローカルファイルシステム固有設定"""
    root_location: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str) -> 'SystemConfig':
        return cls(root_location=os.getenv(f'{prefix}_SYSTEM_ROOT_LOCATION'))


@dataclass
class SftpConfig:
    """SFTP固有設定"""
    remote_host: Optional[str] = None
    remote_port: int = 22
    username: Optional[str] = None
    password: Optional[str] = None
    root_directory: Optional[str] = None
    connect_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.remote_port = int(self.remote_port)

    @classmethod
    def from_env(cls, prefix: str) -> 'SftpConfig':
        options = os.getenv(f'{prefix}_SFTP_CONNECT_OPTIONS')
        return cls(
            remote_host=os.getenv(f'{prefix}_SFTP_REMOTE_HOST'),
            remote_port=int(os.getenv(f'{prefix}_SFTP_REMOTE_PORT', '22')),
            username=os.getenv(f'{prefix}_SFTP_USERNAME'),
            password=os.getenv(f'{prefix}_SFTP_PASSWORD'),
            root_directory=os.getenv(f'{prefix}_SFTP_ROOT_DIRECTORY'),
            connect_options=json.loads(options) if options else {}
        )


@dataclass
class S3Config:
    """S3固有設定"""
    bucket_name: Optional[str] = None
    endpoint_url: Optional[str] = None
    region: str = "ap-northeast-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str) -> 'S3Config':
        return cls(
            bucket_name=os.getenv(f'{prefix}_S3_BUCKET_NAME'),
            endpoint_url=os.getenv(f'{prefix}_S3_ENDPOINT_URL'),
            region=os.getenv(f'{prefix}_S3_REGION', os.getenv('AWS_DEFAULT_REGION', 'ap-northeast-1')),
            access_key_id=os.getenv(f'{prefix}_S3_ACCESS_KEY_ID', os.getenv('AWS_ACCESS_KEY_ID')),
            secret_access_key=os.getenv(f'{prefix}_S3_SECRET_ACCESS_KEY', os.getenv('AWS_SECRET_ACCESS_KEY'))
        )


@dataclass
class GcsConfig:
    """Google Cloud Storage固有設定"""
    bucket_name: Optional[str] = None
    project: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str) -> 'GcsConfig':
        return cls(
            bucket_name=os.getenv(f'{prefix}_GCS_BUCKET_NAME'),
            project=os.getenv(f'{prefix}_GCS_PROJECT', os.getenv('GOOGLE_CLOUD_PROJECT'))
        )


@dataclass
class AzureConfig:
    """Azure Blob Storage固有設定"""
    container_name: Optional[str] = None
    connection_string: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str) -> 'AzureConfig':
        return cls(
            container_name=os.getenv(f'{prefix}_AZURE_CONTAINER_NAME'),
            connection_string=os.getenv(
                f'{prefix}_AZURE_CONNECTION_STRING', os.getenv('AZURE_STORAGE_CONNECTION_STRING')
            )
        )


@dataclass
class HdfsConfig:
    """HDFS固有設定"""
    host: Optional[str] = None
    port: int = 8020
    user: Optional[str] = None
    root_directory: Optional[str] = None

    def __post_init__(self):
        self.port = int(self.port)

    @classmethod
    def from_env(cls, prefix: str) -> 'HdfsConfig':
        return cls(
            host=os.getenv(f'{prefix}_HDFS_HOST'),
            port=int(os.getenv(f'{prefix}_HDFS_PORT', '8020')),
            user=os.getenv(f'{prefix}_HDFS_USER'),
            root_directory=os.getenv(f'{prefix}_HDFS_ROOT_DIRECTORY')
        )


_SECTIONS = {
    'system': SystemConfig,
    'sftp': SftpConfig,
    's3': S3Config,
    'gcs': GcsConfig,
    'azure': AzureConfig,
    'hdfs': HdfsConfig,
}


@dataclass
class FileStorageConfig:
    """ストレージインスタンス1件分の設定"""
    key: str
    type: Optional[StorageType] = None
    name: Optional[str] = None
    id_mapper: Optional[str] = None
    logging_enabled: bool = True
    system: SystemConfig = field(default_factory=SystemConfig)
    sftp: SftpConfig = field(default_factory=SftpConfig)
    s3: S3Config = field(default_factory=S3Config)
    gcs: GcsConfig = field(default_factory=GcsConfig)
    azure: AzureConfig = field(default_factory=AzureConfig)
    hdfs: HdfsConfig = field(default_factory=HdfsConfig)

    def __post_init__(self):
        if self.type is not None:
            self.type = StorageType.parse(self.type)

    def property_name(self, suffix: str) -> str:
        """エラーメッセージ用の設定キー名"""
        return f"{CONFIG_PREFIX}.instances.{self.key}.{suffix}"

    def _require(self, value: Any, description: str, suffix: str) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise StorageConfigError(f"Missing configuration for {description}: {self.property_name(suffix)}")

    def validate(self) -> None:
        """
        必須項目を検証する

        Raises:
            StorageConfigError: 必須項目が欠けている、または不正な場合
        """
        self._require(self.type, "storage type", "type")
        self._require(self.name, "name", "name")
        if self.id_mapper is not None and self.id_mapper not in ID_MAPPERS:
            available = ", ".join(ID_MAPPERS)
            raise StorageConfigError(
                f"Unknown id mapper '{self.id_mapper}' for {self.property_name('id-mapper')}. Available: {available}"
            )

        if self.type == StorageType.SYSTEM:
            self._require(self.system.root_location, "system root location", "system.root-location")
        elif self.type == StorageType.SFTP:
            self._require(self.sftp.remote_host, "sftp remote host", "sftp.remote-host")
            if self.sftp.remote_port <= 0:
                raise StorageConfigError(
                    f"Missing configuration for sftp remote port: {self.property_name('sftp.remote-port')}"
                )
            self._require(self.sftp.username, "sftp username", "sftp.username")
            self._require(self.sftp.password, "sftp password", "sftp.password")
            self._require(self.sftp.root_directory, "sftp root directory", "sftp.root-directory")
        elif self.type == StorageType.S3:
            self._require(self.s3.bucket_name, "s3 bucket name", "s3.bucket-name")
        elif self.type == StorageType.GCS:
            self._require(self.gcs.bucket_name, "gcs bucket name", "gcs.bucket-name")
        elif self.type == StorageType.AZURE:
            self._require(self.azure.container_name, "azure container name", "azure.container-name")
        elif self.type == StorageType.HDFS:
            self._require(self.hdfs.root_directory, "hdfs root directory", "hdfs.root-directory")
            if not self.hdfs.root_directory.strip().rstrip("/"):
                raise StorageConfigError(
                    f"HDFS root directory must not be the filesystem root: {self.property_name('hdfs.root-directory')}"
                )

    @classmethod
    def from_env(cls, key: str) -> 'FileStorageConfig':
        """環境変数 FILE_STORAGE_<KEY>_* から設定を読み込み"""
        prefix = f"{ENV_PREFIX}_{key.upper().replace('-', '_')}"
        storage_type = os.getenv(f'{prefix}_TYPE')
        return cls(
            key=key,
            type=StorageType.parse(storage_type) if storage_type else None,
            name=os.getenv(f'{prefix}_NAME'),
            id_mapper=os.getenv(f'{prefix}_ID_MAPPER'),
            logging_enabled=_bool(os.getenv(f'{prefix}_LOGGING_ENABLED', 'true')),
            **{section: section_cls.from_env(prefix) for section, section_cls in _SECTIONS.items()}
        )

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, Any]) -> 'FileStorageConfig':
        """辞書（YAML/JSON等の読み込み結果）から設定を生成"""
        normalized = {str(k).replace('-', '_'): v for k, v in data.items()}
        sections = {
            section: _from_mapping(section_cls, normalized.get(section)) or section_cls()
            for section, section_cls in _SECTIONS.items()
        }
        return cls(
            key=key,
            type=normalized.get('type'),
            name=normalized.get('name'),
            id_mapper=normalized.get('id_mapper'),
            logging_enabled=_bool(normalized.get('logging_enabled', True)),
            **sections
        )


@dataclass
class FileStorageSettings:
    """統合ファイルストレージ設定"""
    instances: Dict[str, FileStorageConfig] = field(default_factory=dict)
    endpoint_enabled: bool = True

    @classmethod
    def from_env(cls) -> 'FileStorageSettings':
        """環境変数から設定を読み込み"""
        keys = [k.strip() for k in os.getenv(f'{ENV_PREFIX}_INSTANCES', '').split(',') if k.strip()]
        return cls(
            instances={key: FileStorageConfig.from_env(key) for key in keys},
            endpoint_enabled=_bool(os.getenv(f'{ENV_PREFIX}_ENDPOINT_ENABLED', 'true'))
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FileStorageSettings':
        """
        辞書から設定を読み込み

        形式:
            {"endpoint-enabled": true,
             "instances": {"widget": {"type": "InMemory", "name": "widgetFileStorage", ...}}}
        """
        instances = data.get('instances') or {}
        return cls(
            instances={key: FileStorageConfig.from_dict(key, value) for key, value in instances.items()},
            endpoint_enabled=_bool(data.get('endpoint-enabled', data.get('endpoint_enabled', True)))
        )
