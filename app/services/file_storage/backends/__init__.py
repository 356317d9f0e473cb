"""ストレージバックエンド実装

GCS / Azure / HDFS / SFTP は追加依存が必要なため、ここでは読み込まない。
"""

from .base import FileStorageService
from .local import SystemFileStorageService
from .memory import InMemoryFileStorageService
from .s3 import S3FileStorageService

__all__ = [
    'FileStorageService',
    'SystemFileStorageService',
    'InMemoryFileStorageService',
    'S3FileStorageService',
]
