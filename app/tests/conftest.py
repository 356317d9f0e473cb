"""共通フィクスチャ

契約テストは実際に動作するバックエンド（インメモリ（ロギングラッパー有無）、ローカルFS、
moto上のS3、ローカルpyarrowファイルシステム上のHDFS）で実行する。
"""

import os
import uuid

import boto3
import pytest
from moto import mock_aws
from pyarrow import fs as pafs

from services.file_storage import (
    InMemoryFileStorageService,
    LoggingFileStorageServiceWrapper,
    S3FileStorageService,
    SystemFileStorageService,
    uuid_id_mapper,
)
from services.file_storage.backends.hdfs import HdfsFileStorageService

TEST_BUCKET = "test-bucket"


@pytest.fixture
def file_id() -> uuid.UUID:
    return uuid.UUID("32d18211-9fc4-4876-ac9d-33a6b150205a")


@pytest.fixture
def content() -> bytes:
    return os.urandom(1024)


@pytest.fixture
def aws_credentials(monkeypatch):
    """motoが実際のAWSへ接続しないようにダミー認証情報を設定"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_client(aws_credentials):
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def memory_storage():
    return InMemoryFileStorageService(uuid_id_mapper)


@pytest.fixture
def system_storage(tmp_path):
    return SystemFileStorageService(tmp_path / "file-storage", uuid_id_mapper)


@pytest.fixture
def s3_storage(s3_client):
    return S3FileStorageService(s3_client, TEST_BUCKET, uuid_id_mapper)


@pytest.fixture
def hdfs_storage(tmp_path):
    root = tmp_path / "hdfs"
    root.mkdir()
    return HdfsFileStorageService(pafs.LocalFileSystem(), str(root), uuid_id_mapper)


@pytest.fixture
def logged_memory_storage():
    """ロギングラッパー経由のインメモリストレージ"""
    return LoggingFileStorageServiceWrapper(InMemoryFileStorageService(uuid_id_mapper))


@pytest.fixture(params=["memory", "system", "s3", "hdfs", "logged_memory"])
def storage(request):
    """契約テスト用: 各バックエンドで同じテストを実行"""
    return request.getfixturevalue(f"{request.param}_storage")
