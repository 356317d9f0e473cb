"""インメモリバックエンドのテスト"""

import threading
import uuid

import pytest

from services.file_storage import (
    InMemoryFileStorageService,
    StorageAlreadyExistsError,
    StorageNotFoundError,
    uuid_id_mapper,
)


def test_uuid_scenario():
    """UUIDでの作成・範囲読み込み・削除の一連の流れ"""
    storage = InMemoryFileStorageService(uuid_id_mapper)
    file_id = uuid.UUID("467f28f8-5a5a-4f10-9fce-ed2b5eb5ddd4")

    storage.create(file_id, b"Hello World")

    assert storage.generate_path(file_id) == "4/6/7/f/28f8-5a5a-4f10-9fce-ed2b5eb5ddd4"
    assert storage.get_bytes_range(file_id, 0, 5) == b"Hello"
    assert storage.get_size(file_id) == 11

    storage.delete(file_id)
    with pytest.raises(StorageNotFoundError):
        storage.get_bytes(file_id)


def test_default_id_mapper_uses_string():
    storage = InMemoryFileStorageService()
    storage.create("report-2024", b"data")
    assert storage.generate_path("report-2024") == "r/e/p/o/rt-2024"
    assert storage.exists("report-2024")


def test_stored_bytes_are_copied():
    """作成後に元のバッファを変更しても内容は変わらない"""
    storage = InMemoryFileStorageService(uuid_id_mapper)
    file_id = uuid.uuid4()
    buffer = bytearray(b"original")
    storage.create(file_id, buffer)
    buffer[:] = b"modified"
    assert storage.get_bytes(file_id) == b"original"


def test_concurrent_create_single_winner():
    """同一IDへの並行作成は1件のみ成功する"""
    storage = InMemoryFileStorageService(uuid_id_mapper)
    file_id = uuid.uuid4()
    results = []

    def worker(index):
        try:
            storage.create(file_id, bytes([index]))
            results.append("ok")
        except StorageAlreadyExistsError:
            results.append("exists")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("ok") == 1
    assert results.count("exists") == 9


def test_range_past_end_is_trimmed():
    storage = InMemoryFileStorageService(uuid_id_mapper)
    file_id = uuid.uuid4()
    storage.create(file_id, b"0123456789")
    assert storage.get_bytes_range(file_id, 8, 20) == b"89"
    assert storage.get_bytes_range(file_id, 20, 30) == b""
