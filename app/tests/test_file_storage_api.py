"""File Storage APIのテスト"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.file_storage import FileStorageSettings


@pytest.fixture
def settings(tmp_path) -> FileStorageSettings:
    return FileStorageSettings.from_dict({
        "instances": {
            "widget": {"type": "InMemory", "name": "widgetFileStorage", "id-mapper": "uuid"},
            "local": {
                "type": "System",
                "name": "localFileStorage",
                "id-mapper": "ksuid",
                "logging-enabled": False,
                "system": {"root-location": str(tmp_path)},
            },
        }
    })


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def test_list_file_storages(client):
    response = client.get("/api/file-storage")
    assert response.status_code == 200
    assert response.json() == {
        "widgetFileStorage": {
            "description": "In memory file storage",
            "storage_service": "services.file_storage.backends.memory.InMemoryFileStorageService",
            "id_mapper": "services.file_storage.ids.uuid_id_mapper",
        },
        "localFileStorage": {
            "description": "File system storage",
            "storage_service": "services.file_storage.backends.local.SystemFileStorageService",
            "id_mapper": "services.file_storage.ids.ksuid_id_mapper",
        },
    }


def test_get_file_storage(client):
    response = client.get("/api/file-storage/widgetFileStorage")
    assert response.status_code == 200
    assert response.json()["description"] == "In memory file storage"


def test_get_unknown_file_storage(client):
    response = client.get("/api/file-storage/missing")
    assert response.status_code == 404


def test_empty_registry():
    client = TestClient(create_app(FileStorageSettings()))
    response = client.get("/api/file-storage")
    assert response.status_code == 200
    assert response.json() == {}


def test_endpoint_disabled(settings):
    settings.endpoint_enabled = False
    app = create_app(settings)
    client = TestClient(app)

    assert client.get("/api/file-storage").status_code == 404
    # エンドポイントが無効でもレジストリは生成される
    assert "widgetFileStorage" in app.state.file_storage_registry


def test_registry_not_configured(settings):
    app = create_app(settings)
    del app.state.file_storage_registry
    response = TestClient(app).get("/api/file-storage")
    assert response.status_code == 503
