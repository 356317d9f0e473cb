"""File Storage API

登録済みファイルストレージインスタンスの一覧を返す参照用エンドポイント。
FILE_STORAGE_ENDPOINT_ENABLED=false で無効化できる。
"""

import logging
from typing import Dict

from fastapi import APIRouter, HTTPException, Request

from api.response_model import FileStorageInstanceResponse
from services.file_storage import FileStorageRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/file-storage", tags=["file-storage"])


def get_registry(request: Request) -> FileStorageRegistry:
    """アプリケーションに紐づくレジストリを取得"""
    registry = getattr(request.app.state, "file_storage_registry", None)
    if registry is None:
        logger.error("File storage registry is not configured")
        raise HTTPException(status_code=503, detail="File storage registry is not configured")
    return registry


@router.get("", response_model=Dict[str, FileStorageInstanceResponse])
def view_registered_file_storages(request: Request):
    """登録済みファイルストレージの一覧を取得"""
    registry = get_registry(request)
    return {
        name: FileStorageInstanceResponse(**info)
        for name, info in registry.describe().items()
    }


@router.get("/{name}", response_model=FileStorageInstanceResponse)
def view_file_storage(name: str, request: Request):
    """名前を指定してファイルストレージの情報を取得"""
    registry = get_registry(request)
    description = registry.describe()
    if name not in description:
        raise HTTPException(status_code=404, detail=f"File storage not found: {name}")
    return FileStorageInstanceResponse(**description[name])
