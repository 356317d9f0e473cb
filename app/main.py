import logging
import os
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.route import file_storage
from services.file_storage import (
    FileStorageRegistry,
    FileStorageSettings,
    IdMapper,
    StorageClients,
    build_registry,
)

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:5173"


def create_app(
    settings: Optional[FileStorageSettings] = None,
    clients: Optional[StorageClients] = None,
    id_mappers: Optional[Dict[str, IdMapper]] = None,
    registry: Optional[FileStorageRegistry] = None
) -> FastAPI:
    """
    アプリケーションを生成する

    起動時に設定されたすべてのストレージを生成し、app.stateにレジストリを保持する。
    設定が不正な場合はここで失敗する。
    """
    settings = settings or FileStorageSettings.from_env()
    app = FastAPI()
    # CORSミドルウェアの設定
    app.add_middleware(
        CORSMiddleware,
        # 許可するオリジン（カンマ区切り）
        allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.file_storage_registry = build_registry(settings, clients, id_mappers, registry)

    if settings.endpoint_enabled:
        app.include_router(file_storage.router, prefix="/api")
    else:
        logger.info("File storage endpoint disabled")
    return app


app = create_app()
