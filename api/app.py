"""
FastAPI application for the quote journal.
Main application entry point for the API server.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI

from database import QuoteStore, open_store
from utils import api_logger, config_manager, resolve_project_path

from .routes import router
from .middleware import setup_middleware

API_VERSION = "1.0.0"


def create_app(store: Optional[QuoteStore] = None) -> FastAPI:
    """创建 FastAPI 应用

    传入 ``store`` 时直接使用，生命周期由调用方负责；否则在启动时按配置
    打开数据库，在关闭时释放。
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        api_logger.info("[API] Starting Quote Journal API...")
        owned = None
        if getattr(app.state, "store", None) is None:
            db_config = config_manager.get_database_config()
            owned = open_store(str(resolve_project_path(db_config.db_path)))
            app.state.store = owned
            api_logger.info(f"[API] Quote store opened at {owned.db_path}")

        yield

        api_logger.info("[API] Shutting down Quote Journal API...")
        if owned is not None:
            owned.close()
            app.state.store = None

    app = FastAPI(
        title="Quote Journal API",
        description="Store, browse and share favourite quotes",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    app.state.store = store

    setup_middleware(app)
    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "message": "Quote Journal API",
            "version": API_VERSION,
            "docs": "/docs",
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        """健康检查端点"""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": API_VERSION
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """按配置启动 uvicorn"""
    api_config = config_manager.get_api_config()
    host = host or api_config.host
    port = port or api_config.port

    api_logger.info(f"[API] Starting server on {host}:{port}")

    if api_config.reload:
        uvicorn.run("api.app:app", host=host, port=port, reload=True, log_level="info")
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


# 数据库在 lifespan 中打开，导入时不会触碰磁盘
app = create_app()


if __name__ == "__main__":
    run_server()
