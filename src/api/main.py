"""FastAPI メインアプリケーション

プレス機操作コンソールのバックエンドAPI。
信号ブリッジとMESバックエンドとの通信を一元管理し、
操作画面にRESTful APIを提供する。

起動方法:
    uvicorn api.main:app --app-dir src --host 127.0.0.1 --port 8000
"""

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI
from dotenv import load_dotenv

# srcディレクトリをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent))

# .envファイルを読み込む
load_dotenv()

from api.routes import connection, job, mold, signals
from backend.logging import api_logger as logger
from backend.logging import apply_log_level
from backend.session import ConsoleSession
from config.settings import Settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """アプリケーションのライフサイクル管理

    起動時: コンソールセッションを生成 (プレス作業情報の読み込み)
    終了時: 購読を解除してセッションを破棄
    """
    logger.info("API Server starting...")
    settings = Settings()
    apply_log_level(settings.LOG_LEVEL.value)
    app.state.session = await ConsoleSession.create(settings)

    yield

    logger.info("API Server shutting down...")
    app.state.session.dispose()
    app.state.session = None
    logger.info("API Server shutdown complete")


def create_app() -> FastAPI:
    """FastAPIアプリケーションを生成する"""
    app = FastAPI(
        title="Press Operator Console API",
        description="プレス機操作コンソール バックエンドAPI",
        version="1.0.0",
        lifespan=lifespan,
    )

    # ルーター登録
    app.include_router(connection.router, prefix="/api", tags=["connection"])
    app.include_router(signals.router, prefix="/api", tags=["signals"])
    app.include_router(job.router, prefix="/api", tags=["job"])
    app.include_router(mold.router, prefix="/api", tags=["mold"])

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        """ルートパス

        APIサーバーの情報を返す。
        """
        return {
            "name": "Press Operator Console API",
            "docs": "/docs",
            "health": "/health",
        }

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str | int]:
        """ヘルスチェック (軽量)

        信号ブリッジ・MESとの通信は行わず、APIプロセスの生存確認のみを行う。

        Returns:
            {"status": "ok", "pid": <プロセスID>}
        """
        return {"status": "ok", "pid": os.getpid()}

    return app


app = create_app()
