#!/usr/bin/env python3
"""プレス機操作コンソール ランチャー

FastAPI (コンソールバックエンド) を起動し、起動完了まで待機して監視する。
ホスト・ポート・ログレベルは .env (Settings) から読み込む。

使い方:
    python main.py
    または
    uv run python main.py
"""

import atexit
import signal
import subprocess
import sys
import time
from logging import Logger
from pathlib import Path
from typing import Optional

import httpx

# srcをPythonパスに追加（インポートパス解決のため）
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

API_STARTUP_TIMEOUT = 30  # 秒


class ApiProcess:
    """APIサーバープロセスのライフサイクルを管理"""

    def __init__(self, logger: Logger, host: str, port: int, log_level: str) -> None:
        self.logger = logger
        self.host = host
        self.port = port
        self.log_level = log_level
        self.process: Optional[subprocess.Popen] = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """uvicorn で api.main:app を起動"""
        self.logger.info(f"APIサーバーを起動中... ({self.host}:{self.port})")
        self.process = subprocess.Popen(
            [
                sys.executable,
                "-m",
                "uvicorn",
                "api.main:app",
                "--app-dir",
                str(project_root / "src"),
                "--host",
                self.host,
                "--port",
                str(self.port),
                "--log-level",
                self.log_level.lower(),
            ],
            cwd=str(project_root),
        )

    def wait_ready(self) -> bool:
        """APIサーバーの起動を待機

        Returns:
            bool: 起動成功ならTrue
        """
        self.logger.info("APIサーバーの起動を待機中...")
        for _ in range(API_STARTUP_TIMEOUT):
            if not self.is_running():
                self.logger.error("APIサーバーが起動中に停止しました")
                return False
            try:
                response = httpx.get(f"{self.base_url}/health", timeout=2.0)
                if response.status_code == 200:
                    self.logger.info("✓ APIサーバー正常起動")
                    return True
            except httpx.RequestError:
                pass
            time.sleep(1)

        self.logger.error("APIサーバーの起動がタイムアウトしました")
        return False

    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def stop(self) -> None:
        """プロセスを安全に終了"""
        if self.process is None or self.process.poll() is not None:
            return
        self.logger.info("APIサーバーを停止中...")
        self.process.terminate()
        try:
            self.process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.logger.warning("APIサーバーの停止がタイムアウト、強制終了します")
            self.process.kill()
            self.process.wait()
        self.logger.info("シャットダウン完了")


def main() -> None:
    """メインエントリーポイント"""
    from backend.logging import apply_log_level, launcher_logger as logger
    from config.settings import Settings

    settings = Settings()
    apply_log_level(settings.LOG_LEVEL.value)

    print("=" * 50)
    print("プレス機操作コンソール起動スクリプト")
    print("=" * 50)
    print()

    server = ApiProcess(
        logger, settings.API_HOST, settings.API_PORT, settings.LOG_LEVEL.value
    )

    def signal_handler(signum: int, frame: object) -> None:
        server.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    atexit.register(server.stop)

    try:
        server.start()
        if not server.wait_ready():
            logger.error("APIサーバーの起動に失敗しました")
            server.stop()
            sys.exit(1)

        print()
        print(f"  API:   {server.base_url}")
        print(f"  Docs:  {server.base_url}/docs")
        print()
        print("Ctrl+C で終了")
        print()

        # プロセス監視ループ
        while server.is_running():
            time.sleep(2)
        logger.error("APIサーバーが予期せず停止しました")

    except KeyboardInterrupt:
        logger.info("ユーザーによる停止")

    finally:
        server.stop()


if __name__ == "__main__":
    main()
