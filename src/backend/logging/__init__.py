from pathlib import Path

from .logger import apply_log_level as _apply_log_level
from .logger import resolve_level, setup_logger

# プロジェクトルートのlogsフォルダを使用
# src/backend/logging/__init__.py → 3つ上がプロジェクトルート
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_LOGS_DIR = _PROJECT_ROOT / "logs"

# アプリケーション全体で共通のロガー設定
launcher_logger = setup_logger(
    "backend.launcher", log_file=str(_LOGS_DIR / "launcher.log")
)
bridge_logger = setup_logger("backend.bridge", log_file=str(_LOGS_DIR / "bridge.log"))
signal_logger = setup_logger(
    "backend.signals", log_file=str(_LOGS_DIR / "signals.log")
)
connection_logger = setup_logger(
    "backend.connection", log_file=str(_LOGS_DIR / "connection.log")
)
job_logger = setup_logger("backend.job", log_file=str(_LOGS_DIR / "job.log"))
mold_logger = setup_logger("backend.mold", log_file=str(_LOGS_DIR / "mold.log"))
mes_logger = setup_logger("backend.mes", log_file=str(_LOGS_DIR / "mes.log"))
api_logger = setup_logger("api", log_file=str(_LOGS_DIR / "api.log"), level=20)  # INFO

_APP_LOGGERS = [
    launcher_logger,
    bridge_logger,
    signal_logger,
    connection_logger,
    job_logger,
    mold_logger,
    mes_logger,
    api_logger,
]


def apply_log_level(level: int | str) -> None:
    """Settings.LOG_LEVEL をアプリケーションの全ロガーに適用する"""
    _apply_log_level(_APP_LOGGERS, level)


__all__ = [
    "setup_logger",
    "resolve_level",
    "apply_log_level",
    "launcher_logger",
    "bridge_logger",
    "signal_logger",
    "connection_logger",
    "job_logger",
    "mold_logger",
    "mes_logger",
    "api_logger",
]
