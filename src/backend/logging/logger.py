import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# 1ファイルあたり5MB、5世代まで保持 (シフト運用で1日中動き続けるため)
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: int = logging.DEBUG,
    console: bool = True,
    file_encoding: str = "utf-8",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """
    ロガーをセットアップする

    Args:
        name: ロガー名
        log_file: ログファイルのパス（Noneの場合はファイル出力なし）
        level: ログレベル
        console: コンソール出力するかどうか
        file_encoding: ログファイルのエンコーディング
        max_bytes: ローテーションするファイルサイズ
        backup_count: 保持する世代数

    Returns:
        設定済みのロガーインスタンス
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 既存のハンドラをクリア（重複防止）
    if logger.handlers:
        logger.handlers.clear()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=file_encoding,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def resolve_level(level: int | str) -> int:
    """ログレベル指定 ("INFO" や LogLevel.INFO など) を数値に変換する

    Raises:
        ValueError: 不明なレベル名の場合
    """
    if isinstance(level, int):
        return level
    name = getattr(level, "value", level)
    resolved = logging.getLevelName(str(name).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def apply_log_level(loggers: list[logging.Logger], level: int | str) -> None:
    """複数のロガーにログレベルをまとめて適用する

    ハンドラ側はレベルを持たないため、ロガーのレベルだけ変更すればよい。
    """
    numeric = resolve_level(level)
    for logger in loggers:
        logger.setLevel(numeric)
