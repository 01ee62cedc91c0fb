import os
from enum import Enum
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any


class LogLevel(str, Enum):
    """ログレベル

    Attributes:
        DEBUG: デバッグ情報
        INFO: 通常情報
        WARNING: 警告
        ERROR: エラー
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    """アプリケーション設定 (Pydantic Settings)

    .envファイルから環境変数を読み込み、型安全な設定管理を提供する。

    Attributes:
        MES_API_BASE_URL: MESバックエンドのベースURL
        MES_API_TOKEN: MES APIのBearerトークン (空なら付与しない)
        MES_API_TIMEOUT: MES API通信タイムアウト(秒)
        USE_BRIDGE: ホストブリッジ使用フラグ (Falseの場合はスタブ)
        BRIDGE_FACTORY: ホストブリッジ生成関数 ("module:attr" 形式)
        SIGNAL_PROFILE: スタブブリッジが返す信号リスト名
            (config/signals/{SIGNAL_PROFILE}.json と対応)
        POLLING_INTERVAL_MS: 信号ポーリング間隔(ミリ秒) (50-1000)
        SIGNAL_THROTTLE_INTERVAL: 信号値更新の間引き間隔(秒)
        MES_SIGNAL_NAME: MES通信状態信号の表示名
        MES_CONNECTED_VALUE: 接続時に書き込む値
        MES_MAX_RETRY: MES通信状態書き込みの最大試行回数 (1-10)
        MES_RETRY_DELAY: 試行間の待機時間(秒) (0-60)
        MAX_MOLD_LOCK_COUNT: 1設備あたりの最大金型ロック数
        MOLD_SEARCH_MIN_LENGTH: 金型番号検索の最小文字数
        LOG_LEVEL: ログレベル (LogLevel Enum)
        API_HOST: APIサーバーホスト (デフォルト: 127.0.0.1)
        API_PORT: APIサーバーポート (デフォルト: 8000)
    """

    MES_API_BASE_URL: str = "http://127.0.0.1:8080"
    MES_API_TOKEN: str = ""
    MES_API_TIMEOUT: float = Field(default=30.0, ge=1.0, le=120.0)

    # 信号ブリッジ設定
    USE_BRIDGE: bool = True
    BRIDGE_FACTORY: str = ""
    SIGNAL_PROFILE: str = "default"
    POLLING_INTERVAL_MS: int = Field(default=100, ge=50, le=1000)
    SIGNAL_THROTTLE_INTERVAL: float = Field(default=0.1, ge=0.01, le=1.0)

    # MES通信状態ハンドシェイク設定
    MES_SIGNAL_NAME: str = "MES通信状态"
    MES_CONNECTED_VALUE: bool = True
    MES_MAX_RETRY: int = Field(default=3, ge=1, le=10)
    MES_RETRY_DELAY: float = Field(default=1.0, ge=0.0, le=60.0)

    # 金型ロック設定
    MAX_MOLD_LOCK_COUNT: int = Field(default=5, ge=1, le=20)
    MOLD_SEARCH_MIN_LENGTH: int = Field(default=2, ge=1, le=10)

    LOG_LEVEL: LogLevel = LogLevel.INFO
    API_HOST: str = "127.0.0.1"
    API_PORT: int = Field(default=8000, gt=0, le=65535)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self: Any, **kwargs: Any) -> None:
        # 環境変数プレセット: DEBUG_LOG が真なら LOG_LEVEL を DEBUG にする
        # ユーザーが明示的に LOG_LEVEL を設定している場合は上書きしない
        if "LOG_LEVEL" not in kwargs and os.getenv("LOG_LEVEL") is None:
            debug_env = os.getenv("DEBUG_LOG")
            if isinstance(debug_env, str) and debug_env.lower() in (
                "1",
                "true",
                "yes",
                "on",
            ):
                kwargs.setdefault("LOG_LEVEL", LogLevel.DEBUG)

        # .envファイルの存在チェック
        if not os.path.exists(".env") and not kwargs:
            raise FileNotFoundError(
                "\n❌ .env file not found.\n"
                "Please copy .env.example to .env and configure it:\n"
                "  cp .env.example .env  (Linux/Mac)\n"
                "  Copy-Item .env.example .env  (Windows)\n"
            )

        super().__init__(**kwargs)
