"""config.settingsのテスト"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from config.settings import LogLevel, Settings


class TestSettings:
    """Settings設定クラスのテスト"""

    def test_settings_loads_from_env(self):
        """環境変数から正しく設定を読み込めるか"""
        settings = Settings()

        assert settings.MES_API_BASE_URL == "http://mes.test"  # conftest.pyで設定
        assert settings.USE_BRIDGE is False  # conftest.pyで設定
        assert settings.BRIDGE_FACTORY == ""
        assert settings.SIGNAL_PROFILE == "default"
        assert settings.POLLING_INTERVAL_MS == 100
        assert settings.SIGNAL_THROTTLE_INTERVAL == 0.1

    def test_settings_mes_handshake_defaults(self):
        """MES通信状態ハンドシェイクの設定が読み込まれるか"""
        settings = Settings()

        assert settings.MES_SIGNAL_NAME == "MES通信状态"
        assert settings.MES_CONNECTED_VALUE is True
        assert settings.MES_MAX_RETRY == 3
        assert settings.MES_RETRY_DELAY == 0.0  # conftest.pyで設定

    def test_settings_mold_lock_defaults(self):
        """金型ロックの上限と検索最小文字数が読み込まれるか"""
        settings = Settings()

        assert settings.MAX_MOLD_LOCK_COUNT == 5
        assert settings.MOLD_SEARCH_MIN_LENGTH == 2

    def test_settings_invalid_port_raises_error(self):
        """不正なポート番号でValidationErrorが発生するか"""
        with pytest.raises(ValidationError):
            Settings(API_PORT=99999)  # 65535を超えている

    def test_settings_invalid_retry_raises_error(self):
        """不正なリトライ回数でValidationErrorが発生するか"""
        with pytest.raises(ValidationError):
            Settings(MES_MAX_RETRY=20)  # 10を超えている

        with pytest.raises(ValidationError):
            Settings(MES_MAX_RETRY=0)

    def test_settings_invalid_polling_interval_raises_error(self):
        """範囲外のポーリング間隔でValidationErrorが発生するか"""
        with pytest.raises(ValidationError):
            Settings(POLLING_INTERVAL_MS=10)

    def test_settings_invalid_log_level_raises_error(self):
        """不正なログレベルでValidationErrorが発生するか"""
        with pytest.raises(ValidationError):
            Settings(LOG_LEVEL="INVALID")

    def test_settings_kwargs_override_env(self):
        """引数で渡した値が環境変数より優先されるか"""
        settings = Settings(MES_MAX_RETRY=5, MAX_MOLD_LOCK_COUNT=3)

        assert settings.MES_MAX_RETRY == 5
        assert settings.MAX_MOLD_LOCK_COUNT == 3


class TestDebugLogPreset:
    """DEBUG_LOG環境変数プリセットのテスト"""

    def test_debug_log_sets_debug_level(self, monkeypatch):
        """DEBUG_LOG=true で LOG_LEVEL が DEBUG になるか"""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("DEBUG_LOG", "true")

        settings = Settings()
        assert settings.LOG_LEVEL == LogLevel.DEBUG

    def test_explicit_log_level_wins_over_debug_log(self, monkeypatch):
        """LOG_LEVEL を明示した場合は DEBUG_LOG で上書きしないか"""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DEBUG_LOG", "true")

        settings = Settings()
        assert settings.LOG_LEVEL == LogLevel.WARNING


class TestSettingsEnvFileNotFound:
    """環境変数ファイルが見つからない場合のテスト"""

    @patch("os.path.exists")
    def test_settings_raises_error_when_env_file_missing(self, mock_exists):
        """環境変数ファイルが見つからない場合にFileNotFoundErrorが発生するか"""
        mock_exists.return_value = False

        with pytest.raises(FileNotFoundError, match=r".env file not found"):
            Settings()

    @patch("os.path.exists")
    def test_settings_with_kwargs_does_not_require_env_file(self, mock_exists):
        """引数を渡した場合は.envが無くても生成できるか"""
        mock_exists.return_value = False

        settings = Settings(MES_MAX_RETRY=2)
        assert settings.MES_MAX_RETRY == 2
