"""pytest設定とフィクスチャ"""

import os
import shutil
import sys
from pathlib import Path
from typing import Any

import pytest

# srcディレクトリをパスに追加
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"
sys.path.insert(0, str(src_dir))

# テスト実行前に.envファイルを準備(.env.exampleからコピー)
env_file = project_root / ".env"
env_example = project_root / ".env.example"
if not env_file.exists() and env_example.exists():
    shutil.copy(env_example, env_file)

# テスト用環境変数を設定
os.environ["USE_BRIDGE"] = "false"
os.environ["BRIDGE_FACTORY"] = ""
os.environ["MES_API_BASE_URL"] = "http://mes.test"
os.environ["MES_RETRY_DELAY"] = "0"

from backend.bridge import SignalBridge  # noqa: E402
from config.settings import Settings  # noqa: E402

MES_SIGNAL_NAME = "MES通信状态"

DEFAULT_SIGNALS: list[dict[str, Any]] = [
    {
        "signalCode": "PRESSURE",
        "signalName": "圧力",
        "dataType": "float",
        "paramGroup": "press",
        "isActive": True,
    },
    {
        "signalCode": "TEMPERATURE",
        "signalName": "温度",
        "dataType": "float",
        "paramGroup": "press",
        "isActive": True,
    },
    {
        "signalCode": "MES_STATUS",
        "signalName": MES_SIGNAL_NAME,
        "dataType": "bit",
        "paramGroup": "mes",
        "isActive": False,
    },
]


class FakeBridge(SignalBridge):
    """テスト用の信号ブリッジ

    write_results に bool または例外を積むと、write_signal の呼び出しごとに
    先頭から順に返す (送出する)。空の場合は True を返す。
    """

    def __init__(self, signals: list[dict[str, Any]] | None = None) -> None:
        super().__init__()
        self.signals = list(DEFAULT_SIGNALS if signals is None else signals)
        self.connected = True
        self._polling = False
        self.values: dict[str, Any] = {}
        self.write_results: list[Any] = []
        self.writes: list[tuple[str, Any]] = []
        self.config_error: Exception | None = None
        self.config_requests = 0
        self.refresh_count = 0
        self.polling_interval: int | None = None

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def is_polling(self) -> bool:
        return self._polling

    async def read_signal(self, code: str) -> Any:
        return self.values.get(code, 0)

    async def write_signal(self, code: str, value: Any) -> bool:
        self.writes.append((code, value))
        if self.write_results:
            result = self.write_results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return True

    async def batch_read(self, codes: list[str]) -> dict[str, Any]:
        return {c: self.values[c] for c in codes if c in self.values}

    async def get_signal_config(self) -> list[dict[str, Any]]:
        self.config_requests += 1
        if self.config_error is not None:
            raise self.config_error
        return list(self.signals)

    async def refresh_signal_config(self) -> None:
        self.refresh_count += 1

    async def start_polling(self, interval_ms: int = 100) -> None:
        self.polling_interval = interval_ms
        self._polling = True
        self.polling_changed.emit(True)

    async def stop_polling(self) -> None:
        self._polling = False
        self.polling_changed.emit(False)


@pytest.fixture
def project_root_path():
    """プロジェクトルートのパスを返す"""
    return Path(__file__).parent.parent


@pytest.fixture
def settings():
    """テスト用の設定 (再試行の待機なし)"""
    return Settings(MES_RETRY_DELAY=0.0, SIGNAL_THROTTLE_INTERVAL=0.1)


@pytest.fixture
def fake_bridge():
    """既定の信号設定 (圧力・温度・MES通信状態) を持つブリッジ"""
    return FakeBridge()


@pytest.fixture
def bridge_factory(fake_bridge):
    """fake_bridge を返すブリッジ取得関数"""

    async def _factory(settings: Settings) -> SignalBridge:
        return fake_bridge

    return _factory


@pytest.fixture
def make_bridge():
    """信号設定を指定して FakeBridge を作る"""
    return FakeBridge
