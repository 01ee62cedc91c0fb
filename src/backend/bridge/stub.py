from typing import Any

from backend.logging import bridge_logger as logger
from config.signal_profile import SignalProfileLoader
from schemas.signal import SignalConfig, SignalScalar, SignalValuesMap
from .base import SignalBridge


class StubSignalBridge(SignalBridge):
    """ホストブリッジが無い環境用のスタブ

    UI開発のためにコンソール全体を動かせるよう、全ての呼び出しに
    自明な値で応答する。通知は一切送らない。

    - read_signal: 常に0
    - write_signal: 常にTrue
    - batch_read: 常に空
    - get_signal_config: 信号プロファイル (config/signals/*.json) の内容
    """

    def __init__(self, signals: list[SignalConfig] | None = None) -> None:
        super().__init__()
        self._signals = list(signals or [])
        self._polling = False

    @classmethod
    def from_profile(cls, profile_name: str) -> "StubSignalBridge":
        """信号プロファイルからスタブを作る

        プロファイルが無い・不正な場合は信号設定なしのスタブを返す。
        """
        try:
            signals = SignalProfileLoader(profile_name).get_signals()
        except (FileNotFoundError, ValueError) as e:
            logger.warning(f"Stub signal profile unavailable, using none: {e}")
            signals = []
        return cls(signals)

    @property
    def is_connected(self) -> bool:
        return False

    @property
    def is_polling(self) -> bool:
        return self._polling

    async def read_signal(self, code: str) -> SignalScalar:
        logger.debug(f"Stub read {code}")
        return 0

    async def write_signal(self, code: str, value: SignalScalar) -> bool:
        logger.debug(f"Stub write {code}={value!r}")
        return True

    async def batch_read(self, codes: list[str]) -> SignalValuesMap:
        return {}

    async def get_signal_config(self) -> list[dict[str, Any]]:
        return [s.model_dump(by_alias=True, mode="json") for s in self._signals]

    async def refresh_signal_config(self) -> None:
        logger.debug("Stub refresh_signal_config called")

    async def start_polling(self, interval_ms: int = 100) -> None:
        self._polling = True

    async def stop_polling(self) -> None:
        self._polling = False
