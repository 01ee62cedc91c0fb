"""信号レジストリ

ブリッジから取得した信号設定 (表示名 → 信号コード、データ型、グループ) と、
信号コードごとの最新値を保持する。

- 信号設定は一覧ごと差し替える (部分更新しない)
- 信号値はマージ更新 (同じコードは後着優先)
- ブリッジからの設定変更通知で自動的に再読み込みする
"""

import asyncio
import time
from typing import Any

from backend.bridge import SignalBridge, Subscription
from backend.logging import signal_logger as logger
from schemas.signal import SignalConfig, SignalScalar, SignalValuesMap

DEFAULT_GROUP = "default"


class SignalRegistry:
    """信号設定と最新値のレジストリ

    使用例:
        >>> registry = SignalRegistry()
        >>> registry.bind(bridge)
        >>> await registry.load_signals()
        >>> code = registry.find_code_by_display_name("圧力")

    Attributes:
        loading (bool): 信号設定の読み込み中フラグ
        polling (bool): ブリッジのポーリング状態
    """

    def __init__(self, bridge: SignalBridge | None = None) -> None:
        self._bridge: SignalBridge | None = None
        self._signals: list[SignalConfig] = []
        self._values: SignalValuesMap = {}
        self._received_at: dict[str, float] = {}
        self._subscriptions: list[Subscription] = []
        self._reload_tasks: set[asyncio.Task[None]] = set()
        self.loading = False
        self.polling = False
        if bridge is not None:
            self.bind(bridge)

    # ========== ライフサイクル ==========
    def bind(self, bridge: SignalBridge) -> None:
        """ブリッジを設定し、設定変更・ポーリング状態の通知を購読する

        既に別のブリッジを購読している場合は先に解除する。
        """
        self.unbind()
        self._bridge = bridge
        self.polling = bridge.is_polling
        self._subscriptions = [
            bridge.config_changed.subscribe(self._on_config_changed),
            bridge.polling_changed.subscribe(self._on_polling_changed),
        ]

    def unbind(self) -> None:
        """通知の購読を解除する (信号設定と値は保持する)"""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._bridge = None

    def dispose(self) -> None:
        """購読解除と、実行中の再読み込みタスクのキャンセル"""
        self.unbind()
        for task in list(self._reload_tasks):
            task.cancel()
        self._reload_tasks.clear()

    @property
    def bridge(self) -> SignalBridge | None:
        return self._bridge

    # ========== 信号設定 ==========
    @property
    def signals(self) -> list[SignalConfig]:
        return list(self._signals)

    @property
    def signals_by_group(self) -> dict[str, list[SignalConfig]]:
        """パラメータグループごとの信号設定"""
        groups: dict[str, list[SignalConfig]] = {}
        for signal in self._signals:
            groups.setdefault(signal.polling_group or DEFAULT_GROUP, []).append(signal)
        return groups

    @property
    def active_count(self) -> int:
        return sum(1 for s in self._signals if s.is_active)

    async def load_signals(self) -> None:
        """ブリッジから全信号設定を読み込み、一覧を差し替える

        ブリッジが無い場合や取得・検証に失敗した場合はログのみ出し、
        以前の信号設定をそのまま残す。
        """
        bridge = self._bridge
        if bridge is None:
            logger.warning("Signal bridge not initialized, skip loading signals")
            return

        self.loading = True
        try:
            raw = await bridge.get_signal_config()
            # 全件検証できた場合のみ差し替える
            signals = [SignalConfig.model_validate(item) for item in raw or []]
        except Exception as e:
            logger.error(f"Failed to load signal configs: {e}")
            return
        finally:
            self.loading = False

        self._signals = signals
        logger.info(f"Loaded {len(signals)} signal configs")

    async def refresh_signals(self) -> None:
        """ブリッジに信号設定の再同期を要求する"""
        if self._bridge is None:
            logger.warning("Signal bridge not initialized, skip refresh")
            return
        try:
            await self._bridge.refresh_signal_config()
        except Exception as e:
            logger.error(f"Failed to refresh signal configs: {e}")

    def get_signal(self, code: str) -> SignalConfig | None:
        for signal in self._signals:
            if signal.code == code:
                return signal
        return None

    def find_code_by_display_name(self, name: str) -> str | None:
        """表示名から信号コードを探す

        Args:
            name: 信号の表示名

        Returns:
            str | None: 信号コード。見つからない場合はNone
        """
        for signal in self._signals:
            if signal.display_name == name and signal.code:
                return signal.code
        logger.warning(f"Signal not found: {name}")
        return None

    # ========== 信号値 ==========
    @property
    def values(self) -> SignalValuesMap:
        return dict(self._values)

    def get_value(self, code: str) -> SignalScalar | None:
        return self._values.get(code)

    def received_at(self, code: str) -> float | None:
        """信号値を受け取った時刻 (time.monotonic) を返す"""
        return self._received_at.get(code)

    def update_values(self, batch: SignalValuesMap) -> None:
        """信号値をマージ更新する (同じコードは後着優先、型検証なし)"""
        if not batch:
            return
        now = time.monotonic()
        self._values = {**self._values, **batch}
        for code in batch:
            self._received_at[code] = now
        logger.debug(f"Signal values updated: {batch}")

    async def read_signal(self, code: str) -> SignalScalar | None:
        """信号値を1件読み取る

        Returns:
            SignalScalar | None: 読み取った値。失敗時はNone
        """
        if self._bridge is None:
            logger.warning("Signal bridge not initialized, cannot read signal")
            return None
        try:
            value = await self._bridge.read_signal(code)
        except Exception as e:
            logger.error(f"Failed to read signal {code}: {e}")
            return None
        logger.info(f"Read signal {code}: {value!r}")
        return value

    async def write_signal(self, code: str, value: SignalScalar) -> bool:
        """信号値を1件書き込む

        Returns:
            bool: 書き込み成功時True。失敗・例外時はFalse
        """
        if self._bridge is None:
            logger.warning("Signal bridge not initialized, cannot write signal")
            return False
        try:
            result = bool(await self._bridge.write_signal(code, value))
        except Exception as e:
            logger.error(f"Failed to write signal {code}: {e}")
            return False
        if result:
            logger.info(f"Wrote signal {code}: {value!r}")
        else:
            logger.warning(f"Write signal {code} returned false")
        return result

    async def batch_read(self, codes: list[str]) -> SignalValuesMap:
        """複数の信号値を読み取り、値キャッシュにもマージする

        Returns:
            SignalValuesMap: 読み取った値。失敗時は空
        """
        if self._bridge is None or not codes:
            return {}
        try:
            values = await self._bridge.batch_read(codes)
        except Exception as e:
            logger.error(f"Failed to batch read {len(codes)} signals: {e}")
            return {}
        values = dict(values or {})
        self.update_values(values)
        return values

    # ========== ポーリング ==========
    async def start_polling(self, interval_ms: int = 100) -> bool:
        if self._bridge is None:
            logger.warning("Signal bridge not initialized, cannot start polling")
            return False
        try:
            await self._bridge.start_polling(interval_ms)
        except Exception as e:
            logger.error(f"Failed to start polling: {e}")
            return False
        self.polling = True
        logger.info(f"Polling started ({interval_ms}ms)")
        return True

    async def stop_polling(self) -> bool:
        if self._bridge is None:
            return False
        try:
            await self._bridge.stop_polling()
        except Exception as e:
            logger.error(f"Failed to stop polling: {e}")
            return False
        self.polling = False
        logger.info("Polling stopped")
        return True

    # ========== 通知ハンドラ ==========
    def _on_config_changed(self, count: Any) -> None:
        logger.info(f"Signal config changed ({count}), reloading")
        task = asyncio.get_running_loop().create_task(self.load_signals())
        self._reload_tasks.add(task)
        task.add_done_callback(self._reload_tasks.discard)

    def _on_polling_changed(self, polling: bool) -> None:
        self.polling = bool(polling)
