"""接続コーディネータ

信号ブリッジの初期化、通知の購読、MES通信状態ハンドシェイクと
設備の操作状態 (接続状態) の遷移を管理する。

状態遷移:
    IDLE → CONNECTING → CONNECTED → PROCESSING → COMPLETED
    CONNECTING / CONNECTED / PROCESSING → ERROR
    ERROR / CONNECTED / COMPLETED → CONNECTING (再接続)
"""

import asyncio
from typing import Awaitable, Callable

from backend.bridge import SignalBridge, Subscription, acquire_bridge
from backend.logging import connection_logger as logger
from backend.signal_registry import SignalRegistry
from backend.throttle import throttle
from config.settings import Settings
from schemas.job import STATUS_LABELS, DeviceOperationStatus
from schemas.result import HandshakeResult, OperationResult

BridgeFactory = Callable[[Settings], Awaitable[SignalBridge]]
Sleeper = Callable[[float], Awaitable[None]]

_TRANSITIONS: dict[DeviceOperationStatus, set[DeviceOperationStatus]] = {
    DeviceOperationStatus.IDLE: {DeviceOperationStatus.CONNECTING},
    DeviceOperationStatus.CONNECTING: {
        DeviceOperationStatus.CONNECTED,
        DeviceOperationStatus.ERROR,
    },
    DeviceOperationStatus.CONNECTED: {
        DeviceOperationStatus.PROCESSING,
        DeviceOperationStatus.CONNECTING,
        DeviceOperationStatus.ERROR,
    },
    DeviceOperationStatus.PROCESSING: {
        DeviceOperationStatus.COMPLETED,
        DeviceOperationStatus.ERROR,
    },
    DeviceOperationStatus.COMPLETED: {
        DeviceOperationStatus.PROCESSING,
        DeviceOperationStatus.CONNECTING,
    },
    DeviceOperationStatus.ERROR: {DeviceOperationStatus.CONNECTING},
}


class ConnectionCoordinator:
    """ブリッジ接続とMES通信状態ハンドシェイクの管理

    Attributes:
        state (DeviceOperationStatus): 現在の操作状態
        connected (bool): ブリッジの接続状態 (connection_changed 通知を反映)
        polling (bool): ブリッジのポーリング状態
        last_result (HandshakeResult | None): 直近のハンドシェイク結果
    """

    def __init__(
        self,
        registry: SignalRegistry,
        settings: Settings,
        bridge_factory: BridgeFactory = acquire_bridge,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._bridge_factory = bridge_factory
        self._sleep = sleep
        self._bridge: SignalBridge | None = None
        self._subscriptions: list[Subscription] = []
        self._throttled_update = throttle(
            registry.update_values, settings.SIGNAL_THROTTLE_INTERVAL
        )

        self.state = DeviceOperationStatus.IDLE
        self.connected = False
        self.polling = False
        self.last_result: HandshakeResult | None = None

    @property
    def bridge(self) -> SignalBridge | None:
        return self._bridge

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.state]

    def can_transition(self, target: DeviceOperationStatus) -> bool:
        return target in _TRANSITIONS[self.state]

    def _set_state(self, target: DeviceOperationStatus) -> None:
        if self.state != target:
            logger.info(f"Device state: {self.state.value} -> {target.value}")
        self.state = target

    # ========== 初期化 ==========
    async def initialize(self) -> SignalBridge:
        """ブリッジを取得し、通知を購読して信号設定を読み込む

        2回目以降の呼び出しでは取得済みのブリッジを再利用し、
        購読をやり直す (重複購読しない)。

        Returns:
            SignalBridge: 取得したブリッジ (ホストが無い場合はスタブ)
        """
        if self._bridge is None:
            self._bridge = await self._bridge_factory(self._settings)
        bridge = self._bridge

        self.connected = bridge.is_connected
        self.polling = bridge.is_polling

        self._unsubscribe()
        self._subscriptions = [
            bridge.connection_changed.subscribe(self._on_connection_changed),
            bridge.values_changed.subscribe(self._throttled_update),
            bridge.polling_changed.subscribe(self._on_polling_changed),
        ]
        # config_changed はレジストリ側で購読し、自動で再読み込みする
        if self._registry.bridge is not bridge:
            self._registry.bind(bridge)

        logger.info(
            f"Signal bridge initialized (connected={self.connected}, "
            f"polling={self.polling})"
        )
        await self._registry.load_signals()
        return bridge

    # ========== MESハンドシェイク ==========
    async def send_mes_communication_status(self) -> HandshakeResult:
        """MES通信状態信号に「接続」値を書き込む

        信号設定が見つからない場合は再試行しない。
        書き込みの例外・拒否 (False) はどちらも失敗した試行として数え、
        試行の間は MES_RETRY_DELAY 秒待機する。

        Returns:
            HandshakeResult: 成功時 retry_count = 成功した試行 - 1、
                全試行失敗時 retry_count = MES_MAX_RETRY
        """
        bridge = self._bridge
        if bridge is None:
            logger.error("Signal bridge not initialized, cannot send MES status")
            return HandshakeResult(
                success=False, message="信号ブリッジが初期化されていません"
            )

        signal_name = self._settings.MES_SIGNAL_NAME
        code = self._registry.find_code_by_display_name(signal_name)
        if code is None:
            logger.error(f"MES status signal not configured: {signal_name}")
            return HandshakeResult(
                success=False, message=f"信号設定が見つかりません: {signal_name}"
            )

        max_retry = self._settings.MES_MAX_RETRY
        value = self._settings.MES_CONNECTED_VALUE
        for attempt in range(1, max_retry + 1):
            try:
                ack = bool(await bridge.write_signal(code, value))
                if not ack:
                    logger.warning(
                        f"MES status write rejected ({attempt}/{max_retry})"
                    )
            except Exception as e:
                logger.warning(
                    f"MES status write failed ({attempt}/{max_retry}): {e}"
                )
                ack = False

            if ack:
                logger.info(f"MES status sent: {code}={value!r} (attempt {attempt})")
                return HandshakeResult(
                    success=True,
                    message="MES通信状態を送信しました",
                    retry_count=attempt - 1,
                )
            if attempt < max_retry:
                await self._sleep(self._settings.MES_RETRY_DELAY)

        logger.error(f"MES status write failed after {max_retry} attempts")
        return HandshakeResult(
            success=False,
            message=f"MES通信状態の送信に失敗しました ({max_retry}回試行)",
            retry_count=max_retry,
        )

    async def establish_connection(self) -> HandshakeResult:
        """接続を確立する (初期化 + MESハンドシェイク)

        Returns:
            HandshakeResult: ハンドシェイク結果。成功時 CONNECTED、失敗時 ERROR に遷移
        """
        if not self.can_transition(DeviceOperationStatus.CONNECTING):
            logger.warning(f"Cannot connect while {self.state.value}")
            return HandshakeResult(
                success=False,
                message=f"現在の状態 ({self.status_label}) では接続できません",
            )

        self._set_state(DeviceOperationStatus.CONNECTING)
        try:
            await self.initialize()
        except Exception as e:
            logger.error(f"Failed to initialize signal bridge: {e}")
            result = HandshakeResult(
                success=False, message=f"信号ブリッジの初期化に失敗しました: {e}"
            )
        else:
            result = await self.send_mes_communication_status()

        self.last_result = result
        self._set_state(
            DeviceOperationStatus.CONNECTED
            if result.success
            else DeviceOperationStatus.ERROR
        )
        return result

    # ========== 加工 ==========
    def start_processing(self) -> OperationResult:
        """加工開始 (CONNECTED / COMPLETED → PROCESSING)"""
        if not self.can_transition(DeviceOperationStatus.PROCESSING):
            return OperationResult(
                success=False,
                message=f"現在の状態 ({self.status_label}) では加工を開始できません",
            )
        self._set_state(DeviceOperationStatus.PROCESSING)
        return OperationResult(success=True, message="加工を開始しました")

    def complete_processing(self) -> OperationResult:
        """加工完了 (PROCESSING → COMPLETED)"""
        if not self.can_transition(DeviceOperationStatus.COMPLETED):
            return OperationResult(
                success=False,
                message=f"現在の状態 ({self.status_label}) では加工を完了できません",
            )
        self._set_state(DeviceOperationStatus.COMPLETED)
        return OperationResult(success=True, message="加工が完了しました")

    # ========== ポーリング ==========
    async def start_polling(self) -> bool:
        ok = await self._registry.start_polling(self._settings.POLLING_INTERVAL_MS)
        self.polling = self._registry.polling
        return ok

    async def stop_polling(self) -> bool:
        ok = await self._registry.stop_polling()
        self.polling = self._registry.polling
        return ok

    # ========== 通知ハンドラ ==========
    def _on_connection_changed(self, connected: bool) -> None:
        self.connected = bool(connected)
        logger.info(f"Bridge connection changed: connected={self.connected}")

    def _on_polling_changed(self, polling: bool) -> None:
        self.polling = bool(polling)

    # ========== 終了処理 ==========
    def _unsubscribe(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def dispose(self) -> None:
        """予約中の値更新を破棄し、購読を解除してブリッジを閉じる"""
        self._throttled_update.cancel()
        self._unsubscribe()
        if self._bridge is not None:
            self._bridge.close()
            self._bridge = None
        logger.info("Connection coordinator disposed")
