"""ブリッジのプッシュ通知チャネル

ブリッジ (送信側) からレジストリやコーディネータ (受信側) への
値変化・設定変化などの通知を配送する。購読はSubscriptionとして明示的に
保持し、コーディネータの破棄時に解除する。
"""

from typing import Callable, Generic, TypeVar

from backend.logging import bridge_logger as logger

T = TypeVar("T")


class Subscription:
    """PushChannelへの購読

    unsubscribe() は何度呼んでもよい。with文でも使える。
    """

    def __init__(self, channel: "PushChannel", callback: Callable) -> None:
        self._channel = channel
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def callback(self) -> Callable:
        return self._callback

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._channel._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: object) -> None:
        self.unsubscribe()


class PushChannel(Generic[T]):
    """単一種類の通知を配送するチャネル

    使用例:
        >>> channel: PushChannel[bool] = PushChannel("connection_changed")
        >>> sub = channel.subscribe(lambda connected: print(connected))
        >>> channel.emit(True)
        True
        1
        >>> sub.unsubscribe()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscriptions: list[Subscription] = []

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """コールバックを登録する

        Args:
            callback: 通知ごとに呼ばれる関数 (引数は通知内容)

        Returns:
            Subscription: 解除用のハンドル
        """
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        logger.debug(
            f"Subscribed to {self.name} (subscribers={len(self._subscriptions)})"
        )
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(
                f"Unsubscribed from {self.name} "
                f"(subscribers={len(self._subscriptions)})"
            )

    def emit(self, payload: T) -> int:
        """全購読者に通知を配送する

        1つのコールバックが例外を出しても残りの購読者への配送は続ける。

        Args:
            payload: 通知内容

        Returns:
            int: 正常に配送できた購読者数
        """
        delivered = 0
        # 配送中の購読解除に備えてコピーを走査
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.callback(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber of {self.name} raised: {e}")
        return delivered

    def clear(self) -> None:
        """全購読を解除する"""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
