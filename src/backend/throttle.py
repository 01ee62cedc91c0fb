"""スロットル (間引き) ユーティリティ

PLCの信号値通知のような高頻度イベントを、一定間隔以下の更新に間引く。
asyncioのイベントループ上で使用する (末尾実行はloop.call_laterで予約する)。
"""

import asyncio
import time
from typing import Any, Callable, Generic, ParamSpec

P = ParamSpec("P")


class Throttled(Generic[P]):
    """スロットル済み関数

    - leading=True: 静穏期間後の最初の呼び出しは即時実行
    - 連続呼び出し中は wait 秒の窓ごとに最大1回だけ実行
    - trailing=True: 窓の間に受けた最新の引数で窓の終わりに実行

    cancel() は予約中の末尾実行を破棄し、タイミングもリセットする。
    次の呼び出しは新しい窓の開始として扱われる。

    Attributes:
        wait: 窓の長さ(秒)
    """

    def __init__(
        self,
        func: Callable[P, Any],
        wait: float,
        *,
        leading: bool = True,
        trailing: bool = True,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if wait < 0:
            raise ValueError(f"wait must be >= 0, got {wait}")
        self._func = func
        self.wait = wait
        self._leading = leading
        self._trailing = trailing
        self._clock = clock
        self._loop = loop
        # None は「直近の実行なし」(新しい窓の開始) を表す
        self._last_time: float | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | None = None

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> None:
        now = self._clock()

        if self._last_time is None and not self._leading:
            self._last_time = now

        if self._last_time is None:
            remaining = 0.0
        else:
            remaining = self.wait - (now - self._last_time)

        # remaining > wait は時計の巻き戻り
        if remaining <= 0 or remaining > self.wait:
            self._cancel_timer()
            self._pending = None
            self._last_time = now
            self._func(*args, **kwargs)
        elif self._trailing:
            self._pending = (args, kwargs)
            if self._timer is None:
                loop = self._loop or asyncio.get_running_loop()
                self._timer = loop.call_later(remaining, self._flush)

    def _flush(self) -> None:
        self._timer = None
        self._last_time = self._clock() if self._leading else None
        if self._pending is not None:
            args, kwargs = self._pending
            self._pending = None
            self._func(*args, **kwargs)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self) -> None:
        """予約中の末尾実行を破棄し、タイミングをリセットする"""
        self._cancel_timer()
        self._pending = None
        self._last_time = None

    @property
    def pending(self) -> bool:
        """末尾実行が予約されているかどうか"""
        return self._timer is not None


def throttle(
    func: Callable[P, Any],
    wait: float,
    *,
    leading: bool = True,
    trailing: bool = True,
) -> Throttled[P]:
    """関数をスロットルする

    Args:
        func: 対象の関数
        wait: 窓の長さ(秒)
        leading: 窓の先頭で実行するか
        trailing: 窓の末尾で最新の引数で実行するか

    Returns:
        Throttled: cancel() を持つスロットル済み関数

    Examples:
        >>> update = throttle(registry.update_values, 0.1)
        >>> bridge.values_changed.subscribe(update)
    """
    return Throttled(func, wait, leading=leading, trailing=trailing)
