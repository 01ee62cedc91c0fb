"""backend.throttleのテスト"""

import asyncio
from unittest.mock import MagicMock

import pytest

from backend.throttle import Throttled, throttle

WAIT = 0.1


class FakeClock:
    """手動で進める時計"""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeLoop:
    """call_later の予約を記録するだけのループ"""

    def __init__(self) -> None:
        self.scheduled: list[tuple[float, object, MagicMock]] = []

    def call_later(self, delay, callback):
        handle = MagicMock()
        self.scheduled.append((delay, callback, handle))
        return handle

    def fire(self) -> None:
        _, callback, _ = self.scheduled.pop(0)
        callback()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loop():
    return FakeLoop()


def make(func, clock, loop, **kwargs) -> Throttled:
    return Throttled(func, WAIT, clock=clock, loop=loop, **kwargs)


class TestThrottledLeading:
    """先頭実行のテスト"""

    def test_first_call_runs_immediately(self, clock, loop):
        """静穏期間後の最初の呼び出しは即時実行されるか"""
        func = MagicMock()
        throttled = make(func, clock, loop)

        throttled({"A": 1})

        func.assert_called_once_with({"A": 1})
        assert loop.scheduled == []

    def test_call_after_window_runs_immediately(self, clock, loop):
        """窓が過ぎた後の呼び出しは即時実行されるか"""
        func = MagicMock()
        throttled = make(func, clock, loop)

        throttled(1)
        clock.now = WAIT + 0.01
        throttled(2)

        assert [c.args for c in func.call_args_list] == [(1,), (2,)]

    def test_leading_false_defers_first_call(self, clock, loop):
        """leading=False の場合、最初の呼び出しも窓の末尾まで遅延するか"""
        func = MagicMock()
        throttled = make(func, clock, loop, leading=False)

        throttled(1)

        func.assert_not_called()
        assert loop.scheduled[0][0] == pytest.approx(WAIT)
        loop.fire()
        func.assert_called_once_with(1)


class TestThrottledTrailing:
    """末尾実行のテスト"""

    def test_calls_within_window_deliver_latest_args(self, clock, loop):
        """0, T/2, T/2+1ms の呼び出しで実行は最大2回、2回目は最新の引数か"""
        func = MagicMock()
        throttled = make(func, clock, loop)

        throttled(1)
        clock.now = WAIT / 2
        throttled(2)
        clock.now = WAIT / 2 + 0.001
        throttled(3)

        func.assert_called_once_with(1)
        assert len(loop.scheduled) == 1
        assert loop.scheduled[0][0] == pytest.approx(WAIT / 2)

        clock.now = WAIT
        loop.fire()

        assert func.call_count == 2
        assert func.call_args.args == (3,)

    def test_trailing_false_drops_calls_in_window(self, clock, loop):
        """trailing=False の場合、窓の間の呼び出しは捨てられるか"""
        func = MagicMock()
        throttled = make(func, clock, loop, trailing=False)

        throttled(1)
        clock.now = WAIT / 2
        throttled(2)

        func.assert_called_once_with(1)
        assert loop.scheduled == []

    def test_call_after_trailing_flush_starts_new_window(self, clock, loop):
        """末尾実行の直後の呼び出しは次の窓で間引かれるか"""
        func = MagicMock()
        throttled = make(func, clock, loop)

        throttled(1)
        clock.now = WAIT / 2
        throttled(2)
        clock.now = WAIT
        loop.fire()
        clock.now = WAIT + 0.01
        throttled(3)

        assert func.call_count == 2
        assert len(loop.scheduled) == 1
        assert throttled.pending is True


class TestThrottledCancel:
    """cancel() のテスト"""

    def test_cancel_discards_pending_call(self, clock, loop):
        """予約中の末尾実行が破棄されるか"""
        func = MagicMock()
        throttled = make(func, clock, loop)

        throttled(1)
        clock.now = WAIT / 2
        throttled(2)
        handle = loop.scheduled[0][2]

        throttled.cancel()

        handle.cancel.assert_called_once()
        assert throttled.pending is False
        func.assert_called_once_with(1)

    def test_cancel_resets_timing(self, clock, loop):
        """cancel() 後の呼び出しは新しい窓として即時実行されるか"""
        func = MagicMock()
        throttled = make(func, clock, loop)

        throttled(1)
        throttled.cancel()
        clock.now = WAIT / 4
        throttled(2)

        assert [c.args for c in func.call_args_list] == [(1,), (2,)]


class TestThrottleHelper:
    """throttle() ヘルパーのテスト"""

    def test_negative_wait_raises_error(self):
        with pytest.raises(ValueError):
            throttle(MagicMock(), -1)

    def test_trailing_runs_on_event_loop(self):
        """実際のイベントループ上で末尾実行されるか"""
        received: list[int] = []

        async def scenario() -> None:
            throttled = throttle(received.append, 0.02)
            throttled(1)
            throttled(2)
            throttled(3)
            await asyncio.sleep(0.08)

        asyncio.run(scenario())

        assert received == [1, 3]
