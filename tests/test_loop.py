"""Tests for the refresh loop scheduler."""

import pytest

from stomata.loop import KeyEvent, QueueEventSource, RefreshLoop


class FakeClock:
    """Clock that only moves when the event source waits."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ScriptedEvents:
    """Event source that delivers key events at fixed clock times."""

    def __init__(self, clock: FakeClock, script: list[tuple[float, KeyEvent]]) -> None:
        self._clock = clock
        self._script = list(script)
        self.waits: list[float] = []

    async def wait(self, timeout: float) -> KeyEvent | None:
        self.waits.append(timeout)
        deadline = self._clock.now + timeout
        if self._script and self._script[0][0] <= deadline:
            at, event = self._script.pop(0)
            self._clock.now = max(at, self._clock.now)
            return event
        self._clock.now = deadline
        return None


class FakeEngine:
    """Engine that records what the loop asks of it."""

    def __init__(self, failing_ticks: int = 0, collect_results: list[bool] | None = None) -> None:
        self.stopped = False
        self.keys: list[str] = []
        self.tick_calls = 0
        self._failing_ticks = failing_ticks
        self._collect_results = list(collect_results or [])

    def handle_key(self, event: KeyEvent) -> bool:
        self.keys.append(event.key)
        if event.key == "q":
            self.stopped = True
        return True

    def tick(self) -> None:
        self.tick_calls += 1
        if self.tick_calls <= self._failing_ticks:
            raise RuntimeError("acquisition failed")

    def collect(self) -> bool:
        return self._collect_results.pop(0) if self._collect_results else False


def _loop(engine, script, interval=0.5):
    clock = FakeClock()
    events = ScriptedEvents(clock, script)
    redraws: list[float] = []
    loop = RefreshLoop(engine, events, lambda: redraws.append(clock.now), interval, clock=clock)
    return loop, clock, events, redraws


class TestRefreshLoop:
    """Tests for RefreshLoop.run."""

    @pytest.mark.asyncio
    async def test_ticks_until_quit(self):
        """Test two ticks happen before a quit at 1.2s with a 0.5s interval."""
        engine = FakeEngine()
        loop, clock, _, _ = _loop(engine, [(1.2, KeyEvent("q"))])

        await loop.run()

        assert loop.ticks == 2
        assert engine.tick_calls == 2
        assert engine.keys == ["q"]
        assert clock.now == pytest.approx(1.2)

    @pytest.mark.asyncio
    async def test_redraws_immediately_on_key(self):
        """Test a key press is redrawn without waiting for the next tick."""
        engine = FakeEngine()
        loop, _, _, redraws = _loop(
            engine, [(0.1, KeyEvent("tab")), (0.2, KeyEvent("q"))], interval=1.0
        )

        await loop.run()

        assert redraws == [0.0, pytest.approx(0.1)]
        assert loop.ticks == 0

    @pytest.mark.asyncio
    async def test_wait_is_bounded_by_next_tick(self):
        """Test the loop never waits past the next tick deadline."""
        engine = FakeEngine()
        loop, _, events, _ = _loop(engine, [(0.3, KeyEvent("x")), (0.7, KeyEvent("q"))])

        await loop.run()

        assert events.waits[0] == pytest.approx(0.5)
        assert events.waits[1] == pytest.approx(0.2)
        assert loop.ticks == 1

    @pytest.mark.asyncio
    async def test_failed_tick_does_not_stop_loop(self):
        """Test an exception from tick skips that tick only."""
        engine = FakeEngine(failing_ticks=1)
        loop, _, _, redraws = _loop(engine, [(1.2, KeyEvent("q"))])

        await loop.run()

        assert engine.tick_calls == 2
        assert loop.ticks == 1
        assert redraws == [0.0, pytest.approx(1.0)]

    @pytest.mark.asyncio
    async def test_collect_triggers_redraw(self):
        """Test finished background work is redrawn."""
        engine = FakeEngine(collect_results=[True])
        loop, _, _, redraws = _loop(engine, [(0.2, KeyEvent("x")), (0.3, KeyEvent("q"))], interval=1.0)

        await loop.run()

        # initial draw, key "x", then the collect result
        assert len(redraws) == 3

    @pytest.mark.asyncio
    async def test_stopped_engine_draws_once(self):
        """Test an engine that is already stopped gets one frame and no ticks."""
        engine = FakeEngine()
        engine.stopped = True
        loop, _, events, redraws = _loop(engine, [])

        await loop.run()

        assert redraws == [0.0]
        assert events.waits == []


class TestQueueEventSource:
    """Tests for the asyncio queue event source."""

    @pytest.mark.asyncio
    async def test_returns_queued_event(self):
        """Test a queued event is returned even with no time left."""
        source = QueueEventSource()
        source.put(KeyEvent("tab"))
        assert await source.wait(0) == KeyEvent("tab")

    @pytest.mark.asyncio
    async def test_times_out(self):
        """Test an empty source returns None after the timeout."""
        source = QueueEventSource()
        assert await source.wait(0.01) is None
        assert await source.wait(0) is None

    @pytest.mark.asyncio
    async def test_preserves_order(self):
        """Test events come out in the order they were put."""
        source = QueueEventSource()
        for key in ("1", "2", "q"):
            source.put(KeyEvent(key))
        keys = [(await source.wait(0.1)).key for _ in range(3)]
        assert keys == ["1", "2", "q"]
