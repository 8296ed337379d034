"""Cooperative refresh loop: timer ticks interleaved with key events."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0


@dataclass(slots=True, frozen=True)
class KeyEvent:
    """A key press, named the way Textual names keys (``"tab"``, ``"shift+tab"``, ``"q"``)."""

    key: str
    character: str | None = None


class Engine(Protocol):
    """State driven by the loop."""

    @property
    def stopped(self) -> bool: ...

    def handle_key(self, event: KeyEvent) -> bool: ...

    def tick(self) -> None: ...

    def collect(self) -> bool: ...


class EventSource(Protocol):
    async def wait(self, timeout: float) -> KeyEvent | None: ...


class QueueEventSource:
    """Key events fed from the UI into an asyncio.Queue."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[KeyEvent] = asyncio.Queue()

    def put(self, event: KeyEvent) -> None:
        self._queue.put_nowait(event)

    async def wait(self, timeout: float) -> KeyEvent | None:
        """Return the next event, or None once ``timeout`` seconds pass without one."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        if timeout <= 0:
            return None
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except TimeoutError:
            return None


class RefreshLoop:
    """
    Single-threaded scheduler for an engine and its renderer.

    Waiting for the next event (bounded by the time left until the next
    tick) is the only suspension point. Key events are redrawn at once;
    the engine is ticked when the interval elapses. The loop ends only when
    the engine reports it has stopped.
    """

    def __init__(
        self,
        engine: Engine,
        events: EventSource,
        redraw: Callable[[], None],
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the loop.

        Args:
            engine: State to drive.
            events: Source of key events.
            redraw: Renders the engine's current view.
            interval: Seconds between ticks.
            clock: Monotonic clock, injectable for tests.
        """
        self._engine = engine
        self._events = events
        self._redraw = redraw
        self._interval = interval
        self._clock = clock
        self.ticks = 0

    @property
    def interval(self) -> float:
        return self._interval

    async def run(self) -> None:
        """Run until the engine stops."""
        self._redraw()
        last_tick = self._clock()

        while not self._engine.stopped:
            remaining = max(0.0, self._interval - (self._clock() - last_tick))
            event = await self._events.wait(remaining)

            if event is not None:
                self._engine.handle_key(event)
                if self._engine.stopped:
                    break
                self._redraw()

            if self._clock() - last_tick >= self._interval:
                self._tick()
                last_tick = self._clock()

            if self._engine.collect():
                self._redraw()

    def _tick(self) -> None:
        try:
            self._engine.tick()
        except Exception:
            # A failed acquisition skips this tick; the loop keeps running
            logger.warning("Tick failed", exc_info=True)
            return
        self.ticks += 1
        self._redraw()
