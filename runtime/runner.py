import asyncio
import logging
from typing import List, Optional

from engine.model import Event, State

from .eventlog import EventLog
from .match import Match

log = logging.getLogger(__name__)


class TickRunner:
    """Async driver that plays a match on a fixed tick cadence."""

    def __init__(self, match: Match, tick_ms: int = 500, time_compression: float = 30.0):
        self.match = match
        self.tick_ms = tick_ms
        self.time_compression = time_compression
        self.sleep_s = (tick_ms / 1000.0) / max(1.0, time_compression)
        self.events = EventLog()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self):
        """Start the tick loop."""
        if self._task:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Stop the tick loop gracefully."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def wait(self):
        """Wait until the match is over."""
        if self._task:
            await asyncio.shield(self._task)

    async def _loop(self):
        """Main tick loop - play a turn, log events, stop once the match is decided."""
        while True:
            async with self._lock:
                evts: List[Event] = self.match.play_turn()
                over = self.match.is_over
            if evts:
                log.debug("turn %d produced %d events", self.match.state.turn, len(evts))
            self.events.append_many(evts)
            if over:
                result = self.match.result()
                log.info("match finished: %s after %d turns", result.winner, result.turns)
                return
            await asyncio.sleep(self.sleep_s)

    async def snapshot(self) -> State:
        """Get current state (thread-safe)."""
        async with self._lock:
            return self.match.engine.snapshot()

    def set_time_compression(self, time_compression: float):
        """Update time compression factor (1.0 = real-time, higher = faster)."""
        self.time_compression = max(0.1, min(1000.0, time_compression))
        self.sleep_s = (self.tick_ms / 1000.0) / max(1.0, self.time_compression)
        log.info("time compression set to %sx (sleep: %.4fs)", self.time_compression, self.sleep_s)
