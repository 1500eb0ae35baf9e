from typing import Iterable, List, Optional, Set, Tuple

from engine.model import Event


class EventLog:
    """Append-only event storage for match replay and streaming."""

    def __init__(self):
        self._log: List[Event] = []

    def __len__(self) -> int:
        return len(self._log)

    def append_many(self, evts: Iterable[Event]) -> Tuple[int, int]:
        """Append events and return (start_offset, end_offset)."""
        start = len(self._log)
        self._log.extend(evts)
        end = len(self._log) - 1
        return start, end

    def since(self, offset: int, limit: int = 1000,
              kinds: Optional[Set[str]] = None) -> Tuple[List[Event], int]:
        """Return events starting from offset, up to limit, optionally only of the given kinds.

        The returned offset is where the next read should start, even when
        filtered-out events were skipped on the way.
        """
        offset = max(0, offset)
        if not kinds:
            chunk = self._log[offset: offset + limit]
            return chunk, offset + len(chunk)
        chunk: List[Event] = []
        pos = offset
        while pos < len(self._log) and len(chunk) < limit:
            if self._log[pos].kind in kinds:
                chunk.append(self._log[pos])
            pos += 1
        return chunk, pos
