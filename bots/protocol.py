"""Player side of the line protocol.

The reader pulls one line at a time through a ``readline`` callable so that a
turn can be parsed from a live pipe without reading ahead into the next turn.
"""
import logging
from collections import deque
from dataclasses import replace
from typing import Callable, Iterable, List

from engine.geometry import Vector2
from engine.model import CreepType, IntegrityError, ProtocolError

from .decision import Decision
from .snapshot import ObstacleView, TurnSnapshot, UnitView

log = logging.getLogger(__name__)


class EndOfInput(ProtocolError):
    """The referee closed the stream."""


class ProtocolReader:
    def __init__(self, readline: Callable[[], str]):
        self._readline = readline
        self._buffer: deque = deque()
        self.obstacles: List[ObstacleView] = []

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "ProtocolReader":
        it = (line.rstrip("\n") + "\n" for line in lines)
        return cls(lambda: next(it, ""))

    def _token(self) -> str:
        while not self._buffer:
            line = self._readline()
            if line == "":
                raise EndOfInput("unexpected end of input")
            self._buffer.extend(line.split())
        return self._buffer.popleft()

    def discard(self) -> None:
        """Drop buffered tokens of a turn that could not be processed."""
        self._buffer.clear()

    def _int(self) -> int:
        tok = self._token()
        try:
            return int(tok)
        except ValueError as exc:
            raise ProtocolError(f"expected an integer, got {tok!r}") from exc

    def read_init(self) -> List[ObstacleView]:
        """Read the obstacle layout sent once at match start."""
        count = self._int()
        self.obstacles = []
        for _ in range(count):
            oid, x, y, radius = self._int(), self._int(), self._int(), self._int()
            self.obstacles.append(ObstacleView(oid, Vector2(float(x), float(y)), radius))
        log.debug("read %d obstacles", count)
        return self.obstacles

    def _read_unit(self) -> UnitView:
        x, y, owner, creep, health = self._int(), self._int(), self._int(), self._int(), self._int()
        if creep == -1:
            creep_type = None
        elif 0 <= creep < len(CreepType):
            creep_type = CreepType(creep)
        else:
            raise ProtocolError(f"unknown creep type {creep}")
        return UnitView(Vector2(float(x), float(y)), owner == 0, creep_type, health)

    def read_turn(self) -> TurnSnapshot:
        """Read one turn and apply the obstacle updates to the known layout."""
        gold = self._int()
        touched = self._int()
        by_id = {o.obstacle_id: o for o in self.obstacles}
        for _ in range(len(self.obstacles)):
            oid = self._int()
            update = [self._int() for _ in range(6)]
            site = by_id.get(oid)
            if site is None:
                raise IntegrityError(f"update for unknown obstacle {oid}")
            site.apply_update(*update)
        units = [self._read_unit() for _ in range(self._int())]
        return TurnSnapshot.from_units(gold, touched, [replace(o) for o in self.obstacles], units)


class LineFeed:
    """In-memory pipe: the referee pushes lines, a ProtocolReader pulls them."""

    def __init__(self):
        self._lines: deque = deque()

    def push(self, lines: Iterable[str]) -> None:
        self._lines.extend(lines)

    def clear(self) -> None:
        self._lines.clear()

    def readline(self) -> str:
        if not self._lines:
            return ""
        return self._lines.popleft() + "\n"


def format_decision(decision: Decision) -> List[str]:
    """Exactly two lines: the queen action and the train order."""
    train = "".join(f" {oid}" for oid in decision.train_ids)
    return [decision.queen_action.to_line(), f"TRAIN{train}"]
