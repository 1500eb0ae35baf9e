"""Synchronous match between two in-process bots.

Every turn goes through the same text protocol a stand-alone player would
see: the engine state is encoded per side, parsed back into a snapshot, and
the bot's two output lines are decoded into a Command.
"""
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union

from bots.protocol import LineFeed, ProtocolReader, format_decision
from bots.strategy import Bot, make_bot
from engine.config import DEFAULT_RULES, Rules
from engine.engine import Engine
from engine.mapgen import generate_state
from engine.model import SIDES, Command, Event, Side, State
from engine.wire import decode_command, encode_init, encode_turn

log = logging.getLogger(__name__)


@dataclass
class MatchResult:
    winner: str  # "BLUE", "RED" or "DRAW"
    turns: int
    health: Dict[str, int]


class Match:
    def __init__(self, seed: int, blue: Union[Bot, str], red: Union[Bot, str],
                 rules: Rules = DEFAULT_RULES, max_turns: Optional[int] = None):
        if max_turns is not None:
            rules = replace(rules, max_turns=max_turns)
        self.seed = seed
        self.rules = rules
        self.engine = Engine(seed, generate_state(seed, rules), rules)
        self.bots: Dict[str, Bot] = {
            "BLUE": make_bot(blue) if isinstance(blue, str) else blue,
            "RED": make_bot(red) if isinstance(red, str) else red,
        }
        self._feeds: Dict[str, LineFeed] = {}
        self._readers: Dict[str, ProtocolReader] = {}
        for side in SIDES:
            feed = LineFeed()
            reader = ProtocolReader(feed.readline)
            feed.push(encode_init(self.state, side))
            reader.read_init()
            self._feeds[side], self._readers[side] = feed, reader
        log.info("match seed=%d %s vs %s, %d obstacles", seed, self.bots["BLUE"].name,
                 self.bots["RED"].name, len(self.state.obstacles))

    @property
    def state(self) -> State:
        return self.engine.state

    @property
    def is_over(self) -> bool:
        return self.state.is_over

    def _command(self, side: Side) -> Command:
        """Ask one bot for its command, through the wire format."""
        self._feeds[side].push(encode_turn(self.state, side, self.rules))
        snapshot = self._readers[side].read_turn()
        lines = format_decision(self.bots[side].play(snapshot))
        return decode_command(side, lines)

    def play_turn(self) -> List[Event]:
        """One full tick: both bots decide, then the engine steps."""
        if self.is_over:
            return []
        evts: List[Event] = []
        commands: List[Command] = []
        for side in SIDES:
            try:
                commands.append(self._command(side))
            except (ValueError, LookupError, ArithmeticError, TypeError, AttributeError) as exc:
                # a broken bot waits this turn; engine integrity errors still propagate
                log.warning("[%s] bot failed on turn %d: %s", side, self.state.turn, exc)
                self._feeds[side].clear()
                self._readers[side].discard()
                commands.append(Command(side=side))
                evts.append(Event("BotError", self.state.turn, {"side": side, "error": str(exc)}))
        self.engine.apply_orders(commands)
        evts += self.engine.step()
        return evts

    def play(self) -> MatchResult:
        """Run to completion. Always ends: the engine stops at max_turns."""
        while not self.is_over:
            self.play_turn()
        return self.result()

    def result(self) -> MatchResult:
        return MatchResult(
            winner=self.state.winner or "",
            turns=self.state.turn,
            health={side: p.health for side, p in self.state.players.items()},
        )
