"""Run one bot over stdin/stdout: ``python -m bots.player --strategy priority``.

stdout carries the two command lines per turn and nothing else; diagnostics
go to stderr.
"""
import argparse
import logging
import sys
from typing import Optional, Sequence, TextIO

from .protocol import EndOfInput, ProtocolReader, format_decision
from .strategy import BOTS, make_bot

log = logging.getLogger(__name__)


def run(strategy: str, stdin: TextIO, stdout: TextIO) -> int:
    """Play until the referee closes the stream. Returns the number of turns played."""
    bot = make_bot(strategy)
    reader = ProtocolReader(stdin.readline)
    reader.read_init()
    turns = 0
    while True:
        try:
            snapshot = reader.read_turn()
        except EndOfInput:
            log.info("input closed after %d turns", turns)
            return turns
        for line in format_decision(bot.play(snapshot)):
            stdout.write(line + "\n")
        stdout.flush()
        turns += 1


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Code Royale bot speaking the line protocol on stdin/stdout")
    parser.add_argument("--strategy", default="priority", choices=sorted(BOTS))
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)
    logging.basicConfig(stream=sys.stderr, level=args.log_level.upper(),
                        format="%(levelname)s %(name)s: %(message)s")
    run(args.strategy, sys.stdin, sys.stdout)


if __name__ == "__main__":
    main()
