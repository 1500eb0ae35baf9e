"""Play one match between two strategies: ``python -m runtime.cli --seed 7 --blue priority --red rush``."""
import argparse
import logging
import sys
from typing import Optional, Sequence

from bots.strategy import BOTS

from .match import Match


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a Code Royale match between two bots")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--blue", default="priority", choices=sorted(BOTS))
    parser.add_argument("--red", default="rush", choices=sorted(BOTS))
    parser.add_argument("--max-turns", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)
    logging.basicConfig(stream=sys.stderr, level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    result = Match(args.seed, args.blue, args.red, max_turns=args.max_turns).play()
    health = " ".join(f"{side}={hp}" for side, hp in sorted(result.health.items()))
    print(f"winner={result.winner} turns={result.turns} {health}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
