import numpy as np


class DRNG:
    """Seeded PCG64 stream. Map generation and spawn scatter draw from it so a seed replays a match."""

    def __init__(self, seed: int):
        self.seed = seed
        self.g = np.random.Generator(np.random.PCG64(seed))

    def bernoulli(self, p: float) -> bool:
        """True with probability p; decides which corner BLUE starts in."""
        return bool(self.g.random() < p)

    def uniform(self, a: float, b: float) -> float:
        """Float in [a, b)."""
        return float(self.g.uniform(a, b))

    def integers(self, low: int, high: int) -> int:
        """Int in [low, high)."""
        return int(self.g.integers(low, high))

    def between(self, low: int, high: int) -> int:
        """Int in [low, high]; the game's ranges are inclusive at both ends."""
        return int(self.g.integers(low, high + 1))
