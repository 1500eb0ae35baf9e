import math
from dataclasses import dataclass
from functools import cached_property


def _round_half_away(v: float) -> float:
    return float(math.floor(v + 0.5)) if v >= 0 else -float(math.floor(-v + 0.5))


@dataclass(frozen=True)
class Vector2:
    """Immutable 2D vector in world units."""
    x: float
    y: float

    @cached_property
    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    @cached_property
    def length(self) -> float:
        return math.sqrt(self.length_squared)

    @cached_property
    def is_near_zero(self) -> bool:
        return abs(self.x) < 1e-12 and abs(self.y) < 1e-12

    @cached_property
    def normalized(self) -> "Vector2":
        """Unit vector in the same direction; (1, 0) for a (near) zero vector."""
        if self.length < 1e-6:
            return Vector2(1.0, 0.0)
        return Vector2(self.x / self.length, self.y / self.length)

    @cached_property
    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> "Vector2":
        return Vector2(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> "Vector2":
        if k == 0:
            raise ValueError("Division by zero")
        return Vector2(self.x / k, self.y / k)

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def distance_to(self, other: "Vector2") -> float:
        return (self - other).length

    def dot(self, other: "Vector2") -> float:
        return self.x * other.x + self.y * other.y

    def compare_direction(self, other: "Vector2") -> float:
        """1 == same direction, -1 == opposite direction."""
        return self.normalized.dot(other.normalized)

    def resized_to(self, new_length: float) -> "Vector2":
        return self.normalized * new_length

    def project_in_direction_of(self, other: "Vector2") -> "Vector2":
        if other.is_near_zero:
            raise ValueError("cannot project in direction of zero")
        return other * (self.dot(other) / other.dot(other))

    def reject_in_direction_of(self, other: "Vector2") -> "Vector2":
        return self - self.project_in_direction_of(other)

    def towards(self, target: "Vector2", max_distance: float) -> "Vector2":
        """Step at most max_distance toward target, snapping onto it when closer."""
        if self.distance_to(target) < max_distance:
            return target
        return self + (target - self).resized_to(max_distance)

    def clamp_within(self, min_x: float, max_x: float, min_y: float, max_y: float) -> "Vector2":
        return Vector2(min(max(self.x, min_x), max_x), min(max(self.y, min_y), max_y))

    def snap_to_integers(self) -> "Vector2":
        return Vector2(_round_half_away(self.x), _round_half_away(self.y))

    def as_ints(self):
        return int(self.x), int(self.y)

    def __str__(self) -> str:
        x, y = self.snap_to_integers().as_ints()
        return f"({x}, {y})"

    @staticmethod
    def random(rng, max_x: int, max_y: int) -> "Vector2":
        return Vector2(float(rng.integers(0, max_x)), float(rng.integers(0, max_y)))

    @staticmethod
    def random_circle(rng, max_radius: float) -> "Vector2":
        ang = rng.uniform(0.0, math.pi * 2)
        radius = rng.uniform(0.0, max_radius)
        return Vector2(math.cos(ang) * radius, math.sin(ang) * radius)


Vector2.ZERO = Vector2(0.0, 0.0)
