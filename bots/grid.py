"""Danger / protection fields over a coarse grid of the play area.

Both fields are rebuilt every turn from the snapshot. Each entity adds a
radius-bounded contribution ``factor * falloff(distance)`` around its cell,
so the final fields do not depend on the order contributions are applied in.
Cells are indexed ``field[j, i]`` with ``i`` along x and ``j`` along y.
"""
from dataclasses import dataclass
from typing import Callable, Tuple

import numpy as np

from engine.geometry import Vector2
from engine.model import CREEP_TYPES, CreepType

from .snapshot import TurnSnapshot

# falloffs take an array of cell distances and return an array of the same shape
Falloff = Callable[[np.ndarray], np.ndarray]
Cell = Tuple[int, int]


def inverse(scale: float = 1.0) -> Falloff:
    return lambda d: scale / d


def constant(value: float) -> Falloff:
    return lambda d: np.full_like(d, value, dtype=float)


def within(radius_cells: float, value: float) -> Falloff:
    return lambda d: np.where(d < radius_cells, value, 0.0)


@dataclass(frozen=True)
class GridProfile:
    """Resolution and per-entity weights used to build the fields."""
    cell_size: int = 20
    baseline_scale: float = 12.0
    # danger
    knight_radius: int = 1000
    knight_factor: float = 5.0
    knight_falloff: float = 20.0
    enemy_tower_factor: float = 5.0
    enemy_tower_value: float = 5.0
    knight_barracks_radius: int = 800
    knight_barracks_factor: float = 2.0
    knight_barracks_falloff: float = 2.0
    # protection
    archer_radius: int = 1000
    archer_factor: float = 5.0
    archer_falloff: float = 1.0
    ally_tower_factor: float = 5.0
    ally_tower_value: float = 2.0
    archer_barracks_radius: int = 1400
    archer_barracks_factor: float = 2.0
    archer_barracks_falloff: float = 1.0


class SafetyGrid:
    def __init__(self, cell_size: int = 20, width: int = 1920, height: int = 1000):
        self.cell_size = cell_size
        self.width = width
        self.height = height
        self.cols = width // cell_size
        self.rows = height // cell_size
        self.danger = np.zeros((self.rows, self.cols))
        self.protection = np.zeros((self.rows, self.cols))

    # conversions

    def to_cell(self, point: Vector2) -> Cell:
        i = int(point.x // self.cell_size)
        j = int(point.y // self.cell_size)
        return min(max(i, 0), self.cols - 1), min(max(j, 0), self.rows - 1)

    def to_point(self, i: int, j: int) -> Vector2:
        return Vector2(float(i * self.cell_size), float(j * self.cell_size))

    def cells(self, distance: float) -> int:
        return int(distance // self.cell_size)

    # building

    def reset(self, home_is_left: bool, baseline_scale: float = 12.0) -> None:
        """Danger leans toward the enemy half; protection starts empty."""
        xs = np.arange(self.cols) * self.cell_size / self.width
        gradient = (xs - 0.5) if home_is_left else (0.5 - xs)
        self.danger[:, :] = gradient[np.newaxis, :] * baseline_scale
        self.protection.fill(0.0)

    def apply_gradient(self, field: np.ndarray, cell: Cell, radius: int, factor: float,
                       falloff: Falloff = inverse()) -> None:
        """Add factor * falloff(d) to every in-bounds cell within radius cells of cell.

        The centre cell is evaluated at d = 1 so inverse falloffs stay finite.
        """
        if radius < 0:
            return
        i, j = cell
        i0, i1 = max(0, i - radius), min(self.cols, i + radius + 1)
        j0, j1 = max(0, j - radius), min(self.rows, j + radius + 1)
        if i0 >= i1 or j0 >= j1:
            return
        gi = np.arange(i0, i1) - i
        gj = np.arange(j0, j1) - j
        dist = np.sqrt(gj[:, np.newaxis] ** 2 + gi[np.newaxis, :] ** 2)
        values = falloff(np.maximum(dist, 1.0))
        field[j0:j1, i0:i1] += np.where(dist <= radius, factor * values, 0.0)

    def update(self, snapshot: TurnSnapshot, home_is_left: bool, profile: GridProfile) -> None:
        """Rebuild both fields from the current snapshot."""
        p = profile
        self.reset(home_is_left, p.baseline_scale)

        for c in snapshot.enemy_creeps:
            if c.creep_type == CreepType.KNIGHT:
                self.apply_gradient(self.danger, self.to_cell(c.location), self.cells(p.knight_radius),
                                    p.knight_factor, inverse(p.knight_falloff))
        for t in snapshot.enemy_towers:
            self.apply_gradient(self.danger, self.to_cell(t.location), self.cells(t.attack_radius),
                                p.enemy_tower_factor, constant(p.enemy_tower_value))
        for b in snapshot.enemy_barracks:
            if b.is_barracks_of(CreepType.KNIGHT):
                self.apply_gradient(self.danger, self.to_cell(b.location), self.cells(p.knight_barracks_radius),
                                    p.knight_barracks_factor, inverse(p.knight_barracks_falloff))

        for c in snapshot.friendly_creeps:
            if c.creep_type == CreepType.ARCHER:
                self.apply_gradient(self.protection, self.to_cell(c.location), self.cells(p.archer_radius),
                                    p.archer_factor, inverse(p.archer_falloff))
        for t in snapshot.allied_towers:
            radius = self.cells(t.attack_radius)
            self.apply_gradient(self.protection, self.to_cell(t.location), radius,
                                p.ally_tower_factor, within(radius, p.ally_tower_value))
        for b in snapshot.allied_barracks_of(CreepType.ARCHER):
            # 0 = idle or just started, approaching 1 as the next archers are about to appear
            build_time = CREEP_TYPES[CreepType.ARCHER].build_time
            progress = (build_time - (build_time if b.param1 == 0 else b.param1)) / build_time
            self.apply_gradient(self.protection, self.to_cell(b.location), self.cells(p.archer_barracks_radius),
                                p.archer_barracks_factor, inverse(p.archer_barracks_falloff * progress))

    # queries

    def danger_at(self, point: Vector2, bias: float = 0.0) -> float:
        i, j = self.to_cell(point)
        return float(self.danger[j, i]) + bias

    def protection_at(self, point: Vector2) -> float:
        i, j = self.to_cell(point)
        return float(self.protection[j, i])

    def _first_extreme(self, field: np.ndarray, largest: bool) -> Vector2:
        # x-major scan order; argmax/argmin return the first hit
        flat = field.T
        idx = int(np.argmax(flat) if largest else np.argmin(flat))
        i, j = np.unravel_index(idx, flat.shape)
        return self.to_point(int(i), int(j))

    def safest_spot(self) -> Vector2:
        """Cell corner with the highest protection; first maximum in scan order wins."""
        return self._first_extreme(self.protection, largest=True)

    def most_dangerous_spot(self) -> Vector2:
        return self._first_extreme(self.danger, largest=True)

    def calmest_spot(self) -> Vector2:
        """Cell corner with the lowest danger."""
        return self._first_extreme(self.danger, largest=False)

    def least_safe_spot(self) -> Vector2:
        """Cell corner with the highest danger, the same scan as most_dangerous_spot."""
        return self._first_extreme(self.danger, largest=True)
