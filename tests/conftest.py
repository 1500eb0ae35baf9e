"""Shared builders for hand-made worlds and snapshots."""
from typing import Iterable, List

import pytest

from bots.snapshot import ObstacleView, TurnSnapshot, UnitView
from engine.config import DEFAULT_RULES
from engine.geometry import Vector2
from engine.model import Obstacle, Player, State, Unit

BLUE_CORNER = Vector2(30.0, 970.0)
RED_CORNER = Vector2(1890.0, 30.0)


def build_state(obstacles: Iterable[Obstacle] = (), creeps: Iterable[Unit] = (),
                blue_queen: Vector2 = BLUE_CORNER, red_queen: Vector2 = RED_CORNER,
                gold: int = 100, health: int = 100) -> State:
    units = {
        "BLUE-QUEEN": Unit.queen("BLUE-QUEEN", "BLUE", blue_queen, health, DEFAULT_RULES),
        "RED-QUEEN": Unit.queen("RED-QUEEN", "RED", red_queen, health, DEFAULT_RULES),
    }
    for c in creeps:
        units[c.id] = c
    players = {
        "BLUE": Player("BLUE", gold, health, "BLUE-QUEEN"),
        "RED": Player("RED", gold, health, "RED-QUEEN"),
    }
    return State(turn=0, obstacles={o.obstacle_id: o for o in obstacles}, units=units, players=players)


def build_snapshot(obstacles: List[ObstacleView], queen: Vector2 = Vector2(100.0, 500.0),
                   enemy_queen: Vector2 = Vector2(1800.0, 500.0), gold: int = 0,
                   touched: int = -1, friendly: Iterable[UnitView] = (), enemy: Iterable[UnitView] = (),
                   health: int = 100) -> TurnSnapshot:
    return TurnSnapshot(queen_location=queen, health=health, gold=gold, touched_obstacle_id=touched,
                        enemy_queen_location=enemy_queen, enemy_health=100, obstacles=obstacles,
                        friendly_creeps=list(friendly), enemy_creeps=list(enemy))


def site(obstacle_id: int, x: float, y: float, radius: int = 60, gold: int = 200, max_mine_size: int = 3,
         structure_type: int = -1, owner: int = -1, param1: int = -1, param2: int = -1) -> ObstacleView:
    return ObstacleView(obstacle_id, Vector2(x, y), radius, gold, max_mine_size,
                        structure_type, owner, param1, param2)


@pytest.fixture
def make_state():
    return build_state


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def make_site():
    return site


@pytest.fixture
def lone_mine_site():
    """One neutral obstacle at (300, 500) with gold to mine."""
    return site(0, 300.0, 500.0, radius=60, gold=200)

