"""Candidate selection and training allocation shared by the strategies.

Everything here is a pure function of the snapshot and the grid, so the same
inputs always produce the same decision.
"""
import heapq
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from engine.geometry import Vector2
from engine.model import CREEP_TYPES, CreepType, QueenAction

from .grid import SafetyGrid
from .snapshot import ObstacleView, TurnSnapshot

Predicate = Callable[[ObstacleView], bool]

RANKING_BIAS = 1000.0
MINE_BIAS = 100.0
CONTEST_MARGIN = 200
STRAFE_DISTANCE = 300


@dataclass
class Decision:
    """What a bot wants to do this turn."""
    queen_action: QueenAction = field(default_factory=QueenAction.wait)
    train_ids: List[int] = field(default_factory=list)


def build_desirability(site: ObstacleView) -> float:
    """Lower is better: empty sites are cheap to claim, a saturated mine is not worth touching."""
    if not site.is_occupied:
        return 0.1
    if site.is_barracks:
        return 0.8
    if site.is_tower:
        return site.health_percent
    if site.is_mine:
        return site.saturation_rate * 2
    return 1.0


def is_contested(site: ObstacleView, snapshot: TurnSnapshot, margin: int = CONTEST_MARGIN) -> bool:
    for c in snapshot.enemy_creeps:
        reach = CREEP_TYPES[c.creep_type].radius + site.radius + margin
        if c.location.distance_to(site.location) <= reach:
            return True
    return False


def _cost(site: ObstacleView, snapshot: TurnSnapshot, grid: SafetyGrid, safety_weight: float,
          safety_factor: float, cost_mode: str) -> float:
    distance = site.location.distance_to(snapshot.queen_location)
    danger = grid.danger_at(site.location, bias=RANKING_BIAS)
    weighted = danger * safety_weight * safety_factor * build_desirability(site)
    if cost_mode == "sum":
        return distance + weighted
    if cost_mode == "product":
        return distance * weighted
    raise ValueError(f"unknown cost mode {cost_mode!r}")


def rank_candidates(snapshot: TurnSnapshot, grid: SafetyGrid, predicate: Predicate = lambda o: True,
                    safety_weight: float = 10.0, threshold: Optional[float] = None,
                    safety_factor: float = 1.0, cost_mode: str = "product") -> List[ObstacleView]:
    """Sites accepted by predicate, cheapest first. Ties keep obstacle order."""
    def accepted(site: ObstacleView) -> bool:
        if not predicate(site):
            return False
        if threshold is None:
            return True
        training = site.is_barracks and site.param1 > 0
        return grid.danger_at(site.location) < threshold and not training

    sites = [o for o in snapshot.obstacles if accepted(o)]
    return sorted(sites, key=lambda o: _cost(o, snapshot, grid, safety_weight, safety_factor, cost_mode))


def best_candidate(snapshot: TurnSnapshot, grid: SafetyGrid, predicate: Predicate = lambda o: True,
                   **kwargs) -> Optional[ObstacleView]:
    ranked = rank_candidates(snapshot, grid, predicate, **kwargs)
    return ranked[0] if ranked else None


def mine_candidate(snapshot: TurnSnapshot, grid: SafetyGrid, avoid_contested: bool = True) -> Optional[ObstacleView]:
    """Closest safe site worth mining: not an enemy tower, not ours and done, not depleted."""
    def minable(o: ObstacleView) -> bool:
        if o.is_tower and o.is_enemy:
            return False
        if o.gold == 0:
            return False
        if o.is_allied and (o.is_fully_saturated or o.is_barracks):
            return False
        if avoid_contested and is_contested(o, snapshot):
            return False
        return True

    sites = [o for o in snapshot.obstacles if minable(o)]
    if not sites:
        return None
    return min(sites, key=lambda o: o.location.distance_to(snapshot.queen_location)
               * grid.danger_at(o.location, bias=MINE_BIAS))


def strafe_position(snapshot: TurnSnapshot) -> Optional[Vector2]:
    """A point behind our closest tower, as seen from the nearest enemy knight."""
    knights = [c for c in snapshot.enemy_creeps if c.creep_type == CreepType.KNIGHT]
    towers = snapshot.allied_towers
    if not towers or not knights:
        return None
    tower = min(towers, key=lambda t: t.location.distance_to(snapshot.queen_location))
    knight = min(knights, key=lambda c: c.location.distance_to(tower.location))
    distance = knight.location.distance_to(tower.location)
    direction = (tower.location - knight.location).normalized
    return knight.location + direction * (distance + tower.radius + STRAFE_DISTANCE)


def try_build(snapshot: TurnSnapshot, site: ObstacleView, build: str) -> QueenAction:
    """Build when already touching the site, otherwise walk to it."""
    if snapshot.touched_obstacle_id == site.obstacle_id:
        return QueenAction.build_on(site.obstacle_id, build)
    return QueenAction.move(site.coords)


def move_to(point: Vector2) -> QueenAction:
    return QueenAction.move(Vector2(float(int(point.x)), float(int(point.y))))


def assign_barracks(queued: List[CreepType], barracks: List[ObstacleView]) -> List[int]:
    """Give each queued creep the first free idle barracks of its type; the rest is dropped."""
    pool = [b for b in barracks if b.is_barracks and b.param1 == 0]
    ids: List[int] = []
    for creep_type in queued:
        for b in pool:
            if b.creep_type == creep_type:
                pool.remove(b)
                ids.append(b.obstacle_id)
                break
    return ids


def plan_training(priorities: Dict[CreepType, float], budget: int) -> List[CreepType]:
    """Greedy spend of budget over creep types by priority.

    The top entry is bought and its priority halved while affordable. If the
    top entry is out of reach nothing is bought at all until something else
    has been queued; after that it is lowered by 0.5 so cheaper types get a
    turn. A negative top priority ends the round.
    """
    heap = [(-p, int(t)) for t, p in priorities.items()]
    heapq.heapify(heap)
    queued: List[CreepType] = []
    remaining = budget
    while remaining > 0 and heap:
        neg, ordinal = heap[0]
        priority = -neg
        if priority < 0:
            break
        creep_type = CreepType(ordinal)
        cost = CREEP_TYPES[creep_type].cost
        if cost > remaining:
            if not queued:
                break
            heapq.heapreplace(heap, (-(priority - 0.5), ordinal))
            continue
        remaining -= cost
        queued.append(creep_type)
        heapq.heapreplace(heap, (-(priority / 2), ordinal))
    return queued


def allocate_training(priorities: Dict[CreepType, float], budget: int,
                      barracks: List[ObstacleView]) -> List[int]:
    """Barracks ids to train from, never spending more than budget."""
    return assign_barracks(plan_training(priorities, budget), barracks)


def plan_by_income(priorities: Dict[CreepType, int], income: int) -> List[CreepType]:
    """Creeps whose sustained cost (cost / build time per turn) fits into income.

    Each type appears priority times, highest priority first, ties in catalog
    order; the walk stops at the first creep that no longer fits.
    """
    queue = sorted((t for t, n in priorities.items() for _ in range(max(n, 0))),
                   key=lambda t: (-priorities[t], int(t)))
    affordable: List[CreepType] = []
    left = income
    for creep_type in queue:
        spec = CREEP_TYPES[creep_type]
        after = left - spec.cost // spec.build_time
        if after < 0:
            break
        left = after
        affordable.append(creep_type)
    return affordable


def allocate_by_income(priorities: Dict[CreepType, int], income: int,
                       barracks: List[ObstacleView]) -> List[int]:
    return assign_barracks(plan_by_income(priorities, income), barracks)


def count_by_type(queued: List[CreepType]) -> Dict[CreepType, int]:
    counts = {t: 0 for t in CreepType}
    for t in queued:
        counts[t] += 1
    return counts
