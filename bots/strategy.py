"""Bot strategies. Each one turns a snapshot and a safety grid into a Decision."""
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from engine.config import DEFAULT_RULES
from engine.geometry import Vector2
from engine.model import CREEP_TYPES, CreepType, QueenAction

from .decision import (Decision, Predicate, allocate_by_income, allocate_training, best_candidate,
                       count_by_type, is_contested, mine_candidate, move_to, plan_by_income,
                       strafe_position, try_build)
from .grid import GridProfile, SafetyGrid
from .snapshot import ObstacleView, TurnSnapshot

log = logging.getLogger(__name__)

WORLD_WIDTH = DEFAULT_RULES.world_width
WORLD_HEIGHT = DEFAULT_RULES.world_height


def barracks_kind(creep_type: CreepType) -> str:
    return f"BARRACKS-{creep_type.name}"


@dataclass(frozen=True)
class StrategyConfig:
    """Tunables of one strategy. The presets are deliberately not unified."""
    profile: GridProfile = field(default_factory=GridProfile)
    safety_weight: float = 10.0
    safety_weight_per_lost_hp: float = 0.0  # extra weight as the queen loses health
    cost_mode: str = "product"
    desired_income: float = 30.0
    max_towers: int = 2
    free_site_threshold: float = 0.0
    queen_danger_threshold: float = 5.0
    knights_per_tower: int = 3

    @classmethod
    def balanced(cls) -> "StrategyConfig":
        return cls(profile=GridProfile(), safety_weight=10.0, safety_weight_per_lost_hp=40.0,
                   cost_mode="sum")

    @classmethod
    def cautious(cls) -> "StrategyConfig":
        profile = GridProfile(cell_size=40, knight_radius=400, archer_radius=400,
                              knight_barracks_radius=600, archer_barracks_radius=600)
        return cls(profile=profile, safety_weight=10.0, cost_mode="product")

    def weight_for(self, snapshot: TurnSnapshot) -> float:
        health_percent = snapshot.health / 100.0
        return self.safety_weight + (1 - health_percent) * self.safety_weight_per_lost_hp


class Bot(ABC):
    """A player. Keeps its grid and the home corner between turns."""
    name = "bot"

    def __init__(self, config: Optional[StrategyConfig] = None):
        self.config = config or StrategyConfig.balanced()
        self.grid = SafetyGrid(self.config.profile.cell_size, WORLD_WIDTH, WORLD_HEIGHT)
        self.home: Optional[Vector2] = None
        self.turn = 0

    @property
    def home_is_left(self) -> bool:
        return self.home is not None and self.home.x < WORLD_WIDTH / 2

    def observe(self, snapshot: TurnSnapshot) -> None:
        """Remember the starting corner once, then rebuild the grid."""
        if self.home is None:
            q = snapshot.queen_location
            self.home = Vector2(0.0 if q.x < WORLD_WIDTH / 2 else float(WORLD_WIDTH),
                                0.0 if q.y < WORLD_HEIGHT / 2 else float(WORLD_HEIGHT))
        self.grid.update(snapshot, self.home_is_left, self.config.profile)

    def play(self, snapshot: TurnSnapshot) -> Decision:
        self.observe(snapshot)
        decision = self.decide(snapshot, self.grid)
        self.turn += 1
        return decision

    @abstractmethod
    def decide(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Decision:
        ...

    def best(self, snapshot: TurnSnapshot, grid: SafetyGrid, predicate: Predicate,
             **kwargs) -> Optional[ObstacleView]:
        return best_candidate(snapshot, grid, predicate, safety_weight=self.config.weight_for(snapshot),
                              cost_mode=self.config.cost_mode, **kwargs)


class PossibleAction(Enum):
    BUILD_MINE = "build_mine"
    BUILD_TOWER = "build_tower"
    BUILD_ARCHER_BARRACKS = "build_archer_barracks"
    BUILD_KNIGHT_BARRACKS = "build_knight_barracks"
    BUILD_GIANT_BARRACKS = "build_giant_barracks"
    INCREASE_MINE = "increase_mine"
    GROW_TOWER = "grow_tower"
    STRAFE = "strafe"
    RAID_ENEMY_BUILDING = "raid_enemy_building"


def archer_priority(snapshot: TurnSnapshot) -> float:
    """How badly we need archers: enemy knights on the field and about to be, minus archers we have."""
    existing = snapshot.creep_count(CreepType.ARCHER) / 2
    racks = [b for b in snapshot.enemy_barracks if b.is_barracks_of(CreepType.KNIGHT)]
    current = snapshot.creep_count(CreepType.KNIGHT, friendly=False) / 4.0
    # cooldown 7 = just started, smaller = closer to releasing knights
    predicted = sum((8.0 - max(b.param1, 4)) / 8 for b in racks if b.param1 > 0)
    return math.ceil(predicted / max(1, len(racks))) + current - existing


class PriorityBot(Bot):
    """Scores every queen action each turn and performs the best one that has a target."""
    name = "priority"

    def _raid_target(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Optional[ObstacleView]:
        weight = self.config.weight_for(snapshot)
        sites = [o for o in snapshot.obstacles if o.is_enemy and not o.is_tower]
        if not sites:
            return None
        return min(sites, key=lambda o: weight * grid.danger_at(o.location)
                   + o.location.distance_to(snapshot.queen_location))

    def action_scores(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Dict[PossibleAction, float]:
        income = snapshot.income
        queen_danger = grid.danger_at(snapshot.queen_location)
        towers = snapshot.allied_towers
        scores = {a: 0.0 for a in PossibleAction}

        scores[PossibleAction.BUILD_KNIGHT_BARRACKS] = (
            (2 + income / 5.0) / (len(snapshot.allied_barracks_of(CreepType.KNIGHT)) + 1 + income))
        scores[PossibleAction.BUILD_ARCHER_BARRACKS] = (
            archer_priority(snapshot) / max(1, len(snapshot.allied_barracks_of(CreepType.ARCHER))))
        scores[PossibleAction.BUILD_GIANT_BARRACKS] = float(len(snapshot.enemy_towers))

        desired = self.config.desired_income
        scores[PossibleAction.BUILD_MINE] = (desired - income) / desired + 0.1
        scores[PossibleAction.INCREASE_MINE] = scores[PossibleAction.BUILD_MINE] + 0.01
        scores[PossibleAction.BUILD_TOWER] = queen_danger
        scores[PossibleAction.STRAFE] = min((len(towers) / 2.0) * (queen_danger / max(snapshot.health, 1)), 4.0)

        raid = self._raid_target(snapshot, grid)
        if raid is not None:
            raid_danger = grid.danger_at(raid.location)
            scores[PossibleAction.RAID_ENEMY_BUILDING] = 3.0 / raid_danger if raid_danger else 0.0

        if towers:
            touched = snapshot.touched_site
            if touched is not None and touched.is_tower:
                scores[PossibleAction.GROW_TOWER] = 3 * (1 - touched.param1 / 600.0)
            else:
                closest = min(towers, key=lambda t: t.location.distance_to(snapshot.queen_location))
                dist = max(closest.location.distance_to(snapshot.queen_location), 1.0)
                scores[PossibleAction.GROW_TOWER] = min(1.0, 1200 / dist) * (1 - closest.param1 / 600.0)
        return scores

    def training_priorities(self, snapshot: TurnSnapshot) -> Dict[CreepType, float]:
        return {
            CreepType.KNIGHT: 1.0,
            CreepType.ARCHER: archer_priority(snapshot),
            CreepType.GIANT: (len(snapshot.enemy_towers) - snapshot.creep_count(CreepType.GIANT)) / 2.0,
        }

    def _barracks_site(self, snapshot: TurnSnapshot, grid: SafetyGrid,
                       creep_type: CreepType) -> Optional[ObstacleView]:
        return self.best(snapshot, grid, lambda o: o.creep_type != creep_type and not (o.is_enemy and o.is_tower))

    def _perform(self, action: PossibleAction, snapshot: TurnSnapshot,
                 grid: SafetyGrid) -> Optional[QueenAction]:
        """The queen action for one choice, or None when it has nothing to act on."""
        if action is PossibleAction.BUILD_MINE:
            site = mine_candidate(snapshot, grid)
            return try_build(snapshot, site, "MINE") if site else None

        if action is PossibleAction.BUILD_TOWER:
            if len(snapshot.allied_towers) >= self.config.max_towers:
                return None
            site = self.best(snapshot, grid, lambda o: not o.is_tower)
            return try_build(snapshot, site, "TOWER") if site else None

        if action in (PossibleAction.BUILD_ARCHER_BARRACKS, PossibleAction.BUILD_KNIGHT_BARRACKS,
                      PossibleAction.BUILD_GIANT_BARRACKS):
            creep_type = {
                PossibleAction.BUILD_ARCHER_BARRACKS: CreepType.ARCHER,
                PossibleAction.BUILD_KNIGHT_BARRACKS: CreepType.KNIGHT,
                PossibleAction.BUILD_GIANT_BARRACKS: CreepType.GIANT,
            }[action]
            # one archer and one giant barracks are enough
            if creep_type != CreepType.KNIGHT and snapshot.allied_barracks_of(creep_type):
                return None
            site = self._barracks_site(snapshot, grid, creep_type)
            return try_build(snapshot, site, barracks_kind(creep_type)) if site else None

        if action is PossibleAction.INCREASE_MINE:
            site = self.best(snapshot, grid, lambda o: o.is_mine and not o.is_fully_saturated,
                             exclude_contested=True)
            return try_build(snapshot, site, "MINE") if site else None

        if action is PossibleAction.GROW_TOWER:
            site = self.best(snapshot, grid, lambda o: o.is_tower and o.is_allied)
            return try_build(snapshot, site, "TOWER") if site else None

        if action is PossibleAction.STRAFE:
            return move_to(strafe_position(snapshot) or grid.safest_spot())

        if action is PossibleAction.RAID_ENEMY_BUILDING:
            site = self._raid_target(snapshot, grid)
            if site is None:
                return None
            return try_build(snapshot, site, "MINE" if site.gold > 0 else "TOWER")
        return None

    def best(self, snapshot: TurnSnapshot, grid: SafetyGrid, predicate: Predicate,
             exclude_contested: bool = False, **kwargs) -> Optional[ObstacleView]:
        if exclude_contested:
            inner = predicate
            predicate = lambda o: inner(o) and not is_contested(o, snapshot)
        return super().best(snapshot, grid, predicate, **kwargs)

    def decide(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Decision:
        scores = self.action_scores(snapshot, grid)
        training = self.training_priorities(snapshot)
        log.debug("turn %d actions %s", self.turn,
                  ", ".join(f"{a.name}={v:.2f}" for a, v in sorted(scores.items(), key=lambda kv: -kv[1])))
        log.debug("turn %d training %s", self.turn,
                  ", ".join(f"{t.name}={v:.2f}" for t, v in training.items()))

        queen_action = None
        for action in sorted(PossibleAction, key=lambda a: -scores[a]):
            queen_action = self._perform(action, snapshot, grid)
            if queen_action is not None:
                break
        if queen_action is None:
            queen_action = move_to(grid.safest_spot())

        train_ids = allocate_training(training, snapshot.gold, snapshot.allied_barracks)
        return Decision(queen_action, train_ids)


class ThresholdBot(Bot):
    """Flees or fortifies when the queen's cell is dangerous, otherwise expands by a barracks plan."""
    name = "threshold"

    def __init__(self, config: Optional[StrategyConfig] = None):
        super().__init__(config or StrategyConfig.cautious())

    def creep_priorities(self, snapshot: TurnSnapshot) -> Dict[CreepType, int]:
        need_giant = len(snapshot.enemy_towers) > 3 and snapshot.creep_count(CreepType.GIANT) == 0
        return {
            CreepType.KNIGHT: 2,
            CreepType.ARCHER: snapshot.creep_count(CreepType.KNIGHT, friendly=False) // 2,
            CreepType.GIANT: 1 if need_giant else 0,
        }

    def desired_barracks(self, snapshot: TurnSnapshot) -> Dict[CreepType, int]:
        return count_by_type(plan_by_income(self.creep_priorities(snapshot), snapshot.income_with_current))

    def _fortify(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> QueenAction:
        knights = snapshot.creep_count(CreepType.KNIGHT, friendly=False)
        wanted = knights // self.config.knights_per_tower
        towers = snapshot.allied_towers
        if len(towers) < wanted:
            site = self.best(snapshot, grid, lambda o: (o.is_barracks and o.param1 == 0) or not o.is_tower)
        elif towers:
            return move_to(grid.calmest_spot())
        else:
            site = self.best(snapshot, grid, lambda o: not (o.is_allied and o.is_tower))
        if site is None:
            return move_to(grid.calmest_spot())
        return try_build(snapshot, site, "TOWER")

    def decide(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Decision:
        cfg = self.config
        in_danger = grid.danger_at(snapshot.queen_location) > cfg.queen_danger_threshold
        free = self.best(snapshot, grid, lambda o: not o.is_occupied, threshold=cfg.free_site_threshold)
        desired = self.desired_barracks(snapshot)
        log.debug("turn %d danger=%s free=%s desired=%s", self.turn, in_danger,
                  free.obstacle_id if free else None, {t.name: n for t, n in desired.items()})

        if in_danger:
            queen_action = self._fortify(snapshot, grid)
        elif free is None:
            queen_action = move_to(grid.calmest_spot())
        else:
            queen_action = None
            for creep_type in (CreepType.KNIGHT, CreepType.GIANT, CreepType.ARCHER):
                if desired[creep_type] > len(snapshot.allied_barracks_of(creep_type)):
                    queen_action = try_build(snapshot, free, barracks_kind(creep_type))
                    break
            if queen_action is None:
                mine = mine_candidate(snapshot, grid, avoid_contested=False)
                queen_action = try_build(snapshot, mine or free, "MINE")

        train_ids = allocate_by_income(self.creep_priorities(snapshot), snapshot.income_with_current,
                                       snapshot.allied_barracks)
        return Decision(queen_action, train_ids)


def _touching(snapshot: TurnSnapshot, site: ObstacleView) -> bool:
    gap = site.location.distance_to(snapshot.queen_location) - site.radius - DEFAULT_RULES.queen_radius
    return gap < DEFAULT_RULES.touching_delta


class MineFirstBot(Bot):
    """Economy first: grow what we touch, grab the nearest free site, keep production below income."""
    name = "mines"
    danger_radius = 300

    def _queen_action(self, snapshot: TurnSnapshot) -> QueenAction:
        for o in snapshot.allied_towers:
            if o.param1 < 400 and _touching(snapshot, o):
                return QueenAction.build_on(o.obstacle_id, "TOWER")
        for o in snapshot.allied_mines:
            if o.param1 < o.max_mine_size and _touching(snapshot, o):
                return QueenAction.build_on(o.obstacle_id, "MINE")

        def covered(target: ObstacleView) -> bool:
            return any(t.location.distance_to(target.location) - t.attack_radius - target.radius < -30
                       for t in snapshot.enemy_towers)

        targets = [o for o in snapshot.obstacles
                   if (o.is_neutral or (o.is_enemy and not o.is_tower)) and not covered(o)]
        if not targets:
            towers = snapshot.allied_towers
            if not towers:
                return QueenAction.wait()
            closest = min(towers, key=lambda t: t.location.distance_to(snapshot.queen_location) - t.radius)
            return QueenAction.build_on(closest.obstacle_id, "TOWER")

        target = min(targets, key=lambda o: o.location.distance_to(snapshot.queen_location) - o.radius)
        if not _touching(snapshot, target):
            return QueenAction.build_on(target.obstacle_id, "TOWER")

        danger = any(c.location.distance_to(snapshot.queen_location) < self.danger_radius
                     for c in snapshot.enemy_creeps)
        if danger:
            return QueenAction.build_on(target.obstacle_id, "TOWER")
        if snapshot.income * 1.5 <= snapshot.total_production:
            return QueenAction.build_on(target.obstacle_id, "MINE" if target.gold > 0 else "TOWER")

        ours = {t: len(snapshot.allied_barracks_of(t)) for t in CreepType}
        if len(snapshot.enemy_towers) >= 2 and ours[CreepType.GIANT] == 0:
            creep_type = CreepType.GIANT
        elif ours[CreepType.KNIGHT] > ours[CreepType.ARCHER]:
            creep_type = CreepType.ARCHER
        else:
            creep_type = CreepType.KNIGHT
        return QueenAction.build_on(target.obstacle_id, barracks_kind(creep_type))

    def _train(self, snapshot: TurnSnapshot) -> List[int]:
        """All barracks fire together, or none do."""
        racks = snapshot.allied_barracks
        if not racks or any(b.param1 > 0 for b in racks):
            return []
        if snapshot.gold < sum(CREEP_TYPES[b.creep_type].cost for b in racks):
            return []
        return [b.obstacle_id for b in racks]

    def decide(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Decision:
        return Decision(self._queen_action(snapshot), self._train(snapshot))


class KnightRushBot(Bot):
    """Two knight barracks and an archer barracks on the nearest free sites, then train non-stop."""
    name = "rush"

    def decide(self, snapshot: TurnSnapshot, grid: SafetyGrid) -> Decision:
        free = [o for o in snapshot.obstacles if o.is_neutral]
        queen_action = QueenAction.wait()
        if free:
            target = min(free, key=lambda o: o.location.distance_to(snapshot.queen_location))
            if len(snapshot.allied_barracks_of(CreepType.KNIGHT)) < 2:
                queen_action = QueenAction.build_on(target.obstacle_id, barracks_kind(CreepType.KNIGHT))
            elif not snapshot.allied_barracks_of(CreepType.ARCHER):
                queen_action = QueenAction.build_on(target.obstacle_id, barracks_kind(CreepType.ARCHER))
        train_ids = [b.obstacle_id for b in snapshot.allied_barracks if b.param1 == 0]
        return Decision(queen_action, train_ids)


BOTS: Dict[str, Callable[[], Bot]] = {
    PriorityBot.name: lambda: PriorityBot(StrategyConfig.balanced()),
    ThresholdBot.name: lambda: ThresholdBot(StrategyConfig.cautious()),
    MineFirstBot.name: MineFirstBot,
    KnightRushBot.name: KnightRushBot,
}


def make_bot(name: str) -> Bot:
    try:
        return BOTS[name]()
    except KeyError:
        raise ValueError(f"unknown strategy {name!r}, expected one of {sorted(BOTS)}") from None
