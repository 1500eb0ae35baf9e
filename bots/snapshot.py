from dataclasses import dataclass, field
from typing import List, Optional

from engine.config import DEFAULT_RULES
from engine.geometry import Vector2
from engine.model import CREEP_TYPES, CreepType, IntegrityError, Owner, StructureType


@dataclass
class ObstacleView:
    """An obstacle as a player sees it. Identity and location are fixed; the rest is rewritten each turn."""
    obstacle_id: int
    location: Vector2
    radius: int
    gold: int = -1
    max_mine_size: int = -1
    structure_type: int = StructureType.NONE
    owner: int = Owner.NEUTRAL
    param1: int = -1  # mine income / tower health / barracks cooldown
    param2: int = -1  # tower attack radius / barracks creep type

    def apply_update(self, gold: int, max_mine_size: int, structure_type: int, owner: int,
                     param1: int, param2: int) -> None:
        self.gold = gold
        self.max_mine_size = max_mine_size
        self.structure_type = structure_type
        self.owner = owner
        self.param1 = param1
        self.param2 = param2

    @property
    def is_mine(self) -> bool:
        return self.structure_type == StructureType.MINE

    @property
    def is_tower(self) -> bool:
        return self.structure_type == StructureType.TOWER

    @property
    def is_barracks(self) -> bool:
        return self.structure_type == StructureType.BARRACKS

    @property
    def is_occupied(self) -> bool:
        return self.structure_type != StructureType.NONE

    @property
    def is_allied(self) -> bool:
        return self.owner == Owner.ALLY

    @property
    def is_enemy(self) -> bool:
        return self.owner == Owner.ENEMY

    @property
    def is_neutral(self) -> bool:
        return self.owner == Owner.NEUTRAL

    @property
    def is_fully_saturated(self) -> bool:
        return self.is_mine and self.param1 == self.max_mine_size

    @property
    def saturation_rate(self) -> float:
        if self.max_mine_size <= 0:
            return 0.0
        return self.param1 / self.max_mine_size

    @property
    def attack_radius(self) -> int:
        return self.param2 if self.is_tower else 0

    @property
    def health_percent(self) -> float:
        return self.param1 / DEFAULT_RULES.tower_hp_maximum

    @property
    def creep_type(self) -> Optional[CreepType]:
        if not self.is_barracks or not 0 <= self.param2 <= 2:
            return None
        return CreepType(self.param2)

    def is_barracks_of(self, creep_type: CreepType) -> bool:
        return self.creep_type == creep_type

    @property
    def can_replace(self) -> bool:
        return not self.is_barracks or self.param1 == 0

    @property
    def coords(self) -> Vector2:
        return Vector2(float(int(self.location.x)), float(int(self.location.y)))


@dataclass
class UnitView:
    location: Vector2
    is_friendly: bool
    creep_type: Optional[CreepType]  # None for a queen
    health: int


@dataclass
class TurnSnapshot:
    """Everything a bot knows in one turn. Rebuilt from the wire every tick."""
    queen_location: Vector2
    health: int
    gold: int
    touched_obstacle_id: int
    enemy_queen_location: Vector2
    enemy_health: int
    obstacles: List[ObstacleView] = field(default_factory=list)
    friendly_creeps: List[UnitView] = field(default_factory=list)
    enemy_creeps: List[UnitView] = field(default_factory=list)

    @classmethod
    def from_units(cls, gold: int, touched_obstacle_id: int, obstacles: List[ObstacleView],
                   units: List[UnitView]) -> "TurnSnapshot":
        """Split the flat unit list, insisting on exactly one queen per side."""
        queens = [u for u in units if u.is_friendly and u.creep_type is None]
        enemy_queens = [u for u in units if not u.is_friendly and u.creep_type is None]
        if len(queens) != 1 or len(enemy_queens) != 1:
            raise IntegrityError(
                f"expected one queen per side, got {len(queens)} friendly and {len(enemy_queens)} enemy")
        return cls(
            queen_location=queens[0].location,
            health=queens[0].health,
            gold=gold,
            touched_obstacle_id=touched_obstacle_id,
            enemy_queen_location=enemy_queens[0].location,
            enemy_health=enemy_queens[0].health,
            obstacles=obstacles,
            friendly_creeps=[u for u in units if u.is_friendly and u.creep_type is not None],
            enemy_creeps=[u for u in units if not u.is_friendly and u.creep_type is not None],
        )

    def obstacle(self, obstacle_id: int) -> ObstacleView:
        for o in self.obstacles:
            if o.obstacle_id == obstacle_id:
                return o
        raise IntegrityError(f"unknown obstacle {obstacle_id}")

    @property
    def touched_site(self) -> Optional[ObstacleView]:
        if self.touched_obstacle_id == -1:
            return None
        return self.obstacle(self.touched_obstacle_id)

    # accessors

    @property
    def allied_structures(self) -> List[ObstacleView]:
        return [o for o in self.obstacles if o.is_allied]

    @property
    def allied_towers(self) -> List[ObstacleView]:
        return [o for o in self.allied_structures if o.is_tower]

    @property
    def allied_mines(self) -> List[ObstacleView]:
        return [o for o in self.allied_structures if o.is_mine]

    @property
    def allied_barracks(self) -> List[ObstacleView]:
        return [o for o in self.allied_structures if o.is_barracks]

    def allied_barracks_of(self, creep_type: CreepType) -> List[ObstacleView]:
        return [o for o in self.allied_barracks if o.is_barracks_of(creep_type)]

    @property
    def enemy_structures(self) -> List[ObstacleView]:
        return [o for o in self.obstacles if o.is_enemy]

    @property
    def enemy_towers(self) -> List[ObstacleView]:
        return [o for o in self.enemy_structures if o.is_tower]

    @property
    def enemy_mines(self) -> List[ObstacleView]:
        return [o for o in self.enemy_structures if o.is_mine]

    @property
    def enemy_barracks(self) -> List[ObstacleView]:
        return [o for o in self.enemy_structures if o.is_barracks]

    @property
    def income(self) -> int:
        return sum(o.param1 for o in self.allied_mines)

    @property
    def income_with_current(self) -> int:
        return self.income + self.gold // 8

    @property
    def enemy_income(self) -> int:
        return sum(o.param1 for o in self.enemy_mines)

    @property
    def total_production(self) -> int:
        """Gold per turn our barracks would consume if they trained non-stop."""
        total = 0
        for o in self.allied_barracks:
            spec = CREEP_TYPES[o.creep_type]
            total += spec.cost // spec.build_time
        return total

    def creep_count(self, creep_type: CreepType, friendly: bool = True) -> int:
        creeps = self.friendly_creeps if friendly else self.enemy_creeps
        return sum(1 for c in creeps if c.creep_type == creep_type)
