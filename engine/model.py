import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Literal, Optional, Union

from .config import Rules
from .geometry import Vector2

Side = Literal["BLUE", "RED"]
SIDES: List[Side] = ["BLUE", "RED"]


def other_side(side: Side) -> Side:
    return "RED" if side == "BLUE" else "BLUE"


class IntegrityError(RuntimeError):
    """A unique entity is missing or duplicated; the turn cannot be processed."""


class ProtocolError(ValueError):
    """Malformed protocol input."""


class StructureType(IntEnum):
    """Wire code of a structure"""
    NONE = -1
    MINE = 0
    TOWER = 1
    BARRACKS = 2


class Owner(IntEnum):
    """Wire code of an owner, relative to the receiving player"""
    NEUTRAL = -1
    ALLY = 0
    ENEMY = 1


class CreepType(IntEnum):
    """Creep types; the value is the ordinal used on the wire"""
    KNIGHT = 0
    ARCHER = 1
    GIANT = 2


@dataclass(frozen=True)
class CreepSpec:
    """Template defining characteristics of a creep type"""
    count: int  # creeps spawned per training cycle
    cost: int
    speed: int
    range: int
    radius: int
    mass: int
    hp: int
    build_time: int
    asset_name: str

# Predefined creep types
CREEP_TYPES: Dict[CreepType, CreepSpec] = {
    CreepType.KNIGHT: CreepSpec(count=4, cost=80, speed=100, range=0, radius=20,
                                mass=400, hp=30, build_time=5, asset_name="Unite_Fantassin"),
    CreepType.ARCHER: CreepSpec(count=2, cost=100, speed=75, range=200, radius=25,
                                mass=900, hp=45, build_time=8, asset_name="Unite_Archer"),
    CreepType.GIANT: CreepSpec(count=1, cost=140, speed=50, range=0, radius=40,
                               mass=2000, hp=200, build_time=10, asset_name="Unite_Siege"),
}


def spec_of(creep_type: CreepType) -> CreepSpec:
    return CREEP_TYPES[creep_type]


class UnitKind(Enum):
    """Variant tag of a unit"""
    QUEEN = "queen"
    KNIGHT = "knight"
    ARCHER = "archer"
    GIANT = "giant"

    @property
    def creep_type(self) -> Optional[CreepType]:
        if self is UnitKind.QUEEN:
            return None
        return CreepType[self.name]

    @staticmethod
    def of(creep_type: CreepType) -> "UnitKind":
        return UnitKind[creep_type.name]


@dataclass
class Mine:
    owner: Side
    income_rate: int = 1

    def is_fully_saturated(self, max_mine_size: int) -> bool:
        return self.income_rate >= max_mine_size


@dataclass
class Tower:
    owner: Side
    health: int

    def attack_radius(self, obstacle: "Obstacle", rules: Rules) -> float:
        return math.sqrt((self.health * rules.tower_coverage_per_hp + obstacle.area) / math.pi)


@dataclass
class Barracks:
    owner: Side
    creep_type: CreepType
    cooldown: int = 0
    training: bool = False

    @property
    def is_ready(self) -> bool:
        return self.cooldown == 0


Structure = Union[Mine, Tower, Barracks]


def structure_type_of(structure: Optional[Structure]) -> StructureType:
    if isinstance(structure, Mine):
        return StructureType.MINE
    if isinstance(structure, Tower):
        return StructureType.TOWER
    if isinstance(structure, Barracks):
        return StructureType.BARRACKS
    return StructureType.NONE


@dataclass
class Obstacle:
    obstacle_id: int
    location: Vector2
    radius: int
    gold: int = -1  # -1 = not applicable
    max_mine_size: int = -1
    structure: Optional[Structure] = None

    @property
    def area(self) -> float:
        return math.pi * self.radius * self.radius

    def owned_by(self, side: Side) -> bool:
        return self.structure is not None and self.structure.owner == side


@dataclass
class Unit:
    """A queen or a creep. Static fields come from the kind; dispatch goes through combat.BEHAVIOURS."""
    id: str
    side: Side
    kind: UnitKind
    location: Vector2
    radius: int
    mass: int  # 0 := immovable
    speed: int
    attack_range: int
    max_health: int
    health: int
    attack_target: Optional[str] = None  # id of the unit hit this tick, for presentation
    last_location: Optional[Vector2] = None

    @property
    def is_queen(self) -> bool:
        return self.kind is UnitKind.QUEEN

    @property
    def creep_type(self) -> Optional[CreepType]:
        return self.kind.creep_type

    @property
    def is_dead(self) -> bool:
        return self.health <= 0

    @classmethod
    def queen(cls, unit_id: str, side: Side, location: Vector2, health: int, rules: Rules) -> "Unit":
        return cls(id=unit_id, side=side, kind=UnitKind.QUEEN, location=location,
                   radius=rules.queen_radius, mass=rules.queen_mass, speed=rules.queen_speed,
                   attack_range=0, max_health=health, health=health)

    @classmethod
    def creep(cls, unit_id: str, side: Side, creep_type: CreepType, location: Vector2) -> "Unit":
        s = spec_of(creep_type)
        return cls(id=unit_id, side=side, kind=UnitKind.of(creep_type), location=location,
                   radius=s.radius, mass=s.mass, speed=s.speed, attack_range=s.range,
                   max_health=s.hp, health=s.hp)


@dataclass
class Player:
    side: Side
    gold: int
    health: int
    queen_id: str
    inverted: bool = False  # starts on the right; its view of the map is mirrored


BUILD_KINDS: List[str] = ["MINE", "TOWER"] + [f"BARRACKS-{t.name}" for t in CreepType]


@dataclass(frozen=True)
class QueenAction:
    kind: Literal["WAIT", "MOVE", "BUILD"]
    target: Optional[Vector2] = None
    obstacle_id: Optional[int] = None
    build: Optional[str] = None

    @staticmethod
    def wait() -> "QueenAction":
        return QueenAction("WAIT")

    @staticmethod
    def move(target: Vector2) -> "QueenAction":
        return QueenAction("MOVE", target=target)

    @staticmethod
    def build_on(obstacle_id: int, build: str) -> "QueenAction":
        return QueenAction("BUILD", obstacle_id=obstacle_id, build=build)

    def to_line(self) -> str:
        if self.kind == "MOVE":
            x, y = self.target.as_ints()
            return f"MOVE {x} {y}"
        if self.kind == "BUILD":
            return f"BUILD {self.obstacle_id} {self.build}"
        return "WAIT"


@dataclass
class Command:
    """Everything a player submits for one tick."""
    side: Side
    queen_action: QueenAction = field(default_factory=QueenAction.wait)
    train_ids: List[int] = field(default_factory=list)


@dataclass
class Event:
    kind: str
    turn: int
    data: Dict


@dataclass
class State:
    turn: int
    obstacles: Dict[int, Obstacle] = field(default_factory=dict)
    units: Dict[str, Unit] = field(default_factory=dict)
    players: Dict[str, Player] = field(default_factory=dict)
    winner: Optional[str] = None  # "BLUE", "RED" or "DRAW" once the match is over
    battle_id: str = "local"

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    def queen_of(self, side: Side) -> Unit:
        queens = [u for u in self.units.values() if u.is_queen and u.side == side]
        if len(queens) != 1:
            raise IntegrityError(f"expected exactly one {side} queen, found {len(queens)}")
        return queens[0]

    def active_creeps(self, side: Side) -> List[Unit]:
        return [u for u in self.units.values() if not u.is_queen and u.side == side and not u.is_dead]

    def obstacle(self, obstacle_id: int) -> Obstacle:
        o = self.obstacles.get(obstacle_id)
        if o is None:
            raise IntegrityError(f"unknown obstacle {obstacle_id}")
        return o
