"""Per-variant unit behaviour and damage resolution.

Every creep kind supplies ``move``, ``deal_damage`` and ``finalize_frame``
through ``BEHAVIOURS``; the engine dispatches on ``Unit.kind`` instead of
subclassing. Damage is a plain state mutation; callers get ``Event``s back
describing what happened.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .config import Rules
from .geometry import Vector2
from .model import Event, Obstacle, Side, State, Tower, Unit, UnitKind, other_side


def apply_damage(unit: Unit, amount: int) -> int:
    """Remove amount health from unit, floored at 0. Returns the damage actually dealt."""
    if amount <= 0:  # no accidental healing
        return 0
    before = unit.health
    unit.health = max(0, unit.health - amount)
    return before - unit.health


def damage_player(state: State, side: Side, amount: int) -> int:
    """Queen damage goes to the owning player's health pool; the queen mirrors it."""
    if amount <= 0:
        return 0
    player = state.players[side]
    before = player.health
    player.health = max(0, player.health - amount)
    state.queen_of(side).health = player.health
    return before - player.health


def nearest(origin: Vector2, units: List[Unit]) -> Optional[Unit]:
    if not units:
        return None
    return min(units, key=lambda u: origin.distance_to(u.location))


def _approach(unit: Unit, target: Unit, frames: float) -> None:
    # move toward target, if not yet in range
    if unit.location.distance_to(target.location) > unit.radius + target.radius + unit.attack_range:
        stop = target.location + (unit.location - target.location).resized_to(3.0)
        unit.location = unit.location.towards(stop, unit.speed * frames)


def _enemy_towers(state: State, side: Side):
    enemy = other_side(side)
    return [o for o in state.obstacles.values()
            if isinstance(o.structure, Tower) and o.structure.owner == enemy]


# --- Giant -----------------------------------------------------------------

def giant_move(unit: Unit, state: State, rules: Rules, frames: float = 1.0) -> None:
    towers = _enemy_towers(state, unit.side)
    if not towers:
        return
    target = min(towers, key=lambda o: o.location.distance_to(unit.location))
    unit.location = unit.location.towards(target.location, unit.speed * frames)


def giant_deal_damage(unit: Unit, state: State, rules: Rules) -> List[Event]:
    for o in _enemy_towers(state, unit.side):
        if o.location.distance_to(unit.location) < unit.radius + o.radius + rules.touching_delta:
            o.structure.health = max(0, o.structure.health - rules.giant_bust_rate)
            return [Event("TowerBusted", state.turn,
                          {"unit_id": unit.id, "obstacle_id": o.obstacle_id,
                           "hp": o.structure.health})]
    return []


# --- Knight ----------------------------------------------------------------

def knight_move(unit: Unit, state: State, rules: Rules, frames: float = 1.0) -> None:
    _approach(unit, state.queen_of(other_side(unit.side)), frames)


def knight_deal_damage(unit: Unit, state: State, rules: Rules) -> List[Event]:
    enemy = other_side(unit.side)
    queen = state.queen_of(enemy)
    reach = unit.radius + queen.radius + unit.attack_range + rules.touching_delta
    if unit.location.distance_to(queen.location) < reach:
        dealt = damage_player(state, enemy, rules.knight_damage)
        return [Event("QueenDamaged", state.turn,
                      {"attacker": unit.id, "side": enemy, "dmg": dealt,
                       "hp": state.players[enemy].health})]
    return []


# --- Archer ----------------------------------------------------------------

def archer_target(unit: Unit, state: State) -> Optional[Unit]:
    return nearest(unit.location, state.active_creeps(other_side(unit.side)))


def archer_move(unit: Unit, state: State, rules: Rules, frames: float = 1.0) -> None:
    target = archer_target(unit, state) or state.queen_of(other_side(unit.side))
    _approach(unit, target, frames)


def archer_deal_damage(unit: Unit, state: State, rules: Rules) -> List[Event]:
    unit.attack_target = None
    target = archer_target(unit, state)
    if target is None:
        return []
    reach = unit.radius + target.radius + unit.attack_range + rules.touching_delta
    if unit.location.distance_to(target.location) >= reach:
        return []
    amount = rules.archer_damage_to_giants if target.kind is UnitKind.GIANT else rules.archer_damage
    dealt = apply_damage(target, amount)
    unit.attack_target = target.id
    return [Event("Damage", state.turn,
                  {"target": target.id, "dmg": dealt, "hp": target.health, "shooter": unit.id})]


# --- shared ----------------------------------------------------------------

def record_location(unit: Unit, state: State) -> None:
    unit.last_location = unit.location


@dataclass(frozen=True)
class Behaviour:
    move: Callable[[Unit, State, Rules, float], None]
    deal_damage: Callable[[Unit, State, Rules], List[Event]]
    finalize_frame: Callable[[Unit, State], None] = record_location


BEHAVIOURS: Dict[UnitKind, Behaviour] = {
    UnitKind.KNIGHT: Behaviour(knight_move, knight_deal_damage),
    UnitKind.ARCHER: Behaviour(archer_move, archer_deal_damage),
    UnitKind.GIANT: Behaviour(giant_move, giant_deal_damage),
}


def tower_attacks(state: State, rules: Rules) -> List[Event]:
    """Each tower hits the closest enemy creep in range, or else the enemy queen."""
    evts: List[Event] = []
    for o in state.obstacles.values():
        tower = o.structure
        if not isinstance(tower, Tower) or tower.health <= 0:
            continue
        enemy = other_side(tower.owner)
        radius = tower.attack_radius(o, rules)
        in_range = [c for c in state.active_creeps(enemy)
                    if c.location.distance_to(o.location) < radius]
        creep = nearest(o.location, in_range)
        if creep is not None:
            dist = creep.location.distance_to(o.location)
            amount = rules.tower_creep_damage_min + int((radius - dist) / rules.tower_creep_damage_climb_distance)
            dealt = apply_damage(creep, amount)
            evts.append(Event("Damage", state.turn,
                              {"target": creep.id, "dmg": dealt, "hp": creep.health,
                               "shooter": f"tower-{o.obstacle_id}"}))
            continue
        queen = state.queen_of(enemy)
        dist = queen.location.distance_to(o.location)
        if dist < radius:
            amount = rules.tower_queen_damage_min + int((radius - dist) / rules.tower_queen_damage_climb_distance)
            dealt = damage_player(state, enemy, amount)
            evts.append(Event("QueenDamaged", state.turn,
                              {"attacker": f"tower-{o.obstacle_id}", "side": enemy, "dmg": dealt,
                               "hp": state.players[enemy].health}))
    return evts


def fix_collisions(state: State, rules: Rules) -> None:
    """Push units out of obstacles and keep them inside the world."""
    for u in state.units.values():
        if u.is_dead:
            continue
        for o in state.obstacles.values():
            min_dist = u.radius + o.radius
            if u.location.distance_to(o.location) < min_dist:
                u.location = o.location + (u.location - o.location).resized_to(min_dist)
        u.location = u.location.clamp_within(u.radius, rules.world_width - u.radius,
                                             u.radius, rules.world_height - u.radius)


def touching(unit: Unit, obstacle: Obstacle, rules: Rules) -> bool:
    return unit.location.distance_to(obstacle.location) < unit.radius + obstacle.radius + rules.touching_delta


def touched_obstacle(state: State, side: Side, rules: Rules) -> Optional[Obstacle]:
    """The first obstacle the side's queen is in contact with, if any."""
    queen = state.queen_of(side)
    for o in state.obstacles.values():
        if touching(queen, o, rules):
            return o
    return None
