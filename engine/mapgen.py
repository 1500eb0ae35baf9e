import logging
from typing import Dict, List, Optional

from .config import DEFAULT_RULES, Rules
from .geometry import Vector2
from .model import Obstacle, Player, State, Unit
from .rng import DRNG

log = logging.getLogger(__name__)


def _place_obstacles(rng: DRNG, rules: Rules) -> List[Obstacle]:
    """Mirrored obstacle pairs, rejection-sampled so none are closer than the gap."""
    centre = Vector2(rules.world_width / 2, rules.world_height / 2)
    pairs = rng.between(*rules.obstacle_pairs)
    placed: List[Obstacle] = []
    attempts = 0
    while len(placed) < pairs * 2 and attempts < 2000:
        attempts += 1
        radius = rng.between(*rules.obstacle_radius_range)
        location = Vector2(rng.uniform(radius, rules.world_width / 2 - radius),
                           rng.uniform(radius, rules.world_height - radius))
        mirror = Vector2(rules.world_width - location.x, rules.world_height - location.y)
        if any(o.location.distance_to(p) < o.radius + radius + rules.obstacle_gap
               for o in placed for p in (location, mirror)):
            continue
        if location.distance_to(mirror) < 2 * radius + rules.obstacle_gap:
            continue
        gold = rng.between(*rules.obstacle_gold_range)
        mine_size = rng.between(*rules.obstacle_mine_basesize_range)
        dist = location.distance_to(centre)
        if dist < rules.obstacle_gold_increase_distance_1:
            mine_size += 1
            gold += rules.obstacle_gold_increase
        if dist < rules.obstacle_gold_increase_distance_2:
            mine_size += 1
            gold += rules.obstacle_gold_increase
        for loc in (location, mirror):
            placed.append(Obstacle(obstacle_id=len(placed), location=loc.snap_to_integers(),
                                   radius=radius, gold=gold, max_mine_size=mine_size))
    log.debug("placed %d obstacles after %d attempts", len(placed), attempts)
    return placed


def generate_state(seed: int, rules: Rules = DEFAULT_RULES, queen_hp: Optional[int] = None) -> State:
    """Create a fresh, symmetric match state from a seed."""
    rng = DRNG(seed)
    obstacles: Dict[int, Obstacle] = {o.obstacle_id: o for o in _place_obstacles(rng, rules)}

    if queen_hp is None:
        queen_hp = rng.between(*rules.queen_hp_range) * rules.queen_hp_mult
    corner_y = rules.world_height - rules.queen_radius
    if rng.bernoulli(0.5):
        blue_loc = Vector2(rules.queen_radius, corner_y)
    else:
        blue_loc = Vector2(rules.world_width - rules.queen_radius, corner_y)
    red_loc = Vector2(rules.world_width - blue_loc.x, rules.world_height - blue_loc.y)

    units = {
        "BLUE-QUEEN": Unit.queen("BLUE-QUEEN", "BLUE", blue_loc, queen_hp, rules),
        "RED-QUEEN": Unit.queen("RED-QUEEN", "RED", red_loc, queen_hp, rules),
    }
    players = {
        "BLUE": Player(side="BLUE", gold=rules.starting_gold, health=queen_hp, queen_id="BLUE-QUEEN",
                       inverted=blue_loc.x > rules.world_width / 2),
        "RED": Player(side="RED", gold=rules.starting_gold, health=queen_hp, queen_id="RED-QUEEN",
                      inverted=red_loc.x > rules.world_width / 2),
    }
    return State(turn=0, obstacles=obstacles, units=units, players=players, battle_id="local")
