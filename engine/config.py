from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rules:
    """Game constants. One instance is shared by the engine, combat and map generation."""
    world_width: int = 1920
    world_height: int = 1000
    max_turns: int = 200

    starting_gold: int = 100
    touching_delta: int = 5

    queen_speed: int = 60
    queen_radius: int = 30
    queen_mass: int = 10000
    queen_hp: int = 100
    queen_hp_range: Tuple[int, int] = (5, 20)
    queen_hp_mult: int = 5  # i.e. 25..100 by 5

    tower_hp_initial: int = 200
    tower_hp_increment: int = 100
    tower_hp_maximum: int = 800
    tower_melt_rate: int = 2
    tower_coverage_per_hp: int = 1000
    tower_creep_damage_min: int = 3
    tower_creep_damage_climb_distance: int = 200
    tower_queen_damage_min: int = 1
    tower_queen_damage_climb_distance: int = 200

    giant_bust_rate: int = 80
    knight_damage: int = 1
    archer_damage: int = 2
    archer_damage_to_giants: int = 10

    obstacle_gap: int = 90
    obstacle_radius_range: Tuple[int, int] = (60, 90)
    obstacle_gold_range: Tuple[int, int] = (200, 250)
    obstacle_mine_basesize_range: Tuple[int, int] = (1, 3)
    obstacle_gold_increase: int = 50
    obstacle_gold_increase_distance_1: int = 500
    obstacle_gold_increase_distance_2: int = 200
    obstacle_pairs: Tuple[int, int] = (6, 12)


DEFAULT_RULES = Rules()
