"""Engine tick: orders, upkeep, spawning, integrity and match end."""
from dataclasses import replace

import pytest

from engine.config import DEFAULT_RULES
from engine.engine import Engine
from engine.geometry import Vector2
from engine.mapgen import generate_state
from engine.model import (Barracks, Command, CreepType, IntegrityError, Mine, Obstacle, QueenAction,
                          Tower, UnitKind)


def build(obstacle_id, kind):
    return QueenAction.build_on(obstacle_id, kind)


def test_tower_melts_each_tick(make_state):
    site = Obstacle(1, Vector2(960.0, 500.0), 60, structure=Tower("BLUE", 799))
    state = make_state(obstacles=[site])
    Engine(1, state).step()
    assert site.structure.health == 797


def test_tower_vanishes_at_zero_health(make_state):
    site = Obstacle(1, Vector2(960.0, 500.0), 60, structure=Tower("BLUE", 2))
    state = make_state(obstacles=[site])
    evts = Engine(1, state).step()
    assert site.structure is None
    assert any(e.kind == "StructureLost" for e in evts)


def test_queen_moves_at_queen_speed(make_state):
    state = make_state(blue_queen=Vector2(100.0, 500.0))
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", QueenAction.move(Vector2(400.0, 500.0)))])
    eng.step()
    assert state.queen_of("BLUE").location == Vector2(160.0, 500.0)


def test_build_far_away_walks_toward_the_site(make_state):
    site = Obstacle(1, Vector2(300.0, 500.0), 60, gold=200, max_mine_size=3)
    state = make_state(obstacles=[site], blue_queen=Vector2(100.0, 500.0))
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", build(1, "MINE"))])
    eng.step()
    assert site.structure is None
    assert state.queen_of("BLUE").location == Vector2(160.0, 500.0)


def test_mine_is_built_then_grows_and_pays(make_state):
    site = Obstacle(1, Vector2(300.0, 500.0), 60, gold=200, max_mine_size=2)
    state = make_state(obstacles=[site], blue_queen=Vector2(210.0, 500.0), gold=0)
    eng = Engine(1, state)

    eng.apply_orders([Command("BLUE", build(1, "MINE"))])
    eng.step()
    assert site.structure == Mine("BLUE", 1)
    assert state.players["BLUE"].gold == 1
    assert site.gold == 199

    eng.apply_orders([Command("BLUE", build(1, "MINE"))])
    eng.step()
    assert site.structure.income_rate == 2

    # already at max_mine_size
    eng.apply_orders([Command("BLUE", build(1, "MINE"))])
    eng.step()
    assert site.structure.income_rate == 2
    assert state.players["BLUE"].gold == 1 + 2 + 2


def test_mine_without_gold_is_rejected(make_state):
    site = Obstacle(1, Vector2(300.0, 500.0), 60, gold=0, max_mine_size=2)
    state = make_state(obstacles=[site], blue_queen=Vector2(210.0, 500.0))
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", build(1, "MINE"))])
    evts = eng.step()
    assert site.structure is None
    assert [e.data["reason"] for e in evts if e.kind == "OrderRejected"] == ["no gold"]


def test_enemy_tower_cannot_be_replaced(make_state):
    site = Obstacle(1, Vector2(300.0, 500.0), 60, gold=200, max_mine_size=2, structure=Tower("RED", 800))
    state = make_state(obstacles=[site], blue_queen=Vector2(210.0, 500.0))
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", build(1, "MINE"))])
    eng.step()
    assert isinstance(site.structure, Tower)
    assert site.structure.owner == "RED"


def test_own_tower_grows_up_to_maximum(make_state):
    site = Obstacle(1, Vector2(300.0, 500.0), 60, structure=Tower("BLUE", 750))
    state = make_state(obstacles=[site], blue_queen=Vector2(210.0, 500.0))
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", build(1, "TOWER"))])
    eng.step()
    assert site.structure.health == DEFAULT_RULES.tower_hp_maximum - DEFAULT_RULES.tower_melt_rate


def test_barracks_train_and_release_a_squad(make_state):
    site = Obstacle(1, Vector2(300.0, 500.0), 60, structure=Barracks("BLUE", CreepType.KNIGHT))
    state = make_state(obstacles=[site], gold=100)
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", train_ids=[1])])
    eng.step()
    assert state.players["BLUE"].gold == 20
    assert site.structure.cooldown == 4
    assert site.structure.training

    for _ in range(3):
        eng.step()
    assert not state.active_creeps("BLUE")

    evts = eng.step()
    knights = state.active_creeps("BLUE")
    assert len(knights) == 4
    assert all(k.kind is UnitKind.KNIGHT for k in knights)
    assert len([e for e in evts if e.kind == "CreepSpawned"]) == 4
    assert site.structure.is_ready and not site.structure.training


def test_training_is_skipped_when_unaffordable_or_busy(make_state):
    giants = Obstacle(1, Vector2(300.0, 500.0), 60, structure=Barracks("BLUE", CreepType.GIANT))
    busy = Obstacle(2, Vector2(600.0, 500.0), 60, structure=Barracks("BLUE", CreepType.KNIGHT, cooldown=3))
    state = make_state(obstacles=[giants, busy], gold=100)
    eng = Engine(1, state)
    eng.apply_orders([Command("BLUE", train_ids=[1, 2, 99])])
    evts = eng.step()
    reasons = sorted(e.data["reason"] for e in evts if e.kind == "OrderRejected")
    assert reasons == ["barracks busy", "not enough gold", "not own barracks"]
    assert state.players["BLUE"].gold == 100


def test_missing_queen_is_an_integrity_error(make_state):
    state = make_state()
    del state.units["RED-QUEEN"]
    with pytest.raises(IntegrityError):
        state.queen_of("RED")
    eng = Engine(1, state)
    eng.apply_orders([Command("RED", QueenAction.move(Vector2(0.0, 0.0)))])
    with pytest.raises(IntegrityError):
        eng.step()


def test_unknown_obstacle_lookup_is_an_integrity_error(make_state):
    with pytest.raises(IntegrityError):
        make_state().obstacle(42)


def test_match_ends_at_max_turns_with_a_draw(make_state):
    state = make_state()
    eng = Engine(1, state, replace(DEFAULT_RULES, max_turns=3))
    for _ in range(5):
        eng.step()
    assert state.winner == "DRAW"
    assert state.turn == 3


def test_dead_queen_loses(make_state):
    state = make_state()
    state.players["RED"].health = 0
    evts = Engine(1, state).step()
    assert state.winner == "BLUE"
    assert evts[-1].kind == "MatchOver"


def test_map_generation_is_seeded_and_mirrored():
    a, b = generate_state(11), generate_state(11)
    assert [(o.location, o.radius, o.gold) for o in a.obstacles.values()] == \
           [(o.location, o.radius, o.gold) for o in b.obstacles.values()]
    assert len(a.obstacles) % 2 == 0
    blue, red = a.queen_of("BLUE").location, a.queen_of("RED").location
    assert blue.x + red.x == DEFAULT_RULES.world_width
    assert blue.y + red.y == DEFAULT_RULES.world_height
    assert a.players["BLUE"].health == a.players["RED"].health


@pytest.mark.parametrize("seed", [1, 2, 3, 4])
def test_exactly_the_player_starting_on_the_right_is_inverted(seed):
    state = generate_state(seed)
    for side, player in state.players.items():
        on_right = state.queen_of(side).location.x > DEFAULT_RULES.world_width / 2
        assert player.inverted == on_right
    assert state.players["BLUE"].inverted != state.players["RED"].inverted
