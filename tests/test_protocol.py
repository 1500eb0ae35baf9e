"""Line protocol on both sides of the pipe."""
import io

import pytest

from bots.decision import Decision
from bots.player import run
from bots.protocol import EndOfInput, LineFeed, ProtocolReader, format_decision
from engine.geometry import Vector2
from engine.model import (Barracks, CreepType, IntegrityError, Mine, Obstacle, ProtocolError, QueenAction,
                          Tower, Unit)
from engine.wire import decode_command, encode_init, encode_turn

INIT = ["2", "0 300 500 60", "1 1620 500 60"]


def turn(units):
    return ["100 -1",
            "0 200 3 -1 -1 -1 -1",
            "1 200 3 1 1 400 360",
            str(len(units))] + units


QUEENS = ["100 500 0 -1 80", "1800 500 1 -1 75"]


def test_reads_init_and_turn():
    reader = ProtocolReader.from_lines(INIT + turn(QUEENS + ["900 500 1 0 30", "120 520 0 1 45"]))
    obstacles = reader.read_init()
    assert [(o.obstacle_id, o.location, o.radius) for o in obstacles] == [
        (0, Vector2(300.0, 500.0), 60), (1, Vector2(1620.0, 500.0), 60)]

    snap = reader.read_turn()
    assert snap.gold == 100
    assert snap.touched_site is None
    assert snap.queen_location == Vector2(100.0, 500.0)
    assert (snap.health, snap.enemy_health) == (80, 75)
    assert [c.creep_type for c in snap.enemy_creeps] == [CreepType.KNIGHT]
    assert [c.creep_type for c in snap.friendly_creeps] == [CreepType.ARCHER]
    tower = snap.obstacle(1)
    assert tower.is_tower and tower.is_enemy and tower.attack_radius == 360
    assert snap.enemy_towers == [tower]


def test_tokens_may_be_split_across_lines():
    reader = ProtocolReader.from_lines(["2 0 300", "500 60 1", "1620 500 60"])
    assert len(reader.read_init()) == 2


def test_update_for_unknown_obstacle_is_an_integrity_error():
    lines = INIT + ["100 -1", "0 200 3 -1 -1 -1 -1", "7 200 3 -1 -1 -1 -1", "2"] + QUEENS
    reader = ProtocolReader.from_lines(lines)
    reader.read_init()
    with pytest.raises(IntegrityError):
        reader.read_turn()


@pytest.mark.parametrize("units", [
    ["100 500 0 -1 80"],
    QUEENS + ["1700 500 1 -1 75"],
])
def test_queens_must_be_unique(units):
    reader = ProtocolReader.from_lines(INIT + turn(units))
    reader.read_init()
    with pytest.raises(IntegrityError):
        reader.read_turn()


@pytest.mark.parametrize("lines", [
    ["two"],
    INIT + turn(QUEENS[:1] + ["1800 500 1 9 75"]),
])
def test_malformed_input_is_a_protocol_error(lines):
    reader = ProtocolReader.from_lines(lines)
    with pytest.raises(ProtocolError):
        reader.read_init()
        reader.read_turn()


def test_end_of_input():
    reader = ProtocolReader.from_lines(INIT)
    reader.read_init()
    with pytest.raises(EndOfInput):
        reader.read_turn()


def test_format_decision_is_always_two_lines():
    assert format_decision(Decision()) == ["WAIT", "TRAIN"]
    d = Decision(QueenAction.move(Vector2(300.4, 500.9)), [3, 5])
    assert format_decision(d) == ["MOVE 300 500", "TRAIN 3 5"]
    assert format_decision(Decision(QueenAction.build_on(4, "BARRACKS-GIANT"))) == ["BUILD 4 BARRACKS-GIANT",
                                                                                   "TRAIN"]


@pytest.mark.parametrize("lines", [
    ["WAIT"],
    ["JUMP", "TRAIN"],
    ["MOVE 1", "TRAIN"],
    ["BUILD 1 CASTLE", "TRAIN"],
    ["WAIT", "TRAIN x"],
    ["WAIT", "TRAINS 1"],
])
def test_bad_commands_are_rejected(lines):
    with pytest.raises(ProtocolError):
        decode_command("BLUE", lines)


def test_command_round_trip():
    cmd = decode_command("RED", ["BUILD 3 BARRACKS-ARCHER", "TRAIN 1 2"])
    assert cmd.side == "RED"
    assert cmd.queen_action == QueenAction.build_on(3, "BARRACKS-ARCHER")
    assert cmd.train_ids == [1, 2]


def test_encoded_turn_is_relative_to_the_receiver(make_state):
    obstacles = [
        Obstacle(0, Vector2(300.0, 500.0), 60, gold=180, max_mine_size=2, structure=Mine("BLUE", 2)),
        Obstacle(1, Vector2(800.0, 500.0), 70, gold=200, max_mine_size=3, structure=Tower("RED", 300)),
        Obstacle(2, Vector2(1200.0, 500.0), 80, gold=210, max_mine_size=1,
                 structure=Barracks("RED", CreepType.ARCHER, cooldown=4)),
    ]
    creep = Unit.creep("RED-KNIGHT-1", "RED", CreepType.KNIGHT, Vector2(600.4, 450.0))
    state = make_state(obstacles=obstacles, creeps=[creep])

    blue = encode_turn(state, "BLUE")
    assert blue[0] == "100 -1"
    assert blue[1] == "0 180 2 0 0 2 -1"
    assert blue[2].startswith("1 200 3 1 1 300 ")
    assert blue[3] == "2 210 1 2 1 4 1"
    assert blue[4] == "3"
    assert blue[5] == "30 970 0 -1 100"
    assert blue[7] == "600 450 1 0 30"

    red = encode_turn(state, "RED")
    assert red[1] == "0 180 2 0 1 2 -1"
    assert red[5] == "1890 30 0 -1 100"

    feed = LineFeed()
    feed.push(encode_init(state, "BLUE") + blue)
    reader = ProtocolReader(feed.readline)
    reader.read_init()
    snap = reader.read_turn()
    assert snap.income == 2
    assert snap.enemy_barracks[0].creep_type == CreepType.ARCHER


def test_player_answers_every_turn_until_input_closes():
    stdin = io.StringIO("\n".join(INIT + turn(QUEENS) + turn(QUEENS)) + "\n")
    stdout = io.StringIO()
    assert run("rush", stdin, stdout) == 2
    out = stdout.getvalue().splitlines()
    assert len(out) == 4
    assert out[0] == "BUILD 0 BARRACKS-KNIGHT"
    assert out[1] == "TRAIN"
