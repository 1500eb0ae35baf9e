"""Referee side of the line protocol: world -> per-player text, text -> Command."""
from typing import List

from .combat import touched_obstacle
from .config import DEFAULT_RULES, Rules
from .geometry import Vector2
from .model import (BUILD_KINDS, Barracks, Command, Mine, Owner, ProtocolError, QueenAction, Side,
                    State, StructureType, Tower, structure_type_of)


def _owner_code(owner: Side, side: Side) -> int:
    return int(Owner.ALLY if owner == side else Owner.ENEMY)


def encode_init(state: State, side: Side) -> List[str]:
    """Obstacle layout, sent once per match."""
    lines = [str(len(state.obstacles))]
    for o in state.obstacles.values():
        x, y = o.location.as_ints()
        lines.append(f"{o.obstacle_id} {x} {y} {o.radius}")
    return lines


def encode_turn(state: State, side: Side, rules: Rules = DEFAULT_RULES) -> List[str]:
    """Per-turn input for one player; ownership is relative to that player."""
    touched = touched_obstacle(state, side, rules)
    lines = [f"{state.players[side].gold} {touched.obstacle_id if touched else -1}"]

    for o in state.obstacles.values():
        s = o.structure
        stype = int(structure_type_of(s))
        if isinstance(s, Mine):
            toks = [stype, _owner_code(s.owner, side), s.income_rate, -1]
        elif isinstance(s, Tower):
            toks = [stype, _owner_code(s.owner, side), s.health, int(s.attack_radius(o, rules))]
        elif isinstance(s, Barracks):
            toks = [stype, _owner_code(s.owner, side), s.cooldown, int(s.creep_type)]
        else:
            toks = [int(StructureType.NONE), int(Owner.NEUTRAL), -1, -1]
        lines.append(" ".join(str(t) for t in [o.obstacle_id, o.gold, o.max_mine_size] + toks))

    units = sorted(state.units.values(), key=lambda u: (not u.is_queen, u.side != side))
    units = [u for u in units if not u.is_dead]
    lines.append(str(len(units)))
    for u in units:
        x, y = u.location.as_ints()
        creep = -1 if u.creep_type is None else int(u.creep_type)
        lines.append(f"{x} {y} {_owner_code(u.side, side)} {creep} {u.health}")
    return lines


def decode_queen_action(line: str) -> QueenAction:
    toks = line.split()
    if not toks:
        raise ProtocolError("empty queen action")
    verb = toks[0].upper()
    try:
        if verb == "WAIT" and len(toks) == 1:
            return QueenAction.wait()
        if verb == "MOVE" and len(toks) == 3:
            return QueenAction.move(Vector2(float(int(toks[1])), float(int(toks[2]))))
        if verb == "BUILD" and len(toks) == 3 and toks[2] in BUILD_KINDS:
            return QueenAction.build_on(int(toks[1]), toks[2])
    except ValueError as exc:
        raise ProtocolError(f"bad queen action {line!r}") from exc
    raise ProtocolError(f"bad queen action {line!r}")


def decode_train(line: str) -> List[int]:
    toks = line.split()
    if not toks or toks[0].upper() != "TRAIN":
        raise ProtocolError(f"bad train line {line!r}")
    try:
        return [int(t) for t in toks[1:]]
    except ValueError as exc:
        raise ProtocolError(f"bad train line {line!r}") from exc


def decode_command(side: Side, lines: List[str]) -> Command:
    """Parse the two command lines a player prints each turn."""
    if len(lines) != 2:
        raise ProtocolError(f"expected 2 lines, got {len(lines)}")
    return Command(side=side, queen_action=decode_queen_action(lines[0]), train_ids=decode_train(lines[1]))
