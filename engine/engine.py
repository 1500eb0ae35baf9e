import logging
from typing import Dict, List, Optional

from .combat import BEHAVIOURS, fix_collisions, touched_obstacle, touching, tower_attacks
from .config import DEFAULT_RULES, Rules
from .geometry import Vector2
from .model import (CREEP_TYPES, Barracks, Command, CreepType, Event, Mine, Obstacle,
                    Side, SIDES, State, Tower, Unit)
from .rng import DRNG

log = logging.getLogger(__name__)


class Engine:
    """Pure, deterministic simulation engine. One instance per match."""

    def __init__(self, seed: int, initial_state: State, rules: Rules = DEFAULT_RULES):
        self.state = initial_state
        self.rules = rules
        self._rng = DRNG(seed)
        self._pending: Dict[str, Command] = {}
        self._next_creep = 0

    def apply_orders(self, commands: List[Command]) -> None:
        """Queue commands to be applied on next step. A later command replaces an earlier one per side."""
        for c in commands:
            self._pending[c.side] = c

    # --- orders --------------------------------------------------------

    def _reject(self, side: Side, reason: str, **data) -> Event:
        log.debug("[%s] order rejected: %s %s", side, reason, data)
        return Event("OrderRejected", self.state.turn, {"side": side, "reason": reason, **data})

    def touches(self, unit: Unit, obstacle: Obstacle) -> bool:
        return touching(unit, obstacle, self.rules)

    def touched_obstacle(self, side: Side) -> Optional[Obstacle]:
        return touched_obstacle(self.state, side, self.rules)

    def _build(self, side: Side, obstacle: Obstacle, build: str) -> List[Event]:
        r = self.rules
        s = obstacle.structure
        if isinstance(s, Tower) and s.owner != side:
            return [self._reject(side, "enemy tower", obstacle_id=obstacle.obstacle_id)]
        if isinstance(s, Barracks) and not s.is_ready:
            return [self._reject(side, "barracks busy", obstacle_id=obstacle.obstacle_id)]

        if build == "MINE":
            if obstacle.gold <= 0:
                return [self._reject(side, "no gold", obstacle_id=obstacle.obstacle_id)]
            if isinstance(s, Mine) and s.owner == side:
                if s.is_fully_saturated(obstacle.max_mine_size):
                    return []
                s.income_rate += 1
                return [Event("MineGrown", self.state.turn,
                              {"obstacle_id": obstacle.obstacle_id, "income": s.income_rate})]
            obstacle.structure = Mine(owner=side)
        elif build == "TOWER":
            if isinstance(s, Tower) and s.owner == side:
                s.health = min(r.tower_hp_maximum, s.health + r.tower_hp_increment)
                return [Event("TowerGrown", self.state.turn,
                              {"obstacle_id": obstacle.obstacle_id, "hp": s.health})]
            obstacle.structure = Tower(owner=side, health=r.tower_hp_initial)
        elif build.startswith("BARRACKS-"):
            try:
                creep_type = CreepType[build[len("BARRACKS-"):]]
            except KeyError:
                return [self._reject(side, "unknown barracks", build=build)]
            obstacle.structure = Barracks(owner=side, creep_type=creep_type)
        else:
            return [self._reject(side, "unknown structure", build=build)]

        if s is not None:
            log.debug("[%s] replaced %s on obstacle %d", side, type(s).__name__, obstacle.obstacle_id)
        return [Event("StructureBuilt", self.state.turn,
                      {"side": side, "obstacle_id": obstacle.obstacle_id, "kind": build})]

    def _queen_action(self, cmd: Command) -> List[Event]:
        action = cmd.queen_action
        queen = self.state.queen_of(cmd.side)
        if action.kind == "MOVE":
            queen.location = queen.location.towards(action.target, queen.speed)
            return []
        if action.kind == "BUILD":
            obstacle = self.state.obstacles.get(action.obstacle_id)
            if obstacle is None:
                return [self._reject(cmd.side, "unknown obstacle", obstacle_id=action.obstacle_id)]
            if not self.touches(queen, obstacle):
                queen.location = queen.location.towards(obstacle.location, queen.speed)
                return []
            return self._build(cmd.side, obstacle, action.build)
        return []

    def _train(self, cmd: Command) -> List[Event]:
        evts: List[Event] = []
        player = self.state.players[cmd.side]
        for oid in dict.fromkeys(cmd.train_ids):
            obstacle = self.state.obstacles.get(oid)
            rack = obstacle.structure if obstacle else None
            if not isinstance(rack, Barracks) or rack.owner != cmd.side:
                evts.append(self._reject(cmd.side, "not own barracks", obstacle_id=oid))
                continue
            if not rack.is_ready:
                evts.append(self._reject(cmd.side, "barracks busy", obstacle_id=oid))
                continue
            spec = CREEP_TYPES[rack.creep_type]
            if spec.cost > player.gold:
                evts.append(self._reject(cmd.side, "not enough gold", obstacle_id=oid))
                continue
            player.gold -= spec.cost
            rack.cooldown = spec.build_time
            rack.training = True
            evts.append(Event("TrainingStarted", self.state.turn,
                              {"side": cmd.side, "obstacle_id": oid, "creep_type": rack.creep_type.name}))
        return evts

    def _apply_orders_now(self) -> List[Event]:
        """Process queued commands and return events."""
        evts: List[Event] = []
        for side in SIDES:
            cmd = self._pending.get(side)
            if cmd is None:
                continue
            evts += self._queen_action(cmd)
        for side in SIDES:
            cmd = self._pending.get(side)
            if cmd is None:
                continue
            evts += self._train(cmd)
        self._pending.clear()
        return evts

    # --- simulation ----------------------------------------------------

    def _creeps(self) -> List[Unit]:
        return [u for u in self.state.units.values() if not u.is_queen and not u.is_dead]

    def _move(self) -> None:
        """Advance every creep one full tick toward its target."""
        for u in self._creeps():
            BEHAVIOURS[u.kind].move(u, self.state, self.rules, 1.0)
        fix_collisions(self.state, self.rules)

    def _combat(self) -> List[Event]:
        evts: List[Event] = []
        for u in self._creeps():
            evts += BEHAVIOURS[u.kind].deal_damage(u, self.state, self.rules)
        evts += tower_attacks(self.state, self.rules)
        return evts

    def _remove_dead(self) -> List[Event]:
        evts: List[Event] = []
        for uid in [uid for uid, u in self.state.units.items() if not u.is_queen and u.is_dead]:
            del self.state.units[uid]
            evts.append(Event("Destroyed", self.state.turn, {"unit_id": uid}))
        return evts

    def _spawn(self, side: Side, creep_type: CreepType, obstacle: Obstacle) -> List[Event]:
        evts: List[Event] = []
        spec = CREEP_TYPES[creep_type]
        for i in range(spec.count):
            self._next_creep += 1
            uid = f"{side}-{creep_type.name}-{self._next_creep}"
            # fan the squad out so it does not stack on a single point
            offset = Vector2.random_circle(self._rng, obstacle.radius / 2) if i else Vector2.ZERO
            unit = Unit.creep(uid, side, creep_type, obstacle.location + offset)
            self.state.units[uid] = unit
            evts.append(Event("CreepSpawned", self.state.turn,
                              {"unit_id": uid, "side": side, "creep_type": creep_type.name,
                               "obstacle_id": obstacle.obstacle_id}))
        return evts

    def _upkeep(self) -> List[Event]:
        """Mines pay out, towers melt, barracks count down and release creeps."""
        evts: List[Event] = []
        r = self.rules
        for o in self.state.obstacles.values():
            s = o.structure
            if isinstance(s, Mine):
                mined = min(s.income_rate, o.gold)
                o.gold -= mined
                self.state.players[s.owner].gold += mined
                if o.gold <= 0:
                    o.structure = None
                    evts.append(Event("StructureLost", self.state.turn,
                                      {"obstacle_id": o.obstacle_id, "kind": "MINE", "reason": "depleted"}))
            elif isinstance(s, Tower):
                s.health -= r.tower_melt_rate
                if s.health <= 0:
                    o.structure = None
                    evts.append(Event("StructureLost", self.state.turn,
                                      {"obstacle_id": o.obstacle_id, "kind": "TOWER", "reason": "destroyed"}))
            elif isinstance(s, Barracks):
                if s.cooldown > 0:
                    s.cooldown -= 1
                if s.cooldown == 0 and s.training:
                    s.training = False
                    evts += self._spawn(s.owner, s.creep_type, o)
        return evts

    def _finalize(self) -> None:
        for u in self._creeps():
            BEHAVIOURS[u.kind].finalize_frame(u, self.state)

    def _check_winner(self) -> List[Event]:
        blue, red = self.state.players["BLUE"], self.state.players["RED"]
        winner = None
        if blue.health <= 0 and red.health <= 0:
            winner = "DRAW"
        elif blue.health <= 0:
            winner = "RED"
        elif red.health <= 0:
            winner = "BLUE"
        elif self.state.turn + 1 >= self.rules.max_turns:
            if blue.health == red.health:
                winner = "DRAW"
            else:
                winner = "BLUE" if blue.health > red.health else "RED"
        if winner is None:
            return []
        self.state.winner = winner
        log.info("match over after %d turns: %s", self.state.turn + 1, winner)
        return [Event("MatchOver", self.state.turn,
                      {"winner": winner, "health": {"BLUE": blue.health, "RED": red.health}})]

    def step(self) -> List[Event]:
        """Advance simulation by one tick."""
        if self.state.is_over:
            return []
        evts: List[Event] = []
        evts += self._apply_orders_now()
        self._move()
        evts += self._combat()
        evts += self._remove_dead()
        evts += self._upkeep()
        self._finalize()
        evts += self._check_winner()
        self.state.turn += 1
        return evts

    def snapshot(self) -> State:
        """Return current state."""
        return self.state
