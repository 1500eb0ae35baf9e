import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from bots.protocol import ProtocolReader, format_decision
from bots.strategy import BOTS, make_bot
from engine.model import Barracks, IntegrityError, Mine, ProtocolError, State, Tower
from runtime.match import Match
from runtime.runner import TickRunner

from .schemas import DecideRequest, DecideResponse, EventsResponse, StartRequest

log = logging.getLogger(__name__)

app = FastAPI(title="Code Royale")
runner: Optional[TickRunner] = None

# Vite dev servers by default
cors_origins = os.environ.get(
    "ROYALE_CORS_ORIGINS", "http://localhost:5173,http://localhost:5174,http://localhost:5175")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

static_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "static")
if os.path.exists(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir), name="static")


def _structure_dict(structure) -> Optional[dict]:
    if isinstance(structure, Mine):
        return {"kind": "MINE", "owner": structure.owner, "income": structure.income_rate}
    if isinstance(structure, Tower):
        return {"kind": "TOWER", "owner": structure.owner, "health": structure.health}
    if isinstance(structure, Barracks):
        return {"kind": "BARRACKS", "owner": structure.owner, "creep_type": structure.creep_type.name,
                "cooldown": structure.cooldown}
    return None


def _state_dict(s: State) -> dict:
    return {
        "turn": s.turn,
        "winner": s.winner,
        "players": {
            side: {"gold": p.gold, "health": p.health} for side, p in s.players.items()
        },
        "obstacles": [
            {"id": o.obstacle_id, "x": o.location.x, "y": o.location.y, "radius": o.radius,
             "gold": o.gold, "max_mine_size": o.max_mine_size, "structure": _structure_dict(o.structure)}
            for o in s.obstacles.values()
        ],
        "units": {
            uid: {"id": u.id, "side": u.side, "kind": u.kind.name, "x": u.location.x, "y": u.location.y,
                  "health": u.health, "attack_target": u.attack_target}
            for uid, u in s.units.items()
        },
    }


async def _start(req: StartRequest) -> None:
    global runner
    try:
        match = Match(req.seed, req.blue, req.red, max_turns=req.max_turns)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    runner = TickRunner(match, tick_ms=500, time_compression=30.0)
    await runner.start()


def _require_runner() -> TickRunner:
    if not runner:
        raise HTTPException(400, "Match not started")
    return runner


@app.get("/")
async def root():
    """Serve the web interface if there is one."""
    index_path = os.path.join(static_dir, "index.html")
    if os.path.exists(index_path):
        return FileResponse(index_path)
    return {"message": "Code Royale match server - visit /docs for API documentation",
            "strategies": sorted(BOTS)}


@app.on_event("startup")
async def startup():
    """Start a default match on app startup."""
    await _start(StartRequest())


@app.on_event("shutdown")
async def shutdown():
    """Stop the match on app shutdown."""
    if runner:
        await runner.stop()


@app.post("/match/start")
async def start_match(req: StartRequest):
    """Start a new match with the given seed and strategies, replacing the running one."""
    await shutdown()
    await _start(req)
    return {"battle_id": "local", "seed": req.seed, "blue": req.blue, "red": req.red}


@app.get("/match/local/state")
async def get_state():
    """Get current match state snapshot."""
    s = await _require_runner().snapshot()
    return _state_dict(s)


@app.get("/match/local/events")
async def get_events(since: int = 0, limit: int = 500, kind: Optional[str] = None):
    """Get events since offset; kind is an optional comma-separated filter."""
    r = _require_runner()
    kinds = set(kind.split(",")) if kind else None
    evts, next_offset = r.events.since(since, limit, kinds)
    return EventsResponse(
        next_offset=next_offset,
        events=[{"kind": e.kind, "turn": e.turn, "data": e.data} for e in evts]
    )


@app.post("/match/local/time-control")
async def set_time_control(time_compression: float):
    """Set simulation time compression (1.0 = real-time, higher = faster)."""
    r = _require_runner()
    r.set_time_compression(time_compression)
    return {"time_compression": r.time_compression}


@app.get("/match/local/time-control")
async def get_time_control():
    """Get current time compression setting."""
    return {"time_compression": _require_runner().time_compression}


@app.get("/bots")
async def list_bots():
    return {"strategies": sorted(BOTS)}


@app.post("/bots/{name}/decide", response_model=DecideResponse)
async def decide(name: str, req: DecideRequest):
    """Run one strategy on a single turn of protocol text; nothing is kept between calls."""
    try:
        bot = make_bot(name)
        reader = ProtocolReader.from_lines(req.init + req.turn)
        reader.read_init()
        snapshot = reader.read_turn()
        lines = format_decision(bot.play(snapshot))
    except (ProtocolError, IntegrityError, ValueError, LookupError, ArithmeticError, TypeError,
            AttributeError) as exc:
        raise HTTPException(400, str(exc)) from exc
    log.debug("decide %s -> %s", name, lines)
    return DecideResponse(lines=lines)
