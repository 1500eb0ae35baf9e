"""Full matches through the text protocol."""
import pytest

from bots.decision import Decision
from bots.strategy import BOTS, Bot
from engine.model import IntegrityError
from runtime.cli import main
from runtime.match import Match


class BrokenBot(Bot):
    name = "broken"

    def decide(self, snapshot, grid):
        raise ValueError("no idea")


class LeavingBot(Bot):
    """Prints a target no referee will accept."""
    name = "leaving"

    def decide(self, snapshot, grid):
        return Decision(train_ids=[-7])


@pytest.mark.parametrize("blue,red", [("priority", "rush"), ("mines", "threshold")])
def test_match_always_ends(blue, red):
    result = Match(5, blue, red, max_turns=40).play()
    assert result.winner in {"BLUE", "RED", "DRAW"}
    assert result.turns <= 40
    assert set(result.health) == {"BLUE", "RED"}


@pytest.mark.parametrize("name", sorted(BOTS))
def test_every_strategy_plays_without_errors(name):
    match = Match(3, name, "rush", max_turns=30)
    events = []
    while not match.is_over:
        events.extend(match.play_turn())
    assert not [e for e in events if e.kind == "BotError"]


def test_broken_bot_waits_and_the_match_goes_on():
    match = Match(9, BrokenBot(), "rush", max_turns=5)
    events = []
    while not match.is_over:
        events.extend(match.play_turn())
    errors = [e for e in events if e.kind == "BotError"]
    assert len(errors) == 5
    assert all(e.data["side"] == "BLUE" for e in errors)
    assert match.state.turn == 5


def test_bad_train_target_is_rejected_not_fatal():
    match = Match(9, LeavingBot(), "rush", max_turns=2)
    evts = match.play_turn()
    assert any(e.kind == "OrderRejected" for e in evts)
    assert not [e for e in evts if e.kind == "BotError"]


def test_finished_match_plays_no_more_turns():
    match = Match(4, "rush", "rush", max_turns=2)
    match.play()
    assert match.play_turn() == []


def test_engine_integrity_errors_propagate():
    match = Match(4, "rush", "rush", max_turns=5)
    del match.state.units[match.state.players["RED"].queen_id]
    with pytest.raises(IntegrityError):
        match.play_turn()


def test_cli_prints_the_result(capsys):
    assert main(["--seed", "2", "--blue", "mines", "--red", "rush", "--max-turns", "10",
                 "--log-level", "WARNING"]) == 0
    out = capsys.readouterr().out.strip()
    assert out.startswith("winner=")
    assert "turns=10" in out
