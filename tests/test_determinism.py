"""Same seed and same strategies must replay identically."""
from runtime.match import Match


def run_events(seed, blue="priority", red="rush", turns=60):
    match = Match(seed, blue, red, max_turns=turns)
    events = []
    while not match.is_over:
        events.extend(match.play_turn())
    return match, events


def test_match_determinism():
    """Same seed and bots should produce identical event streams."""
    m1, events1 = run_events(42)
    m2, events2 = run_events(42)

    assert len(events1) == len(events2)
    for e1, e2 in zip(events1, events2):
        assert e1.kind == e2.kind
        assert e1.turn == e2.turn
        assert e1.data == e2.data
    assert m1.result() == m2.result()


def test_different_seeds_produce_different_maps():
    a, b = Match(1, "rush", "rush"), Match(2, "rush", "rush")
    layout_a = [(o.location, o.radius) for o in a.state.obstacles.values()]
    layout_b = [(o.location, o.radius) for o in b.state.obstacles.values()]
    assert layout_a != layout_b
