from datetime import datetime, timedelta, timezone

from trivia_backend.domain.model import Player
from trivia_backend.domain.scoring import award_points, pick_winner, score_snapshot


def test_award_points_decays_with_time():
    assert award_points(True, 30) == 10
    assert award_points(True, 18) == 6
    assert award_points(True, 17.9) == 5


def test_award_points_floor_is_one_for_correct():
    assert award_points(True, 0) == 1
    assert award_points(True, 2.5) == 1


def test_wrong_answer_scores_nothing():
    assert award_points(False, 30) == 0


def test_pick_winner_highest_score():
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    players = [
        Player("a", 1, "Alice", score=3, joined_at=t0),
        Player("b", 1, "Bob", score=7, joined_at=t0 + timedelta(seconds=1)),
    ]
    assert pick_winner(players).player_name == "Bob"


def test_pick_winner_tie_goes_to_earliest_joiner():
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    players = [
        Player("b", 1, "Bob", score=5, joined_at=t0 + timedelta(seconds=2)),
        Player("a", 1, "Alice", score=5, joined_at=t0),
    ]
    assert pick_winner(players).player_name == "Alice"


def test_pick_winner_empty():
    assert pick_winner([]) is None


def test_score_snapshot_keys_by_player_id():
    players = [Player("a", 1, "Alice", score=2), Player("b", 1, "Bob")]
    assert score_snapshot(players) == {"a": 2, "b": 0}
