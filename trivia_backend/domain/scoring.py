"""Scoring helpers for trivia rounds."""

from __future__ import annotations

import math
from typing import Dict, Iterable, Optional

from .model import Player


def award_points(correct: bool, time_remaining: float) -> int:
    """Time-decayed reward: a third of the seconds left, at least one point."""
    if not correct:
        return 0
    return max(1, math.floor(time_remaining / 3))


def score_snapshot(players: Iterable[Player]) -> Dict[str, int]:
    return {p.player_id: p.score for p in players}


def pick_winner(players: Iterable[Player]) -> Optional[Player]:
    """Highest score wins; ties go to whoever joined first."""
    ranked = sorted(
        enumerate(players),
        key=lambda item: (-item[1].score, item[1].joined_at, item[0]),
    )
    return ranked[0][1] if ranked else None
