from __future__ import annotations

import random
from typing import Hashable, Iterable, TypeVar

from .errors import ValidationError

T = TypeVar("T", bound=Hashable)

Week = list[tuple[T, T]]


def _single_round_weeks(team_ids: list[T]) -> list[Week]:
    """One full round-robin: every pair meets once across len(team_ids) - 1 weeks."""
    half = len(team_ids) // 2
    fixed = team_ids[0]
    rotating = team_ids[1:]
    weeks: list[Week] = []

    for round_idx in range(len(team_ids) - 1):
        # Circle method: the anchor plus the front of the ring face the reversed back of the ring.
        left = [fixed, *rotating[: half - 1]]
        right = list(reversed(rotating[half - 1 :]))
        week: Week = []
        for home, away in zip(left, right):
            # Alternate site orientation by round to avoid long home/away streaks.
            if round_idx % 2 == 1:
                home, away = away, home
            week.append((home, away))
        weeks.append(week)

        rotating = [rotating[-1], *rotating[:-1]]

    return weeks


def build_round_robin_weeks(team_ids: Iterable[T], rng: random.Random | None = None) -> list[Week]:
    """Build a season of len(team_ids) weeks of (home, away) pairs.

    The first N - 1 weeks are a pure round-robin. The final week repeats a
    randomly chosen earlier week with home and away swapped, so every team
    plays one opponent twice (once at each site).
    """
    ids = list(team_ids)
    if len(ids) < 2 or len(ids) % 2 != 0:
        raise ValidationError(f"Round-robin scheduling needs an even number of teams, got {len(ids)}.")
    if len(set(ids)) != len(ids):
        raise ValidationError("Round-robin scheduling needs distinct team ids.")

    rng = rng or random.Random()
    weeks = _single_round_weeks(ids)
    rematch = rng.choice(weeks)
    weeks.append([(away, home) for home, away in rematch])
    return weeks


def build_round_robin(team_ids: Iterable[T], rng: random.Random | None = None) -> list[tuple[T, T]]:
    return [game for week in build_round_robin_weeks(team_ids, rng) for game in week]
