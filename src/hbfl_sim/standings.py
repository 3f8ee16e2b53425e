from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .engine import AWAY, HOME, GameResult
from .models import RECORD_COUNTERS, SeasonTeamRecord


@dataclass(slots=True, frozen=True)
class RecordDelta:
    """What one game adds to one team's season record."""

    wins: int = 0
    losses: int = 0
    ties: int = 0
    tds_for: int = 0
    tds_against: int = 0
    yards_for: int = 0
    yards_against: int = 0


def result_deltas(result: GameResult) -> tuple[RecordDelta, RecordDelta]:
    """Return (home, away) deltas for a finished game."""
    winner = result.winner
    home_won = winner == HOME
    away_won = winner == AWAY
    tied = not home_won and not away_won
    home = RecordDelta(
        wins=int(home_won),
        losses=int(away_won),
        ties=int(tied),
        tds_for=result.home_tds,
        tds_against=result.away_tds,
        yards_for=result.home_yards,
        yards_against=result.away_yards,
    )
    away = RecordDelta(
        wins=int(away_won),
        losses=int(home_won),
        ties=int(tied),
        tds_for=result.away_tds,
        tds_against=result.home_tds,
        yards_for=result.away_yards,
        yards_against=result.home_yards,
    )
    return home, away


def apply_delta(record: SeasonTeamRecord, delta: RecordDelta) -> SeasonTeamRecord:
    # Counters only ever grow; earlier weeks stay in the totals.
    for name in RECORD_COUNTERS:
        setattr(record, name, getattr(record, name) + getattr(delta, name))
    return record


def apply_result(
    home_record: SeasonTeamRecord,
    away_record: SeasonTeamRecord,
    result: GameResult,
) -> tuple[SeasonTeamRecord, SeasonTeamRecord]:
    home_delta, away_delta = result_deltas(result)
    return apply_delta(home_record, home_delta), apply_delta(away_record, away_delta)


def sort_standings(records: Iterable[SeasonTeamRecord]) -> list[SeasonTeamRecord]:
    return sorted(
        records,
        key=lambda r: (r.wins, r.td_diff, r.tds_for),
        reverse=True,
    )
