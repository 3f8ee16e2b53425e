from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from .config import ACTIVE_STATUSES, COMPLETE_STATUS, GAME_LOG_LINE_CAP, SEASON_WEEKS, TEAMS_PER_LEAGUE
from .engine import GameResult, simulate_game
from .errors import PersistenceError, ValidationError
from .gate import LocalClock, is_trigger_time, local_clock, season_is_due
from .models import Game, GameLogLine, RowId, Season, SeasonTeamRecord, Team
from .schedule import build_round_robin_weeks
from .settings import Settings
from .standings import RecordDelta, apply_delta, result_deltas
from .store import Store

logger = logging.getLogger(__name__)

ALREADY_RAN = "already_ran"
COMPLETED = "completed"
ADVANCED = "advanced"


@dataclass(slots=True)
class AdvanceOutcome:
    season_id: RowId
    action: str
    week: int
    games_played: int = 0
    games_created: int = 0


@dataclass(slots=True)
class BatchReport:
    today: str
    outcomes: list[AdvanceOutcome] = field(default_factory=list)
    skipped: list[RowId] = field(default_factory=list)
    failed: list[RowId] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SeasonProgressionController:
    """Moves seasons forward one week per civil day against the store.

    Every step re-reads what it needs, so re-running a partially processed
    week only plays the games that are still unplayed.
    """

    def __init__(
        self,
        store: Store,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self._rng = rng or random.Random()
        self._clock = clock

    def run(self, today: str) -> BatchReport:
        report = BatchReport(today=today)
        rows = self.store.select("seasons", [("status", "in", ACTIVE_STATUSES)], order="id.asc")
        if not rows:
            logger.info("No active seasons.")
            return report

        for row in rows:
            season = Season.from_row(row)
            if not season_is_due(season, today):
                logger.info("Season %s already simmed for %s.", season.id, today)
                report.outcomes.append(AdvanceOutcome(season.id, ALREADY_RAN, season.week))
                continue
            try:
                report.outcomes.append(self.advance(season.id, today))
            except ValidationError as exc:
                logger.warning("Skipping season %s: %s", season.id, exc)
                report.skipped.append(season.id)
            except PersistenceError:
                logger.exception("Season %s stalled; it will be retried at the next trigger.", season.id)
                report.failed.append(season.id)
        return report

    def advance(self, season_id: RowId, today: str) -> AdvanceOutcome:
        season = self.load_season(season_id)
        if not season_is_due(season, today):
            logger.info("Season %s already simmed for %s.", season.id, today)
            return AdvanceOutcome(season.id, ALREADY_RAN, season.week)

        next_week = season.week + 1
        if next_week > SEASON_WEEKS:
            logger.info("Season %s regular season complete (week %s). Playoffs are not simulated.", season.id, season.week)
            self.store.update(
                "seasons",
                [("id", "eq", season.id)],
                {"status": COMPLETE_STATUS, "last_sim_local_date": today},
            )
            return AdvanceOutcome(season.id, COMPLETED, season.week)

        teams = self.load_teams(season.league_id)
        created = self.ensure_schedule(season, teams)

        games = [
            Game.from_row(row)
            for row in self.store.select(
                "games",
                [("season_id", "eq", season.id), ("week", "eq", next_week)],
                order="id.asc",
            )
        ]
        if not games:
            logger.info("No games found for season %s week %s.", season.id, next_week)

        teams_by_id = {team.id: team for team in teams}
        played = 0
        for game in games:
            if game.is_played:
                continue
            self.play_game(season, game, teams_by_id)
            played += 1

        self.store.update(
            "seasons",
            [("id", "eq", season.id)],
            {"week": next_week, "last_sim_local_date": today},
        )
        logger.info("Season %s advanced to week %s (%s games played).", season.id, next_week, played)
        return AdvanceOutcome(season.id, ADVANCED, next_week, games_played=played, games_created=created)

    def load_season(self, season_id: RowId) -> Season:
        rows = self.store.select("seasons", [("id", "eq", season_id)], limit=1)
        if not rows:
            raise ValidationError(f"Season {season_id} not found.")
        return Season.from_row(rows[0])

    def load_teams(self, league_id: RowId) -> list[Team]:
        teams = [Team.from_row(row) for row in self.store.select("teams", [("league_id", "eq", league_id)], order="id.asc")]
        if len(teams) != TEAMS_PER_LEAGUE:
            raise ValidationError(f"League {league_id} has {len(teams)} teams; expected {TEAMS_PER_LEAGUE}.")
        return teams

    def ensure_schedule(self, season: Season, teams: list[Team]) -> int:
        """Insert games for any of weeks 1..SEASON_WEEKS that have none; return rows created."""
        existing = self.store.select(
            "games",
            [("season_id", "eq", season.id), ("week", "gte", 1), ("week", "lte", SEASON_WEEKS)],
            columns="id,week",
        )
        weeks_present = {int(row["week"]) for row in existing}
        missing = [week for week in range(1, SEASON_WEEKS + 1) if week not in weeks_present]
        if not missing:
            return 0

        logger.info("Generating schedule for season %s weeks %s.", season.id, ", ".join(str(w) for w in missing))
        weeks = build_round_robin_weeks([team.id for team in teams], self._rng)
        rows = [
            {"season_id": season.id, "week": week, "home_team_id": home, "away_team_id": away}
            for week in missing
            for home, away in weeks[week - 1]
        ]
        self.store.insert("games", rows)
        return len(rows)

    def play_game(self, season: Season, game: Game, teams_by_id: dict[RowId, Team]) -> GameResult:
        home = teams_by_id.get(game.home_team_id) or Team(id=game.home_team_id, league_id=season.league_id, name="Home")
        away = teams_by_id.get(game.away_team_id) or Team(id=game.away_team_id, league_id=season.league_id, name="Away")
        result = simulate_game(home, away, self._rng)

        # played_at is the commit point: a failure before it leaves the game unplayed for the retry.
        home_delta, away_delta = result_deltas(result)
        self.apply_record_delta(season.id, home.id, home_delta)
        self.apply_record_delta(season.id, away.id, away_delta)
        self.store.update(
            "games",
            [("id", "eq", game.id)],
            {
                "home_tds": result.home_tds,
                "away_tds": result.away_tds,
                "home_yards": result.home_yards,
                "away_yards": result.away_yards,
                "played_at": self._clock().isoformat(),
            },
        )
        lines = [GameLogLine(game.id, message).to_row() for message in result.log[:GAME_LOG_LINE_CAP]]
        self.store.insert("game_logs", lines)
        logger.info("%s", result.log[-1])
        return result

    def apply_record_delta(self, season_id: RowId, team_id: RowId, delta: RecordDelta) -> SeasonTeamRecord:
        filters = [("season_id", "eq", season_id), ("team_id", "eq", team_id)]
        rows = self.store.select("season_teams", filters, limit=1)
        if rows:
            record = SeasonTeamRecord.from_row(rows[0])
        else:
            record = SeasonTeamRecord(season_id=season_id, team_id=team_id)
            self.store.insert("season_teams", [record.to_row()])

        apply_delta(record, delta)
        self.store.update("season_teams", filters, record.counters())
        return record


def run_daily_tick(
    controller: SeasonProgressionController,
    settings: Settings,
    now: datetime | None = None,
    force: bool = False,
) -> BatchReport | None:
    """Run the batch if the wall clock is at the trigger minute; None means it was not."""
    clock: LocalClock = local_clock(settings.sim_timezone, now)
    if not force and not is_trigger_time(clock, settings.sim_hour, settings.sim_minute):
        logger.info("Not sim time. Local now %s.", clock.label)
        return None
    return controller.run(clock.iso_date)
