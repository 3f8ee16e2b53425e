from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from .config import LEAGUE_NAME, TEAM_POOL, TEAMS_PER_LEAGUE
from .errors import PersistenceError
from .models import League, Season, SeasonTeamRecord, Team
from .settings import Settings
from .store import Store

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SeededLeague:
    league: League
    season: Season
    teams: list[Team]


def draw_team_names(rng: random.Random, count: int = TEAMS_PER_LEAGUE) -> list[tuple[str, str]]:
    pool = list(TEAM_POOL)
    rng.shuffle(pool)
    return pool[:count]


def _single(rows: list[dict], table: str) -> dict:
    if not rows:
        raise PersistenceError(f"Insert into {table} returned no rows", method="POST", path=table)
    return rows[0]


def create_league(
    store: Store,
    commissioner: str,
    settings: Settings,
    rng: random.Random | None = None,
) -> SeededLeague:
    """Create a league, its teams, season 1 and a zeroed record per team."""
    rng = rng or random.Random()
    league = League.from_row(_single(store.insert("leagues", [{"name": LEAGUE_NAME, "commissioner": commissioner}]), "leagues"))

    team_rows = store.insert(
        "teams",
        [{"league_id": league.id, "name": name, "abbrev": abbrev} for name, abbrev in draw_team_names(rng)],
    )
    teams = [Team.from_row(row) for row in team_rows]

    season_row = _single(
        store.insert(
            "seasons",
            [
                {
                    "league_id": league.id,
                    "season_no": 1,
                    "status": "regular",
                    "week": 0,
                    "last_sim_local_date": None,
                    "sim_hour": settings.sim_hour,
                    "sim_min": settings.sim_minute,
                    "tz": settings.sim_timezone,
                }
            ],
        ),
        "seasons",
    )
    season = Season.from_row(season_row)
    store.insert(
        "season_teams",
        [SeasonTeamRecord(season_id=season.id, team_id=team.id).to_row() for team in teams],
    )

    logger.info("Created league %s (%s) with %s teams, season %s.", league.id, league.name, len(teams), season.id)
    return SeededLeague(league=league, season=season, teams=teams)
