from __future__ import annotations

from functools import lru_cache
from typing import Any, Iterator

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import ConfigurationError, PersistenceError
from .models import Game, RowId, Season, SeasonTeamRecord, Team
from .settings import Settings, load_settings
from .standings import sort_standings
from .store import Store, StoreClient


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def get_store() -> Iterator[Store]:
    with StoreClient.from_settings(get_settings()) as client:
        yield client


def _season_to_dict(season: Season) -> dict[str, Any]:
    return {
        "id": season.id,
        "league_id": season.league_id,
        "season_no": season.season_no,
        "status": season.status,
        "week": season.week,
        "last_sim_local_date": season.last_sim_local_date,
        "auto_sim": season.sim_time_label,
    }


def _record_to_dict(team: Team, rec: SeasonTeamRecord) -> dict[str, Any]:
    return {
        "team_id": team.id,
        "team": team.name,
        "abbrev": team.abbrev,
        "gp": rec.games_played,
        "w": rec.wins,
        "l": rec.losses,
        "t": rec.ties,
        "tds_for": rec.tds_for,
        "tds_against": rec.tds_against,
        "td_diff": rec.td_diff,
        "yards_for": rec.yards_for,
        "yards_against": rec.yards_against,
    }


def _game_to_dict(game: Game, names: dict[RowId, str]) -> dict[str, Any]:
    return {
        "id": game.id,
        "week": game.week,
        "home": names.get(game.home_team_id, "Home"),
        "away": names.get(game.away_team_id, "Away"),
        "home_tds": game.home_tds,
        "away_tds": game.away_tds,
        "home_yards": game.home_yards,
        "away_yards": game.away_yards,
        "played_at": game.played_at,
    }


def _load_season(store: Store, season_id: RowId) -> Season:
    rows = store.select("seasons", [("id", "eq", season_id)], limit=1)
    if not rows:
        raise HTTPException(status_code=404, detail="Season not found")
    return Season.from_row(rows[0])


def _team_names(store: Store, league_id: RowId) -> dict[RowId, str]:
    return {row["id"]: str(row.get("name") or "") for row in store.select("teams", [("league_id", "eq", league_id)])}


app = FastAPI(title="HBFL Sim API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PersistenceError)
def persistence_error(_request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
def configuration_error(_request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/api/leagues/{league_id}/season")
def latest_season(league_id: str, store: Store = Depends(get_store)) -> dict[str, Any]:
    rows = store.select("seasons", [("league_id", "eq", league_id)], order="season_no.desc", limit=1)
    if not rows:
        raise HTTPException(status_code=404, detail="No season for league")
    return _season_to_dict(Season.from_row(rows[0]))


@app.get("/api/seasons/{season_id}/standings")
def standings(season_id: str, store: Store = Depends(get_store)) -> dict[str, Any]:
    season = _load_season(store, season_id)
    teams = {team.id: team for team in (Team.from_row(row) for row in store.select("teams", [("league_id", "eq", season.league_id)]))}
    records = {
        rec.team_id: rec
        for rec in (SeasonTeamRecord.from_row(row) for row in store.select("season_teams", [("season_id", "eq", season.id)]))
    }
    for team_id in teams:
        records.setdefault(team_id, SeasonTeamRecord(season_id=season.id, team_id=team_id))
    rows = [_record_to_dict(teams[rec.team_id], rec) for rec in sort_standings(records.values()) if rec.team_id in teams]
    return {"season": _season_to_dict(season), "rows": rows}


@app.get("/api/seasons/{season_id}/games")
def games(season_id: str, week: int | None = None, store: Store = Depends(get_store)) -> list[dict[str, Any]]:
    season = _load_season(store, season_id)
    filters = [("season_id", "eq", season.id)]
    if week is not None:
        filters.append(("week", "eq", week))
    names = _team_names(store, season.league_id)
    return [_game_to_dict(Game.from_row(row), names) for row in store.select("games", filters, order="week.asc,id.asc")]


@app.get("/api/games/{game_id}/log")
def game_log(game_id: str, store: Store = Depends(get_store)) -> list[str]:
    if not store.select("games", [("id", "eq", game_id)], columns="id", limit=1):
        raise HTTPException(status_code=404, detail="Game not found")
    return [str(row.get("message") or "") for row in store.select("game_logs", [("game_id", "eq", game_id)], order="id.asc")]
