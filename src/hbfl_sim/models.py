from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .config import (
    DEFAULT_DEFENSE,
    DEFAULT_OFFENSE,
    DEFAULT_SIM_HOUR,
    DEFAULT_SIM_MINUTE,
    DEFAULT_SIM_TIMEZONE,
    DEFAULT_STYLE,
    STYLES,
)

# Store keys are ints or uuid strings depending on how the tables were created.
RowId = Union[int, str]

RECORD_COUNTERS: tuple[str, ...] = (
    "wins",
    "losses",
    "ties",
    "tds_for",
    "tds_against",
    "yards_for",
    "yards_against",
)


def _int(value: Any, fallback: int = 0) -> int:
    if value is None:
        return fallback
    return int(value)


def _rating(value: Any, fallback: float) -> float:
    if value is None:
        return fallback
    return max(0.0, min(100.0, float(value)))


def normalize_style(value: Any) -> str:
    style = str(value or DEFAULT_STYLE).strip().lower()
    return style if style in STYLES else DEFAULT_STYLE


@dataclass(slots=True)
class League:
    id: RowId
    name: str
    commissioner: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> League:
        return cls(id=row["id"], name=str(row.get("name") or ""), commissioner=row.get("commissioner"))


@dataclass(slots=True)
class Season:
    id: RowId
    league_id: RowId
    season_no: int = 1
    status: str = "regular"
    week: int = 0
    last_sim_local_date: str | None = None
    sim_hour: int = DEFAULT_SIM_HOUR
    sim_min: int = DEFAULT_SIM_MINUTE
    tz: str = DEFAULT_SIM_TIMEZONE

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Season:
        return cls(
            id=row["id"],
            league_id=row["league_id"],
            season_no=_int(row.get("season_no"), 1),
            status=str(row.get("status") or "regular"),
            week=_int(row.get("week")),
            last_sim_local_date=row.get("last_sim_local_date"),
            sim_hour=_int(row.get("sim_hour"), DEFAULT_SIM_HOUR),
            sim_min=_int(row.get("sim_min"), DEFAULT_SIM_MINUTE),
            tz=str(row.get("tz") or DEFAULT_SIM_TIMEZONE),
        )

    @property
    def sim_time_label(self) -> str:
        return f"{self.sim_hour:02d}:{self.sim_min:02d} {self.tz}"


@dataclass(slots=True)
class Team:
    id: RowId
    league_id: RowId
    name: str
    abbrev: str = ""
    offense: float = DEFAULT_OFFENSE
    defense: float = DEFAULT_DEFENSE
    off_style: str = DEFAULT_STYLE
    def_style: str = DEFAULT_STYLE

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Team:
        return cls(
            id=row["id"],
            league_id=row["league_id"],
            name=str(row.get("name") or ""),
            abbrev=str(row.get("abbrev") or ""),
            offense=_rating(row.get("offense"), DEFAULT_OFFENSE),
            defense=_rating(row.get("defense"), DEFAULT_DEFENSE),
            off_style=normalize_style(row.get("off_style")),
            def_style=normalize_style(row.get("def_style")),
        )


@dataclass(slots=True)
class SeasonTeamRecord:
    season_id: RowId
    team_id: RowId
    wins: int = 0
    losses: int = 0
    ties: int = 0
    tds_for: int = 0
    tds_against: int = 0
    yards_for: int = 0
    yards_against: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> SeasonTeamRecord:
        return cls(
            season_id=row["season_id"],
            team_id=row["team_id"],
            **{name: _int(row.get(name)) for name in RECORD_COUNTERS},
        )

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def td_diff(self) -> int:
        return self.tds_for - self.tds_against

    @property
    def yard_diff(self) -> int:
        return self.yards_for - self.yards_against

    def counters(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in RECORD_COUNTERS}

    def to_row(self) -> dict[str, Any]:
        return {"season_id": self.season_id, "team_id": self.team_id, **self.counters()}


@dataclass(slots=True)
class Game:
    id: RowId
    season_id: RowId
    week: int
    home_team_id: RowId
    away_team_id: RowId
    home_tds: int | None = None
    away_tds: int | None = None
    home_yards: int | None = None
    away_yards: int | None = None
    played_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Game:
        return cls(
            id=row["id"],
            season_id=row["season_id"],
            week=_int(row.get("week")),
            home_team_id=row["home_team_id"],
            away_team_id=row["away_team_id"],
            home_tds=row.get("home_tds"),
            away_tds=row.get("away_tds"),
            home_yards=row.get("home_yards"),
            away_yards=row.get("away_yards"),
            played_at=row.get("played_at"),
        )

    @property
    def is_played(self) -> bool:
        return bool(self.played_at)


@dataclass(slots=True)
class GameLogLine:
    game_id: RowId
    message: str

    def to_row(self) -> dict[str, Any]:
        return {"game_id": self.game_id, "message": self.message}
