from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pytz

from .config import ACTIVE_STATUSES
from .models import Season


@dataclass(slots=True, frozen=True)
class LocalClock:
    """Civil date and wall-clock time in the league's timezone."""

    iso_date: str
    hour: int
    minute: int
    timezone: str

    @property
    def label(self) -> str:
        return f"{self.iso_date} {self.hour}:{self.minute:02d} {self.timezone}"


def local_clock(timezone: str, now: datetime | None = None) -> LocalClock:
    """Convert an instant (default: now) to civil time in ``timezone``.

    Naive datetimes are taken to be UTC.
    """
    tz = pytz.timezone(timezone)
    if now is None:
        local = datetime.now(tz)
    elif now.tzinfo is None:
        local = pytz.utc.localize(now).astimezone(tz)
    else:
        local = now.astimezone(tz)
    return LocalClock(iso_date=local.date().isoformat(), hour=local.hour, minute=local.minute, timezone=timezone)


def is_trigger_time(clock: LocalClock, sim_hour: int, sim_minute: int) -> bool:
    return clock.hour == sim_hour and clock.minute == sim_minute


def season_is_due(season: Season, today: str) -> bool:
    # One advancement per civil date; terminal seasons never advance.
    if season.status not in ACTIVE_STATUSES:
        return False
    return season.last_sim_local_date != today
