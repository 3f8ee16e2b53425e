from __future__ import annotations

import random
from dataclasses import dataclass, field

from .config import MAX_OVERTIME_ROUNDS, POSSESSIONS_PER_SIDE
from .models import Team

TURNOVER = "turnover"
TOUCHDOWN = "touchdown"
FIELD_GOAL = "field_goal"
PUNT = "punt"

HOME = "home"
AWAY = "away"
TIE = "tie"

# Multipliers on touchdown, turnover and big-play odds for the side with the ball.
OFFENSE_STYLE_EFFECTS: dict[str, dict[str, float]] = {
    "aggressive": {"td": 1.12, "turnover": 1.18, "big_play": 1.20},
    "passive": {"td": 0.92, "turnover": 0.82, "big_play": 0.85},
    "neutral": {"td": 1.0, "turnover": 1.0, "big_play": 1.0},
}

# Same multipliers contributed by the defending side. Aggressive defenses force
# turnovers but give up more big plays.
DEFENSE_STYLE_EFFECTS: dict[str, dict[str, float]] = {
    "aggressive": {"td": 0.94, "turnover": 1.15, "big_play": 1.10},
    "passive": {"td": 0.97, "turnover": 0.90, "big_play": 0.85},
    "neutral": {"td": 1.0, "turnover": 1.0, "big_play": 1.0},
}

MIN_DRIVE_CHANCE = 0.10
MAX_DRIVE_CHANCE = 0.90

# Yardage ranges as (low, span); a draw is low + floor(U * span).
TURNOVER_YARDS = (5, 30)
TOUCHDOWN_YARDS = (55, 25)
BIG_PLAY_TOUCHDOWN_YARDS = (45, 35)
FIELD_GOAL_YARDS = (35, 35)
PUNT_YARDS = (5, 25)
BIG_PLAY_GATE = 0.20


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _draw_yards(yard_range: tuple[int, int], rng: random.Random) -> int:
    low, span = yard_range
    return int(low + rng.random() * span)


@dataclass(slots=True, frozen=True)
class StyleModifiers:
    td_mult: float = 1.0
    turnover_mult: float = 1.0
    big_play_mult: float = 1.0


@dataclass(slots=True, frozen=True)
class PossessionOdds:
    turnover: float
    touchdown: float
    field_goal: float
    big_play: float

    @property
    def punt(self) -> float:
        return max(0.0, 1.0 - self.turnover - self.touchdown - self.field_goal)


@dataclass(slots=True)
class Possession:
    offense: str
    outcome: str
    yards: int
    message: str

    @property
    def touchdowns(self) -> int:
        return 1 if self.outcome == TOUCHDOWN else 0


@dataclass(slots=True)
class GameResult:
    home_name: str
    away_name: str
    home_tds: int = 0
    away_tds: int = 0
    home_yards: int = 0
    away_yards: int = 0
    overtime_rounds: int = 0
    log: list[str] = field(default_factory=list)

    @property
    def winner(self) -> str:
        if self.home_tds > self.away_tds:
            return HOME
        if self.away_tds > self.home_tds:
            return AWAY
        return TIE

    @property
    def is_tie(self) -> bool:
        return self.winner == TIE


def drive_success_chance(offense: float, defense: float) -> float:
    """Chance an offense wins its matchup against a defense, ratings on a 0-100 scale.

    Saturating in the rating gap: a 20 point edge gives about 0.70, a 50 point
    edge about 0.80. Symmetric, so chance(a, b) + chance(b, a) == 1.
    """
    delta = offense / 10.0 - defense / 10.0
    gap = abs(delta)
    chance = 0.5 + 0.45 * gap / (gap + 2.5)
    if delta < 0:
        chance = 1.0 - chance
    return _clamp(chance, MIN_DRIVE_CHANCE, MAX_DRIVE_CHANCE)


def style_modifiers(off_style: str | None, def_style: str | None) -> StyleModifiers:
    neutral = OFFENSE_STYLE_EFFECTS["neutral"]
    off = OFFENSE_STYLE_EFFECTS.get((off_style or "neutral").lower(), neutral)
    dfn = DEFENSE_STYLE_EFFECTS.get((def_style or "neutral").lower(), neutral)
    return StyleModifiers(
        td_mult=off["td"] * dfn["td"],
        turnover_mult=off["turnover"] * dfn["turnover"],
        big_play_mult=off["big_play"] * dfn["big_play"],
    )


def possession_odds(chance: float, mods: StyleModifiers) -> PossessionOdds:
    # Overmatched offenses turn it over more often.
    return PossessionOdds(
        turnover=_clamp((1.0 - chance) * 0.35 * mods.turnover_mult, 0.03, 0.22),
        touchdown=_clamp(chance * 0.32 * mods.td_mult, 0.10, 0.55),
        field_goal=_clamp(chance * 0.22, 0.05, 0.35),
        big_play=_clamp(chance * 0.18 * mods.big_play_mult, 0.05, 0.45),
    )


def simulate_possession(offense: Team, defense: Team, rng: random.Random) -> Possession:
    mods = style_modifiers(offense.off_style, defense.def_style)
    odds = possession_odds(drive_success_chance(offense.offense, defense.defense), mods)
    roll = rng.random()

    if roll < odds.turnover:
        yards = _draw_yards(TURNOVER_YARDS, rng)
        return Possession(offense.name, TURNOVER, yards, f"{offense.name} drive ends in a TURNOVER after {yards} yards.")

    if roll < odds.turnover + odds.touchdown:
        big_play = odds.big_play > BIG_PLAY_GATE and rng.random() < odds.big_play
        yards = _draw_yards(BIG_PLAY_TOUCHDOWN_YARDS if big_play else TOUCHDOWN_YARDS, rng)
        return Possession(offense.name, TOUCHDOWN, yards, f"{offense.name} punches in a TD! ({yards} yards)")

    if roll < odds.turnover + odds.touchdown + odds.field_goal:
        yards = _draw_yards(FIELD_GOAL_YARDS, rng)
        return Possession(offense.name, FIELD_GOAL, yards, f"{offense.name} settles for a FG drive. ({yards} yards)")

    yards = _draw_yards(PUNT_YARDS, rng)
    return Possession(offense.name, PUNT, yards, f"{offense.name} punts. ({yards} yards)")


def simulate_game(
    home: Team,
    away: Team,
    rng: random.Random | None = None,
    possessions: int = POSSESSIONS_PER_SIDE,
    max_overtime_rounds: int = MAX_OVERTIME_ROUNDS,
) -> GameResult:
    """Play one game drive by drive, home team first in every round.

    Level games get up to ``max_overtime_rounds`` extra possession pairs. The
    game can still end tied after that; callers record it as a tie.
    """
    rng = rng or random.Random()
    result = GameResult(home_name=home.name, away_name=away.name)
    result.log.append(f"Kickoff: {away.name} @ {home.name}")

    def play_round() -> None:
        home_drive = simulate_possession(home, away, rng)
        result.home_tds += home_drive.touchdowns
        result.home_yards += home_drive.yards
        result.log.append(home_drive.message)

        away_drive = simulate_possession(away, home, rng)
        result.away_tds += away_drive.touchdowns
        result.away_yards += away_drive.yards
        result.log.append(away_drive.message)

    for _ in range(possessions):
        play_round()

    while result.home_tds == result.away_tds and result.overtime_rounds < max_overtime_rounds:
        result.overtime_rounds += 1
        result.log.append(f"Overtime possession {result.overtime_rounds}...")
        play_round()

    result.log.append(
        f"Final: {away.name} {result.away_tds} TD, {result.away_yards} yds - "
        f"{home.name} {result.home_tds} TD, {result.home_yards} yds"
    )
    return result
