from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import Sequence

from .errors import ConfigurationError, HBFLError
from .league_setup import create_league
from .season import SeasonProgressionController, run_daily_tick
from .settings import Settings, load_settings
from .store import StoreClient

logger = logging.getLogger("hbfl_sim")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=logging.getLevelName(level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hbfl-sim",
        description="Advance HBFL seasons by one week at the daily sim time.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run even when the clock is not at the sim time (the once-per-day guard still applies).",
    )
    sub = parser.add_subparsers(dest="command")
    create = sub.add_parser("create-league", help="Seed a league with 8 random teams and season 1.")
    create.add_argument("--commissioner", required=True, help="Owner id of the new league.")
    return parser


def _tick(settings: Settings, force: bool) -> int:
    with StoreClient.from_settings(settings) as store:
        controller = SeasonProgressionController(store, rng=random.Random())
        report = run_daily_tick(controller, settings, force=force)
    if report is None:
        return EXIT_OK
    if report.failed:
        logger.error("Seasons failed for %s: %s", report.today, ", ".join(str(s) for s in report.failed))
        return EXIT_FAILED
    return EXIT_OK


def _create_league(settings: Settings, commissioner: str) -> int:
    with StoreClient.from_settings(settings) as store:
        seeded = create_league(store, commissioner, settings, rng=random.Random())
    print(f"League {seeded.league.id}: {seeded.league.name}")
    for team in seeded.teams:
        print(f"  {team.abbrev:<4} {team.name}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging("INFO")
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG
    _configure_logging(settings.log_level)

    try:
        if args.command == "create-league":
            return _create_league(settings, args.commissioner)
        return _tick(settings, args.force)
    except HBFLError:
        logger.exception("Run aborted.")
        return EXIT_FAILED
