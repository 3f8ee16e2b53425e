import random
from collections import Counter
from datetime import datetime, timezone

import pytest

from hbfl_sim.gate import local_clock
from hbfl_sim.league_setup import create_league
from hbfl_sim.models import Game
from hbfl_sim.season import ADVANCED, ALREADY_RAN, COMPLETED, SeasonProgressionController, run_daily_tick

TODAY = "2026-10-19"
TOMORROW = "2026-10-20"
PLAYED_AT = datetime(2026, 10, 20, 0, 0, tzinfo=timezone.utc)


def _controller(store, seed: int = 2) -> SeasonProgressionController:
    return SeasonProgressionController(store, rng=random.Random(seed), clock=lambda: PLAYED_AT)


def _season_row(store, season_id):
    return next(row for row in store.tables["seasons"] if row["id"] == season_id)


def _record(store, season_id, team_id):
    return next(r for r in store.tables["season_teams"] if r["season_id"] == season_id and r["team_id"] == team_id)


def test_first_tick_builds_schedule_and_plays_week_one(store, seeded) -> None:
    outcome = _controller(store).advance(seeded.season.id, TODAY)

    assert outcome.action == ADVANCED
    assert outcome.week == 1
    assert outcome.games_created == 32
    assert outcome.games_played == 4

    games = store.tables["games"]
    assert len(games) == 32
    assert Counter(game["week"] for game in games) == {week: 4 for week in range(1, 9)}

    season = _season_row(store, seeded.season.id)
    assert season["week"] == 1
    assert season["last_sim_local_date"] == TODAY

    week_one = [game for game in games if game["week"] == 1]
    for game in week_one:
        assert game.get("played_at") == PLAYED_AT.isoformat()
        for key in ("home_tds", "away_tds", "home_yards", "away_yards"):
            assert isinstance(game[key], int) and game[key] >= 0
    assert all(game.get("played_at") is None for game in games if game["week"] != 1)

    for game in week_one:
        home = _record(store, seeded.season.id, game["home_team_id"])
        away = _record(store, seeded.season.id, game["away_team_id"])
        assert home["wins"] + home["losses"] + home["ties"] == 1
        assert away["wins"] + away["losses"] + away["ties"] == 1
        assert home["wins"] == away["losses"]
        assert home["ties"] == away["ties"]
        assert (home["tds_for"], home["tds_against"]) == (game["home_tds"], game["away_tds"])
        assert (away["yards_for"], away["yards_against"]) == (game["away_yards"], game["home_yards"])


def test_game_logs_are_written_and_capped(store, seeded) -> None:
    _controller(store).advance(seeded.season.id, TODAY)
    logs = store.tables["game_logs"]
    week_one_ids = {game["id"] for game in store.tables["games"] if game["week"] == 1}
    per_game = Counter(line["game_id"] for line in logs)
    assert set(per_game) == week_one_ids
    assert all(26 <= count <= 40 for count in per_game.values())
    first = next(line for line in logs if line["game_id"] == min(week_one_ids))
    assert first["message"].startswith("Kickoff: ")


def test_second_advance_on_same_date_changes_nothing(store, seeded) -> None:
    controller = _controller(store)
    controller.advance(seeded.season.id, TODAY)
    before = store.snapshot()

    outcome = controller.advance(seeded.season.id, TODAY)

    assert outcome.action == ALREADY_RAN
    assert store.snapshot() == before


def test_records_accumulate_across_weeks(store, seeded) -> None:
    controller = _controller(store)
    controller.advance(seeded.season.id, TODAY)
    controller.advance(seeded.season.id, TOMORROW)

    assert _season_row(store, seeded.season.id)["week"] == 2
    played = [game for game in store.tables["games"] if game.get("played_at")]
    assert len(played) == 8
    for team in seeded.teams:
        record = _record(store, seeded.season.id, team.id)
        assert record["wins"] + record["losses"] + record["ties"] == 2
        tds_for = sum(
            game["home_tds"] if game["home_team_id"] == team.id else game["away_tds"]
            for game in played
            if team.id in (game["home_team_id"], game["away_team_id"])
        )
        assert record["tds_for"] == tds_for


def test_full_season_then_completion(store, seeded) -> None:
    controller = _controller(store)
    for day in range(1, 9):
        outcome = controller.advance(seeded.season.id, f"2026-11-{day:02d}")
        assert outcome.action == ADVANCED
        assert outcome.week == day

    assert all(game.get("played_at") for game in store.tables["games"])
    assert len(store.tables["games"]) == 32
    total_games = sum(
        r["wins"] + r["losses"] + r["ties"] for r in store.tables["season_teams"] if r["season_id"] == seeded.season.id
    )
    assert total_games == 64

    outcome = controller.advance(seeded.season.id, "2026-11-09")
    assert outcome.action == COMPLETED
    season = _season_row(store, seeded.season.id)
    assert season["status"] == "complete"
    assert season["week"] == 8
    assert season["last_sim_local_date"] == "2026-11-09"


def test_week_eight_season_completes_without_generating_games(store, seeded) -> None:
    store.update("seasons", [("id", "eq", seeded.season.id)], {"week": 8})
    before_games = len(store.tables["games"])

    outcome = _controller(store).advance(seeded.season.id, TODAY)

    assert outcome.action == COMPLETED
    assert len(store.tables["games"]) == before_games == 0
    assert store.tables["game_logs"] == []
    assert _season_row(store, seeded.season.id)["status"] == "complete"

    report = _controller(store).run(TOMORROW)
    assert report.outcomes == []


def test_only_missing_weeks_are_scheduled(store, seeded) -> None:
    team_ids = [team.id for team in seeded.teams]
    store.insert(
        "games",
        [
            {"season_id": seeded.season.id, "week": 1, "home_team_id": team_ids[i], "away_team_id": team_ids[7 - i]}
            for i in range(4)
        ],
    )

    outcome = _controller(store).advance(seeded.season.id, TODAY)

    assert outcome.games_created == 28
    weeks = Counter(game["week"] for game in store.tables["games"])
    assert weeks == {week: 4 for week in range(1, 9)}


@pytest.mark.regression
def test_played_games_are_not_replayed_after_a_stalled_week(store, seeded) -> None:
    controller = _controller(store)
    controller.ensure_schedule(seeded.season, seeded.teams)
    first = min((g for g in store.tables["games"] if g["week"] == 1), key=lambda g: g["id"])
    store.update(
        "games",
        [("id", "eq", first["id"])],
        {"home_tds": 9, "away_tds": 0, "home_yards": 999, "away_yards": 1, "played_at": "2026-10-18T00:00:00+00:00"},
    )

    outcome = controller.advance(seeded.season.id, TODAY)

    assert outcome.games_played == 3
    replayed = next(g for g in store.tables["games"] if g["id"] == first["id"])
    assert replayed["home_tds"] == 9
    assert all(line["game_id"] != first["id"] for line in store.tables["game_logs"])


def test_missing_record_row_is_created_before_applying(store, seeded) -> None:
    store.tables["season_teams"].clear()
    _controller(store).advance(seeded.season.id, TODAY)
    rows = store.tables["season_teams"]
    assert len(rows) == 8
    assert sum(r["wins"] + r["losses"] + r["ties"] for r in rows) == 8


def test_run_skips_invalid_league_and_continues(store, settings) -> None:
    good = create_league(store, "owner-a", settings, rng=random.Random(1))
    bad = create_league(store, "owner-b", settings, rng=random.Random(2))
    store.tables["teams"] = [t for t in store.tables["teams"] if not (t["league_id"] == bad.league.id and t["id"] == bad.teams[0].id)]

    report = _controller(store).run(TODAY)

    assert report.skipped == [bad.season.id]
    assert report.failed == []
    assert report.ok
    assert _season_row(store, good.season.id)["week"] == 1
    assert _season_row(store, bad.season.id)["week"] == 0


def test_persistence_failure_only_stalls_its_own_season(store, settings) -> None:
    broken = create_league(store, "owner-a", settings, rng=random.Random(1))
    healthy = create_league(store, "owner-b", settings, rng=random.Random(2))

    def fail(method, table, payload):
        return method == "POST" and table == "games" and payload and payload[0]["season_id"] == broken.season.id

    store.fail_when = fail
    report = _controller(store).run(TODAY)

    assert report.failed == [broken.season.id]
    assert not report.ok
    assert _season_row(store, broken.season.id)["week"] == 0
    assert _season_row(store, broken.season.id).get("last_sim_local_date") is None
    assert _season_row(store, healthy.season.id)["week"] == 1

    store.fail_when = None
    retry = _controller(store).run(TODAY)
    assert [o.action for o in retry.outcomes] == [ADVANCED, ALREADY_RAN]
    assert _season_row(store, broken.season.id)["week"] == 1


@pytest.mark.regression
def test_failed_record_write_leaves_game_unplayed_for_retry(store, seeded) -> None:
    failures = []

    def fail_first_record_patch(method, table, payload):
        if method == "PATCH" and table == "season_teams" and not failures:
            failures.append(table)
            return True
        return False

    store.fail_when = fail_first_record_patch
    report = _controller(store).run(TODAY)
    assert report.failed == [seeded.season.id]
    assert not any(game.get("played_at") for game in store.tables["games"])
    assert store.tables["game_logs"] == []
    assert _season_row(store, seeded.season.id)["week"] == 0

    retry = _controller(store).run(TOMORROW)

    assert [o.action for o in retry.outcomes] == [ADVANCED]
    assert retry.outcomes[0].games_played == 4
    played = [game for game in store.tables["games"] if game.get("played_at")]
    assert len(played) == 4
    slots = sum(r["wins"] + r["losses"] + r["ties"] for r in store.tables["season_teams"])
    assert slots == 8


def test_record_is_written_before_game_is_marked_played(store, seeded) -> None:
    controller = _controller(store)
    controller.ensure_schedule(seeded.season, seeded.teams)
    first = min((g for g in store.tables["games"] if g["week"] == 1), key=lambda g: g["id"])
    store.calls.clear()

    controller.play_game(seeded.season, Game.from_row(first), {team.id: team for team in seeded.teams})

    writes = [call for call in store.calls if call[0] != "GET"]
    assert writes == [("PATCH", "season_teams"), ("PATCH", "season_teams"), ("PATCH", "games"), ("POST", "game_logs")]


def test_run_reports_already_ran_seasons(store, seeded) -> None:
    controller = _controller(store)
    controller.run(TODAY)
    report = controller.run(TODAY)
    assert [o.action for o in report.outcomes] == [ALREADY_RAN]


def test_tick_outside_trigger_minute_does_nothing(store, seeded, settings) -> None:
    not_yet = datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc)
    assert run_daily_tick(_controller(store), settings, now=not_yet) is None
    assert store.tables["games"] == []


def test_tick_at_trigger_minute_uses_league_date(store, seeded, settings) -> None:
    at_seven = datetime(2026, 10, 20, 0, 0, tzinfo=timezone.utc)
    report = run_daily_tick(_controller(store), settings, now=at_seven)
    assert report is not None
    assert report.today == local_clock("America/Chicago", at_seven).iso_date == TODAY
    assert _season_row(store, seeded.season.id)["last_sim_local_date"] == TODAY


def test_forced_tick_still_honours_date_guard(store, seeded, settings) -> None:
    noon = datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc)
    first = run_daily_tick(_controller(store), settings, now=noon, force=True)
    second = run_daily_tick(_controller(store), settings, now=noon, force=True)
    assert [o.action for o in first.outcomes] == [ADVANCED]
    assert [o.action for o in second.outcomes] == [ALREADY_RAN]
