from __future__ import annotations

import random
from collections import defaultdict
from typing import Any, Callable, Sequence

import pytest

from hbfl_sim.errors import PersistenceError
from hbfl_sim.league_setup import SeededLeague, create_league
from hbfl_sim.settings import Settings


def _matches(row: dict[str, Any], filters: Sequence[tuple[str, str, Any]]) -> bool:
    for column, op, value in filters:
        current = row.get(column)
        if op == "eq" and str(current) != str(value):
            return False
        if op == "neq" and str(current) == str(value):
            return False
        if op == "in" and str(current) not in {str(v) for v in value}:
            return False
        if op == "is" and current is not value:
            return False
        if op in {"gt", "gte", "lt", "lte"}:
            if current is None:
                return False
            if op == "gt" and not current > value:
                return False
            if op == "gte" and not current >= value:
                return False
            if op == "lt" and not current < value:
                return False
            if op == "lte" and not current <= value:
                return False
    return True


class FakeStore:
    """In-memory stand-in for the PostgREST store with the same three operations."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self._next_id: dict[str, int] = defaultdict(lambda: 1)
        self.calls: list[tuple[str, str]] = []
        self.fail_when: Callable[[str, str, Any], bool] | None = None

    def __enter__(self) -> FakeStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def _check(self, method: str, table: str, payload: Any) -> None:
        self.calls.append((method, table))
        if self.fail_when is not None and self.fail_when(method, table, payload):
            raise PersistenceError(f"{method} {table} failed: 500", method=method, path=table, status_code=500)

    def select(self, table, filters=(), *, columns="*", order=None, limit=None):
        self._check("GET", table, list(filters))
        rows = [dict(row) for row in self.tables[table] if _matches(row, filters)]
        if order:
            for part in reversed(order.split(",")):
                column, _, direction = part.partition(".")
                rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=direction == "desc")
        if columns != "*":
            wanted = columns.split(",")
            rows = [{name: row.get(name) for name in wanted} for row in rows]
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table, rows):
        self._check("POST", table, list(rows))
        inserted = []
        for row in rows:
            stored = dict(row)
            if "id" not in stored:
                stored["id"] = self._next_id[table]
                self._next_id[table] += 1
            self.tables[table].append(stored)
            inserted.append(dict(stored))
        return inserted

    def update(self, table, filters, patch):
        self._check("PATCH", table, list(filters))
        updated = []
        for row in self.tables[table]:
            if _matches(row, filters):
                row.update(patch)
                updated.append(dict(row))
        return updated

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        return {name: [dict(row) for row in rows] for name, rows in self.tables.items()}


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://league.example.test",
        service_key="service-key",
        sim_hour=19,
        sim_minute=0,
        sim_timezone="America/Chicago",
        _env_file=None,
    )


@pytest.fixture
def seeded(store: FakeStore, settings: Settings) -> SeededLeague:
    return create_league(store, "commissioner-1", settings, rng=random.Random(3))
