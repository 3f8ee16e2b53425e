"""Client for the league's structured store (a PostgREST endpoint).

Only three operations are used: filtered reads, bulk inserts and partial
patches of the rows matching a filter. Any non-success response is raised
as ``PersistenceError``; nothing is retried.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Protocol, Sequence

import httpx

from .errors import PersistenceError
from .settings import Settings

logger = logging.getLogger(__name__)

# (column, operator, value), e.g. ("week", "gte", 1) or ("status", "in", ("regular", "playoffs")).
Filter = tuple[str, str, Any]

OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "in", "is"})


class Store(Protocol):
    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: str = "*",
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[dict[str, Any]]: ...

    def update(self, table: str, filters: Sequence[Filter], patch: dict[str, Any]) -> list[dict[str, Any]]: ...


def _format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filters(filters: Iterable[Filter]) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    for column, op, value in filters:
        if op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator {op!r}")
        if op == "in":
            encoded = "(" + ",".join(_format_scalar(v) for v in value) + ")"
        else:
            encoded = _format_scalar(value)
        params.append((column, f"{op}.{encoded}"))
    return params


class StoreClient:
    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        timeout: float | None = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> StoreClient:
        return cls(settings.rest_url, settings.service_key, **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> StoreClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: str = "*",
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = [("select", columns), *encode_filters(filters)]
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        return self._request("GET", table, params)

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        return self._request("POST", table, [], body=list(rows))

    def update(self, table: str, filters: Sequence[Filter], patch: dict[str, Any]) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to patch every row of a table; pass at least one filter.")
        return self._request("PATCH", table, encode_filters(filters), body=patch)

    def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]],
        body: Any = None,
    ) -> list[dict[str, Any]]:
        headers = {"Prefer": "return=representation"} if method != "GET" else {}
        try:
            response = self._client.request(method, table, params=params, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise PersistenceError(f"{method} {table} failed: {exc}", method=method, path=table) from exc

        text = response.text
        if not response.is_success:
            raise PersistenceError(
                f"{method} {table} failed: {response.status_code} {response.reason_phrase}: {text}",
                method=method,
                path=table,
                status_code=response.status_code,
                body=text,
            )
        logger.debug("%s %s -> %s", method, table, response.status_code)
        if not text:
            return []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(
                f"{method} {table} returned invalid JSON",
                method=method,
                path=table,
                status_code=response.status_code,
                body=text,
            ) from exc
        if isinstance(payload, dict):
            return [payload]
        return list(payload)
