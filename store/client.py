from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import urlencode

from api import RequestError, Transport, UrllibTransport
from api.client import parse_json_body

from .config import StoreConfigResolver

logger = logging.getLogger(__name__)

ID_BATCH_SIZE = 40
RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def eq_filter(value: Any) -> str:
    return f"eq.{value}"


def unique_ids(ids: Iterable[Any]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in ids:
        if value is None or value == "":
            continue
        key = str(value)
        if key in seen:
            continue
        seen.add(key)
        out.append(key)
    return out


def build_in_filter(column: str, ids: Iterable[Any]) -> dict[str, str] | None:
    unique = unique_ids(ids)
    if not unique:
        return None
    payload = ",".join(f'"{value}"' for value in unique)
    return {column: f"in.({payload})"}


def _chunk(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    if size <= 0:
        yield items
        return
    for i in range(0, len(items), size):
        yield items[i : i + size]


class StoreClient:
    """Tabular REST queries against the backing store (`/rest/v1/<table>`)."""

    def __init__(
        self,
        resolver: StoreConfigResolver,
        transport: Transport | None = None,
    ) -> None:
        self.resolver = resolver
        self.transport = transport or UrllibTransport()

    async def rest(
        self,
        table: str,
        *,
        method: str = "GET",
        params: Mapping[str, str | None] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        config = await self.resolver.resolve()
        url = f"{config.url}/rest/v1/{table}"
        clean = {key: value for key, value in (params or {}).items() if value is not None}
        if clean:
            url = f"{url}?{urlencode(clean)}"

        request_headers = {
            "apikey": config.key,
            "Authorization": f"Bearer {config.key}",
        }
        data: bytes | None = None
        if body is not None:
            request_headers["Content-Type"] = "application/json"
            data = json.dumps(body).encode("utf-8")
        request_headers.update(headers or {})

        response = await self.transport.send(method, url, headers=request_headers, data=data)
        if not response.ok:
            logger.warning("store.request.failed method=%s table=%s status=%s", method, table, response.status)
            raise RequestError(
                message=response.body or "Store request failed",
                status=response.status,
                method=method,
                url=url,
            )
        try:
            return parse_json_body(response)
        except json.JSONDecodeError as exc:
            raise RequestError(
                message=f"Invalid JSON response: {exc}",
                status=response.status,
                method=method,
                url=url,
            ) from exc

    async def query(
        self,
        table: str,
        *,
        select: str | None = None,
        filters: Mapping[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, str | None] = {"select": select}
        params.update(filters or {})
        params["order"] = order
        params["limit"] = str(limit) if limit is not None else None
        rows = await self.rest(table, params=params)
        return list(rows or [])

    async def insert(self, table: str, row: Mapping[str, Any]) -> list[dict[str, Any]]:
        rows = await self.rest(table, method="POST", body=dict(row), headers=RETURN_REPRESENTATION)
        return list(rows or [])

    async def update(
        self,
        table: str,
        filters: Mapping[str, str],
        values: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        rows = await self.rest(
            table,
            method="PATCH",
            params=filters,
            body=dict(values),
            headers=RETURN_REPRESENTATION,
        )
        return list(rows or [])

    async def fetch_by_ids(
        self,
        table: str,
        column: str,
        ids: Iterable[Any],
        *,
        select: str | None = None,
        key: str | None = None,
        batch_size: int = ID_BATCH_SIZE,
    ) -> list[dict[str, Any]]:
        """One request per batch of ids; any failed batch aborts the whole fetch.

        Rows are de-duplicated on `key`, which defaults to the filtered column.
        """
        wanted = unique_ids(ids)
        if not wanted:
            return []
        results: list[dict[str, Any]] = []
        for batch in _chunk(wanted, batch_size):
            in_filter = build_in_filter(column, batch) or {}
            results.extend(await self.query(table, select=select, filters=in_filter))

        seen: set[str] = set()
        unique_rows: list[dict[str, Any]] = []
        for row in results:
            row_key = row.get(key or column)
            if row_key is not None:
                row_key = str(row_key)
                if row_key in seen:
                    continue
                seen.add(row_key)
            unique_rows.append(row)
        logger.debug("store.fetch_by_ids table=%s ids=%s rows=%s", table, len(wanted), len(unique_rows))
        return unique_rows
