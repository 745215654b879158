from __future__ import annotations

import logging
from typing import Any

import httpx

from .base import DataSource, QueryResult, Row

logger = logging.getLogger(__name__)


def _eq_params(filters: dict[str, Any] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


class SupabaseDataSource(DataSource):
    """
    Tables served by a Supabase project's PostgREST endpoint.

    Transport errors and non-2xx responses are mapped to ``QueryResult.error``;
    timeouts come from the client configuration.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/") + "/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _send(self, method: str, table: str, **kwargs: Any) -> QueryResult:
        try:
            response = await self._client.request(method, f"/{table}", **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Supabase %s %s failed: %s", method, table, exc)
            return QueryResult.failure(f"Request to {table} failed: {exc}")

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("message") or response.reason_phrase or "request failed"
            return QueryResult.failure(message, code=body.get("code"))

        if not response.content:
            return QueryResult(data=[])
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Supabase %s %s returned a non-JSON body", method, table)
            return QueryResult.failure(f"Malformed response from {table}")
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            return QueryResult.failure(f"Malformed response from {table}")
        return QueryResult(data=payload)

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> QueryResult:
        params = {"select": "*", **_eq_params(filters)}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        return await self._send("GET", table, params=params)

    async def insert(self, table: str, row: Row) -> QueryResult:
        return await self._send(
            "POST", table, json=row, headers={"Prefer": "return=representation"},
        )

    async def delete(self, table: str, filters: dict[str, Any]) -> QueryResult:
        return await self._send(
            "DELETE", table, params=_eq_params(filters), headers={"Prefer": "return=representation"},
        )

    async def update(self, table: str, filters: dict[str, Any], changes: Row) -> QueryResult:
        return await self._send(
            "PATCH", table, params=_eq_params(filters), json=changes,
            headers={"Prefer": "return=representation"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()
