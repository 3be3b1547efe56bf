"""Hosted store on the Supabase client (PostgREST under the hood)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from recipe_catalog.errors import RemoteError
from recipe_catalog.store.base import EMBEDS, RemoteStore, Row

logger = logging.getLogger(__name__)

# Supabase's default max-rows; unlimited selects are read page by page
PAGE_SIZE = 1000


def _ilike_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    # quoted so commas and parentheses stay inside the or=() filter
    escaped = escaped.replace("\\", "\\\\").replace('"', '\\"')
    return f'"*{escaped}*"'


def _literal(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class PostgrestStore(RemoteStore):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 20,
        client: Optional[Client] = None,
        page_size: int = PAGE_SIZE,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self.page_size = page_size
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            options = ClientOptions(postgrest_client_timeout=self.timeout)
            if self.access_token:
                # row-level security sees the user instead of the anon key
                options.headers["Authorization"] = f"Bearer {self.access_token}"
            self._client = create_client(self.base_url, self.api_key, options=options)
        return self._client

    def _run(self, action: str, table: str, query) -> List[Row]:
        logger.debug("%s %s", action, table)
        try:
            resp = query.execute()
        except APIError as e:
            raise RemoteError(f"{action} {table} failed: {e.message}", code=e.code) from e
        except httpx.HTTPError as e:
            raise RemoteError(f"Store unreachable: {e}", code="network") from e
        return resp.data or []

    def _filtered(
        self,
        query,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Sequence[Any]]] = None,
        ilike_any: Optional[Tuple[Sequence[str], str]] = None,
        contains: Optional[Dict[str, Sequence[Any]]] = None,
    ):
        for col, value in (eq or {}).items():
            query = query.is_(col, "null") if value is None else query.eq(col, _literal(value))
        for col, values in (in_ or {}).items():
            query = query.in_(col, list(values))
        if ilike_any:
            columns, text = ilike_any
            pattern = _ilike_pattern(text)
            query = query.or_(",".join(f"{c}.ilike.{pattern}" for c in columns))
        for col, values in (contains or {}).items():
            query = query.contains(col, list(values))
        return query

    def select(
        self,
        table: str,
        *,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Sequence[Any]]] = None,
        ilike_any: Optional[Tuple[Sequence[str], str]] = None,
        contains: Optional[Dict[str, Sequence[Any]]] = None,
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None,
        embed: Optional[str] = None,
    ) -> List[Row]:
        columns = ["*"]
        if embed:
            if (table, embed) not in EMBEDS:
                raise RemoteError(f"No relationship between '{table}' and '{embed}'", code="schema")
            columns.append(f"{embed}(*)")

        def build():
            query = self._filtered(self.client.table(table).select(*columns), eq, in_, ilike_any, contains)
            if order:
                col, descending = order
                query = query.order(col, desc=descending)
            return query

        if limit is not None:
            return self._run("select", table, build().limit(int(limit)))
        rows: List[Row] = []
        while True:
            start = len(rows)
            page = self._run("select", table, build().range(start, start + self.page_size - 1))
            rows.extend(page)
            if len(page) < self.page_size:
                return rows

    def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        if not rows:
            return []
        return self._run("insert", table, self.client.table(table).insert(list(rows)))

    def update(self, table: str, values: Row, *, eq: Dict[str, Any]) -> List[Row]:
        return self._run("update", table, self._filtered(self.client.table(table).update(values), eq=eq))

    def delete(
        self,
        table: str,
        *,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Sequence[Any]]] = None,
    ) -> None:
        if not eq and not in_:
            raise ValueError("delete() refuses to run without a filter")
        self._run("delete", table, self._filtered(self.client.table(table).delete(), eq=eq, in_=in_))
