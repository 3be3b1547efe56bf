"""SQLite-backed table store.

Mirrors the hosted schema closely enough for local use and tests: uuid text
ids, timestamps filled on insert, ``dietary_restrictions`` kept as a JSON
array, and ingredient rows removed through ``ON DELETE CASCADE``.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from recipe_catalog.errors import RemoteError
from recipe_catalog.store.base import (
    EMBEDS,
    INGREDIENT_COLUMNS,
    INGREDIENTS,
    RECIPE_COLUMNS,
    RECIPES,
    RemoteStore,
    Row,
)

logger = logging.getLogger(__name__)

TABLE_COLUMNS = {
    RECIPES: RECIPE_COLUMNS,
    INGREDIENTS: INGREDIENT_COLUMNS,
}
JSON_COLUMNS = {RECIPES: {"dietary_restrictions"}}
BOOL_COLUMNS = {RECIPES: {"is_public"}}
# stays under SQLite's bound-parameter limit
EMBED_CHUNK = 500

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS recipes (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT,
        instructions TEXT NOT NULL,
        prep_time INTEGER CHECK (prep_time >= 0),
        cook_time INTEGER CHECK (cook_time >= 0),
        servings INTEGER DEFAULT 4 CHECK (servings > 0),
        difficulty TEXT CHECK (difficulty IN ('easy', 'medium', 'hard')),
        cuisine_type TEXT,
        dietary_restrictions TEXT DEFAULT '[]',
        image_url TEXT,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        is_public INTEGER DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ingredients (
        id TEXT PRIMARY KEY,
        recipe_id TEXT NOT NULL,
        name TEXT NOT NULL,
        amount REAL NOT NULL CHECK (amount > 0),
        unit TEXT NOT NULL,
        notes TEXT,
        order_index INTEGER NOT NULL CHECK (order_index >= 0),
        FOREIGN KEY (recipe_id) REFERENCES recipes(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ingredients_recipe ON ingredients (recipe_id, order_index)",
    "CREATE INDEX IF NOT EXISTS idx_recipes_created ON recipes (created_at)",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _icontains(value: Optional[str], needle: Optional[str]) -> bool:
    if value is None or needle is None:
        return False
    return needle.casefold() in value.casefold()


class SQLiteStore(RemoteStore):
    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()
        self._depth = 0
        try:
            if path != ":memory:" and os.path.dirname(path):
                os.makedirs(os.path.dirname(path), exist_ok=True)
            # autocommit mode; transaction() issues BEGIN/COMMIT explicitly
            self._conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.create_function("icontains", 2, _icontains, deterministic=True)
        except (OSError, sqlite3.Error) as e:
            raise RemoteError(f"Cannot open database {path}: {e}", code="connect") from e

    def ensure_schema(self) -> None:
        with self.transaction():
            for stmt in SCHEMA:
                self._execute(stmt)
        logger.debug("SQLite schema ready at %s", self.path)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._execute("BEGIN")
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._conn.rollback()
                raise
            self._depth -= 1
            if outermost:
                self._execute("COMMIT")

    def close(self) -> None:
        self._conn.close()

    # -- helpers ---------------------------------------------------------

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise RemoteError(str(e), code=e.__class__.__name__) from e

    def _check_columns(self, table: str, columns) -> None:
        known = TABLE_COLUMNS.get(table)
        if known is None:
            raise RemoteError(f"Unknown table '{table}'", code="schema")
        for col in columns:
            if col not in known:
                raise RemoteError(f"Unknown column '{table}.{col}'", code="schema")

    def _encode(self, table: str, row: Row) -> Row:
        out = dict(row)
        for col in JSON_COLUMNS.get(table, ()):
            if col in out:
                out[col] = json.dumps(list(out[col] or []))
        for col in BOOL_COLUMNS.get(table, ()):
            if col in out and out[col] is not None:
                out[col] = 1 if out[col] else 0
        return out

    def _decode(self, table: str, record: sqlite3.Row) -> Row:
        row = dict(record)
        for col in JSON_COLUMNS.get(table, ()):
            if col in row:
                row[col] = json.loads(row[col]) if row[col] else []
        for col in BOOL_COLUMNS.get(table, ()):
            if col in row and row[col] is not None:
                row[col] = bool(row[col])
        return row

    def _where(
        self,
        table: str,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Sequence[Any]]] = None,
        ilike_any: Optional[Tuple[Sequence[str], str]] = None,
        contains: Optional[Dict[str, Sequence[Any]]] = None,
    ) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        for col, value in (eq or {}).items():
            self._check_columns(table, [col])
            if value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = ?")
                params.append(value)
        for col, values in (in_ or {}).items():
            self._check_columns(table, [col])
            values = list(values)
            if not values:
                clauses.append("0")
                continue
            clauses.append(f"{col} IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        if ilike_any:
            columns, text = ilike_any
            self._check_columns(table, columns)
            clauses.append("(" + " OR ".join(f"icontains({c}, ?)" for c in columns) + ")")
            params.extend([text] * len(columns))
        for col, values in (contains or {}).items():
            self._check_columns(table, [col])
            clauses.append(
                "NOT EXISTS (SELECT 1 FROM json_each(?) AS want WHERE want.value NOT IN "
                f"(SELECT value FROM json_each(COALESCE({table}.{col}, '[]'))))"
            )
            params.append(json.dumps(list(values)))
        sql = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        return sql, params

    def _select_by_ids(self, table: str, ids: Sequence[str]) -> List[Row]:
        if not ids:
            return []
        rows = self.select(table, in_={"id": list(ids)})
        by_id = {r["id"]: r for r in rows}
        return [by_id[i] for i in ids if i in by_id]

    def _attach(self, table: str, child: str, rows: List[Row]) -> None:
        fk = EMBEDS.get((table, child))
        if fk is None:
            raise RemoteError(f"No relationship between '{table}' and '{child}'", code="schema")
        grouped: Dict[str, List[Row]] = {}
        ids = [r["id"] for r in rows]
        for start in range(0, len(ids), EMBED_CHUNK):
            for c in self.select(child, in_={fk: ids[start:start + EMBED_CHUNK]}):
                grouped.setdefault(c[fk], []).append(c)
        for row in rows:
            row[child] = grouped.get(row["id"], [])

    # -- contract --------------------------------------------------------

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
        self._check_columns(table, [])
        where, params = self._where(table, eq, in_, ilike_any, contains)
        sql = f"SELECT * FROM {table}{where}"
        if order:
            col, descending = order
            self._check_columns(table, [col])
            direction = "DESC" if descending else "ASC"
            # rowid breaks ties between rows written within the same instant
            sql += f" ORDER BY {col} {direction}, rowid {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self._lock:
            records = self._execute(sql, params).fetchall()
            rows = [self._decode(table, r) for r in records]
            if embed:
                self._attach(table, embed, rows)
        return rows

    def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        if not rows:
            return []
        ids: List[str] = []
        with self.transaction():
            for row in rows:
                row = dict(row)
                row.setdefault("id", uuid.uuid4().hex)
                if table == RECIPES:
                    stamp = _now()
                    row.setdefault("created_at", stamp)
                    row.setdefault("updated_at", stamp)
                self._check_columns(table, row.keys())
                row = self._encode(table, row)
                cols = list(row.keys())
                self._execute(
                    f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})",
                    [row[c] for c in cols],
                )
                ids.append(row["id"])
        return self._select_by_ids(table, ids)

    def update(self, table: str, values: Row, *, eq: Dict[str, Any]) -> List[Row]:
        if not values:
            raise ValueError("update() needs at least one column")
        self._check_columns(table, values.keys())
        encoded = self._encode(table, values)
        with self.transaction():
            ids = [r["id"] for r in self.select(table, eq=eq)]
            if not ids:
                return []
            cols = list(encoded.keys())
            assignments = ", ".join(f"{c} = ?" for c in cols)
            self._execute(
                f"UPDATE {table} SET {assignments} WHERE id IN ({', '.join('?' for _ in ids)})",
                [encoded[c] for c in cols] + ids,
            )
        return self._select_by_ids(table, ids)

    def delete(
        self,
        table: str,
        *,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Sequence[Any]]] = None,
    ) -> None:
        if not eq and not in_:
            raise ValueError("delete() refuses to run without a filter")
        self._check_columns(table, [])
        where, params = self._where(table, eq, in_)
        with self.transaction():
            self._execute(f"DELETE FROM {table}{where}", params)
