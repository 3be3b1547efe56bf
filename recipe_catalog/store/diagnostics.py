"""Connectivity check for the configured store."""

from __future__ import annotations

import logging
from typing import Any, Dict

from recipe_catalog.errors import RemoteError
from recipe_catalog.store.base import INGREDIENTS, RECIPES, RemoteStore

logger = logging.getLogger(__name__)

# PostgREST codes for a relation missing from the schema cache
_MISSING_TABLE_CODES = {"PGRST116", "PGRST205", "42P01", "schema"}


def check_connection(store: RemoteStore) -> Dict[str, Any]:
    """Probe both tables with a one-row select.

    Returns a dict with ``success`` plus either ``message`` or ``error`` and a
    ``suggestion`` for the operator. Never raises for store failures.
    """
    for table in (RECIPES, INGREDIENTS):
        try:
            store.select(table, limit=1)
        except RemoteError as e:
            logger.warning("Store check failed on %s: %s", table, e)
            if e.code in _MISSING_TABLE_CODES or "no such table" in str(e):
                return {
                    "success": False,
                    "error": f"Table '{table}' not found",
                    "suggestion": "Create the schema (run `init-db` for SQLite or apply the SQL schema to the hosted project)",
                }
            if e.code == "network":
                return {
                    "success": False,
                    "error": "Network connectivity issue",
                    "suggestion": "The hosted project may be paused or the URL is wrong; check SUPABASE_URL",
                }
            return {
                "success": False,
                "error": str(e),
                "suggestion": "Check your environment variables and store status",
            }
    return {"success": True, "message": "Store connection is working"}
