from __future__ import annotations

import logging

from recipe_catalog.settings import Settings, settings as default_settings
from recipe_catalog.store.base import RemoteStore

logger = logging.getLogger(__name__)


def make_store(cfg: Settings | None = None) -> RemoteStore:
    """Build the store selected by STORE_BACKEND."""
    cfg = cfg or default_settings
    backend = (cfg.STORE_BACKEND or "sqlite").lower()
    if backend == "postgrest":
        from recipe_catalog.store.postgrest import PostgrestStore

        if not cfg.SUPABASE_URL or not cfg.SUPABASE_KEY:
            raise RuntimeError("STORE_BACKEND=postgrest needs SUPABASE_URL and SUPABASE_KEY")
        logger.info("Using hosted store at %s", cfg.SUPABASE_URL)
        return PostgrestStore(
            cfg.SUPABASE_URL,
            cfg.SUPABASE_KEY,
            access_token=cfg.SUPABASE_ACCESS_TOKEN,
            timeout=cfg.STORE_TIMEOUT,
        )
    if backend == "sqlite":
        from recipe_catalog.store.sqlite_store import SQLiteStore

        store = SQLiteStore(cfg.DB_PATH)
        store.ensure_schema()
        logger.info("Using SQLite store at %s", cfg.DB_PATH)
        return store
    raise RuntimeError(f"Unknown STORE_BACKEND '{backend}'")
