"""Application settings loaded from environment (and .env).

This module provides a small Settings holder backed by environment variables.
Keep this file simple and import `settings` from other modules.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


def _get(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v is None:
        return default
    return v


@dataclass
class Settings:
    # Store backend: "sqlite" (local file) or "postgrest" (hosted Supabase)
    STORE_BACKEND: str = _get("STORE_BACKEND", "sqlite")
    DB_PATH: str = _get("DB_PATH", os.path.join("data", "recipes.db"))

    # Hosted store (Supabase / PostgREST)
    SUPABASE_URL: str | None = _get("SUPABASE_URL")
    SUPABASE_KEY: str | None = _get("SUPABASE_KEY")
    # Optional user JWT forwarded to the hosted store for row-level security
    SUPABASE_ACCESS_TOKEN: str | None = _get("SUPABASE_ACCESS_TOKEN")
    STORE_TIMEOUT: float = float(_get("STORE_TIMEOUT", "20"))

    # User id the CLI acts as; writes fail when unset
    CATALOG_USER: str | None = _get("CATALOG_USER")

    # Logging configuration
    # LOG_LEVEL can be DEBUG, INFO, WARNING, ERROR, or CRITICAL
    LOG_LEVEL: str = _get("LOG_LEVEL", "INFO")
    # Optional path to write logs to a file; if unset, logs go to stderr
    LOG_FILE: str | None = _get("LOG_FILE", None)


settings = Settings()


def reload_settings() -> Settings:
    """Re-read the environment into the shared `settings` object.

    Entry points call this after `load_dotenv()` so values from .env win over
    the import-time snapshot.
    """
    fresh = Settings(
        STORE_BACKEND=_get("STORE_BACKEND", "sqlite"),
        DB_PATH=_get("DB_PATH", os.path.join("data", "recipes.db")),
        SUPABASE_URL=_get("SUPABASE_URL"),
        SUPABASE_KEY=_get("SUPABASE_KEY"),
        SUPABASE_ACCESS_TOKEN=_get("SUPABASE_ACCESS_TOKEN"),
        STORE_TIMEOUT=float(_get("STORE_TIMEOUT", "20")),
        CATALOG_USER=_get("CATALOG_USER"),
        LOG_LEVEL=_get("LOG_LEVEL", "INFO"),
        LOG_FILE=_get("LOG_FILE", None),
    )
    for name, value in vars(fresh).items():
        setattr(settings, name, value)
    return settings


def validate_required() -> None:
    """Validate required settings and raise a helpful RuntimeError if missing.

    This function checks environment variables at runtime so callers can load a .env first.
    """
    missing = []
    backend = (os.getenv("STORE_BACKEND") or settings.STORE_BACKEND).lower()
    if backend not in ("sqlite", "postgrest"):
        raise RuntimeError(f"Unknown STORE_BACKEND '{backend}'; use 'sqlite' or 'postgrest'")
    if backend == "postgrest":
        if not os.getenv("SUPABASE_URL"):
            missing.append("SUPABASE_URL (hosted store REST endpoint)")
        if not os.getenv("SUPABASE_KEY"):
            missing.append("SUPABASE_KEY (anon or service key)")
    if missing:
        msg = (
            "Missing required environment variables: "
            + ", ".join(missing)
            + "\nPlease set them in your .env or environment and try again."
        )
        raise RuntimeError(msg)
