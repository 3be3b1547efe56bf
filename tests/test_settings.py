import pytest

from recipe_catalog.settings import Settings, reload_settings, settings, validate_required
from recipe_catalog.store.factory import make_store
from recipe_catalog.store.postgrest import PostgrestStore
from recipe_catalog.store.sqlite_store import SQLiteStore


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("STORE_BACKEND", "SUPABASE_URL", "SUPABASE_KEY", "CATALOG_USER", "STORE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    # restore the shared object on teardown
    for name, value in vars(settings).items():
        monkeypatch.setattr(settings, name, value)
    return monkeypatch


def test_reload_updates_shared_settings(clean_env):
    clean_env.setenv("CATALOG_USER", "u-42")
    clean_env.setenv("STORE_TIMEOUT", "5")

    result = reload_settings()

    assert result is settings
    assert settings.CATALOG_USER == "u-42"
    assert settings.STORE_TIMEOUT == 5.0


def test_sqlite_needs_nothing(clean_env):
    reload_settings()
    validate_required()


def test_postgrest_requires_url_and_key(clean_env):
    clean_env.setenv("STORE_BACKEND", "postgrest")
    reload_settings()

    with pytest.raises(RuntimeError) as exc:
        validate_required()

    assert "SUPABASE_URL" in str(exc.value)
    assert "SUPABASE_KEY" in str(exc.value)


def test_unknown_backend_rejected(clean_env):
    clean_env.setenv("STORE_BACKEND", "mongo")

    with pytest.raises(RuntimeError):
        validate_required()


def test_make_store_picks_backend(tmp_path):
    local = make_store(Settings(STORE_BACKEND="sqlite", DB_PATH=str(tmp_path / "x.db")))
    try:
        assert isinstance(local, SQLiteStore)
    finally:
        local.close()

    hosted = make_store(Settings(STORE_BACKEND="postgrest", SUPABASE_URL="https://x.supabase.co", SUPABASE_KEY="k"))
    assert isinstance(hosted, PostgrestStore)

    with pytest.raises(RuntimeError):
        make_store(Settings(STORE_BACKEND="postgrest", SUPABASE_URL=None, SUPABASE_KEY=None))
