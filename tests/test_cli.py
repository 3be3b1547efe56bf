import json

import pytest
from typer.testing import CliRunner

from recipe_catalog import cli
from recipe_catalog.settings import settings
from recipe_catalog.store.base import RECIPES
from recipe_catalog.store.sqlite_store import SQLiteStore

runner = CliRunner()

RECIPE = {
    "title": "Shakshuka",
    "description": "Eggs poached in spiced tomato",
    "instructions": "1. Soften peppers\n2. Add tomatoes\n3. Crack in eggs",
    "prep_time": 10,
    "cook_time": 20,
    "difficulty": "medium",
    "cuisine_type": "Mediterranean",
    "dietary_restrictions": ["Vegetarian", "Gluten-Free"],
    "ingredients": [
        {"name": "Eggs", "amount": 4, "unit": "piece"},
        {"name": "Tomatoes", "amount": 400, "unit": "gram"},
    ],
}


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    db_path = tmp_path / "cli.db"
    monkeypatch.setattr(settings, "STORE_BACKEND", "sqlite")
    monkeypatch.setattr(settings, "DB_PATH", str(db_path))
    monkeypatch.setattr(settings, "CATALOG_USER", "cli-user")
    # keep rich tables from wrapping titles on the runner's narrow default width
    monkeypatch.setattr(cli.console, "width", 200)
    recipe_file = tmp_path / "shakshuka.json"
    recipe_file.write_text(json.dumps(RECIPE), encoding="utf8")
    return db_path, recipe_file


def _only_recipe_id(db_path):
    store = SQLiteStore(str(db_path))
    try:
        [row] = store.select(RECIPES)
        return row["id"]
    finally:
        store.close()


def test_add_list_show_delete(cli_env):
    db_path, recipe_file = cli_env

    res = runner.invoke(cli.app, ["add", str(recipe_file)])
    assert res.exit_code == 0, res.output
    assert "Recipe Created" in res.output

    res = runner.invoke(cli.app, ["list"])
    assert res.exit_code == 0
    assert "Shakshuka" in res.output

    rid = _only_recipe_id(db_path)
    res = runner.invoke(cli.app, ["show", rid])
    assert res.exit_code == 0
    assert "Crack in eggs" in res.output
    assert "400 gram Tomatoes" in res.output

    res = runner.invoke(cli.app, ["delete", rid, "--yes"])
    assert res.exit_code == 0
    res = runner.invoke(cli.app, ["show", rid])
    assert res.exit_code == 1
    assert "Recipe Not Found" in res.output


def test_browse_uses_query_then_filters(cli_env):
    _, recipe_file = cli_env
    runner.invoke(cli.app, ["add", str(recipe_file)])

    res = runner.invoke(cli.app, ["browse", "--diet", "Gluten-Free", "--diet", "Vegetarian"])
    assert "Shakshuka" in res.output

    res = runner.invoke(cli.app, ["browse", "--cuisine", "Thai"])
    assert "Shakshuka" not in res.output

    res = runner.invoke(cli.app, ["browse", "-q", "SPICED", "--cuisine", "Thai"])
    assert "Shakshuka" in res.output


def test_add_without_user_fails(cli_env, monkeypatch):
    _, recipe_file = cli_env
    monkeypatch.setattr(settings, "CATALOG_USER", None)

    res = runner.invoke(cli.app, ["add", str(recipe_file)])

    assert res.exit_code == 1
    assert "Sign In Required" in res.output


def test_add_rejects_invalid_file(cli_env, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"title": "", "instructions": "x"}), encoding="utf8")

    res = runner.invoke(cli.app, ["add", str(bad)])

    assert res.exit_code == 2


def test_check_reports_success(cli_env):
    res = runner.invoke(cli.app, ["check"])

    assert res.exit_code == 0
    assert "Connected" in res.output


def test_browse_help_lists_vocabularies(cli_env):
    res = runner.invoke(cli.app, ["browse", "--help"], env={"COLUMNS": "250"})

    assert res.exit_code == 0
    assert "Mediterranean" in res.output
    assert "Gluten-Free" in res.output
