"""Typer CLI for the recipe catalog (browse, add, edit, delete)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dotenv import load_dotenv
# load .env immediately so settings read below pick up values from the .env file
load_dotenv()

# Configure top-level logging early so other modules pick it up.
import logging
from recipe_catalog.settings import reload_settings, settings

reload_settings()
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))
logging.basicConfig(
    level=log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    handlers=handlers,
)

# Quiet noisy third-party loggers while keeping our app logs
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

from recipe_catalog.catalog.compose import RecipeListState
from recipe_catalog.catalog.repository import RecipeRepository
from recipe_catalog.display.view import (
    build_view,
    difficulty_label,
    difficulty_style,
    total_time,
)
from recipe_catalog.errors import CatalogError
from recipe_catalog.models.dto import Notice
from recipe_catalog.models.recipe_schema import (
    CUISINE_OPTIONS,
    DIETARY_OPTIONS,
    FilterCriteria,
    Recipe,
    RecipeForm,
)
from recipe_catalog.settings import validate_required
from recipe_catalog.store.diagnostics import check_connection
from recipe_catalog.store.factory import make_store

app = typer.Typer()
console = Console()


def _repository() -> RecipeRepository:
    return RecipeRepository(make_store(), lambda: settings.CATALOG_USER)


def _show_notice(notice: Notice) -> None:
    colour = {"error": "red", "warning": "yellow", "success": "green"}.get(notice.kind, "cyan")
    text = f"[{colour}]{escape(notice.title)}[/{colour}]"
    if notice.message:
        text += f" {escape(notice.message)}"
    console.print(text)


def _fail(exc: Exception) -> None:
    if isinstance(exc, CatalogError):
        _show_notice(Notice.for_error(exc))
    else:
        _show_notice(Notice.error("Error", str(exc)))
    raise typer.Exit(code=1)


def _read_form(path: Path) -> RecipeForm:
    try:
        return RecipeForm.model_validate(json.loads(path.read_text(encoding="utf8")))
    except (OSError, ValueError, ValidationError) as e:
        _show_notice(Notice.error("Invalid recipe file", str(e)))
        raise typer.Exit(code=2)


def _recipe_table(recipes: List[Recipe]) -> Table:
    table = Table(title=f"{len(recipes)} recipe(s)")
    table.add_column("Title")
    table.add_column("Difficulty")
    table.add_column("Cuisine")
    table.add_column("Time", justify="right")
    table.add_column("Ingredients", justify="right")
    table.add_column("Id", style="dim")
    for r in recipes:
        style = difficulty_style(r.difficulty)
        minutes = total_time(r)
        table.add_row(
            r.title,
            f"[{style}]{difficulty_label(r.difficulty)}[/{style}]",
            r.cuisine_type or "-",
            f"{minutes} min" if minutes else "-",
            str(len(r.ingredients)),
            r.id,
        )
    return table


def _print_recipe(recipe: Recipe) -> None:
    view = build_view(recipe)
    lines = []
    if view.description:
        lines.append(f"[italic]{view.description}[/italic]\n")
    facts = []
    if view.prep_time:
        facts.append(f"Prep: {view.prep_time} min")
    if view.cook_time:
        facts.append(f"Cook: {view.cook_time} min")
    if view.total_time:
        facts.append(f"Total: {view.total_time} min")
    if view.servings:
        facts.append(f"Servings: {view.servings}")
    facts.append(f"Difficulty: [{view.difficulty_style}]{view.difficulty_label}[/{view.difficulty_style}]")
    lines.append(" | ".join(facts))
    if view.dietary_restrictions:
        lines.append("Dietary: " + ", ".join(view.dietary_restrictions))
    lines.append("\n[bold]Ingredients[/bold]")
    lines.extend(f"  - {line}" for line in view.ingredients)
    lines.append("\n[bold]Instructions[/bold]")
    lines.extend(f"  {n}. {step}" for n, step in enumerate(view.steps, start=1))
    console.print(Panel("\n".join(lines), title=view.title))


@app.command("init-db")
def init_db():
    """Create the local SQLite tables (no-op for the hosted store)."""
    try:
        make_store()
        console.print("Store ready.")
    except (CatalogError, RuntimeError) as e:
        _fail(e)


@app.command()
def check():
    """Probe the configured store and report whether the tables are reachable."""
    try:
        result = check_connection(make_store())
    except (CatalogError, RuntimeError) as e:
        _fail(e)
    if result["success"]:
        _show_notice(Notice.success("Connected", result["message"]))
        return
    _show_notice(Notice.error(result["error"], result["suggestion"]))
    raise typer.Exit(code=1)


@app.command("list")
def list_cmd(mine: bool = typer.Option(False, "--mine", help="Only recipes created by CATALOG_USER")):
    try:
        recipes = _repository().list_recipes(owner=settings.CATALOG_USER if mine else None)
    except CatalogError as e:
        _fail(e)
    console.print(_recipe_table(recipes))


@app.command()
def show(recipe_id: str):
    try:
        recipe = _repository().get_recipe(recipe_id)
    except CatalogError as e:
        _fail(e)
    _print_recipe(recipe)


@app.command()
def browse(
    query: str = typer.Option("", "--query", "-q", help="Search title and description"),
    difficulty: Optional[str] = typer.Option(None, help="easy, medium or hard"),
    cuisine: Optional[str] = typer.Option(None, help="Exact cuisine type: " + ", ".join(CUISINE_OPTIONS)),
    diet: List[str] = typer.Option(
        [], "--diet", help="Required dietary tag, repeatable: " + ", ".join(DIETARY_OPTIONS)
    ),
):
    """Search or filter; a query takes precedence over filters."""
    try:
        criteria = FilterCriteria(difficulty=difficulty, cuisine_type=cuisine, dietary_restrictions=diet)
    except ValidationError as e:
        _show_notice(Notice.error("Invalid filter", str(e)))
        raise typer.Exit(code=2)
    state = RecipeListState(_repository())
    try:
        state.refresh()
    except CatalogError as e:
        _fail(e)
    state.set_inputs(query=query, criteria=criteria)
    console.print(_recipe_table(state.displayed))


@app.command()
def add(path: Path):
    """Create a recipe from a JSON file shaped like RecipeForm."""
    form = _read_form(path)
    try:
        recipe = _repository().create_recipe(form)
    except CatalogError as e:
        _fail(e)
    _show_notice(Notice.success("Recipe Created", f"{recipe.title} ({recipe.id})"))


@app.command()
def edit(recipe_id: str, path: Path):
    """Replace a recipe (fields and full ingredient list) from a JSON file."""
    form = _read_form(path)
    try:
        recipe = _repository().update_recipe(recipe_id, form)
    except CatalogError as e:
        _fail(e)
    _show_notice(Notice.success("Recipe Updated", recipe.title))


@app.command()
def delete(recipe_id: str, yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    if not yes and not typer.confirm(f"Delete recipe {recipe_id}?"):
        raise typer.Exit(code=0)
    try:
        _repository().delete_recipe(recipe_id)
    except CatalogError as e:
        _fail(e)
    _show_notice(Notice.success("Recipe Deleted", recipe_id))


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("recipe_catalog.main:app", host=host, port=port)


def main():
    # validate required settings (dotenv already loaded at module import)
    try:
        validate_required()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    app()


if __name__ == "__main__":
    main()
