import pytest

from recipe_catalog.catalog.repository import RecipeRepository
from recipe_catalog.models.recipe_schema import RecipeForm
from recipe_catalog.store.sqlite_store import SQLiteStore

USER_ID = "user-123"


def make_form(title="Pasta al Limone", ingredients=None, **overrides):
    if ingredients is None:
        ingredients = [
            {"name": "Spaghetti", "amount": 200, "unit": "gram"},
            {"name": "Lemon", "amount": 1, "unit": "piece", "notes": "zested"},
            {"name": "Parmesan", "amount": 0.5, "unit": "cup"},
        ]
    data = {
        "title": title,
        "description": "Bright weeknight pasta",
        "instructions": "1. Boil water\n2. Cook pasta\n3. Toss with lemon",
        "prep_time": 10,
        "cook_time": 12,
        "servings": 2,
        "difficulty": "easy",
        "cuisine_type": "Italian",
        "dietary_restrictions": ["Vegetarian"],
        "ingredients": ingredients,
    }
    data.update(overrides)
    return RecipeForm.model_validate(data)


@pytest.fixture
def store(tmp_path):
    s = SQLiteStore(str(tmp_path / "recipes.db"))
    s.ensure_schema()
    yield s
    s.close()


@pytest.fixture
def repo(store):
    return RecipeRepository(store, lambda: USER_ID)
