"""Display helpers over a single recipe. Pure functions, no I/O."""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel

from recipe_catalog.models.recipe_schema import Difficulty, Ingredient, Recipe

DIFFICULTY_LABELS = {
    Difficulty.easy.value: "Easy",
    Difficulty.medium.value: "Medium",
    Difficulty.hard.value: "Hard",
}
DIFFICULTY_STYLES = {
    Difficulty.easy.value: "green",
    Difficulty.medium.value: "yellow",
    Difficulty.hard.value: "red",
}
NEUTRAL_LABEL = "Unspecified"
NEUTRAL_STYLE = "gray"

# numbered markers at line start, blank-line breaks, dash bullets at line start
_STEP_BREAK = re.compile(r"(?:^|\n)[ \t]*\d+\.(?!\d)[ \t]*|\n[ \t]*\n|(?:^|\n)[ \t]*-[ \t]+")


def _difficulty_key(difficulty) -> Optional[str]:
    if difficulty is None:
        return None
    value = getattr(difficulty, "value", difficulty)
    if not isinstance(value, str):
        return None
    return value.strip().lower()


def total_time(recipe: Recipe) -> int:
    return (recipe.prep_time or 0) + (recipe.cook_time or 0)


def difficulty_label(difficulty) -> str:
    return DIFFICULTY_LABELS.get(_difficulty_key(difficulty), NEUTRAL_LABEL)


def difficulty_style(difficulty) -> str:
    return DIFFICULTY_STYLES.get(_difficulty_key(difficulty), NEUTRAL_STYLE)


def ordered_ingredients(recipe: Recipe) -> List[Ingredient]:
    # sorted() is stable, so duplicate order_index values keep input order
    return sorted(recipe.ingredients, key=lambda ing: ing.order_index)


def segment_instructions(text: str) -> List[str]:
    """Split free-form instructions into steps.

    Recognizes "1. " style numbering, blank-line paragraphs and "- " bullets.
    Fragments are trimmed and empty ones dropped; when that leaves fewer than
    two steps the original text comes back as the only step, so only an
    empty string yields no steps.
    """
    if not text:
        return []
    steps = [s.strip() for s in _STEP_BREAK.split(text)]
    steps = [s for s in steps if s]
    return steps if len(steps) > 1 else [text]


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:g}"


def format_ingredient(ingredient: Ingredient) -> str:
    line = f"{format_amount(ingredient.amount)} {ingredient.unit} {ingredient.name}"
    if ingredient.notes:
        line += f" ({ingredient.notes})"
    return line


class RecipeView(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    total_time: int
    servings: Optional[int] = None
    difficulty_label: str
    difficulty_style: str
    cuisine_type: Optional[str] = None
    dietary_restrictions: List[str]
    ingredients: List[str]
    steps: List[str]


def build_view(recipe: Recipe) -> RecipeView:
    return RecipeView(
        id=recipe.id,
        title=recipe.title,
        description=recipe.description,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        total_time=total_time(recipe),
        servings=recipe.servings,
        difficulty_label=difficulty_label(recipe.difficulty),
        difficulty_style=difficulty_style(recipe.difficulty),
        cuisine_type=recipe.cuisine_type,
        dietary_restrictions=sorted(recipe.dietary_restrictions),
        ingredients=[format_ingredient(i) for i in ordered_ingredients(recipe)],
        steps=segment_instructions(recipe.instructions),
    )
