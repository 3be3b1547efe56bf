"""Recipe repository: every recipe/ingredient write goes through here.

A recipe and its ingredient rows live in two tables. The repository keeps
them consistent:

- create inserts the recipe, then the ingredients; when the ingredient insert
  fails the recipe row is deleted again before the error is re-raised
- update rewrites the recipe row first and aborts on failure; the ingredient
  list is then replaced inside a store transaction by rewriting rows in
  place, inserting extras and finally deleting leftovers, so a reader never
  sees the recipe without ingredients
- delete removes the recipe row and relies on the store cascading to the
  ingredients

Reads fetch every recipe together with its ingredients in one store query
and sort the ingredients by order_index.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from recipe_catalog.display.view import ordered_ingredients
from recipe_catalog.errors import NotFound, RemoteError, Unauthenticated
from recipe_catalog.models.recipe_schema import (
    FilterCriteria,
    IngredientItem,
    Recipe,
    RecipeForm,
)
from recipe_catalog.store.base import INGREDIENTS, RECIPES, RemoteStore, Row

logger = logging.getLogger(__name__)

NEWEST_FIRST = ("created_at", True)
SEARCH_COLUMNS = ("title", "description")


def _ingredient_rows(recipe_id: str, items: Sequence[IngredientItem]) -> List[Row]:
    return [
        {
            "recipe_id": recipe_id,
            "name": item.name,
            "amount": item.amount,
            "unit": item.unit,
            "notes": item.notes or None,
            "order_index": index,
        }
        for index, item in enumerate(items)
    ]


class RecipeRepository:
    def __init__(self, store: RemoteStore, current_user: Callable[[], Optional[str]]):
        self.store = store
        self.current_user = current_user

    def _require_user(self) -> str:
        user_id = self.current_user()
        if not user_id:
            raise Unauthenticated()
        return user_id

    def _hydrate(self, rows: List[Row]) -> List[Recipe]:
        recipes = []
        for row in rows:
            recipe = Recipe.model_validate({**row, "ingredients": row.get(INGREDIENTS) or []})
            recipe.ingredients = ordered_ingredients(recipe)
            recipes.append(recipe)
        return recipes

    def _fetch(self, op: str, **query: Any) -> List[Recipe]:
        try:
            rows = self.store.select(RECIPES, order=NEWEST_FIRST, embed=INGREDIENTS, **query)
            return self._hydrate(rows)
        except RemoteError as e:
            logger.error("Error %s: %s", op, e)
            raise

    @staticmethod
    def _scope(owner: Optional[str], eq: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        eq = dict(eq or {})
        if owner:
            eq["created_by"] = owner
        return eq

    # -- reads -----------------------------------------------------------

    def list_recipes(self, owner: Optional[str] = None) -> List[Recipe]:
        return self._fetch("listing recipes", eq=self._scope(owner) or None)

    def get_recipe(self, recipe_id: str) -> Recipe:
        recipes = self._fetch("fetching recipe", eq={"id": recipe_id})
        if not recipes:
            raise NotFound(record_id=recipe_id)
        return recipes[0]

    def search_recipes(self, query: str, owner: Optional[str] = None) -> List[Recipe]:
        """Title or description contains ``query``, case-insensitively."""
        return self._fetch(
            "searching recipes",
            eq=self._scope(owner) or None,
            ilike_any=(SEARCH_COLUMNS, query.strip()),
        )

    def filter_recipes(
        self,
        criteria: FilterCriteria | Dict[str, Any] | None,
        owner: Optional[str] = None,
    ) -> List[Recipe]:
        criteria = FilterCriteria.coerce(criteria)
        eq: Dict[str, Any] = {}
        if criteria.difficulty:
            eq["difficulty"] = criteria.difficulty.value
        if criteria.cuisine_type:
            eq["cuisine_type"] = criteria.cuisine_type
        contains = None
        if criteria.dietary_restrictions:
            contains = {"dietary_restrictions": criteria.dietary_restrictions}
        return self._fetch(
            "filtering recipes",
            eq=self._scope(owner, eq) or None,
            contains=contains,
        )

    # -- writes ----------------------------------------------------------

    def create_recipe(self, form: RecipeForm) -> Recipe:
        user_id = self._require_user()
        try:
            created = self.store.insert(RECIPES, [{**form.recipe_fields(), "created_by": user_id}])
        except RemoteError as e:
            logger.error("Error creating recipe: %s", e)
            raise
        if not created:
            raise RemoteError("Store returned no row for the inserted recipe")
        recipe_row = created[0]
        ingredients: List[Row] = []
        if form.ingredients:
            try:
                ingredients = self.store.insert(
                    INGREDIENTS, _ingredient_rows(recipe_row["id"], form.ingredients)
                )
            except RemoteError as e:
                logger.error("Error creating ingredients: %s", e)
                self._discard(recipe_row["id"])
                raise
        logger.info(
            "Created recipe | id=%s title=%s ingredients=%d",
            recipe_row["id"],
            recipe_row.get("title"),
            len(ingredients),
        )
        recipe = Recipe.model_validate({**recipe_row, "ingredients": ingredients})
        recipe.ingredients = ordered_ingredients(recipe)
        return recipe

    def _discard(self, recipe_id: str) -> None:
        logger.warning("Removing recipe %s after failed ingredient insert", recipe_id)
        try:
            self.store.delete(RECIPES, eq={"id": recipe_id})
        except RemoteError:
            logger.exception("Cleanup of recipe %s failed; row may be orphaned", recipe_id)

    def update_recipe(self, recipe_id: str, form: RecipeForm) -> Recipe:
        self._require_user()
        values = {**form.recipe_fields(), "updated_at": datetime.now(timezone.utc).isoformat()}
        try:
            updated = self.store.update(RECIPES, values, eq={"id": recipe_id})
        except RemoteError as e:
            logger.error("Error updating recipe: %s", e)
            raise
        if not updated:
            raise NotFound(record_id=recipe_id)
        try:
            ingredients = self._replace_ingredients(recipe_id, form.ingredients)
        except RemoteError as e:
            logger.error("Error updating ingredients: %s", e)
            raise
        logger.info("Updated recipe | id=%s ingredients=%d", recipe_id, len(ingredients))
        recipe = Recipe.model_validate({**updated[0], "ingredients": ingredients})
        recipe.ingredients = ordered_ingredients(recipe)
        return recipe

    def _replace_ingredients(self, recipe_id: str, items: Sequence[IngredientItem]) -> List[Row]:
        new_rows = _ingredient_rows(recipe_id, items)
        with self.store.transaction():
            existing = self.store.select(
                INGREDIENTS, eq={"recipe_id": recipe_id}, order=("order_index", False)
            )
            result: List[Row] = []
            for old, new in zip(existing, new_rows):
                result.extend(self.store.update(INGREDIENTS, new, eq={"id": old["id"]}))
            if len(new_rows) > len(existing):
                result.extend(self.store.insert(INGREDIENTS, new_rows[len(existing):]))
            leftovers = [old["id"] for old in existing[len(new_rows):]]
            if leftovers:
                self.store.delete(INGREDIENTS, in_={"id": leftovers})
        return result

    def delete_recipe(self, recipe_id: str) -> None:
        try:
            self.store.delete(RECIPES, eq={"id": recipe_id})
        except RemoteError as e:
            logger.error("Error deleting recipe: %s", e)
            raise
        logger.info("Deleted recipe | id=%s", recipe_id)
