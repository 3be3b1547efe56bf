"""Narrow table-store contract consumed by the recipe repository.

A store speaks in plain dict rows. Implementations translate failures of the
underlying transport into ``RemoteError`` and never return partial results.

Filter arguments:

- ``eq``: ``{column: value}`` exact matches, all must hold
- ``in_``: ``{column: [values]}`` membership
- ``ilike_any``: ``([columns], text)``; the row matches when ANY of the
  columns contains ``text`` case-insensitively
- ``contains``: ``{array_column: [values]}``; the row's array must hold all
  of the values
- ``order``: ``(column, descending)``
- ``embed``: name of a child table listed in ``EMBEDS``; every returned row
  carries its child rows under that key, fetched with the parent query
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

Row = Dict[str, Any]

RECIPES = "recipes"
INGREDIENTS = "ingredients"

# (parent, child) -> foreign key column on the child
EMBEDS = {(RECIPES, INGREDIENTS): "recipe_id"}

RECIPE_COLUMNS = (
    "id",
    "title",
    "description",
    "instructions",
    "prep_time",
    "cook_time",
    "servings",
    "difficulty",
    "cuisine_type",
    "dietary_restrictions",
    "image_url",
    "created_by",
    "created_at",
    "updated_at",
    "is_public",
)

INGREDIENT_COLUMNS = (
    "id",
    "recipe_id",
    "name",
    "amount",
    "unit",
    "notes",
    "order_index",
)


class RemoteStore(ABC):
    @abstractmethod
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
        ...

    @abstractmethod
    def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        """Insert rows and return them as stored (ids and timestamps filled)."""

    @abstractmethod
    def update(self, table: str, values: Row, *, eq: Dict[str, Any]) -> List[Row]:
        """Update matching rows and return them; an empty list means no match."""

    @abstractmethod
    def delete(
        self,
        table: str,
        *,
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Sequence[Any]]] = None,
    ) -> None:
        ...

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes atomically where the backend can; pass-through otherwise."""
        yield

    def close(self) -> None:
        pass
