"""Decide which recipes are on display for a given query and filter set.

Policy:

1. a non-blank query wins: filters are ignored and the title/description
   search result is shown
2. otherwise, when any filter field is set, the filter result is shown
3. otherwise the full cached list is shown as-is

Store failures in 1 or 2 are not fatal; the full cached list is shown
instead and the error is logged.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from recipe_catalog.errors import RemoteError
from recipe_catalog.models.recipe_schema import FilterCriteria, Recipe

logger = logging.getLogger(__name__)


class RecipeSource(Protocol):
    def list_recipes(self, owner: Optional[str] = None) -> List[Recipe]: ...

    def search_recipes(self, query: str, owner: Optional[str] = None) -> List[Recipe]: ...

    def filter_recipes(self, criteria: FilterCriteria, owner: Optional[str] = None) -> List[Recipe]: ...


def compose_displayed(
    cached: List[Recipe],
    query: Optional[str],
    criteria: FilterCriteria | Dict[str, Any] | None,
    source: RecipeSource,
    owner: Optional[str] = None,
) -> List[Recipe]:
    criteria = FilterCriteria.coerce(criteria)
    query = (query or "").strip()
    try:
        if query:
            return source.search_recipes(query, owner=owner)
        if criteria.is_active():
            return source.filter_recipes(criteria, owner=owner)
    except RemoteError as e:
        logger.warning("Search/filter failed, showing all recipes: %s", e)
    return list(cached)


class RecipeListState:
    """Cached recipe list plus the displayed subset derived from it.

    ``displayed`` is recomputed whenever the cached list, the query or the
    criteria change; it cannot be assigned directly.
    """

    def __init__(self, source: RecipeSource, owner: Optional[str] = None):
        self.source = source
        self.owner = owner
        self._cached: List[Recipe] = []
        self._query = ""
        self._criteria = FilterCriteria()
        self._displayed: List[Recipe] = []
        self._inflight = threading.Lock()

    @property
    def cached(self) -> List[Recipe]:
        return list(self._cached)

    @property
    def query(self) -> str:
        return self._query

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def displayed(self) -> List[Recipe]:
        return list(self._displayed)

    @property
    def loading(self) -> bool:
        return self._inflight.locked()

    def _recompute(self) -> None:
        self._displayed = compose_displayed(
            self._cached, self._query, self._criteria, self.source, owner=self.owner
        )

    def refresh(self) -> bool:
        """Reload the cached list from the store.

        Returns False without doing anything when another refresh is still
        running. Store errors propagate; the previous cache is kept.
        """
        if not self._inflight.acquire(blocking=False):
            logger.debug("Refresh already in flight; skipping")
            return False
        try:
            self._cached = self.source.list_recipes(owner=self.owner)
            self._recompute()
        finally:
            self._inflight.release()
        return True

    def set_query(self, query: str) -> None:
        self._query = query or ""
        self._recompute()

    def set_criteria(self, criteria: FilterCriteria | Dict[str, Any] | None) -> None:
        self._criteria = FilterCriteria.coerce(criteria)
        self._recompute()

    def set_inputs(
        self,
        query: Optional[str] = None,
        criteria: FilterCriteria | Dict[str, Any] | None = None,
    ) -> None:
        """Replace query and criteria together with a single recompute."""
        self._query = query or ""
        self._criteria = FilterCriteria.coerce(criteria)
        self._recompute()
