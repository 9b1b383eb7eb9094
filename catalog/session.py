"""
Browsing Session
================
Explicit per-user browsing state: favorite ids, whether they have been
loaded (hydrated), the favorites view mode and the last published result.

refresh() runs one list query at a time. Starting a new refresh cancels
the one in flight, and a result that arrives after it was superseded is
dropped instead of replacing the visible state.
"""
import asyncio
import logging
from typing import Iterable, Optional, Set, Tuple

from .ai_filters import ai_filters_to_criteria
from .filter import filter_products
from .query import ListResult, criteria_to_params, paginate, validate_list_query
from .schema import AIParsedFilters, FavoriteMode, FilterCriteria
from .sort import sort_products

logger = logging.getLogger(__name__)


class BrowsingSession:

    def __init__(self, store, favorite_mode: FavoriteMode = "all"):
        self.store = store
        self.favorites: Set[str] = set()
        self.hydrated = False
        self.favorite_mode: FavoriteMode = favorite_mode

        self.criteria = FilterCriteria()
        self.result: Optional[ListResult] = None

        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # favorites
    # ------------------------------------------------------------------

    def hydrate(self, favorite_ids: Iterable[str]) -> None:
        """Load persisted favorites. Until then favorite modes are ignored."""
        self.favorites = {str(f) for f in favorite_ids}
        self.hydrated = True

    def toggle_favorite(self, product_id: str) -> bool:
        """Returns True if the product is a favorite afterwards."""
        if product_id in self.favorites:
            self.favorites.discard(product_id)
            return False
        self.favorites.add(product_id)
        return True

    def is_favorite(self, product_id: str) -> bool:
        return product_id in self.favorites

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    async def _load(self, raw_query) -> Tuple[FilterCriteria, ListResult]:
        criteria = validate_list_query(raw_query)
        products = await self.store.get_all_products()
        matched = filter_products(
            products,
            criteria,
            favorites=self.favorites,
            favorite_mode=self.favorite_mode,
            hydrated=self.hydrated,
        )
        ordered = sort_products(matched, criteria.sort)
        return criteria, paginate(ordered, criteria.page, criteria.page_size)

    async def refresh(self, raw_query) -> Optional[ListResult]:
        """
        Run a list query and publish its result.

        Returns None when this call was superseded by a newer refresh; the
        published state then belongs to the newer call. Validation errors
        propagate and leave the published state untouched.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()

        self._generation += 1
        generation = self._generation
        task = asyncio.create_task(self._load(raw_query))
        self._task = task

        try:
            criteria, result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug(f"Refresh #{generation} superseded before completion")
                return None
            raise

        if generation != self._generation:
            logger.debug(f"Discarding stale result of refresh #{generation}")
            return None

        self.criteria = criteria
        self.result = result
        return result

    async def apply_ai_filters(self, parsed: AIParsedFilters) -> Optional[ListResult]:
        """Replace the current filters with translated ones and refresh."""
        stats = await self.store.get_product_stats()
        criteria = ai_filters_to_criteria(parsed, stats)
        return await self.refresh(criteria_to_params(criteria))

    async def set_favorite_mode(self, mode: FavoriteMode) -> Optional[ListResult]:
        self.favorite_mode = mode
        return await self.refresh(criteria_to_params(self.criteria))
