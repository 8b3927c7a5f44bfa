"""Session state: current filters, search query and the compare list.

Nothing here is global; callers create an ``AppState`` and pass it around.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field, replace

from catalog import config
from catalog.engine import filtering
from catalog.engine.filtering import FilterCriteria
from catalog.records import ModelRecord

logger = logging.getLogger(__name__)


class CompareSelection:
    """Ordered set of up to ``limit`` distinct model ids."""

    def __init__(self, limit: int = config.COMPARE_LIMIT) -> None:
        self.limit = limit
        self._ids: list[str] = []

    def add(self, model_id: str) -> bool:
        """Add *model_id*. Returns False (and changes nothing) if present or full."""
        if model_id in self._ids or len(self._ids) >= self.limit:
            return False
        self._ids.append(model_id)
        return True

    def remove(self, model_id: str) -> None:
        if model_id in self._ids:
            self._ids.remove(model_id)

    def clear(self) -> None:
        self._ids.clear()

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._ids)

    @property
    def is_full(self) -> bool:
        return len(self._ids) >= self.limit

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))


@dataclass
class AppState:
    models: list[ModelRecord] = field(default_factory=list)
    filters: FilterCriteria = field(default_factory=FilterCriteria.default)
    search_query: str = ""
    compare: CompareSelection = field(default_factory=CompareSelection)
    error: str | None = None

    def set_models(self, models: list[ModelRecord]) -> None:
        self.models = list(models)
        self.error = None

    def set_error(self, error: str | None) -> None:
        self.error = error

    def set_filters(self, filters: FilterCriteria) -> None:
        self.filters = filters

    def update_filter(self, **changes) -> None:
        """Replace individual criteria fields, e.g. ``update_filter(brands=frozenset({"X"}))``."""
        self.filters = replace(self.filters, **changes)

    def clear_filters(self) -> None:
        self.filters = FilterCriteria.default()

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def add_to_compare(self, model: ModelRecord) -> bool:
        added = self.compare.add(model.id)
        if not added:
            logger.debug("Not adding %s to compare list (duplicate or full)", model.id)
        return added

    def remove_from_compare(self, model_id: str) -> None:
        self.compare.remove(model_id)

    def clear_compare(self) -> None:
        self.compare.clear()

    def visible_models(self) -> list[ModelRecord]:
        """Models matching the search query, then the filters."""
        matches = filtering.search(self.models, self.search_query).models
        return filtering.apply(matches, self.filters)

    def compare_models(self) -> list[ModelRecord]:
        """Records for the compare list, in the order they were added.

        Ids no longer present in ``models`` are skipped.
        """
        by_id = {m.id: m for m in self.models}
        return [by_id[i] for i in self.compare if i in by_id]

    def available_brands(self) -> list[str]:
        return filtering.available_brands(self.models)

    def price_bounds(self) -> tuple[float, float]:
        return filtering.price_bounds(self.models)

    def window_bounds(self) -> tuple[int, int]:
        return filtering.window_bounds(self.models)
