"""Applied, draft and persisted filter layers and the rules between them."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from src.models.filters import (
    QUICK_DIMENSIONS,
    FilterDimension,
    FilterLayer,
    FilterState,
)

logger = logging.getLogger(__name__)


class Transition(BaseModel):
    """Outcome of committing a new applied state."""

    previous: FilterState
    current: FilterState
    generation: int
    towns_changed: bool


class FilterStateMachine:
    """Owns the three filter layers of one shopper session.

    Every commit replaces the applied layer with a fully built state in a
    single assignment, so callers never observe a mix of draft and applied
    dimensions. Transitions are synchronous; persistence and querying are
    left to the caller.
    """

    def __init__(
        self,
        default_town: str | None = None,
        restored: FilterState | None = None,
    ) -> None:
        self._default_town = default_town
        self._generation = 0
        self._persisted = restored

        if restored is not None:
            towns = restored.towns or self._default_towns()
            applied = restored.model_copy(update={"towns": towns, "page": 1})
        else:
            applied = FilterState.for_town(default_town)
        self._applied = applied
        self._draft = applied

    @property
    def default_town(self) -> str | None:
        return self._default_town

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def applied(self) -> FilterState:
        return self._applied

    @property
    def draft(self) -> FilterState:
        return self._draft

    @property
    def persisted(self) -> FilterState | None:
        return self._persisted

    @property
    def is_ready(self) -> bool:
        """Queries may only run once a town is in scope."""
        return bool(self._applied.towns)

    def layer(self, name: FilterLayer) -> FilterState | None:
        if name == "draft":
            return self._draft
        if name == "persisted":
            return self._persisted
        return self._applied

    def resolve_default_town(self, town: str) -> None:
        """Adopt a late-resolved default town when none is in scope yet."""
        self._default_town = town
        if self._applied.towns:
            return
        applied = self._applied.model_copy(update={"towns": (town,), "page": 1})
        self._applied = applied
        self._draft = self._draft.model_copy(update={"towns": (town,)})

    def open_filter_panel(self) -> FilterState:
        self._draft = self._applied
        return self._draft

    def set_draft_dimension(self, dimension: FilterDimension, value: Any) -> FilterState:
        """Validated change of one draft dimension; applied is untouched."""
        self._draft = self._draft.with_dimension(dimension, value)
        return self._draft

    def apply_filters(self) -> Transition:
        return self._commit(self._draft)

    def clear_all(self) -> Transition:
        return self._commit(FilterState.for_town(self._default_town))

    def switch_town(self, town: str) -> Transition:
        """Town selector change; the town becomes the new default as well."""
        self._default_town = town
        return self._commit(self._applied.model_copy(update={"towns": (town,)}))

    def quick_select(self, dimension: FilterDimension, value: Any) -> Transition:
        """Tab, sort or search change that applies immediately."""
        if dimension not in QUICK_DIMENSIONS:
            raise ValueError(f"{dimension.value} can only be changed through apply")
        return self._commit(self._applied.with_dimension(dimension, value))

    def advance_page(self, page: int) -> FilterState:
        """Page moves are the only change that keeps every filter as is."""
        self._applied = self._applied.model_copy(update={"page": page})
        return self._applied

    def _default_towns(self) -> tuple[str, ...]:
        return (self._default_town,) if self._default_town else ()

    def _commit(self, candidate: FilterState) -> Transition:
        previous = self._applied
        towns = candidate.towns or self._default_towns()
        towns_changed = set(towns) != set(previous.towns)

        update: dict[str, Any] = {"towns": towns, "page": 1}
        if towns_changed:
            # Shops belong to exactly one town, a selection cannot survive a move.
            update["shops"] = ()
        current = candidate.model_copy(update=update)

        self._applied = current
        self._draft = current
        self._persisted = current
        self._generation += 1

        if towns_changed:
            logger.info(
                "Town scope changed, shop selection cleared",
                extra={"from": list(previous.towns), "to": list(towns)},
            )
        return Transition(
            previous=previous,
            current=current,
            generation=self._generation,
            towns_changed=towns_changed,
        )
