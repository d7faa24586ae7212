# Fabric Finder: per-browser-session gallery state

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any, Callable, Iterable

from fabric_config import DEBOUNCE_MS, PAGE_SIZE
from fabric_filterbar import FilterBarController
from fabric_filters import Debouncer, FilterEngine, FilterState, parse_threshold
from fabric_logging import get_logger
from fabric_sheet import FabricCatalog, FabricRecord

logger = get_logger(__name__)


class GallerySession:
    """Owns the catalog, the current filter state and the visible subset.

    Selection controls apply immediately; free text and the roll width
    threshold go through a settling delay first (see ``settle``).
    """

    def __init__(self, catalog: FabricCatalog, debounce_ms: int = DEBOUNCE_MS, page_size: int = PAGE_SIZE):
        self.catalog = catalog
        self.engine = FilterEngine(catalog.gallery)
        self.state = FilterState()
        self.visible: list[FabricRecord] = self.engine.apply(self.state)
        self.debouncer = Debouncer(debounce_ms)
        self.filter_bar = FilterBarController()
        self.page_size = page_size
        self.limit = page_size
        self.eager_images = False
        # raw widget text, kept so the inputs can be cleared on reset
        self.search_text = ""
        self.roll_width_text = ""

    @property
    def options(self) -> dict[str, list]:
        return self.engine.options

    @property
    def page(self) -> list[FabricRecord]:
        return self.visible[: self.limit]

    @property
    def has_more(self) -> bool:
        return len(self.visible) > self.limit

    def _apply(self, state: FilterState) -> None:
        self.state = state
        self.visible = self.engine.apply(state)
        self.limit = self.page_size
        self.eager_images = True
        logger.debug("showing %d of %d fabrics", len(self.visible), len(self.engine.records))

    def select(self, attr: str, values: Iterable[Any]) -> None:
        self._apply(self.state.with_selection(attr, values))

    def type_search(self, term: str, now: float) -> None:
        self.search_text = term or ""
        self.debouncer.push("search", self.search_text, now)

    def type_roll_width(self, text: str, now: float) -> None:
        self.roll_width_text = text or ""
        self.debouncer.push("roll_width_min", parse_threshold(self.roll_width_text), now)

    def flush(self, now: float) -> bool:
        due = self.debouncer.pop_due(now)
        if not due:
            return False
        self._apply(replace(self.state, **due))
        return True

    def settle(self, clock: Callable[[], float] = time.monotonic, sleep: Callable[[float], None] = time.sleep) -> bool:
        """Wait out any pending settling delay, then apply the settled input.

        Streamlit stops a running script when a new interaction arrives, so a
        keystroke during the wait replaces the pending value instead of
        rendering the intermediate one.
        """
        if not self.debouncer.pending:
            return False
        started = clock()
        wait = self.debouncer.remaining(started)
        if wait > 0:
            sleep(wait)
        return self.flush(max(clock(), self.debouncer.deadline or started))

    def reset(self) -> None:
        self.debouncer.clear()
        self.search_text = ""
        self.roll_width_text = ""
        self._apply(FilterState())

    def show_more(self) -> None:
        self.limit += self.page_size

    def close(self) -> None:
        self.engine.close()
