# Fabric Finder: filter bar visibility (docked / floating-hidden / floating-visible)

from __future__ import annotations

from enum import Enum

from fabric_config import FILTER_BAR_BUFFER


class BarState(str, Enum):
    DOCKED = "docked"
    FLOATING_HIDDEN = "floating-hidden"
    FLOATING_VISIBLE = "floating-visible"


class FilterBarController:
    """Visibility of the filter bar.

    The Streamlit page drives it with ``toggle`` and ``dock`` (its buttons),
    since the script never sees the browser scroll position. ``on_scroll``
    applies the scroll transitions for a host that does report it.
    """

    def __init__(self, buffer: int = FILTER_BAR_BUFFER):
        self.buffer = buffer
        self.state = BarState.DOCKED
        self.last_shown = 0.0

    @property
    def show_toggle(self) -> bool:
        return self.state is not BarState.DOCKED

    @property
    def filters_visible(self) -> bool:
        return self.state is not BarState.FLOATING_HIDDEN

    def on_scroll(self, position: float, header_height: float, controls_height: float) -> BarState:
        if self.state is BarState.DOCKED:
            if position > header_height + controls_height:
                self.state = BarState.FLOATING_HIDDEN
        elif position <= header_height:
            self.state = BarState.DOCKED
        elif self.state is BarState.FLOATING_VISIBLE and abs(position - self.last_shown) > self.buffer:
            self.state = BarState.FLOATING_HIDDEN
        return self.state

    def toggle(self, position: float = 0.0) -> BarState:
        if self.state is BarState.FLOATING_HIDDEN:
            self.state = BarState.FLOATING_VISIBLE
            self.last_shown = position
        else:
            self.state = BarState.FLOATING_HIDDEN
        return self.state

    def dock(self) -> BarState:
        self.state = BarState.DOCKED
        return self.state
