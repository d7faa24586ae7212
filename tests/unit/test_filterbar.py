from __future__ import annotations

from fabric_filterbar import BarState, FilterBarController

HEADER = 80
CONTROLS = 120


def test_starts_docked():
    bar = FilterBarController()
    assert bar.state is BarState.DOCKED
    assert not bar.show_toggle
    assert bar.filters_visible


def test_scrolling_past_controls_hides_bar():
    bar = FilterBarController()
    assert bar.on_scroll(150, HEADER, CONTROLS) is BarState.DOCKED
    assert bar.on_scroll(201, HEADER, CONTROLS) is BarState.FLOATING_HIDDEN
    assert bar.show_toggle
    assert not bar.filters_visible


def test_scrolling_back_to_header_docks():
    bar = FilterBarController()
    bar.on_scroll(500, HEADER, CONTROLS)
    assert bar.on_scroll(80, HEADER, CONTROLS) is BarState.DOCKED


def test_repeated_scroll_events_are_idempotent():
    bar = FilterBarController()
    for _ in range(3):
        assert bar.on_scroll(500, HEADER, CONTROLS) is BarState.FLOATING_HIDDEN
    bar.toggle(500)
    for _ in range(3):
        assert bar.on_scroll(500, HEADER, CONTROLS) is BarState.FLOATING_VISIBLE


def test_toggle_shows_then_hides():
    bar = FilterBarController()
    bar.on_scroll(500, HEADER, CONTROLS)

    assert bar.toggle(500) is BarState.FLOATING_VISIBLE
    assert bar.last_shown == 500
    assert bar.toggle(520) is BarState.FLOATING_HIDDEN


def test_floating_bar_hides_after_scrolling_past_buffer():
    bar = FilterBarController(buffer=200)
    bar.on_scroll(500, HEADER, CONTROLS)
    bar.toggle(500)

    assert bar.on_scroll(650, HEADER, CONTROLS) is BarState.FLOATING_VISIBLE
    assert bar.on_scroll(701, HEADER, CONTROLS) is BarState.FLOATING_HIDDEN


def test_toggle_from_docked_hides_and_dock_restores():
    bar = FilterBarController()
    assert bar.toggle() is BarState.FLOATING_HIDDEN
    assert bar.dock() is BarState.DOCKED
