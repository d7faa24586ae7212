# Fabric Finder — Sample Fabrics gallery
# (Google Sheet gviz export -> normalized fabric records -> filterable image grid
#  + detail dialog with magnifier + docked/floating filter bar)

import time

import streamlit as st

from fabric_cards import (
    GALLERY_CSS, ImageChecker, card_html, detail_image_html, detail_markdown, display_name, fetch_image,
    gallery_rows, magnifier_view, magnify,
)
from fabric_config import (
    CACHE_TTL, FETCH_TIMEOUT, GRID_COLUMNS, LENS_MAX, LENS_MIN, LENS_ZOOM,
    LOAD_ERROR_MESSAGE, LOG_LEVEL, NO_RESULTS_MESSAGE, PAGE_TITLE,
    source_url,
)
from fabric_filterbar import BarState
from fabric_filters import (
    FILTER_FIELDS, GRID_KEY, RESET_KEY, ROLL_WIDTH_KEY, SEARCH_KEY,
    format_number, toggle_caption,
)
from fabric_logging import get_logger, setup_logging
from fabric_session import GallerySession
from fabric_sheet import FabricCatalog, FabricRecord, FabricSourceError, load_catalog

setup_logging(LOG_LEVEL)
logger = get_logger("app")

# -------------------- Page --------------------
st.set_page_config(page_title=PAGE_TITLE, layout="wide")
st.title(PAGE_TITLE)
st.markdown(GALLERY_CSS, unsafe_allow_html=True)

# -------------------- Load Data --------------------
@st.cache_data(show_spinner="Loading fabrics...", ttl=CACHE_TTL)
def cached_catalog(url: str) -> FabricCatalog:
    return load_catalog(url, timeout=FETCH_TIMEOUT)

@st.cache_data(show_spinner=False, ttl=CACHE_TTL)
def cached_image(url: str):
    return fetch_image(url)

@st.cache_resource(ttl=CACHE_TTL)
def image_checker() -> ImageChecker:
    return ImageChecker()

SOURCE_URL = source_url()

try:
    catalog = cached_catalog(SOURCE_URL)
except FabricSourceError:
    logger.exception("error fetching fabrics")
    st.error(LOAD_ERROR_MESSAGE)
    if st.button("Reload data"):
        cached_catalog.clear()
        st.rerun()
    st.stop()

# -------------------- Session --------------------
session = st.session_state.get("gallery")
if session is None or session.catalog.fetched_at != catalog.fetched_at:
    if session is not None:
        session.close()
    session = GallerySession(catalog)
    st.session_state["gallery"] = session
    for _key in [f.key for f in FILTER_FIELDS] + [SEARCH_KEY, ROLL_WIDTH_KEY]:
        st.session_state.pop(_key, None)

def _on_select(attr: str, key: str):
    session.select(attr, st.session_state.get(key) or [])

def _on_search():
    session.type_search(st.session_state.get(SEARCH_KEY, ""), time.monotonic())

def _on_roll_width():
    session.type_roll_width(st.session_state.get(ROLL_WIDTH_KEY, ""), time.monotonic())

def _on_reset():
    for f in FILTER_FIELDS:
        st.session_state[f.key] = []
    st.session_state[SEARCH_KEY] = ""
    st.session_state[ROLL_WIDTH_KEY] = ""
    session.reset()

def _on_toggle_bar():
    session.filter_bar.toggle()

def _on_dock_bar():
    session.filter_bar.dock()

# -------------------- Filter controls --------------------
def _restore_widgets():
    # widgets that were not drawn last run lose their state; restore it from the session
    for f in FILTER_FIELDS:
        if f.key not in st.session_state:
            st.session_state[f.key] = sorted(session.state.selected(f.attr))
    if SEARCH_KEY not in st.session_state:
        st.session_state[SEARCH_KEY] = session.search_text
    if ROLL_WIDTH_KEY not in st.session_state:
        st.session_state[ROLL_WIDTH_KEY] = session.roll_width_text

def render_filters(container):
    _restore_widgets()
    with container:
        st.text_input("Search", key=SEARCH_KEY, placeholder="Search by name or SKU", on_change=_on_search)
        cols = st.columns(3)
        for i, f in enumerate(FILTER_FIELDS):
            fmt = format_number if f.numeric else str
            cols[i % 3].multiselect(
                f.label,
                options=session.options[f.attr],
                key=f.key,
                format_func=fmt,
                placeholder=f"Select {f.label}",
                on_change=_on_select,
                args=(f.attr, f.key),
            )
        st.caption(" · ".join(toggle_caption(f.label, len(session.state.selected(f.attr))) for f in FILTER_FIELDS))
        c1, c2 = st.columns([2, 1])
        c1.text_input("Minimum Roll Width", key=ROLL_WIDTH_KEY, placeholder="e.g. 50", on_change=_on_roll_width)
        c2.button("Reset filters", key=RESET_KEY, on_click=_on_reset, use_container_width=True)

bar = session.filter_bar
top = st.container()
if bar.state is BarState.DOCKED:
    with top.expander("Filters", expanded=True):
        render_filters(st.container())
        st.button("Float filter bar", on_click=_on_toggle_bar)
elif bar.state is BarState.FLOATING_VISIBLE:
    render_filters(st.sidebar)
    st.sidebar.button("Hide filters", on_click=_on_toggle_bar)
    st.sidebar.button("Dock filters", on_click=_on_dock_bar)
else:
    c1, c2, _ = top.columns([1, 1, 4])
    c1.button("Show filters", on_click=_on_toggle_bar)
    c2.button("Dock filters", on_click=_on_dock_bar)

# search / roll width settle before the grid is drawn
session.settle()

# -------------------- Detail View --------------------
@st.dialog("Fabric details", width="large")
def show_fabric_details(record: FabricRecord):
    left, right = st.columns([3, 2])
    with left:
        magnifier_on = st.toggle("Magnifier", key="magnifier_on")
        img = cached_image(record.image_link_normalized) if magnifier_on else None
        if magnifier_on and img is not None:
            st.image(img, use_container_width=True)
            x = st.slider("Horizontal", 0, 100, 50, key="magnifier_x") / 100
            y = st.slider("Vertical", 0, 100, 50, key="magnifier_y") / 100
            zoom = st.slider("Zoom", 1.5, 5.0, LENS_ZOOM, 0.5, key="magnifier_zoom")
            view = magnifier_view(img.size, 480, (x, y), zoom=zoom, lens_min=LENS_MIN, lens_max=LENS_MAX)
            st.image(magnify(img, view), width=view.lens)
        else:
            if magnifier_on:
                st.caption("Magnifier unavailable: the image could not be loaded.")
            loaded = image_checker().loads(record.image_link_normalized)
            st.markdown(detail_image_html(record, loaded=loaded), unsafe_allow_html=True)
    with right:
        st.subheader(display_name(record))
        st.markdown(detail_markdown(record))

# -------------------- Gallery --------------------
st.caption(f"Showing {len(session.visible)} of {len(catalog.gallery)} fabrics")

grid = st.container(key=GRID_KEY)
with grid:
    if not session.visible:
        st.info(NO_RESULTS_MESSAGE)
    # cards whose image does not load are left out
    for row in gallery_rows(image_checker().loadable(session.page), GRID_COLUMNS):
        cols = st.columns(GRID_COLUMNS)
        for col, record in zip(cols, row):
            with col:
                st.markdown(card_html(record, eager=session.eager_images), unsafe_allow_html=True)
                if st.button("Details", key=f"details-{record.row_index}", use_container_width=True):
                    show_fabric_details(record)
    if session.has_more:
        st.button("Show more", on_click=session.show_more)

# -------------------- Admin --------------------
with st.expander("Data source", expanded=False):
    st.caption(f"{len(catalog.records)} rows loaded, {catalog.skipped} without a usable image.")
    st.caption(f"Fetched {catalog.fetched_at:%Y-%m-%d %H:%M} UTC")
    if st.button("Reload data (clear cache)"):
        cached_catalog.clear()
        image_checker.clear()
        st.session_state.pop("gallery", None)
        st.rerun()
