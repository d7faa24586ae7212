# Fabric Finder: runtime configuration (environment driven)

import os
from urllib.parse import quote

# -------------------- Source --------------------
GVIZ_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:json&sheet={sheet}"

SHEET_ID    = os.getenv("FABRIC_SHEET_ID", "1OaLsjBSqyZyGsqN-qnCh-JB4E0QfUlAX_5Rgam5pIkY").strip()
SHEET_NAME  = os.getenv("FABRIC_SHEET_NAME", "Sample Fabrics").strip()
SHEET_URL   = os.getenv("FABRIC_SHEET_URL", "").strip()

def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default

FETCH_TIMEOUT = _int_env("FABRIC_FETCH_TIMEOUT", 25)   # seconds, transport only
IMAGE_TIMEOUT = _int_env("FABRIC_IMAGE_TIMEOUT", 5)    # seconds, per gallery image check
IMAGE_WORKERS = max(1, _int_env("FABRIC_IMAGE_WORKERS", 8))
CACHE_TTL     = _int_env("FABRIC_CACHE_TTL", 600)      # seconds

# -------------------- UI --------------------
BRAND_NAME       = os.getenv("BRAND_NAME", "Your Store")
PAGE_TITLE       = f"{BRAND_NAME} - Sample Fabrics"
DEBOUNCE_MS      = _int_env("FABRIC_DEBOUNCE_MS", 300)
GRID_COLUMNS     = max(1, _int_env("FABRIC_GRID_COLUMNS", 4))
PAGE_SIZE        = max(1, _int_env("FABRIC_PAGE_SIZE", 48))
LOW_STOCK_LABEL  = os.getenv("FABRIC_LOW_STOCK_LABEL", "Low Stock")
FILTER_BAR_BUFFER = 200   # px of scroll before a floating bar hides again

# Magnifier lens bounds (px) and default zoom
LENS_MIN  = 100
LENS_MAX  = 200
LENS_ZOOM = 2.5

LOG_LEVEL = os.getenv("FABRIC_LOG_LEVEL", "INFO").upper()

# Placeholder image (base64 encoded gray square)
PLACEHOLDER_IMAGE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="
)

LOAD_ERROR_MESSAGE = "Error loading fabrics. Please try again later or check the console for details."
NO_RESULTS_MESSAGE = "No matching fabrics found."


def build_sheet_url(sheet_id: str, sheet_name: str) -> str:
    return GVIZ_URL_TEMPLATE.format(sheet_id=sheet_id, sheet=quote(sheet_name))


def source_url() -> str:
    """FABRIC_SHEET_URL wins; otherwise the gviz export of FABRIC_SHEET_ID/FABRIC_SHEET_NAME."""
    return SHEET_URL or build_sheet_url(SHEET_ID, SHEET_NAME)
