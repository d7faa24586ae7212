# Fabric Finder: gallery card / detail view builders and the image magnifier

from __future__ import annotations

import html
import io
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

import requests
from PIL import Image, UnidentifiedImageError

from fabric_config import (
    FETCH_TIMEOUT, IMAGE_TIMEOUT, IMAGE_WORKERS, LENS_MAX, LENS_MIN, LOW_STOCK_LABEL, PLACEHOLDER_IMAGE,
)
from fabric_filters import format_number
from fabric_logging import get_logger
from fabric_sheet import FabricRecord

logger = get_logger(__name__)

UNNAMED = "Unnamed Fabric"
NOT_AVAILABLE = "N/A"

GALLERY_CSS = """
<style>
.fabric-card { border-radius: 8px; padding: 0.5rem; text-align: center; background: rgba(127,127,127,0.06); }
.fabric-card img { width: 100%; aspect-ratio: 1 / 1; object-fit: cover; border-radius: 6px; }
.fabric-card.low-stock { border: 2px solid #f59e0b; }
.fabric-card.low-stock::after { content: "Low stock"; display: block; font-size: 0.75rem; color: #b45309; }
.fabric-card p { margin: 0.35rem 0 0; }
</style>
"""

# -------------------- Gallery --------------------
def is_low_stock(record: FabricRecord, label: str = LOW_STOCK_LABEL) -> bool:
    return record.ordering_status == label

def display_name(record: FabricRecord) -> str:
    return record.name or UNNAMED

def card_html(record: FabricRecord, eager: bool = False) -> str:
    """One gallery card.

    Images load lazily (the browser starts the fetch as the card nears the
    viewport) unless `eager` is set. Cards whose image fails to load are
    dropped before rendering, see ``ImageChecker``.
    """
    classes = "fabric-card low-stock" if is_low_stock(record) else "fabric-card"
    src = html.escape(record.image_link_normalized, quote=True)
    name = html.escape(display_name(record))
    alt = html.escape(record.name or "Fabric", quote=True)
    loading = "eager" if eager else "lazy"
    return (
        f'<div class="{classes}">'
        f'<img src="{src}" data-src="{src}" alt="{alt}" loading="{loading}" decoding="async">'
        f"<p><strong>{name}</strong></p>"
        "</div>"
    )

def gallery_rows(records: Sequence[FabricRecord], columns: int) -> list[list[FabricRecord]]:
    columns = max(1, columns)
    return [list(records[i:i + columns]) for i in range(0, len(records), columns)]

# -------------------- Image checks --------------------
# servers that refuse HEAD get a streamed GET instead
_HEAD_REFUSED = {403, 405, 501}

def image_available(url: str, timeout: int | float = IMAGE_TIMEOUT) -> bool:
    """True when `url` answers 2xx with an image (or untyped) body."""
    try:
        r = requests.head(url, timeout=timeout, allow_redirects=True)
        if r.status_code in _HEAD_REFUSED:
            r = requests.get(url, timeout=timeout, stream=True)
            r.close()
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error("image failed to load: %s (%s)", url, e)
        return False
    ctype = (r.headers.get("Content-Type") or "").lower()
    if ctype and not ctype.startswith("image/"):
        logger.error("image failed to load: %s (content type %s)", url, ctype)
        return False
    return True

class ImageChecker:
    """Remembers which gallery image URLs load; unknown URLs are checked in parallel."""

    def __init__(self, timeout: int | float = IMAGE_TIMEOUT, workers: int = IMAGE_WORKERS, check=image_available):
        self.timeout = timeout
        self.workers = max(1, workers)
        self._check = check
        self._results: dict[str, bool] = {}
        self._lock = threading.Lock()

    def loads(self, url: str) -> bool:
        return self.check_all([url])[url]

    def check_all(self, urls: Sequence[str]) -> dict[str, bool]:
        with self._lock:
            unknown = [u for u in dict.fromkeys(urls) if u not in self._results]
        if unknown:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(unknown))) as pool:
                found = list(pool.map(lambda u: self._check(u, self.timeout), unknown))
            with self._lock:
                self._results.update(zip(unknown, found))
        with self._lock:
            return {u: self._results[u] for u in urls}

    def loadable(self, records: Sequence[FabricRecord]) -> list[FabricRecord]:
        ok = self.check_all([r.image_link_normalized for r in records])
        return [r for r in records if ok[r.image_link_normalized]]

# -------------------- Detail --------------------
def _or_na(value: str) -> str:
    return value if value else NOT_AVAILABLE

def detail_fields(record: FabricRecord) -> list[tuple[str, str]]:
    band = format_number(record.band_width) if record.band_width is not None else ""
    return [
        ("SKU", _or_na(record.sku)),
        ("Type", _or_na(record.type)),
        ("Family", _or_na(record.family)),
        ("Colour", _or_na(record.colour)),
        ("Band Width", _or_na(band)),
        ("Roll Width", _or_na(record.roll_width)),
        ("Schedule", _or_na(record.schedule)),
        ("Status", _or_na(record.status)),
        ("Ordering Status", _or_na(record.ordering_status)),
    ]

def detail_image_html(record: FabricRecord, loaded: bool = True) -> str:
    src = html.escape(record.image_link_normalized if loaded else PLACEHOLDER_IMAGE, quote=True)
    alt = html.escape(display_name(record), quote=True)
    return f'<img src="{src}" alt="{alt}" style="max-width:100%;">'

def detail_markdown(record: FabricRecord) -> str:
    return "\n".join(f"**{label}:** {html.escape(value)}  " for label, value in detail_fields(record))

# -------------------- Magnifier --------------------
@dataclass(frozen=True)
class MagnifierView:
    lens: int                               # overlay edge, px
    box: tuple[int, int, int, int]          # crop in natural image px (left, top, right, bottom)
    background_size: tuple[float, float]    # overlay background size, px
    background_position: tuple[float, float]

def magnifier_view(
    natural_size: tuple[int, int],
    display_width: float,
    pointer: tuple[float, float],
    zoom: float = 2.5,
    lens_min: int = LENS_MIN,
    lens_max: int = LENS_MAX,
) -> MagnifierView:
    """Zoomed crop around `pointer` (fractions 0..1 of the image, x then y).

    The lens edge is a third of the displayed image, bounded to
    [lens_min, lens_max]; the crop is shifted, never shrunk, to stay inside
    the image unless the image itself is smaller than the crop.
    """
    nat_w, nat_h = natural_size
    if nat_w <= 0 or nat_h <= 0 or display_width <= 0:
        raise ValueError("image and display sizes must be positive")
    zoom = max(1.0, float(zoom))
    display_height = display_width * nat_h / nat_w
    lens = int(round(min(lens_max, max(lens_min, min(display_width, display_height) / 3))))

    px = min(1.0, max(0.0, pointer[0]))
    py = min(1.0, max(0.0, pointer[1]))

    # natural px covered by the lens at this zoom
    scale = nat_w / display_width
    crop_w = min(nat_w, lens * scale / zoom)
    crop_h = min(nat_h, lens * scale / zoom)
    left = min(max(0.0, px * nat_w - crop_w / 2), nat_w - crop_w)
    top = min(max(0.0, py * nat_h - crop_h / 2), nat_h - crop_h)
    box = (int(round(left)), int(round(top)), int(round(left + crop_w)), int(round(top + crop_h)))

    # same region expressed as a background-positioned overlay
    ratio = lens / crop_w
    background_size = (nat_w * ratio, nat_h * ratio)
    background_position = (-left * ratio, -top * ratio)
    return MagnifierView(lens=lens, box=box, background_size=background_size, background_position=background_position)

def fetch_image(url: str, timeout: int | float = FETCH_TIMEOUT) -> Image.Image | None:
    """Download and decode an image; None when it cannot be loaded."""
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        img = Image.open(io.BytesIO(r.content))
        img.load()
        return img
    except (requests.RequestException, UnidentifiedImageError, OSError) as e:
        logger.error("full image failed to load: %s (%s)", url, e)
        return None

def magnify(img: Image.Image, view: MagnifierView) -> Image.Image:
    left, top, right, bottom = view.box
    crop_w, crop_h = max(1, right - left), max(1, bottom - top)
    # keep the crop's aspect ratio when one side was clipped to the image
    return img.crop(view.box).resize((view.lens, max(1, round(view.lens * crop_h / crop_w))))
