# Fabric Finder: sheet fetch, gviz payload parsing and record normalization

from __future__ import annotations

import ipaddress
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

import requests

from fabric_config import FETCH_TIMEOUT
from fabric_logging import get_logger

logger = get_logger(__name__)

# -------------------- Errors --------------------
class FabricSourceError(Exception):
    """Fabric data could not be loaded from the sheet."""

class NetworkError(FabricSourceError):
    pass

class ParseError(FabricSourceError):
    pass

class ImageValidationError(ValueError):
    pass

# -------------------- Schema --------------------
# Sheet column label -> FabricRecord attribute
SCHEMA_COLUMNS = {
    "SKU": "sku",
    "Type": "type",
    "Name": "name",
    "Family": "family",
    "Colour": "colour",
    "Band Width": "band_width",
    "Roll Width": "roll_width",
    "Schedule": "schedule",
    "Status": "status",
    "Image Link": "image_link",
    "Ordering Status": "ordering_status",
}

# gviz wraps its JSON as: /*O_o*/\ngoogle.visualization.Query.setResponse( ... );
GVIZ_PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("
GVIZ_SUFFIX = ");"
GVIZ_PREFIX_LEN = len(GVIZ_PREFIX)   # 47
GVIZ_SUFFIX_LEN = len(GVIZ_SUFFIX)   # 2


@dataclass(frozen=True)
class FabricRecord:
    sku: str = ""
    type: str = ""
    name: str = ""
    family: str = ""
    colour: str = ""
    band_width: float | None = None
    roll_width: str = ""
    schedule: str = ""
    status: str = ""
    ordering_status: str = ""
    image_link: str = ""
    image_link_normalized: str = ""
    has_valid_image: bool = False
    row_index: int = 0


@dataclass(frozen=True)
class SheetTable:
    labels: list[str]
    rows: list[list[Any]]

    @property
    def column_index(self) -> dict[str, int]:
        # later duplicates win
        return {label: i for i, label in enumerate(self.labels)}


@dataclass(frozen=True)
class FabricCatalog:
    records: tuple[FabricRecord, ...]
    source_url: str = ""
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def gallery(self) -> tuple[FabricRecord, ...]:
        return tuple(r for r in self.records if r.has_valid_image)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.records if not r.has_valid_image)

# -------------------- Fetch --------------------
def fetch_sheet_text(url: str, timeout: int | float = FETCH_TIMEOUT) -> str:
    logger.info("fetching fabrics from %s", url)
    try:
        r = requests.get(url, timeout=timeout, headers={"Cache-Control": "no-cache"})
        r.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        raise NetworkError(f"HTTP error! Status: {status}") from e
    except requests.RequestException as e:
        raise NetworkError(f"request failed: {e}") from e
    logger.info("raw response length: %d", len(r.text))
    return r.text

# -------------------- Parse --------------------
def parse_sheet_payload(text: str) -> SheetTable:
    if text is None or len(text) < GVIZ_PREFIX_LEN + GVIZ_SUFFIX_LEN:
        raise ParseError("response too short to hold a gviz payload")
    body = text[GVIZ_PREFIX_LEN:len(text) - GVIZ_SUFFIX_LEN]
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid gviz payload: {e}") from e
    if not isinstance(payload, dict):
        raise ParseError("gviz payload is not an object")

    if payload.get("status") == "error":
        errs = payload.get("errors") or []
        detail = "; ".join(
            str(x.get("detailed_message") or x.get("message") or x.get("reason") or x)
            for x in errs if x
        )
        raise ParseError(f"sheet export reported an error: {detail or 'unknown'}")

    table = payload.get("table")
    if not isinstance(table, dict):
        raise ParseError("gviz payload has no 'table'")
    cols, rows = table.get("cols"), table.get("rows")
    if not isinstance(cols, list) or not isinstance(rows, list):
        raise ParseError("gviz table is missing 'cols' or 'rows'")

    if any(c is not None and not isinstance(c, dict) for c in cols):
        raise ParseError("gviz 'cols' entries must be objects")
    if any(row is not None and not isinstance(row, dict) for row in rows):
        raise ParseError("gviz 'rows' entries must be objects")
    labels = [str((c or {}).get("label") or "").strip() for c in cols]
    cells = []
    for row in rows:
        c = (row or {}).get("c") or []
        if not isinstance(c, list):
            raise ParseError("gviz row cells must be a list")
        cells.append(list(c))
    logger.info("parsed rows: %d", len(cells))
    return SheetTable(labels=labels, rows=cells)

# -------------------- Normalize --------------------
_BAND_WIDTH_PAT = re.compile(r"^\d+(?:\.\d+)?")
_NUMERIC_PAT    = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_SCHEME_PAT     = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_TAB_NEWLINE_PAT = re.compile(r"[\t\n\r]")
_FORBIDDEN_HOST_CHARS = frozenset(" #%/:<>?@[\\]^|")
# reserved characters that stay literal in the path / query / fragment
_PATH_SAFE  = "/%:@!$&'()*+,;=~"
_QUERY_SAFE = _PATH_SAFE + "?"

def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()

def parse_band_width(value: Any) -> float | None:
    s = cell_text(value)
    if not s:
        return None
    m = _BAND_WIDTH_PAT.match(s)
    return float(m.group(0)) if m else None

def parse_roll_width(value: Any) -> float:
    s = cell_text(value)
    if not _NUMERIC_PAT.match(s):
        return 0.0
    return float(s)

def _valid_hostname(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    if any(ch in _FORBIDDEN_HOST_CHARS or ch.isspace() or ord(ch) < 0x20 for ch in host):
        return False
    if host.isascii():
        return True
    try:
        host.encode("idna")
    except UnicodeError:
        return False
    return True

def normalize_image_link(value: Any) -> str:
    """Return the http-qualified form of an image link or raise ImageValidationError.

    Bare domains ("example.com/a.png") are accepted and qualified with https://.
    Spaces and non-ASCII characters in the path, query or fragment are
    percent-encoded ("a/Linen Grey.png" -> "a/Linen%20Grey.png"); the host
    must not contain any.
    """
    if not isinstance(value, str) or not value.strip():
        raise ImageValidationError("no image link provided")
    link = _TAB_NEWLINE_PAT.sub("", value.strip())
    if not _SCHEME_PAT.match(link):
        link = f"https://{link}"

    try:
        parts = urlsplit(link)
        host = parts.hostname
        parts.port  # raises on a malformed port
    except ValueError as e:
        raise ImageValidationError(f"malformed image link: {link!r}") from e
    if parts.scheme.lower() not in {"http", "https"}:
        raise ImageValidationError(f"unsupported scheme: {parts.scheme!r}")
    if not host or not _valid_hostname(host):
        raise ImageValidationError(f"malformed host in image link: {link!r}")
    return urlunsplit((
        parts.scheme,
        parts.netloc,
        quote(parts.path, safe=_PATH_SAFE),
        quote(parts.query, safe=_QUERY_SAFE),
        quote(parts.fragment, safe=_QUERY_SAFE),
    ))

def _cell_value(row: list[Any], index: int | None) -> Any:
    if index is None or index >= len(row):
        return None
    cell = row[index]
    if not isinstance(cell, dict):
        return None
    return cell.get("v")

def normalize_row(row: list[Any], column_index: dict[str, int], row_index: int = 0) -> FabricRecord:
    raw = {attr: _cell_value(row, column_index.get(label)) for label, attr in SCHEMA_COLUMNS.items()}
    values = {attr: cell_text(v) for attr, v in raw.items()}
    values["band_width"] = parse_band_width(raw["band_width"])

    try:
        normalized = normalize_image_link(raw["image_link"])
        valid = True
    except ImageValidationError as e:
        logger.warning("invalid image link for fabric %r: %s", values["name"], e)
        normalized, valid = "", False

    return FabricRecord(
        **values,
        image_link_normalized=normalized,
        has_valid_image=valid,
        row_index=row_index,
    )

def normalize_rows(table: SheetTable) -> list[FabricRecord]:
    column_index = table.column_index
    missing = [label for label in SCHEMA_COLUMNS if label not in column_index]
    if missing:
        logger.warning("sheet is missing columns: %s", ", ".join(missing))

    records = []
    for i, row in enumerate(table.rows):
        try:
            records.append(normalize_row(row, column_index, row_index=i))
        except (TypeError, ValueError) as e:
            logger.warning("skipping sheet row %d: %s", i + 1, e)
    return records

def build_catalog(table: SheetTable, source_url: str = "") -> FabricCatalog:
    catalog = FabricCatalog(records=tuple(normalize_rows(table)), source_url=source_url)
    logger.info(
        "fabrics with valid images: %d out of %d",
        len(catalog.gallery), len(catalog.records),
    )
    return catalog

def load_catalog(url: str, timeout: int | float = FETCH_TIMEOUT) -> FabricCatalog:
    return build_catalog(parse_sheet_payload(fetch_sheet_text(url, timeout=timeout)), source_url=url)
