# Fabric Finder: filter engine (value sets, predicate, debounce)

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Sequence

import duckdb
import pandas as pd

from fabric_logging import get_logger
from fabric_sheet import FabricRecord, parse_roll_width

logger = get_logger(__name__)

# -------------------- Filter fields --------------------
@dataclass(frozen=True)
class FilterField:
    id: str        # widget key prefix: "<id>Filter"
    label: str
    attr: str      # FabricRecord attribute
    numeric: bool = False

    @property
    def key(self) -> str:
        return f"{self.id}Filter"

FILTER_FIELDS = (
    FilterField("type", "Type", "type"),
    FilterField("family", "Family", "family"),
    FilterField("colour", "Colour", "colour"),
    FilterField("bandWidth", "Band Width", "band_width", numeric=True),
    FilterField("schedule", "Schedule", "schedule"),
    FilterField("status", "Status", "status"),
)
FIELDS_BY_ATTR = {f.attr: f for f in FILTER_FIELDS}

SEARCH_KEY     = "searchInput"
ROLL_WIDTH_KEY = "rollWidthFilter"
RESET_KEY      = "resetFilters"
GRID_KEY       = "fabricGrid"

# -------------------- Filter state --------------------
@dataclass(frozen=True)
class FilterState:
    search: str = ""
    selections: Mapping[str, frozenset] = field(default_factory=dict)
    roll_width_min: float = 0.0

    def selected(self, attr: str) -> frozenset:
        return self.selections.get(attr, frozenset())

    def with_selection(self, attr: str, values: Iterable[Any]) -> "FilterState":
        if attr not in FIELDS_BY_ATTR:
            raise KeyError(f"not a filter field: {attr}")
        if FIELDS_BY_ATTR[attr].numeric:
            chosen = frozenset(float(v) for v in values)
        else:
            chosen = frozenset(str(v) for v in values)
        selections = dict(self.selections)
        if chosen:
            selections[attr] = chosen
        else:
            selections.pop(attr, None)
        return replace(self, selections=selections)

    @property
    def is_empty(self) -> bool:
        return not self.search and not self.roll_width_min and not any(self.selections.values())

# -------------------- Helpers --------------------
_LEADING_NUMBER_PAT = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

def parse_threshold(text: Any) -> float:
    """Leading-number parse of the roll width input; anything unparsable is 0 (unset)."""
    if isinstance(text, (int, float)):
        return float(text)
    m = _LEADING_NUMBER_PAT.match(str(text or ""))
    return float(m.group(0)) if m else 0.0

def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)

def toggle_caption(label: str, count: int) -> str:
    return f"{count} {label} selected" if count > 0 else f"Select {label}"

def filter_options(records: Sequence[FabricRecord]) -> dict[str, list]:
    """Distinct non-empty values per filter field, in first-seen order (Band Width: ascending)."""
    options: dict[str, list] = {}
    for f in FILTER_FIELDS:
        if f.numeric:
            options[f.attr] = sorted({r.band_width for r in records if r.band_width is not None})
            continue
        seen: dict[str, None] = {}
        for r in records:
            v = str(getattr(r, f.attr) or "")
            if v:
                seen.setdefault(v, None)
        options[f.attr] = list(seen)
    return options

def matches(record: FabricRecord, state: FilterState) -> bool:
    term = state.search.lower()
    if term and term not in record.name.lower() and term not in record.sku.lower():
        return False
    for f in FILTER_FIELDS:
        chosen = state.selected(f.attr)
        if not chosen:
            continue
        value = getattr(record, f.attr)
        if f.numeric:
            if value is None or value not in chosen:
                return False
        elif value not in chosen:
            return False
    if state.roll_width_min and parse_roll_width(record.roll_width) < state.roll_width_min:
        return False
    return True

# -------------------- WHERE builder --------------------
def build_where(state: FilterState) -> tuple[str, list[Any]]:
    parts, params = [], []
    term = state.search.lower()
    if term:
        parts.append('(strpos(lower("name"), ?) > 0 OR strpos(lower("sku"), ?) > 0)')
        params.extend([term, term])
    for f in FILTER_FIELDS:
        chosen = state.selected(f.attr)
        if not chosen:
            continue
        if f.numeric:
            parts.append(f'("{f.attr}" IS NOT NULL AND list_contains(?::DOUBLE[], "{f.attr}"))')
            params.append(sorted(chosen))
        else:
            parts.append(f'list_contains(?::VARCHAR[], "{f.attr}")')
            params.append(sorted(chosen))
    if state.roll_width_min:
        parts.append('"roll_width_value" >= ?')
        params.append(float(state.roll_width_min))
    return (" AND ".join(parts) or "TRUE"), params

def records_frame(records: Sequence[FabricRecord]) -> pd.DataFrame:
    df = pd.DataFrame({
        "pos": range(len(records)),
        "sku": [r.sku for r in records],
        "name": [r.name for r in records],
        "type": [r.type for r in records],
        "family": [r.family for r in records],
        "colour": [r.colour for r in records],
        "schedule": [r.schedule for r in records],
        "status": [r.status for r in records],
        "roll_width_value": [parse_roll_width(r.roll_width) for r in records],
    })
    df["band_width"] = pd.Series([r.band_width for r in records], dtype="float64")
    return df

# -------------------- Engine --------------------
class FilterEngine:
    """Evaluates FilterState against a fixed, ordered record list with duckdb."""

    def __init__(self, records: Sequence[FabricRecord]):
        self.records = tuple(records)
        self.options = filter_options(self.records)
        self._con = duckdb.connect()
        if self.records:
            self._con.register("fabrics", records_frame(self.records))

    def apply(self, state: FilterState) -> list[FabricRecord]:
        if not self.records:
            return []
        if state.is_empty:
            return list(self.records)
        where, params = build_where(state)
        rows = self._con.execute(f"SELECT pos FROM fabrics WHERE {where} ORDER BY pos", params).fetchall()
        visible = [self.records[pos] for (pos,) in rows]
        logger.debug("filter matched %d of %d fabrics", len(visible), len(self.records))
        return visible

    def close(self) -> None:
        self._con.close()

# -------------------- Debounce --------------------
class Debouncer:
    """Holds the latest high-frequency input until it has settled for `delay_ms`."""

    def __init__(self, delay_ms: int = 300):
        self.delay = max(0, delay_ms) / 1000.0
        self._pending: dict[str, Any] = {}
        self._deadline: float | None = None

    def push(self, name: str, value: Any, now: float) -> None:
        self._pending[name] = value
        self._deadline = now + self.delay

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def pending(self) -> bool:
        return bool(self._pending)

    def remaining(self, now: float) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - now)

    def pop_due(self, now: float) -> dict[str, Any]:
        if not self._pending or self.remaining(now) > 0:
            return {}
        due, self._pending, self._deadline = self._pending, {}, None
        return due

    def clear(self) -> None:
        self._pending, self._deadline = {}, None
