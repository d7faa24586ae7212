# Shared pytest fixtures: gviz payloads and normalized records
from __future__ import annotations

import json
from typing import Any

import pytest

from fabric_sheet import GVIZ_PREFIX, GVIZ_SUFFIX, FabricRecord

LABELS = [
    "SKU", "Type", "Name", "Family", "Colour", "Band Width", "Roll Width",
    "Schedule", "Status", "Image Link", "Ordering Status",
]


def wrap_gviz(payload: dict[str, Any]) -> str:
    return f"{GVIZ_PREFIX}{json.dumps(payload)}{GVIZ_SUFFIX}"


def gviz_row(values: dict[str, Any], labels: list[str] = LABELS) -> dict[str, Any]:
    return {"c": [({"v": values[label]} if label in values else None) for label in labels]}


def gviz_text(rows: list[dict[str, Any]], labels: list[str] = LABELS) -> str:
    return wrap_gviz({
        "version": "0.6",
        "status": "ok",
        "table": {
            "cols": [{"id": chr(65 + i), "label": label, "type": "string"} for i, label in enumerate(labels)],
            "rows": [gviz_row(r, labels) for r in rows],
        },
    })


@pytest.fixture()
def sheet_rows() -> list[dict[str, Any]]:
    return [
        {"SKU": "F1", "Type": "Blind", "Name": "Linen Grey", "Family": "Linen", "Colour": "Grey",
         "Band Width": "3 Thick", "Roll Width": "140", "Schedule": "A", "Status": "Active",
         "Image Link": "example.com/a.png", "Ordering Status": "In Stock"},
        {"SKU": "F2", "Type": "Curtain", "Name": "Velvet Navy", "Family": "Velvet", "Colour": "Navy",
         "Band Width": "5", "Roll Width": "45in", "Schedule": "B", "Status": "Active",
         "Image Link": "https://cdn.example.com/b.jpg", "Ordering Status": "Low Stock"},
        {"SKU": "GREY-7", "Type": "Blind", "Name": "Sheer White", "Family": "Sheer", "Colour": "White",
         "Band Width": "Wide", "Roll Width": "300", "Schedule": "A", "Status": "Discontinued",
         "Image Link": "http://img.example.org/c.png", "Ordering Status": ""},
        {"SKU": "F4", "Type": "Blind", "Name": "Hidden", "Family": "Hidden", "Colour": "Black",
         "Band Width": "9", "Roll Width": "500", "Schedule": "C", "Status": "Active",
         "Image Link": "", "Ordering Status": ""},
        {"SKU": "F5", "Type": "blind", "Name": "Linen Sand", "Family": "Linen", "Colour": "Sand",
         "Band Width": "3.5mm", "Roll Width": "50", "Schedule": "A", "Status": "Active",
         "Image Link": "example.com/e.png", "Ordering Status": "Low Stock"},
    ]


@pytest.fixture()
def sheet_text(sheet_rows) -> str:
    return gviz_text(sheet_rows)


@pytest.fixture()
def records() -> list[FabricRecord]:
    def rec(i: int, **kw) -> FabricRecord:
        base = dict(
            image_link=f"example.com/{i}.png",
            image_link_normalized=f"https://example.com/{i}.png",
            has_valid_image=True,
            row_index=i,
        )
        base.update(kw)
        return FabricRecord(**base)

    return [
        rec(0, sku="F1", type="Blind", name="Linen Grey", family="Linen", colour="Grey",
            band_width=3.0, roll_width="140", schedule="A", status="Active"),
        rec(1, sku="F2", type="Curtain", name="Velvet Navy", family="Velvet", colour="Navy",
            band_width=5.0, roll_width="45in", schedule="B", status="Active", ordering_status="Low Stock"),
        rec(2, sku="GREY-7", type="Blind", name="Sheer White", family="Sheer", colour="White",
            band_width=None, roll_width="300", schedule="A", status="Discontinued"),
        rec(3, sku="F5", type="blind", name="Linen Sand", family="Linen", colour="Sand",
            band_width=3.5, roll_width="50", schedule="A", status="Active"),
        rec(4, sku="F6", type="Curtain", name="Dove grey", family="Linen", colour="Grey",
            band_width=3.0, roll_width="", schedule="", status="Active"),
    ]
