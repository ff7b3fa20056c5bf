from __future__ import annotations

from typing import Any

from proposal_tables.assembler import compile_document
from proposal_tables.config import LayoutSettings
from proposal_tables.export import (
    SERVICE_ROW_COLUMNS,
    area_grid_frame,
    product_grid_csv,
    product_grid_frame,
    service_rows_frame,
)
from proposal_tables.models import AREA_ROW_LABELS


def test_product_grid_frame_has_unique_headers(legacy_record: dict[str, Any], layout: LayoutSettings) -> None:
    frame = product_grid_frame(compile_document(legacy_record, layout).products)

    assert list(frame.columns) == [
        "Products",
        "Qty",
        "Unit Price/Amount",
        "Frequency",
        "Total",
        "Case Size",
        "Dispensers",
        "Dispenser Qty",
        "Warranty Rate",
        "Replacement Rate/Install",
        "Dispenser Frequency",
        "Dispenser Total",
    ]
    assert frame.shape == (3, 12)
    assert frame.loc[0, "Dispensers"] == "Soap Dispenser"
    assert frame.loc[1, "Dispensers"] == ""


def test_product_grid_csv(legacy_record: dict[str, Any], layout: LayoutSettings) -> None:
    text = product_grid_csv(compile_document(legacy_record, layout).products)

    lines = text.splitlines()
    assert lines[0].startswith("Products,Qty,Unit Price/Amount,Frequency,Total,Case Size")
    assert lines[1].startswith("Hand Soap,4,$12.50,Weekly,$50.00,$3.00,Soap Dispenser")
    assert len(lines) == 4


def test_service_rows_frame(current_record: dict[str, Any], layout: LayoutSettings) -> None:
    frame = service_rows_frame(compile_document(current_record, layout).services)

    assert tuple(frame.columns) == SERVICE_ROW_COLUMNS
    assert set(frame["service_key"]) == {"rpmWindows", "microfiberMopping"}
    calc = frame[frame["label"] == "Extra Mop Heads"].iloc[0]
    assert (calc["type"], calc["v1"], calc["v2"], calc["v3"]) == ("atCharge", "2", "$10", "$20")


def test_service_rows_frame_empty(layout: LayoutSettings) -> None:
    frame = service_rows_frame(compile_document({}, layout).services)

    assert frame.empty
    assert tuple(frame.columns) == SERVICE_ROW_COLUMNS


def test_area_grid_frame(current_record: dict[str, Any], layout: LayoutSettings) -> None:
    grid = compile_document(current_record, layout).services.specialized_area_grid
    assert grid is not None

    frame = area_grid_frame(grid)

    assert list(frame.index) == list(AREA_ROW_LABELS)
    assert list(frame.columns) == ["Dumpster", "Patio"]
    assert frame.loc["Per Visit Total", "Dumpster"] == "$100.00"
    assert frame.loc["Calculation", "Patio"] == "Preset + Add-on $50.00"
