"""Tabular export of compiled grids as :mod:`pandas` frames and CSV."""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from proposal_tables.custom_columns import SOFT_HYPHEN, ZERO_WIDTH_SPACE
from proposal_tables.models import AREA_ROW_LABELS, AreaPricingGrid, ProductGrid, ServicesLayout

__all__ = [
    "SERVICE_ROW_COLUMNS",
    "area_grid_frame",
    "product_grid_csv",
    "product_grid_frame",
    "service_rows_frame",
]

SERVICE_ROW_COLUMNS: tuple[str, ...] = (
    "service_key",
    "heading",
    "type",
    "label",
    "value",
    "v1",
    "v2",
    "v3",
    "order_no",
    "wide_gap",
)


def _unique_headers(labels: Sequence[str], dispenser_start: int) -> list[str]:
    """Prefix dispenser-side headers that collide with a product-side one."""

    seen: set[str] = set()
    headers: list[str] = []
    for idx, raw in enumerate(labels):
        label = raw.replace(SOFT_HYPHEN, "").replace(ZERO_WIDTH_SPACE, "")
        if idx >= dispenser_start and label in seen:
            label = f"Dispenser {label}"
        while label in seen:
            label = f"{label} ({idx})"
        seen.add(label)
        headers.append(label)
    return headers


def _dispenser_start(grid: ProductGrid) -> int:
    for idx, spec in enumerate(grid.column_spec):
        if idx >= 5 and spec.label == "Dispensers":
            return idx
    return 5


def product_grid_frame(grid: ProductGrid) -> pd.DataFrame:
    """Return the product/dispenser grid as a frame of display strings."""

    headers = _unique_headers([spec.label for spec in grid.column_spec], _dispenser_start(grid))
    records = [[cell.text for cell in row.cells] for row in grid.body_rows]
    return pd.DataFrame.from_records(records, columns=headers)


def product_grid_csv(grid: ProductGrid) -> str:
    return product_grid_frame(grid).to_csv(index=False)


def service_rows_frame(services: ServicesLayout) -> pd.DataFrame:
    """Flatten every paired service column into one row per descriptor."""

    records: list[dict[str, Any]] = []
    for block in services.paired_row_blocks:
        for column in block.columns:
            for row in column.rows:
                v1, v2, v3 = row.values if row.values is not None else ("", "", "")
                records.append(
                    {
                        "service_key": column.service_key,
                        "heading": column.heading,
                        "type": row.kind.value,
                        "label": row.label,
                        "value": row.value,
                        "v1": v1,
                        "v2": v2,
                        "v3": v3,
                        "order_no": row.order_no,
                        "wide_gap": row.wide_gap,
                    }
                )
    return pd.DataFrame.from_records(records, columns=list(SERVICE_ROW_COLUMNS))


def area_grid_frame(grid: AreaPricingGrid) -> pd.DataFrame:
    """Return the area grid with row labels as the index and areas as columns."""

    data = {
        column.label: [
            column.method_label,
            column.detail,
            column.frequency_label,
            column.per_visit,
            column.contract,
        ]
        for column in grid.columns
    }
    return pd.DataFrame(data, index=list(AREA_ROW_LABELS))
