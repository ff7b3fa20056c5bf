"""Typed records produced while compiling a proposal into table rows.

Every record here is frozen.  They are derived from the input configuration on
each compile call and never written back to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping

_EMPTY_MAPPING: Mapping[str, Any] = MappingProxyType({})


class RowKind(str, Enum):
    """Rendering instruction attached to a :class:`RowDescriptor`."""

    LINE = "line"
    BOLD = "bold"
    AT_CHARGE = "atCharge"
    GAP = "gap"


class ServiceShape(str, Enum):
    """Schema generation a service record was written in."""

    LEGACY = "legacy"
    CURRENT = "current"


class ProductShape(str, Enum):
    """Schema generation of the ``products`` section."""

    LEGACY = "legacy"
    CURRENT = "current"
    EMPTY = "empty"


@dataclass(frozen=True)
class RowDescriptor:
    """A single renderable line inside a service column."""

    kind: RowKind
    label: str
    value: str = ""
    values: tuple[str, str, str] | None = None
    order_no: float | None = None
    wide_gap: bool = False

    def __post_init__(self) -> None:
        if not str(self.label or "").strip():
            raise ValueError("row descriptors require a non-empty label")

    @classmethod
    def line(cls, label: str, value: Any = "", *, order_no: float | None = None) -> "RowDescriptor":
        return cls(RowKind.LINE, label, _text(value), order_no=order_no)

    @classmethod
    def bold(
        cls,
        label: str,
        value: Any = "",
        *,
        order_no: float | None = None,
        wide_gap: bool = False,
    ) -> "RowDescriptor":
        return cls(RowKind.BOLD, label, _text(value), order_no=order_no, wide_gap=wide_gap)

    @classmethod
    def at_charge(
        cls,
        label: str,
        v1: Any,
        v2: Any,
        v3: Any,
        *,
        order_no: float | None = None,
    ) -> "RowDescriptor":
        return cls(
            RowKind.AT_CHARGE,
            label,
            values=(_text(v1), _text(v2), _text(v3)),
            order_no=order_no,
        )

    @classmethod
    def gap(cls, label: str, *, order_no: float | None = None) -> "RowDescriptor":
        return cls(RowKind.GAP, label, order_no=order_no)

    @property
    def has_value(self) -> bool:
        """Return ``True`` when the row displays something beyond its label."""

        if self.kind is RowKind.GAP:
            return False
        if self.values is not None:
            return any(part.strip() for part in self.values)
        return bool(self.value.strip())

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.kind.value, "label": self.label}
        if self.values is not None:
            payload["v1"], payload["v2"], payload["v3"] = self.values
        else:
            payload["value"] = self.value
        if self.order_no is not None:
            payload["orderNo"] = self.order_no
        if self.wide_gap:
            payload["wideGap"] = True
        return payload


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class ColumnSpec:
    """Describe a grid column by its header label and width."""

    label: str
    width: float
    align: str = "L"

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "width": self.width, "align": self.align}


@dataclass(frozen=True)
class CustomColumnDefinition:
    """Extra column declared once per document for a product or dispenser block."""

    id: str
    label: str
    applies_to: Literal["product", "dispenser"]


@dataclass(frozen=True)
class ProductLine:
    key: str
    display_name: str
    quantity: Any = None
    unit_price_or_amount: Any = None
    frequency_label: str = ""
    total: Any = None
    custom_field_values: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_MAPPING)


@dataclass(frozen=True)
class DispenserLine:
    key: str
    display_name: str
    quantity: Any = None
    warranty_rate: Any = None
    replacement_rate: Any = None
    frequency_label: str = ""
    total: Any = None
    custom_field_values: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_MAPPING)


@dataclass(frozen=True)
class BreakdownItem:
    """One itemised cost entry (a fixture type, a drain, a window size...)."""

    label: str
    quantity: Any = None
    rate: Any = None
    total: Any = None
    order_no: float | None = None


@dataclass(frozen=True)
class ServiceExtra:
    """Conditional add-on charge such as installation or a trip charge."""

    key: str
    label: str
    quantity: Any = None
    rate: Any = None
    total: Any = None
    amount: Any = None
    order_no: float | None = None


@dataclass(frozen=True)
class CustomField:
    id: str
    label: str
    type: str = "text"
    value: Any = None
    order_no: float | None = None


@dataclass(frozen=True)
class ServiceTotals:
    """Resolved total amounts for a service.  Absent amounts are ``None``."""

    per_visit: Any = None
    first_month: Any = None
    monthly_recurring: Any = None
    first_visit: Any = None
    recurring_visit: Any = None
    weekly: Any = None
    contract: Any = None
    contract_months: Any = None
    annual: Any = None
    annual_months: Any = None


@dataclass(frozen=True)
class ServiceBlock:
    """Normalised view of one service category present in the document."""

    service_key: str
    heading: str
    is_active: bool
    shape: ServiceShape
    raw_configuration: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_MAPPING)
    frequency_key: str | None = None
    frequency_label: str = ""
    totals: ServiceTotals = field(default_factory=ServiceTotals)
    breakdown_items: tuple[BreakdownItem, ...] = ()
    service_item: BreakdownItem | None = None
    extras: tuple[ServiceExtra, ...] = ()
    custom_fields: tuple[CustomField, ...] = ()
    notes: str = ""


@dataclass(frozen=True)
class Cell:
    text: str = ""
    shaded: bool = False


@dataclass(frozen=True)
class GridRow:
    cells: tuple[Cell, ...]
    rule_after: bool = True


@dataclass(frozen=True)
class ProductGrid:
    """Combined product/dispenser grid ready for the renderer."""

    column_spec: tuple[ColumnSpec, ...]
    header_row: tuple[str, ...]
    body_rows: tuple[GridRow, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "columnSpec": [spec.to_dict() for spec in self.column_spec],
            "headerRow": list(self.header_row),
            "bodyRows": [
                {
                    "cells": [{"text": cell.text, "shaded": cell.shaded} for cell in row.cells],
                    "ruleAfter": row.rule_after,
                }
                for row in self.body_rows
            ],
        }


@dataclass(frozen=True)
class ServiceColumn:
    service_key: str
    heading: str
    rows: tuple[RowDescriptor, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "serviceKey": self.service_key,
            "heading": self.heading,
            "rows": [row.to_dict() for row in self.rows],
        }


@dataclass(frozen=True)
class ServiceRowBlock:
    """One to two service columns laid out side by side."""

    columns: tuple[ServiceColumn, ...]
    gap_after: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [column.to_dict() for column in self.columns],
            "gapAfter": self.gap_after,
        }


@dataclass(frozen=True)
class AreaColumn:
    key: str
    label: str
    method_label: str
    detail: str
    frequency_label: str
    per_visit: str
    contract: str


AREA_ROW_LABELS: tuple[str, ...] = (
    "Pricing Method",
    "Calculation",
    "Frequency",
    "Per Visit Total",
    "Contract Total",
)


@dataclass(frozen=True)
class AreaPricingGrid:
    """Grid for the area-priced service: one column per visible area."""

    heading: str
    columns: tuple[AreaColumn, ...]
    dropped_areas: tuple[str, ...] = ()

    @property
    def rows(self) -> tuple[tuple[str, tuple[str, ...]], ...]:
        attrs = ("method_label", "detail", "frequency_label", "per_visit", "contract")
        return tuple(
            (label, tuple(getattr(column, attr) for column in self.columns))
            for label, attr in zip(AREA_ROW_LABELS, attrs)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "heading": self.heading,
            "columns": [column.label for column in self.columns],
            "rows": [{"label": label, "values": list(values)} for label, values in self.rows],
            "freqLabels": [column.frequency_label for column in self.columns],
        }


@dataclass(frozen=True)
class NotesBlock:
    heading: str
    lines: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"heading": self.heading, "lines": len(self.lines), "textLines": list(self.lines)}


@dataclass(frozen=True)
class ServicesLayout:
    paired_row_blocks: tuple[ServiceRowBlock, ...] = ()
    specialized_area_grid: AreaPricingGrid | None = None
    notes_rows: NotesBlock | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pairedRowBlocks": [block.to_dict() for block in self.paired_row_blocks],
            "specializedAreaGrid": (
                self.specialized_area_grid.to_dict() if self.specialized_area_grid else None
            ),
            "notesRows": self.notes_rows.to_dict() if self.notes_rows else None,
        }


@dataclass(frozen=True)
class CompiledDocument:
    products: ProductGrid
    services: ServicesLayout

    def to_dict(self) -> dict[str, Any]:
        return {"products": self.products.to_dict(), "services": self.services.to_dict()}


__all__ = [
    "AREA_ROW_LABELS",
    "AreaColumn",
    "AreaPricingGrid",
    "BreakdownItem",
    "Cell",
    "ColumnSpec",
    "CompiledDocument",
    "CustomColumnDefinition",
    "CustomField",
    "DispenserLine",
    "GridRow",
    "NotesBlock",
    "ProductGrid",
    "ProductLine",
    "ProductShape",
    "RowDescriptor",
    "RowKind",
    "ServiceBlock",
    "ServiceColumn",
    "ServiceExtra",
    "ServiceRowBlock",
    "ServiceShape",
    "ServiceTotals",
    "ServicesLayout",
]
