"""Turn a normalised :class:`ServiceBlock` into row descriptors."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from proposal_tables.frequency import VISIT_GROUP, total_cadence
from proposal_tables.models import (
    BreakdownItem,
    CustomField,
    RowDescriptor,
    ServiceBlock,
    ServiceColumn,
    ServiceExtra,
    ServiceTotals,
)
from proposal_tables.values import (
    DEFAULT_CURRENCY,
    format_money,
    format_money_with_months,
    format_quantity,
    is_blank,
    is_truthy_amount,
)

__all__ = [
    "MONEY_FIELD_TYPES",
    "build_items_rows",
    "build_service_column",
    "build_service_rows",
    "build_totals_rows",
    "order_rows",
]

MONEY_FIELD_TYPES: frozenset[str] = frozenset({"money", "dollar", "currency", "price", "amount"})


def order_rows(rows: Iterable[RowDescriptor]) -> list[RowDescriptor]:
    """Put rows with an explicit ``order_no`` first, keeping the rest in place.

    Ordered rows are sorted stably by their number; rows without one follow in
    the order they were built.
    """

    materialised = list(rows)
    ordered = [row for row in materialised if row.order_no is not None]
    if not ordered:
        return materialised
    ordered.sort(key=lambda row: float(row.order_no or 0.0))
    unordered = [row for row in materialised if row.order_no is None]
    return ordered + unordered


def _item_row(item: BreakdownItem, currency: str) -> RowDescriptor:
    if not is_blank(item.rate) or not is_blank(item.total):
        return RowDescriptor.at_charge(
            item.label,
            format_quantity(item.quantity),
            format_money(item.rate, currency),
            format_money(item.total, currency),
            order_no=item.order_no,
        )
    return RowDescriptor.line(item.label, format_quantity(item.quantity), order_no=item.order_no)


def _extra_row(extra: ServiceExtra, currency: str) -> RowDescriptor | None:
    governing = extra.quantity if extra.quantity is not None else extra.amount
    if governing is None:
        governing = extra.total
    if not is_truthy_amount(governing):
        return None
    if extra.quantity is not None and (extra.rate is not None or extra.total is not None):
        return RowDescriptor.at_charge(
            extra.label,
            format_quantity(extra.quantity),
            format_money(extra.rate, currency),
            format_money(extra.total, currency),
            order_no=extra.order_no,
        )
    amount = extra.amount if extra.amount is not None else extra.total
    if amount is None:
        quantity = format_quantity(extra.quantity)
        return RowDescriptor.line(extra.label, quantity, order_no=extra.order_no)
    return RowDescriptor.line(extra.label, format_money(amount, currency), order_no=extra.order_no)


def _calc_part(value: Any, *, money: bool, currency: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if money:
        return format_money(value, currency)
    return format_quantity(value)


def _calc_parts(value: Any) -> tuple[Any, Any, Any] | None:
    if isinstance(value, Mapping):
        return (value.get("qty", value.get("quantity")), value.get("rate"), value.get("total"))
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return (value[0], value[1], value[2])
    return None


def _custom_field_row(custom: CustomField, currency: str) -> RowDescriptor | None:
    field_type = custom.type.lower()
    if field_type == "gap":
        return RowDescriptor.gap(custom.label, order_no=custom.order_no)
    if field_type == "calc":
        parts = _calc_parts(custom.value)
        if parts is None:
            return None
        qty, rate, total = parts
        return RowDescriptor.at_charge(
            custom.label,
            _calc_part(qty, money=False, currency=currency),
            _calc_part(rate, money=True, currency=currency),
            _calc_part(total, money=True, currency=currency),
            order_no=custom.order_no,
        )
    if is_blank(custom.value) or isinstance(custom.value, (Mapping, list, tuple)):
        return None
    if field_type in MONEY_FIELD_TYPES:
        text = format_money(custom.value, currency)
    elif isinstance(custom.value, (int, float)) and not isinstance(custom.value, bool):
        text = format_quantity(custom.value)
    else:
        text = str(custom.value).strip()
    return RowDescriptor.line(custom.label, text, order_no=custom.order_no)


def build_items_rows(block: ServiceBlock, currency: str = DEFAULT_CURRENCY) -> list[RowDescriptor]:
    """Frequency first, then the ordered breakdowns, service item, extras and custom fields."""

    rows: list[RowDescriptor] = []
    for item in block.breakdown_items:
        rows.append(_item_row(item, currency))
    if block.service_item is not None:
        rows.append(_item_row(block.service_item, currency))
    for extra in block.extras:
        row = _extra_row(extra, currency)
        if row is not None:
            rows.append(row)
    for custom in block.custom_fields:
        row = _custom_field_row(custom, currency)
        if row is not None:
            rows.append(row)
    ordered = order_rows(rows)
    if block.frequency_label:
        ordered.insert(0, RowDescriptor.line("Frequency", block.frequency_label))
    return ordered


def build_totals_rows(
    totals: ServiceTotals,
    frequency_key: str | None,
    currency: str = DEFAULT_CURRENCY,
) -> list[RowDescriptor]:
    """Total rows in their fixed order; absent amounts are skipped."""

    rows: list[RowDescriptor] = []
    if totals.per_visit is not None:
        rows.append(RowDescriptor.bold("Per Visit Total", format_money(totals.per_visit, currency)))

    if total_cadence(frequency_key) == VISIT_GROUP:
        first, first_label = totals.first_visit, "First Visit Total"
        recurring, recurring_label = totals.recurring_visit, "Recurring Visit Total"
    else:
        first, first_label = totals.first_month, "First Month Total"
        recurring, recurring_label = totals.monthly_recurring, "Monthly Recurring"
    if first is not None:
        rows.append(RowDescriptor.bold(first_label, format_money(first, currency)))
    if recurring is not None:
        rows.append(
            RowDescriptor.bold(recurring_label, format_money(recurring, currency), wide_gap=True)
        )

    if totals.weekly is not None:
        rows.append(RowDescriptor.bold("Weekly Total", format_money(totals.weekly, currency)))
    if totals.contract is not None:
        rows.append(
            RowDescriptor.bold(
                "Contract Total",
                format_money_with_months(totals.contract, totals.contract_months, currency),
            )
        )
    if totals.annual is not None:
        rows.append(
            RowDescriptor.bold(
                "Annual Total",
                format_money_with_months(totals.annual, totals.annual_months, currency),
            )
        )
    return rows


def build_service_rows(
    block: ServiceBlock,
    currency: str = DEFAULT_CURRENCY,
) -> tuple[RowDescriptor, ...]:
    items = build_items_rows(block, currency)
    totals = build_totals_rows(block.totals, block.frequency_key, currency)
    return tuple(items) + tuple(order_rows(totals))


def build_service_column(
    block: ServiceBlock,
    currency: str = DEFAULT_CURRENCY,
) -> ServiceColumn | None:
    """Return the renderable column for ``block``.

    ``None`` means the block has no row with a value and must not be laid out.
    """

    rows = build_service_rows(block, currency)
    if not any(row.has_value for row in rows):
        return None
    return ServiceColumn(service_key=block.service_key, heading=block.heading, rows=rows)
