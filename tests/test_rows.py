from __future__ import annotations

import pytest

from proposal_tables.models import (
    BreakdownItem,
    CustomField,
    RowDescriptor,
    RowKind,
    ServiceBlock,
    ServiceExtra,
    ServiceShape,
    ServiceTotals,
)
from proposal_tables.rows import build_service_column, build_service_rows, order_rows


def _block(**overrides: object) -> ServiceBlock:
    values: dict[str, object] = {
        "service_key": "saniscrub",
        "heading": "SANISCRUB",
        "is_active": True,
        "shape": ServiceShape.CURRENT,
    }
    values.update(overrides)
    return ServiceBlock(**values)  # type: ignore[arg-type]


def _labels(rows: tuple[RowDescriptor, ...]) -> list[str]:
    return [row.label for row in rows]


def test_calc_custom_field_becomes_at_charge_row() -> None:
    block = _block(
        custom_fields=(CustomField(id="c1", label="Extra Pads", type="calc", value=("2", "$10", "$20")),)
    )

    rows = build_service_rows(block)

    assert rows == (RowDescriptor.at_charge("Extra Pads", "2", "$10", "$20"),)
    assert rows[0].kind is RowKind.AT_CHARGE


def test_legacy_calc_mapping_formats_money_parts() -> None:
    block = _block(
        custom_fields=(CustomField(id="c1", label="Extra", type="calc", value={"qty": 2, "rate": 10, "total": 20}),)
    )

    (row,) = build_service_rows(block)

    assert row.values == ("2", "$10.00", "$20.00")


def test_gap_and_text_custom_fields() -> None:
    block = _block(
        custom_fields=(
            CustomField(id="g", label="Spacer", type="gap"),
            CustomField(id="m", label="Deposit", type="money", value=150),
            CustomField(id="t", label="Gate Code", type="text", value="4471"),
            CustomField(id="e", label="Empty", type="text", value=""),
        )
    )

    rows = build_service_rows(block)

    assert [(row.kind, row.label, row.value) for row in rows] == [
        (RowKind.GAP, "Spacer", ""),
        (RowKind.LINE, "Deposit", "$150.00"),
        (RowKind.LINE, "Gate Code", "4471"),
    ]
    assert not rows[0].has_value


def test_monthly_cadence_totals() -> None:
    block = _block(
        frequency_key="weekly",
        frequency_label="Weekly",
        totals=ServiceTotals(
            per_visit=25,
            first_month=100,
            monthly_recurring=50,
            first_visit=999,
            weekly=25,
            contract=1200,
            contract_months=12,
        ),
    )

    rows = build_service_rows(block)

    assert _labels(rows) == [
        "Frequency",
        "Per Visit Total",
        "First Month Total",
        "Monthly Recurring",
        "Weekly Total",
        "Contract Total",
    ]
    recurring = rows[3]
    assert recurring.kind is RowKind.BOLD
    assert recurring.wide_gap
    assert rows[-1].value == "$1200.00 (12 months)"


def test_visit_cadence_totals() -> None:
    block = _block(
        frequency_key="quarterly",
        frequency_label="Quarterly",
        totals=ServiceTotals(first_month=1, first_visit=200, recurring_visit=150, annual=600, annual_months=12),
    )

    rows = build_service_rows(block)

    assert _labels(rows) == [
        "Frequency",
        "First Visit Total",
        "Recurring Visit Total",
        "Annual Total",
    ]
    assert rows[2].wide_gap
    assert rows[3].value == "$600.00 (12 months)"


def test_unresolved_frequency_uses_monthly_totals() -> None:
    block = _block(frequency_label="every full moon", totals=ServiceTotals(first_month=10, first_visit=20))

    rows = build_service_rows(block)

    assert _labels(rows) == ["Frequency", "First Month Total"]
    assert rows[0].value == "every full moon"


def test_zero_amounts_render_inside_active_block() -> None:
    rows = build_service_rows(_block(totals=ServiceTotals(per_visit=0)))

    assert rows == (RowDescriptor.bold("Per Visit Total", "$0.00"),)


def test_breakdown_rows() -> None:
    block = _block(
        breakdown_items=(
            BreakdownItem(label="Urinals", quantity=4, rate=5, total=20),
            BreakdownItem(label="Sinks", quantity=3),
        ),
        service_item=BreakdownItem(label="Service", quantity=1, total=45),
    )

    rows = build_service_rows(block)

    assert rows[0].values == ("4", "$5.00", "$20.00")
    assert (rows[1].kind, rows[1].value) == (RowKind.LINE, "3")
    assert rows[2].values == ("1", "", "$45.00")


def test_extras_render_only_when_truthy() -> None:
    block = _block(
        extras=(
            ServiceExtra(key="tripCharge", label="Trip Charge", amount=15),
            ServiceExtra(key="installation", label="Installation", quantity=0, rate=25, total=0),
            ServiceExtra(key="warranty", label="Warranty", quantity=2, rate=1, total=2),
        )
    )

    rows = build_service_rows(block)

    assert _labels(rows) == ["Trip Charge", "Warranty"]
    assert rows[0].value == "$15.00"
    assert rows[1].values == ("2", "$1.00", "$2.00")


def test_order_rows_puts_ordered_rows_first() -> None:
    rows = [
        RowDescriptor.line("a", "1"),
        RowDescriptor.line("b", "2", order_no=2),
        RowDescriptor.line("c", "3"),
        RowDescriptor.line("d", "4", order_no=1),
        RowDescriptor.line("e", "5", order_no=2),
    ]

    assert [row.label for row in order_rows(rows)] == ["d", "b", "e", "a", "c"]


def test_frequency_line_stays_on_top_of_ordered_items() -> None:
    block = _block(
        frequency_key="weekly",
        frequency_label="Weekly",
        breakdown_items=(
            BreakdownItem(label="Urinals", quantity=2, rate=5, total=10, order_no=1),
            BreakdownItem(label="Sinks", quantity=3, rate=4, total=12),
        ),
        totals=ServiceTotals(weekly=22),
    )

    rows = build_service_rows(block)

    assert _labels(rows) == ["Frequency", "Urinals", "Sinks", "Weekly Total"]


def test_service_column_requires_a_valued_row() -> None:
    assert build_service_column(_block()) is None
    gap_only = _block(custom_fields=(CustomField(id="g", label="Spacer", type="gap"),))
    assert build_service_column(gap_only) is None

    column = build_service_column(_block(totals=ServiceTotals(weekly=10)))
    assert column is not None
    assert column.heading == "SANISCRUB"


def test_row_descriptor_requires_label() -> None:
    with pytest.raises(ValueError):
        RowDescriptor.line("  ", "5")
