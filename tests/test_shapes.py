from __future__ import annotations

from typing import Any

import pytest

from proposal_tables.config import LayoutSettings
from proposal_tables.models import ProductShape, ServiceShape
from proposal_tables.shapes import (
    adapt_products,
    adapt_service,
    detect_products_shape,
    detect_service_shape,
    explicitly_inactive,
    service_layers,
    unwrap_service,
)


def test_unwrap_service_follows_nested_envelopes() -> None:
    wrapped = {"isActive": True, "formData": {"serviceId": "x", "data": {"weeklyTotal": 50}}}

    assert unwrap_service(wrapped) == {"weeklyTotal": 50}
    assert len(service_layers(wrapped)) == 3


def test_unwrap_service_leaves_records_with_payload_fields_alone() -> None:
    record = {"formData": {"weeklyTotal": 5}, "weeklyTotal": 10}

    assert unwrap_service(record) is record
    nested = {"totals": {"weekly": {"amount": 5}}, "data": {"weeklyTotal": 10}}
    assert unwrap_service(nested) is nested


@pytest.mark.parametrize("sibling", [{"createdAt": "2024-05-01T10:00:00Z"}, {"serviceName": "SaniClean"}])
def test_unwrap_service_ignores_bookkeeping_siblings(sibling: dict[str, str]) -> None:
    record = {"isActive": True, **sibling, "formData": {"weeklyTotal": 50}}

    assert unwrap_service(record) == {"weeklyTotal": 50}
    assert len(service_layers(record)) == 2


def test_unwrap_service_stops_on_self_reference() -> None:
    record: dict[str, Any] = {"isActive": True}
    record["formData"] = record

    assert unwrap_service(record) is record


def test_unwrap_service_rejects_non_mappings() -> None:
    assert unwrap_service(["weeklyTotal"]) is None
    assert service_layers(None) == []


@pytest.mark.parametrize("flag", [False, "false", "No", 0])
def test_explicitly_inactive_recognises_false_flags(flag: object) -> None:
    assert explicitly_inactive(service_layers({"isActive": flag, "formData": {"x": 1}}))


def test_explicitly_inactive_checks_inner_level() -> None:
    layers = service_layers({"isActive": True, "formData": {"active": False, "x": 1}})

    assert explicitly_inactive(layers)
    assert not explicitly_inactive(service_layers({"isActive": True, "x": 1}))


def test_detect_service_shape() -> None:
    assert detect_service_shape({"totals": {"weekly": {"amount": 5}}}) is ServiceShape.CURRENT
    assert detect_service_shape({"drainBreakdown": []}) is ServiceShape.CURRENT
    assert detect_service_shape({"weeklyTotal": 5}) is ServiceShape.LEGACY


def test_adapt_legacy_service(legacy_record: dict[str, Any], layout: LayoutSettings) -> None:
    block = adapt_service(
        "saniclean",
        legacy_record["services"]["saniclean"],
        is_active=True,
        headings=layout.service_headings,
    )

    assert block is not None
    assert block.shape is ServiceShape.LEGACY
    assert block.heading == "SANICLEAN"
    assert block.frequency_key == "weekly"
    assert block.frequency_label == "Weekly"
    assert block.totals.weekly == 84
    assert block.totals.monthly_recurring == pytest.approx(363.72)
    assert block.totals.contract_months == 12
    assert block.totals.annual_months == 12
    assert block.service_item is not None
    assert block.service_item.label == "Fixture Count"
    assert block.service_item.quantity == 12
    assert block.service_item.rate == 7


def test_adapt_current_service_reads_nested_totals(current_record: dict[str, Any]) -> None:
    block = adapt_service("rpmWindows", current_record["services"]["rpmWindows"], is_active=True)

    assert block is not None
    assert block.shape is ServiceShape.CURRENT
    assert block.totals.per_visit == 55
    assert block.totals.contract == 220
    assert block.totals.contract_months == 12
    assert [item.label for item in block.breakdown_items] == ["Small Windows", "Large Windows"]
    assert [item.order_no for item in block.breakdown_items] == [2.0, 1.0]
    assert [extra.key for extra in block.extras] == ["tripCharge"]
    assert block.extras[0].amount == 15


def test_adapt_service_custom_fields(current_record: dict[str, Any]) -> None:
    block = adapt_service(
        "microfiberMopping", current_record["services"]["microfiberMopping"], is_active=True
    )

    assert block is not None
    assert [(field.id, field.type) for field in block.custom_fields] == [
        ("calc1", "calc"),
        ("spacer", "gap"),
    ]
    assert block.service_item is not None
    assert block.service_item.label == "Bathrooms"


def test_adapt_service_heading_precedence() -> None:
    data = {"heading": "Deep Clean", "weeklyTotal": 10}

    configured = adapt_service("pureJanitorial", data, is_active=True, headings={"pureJanitorial": "PURE"})
    from_data = adapt_service("pureJanitorial", data, is_active=True)
    humanized = adapt_service("pureJanitorial", {"weeklyTotal": 10}, is_active=True)

    assert configured is not None and configured.heading == "PURE"
    assert from_data is not None and from_data.heading == "Deep Clean"
    assert humanized is not None and humanized.heading == "PURE JANITORIAL"


def test_adapt_service_does_not_mutate_input(legacy_record: dict[str, Any]) -> None:
    data = legacy_record["services"]["saniclean"]
    snapshot = repr(data)

    block = adapt_service("saniclean", data, is_active=True)

    assert repr(data) == snapshot
    assert block is not None
    with pytest.raises(TypeError):
        block.raw_configuration["weeklyTotal"] = 0  # type: ignore[index]


def test_adapt_legacy_products(legacy_record: dict[str, Any]) -> None:
    legacy_record["products"]["bigProducts"].append("not a row")

    shape, products, dispensers = adapt_products(legacy_record["products"])

    assert shape is ProductShape.LEGACY
    assert [line.display_name for line in products] == ["Hand Soap", "Air Freshener", "Paper Towels"]
    assert products[0].custom_field_values == {"extra_case_size": 3}
    assert products[1].frequency_label == "Bi-Weekly"
    assert products[2].unit_price_or_amount == 0
    assert [line.display_name for line in dispensers] == ["Soap Dispenser"]
    assert dispensers[0].replacement_rate == 25


def test_adapt_current_products(current_record: dict[str, Any]) -> None:
    shape, products, dispensers = adapt_products(current_record["products"])

    assert shape is ProductShape.CURRENT
    assert products[0].unit_price_or_amount == 3.5
    assert products[0].custom_field_values == {"sku": "US-100"}
    assert dispensers[0].custom_field_values == {"loc": "Lobby"}


def test_detect_products_shape() -> None:
    assert detect_products_shape({"smallProducts": []}) is ProductShape.LEGACY
    assert detect_products_shape({"products": []}) is ProductShape.CURRENT
    assert detect_products_shape([{"name": "Soap"}]) is ProductShape.CURRENT
    assert detect_products_shape(None) is ProductShape.EMPTY
    assert adapt_products(None) == (ProductShape.EMPTY, (), ())
