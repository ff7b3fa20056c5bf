"""Decide whether a service entry carries real usage.

The front end saves every service form the user ever opened, so most entries
in ``services`` hold only defaults.  A service is shown when, after removing
its envelopes, one of these holds (checked in order):

1. a known total is a positive number;
2. a count-like input (fixtures, drains, square feet...) is positive;
3. a declared custom field carries a meaningful value;
4. any other non-metadata field is a positive number or a non-empty string.

An explicit ``isActive: false`` on any envelope level wins over all of them.
Zero is never evidence of use.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from proposal_tables.fields import (
    BREAKDOWN_KEYS,
    COUNT_FIELDS,
    FIELD_CANDIDATES,
    LEGACY_TOTAL_FIELDS,
    NESTED_TOTAL_FIELDS,
    resolve,
)
from proposal_tables.shapes import explicitly_inactive, service_layers
from proposal_tables.values import coerce_float, is_blank

__all__ = ["METADATA_ONLY_KEYS", "is_service_used"]

# Fields that describe how a service would be priced, never that it is used.
METADATA_ONLY_KEYS: frozenset[str] = frozenset(
    {
        # pricing mode / method
        "pricingMode",
        "pricingMethod",
        "pricingType",
        "method",
        "calcMode",
        # location
        "location",
        "locationType",
        "area",
        # frequency
        "frequency",
        "frequencyLabel",
        "serviceFrequency",
        "freq",
        # rate tier
        "rateTier",
        "rateCategory",
        "tier",
        # contract
        "contractMonths",
        "contractTerm",
        "months",
        # notes
        "notes",
        "note",
        # identifiers and display
        "serviceId",
        "serviceKey",
        "key",
        "id",
        "_id",
        "label",
        "heading",
        "displayName",
        "title",
        "version",
        "type",
        "currency",
        "createdAt",
        "updatedAt",
        # activation flags
        "isActive",
        "active",
        "enabled",
        "showInPdf",
    }
)

_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


def _positive(value: Any) -> bool:
    number = coerce_float(value)
    return number is not None and number > 0


def _is_rate_key(key: str) -> bool:
    # Rates are price-list defaults shipped with every form.
    lowered = key.lower()
    return lowered.startswith("rate") or lowered.endswith("rate") or "rateper" in lowered


def _total_amount(entry: Any) -> Any:
    if isinstance(entry, Mapping):
        return resolve(entry, "total.amount")
    return entry


def _has_positive_total(inner: Mapping[str, Any]) -> bool:
    for keys in LEGACY_TOTAL_FIELDS.values():
        if any(_positive(inner.get(key)) for key in keys):
            return True
    totals = resolve(inner, "service.totals")
    if isinstance(totals, Mapping):
        for keys in NESTED_TOTAL_FIELDS.values():
            if any(_positive(_total_amount(totals.get(key))) for key in keys):
                return True
    return False


def _entries(raw: Any) -> list[Mapping[str, Any]]:
    if isinstance(raw, Mapping):
        return [entry for entry in raw.values() if isinstance(entry, Mapping)]
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        return [entry for entry in raw if isinstance(entry, Mapping)]
    return []


def _has_positive_count(inner: Mapping[str, Any]) -> bool:
    for keys in COUNT_FIELDS.values():
        if any(_positive(inner.get(key)) for key in keys):
            return True
    quantity_keys = FIELD_CANDIDATES["item.quantity"]
    for key in BREAKDOWN_KEYS:
        for entry in _entries(inner.get(key)):
            if any(_positive(entry.get(name)) for name in quantity_keys):
                return True
    item = resolve(inner, "service.item")
    if isinstance(item, Mapping):
        return any(_positive(item.get(name)) for name in quantity_keys)
    return False


def _meaningful(value: Any) -> bool:
    if is_blank(value) or isinstance(value, bool):
        return False
    if isinstance(value, Mapping):
        return any(_meaningful(part) for part in value.values())
    if isinstance(value, (list, tuple)):
        return any(_meaningful(part) for part in value)
    number = coerce_float(value)
    if number is not None:
        return number != 0
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return False


def _has_custom_value(inner: Mapping[str, Any]) -> bool:
    for entry in _entries(resolve(inner, "service.custom_fields")):
        field_type = str(resolve(entry, "custom.type", "text")).strip().lower()
        if field_type == "gap":
            continue
        value = resolve(entry, "custom.value")
        if value is None and field_type == "calc":
            value = [entry.get(name) for name in ("qty", "rate", "total")]
        if _meaningful(value):
            return True
    return False


def _has_generic_value(inner: Mapping[str, Any]) -> bool:
    for key, value in inner.items():
        if key in METADATA_ONLY_KEYS or _is_rate_key(str(key)):
            continue
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (int, float)):
            if _positive(value):
                return True
        elif isinstance(value, str):
            text = value.strip()
            if text and text != "0":
                return True
    return False


def is_service_used(service_data: Any) -> bool:
    """Return ``True`` when ``service_data`` should produce output.

    Malformed input (not a mapping) is treated as unused.
    """

    layers = service_layers(service_data)
    if not layers:
        return False
    if explicitly_inactive(layers):
        return False
    inner = layers[-1]
    return (
        _has_positive_total(inner)
        or _has_positive_count(inner)
        or _has_custom_value(inner)
        or _has_generic_value(inner)
    )
