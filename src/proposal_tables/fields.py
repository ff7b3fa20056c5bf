"""Schema-drift tolerant field lookup.

Saved proposals were written by several generations of the quoting front end,
so one semantic value ("the unit price", "the contract total") can live under
different keys.  Each semantic field owns an ordered tuple of candidate keys in
:data:`FIELD_CANDIDATES`; the current schema's name comes first and older
names follow.  Adding a synonym means appending to a tuple, never touching a
call site.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping

__all__ = [
    "BREAKDOWN_KEYS",
    "COUNT_FIELDS",
    "EXTRA_CHARGE_FIELDS",
    "FIELD_CANDIDATES",
    "LEGACY_TOTAL_FIELDS",
    "NESTED_TOTAL_FIELDS",
    "dig",
    "pick",
    "pick_key",
    "resolve",
]


FIELD_CANDIDATES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        # products / dispensers
        "line.key": ("key", "productKey", "id", "sku"),
        "line.name": ("displayName", "name", "productName", "label", "key"),
        "line.quantity": ("qty", "quantity", "units"),
        "line.unit_price": ("unitPrice", "amountPerUnit", "pricePerUnit", "amount", "price"),
        "line.frequency": ("frequency", "frequencyLabel", "freq"),
        "line.total": ("total", "lineTotal", "totalPrice", "extPrice"),
        "line.custom_values": ("customFields", "customFieldValues", "customValues"),
        "line.legacy_extras": ("extras",),
        "dispenser.warranty_rate": ("warrantyRate", "warranty", "warrantyPrice"),
        "dispenser.replacement_rate": (
            "replacementRate",
            "replacementPrice",
            "installRate",
            "install",
        ),
        # service envelopes and metadata
        "service.active": ("isActive", "active", "enabled"),
        "service.heading": ("heading", "displayName", "label", "title"),
        "service.frequency": ("frequency", "frequencyLabel", "serviceFrequency", "freq"),
        "service.notes": ("notes", "note"),
        "service.contract_months": ("contractMonths", "contractTerm", "months"),
        "service.custom_fields": ("customFields", "extraFields"),
        "service.item": ("service", "serviceItem", "mainService"),
        "service.totals": ("totals", "pricing"),
        # breakdown items, single service objects and extras
        "item.label": ("label", "name", "displayName", "type"),
        "item.quantity": ("qty", "quantity", "count", "units"),
        "item.rate": ("rate", "unitPrice", "ratePerUnit", "price"),
        "item.total": ("total", "lineTotal", "amount"),
        "item.amount": ("amount", "total", "price", "value"),
        "item.order": ("orderNo", "order", "sortOrder"),
        # custom fields
        "custom.id": ("id", "key", "name"),
        "custom.label": ("label", "name", "title"),
        "custom.type": ("type", "kind", "fieldType"),
        "custom.value": ("value", "values", "amount"),
        # nested totals entries
        "total.amount": ("amount", "value", "total"),
        "total.months": ("months", "contractMonths", "monthCount"),
        # area pricing
        "area.enabled": ("enabled", "isEnabled", "selected"),
        "area.visible": ("showInPdf", "visible", "isVisible", "show"),
        "area.method": ("pricingMethod", "pricingType", "method"),
        "area.hours": ("hours", "hoursPerVisit"),
        "area.hourly_rate": ("hourlyRate", "ratePerHour", "rate"),
        "area.workers": ("workers", "workerCount", "numWorkers"),
        "area.worker_rate": ("workerRate", "perWorkerRate", "ratePerWorker"),
        "area.fixed_fee": ("fixedFee", "sqftFixedFee", "baseFee"),
        "area.inside_sqft": ("insideSqFt", "squareFeetInside", "insideSquareFeet"),
        "area.inside_rate": ("insideRate", "insideRatePerSqFt"),
        "area.outside_sqft": ("outsideSqFt", "squareFeetOutside", "outsideSquareFeet"),
        "area.outside_rate": ("outsideRate", "outsideRatePerSqFt"),
        "area.preset_price": ("presetPrice", "planPrice", "packagePrice", "presetAmount"),
        "area.preset_label": ("presetLabel", "planLabel", "packageLabel", "preset", "plan"),
        "area.addon": ("addonPrice", "addOnPrice", "addonAmount", "upsellPrice"),
        "area.custom_amount": ("customAmount", "customPrice", "flatAmount"),
        "area.total": ("perVisitTotal", "total", "visitTotal"),
        "area.contract_total": ("contractTotal", "totalContract"),
    }
)

# Flat totals written by the older front end, keyed by ServiceTotals field.
LEGACY_TOTAL_FIELDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "per_visit": ("perVisitTotal", "perVisitPrice", "visitTotal"),
        "first_month": ("firstMonthTotal", "firstMonthPrice"),
        "monthly_recurring": ("monthlyTotal", "monthlyRecurringTotal", "monthlyPrice"),
        "first_visit": ("firstVisitTotal", "firstVisitPrice"),
        "recurring_visit": ("recurringVisitTotal", "recurringVisitPrice"),
        "weekly": ("weeklyTotal", "weeklyPrice"),
        "contract": ("contractTotal", "totalContract"),
        "annual": ("annualTotal", "yearlyTotal"),
    }
)

# Entries of the current ``totals`` object, keyed by ServiceTotals field.
NESTED_TOTAL_FIELDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "per_visit": ("perVisit", "perVisitTotal"),
        "first_month": ("firstMonth", "firstMonthTotal"),
        "monthly_recurring": ("monthlyRecurring", "monthly", "monthlyTotal"),
        "first_visit": ("firstVisit", "firstVisitTotal"),
        "recurring_visit": ("recurringVisit", "recurringVisitTotal"),
        "weekly": ("weekly", "weeklyTotal"),
        "contract": ("contract", "contractTotal"),
        "annual": ("annual", "annualTotal"),
    }
)

# Count-like inputs; any positive value means the service is in use.
COUNT_FIELDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "fixtures": ("fixtureCount", "fixtures", "totalFixtures"),
        "drains": ("drainCount", "standardDrains", "greenDrains", "drains"),
        "square_feet": ("squareFeet", "sqft", "squareFootage", "extraAreaSqFt"),
        "quantity": ("quantity", "qty", "units", "roomCount", "bathrooms"),
        "traps": ("trapCount", "traps", "greaseTraps"),
        "hours": ("hoursPerWeek", "hours", "manualHours"),
        "windows": ("windowCount", "smallWindows", "mediumWindows", "largeWindows"),
    }
)

# Arrays holding one entry per fixture, drain or line item, in render order.
BREAKDOWN_KEYS: tuple[str, ...] = (
    "fixtureBreakdown",
    "drainBreakdown",
    "windowBreakdown",
    "breakdown",
    "lineItems",
    "items",
)

# Conditional extras: (key, default label, candidate keys).
EXTRA_CHARGE_FIELDS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("installation", "Installation", ("installation", "install", "installationFee")),
    ("warranty", "Warranty", ("warranty", "warrantyFee", "warrantyCharge")),
    ("tripCharge", "Trip Charge", ("tripCharge", "trip", "tripChargePerVisit")),
    ("luxuryUpgrade", "Luxury Upgrade", ("luxuryUpgrade", "soapUpgrade", "luxurySoapUpgrade")),
    (
        "extraConsumables",
        "Extra Consumables",
        ("extraConsumables", "extraBags", "excessSoap"),
    ),
)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def pick_key(record: Any, candidates: Iterable[str]) -> str | None:
    """Return the first candidate key carrying a present value on ``record``."""

    if not isinstance(record, Mapping):
        return None
    for key in candidates:
        if key in record and _present(record[key]):
            return key
    return None


def pick(record: Any, candidates: Iterable[str], default: Any = None) -> Any:
    """Return the value of the first present candidate key.

    ``None`` and the empty string count as absent; a whitespace-only string
    is present.  Numeric zero and ``False`` are present values: ``pick({"unitPrice": 0}, ("unitPrice", "amount"))``
    is ``0``.  Non-mapping records resolve to ``default``.
    """

    key = pick_key(record, candidates)
    if key is None:
        return default
    return record[key]


def resolve(record: Any, field: str, default: Any = None) -> Any:
    """Look ``field`` up in :data:`FIELD_CANDIDATES` and :func:`pick` it."""

    return pick(record, FIELD_CANDIDATES[field], default)


def dig(record: Any, *path: str, default: Any = None) -> Any:
    """Follow ``path`` through nested mappings, returning ``default`` on a miss."""

    current = record
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    if not _present(current):
        return default
    return current
