"""Per-area pricing grid for the power-scrub service.

The power-scrub form prices each named area on its own, each with one pricing
strategy.  The grid shows one column per enabled, visible area in a fixed
order, and the same five rows for every column.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from proposal_tables.config import get_logger
from proposal_tables.fields import pick, resolve
from proposal_tables.frequency import frequency_label, normalize_frequency_key, visits_per_month
from proposal_tables.models import AreaColumn, AreaPricingGrid
from proposal_tables.shapes import unwrap_service
from proposal_tables.values import (
    DEFAULT_CURRENCY,
    coerce_float,
    format_money,
    format_money_with_months,
    format_quantity,
)

logger = get_logger("area_pricing")

__all__ = [
    "AREA_LABELS",
    "AREA_ORDER",
    "AREA_PRICING_SERVICE_KEY",
    "DEFAULT_CONTRACT_MONTHS",
    "METHOD_LABELS",
    "SQUARE_FEET_DEFAULTS",
    "AreaQuote",
    "build_area_pricing_grid",
    "normalize_method",
    "quote_area",
]

AREA_PRICING_SERVICE_KEY = "refreshPowerScrub"

AREA_ORDER: tuple[str, ...] = ("dumpster", "patio", "walkway", "frontHouse", "backHouse", "other")

AREA_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "dumpster": "Dumpster",
        "patio": "Patio",
        "walkway": "Walkway",
        "frontHouse": "Front of House",
        "backHouse": "Back of House",
        "other": "Other",
    }
)

METHOD_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "perHour": "Per Hour",
        "perWorker": "Per Worker",
        "squareFeet": "Square Feet",
        "preset": "Preset",
        "custom": "Custom",
    }
)

_METHOD_SYNONYMS: Mapping[str, str] = MappingProxyType(
    {
        "perhour": "perHour",
        "hourly": "perHour",
        "hour": "perHour",
        "hours": "perHour",
        "perworker": "perWorker",
        "worker": "perWorker",
        "workers": "perWorker",
        "squarefeet": "squareFeet",
        "squarefoot": "squareFeet",
        "sqft": "squareFeet",
        "persqft": "squareFeet",
        "preset": "preset",
        "package": "preset",
        "plan": "preset",
        "custom": "custom",
        "flat": "custom",
        "manual": "custom",
    }
)

# Square-foot pricing parameters used when an area leaves them out.
SQUARE_FEET_DEFAULTS: Mapping[str, float] = MappingProxyType(
    {"fixed_fee": 200.0, "inside_rate": 0.6, "outside_rate": 0.4}
)

DEFAULT_CONTRACT_MONTHS = 12

# Only the patio supports the preset add-on surcharge.
_ADDON_AREAS = frozenset({"patio"})


@dataclass(frozen=True)
class AreaQuote:
    """Resolved pricing of one area before it is rendered."""

    key: str
    method: str | None
    detail: str
    per_visit: float | None
    frequency_key: str | None
    frequency_label: str
    contract: float | None
    contract_months: Any


def normalize_method(raw: Any) -> str | None:
    """Map a free-text pricing method onto one of :data:`METHOD_LABELS`."""

    if raw is None or isinstance(raw, bool):
        return None
    squashed = "".join(ch for ch in str(raw).lower() if ch.isalnum())
    if not squashed:
        return None
    return _METHOD_SYNONYMS.get(squashed)


def _num(area: Mapping[str, Any], field: str) -> float | None:
    return coerce_float(resolve(area, field))


def _infer_method(area: Mapping[str, Any]) -> str | None:
    if _num(area, "area.hours") is not None:
        return "perHour"
    if _num(area, "area.workers") is not None:
        return "perWorker"
    if _num(area, "area.inside_sqft") is not None or _num(area, "area.outside_sqft") is not None:
        return "squareFeet"
    if _num(area, "area.preset_price") is not None:
        return "preset"
    if _num(area, "area.custom_amount") is not None:
        return "custom"
    return None


def _plural(count: str, singular: str, plural: str) -> str:
    return singular if count == "1" else plural


def _per_hour(area: Mapping[str, Any], currency: str) -> tuple[str, float | None]:
    hours = _num(area, "area.hours")
    rate = _num(area, "area.hourly_rate")
    if hours is None and rate is None:
        return "", None
    count = format_quantity(hours or 0)
    detail = f"{count} {_plural(count, 'hr', 'hrs')} @ {format_money(rate or 0, currency)}"
    return detail, (hours or 0) * (rate or 0)


def _per_worker(area: Mapping[str, Any], currency: str) -> tuple[str, float | None]:
    workers = _num(area, "area.workers")
    rate = _num(area, "area.worker_rate")
    if workers is None and rate is None:
        return "", None
    count = format_quantity(workers or 0)
    detail = f"{count} {_plural(count, 'worker', 'workers')} @ {format_money(rate or 0, currency)}"
    return detail, (workers or 0) * (rate or 0)


def _square_feet(area: Mapping[str, Any], currency: str) -> tuple[str, float | None]:
    inside = _num(area, "area.inside_sqft")
    outside = _num(area, "area.outside_sqft")
    if inside is None and outside is None:
        return "", None
    fixed_fee = _num(area, "area.fixed_fee")
    if fixed_fee is None:
        fixed_fee = SQUARE_FEET_DEFAULTS["fixed_fee"]
    inside_rate = _num(area, "area.inside_rate")
    if inside_rate is None:
        inside_rate = SQUARE_FEET_DEFAULTS["inside_rate"]
    outside_rate = _num(area, "area.outside_rate")
    if outside_rate is None:
        outside_rate = SQUARE_FEET_DEFAULTS["outside_rate"]

    parts: list[str] = []
    total = fixed_fee
    if inside is not None:
        parts.append(f"In: {format_quantity(inside)} @ {format_money(inside_rate, currency)}")
        total += inside * inside_rate
    if outside is not None:
        parts.append(f"Out: {format_quantity(outside)} @ {format_money(outside_rate, currency)}")
        total += outside * outside_rate
    return ", ".join(parts), total


def _preset(key: str, area: Mapping[str, Any], currency: str) -> tuple[str, float | None]:
    price = _num(area, "area.preset_price")
    if price is None:
        return "", None
    label = resolve(area, "area.preset_label")
    detail = str(label).strip() if isinstance(label, str) and label.strip() else "Preset"
    total = price
    addon = _num(area, "area.addon") if key in _ADDON_AREAS else None
    if addon:
        detail = f"{detail} + Add-on {format_money(addon, currency)}"
        total += addon
    return detail, total


def _custom(area: Mapping[str, Any], currency: str) -> tuple[str, float | None]:
    amount = _num(area, "area.custom_amount")
    if amount is None:
        return "", None
    return "Custom", amount


def _strategy(
    key: str,
    method: str | None,
    area: Mapping[str, Any],
    currency: str,
) -> tuple[str, float | None]:
    if method == "perHour":
        return _per_hour(area, currency)
    if method == "perWorker":
        return _per_worker(area, currency)
    if method == "squareFeet":
        return _square_feet(area, currency)
    if method == "preset":
        return _preset(key, area, currency)
    if method == "custom":
        return _custom(area, currency)
    return "", None


def quote_area(
    key: str,
    area: Mapping[str, Any],
    *,
    service_frequency: Any = None,
    service_contract_months: Any = None,
    currency: str = DEFAULT_CURRENCY,
) -> AreaQuote:
    """Price one area with its selected strategy.

    Explicit totals stored on the area win over computed ones.  Without an
    explicit contract total the contract is the per-visit amount times the
    visits per month times the contract months; one-time work bills once.
    """

    method = normalize_method(resolve(area, "area.method")) or _infer_method(area)
    detail, computed = _strategy(key, method, area, currency)

    explicit = coerce_float(resolve(area, "area.total"))
    per_visit = explicit if explicit is not None else computed

    raw_frequency = resolve(area, "line.frequency")
    if raw_frequency is None:
        raw_frequency = service_frequency
    frequency_key = normalize_frequency_key(raw_frequency)

    months = resolve(area, "service.contract_months")
    if months is None:
        months = service_contract_months
    if months is None:
        months = DEFAULT_CONTRACT_MONTHS

    contract = coerce_float(resolve(area, "area.contract_total"))
    if contract is None and per_visit is not None:
        if frequency_key == "oneTime":
            contract = per_visit
        else:
            month_count = coerce_float(months)
            per_month = visits_per_month(frequency_key)
            if per_month is None:
                per_month = 1.0
            if month_count is not None:
                contract = round(per_visit * per_month * month_count, 2)

    return AreaQuote(
        key=key,
        method=method,
        detail=detail or "Service",
        per_visit=per_visit,
        frequency_key=frequency_key,
        frequency_label=frequency_label(raw_frequency),
        contract=contract,
        contract_months=None if frequency_key == "oneTime" else months,
    )


def _area_records(inner: Mapping[str, Any]) -> Mapping[str, Any]:
    areas = inner.get("areas")
    if isinstance(areas, Mapping):
        return areas
    return inner


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no", "off"}
    return bool(value)


def _is_enabled(area: Mapping[str, Any], quote: AreaQuote) -> bool:
    enabled = resolve(area, "area.enabled")
    if enabled is not None:
        return _flag(enabled, False)
    # Older saves carry no flag; a priced area is an enabled one.
    return quote.per_visit is not None and quote.per_visit > 0


def _area_label(key: str, area: Mapping[str, Any]) -> str:
    if key == "other":
        custom = pick(area, ("name", "label", "customName"))
        if isinstance(custom, str) and custom.strip():
            return custom.strip()
    return AREA_LABELS[key]


def build_area_pricing_grid(
    data: Any,
    *,
    heading: str = "REFRESH POWER SCRUB",
    max_columns: int = 4,
    currency: str = DEFAULT_CURRENCY,
) -> AreaPricingGrid:
    """Return the area grid for a (possibly wrapped) power-scrub entry.

    Enabled and visible areas appear in canonical order.  Areas past
    ``max_columns`` are dropped and listed in ``dropped_areas``.
    """

    inner = unwrap_service(data)
    if inner is None:
        return AreaPricingGrid(heading=heading, columns=())

    records = _area_records(inner)
    service_frequency = resolve(inner, "service.frequency")
    service_months = resolve(inner, "service.contract_months")

    columns: list[AreaColumn] = []
    dropped: list[str] = []
    for key in AREA_ORDER:
        area = records.get(key)
        if not isinstance(area, Mapping):
            continue
        quote = quote_area(
            key,
            area,
            service_frequency=service_frequency,
            service_contract_months=service_months,
            currency=currency,
        )
        if not _is_enabled(area, quote):
            continue
        if not _flag(resolve(area, "area.visible"), True):
            continue
        if len(columns) >= max_columns:
            dropped.append(key)
            continue
        columns.append(
            AreaColumn(
                key=key,
                label=_area_label(key, area),
                method_label=METHOD_LABELS.get(quote.method or "", ""),
                detail=quote.detail,
                frequency_label=quote.frequency_label,
                per_visit=format_money(quote.per_visit, currency),
                contract=(
                    ""
                    if quote.contract is None
                    else format_money_with_months(quote.contract, quote.contract_months, currency)
                ),
            )
        )

    if dropped:
        logger.debug(
            "Area pricing grid capped at %d columns; dropped %s", max_columns, ", ".join(dropped)
        )
    return AreaPricingGrid(heading=heading, columns=tuple(columns), dropped_areas=tuple(dropped))
