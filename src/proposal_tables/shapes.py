"""Input shape detection and per-shape adapters.

Two incompatible generations of the proposal record are in circulation:

* legacy products ``{smallProducts, bigProducts, dispensers}`` (bare arrays
  or ``{rows, extraCols}`` sections) and legacy services with flat totals
  such as ``weeklyTotal`` or ``contractTotal``;
* current products ``{products, dispensers}`` and current services with a
  nested ``totals`` object, itemised breakdown arrays and custom fields.

Services may additionally be wrapped one or more times in an envelope of the
same shape (``{"isActive": true, "formData": {...}}``).  A detector picks the
shape and a dedicated adapter turns it into the typed records in
:mod:`proposal_tables.models`; nothing downstream looks at raw keys.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence

from proposal_tables.config import get_logger
from proposal_tables.custom_columns import legacy_extra_values
from proposal_tables.fields import (
    BREAKDOWN_KEYS,
    COUNT_FIELDS,
    EXTRA_CHARGE_FIELDS,
    LEGACY_TOTAL_FIELDS,
    NESTED_TOTAL_FIELDS,
    pick,
    pick_key,
    resolve,
)
from proposal_tables.frequency import frequency_label, normalize_frequency_key
from proposal_tables.models import (
    BreakdownItem,
    CustomField,
    DispenserLine,
    ProductLine,
    ProductShape,
    ServiceBlock,
    ServiceExtra,
    ServiceShape,
    ServiceTotals,
)
from proposal_tables.values import coerce_float, coerce_order_no, humanize_key, is_blank

logger = get_logger("shapes")

__all__ = [
    "ENVELOPE_KEYS",
    "PAYLOAD_KEYS",
    "adapt_products",
    "adapt_service",
    "detect_products_shape",
    "detect_service_shape",
    "explicitly_inactive",
    "service_layers",
    "unwrap_service",
]

# Keys that carry the wrapped record inside an envelope.
ENVELOPE_KEYS: tuple[str, ...] = ("formData", "data", "payload", "value")

# Keys whose presence means a layer carries its own pricing data.
PAYLOAD_KEYS: frozenset[str] = frozenset(
    {key for keys in LEGACY_TOTAL_FIELDS.values() for key in keys}
    | {key for keys in COUNT_FIELDS.values() for key in keys}
    | set(BREAKDOWN_KEYS)
)

_MAX_ENVELOPE_DEPTH = 16

_LEGACY_RATE_KEYS: tuple[str, ...] = (
    "rate",
    "ratePerFixture",
    "ratePerDrain",
    "ratePerTrap",
    "ratePerRoom",
    "ratePerWindow",
    "ratePerSqFt",
    "hourlyRate",
)

_LEGACY_ITEM_TOTAL_KEYS: tuple[str, ...] = ("serviceTotal", "itemTotal", "subtotal")

_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


# ---------------------------------------------------------------------------
# envelopes
# ---------------------------------------------------------------------------


def _has_payload(record: Mapping[str, Any]) -> bool:
    if any(record.get(key) is not None for key in PAYLOAD_KEYS):
        return True
    if isinstance(resolve(record, "service.totals"), Mapping):
        return True
    return isinstance(resolve(record, "service.item"), Mapping)


def _envelope_inner(record: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """Return the wrapped record when ``record`` is only an envelope.

    Bookkeeping siblings such as ``createdAt`` or ``serviceName`` do not stop
    the unwrap; pricing fields of its own do.
    """

    if _has_payload(record):
        return None
    for key in ENVELOPE_KEYS:
        inner = record.get(key)
        if isinstance(inner, Mapping):
            return inner
    return None


def service_layers(data: Any) -> list[Mapping[str, Any]]:
    """Return the envelope chain of ``data``, outermost first.

    The last entry is the stable inner record.  Self-referencing envelopes
    stop the walk instead of looping.
    """

    if not isinstance(data, Mapping):
        return []
    layers: list[Mapping[str, Any]] = [data]
    seen = {id(data)}
    current: Mapping[str, Any] = data
    while len(layers) < _MAX_ENVELOPE_DEPTH:
        inner = _envelope_inner(current)
        if inner is None or id(inner) in seen:
            break
        seen.add(id(inner))
        layers.append(inner)
        current = inner
    return layers


def unwrap_service(data: Any) -> Mapping[str, Any] | None:
    """Return the innermost record of a possibly wrapped service."""

    layers = service_layers(data)
    return layers[-1] if layers else None


def _flag_is_false(value: Any) -> bool:
    if value is False:
        return True
    if isinstance(value, str):
        return value.strip().lower() in _FALSE_STRINGS
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def explicitly_inactive(layers: Sequence[Mapping[str, Any]]) -> bool:
    """Return ``True`` when any envelope level switches the service off."""

    for layer in layers:
        flag = resolve(layer, "service.active")
        if flag is not None and _flag_is_false(flag):
            return True
    return False


# ---------------------------------------------------------------------------
# services
# ---------------------------------------------------------------------------


def detect_service_shape(inner: Mapping[str, Any]) -> ServiceShape:
    """Tell the current nested schema apart from the legacy flat one."""

    if isinstance(resolve(inner, "service.totals"), Mapping):
        return ServiceShape.CURRENT
    if isinstance(resolve(inner, "service.item"), Mapping):
        return ServiceShape.CURRENT
    for key in BREAKDOWN_KEYS:
        if isinstance(inner.get(key), (list, tuple, Mapping)):
            return ServiceShape.CURRENT
    return ServiceShape.LEGACY


def _total_entry(entry: Any) -> tuple[Any, Any]:
    if isinstance(entry, Mapping):
        return resolve(entry, "total.amount"), resolve(entry, "total.months")
    return entry, None


def _legacy_totals(inner: Mapping[str, Any]) -> dict[str, Any]:
    return {name: pick(inner, keys) for name, keys in LEGACY_TOTAL_FIELDS.items()}


def _current_totals(inner: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    totals = resolve(inner, "service.totals")
    amounts: dict[str, Any] = {}
    months: dict[str, Any] = {}
    if not isinstance(totals, Mapping):
        return amounts, months
    for name, keys in NESTED_TOTAL_FIELDS.items():
        amount, month_count = _total_entry(pick(totals, keys))
        amounts[name] = amount
        months[name] = month_count
    return amounts, months


def _adapt_totals(inner: Mapping[str, Any], shape: ServiceShape) -> ServiceTotals:
    amounts = _legacy_totals(inner)
    months: dict[str, Any] = {}
    if shape is ServiceShape.CURRENT:
        nested, months = _current_totals(inner)
        # Half-migrated records keep some flat totals; nested values win.
        for name, value in nested.items():
            if value is not None:
                amounts[name] = value

    contract_months = months.get("contract")
    if contract_months is None:
        contract_months = resolve(inner, "service.contract_months")
    annual_months = months.get("annual")
    if annual_months is None:
        annual_months = 12

    return ServiceTotals(
        per_visit=amounts.get("per_visit"),
        first_month=amounts.get("first_month"),
        monthly_recurring=amounts.get("monthly_recurring"),
        first_visit=amounts.get("first_visit"),
        recurring_visit=amounts.get("recurring_visit"),
        weekly=amounts.get("weekly"),
        contract=amounts.get("contract"),
        contract_months=contract_months,
        annual=amounts.get("annual"),
        annual_months=annual_months,
    )


def _item_from(entry: Mapping[str, Any], fallback_label: str) -> BreakdownItem | None:
    label = resolve(entry, "item.label")
    quantity = resolve(entry, "item.quantity")
    rate = resolve(entry, "item.rate")
    total = pick(entry, ("total", "lineTotal"))
    if total is None and rate is not None:
        total = pick(entry, ("amount",))
    if quantity is None and rate is None and total is None:
        return None
    text = str(label).strip() if label is not None else ""
    return BreakdownItem(
        label=text or fallback_label,
        quantity=quantity,
        rate=rate,
        total=total,
        order_no=coerce_order_no(resolve(entry, "item.order")),
    )


def _iter_breakdown(raw: Any) -> Iterator[tuple[str, Mapping[str, Any]]]:
    if isinstance(raw, Mapping):
        for key, entry in raw.items():
            if isinstance(entry, Mapping):
                yield humanize_key(key), entry
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for entry in raw:
            if isinstance(entry, Mapping):
                yield "Item", entry


def _adapt_breakdown(inner: Mapping[str, Any]) -> tuple[BreakdownItem, ...]:
    items: list[BreakdownItem] = []
    for key in BREAKDOWN_KEYS:
        for fallback_label, entry in _iter_breakdown(inner.get(key)):
            item = _item_from(entry, fallback_label)
            if item is not None:
                items.append(item)
    return tuple(items)


def _adapt_service_item(
    inner: Mapping[str, Any],
    shape: ServiceShape,
    heading: str,
) -> BreakdownItem | None:
    raw = resolve(inner, "service.item")
    if isinstance(raw, Mapping):
        return _item_from(raw, heading or "Service")
    if shape is not ServiceShape.LEGACY:
        return None

    # Legacy records price one count field at one rate, e.g.
    # ``{"fixtureCount": 12, "ratePerFixture": 7}``.
    for group in COUNT_FIELDS.values():
        key = pick_key(inner, group)
        if key is None:
            continue
        quantity = inner[key]
        number = coerce_float(quantity)
        if number is None or number <= 0:
            continue
        rate = pick(inner, _LEGACY_RATE_KEYS)
        total = pick(inner, _LEGACY_ITEM_TOTAL_KEYS)
        return BreakdownItem(label=humanize_key(key), quantity=quantity, rate=rate, total=total)
    return None


def _pick_extra(inner: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    for key in candidates:
        value = inner.get(key)
        if isinstance(value, bool) or is_blank(value):
            continue
        return value
    return None


def _adapt_extras(inner: Mapping[str, Any]) -> tuple[ServiceExtra, ...]:
    extras: list[ServiceExtra] = []
    for key, default_label, candidates in EXTRA_CHARGE_FIELDS:
        raw = _pick_extra(inner, candidates)
        if raw is None:
            continue
        if isinstance(raw, Mapping):
            label = resolve(raw, "item.label")
            extras.append(
                ServiceExtra(
                    key=key,
                    label=(str(label).strip() if label is not None else "") or default_label,
                    quantity=resolve(raw, "item.quantity"),
                    rate=resolve(raw, "item.rate"),
                    total=pick(raw, ("total", "lineTotal")),
                    amount=resolve(raw, "item.amount"),
                    order_no=coerce_order_no(resolve(raw, "item.order")),
                )
            )
        else:
            extras.append(ServiceExtra(key=key, label=default_label, amount=raw))
    return tuple(extras)


def _custom_entries(raw: Any) -> Iterator[tuple[str, Mapping[str, Any]]]:
    if isinstance(raw, Mapping):
        for key, entry in raw.items():
            if isinstance(entry, Mapping):
                yield str(key), entry
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for index, entry in enumerate(raw):
            if isinstance(entry, Mapping):
                yield f"custom_{index}", entry


def _adapt_custom_fields(inner: Mapping[str, Any]) -> tuple[CustomField, ...]:
    fields: list[CustomField] = []
    for fallback_id, entry in _custom_entries(resolve(inner, "service.custom_fields")):
        field_id = resolve(entry, "custom.id", fallback_id)
        label = resolve(entry, "custom.label")
        label_text = str(label).strip() if label is not None else ""
        if not label_text:
            label_text = humanize_key(field_id)
        if not label_text:
            continue
        field_type = str(resolve(entry, "custom.type", "text")).strip().lower()
        value = resolve(entry, "custom.value")
        if value is None and field_type == "calc":
            # legacy calc fields store the parts directly on the entry
            legacy = {name: entry.get(name) for name in ("qty", "rate", "total")}
            if any(part is not None for part in legacy.values()):
                value = legacy
        fields.append(
            CustomField(
                id=str(field_id),
                label=label_text,
                type=field_type or "text",
                value=value,
                order_no=coerce_order_no(resolve(entry, "item.order")),
            )
        )
    return tuple(fields)


def _heading_for(
    service_key: str,
    layers: Sequence[Mapping[str, Any]],
    headings: Mapping[str, str],
) -> str:
    configured = headings.get(service_key)
    if configured:
        return configured
    for layer in reversed(layers):
        heading = resolve(layer, "service.heading")
        if heading is not None and str(heading).strip():
            return str(heading).strip()
    return humanize_key(service_key).upper()


def adapt_service(
    service_key: str,
    data: Any,
    *,
    is_active: bool,
    headings: Mapping[str, str] | None = None,
) -> ServiceBlock | None:
    """Return the normalised :class:`ServiceBlock` for one services entry."""

    layers = service_layers(data)
    if not layers:
        return None
    inner = layers[-1]
    shape = detect_service_shape(inner)
    heading = _heading_for(service_key, layers, headings or {})

    raw_frequency = resolve(inner, "service.frequency")
    notes = resolve(inner, "service.notes")

    return ServiceBlock(
        service_key=service_key,
        heading=heading,
        is_active=is_active,
        shape=shape,
        raw_configuration=MappingProxyType(dict(inner)),
        frequency_key=normalize_frequency_key(raw_frequency),
        frequency_label=frequency_label(raw_frequency),
        totals=_adapt_totals(inner, shape),
        breakdown_items=_adapt_breakdown(inner),
        service_item=_adapt_service_item(inner, shape, humanize_key(service_key)),
        extras=_adapt_extras(inner),
        custom_fields=_adapt_custom_fields(inner),
        notes=str(notes).strip() if isinstance(notes, str) else "",
    )


# ---------------------------------------------------------------------------
# products and dispensers
# ---------------------------------------------------------------------------


def detect_products_shape(section: Any) -> ProductShape:
    if isinstance(section, Mapping):
        if "smallProducts" in section or "bigProducts" in section:
            return ProductShape.LEGACY
        if "products" in section or "dispensers" in section:
            return ProductShape.CURRENT
        return ProductShape.EMPTY
    if isinstance(section, Sequence) and not isinstance(section, (str, bytes)):
        return ProductShape.CURRENT
    return ProductShape.EMPTY


def _section_rows(section: Any) -> tuple[list[Any], Any]:
    """Return ``(rows, extra_cols)`` for a bare array or a ``{rows, extraCols}`` section."""

    if isinstance(section, Mapping):
        rows = section.get("rows")
        return (list(rows) if isinstance(rows, Sequence) else []), section.get("extraCols")
    if isinstance(section, Sequence) and not isinstance(section, (str, bytes)):
        return list(section), None
    return [], None


def _custom_values(entry: Mapping[str, Any], extra_cols: Any) -> Mapping[str, Any]:
    values: dict[str, Any] = {}
    raw = resolve(entry, "line.custom_values")
    if isinstance(raw, Mapping):
        values.update({str(key): value for key, value in raw.items()})
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for item in raw:
            if isinstance(item, Mapping):
                column_id = pick(item, ("id", "key", "columnId"))
                if column_id is not None:
                    values[str(column_id)] = pick(item, ("value", "amount"))
    legacy = legacy_extra_values(extra_cols, resolve(entry, "line.legacy_extras"))
    for key, value in legacy.items():
        values.setdefault(key, value)
    return MappingProxyType(values)


def _text_or_empty(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _product_line(entry: Any, extra_cols: Any) -> ProductLine | None:
    if not isinstance(entry, Mapping):
        logger.debug("Skipping malformed product entry: %r", entry)
        return None
    name = _text_or_empty(resolve(entry, "line.name"))
    return ProductLine(
        key=_text_or_empty(resolve(entry, "line.key")) or name,
        display_name=name,
        quantity=resolve(entry, "line.quantity"),
        unit_price_or_amount=resolve(entry, "line.unit_price"),
        frequency_label=frequency_label(resolve(entry, "line.frequency")),
        total=resolve(entry, "line.total"),
        custom_field_values=_custom_values(entry, extra_cols),
    )


def _dispenser_line(entry: Any, extra_cols: Any) -> DispenserLine | None:
    if not isinstance(entry, Mapping):
        logger.debug("Skipping malformed dispenser entry: %r", entry)
        return None
    name = _text_or_empty(resolve(entry, "line.name"))
    return DispenserLine(
        key=_text_or_empty(resolve(entry, "line.key")) or name,
        display_name=name,
        quantity=resolve(entry, "line.quantity"),
        warranty_rate=resolve(entry, "dispenser.warranty_rate"),
        replacement_rate=resolve(entry, "dispenser.replacement_rate"),
        frequency_label=frequency_label(resolve(entry, "line.frequency")),
        total=resolve(entry, "line.total"),
        custom_field_values=_custom_values(entry, extra_cols),
    )


def adapt_products(
    section: Any,
) -> tuple[ProductShape, tuple[ProductLine, ...], tuple[DispenserLine, ...]]:
    """Return the detected shape and the normalised product/dispenser lines.

    Legacy small products are listed before big products, matching the
    order the older documents printed them in.
    """

    shape = detect_products_shape(section)
    product_sections: list[Any] = []
    dispenser_section: Any = None

    if shape is ProductShape.LEGACY:
        product_sections = [section.get("smallProducts"), section.get("bigProducts")]
        dispenser_section = section.get("dispensers")
    elif shape is ProductShape.CURRENT:
        if isinstance(section, Mapping):
            product_sections = [section.get("products")]
            dispenser_section = section.get("dispensers")
        else:
            product_sections = [section]

    products: list[ProductLine] = []
    for product_section in product_sections:
        rows, extra_cols = _section_rows(product_section)
        for entry in rows:
            line = _product_line(entry, extra_cols)
            if line is not None:
                products.append(line)

    dispensers: list[DispenserLine] = []
    rows, extra_cols = _section_rows(dispenser_section)
    for entry in rows:
        dispenser = _dispenser_line(entry, extra_cols)
        if dispenser is not None:
            dispensers.append(dispenser)

    return shape, tuple(products), tuple(dispensers)
