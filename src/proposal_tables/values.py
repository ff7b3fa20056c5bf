"""Value coercion and display helpers shared by the row builders."""

from __future__ import annotations

import math
import re
from typing import Any

__all__ = [
    "coerce_float",
    "coerce_order_no",
    "format_money",
    "format_money_with_months",
    "format_quantity",
    "humanize_key",
    "is_blank",
    "is_truthy_amount",
]

DEFAULT_CURRENCY = "$"


def is_blank(value: Any) -> bool:
    """Return ``True`` for ``None`` and empty or whitespace-only strings."""

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def coerce_float(value: Any) -> float | None:
    """Best-effort conversion to a finite ``float`` value.

    Numeric strings may carry a leading currency symbol and thousands
    separators (``"$1,250.50"``).  Booleans are rejected so that flags are
    never mistaken for amounts.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            coerced = float(value)
        except Exception:  # pragma: no cover - defensive guard
            return None
        return coerced if math.isfinite(coerced) else None

    if not isinstance(value, str):
        return None

    text = value.strip().replace(",", "")
    if text.startswith("-$"):
        text = "-" + text[2:]
    elif text.startswith("$"):
        text = text[1:]
    text = text.strip()
    if not text:
        return None

    try:
        coerced = float(text)
    except ValueError:
        return None

    return coerced if math.isfinite(coerced) else None


def is_truthy_amount(value: Any) -> bool:
    """Return ``True`` when ``value`` is present and not zero/false."""

    if is_blank(value) or value is False:
        return False
    number = coerce_float(value)
    if number is not None:
        return number != 0
    if isinstance(value, str):
        return value.strip() not in {"0", "false", "False"}
    return bool(value)


def format_money(value: Any, currency: str = DEFAULT_CURRENCY) -> str:
    """Format ``value`` as ``$N.NN``.

    Values that cannot be read as a number are returned unchanged (as text),
    and ``None`` renders as an empty string.
    """

    if value is None:
        return ""
    number = coerce_float(value)
    if number is None:
        return str(value)
    return f"{currency}{number:.2f}"


def format_quantity(value: Any) -> str:
    """Render a quantity, dropping a trailing ``.0`` from whole numbers."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        number = float(value)
        if math.isfinite(number) and number.is_integer():
            return str(int(number))
        return f"{number:g}"
    return str(value).strip()


def coerce_order_no(value: Any) -> float | None:
    """Return an explicit ordering number, or ``None`` when not supplied."""

    if isinstance(value, str) and not value.strip():
        return None
    return coerce_float(value)


_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def humanize_key(key: Any) -> str:
    """Turn ``"foamingDrain"`` or ``"grease_trap"`` into a title-cased label."""

    text = str(key or "").strip()
    if not text:
        return ""
    text = _CAMEL_BOUNDARY_RE.sub(" ", text).replace("_", " ").replace("-", " ")
    return " ".join(part[:1].upper() + part[1:] for part in text.split())


def format_money_with_months(value: Any, months: Any, currency: str = DEFAULT_CURRENCY) -> str:
    """Format a contract-style amount as ``"$1200.00 (12 months)"``."""

    text = format_money(value, currency)
    if is_blank(months) or not text:
        return text
    count = format_quantity(months)
    unit = "month" if count == "1" else "months"
    return f"{text} ({count} {unit})"
