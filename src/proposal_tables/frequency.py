"""Canonicalisation of free-text frequency labels.

Sales staff typed frequencies by hand for years ("Bi-Weekly", "2x month",
"every other week"), so every label is reduced to one of a fixed set of
canonical keys before it drives any total selection.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping

__all__ = [
    "CANONICAL_FREQUENCIES",
    "FREQUENCY_LABELS",
    "MONTHLY_GROUP",
    "VISIT_GROUP",
    "determine_frequency_group",
    "frequency_label",
    "normalize_frequency_key",
    "total_cadence",
    "visits_per_month",
]

MONTHLY_GROUP = "monthly"
VISIT_GROUP = "visit"

CANONICAL_FREQUENCIES: tuple[str, ...] = (
    "oneTime",
    "weekly",
    "biweekly",
    "twicePerMonth",
    "monthly",
    "bimonthly",
    "quarterly",
    "biannual",
    "annual",
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

_SYNONYMS: Mapping[str, str] = MappingProxyType(
    {
        # one time
        "onetime": "oneTime",
        "once": "oneTime",
        "oneoff": "oneTime",
        "single": "oneTime",
        "singlevisit": "oneTime",
        # weekly
        "weekly": "weekly",
        "week": "weekly",
        "everyweek": "weekly",
        "perweek": "weekly",
        "onceaweek": "weekly",
        "1xweek": "weekly",
        "1xweekly": "weekly",
        # every other week
        "biweekly": "biweekly",
        "everyotherweek": "biweekly",
        "every2weeks": "biweekly",
        "everytwoweeks": "biweekly",
        "fortnightly": "biweekly",
        # twice a month
        "twicepermonth": "twicePerMonth",
        "twiceamonth": "twicePerMonth",
        "twicemonthly": "twicePerMonth",
        "2xmonth": "twicePerMonth",
        "2xmonthly": "twicePerMonth",
        "2xpermonth": "twicePerMonth",
        "2permonth": "twicePerMonth",
        "semimonthly": "twicePerMonth",
        # monthly
        "monthly": "monthly",
        "month": "monthly",
        "everymonth": "monthly",
        "permonth": "monthly",
        "onceamonth": "monthly",
        "oncepermonth": "monthly",
        "1xmonth": "monthly",
        # every other month
        "bimonthly": "bimonthly",
        "everyothermonth": "bimonthly",
        "every2months": "bimonthly",
        "everytwomonths": "bimonthly",
        # quarterly
        "quarterly": "quarterly",
        "quarter": "quarterly",
        "every3months": "quarterly",
        "everythreemonths": "quarterly",
        "4xyear": "quarterly",
        # twice a year
        "biannual": "biannual",
        "biannually": "biannual",
        "semiannual": "biannual",
        "semiannually": "biannual",
        "twiceayear": "biannual",
        "twiceperyear": "biannual",
        "every6months": "biannual",
        "everysixmonths": "biannual",
        "2xyear": "biannual",
        # yearly
        "annual": "annual",
        "annually": "annual",
        "yearly": "annual",
        "year": "annual",
        "onceayear": "annual",
        "everyyear": "annual",
        "1xyear": "annual",
    }
)

# Ordered containment checks used when no synonym matches exactly.  More
# specific fragments must come before the generic "week"/"month"/"year" ones.
_CONTAINMENT_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("onetime",), "oneTime"),
    (("oneoff",), "oneTime"),
    (("biweek",), "biweekly"),
    (("fortnight",), "biweekly"),
    (("otherweek",), "biweekly"),
    (("semimonth",), "twicePerMonth"),
    (("twice", "month"), "twicePerMonth"),
    (("2x", "month"), "twicePerMonth"),
    (("bimonth",), "bimonthly"),
    (("othermonth",), "bimonthly"),
    (("quarter",), "quarterly"),
    (("semiannual",), "biannual"),
    (("biannual",), "biannual"),
    (("halfyear",), "biannual"),
    (("twice", "year"), "biannual"),
    (("twotimes", "month"), "twicePerMonth"),
    (("2times", "month"), "twicePerMonth"),
    (("twotimes", "year"), "biannual"),
    (("2times", "year"), "biannual"),
    (("fourtimes", "year"), "quarterly"),
    (("4times", "year"), "quarterly"),
    # counted intervals; longer numbers first so "12" never reads as "2"
    (("12week",), "quarterly"),
    (("twelveweek",), "quarterly"),
    (("12month",), "annual"),
    (("twelvemonth",), "annual"),
    (("2week",), "biweekly"),
    (("twoweek",), "biweekly"),
    (("4week",), "monthly"),
    (("fourweek",), "monthly"),
    (("2month",), "bimonthly"),
    (("twomonth",), "bimonthly"),
    (("3month",), "quarterly"),
    (("threemonth",), "quarterly"),
    (("6month",), "biannual"),
    (("sixmonth",), "biannual"),
    (("week",), "weekly"),
    (("month",), "monthly"),
    (("annual",), "annual"),
    (("year",), "annual"),
)

_GROUPS: Mapping[str, str] = MappingProxyType(
    {
        "weekly": MONTHLY_GROUP,
        "biweekly": MONTHLY_GROUP,
        "twicePerMonth": MONTHLY_GROUP,
        "monthly": MONTHLY_GROUP,
        "oneTime": VISIT_GROUP,
        "bimonthly": VISIT_GROUP,
        "quarterly": VISIT_GROUP,
        "biannual": VISIT_GROUP,
        "annual": VISIT_GROUP,
    }
)

FREQUENCY_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "oneTime": "One Time",
        "weekly": "Weekly",
        "biweekly": "Bi-Weekly",
        "twicePerMonth": "2x Month",
        "monthly": "Monthly",
        "bimonthly": "Bi-Monthly",
        "quarterly": "Quarterly",
        "biannual": "Bi-Annual",
        "annual": "Annual",
    }
)

# Billing conversions: average visits in one month.
_VISITS_PER_MONTH: Mapping[str, float] = MappingProxyType(
    {
        "weekly": 4.33,
        "biweekly": 2.165,
        "twicePerMonth": 2.0,
        "monthly": 1.0,
        "bimonthly": 0.5,
        "quarterly": 1 / 3,
        "biannual": 1 / 6,
        "annual": 1 / 12,
    }
)


def _squash(raw: Any) -> str:
    if raw is None or isinstance(raw, bool):
        return ""
    return _NON_ALNUM_RE.sub("", str(raw).lower())


def normalize_frequency_key(raw: Any) -> str | None:
    """Map ``raw`` onto a canonical frequency key.

    ``None`` is the unresolved result; nothing here raises.

    >>> normalize_frequency_key("Bi-Weekly")
    'biweekly'
    """

    squashed = _squash(raw)
    if not squashed:
        return None

    exact = _SYNONYMS.get(squashed)
    if exact is not None:
        return exact

    for fragments, key in _CONTAINMENT_RULES:
        if all(fragment in squashed for fragment in fragments):
            return key
    return None


def determine_frequency_group(key: str | None) -> str | None:
    """Return the cadence group of a canonical key, ``None`` when unresolved."""

    if key is None:
        return None
    return _GROUPS.get(key)


def total_cadence(key: str | None) -> str:
    """Return the cadence group used to pick total rows.

    Unresolved frequencies fall back to the monthly group.
    """

    return determine_frequency_group(key) or MONTHLY_GROUP


def frequency_label(raw: Any) -> str:
    """Return the display label for ``raw``.

    Canonical frequencies use their standard label; anything unresolved is
    shown exactly as it was typed.
    """

    key = normalize_frequency_key(raw)
    if key is not None:
        return FREQUENCY_LABELS[key]
    if raw is None or isinstance(raw, bool):
        return ""
    return str(raw).strip()


def visits_per_month(key: str | None) -> float | None:
    """Average visits per month, ``None`` for one-time or unresolved keys."""

    if key is None:
        return None
    return _VISITS_PER_MONTH.get(key)
