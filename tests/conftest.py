from __future__ import annotations

import copy
from typing import Any, Iterator

import pytest

from proposal_tables import config


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep every test on the packaged defaults unless it opts into an override."""

    monkeypatch.delenv(config.APP_SETTINGS_ENV_VAR, raising=False)
    monkeypatch.delenv(config.DEBUG_ENV_VAR, raising=False)
    config.load_app_settings(reload=True)
    yield
    monkeypatch.delenv(config.APP_SETTINGS_ENV_VAR, raising=False)
    config.load_app_settings(reload=True)


@pytest.fixture
def layout() -> config.LayoutSettings:
    return config.load_layout_settings()


_LEGACY_RECORD: dict[str, Any] = {
    "products": {
        "smallProducts": {
            "rows": [
                {"name": "Hand Soap", "qty": 4, "amount": 12.5, "frequency": "Weekly", "total": 50, "extras": [3]},
                {"name": "Air Freshener", "qty": 2, "amount": "7", "frequency": "bi-weekly", "total": 14},
            ],
            "extraCols": [{"label": "Case Size"}],
        },
        "bigProducts": [
            {"name": "Paper Towels", "qty": 10, "amount": 0, "frequency": "monthly", "total": 0},
        ],
        "dispensers": {
            "rows": [
                {"name": "Soap Dispenser", "qty": 3, "warrantyRate": 1, "replacementRate": 25, "frequency": "Weekly", "total": 3},
            ],
            "extraCols": [],
        },
    },
    "services": {
        "saniclean": {
            "isActive": True,
            "formData": {
                "fixtureCount": 12,
                "ratePerFixture": 7,
                "frequency": "Weekly",
                "weeklyTotal": 84,
                "monthlyTotal": 363.72,
                "contractTotal": 4364.64,
                "contractMonths": 12,
            },
        },
        "foamingDrain": {
            "drainCount": 0,
            "ratePerDrain": 10,
            "frequency": "weekly",
        },
        "greaseTrap": {
            "isActive": False,
            "trapCount": 2,
            "perVisitTotal": 250,
        },
        "notes": {"heading": "SERVICE NOTES", "lines": 3, "textLines": ["Call ahead before arrival."]},
    },
}


_CURRENT_RECORD: dict[str, Any] = {
    "customColumns": {
        "products": [{"id": "sku", "label": "SKU"}],
        "dispensers": [{"id": "loc", "label": "Location"}],
    },
    "products": {
        "products": [
            {
                "displayName": "Urinal Screens",
                "qty": 6,
                "unitPrice": 3.5,
                "frequency": "Monthly",
                "total": 21,
                "customFields": {"sku": "US-100"},
            },
        ],
        "dispensers": [
            {
                "displayName": "Towel Dispenser",
                "qty": 2,
                "warrantyRate": 1,
                "replacementRate": 30,
                "frequency": "Monthly",
                "total": 2,
                "customFields": {"loc": "Lobby"},
            },
        ],
    },
    "services": {
        "rpmWindows": {
            "isActive": True,
            "frequency": "Quarterly",
            "windowBreakdown": [
                {"label": "Small Windows", "qty": 10, "rate": 2, "total": 20, "orderNo": 2},
                {"label": "Large Windows", "qty": 4, "rate": 5, "total": 20, "orderNo": 1},
            ],
            "tripCharge": 15,
            "totals": {
                "perVisit": {"amount": 55},
                "firstVisit": {"amount": 110},
                "recurringVisit": {"amount": 55},
                "contract": {"amount": 220, "months": 12},
            },
        },
        "microfiberMopping": {
            "frequency": "Weekly",
            "service": {"label": "Bathrooms", "qty": 3, "rate": 10, "total": 30},
            "totals": {"monthlyRecurring": {"amount": 129.9}},
            "customFields": [
                {"id": "calc1", "label": "Extra Mop Heads", "type": "calc", "value": ["2", "$10", "$20"]},
                {"id": "spacer", "label": "Spacer", "type": "gap"},
            ],
        },
        "refreshPowerScrub": {
            "isActive": True,
            "frequency": "Monthly",
            "contractMonths": 12,
            "areas": {
                "dumpster": {"enabled": True, "pricingMethod": "perHour", "hours": 2, "hourlyRate": 50},
                "patio": {"enabled": True, "pricingMethod": "preset", "presetPrice": 300, "addonPrice": 50},
                "walkway": {"enabled": False, "pricingMethod": "custom", "customAmount": 100},
            },
        },
    },
}


@pytest.fixture
def legacy_record() -> dict[str, Any]:
    return copy.deepcopy(_LEGACY_RECORD)


@pytest.fixture
def current_record() -> dict[str, Any]:
    return copy.deepcopy(_CURRENT_RECORD)
