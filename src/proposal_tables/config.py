"""Configuration helpers for the proposal table compiler."""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from proposal_tables.models import ColumnSpec
from proposal_tables.resources import default_app_settings_json

APP_SETTINGS_ENV_VAR = "PROPOSAL_TABLES_APP_SETTINGS"
DEBUG_ENV_VAR = "PROPOSAL_TABLES_DEBUG"
_APP_SETTINGS_CACHE: dict[str, Any] | None = None

LOGGER_NAME = "proposal_tables"


def get_logger(*names: str) -> logging.Logger:
    """Return a logger under the shared ``proposal_tables`` namespace."""

    if not names:
        return logging.getLogger(LOGGER_NAME)
    qualified = ".".join((LOGGER_NAME, *names))
    return logging.getLogger(qualified)


logger = get_logger()


def configure_logging(level: int = logging.INFO, *, force: bool = False) -> None:
    """Initialise a basic logging configuration if none is present."""

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )


_TRUE_FLAGS = frozenset({"1", "true", "yes", "on"})
_FALSE_FLAGS = frozenset({"0", "false", "no", "off"})


def _debug_flag(raw: str | None) -> bool:
    """Read ``PROPOSAL_TABLES_DEBUG``; unknown words leave debugging off."""

    text = (raw or "").strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if not text or text in _FALSE_FLAGS:
        return False
    return text.isdigit() and int(text) != 0


@dataclass(frozen=True)
class AppEnvironment:
    """Runtime configuration extracted from environment variables."""

    debug_enabled: bool = False
    settings_override: Path | None = None

    @classmethod
    def from_env(cls) -> "AppEnvironment":
        override_raw = os.getenv(APP_SETTINGS_ENV_VAR)
        override = Path(override_raw).expanduser() if override_raw else None
        return cls(
            debug_enabled=_debug_flag(os.getenv(DEBUG_ENV_VAR)),
            settings_override=override,
        )


def describe_runtime_environment() -> dict[str, str]:
    """Return a snapshot of runtime configuration for support requests."""

    env = AppEnvironment.from_env()
    return {
        "debug_enabled": str(env.debug_enabled),
        "settings_override": str(env.settings_override or ""),
        "settings_file": str(default_app_settings_json()),
    }


class ConfigError(RuntimeError):
    """Raised when configuration data cannot be loaded or validated."""


def _read_settings(path: Path, source: str) -> dict[str, Any]:
    """Parse a layout settings document; ``source`` names it in errors."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read {source} {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{source.capitalize()} {path.name} is not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{source.capitalize()} {path.name} must hold a JSON object")
    return dict(raw)


def _overlay(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` laid over it, section by section.

    Nested objects such as ``layout`` merge key by key; lists like the column
    tables are replaced whole.
    """

    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _overlay(current, value)
        else:
            merged[key] = value
    return merged


def load_app_settings(*, reload: bool = False) -> dict[str, Any]:
    """Return packaged layout settings with the env override applied.

    The parsed result is cached; callers get a private deep copy.
    """

    global _APP_SETTINGS_CACHE
    if reload or _APP_SETTINGS_CACHE is None:
        settings = _read_settings(default_app_settings_json(), "packaged settings")
        override_path = AppEnvironment.from_env().settings_override
        if override_path is not None and override_path.exists():
            settings = _overlay(settings, _read_settings(override_path, "override settings"))
        elif override_path is not None:
            logger.warning(
                "Layout override %s does not exist; using packaged settings", override_path
            )
        _APP_SETTINGS_CACHE = settings

    return copy.deepcopy(_APP_SETTINGS_CACHE)


def _column_specs(raw: Any, section: str) -> tuple[ColumnSpec, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"'layout.{section}' must be a non-empty list")
    specs: list[ColumnSpec] = []
    for entry in raw:
        if not isinstance(entry, Mapping) or "label" not in entry:
            raise ConfigError(f"Invalid column entry in 'layout.{section}': {entry!r}")
        try:
            width = float(entry.get("width", 1.0))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid width in 'layout.{section}': {entry!r}") from exc
        specs.append(ColumnSpec(str(entry["label"]), width, str(entry.get("align") or "L")))
    return tuple(specs)


@dataclass(frozen=True)
class LayoutSettings:
    """Layout constants consumed by the table assembler."""

    currency: str = "$"
    width_unit: str = "cm"
    max_area_columns: int = 4
    service_block_gap: float = 0.4
    notes_heading: str = "SERVICE NOTES"
    notes_default_lines: int = 3
    area_grid_heading: str = "REFRESH POWER SCRUB"
    custom_column_width: float = 1.4
    product_columns: tuple[ColumnSpec, ...] = ()
    dispenser_columns: tuple[ColumnSpec, ...] = ()
    service_headings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "LayoutSettings":
        layout = settings.get("layout")
        if not isinstance(layout, Mapping):
            raise ConfigError("'layout' section missing from app settings")

        product_columns = _column_specs(layout.get("product_columns"), "product_columns")
        dispenser_columns = _column_specs(layout.get("dispenser_columns"), "dispenser_columns")
        if len(product_columns) != 5:
            raise ConfigError("'layout.product_columns' must declare exactly 5 columns")
        if len(dispenser_columns) != 6:
            raise ConfigError("'layout.dispenser_columns' must declare exactly 6 columns")

        headings_raw = settings.get("service_headings") or {}
        if not isinstance(headings_raw, Mapping):
            raise ConfigError("'service_headings' must be an object")

        try:
            return cls(
                currency=str(layout.get("currency", "$")),
                width_unit=str(layout.get("width_unit", "cm")),
                max_area_columns=int(layout.get("max_area_columns", 4)),
                service_block_gap=float(layout.get("service_block_gap", 0.4)),
                notes_heading=str(layout.get("notes_heading", "SERVICE NOTES")),
                notes_default_lines=int(layout.get("notes_default_lines", 3)),
                area_grid_heading=str(layout.get("area_grid_heading", "REFRESH POWER SCRUB")),
                custom_column_width=float(layout.get("custom_column_width", 1.4)),
                product_columns=product_columns,
                dispenser_columns=dispenser_columns,
                service_headings=MappingProxyType(
                    {str(key): str(value) for key, value in headings_raw.items()}
                ),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid layout settings: {exc}") from exc


def load_layout_settings(*, reload: bool = False) -> LayoutSettings:
    """Return the frozen layout settings derived from the app settings."""

    return LayoutSettings.from_settings(load_app_settings(reload=reload))


__all__ = [
    "APP_SETTINGS_ENV_VAR",
    "AppEnvironment",
    "ConfigError",
    "DEBUG_ENV_VAR",
    "LOGGER_NAME",
    "LayoutSettings",
    "configure_logging",
    "describe_runtime_environment",
    "get_logger",
    "load_app_settings",
    "load_layout_settings",
    "logger",
]
