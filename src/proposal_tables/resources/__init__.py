"""Packaged layout settings for the table compiler."""

from __future__ import annotations

from pathlib import Path

APP_SETTINGS_FILENAME = "app_settings.json"

_RESOURCE_ROOT = Path(__file__).resolve().parent


def resource_path(*parts: str) -> Path:
    """Return the path to a file shipped in this directory.

    Raises ``FileNotFoundError`` when the packaged file is missing.
    """

    path = _RESOURCE_ROOT.joinpath(*parts)
    if not path.exists():
        raise FileNotFoundError(f"Resource not found: {path}")
    return path


def default_app_settings_json() -> Path:
    return resource_path(APP_SETTINGS_FILENAME)


__all__ = ["APP_SETTINGS_FILENAME", "default_app_settings_json", "resource_path"]
