from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from proposal_tables import config


def test_default_layout_settings() -> None:
    layout = config.load_layout_settings()

    assert layout.currency == "$"
    assert layout.max_area_columns == 4
    assert layout.notes_default_lines == 3
    assert [spec.label for spec in layout.product_columns] == [
        "Products",
        "Qty",
        "Unit Price/Amount",
        "Frequency",
        "Total",
    ]
    assert len(layout.dispenser_columns) == 6
    assert layout.service_headings["stripWax"] == "STRIP & WAX"


def test_override_file_is_deep_merged(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "settings.json"
    override.write_text(json.dumps({"layout": {"max_area_columns": 3}}), encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    layout = config.load_layout_settings(reload=True)

    assert layout.max_area_columns == 3
    assert layout.currency == "$"
    assert len(layout.product_columns) == 5


def test_missing_override_logs_warning(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(tmp_path / "missing.json"))
    caplog.set_level(logging.WARNING, logger="proposal_tables")

    settings = config.load_app_settings(reload=True)

    assert settings["layout"]["max_area_columns"] == 4
    assert "does not exist; using packaged settings" in caplog.text


def test_malformed_override_raises_config_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "broken.json"
    override.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    with pytest.raises(config.ConfigError):
        config.load_app_settings(reload=True)


def test_override_must_be_a_json_object(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "list.json"
    override.write_text("[1, 2]", encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    with pytest.raises(config.ConfigError, match="must hold a JSON object"):
        config.load_app_settings(reload=True)


def test_override_replaces_column_tables_whole(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    columns = [{"label": f"Col {idx}", "width": 1} for idx in range(5)]
    override = tmp_path / "settings.json"
    override.write_text(json.dumps({"layout": {"product_columns": columns}}), encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    layout = config.load_layout_settings(reload=True)

    assert [spec.label for spec in layout.product_columns] == [f"Col {idx}" for idx in range(5)]
    assert len(layout.dispenser_columns) == 6


def test_load_app_settings_returns_a_copy() -> None:
    settings = config.load_app_settings()
    settings["layout"]["currency"] = "EUR"

    assert config.load_app_settings()["layout"]["currency"] == "$"


def test_layout_requires_fixed_column_counts() -> None:
    settings = config.load_app_settings()
    settings["layout"]["product_columns"] = settings["layout"]["product_columns"][:4]

    with pytest.raises(config.ConfigError, match="exactly 5"):
        config.LayoutSettings.from_settings(settings)


def test_layout_rejects_bad_column_entries() -> None:
    settings = config.load_app_settings()
    settings["layout"]["dispenser_columns"][0] = {"width": 2}

    with pytest.raises(config.ConfigError):
        config.LayoutSettings.from_settings(settings)

    with pytest.raises(config.ConfigError):
        config.LayoutSettings.from_settings({})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("yes", True), ("off", False), ("", False), ("maybe", False), ("2", True)],
)
def test_debug_flag_parsing(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv(config.DEBUG_ENV_VAR, raw)

    assert config.AppEnvironment.from_env().debug_enabled is expected


def test_describe_runtime_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(tmp_path / "override.json"))

    info = config.describe_runtime_environment()

    assert info["debug_enabled"] == "False"
    assert Path(info["settings_override"]).name == "override.json"
    assert Path(info["settings_file"]).name == "app_settings.json"


def test_get_logger_uses_package_namespace() -> None:
    assert config.get_logger().name == "proposal_tables"
    assert config.get_logger("shapes").name == "proposal_tables.shapes"
