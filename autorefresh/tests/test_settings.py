from __future__ import annotations

import textwrap

import pytest

from autorefresh.config import settings as settings_module
from autorefresh.config.settings import PanelItem, RefreshPolicy, Settings, get_settings
from autorefresh.refresh_scheduler import RefreshPriority


@pytest.fixture(name="config_file")
def fixture_config_file(tmp_path):
    path = tmp_path / "autorefresh.yaml"
    path.write_text(
        textwrap.dedent(
            """
            log_level: DEBUG
            refresh:
              high_priority_interval_ms: 1500
              teardown_grace_seconds: 0.25
            ledger:
              base_url: http://ledger:9000
            panels:
              - kind: Users
              - kind: balance
                user: alice
                interval_ms: 750
              - kind: status
                interval_ms: 0
              - "not a mapping"
            """
        ),
        encoding="utf-8",
    )
    return path


def test_loads_yaml_and_skips_invalid_panels(config_file, monkeypatch):
    monkeypatch.delenv("AUTOREFRESH_LEDGER_URL", raising=False)
    loaded = Settings.from_yaml(config_file)

    assert loaded.log_level == "DEBUG"
    assert loaded.refresh.high_priority_interval_ms == 1500
    assert loaded.refresh.low_priority_interval_ms == 3000
    assert loaded.refresh.teardown_grace_seconds == 0.25
    assert loaded.ledger.base_url == "http://ledger:9000"
    assert [p.panel_name for p in loaded.panels] == ["users", "balance:alice"]
    assert loaded.panels[1].interval_ms == 750


def test_missing_file_falls_back_to_defaults(tmp_path):
    loaded = Settings.from_yaml(tmp_path / "missing.yaml")

    assert loaded.refresh.high_priority_interval_ms == 2000
    assert loaded.refresh.low_priority_interval_ms == 3000
    assert loaded.panels == []


def test_broken_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "autorefresh.yaml"
    path.write_text("refresh: [unclosed", encoding="utf-8")

    assert Settings.from_yaml(path) == Settings()


def test_environment_overrides(config_file, monkeypatch):
    monkeypatch.setenv("AUTOREFRESH_LEDGER_URL", "http://override:1")
    monkeypatch.setenv("AUTOREFRESH_CONFIG", str(config_file))
    monkeypatch.setattr(settings_module, "_settings", None)

    loaded = get_settings()

    assert loaded is get_settings()
    assert loaded.ledger.base_url == "http://override:1"
    assert loaded.refresh.high_priority_interval_ms == 1500
    monkeypatch.setattr(settings_module, "_settings", None)


def test_policy_picks_interval_by_priority():
    policy = RefreshPolicy(high_priority_interval_ms=10, low_priority_interval_ms=20)

    assert policy.interval_for(RefreshPriority.High) == 10
    assert policy.interval_for(RefreshPriority.Low) == 20


def test_panel_item_validation():
    with pytest.raises(ValueError):
        PanelItem(kind="  ")
    assert PanelItem(kind="status", name="node").panel_name == "node"
