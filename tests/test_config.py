from __future__ import annotations

from dataclasses import replace

import pytest

from tickwork.config import Settings


def test_defaults_match_reference_behaviour() -> None:
    cfg = Settings()
    assert cfg.interval_seconds == 5.0
    assert cfg.max_runs is None
    assert cfg.count_failed_cycles is True
    assert cfg.is_active
    assert not replace(cfg, environment="Development").is_active


def test_from_env_reads_prefixed_variables(monkeypatch) -> None:
    monkeypatch.setenv("TICKWORK_ENVIRONMENT", "Staging")
    monkeypatch.setenv("TICKWORK_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("TICKWORK_MAX_RUNS", "3")
    monkeypatch.setenv("TICKWORK_COUNT_FAILED_CYCLES", "no")
    monkeypatch.setenv("TICKWORK_INIT_TIMEOUT_SECONDS", "none")
    monkeypatch.setenv("TICKWORK_SHUTDOWN_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("TICKWORK_HISTORY_SIZE", "8")
    monkeypatch.setenv("TICKWORK_ACTIVE_ENVIRONMENTS", "Staging, Production")

    cfg = Settings.from_env()

    assert cfg.environment == "Staging"
    assert cfg.interval_seconds == 0.5
    assert cfg.max_runs == 3
    assert cfg.count_failed_cycles is False
    assert cfg.init_timeout_seconds is None
    assert cfg.shutdown_timeout_seconds == 2.5
    assert cfg.history_size == 8
    assert cfg.active_environments == ("Staging", "Production")
    assert cfg.is_active


def test_blank_max_runs_means_unbounded(monkeypatch) -> None:
    monkeypatch.setenv("TICKWORK_MAX_RUNS", "  ")
    assert Settings.from_env().max_runs is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"interval_seconds": -1},
        {"max_runs": -2},
        {"init_timeout_seconds": 0},
        {"shutdown_timeout_seconds": -1.0},
        {"history_size": 0},
    ],
)
def test_invalid_settings_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_invalid_boolean_env_value(monkeypatch) -> None:
    monkeypatch.setenv("TICKWORK_COUNT_FAILED_CYCLES", "maybe")
    with pytest.raises(ValueError):
        Settings.from_env()
