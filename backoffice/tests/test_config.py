"""Tests for configuration validation."""

import logging
import pytest

from backoffice.core.config import Settings, validate_config


def test_missing_database_url_warns(caplog):
    cfg = Settings(DATABASE_URL=None)
    with caplog.at_level(logging.WARNING, logger="backoffice"):
        assert validate_config(strict=False, settings_obj=cfg)
    assert "DATABASE_URL" in caplog.text


def test_missing_database_url_raises_in_strict_mode():
    cfg = Settings(DATABASE_URL=None)
    with pytest.raises(RuntimeError):
        validate_config(strict=True, settings_obj=cfg)


def test_inverted_storage_thresholds_rejected_in_strict_mode():
    cfg = Settings(DATABASE_URL="sqlite://", STORAGE_NEAR_LIMIT_PERCENT=96, STORAGE_AT_LIMIT_PERCENT=95)
    with pytest.raises(RuntimeError):
        validate_config(strict=True, settings_obj=cfg)


def test_storage_areas_parsed_from_csv():
    cfg = Settings(STORAGE_TENANT_AREAS=" jobs, ,employees ")
    assert cfg.storage_areas == ["jobs", "employees"]


def test_defaults():
    cfg = Settings()
    assert cfg.SEAT_NEAR_LIMIT_REMAINING == 2
    assert cfg.STORAGE_NEAR_LIMIT_PERCENT == 80
    assert cfg.STORAGE_AT_LIMIT_PERCENT == 95


def test_empty_storage_areas_warn(caplog):
    cfg = Settings(DATABASE_URL="sqlite://", STORAGE_TENANT_AREAS=" , ")
    with caplog.at_level(logging.WARNING, logger="backoffice"):
        validate_config(strict=False, settings_obj=cfg)
    assert "STORAGE_TENANT_AREAS" in caplog.text


def test_valid_config_passes_strict_mode():
    assert validate_config(strict=True, settings_obj=Settings(DATABASE_URL="sqlite://"))
