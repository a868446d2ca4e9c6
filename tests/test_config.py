"""Tests for config module."""
import json
import logging

import pytest

from idlegarden.config import GardenConfig, load_config


def test_defaults_are_valid():
    config = GardenConfig()
    assert config.validate() == []
    assert config.base_plot_capacity == 9
    assert config.prestige_threshold == 1_000_000
    assert config.max_offline_window == 86400.0


def test_from_dict_ignores_unknown_keys(caplog):
    with caplog.at_level(logging.WARNING, logger="idlegarden.config"):
        config = GardenConfig.from_dict({"tick_interval": 0.5, "colour": "green"})
    assert config.tick_interval == 0.5
    assert "colour" in caplog.text


def test_to_dict_round_trip():
    config = GardenConfig(name="Test", starting_currency=99)
    assert GardenConfig.from_dict(config.to_dict()) == config


def test_validate_reports_problems():
    config = GardenConfig(
        tick_interval=0,
        starting_currency=-1,
        base_plot_capacity=0,
        offline_base_efficiency=1.5,
        implausible_offline_factor=0.5,
    )
    errors = config.validate()
    assert len(errors) == 5
    assert any("tick_interval" in e for e in errors)
    assert any("offline_base_efficiency" in e for e in errors)


def test_load_config(tmp_path):
    path = tmp_path / "garden.json"
    path.write_text(json.dumps({"name": "Big Garden", "base_plot_capacity": 16}))
    config = load_config(path)
    assert config.name == "Big Garden"
    assert config.base_plot_capacity == 16
    assert config.save_interval == 30.0


def test_load_config_rejects_invalid(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"save_interval": -1}))
    with pytest.raises(ValueError, match="Invalid GardenConfig"):
        load_config(path)


def test_load_config_rejects_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError, match="JSON object"):
        load_config(path)
