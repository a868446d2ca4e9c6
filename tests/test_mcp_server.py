"""Tests for MCP server tool functions."""
import pytest

from idlegarden.catalog import default_catalog
from idlegarden.config import GardenConfig
from idlegarden.mcp.server import (
    _make_holder,
    _tool_claim_offline_reward,
    _tool_export_save,
    _tool_get_achievements,
    _tool_get_catalog,
    _tool_get_state,
    _tool_go_offline,
    _tool_harvest,
    _tool_import_save,
    _tool_new_game,
    _tool_plant,
    _tool_prestige,
    _tool_purchase_upgrade,
    _tool_wait,
    create_server,
)


@pytest.fixture
def holder():
    return _make_holder(default_catalog())


def test_get_catalog(holder):
    info = _tool_get_catalog(holder)
    assert len(info["plants"]) == 10
    carrot = info["plants"][0]
    assert carrot["id"] == "carrot"
    assert carrot["rarity"] == "BASIC"
    assert carrot["growth_duration"] == 30.0
    assert {u["id"] for u in info["upgrades"]} == {
        "growth_speed", "yield_multiplier", "plot_capacity", "auto_harvest", "offline_efficiency",
    }


def test_get_state(holder):
    state = _tool_get_state(holder)
    assert state["time"] == 0.0
    assert state["currency"] == 10
    assert len(state["plots"]) == 9
    assert state["plots"][0] == {"index": 0, "plant_id": None}
    assert state["upgrades"]["growth_speed"] == {"level": 0, "next_cost": 100}
    assert state["can_prestige"] is False
    assert state["pending_offline_reward"] is None


def test_plant_and_wait_and_harvest(holder):
    assert _tool_plant(holder, "carrot", 0)["success"]

    result = _tool_wait(holder, 30)
    assert result["time"] == 30.0
    assert result["ready_plots"] == [0]

    harvested = _tool_harvest(holder)
    assert harvested == {"harvested": 1, "plots": 1}
    assert _tool_get_state(holder)["currency"] == 11


def test_wait_reports_achievements(holder):
    _tool_plant(holder, "carrot", 0)
    _tool_wait(holder, 30)
    _tool_harvest(holder, 0)
    result = _tool_wait(holder, 1)
    assert result["new_achievements"] == ["first_harvest"]


def test_plant_failure(holder):
    result = _tool_plant(holder, "eternal_tree", 0)
    assert result == {"success": False, "reason": "Plant not unlocked yet"}


def test_wait_bounds(holder):
    assert "error" in _tool_wait(holder, 0)
    assert "error" in _tool_wait(holder, 86401)


def test_purchase_upgrade(holder):
    result = _tool_purchase_upgrade(holder, "growth_speed")
    assert result == {"success": False, "reason": "Cannot afford"}

    holder.engine.current_state().currency = 150
    result = _tool_purchase_upgrade(holder, "growth_speed")
    assert result["success"]
    assert result["cost_paid"] == 100
    assert result["new_level"] == 1


def test_go_offline_and_claim(holder):
    _tool_plant(holder, "carrot", 0)
    result = _tool_go_offline(holder, 3600)
    assert result["away"] == 3600
    pending = result["pending_offline_reward"]
    # 120 cycles of 1/12 each at 80%
    assert pending["currency_earned"] == 8
    assert pending["plants_matured"] == 1

    claimed = _tool_claim_offline_reward(holder)
    assert claimed == {"success": True, "currency_earned": 8}
    assert _tool_claim_offline_reward(holder)["success"] is False


def test_go_offline_bounds(holder):
    assert "error" in _tool_go_offline(holder, -1)
    assert "error" in _tool_go_offline(holder, 2 * 86400 + 1)


def test_prestige(holder):
    assert _tool_prestige(holder)["success"] is False
    holder.engine.current_state().currency = 4_000_000
    result = _tool_prestige(holder)
    assert result["success"]
    assert result["points_gained"] == 2
    assert result["prestige_count"] == 1


def test_get_achievements(holder):
    info = _tool_get_achievements(holder)
    assert info["total"] == 9
    assert info["unlocked"] == 0
    assert info["achievements"][0]["id"] == "first_harvest"


def test_export_and_import(holder):
    holder.engine.current_state().currency = 321
    blob = _tool_export_save(holder)["save"]

    other = _make_holder(default_catalog())
    assert _tool_import_save(other, blob) == {"success": True}
    assert _tool_get_state(other)["currency"] == 321
    assert _tool_import_save(other, "garbage")["success"] is False


def test_new_game(holder):
    holder.engine.current_state().currency = 999
    assert _tool_new_game(holder)["success"]
    assert _tool_get_state(holder)["currency"] == 10


def test_holder_uses_config():
    holder = _make_holder(default_catalog(), GardenConfig(starting_currency=500))
    assert _tool_get_state(holder)["currency"] == 500


def test_create_server():
    server = create_server(default_catalog(), GardenConfig(name="Test"))
    assert server.name == "Idle Garden: Test"
