"""Tests for export module."""
import csv
import json

from idlegarden.export import export_csv, export_json
from idlegarden.report import (
    AchievementEvent,
    PrestigeEvent,
    PurchaseEvent,
    SimulationReport,
    StateSnapshot,
)


def _make_report() -> SimulationReport:
    return SimulationReport(
        strategy_description="GreedyGardener",
        total_time=120.0,
        final_currency=42,
        total_earned=90,
        harvests=9,
        snapshots=[
            StateSnapshot(0.0, 10, 0, 0, 0, 0),
            StateSnapshot(60.0, 40, 10, 30, 9, 0),
        ],
        purchases=[PurchaseEvent(90.0, "growth_speed", 100)],
        achievements=[AchievementEvent(31.0, "first_harvest")],
        prestiges=[PrestigeEvent(100.0, 1, 100.0)],
        achievement_times={"first_harvest": 31.0},
    )


def test_export_csv(tmp_path):
    base = tmp_path / "run"
    export_csv(_make_report(), base)

    with open(f"{base}_snapshots.csv", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][:2] == ["time", "currency"]
    assert len(rows) == 3

    with open(f"{base}_purchases.csv", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[1] == ["90.0", "growth_speed", "100"]

    with open(f"{base}_achievements.csv", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[1] == ["31.0", "first_harvest"]


def test_export_json(tmp_path):
    path = tmp_path / "run.json"
    export_json(_make_report(), path)
    data = json.loads(path.read_text())
    assert data["strategy"] == "GreedyGardener"
    assert data["final_currency"] == 42
    assert data["achievement_times"] == {"first_harvest": 31.0}
    assert data["purchases"][0]["upgrade_id"] == "growth_speed"
    assert data["prestiges"] == [{"time": 100.0, "points_gained": 1}]
    assert data["offline_share"] == 0.0
