from __future__ import annotations

import csv
import json
from pathlib import Path

from idlegarden.report import SimulationReport


def export_csv(report: SimulationReport, path: str | Path) -> None:
    """Export simulation data as CSV files.

    Creates three files:
      - {path}_snapshots.csv
      - {path}_purchases.csv
      - {path}_achievements.csv
    """
    base = str(path)

    with open(f"{base}_snapshots.csv", "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([
            "time", "currency", "premium_currency", "lifetime_earned",
            "occupied_plots", "prestige_points",
        ])
        for s in report.snapshots:
            writer.writerow([
                s.time, s.currency, s.premium_currency, s.lifetime_earned,
                s.occupied_plots, s.prestige_points,
            ])

    with open(f"{base}_purchases.csv", "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["time", "upgrade_id", "cost_paid"])
        for p in report.purchases:
            writer.writerow([p.time, p.upgrade_id, p.cost_paid])

    with open(f"{base}_achievements.csv", "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["time", "achievement_id"])
        for a in report.achievements:
            writer.writerow([a.time, a.achievement_id])


def export_json(report: SimulationReport, path: str | Path) -> None:
    """Export the simulation summary as JSON."""
    data = {
        "strategy": report.strategy_description,
        "total_time": report.total_time,
        "final_currency": report.final_currency,
        "final_premium": report.final_premium,
        "total_earned": report.total_earned,
        "harvests": report.harvests,
        "offline_share": report.offline_share(),
        "achievement_times": report.achievement_times,
        "max_purchase_gap": report.max_purchase_gap,
        "mean_purchase_gap": report.mean_purchase_gap,
        "purchases": [
            {"time": p.time, "upgrade_id": p.upgrade_id, "cost_paid": p.cost_paid}
            for p in report.purchases
        ],
        "prestiges": [
            {"time": p.time, "points_gained": p.points_gained}
            for p in report.prestiges
        ],
    }
    with open(str(path), "w") as f:
        json.dump(data, f, indent=2)
