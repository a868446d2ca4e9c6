from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from idlegarden.state import ProgressionState
    from idlegarden.strategy import Action


@dataclass
class StateSnapshot:
    time: float
    currency: int
    premium_currency: int
    lifetime_earned: int
    occupied_plots: int
    prestige_points: int


@dataclass
class PurchaseEvent:
    time: float
    upgrade_id: str
    cost_paid: int


@dataclass
class AchievementEvent:
    time: float
    achievement_id: str


@dataclass
class PrestigeEvent:
    time: float
    points_gained: int
    run_duration: float


@dataclass
class OfflineEvent:
    time: float
    away_seconds: float
    currency_earned: int
    plants_matured: int


class MetricsCollector:
    """Collects simulation metrics at configurable intervals."""

    def __init__(self, snapshot_interval: float = 60.0) -> None:
        self.snapshot_interval = snapshot_interval
        self._last_snapshot_time: float | None = None
        self._run_started: float = 0.0

        self.snapshots: list[StateSnapshot] = []
        self.purchases: list[PurchaseEvent] = []
        self.achievements: list[AchievementEvent] = []
        self.prestiges: list[PrestigeEvent] = []
        self.offline: list[OfflineEvent] = []
        self.harvests: int = 0
        self.total_earned: int = 0

    def record_tick(self, elapsed: float, state: ProgressionState) -> None:
        """Record a snapshot if enough time has passed."""
        if (
            self._last_snapshot_time is None
            or elapsed - self._last_snapshot_time >= self.snapshot_interval
        ):
            self.snapshots.append(
                StateSnapshot(
                    time=elapsed,
                    currency=state.currency,
                    premium_currency=state.premium_currency,
                    lifetime_earned=state.lifetime_earned,
                    occupied_plots=state.occupied_count(),
                    prestige_points=state.prestige_points,
                )
            )
            self._last_snapshot_time = elapsed

    def record_actions(self, elapsed: float, actions: list[Action]) -> None:
        for action in actions:
            if action.kind == "harvest":
                self.harvests += 1
                self.total_earned += action.amount
            elif action.kind == "upgrade":
                self.purchases.append(PurchaseEvent(elapsed, action.target, action.amount))
            elif action.kind == "prestige":
                self.prestiges.append(
                    PrestigeEvent(elapsed, action.amount, elapsed - self._run_started)
                )
                self._run_started = elapsed

    def record_achievements(self, elapsed: float, ids: list[str]) -> None:
        for aid in ids:
            self.achievements.append(AchievementEvent(elapsed, aid))

    def record_offline(
        self, elapsed: float, away: float, currency: int, matured: int
    ) -> None:
        self.offline.append(OfflineEvent(elapsed, away, currency, matured))
        self.total_earned += currency


@dataclass
class SimulationReport:
    """Container for simulation results and derived metrics."""

    strategy_description: str = ""
    total_time: float = 0.0
    final_currency: int = 0
    final_premium: int = 0
    lifetime_earned: int = 0
    harvests: int = 0
    total_earned: int = 0

    snapshots: list[StateSnapshot] = field(default_factory=list)
    purchases: list[PurchaseEvent] = field(default_factory=list)
    achievements: list[AchievementEvent] = field(default_factory=list)
    prestiges: list[PrestigeEvent] = field(default_factory=list)
    offline: list[OfflineEvent] = field(default_factory=list)

    achievement_times: dict[str, float] = field(default_factory=dict)
    max_purchase_gap: float = 0.0
    mean_purchase_gap: float = 0.0

    def currency_series(self) -> list[tuple[float, int]]:
        return [(s.time, s.currency) for s in self.snapshots]

    def lifetime_series(self) -> list[tuple[float, int]]:
        return [(s.time, s.lifetime_earned) for s in self.snapshots]

    def offline_share(self) -> float:
        """Fraction of all earnings that came from offline rewards."""
        if self.total_earned <= 0:
            return 0.0
        return sum(o.currency_earned for o in self.offline) / self.total_earned


def build_report(
    collector: MetricsCollector,
    strategy_description: str,
    total_time: float,
    state: ProgressionState,
) -> SimulationReport:
    """Build a SimulationReport from collected metrics."""
    gaps: list[float] = []
    times = sorted(p.time for p in collector.purchases)
    if times:
        gaps.append(times[0])
        for i in range(1, len(times)):
            gaps.append(times[i] - times[i - 1])

    return SimulationReport(
        strategy_description=strategy_description,
        total_time=total_time,
        final_currency=state.currency,
        final_premium=state.premium_currency,
        lifetime_earned=state.lifetime_earned,
        harvests=collector.harvests,
        total_earned=collector.total_earned,
        snapshots=list(collector.snapshots),
        purchases=list(collector.purchases),
        achievements=list(collector.achievements),
        prestiges=list(collector.prestiges),
        offline=list(collector.offline),
        achievement_times={a.achievement_id: a.time for a in collector.achievements},
        max_purchase_gap=max(gaps) if gaps else 0.0,
        mean_purchase_gap=(sum(gaps) / len(gaps)) if gaps else 0.0,
    )
