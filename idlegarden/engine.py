from __future__ import annotations

import logging
import random
import time
from typing import Callable

from idlegarden.achievements import AchievementBook, Evaluation
from idlegarden.catalog import Catalog, PlantDef, UpgradeKind
from idlegarden.config import GardenConfig
from idlegarden.modifiers import (
    adjusted_growth_duration,
    auto_harvest_chance,
    harvest_yield,
    plot_capacity,
)
from idlegarden.offline import OfflineReconciler, OfflineReward
from idlegarden.prestige import (
    PrestigeResult,
    can_prestige,
    compute_prestige_gain,
    perform_prestige,
)
from idlegarden.results import CommandResult, Failure
from idlegarden.state import EMPTY, OccupiedPlot, ProgressionState
from idlegarden.store import LoadResult, PersistenceStore, Snapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
StateListener = Callable[[ProgressionState], None]


class GardenEngine:
    """Authoritative garden logic. Owns the live ProgressionState.

    Not thread-safe: every command and tick must run on one logical thread
    (see idlegarden.scheduler.CommandQueue).
    """

    def __init__(
        self,
        catalog: Catalog,
        config: GardenConfig | None = None,
        store: PersistenceStore | None = None,
        clock: Clock = time.time,
        rng: random.Random | None = None,
        achievements: AchievementBook | None = None,
        state: ProgressionState | None = None,
    ) -> None:
        config = config if config is not None else GardenConfig()
        errors = catalog.validate() + config.validate()
        if errors:
            raise ValueError(
                "Invalid garden setup:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        self.catalog = catalog
        self.config = config
        self.store = store
        self.clock = clock
        self.rng = rng if rng is not None else random.Random()
        self.achievements = achievements if achievements is not None else AchievementBook()
        self.reconciler = OfflineReconciler(catalog, config)
        self.state = state if state is not None else ProgressionState.fresh(config, clock())
        self.state.ensure_capacity(self.max_plot_capacity())
        self._pending: OfflineReward | None = None
        self._listeners: list[StateListener] = []

    def _now(self, now: float | None) -> float:
        return self.clock() if now is None else now

    # ── Lifecycle ────────────────────────────────────────────────────

    def load(self, now: float | None = None) -> LoadResult | None:
        """Hydrate from the store and compute any offline reward.

        The reward is held as pending until apply_offline_reward() is called.
        """
        if self.store is None:
            return None
        now = self._now(now)
        result = self.store.load(now)
        self.hydrate(result.snapshot)

        reward = self.reconciler.compute(self.state, now)
        if not reward.is_empty:
            logger.info(
                "Offline for %.0fs: %d currency and %d plants pending",
                reward.elapsed,
                reward.currency_earned,
                reward.plants_matured,
            )
            self._pending = (
                self._pending.merged_with(reward) if self._pending else reward
            )
        else:
            # nothing to confirm, so the absence counts right away
            self.state.longest_offline = max(
                self.state.longest_offline, reward.longest_absence
            )
        self.state.last_persisted_at = now
        self._notify()
        return result

    def hydrate(self, snapshot: Snapshot) -> None:
        self.state = snapshot.state
        self.state.ensure_capacity(self.max_plot_capacity())
        self.achievements.restore(snapshot.achievements)
        self._pending = snapshot.pending_offline_reward

    def snapshot(self) -> Snapshot:
        return Snapshot(
            state=self.state,
            achievements=dict(self.achievements.records),
            pending_offline_reward=self._pending,
        )

    def save(self, now: float | None = None) -> bool:
        """Persist the current state. Fire-and-forget; failures are logged."""
        self.state.last_persisted_at = self._now(now)
        if self.store is None:
            return False
        return self.store.save(self.snapshot())

    def export_save(self) -> str:
        if self.store is None:
            raise RuntimeError("Engine has no persistence store")
        return self.store.export_portable(self.snapshot())

    def import_save(self, blob: str) -> CommandResult:
        """Replace the live game with an exported save, if it is valid."""
        if self.store is None:
            return CommandResult.fail(Failure.INVALID_SAVE)
        result = self.store.import_portable(blob)
        if not result.success or result.snapshot is None:
            return CommandResult.fail(Failure.INVALID_SAVE)
        self.hydrate(result.snapshot)
        self._notify()
        return CommandResult.ok()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    # ── Core loop ────────────────────────────────────────────────────

    def tick(self, now: float | None = None) -> list[int]:
        """Mark plots whose growth has completed as ready.

        Idempotent. Yield is computed at harvest time, so the tick cadence
        only affects when a plot shows as ready. Returns the newly ready plot
        indices.
        """
        now = self._now(now)
        became_ready: list[int] = []
        for i, plot in self.state.occupied_plots():
            if plot.ready:
                continue
            plant = self.catalog.get_plant(plot.plant_id)
            if plant is None:
                continue
            duration = adjusted_growth_duration(plant, self.state, self.catalog)
            if now - plot.planted_at >= duration:
                plot.ready = True
                became_ready.append(i)
        return became_ready

    def tick_auto_harvest(self, now: float | None = None) -> int:
        """Roll once per ready plot to auto-harvest it.

        The chance is a per-tick probability, not a per-second rate, so the
        expected harvest count depends on how often this is called.
        """
        chance = auto_harvest_chance(self.state, self.catalog)
        if chance <= 0:
            return 0
        now = self._now(now)
        total = 0
        for i, plot in self.state.occupied_plots():
            if plot.ready and self.rng.random() < chance:
                total += self._harvest(i, plot, now)
        return total

    def step(self, now: float | None = None) -> Evaluation:
        """One scheduled tick: growth, auto-harvest, achievements, autosave."""
        now = self._now(now)
        self.tick(now)
        self.tick_auto_harvest(now)
        evaluation = self.achievements.evaluate(self.state, self.catalog, self.config, now)
        if evaluation.premium_reward:
            self.state.premium_currency += evaluation.premium_reward
        if now - self.state.last_persisted_at >= self.config.save_interval:
            self.save(now)
        self._notify()
        return evaluation

    # ── Player actions ───────────────────────────────────────────────

    def plant(
        self, plant_id: str, plot_index: int, now: float | None = None
    ) -> CommandResult:
        plant = self.catalog.get_plant(plant_id)
        if plant is None:
            return CommandResult.fail(Failure.UNKNOWN_PLANT)
        if not 0 <= plot_index < self.max_plot_capacity():
            return CommandResult.fail(Failure.PLOT_OUT_OF_RANGE)
        if isinstance(self.state.plots[plot_index], OccupiedPlot):
            return CommandResult.fail(Failure.PLOT_OCCUPIED)
        if plant.unlock_threshold > self.state.lifetime_earned:
            return CommandResult.fail(Failure.PLANT_LOCKED)

        self.state.plots[plot_index] = OccupiedPlot(
            plant_id=plant_id, planted_at=self._now(now), level=1, ready=False
        )
        self.state.planted_types.add(plant_id)
        logger.debug("Planted %s in plot %d", plant_id, plot_index)
        self._notify()
        return CommandResult.ok()

    def clear_plot(self, plot_index: int) -> CommandResult:
        plot = self.state.plot(plot_index)
        if plot is None:
            return CommandResult.fail(Failure.PLOT_OUT_OF_RANGE)
        if not isinstance(plot, OccupiedPlot):
            return CommandResult.fail(Failure.PLOT_EMPTY)
        self.state.plots[plot_index] = EMPTY
        self._notify()
        return CommandResult.ok()

    def harvest(self, plot_index: int, now: float | None = None) -> int:
        """Harvest a ready plot and replant it. Returns 0 if nothing was ready."""
        plot = self.state.plot(plot_index)
        if not isinstance(plot, OccupiedPlot) or not plot.ready:
            return 0
        amount = self._harvest(plot_index, plot, self._now(now))
        self._notify()
        return amount

    def _harvest(self, index: int, plot: OccupiedPlot, now: float) -> int:
        plant = self.catalog.get_plant(plot.plant_id)
        if plant is None:
            return 0
        amount = harvest_yield(plant, plot, self.state, self.catalog, self.config)
        plot.planted_at = now
        plot.ready = False
        self.state.currency += amount
        self.state.lifetime_earned += amount
        self.state.plants_harvested += 1
        logger.debug("Harvested plot %d for %d", index, amount)
        return amount

    def purchase_upgrade(self, upgrade_id: str) -> CommandResult:
        udef = self.catalog.get_upgrade(upgrade_id)
        if udef is None:
            return CommandResult.fail(Failure.UNKNOWN_UPGRADE)
        level = self.state.upgrade_level(upgrade_id)
        if level >= udef.max_level:
            return CommandResult.fail(Failure.MAX_LEVEL)
        cost = udef.cost_at(level)
        if self.state.currency < cost:
            return CommandResult.fail(Failure.INSUFFICIENT_FUNDS)

        self.state.currency -= cost
        self.state.upgrades[upgrade_id] = level + 1
        if udef.kind is UpgradeKind.PLOT_CAPACITY:
            self.state.ensure_capacity(self.max_plot_capacity())
        logger.debug("Bought %s level %d for %d", upgrade_id, level + 1, cost)
        self._notify()
        return CommandResult.ok(value=cost)

    def apply_offline_reward(
        self, reward: OfflineReward | None = None, now: float | None = None
    ) -> CommandResult:
        """Credit the pending offline reward once the player acknowledges it."""
        pending = self._pending
        if pending is None:
            return CommandResult.fail(Failure.NO_PENDING_REWARD)
        if reward is not None and reward != pending:
            return CommandResult.fail(Failure.STALE_REWARD)

        self.state.currency += pending.currency_earned
        self.state.lifetime_earned += pending.currency_earned
        self.state.longest_offline = max(
            self.state.longest_offline, pending.longest_absence
        )
        self._pending = None
        self.tick(now)
        logger.info("Claimed offline reward of %d", pending.currency_earned)
        self._notify()
        return CommandResult.ok(value=pending.currency_earned)

    def perform_prestige(self, now: float | None = None) -> PrestigeResult:
        result = perform_prestige(self.state, self.config, self._now(now))
        if not result.success or result.new_state is None:
            return result
        self.state = result.new_state
        self._pending = None
        logger.info(
            "Prestige #%d: +%d points (total %d)",
            self.state.prestige_count,
            result.points_gained,
            self.state.prestige_points,
        )
        self.save(now)
        self._notify()
        return result

    def reset_all(self, now: float | None = None) -> CommandResult:
        """Discard all progress, prestige included. Achievements are kept."""
        self.state = ProgressionState.fresh(self.config, self._now(now))
        self._pending = None
        logger.info("Garden reset")
        self.save(now)
        self._notify()
        return CommandResult.ok()

    # ── Queries ──────────────────────────────────────────────────────

    def current_state(self) -> ProgressionState:
        """Return live reference to the state. Callers must not mutate it."""
        return self.state

    def pending_offline_reward(self) -> OfflineReward | None:
        return self._pending

    def max_plot_capacity(self) -> int:
        return plot_capacity(self.state, self.catalog, self.config)

    def upgrade_level(self, upgrade_id: str) -> int:
        return self.state.upgrade_level(upgrade_id)

    def upgrade_cost(self, upgrade_id: str, level: int | None = None) -> int | None:
        """Cost of the next level (or of *level*). None for unknown or maxed upgrades."""
        udef = self.catalog.get_upgrade(upgrade_id)
        if udef is None:
            return None
        if level is None:
            level = self.state.upgrade_level(upgrade_id)
        if level >= udef.max_level:
            return None
        return udef.cost_at(level)

    def available_plants(self) -> list[PlantDef]:
        return self.catalog.unlocked_plants(self.state.lifetime_earned)

    def can_prestige(self) -> bool:
        return can_prestige(self.state, self.config)

    def prestige_gain(self) -> int:
        return compute_prestige_gain(self.state, self.config)

    def time_until_ready(self, plot_index: int, now: float | None = None) -> float | None:
        """Seconds until the plot is ready; None for an empty plot."""
        plot = self.state.plot(plot_index)
        if not isinstance(plot, OccupiedPlot):
            return None
        plant = self.catalog.get_plant(plot.plant_id)
        if plant is None or plot.ready:
            return 0.0
        duration = adjusted_growth_duration(plant, self.state, self.catalog)
        return max(0.0, duration - (self._now(now) - plot.planted_at))
