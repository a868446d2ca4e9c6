from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from idlegarden.catalog import Catalog
from idlegarden.config import GardenConfig
from idlegarden.modifiers import offline_efficiency
from idlegarden.state import ProgressionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OfflineReward:
    """Progress accrued while the engine was not ticking, awaiting confirmation.

    *elapsed* sums every absence folded into this record; *longest_absence*
    is the longest single one.
    """

    currency_earned: int = 0
    plants_matured: int = 0
    elapsed: float = 0.0
    longest_absence: float = 0.0

    @classmethod
    def none(cls) -> OfflineReward:
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.currency_earned == 0 and self.plants_matured == 0

    def merged_with(self, other: OfflineReward) -> OfflineReward:
        """Combine two unclaimed rewards into one pending record."""
        return OfflineReward(
            currency_earned=self.currency_earned + other.currency_earned,
            plants_matured=max(self.plants_matured, other.plants_matured),
            elapsed=self.elapsed + other.elapsed,
            longest_absence=max(self.longest_absence, other.longest_absence),
        )

    def to_dict(self) -> dict:
        return {
            "currency_earned": self.currency_earned,
            "plants_matured": self.plants_matured,
            "elapsed": self.elapsed,
            "longest_absence": self.longest_absence,
        }


class OfflineReconciler:
    """Computes growth that happened between the last save and *now*.

    Cycles are counted against each plant's base growth duration, ignoring
    growth-speed upgrades. Growth clocks are never reset here; only a harvest
    does that.
    """

    def __init__(self, catalog: Catalog, config: GardenConfig) -> None:
        self.catalog = catalog
        self.config = config

    def elapsed_window(self, state: ProgressionState, now: float) -> float | None:
        """Clamped offline interval, or None if it is noise or implausible."""
        elapsed = now - state.last_persisted_at
        cfg = self.config
        if elapsed < cfg.min_offline_seconds:
            return None
        if elapsed > cfg.max_offline_window * cfg.implausible_offline_factor:
            logger.warning(
                "Ignoring implausible offline interval of %.0fs (last save at %s)",
                elapsed,
                state.last_persisted_at,
            )
            return None
        return min(max(elapsed, 0.0), cfg.max_offline_window)

    def compute(self, state: ProgressionState, now: float) -> OfflineReward:
        window = self.elapsed_window(state, now)
        if window is None:
            return OfflineReward.none()

        efficiency = offline_efficiency(state, self.catalog, self.config)
        total = 0.0
        matured = 0
        for _, plot in state.occupied_plots():
            plant = self.catalog.get_plant(plot.plant_id)
            if plant is None:
                continue
            cycles = math.floor(window / plant.growth_duration)
            if cycles < 1:
                continue
            total += cycles * plant.base_yield_per_cycle * efficiency
            matured += 1

        reward = OfflineReward(
            currency_earned=math.floor(total),
            plants_matured=matured,
            elapsed=window,
            longest_absence=window,
        )
        logger.debug(
            "Offline reward over %.0fs: %d currency, %d plants matured",
            window,
            reward.currency_earned,
            reward.plants_matured,
        )
        return reward
