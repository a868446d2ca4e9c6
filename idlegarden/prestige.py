from __future__ import annotations

import math
from dataclasses import dataclass

from idlegarden.config import GardenConfig
from idlegarden.results import Failure
from idlegarden.state import ProgressionState


@dataclass(frozen=True)
class PrestigeResult:
    """Outcome of a prestige attempt."""

    success: bool
    points_gained: int = 0
    new_state: ProgressionState | None = None
    reason: Failure | None = None

    def __bool__(self) -> bool:
        return self.success


def can_prestige(state: ProgressionState, config: GardenConfig) -> bool:
    return state.currency >= config.prestige_threshold


def compute_prestige_gain(state: ProgressionState, config: GardenConfig) -> int:
    """Prestige points a reset would grant now: floor(sqrt(currency / threshold))."""
    if not can_prestige(state, config):
        return 0
    return max(1, math.isqrt(state.currency // config.prestige_threshold))


def perform_prestige(
    state: ProgressionState, config: GardenConfig, now: float
) -> PrestigeResult:
    """Build the next run's state. The old state is left untouched."""
    if not can_prestige(state, config):
        return PrestigeResult(success=False, reason=Failure.PRESTIGE_INELIGIBLE)

    gain = compute_prestige_gain(state, config)
    new_state = ProgressionState.fresh(config, now)
    new_state.prestige_points = state.prestige_points + gain
    new_state.prestige_count = state.prestige_count + 1
    return PrestigeResult(success=True, points_gained=gain, new_state=new_state)
