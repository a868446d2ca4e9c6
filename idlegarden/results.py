from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Failure(Enum):
    """Why a command was rejected. Rejections never mutate state."""

    UNKNOWN_PLANT = "Unknown plant"
    PLANT_LOCKED = "Plant not unlocked yet"
    PLOT_OUT_OF_RANGE = "Plot index outside current capacity"
    PLOT_OCCUPIED = "Plot already occupied"
    PLOT_EMPTY = "Plot is empty"
    UNKNOWN_UPGRADE = "Unknown upgrade"
    MAX_LEVEL = "Upgrade already at max level"
    INSUFFICIENT_FUNDS = "Cannot afford"
    NO_PENDING_REWARD = "No pending offline reward"
    STALE_REWARD = "Reward does not match the pending offline reward"
    PRESTIGE_INELIGIBLE = "Not enough currency to prestige"
    INVALID_SAVE = "Save data is invalid"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a mutating command."""

    success: bool
    reason: Failure | None = None
    value: int = 0

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, value: int = 0) -> CommandResult:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, reason: Failure) -> CommandResult:
        return cls(success=False, reason=reason)
