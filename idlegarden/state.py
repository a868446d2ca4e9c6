from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from idlegarden.config import GardenConfig


@dataclass(frozen=True)
class EmptyPlot:
    """A garden slot with nothing growing in it."""


@dataclass
class OccupiedPlot:
    """A garden slot with a plant growing in it."""

    plant_id: str
    planted_at: float
    level: int = 1
    ready: bool = False


Plot = Union[EmptyPlot, OccupiedPlot]

EMPTY = EmptyPlot()


@dataclass
class ProgressionState:
    """Mutable container holding all persistent progress."""

    currency: int = 0
    premium_currency: int = 0
    plots: list[Plot] = field(default_factory=list)
    upgrades: dict[str, int] = field(default_factory=dict)
    last_persisted_at: float = 0.0
    lifetime_earned: int = 0
    plants_harvested: int = 0
    prestige_count: int = 0
    prestige_points: int = 0
    planted_types: set[str] = field(default_factory=set)
    longest_offline: float = 0.0

    @classmethod
    def fresh(cls, config: GardenConfig, now: float) -> ProgressionState:
        """A new run seeded with the configured starting balances."""
        return cls(
            currency=config.starting_currency,
            premium_currency=config.starting_premium,
            plots=[EMPTY] * config.base_plot_capacity,
            last_persisted_at=now,
        )

    def upgrade_level(self, id: str) -> int:
        return self.upgrades.get(id, 0)

    def plot(self, index: int) -> Plot | None:
        if 0 <= index < len(self.plots):
            return self.plots[index]
        return None

    def occupied_plots(self) -> list[tuple[int, OccupiedPlot]]:
        return [
            (i, p) for i, p in enumerate(self.plots) if isinstance(p, OccupiedPlot)
        ]

    def occupied_count(self) -> int:
        return len(self.occupied_plots())

    def ensure_capacity(self, capacity: int) -> None:
        """Grow the plot list to *capacity*. Never shrinks."""
        missing = capacity - len(self.plots)
        if missing > 0:
            self.plots.extend([EMPTY] * missing)
