from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from idlegarden.engine import GardenEngine


@dataclass(frozen=True)
class Action:
    """One command a strategy issued, for the simulation log."""

    kind: str  # "plant", "harvest", "upgrade" or "prestige"
    target: str
    amount: int = 0


class Strategy(ABC):
    """Decides which commands a simulated player issues each tick."""

    @abstractmethod
    def act(self, engine: GardenEngine, now: float) -> list[Action]: ...

    def describe(self) -> str:
        return type(self).__name__


class GreedyGardener(Strategy):
    """Harvests everything, fills empty plots with the best unlocked plant,
    then buys the cheapest affordable upgrades.

    "Best" is the highest yield per second of growth.
    """

    def __init__(self, prestige: bool = False, buy_upgrades: bool = True) -> None:
        self.prestige = prestige
        self.buy_upgrades = buy_upgrades

    def describe(self) -> str:
        parts = ["GreedyGardener"]
        if not self.buy_upgrades:
            parts.append("no upgrades")
        if self.prestige:
            parts.append("prestige on")
        return ", ".join(parts)

    def act(self, engine: GardenEngine, now: float) -> list[Action]:
        actions: list[Action] = []
        state = engine.current_state()

        for i, plot in state.occupied_plots():
            if plot.ready:
                amount = engine.harvest(i, now)
                if amount:
                    actions.append(Action("harvest", plot.plant_id, amount))

        best = max(
            engine.available_plants(),
            key=lambda p: p.base_yield_per_cycle / p.growth_duration,
            default=None,
        )
        if best is not None:
            for i in range(engine.max_plot_capacity()):
                if engine.plant(best.id, i, now):
                    actions.append(Action("plant", best.id))

        if self.buy_upgrades:
            while True:
                costs = {
                    u.id: engine.upgrade_cost(u.id) for u in engine.catalog.upgrades
                }
                affordable = [
                    (cost, uid)
                    for uid, cost in costs.items()
                    if cost is not None and cost <= state.currency
                ]
                if not affordable:
                    break
                cost, uid = min(affordable)
                if not engine.purchase_upgrade(uid):
                    break
                actions.append(Action("upgrade", uid, cost))
                state = engine.current_state()

        if self.prestige and engine.can_prestige():
            result = engine.perform_prestige(now)
            if result.success:
                actions.append(Action("prestige", "prestige", result.points_gained))

        return actions
