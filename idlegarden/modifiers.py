"""Effective multipliers derived from upgrade levels and prestige points."""

from __future__ import annotations

import math

from idlegarden.catalog import Catalog, PlantDef, UpgradeKind
from idlegarden.config import GardenConfig
from idlegarden.state import OccupiedPlot, ProgressionState


def _per_level(state: ProgressionState, catalog: Catalog, kind: UpgradeKind) -> float:
    udef = catalog.upgrade_for(kind)
    if udef is None:
        return 0.0
    return state.upgrade_level(udef.id) * udef.effect_per_level


def upgrade_level_of(state: ProgressionState, catalog: Catalog, kind: UpgradeKind) -> int:
    udef = catalog.upgrade_for(kind)
    return state.upgrade_level(udef.id) if udef else 0


def growth_speed_multiplier(state: ProgressionState, catalog: Catalog) -> float:
    return 1.0 + _per_level(state, catalog, UpgradeKind.GROWTH_SPEED)


def yield_multiplier(state: ProgressionState, catalog: Catalog) -> float:
    return 1.0 + _per_level(state, catalog, UpgradeKind.YIELD_MULTIPLIER)


def prestige_multiplier(state: ProgressionState, config: GardenConfig) -> float:
    return 1.0 + config.prestige_bonus_per_point * state.prestige_points


def auto_harvest_chance(state: ProgressionState, catalog: Catalog) -> float:
    """Probability of auto-harvesting one ready plot during a single tick."""
    return min(1.0, _per_level(state, catalog, UpgradeKind.AUTO_HARVEST))


def offline_efficiency(
    state: ProgressionState, catalog: Catalog, config: GardenConfig
) -> float:
    bonus = _per_level(state, catalog, UpgradeKind.OFFLINE_EFFICIENCY)
    return min(1.0, config.offline_base_efficiency + bonus)


def plot_capacity(
    state: ProgressionState, catalog: Catalog, config: GardenConfig
) -> int:
    return config.base_plot_capacity + int(
        _per_level(state, catalog, UpgradeKind.PLOT_CAPACITY)
    )


def adjusted_growth_duration(
    plant: PlantDef, state: ProgressionState, catalog: Catalog
) -> float:
    """Growth duration after growth-speed upgrades."""
    return plant.growth_duration / growth_speed_multiplier(state, catalog)


def harvest_yield(
    plant: PlantDef,
    plot: OccupiedPlot,
    state: ProgressionState,
    catalog: Catalog,
    config: GardenConfig,
) -> int:
    """Currency produced by harvesting *plot* once. Always at least 1."""
    level_bonus = 1.0 + config.level_yield_bonus * (plot.level - 1)
    amount = (
        plant.base_yield_per_cycle
        * level_bonus
        * yield_multiplier(state, catalog)
        * prestige_multiplier(state, config)
    )
    return max(1, math.floor(amount))
