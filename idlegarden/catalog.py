from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from idlegarden.cost_scaling import CostScaling

SECONDS_PER_HOUR = 3600.0


class Rarity(Enum):
    """Ordered plant tier. Higher tiers grow slower and yield more."""

    BASIC = (1, 1.0, 1)
    RARE = (2, 3.0, 5)
    LEGENDARY = (3, 8.0, 20)
    PRESTIGE = (4, 15.0, 100)

    def __init__(self, rank: int, growth_multiplier: float, yield_multiplier: int) -> None:
        self.rank = rank
        self.growth_multiplier = growth_multiplier
        self.yield_multiplier = yield_multiplier

    def __lt__(self, other: Rarity) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: Rarity) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: Rarity) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: Rarity) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank >= other.rank


class UpgradeKind(Enum):
    GROWTH_SPEED = "growth_speed"
    YIELD_MULTIPLIER = "yield_multiplier"
    PLOT_CAPACITY = "plot_capacity"
    AUTO_HARVEST = "auto_harvest"
    OFFLINE_EFFICIENCY = "offline_efficiency"


@dataclass(frozen=True)
class PlantDef:
    """Static definition of a plantable species."""

    id: str
    display_name: str = ""
    rarity: Rarity = Rarity.BASIC
    base_growth_time: float = 30.0
    base_yield_rate: float = 10.0
    unlock_threshold: int = 0
    visual_key: str = ""

    @property
    def growth_duration(self) -> float:
        """Seconds for one growth cycle before upgrades."""
        return self.base_growth_time * self.rarity.growth_multiplier

    @property
    def yield_rate(self) -> float:
        """Currency per hour of growth."""
        return self.base_yield_rate * self.rarity.yield_multiplier

    @property
    def base_yield_per_cycle(self) -> float:
        return self.yield_rate * self.growth_duration / SECONDS_PER_HOUR


@dataclass(frozen=True)
class UpgradeDef:
    """Static definition of a levelled upgrade."""

    id: str
    kind: UpgradeKind
    display_name: str = ""
    base_cost: int = 100
    max_level: int = 10
    cost_scaling: CostScaling = field(
        default_factory=CostScaling.geometric, compare=False
    )
    effect_per_level: float = 0.0
    description: str = ""

    def cost_at(self, level: int) -> int:
        return self.cost_scaling.compute(self.base_cost, level)


@dataclass(frozen=True)
class Catalog:
    """Immutable table of plant and upgrade definitions."""

    plants: tuple[PlantDef, ...] = field(default_factory=tuple)
    upgrades: tuple[UpgradeDef, ...] = field(default_factory=tuple)

    _plants_by_id: dict[str, PlantDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _upgrades_by_id: dict[str, UpgradeDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _upgrades_by_kind: dict[UpgradeKind, UpgradeDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        plants = tuple(self.plants)
        upgrades = tuple(self.upgrades)
        by_kind: dict[UpgradeKind, UpgradeDef] = {}
        for u in upgrades:
            by_kind.setdefault(u.kind, u)
        object.__setattr__(self, "plants", plants)
        object.__setattr__(self, "upgrades", upgrades)
        object.__setattr__(self, "_plants_by_id", {p.id: p for p in plants})
        object.__setattr__(self, "_upgrades_by_id", {u.id: u for u in upgrades})
        object.__setattr__(self, "_upgrades_by_kind", by_kind)

    def get_plant(self, id: str) -> PlantDef | None:
        return self._plants_by_id.get(id)

    def get_upgrade(self, id: str) -> UpgradeDef | None:
        return self._upgrades_by_id.get(id)

    def upgrade_for(self, kind: UpgradeKind) -> UpgradeDef | None:
        return self._upgrades_by_kind.get(kind)

    def unlocked_plants(self, lifetime_earned: int) -> list[PlantDef]:
        """Plants whose unlock threshold is covered by *lifetime_earned*."""
        return [p for p in self.plants if p.unlock_threshold <= lifetime_earned]

    def validate(self) -> list[str]:
        """Check for common catalog errors. Returns list of error messages."""
        errors: list[str] = []

        seen_p: set[str] = set()
        for p in self.plants:
            if not p.id:
                errors.append("Plant with empty ID")
            if p.id in seen_p:
                errors.append(f"Duplicate plant ID: {p.id!r}")
            seen_p.add(p.id)
            if p.base_growth_time <= 0:
                errors.append(f"Plant {p.id!r} has non-positive growth time")
            if p.base_yield_rate < 0:
                errors.append(f"Plant {p.id!r} has negative yield rate")
            if p.unlock_threshold < 0:
                errors.append(f"Plant {p.id!r} has negative unlock threshold")

        seen_u: set[str] = set()
        seen_kinds: set[UpgradeKind] = set()
        for u in self.upgrades:
            if u.id in seen_u:
                errors.append(f"Duplicate upgrade ID: {u.id!r}")
            seen_u.add(u.id)
            if u.kind in seen_kinds:
                errors.append(f"Upgrade {u.id!r} repeats kind {u.kind.name}")
            seen_kinds.add(u.kind)
            if u.base_cost <= 0:
                errors.append(f"Upgrade {u.id!r} has non-positive base cost")
            if u.max_level < 1:
                errors.append(f"Upgrade {u.id!r} has max level below 1")
            if u.cost_scaling.multiplier <= 1.0:
                errors.append(
                    f"Upgrade {u.id!r} cost multiplier must exceed 1.0"
                )

        return errors


def default_catalog() -> Catalog:
    """The plant and upgrade table shipped with the game."""
    return Catalog(
        plants=[
            # Basic
            PlantDef("carrot", "Carrot", Rarity.BASIC, 30, 10, 0, "carrot"),
            PlantDef("tomato", "Tomato", Rarity.BASIC, 60, 15, 50, "tomato"),
            PlantDef("sunflower", "Sunflower", Rarity.BASIC, 120, 20, 100, "sunflower"),
            # Rare
            PlantDef("magic_flower", "Magic Flower", Rarity.RARE, 300, 50, 500, "magic_flower"),
            PlantDef("golden_fruit", "Golden Fruit", Rarity.RARE, 600, 75, 1000, "golden_fruit"),
            PlantDef("crystal_rose", "Crystal Rose", Rarity.RARE, 900, 100, 2000, "crystal_rose"),
            # Legendary
            PlantDef("dragon_fruit", "Dragon Fruit", Rarity.LEGENDARY, 3600, 200, 5000, "dragon_fruit"),
            PlantDef("phoenix_flower", "Phoenix Flower", Rarity.LEGENDARY, 7200, 300, 10000, "phoenix_flower"),
            PlantDef("star_plant", "Star Plant", Rarity.LEGENDARY, 14400, 500, 20000, "star_plant"),
            # Prestige
            PlantDef("eternal_tree", "Eternal Tree", Rarity.PRESTIGE, 86400, 1000, 50000, "eternal_tree"),
        ],
        upgrades=[
            UpgradeDef(
                id="growth_speed",
                kind=UpgradeKind.GROWTH_SPEED,
                display_name="Plant Speed",
                base_cost=100,
                max_level=20,
                cost_scaling=CostScaling.geometric(1.5),
                effect_per_level=0.1,
                description="Plants grow 10% faster per level",
            ),
            UpgradeDef(
                id="yield_multiplier",
                kind=UpgradeKind.YIELD_MULTIPLIER,
                display_name="GP Multiplier",
                base_cost=200,
                max_level=15,
                cost_scaling=CostScaling.geometric(2.0),
                effect_per_level=0.2,
                description="Harvests yield 20% more per level",
            ),
            UpgradeDef(
                id="plot_capacity",
                kind=UpgradeKind.PLOT_CAPACITY,
                display_name="Garden Plots",
                base_cost=500,
                max_level=10,
                cost_scaling=CostScaling.geometric(3.0),
                effect_per_level=3,
                description="Adds 3 garden plots per level",
            ),
            UpgradeDef(
                id="auto_harvest",
                kind=UpgradeKind.AUTO_HARVEST,
                display_name="Auto Harvest",
                base_cost=1000,
                max_level=5,
                cost_scaling=CostScaling.geometric(2.5),
                effect_per_level=0.02,
                description="2% chance per level, per tick, to harvest a ready plot",
            ),
            UpgradeDef(
                id="offline_efficiency",
                kind=UpgradeKind.OFFLINE_EFFICIENCY,
                display_name="Offline Efficiency",
                base_cost=300,
                max_level=10,
                cost_scaling=CostScaling.geometric(1.8),
                effect_per_level=0.02,
                description="Offline growth is 2% more efficient per level",
            ),
        ],
    )
