from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from idlegarden.catalog import Catalog
from idlegarden.config import GardenConfig
from idlegarden.modifiers import growth_speed_multiplier
from idlegarden.state import ProgressionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementContext:
    """Everything an achievement metric may read."""

    state: ProgressionState
    catalog: Catalog
    config: GardenConfig


@dataclass(frozen=True)
class AchievementDef:
    """A one-time goal. Unlocks once *metric* reaches *threshold*."""

    id: str
    title: str
    description: str = ""
    reward: int = 0
    metric: Callable[[AchievementContext], float] = lambda ctx: 0.0
    threshold: float | Callable[[AchievementContext], float] = 1.0
    strict: bool = False

    def resolve_threshold(self, ctx: AchievementContext) -> float:
        if callable(self.threshold):
            return self.threshold(ctx)
        return self.threshold

    def is_met(self, ctx: AchievementContext) -> bool:
        value = self.metric(ctx)
        target = self.resolve_threshold(ctx)
        return value > target if self.strict else value >= target

    def progress(self, ctx: AchievementContext) -> float:
        target = self.resolve_threshold(ctx)
        if target <= 0:
            return 1.0 if self.is_met(ctx) else 0.0
        return max(0.0, min(1.0, self.metric(ctx) / target))


@dataclass(frozen=True)
class AchievementRecord:
    """Per-achievement progress. Never regresses."""

    unlocked: bool = False
    unlocked_at: float | None = None
    progress: float = 0.0

    def to_dict(self) -> dict:
        return {
            "unlocked": self.unlocked,
            "unlocked_at": self.unlocked_at,
            "progress": self.progress,
        }


@dataclass(frozen=True)
class Evaluation:
    records: dict[str, AchievementRecord]
    newly_unlocked: list[str] = field(default_factory=list)
    premium_reward: int = 0


def _unlocked_plant_count(ctx: AchievementContext) -> float:
    return len(ctx.catalog.unlocked_plants(ctx.state.lifetime_earned))


def default_achievements() -> list[AchievementDef]:
    return [
        AchievementDef(
            "first_harvest",
            "First Harvest",
            "Harvest your first plant",
            reward=10,
            metric=lambda ctx: ctx.state.lifetime_earned,
            threshold=0,
            strict=True,
        ),
        AchievementDef(
            "first_upgrade",
            "First Upgrade",
            "Buy your first upgrade",
            reward=25,
            metric=lambda ctx: max(ctx.state.upgrades.values(), default=0),
            threshold=1,
        ),
        AchievementDef(
            "plant_master",
            "Plant Master",
            "Plant 10 different types of plants",
            reward=100,
            metric=lambda ctx: len(ctx.state.planted_types),
            threshold=10,
        ),
        AchievementDef(
            "speed_demon",
            "Speed Demon",
            "Reach 2x growth speed",
            reward=250,
            metric=lambda ctx: growth_speed_multiplier(ctx.state, ctx.catalog),
            threshold=2.0,
        ),
        AchievementDef(
            "millionaire",
            "Millionaire",
            "Earn 1,000,000 Garden Points",
            reward=1000,
            metric=lambda ctx: ctx.state.lifetime_earned,
            threshold=1_000_000,
        ),
        AchievementDef(
            "prestige_master",
            "Prestige Master",
            "Perform 5 garden rebirths",
            reward=500,
            metric=lambda ctx: ctx.state.prestige_count,
            threshold=5,
        ),
        AchievementDef(
            "collector",
            "Plant Collector",
            "Unlock all plant types",
            reward=750,
            metric=_unlocked_plant_count,
            threshold=lambda ctx: len(ctx.catalog.plants),
        ),
        AchievementDef(
            "full_garden",
            "Full Garden",
            "Grow 9 plants at once",
            reward=150,
            metric=lambda ctx: ctx.state.occupied_count(),
            threshold=9,
        ),
        AchievementDef(
            "time_traveler",
            "Time Traveler",
            "Claim 24 hours of offline progress",
            reward=300,
            metric=lambda ctx: ctx.state.longest_offline,
            threshold=lambda ctx: ctx.config.max_offline_window,
        ),
    ]


def evaluate(
    state: ProgressionState,
    records: dict[str, AchievementRecord],
    definitions: list[AchievementDef],
    catalog: Catalog,
    config: GardenConfig,
    now: float,
) -> Evaluation:
    """Compute updated records without touching *records* or *state*.

    Rewards are reported only for achievements that flip to unlocked in this
    call, so the caller can credit them exactly once.
    """
    ctx = AchievementContext(state=state, catalog=catalog, config=config)
    updated: dict[str, AchievementRecord] = dict(records)
    newly: list[str] = []
    reward = 0

    for adef in definitions:
        old = records.get(adef.id, AchievementRecord())
        if old.unlocked:
            continue
        if adef.is_met(ctx):
            updated[adef.id] = AchievementRecord(
                unlocked=True, unlocked_at=now, progress=1.0
            )
            newly.append(adef.id)
            reward += adef.reward
        else:
            progress = max(old.progress, adef.progress(ctx))
            if progress != old.progress or adef.id not in records:
                updated[adef.id] = replace(old, progress=progress)

    return Evaluation(records=updated, newly_unlocked=newly, premium_reward=reward)


class AchievementBook:
    """Holds achievement records and answers the query surface."""

    def __init__(
        self,
        definitions: list[AchievementDef] | None = None,
        records: dict[str, AchievementRecord] | None = None,
    ) -> None:
        self.definitions = definitions if definitions is not None else default_achievements()
        self._by_id = {d.id: d for d in self.definitions}
        self.records: dict[str, AchievementRecord] = {
            d.id: AchievementRecord() for d in self.definitions
        }
        if records:
            self.restore(records)

    def restore(self, records: dict[str, AchievementRecord]) -> None:
        """Merge saved records. Unknown ids are kept for newer catalogs."""
        for aid, rec in records.items():
            current = self.records.get(aid, AchievementRecord())
            self.records[aid] = _merge(current, rec)

    def evaluate(
        self,
        state: ProgressionState,
        catalog: Catalog,
        config: GardenConfig,
        now: float,
    ) -> Evaluation:
        result = evaluate(state, self.records, self.definitions, catalog, config, now)
        self.records = result.records
        for aid in result.newly_unlocked:
            logger.info("Achievement unlocked: %s", self._by_id[aid].title)
        return result

    def get(self, id: str) -> AchievementDef | None:
        return self._by_id.get(id)

    def all_records(self) -> dict[str, AchievementRecord]:
        return {d.id: self.records[d.id] for d in self.definitions}

    def unlocked_count(self) -> int:
        return sum(1 for d in self.definitions if self.records[d.id].unlocked)

    def total_count(self) -> int:
        return len(self.definitions)


def _merge(a: AchievementRecord, b: AchievementRecord) -> AchievementRecord:
    if a.unlocked and b.unlocked:
        times = [t for t in (a.unlocked_at, b.unlocked_at) if t is not None]
        return AchievementRecord(True, min(times) if times else None, 1.0)
    if a.unlocked:
        return a
    if b.unlocked:
        return b
    return AchievementRecord(progress=max(a.progress, b.progress))
