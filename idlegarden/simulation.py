from __future__ import annotations

import random

from idlegarden.achievements import AchievementBook
from idlegarden.catalog import Catalog
from idlegarden.config import GardenConfig
from idlegarden.engine import GardenEngine
from idlegarden.report import MetricsCollector, SimulationReport, build_report
from idlegarden.scheduler import FixedIntervalScheduler
from idlegarden.store import MemorySlots, PersistenceStore
from idlegarden.strategy import Strategy

MAX_TICKS = 10_000_000


class SimulatedClock:
    """Manually advanced clock, usable wherever the engine expects time.time."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class Simulation:
    """Runs the garden headless under a simulated clock.

    With *session_length* and *away_time* set, play alternates between
    active sessions and offline gaps. Each gap saves, reloads through the
    persistence store, and claims the offline reward, as a returning player
    would.
    """

    def __init__(
        self,
        catalog: Catalog,
        strategy: Strategy,
        duration: float,
        config: GardenConfig | None = None,
        seed: int | None = None,
        session_length: float | None = None,
        away_time: float = 0.0,
        snapshot_interval: float = 60.0,
    ) -> None:
        self.catalog = catalog
        self.config = config if config is not None else GardenConfig()
        self.strategy = strategy
        self.duration = duration
        self.session_length = session_length
        self.away_time = away_time

        self.clock = SimulatedClock()
        self.store = PersistenceStore(catalog, self.config, MemorySlots())
        self.engine = GardenEngine(
            catalog,
            self.config,
            store=self.store,
            clock=self.clock,
            rng=random.Random(seed),
            achievements=AchievementBook(),
        )
        self.collector = MetricsCollector(snapshot_interval=snapshot_interval)
        self.scheduler = FixedIntervalScheduler(self._on_tick, self.config.tick_interval)

    def _on_tick(self, now: float) -> None:
        evaluation = self.engine.step(now)
        self.collector.record_achievements(now, evaluation.newly_unlocked)
        actions = self.strategy.act(self.engine, now)
        self.collector.record_actions(now, actions)
        self.collector.record_tick(now, self.engine.current_state())

    def _go_offline(self) -> None:
        self.engine.save(self.clock())
        self.clock.advance(self.away_time)
        self.engine.load(self.clock())
        reward = self.engine.pending_offline_reward()
        if reward is not None:
            self.engine.apply_offline_reward(now=self.clock())
            self.collector.record_offline(
                self.clock(), self.away_time, reward.currency_earned, reward.plants_matured
            )
        self.scheduler.start(self.clock())

    def run(self) -> SimulationReport:
        self.scheduler.start(self.clock())
        self._on_tick(self.clock())
        session_started = self.clock()
        ticks = 0

        while self.clock() < self.duration and ticks < MAX_TICKS:
            self.clock.advance(self.config.tick_interval)
            ticks += self.scheduler.advance(self.clock())
            if (
                self.session_length is not None
                and self.away_time > 0
                and self.clock() - session_started >= self.session_length
                and self.clock() + self.away_time < self.duration
            ):
                self._go_offline()
                session_started = self.clock()

        return build_report(
            self.collector,
            self.strategy.describe(),
            self.clock(),
            self.engine.current_state(),
        )
