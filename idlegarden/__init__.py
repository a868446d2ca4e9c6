# idlegarden — Idle garden progression, offline reconciliation & save format

from idlegarden.cost_scaling import CostScaling
from idlegarden.catalog import (
    Catalog,
    PlantDef,
    Rarity,
    UpgradeDef,
    UpgradeKind,
    default_catalog,
)
from idlegarden.config import GardenConfig, load_config
from idlegarden.state import EMPTY, EmptyPlot, OccupiedPlot, Plot, ProgressionState
from idlegarden.results import CommandResult, Failure
from idlegarden.exceptions import SnapshotDecodeError, SnapshotError, SnapshotVersionError
from idlegarden.prestige import (
    PrestigeResult,
    can_prestige,
    compute_prestige_gain,
    perform_prestige,
)
from idlegarden.offline import OfflineReconciler, OfflineReward
from idlegarden.achievements import (
    AchievementBook,
    AchievementDef,
    AchievementRecord,
    Evaluation,
    default_achievements,
    evaluate,
)
from idlegarden.store import (
    FileSlots,
    ImportResult,
    LoadResult,
    MemorySlots,
    PersistenceStore,
    SaveSlots,
    Snapshot,
)
from idlegarden.engine import GardenEngine
from idlegarden.scheduler import CommandQueue, FixedIntervalScheduler
from idlegarden.strategy import Action, GreedyGardener, Strategy
from idlegarden.report import MetricsCollector, SimulationReport, build_report
from idlegarden.simulation import SimulatedClock, Simulation
from idlegarden.formatting import format_text_report

__all__ = [
    # Catalog
    "CostScaling",
    "Catalog",
    "PlantDef",
    "Rarity",
    "UpgradeDef",
    "UpgradeKind",
    "default_catalog",
    # Config
    "GardenConfig",
    "load_config",
    # State
    "EMPTY",
    "EmptyPlot",
    "OccupiedPlot",
    "Plot",
    "ProgressionState",
    # Results
    "CommandResult",
    "Failure",
    "PrestigeResult",
    # Errors
    "SnapshotError",
    "SnapshotDecodeError",
    "SnapshotVersionError",
    # Rules
    "can_prestige",
    "compute_prestige_gain",
    "perform_prestige",
    "OfflineReconciler",
    "OfflineReward",
    # Achievements
    "AchievementBook",
    "AchievementDef",
    "AchievementRecord",
    "Evaluation",
    "default_achievements",
    "evaluate",
    # Persistence
    "FileSlots",
    "ImportResult",
    "LoadResult",
    "MemorySlots",
    "PersistenceStore",
    "SaveSlots",
    "Snapshot",
    # Engine
    "GardenEngine",
    "CommandQueue",
    "FixedIntervalScheduler",
    # Simulation
    "Action",
    "GreedyGardener",
    "Strategy",
    "MetricsCollector",
    "SimulationReport",
    "build_report",
    "SimulatedClock",
    "Simulation",
    "format_text_report",
]
