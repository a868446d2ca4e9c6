"""Versioned save snapshots with a primary and a backup slot.

Snapshot schema (JSON):
{
  "format": "idlegarden.save",
  "version": 1,
  "saved_at": float,                    # wall clock seconds
  "state": {...},                       # ProgressionState fields
  "achievements": {id: {...}},          # AchievementRecord per id
  "pending_offline_reward": {...}|null  # unclaimed OfflineReward
}

Decoding is forward compatible: unknown keys are ignored and absent optional
fields take their defaults.
"""

from __future__ import annotations

import base64
import json
import logging
import math
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from platformdirs import PlatformDirs

from idlegarden.achievements import AchievementRecord
from idlegarden.catalog import Catalog
from idlegarden.config import GardenConfig
from idlegarden.exceptions import SnapshotDecodeError, SnapshotError, SnapshotVersionError
from idlegarden.modifiers import plot_capacity
from idlegarden.offline import OfflineReward
from idlegarden.state import EMPTY, EmptyPlot, OccupiedPlot, Plot, ProgressionState

logger = logging.getLogger(__name__)

SAVE_FORMAT = "idlegarden.save"
SCHEMA_VERSION = 1

PRIMARY_SLOT = "save.json"
BACKUP_SLOT = "save.json.bak"


@dataclass
class Snapshot:
    """Everything that is persisted between sessions."""

    state: ProgressionState
    achievements: dict[str, AchievementRecord] = field(default_factory=dict)
    pending_offline_reward: OfflineReward | None = None


@dataclass(frozen=True)
class LoadResult:
    snapshot: Snapshot
    source: str  # "primary", "backup" or "fresh"


@dataclass(frozen=True)
class ImportResult:
    success: bool
    snapshot: Snapshot | None = None
    error: str = ""

    def __bool__(self) -> bool:
        return self.success


# ── Slots ────────────────────────────────────────────────────────────


class SaveSlots(ABC):
    """Raw byte storage addressed by slot name."""

    @abstractmethod
    def read(self, slot: str) -> bytes | None:
        """Return slot contents, or None if the slot has never been written."""

    @abstractmethod
    def write(self, slot: str, data: bytes) -> None: ...

    @abstractmethod
    def delete(self, slot: str) -> None: ...


class MemorySlots(SaveSlots):
    """Holds slots in memory only. Used by tests and simulations."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}

    def read(self, slot: str) -> bytes | None:
        return self.data.get(slot)

    def write(self, slot: str, data: bytes) -> None:
        self.data[slot] = bytes(data)

    def delete(self, slot: str) -> None:
        self.data.pop(slot, None)


class FileSlots(SaveSlots):
    """One file per slot inside *directory*, written with an atomic replace."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path(self, slot: str) -> Path:
        return self.directory / slot

    def read(self, slot: str) -> bytes | None:
        p = self.path(slot)
        if not p.exists():
            return None
        return p.read_bytes()

    def write(self, slot: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.path(slot)
        tmp = target.with_name(target.name + ".tmp")
        try:
            with open(tmp, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def delete(self, slot: str) -> None:
        p = self.path(slot)
        if p.exists():
            p.unlink()


def default_save_dir() -> Path:
    d = PlatformDirs(appname="IdleGarden", appauthor=False)
    return Path(d.user_data_dir)


# ── Codec ────────────────────────────────────────────────────────────


def _encode_plot(plot: Plot) -> dict[str, Any] | None:
    if isinstance(plot, OccupiedPlot):
        return {
            "plant_id": plot.plant_id,
            "planted_at": plot.planted_at,
            "level": plot.level,
            "ready": plot.ready,
        }
    return None


def encode_snapshot(snapshot: Snapshot, saved_at: float | None = None) -> dict[str, Any]:
    state = snapshot.state
    pending = snapshot.pending_offline_reward
    return {
        "format": SAVE_FORMAT,
        "version": SCHEMA_VERSION,
        "saved_at": state.last_persisted_at if saved_at is None else saved_at,
        "state": {
            "currency": state.currency,
            "premium_currency": state.premium_currency,
            "plots": [_encode_plot(p) for p in state.plots],
            "upgrades": dict(sorted(state.upgrades.items())),
            "last_persisted_at": state.last_persisted_at,
            "lifetime_earned": state.lifetime_earned,
            "plants_harvested": state.plants_harvested,
            "prestige_count": state.prestige_count,
            "prestige_points": state.prestige_points,
            "planted_types": sorted(state.planted_types),
            "longest_offline": state.longest_offline,
        },
        "achievements": {
            aid: rec.to_dict() for aid, rec in sorted(snapshot.achievements.items())
        },
        "pending_offline_reward": pending.to_dict() if pending is not None else None,
    }


def _count(data: dict, key: str, default: int = 0) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotDecodeError(f"Field {key!r} must be an integer, got {value!r}")
    if value < 0:
        raise SnapshotDecodeError(f"Field {key!r} must be non-negative, got {value}")
    return value


def _number(data: dict, key: str, default: float = 0.0) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotDecodeError(f"Field {key!r} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise SnapshotDecodeError(f"Field {key!r} must be finite")
    return float(value)


def _mapping(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SnapshotDecodeError(f"Field {key!r} must be an object")
    return value


def _decode_plot(raw: Any, index: int, catalog: Catalog) -> Plot:
    if raw is None:
        return EMPTY
    if not isinstance(raw, dict):
        raise SnapshotDecodeError(f"Plot {index} must be an object or null")
    plant_id = raw.get("plant_id")
    if not isinstance(plant_id, str) or not plant_id:
        raise SnapshotDecodeError(f"Plot {index} has no plant_id")
    level = _count(raw, "level", 1)
    if level < 1:
        raise SnapshotDecodeError(f"Plot {index} has level {level}")
    ready = raw.get("ready", False)
    if not isinstance(ready, bool):
        raise SnapshotDecodeError(f"Plot {index} has non-boolean ready flag")
    if catalog.get_plant(plant_id) is None:
        logger.warning("Clearing plot %d: unknown plant %r", index, plant_id)
        return EMPTY
    return OccupiedPlot(
        plant_id=plant_id,
        planted_at=_number(raw, "planted_at"),
        level=level,
        ready=ready,
    )


def _decode_state(raw: dict, catalog: Catalog, config: GardenConfig) -> ProgressionState:
    plots_raw = raw.get("plots", [])
    if not isinstance(plots_raw, list):
        raise SnapshotDecodeError("Field 'plots' must be a list")

    upgrades: dict[str, int] = {}
    for uid, level in _mapping(raw, "upgrades").items():
        if isinstance(level, bool) or not isinstance(level, int) or level < 0:
            raise SnapshotDecodeError(f"Upgrade {uid!r} has invalid level {level!r}")
        udef = catalog.get_upgrade(uid)
        if udef is None:
            logger.warning("Dropping unknown upgrade %r from save", uid)
            continue
        if level > udef.max_level:
            logger.warning(
                "Clamping upgrade %r from level %d to max %d", uid, level, udef.max_level
            )
            level = udef.max_level
        if level > 0:
            upgrades[uid] = level

    planted_raw = raw.get("planted_types", [])
    if not isinstance(planted_raw, list) or not all(
        isinstance(p, str) for p in planted_raw
    ):
        raise SnapshotDecodeError("Field 'planted_types' must be a list of strings")

    state = ProgressionState(
        currency=_count(raw, "currency"),
        premium_currency=_count(raw, "premium_currency"),
        plots=[_decode_plot(p, i, catalog) for i, p in enumerate(plots_raw)],
        upgrades=upgrades,
        last_persisted_at=_number(raw, "last_persisted_at"),
        lifetime_earned=_count(raw, "lifetime_earned"),
        plants_harvested=_count(raw, "plants_harvested"),
        prestige_count=_count(raw, "prestige_count"),
        prestige_points=_count(raw, "prestige_points"),
        planted_types=set(planted_raw),
        longest_offline=_number(raw, "longest_offline"),
    )
    capacity = plot_capacity(state, catalog, config)
    if len(state.plots) > capacity:
        dropped = sum(1 for p in state.plots[capacity:] if isinstance(p, OccupiedPlot))
        if dropped:
            logger.warning(
                "Clearing %d plots beyond capacity %d", dropped, capacity
            )
        del state.plots[capacity:]
    state.ensure_capacity(capacity)
    return state


def _decode_record(aid: str, raw: Any) -> AchievementRecord:
    if not isinstance(raw, dict):
        raise SnapshotDecodeError(f"Achievement {aid!r} must be an object")
    unlocked = raw.get("unlocked", False)
    if not isinstance(unlocked, bool):
        raise SnapshotDecodeError(f"Achievement {aid!r} has non-boolean unlocked flag")
    unlocked_at = raw.get("unlocked_at")
    if unlocked_at is not None:
        unlocked_at = _number(raw, "unlocked_at")
    progress = min(1.0, max(0.0, _number(raw, "progress")))
    if unlocked:
        progress = 1.0
    return AchievementRecord(unlocked=unlocked, unlocked_at=unlocked_at, progress=progress)


def decode_snapshot(data: Any, catalog: Catalog, config: GardenConfig) -> Snapshot:
    """Validate and decode a snapshot record. Raises SnapshotDecodeError."""
    if not isinstance(data, dict):
        raise SnapshotDecodeError("Snapshot must be a JSON object")
    if data.get("format") != SAVE_FORMAT:
        raise SnapshotDecodeError(f"Not an {SAVE_FORMAT} record")
    version = data.get("version")
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise SnapshotDecodeError(f"Invalid snapshot version {version!r}")
    if version > SCHEMA_VERSION:
        raise SnapshotVersionError(
            f"Snapshot version {version} is newer than supported {SCHEMA_VERSION}"
        )

    state_raw = data.get("state")
    if not isinstance(state_raw, dict):
        raise SnapshotDecodeError("Snapshot has no state object")
    state = _decode_state(state_raw, catalog, config)

    achievements = {
        str(aid): _decode_record(str(aid), rec)
        for aid, rec in _mapping(data, "achievements").items()
    }

    pending = None
    pending_raw = data.get("pending_offline_reward")
    if pending_raw is not None:
        if not isinstance(pending_raw, dict):
            raise SnapshotDecodeError("pending_offline_reward must be an object")
        pending = OfflineReward(
            currency_earned=_count(pending_raw, "currency_earned"),
            plants_matured=_count(pending_raw, "plants_matured"),
            elapsed=_number(pending_raw, "elapsed"),
            longest_absence=_number(
                pending_raw, "longest_absence", _number(pending_raw, "elapsed")
            ),
        )
        if pending.is_empty:
            pending = None

    return Snapshot(state=state, achievements=achievements, pending_offline_reward=pending)


def dumps(snapshot: Snapshot) -> bytes:
    return json.dumps(encode_snapshot(snapshot), separators=(",", ":")).encode("utf-8")


def loads(raw: bytes, catalog: Catalog, config: GardenConfig) -> Snapshot:
    try:
        data = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise SnapshotDecodeError("Save data is not valid JSON") from e
    return decode_snapshot(data, catalog, config)


# ── Store ────────────────────────────────────────────────────────────


class PersistenceStore:
    """Reads and writes snapshots, falling back to the backup on corruption."""

    def __init__(
        self,
        catalog: Catalog,
        config: GardenConfig,
        slots: SaveSlots | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config
        self.slots = slots if slots is not None else FileSlots(default_save_dir())

    def save(self, snapshot: Snapshot) -> bool:
        """Rotate primary into backup, then write primary. Never raises."""
        payload = dumps(snapshot)
        try:
            current = self.slots.read(PRIMARY_SLOT)
            if current is not None:
                self.slots.write(BACKUP_SLOT, current)
        except OSError:
            logger.warning("Failed to rotate save into backup slot", exc_info=True)
        try:
            self.slots.write(PRIMARY_SLOT, payload)
        except OSError:
            logger.exception("Failed to write primary save slot")
            return False
        logger.debug("Saved snapshot (%d bytes)", len(payload))
        return True

    def _read_slot(self, slot: str) -> Snapshot | None:
        try:
            raw = self.slots.read(slot)
        except OSError:
            logger.warning("Failed to read save slot %s", slot, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return loads(raw, self.catalog, self.config)
        except SnapshotError as e:
            logger.warning("Save slot %s is corrupt: %s", slot, e)
            return None

    def load(self, now: float) -> LoadResult:
        """Primary, then backup, then a fresh state. Never raises."""
        snapshot = self._read_slot(PRIMARY_SLOT)
        if snapshot is not None:
            logger.info("Loaded save from primary slot")
            return LoadResult(snapshot, "primary")

        snapshot = self._read_slot(BACKUP_SLOT)
        if snapshot is not None:
            logger.warning("Recovered save from backup slot")
            return LoadResult(snapshot, "backup")

        logger.info("No usable save found; starting a fresh garden")
        return LoadResult(Snapshot(ProgressionState.fresh(self.config, now)), "fresh")

    def clear(self) -> None:
        for slot in (PRIMARY_SLOT, BACKUP_SLOT):
            try:
                self.slots.delete(slot)
            except OSError:
                logger.warning("Failed to delete save slot %s", slot, exc_info=True)

    def export_portable(self, snapshot: Snapshot) -> str:
        """Transport-safe text form of *snapshot* for manual backup."""
        return base64.urlsafe_b64encode(dumps(snapshot)).decode("ascii")

    def decode_portable(self, blob: str) -> Snapshot:
        try:
            raw = base64.b64decode(
                "".join(blob.split()).encode("ascii"), altchars=b"-_", validate=True
            )
        except ValueError as e:
            raise SnapshotDecodeError("Export string is not valid base64") from e
        return loads(raw, self.catalog, self.config)

    def import_portable(self, blob: str) -> ImportResult:
        """Validate *blob* and commit it as the primary save.

        Invalid blobs are rejected without touching any slot.
        """
        try:
            snapshot = self.decode_portable(blob)
        except SnapshotError as e:
            logger.warning("Rejected imported save: %s", e)
            return ImportResult(success=False, error=str(e))
        self.save(snapshot)
        logger.info("Imported save committed to primary slot")
        return ImportResult(success=True, snapshot=snapshot)
