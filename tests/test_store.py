"""Tests for store module."""
import base64
import json

import pytest

from idlegarden.achievements import AchievementRecord
from idlegarden.catalog import Catalog, PlantDef, Rarity, default_catalog
from idlegarden.config import GardenConfig
from idlegarden.exceptions import SnapshotDecodeError, SnapshotVersionError
from idlegarden.offline import OfflineReward
from idlegarden.state import EMPTY, OccupiedPlot, ProgressionState
from idlegarden.store import (
    BACKUP_SLOT,
    PRIMARY_SLOT,
    FileSlots,
    MemorySlots,
    PersistenceStore,
    Snapshot,
    dumps,
    encode_snapshot,
    loads,
)


def _make_catalog() -> Catalog:
    return Catalog(
        plants=[
            PlantDef("sprout", "Sprout", Rarity.BASIC, base_growth_time=15, base_yield_rate=960),
            PlantDef("oak", "Oak", Rarity.LEGENDARY, base_growth_time=450, base_yield_rate=5),
        ],
        upgrades=default_catalog().upgrades,
    )


def _make_store(slots=None) -> PersistenceStore:
    return PersistenceStore(_make_catalog(), GardenConfig(), slots or MemorySlots())


def _make_snapshot(currency: int = 1234) -> Snapshot:
    state = ProgressionState.fresh(GardenConfig(), 100.0)
    state.currency = currency
    state.premium_currency = 35
    state.plots[0] = OccupiedPlot("sprout", 90.5, level=2, ready=True)
    state.plots[4] = OccupiedPlot("oak", 12.25)
    state.upgrades = {"growth_speed": 3, "offline_efficiency": 1}
    state.lifetime_earned = 5000
    state.plants_harvested = 77
    state.prestige_count = 1
    state.prestige_points = 2
    state.planted_types = {"sprout", "oak"}
    state.longest_offline = 3600.0
    return Snapshot(
        state=state,
        achievements={
            "first_harvest": AchievementRecord(True, 50.0, 1.0),
            "plant_master": AchievementRecord(progress=0.2),
        },
        pending_offline_reward=OfflineReward(160, 1, 7200.0),
    )


def _raw(snapshot: Snapshot) -> dict:
    return json.loads(dumps(snapshot).decode("utf-8"))


def _encode(data: dict) -> bytes:
    return json.dumps(data).encode("utf-8")


# ── Codec ───────────────────────────────────────────────────────────


def test_portable_round_trip():
    store = _make_store()
    snapshot = _make_snapshot()
    blob = store.export_portable(snapshot)
    assert blob.isascii()
    assert store.decode_portable(blob) == snapshot


def test_portable_ignores_whitespace():
    store = _make_store()
    blob = store.export_portable(_make_snapshot())
    wrapped = "\n".join(blob[i:i + 40] for i in range(0, len(blob), 40))
    assert store.decode_portable(wrapped) == _make_snapshot()


def test_encoded_record_shape():
    data = encode_snapshot(_make_snapshot())
    assert data["format"] == "idlegarden.save"
    assert data["version"] == 1
    assert data["state"]["plots"][1] is None
    assert data["state"]["plots"][0]["plant_id"] == "sprout"
    assert data["state"]["planted_types"] == ["oak", "sprout"]
    assert data["pending_offline_reward"]["currency_earned"] == 160


def test_unknown_keys_are_ignored():
    data = _raw(_make_snapshot())
    data["weather"] = "sunny"
    data["state"]["gnome_count"] = 3
    data["state"]["plots"][0]["sparkle"] = True
    snapshot = loads(_encode(data), _make_catalog(), GardenConfig())
    assert snapshot.state.currency == 1234
    assert snapshot.state.plots[0].plant_id == "sprout"


def test_missing_optional_fields_take_defaults():
    data = {"format": "idlegarden.save", "version": 1, "state": {"currency": 50}}
    snapshot = loads(_encode(data), _make_catalog(), GardenConfig())
    assert snapshot.state.currency == 50
    assert snapshot.state.plots == [EMPTY] * 9
    assert snapshot.achievements == {}
    assert snapshot.pending_offline_reward is None


def test_unknown_plant_and_upgrade_are_dropped():
    data = _raw(_make_snapshot())
    data["state"]["plots"][4]["plant_id"] = "moonflower"
    data["state"]["upgrades"]["time_machine"] = 4
    data["state"]["upgrades"]["growth_speed"] = 99
    snapshot = loads(_encode(data), _make_catalog(), GardenConfig())
    assert snapshot.state.plots[4] == EMPTY
    assert "time_machine" not in snapshot.state.upgrades
    assert snapshot.state.upgrades["growth_speed"] == 20


def test_plots_grow_to_capacity():
    data = _raw(_make_snapshot())
    data["state"]["plots"] = data["state"]["plots"][:3]
    data["state"]["upgrades"]["plot_capacity"] = 2
    snapshot = loads(_encode(data), _make_catalog(), GardenConfig())
    assert len(snapshot.state.plots) == 15


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d["state"].__setitem__("currency", "lots"),
        lambda d: d["state"].__setitem__("currency", -5),
        lambda d: d["state"].__setitem__("currency", 1.5),
        lambda d: d["state"].__setitem__("plots", {"0": None}),
        lambda d: d["state"]["plots"][0].__setitem__("ready", "yes"),
        lambda d: d["state"].__setitem__("planted_types", [1, 2]),
        lambda d: d.__setitem__("format", "someone.else"),
        lambda d: d.__setitem__("version", 0),
        lambda d: d.__delitem__("state"),
        lambda d: d["achievements"].__setitem__("first_harvest", "yes"),
    ],
)
def test_invalid_records_rejected(mutate):
    data = _raw(_make_snapshot())
    mutate(data)
    with pytest.raises(SnapshotDecodeError):
        loads(_encode(data), _make_catalog(), GardenConfig())


def test_not_json_rejected():
    with pytest.raises(SnapshotDecodeError):
        loads(b"{not json", _make_catalog(), GardenConfig())
    with pytest.raises(SnapshotDecodeError):
        loads(b"\xff\xfe", _make_catalog(), GardenConfig())


def test_newer_version_rejected():
    data = _raw(_make_snapshot())
    data["version"] = 2
    with pytest.raises(SnapshotVersionError):
        loads(_encode(data), _make_catalog(), GardenConfig())


# ── Store ───────────────────────────────────────────────────────────


def test_save_and_load():
    store = _make_store()
    assert store.save(_make_snapshot())
    result = store.load(now=500.0)
    assert result.source == "primary"
    assert result.snapshot == _make_snapshot()


def test_save_rotates_backup():
    slots = MemorySlots()
    store = _make_store(slots)
    store.save(_make_snapshot(currency=1))
    first = slots.data[PRIMARY_SLOT]
    store.save(_make_snapshot(currency=2))
    assert slots.data[BACKUP_SLOT] == first


def test_corrupt_primary_falls_back_to_backup():
    slots = MemorySlots()
    store = _make_store(slots)
    store.save(_make_snapshot(currency=1))
    store.save(_make_snapshot(currency=2))
    slots.data[PRIMARY_SLOT] = b"{garbage"

    result = store.load(now=500.0)
    assert result.source == "backup"
    assert result.snapshot.state.currency == 1


def test_everything_corrupt_starts_fresh():
    slots = MemorySlots()
    slots.data[PRIMARY_SLOT] = b"{garbage"
    slots.data[BACKUP_SLOT] = b"[]"
    result = _make_store(slots).load(now=500.0)
    assert result.source == "fresh"
    assert result.snapshot.state.currency == 10
    assert result.snapshot.state.last_persisted_at == 500.0


def test_newer_version_falls_back():
    slots = MemorySlots()
    store = _make_store(slots)
    store.save(_make_snapshot(currency=1))
    data = _raw(_make_snapshot(currency=2))
    data["version"] = 7
    store.save(Snapshot(ProgressionState()))
    slots.data[PRIMARY_SLOT] = _encode(data)
    assert store.load(now=0.0).source == "backup"


def test_load_empty_slots():
    result = _make_store().load(now=3.0)
    assert result.source == "fresh"
    assert result.snapshot.pending_offline_reward is None


class _BrokenSlots(MemorySlots):
    def write(self, slot, data):
        raise OSError("disk full")


def test_save_failure_is_reported_not_raised():
    store = _make_store(_BrokenSlots())
    assert store.save(_make_snapshot()) is False


def test_clear():
    slots = MemorySlots()
    store = _make_store(slots)
    store.save(_make_snapshot())
    store.save(_make_snapshot())
    store.clear()
    assert slots.data == {}


def test_import_valid_blob_commits():
    slots = MemorySlots()
    store = _make_store(slots)
    blob = store.export_portable(_make_snapshot(currency=99))
    result = store.import_portable(blob)
    assert result
    assert result.snapshot.state.currency == 99
    assert store.load(now=0.0).snapshot.state.currency == 99


@pytest.mark.parametrize(
    "blob",
    [
        "!!!not base64!!!",
        base64.urlsafe_b64encode(b"hello world").decode("ascii"),
        base64.urlsafe_b64encode(b'{"format": "idlegarden.save", "version": 99}').decode("ascii"),
        "",
    ],
)
def test_import_invalid_blob_touches_nothing(blob):
    slots = MemorySlots()
    store = _make_store(slots)
    store.save(_make_snapshot(currency=5))
    before = dict(slots.data)

    result = store.import_portable(blob)
    assert not result
    assert result.error
    assert slots.data == before


# ── FileSlots ───────────────────────────────────────────────────────


def test_file_slots(tmp_path):
    slots = FileSlots(tmp_path / "saves")
    assert slots.read("a") is None
    slots.write("a", b"one")
    slots.write("a", b"two")
    assert slots.read("a") == b"two"
    assert sorted(p.name for p in (tmp_path / "saves").iterdir()) == ["a"]
    slots.delete("a")
    assert slots.read("a") is None
    slots.delete("a")


def test_store_on_disk(tmp_path):
    store = _make_store(FileSlots(tmp_path))
    store.save(_make_snapshot(currency=1))
    store.save(_make_snapshot(currency=2))
    assert (tmp_path / PRIMARY_SLOT).exists()
    assert (tmp_path / BACKUP_SLOT).exists()

    (tmp_path / PRIMARY_SLOT).write_text("truncated{", encoding="utf-8")
    reloaded = _make_store(FileSlots(tmp_path)).load(now=0.0)
    assert reloaded.source == "backup"
    assert reloaded.snapshot.state.currency == 1


def test_plots_beyond_capacity_are_dropped():
    data = _raw(_make_snapshot())
    data["state"]["upgrades"] = {"plot_capacity": 1}
    data["state"]["plots"] = [
        {"plant_id": "sprout", "planted_at": 0.0} for _ in range(500)
    ]
    snapshot = loads(_encode(data), _make_catalog(), GardenConfig())
    assert len(snapshot.state.plots) == 12
    assert snapshot.state.occupied_count() == 12


def test_pending_longest_absence_round_trip():
    snapshot = _make_snapshot()
    snapshot.pending_offline_reward = OfflineReward(300, 2, 93600.0, longest_absence=46800.0)
    decoded = loads(dumps(snapshot), _make_catalog(), GardenConfig())
    assert decoded.pending_offline_reward.longest_absence == 46800.0


def test_pending_longest_absence_defaults_to_elapsed():
    data = _raw(_make_snapshot())
    del data["pending_offline_reward"]["longest_absence"]
    snapshot = loads(_encode(data), _make_catalog(), GardenConfig())
    assert snapshot.pending_offline_reward.longest_absence == 7200.0


def test_file_slots_failed_write_leaves_no_temp_file(tmp_path, monkeypatch):
    slots = FileSlots(tmp_path)
    slots.write("a", b"old")

    def broken_fsync(fd):
        raise OSError("disk full")

    monkeypatch.setattr("idlegarden.store.os.fsync", broken_fsync)
    with pytest.raises(OSError):
        slots.write("a", b"new")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a"]
    assert slots.read("a") == b"old"
