"""Tests for offline module."""
from idlegarden.catalog import Catalog, PlantDef, Rarity, default_catalog
from idlegarden.config import GardenConfig
from idlegarden.offline import OfflineReconciler, OfflineReward
from idlegarden.state import OccupiedPlot, ProgressionState


def _make_catalog() -> Catalog:
    return Catalog(
        plants=[
            PlantDef("sprout", "Sprout", Rarity.BASIC, base_growth_time=15, base_yield_rate=960),
            PlantDef("oak", "Oak", Rarity.LEGENDARY, base_growth_time=450, base_yield_rate=5),
        ],
        upgrades=default_catalog().upgrades,
    )


def _make_state(*plant_ids: str) -> ProgressionState:
    state = ProgressionState.fresh(GardenConfig(), 0.0)
    for i, plant_id in enumerate(plant_ids):
        state.plots[i] = OccupiedPlot(plant_id, planted_at=0.0)
    return state


def _reconciler(config: GardenConfig | None = None) -> OfflineReconciler:
    return OfflineReconciler(_make_catalog(), config or GardenConfig())


def test_two_hours_with_one_oak():
    state = _make_state("oak")
    reward = _reconciler().compute(state, 7200.0)
    assert reward.currency_earned == 160
    assert reward.plants_matured == 1
    assert reward.elapsed == 7200.0
    assert reward.longest_absence == 7200.0


def test_compute_does_not_mutate_state():
    state = _make_state("oak")
    _reconciler().compute(state, 7200.0)
    plot = state.plots[0]
    assert plot.planted_at == 0.0
    assert plot.ready is False
    assert state.currency == 10


def test_short_absence_is_ignored():
    reward = _reconciler().compute(_make_state("sprout"), 29.0)
    assert reward.is_empty
    assert reward.elapsed == 0.0


def test_implausible_absence_is_ignored():
    reward = _reconciler().compute(_make_state("sprout"), 2 * 86400.0 + 1)
    assert reward.is_empty


def test_clock_moved_backwards_is_ignored():
    state = _make_state("sprout")
    state.last_persisted_at = 1000.0
    assert _reconciler().compute(state, 0.0).is_empty


def test_window_clamped_to_max():
    reward = _reconciler().compute(_make_state("oak"), 30 * 3600.0)
    assert reward.elapsed == 86400.0
    assert reward.currency_earned == 1920


def test_partial_cycle_earns_nothing():
    reward = _reconciler().compute(_make_state("oak"), 3599.0)
    assert reward.currency_earned == 0
    assert reward.plants_matured == 0


def test_multiple_plants():
    reward = _reconciler().compute(_make_state("sprout", "oak"), 7200.0)
    # sprout: 480 cycles * 4 * 0.8, oak: 2 cycles * 100 * 0.8
    assert reward.currency_earned == 1536 + 160
    assert reward.plants_matured == 2


def test_empty_garden():
    reward = _reconciler().compute(_make_state(), 7200.0)
    assert reward.is_empty
    assert reward.elapsed == 7200.0


def test_unknown_plant_is_skipped():
    reward = _reconciler().compute(_make_state("ghost", "oak"), 7200.0)
    assert reward.currency_earned == 160
    assert reward.plants_matured == 1


def test_efficiency_upgrade():
    state = _make_state("oak")
    state.upgrades["offline_efficiency"] = 10
    assert _reconciler().compute(state, 7200.0).currency_earned == 200


def test_growth_speed_does_not_apply_offline():
    state = _make_state("oak")
    state.upgrades["growth_speed"] = 10
    assert _reconciler().compute(state, 7200.0).currency_earned == 160


def test_custom_window():
    config = GardenConfig(max_offline_window=3600.0, min_offline_seconds=0.0)
    reward = _reconciler(config).compute(_make_state("oak"), 2 * 3600.0)
    assert reward.elapsed == 3600.0
    assert reward.currency_earned == 80


def test_merged_with():
    a = OfflineReward(100, 2, elapsed=3600.0, longest_absence=3600.0)
    b = OfflineReward(50, 3, elapsed=60.0, longest_absence=60.0)
    merged = a.merged_with(b)
    assert merged == OfflineReward(150, 3, elapsed=3660.0, longest_absence=3600.0)


def test_none_is_empty():
    assert OfflineReward.none().is_empty
    assert not OfflineReward(currency_earned=1).is_empty
