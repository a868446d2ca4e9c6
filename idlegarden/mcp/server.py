"""MCP server wrapping GardenEngine for interactive AI playtesting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mcp.server.fastmcp import FastMCP

from idlegarden.catalog import Catalog
from idlegarden.config import GardenConfig
from idlegarden.engine import GardenEngine
from idlegarden.simulation import SimulatedClock
from idlegarden.state import OccupiedPlot
from idlegarden.store import MemorySlots, PersistenceStore

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400
# Maximum seconds per go_offline() call (48 hours, beyond which rewards are void)
_MAX_OFFLINE = 2 * 86400


@dataclass
class _GardenHolder:
    """Holds the catalog, config and the active engine with its clock."""

    catalog: Catalog
    config: GardenConfig
    clock: SimulatedClock
    engine: GardenEngine
    _achievements_seen: set[str] = field(default_factory=set)


def _new_engine(catalog: Catalog, config: GardenConfig, clock: SimulatedClock) -> GardenEngine:
    store = PersistenceStore(catalog, config, MemorySlots())
    return GardenEngine(catalog, config, store=store, clock=clock)


def _make_holder(catalog: Catalog, config: GardenConfig | None = None) -> _GardenHolder:
    config = config if config is not None else GardenConfig()
    clock = SimulatedClock()
    return _GardenHolder(
        catalog=catalog,
        config=config,
        clock=clock,
        engine=_new_engine(catalog, config, clock),
    )


def _failure(result) -> dict[str, Any]:
    return {"success": False, "reason": result.reason.value if result.reason else ""}


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_catalog(holder: _GardenHolder) -> dict[str, Any]:
    return {
        "plants": [
            {
                "id": p.id,
                "display_name": p.display_name,
                "rarity": p.rarity.name,
                "growth_duration": p.growth_duration,
                "yield_per_cycle": round(p.base_yield_per_cycle, 2),
                "unlock_threshold": p.unlock_threshold,
            }
            for p in holder.catalog.plants
        ],
        "upgrades": [
            {
                "id": u.id,
                "display_name": u.display_name,
                "kind": u.kind.value,
                "max_level": u.max_level,
                "description": u.description,
            }
            for u in holder.catalog.upgrades
        ],
    }


def _tool_get_state(holder: _GardenHolder) -> dict[str, Any]:
    engine = holder.engine
    state = engine.current_state()
    now = holder.clock()
    plots = []
    for i, plot in enumerate(state.plots):
        if isinstance(plot, OccupiedPlot):
            plots.append({
                "index": i,
                "plant_id": plot.plant_id,
                "ready": plot.ready,
                "seconds_left": round(engine.time_until_ready(i, now) or 0.0, 1),
            })
        else:
            plots.append({"index": i, "plant_id": None})
    pending = engine.pending_offline_reward()
    return {
        "time": now,
        "currency": state.currency,
        "premium_currency": state.premium_currency,
        "lifetime_earned": state.lifetime_earned,
        "plots": plots,
        "max_plot_capacity": engine.max_plot_capacity(),
        "upgrades": {
            u.id: {"level": state.upgrade_level(u.id), "next_cost": engine.upgrade_cost(u.id)}
            for u in holder.catalog.upgrades
        },
        "prestige_count": state.prestige_count,
        "prestige_points": state.prestige_points,
        "can_prestige": engine.can_prestige(),
        "pending_offline_reward": pending.to_dict() if pending else None,
    }


def _tool_plant(holder: _GardenHolder, plant_id: str, plot_index: int) -> dict[str, Any]:
    result = holder.engine.plant(plant_id, plot_index)
    if not result:
        return _failure(result)
    return {"success": True, "plant_id": plant_id, "plot_index": plot_index}


def _tool_harvest(holder: _GardenHolder, plot_index: int | None = None) -> dict[str, Any]:
    engine = holder.engine
    if plot_index is not None:
        amount = engine.harvest(plot_index)
        return {"harvested": amount, "plots": 1 if amount else 0}
    total = 0
    count = 0
    for i, plot in engine.current_state().occupied_plots():
        if plot.ready:
            amount = engine.harvest(i)
            total += amount
            count += 1 if amount else 0
    return {"harvested": total, "plots": count}


def _tool_purchase_upgrade(holder: _GardenHolder, upgrade_id: str) -> dict[str, Any]:
    result = holder.engine.purchase_upgrade(upgrade_id)
    if not result:
        return _failure(result)
    return {
        "success": True,
        "upgrade_id": upgrade_id,
        "cost_paid": result.value,
        "new_level": holder.engine.upgrade_level(upgrade_id),
    }


def _tool_wait(holder: _GardenHolder, seconds: float) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}

    engine = holder.engine
    interval = holder.config.tick_interval
    new_achievements: list[str] = []
    remaining = seconds
    while remaining > 0:
        dt = min(interval, remaining)
        holder.clock.advance(dt)
        evaluation = engine.step()
        new_achievements.extend(evaluation.newly_unlocked)
        remaining -= dt
    holder._achievements_seen.update(new_achievements)

    state = engine.current_state()
    result: dict[str, Any] = {
        "waited": seconds,
        "time": holder.clock(),
        "currency": state.currency,
        "ready_plots": [i for i, p in state.occupied_plots() if p.ready],
    }
    if new_achievements:
        result["new_achievements"] = new_achievements
    return result


def _tool_go_offline(holder: _GardenHolder, seconds: float) -> dict[str, Any]:
    """Save, jump the clock without ticking, and reload as a returning player."""
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_OFFLINE:
        return {"error": f"Cannot go offline for more than {_MAX_OFFLINE} seconds per call"}
    engine = holder.engine
    engine.save()
    holder.clock.advance(seconds)
    engine.load()
    pending = engine.pending_offline_reward()
    return {
        "away": seconds,
        "pending_offline_reward": pending.to_dict() if pending else None,
    }


def _tool_claim_offline_reward(holder: _GardenHolder) -> dict[str, Any]:
    result = holder.engine.apply_offline_reward()
    if not result:
        return _failure(result)
    return {"success": True, "currency_earned": result.value}


def _tool_prestige(holder: _GardenHolder) -> dict[str, Any]:
    result = holder.engine.perform_prestige()
    if not result:
        return _failure(result)
    state = holder.engine.current_state()
    return {
        "success": True,
        "points_gained": result.points_gained,
        "prestige_points": state.prestige_points,
        "prestige_count": state.prestige_count,
    }


def _tool_get_achievements(holder: _GardenHolder) -> dict[str, Any]:
    book = holder.engine.achievements
    records = book.all_records()
    return {
        "unlocked": book.unlocked_count(),
        "total": book.total_count(),
        "achievements": [
            {
                "id": d.id,
                "title": d.title,
                "description": d.description,
                "reward": d.reward,
                "unlocked": records[d.id].unlocked,
                "progress": round(records[d.id].progress, 3),
            }
            for d in book.definitions
        ],
    }


def _tool_export_save(holder: _GardenHolder) -> dict[str, Any]:
    return {"save": holder.engine.export_save()}


def _tool_import_save(holder: _GardenHolder, blob: str) -> dict[str, Any]:
    result = holder.engine.import_save(blob)
    if not result:
        return _failure(result)
    return {"success": True}


def _tool_new_game(holder: _GardenHolder) -> dict[str, Any]:
    holder.engine.reset_all()
    holder._achievements_seen = set()
    return {"success": True, "message": "Garden reset to initial state"}


# ── Server factory ──────────────────────────────────────────────────


def create_server(catalog: Catalog, config: GardenConfig | None = None) -> FastMCP:
    """Create an MCP server wrapping a GardenEngine on a simulated clock."""
    holder = _make_holder(catalog, config)

    mcp = FastMCP(name=f"Idle Garden: {holder.config.name}")

    @mcp.tool()
    def get_catalog() -> dict[str, Any]:
        """Get static plant and upgrade definitions."""
        return _tool_get_catalog(holder)

    @mcp.tool()
    def get_state() -> dict[str, Any]:
        """Get current garden snapshot: balances, plots, upgrade levels, prestige, pending offline reward."""
        return _tool_get_state(holder)

    @mcp.tool()
    def plant(plant_id: str, plot_index: int) -> dict[str, Any]:
        """Plant a seed in an empty plot. Returns success/failure with reason."""
        return _tool_plant(holder, plant_id, plot_index)

    @mcp.tool()
    def harvest(plot_index: int | None = None) -> dict[str, Any]:
        """Harvest one plot, or every ready plot when plot_index is omitted."""
        return _tool_harvest(holder, plot_index)

    @mcp.tool()
    def purchase_upgrade(upgrade_id: str) -> dict[str, Any]:
        """Buy the next level of an upgrade."""
        return _tool_purchase_upgrade(holder, upgrade_id)

    @mcp.tool()
    def wait(seconds: float) -> dict[str, Any]:
        """Advance game time while playing (max 86400). Time is subdivided into ticks."""
        return _tool_wait(holder, seconds)

    @mcp.tool()
    def go_offline(seconds: float) -> dict[str, Any]:
        """Close the game for the given seconds and come back. Reports the offline reward."""
        return _tool_go_offline(holder, seconds)

    @mcp.tool()
    def claim_offline_reward() -> dict[str, Any]:
        """Claim the pending offline reward."""
        return _tool_claim_offline_reward(holder)

    @mcp.tool()
    def prestige() -> dict[str, Any]:
        """Reset the garden for permanent prestige points."""
        return _tool_prestige(holder)

    @mcp.tool()
    def get_achievements() -> dict[str, Any]:
        """List achievements with progress."""
        return _tool_get_achievements(holder)

    @mcp.tool()
    def export_save() -> dict[str, Any]:
        """Get a portable save string."""
        return _tool_export_save(holder)

    @mcp.tool()
    def import_save(blob: str) -> dict[str, Any]:
        """Replace the garden with a portable save string."""
        return _tool_import_save(holder, blob)

    @mcp.tool()
    def new_game() -> dict[str, Any]:
        """Reset the garden to initial state."""
        return _tool_new_game(holder)

    return mcp
