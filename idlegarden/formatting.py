from __future__ import annotations

from typing import TYPE_CHECKING

from idlegarden.state import OccupiedPlot

if TYPE_CHECKING:
    from idlegarden.engine import GardenEngine
    from idlegarden.report import SimulationReport


def format_number(number: int) -> str:
    """Abbreviate large amounts: 1500 -> 1.5K, 2_000_000 -> 2.0M."""
    if number >= 1_000_000_000:
        return f"{number / 1_000_000_000:.1f}B"
    if number >= 1_000_000:
        return f"{number / 1_000_000:.1f}M"
    if number >= 1_000:
        return f"{number / 1_000:.1f}K"
    return str(number)


def format_duration(seconds: float) -> str:
    seconds = int(max(0, seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_status(engine: GardenEngine, now: float) -> str:
    """Plain-text overview of a garden for the console."""
    state = engine.current_state()
    lines: list[str] = []

    lines.append(f"Currency: {format_number(state.currency)}"
                 f"  Premium: {format_number(state.premium_currency)}")
    lines.append(f"Lifetime earned: {format_number(state.lifetime_earned)}"
                 f"  Harvests: {state.plants_harvested}")
    lines.append(f"Prestige: {state.prestige_count} resets, "
                 f"{state.prestige_points} points")
    lines.append("")

    lines.append(f"PLOTS ({state.occupied_count()}/{engine.max_plot_capacity()}):")
    for i, plot in enumerate(state.plots):
        if isinstance(plot, OccupiedPlot):
            if plot.ready:
                status = "ready"
            else:
                status = format_duration(engine.time_until_ready(i, now) or 0.0)
            lines.append(f"  [{i}] {plot.plant_id:.<24s} {status}")
        else:
            lines.append(f"  [{i}] (empty)")
    lines.append("")

    lines.append("UPGRADES:")
    for udef in engine.catalog.upgrades:
        level = engine.upgrade_level(udef.id)
        cost = engine.upgrade_cost(udef.id)
        cost_str = format_number(cost) if cost is not None else "max"
        lines.append(f"  {udef.display_name:.<24s} {level}/{udef.max_level}  next: {cost_str}")
    lines.append("")

    book = engine.achievements
    lines.append(f"ACHIEVEMENTS: {book.unlocked_count()}/{book.total_count()}")

    pending = engine.pending_offline_reward()
    if pending is not None:
        lines.append("")
        lines.append(
            f"Offline reward waiting: {format_number(pending.currency_earned)} "
            f"from {pending.plants_matured} plants over {format_duration(pending.elapsed)}"
        )
    return "\n".join(lines)


def format_text_report(report: SimulationReport) -> str:
    """Format a simulation report for console output."""
    lines: list[str] = []

    lines.append("=" * 30 + " Idle Garden Simulation Report " + "=" * 30)
    lines.append(f"Strategy: {report.strategy_description}")
    lines.append(f"Duration: {format_duration(report.total_time)}")
    lines.append(f"Final currency: {format_number(report.final_currency)}")
    lines.append(f"Total earned: {format_number(report.total_earned)} "
                 f"({report.harvests} manual harvests)")
    lines.append("")

    if report.achievements:
        lines.append("ACHIEVEMENTS:")
        for a in report.achievements:
            lines.append(f"  * {a.achievement_id:.<30s} {format_duration(a.time)}")
        lines.append("")

    lines.append("PURCHASES:")
    lines.append(f"  Total: {len(report.purchases)}")
    lines.append(f"  Max gap: {report.max_purchase_gap:.1f}s")
    lines.append(f"  Mean gap: {report.mean_purchase_gap:.1f}s")

    if report.offline:
        lines.append("")
        lines.append("OFFLINE:")
        lines.append(f"  Sessions: {len(report.offline)}")
        lines.append(f"  Share of earnings: {report.offline_share():.1%}")

    if report.prestiges:
        lines.append("")
        lines.append("PRESTIGE:")
        for p in report.prestiges:
            lines.append(
                f"  +{p.points_gained} at {format_duration(p.time)} "
                f"(run {format_duration(p.run_duration)})"
            )

    return "\n".join(lines)
