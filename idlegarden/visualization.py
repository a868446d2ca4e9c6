from __future__ import annotations

from idlegarden.report import SimulationReport


def plot_simulation(
    report: SimulationReport,
    output_path: str | None = None,
) -> None:
    """Generate a 2-panel matplotlib chart of a simulation run.

    Requires matplotlib (optional dependency).
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError(
            "matplotlib is required for visualization. "
            "Install with: pip install idlegarden[viz]"
        )

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 9), sharex=True)
    fig.suptitle(f"Idle Garden Simulation — {report.strategy_description}", fontsize=14)

    hours = [s.time / 3600 for s in report.snapshots]

    # 1. Balance and lifetime earnings (log scale)
    ax1.plot(hours, [max(s.currency, 1) for s in report.snapshots], label="currency")
    ax1.plot(hours, [max(s.lifetime_earned, 1) for s in report.snapshots], label="lifetime")
    ax1.set_yscale("log")
    ax1.set_ylabel("Amount")
    ax1.legend()
    for p in report.purchases:
        ax1.axvline(p.time / 3600, color="grey", alpha=0.15, linewidth=0.8)
    for o in report.offline:
        ax1.axvline(o.time / 3600, color="tab:orange", alpha=0.6, linestyle="--")

    # 2. Occupied plots and achievements
    ax2.step(hours, [s.occupied_plots for s in report.snapshots], where="post")
    ax2.set_ylabel("Occupied plots")
    ax2.set_xlabel("Hours")
    for a in report.achievements:
        ax2.annotate(
            a.achievement_id,
            (a.time / 3600, 0),
            rotation=90,
            fontsize=7,
            va="bottom",
        )

    fig.tight_layout()
    if output_path:
        fig.savefig(output_path, dpi=120)
    else:
        plt.show()
    plt.close(fig)
