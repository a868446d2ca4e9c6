from __future__ import annotations

import argparse
import logging
import sys
import time

from idlegarden.catalog import default_catalog
from idlegarden.config import GardenConfig, load_config
from idlegarden.engine import GardenEngine
from idlegarden.formatting import format_number, format_status, format_text_report
from idlegarden.simulation import Simulation
from idlegarden.store import FileSlots, PersistenceStore, default_save_dir
from idlegarden.strategy import GreedyGardener


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idlegarden",
        description="Idle Garden — garden economy CLI",
    )
    parser.add_argument("--save-dir", default=None, help="Directory holding save slots")
    parser.add_argument("--config", default=None, help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show the saved garden")
    sub.add_parser("claim", help="Claim the pending offline reward")

    plant = sub.add_parser("plant", help="Plant a seed")
    plant.add_argument("plant_id")
    plant.add_argument("plot", type=int)

    harvest = sub.add_parser("harvest", help="Harvest ready plots")
    harvest.add_argument("plots", type=int, nargs="*", help="Plot indices (default: all)")

    upgrade = sub.add_parser("upgrade", help="Buy one level of an upgrade")
    upgrade.add_argument("upgrade_id")

    sub.add_parser("prestige", help="Reset the garden for prestige points")

    reset = sub.add_parser("reset", help="Erase all progress")
    reset.add_argument("--yes", action="store_true", help="Confirm the reset")

    sub.add_parser("export", help="Print a portable save string")

    imp = sub.add_parser("import", help="Replace the save with a portable string")
    imp.add_argument("blob")

    sim = sub.add_parser("simulate", help="Run a headless balance simulation")
    sim.add_argument("--duration", type=float, default=6 * 3600, help="Seconds to simulate")
    sim.add_argument("--seed", type=int, default=None, help="Random seed")
    sim.add_argument("--session", type=float, default=None, help="Seconds per play session")
    sim.add_argument("--away", type=float, default=0.0, help="Seconds offline between sessions")
    sim.add_argument("--prestige", action="store_true", help="Prestige whenever eligible")
    sim.add_argument("--no-upgrades", action="store_true", help="Never buy upgrades")
    sim.add_argument("--export-csv", default=None, help="CSV export path prefix")
    sim.add_argument("--export-json", default=None, help="JSON export path")
    sim.add_argument("--plot", default=None, help="Plot output path (PNG)")

    return parser


def build_engine(args: argparse.Namespace, config: GardenConfig) -> GardenEngine:
    save_dir = args.save_dir or default_save_dir()
    catalog = default_catalog()
    store = PersistenceStore(catalog, config, FileSlots(save_dir))
    engine = GardenEngine(catalog, config, store=store)
    engine.load()
    engine.tick()
    return engine


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config) if args.config else GardenConfig()

    if args.command == "simulate":
        _run_simulation(args, config)
        return

    engine = build_engine(args, config)

    if args.command == "status":
        print(format_status(engine, time.time()))
        return

    if args.command == "claim":
        result = engine.apply_offline_reward()
        if result:
            print(f"Claimed {format_number(result.value)}")
        else:
            print(result.reason.value)
            sys.exit(1)

    elif args.command == "plant":
        result = engine.plant(args.plant_id, args.plot)
        if not result:
            print(result.reason.value)
            sys.exit(1)
        print(f"Planted {args.plant_id} in plot {args.plot}")

    elif args.command == "harvest":
        indices = args.plots or range(len(engine.current_state().plots))
        total = sum(engine.harvest(i) for i in indices)
        print(f"Harvested {format_number(total)}")

    elif args.command == "upgrade":
        result = engine.purchase_upgrade(args.upgrade_id)
        if not result:
            print(result.reason.value)
            sys.exit(1)
        print(f"Bought {args.upgrade_id} for {format_number(result.value)}")

    elif args.command == "prestige":
        result = engine.perform_prestige()
        if not result:
            print(result.reason.value)
            sys.exit(1)
        print(f"Prestiged for {result.points_gained} points")

    elif args.command == "reset":
        if not args.yes:
            print("Refusing to reset without --yes")
            sys.exit(1)
        engine.reset_all()
        print("Garden reset")

    elif args.command == "export":
        print(engine.export_save())
        return

    elif args.command == "import":
        result = engine.import_save(args.blob)
        if not result:
            print(result.reason.value)
            sys.exit(1)
        print("Save imported")
        return

    engine.save()


def _run_simulation(args: argparse.Namespace, config: GardenConfig) -> None:
    strategy = GreedyGardener(prestige=args.prestige, buy_upgrades=not args.no_upgrades)
    sim = Simulation(
        catalog=default_catalog(),
        strategy=strategy,
        duration=args.duration,
        config=config,
        seed=args.seed,
        session_length=args.session,
        away_time=args.away,
    )
    report = sim.run()
    print(format_text_report(report))

    if args.export_csv:
        from idlegarden.export import export_csv
        export_csv(report, args.export_csv)
        print(f"\nCSV exported to {args.export_csv}_*.csv")

    if args.export_json:
        from idlegarden.export import export_json
        export_json(report, args.export_json)
        print(f"\nJSON exported to {args.export_json}")

    if args.plot:
        from idlegarden.visualization import plot_simulation
        plot_simulation(report, args.plot)
        print(f"\nPlot saved to {args.plot}")


if __name__ == "__main__":
    main()
