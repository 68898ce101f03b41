"""
Ecosystem Simulator: CLI Entry Point

Usage:
    python main.py --config config/default_config.json
    python main.py --ticks 500 --seed 7 --render-every 10
    python main.py --ui
"""

import argparse
import sys
import time
from pathlib import Path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Ecosystem Simulator: genetic agents on a grid world",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --ui                                     Launch Streamlit UI
  python main.py --config config/default_config.json      Run one simulation
  python main.py --ticks 300 --render-every 20            Print the world every 20 ticks
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to JSON config file (default: built-in defaults)",
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch Streamlit web UI (ignores all other options)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Override max ticks",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override random seed (overrides config value)",
    )
    parser.add_argument(
        "--species",
        choices=["rabbit", "fluffles"],
        default=None,
        help="Override the seeded species",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Override output directory",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="No frame rendering and no console event echo",
    )
    parser.add_argument(
        "--render-every",
        type=int,
        default=0,
        metavar="N",
        help="Print the world as text every N ticks (0 = never)",
    )

    return parser.parse_args(argv)


def launch_ui() -> None:
    """Launch the Streamlit web UI."""
    import subprocess
    ui_path = Path(__file__).parent / "ecosim" / "ui" / "app.py"
    if not ui_path.exists():
        print(f"Error: UI app not found at {ui_path}")
        sys.exit(1)
    subprocess.run(
        [
            sys.executable, "-m", "streamlit", "run", str(ui_path),
            "--server.port=8501",
            "--server.headless=true",
            "--browser.gatherUsageStats=false",
        ],
        check=True,
    )


def run_single(
    config_path: str | None = None,
    seed_override: int | None = None,
    max_ticks: int | None = None,
    species: str | None = None,
    output_dir: str | None = None,
    headless: bool = False,
    render_every: int = 0,
) -> None:
    """Run a single simulation."""
    from ecosim.core.config import get_default_config, load_config
    from ecosim.logging.run_manager import RunManager
    from ecosim.simulation.engine import SimulationEngine
    from ecosim.ui.components.frame import render_frame

    config = load_config(config_path) if config_path else get_default_config()

    if seed_override is not None:
        config.world.seed = seed_override
    if max_ticks is not None:
        config.run.max_ticks = max_ticks
    if species is not None:
        config.population.species = species
    if output_dir is not None:
        config.run.output_dir = output_dir
    if headless:
        config.events.console = False
        render_every = 0

    print("[Ecosystem Simulator] Single run")
    print(f"  Config: {config_path or 'defaults'}")
    print(f"  Grid: {config.world.width}x{config.world.height}")
    print(f"  Population: {config.population.initial_count} {config.population.species}")
    print(f"  Seed: {config.world.seed}")
    print(f"  Max Ticks: {config.run.max_ticks}")
    print(f"  Output: {config.run.output_dir}")
    print()

    run_manager = RunManager(config)
    engine = SimulationEngine(config, seed=config.world.seed, event_log=run_manager.event_log)
    engine.initialize()

    start_time = time.time()
    report_every = max(1, config.run.max_ticks // 20)

    def on_tick(tick: int, eng: SimulationEngine) -> None:
        kpis = eng.metrics.get_last()
        if kpis is not None and kpis["tick"] == tick:
            run_manager.log_tick(kpis)

        if render_every and tick % render_every == 0:
            print(render_frame(eng.world, eng.disasters.disaster).to_text())
            print()
        elif tick % report_every == 0 and kpis is not None:
            print(
                f"  Tick {tick:5d} | Pop: {kpis['alive_count']:4d} | "
                f"Pressure: {kpis['pressure']:2d} | Avg Energy: {kpis['avg_energy']:.1f} | "
                f"Disaster: {kpis['disaster_kind']}"
            )

    engine.on_tick = on_tick

    result = engine.run()
    elapsed = time.time() - start_time

    print()
    print("[Result]")
    print(f"  Ticks: {result.total_ticks}")
    print(f"  Final population: {result.final_alive_count}")
    print(f"  Peak population: {result.peak_population}")
    print(f"  Births: {result.total_births}")
    print(f"  Deaths: {result.deaths_by_cause}")
    print(f"  Disasters: {result.disasters_triggered}")
    print(f"  Extinct: {result.extinct}")
    print(f"  Elapsed: {elapsed:.1f}s")

    summary = result.to_dict()
    summary["elapsed_seconds"] = round(elapsed, 2)
    run_manager.finalize(summary)
    print(f"  Output saved to: {run_manager.run_dir}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    if args.ui:
        launch_ui()
        return

    if args.render_every < 0:
        print("Error: --render-every must be >= 0")
        sys.exit(1)

    run_single(
        args.config,
        seed_override=args.seed,
        max_ticks=args.ticks,
        species=args.species,
        output_dir=args.output,
        headless=args.headless,
        render_every=args.render_every,
    )


if __name__ == "__main__":
    main()
