from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from ..config import AppConfig
from ..sim.core.flock import Flock
from ..sim.systems.boundaries import Wraparound

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "attractors",
    "avg_speed",
    "max_speed",
    "tick_ms",
]


def _format_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.attractors,
        f"{metrics.average_speed:.6f}",
        f"{metrics.max_speed:.6f}",
        f"{tick_ms:.3f}",
    ]


def _summarize(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "mean": 0.0}
    return {"min": min(values), "max": max(values), "mean": sum(values) / len(values)}


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    config: Optional[AppConfig] = None,
    summary_path: Optional[Path] = None,
    summary_window: int = 100,
) -> Flock:
    app_config = config if config is not None else AppConfig()
    if seed is not None:
        app_config.flock.seed = seed
    flock = Flock(app_config.flock)
    if app_config.viewport.wrap:
        viewport = app_config.viewport
        flock.on_tick(Wraparound(viewport.width, viewport.height))

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    tick_ms_values: list[float] = []
    speed_values: list[float] = []
    try:
        for _ in range(steps):
            metrics = flock.tick()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_values.append(tick_ms)
            speed_values.append(metrics.average_speed)
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info("ran %d ticks with %d agents", steps, len(flock.agents))

    if summary_path:
        window = max(1, summary_window)
        payload = {
            "steps": steps,
            "seed": app_config.flock.seed,
            "population": len(flock.agents),
            "attractors": len(flock.attractors),
            "tick_ms": _summarize(tick_ms_values),
            "avg_speed": _summarize(speed_values),
            "tail_window": {
                "window": window,
                "tick_ms": _summarize(tick_ms_values[-window:]),
                "avg_speed": _summarize(speed_values[-window:]),
            },
        }
        Path(summary_path).write_text(json.dumps(payload, indent=2))
    return flock


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Headless boids flock simulation")
    parser.add_argument("--steps", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick metrics")
    parser.add_argument("--summary", type=Path, default=None, help="JSON file to write a run summary")
    parser.add_argument("--summary-window", type=int, default=100)
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = AppConfig.from_yaml(args.config) if args.config else None
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        config=config,
        summary_path=args.summary,
        summary_window=args.summary_window,
    )


if __name__ == "__main__":
    main()
