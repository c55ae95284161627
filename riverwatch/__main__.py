"""Entry point for ``python -m riverwatch``.

Loads a map image and a YAML config, runs the simulation headless for a
fixed number of ticks, and logs field statistics and every ecosystem
state transition.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from riverwatch.ecosystem.health import EcosystemState
from riverwatch.grid.image_loader import load_image
from riverwatch.logging_config import configure_logging
from riverwatch.simulation.config import SimulationConfig
from riverwatch.simulation.engine import Simulation

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("riverwatch")


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, build the simulation, and run it."""
    parser = argparse.ArgumentParser(
        prog="riverwatch",
        description="Riverwatch - water pollution and ecosystem health simulator",
    )
    parser.add_argument(
        "map_image",
        type=pathlib.Path,
        help="Map image; blue-dominant tiles are treated as water",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=600,
        help="Number of ticks to simulate (default: 600)",
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=60,
        help="Log statistics every N ticks (default: 60)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $RIVERWATCH_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    config = SimulationConfig.from_yaml(args.config)
    sim = Simulation.from_config(config, load_image(args.map_image))

    def on_transition(
        new_state: EcosystemState,
        old_state: EcosystemState,
        score: float,
    ) -> None:
        logger.warning(
            "Tick %d: ecosystem %s -> %s (score %.1f)",
            sim.tick,
            old_state.value,
            new_state.value,
            score,
        )

    sim.evaluator.on_state_change(on_transition)

    for _ in range(args.ticks):
        report = sim.run(1)
        if report is not None and report.tick % max(1, args.report_every) == 0:
            stats = report.statistics
            logger.info(
                "Tick %d: pollution %.1f%% | field health %.1f%% | "
                "organisms %d/%d | %s (%.0f) | trend %s",
                report.tick,
                stats.mean_pollution_percent,
                stats.field_health_percent,
                report.live_count,
                report.total_count,
                report.state.value,
                report.health_score,
                report.trend.value,
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
