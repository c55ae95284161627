"""Simulation — explicit state bundle and the per-tick update.

All mutable simulation state lives in a ``Simulation`` instance that is
handed to ``run_tick``; nothing is module-global, so two runs built from
the same config and image evolve identically.  Each tick follows the
canonical order:

1. Pollution sources discharge into the field
2. Cleanup devices remove pollution
3. The field steps once (residue update + diffusion)
4. Organisms take damage and move
5. Field statistics and population metrics feed the health evaluator
6. The pollution trend is sampled
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from riverwatch.ecosystem.health import EcosystemHealthEvaluator, EcosystemState
from riverwatch.ecosystem.organisms import Bounds, Population
from riverwatch.ecosystem.reporting import PollutionTrend, Trend
from riverwatch.errors import ConfigError
from riverwatch.grid.spatial_grid import SpatialGrid
from riverwatch.pollution.field import FieldStatistics, PollutionField
from riverwatch.pollution.sources import CleanupDevice, PointSource, RunoffSource
from riverwatch.simulation.config import SimulationConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickReport:
    """What one tick produced, for logging and UI layers.

    Attributes:
        tick: Tick number just completed (1-based).
        statistics: Field statistics after the step.
        health_score: Health score computed this tick.
        state: Ecosystem state after this tick.
        trend: Current pollution trend.
        live_count: Living organisms.
        total_count: Organisms ever spawned.
    """

    tick: int
    statistics: FieldStatistics
    health_score: float
    state: EcosystemState
    trend: Trend
    live_count: int
    total_count: int


@dataclass
class Simulation:
    """Everything one simulation run mutates.

    Attributes:
        grid: The water/land grid.
        pollution_field: Pollution dynamics over the grid.
        evaluator: Ecosystem health score and state.
        population: Organisms living in the water.
        point_sources: Industrial outfalls.
        runoff_sources: Agricultural runoff sources.
        cleanup_devices: Filters.
        trend: Rolling pollution trend.
        rng: Seeded random generator.
        tick: Number of ticks completed.
    """

    grid: SpatialGrid
    pollution_field: PollutionField
    evaluator: EcosystemHealthEvaluator = field(default_factory=EcosystemHealthEvaluator)
    population: Population = field(default_factory=Population)
    point_sources: list[PointSource] = field(default_factory=list)
    runoff_sources: list[RunoffSource] = field(default_factory=list)
    cleanup_devices: list[CleanupDevice] = field(default_factory=list)
    trend: PollutionTrend = field(default_factory=PollutionTrend)
    rng: Generator = field(default_factory=lambda: np.random.default_rng(42))
    tick: int = 0

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        image: NDArray[np.uint8],
    ) -> Simulation:
        """Build a simulation from configuration and a map image.

        Args:
            config: Loaded simulation configuration.
            image: Map pixels shaped ``(height, width, 3|4)``.

        Returns:
            A ready-to-run simulation at tick 0.

        Raises:
            InvalidImageError: If the image is empty.
            ConfigError: If a source, device or spawn area entry is
                malformed.
        """
        grid = SpatialGrid.from_image(image, tile_size=config.tile_size)
        pollution_field = PollutionField(
            grid=grid,
            diffusion_rate=config.diffusion_rate,
            residue_accrual_rate=config.residue_accrual_rate,
            residue_recovery_rate=config.residue_recovery_rate,
            high_threshold=config.high_threshold,
            low_threshold=config.low_threshold,
            diffusion_floor=config.diffusion_floor,
            diffusion_mode=config.mode,
        )
        sim = cls(
            grid=grid,
            pollution_field=pollution_field,
            point_sources=[
                _build_source(PointSource, spec) for spec in config.point_sources
            ],
            runoff_sources=[
                _build_source(RunoffSource, spec) for spec in config.runoff_sources
            ],
            cleanup_devices=[
                _build_source(CleanupDevice, spec) for spec in config.cleanup_devices
            ],
            trend=PollutionTrend(sample_interval=config.trend_sample_interval),
            rng=np.random.default_rng(config.seed),
        )
        sim.spawn_organisms(config.initial_organisms)
        for area in config.spawn_areas:
            _spawn_area(sim, area)
        return sim

    def spawn_organisms(self, count: int) -> None:
        """Place ``count`` organisms at the centres of random water tiles.

        These organisms may roam the whole map.

        Args:
            count: Number of organisms to spawn.
        """
        cells = list(self.grid.water_cells())
        if not cells:
            if count:
                logger.warning("No water tiles; skipping %d organisms", count)
            return
        size = self.grid.tile_size
        bounds = Bounds(
            x=0.0,
            y=0.0,
            width=float(self.grid.width * size),
            height=float(self.grid.height * size),
        )
        half = size / 2
        for _ in range(count):
            cell = cells[int(self.rng.integers(0, len(cells)))]
            self.population.spawn(
                x=cell.world_x + half,
                y=cell.world_y + half,
                bounds=bounds,
            )

    def spawn_in_area(self, x: float, y: float, radius: float, count: int) -> int:
        """Scatter up to ``count`` organisms over a circular pond.

        Each attempt draws a uniform point in the circle; points that fall
        on land are dropped rather than retried.  Every organism spawned
        here is confined to the square bounding the circle.

        Args:
            x: Circle centre, world units.
            y: Circle centre, world units.
            radius: Circle radius, world units.
            count: Number of placement attempts.

        Returns:
            How many organisms were actually spawned.
        """
        bounds = Bounds(x=x - radius, y=y - radius, width=radius * 2, height=radius * 2)
        spawned = 0
        for _ in range(count):
            angle = float(self.rng.uniform(0.0, 2 * math.pi))
            r = math.sqrt(float(self.rng.random())) * radius
            px = x + r * math.cos(angle)
            py = y + r * math.sin(angle)
            if self.grid.is_water(*self.grid.tile_at_world(px, py)):
                self.population.spawn(x=px, y=py, bounds=bounds)
                spawned += 1
        if spawned < count:
            logger.debug(
                "Spawn area (%.0f, %.0f): %d of %d landed on water",
                x,
                y,
                spawned,
                count,
            )
        return spawned

    def run(self, ticks: int) -> TickReport | None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.

        Returns:
            The report of the last tick, or None if ``ticks`` is 0.
        """
        report = None
        for _ in range(ticks):
            report = run_tick(self)
        return report


def _build_source(cls: type[Any], spec: dict[str, Any]) -> Any:
    """Instantiate a source or device from a config mapping.

    A ``level`` key is applied through ``set_output_level`` after
    construction instead of being passed to the constructor.

    Raises:
        ConfigError: If the entry is not a mapping, has unknown or
            missing keys, or carries a level that cannot be applied.
    """
    try:
        params = dict(spec)
        level = params.pop("level", None)
        source = cls(**params)
        if level is not None and hasattr(source, "set_output_level"):
            source.set_output_level(level)
    except (TypeError, ValueError) as e:
        msg = f"invalid {cls.__name__} entry: {spec!r}"
        raise ConfigError(msg) from e
    if level is not None and not hasattr(source, "set_output_level"):
        msg = f"{cls.__name__} does not take an output level: {spec!r}"
        raise ConfigError(msg)
    return source


def _spawn_area(sim: Simulation, spec: dict[str, Any]) -> None:
    """Spawn the organisms described by one ``spawn_areas`` entry.

    Raises:
        ConfigError: If the entry is malformed.
    """
    try:
        x, y = float(spec["x"]), float(spec["y"])
        radius, count = float(spec["radius"]), int(spec["count"])
    except (KeyError, TypeError, ValueError) as e:
        msg = f"invalid spawn area entry: {spec!r}"
        raise ConfigError(msg) from e
    if radius <= 0 or count < 0:
        msg = f"spawn area needs radius > 0 and count >= 0: {spec!r}"
        raise ConfigError(msg)
    sim.spawn_in_area(x, y, radius, count)


def run_tick(sim: Simulation, dt: float = 1.0) -> TickReport:
    """Advance ``sim`` by one tick in canonical order.

    Args:
        sim: The simulation state to advance.
        dt: Time step passed to organism movement.

    Returns:
        A report of the completed tick.
    """
    pollution_field = sim.pollution_field

    # 1-2. Stimuli
    for source in sim.point_sources:
        source.apply(pollution_field)
    for runoff in sim.runoff_sources:
        runoff.apply(pollution_field)
    for device in sim.cleanup_devices:
        device.apply(pollution_field)

    # 3. Field dynamics
    pollution_field.step()

    # 4. Organisms
    sim.population.update(pollution_field, sim.rng, dt)

    # 5. Health
    stats = pollution_field.get_statistics()
    score = sim.evaluator.calculate_health(sim.population.metrics(stats))
    sim.evaluator.update_state()

    sim.tick += 1

    # 6. Trend
    sim.trend.observe(sim.tick, stats.mean_pollution_percent)

    logger.debug(
        "tick=%d pollution=%.2f%% residue=%.2f%% score=%.1f state=%s",
        sim.tick,
        stats.mean_pollution_percent,
        stats.mean_residue_percent,
        score,
        sim.evaluator.current_state.name,
    )
    return TickReport(
        tick=sim.tick,
        statistics=stats,
        health_score=score,
        state=sim.evaluator.current_state,
        trend=sim.trend.trend,
        live_count=sim.population.live_count,
        total_count=sim.population.total_count,
    )
