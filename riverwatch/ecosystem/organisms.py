"""Organisms — fish that wander the water and sicken in polluted tiles.

An Organism samples the pollution of the tile under it every tick; above
a tolerance it loses health and slows down.  The Population aggregates
live/total counts and mean health for the health evaluator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from riverwatch.ecosystem.health import HealthMetrics

if TYPE_CHECKING:
    from numpy.random import Generator

    from riverwatch.pollution.field import FieldStatistics, PollutionField

MAX_HEALTH = 100.0
BASE_SPEED = 0.5
MIN_SPEED = 0.1
# Pollution above which an organism takes damage
POLLUTION_TOLERANCE = 0.1
DAMAGE_PER_POLLUTION = 0.1
# Distance at which a movement target counts as reached
ARRIVAL_DISTANCE = 2.0


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned world-space rectangle organisms roam inside."""

    x: float
    y: float
    width: float
    height: float


@dataclass
class Organism:
    """A single fish.

    Attributes:
        x: World-space x position.
        y: World-space y position.
        bounds: Area new movement targets are drawn from.
        health: Current health, 0-100.
        speed: Distance moved per unit time.
        is_dead: Whether the organism has died.
        target: Current movement target, if any.
    """

    x: float
    y: float
    bounds: Bounds
    health: float = MAX_HEALTH
    speed: float = BASE_SPEED
    is_dead: bool = False
    target: tuple[float, float] | None = None

    @property
    def is_alive(self) -> bool:
        """Return True while the organism is alive."""
        return not self.is_dead

    def update(
        self,
        pollution_field: PollutionField,
        rng: Generator,
        dt: float = 1.0,
    ) -> None:
        """Take pollution damage, then move toward the current target.

        Args:
            pollution_field: The pollution field (read only).
            rng: Seeded random generator for target picking.
            dt: Time elapsed since the last update.
        """
        if self.is_dead:
            return

        col, row = pollution_field.grid.tile_at_world(self.x, self.y)
        cell = pollution_field.grid.get_cell(col, row)
        if cell is not None and cell.pollution > POLLUTION_TOLERANCE:
            self.health -= cell.pollution * DAMAGE_PER_POLLUTION
            self.speed = max(MIN_SPEED, BASE_SPEED * (self.health / MAX_HEALTH))
        else:
            self.speed = BASE_SPEED

        if self.health <= 0:
            self.die()
            return

        self._move(pollution_field, rng, dt)

    def die(self) -> None:
        """Mark the organism dead; it stops updating."""
        self.is_dead = True
        self.health = 0.0
        self.speed = 0.0

    def pick_target(self, pollution_field: PollutionField, rng: Generator) -> None:
        """Draw a new target inside the bounds.

        A draw that lands on land is rejected and the organism holds its
        current position until the next pick.
        """
        b = self.bounds
        tx = float(rng.uniform(b.x, b.x + b.width))
        ty = float(rng.uniform(b.y, b.y + b.height))
        col, row = pollution_field.grid.tile_at_world(tx, ty)
        if pollution_field.grid.is_water(col, row):
            self.target = (tx, ty)
        else:
            self.target = (self.x, self.y)

    def _move(
        self,
        pollution_field: PollutionField,
        rng: Generator,
        dt: float,
    ) -> None:
        if self.target is None:
            self.pick_target(pollution_field, rng)
            return
        tx, ty = self.target
        dx, dy = tx - self.x, ty - self.y
        distance = math.hypot(dx, dy)
        if distance < ARRIVAL_DISTANCE:
            self.pick_target(pollution_field, rng)
            return
        step = min(distance, self.speed * dt)
        self.x += dx / distance * step
        self.y += dy / distance * step


@dataclass
class Population:
    """All organisms of a run, alive and dead.

    Attributes:
        organisms: Every organism spawned, in spawn order.
    """

    organisms: list[Organism] = field(default_factory=list)

    def spawn(self, x: float, y: float, bounds: Bounds) -> Organism:
        """Create an organism at ``(x, y)`` and add it to the population."""
        organism = Organism(x=x, y=y, bounds=bounds)
        self.organisms.append(organism)
        return organism

    def update(
        self,
        pollution_field: PollutionField,
        rng: Generator,
        dt: float = 1.0,
    ) -> None:
        """Update every living organism."""
        for organism in self.organisms:
            organism.update(pollution_field, rng, dt)

    @property
    def live_count(self) -> int:
        """Number of living organisms."""
        return sum(1 for o in self.organisms if o.is_alive)

    @property
    def total_count(self) -> int:
        """Number of organisms ever spawned."""
        return len(self.organisms)

    @property
    def mean_health(self) -> float:
        """Mean health of living organisms, 0 if none are alive."""
        alive = [o.health for o in self.organisms if o.is_alive]
        return sum(alive) / len(alive) if alive else 0.0

    def metrics(self, stats: FieldStatistics) -> HealthMetrics:
        """Combine population readings with field statistics.

        Args:
            stats: This tick's field statistics.

        Returns:
            Inputs for ``EcosystemHealthEvaluator.calculate_health``.
        """
        return HealthMetrics(
            live_count=self.live_count,
            total_count=self.total_count,
            mean_organism_health=self.mean_health,
            active_pollution_percent=stats.mean_pollution_percent,
            field_health_percent=stats.field_health_percent,
        )
