"""Pollution sources and cleanup devices.

These are the stimulus producers that feed the field each tick.  They
are positioned in world coordinates, convert to tile indices through the
grid, and only ever touch the field through ``add_pollution`` and
``remove_pollution``.

- ``PointSource``: an industrial outfall dumping into one tile.
- ``RunoffSource``: agricultural runoff spread thinly over nearby water.
- ``CleanupDevice``: a filter pulling pollution out of a square area.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from riverwatch.pollution.field import PollutionField


def _clamp_level(level: float) -> float:
    return min(100.0, max(0.0, level))


@dataclass
class PointSource:
    """A single-pipe discharge into the nearest water tile.

    Attributes:
        x: World-space x position.
        y: World-space y position.
        rate: Pollution added per tick.
        search_radius: Half-width of the square searched for water.
    """

    x: float
    y: float
    rate: float = 0.05
    search_radius: int = 2

    def set_output_level(self, level: float) -> None:
        """Set discharge from a 0-100 policy level (100 = 0.05 per tick)."""
        self.rate = 0.05 * _clamp_level(level) / 100.0

    def target(self, field: PollutionField) -> tuple[int, int] | None:
        """Return the first water tile found around the source.

        The search runs row by row from the top-left of the window, so
        the chosen tile is not necessarily the closest one.
        """
        grid = field.grid
        col, row = grid.tile_at_world(self.x, self.y)
        r = self.search_radius
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if grid.is_water(col + dx, row + dy):
                    return col + dx, row + dy
        return None

    def apply(self, field: PollutionField) -> None:
        """Discharge this tick's pollution."""
        target = self.target(field)
        if target is not None:
            field.add_pollution(target[0], target[1], self.rate)


@dataclass
class RunoffSource:
    """Diffuse runoff shared across water tiles near the source.

    Attributes:
        x: World-space x position.
        y: World-space y position.
        rate: Total pollution released per tick before sharing.
        radius: Half-width of the square that receives runoff.
        max_divisor: Cap on how many ways the rate is split.
    """

    x: float
    y: float
    rate: float = 0.02
    radius: int = 3
    max_divisor: int = 5

    def set_output_level(self, level: float) -> None:
        """Set intensity from 0 (organic, 0.01) to 100 (intensive, 0.05)."""
        self.rate = 0.01 + 0.04 * _clamp_level(level) / 100.0

    def apply(self, field: PollutionField) -> None:
        """Spread this tick's runoff over every water tile in range.

        Each tile receives ``rate / min(n, max_divisor)``, so a source
        near a lot of water releases more in total than ``rate``.
        """
        grid = field.grid
        col, row = grid.tile_at_world(self.x, self.y)
        r = self.radius
        targets = [
            (col + dx, row + dy)
            for dy in range(-r, r + 1)
            for dx in range(-r, r + 1)
            if grid.is_water(col + dx, row + dy)
        ]
        if not targets:
            return
        per_cell = self.rate / min(len(targets), self.max_divisor)
        for tc, tr in targets:
            field.add_pollution(tc, tr, per_cell)


@dataclass
class CleanupDevice:
    """A filter removing pollution from a square area every tick.

    Attributes:
        x: World-space x position.
        y: World-space y position.
        strength: Pollution removed from each tile per tick.
        radius: Half-width of the square that is cleaned.
    """

    x: float
    y: float
    strength: float = 0.05
    radius: int = 3

    def apply(self, field: PollutionField) -> None:
        """Remove pollution from every tile in range."""
        col, row = field.grid.tile_at_world(self.x, self.y)
        r = self.radius
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                field.remove_pollution(col + dx, row + dy, self.strength)
