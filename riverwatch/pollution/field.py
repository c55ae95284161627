"""PollutionField — active pollution and residue over the water tiles.

The field owns no storage of its own: it reads and writes the
``pollution`` and ``residue`` layers of a ``SpatialGrid`` it was handed.
It provides point mutation for pollution sources and cleanup devices,
a one-tick ``step()`` that delegates to ``diffusion.py``, and aggregate
statistics for the reporting layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from riverwatch.grid.cell import clamp_unit
from riverwatch.grid.spatial_grid import SpatialGrid

# Above this, four transfers out of one tile can exceed its pollution
MAX_DIFFUSION_RATE = 0.25


class DiffusionMode(Enum):
    """How a tick's transfers see each other.

    IN_PLACE applies each transfer immediately during a row-major sweep,
    so tiles visited later see the updated values.  BUFFERED computes
    every transfer from the state at the start of the tick.
    """

    IN_PLACE = "in_place"
    BUFFERED = "buffered"


@dataclass(frozen=True)
class FieldStatistics:
    """Aggregate readings over all water tiles.

    Attributes:
        water_cell_count: Number of water tiles.
        mean_pollution_percent: Mean active pollution, 0-100.
        mean_residue_percent: Mean residue, 0-100.
    """

    water_cell_count: int = 0
    mean_pollution_percent: float = 0.0
    mean_residue_percent: float = 0.0

    @property
    def field_health_percent(self) -> float:
        """Long-term water health: the inverse of mean residue, 0-100."""
        return max(0.0, 100.0 - self.mean_residue_percent)


@dataclass(eq=False)
class PollutionField:
    """Pollution dynamics layered over a spatial grid's water tiles.

    Attributes:
        grid: The grid whose numeric layers this field mutates.
        diffusion_rate: Fraction of a concentration difference passed to
            a lower neighbour per tick, at most ``MAX_DIFFUSION_RATE``.
        residue_accrual_rate: Residue gained per unit pollution per tick
            while pollution is above ``high_threshold``.
        residue_recovery_rate: Residue lost per tick while pollution is
            below ``low_threshold``.
        high_threshold: Pollution above which residue accrues.
        low_threshold: Pollution below which residue recovers.
        diffusion_floor: Tiles at or below this pollution do not spread.
        diffusion_mode: Sweep semantics, see ``DiffusionMode``.
    """

    grid: SpatialGrid
    diffusion_rate: float = 0.1
    residue_accrual_rate: float = 0.0005
    residue_recovery_rate: float = 0.0002
    high_threshold: float = 0.2
    low_threshold: float = 0.05
    diffusion_floor: float = 0.01
    diffusion_mode: DiffusionMode = DiffusionMode.IN_PLACE

    def __post_init__(self) -> None:
        if not 0.0 <= self.diffusion_rate <= MAX_DIFFUSION_RATE:
            msg = (
                f"diffusion_rate must be within [0, {MAX_DIFFUSION_RATE}], "
                f"got {self.diffusion_rate}"
            )
            raise ValueError(msg)

    def add_pollution(self, col: int, row: int, amount: float) -> None:
        """Add pollution at a tile, clamped to ``[0, 1]``.

        Land and out-of-range tiles are silently ignored so producers
        need not validate their targets.

        Args:
            col: Column index.
            row: Row index.
            amount: Quantity to add.
        """
        if self.grid.is_water(col, row):
            pollution = self.grid.pollution
            pollution[row, col] = clamp_unit(float(pollution[row, col]) + amount)

    def remove_pollution(self, col: int, row: int, amount: float) -> None:
        """Remove pollution at a tile, clamped to ``[0, 1]``.

        Args:
            col: Column index.
            row: Row index.
            amount: Quantity to remove.
        """
        self.add_pollution(col, row, -amount)

    def step(self) -> None:
        """Advance the field by one tick (residue update + diffusion)."""
        from riverwatch.pollution.diffusion import step_field

        step_field(self)

    def get_statistics(self) -> FieldStatistics:
        """Return water-tile count and mean pollution/residue percentages.

        A grid without water yields all-zero statistics.
        """
        water = self.grid.water
        count = int(np.count_nonzero(water))
        if count == 0:
            return FieldStatistics()
        return FieldStatistics(
            water_cell_count=count,
            mean_pollution_percent=float(self.grid.pollution[water].mean()) * 100.0,
            mean_residue_percent=float(self.grid.residue[water].mean()) * 100.0,
        )

    def total_pollution(self) -> float:
        """Sum of active pollution over every water tile."""
        return float(self.grid.pollution[self.grid.water].sum())

    def snapshot(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return read-only copies of the pollution and residue layers.

        Renderers take a snapshot between ticks instead of holding on to
        the live arrays.
        """
        pollution = self.grid.pollution.copy()
        residue = self.grid.residue.copy()
        pollution.setflags(write=False)
        residue.setflags(write=False)
        return pollution, residue
