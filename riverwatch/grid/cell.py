"""WaterCell — a handle onto one water tile of the spatial grid.

The grid keeps all numeric tile state in NumPy arrays so that diffusion
and statistics can run over whole layers.  A ``WaterCell`` is a thin view
that addresses one entry of those arrays and carries the tile's
world-space origin for rendering callers.  Land tiles have no handle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from riverwatch.grid.spatial_grid import SpatialGrid


def clamp_unit(value: float) -> float:
    """Clamp ``value`` into ``[0, 1]``."""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


@dataclass
class WaterCell:
    """Mutable view of a single water tile's numeric state.

    Attributes:
        grid: The grid whose arrays back this cell.
        col: Column index.
        row: Row index.
    """

    grid: SpatialGrid
    col: int
    row: int

    @property
    def world_x(self) -> int:
        """World-space x of the tile's top-left corner."""
        return self.col * self.grid.tile_size

    @property
    def world_y(self) -> int:
        """World-space y of the tile's top-left corner."""
        return self.row * self.grid.tile_size

    @property
    def pollution(self) -> float:
        """Active (diffusing) pollution concentration, 0.0-1.0."""
        return float(self.grid.pollution[self.row, self.col])

    @pollution.setter
    def pollution(self, value: float) -> None:
        self.grid.pollution[self.row, self.col] = clamp_unit(value)

    @property
    def residue(self) -> float:
        """Accumulated long-term damage, 0.0-1.0."""
        return float(self.grid.residue[self.row, self.col])

    @residue.setter
    def residue(self, value: float) -> None:
        self.grid.residue[self.row, self.col] = clamp_unit(value)
