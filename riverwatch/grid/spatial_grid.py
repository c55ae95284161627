"""SpatialGrid — water/land classification of the map surface.

The grid is built once from a source image: each ``tile_size`` square is
classified as water or land by sampling its centre pixel.  Water tiles
carry two scalar layers (active pollution and accumulated residue) stored
as NumPy arrays; land tiles carry nothing.  The classification and the
grid dimensions never change after construction.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from riverwatch.errors import InvalidImageError
from riverwatch.grid.cell import WaterCell

logger = logging.getLogger(__name__)

# Minimum blue channel value (8-bit) for a pixel to count as water
WATER_BLUE_THRESHOLD = 100

# Cardinal offsets in sweep order: north, south, west, east
CARDINAL_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def is_water_colour(r: Any, g: Any, b: Any) -> Any:
    """Return True where an 8-bit RGB colour reads as water.

    Blue must dominate both other channels and exceed an absolute
    brightness threshold so that dark shadows are not mistaken for water.
    Works on plain ints and elementwise on NumPy channel arrays alike;
    arrays must be signed or wider than 8 bits.
    """
    return (b > r) & (b > g) & (b > WATER_BLUE_THRESHOLD)


def classify_image(image: NDArray[np.uint8], tile_size: int) -> NDArray[np.bool_]:
    """Build a water mask by sampling the centre pixel of every tile.

    Args:
        image: Pixel array shaped ``(height, width, channels)`` with at
            least three 8-bit colour channels (RGB or RGBA).
        tile_size: Edge length of one tile in pixels.

    Returns:
        Boolean array shaped ``(ceil(h / tile_size), ceil(w / tile_size))``.

    Raises:
        InvalidImageError: If the image is empty or not an RGB(A) array.
    """
    if image.ndim != 3 or image.shape[2] < 3:
        msg = f"expected an (h, w, 3|4) pixel array, got shape {image.shape}"
        raise InvalidImageError(msg)
    img_h, img_w = image.shape[0], image.shape[1]
    if img_w == 0 or img_h == 0:
        msg = f"image has zero size ({img_w}x{img_h})"
        raise InvalidImageError(msg)

    width = math.ceil(img_w / tile_size)
    height = math.ceil(img_h / tile_size)

    # Tile centres, clamped so partial edge tiles sample their last pixel
    half = tile_size // 2
    xs = np.minimum(np.arange(width) * tile_size + half, img_w - 1)
    ys = np.minimum(np.arange(height) * tile_size + half, img_h - 1)
    samples = image[np.ix_(ys, xs)].astype(np.int16)

    return is_water_colour(samples[..., 0], samples[..., 1], samples[..., 2])


@dataclass(eq=False)
class SpatialGrid:
    """A fixed-resolution water/land grid with per-tile pollution state.

    Attributes:
        water: Boolean mask indexed as ``water[row, col]``.  Read-only.
        tile_size: Edge length of one tile in world units (pixels).
        width: Number of columns.
        height: Number of rows.
        pollution: Active pollution per tile (0.0 on land).
        residue: Accumulated residue per tile (0.0 on land).
    """

    water: NDArray[np.bool_]
    tile_size: int = 8
    width: int = field(init=False)
    height: int = field(init=False)
    pollution: NDArray[np.float64] = field(init=False, repr=False)
    residue: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Freeze the classification and allocate zeroed numeric layers."""
        if self.tile_size <= 0:
            msg = f"tile_size must be positive, got {self.tile_size}"
            raise ValueError(msg)
        self.water = np.array(self.water, dtype=np.bool_)
        if self.water.ndim != 2:
            msg = f"water mask must be 2-D, got shape {self.water.shape}"
            raise ValueError(msg)
        self.water.setflags(write=False)
        self.height, self.width = self.water.shape
        self.pollution = np.zeros((self.height, self.width), dtype=np.float64)
        self.residue = np.zeros((self.height, self.width), dtype=np.float64)

    @classmethod
    def from_image(cls, image: NDArray[np.uint8], tile_size: int = 8) -> SpatialGrid:
        """Classify an image into a grid of ``tile_size`` tiles.

        Args:
            image: Pixel array shaped ``(height, width, 3|4)``.
            tile_size: Edge length of one tile in pixels.

        Returns:
            A new grid with all water tiles at zero pollution and residue.

        Raises:
            InvalidImageError: If the image has zero width or height.
        """
        if tile_size <= 0:
            msg = f"tile_size must be positive, got {tile_size}"
            raise ValueError(msg)
        grid = cls(water=classify_image(np.asarray(image), tile_size), tile_size=tile_size)
        logger.info(
            "Grid initialised: %dx%d tiles (%d water) at tile size %d",
            grid.width,
            grid.height,
            grid.water_count,
            tile_size,
        )
        return grid

    @property
    def water_count(self) -> int:
        """Number of water tiles."""
        return int(np.count_nonzero(self.water))

    def in_bounds(self, col: int, row: int) -> bool:
        """Return True if ``(col, row)`` lies inside the grid."""
        return 0 <= col < self.width and 0 <= row < self.height

    def is_water(self, col: int, row: int) -> bool:
        """Return True if ``(col, row)`` is a water tile.

        Out-of-range coordinates are reported as land rather than raising.
        """
        return self.in_bounds(col, row) and bool(self.water[row, col])

    def get_cell(self, col: int, row: int) -> WaterCell | None:
        """Return a handle to the water tile at ``(col, row)``.

        Returns:
            The cell handle, or None for land and out-of-range coordinates.
        """
        if not self.is_water(col, row):
            return None
        return WaterCell(grid=self, col=col, row=row)

    def water_cells(self) -> Iterator[WaterCell]:
        """Yield every water tile in row-major order."""
        for row in range(self.height):
            for col in range(self.width):
                if self.water[row, col]:
                    yield WaterCell(grid=self, col=col, row=row)

    def tile_at_world(self, x: float, y: float) -> tuple[int, int]:
        """Convert a world-space position to ``(col, row)`` tile indices.

        The result may be out of range; callers pass it straight to the
        bounds-checked query and mutation methods.
        """
        return math.floor(x / self.tile_size), math.floor(y / self.tile_size)
