"""Load map images from disk into NumPy pixel arrays.

Pygame decodes the file; the surface is converted to an RGB array in
``(height, width, 3)`` row-major order so it can be handed straight to
``SpatialGrid.from_image``.  No display is required.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pygame
from numpy.typing import NDArray

from riverwatch.errors import InvalidImageError


def load_image(path: str | Path) -> NDArray[np.uint8]:
    """Read an image file into an RGB pixel array.

    Args:
        path: Path to any image format pygame can decode (PNG, BMP, ...).

    Returns:
        A ``uint8`` array shaped ``(height, width, 3)``.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidImageError: If pygame cannot decode the file.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Map image not found: {path}"
        raise FileNotFoundError(msg)
    try:
        surface = pygame.image.load(str(path))
    except pygame.error as e:
        msg = f"Couldn't load image: {path}"
        raise InvalidImageError(msg) from e
    # surfarray is indexed [x, y]; swap to [row, col]
    pixels = pygame.surfarray.array3d(surface)
    return np.ascontiguousarray(pixels.transpose(1, 0, 2), dtype=np.uint8)
