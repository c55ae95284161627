"""Shared fixtures for the Riverwatch test suite."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest
from numpy.random import Generator
from numpy.typing import NDArray

from riverwatch.ecosystem.health import EcosystemHealthEvaluator
from riverwatch.grid.spatial_grid import SpatialGrid
from riverwatch.pollution.field import PollutionField
from riverwatch.simulation.config import SimulationConfig

WATER_RGB = (30, 60, 200)
LAND_RGB = (90, 160, 60)


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def paint_map() -> Callable[[NDArray[np.bool_], int], NDArray[np.uint8]]:
    """Factory turning a tile water mask into an RGB map image."""

    def _paint(mask: NDArray[np.bool_], tile_size: int = 8) -> NDArray[np.uint8]:
        mask = np.asarray(mask, dtype=bool)
        pixels = mask.repeat(tile_size, axis=0).repeat(tile_size, axis=1)
        image = np.empty((*pixels.shape, 3), dtype=np.uint8)
        image[...] = LAND_RGB
        image[pixels] = WATER_RGB
        return image

    return _paint


@pytest.fixture
def water_grid() -> SpatialGrid:
    """A 10x10 grid that is water everywhere."""
    return SpatialGrid(water=np.ones((10, 10), dtype=bool), tile_size=8)


@pytest.fixture
def pond_grid() -> SpatialGrid:
    """A 6x5 grid with a 4x3 pond surrounded by land."""
    water = np.zeros((5, 6), dtype=bool)
    water[1:4, 1:5] = True
    return SpatialGrid(water=water, tile_size=8)


@pytest.fixture
def water_field(water_grid: SpatialGrid) -> PollutionField:
    """A pollution field over the all-water 10x10 grid."""
    return PollutionField(grid=water_grid)


@pytest.fixture
def pond_field(pond_grid: SpatialGrid) -> PollutionField:
    """A pollution field over the pond grid."""
    return PollutionField(grid=pond_grid)


@pytest.fixture
def evaluator() -> EcosystemHealthEvaluator:
    """A fresh evaluator in its initial HEALTHY state."""
    return EcosystemHealthEvaluator()


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()
