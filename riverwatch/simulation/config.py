"""Config — load simulation parameters from YAML files.

All tunable constants (tile resolution, diffusion and residue rates,
source placement, population size) live in YAML and are parsed into a
typed dataclass here.  This keeps the simulation core data-driven and
easy to experiment with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from riverwatch.errors import ConfigError
from riverwatch.pollution.field import MAX_DIFFUSION_RATE, DiffusionMode


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        tile_size: Edge length of one grid tile in map pixels.
        diffusion_rate: Fraction of a concentration difference passed to
            a lower neighbour per tick, at most 0.25.
        diffusion_mode: ``"in_place"`` (order-dependent sweep) or
            ``"buffered"``.
        residue_accrual_rate: Residue gained per unit pollution per tick
            above ``high_threshold``.
        residue_recovery_rate: Residue lost per tick below
            ``low_threshold``.
        high_threshold: Pollution above which residue accrues.
        low_threshold: Pollution below which residue recovers.
        diffusion_floor: Tiles at or below this pollution do not spread.
        initial_organisms: Fish spawned on water at startup anywhere on the map.
        trend_sample_interval: Ticks between pollution-trend samples.
        point_sources: Outfalls as mappings with ``x``, ``y`` and
            optional ``rate``/``level``.
        runoff_sources: Farms as mappings with ``x``, ``y`` and optional
            ``rate``/``level``.
        cleanup_devices: Filters as mappings with ``x``, ``y`` and
            optional ``strength``/``radius``.
        spawn_areas: Ponds as mappings with ``x``, ``y``, ``radius`` and
            ``count``; fish placed there stay inside the area.
    """

    seed: int = 42
    tile_size: int = 8

    # Pollution dynamics
    diffusion_rate: float = 0.1
    diffusion_mode: str = DiffusionMode.IN_PLACE.value
    residue_accrual_rate: float = 0.0005
    residue_recovery_rate: float = 0.0002
    high_threshold: float = 0.2
    low_threshold: float = 0.05
    diffusion_floor: float = 0.01

    # Population and reporting
    initial_organisms: int = 20
    trend_sample_interval: int = 60

    point_sources: list[dict[str, Any]] = field(default_factory=list)
    runoff_sources: list[dict[str, Any]] = field(default_factory=list)
    cleanup_devices: list[dict[str, Any]] = field(default_factory=list)
    spawn_areas: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Reject values the simulation cannot run with."""
        if self.tile_size <= 0:
            msg = f"tile_size must be positive, got {self.tile_size}"
            raise ConfigError(msg)
        if not 0.0 <= self.diffusion_rate <= MAX_DIFFUSION_RATE:
            msg = (
                f"diffusion_rate must be within [0, {MAX_DIFFUSION_RATE}], "
                f"got {self.diffusion_rate}"
            )
            raise ConfigError(msg)
        for name in (
            "residue_accrual_rate",
            "residue_recovery_rate",
            "high_threshold",
            "low_threshold",
            "diffusion_floor",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be within [0, 1], got {value}"
                raise ConfigError(msg)
        if self.initial_organisms < 0:
            msg = f"initial_organisms must be >= 0, got {self.initial_organisms}"
            raise ConfigError(msg)
        if self.trend_sample_interval <= 0:
            msg = (
                "trend_sample_interval must be positive, "
                f"got {self.trend_sample_interval}"
            )
            raise ConfigError(msg)
        modes = [m.value for m in DiffusionMode]
        if self.diffusion_mode not in modes:
            msg = (
                f"diffusion_mode must be one of {', '.join(modes)}, "
                f"got {self.diffusion_mode!r}"
            )
            raise ConfigError(msg)

    @property
    def mode(self) -> DiffusionMode:
        """Parsed ``diffusion_mode``."""
        return DiffusionMode(self.diffusion_mode)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If a value is out of range.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            seed=data.get("seed", cls.seed),
            tile_size=data.get("tile_size", cls.tile_size),
            diffusion_rate=data.get("diffusion_rate", cls.diffusion_rate),
            diffusion_mode=data.get("diffusion_mode", cls.diffusion_mode),
            residue_accrual_rate=data.get(
                "residue_accrual_rate",
                cls.residue_accrual_rate,
            ),
            residue_recovery_rate=data.get(
                "residue_recovery_rate",
                cls.residue_recovery_rate,
            ),
            high_threshold=data.get("high_threshold", cls.high_threshold),
            low_threshold=data.get("low_threshold", cls.low_threshold),
            diffusion_floor=data.get("diffusion_floor", cls.diffusion_floor),
            initial_organisms=data.get(
                "initial_organisms",
                cls.initial_organisms,
            ),
            trend_sample_interval=data.get(
                "trend_sample_interval",
                cls.trend_sample_interval,
            ),
            point_sources=data.get("point_sources", []),
            runoff_sources=data.get("runoff_sources", []),
            cleanup_devices=data.get("cleanup_devices", []),
            spawn_areas=data.get("spawn_areas", []),
        )
