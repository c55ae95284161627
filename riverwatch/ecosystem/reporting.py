"""Reporting helpers consumed by UI layers.

Both helpers only read statistics; neither feeds back into the
simulation.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum


class Trend(Enum):
    """Direction of mean pollution over recent samples."""

    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class WaterQuality(Enum):
    """Banded water quality for a single tile."""

    CLEAN = "clean"
    FAIR = "fair"
    POOR = "poor"
    TOXIC = "toxic"


def classify_water_quality(pollution_percent: float) -> WaterQuality:
    """Band a tile's pollution percentage (0-100)."""
    if pollution_percent < 5:
        return WaterQuality.CLEAN
    if pollution_percent < 20:
        return WaterQuality.FAIR
    if pollution_percent < 40:
        return WaterQuality.POOR
    return WaterQuality.TOXIC


@dataclass
class PollutionTrend:
    """Rolling record of mean pollution used to report a trend.

    A sample is taken once strictly more than ``sample_interval`` ticks
    have passed since the previous one, counting from tick 0; with the
    default interval the first sample lands on tick 61.  The trend
    compares the oldest and newest of the last ``window`` samples against
    ``tolerance`` points.

    Attributes:
        sample_interval: Ticks that must be exceeded between samples.
        history_size: Samples retained.
        window: Samples compared when judging the trend.
        tolerance: Change in percentage points treated as noise.
    """

    sample_interval: int = 60
    history_size: int = 5
    window: int = 3
    tolerance: float = 2.0
    _history: deque[float] = field(init=False, repr=False)
    _last_sample_tick: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._history = deque(maxlen=self.history_size)

    @property
    def history(self) -> list[float]:
        """Retained samples, oldest first."""
        return list(self._history)

    def observe(self, tick: int, mean_pollution_percent: float) -> bool:
        """Record a sample if one is due.

        Args:
            tick: Current simulation tick.
            mean_pollution_percent: Mean active pollution, 0-100.

        Returns:
            True if a sample was recorded.
        """
        if tick - self._last_sample_tick <= self.sample_interval:
            return False
        self._history.append(mean_pollution_percent)
        self._last_sample_tick = tick
        return True

    @property
    def trend(self) -> Trend:
        """Trend over the most recent ``window`` samples."""
        if len(self._history) < self.window:
            return Trend.STABLE
        recent = list(self._history)[-self.window :]
        oldest, newest = recent[0], recent[-1]
        if newest < oldest - self.tolerance:
            return Trend.IMPROVING
        if newest > oldest + self.tolerance:
            return Trend.WORSENING
        return Trend.STABLE
