"""EcosystemHealthEvaluator — weighted health score and state machine.

Each tick the reporting layer gathers population and pollution metrics,
asks the evaluator for a 0-100 health score, then calls ``update_state``
to map that score onto one of three ecosystem states.  A registered
listener is told about every state change.

State is recomputed from the current score on every call; there is no
smoothing, debounce, or dependence on earlier transitions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

# Score weights (sum to 1.0)
SURVIVAL_WEIGHT = 0.30
ORGANISM_HEALTH_WEIGHT = 0.25
CLEAN_WATER_WEIGHT = 0.25
FIELD_HEALTH_WEIGHT = 0.20

# Lower score bounds for each state
HEALTHY_MIN_SCORE = 75.0
STRESSED_MIN_SCORE = 40.0


class EcosystemState(Enum):
    """Coarse ecosystem condition derived from the health score."""

    HEALTHY = "healthy"
    STRESSED = "stressed"
    CRITICAL = "critical"


StateListener = Callable[[EcosystemState, EcosystemState, float], None]


@dataclass(frozen=True)
class HealthMetrics:
    """Inputs gathered once per tick for the health score.

    Attributes:
        live_count: Organisms currently alive.
        total_count: Organisms ever spawned this run.
        mean_organism_health: Mean health of living organisms, 0-100.
        active_pollution_percent: Mean active pollution, 0-100.
        field_health_percent: Inverse of mean residue, 0-100.
    """

    live_count: int
    total_count: int
    mean_organism_health: float
    active_pollution_percent: float
    field_health_percent: float


def classify_score(score: float) -> EcosystemState:
    """Map a health score onto an ecosystem state."""
    if score >= HEALTHY_MIN_SCORE:
        return EcosystemState.HEALTHY
    if score >= STRESSED_MIN_SCORE:
        return EcosystemState.STRESSED
    return EcosystemState.CRITICAL


@dataclass
class EcosystemHealthEvaluator:
    """Health score plus three-state classification for one simulation run.

    Attributes:
        health_score: Most recent score, 0-100.
        current_state: State after the last ``update_state`` call.
        previous_state: State before the most recent transition.
    """

    health_score: float = 100.0
    current_state: EcosystemState = EcosystemState.HEALTHY
    previous_state: EcosystemState = EcosystemState.HEALTHY
    _listener: StateListener | None = field(default=None, init=False, repr=False)

    def calculate_health(self, metrics: HealthMetrics) -> float:
        """Compute, store, and return the weighted health score.

        The score combines survival rate (30%), mean organism health
        (25%), clean water, i.e. 100 minus active pollution (25%), and
        long-term field health (20%).  With no organisms the survival
        rate counts as zero.

        Args:
            metrics: This tick's gathered inputs.

        Returns:
            The new health score.
        """
        if metrics.total_count > 0:
            survival_rate = metrics.live_count / metrics.total_count * 100.0
        else:
            survival_rate = 0.0
        clean_water = max(0.0, 100.0 - metrics.active_pollution_percent)

        self.health_score = (
            SURVIVAL_WEIGHT * survival_rate
            + ORGANISM_HEALTH_WEIGHT * metrics.mean_organism_health
            + CLEAN_WATER_WEIGHT * clean_water
            + FIELD_HEALTH_WEIGHT * metrics.field_health_percent
        )
        return self.health_score

    def update_state(self) -> None:
        """Reclassify the current score and notify on a state change."""
        new_state = classify_score(self.health_score)
        if new_state is self.current_state:
            return

        old_state = self.current_state
        self.previous_state = old_state
        self.current_state = new_state
        logger.info(
            "Ecosystem state %s -> %s (score %.1f)",
            old_state.name,
            new_state.name,
            self.health_score,
        )
        if self._listener is not None:
            self._listener(new_state, old_state, self.health_score)

    def on_state_change(self, listener: StateListener | None) -> None:
        """Register the transition listener, replacing any previous one.

        Args:
            listener: Called as ``listener(new_state, old_state, score)``;
                pass None to stop notifications.
        """
        self._listener = listener
