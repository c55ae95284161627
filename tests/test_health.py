"""Tests for riverwatch.ecosystem.health — score and state machine."""

import pytest

from riverwatch.ecosystem.health import (
    EcosystemHealthEvaluator,
    EcosystemState,
    HealthMetrics,
    classify_score,
)


def _metrics(**overrides: float) -> HealthMetrics:
    values = {
        "live_count": 10,
        "total_count": 10,
        "mean_organism_health": 100.0,
        "active_pollution_percent": 0.0,
        "field_health_percent": 100.0,
    }
    values.update(overrides)
    return HealthMetrics(**values)


class TestScore:
    """Tests for calculate_health."""

    def test_weighted_formula(self, evaluator: EcosystemHealthEvaluator) -> None:
        score = evaluator.calculate_health(
            HealthMetrics(
                live_count=50,
                total_count=100,
                mean_organism_health=80.0,
                active_pollution_percent=10.0,
                field_health_percent=90.0,
            ),
        )
        assert score == pytest.approx(75.5)
        assert evaluator.health_score == score

    def test_perfect_conditions(self, evaluator: EcosystemHealthEvaluator) -> None:
        assert evaluator.calculate_health(_metrics()) == pytest.approx(100.0)

    def test_no_population_counts_as_zero_survival(
        self,
        evaluator: EcosystemHealthEvaluator,
    ) -> None:
        score = evaluator.calculate_health(
            _metrics(live_count=0, total_count=0, mean_organism_health=0.0),
        )
        assert score == pytest.approx(45.0)

    def test_pollution_term_floors_at_zero(
        self,
        evaluator: EcosystemHealthEvaluator,
    ) -> None:
        score = evaluator.calculate_health(_metrics(active_pollution_percent=150.0))
        assert score == pytest.approx(75.0)

    def test_calculate_does_not_change_state(
        self,
        evaluator: EcosystemHealthEvaluator,
    ) -> None:
        evaluator.calculate_health(_metrics(live_count=0, mean_organism_health=0.0))
        assert evaluator.current_state is EcosystemState.HEALTHY


class TestStates:
    """Tests for the score -> state mapping."""

    @pytest.mark.parametrize(
        ("score", "state"),
        [
            (100.0, EcosystemState.HEALTHY),
            (75.0, EcosystemState.HEALTHY),
            (74.9999, EcosystemState.STRESSED),
            (40.0, EcosystemState.STRESSED),
            (39.9999, EcosystemState.CRITICAL),
            (0.0, EcosystemState.CRITICAL),
        ],
    )
    def test_breakpoints(
        self,
        evaluator: EcosystemHealthEvaluator,
        score: float,
        state: EcosystemState,
    ) -> None:
        assert classify_score(score) is state
        evaluator.health_score = score
        evaluator.update_state()
        assert evaluator.current_state is state

    def test_initial_state(self, evaluator: EcosystemHealthEvaluator) -> None:
        assert evaluator.current_state is EcosystemState.HEALTHY
        assert evaluator.previous_state is EcosystemState.HEALTHY
        assert evaluator.health_score == 100.0


class TestTransitions:
    """Tests for listener notification."""

    def test_listener_fires_only_on_change(
        self,
        evaluator: EcosystemHealthEvaluator,
    ) -> None:
        calls = []
        evaluator.on_state_change(lambda *args: calls.append(args))
        for score in (90.0, 80.0, 60.0, 50.0, 20.0):
            evaluator.health_score = score
            evaluator.update_state()
        assert calls == [
            (EcosystemState.STRESSED, EcosystemState.HEALTHY, 60.0),
            (EcosystemState.CRITICAL, EcosystemState.STRESSED, 20.0),
        ]

    def test_can_skip_middle_state(self, evaluator: EcosystemHealthEvaluator) -> None:
        calls = []
        evaluator.on_state_change(lambda *args: calls.append(args))
        evaluator.health_score = 10.0
        evaluator.update_state()
        evaluator.health_score = 95.0
        evaluator.update_state()
        assert [c[:2] for c in calls] == [
            (EcosystemState.CRITICAL, EcosystemState.HEALTHY),
            (EcosystemState.HEALTHY, EcosystemState.CRITICAL),
        ]

    def test_previous_state_tracks_last_transition(
        self,
        evaluator: EcosystemHealthEvaluator,
    ) -> None:
        evaluator.health_score = 50.0
        evaluator.update_state()
        evaluator.health_score = 55.0
        evaluator.update_state()
        assert evaluator.current_state is EcosystemState.STRESSED
        assert evaluator.previous_state is EcosystemState.HEALTHY

    def test_last_listener_wins(self, evaluator: EcosystemHealthEvaluator) -> None:
        first, second = [], []
        evaluator.on_state_change(lambda *args: first.append(args))
        evaluator.on_state_change(lambda *args: second.append(args))
        evaluator.health_score = 30.0
        evaluator.update_state()
        assert first == []
        assert len(second) == 1

    def test_no_listener_is_fine(self, evaluator: EcosystemHealthEvaluator) -> None:
        evaluator.health_score = 30.0
        evaluator.update_state()
        assert evaluator.current_state is EcosystemState.CRITICAL

    def test_listener_can_be_cleared(self, evaluator: EcosystemHealthEvaluator) -> None:
        calls = []
        evaluator.on_state_change(lambda *args: calls.append(args))
        evaluator.on_state_change(None)
        evaluator.health_score = 30.0
        evaluator.update_state()
        assert calls == []
