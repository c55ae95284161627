"""Tests for riverwatch.pollution — point mutation, stepping, statistics."""

import numpy as np
import pytest
from numpy.random import Generator

from riverwatch.grid.spatial_grid import SpatialGrid
from riverwatch.pollution.diffusion import update_residue
from riverwatch.pollution.field import (
    MAX_DIFFUSION_RATE,
    DiffusionMode,
    FieldStatistics,
    PollutionField,
)


def _single_tile_field() -> PollutionField:
    """A 1x1 all-water field: no neighbours, so no diffusion."""
    return PollutionField(grid=SpatialGrid(water=np.ones((1, 1), dtype=bool)))


def _random_field(rng: Generator, mode: DiffusionMode) -> PollutionField:
    water = rng.random((12, 15)) < 0.7
    grid = SpatialGrid(water=water)
    grid.pollution[water] = rng.random(int(water.sum()))
    return PollutionField(grid=grid, diffusion_mode=mode)


class TestPointMutation:
    """Tests for add_pollution / remove_pollution."""

    def test_add_accumulates(self, water_field: PollutionField) -> None:
        water_field.add_pollution(2, 3, 0.25)
        water_field.add_pollution(2, 3, 0.25)
        assert water_field.grid.get_cell(2, 3).pollution == pytest.approx(0.5)

    def test_add_clamps_at_one(self, water_field: PollutionField) -> None:
        water_field.add_pollution(0, 0, 0.8)
        water_field.add_pollution(0, 0, 0.8)
        assert water_field.grid.pollution[0, 0] == 1.0

    def test_remove_clamps_at_zero(self, water_field: PollutionField) -> None:
        water_field.add_pollution(4, 4, 0.1)
        water_field.remove_pollution(4, 4, 0.5)
        assert water_field.grid.pollution[4, 4] == 0.0

    def test_land_is_untouched(self, pond_field: PollutionField) -> None:
        before = pond_field.grid.pollution.copy()
        pond_field.add_pollution(0, 0, 1.0)
        pond_field.remove_pollution(5, 4, 1.0)
        assert np.array_equal(pond_field.grid.pollution, before)

    @pytest.mark.parametrize(("col", "row"), [(-1, 0), (10, 0), (0, -1), (0, 10)])
    def test_out_of_range_is_noop(
        self,
        water_field: PollutionField,
        col: int,
        row: int,
    ) -> None:
        water_field.add_pollution(col, row, 1.0)
        water_field.remove_pollution(col, row, 1.0)
        assert water_field.total_pollution() == 0.0

    def test_clamping_holds_for_any_sequence(
        self,
        pond_field: PollutionField,
        rng: Generator,
    ) -> None:
        grid = pond_field.grid
        for _ in range(500):
            col = int(rng.integers(-1, grid.width + 1))
            row = int(rng.integers(-1, grid.height + 1))
            amount = float(rng.uniform(0.0, 1.5))
            if rng.random() < 0.5:
                pond_field.add_pollution(col, row, amount)
            else:
                pond_field.remove_pollution(col, row, amount)
        for _ in range(50):
            pond_field.step()
        assert grid.pollution.min() >= 0.0
        assert grid.pollution.max() <= 1.0
        assert grid.residue.min() >= 0.0
        assert grid.residue.max() <= 1.0
        assert np.all(grid.pollution[~grid.water] == 0.0)


class TestResidue:
    """Tests for long-term residue accrual and recovery."""

    def test_accrues_above_high_threshold(self) -> None:
        field = _single_tile_field()
        field.add_pollution(0, 0, 0.5)
        field.step()
        cell = field.grid.get_cell(0, 0)
        assert cell.residue == pytest.approx(0.5 * 0.0005)
        assert cell.pollution == pytest.approx(0.5)

    def test_recovers_below_low_threshold(self) -> None:
        field = _single_tile_field()
        field.grid.get_cell(0, 0).residue = 0.3
        field.step()
        assert field.grid.residue[0, 0] == pytest.approx(0.3 - 0.0002)

    def test_holds_between_thresholds(self) -> None:
        field = _single_tile_field()
        cell = field.grid.get_cell(0, 0)
        cell.residue = 0.3
        cell.pollution = 0.1
        field.step()
        assert cell.residue == pytest.approx(0.3)

    def test_residue_never_leaves_unit_range(self) -> None:
        field = _single_tile_field()
        cell = field.grid.get_cell(0, 0)
        cell.residue = 1.0
        cell.pollution = 1.0
        field.step()
        assert cell.residue == 1.0
        cell.pollution = 0.0
        cell.residue = 0.0001
        field.step()
        assert cell.residue == 0.0

    def test_runs_even_when_diffusion_is_skipped(self) -> None:
        grid = SpatialGrid(water=np.ones((1, 2), dtype=bool))
        field = PollutionField(grid=grid)
        grid.get_cell(0, 0).pollution = 0.01
        grid.get_cell(0, 0).residue = 0.1
        field.step()
        # At the diffusion floor: nothing spreads, but residue still recovers
        assert grid.pollution[0, 1] == 0.0
        assert grid.pollution[0, 0] == pytest.approx(0.01)
        assert grid.residue[0, 0] == pytest.approx(0.0998)

    def test_update_residue_function(self) -> None:
        kwargs = {
            "high_threshold": 0.2,
            "low_threshold": 0.05,
            "accrual_rate": 0.0005,
            "recovery_rate": 0.0002,
        }
        assert update_residue(0.2, 0.5, **kwargs) == 0.5
        assert update_residue(0.05, 0.5, **kwargs) == 0.5
        assert update_residue(0.04, 0.5, **kwargs) == pytest.approx(0.4998)
        assert update_residue(0.21, 0.5, **kwargs) == pytest.approx(0.500105)


class TestDiffusion:
    """Tests for both sweep strategies."""

    def test_point_source_buffered(self, water_grid: SpatialGrid) -> None:
        field = PollutionField(grid=water_grid, diffusion_mode=DiffusionMode.BUFFERED)
        field.add_pollution(5, 5, 1.0)
        field.step()
        for col, row in [(4, 5), (6, 5), (5, 4), (5, 6)]:
            assert water_grid.get_cell(col, row).pollution == pytest.approx(0.1)
        assert water_grid.get_cell(5, 5).pollution == pytest.approx(0.6)
        assert water_grid.pollution[4, 6] == 0.0
        assert field.total_pollution() == pytest.approx(1.0)

    def test_point_source_in_place(self, water_field: PollutionField) -> None:
        grid = water_field.grid
        water_field.add_pollution(5, 5, 1.0)
        water_field.step()
        # Neighbours swept before the source keep their full share
        assert grid.get_cell(5, 4).pollution == pytest.approx(0.1)
        assert grid.get_cell(4, 5).pollution == pytest.approx(0.1)
        assert grid.get_cell(5, 5).pollution == pytest.approx(0.6)
        # The east neighbour is visited next and spreads again this tick
        assert grid.get_cell(6, 5).pollution == pytest.approx(0.07)
        assert grid.get_cell(6, 4).pollution == pytest.approx(0.01)
        assert 0.0 < grid.get_cell(5, 6).pollution < 0.1

    def test_in_place_sweep_is_order_dependent(self, rng: Generator) -> None:
        in_place = _random_field(rng, DiffusionMode.IN_PLACE)
        buffered = PollutionField(
            grid=SpatialGrid(water=in_place.grid.water),
            diffusion_mode=DiffusionMode.BUFFERED,
        )
        buffered.grid.pollution[:, :] = in_place.grid.pollution
        in_place.step()
        buffered.step()
        assert not np.allclose(in_place.grid.pollution, buffered.grid.pollution)

    @pytest.mark.parametrize("rate", [-0.1, 0.3, 0.5])
    def test_rate_outside_quarter_rejected(
        self,
        water_grid: SpatialGrid,
        rate: float,
    ) -> None:
        with pytest.raises(ValueError, match="diffusion_rate"):
            PollutionField(grid=water_grid, diffusion_rate=rate)

    @pytest.mark.parametrize("mode", list(DiffusionMode))
    def test_maximum_rate_conserves_pollution(self, mode: DiffusionMode) -> None:
        field = PollutionField(
            grid=SpatialGrid(water=np.ones((3, 3), dtype=bool)),
            diffusion_rate=MAX_DIFFUSION_RATE,
            diffusion_mode=mode,
        )
        field.add_pollution(1, 1, 1.0)
        for _ in range(5):
            field.step()
            assert field.total_pollution() <= 1.0 + 1e-9
        assert field.total_pollution() == pytest.approx(1.0)

    @pytest.mark.parametrize("mode", list(DiffusionMode))
    def test_total_never_increases(self, rng: Generator, mode: DiffusionMode) -> None:
        field = _random_field(rng, mode)
        for _ in range(20):
            before = field.total_pollution()
            field.step()
            assert field.total_pollution() <= before + 1e-9

    @pytest.mark.parametrize("mode", list(DiffusionMode))
    def test_land_blocks_spread(
        self,
        pond_grid: SpatialGrid,
        mode: DiffusionMode,
    ) -> None:
        field = PollutionField(grid=pond_grid, diffusion_mode=mode)
        field.add_pollution(1, 1, 1.0)
        for _ in range(30):
            field.step()
        assert np.all(pond_grid.pollution[~pond_grid.water] == 0.0)
        assert field.total_pollution() == pytest.approx(1.0)

    @pytest.mark.parametrize("mode", list(DiffusionMode))
    def test_spreads_downhill_only(self, mode: DiffusionMode) -> None:
        grid = SpatialGrid(water=np.ones((1, 3), dtype=bool))
        field = PollutionField(grid=grid, diffusion_mode=mode)
        grid.pollution[0, :] = [0.5, 0.5, 0.5]
        field.step()
        assert np.allclose(grid.pollution, 0.5)

    def test_in_place_matches_sweep_by_hand(self) -> None:
        grid = SpatialGrid(water=np.ones((1, 3), dtype=bool))
        field = PollutionField(grid=grid)
        grid.pollution[0, :] = [0.0, 0.5, 0.0]
        field.step()
        # (0,0) is skipped; (1,0) gives 0.05 each way; (2,0) then holds
        # 0.05 and spreads nothing back uphill.
        assert grid.pollution[0].tolist() == pytest.approx([0.05, 0.4, 0.05])

    def test_repeated_steps_flatten_plume(self, water_field: PollutionField) -> None:
        water_field.add_pollution(5, 5, 1.0)
        for _ in range(200):
            water_field.step()
        grid = water_field.grid
        assert grid.pollution.max() < 0.1
        assert np.count_nonzero(grid.pollution) > 25


class TestStatistics:
    """Tests for get_statistics and snapshots."""

    def test_means_in_percent(self, pond_field: PollutionField) -> None:
        pond_field.add_pollution(1, 1, 0.6)
        pond_field.add_pollution(4, 3, 0.6)
        pond_field.grid.get_cell(2, 2).residue = 0.24
        stats = pond_field.get_statistics()
        assert stats.water_cell_count == 12
        assert stats.mean_pollution_percent == pytest.approx(10.0)
        assert stats.mean_residue_percent == pytest.approx(2.0)
        assert stats.field_health_percent == pytest.approx(98.0)

    def test_no_water_is_all_zero(self) -> None:
        grid = SpatialGrid(water=np.zeros((4, 4), dtype=bool))
        stats = PollutionField(grid=grid).get_statistics()
        assert stats == FieldStatistics(0, 0.0, 0.0)

    def test_snapshot_is_detached_and_read_only(
        self,
        water_field: PollutionField,
    ) -> None:
        water_field.add_pollution(1, 1, 0.5)
        pollution, residue = water_field.snapshot()
        water_field.add_pollution(1, 1, 0.25)
        assert pollution[1, 1] == 0.5
        assert residue.shape == (10, 10)
        with pytest.raises(ValueError):
            pollution[0, 0] = 1.0
