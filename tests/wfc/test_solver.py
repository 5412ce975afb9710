"""Tests for the WFC solver loop, its run modes and its guarantees."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from terrawave.terrain import create_tile_catalog
from terrawave.wfc import (
    Grid,
    ProgressReport,
    Propagator,
    SolverState,
    Solver,
    TileCatalog,
    WFCStateError,
)
from terrawave.wfc.solver import ERROR_BUDGET_EXHAUSTED, ERROR_NO_HISTORY
from tests.helpers import adjacency_violations

# =============================================================================
# Basic solving
# =============================================================================


class TestSolve:
    """Run-to-completion solving."""

    def test_trivial_catalog_needs_one_collapse_per_cell(
        self, trivial_catalog: TileCatalog
    ) -> None:
        """With every pair compatible there is nothing to backtrack."""
        for seed in (0, 1, 42, 9999):
            grid = Grid(5, 5, trivial_catalog)
            result = Solver(grid, seed=seed).solve()

            assert result.success
            assert result.iterations == 25
            assert result.backtracks == 0
            assert result.error is None
            assert grid.is_fully_collapsed()

    def test_land_and_water_never_mix(self, land_water_catalog: TileCatalog) -> None:
        for seed in range(10):
            grid = Grid(3, 3, land_water_catalog)
            result = Solver(grid, seed=seed).solve()

            tiles = {cell.tile for cell in grid}
            if result.success:
                assert tiles in ({"land"}, {"water"})

    def test_seeded_water_keeps_shallow_neighbours(
        self, shore_catalog: TileCatalog
    ) -> None:
        grid = Grid(5, 5, shore_catalog)
        grid.seed_cell(2, 2, "water")
        propagator = Propagator(grid)
        assert propagator.propagate(2, 2)

        result = Solver(grid, propagator, seed=3).solve()

        assert result.success
        assert grid.cells[2][2].tile == "water"
        for neighbor in grid.neighbors(2, 2):
            assert neighbor.cell.tile in ("water", "shallow_water")

    def test_propagator_is_created_when_omitted(
        self, trivial_catalog: TileCatalog
    ) -> None:
        grid = Grid(2, 2, trivial_catalog)
        solver = Solver(grid)
        assert solver.propagator.grid is grid

    def test_propagator_for_another_grid_is_rejected(
        self, trivial_catalog: TileCatalog
    ) -> None:
        other = Grid(2, 2, trivial_catalog)
        with pytest.raises(ValueError, match="different grid"):
            Solver(Grid(2, 2, trivial_catalog), Propagator(other))

    def test_negative_budget_is_rejected(self, trivial_catalog: TileCatalog) -> None:
        with pytest.raises(ValueError, match="max_backtracks"):
            Solver(Grid(2, 2, trivial_catalog), max_backtracks=-1)

    def test_already_solved_grid_succeeds_immediately(
        self, trivial_catalog: TileCatalog
    ) -> None:
        grid = Grid(1, 2, trivial_catalog)
        grid.seed_cell(0, 0, "a")
        grid.seed_cell(0, 1, "b")
        result = Solver(grid, seed=1).solve()
        assert result.success
        assert result.iterations == 0


# =============================================================================
# Guarantees
# =============================================================================


class TestSolverGuarantees:
    """Determinism, adjacency and seed persistence on the terrain catalogue."""

    @pytest.fixture(scope="class")
    def terrain_catalog(self) -> TileCatalog:
        return create_tile_catalog(terrain_only=True)

    def _solve(self, catalog: TileCatalog, seed: int) -> tuple[Grid, Solver]:
        grid = Grid(12, 10, catalog)
        grid.seed_cell(6, 5, "deep_water")
        grid.apply_region_modifiers(None, {"forest": 2.0})
        propagator = Propagator(grid)
        assert propagator.propagate_all()
        solver = Solver(grid, propagator, seed=seed, max_backtracks=500)
        solver.solve()
        return grid, solver

    def test_same_inputs_give_identical_output(
        self, terrain_catalog: TileCatalog
    ) -> None:
        grid1, solver1 = self._solve(terrain_catalog, seed=2024)
        grid2, solver2 = self._solve(terrain_catalog, seed=2024)

        assert solver1.result == solver2.result
        assert grid1.debug_dump() == grid2.debug_dump()
        if solver1.result is not None and solver1.result.success:
            assert grid1.to_tile_map() == grid2.to_tile_map()

    def test_string_seeds_are_deterministic(self, trivial_catalog: TileCatalog) -> None:
        dumps = []
        for _ in range(2):
            grid = Grid(6, 6, trivial_catalog)
            Solver(grid, seed="meadowbrook").solve()
            dumps.append(grid.debug_dump())
        assert dumps[0] == dumps[1]

    def test_different_seeds_differ(self, trivial_catalog: TileCatalog) -> None:
        dumps = set()
        for seed in (1, 2, 3):
            grid = Grid(6, 6, trivial_catalog)
            Solver(grid, seed=seed).solve()
            dumps.add(grid.debug_dump())
        assert len(dumps) > 1

    @pytest.mark.parametrize("seed", [7, 21, 1337])
    def test_successful_solves_satisfy_adjacency(
        self, terrain_catalog: TileCatalog, seed: int
    ) -> None:
        grid, solver = self._solve(terrain_catalog, seed=seed)
        assert solver.result is not None
        if solver.result.success:
            assert adjacency_violations(grid) == []
            assert grid.cells[5][6].tile == "deep_water"

    def test_backtracks_never_exceed_budget(
        self, terrain_catalog: TileCatalog
    ) -> None:
        for budget in (0, 1, 3):
            grid = Grid(14, 14, terrain_catalog)
            result = Solver(grid, seed=5, max_backtracks=budget).solve()
            assert result.backtracks <= budget
            if not result.success:
                assert result.error == ERROR_BUDGET_EXHAUSTED


# =============================================================================
# Backtracking and failure
# =============================================================================


class TestBacktracking:
    """Chronological backtracking with a bounded budget."""

    def test_zero_budget_fails_without_counting(
        self, twisted_catalog: TileCatalog
    ) -> None:
        """The refused backtrack is not counted."""
        grid = Grid(2, 2, twisted_catalog)
        result = Solver(grid, seed=1, max_backtracks=0).solve()

        assert not result.success
        assert result.backtracks == 0
        assert result.iterations == 1
        assert result.error == ERROR_BUDGET_EXHAUSTED

    def test_budget_is_used_up_exactly(self, twisted_catalog: TileCatalog) -> None:
        grid = Grid(2, 2, twisted_catalog)
        seen: list[int] = []
        result = Solver(
            grid, seed=1, max_backtracks=4, on_backtrack=seen.append
        ).solve()

        assert not result.success
        assert result.backtracks == 4
        assert result.iterations == 5
        assert seen == [1, 2, 3, 4]

    def test_backtracking_restores_the_pre_collapse_grid(
        self, twisted_catalog: TileCatalog
    ) -> None:
        grid = Grid(2, 2, twisted_catalog)
        solver = Solver(grid, seed=1, max_backtracks=10)

        outcome = solver.step()

        assert outcome.backtracked
        assert outcome.cell == (0, 0)
        assert outcome.tile in ("A", "B", "C")
        assert all(cell.possibility_count == 3 for cell in grid)
        assert grid.history_depth == 0

    def test_contradiction_without_history_fails(
        self, trivial_catalog: TileCatalog
    ) -> None:
        grid = Grid(3, 3, trivial_catalog)
        grid.cells[1][1].restrict_to([])

        result = Solver(grid, seed=1, max_backtracks=5).solve()

        assert not result.success
        assert result.iterations == 0
        assert result.backtracks == 0
        assert result.error == ERROR_NO_HISTORY

    def test_manual_backtrack_with_empty_history(
        self, trivial_catalog: TileCatalog
    ) -> None:
        solver = Solver(Grid(2, 2, trivial_catalog), seed=1)
        assert solver.backtrack() is False
        assert solver.backtracks == 0

    def test_recovers_when_a_retry_can_succeed(
        self, shore_catalog: TileCatalog
    ) -> None:
        """A bad draw next to a seed is undone and retried."""
        grid = Grid(3, 1, shore_catalog)
        grid.seed_cell(2, 0, "water")
        grid.cells[0][0].restrict_to({"grass", "sand"})

        # Without propagation the middle cell may collapse to a tile that
        # clashes with the seed; the solver must recover from that.
        result = Solver(grid, seed=11, max_backtracks=50).solve()

        assert result.success
        assert adjacency_violations(grid) == []


# =============================================================================
# Single-step mode
# =============================================================================


class TestStep:
    """One collapse-or-backtrack action per call."""

    def test_steps_report_each_collapse(self, trivial_catalog: TileCatalog) -> None:
        grid = Grid(5, 5, trivial_catalog)
        solver = Solver(grid, seed=8)

        first = solver.step()
        assert not first.done
        assert not first.backtracked
        assert first.cell == (0, 0)
        assert first.tile == grid.cells[0][0].tile
        assert first.progress == 4.0
        assert solver.iterations == 1

    def test_steps_match_solve(self, trivial_catalog: TileCatalog) -> None:
        stepped_grid = Grid(5, 5, trivial_catalog)
        stepped = Solver(stepped_grid, seed=77)
        steps = 0
        while not stepped.step().done:
            steps += 1

        solved_grid = Grid(5, 5, trivial_catalog)
        solved = Solver(solved_grid, seed=77)
        solved.solve()

        assert steps == 25
        assert stepped.result == solved.result
        assert stepped_grid.debug_dump() == solved_grid.debug_dump()

    def test_terminal_result_is_sticky(self, twisted_catalog: TileCatalog) -> None:
        solver = Solver(Grid(2, 2, twisted_catalog), seed=1, max_backtracks=0)
        solver.solve()
        assert solver.state is SolverState.FAILURE

        again = solver.step()
        assert again.done
        assert again.success is False
        assert again.error == ERROR_BUDGET_EXHAUSTED
        assert solver.iterations == 1

    def test_state_transitions(self, trivial_catalog: TileCatalog) -> None:
        solver = Solver(Grid(2, 2, trivial_catalog), seed=1)
        assert solver.state is SolverState.RUNNING
        solver.solve()
        assert solver.state is SolverState.SUCCESS

    def test_reset_replays_the_same_solve(self, trivial_catalog: TileCatalog) -> None:
        grid = Grid(4, 4, trivial_catalog)
        solver = Solver(grid, seed=99)
        first = solver.solve()
        first_dump = grid.debug_dump()

        grid.initialize()
        solver.reset()
        assert solver.state is SolverState.RUNNING
        second = solver.solve()

        assert first == second
        assert grid.debug_dump() == first_dump

    def test_unselectable_cells_never_report_success(
        self, trivial_catalog: TileCatalog
    ) -> None:
        """An unsolved grid whose cells have no usable entropy is an error."""
        grid = Grid(3, 3, trivial_catalog)
        for cell in grid:
            cell.weights = np.array([np.inf, 1.0, 1.0])
        solver = Solver(grid, seed=1)

        with pytest.raises(WFCStateError, match="No cell could be selected"):
            solver.solve()
        assert solver.result is None
        assert grid.collapsed_count == 0

    def test_large_but_finite_modifiers_still_solve(
        self, trivial_catalog: TileCatalog
    ) -> None:
        grid = Grid(3, 3, trivial_catalog)
        grid.apply_region_modifiers(None, {"a": 1e200})
        with pytest.raises(WFCStateError, match="overflow"):
            grid.apply_region_modifiers(None, {"a": 1e200})

        result = Solver(grid, seed=1).solve()
        assert result.success
        assert grid.is_fully_collapsed()


# =============================================================================
# Progress reporting and animated solving
# =============================================================================


class TestProgress:
    """Progress callbacks, frames and the asyncio variant."""

    def test_solve_reports_after_each_action(
        self, trivial_catalog: TileCatalog
    ) -> None:
        reports: list[ProgressReport] = []
        Solver(Grid(5, 5, trivial_catalog), seed=1, on_progress=reports.append).solve()

        assert len(reports) == 25
        assert reports[0].collapsed == 1
        assert reports[0].total == 25
        assert reports[-1].progress == 100.0
        assert reports[-1].iterations == 25
        assert [r.collapsed for r in reports] == list(range(1, 26))

    def test_frames_batch_steps(self, trivial_catalog: TileCatalog) -> None:
        """25 collapses plus the finishing step, ten per frame."""
        reports: list[ProgressReport] = []
        solver = Solver(
            Grid(5, 5, trivial_catalog), seed=1, on_progress=reports.append
        )

        frames = list(solver.frames(steps_per_frame=10))

        assert [f.collapsed for f in frames] == [10, 20, 25]
        assert frames == reports
        assert solver.result is not None
        assert solver.result.success

    def test_frames_rejects_empty_batches(self, trivial_catalog: TileCatalog) -> None:
        solver = Solver(Grid(2, 2, trivial_catalog), seed=1)
        with pytest.raises(ValueError):
            next(solver.frames(steps_per_frame=0))

    def test_abandoned_frames_leave_partial_grid(
        self, trivial_catalog: TileCatalog
    ) -> None:
        grid = Grid(5, 5, trivial_catalog)
        solver = Solver(grid, seed=1)
        frames = solver.frames(steps_per_frame=5)
        next(frames)

        assert grid.collapsed_count == 5
        assert solver.state is SolverState.RUNNING

    def test_solve_animated(self, trivial_catalog: TileCatalog) -> None:
        grid = Grid(6, 6, trivial_catalog)
        reports: list[ProgressReport] = []
        solver = Solver(grid, seed=4, on_progress=reports.append)

        result = asyncio.run(solver.solve_animated(steps_per_frame=8, frame_delay=0))

        assert result.success
        assert grid.is_fully_collapsed()
        assert len(reports) == 5  # 36 collapses + 1 finishing step, 8 per frame

    def test_animated_matches_synchronous(self, trivial_catalog: TileCatalog) -> None:
        animated_grid = Grid(6, 6, trivial_catalog)
        animated = Solver(animated_grid, seed=31)
        asyncio.run(animated.solve_animated(steps_per_frame=3, frame_delay=0))

        sync_grid = Grid(6, 6, trivial_catalog)
        Solver(sync_grid, seed=31).solve()

        assert animated_grid.debug_dump() == sync_grid.debug_dump()
