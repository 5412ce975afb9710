"""The WFC solver loop: select, snapshot, collapse, propagate, backtrack.

Each solver action is one of:
    - Backtracking: the grid holds a contradiction; undo the latest collapse.
    - Collapsing: pick the lowest-entropy cell, checkpoint the grid, collapse
      it with the solver's RNG, then propagate. If propagation fails, undo
      that collapse straight away.
A run ends in Success once every cell is collapsed, or in Failure when a
contradiction needs a backtrack that the budget (or history) cannot provide.

Determinism: cell selection and propagation order depend only on grid state,
and every random draw comes from one `Random` owned by the solver and seeded
once. Two solvers with the same catalog, dimensions, seed and pre-solve
seeding/modifier calls produce identical grids and counters.

Usage:
    grid = Grid(16, 12, catalog)
    solver = Solver(grid, Propagator(grid), seed=42, max_backtracks=100)
    result = solver.solve()
    if result.success:
        tile_map = grid.to_tile_map()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum, auto

from terrawave import config
from terrawave.types import GridPos, RandomSeed, TileID
from terrawave.util.rng import make_random

from .errors import WFCStateError
from .grid import Grid
from .propagator import Propagator

logger = logging.getLogger(__name__)

ERROR_BUDGET_EXHAUSTED = "Unsolvable: max backtracks exceeded"
ERROR_NO_HISTORY = "Unsolvable: no earlier state to restore"


class SolverState(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILURE = auto()


@dataclass(frozen=True)
class ProgressReport:
    """Snapshot of solver progress passed to progress callbacks."""

    progress: float  # Percentage of cells collapsed (0-100)
    collapsed: int
    total: int
    iterations: int
    backtracks: int


@dataclass(frozen=True)
class SolveResult:
    """Terminal outcome of a solve."""

    success: bool
    iterations: int
    backtracks: int
    error: str | None = None


@dataclass(frozen=True)
class StepResult:
    """What a single `Solver.step()` call did.

    Exactly one of these holds:
        - `done`: the run has ended; see `success` and `error`.
        - `backtracked`: the latest collapse was undone. `cell`/`tile` are set
          when the undone collapse happened in this very step.
        - otherwise `cell` was collapsed to `tile`, and `progress` is the new
          percentage of collapsed cells.
    """

    done: bool
    success: bool | None = None
    backtracked: bool = False
    cell: GridPos | None = None
    tile: TileID | None = None
    progress: float = 0.0
    error: str | None = None


type ProgressCallback = Callable[[ProgressReport], None]
type BacktrackCallback = Callable[[int], None]


class Solver:
    """Runs Wave Function Collapse with chronological backtracking.

    Attributes:
        grid: The grid being solved (mutated in place).
        propagator: Propagator bound to the same grid.
        seed: Seed the RNG was created from.
        max_backtracks: Completed backtracks allowed before giving up.
        iterations: Collapse attempts made so far.
        backtracks: Backtracks completed so far (never above max_backtracks).
        result: The terminal SolveResult, once the run has ended.
    """

    def __init__(
        self,
        grid: Grid,
        propagator: Propagator | None = None,
        *,
        seed: RandomSeed = None,
        max_backtracks: int = config.DEFAULT_MAX_BACKTRACKS,
        on_progress: ProgressCallback | None = None,
        on_backtrack: BacktrackCallback | None = None,
    ) -> None:
        """Initialize the solver.

        Args:
            grid: Grid to solve; apply seeding and region modifiers first.
            propagator: Propagator for `grid`; one is created if omitted.
            seed: RNG seed. None gives a non-deterministic run.
            max_backtracks: Backtrack budget (>= 0).
            on_progress: Called after each solver action (or once per frame
                when solving in frames).
            on_backtrack: Called with the running count after each backtrack.
        """
        if max_backtracks < 0:
            raise ValueError(f"max_backtracks must be >= 0, got {max_backtracks}")
        if propagator is not None and propagator.grid is not grid:
            raise ValueError("Propagator is bound to a different grid")

        self.grid = grid
        self.propagator = propagator if propagator is not None else Propagator(grid)
        self.seed = seed
        self.max_backtracks = max_backtracks
        self.on_progress = on_progress
        self.on_backtrack = on_backtrack

        self.rng = make_random(seed)
        self.iterations = 0
        self.backtracks = 0
        self.result: SolveResult | None = None

    @property
    def state(self) -> SolverState:
        if self.result is None:
            return SolverState.RUNNING
        return SolverState.SUCCESS if self.result.success else SolverState.FAILURE

    def reset(self) -> None:
        """Zero the counters and re-seed the RNG. Does not touch the grid."""
        self.rng = make_random(self.seed)
        self.iterations = 0
        self.backtracks = 0
        self.result = None

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self) -> StepResult:
        """Perform exactly one collapse-or-backtrack action.

        Raises:
            WFCStateError: If the grid is unsolved but no cell can be selected,
                which means its weights were corrupted outside the Cell API.
        """
        if self.result is not None:
            return StepResult(
                done=True, success=self.result.success, error=self.result.error
            )

        grid = self.grid
        if grid.is_fully_collapsed():
            return self._finish(success=True)

        contradiction = grid.find_contradiction()
        if contradiction is not None:
            logger.debug(f"Contradiction at {contradiction}, backtracking")
            if not self.backtrack():
                return self._finish(success=False, error=self._failure_reason())
            return StepResult(done=False, backtracked=True, progress=grid.progress)

        cell = grid.lowest_entropy_cell()
        if cell is None:
            # Only reachable if no uncollapsed cell has a comparable entropy.
            raise WFCStateError(
                f"No cell could be selected on an unsolved "
                f"{grid.width}x{grid.height} grid ({grid.collapsed_count}/"
                f"{grid.total_count} collapsed)"
            )

        grid.save_state()
        self.iterations += 1
        tile = cell.collapse(self.rng)
        position = (cell.x, cell.y)

        if not self.propagator.propagate(cell.x, cell.y):
            if not self.backtrack():
                return self._finish(success=False, error=self._failure_reason())
            return StepResult(
                done=False,
                backtracked=True,
                cell=position,
                tile=tile,
                progress=grid.progress,
            )

        return StepResult(done=False, cell=position, tile=tile, progress=grid.progress)

    def backtrack(self) -> bool:
        """Undo the most recent collapse attempt.

        Only completed backtracks are counted: once `max_backtracks` have been
        done, further requests are refused without counting.

        Returns:
            False if the budget is exhausted or there is no checkpoint.
        """
        if self.backtracks >= self.max_backtracks:
            logger.debug(f"Backtrack budget of {self.max_backtracks} exhausted")
            return False
        if not self.grid.restore_state():
            logger.debug("Backtrack requested with empty history")
            return False

        self.backtracks += 1
        logger.debug(
            f"Backtracked ({self.backtracks}/{self.max_backtracks}), "
            f"history depth {self.grid.history_depth}"
        )
        if self.on_backtrack is not None:
            self.on_backtrack(self.backtracks)
        return True

    def _failure_reason(self) -> str:
        if self.backtracks >= self.max_backtracks:
            return ERROR_BUDGET_EXHAUSTED
        return ERROR_NO_HISTORY

    def _finish(self, success: bool, error: str | None = None) -> StepResult:
        self.result = SolveResult(
            success=success,
            iterations=self.iterations,
            backtracks=self.backtracks,
            error=error,
        )
        if success:
            logger.info(
                f"WFC solved {self.grid.width}x{self.grid.height} in "
                f"{self.iterations} iterations, {self.backtracks} backtracks"
            )
        else:
            logger.warning(
                f"WFC failed on {self.grid.width}x{self.grid.height}: {error} "
                f"({self.iterations} iterations, {self.backtracks} backtracks)"
            )
        return StepResult(done=True, success=success, error=error)

    def progress_report(self) -> ProgressReport:
        grid = self.grid
        collapsed = grid.collapsed_count
        return ProgressReport(
            progress=collapsed / grid.total_count * 100,
            collapsed=collapsed,
            total=grid.total_count,
            iterations=self.iterations,
            backtracks=self.backtracks,
        )

    # -------------------------------------------------------------------------
    # Run modes
    # -------------------------------------------------------------------------

    def solve(self) -> SolveResult:
        """Run the algorithm to completion.

        Returns:
            The terminal result. Failure is reported, never raised.
        """
        logger.debug(
            f"WFC solve start: {self.grid.width}x{self.grid.height}, "
            f"seed={self.seed}, max_backtracks={self.max_backtracks}"
        )
        while True:
            outcome = self.step()
            if outcome.done:
                break
            if self.on_progress is not None:
                self.on_progress(self.progress_report())

        assert self.result is not None
        return self.result

    def frames(
        self, steps_per_frame: int = config.DEFAULT_STEPS_PER_FRAME
    ) -> Iterator[ProgressReport]:
        """Solve in batches, yielding once per frame.

        Each frame performs up to `steps_per_frame` steps, fires `on_progress`
        once, and yields the same report. A caller that stops iterating leaves
        the grid in its partial state. `self.result` holds the outcome after
        the last frame.
        """
        if steps_per_frame < 1:
            raise ValueError(f"steps_per_frame must be >= 1, got {steps_per_frame}")

        while self.result is None:
            for _ in range(steps_per_frame):
                if self.step().done:
                    break
            report = self.progress_report()
            if self.on_progress is not None:
                self.on_progress(report)
            yield report

    async def solve_animated(
        self,
        steps_per_frame: int = config.DEFAULT_STEPS_PER_FRAME,
        frame_delay: float = config.DEFAULT_FRAME_DELAY,
    ) -> SolveResult:
        """Solve frame by frame, yielding to the event loop between frames.

        Lets a host render intermediate progress. Nothing else may touch the
        grid while this runs.
        """
        for _report in self.frames(steps_per_frame):
            if self.result is None:
                await asyncio.sleep(frame_delay)

        assert self.result is not None
        return self.result
