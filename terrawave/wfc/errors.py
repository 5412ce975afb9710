"""Exception types for the WFC core.

Contradictions found while solving are normally handled by backtracking and
never escape `Solver.solve()`; running out of backtracks is reported through
`SolveResult`. The exceptions below are raised for the cases a caller has to
handle or fix themselves.
"""

from __future__ import annotations


class WFCError(Exception):
    """Base class for all WFC errors."""


class WFCContradiction(WFCError):
    """A cell has no remaining possibilities where a consistent state is needed.

    This occurs when constraint propagation eliminates all possibilities
    for a cell, meaning no valid solution exists with the current constraints.
    """

    def __init__(self, message: str, x: int | None = None, y: int | None = None):
        super().__init__(message)
        self.x = x
        self.y = y


class WFCStateError(WFCError):
    """A programming-contract violation.

    Raised for calls that can never succeed in the current state: collapsing a
    collapsed or contradictory cell, reading a tile map out of an unsolved
    grid, seeding outside the grid, non-positive or non-finite weights.
    """


class UnknownTileError(WFCStateError, KeyError):
    """A tile id that the catalog does not define."""

    def __init__(self, tile_id: object) -> None:
        super().__init__(f"Unknown tile id: {tile_id!r}")
        self.tile_id = tile_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])
