"""Wave Function Collapse core.

- TileCatalog / TileDefinition: tile ids, weights and directional adjacency
- Cell: one position's remaining possibilities and weights
- Grid: the cell matrix, seeding/region hooks and backtracking history
- Propagator: incremental worklist constraint propagation
- Solver: entropy-ordered collapse loop with chronological backtracking
"""

from .catalog import (
    DIR_OFFSETS,
    DIRECTION_NAMES,
    DIRECTIONS,
    OPPOSITE_DIR,
    TileCatalog,
    TileDefinition,
)
from .cell import Cell
from .errors import UnknownTileError, WFCContradiction, WFCError, WFCStateError
from .grid import Grid, MapTile, Neighbor, TileMap
from .propagator import Propagator
from .solver import (
    ProgressReport,
    SolveResult,
    Solver,
    SolverState,
    StepResult,
)

__all__ = [
    "DIRECTIONS",
    "DIRECTION_NAMES",
    "DIR_OFFSETS",
    "OPPOSITE_DIR",
    "Cell",
    "Grid",
    "MapTile",
    "Neighbor",
    "ProgressReport",
    "Propagator",
    "SolveResult",
    "Solver",
    "SolverState",
    "StepResult",
    "TileCatalog",
    "TileDefinition",
    "TileMap",
    "UnknownTileError",
    "WFCContradiction",
    "WFCError",
    "WFCStateError",
]
