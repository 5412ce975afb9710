"""The WFC grid: a width x height matrix of Cells plus backtracking history.

History works as a trail. `save_state()` opens a checkpoint; from then on the
first mutation of any cell stores a clone of that cell's prior state in the
checkpoint. `restore_state()` pops the newest checkpoint and puts those clones
back, which returns the grid to exactly the state it had at `save_state()`
while only copying the cells that actually changed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

import numpy as np

from terrawave import config
from terrawave.types import Direction, GridPos, TileCoord, TileID
from terrawave.util.coordinates import Rect, is_valid_grid_pos

from .catalog import DIR_OFFSETS, DIRECTIONS, TileCatalog
from .cell import Cell
from .errors import WFCContradiction, WFCStateError

logger = logging.getLogger(__name__)


class Neighbor(NamedTuple):
    """A neighbouring cell and the direction from the origin cell to it."""

    cell: Cell
    direction: Direction


@dataclass(frozen=True)
class MapTile:
    """One resolved tile of an output tile map."""

    type: TileID
    x: TileCoord
    y: TileCoord
    walkable: bool
    height: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "walkable": self.walkable,
            "height": self.height,
        }


@dataclass
class TileMap:
    """A fully resolved grid handed to rendering and decoration code.

    `tiles` is indexed as tiles[y][x].
    """

    tiles: list[list[MapTile]]
    width: int
    height: int

    def tile_at(self, x: TileCoord, y: TileCoord) -> MapTile:
        return self.tiles[y][x]

    def tile_ids(self) -> list[list[TileID]]:
        return [[tile.type for tile in row] for row in self.tiles]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tiles": [[tile.to_dict() for tile in row] for row in self.tiles],
            "width": self.width,
            "height": self.height,
        }


class Grid:
    """Spatial container, initial-condition hooks and search bookkeeping.

    Cells are stored row-major as `cells[y][x]`. Every scan (entropy
    selection, contradiction search, debug dump) walks rows top to bottom and
    each row left to right, so results depend only on grid state.
    """

    def __init__(self, width: int, height: int, catalog: TileCatalog) -> None:
        """Initialize the grid with every cell in full superposition.

        Args:
            width: Grid width in cells.
            height: Grid height in cells.
            catalog: The tiles and adjacency rules to solve with.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        self.catalog = catalog
        self.cells: list[list[Cell]] = []
        # One checkpoint per unresolved collapse attempt; maps cell position
        # to the cell's state at checkpoint time.
        self.history: list[dict[GridPos, Cell]] = []

        self.initialize(catalog)

    def initialize(self, catalog: TileCatalog | None = None) -> None:
        """(Re)allocate all cells with the full catalog and clear history."""
        if catalog is not None:
            self.catalog = catalog
        self.history = []
        self.cells = []
        for y in range(self.height):
            row: list[Cell] = []
            for x in range(self.width):
                row.append(self._adopt(Cell(x, y, self.catalog)))
            self.cells.append(row)

    def _adopt(self, cell: Cell) -> Cell:
        cell._on_change = self._record
        return cell

    def _record(self, cell: Cell) -> None:
        """Journal a cell's state before its first change since the checkpoint."""
        if not self.history:
            return
        checkpoint = self.history[-1]
        pos = (cell.x, cell.y)
        if pos not in checkpoint:
            checkpoint[pos] = cell.clone()

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def in_bounds(self, x: TileCoord, y: TileCoord) -> bool:
        return is_valid_grid_pos((x, y), self.width, self.height)

    def cell(self, x: TileCoord, y: TileCoord) -> Cell | None:
        """Get the cell at (x, y), or None if out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[y][x]

    def __iter__(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def neighbors(self, x: TileCoord, y: TileCoord) -> list[Neighbor]:
        """Up to four neighbours in N, E, S, W order, skipping out-of-bounds."""
        result: list[Neighbor] = []
        for direction in DIRECTIONS:
            dx, dy = DIR_OFFSETS[direction]
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.width and 0 <= ny < self.height:
                result.append(Neighbor(self.cells[ny][nx], direction))
        return result

    # -------------------------------------------------------------------------
    # Search queries
    # -------------------------------------------------------------------------

    def lowest_entropy_cell(self) -> Cell | None:
        """Find the uncollapsed cell with the lowest entropy.

        Uses strict less-than, so ties go to the first cell in row-major
        order. Contradictory cells are skipped.
        """
        min_entropy = float("inf")
        min_cell: Cell | None = None
        for row in self.cells:
            for cell in row:
                if cell.collapsed or cell.is_contradiction:
                    continue
                entropy = cell.entropy()
                if entropy < min_entropy:
                    min_entropy = entropy
                    min_cell = cell
        return min_cell

    def find_contradiction(self) -> GridPos | None:
        """Position of the first (row-major) cell with no possibilities."""
        for row in self.cells:
            for cell in row:
                if cell.is_contradiction:
                    return cell.x, cell.y
        return None

    def is_fully_collapsed(self) -> bool:
        return all(cell.collapsed for row in self.cells for cell in row)

    @property
    def collapsed_count(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell.collapsed)

    @property
    def total_count(self) -> int:
        return self.width * self.height

    @property
    def progress(self) -> float:
        """Percentage (0-100) of cells collapsed."""
        return self.collapsed_count / self.total_count * 100

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @property
    def history_depth(self) -> int:
        return len(self.history)

    def save_state(self) -> None:
        """Open a checkpoint that `restore_state()` can return to."""
        self.history.append({})

    def restore_state(self) -> bool:
        """Return the grid to the newest checkpoint and discard it.

        Returns:
            False if there is no checkpoint to restore.
        """
        if not self.history:
            return False
        checkpoint = self.history.pop()
        for (x, y), saved in checkpoint.items():
            self.cells[y][x] = self._adopt(saved)
        return True

    # -------------------------------------------------------------------------
    # Initial conditions
    # -------------------------------------------------------------------------

    def seed_cell(self, x: TileCoord, y: TileCoord, tile_id: TileID) -> None:
        """Force the cell at (x, y) to `tile_id` (point-of-interest seeding).

        The caller is responsible for propagating afterwards.

        Raises:
            WFCStateError: If (x, y) is outside the grid.
            UnknownTileError: If the catalog has no such tile.
        """
        if not self.in_bounds(x, y):
            raise WFCStateError(
                f"Cannot seed ({x}, {y}): outside {self.width}x{self.height} grid"
            )
        self.cells[y][x].force_collapse(tile_id)

    def _factor_vector(self, modifiers: Mapping[TileID, float]) -> np.ndarray:
        factors = np.ones(len(self.catalog), dtype=np.float64)
        for tile_id, multiplier in modifiers.items():
            if not (math.isfinite(multiplier) and multiplier > 0):
                raise WFCStateError(
                    f"Region multiplier for {tile_id!r} must be finite and positive, "
                    f"got {multiplier}"
                )
            if tile_id not in self.catalog:
                logger.warning(f"Ignoring modifier for unknown tile {tile_id!r}")
                continue
            factors[self.catalog.index_of(tile_id)] *= multiplier
        return factors

    def apply_region_modifiers(
        self, region: Rect | None, modifiers: Mapping[TileID, float]
    ) -> int:
        """Multiply tile weights inside a rectangle.

        Only uncollapsed cells are touched, and only tiles still possible in a
        cell are affected. Multipliers bias generation without forcing it.

        Args:
            region: Area to modify (clipped to the grid); None for the whole grid.
            modifiers: Mapping of tile id to a positive multiplier.

        Returns:
            The number of cells whose weights were modified.
        """
        factors = self._factor_vector(modifiers)
        area = Rect(0, 0, self.width, self.height) if region is None else region
        area = area.clip(self.width, self.height)

        touched = 0
        for x, y in area.positions():
            cell = self.cells[y][x]
            if not cell.collapsed:
                cell.multiply_weights(factors)
                touched += 1

        logger.debug(f"Applied {len(modifiers)} modifiers to {touched} cells in {area}")
        return touched

    def set_tile_weights(
        self, weights: Mapping[TileID, float], region: Rect | None = None
    ) -> int:
        """Replace tile weights on uncollapsed cells where the tile is possible.

        Returns:
            The number of cells with at least one replaced weight.
        """
        for tile_id in weights:
            self.catalog.index_of(tile_id)
        area = Rect(0, 0, self.width, self.height) if region is None else region
        area = area.clip(self.width, self.height)

        touched = 0
        for x, y in area.positions():
            cell = self.cells[y][x]
            changed = False
            for tile_id, weight in weights.items():
                changed = cell.set_weight(tile_id, weight) or changed
            touched += changed
        return touched

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def to_tile_map(self) -> TileMap:
        """Read the solved grid out as a TileMap.

        Raises:
            WFCContradiction: If any cell has no possibilities.
            WFCStateError: If any cell is still uncollapsed.
        """
        contradiction = self.find_contradiction()
        if contradiction is not None:
            x, y = contradiction
            raise WFCContradiction(f"Grid has a contradiction at ({x}, {y})", x, y)
        if not self.is_fully_collapsed():
            raise WFCStateError(
                f"Grid is not fully collapsed "
                f"({self.collapsed_count}/{self.total_count} cells)"
            )

        tiles: list[list[MapTile]] = []
        for row in self.cells:
            tile_row: list[MapTile] = []
            for cell in row:
                tile_id = cell.tile
                assert tile_id is not None
                definition = self.catalog.get(tile_id)
                tile_row.append(
                    MapTile(
                        type=tile_id,
                        x=cell.x,
                        y=cell.y,
                        walkable=definition.walkable,
                        height=definition.height,
                    )
                )
            tiles.append(tile_row)
        return TileMap(tiles=tiles, width=self.width, height=self.height)

    def debug_dump(self) -> str:
        """Render the grid as text, one line per row.

        Collapsed cells show their tile's symbol; uncollapsed cells show their
        remaining possibility count modulo 10.
        """
        lines: list[str] = []
        for row in self.cells:
            chars: list[str] = []
            for cell in row:
                if cell.collapsed:
                    tile_id = cell.tile
                    assert tile_id is not None
                    symbol = self.catalog.get(tile_id).symbol
                    chars.append(symbol or config.DEBUG_UNKNOWN_SYMBOL)
                else:
                    chars.append(str(cell.possibility_count % 10))
            lines.append("".join(chars))
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return (
            f"Grid({self.width}x{self.height}, "
            f"{self.collapsed_count}/{self.total_count} collapsed)"
        )
