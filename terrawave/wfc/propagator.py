"""Incremental constraint propagation over a Grid.

After a cell changes, only the cells whose possibilities actually shrink are
revisited, so the cost of a collapse is proportional to the neighbourhood it
affects rather than to the grid size.
"""

from __future__ import annotations

import logging
from collections import deque

from terrawave.types import TileCoord, TileID

from .catalog import TileCatalog
from .grid import Grid

logger = logging.getLogger(__name__)


class Propagator:
    """Enforces the catalog's adjacency rules outward from changed cells."""

    def __init__(self, grid: Grid, catalog: TileCatalog | None = None) -> None:
        self.grid = grid
        self.catalog = catalog if catalog is not None else grid.catalog

    def propagate(self, start_x: TileCoord, start_y: TileCoord) -> bool:
        """Propagate constraints from the cell at (start_x, start_y).

        Processes a FIFO worklist. For each cell taken off the list, every
        neighbour is restricted to the tiles compatible with at least one of
        the cell's remaining possibilities; neighbours that shrink are queued
        in turn. Collapsed neighbours are not narrowed, but their tile must
        still be compatible.

        Returns:
            True once the worklist drains, False as soon as any cell is left
            with no possibilities (the caller should backtrack).
        """
        grid = self.grid
        queue: deque[tuple[int, int]] = deque([(start_x, start_y)])
        in_queue = {(start_x, start_y)}

        while queue:
            x, y = queue.popleft()
            in_queue.discard((x, y))

            cell = grid.cells[y][x]
            if cell.is_contradiction:
                logger.debug(f"Contradiction at ({x}, {y}) during propagation")
                return False
            mask = cell.mask

            for neighbor, direction in grid.neighbors(x, y):
                allowed = self.catalog.allowed_neighbors(mask, direction)

                if neighbor.collapsed:
                    if not allowed[neighbor.tile_index]:
                        logger.debug(
                            f"Collapsed ({neighbor.x}, {neighbor.y}) conflicts "
                            f"with ({x}, {y})"
                        )
                        return False
                    continue

                if neighbor.restrict_to(allowed):
                    if neighbor.is_contradiction:
                        logger.debug(
                            f"No valid tiles at ({neighbor.x}, {neighbor.y}) "
                            "after propagation"
                        )
                        return False

                    key = (neighbor.x, neighbor.y)
                    if key not in in_queue:
                        queue.append(key)
                        in_queue.add(key)

        return True

    def propagate_all(self) -> bool:
        """Propagate from every collapsed cell in row-major order.

        Used once after pre-solve seeding.

        Returns:
            False if any seeded constraint leads to a contradiction.
        """
        for row in self.grid.cells:
            for cell in row:
                if cell.collapsed and not self.propagate(cell.x, cell.y):
                    return False
        return True

    def is_valid_placement(self, x: TileCoord, y: TileCoord, tile_id: TileID) -> bool:
        """Would placing `tile_id` at (x, y) contradict an immediate neighbour?

        A collapsed neighbour must be compatible with the tile; an uncollapsed
        one must keep at least one compatible possibility.
        """
        tile_mask = self.catalog.mask_of([tile_id])
        for neighbor, direction in self.grid.neighbors(x, y):
            allowed = self.catalog.allowed_neighbors(tile_mask, direction)
            if neighbor.collapsed:
                if not allowed[neighbor.tile_index]:
                    return False
            elif not (allowed & neighbor.mask).any():
                return False
        return True

    def valid_tiles_for_cell(self, x: TileCoord, y: TileCoord) -> set[TileID]:
        """The cell's possibilities that pass `is_valid_placement`."""
        cell = self.grid.cell(x, y)
        if cell is None:
            return set()
        return {
            tile_id
            for tile_id in cell.possibilities
            if self.is_valid_placement(x, y, tile_id)
        }
