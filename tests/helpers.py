"""Small tile catalogs and test doubles shared by the test suite."""

from __future__ import annotations

from terrawave.types import TileID
from terrawave.wfc import DIR_OFFSETS, DIRECTIONS, Grid, TileCatalog, TileDefinition


class FixedRandom:
    """Stand-in RNG whose random() returns scripted values in order."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def make_land_water_catalog() -> TileCatalog:
    """Two tiles that only ever touch themselves."""
    return TileCatalog(
        [
            TileDefinition.symmetric("land", {"land"}, symbol="#"),
            TileDefinition.symmetric("water", {"water"}, symbol="~"),
        ]
    )


def make_trivial_catalog() -> TileCatalog:
    """Three tiles where every pair is compatible."""
    ids = ("a", "b", "c")
    return TileCatalog(
        [TileDefinition.symmetric(tile_id, ids, symbol=tile_id) for tile_id in ids]
    )


SHORE_CHAIN: tuple[TileID, ...] = ("water", "shallow_water", "sand", "grass")


def make_shore_catalog() -> TileCatalog:
    """water - shallow_water - sand - grass, each tile touching only its chain
    neighbours and itself. Always solvable."""
    definitions = []
    for i, tile_id in enumerate(SHORE_CHAIN):
        neighbors = {SHORE_CHAIN[j] for j in range(len(SHORE_CHAIN)) if abs(i - j) <= 1}
        definitions.append(
            TileDefinition.symmetric(
                tile_id,
                neighbors,
                weight=1.0 + i,
                walkable=tile_id not in ("water", "shallow_water"),
                height=i,
                symbol=tile_id[0],
            )
        )
    return TileCatalog(definitions)


def make_twisted_catalog() -> TileCatalog:
    """Three tiles whose rules make every 2x2 (or larger) grid unsolvable.

    The east neighbour of a tile is fixed by swapping A and B, the south
    neighbour by swapping B and C. Going east then south never lands on the
    same tile as going south then east, so the first collapse always fails.
    """
    east = {"A": "B", "B": "A", "C": "C"}
    south = {"A": "A", "B": "C", "C": "B"}
    return TileCatalog(
        [
            TileDefinition(
                tile_id,
                valid_neighbors={
                    "E": {east[tile_id]},
                    "W": {east[tile_id]},
                    "S": {south[tile_id]},
                    "N": {south[tile_id]},
                },
            )
            for tile_id in ("A", "B", "C")
        ]
    )


def adjacency_violations(grid: Grid) -> list[str]:
    """Describe every adjacent pair of collapsed cells the catalog forbids."""
    problems: list[str] = []
    for cell in grid:
        if not cell.collapsed:
            continue
        for direction in DIRECTIONS:
            dx, dy = DIR_OFFSETS[direction]
            neighbor = grid.cell(cell.x + dx, cell.y + dy)
            if neighbor is None or not neighbor.collapsed:
                continue
            assert cell.tile is not None and neighbor.tile is not None
            if not grid.catalog.compatible(cell.tile, neighbor.tile, direction):
                problems.append(
                    f"({cell.x},{cell.y}) {cell.tile} -{direction}-> "
                    f"({neighbor.x},{neighbor.y}) {neighbor.tile}"
                )
    return problems
