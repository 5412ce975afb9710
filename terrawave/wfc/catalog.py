"""Tile catalogue: tile identifiers, weights and directional adjacency rules.

The catalog is the input contract the solver consumes. Tile ids are mapped
once to dense integer indices (0, 1, 2, ...) so that every per-cell structure
can be a fixed-size numpy vector indexed by tile, and adjacency becomes a
boolean matrix per direction.

Compatibility is checked from both sides: tile `a` may sit with tile `b` to
its east only if `a` lists `b` under "E" AND `b` lists `a` under "W". One-sided
entries are reported by `asymmetric_pairs()` and are never compatible.

Usage:
    catalog = TileCatalog(
        [
            TileDefinition.symmetric("land", {"land"}, weight=2.0),
            TileDefinition.symmetric("water", {"water"}),
        ]
    )
    catalog.compatible("land", "water", "E")  # False
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import numpy as np

from terrawave import config
from terrawave.types import Direction, TileID, TileIndex
from terrawave.util.caching import ResourceCache

from .errors import UnknownTileError, WFCStateError

logger = logging.getLogger(__name__)

# Direction utilities
DIRECTIONS = ["N", "E", "S", "W"]
OPPOSITE_DIR = {"N": "S", "E": "W", "S": "N", "W": "E"}
DIR_OFFSETS = {"N": (0, -1), "E": (1, 0), "S": (0, 1), "W": (-1, 0)}
DIRECTION_NAMES = {"N": "north", "E": "east", "S": "south", "W": "west"}


@dataclass
class TileDefinition:
    """A single tile type with its weight, metadata and adjacency rules.

    Attributes:
        tile_id: Unique identifier for this tile.
        weight: Relative probability weight for selection (higher = more common).
        valid_neighbors: Dict mapping direction ("N", "E", "S", "W") to sets of
            tile ids that can be adjacent in that direction.
        walkable: Whether actors can walk on this tile (tile map metadata).
        height: Elevation used by renderers (tile map metadata).
        category: Grouping such as "water" or "forest".
        color: Display colour as a hex string.
        symbol: Single character used by debug dumps.
    """

    tile_id: TileID
    weight: float = 1.0
    valid_neighbors: dict[Direction, set[TileID]] = field(default_factory=dict)
    walkable: bool = True
    height: int = 0
    category: str = "terrain"
    color: str = "#000000"
    symbol: str | None = None

    @classmethod
    def symmetric(
        cls, tile_id: TileID, neighbors: Iterable[TileID], **kwargs
    ) -> TileDefinition:
        """Create a tile whose neighbour list applies to all four directions."""
        allowed = set(neighbors)
        return cls(
            tile_id,
            valid_neighbors={direction: set(allowed) for direction in DIRECTIONS},
            **kwargs,
        )


class TileCatalog:
    """An immutable set of TileDefinitions with precomputed adjacency matrices.

    For each direction we precompute an (n, n) boolean matrix where
    `compatibility[d][a, b]` is True when tile `b` may be the neighbour of
    tile `a` in direction `d`. Propagation then reduces to a row lookup.
    """

    def __init__(self, definitions: Iterable[TileDefinition]) -> None:
        self._definitions: dict[TileID, TileDefinition] = {}
        for definition in definitions:
            if definition.tile_id in self._definitions:
                raise WFCStateError(f"Duplicate tile id: {definition.tile_id!r}")
            if not (math.isfinite(definition.weight) and definition.weight > 0):
                raise WFCStateError(
                    f"Tile {definition.tile_id!r} needs a finite positive weight, "
                    f"got {definition.weight}"
                )
            self._definitions[definition.tile_id] = definition

        if not self._definitions:
            raise WFCStateError("A TileCatalog needs at least one tile")

        self.tile_ids: tuple[TileID, ...] = tuple(self._definitions)
        self._index: dict[TileID, TileIndex] = {
            tile_id: i for i, tile_id in enumerate(self.tile_ids)
        }

        self.base_weights = np.array(
            [self._definitions[tid].weight for tid in self.tile_ids], dtype=np.float64
        )
        self.base_weights.setflags(write=False)

        for definition in self._definitions.values():
            for direction, neighbor_ids in definition.valid_neighbors.items():
                if direction not in OPPOSITE_DIR:
                    raise WFCStateError(
                        f"Tile {definition.tile_id!r} uses unknown direction "
                        f"{direction!r}"
                    )
                for neighbor_id in neighbor_ids:
                    if neighbor_id not in self._index:
                        raise UnknownTileError(neighbor_id)

        self._precompute_compatibility()
        # (direction, mask bytes) -> allowed neighbour mask
        self._allowed_cache: ResourceCache[tuple[Direction, bytes], np.ndarray] = (
            ResourceCache("allowed_neighbors", config.ALLOWED_MASK_CACHE_SIZE)
        )

        asymmetric = self.asymmetric_pairs()
        if asymmetric:
            logger.debug(
                f"Catalog has {len(asymmetric)} one-sided adjacency entries; "
                "they will never be compatible"
            )

    def _precompute_compatibility(self) -> None:
        """Build the per-direction compatibility matrices."""
        n = len(self.tile_ids)
        declared: dict[Direction, np.ndarray] = {}
        for direction in DIRECTIONS:
            matrix = np.zeros((n, n), dtype=bool)
            for tile_id, definition in self._definitions.items():
                a = self._index[tile_id]
                for neighbor_id in definition.valid_neighbors.get(direction, ()):
                    matrix[a, self._index[neighbor_id]] = True
            declared[direction] = matrix

        # a permits b in d, and b permits a in the opposite direction
        self.compatibility: dict[Direction, np.ndarray] = {}
        for direction in DIRECTIONS:
            matrix = declared[direction] & declared[OPPOSITE_DIR[direction]].T
            matrix.setflags(write=False)
            self.compatibility[direction] = matrix

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.tile_ids)

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._index

    def __iter__(self) -> Iterator[TileDefinition]:
        return iter(self._definitions.values())

    def get(self, tile_id: TileID) -> TileDefinition:
        try:
            return self._definitions[tile_id]
        except KeyError:
            raise UnknownTileError(tile_id) from None

    def index_of(self, tile_id: TileID) -> TileIndex:
        try:
            return self._index[tile_id]
        except KeyError:
            raise UnknownTileError(tile_id) from None

    def tile_id_at(self, index: TileIndex) -> TileID:
        return self.tile_ids[index]

    def weight(self, tile_id: TileID) -> float:
        return float(self.base_weights[self.index_of(tile_id)])

    def by_category(self, category: str) -> list[TileID]:
        return [d.tile_id for d in self._definitions.values() if d.category == category]

    def mask_of(self, tile_ids: Iterable[TileID]) -> np.ndarray:
        """Convert tile ids to a boolean mask over the dense tile indices."""
        mask = np.zeros(len(self.tile_ids), dtype=bool)
        for tile_id in tile_ids:
            mask[self.index_of(tile_id)] = True
        return mask

    def ids_of(self, mask: np.ndarray) -> list[TileID]:
        """Convert a boolean mask back to tile ids, in catalog order."""
        return [self.tile_ids[i] for i in np.flatnonzero(mask)]

    # -------------------------------------------------------------------------
    # Adjacency
    # -------------------------------------------------------------------------

    def compatible(self, tile_a: TileID, tile_b: TileID, direction: Direction) -> bool:
        """Can `tile_b` sit in `direction` of `tile_a`?"""
        a = self.index_of(tile_a)
        b = self.index_of(tile_b)
        return bool(self.compatibility[direction][a, b])

    def allowed_neighbors(self, mask: np.ndarray, direction: Direction) -> np.ndarray:
        """Mask of tiles compatible with at least one tile in `mask`.

        Args:
            mask: Boolean mask of the tiles still possible in a cell.
            direction: Direction from that cell to the neighbour.

        Returns:
            A read-only boolean mask for the neighbour. Callers must not
            modify it. Results are cached per (direction, mask) in an LRU
            cache of `config.ALLOWED_MASK_CACHE_SIZE` entries.
        """
        key = (direction, mask.tobytes())
        allowed = self._allowed_cache.get(key)
        if allowed is None:
            allowed = self.compatibility[direction][mask].any(axis=0)
            allowed.setflags(write=False)
            self._allowed_cache.store(key, allowed)
        return allowed

    def asymmetric_pairs(self) -> list[tuple[TileID, Direction, TileID]]:
        """List adjacency entries that the other tile does not reciprocate."""
        pairs: list[tuple[TileID, Direction, TileID]] = []
        for tile_id, definition in self._definitions.items():
            for direction in DIRECTIONS:
                opposite = OPPOSITE_DIR[direction]
                for neighbor_id in sorted(definition.valid_neighbors.get(direction, ())):
                    neighbor = self._definitions[neighbor_id]
                    if tile_id not in neighbor.valid_neighbors.get(opposite, ()):
                        pairs.append((tile_id, direction, neighbor_id))
        return pairs

    def __repr__(self) -> str:
        return f"TileCatalog({len(self.tile_ids)} tiles)"
