"""One grid position's wavefunction.

A Cell stores a float64 weight per catalog tile. A weight of exactly 0.0 is
the sentinel for "this tile is no longer possible here"; every still-possible
tile has a strictly positive weight. Weights start as the catalog's base
weights and are only ever multiplied in place (region modifiers) or zeroed
(propagation, collapse), never renormalised, so their ratios carry both the
catalog priors and any spatial bias.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import numpy as np

from terrawave.types import TileCoord, TileID, TileIndex

from .errors import WFCStateError

if TYPE_CHECKING:
    from terrawave.util.rng import RNG

    from .catalog import TileCatalog


class Cell:
    """A grid cell in superposition over the catalog's tiles.

    Attributes:
        x: Column in the grid.
        y: Row in the grid.
        catalog: The catalog that defines the tile indices.
        weights: Per-tile weights, 0.0 for impossible tiles.
        collapsed: True once the cell has been resolved to a single tile.
    """

    __slots__ = (
        "_count",
        "_entropy",
        "_on_change",
        "_tile_index",
        "catalog",
        "collapsed",
        "weights",
        "x",
        "y",
    )

    def __init__(
        self,
        x: TileCoord,
        y: TileCoord,
        catalog: TileCatalog,
        weights: np.ndarray | None = None,
    ) -> None:
        self.x = x
        self.y = y
        self.catalog = catalog
        self.weights = (
            catalog.base_weights.copy()
            if weights is None
            else np.asarray(weights, dtype=np.float64)
        )
        self.collapsed = False
        self._tile_index: TileIndex | None = None
        self._count = int(np.count_nonzero(self.weights))
        self._entropy: float | None = None
        # Called with this cell before each mutation (Grid history journal).
        self._on_change: Callable[[Cell], None] | None = None

    # -------------------------------------------------------------------------
    # State queries
    # -------------------------------------------------------------------------

    @property
    def mask(self) -> np.ndarray:
        """Boolean mask of the tiles still possible here."""
        return self.weights > 0

    @property
    def possibilities(self) -> frozenset[TileID]:
        return frozenset(self.catalog.ids_of(self.mask))

    @property
    def possibility_count(self) -> int:
        return self._count

    @property
    def is_contradiction(self) -> bool:
        return self._count == 0

    @property
    def tile_index(self) -> TileIndex | None:
        return self._tile_index

    @property
    def tile(self) -> TileID | None:
        """The resolved tile id, or None while uncollapsed."""
        if self._tile_index is None:
            return None
        return self.catalog.tile_id_at(self._tile_index)

    def weight_of(self, tile_id: TileID) -> float:
        return float(self.weights[self.catalog.index_of(tile_id)])

    def entropy(self) -> float:
        """Uncertainty score used to order cells for collapse (lowest first).

        0.0 for a collapsed cell. For an uncollapsed cell with n >= 1
        possibilities it is n plus half the Shannon entropy of the normalised
        remaining weights divided by ln(n). That term lies in (0, 0.5], so
        removing any possibility always lowers the score, and between cells
        with the same count the one with more skewed weights ranks lower.
        A contradictory cell also reports 0.0; grids never select it.
        """
        if self.collapsed:
            return 0.0
        if self._entropy is None:
            self._entropy = self._compute_entropy()
        return self._entropy

    def _compute_entropy(self) -> float:
        n = self._count
        if n == 0:
            return 0.0
        if n == 1:
            return 1.0

        weights = self.weights[self.weights > 0]
        p = weights / weights.sum()
        shannon = float(-(p * np.log(p)).sum())
        return n + 0.5 * min(shannon / math.log(n), 1.0)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _touch(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def restrict_to(self, allowed: np.ndarray | Iterable[TileID]) -> bool:
        """Intersect the possibilities with `allowed`.

        Collapsed cells are fixed and never change here; the Propagator checks
        them for compatibility instead.

        Args:
            allowed: Boolean mask over tile indices, or an iterable of tile ids.

        Returns:
            True if any possibility was removed.
        """
        if self.collapsed:
            return False
        if not isinstance(allowed, np.ndarray):
            allowed = self.catalog.mask_of(allowed)

        removed = (self.weights > 0) & ~allowed
        if not removed.any():
            return False

        self._touch()
        self.weights = np.where(removed, 0.0, self.weights)
        self._count = int(np.count_nonzero(self.weights))
        self._entropy = None
        return True

    def multiply_weights(self, factors: np.ndarray) -> None:
        """Multiply each tile's weight by a per-tile factor (all factors > 0).

        Impossible tiles stay at 0.0, so a multiplier never re-enables a tile.

        Raises:
            WFCStateError: If a resulting weight overflows to a non-finite
                value or a still-possible tile underflows to 0.0. The cell is
                left unchanged.
        """
        if self.collapsed:
            return
        with np.errstate(over="ignore", under="ignore"):
            weights = self.weights * factors
        if not np.isfinite(weights).all():
            raise WFCStateError(
                f"Weights at ({self.x}, {self.y}) overflow after multiplying"
            )
        if int(np.count_nonzero(weights)) != self._count:
            raise WFCStateError(
                f"Weights at ({self.x}, {self.y}) underflow to zero after multiplying"
            )
        self._touch()
        self.weights = weights
        self._entropy = None

    def set_weight(self, tile_id: TileID, weight: float) -> bool:
        """Replace a still-possible tile's weight. Returns False if not possible."""
        if not (math.isfinite(weight) and weight > 0):
            raise WFCStateError(
                f"Tile weights must be finite and positive, got {weight}"
            )
        index = self.catalog.index_of(tile_id)
        if self.collapsed or self.weights[index] == 0.0:
            return False
        self._touch()
        self.weights = self.weights.copy()
        self.weights[index] = weight
        self._entropy = None
        return True

    def collapse(self, rng: RNG) -> TileID:
        """Resolve the cell to one tile by weighted random choice.

        Draws one uniform value from `rng` and walks the cumulative weights of
        the remaining tiles in catalog order. A cell with a single possibility
        resolves without drawing.

        Raises:
            WFCStateError: If the cell is already collapsed or has no
                possibilities left.
        """
        if self.collapsed:
            raise WFCStateError(
                f"Cannot collapse cell at ({self.x}, {self.y}): already collapsed"
            )

        candidates = np.flatnonzero(self.weights)
        if candidates.size == 0:
            raise WFCStateError(
                f"Cannot collapse cell at ({self.x}, {self.y}): no possibilities"
            )

        if candidates.size == 1:
            chosen = int(candidates[0])
        else:
            cumulative = np.cumsum(self.weights[candidates])
            r = rng.random() * cumulative[-1]
            pick = int(np.searchsorted(cumulative, r, side="left"))
            chosen = int(candidates[min(pick, candidates.size - 1)])

        self._settle(chosen, float(self.weights[chosen]))
        return self.catalog.tile_id_at(chosen)

    def force_collapse(self, tile_id: TileID) -> None:
        """Unconditionally resolve the cell to `tile_id`, bypassing weights.

        Used for point-of-interest seeding. Does not propagate; the caller
        must run the Propagator afterwards.
        """
        index = self.catalog.index_of(tile_id)
        weight = float(self.weights[index]) or float(self.catalog.base_weights[index])
        self._settle(index, weight)

    def _settle(self, index: TileIndex, weight: float) -> None:
        self._touch()
        weights = np.zeros_like(self.weights)
        weights[index] = weight
        self.weights = weights
        self.collapsed = True
        self._tile_index = index
        self._count = 1
        self._entropy = None

    # -------------------------------------------------------------------------
    # Copying / debugging
    # -------------------------------------------------------------------------

    def clone(self) -> Cell:
        """Deep-copy the cell's state (weights, collapsed flag, tile)."""
        cell = Cell(self.x, self.y, self.catalog, self.weights.copy())
        cell.collapsed = self.collapsed
        cell._tile_index = self._tile_index
        cell._entropy = self._entropy
        return cell

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "collapsed": self.collapsed,
            "tile": self.tile,
            "possibilities": self.catalog.ids_of(self.mask),
        }

    def __repr__(self) -> str:
        state = self.tile if self.collapsed else f"{self._count} options"
        return f"Cell(x={self.x}, y={self.y}, {state})"
