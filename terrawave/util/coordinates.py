"""Rectangular regions and bounds checks in grid coordinates."""

from __future__ import annotations

from collections.abc import Iterator

from terrawave.types import GridPos, TileCoord

# =============================================================================
# BOUNDS CHECKING HELPERS
# =============================================================================


def is_valid_grid_pos(pos: GridPos, width: TileCoord, height: TileCoord) -> bool:
    """Check if a grid position is within bounds."""
    x, y = pos
    return 0 <= x < width and 0 <= y < height


class Rect:
    """Rectangle/bounding box in tile coordinates.

    `x2`/`y2` are exclusive, so `Rect(0, 0, 4, 3)` covers columns 0-3 and
    rows 0-2.
    """

    def __init__(self, x: TileCoord, y: TileCoord, w: TileCoord, h: TileCoord) -> None:
        self.x1: TileCoord = x
        self.y1: TileCoord = y
        self.x2: TileCoord = x + w
        self.y2: TileCoord = y + h

    @classmethod
    def from_bounds(
        cls, x1: TileCoord, y1: TileCoord, x2: TileCoord, y2: TileCoord
    ) -> Rect:
        """Create a Rect from corner coordinates (x1, y1, x2, y2)."""
        width = x2 - x1
        height = y2 - y1
        return cls(x1, y1, width, height)

    @classmethod
    def from_inclusive_bounds(
        cls, x_min: TileCoord, y_min: TileCoord, x_max: TileCoord, y_max: TileCoord
    ) -> Rect:
        """Create a Rect from inclusive min/max bounds (world seed regions)."""
        return cls.from_bounds(x_min, y_min, x_max + 1, y_max + 1)

    @property
    def width(self) -> TileCoord:
        return self.x2 - self.x1

    @property
    def height(self) -> TileCoord:
        return self.y2 - self.y1

    def center(self) -> tuple[int, int]:
        return ((self.x1 + self.x2 - 1) // 2, (self.y1 + self.y2 - 1) // 2)

    def contains(self, x: TileCoord, y: TileCoord) -> bool:
        return self.x1 <= x < self.x2 and self.y1 <= y < self.y2

    def clip(self, width: TileCoord, height: TileCoord) -> Rect:
        """Return this rectangle clipped to a width x height grid.

        A rectangle that lies entirely outside the grid clips to an empty one.
        """
        x1 = min(max(self.x1, 0), width)
        y1 = min(max(self.y1, 0), height)
        x2 = max(min(self.x2, width), x1)
        y2 = max(min(self.y2, height), y1)
        return Rect.from_bounds(x1, y1, x2, y2)

    def positions(self) -> Iterator[GridPos]:
        """Yield every (x, y) inside the rectangle in row-major order."""
        for y in range(self.y1, self.y2):
            for x in range(self.x1, self.x2):
                yield x, y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.x1, self.y1, self.x2, self.y2) == (
            other.x1,
            other.y1,
            other.x2,
            other.y2,
        )

    def __hash__(self) -> int:
        return hash((self.x1, self.y1, self.x2, self.y2))

    def __repr__(self) -> str:
        return f"Rect(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"
