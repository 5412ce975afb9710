from __future__ import annotations

# =============================================================================
# GRID COORDINATES (Always integers)
# =============================================================================

TileCoord = int  # Column or row index into a grid
GridPos = tuple[TileCoord, TileCoord]  # Example: (5, 3) = column 5, row 3

# =============================================================================
# TILES
# =============================================================================

# Tile identifiers are the catalogue's string names ("grass", "deep_water").
TileID = str

# Dense integer index assigned to each tile by a TileCatalog.
TileIndex = int

# One of "N", "E", "S", "W".
Direction = str

# =============================================================================
# RANDOMNESS
# =============================================================================

# Seeds can be int, str, or None (non-deterministic).
RandomSeed = int | str | None
