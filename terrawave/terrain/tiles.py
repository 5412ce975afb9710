"""Built-in terrain tile catalogue.

Tiles cover water, wetland, shoreline, lowland, forest and highland terrain,
plus roads, buildings and special structures. Two adjacency tables exist:

- TERRAIN_ADJACENCY: terrain tiles only, fully symmetric so WFC rarely gets
  stuck. Used for natural terrain generation.
- ADJACENCY: every tile including structures. Some entries are one-sided;
  the catalog treats those pairs as incompatible.

Adjacency here is direction-less: a tile's list applies to all four sides.
"""

from __future__ import annotations

from dataclasses import dataclass

from terrawave.types import TileID
from terrawave.wfc.catalog import TileCatalog, TileDefinition


@dataclass(frozen=True)
class TileInfo:
    """Static metadata for one terrain tile type."""

    weight: float
    walkable: bool
    height: int
    color: str
    category: str
    symbol: str


# =============================================================================
# Tile metadata
# =============================================================================

TILES: dict[TileID, TileInfo] = {
    # --- WATER ---
    "deep_water": TileInfo(0.06, False, 0, "#1565C0", "water", "~"),
    "shallow_water": TileInfo(0.08, False, 0, "#42A5F5", "water", "≈"),
    "river": TileInfo(0.05, False, 0, "#2196F3", "water", "≋"),
    # --- WETLAND ---
    "marsh": TileInfo(0.05, True, 0, "#7CB342", "wetland", "∿"),
    "swamp": TileInfo(0.05, True, 0, "#558B2F", "wetland", "⍦"),
    "bog": TileInfo(0.03, True, 0, "#4E342E", "wetland", "░"),
    # --- SHORELINE / LOWLAND ---
    "sand": TileInfo(0.07, True, 0, "#FFD54F", "shoreline", "."),
    "grass": TileInfo(0.12, True, 0, "#66BB6A", "terrain", ","),
    "meadow": TileInfo(0.10, True, 0, "#9CCC65", "terrain", "'"),
    "glen": TileInfo(0.08, True, 0, "#81C784", "terrain", "`"),
    "scrubland": TileInfo(0.06, True, 0, "#AED581", "terrain", ";"),
    # --- FOREST ---
    "forest": TileInfo(0.08, True, 0, "#2E7D32", "forest", "♣"),
    "dense_forest": TileInfo(0.05, True, 0, "#1B5E20", "forest", "♠"),
    "pine_forest": TileInfo(0.04, True, 0, "#33691E", "forest", "↟"),
    "dead_forest": TileInfo(0.02, True, 0, "#5D4037", "forest", "†"),
    # --- HIGHLAND ---
    "hills": TileInfo(0.08, True, 8, "#8D6E63", "highland", "^"),
    "rocky": TileInfo(0.05, True, 6, "#9E9E9E", "highland", "#"),
    "cliffs": TileInfo(0.03, False, 16, "#757575", "highland", "▓"),
    "mountain": TileInfo(0.05, False, 24, "#78909C", "highland", "▲"),
    "peak": TileInfo(0.02, False, 32, "#ECEFF1", "highland", "△"),
    # --- ROADS ---
    "dirt_road": TileInfo(0.03, True, 0, "#A1887F", "road", "─"),
    "stone_road": TileInfo(0.02, True, 0, "#9E9E9E", "road", "═"),
    "bridge": TileInfo(0.01, True, 2, "#8D6E63", "road", "┼"),
    # --- BUILDINGS ---
    "building_wood": TileInfo(0.02, False, 20, "#FF8A65", "building", "□"),
    "building_stone": TileInfo(0.015, False, 25, "#90A4AE", "building", "■"),
    "castle_wall": TileInfo(0.008, False, 35, "#546E7A", "building", "█"),
    "castle_tower": TileInfo(0.004, False, 45, "#37474F", "building", "♜"),
    # --- SPECIAL ---
    "ruins": TileInfo(0.02, True, 8, "#A1887F", "special", "◊"),
    "farm_field": TileInfo(0.03, True, 0, "#FFCC80", "farm", "▒"),
    "orchard": TileInfo(0.02, True, 0, "#C5E1A5", "farm", "○"),
    "market": TileInfo(0.01, True, 0, "#FFB300", "special", "☆"),
    "dock": TileInfo(0.01, True, 0, "#BCAAA4", "special", "▬"),
    "well": TileInfo(0.008, True, 4, "#607D8B", "special", "●"),
}

TERRAIN_ONLY_IDS: tuple[TileID, ...] = (
    # Water
    "deep_water", "shallow_water", "river",
    # Wetland
    "marsh", "swamp", "bog",
    # Lowland
    "sand", "grass", "meadow", "glen", "scrubland",
    # Forest
    "forest", "dense_forest", "pine_forest", "dead_forest",
    # Highland
    "hills", "rocky", "cliffs", "mountain", "peak",
)  # fmt: skip

# =============================================================================
# Adjacency
# =============================================================================

# Symmetric: if A lists B then B lists A.
TERRAIN_ADJACENCY: dict[TileID, tuple[TileID, ...]] = {
    # Water cluster
    "deep_water": ("deep_water", "shallow_water"),
    "shallow_water": ("deep_water", "shallow_water", "river", "sand", "marsh", "grass"),
    "river": ("shallow_water", "river", "marsh", "grass", "meadow", "swamp", "forest"),
    # Wetland cluster
    "marsh": (
        "shallow_water", "river", "marsh", "swamp", "grass", "meadow", "bog",
        "forest", "dead_forest",
    ),
    "swamp": (
        "river", "marsh", "swamp", "bog", "dead_forest", "grass", "forest",
        "dense_forest",
    ),
    "bog": ("marsh", "swamp", "bog", "dead_forest", "scrubland", "grass"),
    # Shoreline
    "sand": ("shallow_water", "sand", "grass", "scrubland", "rocky", "meadow"),
    # Lowland hub - connects everything
    "grass": (
        "shallow_water", "river", "sand", "marsh", "swamp", "bog", "grass",
        "meadow", "glen", "scrubland", "forest", "dense_forest", "pine_forest",
        "dead_forest", "hills", "rocky",
    ),
    "meadow": (
        "river", "sand", "marsh", "grass", "meadow", "glen", "scrubland",
        "forest", "dense_forest", "pine_forest", "hills",
    ),
    "glen": (
        "grass", "meadow", "glen", "scrubland", "forest", "dense_forest",
        "pine_forest", "hills", "rocky",
    ),
    "scrubland": (
        "sand", "grass", "meadow", "glen", "scrubland", "rocky", "hills", "bog",
        "dead_forest", "forest",
    ),
    # Forest cluster
    "forest": (
        "river", "marsh", "swamp", "grass", "meadow", "glen", "scrubland",
        "forest", "dense_forest", "pine_forest", "hills", "rocky",
    ),
    "dense_forest": (
        "swamp", "grass", "meadow", "glen", "forest", "dense_forest",
        "pine_forest", "hills",
    ),
    "pine_forest": (
        "grass", "meadow", "glen", "forest", "dense_forest", "pine_forest",
        "hills", "rocky", "mountain",
    ),
    "dead_forest": ("marsh", "swamp", "bog", "scrubland", "grass", "dead_forest", "rocky"),
    # Highland cluster
    "hills": (
        "grass", "meadow", "glen", "scrubland", "forest", "dense_forest",
        "pine_forest", "hills", "rocky", "mountain", "cliffs",
    ),
    "rocky": (
        "sand", "grass", "glen", "scrubland", "forest", "pine_forest",
        "dead_forest", "hills", "rocky", "cliffs", "mountain",
    ),
    "cliffs": ("hills", "rocky", "cliffs", "mountain", "peak"),
    "mountain": ("pine_forest", "hills", "rocky", "cliffs", "mountain", "peak"),
    "peak": ("cliffs", "mountain", "peak"),
}  # fmt: skip

ADJACENCY: dict[TileID, tuple[TileID, ...]] = {
    # --- WATER ---
    "deep_water": ("deep_water", "shallow_water"),
    "shallow_water": (
        "deep_water", "shallow_water", "river", "sand", "marsh", "dock", "bridge",
    ),
    "river": ("shallow_water", "river", "marsh", "grass", "meadow", "bridge", "swamp"),
    # --- WETLAND ---
    "marsh": ("shallow_water", "river", "marsh", "swamp", "grass", "meadow", "bog"),
    "swamp": ("marsh", "swamp", "bog", "river", "dead_forest", "grass"),
    "bog": ("marsh", "swamp", "bog", "dead_forest", "scrubland"),
    # --- SHORELINE ---
    "sand": ("shallow_water", "sand", "grass", "scrubland", "dirt_road", "dock", "rocky"),
    # --- LOWLAND ---
    "grass": (
        "shallow_water", "river", "sand", "marsh", "grass", "meadow", "glen",
        "scrubland", "forest", "hills", "dirt_road", "farm_field",
        "building_wood", "well", "orchard",
    ),
    "meadow": (
        "river", "marsh", "grass", "meadow", "glen", "forest", "pine_forest",
        "hills", "dirt_road", "farm_field", "orchard",
    ),
    "glen": ("grass", "meadow", "glen", "forest", "pine_forest", "hills", "rocky", "ruins"),
    "scrubland": (
        "sand", "grass", "scrubland", "rocky", "hills", "bog", "dead_forest",
        "dirt_road",
    ),
    # --- FOREST ---
    "forest": (
        "grass", "meadow", "glen", "forest", "dense_forest", "pine_forest",
        "hills", "dirt_road", "building_wood", "ruins",
    ),
    "dense_forest": ("forest", "dense_forest", "pine_forest", "hills", "swamp"),
    "pine_forest": (
        "meadow", "glen", "forest", "dense_forest", "pine_forest", "hills",
        "rocky", "mountain",
    ),
    "dead_forest": ("swamp", "bog", "scrubland", "dead_forest", "rocky", "ruins"),
    # --- HIGHLAND ---
    "hills": (
        "grass", "meadow", "glen", "scrubland", "forest", "pine_forest", "hills",
        "rocky", "mountain", "dirt_road", "building_stone", "castle_wall", "ruins",
    ),
    "rocky": (
        "sand", "glen", "scrubland", "pine_forest", "dead_forest", "hills",
        "rocky", "cliffs", "mountain", "ruins",
    ),
    "cliffs": ("rocky", "cliffs", "mountain", "peak"),
    "mountain": (
        "pine_forest", "hills", "rocky", "cliffs", "mountain", "peak", "castle_wall",
    ),
    "peak": ("cliffs", "mountain", "peak"),
    # --- ROADS ---
    "dirt_road": (
        "grass", "meadow", "scrubland", "sand", "forest", "hills", "dirt_road",
        "stone_road", "building_wood", "bridge", "farm_field", "market", "dock",
        "well", "orchard",
    ),
    "stone_road": (
        "grass", "dirt_road", "stone_road", "building_stone", "castle_wall",
        "market", "well",
    ),
    "bridge": ("dirt_road", "shallow_water", "river", "grass", "sand", "marsh"),
    # --- BUILDINGS ---
    "building_wood": (
        "grass", "meadow", "dirt_road", "building_wood", "farm_field", "forest",
        "well", "orchard",
    ),
    "building_stone": (
        "grass", "hills", "dirt_road", "stone_road", "building_stone", "castle_wall",
    ),
    "castle_wall": (
        "mountain", "hills", "stone_road", "castle_wall", "castle_tower",
        "building_stone",
    ),
    "castle_tower": ("castle_wall",),
    "ruins": ("grass", "glen", "forest", "dead_forest", "hills", "rocky", "ruins"),
    # --- SPECIAL ---
    "farm_field": (
        "grass", "meadow", "dirt_road", "farm_field", "building_wood", "orchard",
        "well",
    ),
    "orchard": ("grass", "meadow", "farm_field", "orchard", "dirt_road", "building_wood"),
    "market": ("grass", "stone_road", "dirt_road", "building_wood", "building_stone"),
    "dock": ("shallow_water", "sand", "dirt_road", "building_wood", "grass"),
    "well": ("grass", "dirt_road", "building_wood", "farm_field", "stone_road"),
}  # fmt: skip


def create_tile_catalog(terrain_only: bool = True) -> TileCatalog:
    """Build a TileCatalog from the built-in tiles.

    Args:
        terrain_only: Use only natural terrain tiles and the symmetric terrain
            adjacency table. False includes roads, buildings and specials.
    """
    tile_ids = TERRAIN_ONLY_IDS if terrain_only else tuple(TILES)
    adjacency = TERRAIN_ADJACENCY if terrain_only else ADJACENCY

    definitions: list[TileDefinition] = []
    for tile_id in tile_ids:
        info = TILES[tile_id]
        definitions.append(
            TileDefinition.symmetric(
                tile_id,
                adjacency.get(tile_id, ()),
                weight=info.weight,
                walkable=info.walkable,
                height=info.height,
                category=info.category,
                color=info.color,
                symbol=info.symbol,
            )
        )
    return TileCatalog(definitions)
