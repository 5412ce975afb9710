"""Natural terrain generation: tile catalogue, world seeds and the generator."""

from .generator import (
    GeneratedTerrain,
    GenerationProgress,
    TerrainGenerator,
    TerrainOptions,
)
from .tiles import TILES, create_tile_catalog
from .world_seed import PointOfInterest, Region, WorldSeed, validate_world_seed

__all__ = [
    "TILES",
    "GeneratedTerrain",
    "GenerationProgress",
    "PointOfInterest",
    "Region",
    "TerrainGenerator",
    "TerrainOptions",
    "WorldSeed",
    "create_tile_catalog",
    "validate_world_seed",
]
