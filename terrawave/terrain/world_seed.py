"""World seed documents and the terrain biases derived from them.

A world seed is a JSON-style document describing a map: its size, biome and
points of interest (POIs). Only the parts that shape terrain generation are
modelled here: terrain-zone POIs with a rectangular `region` become weight
multipliers plus a seeded centre tile, lake POIs with a `position` seed deep
water, and the biome applies map-wide multipliers.

Example document:
    {
        "name": "Vale of Ash",
        "size": {"width": 32, "height": 24},
        "biome": "temperate",
        "pois": [
            {"id": "wood", "type": "forest",
             "region": {"x_min": 2, "x_max": 10, "y_min": 3, "y_max": 9},
             "density": 1.2},
            {"id": "mere", "type": "lake", "position": {"x": 20, "y": 12}}
        ]
    }
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from terrawave import config
from terrawave.types import TileCoord, TileID
from terrawave.util.coordinates import Rect

POI_TYPES: tuple[str, ...] = (
    "village",
    "city",
    "castle",
    "forest",
    "lake",
    "mountain",
    "farm",
    "port",
    "ruins",
    "temple",
    "mine",
    "tavern",
    "tower",
    "bridge",
    "crossroads",
    # Terrain zones without settlements
    "swamp",
    "desert",
    "plains",
    "hills",
)

BIOMES: tuple[str, ...] = (
    "temperate",
    "desert",
    "arctic",
    "tropical",
    "volcanic",
    "swamp",
    "highland",
    "coastal",
)

# =============================================================================
# Terrain bias tables
# =============================================================================


def zone_modifiers(poi_type: str, density: float) -> dict[TileID, float]:
    """Weight multipliers for a terrain-zone POI, scaled by its density.

    Favoured tiles scale with density; discouraged tiles use a fixed factor.
    Unknown POI types have no terrain effect.
    """
    d = density
    tables: dict[str, dict[TileID, float]] = {
        "forest": {
            "forest": 3.0 * d,
            "dense_forest": 2.5 * d,
            "pine_forest": 1.5 * d,
            "glen": 1.2 * d,
            "grass": 0.3,
            "meadow": 0.4,
            "hills": 0.8,
        },
        "lake": {
            "deep_water": 4.0 * d,
            "shallow_water": 3.0 * d,
            "river": 1.5 * d,
            "marsh": 1.2 * d,
            "sand": 1.5 * d,
            "grass": 0.2,
            "forest": 0.1,
        },
        "mountain": {
            "mountain": 3.0 * d,
            "peak": 2.0 * d,
            "rocky": 2.5 * d,
            "cliffs": 2.0 * d,
            "hills": 1.8 * d,
            "pine_forest": 1.2 * d,
            "grass": 0.3,
            "forest": 0.4,
        },
        "swamp": {
            "swamp": 3.5 * d,
            "marsh": 3.0 * d,
            "bog": 2.5 * d,
            "dead_forest": 2.0 * d,
            "shallow_water": 1.5 * d,
            "river": 1.2 * d,
            "grass": 0.4,
            "forest": 0.3,
        },
        "desert": {
            "sand": 4.0 * d,
            "scrubland": 2.0 * d,
            "rocky": 1.5 * d,
            "grass": 0.1,
            "forest": 0.05,
            "deep_water": 0.1,
        },
        "plains": {
            "grass": 2.5 * d,
            "meadow": 3.0 * d,
            "glen": 1.5 * d,
            "scrubland": 1.2 * d,
            "forest": 0.3,
            "hills": 0.5,
            "deep_water": 0.2,
        },
        "hills": {
            "hills": 3.0 * d,
            "rocky": 2.0 * d,
            "grass": 1.2 * d,
            "glen": 1.5 * d,
            "pine_forest": 1.0 * d,
            "mountain": 0.8,
            "forest": 0.6,
        },
    }
    return tables.get(poi_type, {})


ZONE_SEED_TILES: dict[str, TileID] = {
    "forest": "dense_forest",
    "lake": "deep_water",
    "mountain": "mountain",
    "hills": "hills",
    "swamp": "swamp",
    "desert": "sand",
    "plains": "meadow",
}

BIOME_MODIFIERS: dict[str, dict[TileID, float]] = {
    "temperate": {"grass": 1.3, "forest": 1.2, "hills": 0.8, "mountain": 0.6},
    "tropical": {"forest": 1.5, "shallow_water": 1.5, "sand": 1.2, "mountain": 0.4},
    "desert": {"sand": 3.0, "grass": 0.2, "forest": 0.05, "deep_water": 0.1},
    "arctic": {"mountain": 1.5, "hills": 1.2, "grass": 0.6, "forest": 0.4},
    "volcanic": {"mountain": 2.5, "hills": 1.8, "grass": 0.5, "forest": 0.3},
    "coastal": {"shallow_water": 1.8, "sand": 1.5, "grass": 1.2, "deep_water": 1.2},
}

# =============================================================================
# Document model
# =============================================================================


@dataclass(frozen=True)
class Region:
    """Inclusive rectangular bounds. A missing max extends to the map edge."""

    x_min: TileCoord = 0
    y_min: TileCoord = 0
    x_max: TileCoord | None = None
    y_max: TileCoord | None = None

    def to_rect(self, width: int, height: int) -> Rect:
        x_max = width - 1 if self.x_max is None else self.x_max
        y_max = height - 1 if self.y_max is None else self.y_max
        return Rect.from_inclusive_bounds(self.x_min, self.y_min, x_max, y_max)

    def center(self) -> tuple[TileCoord, TileCoord]:
        x_max = self.x_min if self.x_max is None else self.x_max
        y_max = self.y_min if self.y_max is None else self.y_max
        return (self.x_min + x_max) // 2, (self.y_min + y_max) // 2


@dataclass(frozen=True)
class PointOfInterest:
    poi_id: str
    type: str
    name: str | None = None
    position: tuple[TileCoord, TileCoord] | None = None
    region: Region | None = None
    density: float = config.DEFAULT_ZONE_DENSITY


@dataclass
class WorldSeed:
    name: str
    width: int
    height: int
    biome: str
    pois: list[PointOfInterest] = field(default_factory=list)
    description: str = ""

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> WorldSeed:
        """Parse and validate a world seed document.

        Raises:
            ValueError: Listing every problem found in the document.
        """
        errors = validate_world_seed(document)
        if errors:
            raise ValueError("Invalid world seed: " + "; ".join(errors))

        pois = [_parse_poi(poi) for poi in document.get("pois") or ()]
        size = document["size"]
        return cls(
            name=document["name"],
            width=int(size["width"]),
            height=int(size["height"]),
            biome=document["biome"],
            pois=pois,
            description=document.get("description", ""),
        )

    @classmethod
    def default(cls, name: str = "New World") -> WorldSeed:
        return cls(
            name=name,
            width=config.DEFAULT_MAP_WIDTH,
            height=config.DEFAULT_MAP_HEIGHT,
            biome="temperate",
            description="A mysterious land awaiting exploration.",
        )


def _parse_poi(raw: Mapping[str, Any]) -> PointOfInterest:
    position = raw.get("position")
    region = raw.get("region")
    return PointOfInterest(
        poi_id=raw["id"],
        type=raw["type"],
        name=raw.get("name"),
        position=(int(position["x"]), int(position["y"])) if position else None,
        region=Region(
            x_min=int(region.get("x_min", 0)),
            y_min=int(region.get("y_min", 0)),
            x_max=None if region.get("x_max") is None else int(region["x_max"]),
            y_max=None if region.get("y_max") is None else int(region["y_max"]),
        )
        if region
        else None,
        density=config.DEFAULT_ZONE_DENSITY
        if raw.get("density") is None
        else float(raw["density"]),
    )


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def validate_world_seed(document: Mapping[str, Any]) -> list[str]:
    """Return a list of problems with a world seed document (empty if valid)."""
    errors: list[str] = []

    if not document.get("name"):
        errors.append("Missing name")

    size = document.get("size")
    if not size:
        errors.append("Missing size")
    else:
        width = size.get("width", 0)
        height = size.get("height", 0)
        if not config.MIN_MAP_WIDTH <= width <= config.MAX_MAP_WIDTH:
            errors.append(
                f"Width must be {config.MIN_MAP_WIDTH}-{config.MAX_MAP_WIDTH}"
            )
        if not config.MIN_MAP_HEIGHT <= height <= config.MAX_MAP_HEIGHT:
            errors.append(
                f"Height must be {config.MIN_MAP_HEIGHT}-{config.MAX_MAP_HEIGHT}"
            )

    if document.get("biome") not in BIOMES:
        errors.append(f"Invalid biome. Use: {', '.join(BIOMES)}")

    for poi in document.get("pois") or ():
        if not poi.get("id"):
            errors.append("POI missing id")
        if poi.get("type") not in POI_TYPES:
            errors.append(f"Invalid POI type {poi.get('type')!r}")
        if not poi.get("position") and not poi.get("region"):
            errors.append(f"POI {poi.get('id')!r} needs position or region")
        density = poi.get("density")
        if density is not None and not _is_positive_number(density):
            errors.append(f"POI {poi.get('id')!r} density must be a positive number")

    return errors
