"""Command line preview: `python -m terrawave`.

Generates a terrain map and prints its debug dump followed by a stats line.
Exits with status 1 when the solver gave up and the map was completed by the
recovery fill.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from terrawave import config
from terrawave.terrain import TerrainGenerator, TerrainOptions, WorldSeed
from terrawave.wfc import WFCError

logger = logging.getLogger(__name__)


def _seed_arg(value: str) -> int | str:
    """Integer seeds stay integers; anything else is used as a string seed."""
    try:
        return int(value)
    except ValueError:
        return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terrawave", description="Generate a WFC terrain map"
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help=f"Map width (default: world seed width or {config.DEFAULT_MAP_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help=(
            f"Map height (default: world seed height or {config.DEFAULT_MAP_HEIGHT})"
        ),
    )
    parser.add_argument(
        "--seed",
        type=_seed_arg,
        default=config.RANDOM_SEED,
        help=f"Random seed, integer or string (default: {config.RANDOM_SEED})",
    )
    parser.add_argument(
        "--max-backtracks",
        type=int,
        default=config.TERRAIN_MAX_BACKTRACKS,
        help=f"Backtrack budget (default: {config.TERRAIN_MAX_BACKTRACKS})",
    )
    parser.add_argument(
        "--world-seed", type=Path, help="World seed JSON document to shape the map"
    )
    parser.add_argument(
        "--forest-density",
        type=float,
        default=config.DEFAULT_FOREST_DENSITY,
        help=f"Forest density 0-1 (default: {config.DEFAULT_FOREST_DENSITY})",
    )
    parser.add_argument(
        "--water-level",
        type=float,
        default=config.DEFAULT_WATER_LEVEL,
        help=f"Water level 0-1 (default: {config.DEFAULT_WATER_LEVEL})",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    return parser


def load_world_seed(path: Path) -> WorldSeed:
    with path.open(encoding="utf-8") as f:
        return WorldSeed.from_dict(json.load(f))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    world_seed = None
    if args.world_seed is not None:
        try:
            world_seed = load_world_seed(args.world_seed)
        except (OSError, json.JSONDecodeError, ValueError) as e:
            parser.error(f"could not load world seed {args.world_seed}: {e}")
        logger.info(f"Loaded world seed {world_seed.name!r} from {args.world_seed}")

    width = args.width or (world_seed.width if world_seed else config.DEFAULT_MAP_WIDTH)
    height = args.height or (
        world_seed.height if world_seed else config.DEFAULT_MAP_HEIGHT
    )

    try:
        options = TerrainOptions(args.forest_density, args.water_level)
        generator = TerrainGenerator(
            width,
            height,
            args.seed,
            max_backtracks=args.max_backtracks,
            options=options,
        )
        terrain = generator.generate(world_seed)
    except (ValueError, WFCError) as e:
        parser.error(str(e))

    assert generator.grid is not None

    print(generator.grid.debug_dump(), end="")
    print(terrain.stats_line())
    return 1 if terrain.used_fallback else 0


if __name__ == "__main__":
    sys.exit(main())
