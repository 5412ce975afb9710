"""Terrain map generation on top of the WFC solver.

Pipeline:
    1. Build the terrain-only tile catalog and a fresh Grid.
    2. Set base weights from the terrain sliders (forest density, water level).
    3. Apply world seed zones: per-region multipliers, seeded zone centres,
       lake positions, then the biome's map-wide multipliers.
    4. Propagate from every seeded cell. Seeds that contradict each other
       skip the solve and go straight to step 6.
    5. Solve, either in one go or frame by frame.
    6. If the solver gives up, fill the remaining cells with fallback tiles
       that agree with an already collapsed neighbour.

The sliders go first so that zone and biome multipliers scale the slider
weights instead of being overwritten by them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from terrawave import config
from terrawave.types import RandomSeed, TileID
from terrawave.util.rng import RNGProvider
from terrawave.wfc import (
    OPPOSITE_DIR,
    Grid,
    ProgressReport,
    Propagator,
    SolveResult,
    Solver,
    TileCatalog,
    TileMap,
)

from .tiles import create_tile_catalog
from .world_seed import BIOME_MODIFIERS, ZONE_SEED_TILES, WorldSeed, zone_modifiers

logger = logging.getLogger(__name__)

ERROR_SEED_CONFLICT = "Unsolvable: seeded tiles contradict each other"


@dataclass(frozen=True)
class TerrainOptions:
    """Terrain slider settings, both on a 0-1 scale."""

    forest_density: float = config.DEFAULT_FOREST_DENSITY
    water_level: float = config.DEFAULT_WATER_LEVEL

    def __post_init__(self) -> None:
        for name in ("forest_density", "water_level"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

    def tile_weights(self) -> dict[TileID, float]:
        """Base weights for the terrain tiles these settings imply.

        Forest and open ground trade off against each other; water scales
        with the water level and highland shrinks slightly as water rises.
        """
        f = self.forest_density
        w = self.water_level
        forest = 0.02 + f * 0.16
        grass = 0.18 - f * 0.16
        water = 0.02 + w * 0.14
        hills = 0.07 - w * 0.02
        return {
            # Forest
            "forest": forest,
            "dense_forest": forest * 0.7,
            "pine_forest": forest * 0.6,
            "dead_forest": forest * 0.2,
            # Open ground
            "grass": grass,
            "meadow": grass * 0.85,
            "glen": grass * 0.6,
            "scrubland": grass * 0.5,
            # Water and wetland
            "deep_water": water,
            "shallow_water": water * 1.1,
            "river": water * 0.7,
            "marsh": water * 0.5,
            "swamp": (forest + water) * 0.3,
            "bog": water * 0.4,
            # Highland
            "hills": hills,
            "rocky": hills * 0.7,
            "mountain": hills * 0.5,
            "peak": hills * 0.3,
            "cliffs": hills * 0.4,
            # Shoreline
            "sand": 0.04 + w * 0.04,
        }


@dataclass(frozen=True)
class GenerationProgress:
    """Progress update for a generation phase (`progress` is 0-100)."""

    phase: str
    progress: float
    message: str


@dataclass
class GeneratedTerrain:
    """A finished terrain map plus how it was produced."""

    tile_map: TileMap
    success: bool
    seed: RandomSeed
    iterations: int
    backtracks: int
    world_seed: WorldSeed | None = None
    error: str | None = None

    @property
    def used_fallback(self) -> bool:
        return not self.success

    def stats_line(self) -> str:
        status = "solved" if self.success else f"fallback ({self.error})"
        return (
            f"{self.tile_map.width}x{self.tile_map.height} seed={self.seed} "
            f"{status}: {self.iterations} iterations, {self.backtracks} backtracks"
        )


type GenerationCallback = Callable[[GenerationProgress], None]


class TerrainGenerator:
    """Generates natural terrain maps, optionally shaped by a world seed.

    Usage:
        generator = TerrainGenerator(32, 24, seed=7)
        terrain = generator.generate(world_seed)
        print(terrain.stats_line())
    """

    def __init__(
        self,
        width: int = config.DEFAULT_MAP_WIDTH,
        height: int = config.DEFAULT_MAP_HEIGHT,
        seed: RandomSeed = config.RANDOM_SEED,
        *,
        max_backtracks: int = config.TERRAIN_MAX_BACKTRACKS,
        options: TerrainOptions | None = None,
        on_progress: GenerationCallback | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.seed = seed
        self.max_backtracks = max_backtracks
        self.options = options if options is not None else TerrainOptions()
        self.on_progress = on_progress

        self._rng = RNGProvider(seed)
        self.catalog: TileCatalog = create_tile_catalog(terrain_only=True)
        self.grid: Grid | None = None
        self.propagator: Propagator | None = None
        self.solver: Solver | None = None

    @classmethod
    def for_world_seed(cls, world_seed: WorldSeed, **kwargs) -> TerrainGenerator:
        """Create a generator sized to a world seed's map."""
        return cls(world_seed.width, world_seed.height, **kwargs)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def generate(self, world_seed: WorldSeed | None = None) -> GeneratedTerrain:
        """Generate a terrain map synchronously."""
        solver = self._prepare(world_seed)
        result = solver.solve() if solver is not None else self._seed_conflict()
        return self._finish(result, world_seed)

    async def generate_async(
        self,
        world_seed: WorldSeed | None = None,
        steps_per_frame: int = config.DEFAULT_STEPS_PER_FRAME,
        frame_delay: float = config.DEFAULT_FRAME_DELAY,
    ) -> GeneratedTerrain:
        """Generate a terrain map, yielding to the event loop between frames."""
        solver = self._prepare(world_seed)
        if solver is None:
            result = self._seed_conflict()
        else:
            result = await solver.solve_animated(steps_per_frame, frame_delay)
        return self._finish(result, world_seed)

    # -------------------------------------------------------------------------
    # Pipeline steps
    # -------------------------------------------------------------------------

    def _prepare(self, world_seed: WorldSeed | None) -> Solver | None:
        """Build and shape the grid. Returns None if the seeds conflict."""
        self._rng.reset(self.seed)
        self._report("terrain", 0.0, "Generating terrain...")

        grid = Grid(self.width, self.height, self.catalog)
        self.grid = grid
        grid.set_tile_weights(self.options.tile_weights())
        if world_seed is not None:
            self.apply_world_seed(world_seed)

        self.propagator = Propagator(grid, self.catalog)
        self.solver = Solver(
            grid,
            self.propagator,
            seed=self.seed,
            max_backtracks=self.max_backtracks,
            on_progress=self._on_solver_progress,
        )
        if not self.propagator.propagate_all():
            logger.warning("Seeded tiles contradict each other, skipping the solve")
            return None
        return self.solver

    def _seed_conflict(self) -> SolveResult:
        return SolveResult(
            success=False, iterations=0, backtracks=0, error=ERROR_SEED_CONFLICT
        )

    def apply_world_seed(self, world_seed: WorldSeed) -> None:
        """Bias the current grid with a world seed's zones and biome."""
        grid = self.grid
        if grid is None:
            raise RuntimeError("apply_world_seed() called before the grid exists")

        for poi in world_seed.pois:
            if poi.region is not None:
                modifiers = zone_modifiers(poi.type, poi.density)
                if modifiers:
                    grid.apply_region_modifiers(
                        poi.region.to_rect(grid.width, grid.height), modifiers
                    )
                seed_tile = ZONE_SEED_TILES.get(poi.type)
                if seed_tile is not None:
                    self._seed(*poi.region.center(), seed_tile, poi.poi_id)

            if poi.position is not None and poi.type == "lake":
                self._seed(*poi.position, "deep_water", poi.poi_id)

        biome_modifiers = BIOME_MODIFIERS.get(world_seed.biome)
        if biome_modifiers:
            grid.apply_region_modifiers(None, biome_modifiers)

        logger.info(
            f"Applied world seed {world_seed.name!r}: {len(world_seed.pois)} POIs, "
            f"biome {world_seed.biome}"
        )

    def _seed(self, x: int, y: int, tile_id: TileID, poi_id: str) -> None:
        assert self.grid is not None
        if not self.grid.in_bounds(x, y):
            logger.warning(f"POI {poi_id!r} seed ({x}, {y}) is outside the map")
            return
        self.grid.seed_cell(x, y, tile_id)

    def _finish(
        self, result: SolveResult, world_seed: WorldSeed | None
    ) -> GeneratedTerrain:
        assert self.grid is not None
        if not result.success:
            logger.warning(
                f"Terrain solve failed ({result.error}), filling remaining cells"
            )
            self._report("recovery", 90.0, "Recovering from solver failure...")
            self.recover_from_failure()

        self._report("complete", 100.0, "Complete!")
        return GeneratedTerrain(
            tile_map=self.grid.to_tile_map(),
            success=result.success,
            seed=self.seed,
            iterations=result.iterations,
            backtracks=result.backtracks,
            world_seed=world_seed,
            error=result.error,
        )

    def recover_from_failure(self) -> int:
        """Collapse every remaining cell to a fallback tile.

        Each cell takes a random fallback tile compatible with its first
        collapsed neighbour (N, E, S, W order), or the default fallback when
        no neighbour offers one. Adjacency is not enforced beyond that.

        Returns:
            The number of cells filled.
        """
        grid = self.grid
        if grid is None:
            raise RuntimeError("recover_from_failure() called before generation")

        rng = self._rng.get("terrain.recovery")
        fallback = [t for t in config.FALLBACK_TILES if t in self.catalog]
        filled = 0
        for cell in grid:
            if cell.collapsed:
                continue
            chosen = config.FALLBACK_DEFAULT_TILE
            for neighbor, direction in grid.neighbors(cell.x, cell.y):
                if not neighbor.collapsed:
                    continue
                allowed = self.catalog.allowed_neighbors(
                    neighbor.mask, OPPOSITE_DIR[direction]
                )
                options = [t for t in fallback if allowed[self.catalog.index_of(t)]]
                if options:
                    chosen = rng.choice(options)
                    break
            cell.force_collapse(chosen)
            filled += 1

        logger.debug(f"Recovery filled {filled} cells")
        return filled

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def _on_solver_progress(self, report: ProgressReport) -> None:
        self._report(
            "terrain", report.progress * 0.9, f"Terrain: {round(report.progress)}%"
        )

    def _report(self, phase: str, progress: float, message: str) -> None:
        logger.debug(f"[{phase}] {message}")
        if self.on_progress is not None:
            self.on_progress(GenerationProgress(phase, progress, message))
