"""Tests for the terrain generation pipeline."""

from __future__ import annotations

import asyncio

import pytest

from terrawave.terrain import (
    GenerationProgress,
    PointOfInterest,
    Region,
    TerrainGenerator,
    TerrainOptions,
    WorldSeed,
)
from terrawave.terrain.generator import ERROR_SEED_CONFLICT
from terrawave.terrain.tiles import TERRAIN_ONLY_IDS
from tests.helpers import adjacency_violations


def conflicting_world_seed() -> WorldSeed:
    """A lake seeded right next to a mountain zone's centre tile."""
    return WorldSeed(
        name="Broken",
        width=16,
        height=16,
        biome="temperate",
        pois=[
            PointOfInterest(
                poi_id="peaks", type="mountain", region=Region(4, 5, 8, 5)
            ),
            PointOfInterest(poi_id="mere", type="lake", position=(5, 5)),
        ],
    )


class TestTerrainOptions:
    def test_defaults(self) -> None:
        options = TerrainOptions()
        assert options.forest_density == 0.5
        assert options.water_level == 0.35

    @pytest.mark.parametrize(
        "kwargs", [{"forest_density": -0.1}, {"water_level": 1.5}]
    )
    def test_out_of_range_raises(self, kwargs: dict[str, float]) -> None:
        with pytest.raises(ValueError, match="must be between 0 and 1"):
            TerrainOptions(**kwargs)

    def test_weights_cover_every_terrain_tile(self) -> None:
        weights = TerrainOptions().tile_weights()
        assert set(weights) == set(TERRAIN_ONLY_IDS)
        assert all(weight > 0 for weight in weights.values())

    def test_forest_and_grass_trade_off(self) -> None:
        dense = TerrainOptions(forest_density=1.0).tile_weights()
        sparse = TerrainOptions(forest_density=0.0).tile_weights()
        assert dense["forest"] > sparse["forest"]
        assert dense["grass"] < sparse["grass"]

    def test_water_level_raises_water(self) -> None:
        wet = TerrainOptions(water_level=1.0).tile_weights()
        dry = TerrainOptions(water_level=0.0).tile_weights()
        assert wet["deep_water"] > dry["deep_water"]
        assert wet["hills"] < dry["hills"]


class TestGenerate:
    def test_produces_a_full_map(self) -> None:
        terrain = TerrainGenerator(16, 16, seed=7).generate()

        assert (terrain.tile_map.width, terrain.tile_map.height) == (16, 16)
        assert len(terrain.tile_map.tiles) == 16
        assert all(len(row) == 16 for row in terrain.tile_map.tiles)
        assert terrain.seed == 7
        assert terrain.iterations > 0

    def test_solved_maps_respect_adjacency(self) -> None:
        generator = TerrainGenerator(16, 16, seed=7)
        terrain = generator.generate()
        if terrain.success:
            assert generator.grid is not None
            assert adjacency_violations(generator.grid) == []
            assert terrain.error is None

    def test_same_seed_same_map(self) -> None:
        first = TerrainGenerator(16, 16, seed="vale").generate()
        second = TerrainGenerator(16, 16, seed="vale").generate()
        assert first.tile_map == second.tile_map
        assert first.iterations == second.iterations

    def test_regenerating_with_one_generator_is_repeatable(self) -> None:
        generator = TerrainGenerator(16, 16, seed=3)
        first = generator.generate()
        second = generator.generate()
        assert first.tile_map == second.tile_map

    def test_progress_phases(self) -> None:
        updates: list[GenerationProgress] = []
        TerrainGenerator(16, 16, seed=7, on_progress=updates.append).generate()

        assert updates[0].phase == "terrain"
        assert updates[0].progress == 0.0
        assert updates[-1] == GenerationProgress("complete", 100.0, "Complete!")
        terrain_progress = [u.progress for u in updates if u.phase == "terrain"]
        assert max(terrain_progress) <= 90.0

    def test_stats_line(self) -> None:
        terrain = TerrainGenerator(16, 16, seed=7).generate()
        line = terrain.stats_line()
        assert line.startswith("16x16 seed=7 ")
        assert f"{terrain.backtracks} backtracks" in line


class TestWorldSeed:
    def test_world_seed_sets_the_size(self) -> None:
        world_seed = WorldSeed.default()
        generator = TerrainGenerator.for_world_seed(world_seed, seed=1)
        assert (generator.width, generator.height) == (
            world_seed.width,
            world_seed.height,
        )

    def test_lake_position_is_seeded(self) -> None:
        world_seed = WorldSeed(
            name="Mere",
            width=16,
            height=16,
            biome="coastal",
            pois=[PointOfInterest(poi_id="mere", type="lake", position=(8, 8))],
        )
        terrain = TerrainGenerator.for_world_seed(world_seed, seed=5).generate(
            world_seed
        )
        assert terrain.tile_map.tile_at(8, 8).type == "deep_water"
        assert terrain.world_seed is world_seed

    def test_zone_centre_is_seeded(self) -> None:
        world_seed = WorldSeed(
            name="Peaks",
            width=16,
            height=16,
            biome="arctic",
            pois=[
                PointOfInterest(
                    poi_id="peaks", type="mountain", region=Region(2, 2, 6, 6)
                )
            ],
        )
        terrain = TerrainGenerator(16, 16, seed=5).generate(world_seed)
        assert terrain.tile_map.tile_at(4, 4).type == "mountain"

    def test_out_of_bounds_seed_is_skipped(self) -> None:
        world_seed = WorldSeed(
            name="Far",
            width=16,
            height=16,
            biome="temperate",
            pois=[PointOfInterest(poi_id="far", type="lake", position=(40, 40))],
        )
        terrain = TerrainGenerator(16, 16, seed=5).generate(world_seed)
        assert terrain.tile_map.width == 16

    def test_apply_world_seed_needs_a_grid(self) -> None:
        with pytest.raises(RuntimeError):
            TerrainGenerator(16, 16).apply_world_seed(WorldSeed.default())


class TestRecovery:
    def test_seed_conflict_skips_the_solve(self) -> None:
        updates: list[GenerationProgress] = []
        generator = TerrainGenerator(16, 16, seed=9, on_progress=updates.append)
        terrain = generator.generate(conflicting_world_seed())

        assert terrain.success is False
        assert terrain.used_fallback
        assert terrain.error == ERROR_SEED_CONFLICT
        assert (terrain.iterations, terrain.backtracks) == (0, 0)
        assert "fallback" in terrain.stats_line()
        assert [u.phase for u in updates][-2:] == ["recovery", "complete"]

    def test_recovery_fills_every_cell(self) -> None:
        terrain = TerrainGenerator(16, 16, seed=9).generate(conflicting_world_seed())
        tiles = terrain.tile_map
        assert tiles.tile_at(5, 5).type == "deep_water"
        assert tiles.tile_at(6, 5).type == "mountain"
        assert all(tile.type for row in tiles.tiles for tile in row)

    def test_recovery_is_deterministic(self) -> None:
        first = TerrainGenerator(16, 16, seed=9).generate(conflicting_world_seed())
        second = TerrainGenerator(16, 16, seed=9).generate(conflicting_world_seed())
        assert first.tile_map == second.tile_map

    def test_recover_before_generation_raises(self) -> None:
        with pytest.raises(RuntimeError):
            TerrainGenerator(16, 16).recover_from_failure()


class TestGenerateAsync:
    def test_matches_the_synchronous_result(self) -> None:
        sync = TerrainGenerator(16, 16, seed=11).generate()
        animated = asyncio.run(
            TerrainGenerator(16, 16, seed=11).generate_async(
                steps_per_frame=64, frame_delay=0.0
            )
        )
        assert animated.tile_map == sync.tile_map
        assert animated.success == sync.success

    def test_seed_conflict(self) -> None:
        terrain = asyncio.run(
            TerrainGenerator(16, 16, seed=9).generate_async(
                conflicting_world_seed(), frame_delay=0.0
            )
        )
        assert terrain.error == ERROR_SEED_CONFLICT
