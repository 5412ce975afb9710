"""Tests for the built-in terrain tile set."""

from __future__ import annotations

from terrawave.terrain import TILES, create_tile_catalog
from terrawave.terrain.tiles import ADJACENCY, TERRAIN_ADJACENCY, TERRAIN_ONLY_IDS


class TestTileTables:
    def test_every_adjacency_entry_names_a_known_tile(self) -> None:
        for table in (ADJACENCY, TERRAIN_ADJACENCY):
            for tile_id, neighbors in table.items():
                assert tile_id in TILES
                assert set(neighbors) <= set(TILES), tile_id

    def test_terrain_adjacency_stays_inside_terrain_tiles(self) -> None:
        terrain = set(TERRAIN_ONLY_IDS)
        for neighbors in TERRAIN_ADJACENCY.values():
            assert set(neighbors) <= terrain

    def test_every_tile_has_a_symbol_and_positive_weight(self) -> None:
        for tile_id, info in TILES.items():
            assert info.symbol, tile_id
            assert info.weight > 0, tile_id


class TestCreateTileCatalog:
    def test_terrain_only_catalog(self) -> None:
        catalog = create_tile_catalog(terrain_only=True)
        assert len(catalog) == 20
        assert "dirt_road" not in catalog
        assert catalog.asymmetric_pairs() == []

    def test_full_catalog_keeps_one_sided_entries(self) -> None:
        catalog = create_tile_catalog(terrain_only=False)
        assert len(catalog) == len(TILES) == 33
        pairs = catalog.asymmetric_pairs()
        assert ("dense_forest", "N", "swamp") in pairs
        assert not catalog.compatible("dense_forest", "swamp", "N")

    def test_metadata_is_carried_over(self) -> None:
        catalog = create_tile_catalog()
        mountain = catalog.get("mountain")
        assert mountain.walkable is False
        assert mountain.height == 24
        assert mountain.category == "highland"
        assert mountain.symbol == "▲"
        assert catalog.weight("grass") == TILES["grass"].weight

    def test_terrain_rules_are_symmetric(self) -> None:
        catalog = create_tile_catalog()
        assert catalog.compatible("sand", "shallow_water", "E")
        assert catalog.compatible("shallow_water", "sand", "W")
        assert not catalog.compatible("deep_water", "grass", "S")
