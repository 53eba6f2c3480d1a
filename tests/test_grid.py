import pytest

from coords import Hex, MapProfile
from grid import MapGrid, as_coord
from models import Resource, Tile
from terrain import ImprovementKind, ResourceKind, TerrainKind, TravelClass


class TestGridAccess:
    def test_uniform_fills_every_coordinate(self, grass_grid) -> None:
        assert len(grass_grid) == 25
        assert all(tile.terrain == TerrainKind.GRASS for tile in grass_grid)

    def test_get_out_of_bounds_returns_none(self, grass_grid) -> None:
        assert grass_grid.get((5, 0)) is None
        assert grass_grid.get(Hex(-1, 2)) is None

    def test_get_accepts_hex_tuple_and_tile(self, grass_grid) -> None:
        tile = grass_grid.get(Hex(1, 2))
        assert grass_grid.get((1, 2)) is tile
        assert grass_grid.get(tile) is tile

    def test_set_out_of_bounds_is_rejected(self, grass_grid) -> None:
        assert not grass_grid.set((7, 7), Tile(coord=Hex(7, 7)))
        assert grass_grid.get((7, 7)) is None
        assert len(grass_grid) == 25

    def test_set_replaces_tile_and_fixes_coord(self, grass_grid) -> None:
        tile = Tile(coord=Hex(0, 0), terrain=TerrainKind.DESERT)
        assert grass_grid.set((3, 4), tile)
        assert grass_grid.get((3, 4)).terrain == TerrainKind.DESERT
        assert tile.coord == Hex(3, 4)

    def test_contains_and_in_bounds(self, grass_grid) -> None:
        assert (0, 0) in grass_grid
        assert (9, 9) not in grass_grid
        assert grass_grid.in_bounds(Hex(4, 4))
        assert not grass_grid.in_bounds(Hex(5, 4))

    def test_as_coord(self) -> None:
        assert as_coord((2, 3)) == Hex(2, 3)
        assert as_coord(Tile(coord=Hex(4, 1))) == Hex(4, 1)


class TestSpatialQueries:
    def test_neighbors_in_direction_order(self, grass_grid) -> None:
        coords = [t.coord for t in grass_grid.neighbors_of((2, 2))]
        assert coords == [Hex(3, 2), Hex(3, 1), Hex(2, 1), Hex(1, 2), Hex(1, 3), Hex(2, 3)]

    def test_corner_has_fewer_neighbors(self, grass_grid) -> None:
        coords = [t.coord for t in grass_grid.neighbors_of((0, 0))]
        assert coords == [Hex(1, 0), Hex(0, 1)]

    def test_rect_neighbors(self) -> None:
        grid = MapGrid.uniform(3, 3, profile=MapProfile(coordinate_system='rect'))
        coords = [t.coord for t in grid.neighbors_of((1, 1))]
        assert coords == [Hex(1, 0), Hex(2, 1), Hex(1, 2), Hex(0, 1)]

    def test_tiles_in_range_is_clipped_to_map(self, grass_grid) -> None:
        assert len(grass_grid.tiles_in_range((2, 2), 1)) == 7
        assert len(grass_grid.tiles_in_range((0, 0), 1)) == 3

    def test_line_of_sight_blocked_by_mountain(self, mountain_grid) -> None:
        assert not mountain_grid.has_line_of_sight((0, 2), (4, 2))
        assert mountain_grid.has_line_of_sight((0, 0), (4, 0))

    def test_line_of_sight_endpoints_never_block(self, mountain_grid) -> None:
        assert mountain_grid.has_line_of_sight((2, 2), (4, 2))
        assert mountain_grid.has_line_of_sight((0, 2), (2, 2))

    def test_rect_line_of_sight(self) -> None:
        grid = MapGrid.uniform(5, 1, profile=MapProfile(coordinate_system='rect'))
        grid.get((2, 0)).terrain = TerrainKind.MOUNTAIN
        assert not grid.has_line_of_sight((0, 0), (4, 0))
        assert grid.has_line_of_sight((0, 0), (1, 0))

    def test_closest_tile_inside_map(self, grass_grid) -> None:
        assert grass_grid.closest_tile((3, 3)).coord == Hex(3, 3)

    def test_closest_tile_outside_map(self, grass_grid) -> None:
        assert grass_grid.closest_tile((10, 2)).coord == Hex(4, 2)

    def test_closest_tile_on_empty_grid(self) -> None:
        assert MapGrid().closest_tile((0, 0)) is None

    def test_filters(self, mountain_grid) -> None:
        mountains = mountain_grid.filter_by_terrain(TerrainKind.MOUNTAIN)
        assert [t.coord for t in mountains] == [Hex(2, 2)]
        assert len(mountain_grid.filter_passable()) == 24
        assert len(mountain_grid.filter_passable(TravelClass.AIR)) == 25
        assert mountain_grid.filter_passable(TravelClass.NAVAL) == []

    def test_statistics(self, mountain_grid) -> None:
        mountain_grid.place_resource((0, 0), Resource(ResourceKind.COWS))
        stats = mountain_grid.statistics()
        assert stats.total_tiles == 25
        assert stats.terrain_counts == {'grass': 24, 'mountain': 1}
        assert stats.resource_counts == {'cows': 1}
        assert stats.passable_tiles == 24


class TestMutation:
    def test_place_resource_checks_terrain(self, grass_grid) -> None:
        assert not grass_grid.place_resource((1, 1), Resource(ResourceKind.FISH))
        assert grass_grid.place_resource((1, 1), Resource(ResourceKind.COWS))
        assert grass_grid.get((1, 1)).resource.kind == ResourceKind.COWS

    def test_place_improvement_replaces_existing(self, grass_grid) -> None:
        assert grass_grid.place_improvement((0, 1), ImprovementKind.FARM)
        assert grass_grid.place_improvement((0, 1), ImprovementKind.FORT)
        assert grass_grid.get((0, 1)).improvement_kind == ImprovementKind.FORT
        assert not grass_grid.place_improvement((9, 9), ImprovementKind.FARM)

    def test_place_unit_rejects_second_unit(self, grass_grid) -> None:
        assert grass_grid.place_unit((1, 1), "a")
        assert not grass_grid.place_unit((1, 1), "b")
        assert grass_grid.place_unit((1, 1), "a")

    def test_clear_unit_only_for_matching_id(self, grass_grid) -> None:
        grass_grid.place_unit((1, 1), "a")
        assert not grass_grid.clear_unit((1, 1), "b")
        assert grass_grid.clear_unit((1, 1), "a")
        assert grass_grid.get((1, 1)).unit_id is None
        assert not grass_grid.clear_unit((1, 1))

    def test_set_owner(self, grass_grid) -> None:
        assert grass_grid.set_owner((2, 2), "p1")
        assert grass_grid.get((2, 2)).owner == "p1"
        assert not grass_grid.set_owner((8, 8), "p1")


class TestHexagonGrid:
    def test_hexagon_shape(self) -> None:
        grid = MapGrid.uniform(7, 7, profile=MapProfile(shape='hexagon'))
        assert len(grid) == 37
        assert grid.get((0, 0)) is None
        assert grid.get((3, 3)) is not None

    @pytest.mark.parametrize("shape", ['rectangle', 'hexagon'])
    def test_generated_grid_has_no_gaps(self, shape) -> None:
        profile = MapProfile(shape=shape)
        grid = MapGrid.generated(10, 10, seed=5, profile=profile)
        assert set(grid.tiles) == set(profile.region(10, 10))
