"""
Map grid for Hexfront.

MapGrid owns every Tile keyed by coordinate. It provides bounds-checked read
and write access plus the neighbor, range and filter queries used by
pathfinding, rendering and snapshotting. Out-of-bounds access returns None or
False and never raises.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

import map_gen
from config import GameConfig
from coords import DEFAULT_PROFILE, Hex, MapProfile
from models import Improvement, Resource, Tile
from movement import MovementCost
from terrain import DEFAULT_CATALOG, ImprovementKind, TerrainCatalog, TerrainKind, TravelClass


logger = logging.getLogger(__name__)

CoordLike = Union[Hex, Tile, Tuple[int, int]]


def as_coord(value: CoordLike) -> Hex:
    """Accept a Hex, a Tile or a (q, r) tuple and return the Hex."""
    if isinstance(value, Hex):
        return value
    if isinstance(value, Tile):
        return value.coord
    q, r = value
    return Hex(q, r)


@dataclass
class MapStatistics:
    """Aggregate counts over a map."""
    total_tiles: int = 0
    terrain_counts: Dict[str, int] = field(default_factory=dict)
    resource_counts: Dict[str, int] = field(default_factory=dict)
    passable_tiles: int = 0

    def to_dict(self) -> Dict:
        return {
            'total_tiles': self.total_tiles,
            'terrain_counts': dict(self.terrain_counts),
            'resource_counts': dict(self.resource_counts),
            'passable_tiles': self.passable_tiles,
        }


class MapGrid:
    """
    Owner of all map tiles.

    Tiles are stored in a dict keyed by Hex in generation order, which is also
    the iteration order used for tie-breaking (e.g. closest_tile).
    """

    def __init__(self, profile: MapProfile = DEFAULT_PROFILE, width: int = 0, height: int = 0,
                 catalog: TerrainCatalog = DEFAULT_CATALOG):
        self.profile = profile
        self.catalog = catalog
        self.width = width
        self.height = height
        self.bounds: Set[Hex] = set(profile.region(width, height))
        self.tiles: Dict[Hex, Tile] = {}

    @classmethod
    def uniform(cls, width: int, height: int, terrain: TerrainKind = TerrainKind.GRASS,
                profile: MapProfile = DEFAULT_PROFILE,
                catalog: TerrainCatalog = DEFAULT_CATALOG) -> 'MapGrid':
        """Create a grid whose every in-bounds tile has the same terrain."""
        grid = cls(profile, width, height, catalog)
        grid.fill(terrain)
        return grid

    @classmethod
    def generated(cls, width: int, height: int, seed: int,
                  profile: MapProfile = DEFAULT_PROFILE,
                  catalog: TerrainCatalog = DEFAULT_CATALOG,
                  config: Optional[GameConfig] = None) -> 'MapGrid':
        grid = cls(profile, width, height, catalog)
        grid.generate(width, height, seed, config)
        return grid

    # --- Generation ---

    def fill(self, terrain: TerrainKind = TerrainKind.GRASS) -> None:
        """Replace all tiles with fresh tiles of one terrain, in region order."""
        self.tiles = {}
        for coord in self.profile.region(self.width, self.height):
            self.tiles[coord] = Tile(coord=coord, terrain=terrain)

    def generate(self, width: int, height: int, seed: int, config: Optional[GameConfig] = None) -> None:
        """
        Procedurally fill the whole region.

        Every coordinate gets a tile with noise-driven terrain, then rivers,
        lakes/coast and resources are layered on in separate passes. Each pass
        is deterministic given seed and converts tiles in place, so the grid
        never has gaps.

        Args:
            width: Map width in tiles
            height: Map height in tiles
            seed: Random seed for reproducible generation
            config: Generation parameters (default: GameConfig())
        """
        config = config or GameConfig()
        self.width = width
        self.height = height
        self.bounds = set(self.profile.region(width, height))
        self.fill(TerrainKind.GRASS)

        map_gen.generate_terrain(self, seed, frequency=config.terrain_frequency)
        map_gen.add_rivers(self, seed, count=config.river_count)
        map_gen.add_water_features(self, seed, count=config.lake_count, radius=config.lake_radius)
        map_gen.add_resources(self, seed, chance=config.resource_chance)

        stats = self.statistics()
        logger.info("Generated %dx%d %s map (seed=%s): %d tiles, %d passable, %d resources",
                    width, height, self.profile.coordinate_system, seed, stats.total_tiles,
                    stats.passable_tiles, sum(stats.resource_counts.values()))

    # --- Access ---

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles.values())

    def __contains__(self, coord: CoordLike) -> bool:
        return as_coord(coord) in self.tiles

    def in_bounds(self, coord: CoordLike) -> bool:
        return as_coord(coord) in self.bounds

    def get(self, coord: CoordLike) -> Optional[Tile]:
        return self.tiles.get(as_coord(coord))

    def set(self, coord: CoordLike, tile: Tile) -> bool:
        """
        Store tile at coord.

        Returns:
            False if coord lies outside the map bounds, True otherwise
        """
        key = as_coord(coord)
        if key not in self.bounds:
            logger.debug("Rejected tile write outside bounds at %s", key)
            return False
        tile.coord = key
        self.tiles[key] = tile
        return True

    # --- Spatial queries ---

    def neighbors_of(self, tile: CoordLike) -> List[Tile]:
        """Existing neighbor tiles in the profile's direction order."""
        coord = as_coord(tile)
        return [self.tiles[n] for n in self.profile.neighbors(coord) if n in self.tiles]

    def tiles_in_range(self, center: CoordLike, radius: int) -> List[Tile]:
        coord = as_coord(center)
        return [self.tiles[c] for c in self.profile.coords_in_range(coord, radius) if c in self.tiles]

    def has_line_of_sight(self, start: CoordLike, end: CoordLike) -> bool:
        """
        Check that no tile strictly between start and end blocks sight.

        The endpoints never block, so a unit on a mountain can still be seen
        and can see out. Coordinates off the map do not block.
        """
        line = self.profile.line(as_coord(start), as_coord(end))
        for coord in line[1:-1]:
            tile = self.tiles.get(coord)
            if tile is not None and tile.blocks_sight:
                return False
        return True

    def closest_tile(self, target: CoordLike) -> Optional[Tile]:
        """Nearest tile to target; ties go to the first tile in grid order."""
        coord = as_coord(target)
        closest = None
        best = None
        for tile in self.tiles.values():
            d = self.profile.distance(tile.coord, coord)
            if best is None or d < best:
                best = d
                closest = tile
        return closest

    def filter_by_terrain(self, kind: TerrainKind) -> List[Tile]:
        return [tile for tile in self.tiles.values() if tile.terrain == kind]

    def filter_passable(self, travel_class: TravelClass = TravelClass.LAND) -> List[Tile]:
        cost = MovementCost(self.catalog)
        return [tile for tile in self.tiles.values() if cost.is_enterable(tile, travel_class)]

    def statistics(self) -> MapStatistics:
        terrain_counts: Counter = Counter()
        resource_counts: Counter = Counter()
        passable = 0
        for tile in self.tiles.values():
            terrain_counts[_kind_name(tile.terrain)] += 1
            if tile.resource is not None:
                resource_counts[_kind_name(tile.resource.kind)] += 1
            if tile.is_passable(self.catalog):
                passable += 1
        return MapStatistics(
            total_tiles=len(self.tiles),
            terrain_counts=dict(terrain_counts),
            resource_counts=dict(resource_counts),
            passable_tiles=passable,
        )

    # --- Mutation ---

    def place_resource(self, coord: CoordLike, resource: Resource) -> bool:
        """Attach a resource if the tile exists and its terrain allows it."""
        tile = self.get(coord)
        if tile is None:
            return False
        if not self.catalog.resource_compatibility(tile.terrain, resource.kind):
            return False
        tile.resource = resource
        return True

    def place_improvement(self, coord: CoordLike, kind: ImprovementKind) -> bool:
        """Build an improvement, replacing any existing one."""
        tile = self.get(coord)
        if tile is None:
            return False
        tile.improvement = Improvement(kind)
        return True

    def place_unit(self, coord: CoordLike, unit_id: str) -> bool:
        tile = self.get(coord)
        if tile is None or (tile.unit_id is not None and tile.unit_id != unit_id):
            return False
        tile.unit_id = unit_id
        return True

    def clear_unit(self, coord: CoordLike, unit_id: Optional[str] = None) -> bool:
        tile = self.get(coord)
        if tile is None or tile.unit_id is None:
            return False
        if unit_id is not None and tile.unit_id != unit_id:
            return False
        tile.unit_id = None
        return True

    def set_owner(self, coord: CoordLike, owner: Optional[str]) -> bool:
        tile = self.get(coord)
        if tile is None:
            return False
        tile.owner = owner
        return True


def _kind_name(kind) -> str:
    return kind.value if hasattr(kind, 'value') else str(kind)
