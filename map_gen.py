"""
Map generation passes for Hexfront.

Each pass works on a MapGrid in place and is deterministic given the seed:
  1. generate_terrain  - Perlin elevation/moisture fields mapped to biomes
  2. add_rivers        - diagonal river strips
  3. add_water_features - lakes (ocean centre ringed by coast)
  4. add_resources     - random resources on compatible terrain
Passes only convert existing tiles; they never add or remove coordinates.
"""

import logging
import random
from collections import deque
from typing import TYPE_CHECKING, List, Optional, Set

import numpy as np
from noise import pnoise2

from coords import Hex
from models import Resource
from movement import MovementCost
from terrain import ResourceKind, TerrainKind, TravelClass

if TYPE_CHECKING:
    from grid import MapGrid, MapStatistics


logger = logging.getLogger(__name__)

# pnoise2 only uses the low bits of base; keep it within the permutation table
NOISE_BASE_RANGE = 256

# Resources never spawn on these, even when the compatibility table allows it
RESOURCE_EXCLUDED_TERRAIN = (TerrainKind.MOUNTAIN, TerrainKind.OCEAN)


def _pass_rng(seed: int, name: str) -> random.Random:
    """Independent RNG per pass so changing one pass does not reshuffle the others."""
    return random.Random(f"{seed}-{name}")


def _rank_normalize(values: np.ndarray) -> np.ndarray:
    """Map values to their rank in [0, 1] so biome thresholds act as quantiles."""
    n = len(values)
    if n <= 1:
        return np.zeros(n)
    ranks = np.argsort(np.argsort(values, kind='stable'), kind='stable')
    return ranks / (n - 1)


def pick_biome(elevation: float, moisture: float, latitude: float, rng: random.Random) -> TerrainKind:
    """
    Choose a land terrain from normalized elevation, moisture and latitude.

    Args:
        elevation: Elevation rank in [0, 1]
        moisture: Moisture rank in [0, 1]
        latitude: Distance from the map's middle row in [0, 1]
        rng: Pass RNG, used to pick between equally valid biomes

    Returns:
        Terrain kind for the tile
    """
    if elevation > 0.94:
        return TerrainKind.MOUNTAIN
    if latitude > 0.9:
        return TerrainKind.SNOW
    if latitude > 0.75:
        return TerrainKind.TUNDRA
    if elevation > 0.8:
        return TerrainKind.HILLS
    if moisture < 0.15:
        return TerrainKind.DESERT
    if moisture < 0.55:
        # Grassland band: plains and grass are both valid here
        return TerrainKind.PLAINS if rng.random() < 0.4 else TerrainKind.GRASS
    if moisture < 0.85:
        return TerrainKind.FOREST
    return TerrainKind.JUNGLE


def generate_terrain(grid: 'MapGrid', seed: int, frequency: float = 6.0) -> None:
    """
    Assign base terrain to every tile from two Perlin noise fields.

    Args:
        grid: Map to convert in place
        seed: Random seed for noise and biome choices
        frequency: Perlin frequency (lower = larger, more clustered biomes)
    """
    coords = list(grid.tiles.keys())
    if not coords:
        return

    rng = _pass_rng(seed, 'terrain')
    frequency = max(frequency, 1e-6)
    elevation_base = seed % NOISE_BASE_RANGE
    moisture_base = (seed + 101) % NOISE_BASE_RANGE

    elevation = np.array([
        pnoise2(c.q / frequency, c.r / frequency, octaves=3, persistence=0.55,
                lacunarity=2.0, base=elevation_base)
        for c in coords
    ])
    moisture = np.array([
        pnoise2(c.q / frequency + 31.7, c.r / frequency + 17.3, octaves=2, persistence=0.5,
                lacunarity=2.0, base=moisture_base)
        for c in coords
    ])
    elevation = _rank_normalize(elevation)
    moisture = _rank_normalize(moisture)

    rows = np.array([c.r for c in coords], dtype=float)
    r_min, r_max = rows.min(), rows.max()
    span = (r_max - r_min) or 1.0
    latitude = np.abs((rows - r_min) / span - 0.5) * 2.0

    for i, coord in enumerate(coords):
        grid.tiles[coord].terrain = pick_biome(elevation[i], moisture[i], latitude[i], rng)

    logger.debug("Terrain pass done for %d tiles (seed=%s)", len(coords), seed)


def add_rivers(grid: 'MapGrid', seed: int, count: int = 3) -> int:
    """
    Carve diagonal rivers: each river steps one column every three rows.

    Rivers never overwrite water tiles.

    Returns:
        Number of tiles converted to river
    """
    if not grid.tiles or count <= 0:
        return 0

    rng = _pass_rng(seed, 'rivers')
    qs = [c.q for c in grid.tiles]
    rs = [c.r for c in grid.tiles]
    q_min, q_max = min(qs), max(qs)
    r_min, r_max = min(rs), max(rs)
    length = max(2, (r_max - r_min + 1) * 2 // 3)

    converted = 0
    for _ in range(count):
        start_q = rng.randint(q_min, q_max)
        start_r = rng.randint(r_min, max(r_min, r_max - length + 1))
        for step in range(length):
            r = start_r + step
            coord = Hex(start_q + step // 3, r)
            tile = grid.tiles.get(coord)
            if tile is None or tile.is_water:
                continue
            if tile.terrain != TerrainKind.RIVER:
                tile.terrain = TerrainKind.RIVER
                converted += 1

    logger.debug("River pass converted %d tiles", converted)
    return converted


def add_water_features(grid: 'MapGrid', seed: int, count: int = 5, radius: int = 2) -> int:
    """
    Place lakes: the centre tile becomes ocean, the rest of the disc coast.

    Returns:
        Number of tiles converted to water
    """
    if not grid.tiles or count <= 0:
        return 0

    rng = _pass_rng(seed, 'lakes')
    coords = list(grid.tiles.keys())
    converted = 0
    for _ in range(count):
        center = rng.choice(coords)
        for tile in grid.tiles_in_range(center, max(0, radius)):
            terrain = TerrainKind.OCEAN if tile.coord == center else TerrainKind.COAST
            if tile.terrain == TerrainKind.OCEAN:
                continue
            if tile.terrain != terrain:
                converted += 1
            tile.terrain = terrain

    logger.debug("Lake pass converted %d tiles", converted)
    return converted


def add_resources(grid: 'MapGrid', seed: int, chance: float = 0.15) -> int:
    """
    Roll a resource on each tile; keep it only where the terrain allows it.

    Returns:
        Number of resources placed
    """
    rng = _pass_rng(seed, 'resources')
    kinds = list(ResourceKind)
    placed = 0
    for tile in grid:
        if tile.terrain in RESOURCE_EXCLUDED_TERRAIN:
            continue
        if rng.random() >= chance:
            continue
        kind = rng.choice(kinds)
        amount = rng.randint(4, 9)
        resource = Resource(kind=kind, value=amount, max_value=amount, regrowth_rate=1.0)
        if grid.place_resource(tile.coord, resource):
            placed += 1

    logger.debug("Resource pass placed %d resources", placed)
    return placed


def land_regions(grid: 'MapGrid', travel_class: TravelClass = TravelClass.LAND) -> List[Set[Hex]]:
    """
    Split enterable tiles into connected regions for a traversal class.

    Returns:
        Regions sorted largest first (ties keep grid order)
    """
    cost = MovementCost(grid.catalog)
    seen: Set[Hex] = set()
    regions: List[Set[Hex]] = []
    for tile in grid:
        if tile.coord in seen or not cost.is_enterable(tile, travel_class):
            continue
        region = {tile.coord}
        seen.add(tile.coord)
        queue = deque([tile])
        while queue:
            current = queue.popleft()
            for neighbor in grid.neighbors_of(current):
                if neighbor.coord in seen or not cost.is_enterable(neighbor, travel_class):
                    continue
                seen.add(neighbor.coord)
                region.add(neighbor.coord)
                queue.append(neighbor)
        regions.append(region)
    regions.sort(key=len, reverse=True)
    return regions


def validate_reachability(grid: 'MapGrid', min_fraction: float = 0.5) -> bool:
    """
    Check that the largest connected land region covers enough of the map.

    Args:
        grid: Generated map
        min_fraction: Minimum share of all tiles the main region must hold

    Returns:
        True if the map is playable
    """
    if not len(grid):
        return False
    regions = land_regions(grid)
    if not regions:
        return False
    return len(regions[0]) / len(grid) >= min_fraction


def format_map_stats(stats: 'MapStatistics', width: Optional[int] = None,
                     height: Optional[int] = None) -> str:
    """Render map statistics as a printable report."""
    lines = ["=" * 50, "MAP STATISTICS", "=" * 50, f"Total tiles: {stats.total_tiles}"]
    if width is not None and height is not None:
        lines.append(f"Map size: {width}x{height} tiles")
    lines.append("-" * 30)
    total = stats.total_tiles or 1
    for terrain, count in sorted(stats.terrain_counts.items()):
        lines.append(f"{terrain:12}: {count:3d} tiles ({count / total * 100:5.1f}%)")
    lines.append("-" * 30)
    lines.append(f"Passable (land): {stats.passable_tiles}")
    lines.append(f"Resources: {sum(stats.resource_counts.values())}")
    for resource, count in sorted(stats.resource_counts.items()):
        lines.append(f"  {resource:14}: {count:3d}")
    lines.append("=" * 50)
    return "\n".join(lines)


def print_map_stats(grid: 'MapGrid') -> None:
    print(format_map_stats(grid.statistics(), grid.width, grid.height))


if __name__ == "__main__":
    from grid import MapGrid

    logging.basicConfig(level=logging.INFO)
    for demo_seed in [42, 123, 456]:
        demo = MapGrid.generated(20, 20, demo_seed)
        print(f"\nSeed {demo_seed}: main land region ok = {validate_reachability(demo)}")
        print_map_stats(demo)
