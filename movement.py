"""
Movement-cost function: the price of stepping from one tile onto another for
a given traversal class. Queried fresh on every edge; nothing is cached, since
improvements can change between calls.
"""

import logging
from typing import Union

from models import Tile
from terrain import DEFAULT_CATALOG, INFINITE, TerrainCatalog, TravelClass, WATER_TERRAIN


logger = logging.getLogger(__name__)


def coerce_travel_class(travel_class: Union[TravelClass, str, None]) -> TravelClass:
    """Return a TravelClass, treating None and unknown values as land."""
    if travel_class is None:
        return TravelClass.LAND
    try:
        return TravelClass(travel_class)
    except ValueError:
        logger.warning("Unknown travel class %r, treating as land", travel_class)
        return TravelClass.LAND


class MovementCost:
    """
    Cost of a single step between adjacent tiles.

    air: 1 on any tile
    naval: 1 on coast/ocean, infinite (impassable) elsewhere
    land: the destination tile's effective cost (terrain + improvement)
    """

    def __init__(self, catalog: TerrainCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def entry_cost(self, tile: Tile, travel_class: Union[TravelClass, str] = TravelClass.LAND) -> float:
        """Cost of entering tile, independent of where the mover comes from."""
        travel_class = coerce_travel_class(travel_class)
        if travel_class == TravelClass.AIR:
            return 1
        if travel_class == TravelClass.NAVAL:
            return 1 if tile.terrain in WATER_TERRAIN else INFINITE
        return self.catalog.effective_cost(tile.terrain, tile.improvement_kind)

    def cost(self, from_tile: Tile, to_tile: Tile,
             travel_class: Union[TravelClass, str] = TravelClass.LAND) -> float:
        """
        Return the movement cost from from_tile to to_tile.

        Args:
            from_tile: Tile the mover leaves
            to_tile: Tile the mover enters
            travel_class: Mover's traversal class

        Returns:
            Cost as a number, 0 for the same tile, math.inf when impassable
        """
        if from_tile.coord == to_tile.coord:
            return 0
        return self.entry_cost(to_tile, travel_class)

    __call__ = cost

    def is_enterable(self, tile: Tile, travel_class: Union[TravelClass, str] = TravelClass.LAND) -> bool:
        return self.entry_cost(tile, travel_class) != INFINITE
