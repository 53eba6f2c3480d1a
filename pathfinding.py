"""
A* pathfinding over the map grid.

The Pathfinder receives the grid and movement-cost function at construction
and keeps no state between queries, so it can serve move previews any number
of times per turn.

Tie-break: the open set is a heap of (f, h, seq, coord). Equal f prefers the
node nearer the goal (smaller h), then the earliest pushed (seq). Neighbors
are pushed in the profile's fixed direction order, so results are
reproducible for a given grid.
"""

import heapq
import itertools
import logging
from typing import Dict, List, Optional, Tuple, Union

from coords import Hex
from grid import CoordLike, MapGrid, as_coord
from models import Path, Unit
from movement import MovementCost, coerce_travel_class
from terrain import INFINITE, TravelClass


logger = logging.getLogger(__name__)


class Pathfinder:
    """Least-cost path search respecting traversal class and movement budget."""

    def __init__(self, grid: MapGrid, movement_cost: Optional[MovementCost] = None):
        self.grid = grid
        self.movement_cost = movement_cost or MovementCost(grid.catalog)

    def heuristic(self, a: Hex, b: Hex) -> int:
        """
        Grid distance to the goal.

        Admissible because every enterable step costs at least 1.
        """
        return self.grid.profile.distance(a, b)

    def find_path(
        self,
        start: CoordLike,
        goal: CoordLike,
        travel_class: Union[TravelClass, str] = TravelClass.LAND,
        budget: Optional[float] = None,
    ) -> Optional[Path]:
        """
        Find the least-cost path from start to goal.

        Args:
            start: Starting coordinate or tile
            goal: Destination coordinate or tile
            travel_class: Mover's traversal class
            budget: Maximum total cost; costlier partial paths are pruned

        Returns:
            Path from start (exclusive) to goal (inclusive), an empty Path
            when start == goal, or None if no path exists
        """
        start_coord = as_coord(start)
        goal_coord = as_coord(goal)
        travel_class = coerce_travel_class(travel_class)

        if start_coord == goal_coord:
            return Path(tiles=[], cost=0)

        start_tile = self.grid.get(start_coord)
        goal_tile = self.grid.get(goal_coord)
        if start_tile is None or goal_tile is None:
            return None
        if not self.movement_cost.is_enterable(goal_tile, travel_class):
            return None

        counter = itertools.count()
        h_start = self.heuristic(start_coord, goal_coord)
        open_heap: List[Tuple[float, int, int, Hex]] = [(h_start, h_start, next(counter), start_coord)]
        g_score: Dict[Hex, float] = {start_coord: 0}
        came_from: Dict[Hex, Hex] = {}
        closed = set()

        while open_heap:
            _, _, _, current = heapq.heappop(open_heap)
            if current in closed:
                # Stale entry left behind by a decrease-key
                continue

            if current == goal_coord:
                return self._reconstruct(came_from, current, g_score[current])

            closed.add(current)
            current_tile = self.grid.tiles[current]

            for neighbor in self.grid.neighbors_of(current_tile):
                if neighbor.coord in closed:
                    continue

                step = self.movement_cost(current_tile, neighbor, travel_class)
                if step == INFINITE:
                    continue

                tentative_g = g_score[current] + step
                if budget is not None and tentative_g > budget:
                    continue

                if tentative_g < g_score.get(neighbor.coord, INFINITE):
                    came_from[neighbor.coord] = current
                    g_score[neighbor.coord] = tentative_g
                    h = self.heuristic(neighbor.coord, goal_coord)
                    heapq.heappush(open_heap, (tentative_g + h, h, next(counter), neighbor.coord))

        return None

    def _reconstruct(self, came_from: Dict[Hex, Hex], current: Hex, cost: float) -> Path:
        coords = []
        while current in came_from:
            coords.append(current)
            current = came_from[current]
        coords.reverse()
        return Path(tiles=[self.grid.tiles[c] for c in coords], cost=cost)

    def reachable(
        self,
        start: CoordLike,
        travel_class: Union[TravelClass, str] = TravelClass.LAND,
        budget: Optional[float] = None,
    ) -> Dict[Hex, float]:
        """
        Every coordinate reachable from start within budget, with its cost.

        Dijkstra flood used for move-preview overlays. The start itself is
        included at cost 0.
        """
        start_coord = as_coord(start)
        travel_class = coerce_travel_class(travel_class)
        if self.grid.get(start_coord) is None:
            return {}

        counter = itertools.count()
        best: Dict[Hex, float] = {start_coord: 0}
        heap: List[Tuple[float, int, Hex]] = [(0, next(counter), start_coord)]
        done = set()

        while heap:
            cost, _, current = heapq.heappop(heap)
            if current in done:
                continue
            done.add(current)
            current_tile = self.grid.tiles[current]
            for neighbor in self.grid.neighbors_of(current_tile):
                step = self.movement_cost(current_tile, neighbor, travel_class)
                if step == INFINITE:
                    continue
                new_cost = cost + step
                if budget is not None and new_cost > budget:
                    continue
                if new_cost < best.get(neighbor.coord, INFINITE):
                    best[neighbor.coord] = new_cost
                    heapq.heappush(heap, (new_cost, next(counter), neighbor.coord))

        return best

    def path_for_unit(self, unit: Unit, destination: CoordLike) -> Optional[Path]:
        """Path for a unit, limited to its remaining movement points."""
        return self.find_path(unit.position, destination, unit.mover.travel_class,
                              budget=unit.mover.movement)

    def can_reach(self, unit: Unit, destination: CoordLike) -> bool:
        return self.path_for_unit(unit, destination) is not None
