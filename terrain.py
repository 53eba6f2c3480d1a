"""
Terrain catalog for the Hexfront map core.

Static, data-driven lookup tables mapping terrain, resource and improvement
kinds to movement cost, passability, defense and yield. Adding a kind is a
table edit. Unknown kinds fall back to grass-equivalent defaults and log a
warning instead of raising.
"""

import logging
import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Union


logger = logging.getLogger(__name__)

INFINITE = math.inf
# Cheapest allowed step; keeps the hex distance heuristic admissible
MIN_STEP_COST = 1


class TerrainKind(str, Enum):
    GRASS = "grass"
    PLAINS = "plains"
    HILLS = "hills"
    FOREST = "forest"
    JUNGLE = "jungle"
    DESERT = "desert"
    TUNDRA = "tundra"
    SNOW = "snow"
    MOUNTAIN = "mountain"
    COAST = "coast"
    OCEAN = "ocean"
    RIVER = "river"


class ResourceCategory(str, Enum):
    STRATEGIC = "strategic"
    LUXURY = "luxury"
    BONUS = "bonus"


class ResourceKind(str, Enum):
    COWS = "cows"
    SHEEP = "sheep"
    DEER = "deer"
    FISH = "fish"
    WHEAT = "wheat"
    STONE = "stone"
    IRON = "iron"
    HORSES = "horses"
    COAL = "coal"
    OIL = "oil"
    URANIUM = "uranium"
    GOLD_ORE = "gold_ore"
    SILVER = "silver"
    SPICES = "spices"
    DYES = "dyes"
    IVORY = "ivory"
    WINE = "wine"


class ImprovementKind(str, Enum):
    FARM = "farm"
    MINE = "mine"
    PASTURE = "pasture"
    PLANTATION = "plantation"
    CAMP = "camp"
    QUARRY = "quarry"
    FISHING_BOATS = "fishing_boats"
    TRADING_POST = "trading_post"
    FORT = "fort"
    LUMBERMILL = "lumbermill"
    WINDMILL = "windmill"
    CUSTOMS_HOUSE = "customs_house"


class TravelClass(str, Enum):
    LAND = "land"
    NAVAL = "naval"
    AIR = "air"


WATER_TERRAIN: FrozenSet[TerrainKind] = frozenset({TerrainKind.COAST, TerrainKind.OCEAN})
SIGHT_BLOCKING_TERRAIN: FrozenSet[TerrainKind] = frozenset({TerrainKind.MOUNTAIN})


@dataclass(frozen=True)
class Yield:
    """Per-category tile output."""
    food: int = 0
    production: int = 0
    gold: int = 0
    science: int = 0
    culture: int = 0

    def __add__(self, other: 'Yield') -> 'Yield':
        return Yield(*(getattr(self, f.name) + getattr(other, f.name) for f in fields(self)))

    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


NO_YIELD = Yield()


@dataclass(frozen=True)
class TerrainStats:
    """Read-only base attributes of a terrain kind."""
    passable: bool
    base_cost: float
    defense_bonus: int
    base_yield: Yield


@dataclass(frozen=True)
class ImprovementStats:
    yield_delta: Yield = NO_YIELD
    cost_override: Optional[float] = None
    defense_bonus: int = 0


TERRAIN_TABLE: Dict[TerrainKind, TerrainStats] = {
    TerrainKind.GRASS: TerrainStats(True, 1, 0, Yield(food=1, production=1)),
    TerrainKind.PLAINS: TerrainStats(True, 1, 0, Yield(food=1, production=2)),
    TerrainKind.HILLS: TerrainStats(True, 2, 1, Yield(production=2)),
    TerrainKind.FOREST: TerrainStats(True, 2, 1, Yield(production=1, science=1)),
    TerrainKind.JUNGLE: TerrainStats(True, 3, 1, Yield(food=1)),
    TerrainKind.DESERT: TerrainStats(True, 1, 0, Yield(gold=1)),
    TerrainKind.TUNDRA: TerrainStats(True, 2, 0, Yield(food=1, culture=1)),
    TerrainKind.SNOW: TerrainStats(True, 3, 0, NO_YIELD),
    TerrainKind.MOUNTAIN: TerrainStats(False, INFINITE, 2, NO_YIELD),
    TerrainKind.COAST: TerrainStats(True, 1, 0, Yield(food=1, gold=1, science=1)),
    # Ocean is impassable for land movers; naval movers use their own rule
    TerrainKind.OCEAN: TerrainStats(False, INFINITE, 0, NO_YIELD),
    TerrainKind.RIVER: TerrainStats(True, 2, 0, Yield(food=1)),
}

RESOURCE_CATEGORIES: Dict[ResourceKind, ResourceCategory] = {
    ResourceKind.IRON: ResourceCategory.STRATEGIC,
    ResourceKind.HORSES: ResourceCategory.STRATEGIC,
    ResourceKind.COAL: ResourceCategory.STRATEGIC,
    ResourceKind.OIL: ResourceCategory.STRATEGIC,
    ResourceKind.URANIUM: ResourceCategory.STRATEGIC,
    ResourceKind.SPICES: ResourceCategory.LUXURY,
    ResourceKind.DYES: ResourceCategory.LUXURY,
    ResourceKind.IVORY: ResourceCategory.LUXURY,
    ResourceKind.SILVER: ResourceCategory.LUXURY,
    ResourceKind.GOLD_ORE: ResourceCategory.LUXURY,
    ResourceKind.WINE: ResourceCategory.LUXURY,
    ResourceKind.COWS: ResourceCategory.BONUS,
    ResourceKind.SHEEP: ResourceCategory.BONUS,
    ResourceKind.DEER: ResourceCategory.BONUS,
    ResourceKind.FISH: ResourceCategory.BONUS,
    ResourceKind.WHEAT: ResourceCategory.BONUS,
    ResourceKind.STONE: ResourceCategory.BONUS,
}

RESOURCE_YIELDS: Dict[ResourceKind, Yield] = {
    ResourceKind.COWS: Yield(food=2),
    ResourceKind.SHEEP: Yield(food=1),
    ResourceKind.DEER: Yield(food=1, production=1),
    ResourceKind.FISH: Yield(food=1),
    ResourceKind.WHEAT: Yield(food=2),
    ResourceKind.STONE: Yield(production=1),
    ResourceKind.IRON: Yield(production=1),
    ResourceKind.HORSES: Yield(production=1),
    ResourceKind.COAL: Yield(production=2),
    ResourceKind.OIL: Yield(production=2, gold=1),
    ResourceKind.URANIUM: Yield(production=1, science=1),
    ResourceKind.GOLD_ORE: Yield(gold=2),
    ResourceKind.SILVER: Yield(gold=1),
    ResourceKind.SPICES: Yield(gold=1, culture=1),
    ResourceKind.DYES: Yield(gold=1, culture=1),
    ResourceKind.IVORY: Yield(gold=1, culture=1),
    ResourceKind.WINE: Yield(gold=1, culture=1),
}

# Resources missing from this table may appear on any terrain
RESOURCE_TERRAINS: Dict[ResourceKind, FrozenSet[TerrainKind]] = {
    ResourceKind.COWS: frozenset({TerrainKind.GRASS, TerrainKind.PLAINS}),
    ResourceKind.SHEEP: frozenset({TerrainKind.HILLS, TerrainKind.GRASS}),
    ResourceKind.DEER: frozenset({TerrainKind.FOREST, TerrainKind.TUNDRA}),
    ResourceKind.FISH: frozenset({TerrainKind.COAST, TerrainKind.OCEAN, TerrainKind.RIVER}),
    ResourceKind.WHEAT: frozenset({TerrainKind.PLAINS, TerrainKind.GRASS}),
    ResourceKind.STONE: frozenset({TerrainKind.HILLS, TerrainKind.MOUNTAIN}),
    ResourceKind.IRON: frozenset({TerrainKind.HILLS, TerrainKind.MOUNTAIN}),
    ResourceKind.COAL: frozenset({TerrainKind.HILLS, TerrainKind.MOUNTAIN, TerrainKind.FOREST}),
    ResourceKind.OIL: frozenset({TerrainKind.DESERT, TerrainKind.TUNDRA, TerrainKind.COAST}),
    ResourceKind.GOLD_ORE: frozenset({TerrainKind.HILLS, TerrainKind.MOUNTAIN}),
    ResourceKind.SILVER: frozenset({TerrainKind.HILLS, TerrainKind.MOUNTAIN}),
    ResourceKind.SPICES: frozenset({TerrainKind.JUNGLE, TerrainKind.FOREST}),
    ResourceKind.DYES: frozenset({TerrainKind.JUNGLE, TerrainKind.FOREST}),
    ResourceKind.IVORY: frozenset({TerrainKind.DESERT, TerrainKind.PLAINS}),
    ResourceKind.WINE: frozenset({TerrainKind.GRASS, TerrainKind.PLAINS}),
}

IMPROVEMENT_TABLE: Dict[ImprovementKind, ImprovementStats] = {
    ImprovementKind.FARM: ImprovementStats(Yield(food=1)),
    ImprovementKind.MINE: ImprovementStats(Yield(production=1)),
    ImprovementKind.PASTURE: ImprovementStats(Yield(food=1)),
    ImprovementKind.PLANTATION: ImprovementStats(Yield(food=1, gold=1)),
    ImprovementKind.CAMP: ImprovementStats(Yield(production=1)),
    ImprovementKind.QUARRY: ImprovementStats(Yield(production=2), cost_override=2),
    ImprovementKind.FISHING_BOATS: ImprovementStats(Yield(food=1)),
    ImprovementKind.TRADING_POST: ImprovementStats(Yield(gold=1)),
    ImprovementKind.FORT: ImprovementStats(defense_bonus=3),
    ImprovementKind.LUMBERMILL: ImprovementStats(Yield(production=1)),
    ImprovementKind.WINDMILL: ImprovementStats(Yield(food=1, production=1)),
    ImprovementKind.CUSTOMS_HOUSE: ImprovementStats(Yield(gold=2)),
}

# Multipliers applied by Resource.value_for_player
CATEGORY_VALUE_MULTIPLIER: Dict[ResourceCategory, float] = {
    ResourceCategory.STRATEGIC: 2.0,
    ResourceCategory.LUXURY: 1.5,
    ResourceCategory.BONUS: 1.0,
}

TerrainLike = Union[TerrainKind, str]
ResourceLike = Union[ResourceKind, str]
ImprovementLike = Union[ImprovementKind, str]


def coerce_terrain(kind: TerrainLike) -> Optional[TerrainKind]:
    """Return the TerrainKind for kind, or None if it is not a known terrain."""
    try:
        return TerrainKind(kind)
    except ValueError:
        return None


def coerce_resource(kind: ResourceLike) -> Optional[ResourceKind]:
    try:
        return ResourceKind(kind)
    except ValueError:
        return None


def coerce_improvement(kind: ImprovementLike) -> Optional[ImprovementKind]:
    try:
        return ImprovementKind(kind)
    except ValueError:
        return None


class TerrainCatalog:
    """
    Pure lookup over the terrain, resource and improvement tables.

    The tables are injected so tests or scenarios can extend them; the module
    level DEFAULT_CATALOG uses the standard game tables. The catalog holds no
    mutable state after construction.
    """

    def __init__(
        self,
        terrain: Optional[Dict[TerrainKind, TerrainStats]] = None,
        resource_yields: Optional[Dict[ResourceKind, Yield]] = None,
        resource_terrains: Optional[Dict[ResourceKind, FrozenSet[TerrainKind]]] = None,
        improvements: Optional[Dict[ImprovementKind, ImprovementStats]] = None,
        fallback: TerrainKind = TerrainKind.GRASS,
    ):
        self.terrain = dict(TERRAIN_TABLE if terrain is None else terrain)
        self.resource_yields = dict(RESOURCE_YIELDS if resource_yields is None else resource_yields)
        self.resource_terrains = dict(RESOURCE_TERRAINS if resource_terrains is None else resource_terrains)
        self.improvements = dict(IMPROVEMENT_TABLE if improvements is None else improvements)
        self.fallback = fallback
        self._validate_costs()

    def _validate_costs(self) -> None:
        """
        Reject tables with a step cost below MIN_STEP_COST.

        Raises:
            ValueError: If a passable terrain or an improvement override is too cheap
        """
        for kind, stats in self.terrain.items():
            if stats.passable and not stats.base_cost >= MIN_STEP_COST:
                raise ValueError(
                    f"Terrain {kind} has movement cost {stats.base_cost}; passable terrain must cost at least {MIN_STEP_COST}"
                )
        for kind, stats in self.improvements.items():
            if stats.cost_override is not None and not stats.cost_override >= MIN_STEP_COST:
                raise ValueError(
                    f"Improvement {kind} overrides movement cost to {stats.cost_override}; minimum is {MIN_STEP_COST}"
                )

    # --- Terrain ---

    def terrain_stats(self, kind: TerrainLike) -> TerrainStats:
        """Return stats for kind, falling back to grass for unknown kinds."""
        terrain = coerce_terrain(kind)
        if terrain is not None and terrain in self.terrain:
            return self.terrain[terrain]
        logger.warning("Unknown terrain kind %r, using %s defaults", kind, self.fallback.value)
        return self.terrain[self.fallback]

    def base_cost(self, kind: TerrainLike) -> float:
        return self.terrain_stats(kind).base_cost

    def is_passable(self, kind: TerrainLike) -> bool:
        return self.terrain_stats(kind).passable

    def defense_bonus(self, kind: TerrainLike) -> int:
        return self.terrain_stats(kind).defense_bonus

    def base_yield(self, kind: TerrainLike) -> Yield:
        return self.terrain_stats(kind).base_yield

    # --- Resources ---

    def resource_compatibility(self, terrain: TerrainLike, resource: ResourceLike) -> bool:
        """
        Check whether a resource may be placed on a terrain.

        Resource kinds absent from the compatibility table are allowed on
        every terrain.
        """
        resource_kind = coerce_resource(resource)
        if resource_kind is None:
            logger.warning("Unknown resource kind %r in compatibility check", resource)
            return True
        allowed = self.resource_terrains.get(resource_kind)
        if allowed is None:
            return True
        terrain_kind = coerce_terrain(terrain)
        if terrain_kind is None:
            logger.warning("Unknown terrain kind %r, using %s defaults", terrain, self.fallback.value)
            terrain_kind = self.fallback
        return terrain_kind in allowed

    def resource_yield_modifier(self, resource: ResourceLike) -> Yield:
        resource_kind = coerce_resource(resource)
        if resource_kind is None or resource_kind not in self.resource_yields:
            logger.warning("Unknown resource kind %r, no yield bonus applied", resource)
            return NO_YIELD
        return self.resource_yields[resource_kind]

    def resource_category(self, resource: ResourceLike) -> ResourceCategory:
        resource_kind = coerce_resource(resource)
        if resource_kind is None or resource_kind not in RESOURCE_CATEGORIES:
            logger.warning("Unknown resource kind %r, treating as bonus", resource)
            return ResourceCategory.BONUS
        return RESOURCE_CATEGORIES[resource_kind]

    # --- Improvements ---

    def improvement_stats(self, improvement: ImprovementLike) -> ImprovementStats:
        improvement_kind = coerce_improvement(improvement)
        if improvement_kind is None or improvement_kind not in self.improvements:
            logger.warning("Unknown improvement kind %r, no modifiers applied", improvement)
            return ImprovementStats()
        return self.improvements[improvement_kind]

    def improvement_yield_modifier(self, improvement: ImprovementLike) -> Tuple[Yield, Optional[float]]:
        """Return the (yield delta, movement cost override) of an improvement."""
        stats = self.improvement_stats(improvement)
        return stats.yield_delta, stats.cost_override

    def improvement_defense_bonus(self, improvement: ImprovementLike) -> int:
        return self.improvement_stats(improvement).defense_bonus

    # --- Derived tile attributes ---

    def effective_cost(self, terrain: TerrainLike, improvement: Optional[ImprovementLike] = None) -> float:
        """
        Movement cost of entering a tile, derived from terrain and improvement.

        Improvements cannot make impassable terrain passable.
        """
        stats = self.terrain_stats(terrain)
        if not stats.passable:
            return INFINITE
        if improvement is not None:
            _, override = self.improvement_yield_modifier(improvement)
            if override is not None:
                return override
        return stats.base_cost

    def effective_defense(self, terrain: TerrainLike, improvement: Optional[ImprovementLike] = None) -> int:
        bonus = self.defense_bonus(terrain)
        if improvement is not None:
            bonus += self.improvement_defense_bonus(improvement)
        return bonus

    def effective_yield(
        self,
        terrain: TerrainLike,
        resource: Optional[ResourceLike] = None,
        improvement: Optional[ImprovementLike] = None,
    ) -> Yield:
        total = self.base_yield(terrain)
        if resource is not None:
            total = total + self.resource_yield_modifier(resource)
        if improvement is not None:
            delta, _ = self.improvement_yield_modifier(improvement)
            total = total + delta
        return total


DEFAULT_CATALOG = TerrainCatalog()
