# Models for map elements, movers and paths

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from coords import Hex
from terrain import (
    CATEGORY_VALUE_MULTIPLIER,
    DEFAULT_CATALOG,
    ImprovementKind,
    ResourceCategory,
    ResourceKind,
    SIGHT_BLOCKING_TERRAIN,
    TerrainCatalog,
    TerrainKind,
    TravelClass,
    WATER_TERRAIN,
    Yield,
    coerce_improvement,
    coerce_resource,
    coerce_terrain,
)


@dataclass
class Resource:
    """
    A depletable resource attached to a tile.

    Value always stays within [0, max_value]; collection removes value and
    regrowth restores it at regrowth_rate per turn. Only players in
    accessed_by may collect.
    """
    kind: ResourceKind
    value: float = 5.0  # Amount currently available
    max_value: float = 5.0  # Upper bound for value
    regrowth_rate: float = 1.0  # Value restored per turn
    accessed_by: List[str] = field(default_factory=list)  # Player ids allowed to collect
    used_by: Optional[str] = None  # Player currently exploiting this resource

    def __post_init__(self):
        self.kind = coerce_resource(self.kind) or self.kind
        self.max_value = max(0.0, self.max_value)
        self.regrowth_rate = max(0.0, self.regrowth_rate)
        self.value = max(0.0, min(self.max_value, self.value))

    @property
    def category(self) -> ResourceCategory:
        return DEFAULT_CATALOG.resource_category(self.kind)

    def add_access(self, player_id: str) -> None:
        if player_id not in self.accessed_by:
            self.accessed_by.append(player_id)

    def remove_access(self, player_id: str) -> None:
        if player_id in self.accessed_by:
            self.accessed_by.remove(player_id)
            if self.used_by == player_id:
                self.used_by = None

    def is_accessible_to(self, player_id: str) -> bool:
        return player_id in self.accessed_by

    def collect(self, player_id: str, amount: float) -> float:
        """
        Remove up to amount from this resource for player_id.

        Returns:
            The amount actually collected (0 when the player lacks access)
        """
        if amount <= 0 or not self.is_accessible_to(player_id):
            return 0.0
        taken = min(amount, self.value)
        self.value -= taken
        self.used_by = player_id
        return taken

    def regrow(self, turns: int = 1) -> None:
        """Restore value at regrowth_rate per turn, capped at max_value."""
        if turns <= 0:
            return
        self.value = max(0.0, min(self.max_value, self.value + self.regrowth_rate * turns))

    def value_for_player(self) -> int:
        """Trade value: luxury resources are worth 1.5x, strategic 2x."""
        return round(self.value * CATEGORY_VALUE_MULTIPLIER[self.category])


@dataclass
class Improvement:
    """A tile improvement (farm, mine, fort, ...). At most one per tile."""
    kind: ImprovementKind

    def __post_init__(self):
        self.kind = coerce_improvement(self.kind) or self.kind


@dataclass
class Tile:
    """
    A single map cell.

    Movement cost, passability, defense and yield are always derived from
    terrain and improvement through the catalog; they are never stored.
    unit_id and city_id are lookup-only references to entities owned elsewhere.
    """
    coord: Hex  # Position on the map
    terrain: TerrainKind = TerrainKind.GRASS
    resource: Optional[Resource] = None
    improvement: Optional[Improvement] = None
    unit_id: Optional[str] = None  # Occupying unit (weak)
    city_id: Optional[str] = None  # Occupying city (weak)
    owner: Optional[str] = None  # Owning player id

    def __post_init__(self):
        # Unknown terrain strings are kept as-is; the catalog falls back for them
        self.terrain = coerce_terrain(self.terrain) or self.terrain

    @property
    def q(self) -> int:
        return self.coord.q

    @property
    def r(self) -> int:
        return self.coord.r

    @property
    def improvement_kind(self) -> Optional[ImprovementKind]:
        return self.improvement.kind if self.improvement else None

    @property
    def is_water(self) -> bool:
        return self.terrain in WATER_TERRAIN

    @property
    def blocks_sight(self) -> bool:
        return self.terrain in SIGHT_BLOCKING_TERRAIN

    def movement_cost(self, catalog: TerrainCatalog = DEFAULT_CATALOG) -> float:
        return catalog.effective_cost(self.terrain, self.improvement_kind)

    def is_passable(self, catalog: TerrainCatalog = DEFAULT_CATALOG) -> bool:
        return catalog.is_passable(self.terrain)

    def defense_bonus(self, catalog: TerrainCatalog = DEFAULT_CATALOG) -> int:
        return catalog.effective_defense(self.terrain, self.improvement_kind)

    def total_yield(self, catalog: TerrainCatalog = DEFAULT_CATALOG) -> Yield:
        resource_kind = self.resource.kind if self.resource else None
        return catalog.effective_yield(self.terrain, resource_kind, self.improvement_kind)

    def can_be_worked(self) -> bool:
        """A tile can be worked when no unit or city sits on it."""
        return self.unit_id is None and self.city_id is None

    def is_suitable_for(self, purpose: str, catalog: TerrainCatalog = DEFAULT_CATALOG) -> bool:
        """Check whether the tile suits a city, a unit or resource extraction."""
        if purpose == 'city':
            return self.is_passable(catalog) and not self.is_water
        if purpose == 'resource_extraction':
            return self.resource is not None or self.improvement is None
        # military_unit, civilian_unit and anything else
        return self.is_passable(catalog)


class MoverStatus(Enum):
    FRESH = "Fresh"
    PARTIALLY_SPENT = "PartiallySpent"
    EXHAUSTED = "Exhausted"


@dataclass
class MoverProfile:
    """
    Per-turn movement and action budgets of a unit.

    Budgets are reset to their maxima at the start of the owner's turn and
    only decrease within a turn. Mutate through the ledger module.
    """
    travel_class: TravelClass = TravelClass.LAND
    max_movement: float = 2
    max_actions: int = 2
    movement: Optional[float] = None  # Remaining movement points (defaults to max)
    actions: Optional[int] = None  # Remaining action points (defaults to max)
    last_reset_turn: Optional[int] = None  # Turn of the most recent reset

    def __post_init__(self):
        if self.movement is None:
            self.movement = self.max_movement
        if self.actions is None:
            self.actions = self.max_actions
        self.movement = max(0, self.movement)
        self.actions = max(0, self.actions)

    @property
    def status(self) -> MoverStatus:
        if self.movement <= 0 or self.actions <= 0:
            return MoverStatus.EXHAUSTED
        if self.movement >= self.max_movement and self.actions >= self.max_actions:
            return MoverStatus.FRESH
        return MoverStatus.PARTIALLY_SPENT


# Movement points, action points and traversal class per unit kind
UNIT_STATS: Dict[str, Tuple[float, int, TravelClass]] = {
    'warrior': (2, 2, TravelClass.LAND),
    'archer': (2, 2, TravelClass.LAND),
    'settler': (1, 2, TravelClass.LAND),
    'worker': (1, 2, TravelClass.LAND),
    'scout': (3, 2, TravelClass.LAND),
    'spearman': (2, 2, TravelClass.LAND),
    'cavalry': (4, 2, TravelClass.LAND),
    'catapult': (1, 2, TravelClass.LAND),
    'galley': (3, 2, TravelClass.NAVAL),
    'airship': (5, 2, TravelClass.AIR),
}
DEFAULT_UNIT_STATS = (2, 2, TravelClass.LAND)
# Attack range in tiles; kinds not listed only strike adjacent tiles
UNIT_RANGES: Dict[str, int] = {'archer': 2, 'catapult': 3}
DEFAULT_UNIT_RANGE = 1


@dataclass
class Unit:
    """A unit entity: owner, kind, position and its mover budgets."""
    id: str  # Unit identifier (e.g., 'p1_u1')
    owner: str  # Owning player id
    kind: str  # Unit kind, see UNIT_STATS
    position: Hex  # Current tile
    mover: MoverProfile = field(default_factory=MoverProfile)

    @property
    def attack_range(self) -> int:
        return UNIT_RANGES.get(self.kind, DEFAULT_UNIT_RANGE)


def create_unit(unit_id: str, owner: str, kind: str, position: Hex) -> Unit:
    """
    Create a unit with full budgets for its kind.

    Args:
        unit_id: Unique identifier for the unit
        owner: Owning player id
        kind: Unit kind; unknown kinds get warrior-like stats
        position: Starting coordinate

    Returns:
        New Unit instance
    """
    movement, actions, travel_class = UNIT_STATS.get(kind, DEFAULT_UNIT_STATS)
    mover = MoverProfile(travel_class=travel_class, max_movement=movement, max_actions=actions)
    return Unit(id=unit_id, owner=owner, kind=kind, position=position, mover=mover)


@dataclass
class Player:
    """A player and the resources they have collected."""
    id: str  # Player identifier ('p1', 'p2', ...)
    stockpile: Dict[str, float] = field(default_factory=dict)  # Resource kind -> amount

    def add_resource(self, kind: str, amount: float) -> None:
        if amount <= 0:
            return
        self.stockpile[kind] = self.stockpile.get(kind, 0) + amount


@dataclass
class Path:
    """
    Result of a path query: tiles from start (exclusive) to destination
    (inclusive) and their total movement cost.
    """
    tiles: List[Tile] = field(default_factory=list)
    cost: float = 0

    @property
    def coords(self) -> List[Hex]:
        return [tile.coord for tile in self.tiles]

    @property
    def destination(self) -> Optional[Tile]:
        return self.tiles[-1] if self.tiles else None

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)
