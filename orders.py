from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from coords import Hex
from ledger import can_afford, debit_action, spend_path
from models import Path, Resource, Unit
from state import GameState, log_event
from terrain import DEFAULT_CATALOG, ImprovementKind, ResourceLike, TerrainCatalog, coerce_improvement


class OrderType(Enum):
    MOVE = "Move"
    ATTACK = "Attack"
    IMPROVE = "Improve"
    COLLECT = "Collect"


# Unit kinds that can collect: base rate and the yield types they may gather
# (None gathers anything). Kinds missing here cannot collect at all.
COLLECTORS: Dict[str, Tuple[float, Optional[FrozenSet[str]]]] = {
    'worker': (2.0, None),
    'settler': (1.0, frozenset({'food', 'gold'})),
    'scout': (0.5, frozenset({'food'})),
}
# Improvement multiplier on collection and the yield types it boosts
COLLECTION_IMPROVEMENT_BONUS: Dict[ImprovementKind, Tuple[float, FrozenSet[str]]] = {
    ImprovementKind.FARM: (1.5, frozenset({'food'})),
    ImprovementKind.MINE: (1.5, frozenset({'gold', 'production'})),
    ImprovementKind.CAMP: (1.3, frozenset({'food', 'production'})),
}


class Order:
    def __init__(self, order_type: OrderType, unit: Unit, target_hex: Optional[Union[Hex, Tuple[int, int]]] = None,
                 improvement: Optional[str] = None):
        """Initialize an order for a unit."""
        self.order_type = order_type
        self.unit = unit
        if target_hex is not None and not isinstance(target_hex, Hex):
            target_hex = Hex(*target_hex)
        self.target_hex = target_hex  # For Move and Attack; None for others
        self.improvement = improvement  # For Improve; None for others


class OrderValidationError(Exception):
    """Exception raised when an order fails validation."""
    pass


def _require_action_point(unit: Unit) -> None:
    if unit.mover.actions <= 0:
        raise OrderValidationError(f"Unit {unit.id} has no action points left")


def validate_order(order: Order, game_state: GameState) -> Optional[Path]:
    """
    Validate an order against the map, the unit registry and the unit's budgets.

    Returns:
        The path to follow for Move orders, None for other orders

    Raises:
        OrderValidationError: With a player-facing reason when the order is illegal
    """
    unit = order.unit
    active = game_state.active_player
    if game_state.get_unit(unit.id) is not unit:
        raise OrderValidationError(f"Unit {unit.id} is not on the map")
    if active is None or unit.owner != active.id:
        raise OrderValidationError(f"Unit {unit.id} does not belong to the active player")

    grid = game_state.grid

    if order.order_type == OrderType.MOVE:
        if order.target_hex is None:
            raise OrderValidationError("Move order requires a target hex")
        target_tile = grid.get(order.target_hex)
        if target_tile is None:
            raise OrderValidationError(f"Target hex {order.target_hex.to_tuple()} is outside map bounds")
        occupant = game_state.unit_at(order.target_hex)
        if occupant is not None and occupant is not unit:
            if occupant.owner == unit.owner:
                raise OrderValidationError(f"Target hex {order.target_hex.to_tuple()} is occupied by a friendly unit")
            raise OrderValidationError(f"Target hex {order.target_hex.to_tuple()} is occupied by an enemy; attack instead")

        path = game_state.pathfinder().find_path(unit.position, order.target_hex, unit.mover.travel_class)
        if path is None:
            raise OrderValidationError(f"No path for unit {unit.id} to {order.target_hex.to_tuple()}")
        if not can_afford(unit.mover, path):
            raise OrderValidationError(
                f"Not enough movement points (has {unit.mover.movement}, needs {path.cost})"
            )
        return path

    if order.order_type == OrderType.ATTACK:
        if order.target_hex is None:
            raise OrderValidationError("Attack order requires a target hex")
        distance = grid.profile.distance(unit.position, order.target_hex)
        if distance < 1 or distance > unit.attack_range:
            raise OrderValidationError(
                f"Target hex {order.target_hex.to_tuple()} is not within range {unit.attack_range} "
                f"of unit position {unit.position.to_tuple()}"
            )
        # Ranged attacks need a clear line; adjacent targets are always visible
        if distance > 1 and not grid.has_line_of_sight(unit.position, order.target_hex):
            raise OrderValidationError(
                f"No line of sight from {unit.position.to_tuple()} to {order.target_hex.to_tuple()}"
            )
        defender = game_state.unit_at(order.target_hex)
        if defender is None or defender.owner == unit.owner:
            raise OrderValidationError(f"No enemy unit at {order.target_hex.to_tuple()}")
        _require_action_point(unit)
        return None

    if order.order_type == OrderType.IMPROVE:
        if unit.kind != 'worker':
            raise OrderValidationError("Only workers can build improvements")
        if order.improvement is None or coerce_improvement(order.improvement) is None:
            raise OrderValidationError(f"Invalid improvement: {order.improvement}")
        tile = grid.get(unit.position)
        if tile is None or not tile.is_suitable_for('resource_extraction'):
            raise OrderValidationError("This tile already has an improvement")
        _require_action_point(unit)
        return None

    if order.order_type == OrderType.COLLECT:
        tile = grid.get(unit.position)
        if tile is None or tile.resource is None:
            raise OrderValidationError(f"No resource at {unit.position.to_tuple()}")
        if not can_collect(unit, tile.resource.kind, grid.catalog):
            raise OrderValidationError(
                f"Unit {unit.id} ({unit.kind}) cannot collect {_resource_name(tile.resource)}"
            )
        if not tile.resource.is_accessible_to(unit.owner):
            raise OrderValidationError(f"Player {unit.owner} has no access to this resource")
        _require_action_point(unit)
        return None

    raise OrderValidationError(f"Unknown order type: {order.order_type}")


def _resource_name(resource: Resource) -> str:
    return resource.kind.value if hasattr(resource.kind, 'value') else str(resource.kind)


def resource_yield_types(kind: ResourceLike, catalog: TerrainCatalog = DEFAULT_CATALOG) -> FrozenSet[str]:
    """Yield types a resource kind produces, e.g. {'food'} for cows."""
    bonus = catalog.resource_yield_modifier(kind).to_dict()
    return frozenset(name for name, amount in bonus.items() if amount > 0)


def can_collect(unit: Unit, kind: ResourceLike, catalog: TerrainCatalog = DEFAULT_CATALOG) -> bool:
    """Check the unit kind's collection allow-list against the resource's yield types."""
    collector = COLLECTORS.get(unit.kind)
    if collector is None:
        return False
    allowed = collector[1]
    return allowed is None or bool(allowed & resource_yield_types(kind, catalog))


def collection_rate(unit: Unit, kind: ResourceLike, improvement: Optional[ImprovementKind] = None,
                    catalog: TerrainCatalog = DEFAULT_CATALOG) -> float:
    """
    Amount a unit gathers from one Collect order.

    Improvements only boost the yield types they are built for (a farm helps
    food, not iron). Units that cannot collect the resource get 0.
    """
    if not can_collect(unit, kind, catalog):
        return 0.0
    rate = COLLECTORS[unit.kind][0]
    if improvement in COLLECTION_IMPROVEMENT_BONUS:
        multiplier, boosted = COLLECTION_IMPROVEMENT_BONUS[improvement]
        if boosted & resource_yield_types(kind, catalog):
            rate *= multiplier
    return rate


def execute_order(order: Order, game_state: GameState) -> Dict[str, Any]:
    """
    Validate and apply a single order.

    Raises:
        OrderValidationError: If the order is illegal; the state is unchanged
    """
    path = validate_order(order, game_state)
    unit = order.unit
    grid = game_state.grid

    if order.order_type == OrderType.MOVE:
        start = unit.position
        spend_path(unit.mover, path)
        grid.clear_unit(start, unit.id)
        grid.place_unit(order.target_hex, unit.id)
        unit.position = order.target_hex
        log_event(game_state, f"Unit {unit.id} moved {start.to_tuple()} -> {unit.position.to_tuple()}",
                  unit_id=unit.id, cost=path.cost)
        return {
            'order': order.order_type.value,
            'unit_id': unit.id,
            'path': [{'q': c.q, 'r': c.r} for c in path.coords],
            'cost': path.cost,
            'remaining_movement': unit.mover.movement,
        }

    if order.order_type == OrderType.ATTACK:
        defender = game_state.unit_at(order.target_hex)
        debit_action(unit.mover)
        defense_bonus = grid.get(order.target_hex).defense_bonus(grid.catalog)
        log_event(game_state, f"Unit {unit.id} attacked {defender.id}",
                  unit_id=unit.id, defender_id=defender.id, defense_bonus=defense_bonus)
        return {
            'order': order.order_type.value,
            'unit_id': unit.id,
            'defender_id': defender.id,
            'defense_bonus': defense_bonus,
            'remaining_actions': unit.mover.actions,
        }

    if order.order_type == OrderType.IMPROVE:
        kind = coerce_improvement(order.improvement)
        debit_action(unit.mover)
        grid.place_improvement(unit.position, kind)
        log_event(game_state, f"Unit {unit.id} built {kind.value} at {unit.position.to_tuple()}",
                  unit_id=unit.id, improvement=kind.value)
        return {
            'order': order.order_type.value,
            'unit_id': unit.id,
            'improvement': kind.value,
            'remaining_actions': unit.mover.actions,
        }

    # OrderType.COLLECT
    tile = grid.get(unit.position)
    debit_action(unit.mover)
    rate = collection_rate(unit, tile.resource.kind, tile.improvement_kind, grid.catalog)
    amount = tile.resource.collect(unit.owner, rate)
    kind = _resource_name(tile.resource)
    game_state.get_player_by_id(unit.owner).add_resource(kind, amount)
    log_event(game_state, f"Player {unit.owner} collected {amount:.2f} {kind} at {unit.position.to_tuple()}",
              unit_id=unit.id, resource=kind, amount=amount)
    return {
        'order': order.order_type.value,
        'unit_id': unit.id,
        'resource': kind,
        'amount': amount,
        'remaining_actions': unit.mover.actions,
    }


def resolve_orders(orders: List[Order], game_state: GameState) -> Dict[str, List[Any]]:
    """Apply orders one at a time, collecting results and rejection messages."""
    results: Dict[str, List[Any]] = {"results": [], "errors": []}
    for order in orders:
        try:
            results["results"].append(execute_order(order, game_state))
        except OrderValidationError as e:
            log_event(game_state, f"Order rejected for unit {order.unit.id}: {e}", unit_id=order.unit.id)
            results["errors"].append({"unit_id": order.unit.id, "error": str(e)})
    return results
