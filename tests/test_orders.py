import pytest

from coords import Hex
from models import Resource, create_unit
from orders import (
    Order,
    OrderType,
    OrderValidationError,
    collection_rate,
    execute_order,
    resolve_orders,
    validate_order,
)
from terrain import ImprovementKind, ResourceKind, TerrainKind


def unit(game_state, unit_id):
    return game_state.get_unit(unit_id)


class TestMoveOrders:
    def test_validate_move_returns_path(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(0, 1))
        path = validate_order(order, skirmish)
        assert path.coords == [Hex(0, 1)]
        assert path.cost == 1

    def test_tuple_target_is_converted(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(0, 1))
        assert order.target_hex == Hex(0, 1)

    def test_execute_move_updates_unit_and_grid(self, skirmish):
        warrior = unit(skirmish, "p1_u1")
        result = execute_order(Order(OrderType.MOVE, warrior, target_hex=Hex(0, 1)), skirmish)
        assert result['cost'] == 1
        assert result['remaining_movement'] == 1
        assert warrior.position == Hex(0, 1)
        assert skirmish.grid.get((0, 1)).unit_id == "p1_u1"
        assert skirmish.grid.get((1, 1)).unit_id is None
        assert "moved" in skirmish.log[-1]['event']

    def test_not_enough_movement(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(4, 1))
        with pytest.raises(OrderValidationError, match="Not enough movement points"):
            validate_order(order, skirmish)

    def test_second_move_after_spending_budget(self, skirmish):
        warrior = unit(skirmish, "p1_u1")
        execute_order(Order(OrderType.MOVE, warrior, target_hex=(1, 3)), skirmish)
        assert warrior.mover.movement == 0
        with pytest.raises(OrderValidationError):
            validate_order(Order(OrderType.MOVE, warrior, target_hex=(1, 4)), skirmish)

    def test_move_onto_friendly_unit(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(3, 3))
        with pytest.raises(OrderValidationError, match="friendly"):
            validate_order(order, skirmish)

    def test_move_onto_enemy_unit(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(2, 1))
        with pytest.raises(OrderValidationError, match="enemy"):
            validate_order(order, skirmish)

    def test_move_out_of_bounds(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(9, 9))
        with pytest.raises(OrderValidationError, match="outside map bounds"):
            validate_order(order, skirmish)

    def test_move_onto_mountain(self, skirmish):
        skirmish.grid.get((0, 1)).terrain = TerrainKind.MOUNTAIN
        order = Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(0, 1))
        with pytest.raises(OrderValidationError, match="No path"):
            validate_order(order, skirmish)

    def test_move_requires_target(self, skirmish):
        with pytest.raises(OrderValidationError):
            validate_order(Order(OrderType.MOVE, unit(skirmish, "p1_u1")), skirmish)

    def test_only_active_player_may_order(self, skirmish):
        order = Order(OrderType.MOVE, unit(skirmish, "p2_u1"), target_hex=(3, 1))
        with pytest.raises(OrderValidationError, match="active player"):
            validate_order(order, skirmish)


class TestAttackOrders:
    def test_attack_adjacent_enemy(self, skirmish):
        skirmish.grid.place_improvement((2, 1), ImprovementKind.FORT)
        result = execute_order(Order(OrderType.ATTACK, unit(skirmish, "p1_u1"), target_hex=(2, 1)), skirmish)
        assert result['defender_id'] == "p2_u1"
        assert result['defense_bonus'] == 3
        assert result['remaining_actions'] == 1

    def test_attack_out_of_range(self, skirmish):
        order = Order(OrderType.ATTACK, unit(skirmish, "p1_u2"), target_hex=(2, 1))
        with pytest.raises(OrderValidationError, match="not within range 1"):
            validate_order(order, skirmish)

    def test_archer_attacks_at_range(self, skirmish):
        archer = create_unit("p1_u3", "p1", "archer", Hex(4, 1))
        assert skirmish.add_unit(archer)
        result = execute_order(Order(OrderType.ATTACK, archer, target_hex=(2, 1)), skirmish)
        assert result['defender_id'] == "p2_u1"

        far = create_unit("p1_u4", "p1", "archer", Hex(5, 1))
        assert skirmish.add_unit(far)
        with pytest.raises(OrderValidationError, match="not within range 2"):
            validate_order(Order(OrderType.ATTACK, far, target_hex=(2, 1)), skirmish)

    def test_ranged_attack_needs_line_of_sight(self, skirmish):
        archer = create_unit("p1_u3", "p1", "archer", Hex(4, 1))
        assert skirmish.add_unit(archer)
        skirmish.grid.get((3, 1)).terrain = TerrainKind.MOUNTAIN
        with pytest.raises(OrderValidationError, match="No line of sight"):
            validate_order(Order(OrderType.ATTACK, archer, target_hex=(2, 1)), skirmish)

    def test_adjacent_attack_ignores_line_of_sight(self, skirmish):
        skirmish.grid.get((2, 1)).terrain = TerrainKind.MOUNTAIN
        assert validate_order(Order(OrderType.ATTACK, unit(skirmish, "p1_u1"), target_hex=(2, 1)), skirmish) is None

    def test_attack_empty_tile(self, skirmish):
        order = Order(OrderType.ATTACK, unit(skirmish, "p1_u1"), target_hex=(0, 1))
        with pytest.raises(OrderValidationError, match="No enemy"):
            validate_order(order, skirmish)

    def test_attack_without_action_points(self, skirmish):
        warrior = unit(skirmish, "p1_u1")
        warrior.mover.actions = 0
        order = Order(OrderType.ATTACK, warrior, target_hex=(2, 1))
        with pytest.raises(OrderValidationError, match="no action points"):
            validate_order(order, skirmish)


class TestImproveOrders:
    def test_worker_builds_improvement(self, skirmish):
        worker = unit(skirmish, "p1_u2")
        result = execute_order(Order(OrderType.IMPROVE, worker, improvement="farm"), skirmish)
        assert result['improvement'] == "farm"
        assert skirmish.grid.get((3, 3)).improvement_kind == ImprovementKind.FARM
        assert worker.mover.actions == 1

    def test_tile_already_improved(self, skirmish):
        worker = unit(skirmish, "p1_u2")
        execute_order(Order(OrderType.IMPROVE, worker, improvement="farm"), skirmish)
        with pytest.raises(OrderValidationError, match="already has an improvement"):
            validate_order(Order(OrderType.IMPROVE, worker, improvement="mine"), skirmish)

    def test_only_workers_improve(self, skirmish):
        order = Order(OrderType.IMPROVE, unit(skirmish, "p1_u1"), improvement="farm")
        with pytest.raises(OrderValidationError, match="Only workers"):
            validate_order(order, skirmish)

    def test_invalid_improvement(self, skirmish):
        order = Order(OrderType.IMPROVE, unit(skirmish, "p1_u2"), improvement="castle")
        with pytest.raises(OrderValidationError, match="Invalid improvement"):
            validate_order(order, skirmish)


class TestCollectOrders:
    def test_collect_accessible_resource(self, skirmish):
        assert skirmish.grid.place_resource((3, 3), Resource(ResourceKind.COWS, accessed_by=["p1"]))
        result = execute_order(Order(OrderType.COLLECT, unit(skirmish, "p1_u2")), skirmish)
        assert result['amount'] == 2.0
        assert skirmish.players[0].stockpile == {"cows": 2.0}
        assert skirmish.grid.get((3, 3)).resource.value == 3.0

    def test_collect_with_improvement_bonus(self, skirmish):
        skirmish.grid.place_resource((3, 3), Resource(ResourceKind.COWS, accessed_by=["p1"]))
        skirmish.grid.place_improvement((3, 3), ImprovementKind.FARM)
        result = execute_order(Order(OrderType.COLLECT, unit(skirmish, "p1_u2")), skirmish)
        assert result['amount'] == pytest.approx(3.0)

    def test_collect_without_access(self, skirmish):
        skirmish.grid.place_resource((3, 3), Resource(ResourceKind.COWS))
        with pytest.raises(OrderValidationError, match="no access"):
            validate_order(Order(OrderType.COLLECT, unit(skirmish, "p1_u2")), skirmish)

    def test_collect_without_resource(self, skirmish):
        with pytest.raises(OrderValidationError, match="No resource"):
            validate_order(Order(OrderType.COLLECT, unit(skirmish, "p1_u2")), skirmish)

    def test_collection_rates(self, skirmish):
        worker = unit(skirmish, "p1_u2")
        assert collection_rate(worker, ResourceKind.COWS) == 2.0
        assert collection_rate(unit(skirmish, "p1_u1"), ResourceKind.COWS) == 0.0
        assert collection_rate(worker, ResourceKind.COWS, ImprovementKind.CAMP) == pytest.approx(2.6)
        assert collection_rate(worker, ResourceKind.IRON, ImprovementKind.MINE) == pytest.approx(3.0)
        assert collection_rate(create_unit("p1_u5", "p1", "settler", Hex(0, 0)), ResourceKind.GOLD_ORE) == 1.0

    def test_improvement_only_boosts_matching_yield(self, skirmish):
        worker = unit(skirmish, "p1_u2")
        assert collection_rate(worker, ResourceKind.IRON, ImprovementKind.FARM) == 2.0
        assert collection_rate(worker, ResourceKind.SILVER, ImprovementKind.CAMP) == 2.0

    def test_military_units_cannot_collect(self, skirmish):
        skirmish.grid.place_resource((1, 1), Resource(ResourceKind.COWS, accessed_by=["p1"]))
        with pytest.raises(OrderValidationError, match="cannot collect cows"):
            validate_order(Order(OrderType.COLLECT, unit(skirmish, "p1_u1")), skirmish)

    def test_scout_collects_food_only(self, skirmish):
        scout = create_unit("p1_u3", "p1", "scout", Hex(4, 4))
        assert skirmish.add_unit(scout)
        skirmish.grid.get((4, 4)).terrain = TerrainKind.HILLS
        assert skirmish.grid.place_resource((4, 4), Resource(ResourceKind.IRON, accessed_by=["p1"]))
        with pytest.raises(OrderValidationError, match="cannot collect iron"):
            validate_order(Order(OrderType.COLLECT, scout), skirmish)

        assert skirmish.grid.place_resource((4, 4), Resource(ResourceKind.SHEEP, accessed_by=["p1"]))
        result = execute_order(Order(OrderType.COLLECT, scout), skirmish)
        assert result['amount'] == 0.5

    def test_settler_collects_food_and_gold(self, skirmish):
        settler = create_unit("p1_u4", "p1", "settler", Hex(4, 4))
        assert skirmish.add_unit(settler)
        skirmish.grid.get((4, 4)).terrain = TerrainKind.HILLS
        assert skirmish.grid.place_resource((4, 4), Resource(ResourceKind.STONE, accessed_by=["p1"]))
        with pytest.raises(OrderValidationError, match="cannot collect stone"):
            validate_order(Order(OrderType.COLLECT, settler), skirmish)

        assert skirmish.grid.place_resource((4, 4), Resource(ResourceKind.SILVER, accessed_by=["p1"]))
        assert validate_order(Order(OrderType.COLLECT, settler), skirmish) is None


def test_resolve_orders_collects_errors(skirmish):
    orders = [
        Order(OrderType.MOVE, unit(skirmish, "p1_u1"), target_hex=(0, 1)),
        Order(OrderType.MOVE, unit(skirmish, "p1_u2"), target_hex=(5, 5)),
    ]
    result = resolve_orders(orders, skirmish)
    assert len(result['results']) == 1
    assert result['errors'][0]['unit_id'] == "p1_u2"
    assert "Not enough movement points (has 1, needs 4)" in result['errors'][0]['error']
    # Rejected orders leave the unit where it was
    assert unit(skirmish, "p1_u2").position == Hex(3, 3)
    assert unit(skirmish, "p1_u2").mover.movement == 1
