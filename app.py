import logging
from typing import Dict

from flask import Flask, jsonify, request
from flask_cors import CORS

from config import load_config
from coords import Hex
from ledger import can_afford
from map_gen import format_map_stats
from orders import Order, OrderType, OrderValidationError, resolve_orders
from state import GameState, game_to_dict, get_game_summary, initialize_game
from upkeep import end_turn, get_upkeep_summary

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, GameState] = {}  # In-memory storage for game states


def _parse_hex(data) -> Hex:
    if not isinstance(data, dict) or 'q' not in data or 'r' not in data:
        raise ValueError('hex must be an object with q and r coordinates')
    return Hex(int(data['q']), int(data['r']))


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Create a new game with the provided seed."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        seed = data.get('seed', 42)  # Default seed if none provided

        # Validate seed is an integer
        try:
            seed = int(seed)
        except (ValueError, TypeError):
            return jsonify({'error': 'Seed must be an integer'}), 400

        config = load_config()
        for key in ('map_width', 'map_height'):
            if key in data:
                try:
                    setattr(config, key, int(data[key]))
                except (ValueError, TypeError):
                    return jsonify({'error': f'{key} must be an integer'}), 400

        game_state = initialize_game(seed, config)
        games[game_state.game_id] = game_state

        return jsonify({'game_id': game_state.game_id})

    except Exception as e:
        logger.exception("Failed to create game")
        return jsonify({'error': f'Failed to create game: {str(e)}'}), 500


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the full snapshot of the game (map, units, players)."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404
    try:
        return jsonify(game_to_dict(games[game_id]))
    except Exception as e:
        logger.exception("Failed to serialize game %s", game_id)
        return jsonify({'error': f'Failed to retrieve game state: {str(e)}'}), 500


@app.route('/api/game/<game_id>/summary', methods=['GET'])
def get_summary(game_id: str):
    """Turn, players, unit budgets and per-player yield."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404
    game_state = games[game_id]
    summary = get_game_summary(game_state)
    summary['upkeep'] = get_upkeep_summary(game_state)
    return jsonify(summary)


@app.route('/api/game/<game_id>/stats', methods=['GET'])
def get_map_stats(game_id: str):
    """Terrain/resource counts of the map."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404
    grid = games[game_id].grid
    stats = grid.statistics()
    response = stats.to_dict()
    response['report'] = format_map_stats(stats, grid.width, grid.height)
    return jsonify(response)


@app.route('/api/game/<game_id>/path', methods=['POST'])
def preview_path(game_id: str):
    """Preview the path a unit would take to a target, without moving it."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404
    game_state = games[game_id]

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON data'}), 400

    unit = game_state.get_unit(data.get('unit_id', ''))
    if unit is None:
        return jsonify({'error': f"Unit with id {data.get('unit_id')} not found"}), 400

    pathfinder = game_state.pathfinder()
    if data.get('target_hex') is None:
        # No target: overlay of everything the unit can still reach this turn
        overlay = pathfinder.reachable(unit.position, unit.mover.travel_class, budget=unit.mover.movement)
        return jsonify({
            'unit_id': unit.id,
            'reachable': [{'q': c.q, 'r': c.r, 'cost': cost} for c, cost in overlay.items()],
        })

    try:
        target = _parse_hex(data['target_hex'])
    except (ValueError, TypeError) as e:
        return jsonify({'error': str(e)}), 400

    path = pathfinder.find_path(unit.position, target, unit.mover.travel_class)
    if path is None:
        return jsonify({'unit_id': unit.id, 'reachable': False, 'path': None})

    return jsonify({
        'unit_id': unit.id,
        'reachable': True,
        'affordable': can_afford(unit.mover, path),
        'path': [{'q': c.q, 'r': c.r} for c in path.coords],
        'cost': path.cost,
        'remaining_movement': unit.mover.movement,
    })


@app.route('/api/game/<game_id>/order', methods=['POST'])
def submit_orders(game_id: str):
    """Submit orders for the active player's units and apply them in order."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404
        game_state = games[game_id]

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        orders_data = data.get('orders', [])
        if not isinstance(orders_data, list):
            return jsonify({'error': 'Orders must be an array'}), 400

        orders = []
        for order_data in orders_data:
            if not isinstance(order_data, dict) or not all(key in order_data for key in ['unit_id', 'order']):
                return jsonify({'error': 'Each order must have unit_id and order fields'}), 400

            unit = game_state.get_unit(order_data['unit_id'])
            if unit is None:
                return jsonify({'error': f"Unit with id {order_data['unit_id']} not found"}), 400

            try:
                order_type = OrderType(order_data['order'])
            except ValueError:
                return jsonify({'error': f"Invalid order type: {order_data['order']}"}), 400

            target_hex = None
            if order_data.get('target_hex') is not None:
                try:
                    target_hex = _parse_hex(order_data['target_hex'])
                except (ValueError, TypeError) as e:
                    return jsonify({'error': str(e)}), 400

            orders.append(Order(order_type, unit, target_hex, order_data.get('improvement')))

        results = resolve_orders(orders, game_state)
        return jsonify({'game_id': game_id, **results})

    except OrderValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Failed to process orders for game %s", game_id)
        return jsonify({'error': f'Failed to process orders: {str(e)}'}), 500


@app.route('/api/game/<game_id>/end-turn', methods=['POST'])
def end_player_turn(game_id: str):
    """End the active player's turn and start the next one."""
    if game_id not in games:
        return jsonify({'error': 'Game not found'}), 404
    try:
        return jsonify({'game_id': game_id, **end_turn(games[game_id])})
    except Exception as e:
        logger.exception("Failed to end turn for game %s", game_id)
        return jsonify({'error': f'Failed to end turn: {str(e)}'}), 500


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True, port=5000)
