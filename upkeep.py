"""
Upkeep and turn advance for Hexfront.
Handles the hand-off between players:
- Regrow every tile resource by its regrowth rate
- Pass control to the next player, advancing the turn number on wrap-around
- Reset the incoming player's movers exactly once for their turn start
"""

import logging
from typing import Any, Dict, List

from ledger import reset_for_new_turn
from models import Tile
from state import GameState, log_event
from terrain import Yield


logger = logging.getLogger(__name__)


def regrow_resources(game_state: GameState) -> int:
    """
    Regrow every resource on the map by one turn.

    Returns:
        Number of resources that were below their maximum
    """
    regrown = 0
    for tile in game_state.grid:
        resource = tile.resource
        if resource is not None and resource.value < resource.max_value:
            resource.regrow()
            regrown += 1
    return regrown


def owned_tiles(player_id: str, game_state: GameState) -> List[Tile]:
    return [tile for tile in game_state.grid if tile.owner == player_id]


def calculate_yield(player_id: str, game_state: GameState) -> Yield:
    """
    Sum the effective yield of every tile the player owns.

    Args:
        player_id: Player to calculate yield for
        game_state: Current game state

    Returns:
        Total yield across food, production, gold, science and culture
    """
    total = Yield()
    for tile in owned_tiles(player_id, game_state):
        total = total + tile.total_yield(game_state.grid.catalog)
    return total


def begin_player_turn(game_state: GameState) -> int:
    """
    Reset the active player's movers for the current turn.

    Returns:
        Number of movers reset (movers already reset this turn are skipped)
    """
    player = game_state.active_player
    if player is None:
        return 0
    reset = 0
    for unit in game_state.units_of(player.id):
        if reset_for_new_turn(unit.mover, game_state.turn):
            reset += 1
    return reset


def end_turn(game_state: GameState) -> Dict[str, Any]:
    """
    Finish the active player's turn and start the next player's.

    Returns:
        Summary with the new turn, the incoming player and upkeep counts
    """
    if not game_state.players:
        return {'turn': game_state.turn, 'active_player': None, 'units_reset': 0, 'resources_regrown': 0}

    finished = game_state.active_player
    log_event(game_state, f"Player {finished.id} ended their turn")

    game_state.current_player = (game_state.current_player + 1) % len(game_state.players)
    regrown = 0
    if game_state.current_player == 0:
        game_state.turn += 1
        # Resources regrow once per turn, when play wraps back to the first player
        regrown = regrow_resources(game_state)

    units_reset = begin_player_turn(game_state)
    incoming = game_state.active_player
    turn_yield = calculate_yield(incoming.id, game_state)

    logger.info("Turn %d: player %s to act (%d units reset, %d resources regrown)",
                game_state.turn, incoming.id, units_reset, regrown)
    log_event(game_state, f"Turn {game_state.turn} started for player {incoming.id}",
              units_reset=units_reset, resources_regrown=regrown)

    return {
        'turn': game_state.turn,
        'active_player': incoming.id,
        'units_reset': units_reset,
        'resources_regrown': regrown,
        'yield': turn_yield.to_dict(),
    }


def get_upkeep_summary(game_state: GameState) -> Dict[str, Any]:
    """Per-player yield and owned tile counts."""
    return {
        'turn': game_state.turn,
        'players': {
            player.id: {
                'owned_tiles': len(owned_tiles(player.id, game_state)),
                'yield': calculate_yield(player.id, game_state).to_dict(),
            }
            for player in game_state.players
        }
    }
