"""
Game state management for Hexfront.
Holds the authoritative map, the unit registry and the turn cursor, and
converts the whole data model to and from a JSON-ready snapshot.

Turn order: players act one after another; a full rotation advances the turn
number. Units are owned here; tiles only keep weak unit ids.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import GameConfig, load_config
from coords import Hex, MapProfile
from grid import MapGrid
from map_gen import land_regions
from models import Improvement, MoverProfile, Player, Resource, Tile, Unit, create_unit
from pathfinding import Pathfinder
from terrain import TravelClass


logger = logging.getLogger(__name__)


@dataclass
class GameState:
    """
    Complete game state.

    The grid is the single source of tile data; units live in the units
    registry keyed by id, and tiles point back to them by id only.
    """
    game_id: str  # Unique game identifier
    grid: MapGrid  # Authoritative map
    turn: int = 1  # Current turn number (starts at 1)
    current_player: int = 0  # Index into players of the player to act
    players: List[Player] = field(default_factory=list)
    units: Dict[str, Unit] = field(default_factory=dict)  # Entity registry
    log: List[Dict[str, Any]] = field(default_factory=list)  # Game event log

    @property
    def active_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.current_player]

    def get_player_by_id(self, player_id: str) -> Optional[Player]:
        """Get a player by their ID."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self.units.get(unit_id)

    def units_of(self, player_id: str) -> List[Unit]:
        return [unit for unit in self.units.values() if unit.owner == player_id]

    def unit_at(self, coord: Hex) -> Optional[Unit]:
        """Get the unit standing on a coordinate, if any."""
        tile = self.grid.get(coord)
        if tile is None or tile.unit_id is None:
            return None
        return self.units.get(tile.unit_id)

    def add_unit(self, unit: Unit) -> bool:
        """Register a unit and mark its tile; False if the tile is missing or taken."""
        if unit.id in self.units:
            return False
        if not self.grid.place_unit(unit.position, unit.id):
            return False
        self.units[unit.id] = unit
        return True

    def remove_unit(self, unit_id: str) -> Optional[Unit]:
        unit = self.units.pop(unit_id, None)
        if unit is not None:
            self.grid.clear_unit(unit.position, unit_id)
        return unit

    def pathfinder(self) -> Pathfinder:
        return Pathfinder(self.grid)


def log_event(game_state: GameState, event: str, **kwargs) -> None:
    """
    Add an event to the game state log.

    Args:
        game_state: Current game state
        event: Description of the event
        **kwargs: Additional event data to include
    """
    log_entry = {
        'turn': game_state.turn,
        'player': game_state.active_player.id if game_state.active_player else None,
        'event': event,
        **kwargs
    }
    game_state.log.append(log_entry)
    logger.debug("turn %s: %s", game_state.turn, event)


def _start_corners(grid: MapGrid) -> List[Hex]:
    qs = [c.q for c in grid.tiles]
    rs = [c.r for c in grid.tiles]
    q_min, q_max, r_min, r_max = min(qs), max(qs), min(rs), max(rs)
    return [Hex(q_min, r_min), Hex(q_max, r_max), Hex(q_max, r_min), Hex(q_min, r_max)]


def _claim_start(game_state: GameState, player: Player, start: Hex, region: set,
                 unit_kinds: List[str]) -> None:
    """Place a player's starting units around start and claim nearby land."""
    grid = game_state.grid

    for tile in grid.tiles_in_range(start, 1):
        if tile.owner is None:
            tile.owner = player.id
            if tile.resource is not None:
                tile.resource.add_access(player.id)

    # Units take the start tile, then the nearest free tiles of the same region
    candidates = sorted(
        (c for c in region if grid.tiles[c].unit_id is None),
        key=lambda c: (grid.profile.distance(start, c), c.q, c.r),
    )
    for i, (kind, coord) in enumerate(zip(unit_kinds, candidates), 1):
        unit = create_unit(f"{player.id}_u{i}", player.id, kind, coord)
        unit.mover.last_reset_turn = game_state.turn
        game_state.add_unit(unit)


def initialize_game(seed: int, config: Optional[GameConfig] = None) -> GameState:
    """
    Initialize a new game: generate the map and place every player's units.

    Players start in the largest connected land region, each near a
    different map corner (P1 near the first corner, P2 near the opposite one).

    Args:
        seed: Random seed for map generation (required)
        config: Game configuration (default: loaded from config.json)

    Returns:
        New GameState ready for the first player's turn
    """
    config = config or load_config()
    grid = MapGrid.generated(config.map_width, config.map_height, seed,
                             profile=config.profile(), config=config)
    game_state = GameState(game_id=str(uuid.uuid4()), grid=grid)

    regions = land_regions(grid)
    region = regions[0] if regions else set()
    corners = _start_corners(grid) if len(grid) else []

    for index in range(config.player_count):
        player = Player(id=f"p{index + 1}")
        game_state.players.append(player)
        if not region:
            logger.warning("No land to place units for %s", player.id)
            continue
        corner = corners[index % len(corners)]
        free = [c for c in grid.tiles if c in region and grid.tiles[c].unit_id is None]
        if not free:
            logger.warning("Main land region is full, %s starts without units", player.id)
            continue
        # Grid order breaks distance ties
        start = min(free, key=lambda c: grid.profile.distance(c, corner))
        _claim_start(game_state, player, start, region, config.starting_units)

    log_event(game_state, "Game initialized", seed=seed)
    return game_state


# --- Snapshot serialization ---

def _kind(value) -> Optional[str]:
    if value is None:
        return None
    return value.value if hasattr(value, 'value') else str(value)


def tile_to_dict(tile: Tile) -> Dict[str, Any]:
    resource = None
    if tile.resource is not None:
        resource = {
            'kind': _kind(tile.resource.kind),
            'value': tile.resource.value,
            'max_value': tile.resource.max_value,
            'regrowth_rate': tile.resource.regrowth_rate,
            'accessed_by': list(tile.resource.accessed_by),
            'used_by': tile.resource.used_by,
        }
    return {
        'q': tile.q,
        'r': tile.r,
        'terrain': _kind(tile.terrain),
        'resource': resource,
        'improvement': _kind(tile.improvement_kind),
        'unit_id': tile.unit_id,
        'city_id': tile.city_id,
        'owner': tile.owner,
    }


def tile_from_dict(data: Dict[str, Any]) -> Tile:
    resource = None
    if data.get('resource'):
        r = data['resource']
        resource = Resource(
            kind=r['kind'],
            value=r['value'],
            max_value=r['max_value'],
            regrowth_rate=r.get('regrowth_rate', 1.0),
            accessed_by=list(r.get('accessed_by', [])),
            used_by=r.get('used_by'),
        )
    improvement = Improvement(data['improvement']) if data.get('improvement') else None
    return Tile(
        coord=Hex(data['q'], data['r']),
        terrain=data['terrain'],
        resource=resource,
        improvement=improvement,
        unit_id=data.get('unit_id'),
        city_id=data.get('city_id'),
        owner=data.get('owner'),
    )


def unit_to_dict(unit: Unit) -> Dict[str, Any]:
    mover = unit.mover
    return {
        'id': unit.id,
        'owner': unit.owner,
        'kind': unit.kind,
        'position': {'q': unit.position.q, 'r': unit.position.r},
        'mover': {
            'travel_class': _kind(mover.travel_class),
            'max_movement': mover.max_movement,
            'max_actions': mover.max_actions,
            'movement': mover.movement,
            'actions': mover.actions,
            'last_reset_turn': mover.last_reset_turn,
        },
    }


def unit_from_dict(data: Dict[str, Any]) -> Unit:
    m = data['mover']
    mover = MoverProfile(
        travel_class=TravelClass(m['travel_class']),
        max_movement=m['max_movement'],
        max_actions=m['max_actions'],
        movement=m['movement'],
        actions=m['actions'],
        last_reset_turn=m.get('last_reset_turn'),
    )
    position = Hex(data['position']['q'], data['position']['r'])
    return Unit(id=data['id'], owner=data['owner'], kind=data['kind'], position=position, mover=mover)


def game_to_dict(game_state: GameState) -> Dict[str, Any]:
    """
    Snapshot every field of the data model as plain JSON types.

    Args:
        game_state: Game to snapshot

    Returns:
        Dictionary that game_from_dict turns back into an equal game
    """
    grid = game_state.grid
    return {
        'game_id': game_state.game_id,
        'turn': game_state.turn,
        'current_player': game_state.current_player,
        'players': [{'id': p.id, 'stockpile': dict(p.stockpile)} for p in game_state.players],
        'map': {
            'coordinate_system': grid.profile.coordinate_system,
            'shape': grid.profile.shape,
            'tile_size': grid.profile.tile_size,
            'width': grid.width,
            'height': grid.height,
            'tiles': [tile_to_dict(tile) for tile in grid],
        },
        'units': [unit_to_dict(unit) for unit in game_state.units.values()],
        'log': list(game_state.log),
    }


def game_from_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a GameState from a game_to_dict snapshot."""
    m = data['map']
    profile = MapProfile(coordinate_system=m['coordinate_system'], shape=m['shape'],
                         tile_size=m['tile_size'])
    grid = MapGrid(profile, m['width'], m['height'])
    for tile_data in m['tiles']:
        tile = tile_from_dict(tile_data)
        if not grid.set(tile.coord, tile):
            logger.warning("Snapshot tile %s lies outside the map bounds, dropped", tile.coord)

    game_state = GameState(
        game_id=data['game_id'],
        grid=grid,
        turn=data['turn'],
        current_player=data['current_player'],
        players=[Player(id=p['id'], stockpile=dict(p.get('stockpile', {}))) for p in data['players']],
        log=list(data.get('log', [])),
    )
    for unit_data in data['units']:
        unit = unit_from_dict(unit_data)
        game_state.units[unit.id] = unit
    return game_state


def get_game_summary(game_state: GameState) -> Dict[str, Any]:
    """
    Get a summary of the current game state for API responses.

    Args:
        game_state: Current game state

    Returns:
        Dictionary with turn, players and unit budgets (no tile data)
    """
    return {
        'game_id': game_state.game_id,
        'turn': game_state.turn,
        'active_player': game_state.active_player.id if game_state.active_player else None,
        'players': [
            {
                'id': player.id,
                'stockpile': dict(player.stockpile),
                'units': [
                    {
                        'id': unit.id,
                        'kind': unit.kind,
                        'position': {'q': unit.position.q, 'r': unit.position.r},
                        'movement': unit.mover.movement,
                        'actions': unit.mover.actions,
                        'status': unit.mover.status.value,
                    }
                    for unit in game_state.units_of(player.id)
                ]
            }
            for player in game_state.players
        ]
    }
