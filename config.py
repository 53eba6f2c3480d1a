"""
Configuration for Hexfront.

Tunable values live in config.json at the repository root. Any key missing
from the file, or a missing/invalid file, falls back to the defaults below.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from coords import MapProfile


logger = logging.getLogger(__name__)

CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')


@dataclass
class GameConfig:
    """
    Map generation and game setup parameters.

    Attributes:
        coordinate_system: 'hex' or 'rect'
        map_shape: 'rectangle' or 'hexagon'
        map_width: Map width in tiles
        map_height: Map height in tiles
        tile_size: World-space size of one tile
        terrain_frequency: Perlin noise frequency (lower = larger biomes)
        river_count: Number of rivers carved across the map
        lake_count: Number of lakes placed on the map
        lake_radius: Radius of each lake in tiles
        resource_chance: Per-tile probability of rolling a resource
        player_count: Number of players in a new game
        starting_units: Unit kinds each player starts with
    """
    coordinate_system: str = 'hex'
    map_shape: str = 'rectangle'
    map_width: int = 20
    map_height: int = 20
    tile_size: float = 1.0
    terrain_frequency: float = 6.0
    river_count: int = 3
    lake_count: int = 5
    lake_radius: int = 2
    resource_chance: float = 0.15
    player_count: int = 2
    starting_units: List[str] = field(default_factory=lambda: ['warrior', 'worker', 'scout'])

    def profile(self) -> MapProfile:
        return MapProfile(
            coordinate_system=self.coordinate_system,
            shape=self.map_shape,
            tile_size=self.tile_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameConfig':
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", sorted(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: Optional[str] = None) -> GameConfig:
    """
    Load game configuration from a JSON file.

    Args:
        path: Config file path (default: config.json next to this module)

    Returns:
        GameConfig with file values layered over the defaults
    """
    config_path = path or CONFIG_PATH
    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        # Use defaults if config file is missing or invalid
        logger.info("Using default config (%s): %s", config_path, e)
        return GameConfig()

    if not isinstance(data, dict):
        logger.warning("Config file %s is not a JSON object, using defaults", config_path)
        return GameConfig()
    return GameConfig.from_dict(data)
