"""Shared test fixtures and helpers."""

import random

import pytest

from coords import Hex
from grid import MapGrid
from models import Player, create_unit
from state import GameState, initialize_game
from terrain import TerrainKind


# --- Fixtures ---


@pytest.fixture
def grass_grid():
    """5x5 hex rectangle of grass."""
    return MapGrid.uniform(5, 5)


@pytest.fixture
def mountain_grid():
    """5x5 grass grid with a mountain blocking (2, 2)."""
    return make_mountain_grid()


@pytest.fixture
def game():
    """Fresh generated game (seed=42)."""
    return initialize_game(seed=42)


@pytest.fixture
def skirmish():
    """Small hand-built game with units of both players next to each other."""
    return make_skirmish_state()


@pytest.fixture
def rng():
    """Deterministic RNG seeded at 42."""
    return random.Random(42)


@pytest.fixture
def api_client():
    """Flask test client."""
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


# --- Helper functions ---


def make_mountain_grid(width=5, height=5):
    grid = MapGrid.uniform(width, height)
    grid.get((2, 2)).terrain = TerrainKind.MOUNTAIN
    return grid


def make_skirmish_state():
    """
    Create a 6x6 grass game state.

    p1: warrior p1_u1 at (1, 1), worker p1_u2 at (3, 3)
    p2: warrior p2_u1 at (2, 1), adjacent to p1_u1
    """
    grid = MapGrid.uniform(6, 6)
    game_state = GameState(
        game_id="test",
        grid=grid,
        players=[Player(id="p1"), Player(id="p2")],
    )
    for unit in [
        create_unit("p1_u1", "p1", "warrior", Hex(1, 1)),
        create_unit("p1_u2", "p1", "worker", Hex(3, 3)),
        create_unit("p2_u1", "p2", "warrior", Hex(2, 1)),
    ]:
        unit.mover.last_reset_turn = game_state.turn
        assert game_state.add_unit(unit)
    return game_state

