"""Shared test fixtures for World Monopoly tests."""

import pytest

from helpers import make_game


@pytest.fixture
def game():
    """Two-player game with Alice to move."""
    return make_game(2)


@pytest.fixture
def three_player_game():
    return make_game(3)
