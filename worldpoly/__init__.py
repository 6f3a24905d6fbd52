"""
World Monopoly Rules Engine

A deterministic implementation of the World Monopoly rules with a
versioned game store for multiplayer play.
"""

from .board import Board
from .config import GameSettings
from .game import ActionType, GameState, GameStatus, create_game
from .player import PlayerState, PropertyState
from .rules import Action, CommandResult, dispatch, get_legal_actions
from .store import GameStore, InMemoryGameStore

__all__ = [
    "Action",
    "ActionType",
    "Board",
    "CommandResult",
    "GameSettings",
    "GameState",
    "GameStatus",
    "GameStore",
    "InMemoryGameStore",
    "PlayerState",
    "PropertyState",
    "create_game",
    "dispatch",
    "get_legal_actions",
]
