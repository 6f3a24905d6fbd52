"""Builders for started games and scripted dice used across the tests."""

from typing import List, Tuple

from worldpoly.cards import get_card
from worldpoly.config import GameSettings
from worldpoly.game import GameState, create_game

PLAYER_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Hank"]


class LoadedDice:
    """Dice that return a scripted sequence of rolls."""

    def __init__(self, rolls: List[Tuple[int, int]]):
        self.rolls = list(rolls)

    def roll(self) -> Tuple[int, int]:
        return self.rolls.pop(0)


def make_game(num_players: int = 2, **settings) -> GameState:
    """Started game with players p1..pN taking turns in that order."""
    game = create_game("g1", "p1", PLAYER_NAMES[0], GameSettings(seed=42, **settings))
    for i in range(2, num_players + 1):
        game.join_game(f"p{i}", PLAYER_NAMES[i - 1])
    game.start_game("p1")
    game.turn_order = [f"p{i}" for i in range(1, num_players + 1)]
    game.current_player_turn = "p1"
    return game


def load_dice(game: GameState, *rolls: Tuple[int, int]) -> LoadedDice:
    dice = LoadedDice(list(rolls))
    game.dice = dice
    return dice


def give(game: GameState, player_id: str, *positions: int) -> None:
    """Hand properties to a player without a purchase."""
    player = game.players[player_id]
    for position in positions:
        space = game.board.get_ownable_space(position)
        game._assign(position, space, player)


def force_card(monkeypatch, card_id: str) -> None:
    """Make every card draw return the given card."""
    monkeypatch.setattr("worldpoly.game.draw_card", lambda deck, rng: get_card(card_id))

