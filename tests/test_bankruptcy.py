"""
Tests for bankruptcy and the end of the game.
"""

import pytest

from helpers import give, make_game
from worldpoly.exceptions import InvalidActionError
from worldpoly.game import GameStatus
from worldpoly.trade import TradeOffer


def test_bankruptcy_with_three_players_continues(three_player_game):
    game = three_player_game
    give(game, "p1", 1, 3, 6)
    game.properties[1].houses = 2
    game.properties[3].mortgaged = True

    game.declare_bankruptcy("p1")

    assert game.status == GameStatus.IN_PROGRESS
    assert "p1" not in game.players
    assert game.turn_order == ["p2", "p3"]
    assert game.current_player_turn == "p2"
    for position in (1, 3, 6):
        prop = game.properties[position]
        assert prop.owner is None
        assert prop.houses == 0
        assert not prop.mortgaged


def test_bankruptcy_of_waiting_player_keeps_turn(three_player_game):
    game = three_player_game
    game.declare_bankruptcy("p2")

    assert game.current_player_turn == "p1"
    assert game.turn_order == ["p1", "p3"]


def test_last_two_players_bankruptcy_finishes_game(game):
    game.declare_bankruptcy("p1")

    assert game.status == GameStatus.FINISHED
    assert game.winner == "p2"
    assert game.game_over

    with pytest.raises(InvalidActionError, match="over"):
        game.roll_dice("p2")


def test_host_passes_on_bankruptcy(three_player_game):
    game = three_player_game
    game.declare_bankruptcy("p1")

    assert game.host_id == "p2"


def test_bankruptcy_drops_trades_and_jail_cards(three_player_game):
    game = three_player_game
    game.propose_trade("p2", "p1", TradeOffer(10), TradeOffer())
    game.held_jail_cards["treasure"] = "p2"
    game.players["p2"].get_out_of_jail_cards = 1

    game.declare_bankruptcy("p2")

    assert game.trades.active_trades == {}
    assert game.held_jail_cards == {}


def test_bankruptcy_removes_bid_from_auction(three_player_game):
    game = three_player_game
    game.start_auction("p1", 1, now=0.0)
    game.place_bid("p2", 50, now=1.0)
    game.place_bid("p3", 60, now=2.0)

    game.declare_bankruptcy("p3")

    assert game.auction.bids == {"p2": 50}
    assert game.auction.current_bid == 50
    assert game.settle_auction("p1", now=10.0) == ("p2", 50)


def test_solo_player_bankruptcy_ends_game():
    game = make_game(1)
    game.declare_bankruptcy("p1")

    assert game.status == GameStatus.FINISHED
    assert game.winner == "p1"
