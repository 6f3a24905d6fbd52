"""
Tests for game document serialization.
"""

import json

import pytest

from helpers import give, load_dice
from worldpoly.exceptions import ValidationError
from worldpoly.snapshot import restore_snapshot, serialize_snapshot
from worldpoly.trade import TradeOffer


def _busy_game(game):
    give(game, "p1", 1, 3, 6)
    game.build_house("p1", 1)
    game.mortgage_property("p1", 3)
    game.propose_trade("p2", "p1", TradeOffer(25), TradeOffer())
    game.held_jail_cards["surprise"] = "p2"
    game.players["p2"].get_out_of_jail_cards = 1
    load_dice(game, (4, 5))
    game.roll_dice("p1")  # Shanghai
    game.start_auction("p1", 9, now=100.0)
    game.place_bid("p2", 60, now=101.0)
    return game


def test_document_shape(game):
    doc = serialize_snapshot(game)

    assert doc["id"] == "g1"
    assert doc["hostId"] == "p1"
    assert doc["status"] == "in-progress"
    assert doc["turnOrder"] == ["p1", "p2"]
    assert doc["currentPlayerTurn"] == "p1"
    assert doc["players"]["p1"]["money"] == 1500
    assert set(doc["board"]) == {str(p) for p in game.board.ownable_positions()}
    assert doc["auction"] is None
    assert doc["pendingPurchase"] is None


def test_document_is_json_serializable(game):
    doc = serialize_snapshot(_busy_game(game))
    assert json.loads(json.dumps(doc)) == doc


def test_round_trip_preserves_state(game):
    _busy_game(game)
    doc = serialize_snapshot(game)

    restored = restore_snapshot(json.loads(json.dumps(doc)))

    assert serialize_snapshot(restored) == doc
    assert restored.players["p1"].cities == [1, 3, 6]
    assert restored.properties[1].houses == 1
    assert restored.properties[3].mortgaged
    assert restored.auction.bids == {"p2": 60}
    assert restored.trades.get_trade("T1").offer.money == 25
    assert restored.last_dice_roll == (4, 5)


def test_round_trip_preserves_rng(game):
    doc = serialize_snapshot(game)
    restored = restore_snapshot(doc)

    assert [restored.dice.roll() for _ in range(5)] == [game.dice.roll() for _ in range(5)]


def test_restored_game_keeps_playing(game):
    load_dice(game, (1, 2))
    game.roll_dice("p1")
    restored = restore_snapshot(serialize_snapshot(game))

    restored.buy_property("p1", 3)
    assert restored.properties[3].owner == "p1"


def test_malformed_document_rejected():
    with pytest.raises(ValidationError):
        restore_snapshot({"id": "g1"})
