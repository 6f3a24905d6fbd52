"""
Tests for player-to-player trades.
"""

import pytest

from helpers import give
from worldpoly.exceptions import InvalidActionError
from worldpoly.trade import TradeOffer, TradeStatus


def test_trade_swaps_money_and_properties(game):
    give(game, "p1", 1)
    give(game, "p2", 5)

    trade = game.propose_trade("p1", "p2", TradeOffer(100, [1]), TradeOffer(0, [5]))
    assert trade.trade_id == "T1"
    assert game.trades.get_trade("T1").is_pending

    game.accept_trade("p2", "T1")

    alice, bob = game.players["p1"], game.players["p2"]
    assert alice.money == 1400
    assert bob.money == 1600
    assert alice.airports == [5] and alice.cities == []
    assert bob.cities == [1] and bob.airports == []
    assert game.properties[1].owner == "p2"
    assert game.properties[5].owner == "p1"
    assert game.trades.get_trade("T1") is None
    assert game.trades.trade_history[-1].status == TradeStatus.ACCEPTED


def test_trade_ids_are_sequential(game):
    first = game.propose_trade("p1", "p2", TradeOffer(10), TradeOffer())
    second = game.propose_trade("p2", "p1", TradeOffer(20), TradeOffer())

    assert (first.trade_id, second.trade_id) == ("T1", "T2")


def test_only_recipient_accepts_or_rejects(game):
    game.propose_trade("p1", "p2", TradeOffer(50), TradeOffer())

    with pytest.raises(InvalidActionError, match="recipient"):
        game.accept_trade("p1", "T1")
    with pytest.raises(InvalidActionError, match="recipient"):
        game.reject_trade("p1", "T1")

    game.reject_trade("p2", "T1")
    assert game.trades.trade_history[-1].status == TradeStatus.REJECTED
    assert game.players["p1"].money == 1500


def test_only_proposer_cancels(game):
    game.propose_trade("p1", "p2", TradeOffer(50), TradeOffer())

    with pytest.raises(InvalidActionError, match="proposer"):
        game.cancel_trade("p2", "T1")

    game.cancel_trade("p1", "T1")
    with pytest.raises(InvalidActionError, match="no longer available"):
        game.accept_trade("p2", "T1")


def test_trade_validation(game):
    give(game, "p2", 5)

    with pytest.raises(InvalidActionError, match="yourself"):
        game.propose_trade("p1", "p1", TradeOffer(10), TradeOffer())
    with pytest.raises(InvalidActionError, match="must include"):
        game.propose_trade("p1", "p2", TradeOffer(), TradeOffer())
    with pytest.raises(InvalidActionError, match="does not own"):
        game.propose_trade("p1", "p2", TradeOffer(0, [5]), TradeOffer())
    with pytest.raises(InvalidActionError, match="does not have"):
        game.propose_trade("p1", "p2", TradeOffer(5000), TradeOffer())


def test_accept_revalidates_against_latest_state(game):
    give(game, "p1", 1)
    game.propose_trade("p1", "p2", TradeOffer(0, [1]), TradeOffer(200))
    game.players["p2"].money = 50

    with pytest.raises(InvalidActionError):
        game.accept_trade("p2", "T1")
    assert game.properties[1].owner == "p1"
    assert game.trades.get_trade("T1") is not None


def test_accept_rejected_when_property_was_sold(game):
    give(game, "p1", 1)
    game.propose_trade("p1", "p2", TradeOffer(0, [1]), TradeOffer(50))
    game.sell_property("p1", 1)

    with pytest.raises(InvalidActionError, match="does not own"):
        game.accept_trade("p2", "T1")


def test_properties_with_buildings_cannot_be_traded(game):
    give(game, "p1", 1, 3, 6)
    game.build_house("p1", 1)

    with pytest.raises(InvalidActionError, match="buildings"):
        game.propose_trade("p1", "p2", TradeOffer(0, [1]), TradeOffer(10))


def test_mortgaged_property_keeps_mortgage_in_trade(game):
    give(game, "p1", 1)
    game.mortgage_property("p1", 1)
    game.propose_trade("p1", "p2", TradeOffer(0, [1]), TradeOffer(10))
    game.accept_trade("p2", "T1")

    assert game.properties[1].owner == "p2"
    assert game.properties[1].mortgaged
