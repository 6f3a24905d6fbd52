"""
Tests for rolling, movement and turn rotation.
"""

import pytest

from helpers import force_card, give, load_dice, make_game
from worldpoly.config import GameSettings
from worldpoly.exceptions import InvalidActionError
from worldpoly.game import ActionType, GameStatus, TurnPhase, create_game
from worldpoly.money import EventType
from worldpoly.rules import get_legal_actions


def _events(game, event_type):
    return [e for e in game.event_log.events if e.event_type == event_type]


def test_lobby_join_and_start():
    game = create_game("room", "host", "Alice", GameSettings(seed=1))
    game.join_game("guest", "Bob")

    assert game.status == GameStatus.WAITING
    assert game.players["guest"].money == 1500
    assert game.players["host"].color != game.players["guest"].color

    with pytest.raises(InvalidActionError):
        game.start_game("guest")

    game.start_game("host")
    assert game.status == GameStatus.IN_PROGRESS
    assert sorted(game.turn_order) == ["guest", "host"]
    assert game.current_player_turn == game.turn_order[0]

    with pytest.raises(InvalidActionError):
        game.join_game("late", "Charlie")


def test_join_rejects_duplicates_and_full_rooms():
    game = create_game("room", "host", "Alice", GameSettings(max_players=2))
    game.join_game("guest", "Bob")

    with pytest.raises(InvalidActionError, match="full"):
        game.join_game("third", "Charlie")
    with pytest.raises(InvalidActionError):
        game.join_game("guest", "Bob again")


def test_update_settings_resets_starting_money():
    game = create_game("room", "host", "Alice")
    game.join_game("guest", "Bob")

    game.update_settings("host", starting_money=2000)

    assert game.settings.starting_money == 2000
    assert all(p.money == 2000 for p in game.players.values())
    with pytest.raises(InvalidActionError):
        game.update_settings("guest", starting_money=100)
    with pytest.raises(InvalidActionError):
        game.update_settings("host", no_such_setting=True)


def test_roll_moves_without_go_bonus(game, monkeypatch):
    """3+4 from GO lands on square 7 with no salary."""
    force_card(monkeypatch, "S04")
    load_dice(game, (3, 4))

    game.roll_dice("p1")

    alice = game.players["p1"]
    assert alice.position == 7
    assert alice.money == 1500 + 50  # dividend card
    assert not _events(game, EventType.PASS_GO)
    assert _events(game, EventType.LAND)[-1].details["position"] == 7


def test_passing_go_collects_salary(game):
    game.players["p1"].position = 50
    load_dice(game, (3, 4))

    game.roll_dice("p1")

    alice = game.players["p1"]
    assert alice.position == 1
    assert alice.money == 1700
    assert game.pending_purchase == 1


def test_landing_on_go_pays_salary_and_bonus(game):
    game.players["p1"].position = 50
    load_dice(game, (2, 4))

    game.roll_dice("p1")

    assert game.players["p1"].position == 0
    assert game.players["p1"].money == 1500 + 200 + 300


def test_doubles_grant_another_roll(game):
    load_dice(game, (2, 2), (2, 4))

    game.roll_dice("p1")  # income tax square
    assert game.players["p1"].doubles_count == 1

    game.end_turn("p1")
    assert game.current_player_turn == "p1"
    assert not game.has_rolled

    game.roll_dice("p1")
    assert game.players["p1"].position == 10
    assert game.players["p1"].doubles_count == 0
    assert game.pending_purchase == 10


def test_three_doubles_sends_to_jail_without_landing(game):
    load_dice(game, (2, 2), (5, 5), (6, 6))

    game.roll_dice("p1")
    game.end_turn("p1")
    game.roll_dice("p1")
    game.end_turn("p1")
    game.roll_dice("p1")

    alice = game.players["p1"]
    assert alice.in_jail
    assert alice.position == 14
    assert 26 not in game.property_visits
    assert game.current_player_turn == "p2"
    assert game.jail_count["p1"] == 1


def test_end_turn_requires_roll(game):
    with pytest.raises(InvalidActionError, match="roll"):
        game.end_turn("p1")


def test_only_current_player_can_roll(game):
    with pytest.raises(InvalidActionError, match="not your turn"):
        game.roll_dice("p2")


def test_cannot_roll_twice_without_doubles(game):
    load_dice(game, (1, 2), (1, 2))
    game.roll_dice("p1")
    game.decline_purchase("p1")

    with pytest.raises(InvalidActionError):
        game.roll_dice("p1")


def test_pending_purchase_blocks_roll_and_is_declined_on_end_turn(game):
    load_dice(game, (1, 2))
    game.roll_dice("p1")
    assert game.pending_purchase == 3
    assert game.turn_phase == TurnPhase.AWAITING_DECISION

    game.end_turn("p1")

    assert game.pending_purchase is None
    assert _events(game, EventType.PURCHASE_DECLINED)
    assert game.properties[3].owner is None
    assert game.current_player_turn == "p2"


def test_turn_order_wraps():
    game = make_game(3)
    for pid in ("p1", "p2", "p3"):
        load_dice(game, (1, 3))
        game.players[pid].position = 10
        game.roll_dice(pid)  # Jail / Visiting
        game.end_turn(pid)

    assert game.current_player_turn == "p1"


def test_vacation_skips_next_turn(game):
    alice = game.players["p1"]
    alice.position = 22
    game.vacation_pot = 250
    load_dice(game, (3, 3), (1, 2))

    game.roll_dice("p1")
    assert alice.position == 28
    assert alice.on_vacation
    assert alice.doubles_count == 0
    assert alice.money == 1750
    assert game.vacation_pot == 0

    game.end_turn("p1")
    assert game.current_player_turn == "p2"
    assert alice.on_vacation

    game.roll_dice("p2")
    game.end_turn("p2")

    assert game.current_player_turn == "p1"
    with pytest.raises(InvalidActionError, match="vacation"):
        game.roll_dice("p1")
    game.end_turn("p1")
    assert not alice.on_vacation
    assert game.current_player_turn == "p2"


def test_buy_property_after_landing(game):
    load_dice(game, (1, 2))
    game.roll_dice("p1")

    game.buy_property("p1", 3)

    alice = game.players["p1"]
    assert game.properties[3].owner == "p1"
    assert alice.cities == [3]
    assert alice.money == 1440
    assert game.pending_purchase is None


def test_buy_requires_landing(game):
    with pytest.raises(InvalidActionError, match="after landing"):
        game.buy_property("p1", 1)


def test_buy_requires_money(game):
    load_dice(game, (1, 2))
    game.roll_dice("p1")
    game.players["p1"].money = 10

    with pytest.raises(InvalidActionError, match="Not enough money"):
        game.buy_property("p1", 3)


def test_negative_balance_blocks_end_turn(game):
    load_dice(game, (1, 2))
    game.roll_dice("p1")
    game.decline_purchase("p1")
    game.players["p1"].money = -5

    with pytest.raises(InvalidActionError, match="negative"):
        game.end_turn("p1")


def test_negative_balance_blocks_extra_roll(game):
    give(game, "p2", 43)
    alice = game.players["p1"]
    alice.money = 10
    alice.position = 41
    load_dice(game, (1, 1), (6, 6))

    game.roll_dice("p1")  # doubles onto London
    assert alice.money == -25
    assert ActionType.ROLL_DICE not in {a.action_type for a in get_legal_actions(game, "p1")}

    with pytest.raises(InvalidActionError, match="negative balance"):
        game.roll_dice("p1")
    assert game.current_player_turn == "p1"
    assert alice.position == 43
