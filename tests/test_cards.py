"""
Tests for Treasure Chest and Surprise card effects.
"""

from helpers import force_card, give, load_dice, make_game
from worldpoly.cards import SURPRISE_CARDS, TREASURE_CARDS, get_card
from worldpoly.money import EventType


def test_decks_have_expected_sizes():
    assert len(TREASURE_CARDS) == 24
    assert len(SURPRISE_CARDS) == 20
    assert len({c.card_id for c in TREASURE_CARDS + SURPRISE_CARDS}) == 44


def test_collect_card(game):
    game.apply_card("p1", get_card("TC03"))
    assert game.players["p1"].money == 1700


def test_pay_card_feeds_pot(game):
    game.apply_card("p1", get_card("TC12"))
    assert game.players["p1"].money == 1400
    assert game.vacation_pot == 100


def test_pay_card_without_pot():
    game = make_game(2, tax_in_vacation_pot=False)
    game.apply_card("p1", get_card("S18"))

    assert game.players["p1"].money == 1400
    assert game.vacation_pot == 0


def test_advance_to_go_pays_card_value_only(game):
    game.players["p1"].position = 38
    game.apply_card("p1", get_card("S01"))

    assert game.players["p1"].position == 0
    assert game.players["p1"].money == 1800
    assert not [e for e in game.event_log.events if e.event_type == EventType.PASS_GO]


def test_move_to_collects_go_when_passing(game):
    game.players["p1"].position = 47
    game.apply_card("p1", get_card("TC24"))

    assert game.players["p1"].position == 43
    assert game.players["p1"].money == 1700


def test_move_to_without_passing_go(game):
    game.players["p1"].position = 2
    game.apply_card("p1", get_card("TC24"))

    assert game.players["p1"].position == 43
    assert game.players["p1"].money == 1500
    # Absolute moves do not resolve the destination square
    assert game.pending_purchase is None


def test_go_back_three_spaces_resolves_landing(game):
    game.players["p1"].position = 7
    game.apply_card("p1", get_card("S06"), dice_total=7)

    assert game.players["p1"].position == 4
    assert game.players["p1"].money == 1350
    assert game.vacation_pot == 150


def test_nearest_airport_unowned_offers_purchase(game):
    game.players["p1"].position = 7
    game.apply_card("p1", get_card("S02"))

    assert game.players["p1"].position == 16
    assert game.pending_purchase == 16


def test_nearest_airport_owned_pays_double(game):
    give(game, "p2", 16, 31)
    game.players["p1"].position = 7
    game.apply_card("p1", get_card("S02"))

    assert game.players["p1"].money == 1500 - 100
    assert game.players["p2"].money == 1500 + 100


def test_nearest_company_owned_pays_ten_times_fresh_roll(game):
    give(game, "p2", 12)
    load_dice(game, (3, 4))
    game.players["p1"].position = 7
    game.apply_card("p1", get_card("S03"))

    assert game.players["p1"].position == 12
    assert game.players["p1"].money == 1500 - 70
    assert game.players["p2"].money == 1500 + 70


def test_nearest_wraps_around_board(game):
    game.players["p1"].position = 47
    game.apply_card("p1", get_card("S03"))

    assert game.players["p1"].position == 12
    # No salary for card-driven moves to the nearest square
    assert game.players["p1"].money == 1500


def test_collect_from_every_player(three_player_game):
    game = three_player_game
    game.apply_card("p1", get_card("TC07"))

    assert game.players["p1"].money == 1600
    assert game.players["p2"].money == 1450
    assert game.players["p3"].money == 1450


def test_pay_every_player(three_player_game):
    game = three_player_game
    game.apply_card("p1", get_card("S11"))

    assert game.players["p1"].money == 1400
    assert game.players["p2"].money == 1550


def test_pay_per_building(game):
    alice = game.players["p1"]
    alice.houses = 3
    alice.hotels = 1
    game.apply_card("p1", get_card("TC15"))

    assert alice.money == 1500 - (3 * 40 + 115)


def test_collect_per_house_ignores_hotels(game):
    alice = game.players["p1"]
    alice.houses = 2
    alice.hotels = 1
    game.apply_card("p1", get_card("TC20"))

    assert alice.money == 1540


def test_vacation_pot_card(game):
    game.vacation_pot = 300
    game.players["p1"].position = 19
    game.apply_card("p1", get_card("TC21"))

    assert game.players["p1"].position == 28
    assert game.players["p1"].money == 1800
    assert game.vacation_pot == 0


def test_vacation_then_new_york(game):
    game.vacation_pot = 120
    game.players["p1"].position = 38
    game.apply_card("p1", get_card("S17"))

    assert game.players["p1"].position == 53
    assert game.players["p1"].money == 1620
    assert game.vacation_pot == 0


def test_free_vacation_ends_movement_without_pot(game):
    game.vacation_pot = 500
    alice = game.players["p1"]
    alice.position = 23
    alice.doubles_count = 1
    game.apply_card("p1", get_card("S19"))

    assert alice.position == 28
    assert alice.money == 1500
    assert game.vacation_pot == 500
    assert alice.doubles_count == 0
    assert game.has_rolled


def test_go_to_jail_card(game):
    game.apply_card("p1", get_card("TC06"))

    assert game.players["p1"].in_jail
    assert game.players["p1"].position == 14


def test_jail_card_is_unique_per_deck(game):
    game.apply_card("p1", get_card("TC01"))
    game.apply_card("p2", get_card("TC01"))
    game.apply_card("p2", get_card("S05"))

    assert game.players["p1"].get_out_of_jail_cards == 1
    assert game.players["p2"].get_out_of_jail_cards == 1
    assert game.held_jail_cards == {"treasure": "p1", "surprise": "p2"}


def test_landing_on_card_square_draws(game, monkeypatch):
    force_card(monkeypatch, "TC05")
    load_dice(game, (1, 1))

    game.roll_dice("p1")

    assert game.drawn_card.card_id == "TC05"
    assert game.players["p1"].money == 1550
    draws = [e for e in game.event_log.events if e.event_type == EventType.CARD_DRAW]
    assert draws[-1].details == {"card": "TC05", "deck": "treasure"}
