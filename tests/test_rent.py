"""
Tests for rent calculation on all property types.
"""

from helpers import give, load_dice, make_game
from worldpoly.money import EventType
from worldpoly.rent import calculate_rent, calculate_tax


def _rent(game, renter_id, position, dice_total=7):
    space, prop = game.get_property(position)
    owner = game.owner_of(position)
    return calculate_rent(renter_id, owner, space, prop, dice_total, game.settings, game.board)


def test_basic_city_rent(game):
    give(game, "p1", 1)
    outcome = _rent(game, "p2", 1)

    assert outcome.is_due
    assert outcome.amount == 4
    assert outcome.owner_id == "p1"


def test_monopoly_doubles_unimproved_rent(game):
    """Owning all of Brazil doubles base rent; landing pays it."""
    give(game, "p1", 1, 3, 6)
    game.current_player_turn = "p2"
    load_dice(game, (1, 2))

    game.roll_dice("p2")

    assert game.players["p2"].position == 3
    assert game.players["p2"].money == 1500 - 8
    assert game.players["p1"].money == 1500 + 8


def test_monopoly_double_rent_can_be_disabled():
    game = make_game(2, double_rent_on_monopoly=False)
    give(game, "p1", 1, 3, 6)

    assert _rent(game, "p2", 3).amount == 4


def test_rent_with_houses_and_hotel(game):
    give(game, "p1", 1, 3, 6)
    game.properties[6].houses = 3
    assert _rent(game, "p2", 6).amount == 270

    game.properties[6].houses = 0
    game.properties[6].hotels = 1
    assert _rent(game, "p2", 6).amount == 550


def test_short_rent_table_uses_last_entry_for_hotel(game):
    """Melbourne lists only five rents; a hotel charges the last one."""
    give(game, "p1", 49, 51, 52)
    game.properties[51].hotels = 1

    assert _rent(game, "p2", 51).amount == 2400


def test_airport_rent_scales_with_count(game):
    give(game, "p1", 5)
    assert _rent(game, "p2", 5).amount == 25

    give(game, "p1", 16, 31)
    assert _rent(game, "p2", 5).amount == 100


def test_harbour_rent_scales_with_count(game):
    give(game, "p1", 10, 21)
    assert _rent(game, "p2", 21).amount == 100


def test_company_rent_uses_dice(game):
    give(game, "p1", 12)
    assert _rent(game, "p2", 12, dice_total=8).amount == 32

    give(game, "p1", 26)
    assert _rent(game, "p2", 12, dice_total=8).amount == 80


def test_no_rent_on_own_or_mortgaged_property(game):
    give(game, "p1", 1)
    assert _rent(game, "p1", 1).skipped == "self-owned"

    game.properties[1].mortgaged = True
    outcome = _rent(game, "p2", 1)
    assert not outcome.is_due
    assert outcome.skipped == "mortgaged"


def test_unowned_property_has_no_rent(game):
    assert _rent(game, "p2", 1).skipped == "unowned"


def test_jailed_owner_collects_rent_by_default(game):
    give(game, "p1", 1)
    game.players["p1"].in_jail = True

    assert _rent(game, "p2", 1).amount == 4


def test_jailed_owner_skipped_when_jail_rent_disabled():
    game = make_game(2, rent_in_jail=False)
    give(game, "p1", 3)
    game.go_to_jail("p1")
    game.current_player_turn = "p2"
    load_dice(game, (1, 2))

    game.roll_dice("p2")

    assert game.players["p2"].money == 1500
    skipped = [e for e in game.event_log.events if e.event_type == EventType.RENT_SKIPPED]
    assert skipped[-1].details["reason"] == "owner in jail"


def test_income_tax_is_floored_percentage(game):
    space = game.board.get_space(4)
    assert calculate_tax(space, 1555) == 155
    assert calculate_tax(space, 0) == 0


def test_luxury_tax_is_flat(game):
    space = game.board.get_space(40)
    assert calculate_tax(space, 5000) == 100


def test_tax_feeds_vacation_pot(game):
    load_dice(game, (1, 3))
    game.roll_dice("p1")

    assert game.players["p1"].money == 1350
    assert game.vacation_pot == 150


def test_tax_leaves_game_when_pot_disabled():
    game = make_game(2, tax_in_vacation_pot=False)
    load_dice(game, (1, 3))
    game.roll_dice("p1")

    assert game.players["p1"].money == 1350
    assert game.vacation_pot == 0
