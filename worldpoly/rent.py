"""
Rent and tax calculation.

Pure functions over board reference data and dynamic property state; they
never mutate anything and are shared by landing resolution and the cards
that charge rent.
"""

from dataclasses import dataclass
from typing import Optional

from worldpoly.board import Board
from worldpoly.config import GameSettings
from worldpoly.player import PlayerState, PropertyState
from worldpoly.spaces import HOTEL_INDEX, CitySpace, OwnableSpace, SpaceType, TaxSpace


@dataclass(frozen=True)
class RentOutcome:
    """Result of a rent calculation: an amount owed to `owner_id`, or a skip reason."""

    amount: int = 0
    owner_id: Optional[str] = None
    skipped: Optional[str] = None

    @property
    def is_due(self) -> bool:
        return self.skipped is None and self.owner_id is not None


def rent_exemption(
    renter_id: str,
    owner: Optional[PlayerState],
    prop: PropertyState,
    settings: GameSettings,
) -> Optional[str]:
    """
    Return why no rent is due, or None when rent must be collected.

    Checked in order: unowned, self-owned, mortgaged, owner jailed with
    jail rent disabled.
    """
    if owner is None or not prop.is_owned():
        return "unowned"
    if prop.owner == renter_id:
        return "self-owned"
    if prop.mortgaged:
        return "mortgaged"
    if owner.in_jail and not settings.rent_in_jail:
        return "owner in jail"
    return None


def has_monopoly(owner: PlayerState, space: CitySpace, board: Board) -> bool:
    """Check if a player owns every city of the space's country."""
    return all(position in owner.cities for position in board.get_country(space.country))


def city_rent(space: CitySpace, prop: PropertyState, owner: PlayerState, board: Board, settings: GameSettings) -> int:
    if prop.has_hotel():
        return space.rent_at(HOTEL_INDEX)
    if has_monopoly(owner, space, board):
        if prop.houses == 0 and settings.double_rent_on_monopoly:
            return space.rent_at(0) * 2
        return space.rent_at(prop.houses)
    return space.rent_at(0)


def count_rent(space: OwnableSpace, owner: PlayerState) -> int:
    """Airport and harbour rent, indexed by how many of that kind the owner holds."""
    owned = len(owner.holdings(space.category))
    return space.rent_at(owned - 1) if owned > 0 else 0


def company_rent(space: OwnableSpace, owner: PlayerState, dice_total: int) -> int:
    owned = len(owner.companies)
    if owned == 0:
        return 0
    return max(0, dice_total) * space.rent_at(owned - 1)


def calculate_rent(
    renter_id: str,
    owner: Optional[PlayerState],
    space: OwnableSpace,
    prop: PropertyState,
    dice_total: int,
    settings: GameSettings,
    board: Board,
) -> RentOutcome:
    """
    Calculate the rent a renter owes for resting on an owned square.

    Args:
        renter_id: Player who landed on the square
        owner: Owner's state, or None if the bank holds it
        space: Static square data
        prop: Dynamic ownership state of the square
        dice_total: Dice total used for company rent
        settings: Game rule toggles
        board: Board reference data (for country sets)

    Returns:
        RentOutcome with a non-negative amount, or a skip reason
    """
    skipped = rent_exemption(renter_id, owner, prop, settings)
    if skipped is not None:
        return RentOutcome(owner_id=prop.owner, skipped=skipped)

    if isinstance(space, CitySpace):
        amount = city_rent(space, prop, owner, board, settings)
    elif space.space_type in (SpaceType.AIRPORT, SpaceType.HARBOUR):
        amount = count_rent(space, owner)
    elif space.space_type == SpaceType.COMPANY:
        amount = company_rent(space, owner, dice_total)
    else:
        amount = 0

    return RentOutcome(amount=max(0, amount), owner_id=owner.player_id)


def calculate_tax(space: TaxSpace, money: int) -> int:
    """Flat tax, or a floored percentage of the payer's money when the amount is a fraction."""
    return space.amount_due(money)
