"""
Treasure Chest and Surprise card registry.

Every card is a typed effect descriptor; GameState.apply_card interprets
them, so adding a card never needs new branching.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional
import random

from worldpoly.spaces import SpaceType

TREASURE = "treasure"
SURPRISE = "surprise"
DECKS = (TREASURE, SURPRISE)


class CardType(Enum):
    """Kinds of card effects."""

    COLLECT = "collect"
    PAY = "pay"
    ADVANCE_TO_GO = "advance_to_go"
    MOVE_TO = "move_to"
    MOVE_SPACES = "move_spaces"
    MOVE_TO_NEAREST = "move_to_nearest"
    PAY_PER_BUILDING = "pay_per_building"
    COLLECT_PER_BUILDING = "collect_per_building"
    COLLECT_FROM_PLAYERS = "collect_from_players"
    PAY_TO_PLAYERS = "pay_to_players"
    COLLECT_VACATION_POT = "collect_vacation_pot"
    FREE_VACATION = "free_vacation"
    GO_TO_JAIL = "go_to_jail"
    GET_OUT_OF_JAIL = "get_out_of_jail"


@dataclass(frozen=True)
class Card:
    """A Treasure Chest or Surprise card."""

    card_id: str
    deck: str
    text: str
    card_type: CardType
    value: int = 0
    value2: int = 0  # per-hotel amount for building fees
    target_position: Optional[int] = None
    target_type: Optional[SpaceType] = None  # for MOVE_TO_NEAREST
    rent_multiplier: int = 1
    collect_go: bool = True  # pay the GO salary when an absolute move wraps

    def __repr__(self) -> str:
        return f"Card({self.card_id!r})"

    def to_dict(self) -> Dict:
        return {"id": self.card_id, "type": self.deck, "text": self.text}


def _treasure(card_id: str, text: str, card_type: CardType, **kwargs) -> Card:
    return Card(card_id, TREASURE, text, card_type, **kwargs)


def _surprise(card_id: str, text: str, card_type: CardType, **kwargs) -> Card:
    return Card(card_id, SURPRISE, text, card_type, **kwargs)


TREASURE_CARDS: List[Card] = [
    _treasure("TC01", "Get out of Jail Free: This card may be kept until needed, or traded.", CardType.GET_OUT_OF_JAIL),
    _treasure("TC02", "Advance to Go: Collect $300.", CardType.ADVANCE_TO_GO, value=300),
    _treasure("TC03", "Bank error in your favor: Collect $200.", CardType.COLLECT, value=200),
    _treasure("TC04", "Doctor's fees: Pay $50.", CardType.PAY, value=50),
    _treasure("TC05", "From sale of stock you get $50.", CardType.COLLECT, value=50),
    _treasure("TC06", "Go to Jail: Go directly to Jail. Do not pass Go, do not collect $200.", CardType.GO_TO_JAIL),
    _treasure(
        "TC07",
        "Grand Opera Night: Collect $50 from every player for opening night seats.",
        CardType.COLLECT_FROM_PLAYERS,
        value=50,
    ),
    _treasure("TC08", "Holiday Fund matures: Receive $100.", CardType.COLLECT, value=100),
    _treasure("TC09", "Income tax refund: Collect $20.", CardType.COLLECT, value=20),
    _treasure("TC10", "It is your birthday: Collect $10 from every player.", CardType.COLLECT_FROM_PLAYERS, value=10),
    _treasure("TC11", "Life insurance matures: Collect $100.", CardType.COLLECT, value=100),
    _treasure("TC12", "Pay hospital fees of $100.", CardType.PAY, value=100),
    _treasure("TC13", "Pay school fees of $150.", CardType.PAY, value=150),
    _treasure("TC14", "Receive $25 consultancy fee.", CardType.COLLECT, value=25),
    _treasure(
        "TC15",
        "You are assessed for street repairs: Pay $40 per house and $115 per hotel you own.",
        CardType.PAY_PER_BUILDING,
        value=40,
        value2=115,
    ),
    _treasure("TC16", "You have won second prize in a beauty contest: Collect $10.", CardType.COLLECT, value=10),
    _treasure("TC17", "You inherit $100.", CardType.COLLECT, value=100),
    _treasure("TC18", "It's time to renovate! Pay $120 for each house you own.", CardType.PAY_PER_BUILDING, value=120),
    _treasure(
        "TC19",
        "Property taxes are due: Pay $50 for each house and $125 for each hotel.",
        CardType.PAY_PER_BUILDING,
        value=50,
        value2=125,
    ),
    _treasure(
        "TC20",
        "You won a local gardening competition! Receive $20 for each house you own.",
        CardType.COLLECT_PER_BUILDING,
        value=20,
    ),
    _treasure(
        "TC21",
        "Vacation Time! Advance to the Vacation space. Collect the vacation pot.",
        CardType.COLLECT_VACATION_POT,
        target_position=28,
        collect_go=False,
    ),
    _treasure("TC22", "You won a travel voucher! Collect $100 for your next trip.", CardType.COLLECT, value=100),
    _treasure("TC23", "Your flight was canceled. The airline has compensated you $150.", CardType.COLLECT, value=150),
    _treasure("TC24", "Advance to London. If you pass Go, collect $200.", CardType.MOVE_TO, target_position=43),
]

SURPRISE_CARDS: List[Card] = [
    _surprise("S01", "Advance to Go: Collect $300.", CardType.ADVANCE_TO_GO, value=300),
    _surprise(
        "S02",
        "Advance to the nearest Airport: If unowned, you may buy it from the Bank. "
        "If owned, pay the owner twice the rental to which they are otherwise entitled.",
        CardType.MOVE_TO_NEAREST,
        target_type=SpaceType.AIRPORT,
        rent_multiplier=2,
    ),
    _surprise(
        "S03",
        "Advance to the nearest utility: If unowned, you may buy it from the Bank. "
        "If owned, throw dice and pay the owner a total ten times the amount thrown.",
        CardType.MOVE_TO_NEAREST,
        target_type=SpaceType.COMPANY,
        rent_multiplier=10,
    ),
    _surprise("S04", "Bank pays you a dividend of $50.", CardType.COLLECT, value=50),
    _surprise("S05", "Get out of Jail Free: This card may be kept until needed, or traded.", CardType.GET_OUT_OF_JAIL),
    _surprise("S06", "Go Back 3 Spaces.", CardType.MOVE_SPACES, value=-3),
    _surprise("S07", "Go to Jail: Go directly to Jail. Do not pass Go, do not collect $200.", CardType.GO_TO_JAIL),
    _surprise(
        "S08",
        "Make general repairs on all your property: For each house pay $25, for each hotel pay $100.",
        CardType.PAY_PER_BUILDING,
        value=25,
        value2=100,
    ),
    _surprise("S09", "Pay poor tax of $15.", CardType.PAY, value=15),
    _surprise("S10", "Take a trip to Airport 1: If you pass Go, collect $200.", CardType.MOVE_TO, target_position=5),
    _surprise(
        "S11",
        "You have been elected Chairman of the Board: Pay each player $50.",
        CardType.PAY_TO_PLAYERS,
        value=50,
    ),
    _surprise("S12", "Your building and loan matures: Collect $150.", CardType.COLLECT, value=150),
    _surprise("S13", "You have won a crossword competition: Collect $100.", CardType.COLLECT, value=100),
    _surprise(
        "S14",
        "Home Improvement Loan Matures: Collect $75 for each house you own.",
        CardType.COLLECT_PER_BUILDING,
        value=75,
    ),
    _surprise(
        "S15",
        "A zoning change benefits your properties! Collect $30 for each house and $100 for each hotel.",
        CardType.COLLECT_PER_BUILDING,
        value=30,
        value2=100,
    ),
    _surprise(
        "S16",
        "Street beautification assessment: Pay $30 for each house you own.",
        CardType.PAY_PER_BUILDING,
        value=30,
    ),
    _surprise(
        "S17",
        "Have a vacation and a trip to New York! Advance to the Vacation space, collect the vacation pot, "
        "and then immediately move to New York. If you pass Go, collect $200.",
        CardType.COLLECT_VACATION_POT,
        target_position=53,
    ),
    _surprise("S18", "Lost your luggage! Pay $100 to the vacation pot.", CardType.PAY, value=100),
    _surprise(
        "S19",
        "Won a free vacation! Go to the vacation space. Do NOT collect the vacation pot. Your turn ends.",
        CardType.FREE_VACATION,
        target_position=28,
    ),
    _surprise("S20", "Business trip to Tokyo! Advance to Tokyo. If you pass Go, collect $200.", CardType.MOVE_TO, target_position=33),
]

CARDS_BY_ID: Dict[str, Card] = {card.card_id: card for card in TREASURE_CARDS + SURPRISE_CARDS}


def deck_cards(deck: str) -> List[Card]:
    """Get the static card list for a deck."""
    if deck == TREASURE:
        return TREASURE_CARDS
    if deck == SURPRISE:
        return SURPRISE_CARDS
    raise ValueError(f"Unknown deck: {deck}")


def draw_card(deck: str, rng: random.Random) -> Card:
    """Uniform random draw; cards are never removed from the deck."""
    return rng.choice(deck_cards(deck))


def get_card(card_id: str) -> Card:
    return CARDS_BY_ID[card_id]
