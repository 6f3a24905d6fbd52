"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    GO = "go"
    CITY = "city"
    AIRPORT = "airport"
    HARBOUR = "harbour"
    COMPANY = "company"
    TAX = "tax"
    TREASURE = "treasure"
    SURPRISE = "surprise"
    JAIL = "jail"
    VACATION = "vacation"
    GO_TO_JAIL = "go-to-jail"


OWNABLE_TYPES = (SpaceType.CITY, SpaceType.AIRPORT, SpaceType.HARBOUR, SpaceType.COMPANY)

# Player holdings are split by category; a property lives in exactly one list.
CATEGORY_BY_TYPE = {
    SpaceType.CITY: "cities",
    SpaceType.AIRPORT: "airports",
    SpaceType.HARBOUR: "harbours",
    SpaceType.COMPANY: "companies",
}

HOTEL_INDEX = 5


@dataclass
class Space:
    """Base class for a board space."""

    name: str
    position: int
    space_type: SpaceType

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"

    @property
    def is_ownable(self) -> bool:
        return self.space_type in OWNABLE_TYPES


@dataclass(repr=False)
class GoSpace(Space):
    """The GO space."""

    def __init__(self, position: int = 0):
        super().__init__("GO", position, SpaceType.GO)


@dataclass(repr=False)
class OwnableSpace(Space):
    """A square that can be bought, mortgaged and charged rent on."""

    cost: int
    rent: Tuple[int, ...]

    def __init__(self, name: str, position: int, space_type: SpaceType, cost: int, rent: Tuple[int, ...]):
        super().__init__(name, position, space_type)
        self.cost = cost
        self.rent = tuple(rent)

    @property
    def category(self) -> str:
        """Name of the player holdings list this square belongs to."""
        return CATEGORY_BY_TYPE[self.space_type]

    @property
    def mortgage_value(self) -> int:
        return self.cost // 2

    @property
    def unmortgage_cost(self) -> int:
        """Mortgage value plus 10% interest, rounded up."""
        return -(-self.mortgage_value * 11 // 10)

    @property
    def sale_value(self) -> int:
        return self.cost // 2

    def rent_at(self, index: int) -> int:
        """
        Read the literal rent table.

        Tables shorter than the requested index resolve to their last entry.
        """
        if index < 0:
            return 0
        if index >= len(self.rent):
            return self.rent[-1]
        return self.rent[index]


@dataclass(repr=False)
class CitySpace(OwnableSpace):
    """A city that belongs to a country set and can carry houses and a hotel."""

    country: str
    house_cost: int

    def __init__(self, name: str, position: int, country: str, cost: int, rent: Tuple[int, ...], house_cost: int):
        super().__init__(name, position, SpaceType.CITY, cost, rent)
        self.country = country
        self.house_cost = house_cost


@dataclass(repr=False)
class AirportSpace(OwnableSpace):
    """An airport; rent scales with the number of airports the owner holds."""

    def __init__(self, name: str, position: int, cost: int = 200, rent: Tuple[int, ...] = (25, 50, 100, 200)):
        super().__init__(name, position, SpaceType.AIRPORT, cost, rent)


@dataclass(repr=False)
class HarbourSpace(OwnableSpace):
    """A harbour; rent scales with the number of harbours the owner holds."""

    def __init__(self, name: str, position: int, cost: int = 150, rent: Tuple[int, ...] = (50, 100, 150, 200)):
        super().__init__(name, position, SpaceType.HARBOUR, cost, rent)


@dataclass(repr=False)
class CompanySpace(OwnableSpace):
    """A company; the rent table holds dice multipliers, not amounts."""

    def __init__(self, name: str, position: int, cost: int = 150, rent: Tuple[int, ...] = (4, 10)):
        super().__init__(name, position, SpaceType.COMPANY, cost, rent)


@dataclass(repr=False)
class TaxSpace(Space):
    """A tax space. Amounts below 1 are a fraction of the payer's money."""

    amount: float

    def __init__(self, name: str, position: int, amount: float):
        super().__init__(name, position, SpaceType.TAX)
        self.amount = amount

    @property
    def is_percentage(self) -> bool:
        return self.amount < 1

    def amount_due(self, money: int) -> int:
        """Tax owed by a player holding `money`, floored and never negative."""
        if self.is_percentage:
            return max(0, int(money * self.amount))
        return int(self.amount)


@dataclass(repr=False)
class TreasureSpace(Space):
    """A Treasure Chest card space."""

    def __init__(self, position: int):
        super().__init__("Treasure Chest", position, SpaceType.TREASURE)


@dataclass(repr=False)
class SurpriseSpace(Space):
    """A Surprise card space."""

    def __init__(self, position: int):
        super().__init__("Surprise", position, SpaceType.SURPRISE)


@dataclass(repr=False)
class JailSpace(Space):
    """The Jail/Just Visiting space."""

    def __init__(self, position: int = 14):
        super().__init__("Jail / Visiting", position, SpaceType.JAIL)


@dataclass(repr=False)
class VacationSpace(Space):
    """The Vacation space, which pays out the vacation pot."""

    def __init__(self, position: int = 28):
        super().__init__("Vacation", position, SpaceType.VACATION)


@dataclass(repr=False)
class GoToJailSpace(Space):
    """The Go To Jail space."""

    def __init__(self, position: int = 42):
        super().__init__("Go to Jail", position, SpaceType.GO_TO_JAIL)
