"""
Player state and management.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from worldpoly.config import GO_POSITION

CATEGORIES = ("cities", "airports", "harbours", "companies")


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(self, player_id: str, name: str, starting_money: int, color: str = ""):
        self.player_id = player_id
        self.name = name
        self.color = color
        self.money = starting_money
        self.position = GO_POSITION
        self.animated_position = GO_POSITION
        self.in_jail = False
        self.jail_turns = 0
        self.doubles_count = 0
        self.on_vacation = False
        self.get_out_of_jail_cards = 0
        self.houses = 0
        self.hotels = 0
        self.cities: List[int] = []
        self.airports: List[int] = []
        self.harbours: List[int] = []
        self.companies: List[int] = []

    def __repr__(self) -> str:
        return (
            f"PlayerState(id={self.player_id!r}, name='{self.name}', "
            f"money={self.money}, position={self.position}, in_jail={self.in_jail})"
        )

    @property
    def properties(self) -> List[int]:
        """Every owned square, in category order."""
        return self.cities + self.airports + self.harbours + self.companies

    def holdings(self, category: str) -> List[int]:
        return getattr(self, category)

    def owns(self, position: int) -> bool:
        return any(position in self.holdings(category) for category in CATEGORIES)

    def add_property(self, category: str, position: int) -> None:
        holdings = self.holdings(category)
        if position not in holdings:
            holdings.append(position)

    def remove_property(self, category: str, position: int) -> None:
        holdings = self.holdings(category)
        if position in holdings:
            holdings.remove(position)

    def move_to(self, position: int) -> None:
        self.position = position
        self.animated_position = position

    def to_dict(self) -> Dict:
        return {
            "id": self.player_id,
            "name": self.name,
            "color": self.color,
            "money": self.money,
            "position": self.position,
            "animatedPosition": self.animated_position,
            "inJail": self.in_jail,
            "jailTurns": self.jail_turns,
            "doublesCount": self.doubles_count,
            "onVacation": self.on_vacation,
            "getOutOfJailFreeCards": self.get_out_of_jail_cards,
            "houses": self.houses,
            "hotels": self.hotels,
            "cities": [str(p) for p in self.cities],
            "airports": [str(p) for p in self.airports],
            "harbours": [str(p) for p in self.harbours],
            "companies": [str(p) for p in self.companies],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PlayerState":
        player = cls(data["id"], data["name"], data["money"], data.get("color", ""))
        player.position = data["position"]
        player.animated_position = data.get("animatedPosition", data["position"])
        player.in_jail = data["inJail"]
        player.jail_turns = data["jailTurns"]
        player.doubles_count = data["doublesCount"]
        player.on_vacation = data["onVacation"]
        player.get_out_of_jail_cards = data["getOutOfJailFreeCards"]
        player.houses = data["houses"]
        player.hotels = data["hotels"]
        for category in CATEGORIES:
            setattr(player, category, [int(p) for p in data.get(category, [])])
        return player


@dataclass
class PropertyState:
    """Tracks ownership and improvement state of a property."""

    owner: Optional[str] = None
    houses: int = 0
    hotels: int = 0
    mortgaged: bool = False

    def is_owned(self) -> bool:
        """Check if property is owned by any player."""
        return self.owner is not None

    def has_hotel(self) -> bool:
        return self.hotels > 0

    def has_buildings(self) -> bool:
        return self.houses > 0 or self.hotels > 0

    def reset(self) -> None:
        """Return the property to the bank in its initial condition."""
        self.owner = None
        self.houses = 0
        self.hotels = 0
        self.mortgaged = False

    def to_dict(self) -> Dict:
        return {
            "owner": self.owner,
            "houses": self.houses,
            "hotels": self.hotels,
            "mortgaged": self.mortgaged,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PropertyState":
        return cls(data.get("owner"), data.get("houses", 0), data.get("hotels", 0), data.get("mortgaged", False))
