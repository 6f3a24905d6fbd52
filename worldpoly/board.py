from typing import Dict, List, Optional

from worldpoly.config import BOARD_SIZE
from worldpoly.exceptions import UnknownPropertyError
from worldpoly.spaces import (
    Space,
    SpaceType,
    GoSpace,
    OwnableSpace,
    CitySpace,
    AirportSpace,
    HarbourSpace,
    CompanySpace,
    TaxSpace,
    TreasureSpace,
    SurpriseSpace,
    JailSpace,
    VacationSpace,
    GoToJailSpace,
)


HOUSE_COST_BY_COUNTRY: Dict[str, int] = {
    "Brazil": 50,
    "China": 50,
    "Japan": 100,
    "Germany": 100,
    "Russia": 150,
    "France": 150,
    "UK": 200,
    "Canada": 200,
    "India": 220,
    "Australia": 220,
    "USA": 250,
}


def _city(name: str, position: int, country: str, cost: int, *rent: int) -> CitySpace:
    return CitySpace(name, position, country, cost, rent, HOUSE_COST_BY_COUNTRY[country])


class Board:
    """The World Monopoly board with 56 spaces."""

    def __init__(self):
        self.spaces: List[Space] = self._create_world_board()
        self.countries: Dict[str, List[int]] = self._build_countries()

    def _create_world_board(self) -> List[Space]:
        """Create the standard 56-space world board."""
        return [
            # Bottom row (0-14)
            GoSpace(0),
            _city("Rio de Janeiro", 1, "Brazil", 60, 4, 20, 60, 180, 320, 450),
            TreasureSpace(2),
            _city("Sao Paulo", 3, "Brazil", 60, 4, 20, 60, 180, 320, 450),
            TaxSpace("Income Tax (10%)", 4, 0.10),
            AirportSpace("Airport 1", 5),
            _city("Brasilia", 6, "Brazil", 80, 6, 30, 90, 270, 400, 550),
            SurpriseSpace(7),
            _city("Beijing", 8, "China", 100, 6, 30, 90, 270, 400, 550),
            _city("Shanghai", 9, "China", 100, 6, 30, 90, 270, 400, 550),
            HarbourSpace("Harbour 1", 10),
            _city("Shenzhen", 11, "China", 120, 8, 40, 100, 300, 450, 600),
            CompanySpace("Tech Corp", 12),
            _city("Toronto", 13, "Canada", 140, 10, 50, 150, 450, 625, 750),
            JailSpace(14),
            # Left side (15-28)
            _city("Vancouver", 15, "Canada", 160, 12, 60, 180, 500, 700, 900),
            AirportSpace("Airport 2", 16),
            _city("Paris", 17, "France", 180, 14, 70, 200, 550, 750, 950),
            _city("Marseille", 18, "France", 180, 14, 70, 200, 550, 750, 950),
            TreasureSpace(19),
            _city("Lyon", 20, "France", 200, 16, 80, 220, 600, 800, 1000),
            HarbourSpace("Harbour 2", 21),
            _city("Nice", 22, "France", 220, 18, 90, 250, 700, 875, 1050),
            SurpriseSpace(23),
            _city("Berlin", 24, "Germany", 220, 18, 90, 250, 700, 875, 1050),
            _city("Munich", 25, "Germany", 240, 20, 100, 300, 750, 925, 1100),
            CompanySpace("Energy Corp", 26),
            _city("Hamburg", 27, "Germany", 260, 22, 110, 330, 800, 975, 1150),
            VacationSpace(28),
            # Top row (29-42)
            _city("Moscow", 29, "Russia", 260, 22, 110, 330, 800, 975, 1150),
            _city("St. Petersburg", 30, "Russia", 280, 24, 120, 360, 850, 1025, 1200),
            AirportSpace("Airport 3", 31),
            _city("Kazan", 32, "Russia", 300, 26, 130, 390, 900, 1100, 1275),
            _city("Tokyo", 33, "Japan", 300, 26, 130, 390, 900, 1100, 1275),
            TreasureSpace(34),
            _city("Osaka", 35, "Japan", 320, 28, 150, 450, 1000, 1200, 1400),
            HarbourSpace("Harbour 3", 36),
            _city("Mumbai", 37, "India", 350, 35, 175, 500, 1100, 1300, 1500),
            SurpriseSpace(38),
            _city("Delhi", 39, "India", 400, 50, 200, 600, 1400, 1700, 2000),
            TaxSpace("Luxury Tax $75", 40, 100),
            _city("Hyderabad", 41, "India", 350, 35, 175, 500, 1100, 1300, 1500),
            GoToJailSpace(42),
            # Right side (43-55)
            _city("London", 43, "UK", 350, 35, 175, 500, 1100, 1300, 1500),
            _city("Manchester", 44, "UK", 400, 50, 200, 600, 1400, 1700, 2000),
            AirportSpace("Airport 4", 45),
            _city("Liverpool", 46, "UK", 425, 55, 225, 650, 1500, 1800, 2100),
            TreasureSpace(47),
            _city("Glasgow", 48, "UK", 425, 55, 225, 650, 1500, 1800, 2100),
            _city("Sydney", 49, "Australia", 450, 60, 250, 700, 1600, 1900, 2200),
            HarbourSpace("Harbour 4", 50),
            _city("Melbourne", 51, "Australia", 475, 65, 275, 750, 2000, 2400),
            _city("Canberra", 52, "Australia", 500, 70, 300, 800, 1800, 2100, 2500),
            _city("New York", 53, "USA", 550, 75, 325, 850, 1900, 2200, 2600),
            _city("Los Angeles", 54, "USA", 550, 75, 325, 850, 1900, 2200, 2600),
            _city("Chicago", 55, "USA", 600, 80, 350, 900, 2000, 2400, 2800),
        ]

    def _build_countries(self) -> Dict[str, List[int]]:
        """Build a mapping of countries to city positions."""
        countries: Dict[str, List[int]] = {}
        for space in self.spaces:
            if isinstance(space, CitySpace):
                countries.setdefault(space.country, []).append(space.position)
        return countries

    def get_space(self, position: int) -> Space:
        """Get the space at the given position."""
        return self.spaces[position % BOARD_SIZE]

    def find_space(self, name: str) -> Optional[Space]:
        """Look up a space by its display name."""
        for space in self.spaces:
            if space.name == name:
                return space
        return None

    def get_ownable_space(self, position: int) -> OwnableSpace:
        """
        Get a purchasable space.

        Raises:
            UnknownPropertyError: if the position is off the board or not ownable
        """
        if not isinstance(position, int) or not 0 <= position < BOARD_SIZE:
            raise UnknownPropertyError(f"Unknown property id: {position!r}")
        space = self.spaces[position]
        if not isinstance(space, OwnableSpace):
            raise UnknownPropertyError(f"{space.name} is not a property")
        return space

    def get_city_space(self, position: int) -> Optional[CitySpace]:
        """Get a city space, or None if not a city."""
        space = self.get_space(position)
        return space if isinstance(space, CitySpace) else None

    def get_country(self, country: str) -> List[int]:
        """Get all city positions in a country."""
        return self.countries.get(country, [])

    def ownable_positions(self) -> List[int]:
        return [s.position for s in self.spaces if isinstance(s, OwnableSpace)]

    def positions_of_type(self, space_type: SpaceType) -> List[int]:
        return [s.position for s in self.spaces if s.space_type == space_type]

    def find_nearest(self, position: int, space_type: SpaceType) -> int:
        """
        Find the square of the given type with the smallest forward
        wrap-around distance from `position`.
        """
        candidates = self.positions_of_type(space_type)
        if not candidates:
            raise UnknownPropertyError(f"No {space_type.value} squares on the board")
        return min(candidates, key=lambda target: (target - position) % BOARD_SIZE)
