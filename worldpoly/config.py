"""
Game configuration settings.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from worldpoly.exceptions import ValidationError


BOARD_SIZE = 56

GO_POSITION = 0
JAIL_POSITION = 14
VACATION_POSITION = 28
GO_TO_JAIL_POSITION = 42

PLAYER_COLORS = [
    "#d9534f",
    "#5cb85c",
    "#0275d8",
    "#f0ad4e",
    "#5bc0de",
    "#9b59b6",
    "#34495e",
    "#e74c3c",
]


def _has_type(value: Any, expected: Any) -> bool:
    if expected == Optional[int]:
        return value is None or _has_type(value, int)
    if expected is bool:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


@dataclass(frozen=True)
class GameSettings:
    """Configuration for a World Monopoly game.

    The toggles are chosen by the host while the game is waiting for
    players and are frozen once it starts.
    """

    starting_money: int = 1500
    max_players: int = 8

    allow_auctions: bool = True
    allow_owned_property_auctions: bool = True
    allow_mortgage: bool = True
    rent_in_jail: bool = True
    tax_in_vacation_pot: bool = True
    double_rent_on_monopoly: bool = True
    increasing_jail_fine: bool = False

    go_salary: int = 200
    go_landing_bonus: int = 300
    jail_fine: int = 100
    jail_fine_step: int = 20
    max_jail_turns: int = 3

    auction_countdown_seconds: float = 5.0
    fire_sale_tax_percent: int = 10

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            if not _has_type(getattr(self, f.name), f.type):
                raise ValidationError(f"Setting {f.name} has the wrong type")
        if self.starting_money < 0:
            raise ValidationError("Starting money cannot be negative")
        if not 1 <= self.max_players <= len(PLAYER_COLORS):
            raise ValidationError(f"Max players must be between 1 and {len(PLAYER_COLORS)}")

    def with_changes(self, **changes: Any) -> "GameSettings":
        """Return a copy with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameSettings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
