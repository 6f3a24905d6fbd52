"""
Typed game events and the append-only log every mutation writes to.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(Enum):
    """Kinds of entries written to the event log."""

    GAME_CREATED = "game_created"
    PLAYER_JOINED = "player_joined"
    SETTINGS_UPDATED = "settings_updated"
    GAME_START = "game_start"
    TURN_START = "turn_start"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_GO = "pass_go"
    LAND = "land"
    GO_BONUS = "go_bonus"

    PURCHASE = "purchase"
    PURCHASE_DECLINED = "purchase_declined"
    PROPERTY_SOLD = "property_sold"
    AUCTION_START = "auction_start"
    AUCTION_BID = "auction_bid"
    AUCTION_END = "auction_end"
    AUCTION_CANCELLED = "auction_cancelled"

    RENT_PAYMENT = "rent_payment"
    RENT_SKIPPED = "rent_skipped"
    TAX_PAYMENT = "tax_payment"
    VACATION = "vacation"

    CARD_DRAW = "card_draw"
    CARD_EFFECT = "card_effect"

    BUILD_HOUSE = "build_house"
    BUILD_HOTEL = "build_hotel"
    SELL_BUILDING = "sell_building"

    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"

    GO_TO_JAIL = "go_to_jail"
    JAIL_ATTEMPT = "jail_attempt"
    JAIL_RELEASE = "jail_release"

    TRANSFER = "transfer"
    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"

    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_CANCELLED = "trade_cancelled"


@dataclass
class GameEvent:
    """One entry in a game's event log; `message` is the line shown to players."""

    event_type: EventType
    player_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    message: str = ""

    def __str__(self) -> str:
        return self.message or f"{self.event_type.value} {self.details}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "player_id": self.player_id,
            "details": self.details,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameEvent":
        return cls(EventType(data["type"]), data.get("player_id"), dict(data.get("details", {})), data.get("message", ""))


class EventLog:
    """Append-only record of everything that happened in a game."""

    def __init__(self):
        self.events: List[GameEvent] = []

    def log(self, event_type: EventType, player_id: Optional[str] = None, message: str = "", **details: Any) -> GameEvent:
        event = GameEvent(event_type, player_id, details, message)
        self.events.append(event)
        return event

    def since(self, mark: int) -> List[GameEvent]:
        """Events appended after the log held `mark` entries."""
        return self.events[mark:]

    def messages(self) -> List[str]:
        return [event.message for event in self.events if event.message]

    def __len__(self) -> int:
        return len(self.events)
