from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class TradeStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass
class TradeOffer:
    """
    One side of a trade: money plus a list of property positions.
    """
    money: int = 0
    properties: List[int] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check if offer contains anything."""
        return self.money == 0 and len(self.properties) == 0

    def __repr__(self) -> str:
        items = []
        if self.money > 0:
            items.append(f"${self.money}")
        if self.properties:
            items.append(f"{len(self.properties)} properties")
        return " + ".join(items) if items else "nothing"

    def to_dict(self) -> Dict:
        return {"money": self.money, "properties": [str(p) for p in self.properties]}

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "TradeOffer":
        data = data or {}
        return cls(int(data.get("money", 0)), [int(p) for p in data.get("properties", [])])


class Trade:
    """
    A trade between two players.

    Trade flow:
    1. Proposer creates trade with their offer and request
    2. Recipient can accept or reject; the proposer can cancel
    3. If accepted, items are transferred atomically
    """

    def __init__(self, trade_id: str, from_player: str, to_player: str, offer: TradeOffer, request: TradeOffer):
        self.trade_id = trade_id
        self.from_player = from_player
        self.to_player = to_player
        self.offer = offer
        self.request = request
        self.status = TradeStatus.PENDING

    def __repr__(self) -> str:
        return f"Trade({self.trade_id!r}, {self.from_player} -> {self.to_player}, {self.status.value})"

    def is_pending(self) -> bool:
        return self.status == TradeStatus.PENDING

    def involves(self, player_id: str) -> bool:
        return player_id in (self.from_player, self.to_player)

    def to_dict(self) -> Dict:
        return {
            "id": self.trade_id,
            "fromPlayer": self.from_player,
            "toPlayer": self.to_player,
            "offer": self.offer.to_dict(),
            "request": self.request.to_dict(),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Trade":
        trade = cls(
            data["id"],
            data["fromPlayer"],
            data["toPlayer"],
            TradeOffer.from_dict(data.get("offer")),
            TradeOffer.from_dict(data.get("request")),
        )
        trade.status = TradeStatus(data.get("status", "pending"))
        return trade


class TradeManager:
    """
    Manages pending trades and trade history.
    Resolved trades leave the pending map and go to history.
    """

    def __init__(self):
        self.active_trades: Dict[str, Trade] = {}
        self.next_trade_id = 1
        self.trade_history: List[Trade] = []

    def create_trade(self, from_player: str, to_player: str, offer: TradeOffer, request: TradeOffer) -> Trade:
        """Create a new trade proposal."""
        trade_id = f"T{self.next_trade_id}"
        trade = Trade(trade_id, from_player, to_player, offer, request)
        self.active_trades[trade_id] = trade
        self.next_trade_id += 1
        return trade

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        """Get pending trade by ID."""
        return self.active_trades.get(trade_id)

    def trades_for_player(self, player_id: str) -> List[Trade]:
        return [trade for trade in self.active_trades.values() if trade.involves(player_id)]

    def complete_trade(self, trade_id: str, status: TradeStatus) -> None:
        """Mark trade as resolved and move to history."""
        trade = self.active_trades.pop(trade_id, None)
        if trade is not None:
            trade.status = status
            self.trade_history.append(trade)

    def drop_player(self, player_id: str) -> List[str]:
        """Cancel every pending trade involving a player; returns their ids."""
        dropped = [trade.trade_id for trade in self.trades_for_player(player_id)]
        for trade_id in dropped:
            self.complete_trade(trade_id, TradeStatus.CANCELLED)
        return dropped

    def to_dict(self) -> Dict:
        return {
            "nextTradeId": self.next_trade_id,
            "history": [trade.to_dict() for trade in self.trade_history],
        }

    @classmethod
    def from_dict(cls, data: Dict, active: Dict[str, Dict]) -> "TradeManager":
        manager = cls()
        manager.next_trade_id = data.get("nextTradeId", 1)
        manager.trade_history = [Trade.from_dict(item) for item in data.get("history", [])]
        manager.active_trades = {trade_id: Trade.from_dict(item) for trade_id, item in active.items()}
        return manager
