"""
Auction system for properties.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from worldpoly.exceptions import InvalidActionError


class AuctionStatus(Enum):
    """Lifecycle of an auction."""

    OPEN = "open"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class Auction:
    """
    A timed auction for a single property.

    Any player except the seller may bid while the auction is open. Each
    player has one standing bid in the ledger; a new bid must beat the
    current highest and pushes the deadline back by the countdown.
    """

    def __init__(
        self,
        auction_id: int,
        property_id: int,
        property_name: str,
        starting_bid: int,
        countdown: float,
        now: float,
        seller_id: Optional[str] = None,
    ):
        self.auction_id = auction_id
        self.property_id = property_id
        self.property_name = property_name
        self.starting_bid = starting_bid
        self.current_bid = starting_bid
        self.highest_bidder: Optional[str] = None
        self.seller_id = seller_id
        self.countdown = countdown
        self.deadline = now + countdown
        self.bids: Dict[str, int] = {}
        self.bid_count = 0
        self.status = AuctionStatus.OPEN
        self.winner: Optional[str] = None
        self.winning_bid = 0
        self.log: List[str] = [f"Auction started for {property_name} with a starting bid of ${starting_bid}!"]

    def __repr__(self) -> str:
        return (
            f"Auction(id={self.auction_id}, property={self.property_id}, "
            f"current_bid={self.current_bid}, status={self.status.value})"
        )

    @property
    def active(self) -> bool:
        return self.status == AuctionStatus.OPEN

    @property
    def is_fire_sale(self) -> bool:
        return self.seller_id is not None

    def has_bids(self) -> bool:
        return bool(self.bids)

    def is_expired(self, now: float) -> bool:
        return now >= self.deadline

    def place_bid(self, player_id: str, amount: int, now: float) -> None:
        """
        Record a bid.

        Raises:
            InvalidActionError: if the auction is closed, the bidder is the
                seller, or the amount does not beat the current bid
        """
        if not self.active:
            raise InvalidActionError("There is no active auction.")
        if player_id == self.seller_id:
            raise InvalidActionError("You cannot bid on your own property.")
        if amount <= self.current_bid:
            raise InvalidActionError(f"Your bid must be higher than ${self.current_bid}.")

        # Re-bids replace the standing entry but keep its ledger order.
        self.bids[player_id] = amount
        self.bid_count += 1
        self.current_bid = amount
        self.highest_bidder = player_id
        self.deadline = now + self.countdown

    def leading_bid(self) -> Optional[Tuple[str, int]]:
        """
        Find the true highest bid in the ledger.

        The ledger is authoritative over current_bid and highest_bidder;
        ties go to the earliest entry.
        """
        best: Optional[Tuple[str, int]] = None
        for player_id, amount in self.bids.items():
            if best is None or amount > best[1]:
                best = (player_id, amount)
        return best

    def settle(self) -> Optional[Tuple[str, int]]:
        """Close the auction and return (winner, amount), or None when unbid."""
        if not self.active:
            raise InvalidActionError("There is no active auction.")
        leading = self.leading_bid()
        self.status = AuctionStatus.SETTLED
        if leading is not None:
            self.winner, self.winning_bid = leading
        return leading

    def cancel(self) -> None:
        if not self.active:
            raise InvalidActionError("There is no active auction.")
        if self.has_bids():
            raise InvalidActionError("An auction with bids cannot be cancelled.")
        self.status = AuctionStatus.CANCELLED

    def drop_bidder(self, player_id: str) -> None:
        """Remove a departed player's bid and recompute the standing high bid."""
        if player_id not in self.bids:
            return
        del self.bids[player_id]
        leading = self.leading_bid()
        if leading is None:
            self.highest_bidder = None
            self.current_bid = self.starting_bid
        else:
            self.highest_bidder, self.current_bid = leading

    def to_dict(self) -> Dict:
        return {
            "id": self.auction_id,
            "active": self.active,
            "status": self.status.value,
            "propertyId": str(self.property_id),
            "propertyName": self.property_name,
            "startingBid": self.starting_bid,
            "currentBid": self.current_bid,
            "highestBidder": self.highest_bidder,
            "bidCount": self.bid_count,
            "sellerId": self.seller_id,
            "countdown": self.countdown,
            "deadline": self.deadline,
            "bids": dict(self.bids),
            "winner": self.winner,
            "winningBid": self.winning_bid,
            "log": list(self.log),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Auction":
        auction = cls(
            data["id"],
            int(data["propertyId"]),
            data["propertyName"],
            data["startingBid"],
            data["countdown"],
            0.0,
            data.get("sellerId"),
        )
        auction.current_bid = data["currentBid"]
        auction.highest_bidder = data.get("highestBidder")
        auction.bid_count = data.get("bidCount", 0)
        auction.deadline = data["deadline"]
        auction.bids = dict(data.get("bids", {}))
        auction.status = AuctionStatus(data["status"])
        auction.winner = data.get("winner")
        auction.winning_bid = data.get("winningBid", 0)
        auction.log = list(data.get("log", []))
        return auction


class AuctionManager:
    """
    Holds the open auction and the history of closed ones.
    Only one auction may be open at a time.
    """

    def __init__(self):
        self.active_auction: Optional[Auction] = None
        self.next_auction_id = 1
        self.auction_history: List[Auction] = []

    def open_auction(
        self,
        property_id: int,
        property_name: str,
        starting_bid: int,
        countdown: float,
        now: float,
        seller_id: Optional[str] = None,
    ) -> Auction:
        """Open a new auction."""
        if self.active_auction is not None:
            raise InvalidActionError("An auction is already in progress.")
        auction = Auction(self.next_auction_id, property_id, property_name, starting_bid, countdown, now, seller_id)
        self.active_auction = auction
        self.next_auction_id += 1
        return auction

    def close_auction(self) -> None:
        """Move the current auction to history."""
        if self.active_auction is not None:
            self.auction_history.append(self.active_auction)
            self.active_auction = None

    def to_dict(self) -> Dict:
        return {
            "nextAuctionId": self.next_auction_id,
            "history": [auction.to_dict() for auction in self.auction_history],
        }

    @classmethod
    def from_dict(cls, data: Dict, active: Optional[Dict]) -> "AuctionManager":
        manager = cls()
        manager.next_auction_id = data.get("nextAuctionId", 1)
        manager.auction_history = [Auction.from_dict(item) for item in data.get("history", [])]
        manager.active_auction = Auction.from_dict(active) if active else None
        return manager
