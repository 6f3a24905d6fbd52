"""
Document serialization of GameState.

Produces the JSON-compatible game document that is stored and broadcast
to clients, and rebuilds an identical GameState from it. Board keys are
stringified square indices.
"""

from __future__ import annotations

from typing import Any, Dict, List

from worldpoly.auction import AuctionManager
from worldpoly.cards import get_card
from worldpoly.config import GameSettings
from worldpoly.exceptions import ValidationError
from worldpoly.game import GameState, GameStatus
from worldpoly.money import GameEvent
from worldpoly.player import PlayerState, PropertyState
from worldpoly.trade import TradeManager


def _rng_state(game: GameState) -> List[Any]:
    version, internal, gauss_next = game.rng.getstate()
    return [version, list(internal), gauss_next]


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into the stored game document.

    The document includes:
    - identity, host, status, settings and the version token
    - players keyed by id, turn order and the current turn
    - dynamic board state, vacation pot, visit and jail counters
    - the open auction, pending trades and their histories
    - per-turn bookkeeping, the event log and RNG state
    """
    auction = game.auction
    return {
        "id": game.game_id,
        "name": game.name,
        "hostId": game.host_id,
        "status": game.status.value,
        "version": game.version,
        "settings": game.settings.to_dict(),
        "players": {pid: player.to_dict() for pid, player in game.players.items()},
        "turnOrder": list(game.turn_order),
        "currentPlayerTurn": game.current_player_turn,
        "turnNumber": game.turn_number,
        "board": {str(pos): prop.to_dict() for pos, prop in game.properties.items()},
        "vacationPot": game.vacation_pot,
        "propertyVisits": {str(pos): count for pos, count in game.property_visits.items()},
        "jailCount": dict(game.jail_count),
        "heldJailCards": dict(game.held_jail_cards),
        "auction": auction.to_dict() if auction is not None else None,
        "auctions": game.auctions.to_dict(),
        "trades": {trade_id: trade.to_dict() for trade_id, trade in game.trades.active_trades.items()},
        "tradeLedger": game.trades.to_dict(),
        "winner": game.winner,
        "hasRolled": game.has_rolled,
        "pendingPurchase": str(game.pending_purchase) if game.pending_purchase is not None else None,
        "lastDiceRoll": list(game.last_dice_roll) if game.last_dice_roll else None,
        "skippingVacation": game.skipping_vacation,
        "drawnCard": game.drawn_card.to_dict() if game.drawn_card is not None else None,
        "gameLog": game.game_log,
        "events": [event.to_dict() for event in game.event_log.events],
        "rngState": _rng_state(game),
    }


def restore_snapshot(doc: Dict[str, Any]) -> GameState:
    """Rebuild a GameState from a stored game document."""
    try:
        settings = GameSettings.from_dict(doc["settings"])
        game = GameState(doc["id"], doc["hostId"], settings, doc.get("name", ""))
        game.status = GameStatus(doc["status"])
        game.version = doc.get("version", 0)

        game.players = {pid: PlayerState.from_dict(data) for pid, data in doc["players"].items()}
        game.turn_order = list(doc["turnOrder"])
        game.current_player_turn = doc.get("currentPlayerTurn")
        game.turn_number = doc.get("turnNumber", 0)
        game.winner = doc.get("winner")

        for key, data in doc["board"].items():
            game.properties[int(key)] = PropertyState.from_dict(data)
        game.vacation_pot = doc.get("vacationPot", 0)
        game.property_visits = {int(k): v for k, v in doc.get("propertyVisits", {}).items()}
        game.jail_count = dict(doc.get("jailCount", {}))
        game.held_jail_cards = dict(doc.get("heldJailCards", {}))

        game.auctions = AuctionManager.from_dict(doc.get("auctions", {}), doc.get("auction"))
        game.trades = TradeManager.from_dict(doc.get("tradeLedger", {}), doc.get("trades", {}))

        game.has_rolled = doc.get("hasRolled", False)
        pending = doc.get("pendingPurchase")
        game.pending_purchase = int(pending) if pending is not None else None
        last_roll = doc.get("lastDiceRoll")
        game.last_dice_roll = tuple(last_roll) if last_roll else None
        game.skipping_vacation = doc.get("skippingVacation", False)
        drawn = doc.get("drawnCard")
        game.drawn_card = get_card(drawn["id"]) if drawn else None

        game.event_log.events = [GameEvent.from_dict(item) for item in doc.get("events", [])]

        rng_state = doc.get("rngState")
        if rng_state:
            version, internal, gauss_next = rng_state
            game.rng.setstate((version, tuple(internal), gauss_next))
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Malformed game document: {e}") from e

    return game
