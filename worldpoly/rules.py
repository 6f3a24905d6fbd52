"""
High-level rules API for controlling game flow.
This module provides the public interface for game commands and legal move detection.
"""

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from worldpoly.exceptions import InvalidActionError, MonopolyError, UnknownPropertyError
from worldpoly.game import ActionType, GameState, GameStatus
from worldpoly.money import GameEvent
from worldpoly.rent import has_monopoly
from worldpoly.spaces import CitySpace
from worldpoly.trade import TradeOffer

logger = logging.getLogger(__name__)


class Action:
    """Represents a game action that can be taken."""

    def __init__(self, action_type: ActionType, **params: Any):
        self.action_type = action_type
        self.params = params

    def __repr__(self) -> str:
        return f"Action({self.action_type.value}, {self.params})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Action):
            return NotImplemented
        return self.action_type == other.action_type and self.params == other.params

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.action_type.value, "params": dict(self.params)}


@dataclass
class CommandResult:
    """Outcome of dispatching one command."""

    ok: bool
    state: GameState
    reason: Optional[str] = None
    events: List[GameEvent] = field(default_factory=list)
    value: Any = None


def _position(params: Dict[str, Any], key: str = "position") -> int:
    raw = params.get(key)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise UnknownPropertyError(f"Unknown property id: {raw!r}")


def _offer(raw: Any) -> TradeOffer:
    if isinstance(raw, TradeOffer):
        return raw
    try:
        return TradeOffer.from_dict(raw)
    except (AttributeError, TypeError, ValueError):
        raise InvalidActionError("Invalid trade terms.")


def _amount(params: Dict[str, Any], key: str) -> Optional[int]:
    raw = params.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidActionError("Amounts must be whole numbers.")
    return raw


def _text(params: Dict[str, Any], key: str, what: str, required: bool = True) -> Optional[str]:
    raw = params.get(key)
    if raw is None and not required:
        return None
    if not isinstance(raw, str):
        raise InvalidActionError(f"Invalid {what}.")
    return raw


def _trade_id(params: Dict[str, Any]) -> str:
    return _text(params, "trade_id", "trade id")


def _player_ref(params: Dict[str, Any], key: str, required: bool = True) -> Optional[str]:
    return _text(params, key, "player id", required)


def _changes(params: Dict[str, Any]) -> Dict[str, Any]:
    raw = params.get("changes", {})
    if not isinstance(raw, dict) or not all(isinstance(k, str) for k in raw):
        raise InvalidActionError("Settings changes must be a mapping of setting names to values.")
    return raw


def apply_action(game_state: GameState, action: Action, player_id: str, now: Optional[float] = None) -> Any:
    """
    Apply an action to the game state in place.

    Args:
        game_state: State to mutate
        action: Action to execute
        player_id: Player performing the action
        now: Wall-clock time for auction deadlines

    Returns:
        The value returned by the engine operation

    Raises:
        MonopolyError: if the action is not legal
    """
    now = time.time() if now is None else now
    params = action.params
    kind = action.action_type

    if kind == ActionType.JOIN_GAME:
        return game_state.join_game(player_id, _text(params, "name", "name", required=False) or "")
    if kind == ActionType.UPDATE_SETTINGS:
        return game_state.update_settings(player_id, **_changes(params))
    if kind == ActionType.START_GAME:
        return game_state.start_game(player_id)
    if kind == ActionType.ROLL_DICE:
        return game_state.roll_dice(player_id)
    if kind == ActionType.END_TURN:
        return game_state.end_turn(player_id)
    if kind == ActionType.BUY_PROPERTY:
        return game_state.buy_property(player_id, _position(params))
    if kind == ActionType.DECLINE_PURCHASE:
        return game_state.decline_purchase(player_id)
    if kind == ActionType.SELL_PROPERTY:
        return game_state.sell_property(player_id, _position(params))
    if kind == ActionType.MORTGAGE_PROPERTY:
        return game_state.mortgage_property(player_id, _position(params))
    if kind == ActionType.UNMORTGAGE_PROPERTY:
        return game_state.unmortgage_property(player_id, _position(params))
    if kind == ActionType.BUILD_HOUSE:
        return game_state.build_house(player_id, _position(params))
    if kind == ActionType.SELL_HOUSE:
        return game_state.sell_house(player_id, _position(params))
    if kind == ActionType.PAY_JAIL_FINE:
        return game_state.pay_jail_fine(player_id)
    if kind == ActionType.USE_JAIL_CARD:
        return game_state.use_jail_card(player_id)
    if kind == ActionType.START_AUCTION:
        return game_state.start_auction(
            player_id,
            _position(params),
            now,
            starting_bid=_amount(params, "starting_bid"),
            seller_id=_player_ref(params, "seller_id", required=False),
        )
    if kind == ActionType.PLACE_BID:
        amount = _amount(params, "amount")
        if amount is None:
            raise InvalidActionError("Enter a bid amount.")
        return game_state.place_bid(player_id, amount, now)
    if kind == ActionType.SETTLE_AUCTION:
        return game_state.settle_auction(player_id, now)
    if kind == ActionType.CANCEL_AUCTION:
        return game_state.cancel_auction(player_id)
    if kind == ActionType.PROPOSE_TRADE:
        return game_state.propose_trade(
            player_id,
            _player_ref(params, "to_player"),
            _offer(params.get("offer")),
            _offer(params.get("request")),
        )
    if kind == ActionType.ACCEPT_TRADE:
        return game_state.accept_trade(player_id, _trade_id(params))
    if kind == ActionType.REJECT_TRADE:
        return game_state.reject_trade(player_id, _trade_id(params))
    if kind == ActionType.CANCEL_TRADE:
        return game_state.cancel_trade(player_id, _trade_id(params))
    if kind == ActionType.DECLARE_BANKRUPTCY:
        return game_state.declare_bankruptcy(player_id)

    raise InvalidActionError(f"Unknown action: {kind}")


def dispatch(game_state: GameState, action: Action, player_id: str, now: Optional[float] = None) -> CommandResult:
    """
    Pure reducer: (state, command) -> (state, events).

    The action runs against a copy, so a rejected command returns the
    original state untouched and never partially applies.
    """
    working = copy.deepcopy(game_state)
    mark = len(working.event_log)
    try:
        value = apply_action(working, action, player_id, now)
    except UnknownPropertyError as e:
        logger.error("Game %s: %s rejected, %s", game_state.game_id, action, e)
        return CommandResult(ok=False, state=game_state, reason=str(e))
    except MonopolyError as e:
        logger.info("Game %s: %s by %s rejected: %s", game_state.game_id, action, player_id, e)
        return CommandResult(ok=False, state=game_state, reason=str(e))

    return CommandResult(ok=True, state=working, events=working.event_log.since(mark), value=value)


def get_legal_actions(game_state: GameState, player_id: str) -> List[Action]:
    """
    Get all legal actions available to a player.

    This is the main interface for clients to decide which controls to enable.

    Args:
        game_state: Current game state
        player_id: Player to get actions for

    Returns:
        List of legal Action objects
    """
    if game_state.status == GameStatus.FINISHED:
        return []

    if game_state.status == GameStatus.WAITING:
        return _get_lobby_actions(game_state, player_id)

    player = game_state.players.get(player_id)
    if player is None:
        return []

    actions: List[Action] = []

    # During an auction the turn is suspended; only bidding and host controls remain
    auction = game_state.auction
    if auction is not None:
        if player_id != auction.seller_id and player.money > auction.current_bid:
            actions.append(Action(ActionType.PLACE_BID, min_amount=auction.current_bid + 1))
        if player_id == game_state.host_id:
            actions.append(Action(ActionType.SETTLE_AUCTION))
            if not auction.has_bids():
                actions.append(Action(ActionType.CANCEL_AUCTION))
        actions.extend(_get_trade_actions(game_state, player_id))
        actions.append(Action(ActionType.DECLARE_BANKRUPTCY))
        return actions

    if game_state.current_player_turn == player_id:
        actions.extend(_get_turn_actions(game_state, player_id))

    actions.extend(_get_property_management_actions(game_state, player_id))
    actions.extend(_get_trade_actions(game_state, player_id))
    actions.append(Action(ActionType.DECLARE_BANKRUPTCY))
    return actions


def _get_lobby_actions(game_state: GameState, player_id: str) -> List[Action]:
    actions: List[Action] = []
    if player_id not in game_state.players and len(game_state.players) < game_state.settings.max_players:
        actions.append(Action(ActionType.JOIN_GAME))
    if player_id == game_state.host_id:
        actions.append(Action(ActionType.UPDATE_SETTINGS))
        actions.append(Action(ActionType.START_GAME))
    return actions


def _get_turn_actions(game_state: GameState, player_id: str) -> List[Action]:
    """Rolling, buying and ending the turn for the current player."""
    actions: List[Action] = []
    player = game_state.players[player_id]

    if player.in_jail and not game_state.has_rolled:
        actions.append(Action(ActionType.ROLL_DICE))
        if player.money >= game_state.jail_fine_for(player_id):
            actions.append(Action(ActionType.PAY_JAIL_FINE))
        if player.get_out_of_jail_cards > 0:
            actions.append(Action(ActionType.USE_JAIL_CARD))
        return actions

    # A pending purchase must be decided before rolling again
    if game_state.pending_purchase is not None:
        position = game_state.pending_purchase
        space, _ = game_state.get_property(position)
        if player.money >= space.cost:
            actions.append(Action(ActionType.BUY_PROPERTY, position=position))
        if game_state.settings.allow_auctions:
            actions.append(Action(ActionType.START_AUCTION, position=position))
        actions.append(Action(ActionType.DECLINE_PURCHASE))
        return actions

    can_roll = not player.on_vacation and player.money >= 0 and (
        not game_state.has_rolled or (player.doubles_count > 0 and not player.in_jail)
    )
    if can_roll:
        actions.append(Action(ActionType.ROLL_DICE))

    if player.money >= 0 and (game_state.has_rolled or player.on_vacation or player.doubles_count > 0):
        actions.append(Action(ActionType.END_TURN))

    if game_state.settings.allow_owned_property_auctions:
        for position in player.properties:
            if not game_state.properties[position].has_buildings():
                actions.append(Action(ActionType.START_AUCTION, position=position, seller_id=player_id))

    return actions


def _get_property_management_actions(game_state: GameState, player_id: str) -> List[Action]:
    """Get actions related to building, mortgaging, etc."""
    actions: List[Action] = []
    player = game_state.players[player_id]
    settings = game_state.settings

    for position in player.properties:
        space, prop = game_state.get_property(position)

        if isinstance(space, CitySpace):
            if (
                not prop.mortgaged
                and not prop.has_hotel()
                and player.money >= space.house_cost
                and has_monopoly(player, space, game_state.board)
            ):
                actions.append(Action(ActionType.BUILD_HOUSE, position=position))
            if prop.has_buildings():
                actions.append(Action(ActionType.SELL_HOUSE, position=position))

        if prop.has_buildings():
            continue

        if not prop.mortgaged:
            actions.append(Action(ActionType.SELL_PROPERTY, position=position))
            if settings.allow_mortgage:
                actions.append(Action(ActionType.MORTGAGE_PROPERTY, position=position))
        elif settings.allow_mortgage and player.money >= space.unmortgage_cost:
            actions.append(Action(ActionType.UNMORTGAGE_PROPERTY, position=position))

    return actions


def _get_trade_actions(game_state: GameState, player_id: str) -> List[Action]:
    """Get available trade actions for a player."""
    actions: List[Action] = []

    for trade in game_state.trades.trades_for_player(player_id):
        if trade.to_player == player_id:
            actions.append(Action(ActionType.ACCEPT_TRADE, trade_id=trade.trade_id))
            actions.append(Action(ActionType.REJECT_TRADE, trade_id=trade.trade_id))
        else:
            actions.append(Action(ActionType.CANCEL_TRADE, trade_id=trade.trade_id))

    if len(game_state.players) > 1:
        actions.append(Action(ActionType.PROPOSE_TRADE))

    return actions
