"""
Main game engine and state management.

GameState methods validate their preconditions first and raise
InvalidActionError with a display reason before touching any state.
"""

import logging
import random
from enum import Enum
from typing import Dict, List, Optional, Tuple

from worldpoly.auction import Auction, AuctionManager, AuctionStatus
from worldpoly.board import Board
from worldpoly.cards import SURPRISE, TREASURE, Card, CardType, draw_card
from worldpoly.config import (
    BOARD_SIZE,
    GO_POSITION,
    JAIL_POSITION,
    PLAYER_COLORS,
    VACATION_POSITION,
    GameSettings,
)
from worldpoly.exceptions import InvalidActionError, ValidationError
from worldpoly.money import EventLog, EventType
from worldpoly.player import PlayerState, PropertyState
from worldpoly.rent import calculate_rent, calculate_tax, count_rent, has_monopoly, rent_exemption
from worldpoly.spaces import CitySpace, OwnableSpace, SpaceType, TaxSpace
from worldpoly.trade import Trade, TradeManager, TradeOffer, TradeStatus

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """Types of actions a player can take."""

    JOIN_GAME = "join_game"
    UPDATE_SETTINGS = "update_settings"
    START_GAME = "start_game"
    ROLL_DICE = "roll_dice"
    END_TURN = "end_turn"
    BUY_PROPERTY = "buy_property"
    DECLINE_PURCHASE = "decline_purchase"
    SELL_PROPERTY = "sell_property"
    MORTGAGE_PROPERTY = "mortgage_property"
    UNMORTGAGE_PROPERTY = "unmortgage_property"
    BUILD_HOUSE = "build_house"
    SELL_HOUSE = "sell_house"
    PAY_JAIL_FINE = "pay_jail_fine"
    USE_JAIL_CARD = "use_jail_card"
    START_AUCTION = "start_auction"
    PLACE_BID = "place_bid"
    SETTLE_AUCTION = "settle_auction"
    CANCEL_AUCTION = "cancel_auction"
    PROPOSE_TRADE = "propose_trade"
    ACCEPT_TRADE = "accept_trade"
    REJECT_TRADE = "reject_trade"
    CANCEL_TRADE = "cancel_trade"
    DECLARE_BANKRUPTCY = "declare_bankruptcy"


class GameStatus(Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


class TurnPhase(Enum):
    """Where the current player stands in the turn state machine."""

    AWAITING_ROLL = "awaiting_roll"
    IN_JAIL = "in_jail"
    AWAITING_DECISION = "awaiting_decision"
    AUCTION = "auction"
    TURN_COMPLETE = "turn_complete"


class Dice:
    """Two independent six-sided dice drawn from the game RNG."""

    def __init__(self, rng: random.Random):
        self.rng = rng

    def roll(self) -> Tuple[int, int]:
        return (self.rng.randint(1, 6), self.rng.randint(1, 6))


class GameState:
    """
    Represents the complete state of a World Monopoly game.
    This is the main interface for the game engine.
    """

    def __init__(self, game_id: str, host_id: str, settings: Optional[GameSettings] = None, name: str = ""):
        self.game_id = game_id
        self.name = name or game_id
        self.host_id = host_id
        self.settings = settings or GameSettings()
        self.status = GameStatus.WAITING
        self.board = Board()
        self.event_log = EventLog()
        self.version = 0

        self.rng = random.Random(self.settings.seed)
        self.dice = Dice(self.rng)

        self.players: Dict[str, PlayerState] = {}
        self.turn_order: List[str] = []
        self.current_player_turn: Optional[str] = None
        self.turn_number = 0
        self.winner: Optional[str] = None

        self.properties: Dict[int, PropertyState] = {
            position: PropertyState() for position in self.board.ownable_positions()
        }
        self.property_visits: Dict[int, int] = {}
        self.jail_count: Dict[str, int] = {}
        self.vacation_pot = 0

        self.auctions = AuctionManager()
        self.trades = TradeManager()

        # Per-turn bookkeeping
        self.has_rolled = False
        self.pending_purchase: Optional[int] = None
        self.last_dice_roll: Optional[Tuple[int, int]] = None
        self.skipping_vacation = False
        self.drawn_card: Optional[Card] = None
        self.held_jail_cards: Dict[str, str] = {}  # deck -> holder

    # === LOOKUPS ===

    @property
    def auction(self) -> Optional[Auction]:
        return self.auctions.active_auction

    @property
    def game_log(self) -> List[str]:
        return self.event_log.messages()

    @property
    def game_over(self) -> bool:
        return self.status == GameStatus.FINISHED

    @property
    def turn_phase(self) -> Optional[TurnPhase]:
        if self.status != GameStatus.IN_PROGRESS or self.current_player_turn is None:
            return None
        if self.auction is not None:
            return TurnPhase.AUCTION
        if self.pending_purchase is not None:
            return TurnPhase.AWAITING_DECISION
        player = self.players[self.current_player_turn]
        if player.in_jail and not self.has_rolled:
            return TurnPhase.IN_JAIL
        if player.on_vacation or (self.has_rolled and player.doubles_count == 0) or player.in_jail:
            return TurnPhase.TURN_COMPLETE
        return TurnPhase.AWAITING_ROLL

    def get_player(self, player_id: str) -> PlayerState:
        player = self.players.get(player_id)
        if player is None:
            raise InvalidActionError("You are not a player in this game.")
        return player

    def get_current_player(self) -> Optional[PlayerState]:
        if self.current_player_turn is None:
            return None
        return self.players.get(self.current_player_turn)

    def get_property(self, position: int) -> Tuple[OwnableSpace, PropertyState]:
        space = self.board.get_ownable_space(position)
        return space, self.properties[position]

    def owner_of(self, position: int) -> Optional[PlayerState]:
        owner_id = self.properties[position].owner
        return self.players.get(owner_id) if owner_id is not None else None

    def jail_fine_for(self, player_id: str) -> int:
        fine = self.settings.jail_fine
        if self.settings.increasing_jail_fine:
            fine += max(0, self.jail_count.get(player_id, 0) - 1) * self.settings.jail_fine_step
        return fine

    # === PRECONDITIONS ===

    def _require_waiting(self) -> None:
        if self.status != GameStatus.WAITING:
            raise InvalidActionError("The game has already started.")

    def _require_in_progress(self) -> None:
        if self.status == GameStatus.WAITING:
            raise InvalidActionError("The game has not started yet.")
        if self.status == GameStatus.FINISHED:
            raise InvalidActionError("The game is over.")

    def _require_host(self, player_id: str) -> None:
        if player_id != self.host_id:
            raise InvalidActionError("Only the host can do that.")

    def _require_current(self, player_id: str) -> PlayerState:
        player = self.get_player(player_id)
        if self.current_player_turn != player_id:
            raise InvalidActionError("It's not your turn!")
        return player

    def _require_no_auction(self) -> None:
        if self.auction is not None:
            raise InvalidActionError("Wait for the auction to finish.")

    def _require_not_auctioned(self, position: int) -> None:
        if self.auction is not None and self.auction.property_id == position:
            raise InvalidActionError("That property is being auctioned.")

    # === MONEY ===

    def _credit(self, player: PlayerState, amount: int) -> None:
        player.money += amount

    def _debit(self, player: PlayerState, amount: int) -> None:
        player.money -= amount

    def _pay_to_pot(self, player: PlayerState, amount: int) -> bool:
        """Debit a player; the money feeds the vacation pot when enabled, else leaves the game."""
        player.money -= amount
        if self.settings.tax_in_vacation_pot:
            self.vacation_pot += amount
            return True
        return False

    def _transfer(self, payer: PlayerState, payee: PlayerState, amount: int) -> None:
        payer.money -= amount
        payee.money += amount

    # === LOBBY ===

    def join_game(self, player_id: str, name: str) -> PlayerState:
        """Add a player while the game is waiting for players."""
        if self.status == GameStatus.FINISHED:
            raise InvalidActionError("The game is over.")
        self._require_waiting()
        if player_id in self.players:
            raise InvalidActionError("You have already joined this game.")
        if len(self.players) >= self.settings.max_players:
            raise InvalidActionError("The game is full.")
        if not name or not name.strip():
            raise InvalidActionError("Please enter a name.")

        used = {p.color for p in self.players.values()}
        color = next(c for c in PLAYER_COLORS if c not in used)
        player = PlayerState(player_id, name.strip(), self.settings.starting_money, color)
        self.players[player_id] = player
        self.turn_order.append(player_id)

        self.event_log.log(
            EventType.PLAYER_JOINED,
            player_id=player_id,
            message=f"{player.name} joined the game.",
            color=color,
        )
        return player

    def update_settings(self, player_id: str, **changes) -> GameSettings:
        """Host-only settings change before the game starts."""
        self._require_host(player_id)
        self._require_waiting()
        try:
            settings = self.settings.with_changes(**changes)
        except ValidationError as e:
            raise InvalidActionError(str(e)) from e
        if settings.max_players < len(self.players):
            raise InvalidActionError("More players have already joined than that limit allows.")

        if settings.starting_money != self.settings.starting_money:
            for player in self.players.values():
                player.money = settings.starting_money
        if settings.seed != self.settings.seed:
            self.rng.seed(settings.seed)
        self.settings = settings

        self.event_log.log(
            EventType.SETTINGS_UPDATED,
            player_id=player_id,
            message="The host updated the game settings.",
            changes=dict(changes),
        )
        return settings

    def start_game(self, player_id: str) -> None:
        """Shuffle the turn order and begin the first turn."""
        self._require_host(player_id)
        self._require_waiting()
        if not self.players:
            raise InvalidActionError("At least one player is needed to start.")

        self.turn_order = list(self.players)
        self.rng.shuffle(self.turn_order)
        self.status = GameStatus.IN_PROGRESS

        self.event_log.log(
            EventType.GAME_START,
            message="The game has started!",
            turn_order=list(self.turn_order),
            starting_money=self.settings.starting_money,
            seed=self.settings.seed,
        )
        self._begin_turn(self.turn_order[0])

    # === TURN FLOW ===

    def _begin_turn(self, player_id: str) -> None:
        player = self.players[player_id]
        self.current_player_turn = player_id
        self.turn_number += 1
        self.has_rolled = False
        self.pending_purchase = None
        self.drawn_card = None
        self.skipping_vacation = player.on_vacation

        self.event_log.log(
            EventType.TURN_START,
            player_id=player_id,
            message=f"It's {player.name}'s turn.",
            turn=self.turn_number,
        )

    def roll_dice(self, player_id: str) -> Tuple[int, int]:
        """
        Roll for the current player and move them.

        Doubles grant another roll; a third consecutive double sends the
        player to jail without resolving the square and ends the turn.
        A jailed player is released by doubles, otherwise their movement
        ends for this turn.
        """
        self._require_in_progress()
        player = self._require_current(player_id)
        self._require_no_auction()
        if player.on_vacation:
            raise InvalidActionError("You are on vacation and must skip this turn. Click 'End Turn' to proceed.")
        if player.money < 0:
            raise InvalidActionError("You must resolve your negative balance before rolling again.")
        if self.pending_purchase is not None:
            space = self.board.get_space(self.pending_purchase)
            raise InvalidActionError(f"Decide whether to buy {space.name} first.")
        if self.has_rolled and (player.in_jail or player.doubles_count == 0):
            raise InvalidActionError("You have already rolled this turn.")

        die1, die2 = self.dice.roll()
        total = die1 + die2
        is_doubles = die1 == die2
        self.last_dice_roll = (die1, die2)
        self.has_rolled = True
        self.drawn_card = None

        self.event_log.log(
            EventType.DICE_ROLL,
            player_id=player_id,
            message=f"{player.name} rolled a {total}{' (doubles!)' if is_doubles else ''}.",
            die1=die1,
            die2=die2,
            total=total,
            doubles=is_doubles,
        )

        if player.in_jail:
            self.event_log.log(
                EventType.JAIL_ATTEMPT,
                player_id=player_id,
                attempt=player.jail_turns,
                doubles=is_doubles,
            )
            player.doubles_count = 0
            if is_doubles:
                self._release_from_jail(player, "doubles")
                self._move_by(player, total, collect_go=False)
                self._resolve_landing(player, total)
            else:
                player.jail_turns += 1
            return (die1, die2)

        player.doubles_count = player.doubles_count + 1 if is_doubles else 0
        if player.doubles_count >= 3:
            self.event_log.log(
                EventType.GO_TO_JAIL,
                player_id=player_id,
                message=f"{player.name} rolled doubles three times in a row!",
                reason="three_doubles",
            )
            self.go_to_jail(player_id)
            self._advance_turn(player)
            return (die1, die2)

        self._move_by(player, total, collect_go=True)
        self._resolve_landing(player, total)
        return (die1, die2)

    def end_turn(self, player_id: str) -> None:
        """
        End the current player's turn.

        After doubles the same player keeps the turn and rolls again.
        """
        self._require_in_progress()
        player = self._require_current(player_id)
        self._require_no_auction()
        if player.money < 0:
            raise InvalidActionError("You must resolve your negative balance before ending your turn.")
        if not (self.has_rolled or player.on_vacation or player.doubles_count > 0):
            raise InvalidActionError("You must roll the dice first.")

        if self.pending_purchase is not None:
            self._log_declined(player, self.pending_purchase)
            self.pending_purchase = None

        if player.doubles_count > 0 and not player.in_jail:
            self.event_log.log(
                EventType.TURN_START,
                player_id=player_id,
                message=f"{player.name} rolled doubles and goes again.",
                turn=self.turn_number,
                extra_roll=True,
            )
            self.has_rolled = False
            self.drawn_card = None
            return

        self._advance_turn(player)

    def _advance_turn(self, player: PlayerState) -> None:
        """Close the player's turn and hand over to the next player in turn order."""
        player.doubles_count = 0
        # jail_turns is the number of the next escape attempt
        if player.in_jail and player.jail_turns > self.settings.max_jail_turns:
            self._release_from_jail(player, "served")
        if player.on_vacation and self.skipping_vacation:
            player.on_vacation = False

        self.event_log.log(EventType.TURN_START, player_id=player.player_id, message=f"{player.name}'s turn ended.", ended=True)
        self._begin_turn(self._next_player_id(player.player_id))

    def _next_player_id(self, player_id: str) -> str:
        index = self.turn_order.index(player_id)
        return self.turn_order[(index + 1) % len(self.turn_order)]

    # === MOVEMENT ===

    def _move_by(self, player: PlayerState, steps: int, collect_go: bool = True) -> int:
        old_position = player.position
        new_position = (old_position + steps) % BOARD_SIZE
        if collect_go and steps > 0 and new_position < old_position:
            self._collect_go(player)
        player.move_to(new_position)
        self.event_log.log(
            EventType.MOVE,
            player_id=player.player_id,
            **{"from": old_position, "to": new_position, "spaces": steps},
        )
        return new_position

    def _move_to(self, player: PlayerState, position: int, collect_go: bool = True) -> None:
        old_position = player.position
        if collect_go and old_position > position:
            self._collect_go(player)
        player.move_to(position)
        self.event_log.log(
            EventType.MOVE,
            player_id=player.player_id,
            **{"from": old_position, "to": position, "direct": True},
        )

    def _collect_go(self, player: PlayerState) -> None:
        """Player collects the GO salary."""
        self._credit(player, self.settings.go_salary)
        self.event_log.log(
            EventType.PASS_GO,
            player_id=player.player_id,
            message=f"{player.name} passed GO and collected ${self.settings.go_salary}.",
            amount=self.settings.go_salary,
            new_balance=player.money,
        )

    # === LANDING RESOLUTION ===

    def _resolve_landing(self, player: PlayerState, dice_total: int) -> None:
        """Apply the effects of the square the player just came to rest on."""
        position = player.position
        space = self.board.get_space(position)
        self.property_visits[position] = self.property_visits.get(position, 0) + 1
        self.event_log.log(
            EventType.LAND,
            player_id=player.player_id,
            message=f"{player.name} landed on {space.name}.",
            position=position,
            space=space.name,
        )

        if space.space_type == SpaceType.GO:
            self._credit(player, self.settings.go_landing_bonus)
            self.event_log.log(
                EventType.GO_BONUS,
                player_id=player.player_id,
                message=f"{player.name} landed on GO and collected ${self.settings.go_landing_bonus}.",
                amount=self.settings.go_landing_bonus,
            )
        elif isinstance(space, OwnableSpace):
            prop = self.properties[position]
            if not prop.is_owned():
                self.pending_purchase = position
            else:
                self._charge_rent(player, space, prop, dice_total)
        elif isinstance(space, TaxSpace):
            self._charge_tax(player, space)
        elif space.space_type == SpaceType.VACATION:
            self._collect_vacation_pot(player)
            player.on_vacation = True
            player.doubles_count = 0
        elif space.space_type == SpaceType.GO_TO_JAIL:
            self.go_to_jail(player.player_id)
        elif space.space_type == SpaceType.TREASURE:
            self._draw_and_apply(player, TREASURE, dice_total)
        elif space.space_type == SpaceType.SURPRISE:
            self._draw_and_apply(player, SURPRISE, dice_total)

    def _charge_rent(self, player: PlayerState, space: OwnableSpace, prop: PropertyState, dice_total: int) -> None:
        owner = self.players.get(prop.owner)
        outcome = calculate_rent(player.player_id, owner, space, prop, dice_total, self.settings, self.board)
        if not outcome.is_due:
            if outcome.skipped == "owner in jail":
                self.event_log.log(
                    EventType.RENT_SKIPPED,
                    player_id=player.player_id,
                    message=f"{owner.name} is in jail and cannot collect rent.",
                    reason=outcome.skipped,
                )
            else:
                self.event_log.log(EventType.RENT_SKIPPED, player_id=player.player_id, reason=outcome.skipped)
            return
        self._pay_rent(player, owner, outcome.amount, space)

    def _pay_rent(self, payer: PlayerState, owner: PlayerState, amount: int, space: OwnableSpace) -> None:
        self._transfer(payer, owner, amount)
        self.event_log.log(
            EventType.RENT_PAYMENT,
            player_id=payer.player_id,
            message=f"{payer.name} paid ${amount} to {owner.name}.",
            owner=owner.player_id,
            property=space.name,
            amount=amount,
            payer_balance=payer.money,
            owner_balance=owner.money,
        )

    def _charge_tax(self, player: PlayerState, space: TaxSpace) -> None:
        amount = calculate_tax(space, player.money)
        to_pot = self._pay_to_pot(player, amount)
        message = f"{player.name} paid ${amount} for {space.name}."
        if to_pot:
            message += " The money goes to the vacation pot."
        self.event_log.log(
            EventType.TAX_PAYMENT,
            player_id=player.player_id,
            message=message,
            amount=amount,
            to_pot=to_pot,
            new_balance=player.money,
        )

    def _collect_vacation_pot(self, player: PlayerState) -> int:
        pot = self.vacation_pot
        self._credit(player, pot)
        self.vacation_pot = 0
        self.event_log.log(
            EventType.VACATION,
            player_id=player.player_id,
            message=f"{player.name} collected ${pot} from the vacation pot!",
            amount=pot,
        )
        return pot

    # === CARDS ===

    def _draw_and_apply(self, player: PlayerState, deck: str, dice_total: int) -> None:
        card = draw_card(deck, self.rng)
        self.drawn_card = card
        label = "Treasure Chest" if deck == TREASURE else "Surprise"
        self.event_log.log(
            EventType.CARD_DRAW,
            player_id=player.player_id,
            message=f"{player.name} drew a {label} card: {card.text}",
            card=card.card_id,
            deck=deck,
        )
        self.apply_card(player.player_id, card, dice_total)

    def apply_card(self, player_id: str, card: Card, dice_total: int = 0) -> None:
        """Interpret a card's effect descriptor for the player who drew it."""
        player = self.players[player_id]
        kind = card.card_type
        others = [p for p in self.players.values() if p.player_id != player_id]

        if kind == CardType.COLLECT:
            self._credit(player, card.value)
        elif kind == CardType.PAY:
            self._pay_to_pot(player, card.value)
        elif kind == CardType.ADVANCE_TO_GO:
            self._move_to(player, GO_POSITION, collect_go=False)
            self._credit(player, card.value)
        elif kind == CardType.MOVE_TO:
            self._move_to(player, card.target_position, collect_go=card.collect_go)
        elif kind == CardType.MOVE_SPACES:
            self._move_by(player, card.value, collect_go=card.value > 0)
            self._resolve_landing(player, dice_total)
        elif kind == CardType.MOVE_TO_NEAREST:
            self._advance_to_nearest(player, card)
        elif kind == CardType.PAY_PER_BUILDING:
            self._pay_to_pot(player, player.houses * card.value + player.hotels * card.value2)
        elif kind == CardType.COLLECT_PER_BUILDING:
            self._credit(player, player.houses * card.value + player.hotels * card.value2)
        elif kind == CardType.COLLECT_FROM_PLAYERS:
            for other in others:
                self._transfer(other, player, card.value)
        elif kind == CardType.PAY_TO_PLAYERS:
            for other in others:
                self._transfer(player, other, card.value)
        elif kind == CardType.COLLECT_VACATION_POT:
            self._collect_vacation_pot(player)
            if card.target_position != VACATION_POSITION:
                self._move_to(player, card.target_position, collect_go=card.collect_go)
            else:
                self._move_to(player, VACATION_POSITION, collect_go=False)
        elif kind == CardType.FREE_VACATION:
            self._move_to(player, VACATION_POSITION, collect_go=False)
            player.doubles_count = 0
            self.has_rolled = True
        elif kind == CardType.GO_TO_JAIL:
            self.go_to_jail(player_id)
        elif kind == CardType.GET_OUT_OF_JAIL:
            if card.deck in self.held_jail_cards:
                self.event_log.log(EventType.CARD_EFFECT, player_id=player_id, card=card.card_id, granted=False)
                return
            self.held_jail_cards[card.deck] = player_id
            player.get_out_of_jail_cards += 1

        self.event_log.log(
            EventType.CARD_EFFECT,
            player_id=player_id,
            card=card.card_id,
            kind=kind.value,
            new_balance=player.money,
            position=player.position,
        )

    def _advance_to_nearest(self, player: PlayerState, card: Card) -> None:
        target = self.board.find_nearest(player.position, card.target_type)
        self._move_to(player, target, collect_go=False)
        space, prop = self.get_property(target)
        if not prop.is_owned():
            self.pending_purchase = target
            return

        owner = self.players.get(prop.owner)
        skipped = rent_exemption(player.player_id, owner, prop, self.settings)
        if skipped is not None:
            self.event_log.log(EventType.RENT_SKIPPED, player_id=player.player_id, reason=skipped)
            return

        if space.space_type == SpaceType.COMPANY:
            die1, die2 = self.dice.roll()
            amount = (die1 + die2) * card.rent_multiplier
            self.event_log.log(
                EventType.DICE_ROLL,
                player_id=player.player_id,
                message=f"{player.name} rolled a {die1 + die2} for the card.",
                die1=die1,
                die2=die2,
                total=die1 + die2,
                doubles=False,
                card=card.card_id,
            )
        else:
            amount = count_rent(space, owner) * card.rent_multiplier
        self._pay_rent(player, owner, amount, space)

    # === JAIL ===

    def go_to_jail(self, player_id: str) -> None:
        """Send a player to jail, bypassing landing resolution."""
        player = self.players[player_id]
        player.move_to(JAIL_POSITION)
        player.in_jail = True
        player.jail_turns = 1
        player.doubles_count = 0
        self.jail_count[player_id] = self.jail_count.get(player_id, 0) + 1
        self.event_log.log(
            EventType.GO_TO_JAIL,
            player_id=player_id,
            message=f"{player.name} was sent to Jail!",
            jail_count=self.jail_count[player_id],
        )

    def _release_from_jail(self, player: PlayerState, method: str) -> None:
        player.in_jail = False
        player.jail_turns = 0
        self.event_log.log(EventType.JAIL_RELEASE, player_id=player.player_id, method=method)

    def pay_jail_fine(self, player_id: str) -> int:
        """Pay the (possibly escalating) fine to leave jail."""
        self._require_in_progress()
        player = self.get_player(player_id)
        if not player.in_jail:
            raise InvalidActionError("You are not in jail.")
        fine = self.jail_fine_for(player_id)
        if player.money < fine:
            raise InvalidActionError("You do not have enough money to pay the fine.")

        self._pay_to_pot(player, fine)
        player.in_jail = False
        player.jail_turns = 0
        self.event_log.log(
            EventType.JAIL_RELEASE,
            player_id=player_id,
            message=f"{player.name} paid a ${fine} fine to get out of jail.",
            method="fine",
            amount=fine,
        )
        return fine

    def use_jail_card(self, player_id: str) -> None:
        """Use a Get Out of Jail Free card and return it to its deck."""
        self._require_in_progress()
        player = self.get_player(player_id)
        if player.get_out_of_jail_cards <= 0:
            raise InvalidActionError("You do not have a Get Out of Jail Free card.")
        if not player.in_jail:
            raise InvalidActionError("You are not in jail.")

        player.get_out_of_jail_cards -= 1
        for deck, holder in list(self.held_jail_cards.items()):
            if holder == player_id:
                del self.held_jail_cards[deck]
                break
        player.in_jail = False
        player.jail_turns = 0
        self.event_log.log(
            EventType.JAIL_RELEASE,
            player_id=player_id,
            message=f"{player.name} used a Get Out of Jail Free card to get out of jail.",
            method="card",
        )

    # === PROPERTY ===

    def buy_property(self, player_id: str, position: int) -> None:
        """Buy the unowned square the current player just landed on."""
        self._require_in_progress()
        player = self._require_current(player_id)
        self._require_no_auction()
        space, prop = self.get_property(position)
        if prop.is_owned():
            raise InvalidActionError(f"{space.name} is already owned.")
        if self.pending_purchase != position:
            raise InvalidActionError(f"You can only buy {space.name} after landing on it.")
        if player.money < space.cost:
            raise InvalidActionError("Not enough money!")

        self._debit(player, space.cost)
        self._assign(position, space, player)
        self.pending_purchase = None
        self.event_log.log(
            EventType.PURCHASE,
            player_id=player_id,
            message=f"{player.name} bought {space.name} for ${space.cost}.",
            property=space.name,
            position=position,
            price=space.cost,
            new_balance=player.money,
        )

    def decline_purchase(self, player_id: str) -> None:
        """Leave the pending square with the bank without an auction."""
        self._require_in_progress()
        player = self._require_current(player_id)
        if self.pending_purchase is None:
            raise InvalidActionError("There is nothing to decline.")
        self._log_declined(player, self.pending_purchase)
        self.pending_purchase = None

    def _log_declined(self, player: PlayerState, position: int) -> None:
        space = self.board.get_space(position)
        self.event_log.log(
            EventType.PURCHASE_DECLINED,
            player_id=player.player_id,
            message=f"{player.name} decided not to buy {space.name}.",
            position=position,
        )

    def _assign(self, position: int, space: OwnableSpace, player: PlayerState) -> None:
        """Set board owner and the player's category list in lockstep."""
        self.properties[position].owner = player.player_id
        player.add_property(space.category, position)

    def _unassign(self, position: int, space: OwnableSpace, player: PlayerState) -> None:
        self.properties[position].owner = None
        player.remove_property(space.category, position)

    def sell_property(self, player_id: str, position: int) -> int:
        """Sell an unimproved, unmortgaged property back to the bank for half its cost."""
        self._require_in_progress()
        player = self.get_player(player_id)
        space, prop = self.get_property(position)
        if prop.has_buildings():
            raise InvalidActionError("You must sell all houses and hotels before selling the property.")
        if prop.mortgaged:
            raise InvalidActionError("You must unmortgage the property before selling it.")
        if prop.owner != player_id:
            raise InvalidActionError(f"You do not own {space.name}.")
        self._require_not_auctioned(position)

        value = space.sale_value
        self._credit(player, value)
        self._unassign(position, space, player)
        prop.reset()
        self.event_log.log(
            EventType.PROPERTY_SOLD,
            player_id=player_id,
            message=f"{player.name} sold {space.name} back to the bank for ${value}.",
            position=position,
            amount=value,
        )
        return value

    def mortgage_property(self, player_id: str, position: int) -> int:
        self._require_in_progress()
        if not self.settings.allow_mortgage:
            raise InvalidActionError("Mortgaging is disabled for this game.")
        player = self.get_player(player_id)
        space, prop = self.get_property(position)
        if prop.has_buildings():
            raise InvalidActionError("You must sell all houses and hotels before mortgaging.")
        if prop.owner != player_id:
            raise InvalidActionError("You can only mortgage your own properties.")
        if prop.mortgaged:
            raise InvalidActionError(f"{space.name} is already mortgaged.")
        self._require_not_auctioned(position)

        value = space.mortgage_value
        prop.mortgaged = True
        self._credit(player, value)
        self.event_log.log(
            EventType.MORTGAGE,
            player_id=player_id,
            message=f"{player.name} mortgaged {space.name} for ${value}.",
            position=position,
            amount=value,
        )
        return value

    def unmortgage_property(self, player_id: str, position: int) -> int:
        self._require_in_progress()
        if not self.settings.allow_mortgage:
            raise InvalidActionError("Mortgaging is disabled for this game.")
        player = self.get_player(player_id)
        space, prop = self.get_property(position)
        if prop.owner != player_id:
            raise InvalidActionError("You can only unmortgage your own properties.")
        if not prop.mortgaged:
            raise InvalidActionError(f"{space.name} is not mortgaged.")
        cost = space.unmortgage_cost
        if player.money < cost:
            raise InvalidActionError(f"You need ${cost} to unmortgage.")

        prop.mortgaged = False
        self._debit(player, cost)
        self.event_log.log(
            EventType.UNMORTGAGE,
            player_id=player_id,
            message=f"{player.name} unmortgaged {space.name}.",
            position=position,
            amount=cost,
        )
        return cost

    # === BUILDINGS ===

    def _require_city(self, position: int) -> Tuple[CitySpace, PropertyState]:
        space, prop = self.get_property(position)
        if not isinstance(space, CitySpace):
            raise InvalidActionError("Houses can only be built on cities.")
        return space, prop

    def build_house(self, player_id: str, position: int) -> None:
        """
        Build on a city of a completed country set.

        A fifth build on a four-house city turns it into a hotel.
        """
        self._require_in_progress()
        player = self.get_player(player_id)
        space, prop = self._require_city(position)
        if prop.owner != player_id:
            raise InvalidActionError(f"You do not own {space.name}.")
        if not has_monopoly(player, space, self.board):
            raise InvalidActionError("You need to own all cities in a country to build houses.")
        if prop.mortgaged:
            raise InvalidActionError("You cannot build on a mortgaged property.")
        if player.money < space.house_cost:
            raise InvalidActionError(f"You need ${space.house_cost} to build a house.")
        if prop.has_hotel():
            raise InvalidActionError("You cannot build any more on this property.")

        self._debit(player, space.house_cost)
        if prop.houses >= 4:
            prop.houses = 0
            prop.hotels = 1
            player.houses -= 4
            player.hotels += 1
            event_type, what = EventType.BUILD_HOTEL, "a hotel"
        else:
            prop.houses += 1
            player.houses += 1
            event_type, what = EventType.BUILD_HOUSE, "a house"

        self.event_log.log(
            event_type,
            player_id=player_id,
            message=f"{player.name} built {what} in {space.name}.",
            position=position,
            cost=space.house_cost,
            houses=prop.houses,
            hotels=prop.hotels,
        )

    def sell_house(self, player_id: str, position: int) -> int:
        """Sell one building for half the house cost; a sold hotel reverts to four houses."""
        self._require_in_progress()
        player = self.get_player(player_id)
        space, prop = self._require_city(position)
        if prop.owner != player_id:
            raise InvalidActionError(f"You do not own {space.name}.")
        if not prop.has_buildings():
            raise InvalidActionError("There are no houses or hotels to sell on this property.")

        price = space.house_cost // 2
        if prop.has_hotel():
            prop.hotels = 0
            prop.houses = 4
            player.hotels -= 1
            player.houses += 4
            what = "a hotel"
        else:
            prop.houses -= 1
            player.houses -= 1
            what = "a house"
        self._credit(player, price)

        self.event_log.log(
            EventType.SELL_BUILDING,
            player_id=player_id,
            message=f"{player.name} sold {what} in {space.name} for ${price}.",
            position=position,
            amount=price,
            houses=prop.houses,
            hotels=prop.hotels,
        )
        return price

    # === AUCTIONS ===

    def start_auction(
        self,
        player_id: str,
        position: int,
        now: float,
        starting_bid: Optional[int] = None,
        seller_id: Optional[str] = None,
    ) -> Auction:
        """
        Open an auction for a property.

        Without a seller the bank auctions an unowned square; with one the
        owner puts their own square up for a fire sale.
        """
        self._require_in_progress()
        self.get_player(player_id)
        self._require_no_auction()
        space, prop = self.get_property(position)

        if seller_id is not None:
            if seller_id != player_id:
                raise InvalidActionError("Only the owner can auction a property.")
            if not self.settings.allow_owned_property_auctions or self.current_player_turn != seller_id:
                raise InvalidActionError("Auctioning owned properties is disabled or it is not your turn.")
            if prop.owner != seller_id:
                raise InvalidActionError(f"You do not own {space.name}.")
            if prop.has_buildings():
                raise InvalidActionError("You must sell all houses and hotels before auctioning.")
        else:
            if not self.settings.allow_auctions:
                raise InvalidActionError("Auctions for unowned properties are disabled for this game.")
            if prop.is_owned():
                raise InvalidActionError(f"{space.name} is already owned.")
            if player_id not in (self.current_player_turn, self.host_id):
                raise InvalidActionError("It's not your turn!")

        if starting_bid is None:
            starting_bid = space.cost // 2
        if starting_bid < 0:
            raise InvalidActionError("The starting bid cannot be negative.")

        auction = self.auctions.open_auction(
            position, space.name, starting_bid, self.settings.auction_countdown_seconds, now, seller_id
        )
        if self.pending_purchase == position:
            self.pending_purchase = None

        self.event_log.log(
            EventType.AUCTION_START,
            player_id=player_id,
            message=auction.log[0],
            property=space.name,
            position=position,
            starting_bid=starting_bid,
            seller=seller_id,
        )
        return auction

    def place_bid(self, player_id: str, amount: int, now: float) -> None:
        self._require_in_progress()
        player = self.get_player(player_id)
        auction = self.auction
        if auction is None:
            raise InvalidActionError("There is no active auction.")
        if auction.is_expired(now):
            raise InvalidActionError("The auction has ended.")
        if amount > player.money:
            raise InvalidActionError("You cannot bid more money than you have.")

        auction.place_bid(player_id, amount, now)
        message = f"{player.name} bid ${amount}."
        auction.log.append(message)
        self.event_log.log(
            EventType.AUCTION_BID,
            player_id=player_id,
            message=message,
            property=auction.property_name,
            amount=amount,
        )

    def settle_auction(self, player_id: str, now: float) -> Optional[Tuple[str, int]]:
        """
        Host-only settlement once the countdown has elapsed.

        The winner is taken from the full bid ledger. Fire-sale sellers get
        the winning bid less the fire-sale tax, which feeds the pot when
        enabled.
        """
        self._require_in_progress()
        self._require_host(player_id)
        auction = self.auction
        if auction is None:
            raise InvalidActionError("There is no active auction.")
        if not auction.is_expired(now):
            raise InvalidActionError("The auction is still running.")

        result = auction.settle()
        self.auctions.close_auction()
        space, prop = self.get_property(auction.property_id)

        if result is None:
            self.event_log.log(
                EventType.AUCTION_END,
                message=f"The auction for {space.name} ended with no bids.",
                position=auction.property_id,
                winner=None,
            )
            return None

        winner_id, amount = result
        winner = self.players[winner_id]
        self._debit(winner, amount)
        seller = self.players.get(auction.seller_id) if auction.seller_id else None
        if seller is not None:
            self._unassign(auction.property_id, space, seller)
            proceeds = amount * (100 - self.settings.fire_sale_tax_percent) // 100
            self._credit(seller, proceeds)
            if self.settings.tax_in_vacation_pot:
                self.vacation_pot += amount - proceeds
        self._assign(auction.property_id, space, winner)

        self.event_log.log(
            EventType.AUCTION_END,
            player_id=winner_id,
            message=f"{winner.name} won the auction for {space.name} with a bid of ${amount}!",
            position=auction.property_id,
            winner=winner_id,
            winning_bid=amount,
            seller=auction.seller_id,
        )
        return result

    def cancel_auction(self, player_id: str) -> None:
        self._require_in_progress()
        self._require_host(player_id)
        auction = self.auction
        if auction is None:
            raise InvalidActionError("There is no active auction.")
        auction.cancel()
        self.auctions.close_auction()
        self.event_log.log(
            EventType.AUCTION_CANCELLED,
            player_id=player_id,
            message=f"The auction for {auction.property_name} was cancelled.",
            position=auction.property_id,
        )

    # === TRADES ===

    def _validate_side(self, player: PlayerState, side: TradeOffer, label: str) -> None:
        if side.money < 0:
            raise InvalidActionError("Trade amounts cannot be negative.")
        if side.money > player.money:
            raise InvalidActionError(f"{player.name} does not have ${side.money} to {label}.")
        for position in side.properties:
            space, prop = self.get_property(position)
            if prop.owner != player.player_id:
                raise InvalidActionError(f"{player.name} does not own {space.name}.")
            if prop.has_buildings():
                raise InvalidActionError(f"Sell the buildings on {space.name} before trading it.")
            self._require_not_auctioned(position)

    def propose_trade(self, player_id: str, to_player: str, offer: TradeOffer, request: TradeOffer) -> Trade:
        self._require_in_progress()
        proposer = self.get_player(player_id)
        if to_player == player_id:
            raise InvalidActionError("You cannot trade with yourself.")
        counterparty = self.players.get(to_player)
        if counterparty is None:
            raise InvalidActionError("That player is not in this game.")
        offer = TradeOffer(offer.money, list(dict.fromkeys(offer.properties)))
        request = TradeOffer(request.money, list(dict.fromkeys(request.properties)))
        if offer.is_empty() and request.is_empty():
            raise InvalidActionError("A trade must include money or properties.")
        self._validate_side(proposer, offer, "offer")
        self._validate_side(counterparty, request, "give")

        trade = self.trades.create_trade(player_id, to_player, offer, request)
        self.event_log.log(
            EventType.TRADE_PROPOSED,
            player_id=player_id,
            message=f"{proposer.name} proposed a trade to {counterparty.name}.",
            trade_id=trade.trade_id,
            offer=repr(offer),
            request=repr(request),
        )
        return trade

    def _get_trade(self, trade_id: str) -> Trade:
        trade = self.trades.get_trade(trade_id)
        if trade is None:
            raise InvalidActionError("That trade is no longer available.")
        return trade

    def accept_trade(self, player_id: str, trade_id: str) -> None:
        """
        Accept a pending trade.

        Both sides are re-validated against the latest state and both
        post-trade balances must be non-negative, or nothing changes.
        """
        self._require_in_progress()
        trade = self._get_trade(trade_id)
        if trade.to_player != player_id:
            raise InvalidActionError("Only the recipient can accept this trade.")
        proposer = self.get_player(trade.from_player)
        recipient = self.get_player(trade.to_player)
        self._validate_side(proposer, trade.offer, "offer")
        self._validate_side(recipient, trade.request, "give")

        proposer_money = proposer.money - trade.offer.money + trade.request.money
        recipient_money = recipient.money - trade.request.money + trade.offer.money
        if proposer_money < 0 or recipient_money < 0:
            raise InvalidActionError("Insufficient funds to complete the trade.")

        proposer.money = proposer_money
        recipient.money = recipient_money
        for position in trade.offer.properties:
            space = self.board.get_ownable_space(position)
            self._unassign(position, space, proposer)
            self._assign(position, space, recipient)
        for position in trade.request.properties:
            space = self.board.get_ownable_space(position)
            self._unassign(position, space, recipient)
            self._assign(position, space, proposer)

        self.trades.complete_trade(trade_id, TradeStatus.ACCEPTED)
        self.event_log.log(
            EventType.TRADE_ACCEPTED,
            player_id=player_id,
            message=f"{recipient.name} accepted the trade from {proposer.name}.",
            trade_id=trade_id,
            proposer=proposer.player_id,
            recipient=recipient.player_id,
        )

    def reject_trade(self, player_id: str, trade_id: str) -> None:
        self._require_in_progress()
        trade = self._get_trade(trade_id)
        if trade.to_player != player_id:
            raise InvalidActionError("Only the recipient can reject this trade.")
        self.trades.complete_trade(trade_id, TradeStatus.REJECTED)
        self.event_log.log(
            EventType.TRADE_REJECTED,
            player_id=player_id,
            message=f"{self.players[player_id].name} rejected the trade.",
            trade_id=trade_id,
        )

    def cancel_trade(self, player_id: str, trade_id: str) -> None:
        self._require_in_progress()
        trade = self._get_trade(trade_id)
        if trade.from_player != player_id:
            raise InvalidActionError("Only the proposer can cancel this trade.")
        self.trades.complete_trade(trade_id, TradeStatus.CANCELLED)
        self.event_log.log(
            EventType.TRADE_CANCELLED,
            player_id=player_id,
            message=f"{self.players[player_id].name} cancelled their trade offer.",
            trade_id=trade_id,
        )

    # === BANKRUPTCY ===

    def declare_bankruptcy(self, player_id: str) -> None:
        """
        Remove a player from the game and return their properties to the bank.

        The last player standing wins.
        """
        self._require_in_progress()
        player = self.get_player(player_id)

        if list(self.players) == [player_id]:
            self._finish(player_id, f"{player.name} is the last one standing and wins the game!")
            return

        returned = []
        for position, prop in self.properties.items():
            if prop.owner == player_id:
                prop.reset()
                returned.append(position)

        auction = self.auction
        if auction is not None:
            if auction.seller_id == player_id:
                auction.status = AuctionStatus.CANCELLED
                self.auctions.close_auction()
            else:
                auction.drop_bidder(player_id)
        self.trades.drop_player(player_id)
        for deck in [d for d, holder in self.held_jail_cards.items() if holder == player_id]:
            del self.held_jail_cards[deck]

        was_current = self.current_player_turn == player_id
        next_player_id = self._next_player_id(player_id) if was_current else None
        del self.players[player_id]
        self.turn_order.remove(player_id)
        if self.host_id == player_id:
            self.host_id = self.turn_order[0]

        self.event_log.log(
            EventType.BANKRUPTCY,
            player_id=player_id,
            message=f"{player.name} has declared bankruptcy!",
            properties=returned,
        )

        if len(self.players) == 1:
            winner_id = next(iter(self.players))
            self._finish(winner_id, f"The game is over! {self.players[winner_id].name} is the winner!")
            return
        if was_current:
            self._begin_turn(next_player_id)

    def _finish(self, winner_id: str, message: str) -> None:
        self.status = GameStatus.FINISHED
        self.winner = winner_id
        self.pending_purchase = None
        self.event_log.log(EventType.GAME_END, player_id=winner_id, message=message, winner=winner_id)
        logger.info("Game %s finished, winner %s", self.game_id, winner_id)


def create_game(
    game_id: str,
    host_id: str,
    host_name: str,
    settings: Optional[GameSettings] = None,
    name: str = "",
) -> GameState:
    """
    Create a new game waiting for players, with the host seated first.

    Args:
        game_id: Room identifier
        host_id: Player id of the host
        host_name: Display name of the host
        settings: Rule toggles; defaults apply when omitted
        name: Optional display name for the room

    Returns:
        Initialized GameState
    """
    game = GameState(game_id, host_id, settings, name)
    game.event_log.log(EventType.GAME_CREATED, player_id=host_id, message=f"{host_name} created the game.")
    game.join_game(host_id, host_name)
    return game
