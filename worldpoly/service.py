"""
Game service: the application layer between transports and the store.

Routes commands to the versioned store, fans committed updates out to
subscribers, and owns the auction countdown: when an auction's deadline
passes without a new bid, the service settles it on the host's behalf.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Set, Union

from worldpoly.config import GameSettings
from worldpoly.exceptions import MonopolyError
from worldpoly.game import ActionType, GameState, create_game
from worldpoly.rules import Action, CommandResult, get_legal_actions
from worldpoly.settings import EngineSettings, get_settings
from worldpoly.snapshot import serialize_snapshot
from worldpoly.store import GameStore

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 256


class GameService:
    """Entry point for creating, joining and playing games."""

    def __init__(self, store: GameStore, settings: Optional[EngineSettings] = None):
        self.store = store
        self.settings = settings or get_settings()
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._auction_timers: Dict[str, asyncio.Task] = {}

    # ---- Lobby ----

    async def create_game(
        self,
        host_id: str,
        host_name: str,
        settings: Union[GameSettings, Dict[str, Any], None] = None,
        name: str = "",
        game_id: Optional[str] = None,
    ) -> GameState:
        """Create a game with the host seated; returns the stored state."""
        defaults = GameSettings(auction_countdown_seconds=self.settings.auction_countdown_seconds)
        if isinstance(settings, dict):
            settings = defaults.with_changes(**settings)
        elif settings is None:
            settings = defaults

        game_id = game_id or uuid.uuid4().hex[:12]
        game = create_game(game_id, host_id, host_name, settings, name)
        return await self.store.create(game)

    async def join(
        self, game_id: str, player_id: str, name: str, expected_version: Optional[int] = None
    ) -> CommandResult:
        return await self.execute(
            game_id, Action(ActionType.JOIN_GAME, name=name), player_id, expected_version=expected_version
        )

    # ---- Commands ----

    async def execute(
        self,
        game_id: str,
        action: Action,
        player_id: str,
        expected_version: Optional[int] = None,
        now: Optional[float] = None,
    ) -> CommandResult:
        """
        Apply a command and publish the result.

        Raises:
            GameNotFoundError: unknown game
            StaleStateError: expected_version is outdated
        """
        result = await self.store.execute(game_id, action, player_id, expected_version, now)
        if result.ok:
            await self._publish(game_id, result)
            self._sync_auction_timer(game_id, result.state)
        return result

    async def snapshot(self, game_id: str) -> Dict[str, Any]:
        return await self.store.snapshot(game_id)

    async def legal_actions(self, game_id: str, player_id: str) -> List[Action]:
        state = await self.store.load(game_id)
        return get_legal_actions(state, player_id)

    # ---- Subscriptions ----

    async def subscribe(self, game_id: str) -> asyncio.Queue:
        """Register a subscriber; the first message is the current snapshot."""
        doc = await self.store.snapshot(game_id)
        q: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        await q.put({"type": "snapshot", "gameId": game_id, "version": doc["version"], "snapshot": doc})
        self._subscribers.setdefault(game_id, set()).add(q)
        return q

    async def unsubscribe(self, game_id: str, q: asyncio.Queue) -> None:
        clients = self._subscribers.get(game_id)
        if clients is None:
            return
        clients.discard(q)
        if not clients:
            del self._subscribers[game_id]

    async def _publish(self, game_id: str, result: CommandResult) -> None:
        clients = self._subscribers.get(game_id)
        if not clients:
            return
        payload = {
            "type": "update",
            "gameId": game_id,
            "version": result.state.version,
            "events": [event.to_dict() for event in result.events],
            "snapshot": serialize_snapshot(result.state),
        }
        for q in list(clients):
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                # Drop clients that cannot keep up
                logger.warning("Game %s: dropping slow subscriber", game_id)
                clients.discard(q)

    # ---- Auction countdown ----

    def _sync_auction_timer(self, game_id: str, state: GameState) -> None:
        """Restart the countdown for the open auction, or stop it if none is open."""
        task = self._auction_timers.pop(game_id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        auction = state.auction
        if auction is None:
            return
        self._auction_timers[game_id] = asyncio.create_task(
            self._settle_when_due(game_id, auction.deadline),
            name=f"auction-{game_id}-{auction.auction_id}",
        )

    async def _settle_when_due(self, game_id: str, deadline: float) -> None:
        await asyncio.sleep(max(0.0, deadline - time.time()))
        state = await self.store.load(game_id)
        if state.auction is None:
            return

        try:
            result = await self.execute(game_id, Action(ActionType.SETTLE_AUCTION), state.host_id)
        except MonopolyError as e:
            logger.warning("Game %s: automatic auction settlement failed: %s", game_id, e)
            self._sync_auction_timer(game_id, await self.store.load(game_id))
            return
        if not result.ok:
            logger.warning("Game %s: automatic auction settlement failed: %s", game_id, result.reason)
            # A bid may have moved the deadline between the load and the command
            self._sync_auction_timer(game_id, result.state)

    def has_auction_timer(self, game_id: str) -> bool:
        task = self._auction_timers.get(game_id)
        return task is not None and not task.done()

    async def shutdown(self) -> None:
        """Cancel pending countdowns."""
        tasks = list(self._auction_timers.values())
        self._auction_timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._subscribers.clear()
