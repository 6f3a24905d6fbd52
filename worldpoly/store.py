"""
Versioned game document store.

The store is the single authoritative writer for every game: a command is
applied by reading the latest document, running the reducer and writing
the result back with the next version in one atomic unit. Writes against
an outdated version are rejected with StaleStateError.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional

from worldpoly.exceptions import GameNotFoundError, StaleStateError, ValidationError
from worldpoly.game import GameState
from worldpoly.money import GameEvent
from worldpoly.rules import Action, CommandResult, dispatch
from worldpoly.snapshot import restore_snapshot, serialize_snapshot

logger = logging.getLogger(__name__)


class GameStore:
    """
    Base class for game stores.

    Subclasses provide raw document persistence; locking, version checks
    and the reducer call live here.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, game_id: str) -> asyncio.Lock:
        lock = self._locks.get(game_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[game_id] = lock
        return lock

    # ---- Persistence hooks ----

    async def _insert(self, doc: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def _fetch(self, game_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def _commit(self, doc: Dict[str, Any], expected_version: int, events: List[GameEvent]) -> None:
        """Replace the document only if the stored version still equals expected_version."""
        raise NotImplementedError

    async def list_games(self) -> List[str]:
        raise NotImplementedError

    # ---- Public API ----

    async def create(self, game: GameState) -> GameState:
        """Persist a freshly created game."""
        async with self._lock_for(game.game_id):
            if await self._fetch(game.game_id) is not None:
                raise ValidationError(f"Game {game.game_id} already exists")
            await self._insert(serialize_snapshot(game))
        logger.info("Created game %s (host %s)", game.game_id, game.host_id)
        return game

    async def load(self, game_id: str) -> GameState:
        doc = await self._fetch(game_id)
        if doc is None:
            raise GameNotFoundError(f"Game {game_id} not found")
        return restore_snapshot(doc)

    async def snapshot(self, game_id: str) -> Dict[str, Any]:
        doc = await self._fetch(game_id)
        if doc is None:
            raise GameNotFoundError(f"Game {game_id} not found")
        return doc

    async def execute(
        self,
        game_id: str,
        action: Action,
        player_id: str,
        expected_version: Optional[int] = None,
        now: Optional[float] = None,
    ) -> CommandResult:
        """
        Apply one command atomically against the latest document.

        Raises:
            GameNotFoundError: if the game does not exist
            StaleStateError: if expected_version is behind the stored version
        """
        async with self._lock_for(game_id):
            state = await self.load(game_id)
            if expected_version is not None and expected_version != state.version:
                logger.warning(
                    "Game %s: stale %s from %s (expected v%s, stored v%s)",
                    game_id,
                    action.action_type.value,
                    player_id,
                    expected_version,
                    state.version,
                )
                raise StaleStateError(
                    f"Game {game_id} is at version {state.version}, not {expected_version}"
                )

            result = dispatch(state, action, player_id, now)
            if result.ok:
                result.state.version = state.version + 1
                await self._commit(serialize_snapshot(result.state), state.version, result.events)
            return result


class InMemoryGameStore(GameStore):
    """Process-local store; documents are kept serialized so callers never share state."""

    def __init__(self):
        super().__init__()
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._events: Dict[str, List[Dict[str, Any]]] = {}

    async def _insert(self, doc: Dict[str, Any]) -> None:
        self._documents[doc["id"]] = copy.deepcopy(doc)
        self._events[doc["id"]] = [event for event in doc["events"]]

    async def _fetch(self, game_id: str) -> Optional[Dict[str, Any]]:
        doc = self._documents.get(game_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def _commit(self, doc: Dict[str, Any], expected_version: int, events: List[GameEvent]) -> None:
        current = self._documents.get(doc["id"])
        if current is None:
            raise GameNotFoundError(f"Game {doc['id']} not found")
        if current["version"] != expected_version:
            raise StaleStateError(f"Game {doc['id']} changed concurrently")
        self._documents[doc["id"]] = copy.deepcopy(doc)
        self._events[doc["id"]].extend(event.to_dict() for event in events)

    async def list_games(self) -> List[str]:
        return list(self._documents)

    async def events(self, game_id: str) -> List[Dict[str, Any]]:
        if game_id not in self._events:
            raise GameNotFoundError(f"Game {game_id} not found")
        return list(self._events[game_id])
