"""
Tests for the game service: publishing and the auction countdown.
"""

import asyncio

import pytest

from worldpoly.exceptions import GameNotFoundError, StaleStateError, ValidationError
from worldpoly.game import ActionType, GameStatus
from worldpoly.rules import Action
from worldpoly.service import GameService
from worldpoly.settings import EngineSettings
from worldpoly.store import InMemoryGameStore


def _service(countdown=5.0):
    return GameService(InMemoryGameStore(), EngineSettings(auction_countdown_seconds=countdown))


async def _started_game(service):
    game = await service.create_game("host", "Alice", {"seed": 7}, name="Friday", game_id="g1")
    await service.join(game.game_id, "guest", "Bob")
    await service.execute(game.game_id, Action(ActionType.START_GAME), "host")
    return game.game_id


def test_create_game_applies_defaults():
    service = _service(countdown=2.5)

    game = asyncio.run(service.create_game("host", "Alice", {"starting_money": 2000}))

    assert len(game.game_id) == 12
    assert game.settings.starting_money == 2000
    assert game.settings.auction_countdown_seconds == 2.5
    assert game.status == GameStatus.WAITING


def test_create_game_rejects_unknown_setting():
    service = _service()

    with pytest.raises(ValidationError):
        asyncio.run(service.create_game("host", "Alice", {"house_rules": True}))


def test_unknown_game():
    service = _service()

    with pytest.raises(GameNotFoundError):
        asyncio.run(service.snapshot("missing"))
    with pytest.raises(GameNotFoundError):
        asyncio.run(service.subscribe("missing"))


def test_subscriber_gets_snapshot_then_updates():
    service = _service()

    async def scenario():
        game = await service.create_game("host", "Alice", game_id="g1")
        q = await service.subscribe(game.game_id)
        await service.join("g1", "guest", "Bob")
        await service.execute("g1", Action(ActionType.ROLL_DICE), "host")  # rejected, not published
        first = q.get_nowait()
        second = q.get_nowait()
        return first, second, q.empty()

    first, second, drained = asyncio.run(scenario())

    assert first["type"] == "snapshot"
    assert first["version"] == 0
    assert second["type"] == "update"
    assert second["version"] == 1
    assert [e["type"] for e in second["events"]] == ["player_joined"]
    assert "guest" in second["snapshot"]["players"]
    assert drained


def test_unsubscribed_queue_gets_nothing():
    service = _service()

    async def scenario():
        await service.create_game("host", "Alice", game_id="g1")
        q = await service.subscribe("g1")
        q.get_nowait()
        await service.unsubscribe("g1", q)
        await service.join("g1", "guest", "Bob")
        return q.empty()

    assert asyncio.run(scenario())


def test_legal_actions():
    service = _service()

    async def scenario():
        await service.create_game("host", "Alice", game_id="g1")
        return await service.legal_actions("g1", "host")

    types = {a.action_type for a in asyncio.run(scenario())}
    assert ActionType.START_GAME in types


def test_auction_settles_automatically():
    service = _service(countdown=0.05)

    async def scenario():
        game_id = await _started_game(service)
        await service.execute(game_id, Action(ActionType.START_AUCTION, position=1), "host")
        assert service.has_auction_timer(game_id)
        await service.execute(game_id, Action(ActionType.PLACE_BID, amount=40), "guest")
        await asyncio.sleep(0.3)
        state = await service.store.load(game_id)
        timer_left = service.has_auction_timer(game_id)
        await service.shutdown()
        return state, timer_left

    state, timer_left = asyncio.run(scenario())

    assert state.auction is None
    assert state.properties[1].owner == "guest"
    assert state.players["guest"].money == 1500 - 40
    assert not timer_left


def test_cancelled_auction_stops_timer():
    service = _service(countdown=60)

    async def scenario():
        game_id = await _started_game(service)
        await service.execute(game_id, Action(ActionType.START_AUCTION, position=1), "host")
        await service.execute(game_id, Action(ActionType.CANCEL_AUCTION), "host")
        await asyncio.sleep(0)
        running = service.has_auction_timer(game_id)
        await service.shutdown()
        return running

    assert not asyncio.run(scenario())


def test_create_game_rejects_mistyped_settings():
    service = _service()

    for settings in ({"starting_money": "lots"}, {"allow_auctions": "yes"}, {"max_players": 2.5}, {"seed": True}):
        with pytest.raises(ValidationError):
            asyncio.run(service.create_game("host", "Alice", settings))


class _ConflictOnceStore(InMemoryGameStore):
    """Loses the first settlement to a concurrent writer."""

    def __init__(self):
        super().__init__()
        self.conflicts = 0

    async def execute(self, game_id, action, player_id, expected_version=None, now=None):
        if action.action_type == ActionType.SETTLE_AUCTION and not self.conflicts:
            self.conflicts += 1
            raise StaleStateError("changed concurrently")
        return await super().execute(game_id, action, player_id, expected_version, now)


def test_auction_timer_survives_store_conflict():
    service = GameService(_ConflictOnceStore(), EngineSettings(auction_countdown_seconds=0.05))

    async def scenario():
        game_id = await _started_game(service)
        await service.execute(game_id, Action(ActionType.START_AUCTION, position=1), "host")
        await service.execute(game_id, Action(ActionType.PLACE_BID, amount=40), "guest")
        await asyncio.sleep(0.3)
        state = await service.store.load(game_id)
        await service.shutdown()
        return state

    state = asyncio.run(scenario())

    assert service.store.conflicts == 1
    assert state.auction is None
    assert state.properties[1].owner == "guest"
