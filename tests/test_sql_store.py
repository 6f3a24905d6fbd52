"""
Tests for the SQLAlchemy-backed game store (SQLite in memory).
"""

import asyncio

import pytest
from sqlalchemy.pool import StaticPool

from worldpoly.config import GameSettings
from worldpoly.data import GameRepository, SqlGameStore, close_db, create_tables, init_db, session_scope
from worldpoly.exceptions import GameNotFoundError, StaleStateError, ValidationError
from worldpoly.game import ActionType, create_game
from worldpoly.rules import Action
from worldpoly.settings import EngineSettings


def run_with_db(scenario):
    """Run scenario(store) against a fresh in-memory database."""

    async def main():
        await init_db(
            EngineSettings(database_url="sqlite+aiosqlite:///:memory:"),
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        await create_tables()
        try:
            store = SqlGameStore()
            await store.create(create_game("g1", "p1", "Alice", GameSettings(seed=21)))
            return await scenario(store)
        finally:
            await close_db()

    return asyncio.run(main())


def test_create_and_load():
    async def scenario(store):
        return await store.load("g1"), await store.list_games()

    game, game_ids = run_with_db(scenario)

    assert game.version == 0
    assert game.host_id == "p1"
    assert game_ids == ["g1"]


def test_duplicate_and_missing_games():
    async def scenario(store):
        with pytest.raises(ValidationError):
            await store.create(create_game("g1", "p2", "Bob"))
        with pytest.raises(GameNotFoundError):
            await store.load("missing")

    run_with_db(scenario)


def test_commands_persist_document_and_events():
    async def scenario(store):
        joined = await store.execute("g1", Action(ActionType.JOIN_GAME, name="Bob"), "p2", expected_version=0)
        started = await store.execute("g1", Action(ActionType.START_GAME), "p1", expected_version=1)
        return joined, started, await store.load("g1"), await store.events("g1")

    joined, started, game, events = run_with_db(scenario)

    assert joined.ok and started.ok
    assert game.version == 2
    assert game.status.value == "in-progress"
    assert set(game.players) == {"p1", "p2"}
    types = [e["type"] for e in events]
    assert "player_joined" in types
    assert types[-2:] == ["game_start", "turn_start"]


def test_rejected_command_is_not_persisted():
    async def scenario(store):
        result = await store.execute("g1", Action(ActionType.START_GAME), "p2")
        return result, await store.load("g1")

    result, game = run_with_db(scenario)

    assert not result.ok
    assert game.version == 0


def test_stale_expected_version():
    async def scenario(store):
        await store.execute("g1", Action(ActionType.JOIN_GAME, name="Bob"), "p2", expected_version=0)
        with pytest.raises(StaleStateError):
            await store.execute("g1", Action(ActionType.JOIN_GAME, name="Cat"), "p3", expected_version=0)
        return await store.load("g1")

    game = run_with_db(scenario)

    assert game.version == 1
    assert "p3" not in game.players


def test_compare_and_set_rejects_outdated_writer():
    async def scenario(store):
        doc = await store.snapshot("g1")
        doc["version"] = 1
        async with session_scope() as session:
            first = await GameRepository(session).compare_and_set(doc, expected_version=0)
        async with session_scope() as session:
            second = await GameRepository(session).compare_and_set(doc, expected_version=0)
        return first, second

    assert run_with_db(scenario) == (True, False)
