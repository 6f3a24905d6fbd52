"""
Repository pattern for game documents.

GameRepository encapsulates the queries against one session;
SqlGameStore plugs it into the versioned GameStore contract.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from worldpoly.data.models import GameDocument, GameEventRecord, utc_now
from worldpoly.data.session import session_scope
from worldpoly.exceptions import DatabaseError, StaleStateError, ValidationError
from worldpoly.money import GameEvent
from worldpoly.store import GameStore

logger = logging.getLogger(__name__)


class GameRepository:
    """Database operations for game documents and their event log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---- Document Operations ----

    async def insert_document(self, doc: Dict[str, Any]) -> GameDocument:
        record = GameDocument(
            game_id=doc["id"],
            version=doc["version"],
            status=doc["status"],
            document=doc,
        )
        self.session.add(record)
        await self.session.flush()
        logger.info("Stored game document %s (v%s)", record.game_id, record.version)
        return record

    async def get_document(self, game_id: str) -> Optional[GameDocument]:
        result = await self.session.execute(select(GameDocument).where(GameDocument.game_id == game_id))
        return result.scalar_one_or_none()

    async def compare_and_set(self, doc: Dict[str, Any], expected_version: int) -> bool:
        """
        Replace a document only if its stored version equals expected_version.

        Returns:
            True if a row was updated
        """
        stmt = (
            update(GameDocument)
            .where(GameDocument.game_id == doc["id"], GameDocument.version == expected_version)
            .values(
                version=doc["version"],
                status=doc["status"],
                document=doc,
                updated_at=utc_now(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_game_ids(self) -> List[str]:
        result = await self.session.execute(select(GameDocument.game_id).order_by(GameDocument.created_at))
        return list(result.scalars().all())

    # ---- Event Operations ----

    async def next_sequence_number(self, game_id: str) -> int:
        result = await self.session.execute(
            select(func.max(GameEventRecord.sequence_number)).where(GameEventRecord.game_id == game_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1

    async def append_events(self, game_id: str, version: int, events: List[GameEvent]) -> int:
        """Append events in order; returns how many were written."""
        sequence = await self.next_sequence_number(game_id)
        for offset, event in enumerate(events):
            self.session.add(
                GameEventRecord(
                    game_id=game_id,
                    sequence_number=sequence + offset,
                    version=version,
                    event_type=event.event_type.value,
                    player_id=event.player_id,
                    payload=event.details,
                    message=event.message,
                )
            )
        await self.session.flush()
        return len(events)

    async def get_events(self, game_id: str, event_type: Optional[str] = None) -> List[GameEventRecord]:
        stmt = select(GameEventRecord).where(GameEventRecord.game_id == game_id)
        if event_type is not None:
            stmt = stmt.where(GameEventRecord.event_type == event_type)
        stmt = stmt.order_by(GameEventRecord.sequence_number)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class SqlGameStore(GameStore):
    """
    GameStore backed by SQLAlchemy.

    Requires init_db() to have been called. The version check is enforced
    by the UPDATE itself, so concurrent writers in other processes are
    rejected as well.
    """

    async def _insert(self, doc: Dict[str, Any]) -> None:
        try:
            async with session_scope() as session:
                repo = GameRepository(session)
                await repo.insert_document(doc)
                await repo.append_events(doc["id"], doc["version"], [GameEvent.from_dict(e) for e in doc["events"]])
        except IntegrityError as e:
            raise ValidationError(f"Game {doc['id']} already exists") from e

    async def _fetch(self, game_id: str) -> Optional[Dict[str, Any]]:
        async with session_scope() as session:
            record = await GameRepository(session).get_document(game_id)
            return dict(record.document) if record is not None else None

    async def _commit(self, doc: Dict[str, Any], expected_version: int, events: List[GameEvent]) -> None:
        async with session_scope() as session:
            repo = GameRepository(session)
            if not await repo.compare_and_set(doc, expected_version):
                logger.warning("Game %s: version conflict at v%s", doc["id"], expected_version)
                raise StaleStateError(f"Game {doc['id']} changed concurrently")
            await repo.append_events(doc["id"], doc["version"], events)

    async def list_games(self) -> List[str]:
        async with session_scope() as session:
            return await GameRepository(session).list_game_ids()

    async def events(self, game_id: str) -> List[Dict[str, Any]]:
        try:
            async with session_scope() as session:
                records = await GameRepository(session).get_events(game_id)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load events for {game_id}: {e}") from e
        return [record.to_dict() for record in records]
