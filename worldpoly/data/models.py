"""
SQLAlchemy models for persisted games.

Architecture:
- GameDocument: the latest serialized document of each game plus its version token
- GameEventRecord: append-only log of the events each committed command produced
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utc_now() -> datetime:
    """Generate timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class GameDocument(Base):
    """
    Latest state of one game.

    The version column is the optimistic-concurrency token: a command
    only commits when the stored version still matches the one it read.
    """

    __tablename__ = "game_documents"

    game_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    document: Mapped[Dict[str, Any]] = mapped_column(JSONDocument, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def __repr__(self) -> str:
        return f"<GameDocument(game_id={self.game_id}, version={self.version}, status={self.status})>"


class GameEventRecord(Base):
    """
    One event emitted by a committed command.

    Ordered by sequence_number within a game; version records which
    document version the event belongs to.
    """

    __tablename__ = "game_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("game_documents.game_id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    player_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    __table_args__ = (
        UniqueConstraint("game_id", "sequence_number", name="uq_game_events_sequence"),
        Index("ix_game_events_game_type", "game_id", "event_type"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type,
            "player_id": self.player_id,
            "details": self.payload,
            "message": self.message,
        }
