"""SQL persistence for game documents."""

from worldpoly.data.models import Base, GameDocument, GameEventRecord
from worldpoly.data.repository import GameRepository, SqlGameStore
from worldpoly.data.session import close_db, create_tables, init_db, session_scope

__all__ = [
    "Base",
    "GameDocument",
    "GameEventRecord",
    "GameRepository",
    "SqlGameStore",
    "close_db",
    "create_tables",
    "init_db",
    "session_scope",
]
