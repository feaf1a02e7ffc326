"""
Database layer for Requisition Workflow.

Structure:
- entities/: SQLModel table models organized by business domain
- repositories/: data access layer organized by business domain
- session.py: global engine and session factory management
- utils.py: engine, session factory and schema helpers
"""

from .base import Base, new_id, utc_now
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
    "new_id",
    "utc_now",
]
