"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database.url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Production schemas are managed by Alembic; table creation here only runs
    when DATABASE__AUTO_CREATE is enabled for local development.
    """
    if settings.database.auto_create:
        logger.info("Creating database tables from ORM metadata")
        await create_all(engine)
