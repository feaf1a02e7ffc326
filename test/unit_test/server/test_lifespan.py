"""
Unit tests for FastAPI application lifespan management.

Tests verify that the application startup and shutdown events are properly
handled, including optional schema creation.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.pool import StaticPool

from requisition_workflow.core.database import session as db_session
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.main import app as main_app
from requisition_workflow.server.main import lifespan

pytestmark = pytest.mark.asyncio


class TestLifespanStartup:
    """Test application startup lifespan events."""

    async def test_startup_calls_init_db(self):
        with patch("requisition_workflow.server.main.init_db", new_callable=AsyncMock) as mock_init:
            async with lifespan(FastAPI()):
                mock_init.assert_awaited_once()

    async def test_startup_survives_database_failure(self):
        with patch(
            "requisition_workflow.server.main.init_db",
            new_callable=AsyncMock,
            side_effect=ConnectionError("database unreachable"),
        ), patch("requisition_workflow.server.main.logger") as mock_logger:
            async with lifespan(FastAPI()):
                pass

        mock_logger.error.assert_called_once()

    async def test_shutdown_is_logged(self):
        with patch("requisition_workflow.server.main.init_db", new_callable=AsyncMock), patch(
            "requisition_workflow.server.main.logger"
        ) as mock_logger:
            async with lifespan(FastAPI()):
                pass

        messages = [call.args[0] for call in mock_logger.info.call_args_list]
        assert any("Shutting down" in message for message in messages)


class TestInitDb:
    @pytest.fixture
    async def memory_engine(self, monkeypatch):
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        monkeypatch.setattr(db_session, "engine", engine)
        yield engine
        await engine.dispose()

    @staticmethod
    async def _tables(engine) -> set:
        async with engine.connect() as connection:
            return set(await connection.run_sync(lambda sync: inspect(sync).get_table_names()))

    async def test_auto_create_builds_schema(self, memory_engine, monkeypatch):
        monkeypatch.setattr(settings.database, "auto_create", True)

        await db_session.init_db()

        tables = await self._tables(memory_engine)
        assert {"organizations", "users", "requisitions", "billing_history"} <= tables

    async def test_schema_left_to_migrations_by_default(self, memory_engine, monkeypatch):
        monkeypatch.setattr(settings.database, "auto_create", False)

        await db_session.init_db()

        assert await self._tables(memory_engine) == set()


class TestApplicationWiring:
    async def test_routers_are_mounted(self):
        paths = {route.path for route in main_app.routes}

        assert "/health" in paths
        assert "/api/v1/requisitions/{requisition_id}/approve" in paths
        assert "/api/v1/webhooks/stripe" in paths
        assert "/api/v1/maintenance/process-email-queue" in paths
