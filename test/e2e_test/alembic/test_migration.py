"""End-to-end tests for the Alembic migration scripts.

Tests verify that the initial migration:
1. Creates every table the entity models declare
2. Creates the lookup indexes the repositories rely on
3. Produces a schema the application can write to
4. Can be downgraded and upgraded again
"""

import asyncio
import io
from typing import Dict, List

import pytest
from alembic import command
from alembic.script import ScriptDirectory
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

import requisition_workflow.core.database.entities  # noqa: F401


def _inspect(database_url: str) -> Dict[str, List[str]]:
    """Table names mapped to their index names."""

    def _collect(connection) -> Dict[str, List[str]]:
        inspector = inspect(connection)
        return {
            table: [index["name"] for index in inspector.get_indexes(table)]
            for table in inspector.get_table_names()
            if table != "alembic_version"
        }

    async def _run() -> Dict[str, List[str]]:
        engine = create_async_engine(database_url)
        try:
            async with engine.connect() as connection:
                return await connection.run_sync(_collect)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


def _execute(database_url: str, *statements: str) -> list:
    async def _run() -> list:
        engine = create_async_engine(database_url)
        try:
            async with engine.begin() as connection:
                rows = []
                for statement in statements:
                    result = await connection.execute(text(statement))
                    if result.returns_rows:
                        rows.extend(result.all())
                return rows
        finally:
            await engine.dispose()

    return asyncio.run(_run())


class TestMigrationScripts:
    def test_single_head(self, alembic_config):
        script = ScriptDirectory.from_config(alembic_config)

        assert len(script.get_heads()) == 1

    def test_offline_sql_generation(self, alembic_config):
        alembic_config.output_buffer = io.StringIO()

        command.upgrade(alembic_config, "head", sql=True)

        output = alembic_config.output_buffer.getvalue()
        assert "CREATE TABLE organizations" in output
        assert "CREATE TABLE requisitions" in output


class TestMigrationUpgrade:
    def test_upgrade_creates_all_model_tables(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")

        tables = _inspect(database_url)
        assert set(tables) == set(SQLModel.metadata.tables)

    @pytest.mark.parametrize(
        "table, index",
        [
            ("organizations", "ix_organizations_slug"),
            ("users", "ix_users_email"),
            ("organization_members", "ix_organization_members_user_id"),
            ("requisitions", "ix_requisitions_status"),
            ("email_notifications", "ix_email_notifications_status"),
            ("rate_limit_log", "ix_rate_limit_log_identifier"),
            ("items", "ix_items_category_id"),
            ("requisition_items", "ix_requisition_items_item_id"),
        ],
    )
    def test_upgrade_creates_lookup_indexes(self, alembic_config, database_url, table, index):
        command.upgrade(alembic_config, "head")

        assert index in _inspect(database_url)[table]

    def test_schema_accepts_a_tenant(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")

        rows = _execute(
            database_url,
            "INSERT INTO organizations (id, name, slug, status, plan, max_users, max_projects, "
            "max_requisitions_per_month, created_at, updated_at) "
            "VALUES ('org-1', 'Acme', 'acme', 'active', 'free', 3, 2, 25, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)",
            "SELECT slug, plan FROM organizations",
        )

        assert [tuple(row) for row in rows] == [("acme", "free")]


class TestMigrationDowngrade:
    def test_downgrade_drops_everything(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")

        command.downgrade(alembic_config, "base")

        assert _inspect(database_url) == {}

    def test_upgrade_after_downgrade(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")
        command.downgrade(alembic_config, "base")

        command.upgrade(alembic_config, "head")

        assert set(_inspect(database_url)) == set(SQLModel.metadata.tables)
