"""Fixtures for Alembic migration tests.

Migrations run against a throwaway SQLite file, and additionally against
PostgreSQL when ``DATABASE__POSTGRES_URL`` is set for the test settings.
"""

from pathlib import Path
from test.settings import test_settings

import pytest
from alembic import command
from alembic.config import Config

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


def make_alembic_config(database_url: str) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


@pytest.fixture(
    params=[
        "sqlite",
        pytest.param(
            "postgres",
            marks=pytest.mark.skipif(
                not test_settings.database.postgres_url, reason="DATABASE__POSTGRES_URL not configured"
            ),
        ),
    ]
)
def database_url(request, tmp_path) -> str:
    """Async database URL the migrations run against."""
    if request.param == "postgres":
        return test_settings.database.postgres_url
    return f"sqlite+aiosqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture
def alembic_config(database_url: str):
    config = make_alembic_config(database_url)
    yield config
    if database_url.startswith("postgresql"):
        command.downgrade(config, "base")
