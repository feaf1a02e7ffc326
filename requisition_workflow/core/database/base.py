"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the database layer using SQLModel.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import ConfigDict
from sqlmodel import SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


def new_id() -> str:
    """Generate a primary key value (UUID4 string)."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Get current UTC datetime as naive datetime.

    Timestamps are stored without timezone so that values read back from any
    backend compare cleanly with values produced here.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
