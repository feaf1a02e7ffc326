"""
User entity model.

A user is a login identity. ``org_id`` points at the user's primary
organization (the profile); accounts created but never attached to an
organization keep it unset and are swept by the orphaned signup cleanup.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, utc_now


class User(Base, table=True):
    """
    Table: users
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str = Field(max_length=100)
    password_hash: Optional[str] = Field(default=None, max_length=255)

    org_id: Optional[str] = Field(default=None, foreign_key="organizations.id", ondelete="SET NULL", index=True)

    is_active: bool = Field(default=True)
    is_platform_admin: bool = Field(default=False)
    email_notifications_enabled: bool = Field(default=True)
    email_confirmed_at: Optional[datetime] = Field(default=None)
    last_login_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def email_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"
