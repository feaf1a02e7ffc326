"""
Notification entity models.

``Notification`` rows are the in-app inbox of a user. ``EmailNotification``
rows are the outgoing email queue drained by the email queue processor.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Notification(Base, table=True):
    """
    Table: notifications
    """

    __tablename__ = "notifications"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    type: str = Field(max_length=64)
    title: str = Field(max_length=200)
    message: str = Field(sa_type=Text)
    link: Optional[str] = Field(default=None, max_length=255)
    is_read: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=utc_now, index=True)


class EmailNotification(Base, table=True):
    """
    Queued outgoing email.

    Table: email_notifications
    """

    __tablename__ = "email_notifications"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: Optional[str] = Field(default=None, foreign_key="organizations.id", ondelete="CASCADE", index=True)
    recipient_email: str = Field(max_length=255)
    subject: str = Field(max_length=255)
    body: str = Field(sa_type=Text)
    status: str = Field(default="pending", max_length=16, index=True)
    retry_count: int = Field(default=0)
    error_message: Optional[str] = Field(default=None, sa_type=Text)
    sent_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
