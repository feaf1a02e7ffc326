"""
Platform feedback entity models.

Feedback is platform-wide: any authenticated user can read and upvote it,
and platform admins triage it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class PlatformFeedback(Base, table=True):
    """
    Table: platform_feedback
    """

    __tablename__ = "platform_feedback"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: Optional[str] = Field(default=None, foreign_key="organizations.id", ondelete="SET NULL", index=True)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", ondelete="SET NULL", index=True)

    title: str = Field(max_length=200)
    description: str = Field(sa_type=Text)
    category: str = Field(default="other", max_length=32, index=True)
    priority: str = Field(default="medium", max_length=16)
    status: str = Field(default="open", max_length=16, index=True)
    upvotes: int = Field(default=0, ge=0)

    admin_response: Optional[str] = Field(default=None, sa_type=Text)
    responded_by: Optional[str] = Field(default=None, max_length=36)
    responded_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class FeedbackVote(Base, table=True):
    """
    Table: feedback_votes
    """

    __tablename__ = "feedback_votes"
    __table_args__ = (UniqueConstraint("feedback_id", "user_id", name="uq_feedback_votes_feedback_user"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    feedback_id: str = Field(foreign_key="platform_feedback.id", ondelete="CASCADE", index=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=utc_now)
