"""
Platform feedback I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from requisition_workflow.core.models.domain.enums import (
    FeedbackCategory,
    FeedbackPriority,
    FeedbackStatus,
)


class FeedbackCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: FeedbackCategory = FeedbackCategory.other
    priority: FeedbackPriority = FeedbackPriority.medium


class FeedbackUpdate(BaseModel):
    """Triage fields editable by platform admins."""

    status: Optional[FeedbackStatus] = None
    priority: Optional[FeedbackPriority] = None
    admin_response: Optional[str] = None


class FeedbackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: Optional[str] = None
    user_id: Optional[str] = None
    title: str
    description: str
    category: str
    priority: str
    status: str
    upvotes: int
    admin_response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    has_voted: bool = False


class VoteResult(BaseModel):
    voted: bool
    upvotes: int
