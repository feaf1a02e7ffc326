"""
Requisition approval entity model.

Every workflow action taken on a requisition (submit, review, approve,
reject, cancel) is recorded here, giving an append-only audit trail of
who moved the requisition from which status to which.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class RequisitionApproval(Base, table=True):
    """Entity for the requisition approval trail.

    Table: requisition_approvals
    """

    __tablename__ = "requisition_approvals"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    requisition_id: str = Field(foreign_key="requisitions.id", ondelete="CASCADE", index=True)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)

    actor_id: str = Field(max_length=36, index=True)
    action: str = Field(max_length=32, index=True)
    from_status: str = Field(max_length=32)
    to_status: str = Field(max_length=32)
    note: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now, index=True)

    def __repr__(self) -> str:
        return f"RequisitionApproval(requisition={self.requisition_id}, action={self.action})"
