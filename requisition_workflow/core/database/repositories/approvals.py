"""
Requisition approval trail repository.
"""

from __future__ import annotations

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.approvals import RequisitionApproval
from .base import SQLModelRepository


class RequisitionApprovalRepository(SQLModelRepository[RequisitionApproval]):
    """Repository for the append-only workflow action trail."""

    descending = False

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RequisitionApproval)

    async def list_for_requisition(self, requisition_id: str) -> List[RequisitionApproval]:
        """Get the trail of a requisition in chronological order."""
        stmt = (
            select(RequisitionApproval)
            .where(RequisitionApproval.requisition_id == requisition_id)
            .order_by(RequisitionApproval.created_at.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
