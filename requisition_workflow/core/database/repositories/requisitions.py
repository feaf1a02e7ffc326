"""
Requisition repositories.

This module provides data access for requisitions, their line items and
their comment threads. Visibility filtering is expressed by the caller as
"own requisitions plus these statuses", which is how the workflow roles
translate into row predicates.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.approvals import RequisitionApproval
from ..entities.requisitions import Comment, Requisition, RequisitionItem
from .base import QueryBuilder, SQLModelRepository


class RequisitionRepository(SQLModelRepository[Requisition]):
    """Repository for requisition data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Requisition)

    async def get_in_org(self, org_id: str, requisition_id: str) -> Optional[Requisition]:
        stmt = select(Requisition).where(Requisition.id == requisition_id, Requisition.org_id == org_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_org(
        self,
        org_id: str,
        *,
        viewer_id: str,
        visible_statuses: Optional[Sequence[str]] = None,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Requisition]:
        """
        List requisitions of an organization visible to a viewer.

        Args:
            org_id: Tenant scope
            viewer_id: The viewer always sees the requisitions they submitted
            visible_statuses: Statuses visible on others' requisitions; None means all
            filters: Equality filters (status, project_id, type, submitted_by)
            limit: Maximum records to return
            offset: Records to skip

        Returns:
            Requisitions, newest first
        """
        stmt = select(Requisition).where(Requisition.org_id == org_id)
        if visible_statuses is not None:
            stmt = stmt.where(
                or_(
                    Requisition.submitted_by == viewer_id,
                    Requisition.status.in_(list(visible_statuses)),  # type: ignore[attr-defined]
                )
            )
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Requisition, filters)
        stmt = stmt.order_by(Requisition.created_at.desc())  # type: ignore[attr-defined]
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_created_since(self, org_id: str, since: datetime) -> int:
        stmt = select(func.count()).select_from(Requisition).where(
            Requisition.org_id == org_id, Requisition.created_at >= since
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def max_number_with_prefix(self, org_id: str, prefix: str) -> Optional[str]:
        """Highest requisition number starting with ``prefix``; numbers are fixed width."""
        stmt = select(func.max(Requisition.requisition_number)).where(
            Requisition.org_id == org_id,
            Requisition.requisition_number.startswith(prefix),  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_with_children(self, requisition: Requisition) -> None:
        for model in (RequisitionItem, Comment, RequisitionApproval):
            await self.session.execute(delete(model).where(model.requisition_id == requisition.id))
        await self.session.delete(requisition)
        await self.session.flush()


class RequisitionItemRepository(SQLModelRepository[RequisitionItem]):
    """Repository for requisition line items."""

    order_by = "line_number"
    descending = False

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RequisitionItem)

    async def list_for_requisition(self, requisition_id: str) -> List[RequisitionItem]:
        stmt = (
            select(RequisitionItem)
            .where(RequisitionItem.requisition_id == requisition_id)
            .order_by(RequisitionItem.line_number.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_in_requisition(self, requisition_id: str, item_id: str) -> Optional[RequisitionItem]:
        stmt = select(RequisitionItem).where(
            RequisitionItem.id == item_id, RequisitionItem.requisition_id == requisition_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def sum_total(self, requisition_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(RequisitionItem.total_price), 0)).where(
            RequisitionItem.requisition_id == requisition_id
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar_one()))


class CommentRepository(SQLModelRepository[Comment]):
    """Repository for requisition comments."""

    descending = False

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Comment)

    async def list_for_requisition(self, requisition_id: str, *, include_internal: bool) -> List[Comment]:
        stmt = select(Comment).where(Comment.requisition_id == requisition_id)
        if not include_internal:
            stmt = stmt.where(Comment.is_internal == False)  # noqa: E712
        stmt = stmt.order_by(Comment.created_at.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
