"""
Billing history repository.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.billing import BillingHistory
from .base import QueryBuilder, SQLModelRepository


class BillingHistoryRepository(SQLModelRepository[BillingHistory]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, BillingHistory)

    async def list_for_org(
        self, organization_id: str, limit: Optional[int] = 50, offset: Optional[int] = None
    ) -> List[BillingHistory]:
        stmt = (
            select(BillingHistory)
            .where(BillingHistory.organization_id == organization_id)
            .order_by(BillingHistory.created_at.desc())  # type: ignore[attr-defined]
        )
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
