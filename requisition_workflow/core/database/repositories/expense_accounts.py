"""
Expense account repository.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.expense_accounts import ExpenseAccount
from .base import SQLModelRepository


class ExpenseAccountRepository(SQLModelRepository[ExpenseAccount]):
    """Repository for expense account data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ExpenseAccount)

    async def get_in_org(self, org_id: str, account_id: str) -> Optional[ExpenseAccount]:
        stmt = select(ExpenseAccount).where(ExpenseAccount.id == account_id, ExpenseAccount.org_id == org_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_code(self, project_id: str, code: str) -> Optional[ExpenseAccount]:
        stmt = select(ExpenseAccount).where(ExpenseAccount.project_id == project_id, ExpenseAccount.code == code)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_org(
        self, org_id: str, *, project_id: Optional[str] = None, active_only: bool = True
    ) -> List[ExpenseAccount]:
        stmt = select(ExpenseAccount).where(ExpenseAccount.org_id == org_id)
        if project_id:
            stmt = stmt.where(ExpenseAccount.project_id == project_id)
        if active_only:
            stmt = stmt.where(ExpenseAccount.is_active == True)  # noqa: E712
        stmt = stmt.order_by(ExpenseAccount.code.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
