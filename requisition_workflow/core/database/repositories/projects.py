"""
Project repositories.

All lookups are scoped by organization so that rows of other tenants are
indistinguishable from missing rows.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.projects import Project, ProjectMember
from ..entities.requisitions import Requisition
from ..entities.users import User
from .base import SQLModelRepository


class ProjectRepository(SQLModelRepository[Project]):
    """Repository for project data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Project)

    async def get_in_org(self, org_id: str, project_id: str) -> Optional[Project]:
        stmt = select(Project).where(Project.id == project_id, Project.org_id == org_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_code(self, org_id: str, code: str) -> Optional[Project]:
        stmt = select(Project).where(Project.org_id == org_id, Project.code == code)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_org(self, org_id: str, *, active_only: bool = True) -> List[Project]:
        stmt = select(Project).where(Project.org_id == org_id)
        if active_only:
            stmt = stmt.where(Project.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Project.code.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_active(self, org_id: str) -> int:
        stmt = select(func.count()).select_from(Project).where(
            Project.org_id == org_id, Project.is_active == True  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def sum_requisitions(self, project_id: str, statuses: Iterable[str]) -> Decimal:
        stmt = select(func.coalesce(func.sum(Requisition.total_amount), 0)).where(
            Requisition.project_id == project_id,
            Requisition.status.in_(list(statuses)),  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar_one()))


class ProjectMemberRepository(SQLModelRepository[ProjectMember]):
    """Repository for project assignment operations."""

    order_by = "assigned_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ProjectMember)

    async def get_assignment(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        stmt = select(ProjectMember).where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_with_users(self, project_id: str, *, active_only: bool = True) -> List[Tuple[ProjectMember, User]]:
        stmt = (
            select(ProjectMember, User)
            .join(User, User.id == ProjectMember.user_id)
            .where(ProjectMember.project_id == project_id)
            .order_by(User.full_name.asc())  # type: ignore[attr-defined]
        )
        if active_only:
            stmt = stmt.where(ProjectMember.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return [(member, user) for member, user in result.all()]
