"""
Organization repositories.

Covers organizations, memberships, and the per-organization settings rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.approvals import RequisitionApproval
from ..entities.billing import BillingHistory
from ..entities.catalog import CatalogItem, ItemCategory, UomType
from ..entities.expense_accounts import ExpenseAccount
from ..entities.feedback import PlatformFeedback
from ..entities.notifications import EmailNotification, Notification
from ..entities.organizations import (
    FiscalYearSettings,
    Organization,
    OrganizationMember,
    OrganizationSettings,
)
from ..entities.projects import Project, ProjectMember
from ..entities.requisitions import Comment, Requisition, RequisitionItem
from ..entities.users import User
from .base import SQLModelRepository


class OrganizationRepository(SQLModelRepository[Organization]):
    """Repository for organization data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Organization)

    async def get_by_slug(self, slug: str) -> Optional[Organization]:
        result = await self.session.execute(select(Organization).where(Organization.slug == slug))
        return result.scalars().first()

    async def get_by_stripe_subscription(self, subscription_id: str) -> Optional[Organization]:
        stmt = select(Organization).where(Organization.stripe_subscription_id == subscription_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_stripe_customer(self, customer_id: str) -> Optional[Organization]:
        stmt = select(Organization).where(Organization.stripe_customer_id == customer_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_without_members_before(self, cutoff: datetime) -> List[Organization]:
        """Organizations created before ``cutoff`` that have no membership rows at all."""
        has_members = select(OrganizationMember.id).where(OrganizationMember.organization_id == Organization.id).exists()
        stmt = select(Organization).where(Organization.created_at < cutoff).where(~has_members)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_with_tenant_data(self, organization: Organization) -> None:
        """Delete an organization and every row it owns, children first."""
        org_id = organization.id
        owned = (
            RequisitionApproval,
            Comment,
            RequisitionItem,
            Requisition,
            CatalogItem,
            ItemCategory,
            UomType,
            ExpenseAccount,
            ProjectMember,
            Project,
            Notification,
            EmailNotification,
            OrganizationSettings,
            FiscalYearSettings,
        )
        for model in owned:
            await self.session.execute(delete(model).where(model.org_id == org_id))
        await self.session.execute(delete(BillingHistory).where(BillingHistory.organization_id == org_id))
        await self.session.execute(delete(OrganizationMember).where(OrganizationMember.organization_id == org_id))
        await self.session.execute(update(PlatformFeedback).where(PlatformFeedback.org_id == org_id).values(org_id=None))
        await self.session.execute(update(User).where(User.org_id == org_id).values(org_id=None))
        await self.session.delete(organization)
        await self.session.flush()


class OrganizationMemberRepository(SQLModelRepository[OrganizationMember]):
    """Repository for organization membership operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, OrganizationMember)

    async def get_membership(
        self, organization_id: str, user_id: str, *, active_only: bool = True
    ) -> Optional[OrganizationMember]:
        stmt = select(OrganizationMember).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
        )
        if active_only:
            stmt = stmt.where(OrganizationMember.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_user(self, user_id: str, *, active_only: bool = True) -> List[Tuple[OrganizationMember, Organization]]:
        stmt = (
            select(OrganizationMember, Organization)
            .join(Organization, Organization.id == OrganizationMember.organization_id)
            .where(OrganizationMember.user_id == user_id)
            .order_by(Organization.name.asc())  # type: ignore[attr-defined]
        )
        if active_only:
            stmt = stmt.where(OrganizationMember.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return [(member, org) for member, org in result.all()]

    async def list_with_users(self, organization_id: str) -> List[Tuple[OrganizationMember, User]]:
        stmt = (
            select(OrganizationMember, User)
            .join(User, User.id == OrganizationMember.user_id)
            .where(OrganizationMember.organization_id == organization_id)
            .order_by(User.full_name.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return [(member, user) for member, user in result.all()]

    async def list_users_with_workflow_roles(
        self, organization_id: str, workflow_roles: List[str]
    ) -> List[User]:
        stmt = (
            select(User)
            .join(OrganizationMember, OrganizationMember.user_id == User.id)
            .where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.is_active == True,  # noqa: E712
                OrganizationMember.workflow_role.in_(workflow_roles),  # type: ignore[attr-defined]
                User.is_active == True,  # noqa: E712
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_active(self, organization_id: str, *, exclude_user_id: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(OrganizationMember).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.is_active == True,  # noqa: E712
        )
        if exclude_user_id:
            stmt = stmt.where(OrganizationMember.user_id != exclude_user_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def has_any_membership(self, user_id: str, *, active_only: bool = False) -> bool:
        stmt = select(func.count()).select_from(OrganizationMember).where(OrganizationMember.user_id == user_id)
        if active_only:
            stmt = stmt.where(OrganizationMember.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return int(result.scalar_one()) > 0


class OrganizationSettingsRepository(SQLModelRepository[OrganizationSettings]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, OrganizationSettings)

    async def get_for_org(self, org_id: str) -> Optional[OrganizationSettings]:
        result = await self.session.execute(select(OrganizationSettings).where(OrganizationSettings.org_id == org_id))
        return result.scalars().first()


class FiscalYearSettingsRepository(SQLModelRepository[FiscalYearSettings]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, FiscalYearSettings)
