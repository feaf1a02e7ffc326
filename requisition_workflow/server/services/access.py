"""
Tenancy and Access Predicates.

Every request that touches tenant data resolves an ``OrgContext``: the
authenticated user, the active organization and the user's membership in
it. Queries are scoped by ``OrgContext.organization.id`` and the predicate
functions below decide who may do what inside that organization.

The active organization is taken from the ``X-Organization-Id`` header
when present, otherwise from the user's primary organization.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import get_session
from requisition_workflow.core.database.entities import Organization, OrganizationMember, User
from requisition_workflow.core.database.repositories import (
    OrganizationMemberRepository,
    OrganizationRepository,
    UserRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import MemberRole, WorkflowRole
from requisition_workflow.core.security import InvalidToken, TokenType, decode_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class OrgContext:
    """The caller, the organization they act in, and their membership there."""

    user: User
    organization: Organization
    membership: OrganizationMember

    @property
    def org_id(self) -> str:
        return self.organization.id

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role(self) -> str:
        return self.membership.role

    @property
    def workflow_role(self) -> str:
        return self.membership.workflow_role


# =====================================================================
# Predicates
# =====================================================================


def user_belongs_to_org(ctx: OrgContext, org_id: Optional[str]) -> bool:
    return org_id is not None and ctx.organization.id == org_id and ctx.membership.is_active


def user_is_org_owner(ctx: OrgContext) -> bool:
    return ctx.role == MemberRole.owner.value


def user_is_org_admin(ctx: OrgContext) -> bool:
    return ctx.role in (MemberRole.owner.value, MemberRole.admin.value)


def is_super_admin(ctx: OrgContext) -> bool:
    return ctx.workflow_role == WorkflowRole.super_admin.value


def can_manage_org(ctx: OrgContext) -> bool:
    """Organization owners, admins and workflow super admins manage people and projects."""
    return user_is_org_admin(ctx) or is_super_admin(ctx)


def has_workflow_role(ctx: OrgContext, *roles: WorkflowRole) -> bool:
    """True when the caller holds one of ``roles``; super admins always pass."""
    if is_super_admin(ctx):
        return True
    return ctx.workflow_role in {role.value for role in roles}


def can_see_internal_comments(ctx: OrgContext) -> bool:
    return user_is_org_admin(ctx) or has_workflow_role(ctx, WorkflowRole.reviewer, WorkflowRole.approver)


# =====================================================================
# Dependencies
# =====================================================================


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Raises:
        HTTPException: 401 when the token is missing, invalid or expired,
            or the user no longer exists or is deactivated.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Missing authorization header")

    try:
        payload = decode_token(credentials.credentials, TokenType.access)
    except InvalidToken as e:
        raise _unauthorized(str(e)) from e

    user = await UserRepository(session).get_by_id(payload["sub"])
    if user is None or not user.is_active:
        raise _unauthorized("Unauthorized")
    return user


async def get_org_context(
    user: User = Depends(get_current_user),
    x_organization_id: Optional[str] = Header(default=None, alias="X-Organization-Id"),
    session: AsyncSession = Depends(get_session),
) -> OrgContext:
    """
    Resolve the organization the caller is acting in.

    Raises:
        HTTPException: 403 when the user has no active membership in the
            requested (or primary) organization, 404 when it does not exist.
    """
    org_id = x_organization_id or user.org_id
    if not org_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not belong to an organization",
        )

    organization = await OrganizationRepository(session).get_by_id(org_id)
    if organization is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")

    membership = await OrganizationMemberRepository(session).get_membership(org_id, user.id)
    if membership is None:
        logger.info(f"User {user.id} denied access to organization {org_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this organization",
        )

    return OrgContext(user=user, organization=organization, membership=membership)


async def require_org_manager(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
    if not can_manage_org(ctx):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Organization admin access required",
        )
    return ctx


async def require_platform_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_platform_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Platform admin access required")
    return user
