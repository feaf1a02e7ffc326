"""
User Invitations.

Organization managers add people directly: the account is created with a
random temporary password and a confirmed email, and the invitee receives
a password recovery link to choose their own password.
"""

from __future__ import annotations

from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import OrganizationMember, ProjectMember, User
from requisition_workflow.core.database.repositories import (
    OrganizationMemberRepository,
    ProjectMemberRepository,
    ProjectRepository,
    UserRepository,
)
from requisition_workflow.core.errors import (
    Conflict,
    DomainError,
    EmailDeliveryError,
    EmailNotConfigured,
    NotFound,
    ValidationFailed,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import MemberRole, ProjectRole, WorkflowRole
from requisition_workflow.core.models.io.invitations import (
    InvitedUser,
    InviteRequest,
    InviteResponse,
    ResendInvitationRequest,
    ResendInvitationResponse,
)
from requisition_workflow.core.security import TokenType, create_token, generate_temporary_password, hash_password
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.services.access import OrgContext
from requisition_workflow.server.services.email import EmailSender, invitation_email
from requisition_workflow.server.services.plans import LimitKind, ensure_within_limit
from requisition_workflow.server.services.sanitize import is_valid_email, sanitize_email, sanitize_string

logger = get_logger(__name__)

ADMIN_WORKFLOW_ROLES = frozenset({WorkflowRole.super_admin.value, WorkflowRole.approver.value, WorkflowRole.reviewer.value})


class InvitationFailed(DomainError):
    status_code = 500


class EmailSendFailed(DomainError):
    status_code = 502


def member_role_for(workflow_role: str) -> str:
    """Reviewers, approvers and super admins also administer the organization."""
    return MemberRole.admin.value if workflow_role in ADMIN_WORKFLOW_ROLES else MemberRole.member.value


def _recovery_link(user: User) -> str:
    token = create_token(user.id, TokenType.recovery, extra_claims={"email": user.email})
    return f"{settings.app_base_url}/reset-password?token={token}"


async def _send_invitation(
    sender: EmailSender, ctx: OrgContext, user: User, workflow_role: str, *, require_configured: bool = False
) -> Optional[str]:
    subject, body = invitation_email(user.full_name, ctx.organization.name, workflow_role, _recovery_link(user))
    try:
        return await sender.send(user.email, subject, body, require_configured=require_configured)
    except EmailNotConfigured as e:
        raise InvitationFailed("Email service not configured") from e
    except EmailDeliveryError as e:
        raise EmailSendFailed(f"Failed to send email: {e}") from e


async def invite_user(session: AsyncSession, sender: EmailSender, ctx: OrgContext, data: InviteRequest) -> InviteResponse:
    """
    Create a user in the caller's organization and email them a set-password link.

    Raises:
        ValidationFailed: missing fields, unknown role or malformed email
        Conflict: a user with this email already exists
        PlanLimitExceeded: the organization is at its user limit
        InvitationFailed: the database transaction failed
        EmailSendFailed: the user was created but the email could not be delivered
    """
    email = sanitize_email(data.email)
    full_name = sanitize_string(data.full_name, 100)
    role = (data.role or "").strip()

    if not email or not full_name or not role:
        raise ValidationFailed("Missing required fields: email, fullName, role")
    if role not in {r.value for r in WorkflowRole}:
        raise ValidationFailed(f"Invalid role: {role}")
    if not is_valid_email(email):
        raise ValidationFailed("Invalid email format")

    users = UserRepository(session)
    if await users.get_by_email(email) is not None:
        raise Conflict("A user with this email already exists")
    await ensure_within_limit(session, ctx.organization, LimitKind.users)

    now = utc_now()
    password_hash = await run_in_threadpool(hash_password, generate_temporary_password())
    try:
        user = await users.create(
            User(
                email=email,
                full_name=full_name,
                password_hash=password_hash,
                org_id=ctx.org_id,
                email_confirmed_at=now,
            )
        )
        await OrganizationMemberRepository(session).create(
            OrganizationMember(
                organization_id=ctx.org_id,
                user_id=user.id,
                role=member_role_for(role),
                workflow_role=role,
                is_active=True,
                invited_by=ctx.user_id,
                invited_at=now,
                accepted_at=now,
            )
        )
        await _assign_projects(session, ctx, user, data.project_assignments)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Invitation of {email} to org {ctx.org_id} failed: {e}")
        raise InvitationFailed(f"Failed to create user: {e}") from e

    logger.info(f"User {user.id} invited to org {ctx.org_id} as {role} by {ctx.user_id}")
    await _send_invitation(sender, ctx, user, role)

    return InviteResponse(
        user=InvitedUser(id=user.id, email=user.email, full_name=user.full_name, role=role),
        message=f"Invitation sent to {email}",
    )


async def _assign_projects(session: AsyncSession, ctx: OrgContext, user: User, project_ids: list[str]) -> None:
    projects = ProjectRepository(session)
    assignments = ProjectMemberRepository(session)
    for project_id in dict.fromkeys(project_ids):
        project = await projects.get_in_org(ctx.org_id, project_id)
        if project is None or not project.is_active:
            logger.warning(f"Skipping project assignment {project_id} for {user.email}: not an active project")
            continue
        await assignments.create(
            ProjectMember(
                project_id=project.id,
                user_id=user.id,
                org_id=ctx.org_id,
                role=ProjectRole.submitter.value,
                assigned_by=ctx.user_id,
            )
        )


async def resend_invitation(
    session: AsyncSession, sender: EmailSender, ctx: OrgContext, data: ResendInvitationRequest
) -> ResendInvitationResponse:
    """
    Email a fresh set-password link to a user of the caller's organization.

    Raises:
        ValidationFailed: neither ``userId`` nor ``email`` given
        NotFound: no such user in the organization
        InvitationFailed: the email provider is not configured
        EmailSendFailed: the provider rejected the message
    """
    if not data.user_id and not data.email:
        raise ValidationFailed("Missing required field: userId or email")

    user = await UserRepository(session).get_in_org(
        ctx.org_id, user_id=data.user_id, email=sanitize_email(data.email) or None
    )
    if user is None:
        raise NotFound("User not found in your organization")

    membership = await OrganizationMemberRepository(session).get_membership(ctx.org_id, user.id, active_only=False)
    workflow_role = membership.workflow_role if membership else WorkflowRole.submitter.value

    email_id = await _send_invitation(sender, ctx, user, workflow_role, require_configured=True)
    logger.info(f"Invitation resent to {user.email} in org {ctx.org_id}")

    return ResendInvitationResponse(
        user=InvitedUser(id=user.id, email=user.email, full_name=user.full_name, role=workflow_role),
        message="Invitation email resent successfully",
        email_id=email_id,
    )
