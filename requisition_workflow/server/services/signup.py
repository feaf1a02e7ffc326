"""
Organization Signup.

Creates a tenant organization together with its owner account. The user,
organization, membership and default settings are written in a single
transaction; the verification email is sent only after the commit.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import (
    FiscalYearSettings,
    Organization,
    OrganizationMember,
    OrganizationSettings,
    User,
)
from requisition_workflow.core.database.repositories import (
    FiscalYearSettingsRepository,
    OrganizationMemberRepository,
    OrganizationRepository,
    OrganizationSettingsRepository,
    UserRepository,
)
from requisition_workflow.core.errors import Conflict, DomainError, EmailDeliveryError, ValidationFailed
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import MemberRole, OrganizationStatus, Plan, WorkflowRole
from requisition_workflow.core.models.io.auth import SignupRequest, SignupResponse
from requisition_workflow.core.security import TokenType, create_token, hash_password
from requisition_workflow.server.core import constant
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.services.email import EmailSender, verification_email
from requisition_workflow.server.services.plans import apply_plan
from requisition_workflow.server.services.sanitize import (
    is_valid_email,
    sanitize_email,
    sanitize_slug,
    sanitize_string,
)

logger = get_logger(__name__)


class SignupFailed(DomainError):
    status_code = 500


def _validate(org_name: str, slug: str, full_name: str, email: str, password: str) -> None:
    if not org_name or not slug:
        raise ValidationFailed("Organization name and slug are required")
    if not full_name or not email or not password:
        raise ValidationFailed("Admin full name, email and password are required")
    if not is_valid_email(email):
        raise ValidationFailed("Invalid email format")
    if len(password) < constant.MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {constant.MIN_PASSWORD_LENGTH} characters")
    if len(slug) < constant.MIN_SLUG_LENGTH:
        raise ValidationFailed(f"Slug must be at least {constant.MIN_SLUG_LENGTH} characters")
    if slug in constant.RESERVED_SLUGS:
        raise ValidationFailed(f'The slug "{slug}" is reserved. Please choose another.')


async def _release_orphaned_account(session: AsyncSession, user: User) -> None:
    """Delete an account that never got a profile, or refuse the email."""
    if user.org_id is None and not await OrganizationMemberRepository(session).has_any_membership(user.id):
        logger.info(f"Removing orphaned account {user.id} to allow signup for {user.email}")
        await UserRepository(session).delete_account(user)
        return
    raise Conflict("An account with this email already exists")


async def signup_organization(session: AsyncSession, sender: EmailSender, data: SignupRequest) -> SignupResponse:
    """
    Register a new organization and its owner.

    Raises:
        ValidationFailed: missing or malformed input, reserved slug
        Conflict: the slug or the email is already taken
        SignupFailed: the database transaction failed
    """
    org_name = sanitize_string(data.organization.name, 100)
    slug = sanitize_slug(data.organization.slug, constant.MAX_SLUG_LENGTH)
    org_email = sanitize_email(data.organization.email) or None
    full_name = sanitize_string(data.admin.full_name, 100)
    email = sanitize_email(data.admin.email)
    password = data.admin.password or ""

    _validate(org_name, slug, full_name, email, password)

    organizations = OrganizationRepository(session)
    users = UserRepository(session)
    if await organizations.get_by_slug(slug) is not None:
        raise Conflict("This organization URL is already taken")

    try:
        existing = await users.get_by_email(email)
        if existing is not None:
            await _release_orphaned_account(session, existing)

        now = utc_now()
        password_hash = await run_in_threadpool(hash_password, password)
        user = await users.create(User(email=email, full_name=full_name, password_hash=password_hash))

        organization = Organization(
            name=org_name,
            slug=slug,
            status=OrganizationStatus.active.value,
            billing_email=org_email or email,
            trial_ends_at=now + timedelta(days=constant.TRIAL_PERIOD_DAYS),
        )
        apply_plan(organization, Plan.free)
        await organizations.create(organization)

        user.org_id = organization.id
        await users.update(user)

        await OrganizationMemberRepository(session).create(
            OrganizationMember(
                organization_id=organization.id,
                user_id=user.id,
                role=MemberRole.owner.value,
                workflow_role=WorkflowRole.super_admin.value,
                is_active=True,
                accepted_at=now,
            )
        )
        await OrganizationSettingsRepository(session).create(
            OrganizationSettings(org_id=organization.id, organization_name=org_name, email=org_email or email)
        )
        await FiscalYearSettingsRepository(session).create(
            FiscalYearSettings(org_id=organization.id, current_fiscal_year=now.year)
        )
        await session.commit()
    except Conflict:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Signup for {slug} failed: {e}")
        raise SignupFailed(f"Failed to create organization: {e}") from e

    logger.info(f"Organization {organization.id} ({slug}) created with owner {user.id}")

    token = create_token(user.id, TokenType.email_verification, extra_claims={"email": email})
    subject, body = verification_email(full_name, org_name, f"{settings.app_base_url}/verify-email?token={token}")
    try:
        await sender.send(email, subject, body)
    except EmailDeliveryError as e:
        logger.warning(f"Verification email to {email} could not be sent: {e}")

    return SignupResponse(
        organization_id=organization.id,
        user_id=user.id,
        message="Organization created successfully. Please check your email to verify your account.",
    )
