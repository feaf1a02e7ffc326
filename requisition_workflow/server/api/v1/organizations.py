"""
Organization Endpoints.

The organization switcher, the active organization's profile and settings,
plan usage and member management. The active organization is resolved from
the ``X-Organization-Id`` header or the caller's primary organization.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from requisition_workflow.core.database.entities import OrganizationMember, OrganizationSettings, User
from requisition_workflow.core.database.repositories import (
    OrganizationMemberRepository,
    OrganizationRepository,
    OrganizationSettingsRepository,
    UserRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import MemberRole, WorkflowRole
from requisition_workflow.core.models.io.organizations import (
    MemberRead,
    MemberUpdate,
    OrganizationMembershipRead,
    OrganizationRead,
    OrganizationSettingsRead,
    OrganizationSettingsUpdate,
    OrganizationUpdate,
    OrganizationUsage,
)
from requisition_workflow.server.services.access import user_is_org_owner
from requisition_workflow.server.services.deps import CurrentUserDep, OrgContextDep, OrgManagerDep, SessionDep
from requisition_workflow.server.services.plans import get_usage
from requisition_workflow.server.services.sanitize import is_valid_email, sanitize_email, sanitize_string

logger = get_logger(__name__)

router = APIRouter()


def _member_read(member: OrganizationMember, user: User) -> MemberRead:
    return MemberRead(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=member.role,
        workflow_role=member.workflow_role,
        is_active=member.is_active,
        email_confirmed=user.email_confirmed,
        invited_at=member.invited_at,
        accepted_at=member.accepted_at,
    )


@router.get(
    "",
    response_model=List[OrganizationMembershipRead],
    summary="List My Organizations",
    description="List every organization the caller is an active member of.",
    response_description="Organizations with the caller's roles.",
)
async def list_my_organizations(user: CurrentUserDep, session: SessionDep) -> List[OrganizationMembershipRead]:
    """
    List my organizations.

    Feeds the organization switcher; the primary organization is flagged.
    """
    memberships = await OrganizationMemberRepository(session).list_for_user(user.id)
    return [
        OrganizationMembershipRead(
            organization=OrganizationRead.model_validate(org),
            role=member.role,
            workflow_role=member.workflow_role,
            is_primary=org.id == user.org_id,
        )
        for member, org in memberships
    ]


@router.get(
    "/current",
    response_model=OrganizationRead,
    summary="Get Current Organization",
    description="Return the organization the caller is acting in.",
)
async def get_current_organization(ctx: OrgContextDep) -> OrganizationRead:
    return OrganizationRead.model_validate(ctx.organization)


@router.patch(
    "/current",
    response_model=OrganizationRead,
    summary="Update Current Organization",
    description="Update the organization's name or billing email. Requires organization admin access.",
    responses={400: {"description": "Invalid billing email"}, 403: {"description": "Not an organization admin"}},
)
async def update_current_organization(
    data: OrganizationUpdate, ctx: OrgManagerDep, session: SessionDep
) -> OrganizationRead:
    organization = ctx.organization
    if data.name is not None:
        organization.name = sanitize_string(data.name, 100)
    if data.billing_email is not None:
        email = sanitize_email(data.billing_email)
        if not is_valid_email(email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")
        organization.billing_email = email
    await OrganizationRepository(session).update(organization)
    await session.commit()
    return OrganizationRead.model_validate(organization)


@router.get(
    "/current/settings",
    response_model=OrganizationSettingsRead,
    summary="Get Organization Settings",
    description="Return the display and contact settings of the current organization.",
    responses={404: {"description": "Settings not found"}},
)
async def get_settings(ctx: OrgContextDep, session: SessionDep) -> OrganizationSettingsRead:
    org_settings = await OrganizationSettingsRepository(session).get_for_org(ctx.org_id)
    if org_settings is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization settings not found")
    return OrganizationSettingsRead.model_validate(org_settings)


@router.put(
    "/current/settings",
    response_model=OrganizationSettingsRead,
    summary="Update Organization Settings",
    description="Create or update the settings of the current organization. Requires organization admin access.",
)
async def update_settings(
    data: OrganizationSettingsUpdate, ctx: OrgManagerDep, session: SessionDep
) -> OrganizationSettingsRead:
    """
    Upsert organization settings.

    Missing settings are created from the organization's name.
    """
    repo = OrganizationSettingsRepository(session)
    org_settings = await repo.get_for_org(ctx.org_id)
    if org_settings is None:
        org_settings = await repo.create(
            OrganizationSettings(org_id=ctx.org_id, organization_name=ctx.organization.name)
        )

    changes = data.model_dump(exclude_unset=True)
    if changes.get("organization_name"):
        changes["organization_name"] = sanitize_string(changes["organization_name"], 100)
    if changes.get("currency"):
        changes["currency"] = changes["currency"].upper()
    for key, value in changes.items():
        if key in ("organization_name", "currency") and value is None:
            continue
        setattr(org_settings, key, value)
    await repo.update(org_settings)
    await session.commit()
    return OrganizationSettingsRead.model_validate(org_settings)


@router.get(
    "/current/usage",
    response_model=OrganizationUsage,
    summary="Get Plan Usage",
    description="Current users, active projects and requisitions this month compared with the plan limits.",
)
async def get_current_usage(ctx: OrgContextDep, session: SessionDep) -> OrganizationUsage:
    return await get_usage(session, ctx.organization)


@router.get(
    "/current/members",
    response_model=List[MemberRead],
    summary="List Members",
    description="List the members of the current organization with their roles.",
)
async def list_members(ctx: OrgContextDep, session: SessionDep) -> List[MemberRead]:
    rows = await OrganizationMemberRepository(session).list_with_users(ctx.org_id)
    return [_member_read(member, user) for member, user in rows]


@router.patch(
    "/current/members/{user_id}",
    response_model=MemberRead,
    summary="Update Member Roles",
    description="Change a member's organization role and/or workflow role. Requires organization admin access.",
    responses={
        400: {"description": "The owner's role cannot be changed"},
        403: {"description": "Only the owner can grant the admin or super admin role, or change the owner's workflow role"},
        404: {"description": "Member not found"},
    },
)
async def update_member(user_id: str, data: MemberUpdate, ctx: OrgManagerDep, session: SessionDep) -> MemberRead:
    """
    Update a member.

    The owner role is neither granted nor taken away here. Only the owner
    may touch the owner's workflow role or the super admin workflow role.
    """
    members = OrganizationMemberRepository(session)
    member = await members.get_membership(ctx.org_id, user_id, active_only=False)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    if data.role is not None and data.role.value != member.role:
        if member.role == MemberRole.owner.value or data.role == MemberRole.owner:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The owner's role cannot be changed")
        if data.role == MemberRole.admin and not user_is_org_owner(ctx):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Only the organization owner can grant the admin role"
            )
        member.role = data.role.value
    if data.workflow_role is not None and data.workflow_role.value != member.workflow_role:
        if not user_is_org_owner(ctx):
            if member.role == MemberRole.owner.value:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only the organization owner can change the owner's workflow role",
                )
            if WorkflowRole.super_admin.value in (data.workflow_role.value, member.workflow_role):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only the organization owner can grant or revoke the super admin workflow role",
                )
        member.workflow_role = data.workflow_role.value
    await members.update(member)
    await session.commit()
    logger.info(f"Member {user_id} of org {ctx.org_id} updated by {ctx.user_id}")

    user = await UserRepository(session).get_by_id(user_id)
    return _member_read(member, user)


@router.delete(
    "/current/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Member",
    description="Deactivate a membership. Requires organization admin access.",
    responses={400: {"description": "The owner or the caller cannot be removed"}, 404: {"description": "Not found"}},
)
async def remove_member(user_id: str, ctx: OrgManagerDep, session: SessionDep) -> None:
    members = OrganizationMemberRepository(session)
    member = await members.get_membership(ctx.org_id, user_id)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    if member.role == MemberRole.owner.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The organization owner cannot be removed")
    if user_id == ctx.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot remove yourself")

    member.is_active = False
    await members.update(member)
    await session.commit()
    logger.info(f"Member {user_id} removed from org {ctx.org_id} by {ctx.user_id}")
