"""
Invitation Endpoints.

Organization managers add users to their organization and can resend the
set-password email to users who have not completed it.
"""

from fastapi import APIRouter, status

from requisition_workflow.core.models.io.invitations import (
    InviteRequest,
    InviteResponse,
    ResendInvitationRequest,
    ResendInvitationResponse,
)
from requisition_workflow.server.services.deps import EmailSenderDep, OrgManagerDep, SessionDep
from requisition_workflow.server.services.invitations import invite_user, resend_invitation

router = APIRouter()


@router.post(
    "",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite User",
    description="Create a user in the current organization and email them a link to set their password.",
    response_description="The invited user.",
    responses={
        400: {"description": "Missing or invalid fields"},
        403: {"description": "Not an organization admin, or the plan's user limit is reached"},
        409: {"description": "A user with this email already exists"},
        502: {"description": "The user was created but the email could not be sent"},
    },
)
async def invite(data: InviteRequest, ctx: OrgManagerDep, session: SessionDep, sender: EmailSenderDep) -> InviteResponse:
    """
    Invite a user.

    The new account gets a confirmed email and a random password, an active
    membership with the requested workflow role and submitter assignments
    on the listed projects.
    """
    return await invite_user(session, sender, ctx, data)


@router.post(
    "/resend",
    response_model=ResendInvitationResponse,
    summary="Resend Invitation",
    description="Email a fresh set-password link to a user of the current organization.",
    responses={
        400: {"description": "Neither userId nor email given"},
        404: {"description": "User not found in your organization"},
        500: {"description": "Email service not configured"},
        502: {"description": "The email provider rejected the message"},
    },
)
async def resend(
    data: ResendInvitationRequest, ctx: OrgManagerDep, session: SessionDep, sender: EmailSenderDep
) -> ResendInvitationResponse:
    return await resend_invitation(session, sender, ctx, data)
