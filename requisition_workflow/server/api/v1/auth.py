"""
Authentication Endpoints.

Organization signup, password login, email verification, password recovery
and the current user's profile. Signup and login are rate limited per
client IP (and per email for login).
"""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.repositories import OrganizationMemberRepository, UserRepository
from requisition_workflow.core.errors import EmailDeliveryError
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.io.auth import (
    LoginRequest,
    MeResponse,
    MembershipRead,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserRead,
    UserUpdate,
    VerifyEmailRequest,
)
from requisition_workflow.core.security import (
    InvalidToken,
    TokenType,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)
from requisition_workflow.server.core import constant
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.services.deps import CurrentUserDep, EmailSenderDep, SessionDep
from requisition_workflow.server.services.email import password_reset_email
from requisition_workflow.server.services.rate_limit import (
    RateLimitResult,
    check_rate_limit,
    get_client_ip,
    reset_rate_limit,
)
from requisition_workflow.server.services.sanitize import sanitize_email
from requisition_workflow.server.services.signup import signup_organization

logger = get_logger(__name__)

router = APIRouter()

SIGNUP_ENDPOINT = "organization-signup"
LOGIN_EMAIL_ENDPOINT = "login_email"
LOGIN_IP_ENDPOINT = "login_ip"


def _rate_limited(result: RateLimitResult, detail) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=detail,
        headers={"Retry-After": str(result.retry_after)},
    )


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
    )


def _user_read(user) -> UserRead:
    return UserRead.model_validate(user)


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up Organization",
    description="Create a new organization together with its owner account.",
    response_description="Ids of the created organization and owner.",
    responses={
        400: {"description": "Missing or invalid input"},
        409: {"description": "Slug or email already taken"},
        429: {"description": "Too many signup attempts from this address"},
    },
)
async def signup(data: SignupRequest, request: Request, session: SessionDep, sender: EmailSenderDep) -> SignupResponse:
    """
    Sign up an organization.

    The owner account is created unverified and receives a verification email.
    The owner becomes workflow super admin of the new organization, which
    starts on the free plan with a trial period.
    """
    max_requests, window = constant.SIGNUP_RATE_LIMIT
    result = await check_rate_limit(session, SIGNUP_ENDPOINT, get_client_ip(request), max_requests, window)
    await session.commit()
    if not result.allowed:
        raise _rate_limited(result, "Too many signup attempts. Please try again later.")

    return await signup_organization(session, sender, data)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log In",
    description="Exchange email and password for a bearer access token.",
    response_description="Access token and the authenticated user.",
    responses={
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(data: LoginRequest, request: Request, session: SessionDep) -> TokenResponse:
    """
    Log in.

    Attempts are limited per email address and per client IP. A successful
    login resets both counters. Unverified users may log in; the response
    reports whether the email is confirmed.
    """
    email = sanitize_email(data.email)
    client_ip = get_client_ip(request)

    email_max, email_window = constant.LOGIN_EMAIL_RATE_LIMIT
    ip_max, ip_window = constant.LOGIN_IP_RATE_LIMIT
    email_limit = await check_rate_limit(session, LOGIN_EMAIL_ENDPOINT, email, email_max, email_window)
    ip_limit = await check_rate_limit(session, LOGIN_IP_ENDPOINT, client_ip, ip_max, ip_window)
    await session.commit()

    for result in (email_limit, ip_limit):
        if not result.allowed:
            logger.warning(f"Login rate limit hit for {email} from {client_ip}")
            raise _rate_limited(
                result,
                {
                    "code": "RATE_LIMITED",
                    "message": "Too many login attempts. Please try again later.",
                    "retry_after": result.retry_after,
                },
            )

    users = UserRepository(session)
    user = await users.get_by_email(email)
    if user is None or not user.is_active:
        raise _invalid_credentials()
    if not await run_in_threadpool(verify_password, data.password, user.password_hash):
        raise _invalid_credentials()

    await reset_rate_limit(session, LOGIN_EMAIL_ENDPOINT, email)
    await reset_rate_limit(session, LOGIN_IP_ENDPOINT, client_ip)
    user.last_login_at = utc_now()
    await users.update(user)
    await session.commit()

    logger.info(f"User {user.id} logged in")
    return TokenResponse(
        access_token=create_token(user.id, TokenType.access),
        expires_in=settings.auth.access_token_ttl_minutes * 60,
        user=_user_read(user),
    )


@router.post(
    "/verify-email",
    response_model=MessageResponse,
    summary="Verify Email",
    description="Confirm an email address with the token from the verification email.",
    responses={400: {"description": "Invalid or expired token"}},
)
async def verify_email(data: VerifyEmailRequest, session: SessionDep) -> MessageResponse:
    """
    Verify email.

    Marks the account's email as confirmed. Confirming twice is harmless.
    """
    try:
        payload = decode_token(data.token, TokenType.email_verification)
    except InvalidToken as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    users = UserRepository(session)
    user = await users.get_by_id(payload["sub"])
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")
    if user.email_confirmed_at is None:
        user.email_confirmed_at = utc_now()
        await users.update(user)
        await session.commit()
    return MessageResponse(message="Email verified successfully")


@router.post(
    "/password-reset/request",
    response_model=MessageResponse,
    summary="Request Password Reset",
    description="Send a password recovery link. Always succeeds so that registered emails are not revealed.",
)
async def request_password_reset(
    data: PasswordResetRequest, session: SessionDep, sender: EmailSenderDep
) -> MessageResponse:
    """
    Request a password reset.

    When the email belongs to an active user, a recovery link is emailed.
    """
    user = await UserRepository(session).get_by_email(sanitize_email(data.email))
    if user is not None and user.is_active:
        token = create_token(user.id, TokenType.recovery, extra_claims={"email": user.email})
        subject, body = password_reset_email(user.full_name, f"{settings.app_base_url}/reset-password?token={token}")
        try:
            await sender.send(user.email, subject, body)
        except EmailDeliveryError as e:
            logger.warning(f"Password reset email to {user.email} could not be sent: {e}")
    return MessageResponse(message="If an account exists for this email, a reset link has been sent")


@router.post(
    "/password-reset",
    response_model=MessageResponse,
    summary="Reset Password",
    description="Set a new password using the token from a recovery or invitation email.",
    responses={400: {"description": "Invalid token or password too short"}},
)
async def reset_password(data: PasswordResetConfirm, session: SessionDep) -> MessageResponse:
    """
    Reset password.

    A recovery link proves ownership of the address, so an unverified email
    becomes verified as well.
    """
    if len(data.password) < constant.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {constant.MIN_PASSWORD_LENGTH} characters",
        )
    try:
        payload = decode_token(data.token, TokenType.recovery)
    except InvalidToken as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    users = UserRepository(session)
    user = await users.get_by_id(payload["sub"])
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")

    user.password_hash = await run_in_threadpool(hash_password, data.password)
    if user.email_confirmed_at is None:
        user.email_confirmed_at = utc_now()
    await users.update(user)
    await session.commit()
    logger.info(f"Password reset for user {user.id}")
    return MessageResponse(message="Password updated successfully")


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current User",
    description="Return the authenticated user with their organization memberships.",
    responses={401: {"description": "Not authenticated"}},
)
async def me(user: CurrentUserDep, session: SessionDep) -> MeResponse:
    """
    Get the current user.

    Memberships list every active organization the user belongs to; the
    primary organization is flagged.
    """
    memberships = await OrganizationMemberRepository(session).list_for_user(user.id)
    return MeResponse(
        user=_user_read(user),
        memberships=[
            MembershipRead(
                organization_id=org.id,
                organization_name=org.name,
                organization_slug=org.slug,
                role=member.role,
                workflow_role=member.workflow_role,
                is_primary=org.id == user.org_id,
            )
            for member, org in memberships
        ],
    )


@router.patch(
    "/me",
    response_model=UserRead,
    summary="Update Current User",
    description="Change the authenticated user's display name or email notification preference.",
    responses={401: {"description": "Not authenticated"}},
)
async def update_me(data: UserUpdate, user: CurrentUserDep, session: SessionDep) -> UserRead:
    """
    Update the current user.

    Turning email notifications off keeps in-app notifications flowing.
    """
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in updates.items():
        setattr(user, key, value)
    if updates:
        await UserRepository(session).update(user)
        await session.commit()
    return _user_read(user)
