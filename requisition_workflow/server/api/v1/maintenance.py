"""
Maintenance Endpoints.

Jobs triggered by an external scheduler: orphaned signup cleanup, email
queue processing and rate limit log cleanup. Every call must carry the
shared secret in the ``x-cleanup-secret`` header.
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.io.maintenance import CleanupResponse, EmailQueueResult, RateLimitCleanupResult
from requisition_workflow.server.core import constant
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.services.cleanup import cleanup_orphaned_signups
from requisition_workflow.server.services.deps import EmailSenderDep, SessionDep
from requisition_workflow.server.services.email import process_email_queue
from requisition_workflow.server.services.rate_limit import cleanup_rate_limits

logger = get_logger(__name__)


async def verify_cleanup_secret(
    x_cleanup_secret: Optional[str] = Header(default=None, alias=constant.CLEANUP_SECRET_HEADER),
) -> None:
    expected = settings.maintenance.cleanup_secret_key
    if not expected:
        logger.error("Maintenance endpoint called but MAINTENANCE__CLEANUP_SECRET_KEY is not configured")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Cleanup secret not configured")
    if not x_cleanup_secret or not hmac.compare_digest(x_cleanup_secret, expected):
        logger.warning("Maintenance endpoint called with an invalid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


router = APIRouter(dependencies=[Depends(verify_cleanup_secret)])


@router.post(
    "/cleanup-orphaned-signups",
    response_model=CleanupResponse,
    summary="Clean Up Orphaned Signups",
    description="Delete unverified signups older than the retention period, with their empty organizations.",
    responses={401: {"description": "Invalid secret"}, 500: {"description": "Secret not configured"}},
)
async def cleanup_signups(session: SessionDep) -> CleanupResponse:
    stats = await cleanup_orphaned_signups(session, settings.maintenance.orphan_retention_days)
    return CleanupResponse(success=True, stats=stats)


@router.post(
    "/process-email-queue",
    response_model=EmailQueueResult,
    summary="Process Email Queue",
    description="Send a batch of queued notification emails.",
)
async def process_queue(session: SessionDep, sender: EmailSenderDep) -> EmailQueueResult:
    return await process_email_queue(session, sender)


@router.post(
    "/cleanup-rate-limits",
    response_model=RateLimitCleanupResult,
    summary="Clean Up Rate Limit Logs",
)
async def cleanup_rate_limit_logs(session: SessionDep) -> RateLimitCleanupResult:
    deleted = await cleanup_rate_limits(session)
    await session.commit()
    return RateLimitCleanupResult(deleted=deleted)
