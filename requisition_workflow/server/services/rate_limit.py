"""
Database-backed Rate Limiting.

Attempts are counted per (endpoint, identifier) in fixed windows stored in
``rate_limit_log``. A window starts at the first attempt and stays open as
long as attempts keep arriving within ``window_seconds`` of the previous
one; a blocked caller must wait until ``first_attempt + window``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import RateLimitLog
from requisition_workflow.core.database.repositories import RateLimitRepository
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.server.core import constant

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int = 0


def get_client_ip(request: Request) -> str:
    """Client address as reported by the proxy chain, falling back to ``unknown``."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    return "unknown"


async def check_rate_limit(
    session: AsyncSession,
    endpoint: str,
    identifier: str,
    max_requests: int,
    window_seconds: int,
) -> RateLimitResult:
    """
    Record an attempt and report whether it is allowed.

    Args:
        session: Database session; the caller commits
        endpoint: Logical endpoint name (e.g. ``organization-signup``)
        identifier: Client IP or email the limit applies to
        max_requests: Attempts allowed per window
        window_seconds: Window length

    Returns:
        RateLimitResult with remaining attempts, or the seconds to wait
    """
    repo = RateLimitRepository(session)
    now = utc_now()
    window = timedelta(seconds=window_seconds)

    log = await repo.latest_since(endpoint, identifier, now - window)
    if log is None:
        await repo.create(
            RateLimitLog(
                endpoint=endpoint,
                identifier=identifier,
                attempt_count=1,
                first_attempt_at=now,
                last_attempt_at=now,
            )
        )
        return RateLimitResult(allowed=True, remaining=max_requests - 1)

    if log.attempt_count >= max_requests:
        retry_after = max(int((log.first_attempt_at + window - now).total_seconds()), 0)
        logger.warning(f"Rate limit exceeded for {endpoint} by {identifier}; retry after {retry_after}s")
        return RateLimitResult(allowed=False, remaining=0, retry_after=retry_after)

    log.attempt_count += 1
    log.last_attempt_at = now
    await repo.update(log)
    return RateLimitResult(allowed=True, remaining=max_requests - log.attempt_count)


async def reset_rate_limit(session: AsyncSession, endpoint: str, identifier: str) -> None:
    await RateLimitRepository(session).delete_for(endpoint, identifier)


async def cleanup_rate_limits(session: AsyncSession) -> int:
    """Delete logs whose last attempt is older than the retention period."""
    cutoff = utc_now() - timedelta(hours=constant.RATE_LIMIT_LOG_RETENTION_HOURS)
    deleted = await RateLimitRepository(session).delete_older_than(cutoff)
    logger.info(f"Deleted {deleted} expired rate limit log entries")
    return deleted
