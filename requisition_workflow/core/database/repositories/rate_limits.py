"""
Rate limit log repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.rate_limits import RateLimitLog
from .base import SQLModelRepository


class RateLimitRepository(SQLModelRepository[RateLimitLog]):
    order_by = "last_attempt_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RateLimitLog)

    async def latest_since(self, endpoint: str, identifier: str, since: datetime) -> Optional[RateLimitLog]:
        """Most recent log for the pair whose last attempt falls inside the window."""
        stmt = (
            select(RateLimitLog)
            .where(
                RateLimitLog.endpoint == endpoint,
                RateLimitLog.identifier == identifier,
                RateLimitLog.last_attempt_at >= since,
            )
            .order_by(RateLimitLog.last_attempt_at.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def delete_for(self, endpoint: str, identifier: str) -> int:
        stmt = delete(RateLimitLog).where(RateLimitLog.endpoint == endpoint, RateLimitLog.identifier == identifier)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_older_than(self, cutoff: datetime) -> int:
        result = await self.session.execute(delete(RateLimitLog).where(RateLimitLog.last_attempt_at < cutoff))
        return result.rowcount or 0
