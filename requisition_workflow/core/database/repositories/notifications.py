"""
Notification repositories.

In-app notifications per user, and the outgoing email queue.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.notifications import EmailNotification, Notification
from .base import SQLModelRepository


class NotificationRepository(SQLModelRepository[Notification]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def list_for_user(self, user_id: str, org_id: str, *, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id, Notification.org_id == org_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_all_read(self, user_id: str, org_id: str) -> int:
        stmt = (
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.org_id == org_id,
                Notification.is_read == False,  # noqa: E712
            )
            .values(is_read=True)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0


class EmailNotificationRepository(SQLModelRepository[EmailNotification]):
    """Repository for the outgoing email queue."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EmailNotification)

    async def list_pending(self, *, max_retries: int, limit: int) -> List[EmailNotification]:
        """Pending emails below the retry ceiling, oldest first."""
        stmt = (
            select(EmailNotification)
            .where(EmailNotification.status == "pending", EmailNotification.retry_count < max_retries)
            .order_by(EmailNotification.created_at.asc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
