"""
User repository.

Emails are stored lowercased; lookups normalize their argument the same way.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.feedback import FeedbackVote, PlatformFeedback
from ..entities.notifications import Notification
from ..entities.organizations import OrganizationMember
from ..entities.projects import ProjectMember
from ..entities.users import User
from .base import SQLModelRepository


class UserRepository(SQLModelRepository[User]):
    """Repository for user data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_in_org(self, org_id: str, *, user_id: Optional[str] = None, email: Optional[str] = None) -> Optional[User]:
        """Find a user whose primary organization is ``org_id`` by id or email."""
        stmt = select(User).where(User.org_id == org_id)
        if user_id:
            stmt = stmt.where(User.id == user_id)
        elif email:
            stmt = stmt.where(User.email == email.strip().lower())
        else:
            return None
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_unverified_before(self, cutoff: datetime) -> List[User]:
        stmt = (
            select(User)
            .where(User.email_confirmed_at.is_(None))  # type: ignore[union-attr]
            .where(User.created_at < cutoff)
            .order_by(User.created_at.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_account(self, user: User) -> None:
        """Delete a user with their memberships, assignments, notifications and votes."""
        await self.session.execute(delete(OrganizationMember).where(OrganizationMember.user_id == user.id))
        for model in (ProjectMember, Notification, FeedbackVote):
            await self.session.execute(delete(model).where(model.user_id == user.id))
        await self.session.execute(update(PlatformFeedback).where(PlatformFeedback.user_id == user.id).values(user_id=None))
        await self.session.delete(user)
        await self.session.flush()
