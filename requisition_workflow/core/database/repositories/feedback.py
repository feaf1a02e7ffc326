"""
Platform feedback repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.feedback import FeedbackVote, PlatformFeedback
from .base import QueryBuilder, SQLModelRepository


class FeedbackRepository(SQLModelRepository[PlatformFeedback]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PlatformFeedback)

    async def list_sorted(
        self,
        *,
        category: Optional[str] = None,
        status: Optional[str] = None,
        sort: str = "upvotes",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[PlatformFeedback]:
        stmt = select(PlatformFeedback)
        stmt = QueryBuilder.apply_filters(stmt, PlatformFeedback, {"category": category, "status": status})
        if sort == "upvotes":
            stmt = stmt.order_by(PlatformFeedback.upvotes.desc(), PlatformFeedback.created_at.desc())  # type: ignore[attr-defined]
        else:
            stmt = stmt.order_by(PlatformFeedback.created_at.desc())  # type: ignore[attr-defined]
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class FeedbackVoteRepository(SQLModelRepository[FeedbackVote]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, FeedbackVote)

    async def get_vote(self, feedback_id: str, user_id: str) -> Optional[FeedbackVote]:
        stmt = select(FeedbackVote).where(FeedbackVote.feedback_id == feedback_id, FeedbackVote.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def voted_ids(self, user_id: str, feedback_ids: List[str]) -> set[str]:
        if not feedback_ids:
            return set()
        stmt = select(FeedbackVote.feedback_id).where(
            FeedbackVote.user_id == user_id,
            FeedbackVote.feedback_id.in_(feedback_ids),  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())
