"""
Platform Feedback Endpoints.

Feature requests and bug reports shared by every organization on the
platform. Any authenticated user can post and upvote; platform admins
triage and respond.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Header, HTTPException, Query, status

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import FeedbackVote, PlatformFeedback
from requisition_workflow.core.database.repositories import (
    FeedbackRepository,
    FeedbackVoteRepository,
    OrganizationMemberRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import FeedbackCategory, FeedbackStatus
from requisition_workflow.core.models.io.feedback import FeedbackCreate, FeedbackRead, FeedbackUpdate, VoteResult
from requisition_workflow.server.services.deps import CurrentUserDep, PlatformAdminDep, SessionDep
from requisition_workflow.server.services.sanitize import sanitize_string

logger = get_logger(__name__)

router = APIRouter()


async def _get_feedback(session, feedback_id: str) -> PlatformFeedback:
    feedback = await FeedbackRepository(session).get_by_id(feedback_id)
    if feedback is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
    return feedback


def _read(feedback: PlatformFeedback, has_voted: bool) -> FeedbackRead:
    read = FeedbackRead.model_validate(feedback)
    read.has_voted = has_voted
    return read


@router.get(
    "",
    response_model=List[FeedbackRead],
    summary="List Feedback",
    description="Platform-wide feedback, most upvoted or newest first.",
)
async def list_feedback(
    user: CurrentUserDep,
    session: SessionDep,
    category: Optional[FeedbackCategory] = Query(default=None),
    status_filter: Optional[FeedbackStatus] = Query(default=None, alias="status"),
    sort: Literal["upvotes", "newest"] = Query(default="upvotes"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> List[FeedbackRead]:
    items = await FeedbackRepository(session).list_sorted(
        category=category.value if category else None,
        status=status_filter.value if status_filter else None,
        sort=sort,
        limit=limit,
        offset=offset,
    )
    voted = await FeedbackVoteRepository(session).voted_ids(user.id, [f.id for f in items])
    return [_read(f, f.id in voted) for f in items]


@router.post(
    "",
    response_model=FeedbackRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Feedback",
)
async def create_feedback(
    data: FeedbackCreate,
    user: CurrentUserDep,
    session: SessionDep,
    x_organization_id: Optional[str] = Header(default=None, alias="X-Organization-Id"),
) -> FeedbackRead:
    """
    Submit feedback.

    The feedback is attributed to the organization the caller is acting in.
    """
    org_id = user.org_id
    if x_organization_id and await OrganizationMemberRepository(session).get_membership(x_organization_id, user.id):
        org_id = x_organization_id

    feedback = await FeedbackRepository(session).create(
        PlatformFeedback(
            org_id=org_id,
            user_id=user.id,
            title=sanitize_string(data.title, 200),
            description=sanitize_string(data.description, 5000),
            category=data.category.value,
            priority=data.priority.value,
        )
    )
    await session.commit()
    logger.info(f"Feedback {feedback.id} submitted by {user.id}")
    return _read(feedback, False)


@router.get(
    "/{feedback_id}",
    response_model=FeedbackRead,
    summary="Get Feedback",
    responses={404: {"description": "Feedback not found"}},
)
async def get_feedback(feedback_id: str, user: CurrentUserDep, session: SessionDep) -> FeedbackRead:
    feedback = await _get_feedback(session, feedback_id)
    vote = await FeedbackVoteRepository(session).get_vote(feedback.id, user.id)
    return _read(feedback, vote is not None)


@router.post(
    "/{feedback_id}/vote",
    response_model=VoteResult,
    summary="Toggle Vote",
    description="Upvote the feedback, or withdraw the caller's existing upvote.",
    responses={404: {"description": "Feedback not found"}},
)
async def toggle_vote(feedback_id: str, user: CurrentUserDep, session: SessionDep) -> VoteResult:
    feedback = await _get_feedback(session, feedback_id)
    votes = FeedbackVoteRepository(session)
    vote = await votes.get_vote(feedback.id, user.id)

    if vote is None:
        await votes.create(FeedbackVote(feedback_id=feedback.id, user_id=user.id))
        feedback.upvotes += 1
        voted = True
    else:
        await votes.delete(vote.id)
        feedback.upvotes = max(feedback.upvotes - 1, 0)
        voted = False

    await FeedbackRepository(session).update(feedback)
    await session.commit()
    return VoteResult(voted=voted, upvotes=feedback.upvotes)


@router.patch(
    "/{feedback_id}",
    response_model=FeedbackRead,
    summary="Triage Feedback",
    description="Update status and priority or respond. Platform admins only.",
    responses={403: {"description": "Platform admin access required"}, 404: {"description": "Feedback not found"}},
)
async def update_feedback(
    feedback_id: str, data: FeedbackUpdate, admin: PlatformAdminDep, session: SessionDep
) -> FeedbackRead:
    feedback = await _get_feedback(session, feedback_id)
    if data.status is not None:
        feedback.status = data.status.value
    if data.priority is not None:
        feedback.priority = data.priority.value
    if data.admin_response is not None:
        feedback.admin_response = data.admin_response
        feedback.responded_by = admin.id
        feedback.responded_at = utc_now()

    await FeedbackRepository(session).update(feedback)
    await session.commit()
    vote = await FeedbackVoteRepository(session).get_vote(feedback.id, admin.id)
    return _read(feedback, vote is not None)
