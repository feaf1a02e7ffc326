"""
Notification Endpoints.

In-app notifications of the caller within the active organization.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from requisition_workflow.core.database.repositories import NotificationRepository
from requisition_workflow.core.models.io.notifications import MarkAllReadResponse, NotificationRead
from requisition_workflow.server.services.deps import OrgContextDep, SessionDep

router = APIRouter()


@router.get(
    "",
    response_model=List[NotificationRead],
    summary="List Notifications",
    description="The caller's notifications in the current organization, newest first.",
)
async def list_notifications(
    ctx: OrgContextDep,
    session: SessionDep,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
) -> List[NotificationRead]:
    notifications = await NotificationRepository(session).list_for_user(
        ctx.user_id, ctx.org_id, unread_only=unread_only, limit=limit
    )
    return [NotificationRead.model_validate(n) for n in notifications]


@router.post(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark Notification Read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_read(notification_id: str, ctx: OrgContextDep, session: SessionDep) -> NotificationRead:
    repo = NotificationRepository(session)
    notification = await repo.get_by_id(notification_id)
    if notification is None or notification.user_id != ctx.user_id or notification.org_id != ctx.org_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if not notification.is_read:
        notification.is_read = True
        await repo.update(notification)
        await session.commit()
    return NotificationRead.model_validate(notification)


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark All Notifications Read",
)
async def mark_all_read(ctx: OrgContextDep, session: SessionDep) -> MarkAllReadResponse:
    updated = await NotificationRepository(session).mark_all_read(ctx.user_id, ctx.org_id)
    await session.commit()
    return MarkAllReadResponse(updated=updated)
