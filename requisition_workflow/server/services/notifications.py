"""
Requisition Notifications.

Fan-out of workflow events to the in-app inbox and the outgoing email
queue. Emails are only queued here; the email queue processor sends them.
"""

from __future__ import annotations

from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database.entities import EmailNotification, Notification, User
from requisition_workflow.core.database.repositories import (
    EmailNotificationRepository,
    NotificationRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import NotificationType
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.services.email import RequisitionEmailDetails, requisition_event_email

logger = get_logger(__name__)


def requisition_link(requisition_id: str) -> str:
    return f"/requisitions/{requisition_id}"


async def notify_users(
    session: AsyncSession,
    *,
    org_id: str,
    recipients: Iterable[User],
    notification_type: NotificationType,
    title: str,
    message: str,
    link: str,
    email_details: RequisitionEmailDetails,
) -> List[Notification]:
    """
    Create an in-app notification for each distinct recipient.

    An email is queued alongside unless the recipient turned email
    notifications off; the in-app notification is always created.
    """
    notifications = NotificationRepository(session)
    emails = EmailNotificationRepository(session)
    created: List[Notification] = []
    seen: set[str] = set()

    for user in recipients:
        if user.id in seen:
            continue
        seen.add(user.id)
        created.append(
            await notifications.create(
                Notification(
                    user_id=user.id,
                    org_id=org_id,
                    type=notification_type.value,
                    title=title,
                    message=message,
                    link=link,
                )
            )
        )
        if not user.email_notifications_enabled:
            continue
        subject, body = requisition_event_email(
            notification_type, user.full_name, email_details, f"{settings.app_base_url}{link}"
        )
        await emails.create(
            EmailNotification(org_id=org_id, recipient_email=user.email, subject=subject, body=body)
        )

    if created:
        logger.debug(f"Queued {len(created)} '{notification_type.value}' notifications in org {org_id}")
    return created
