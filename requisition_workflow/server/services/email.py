"""
Transactional Email.

Sends email through the Resend HTTP API and drains the outgoing email
queue. Without an API key the sender runs in dev mode: messages are logged
and reported as delivered without contacting the provider.
"""

from __future__ import annotations

import asyncio
import html
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.repositories import EmailNotificationRepository
from requisition_workflow.core.errors import EmailDeliveryError, EmailNotConfigured
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import EmailStatus, NotificationType
from requisition_workflow.core.models.io.maintenance import EmailQueueResult
from requisition_workflow.core.monitoring import log_email_delivery
from requisition_workflow.server.core.config import EmailConfig, settings

logger = get_logger(__name__)


class EmailSender:
    """Client for the Resend send-email endpoint."""

    def __init__(self, config: EmailConfig) -> None:
        self.config = config

    @property
    def configured(self) -> bool:
        return bool(self.config.resend_api_key)

    async def send(self, to: str, subject: str, html_body: str, *, require_configured: bool = False) -> Optional[str]:
        """
        Send one email.

        Args:
            to: Recipient address
            subject: Subject line
            html_body: HTML body
            require_configured: Raise instead of pretending when no API key is set

        Returns:
            The provider's message id, or None in dev mode

        Raises:
            EmailNotConfigured: no API key and ``require_configured`` is set
            EmailDeliveryError: the provider rejected the message or was unreachable
        """
        if not self.configured:
            if require_configured:
                raise EmailNotConfigured("RESEND_API_KEY not configured")
            logger.info(f"Email provider not configured; skipping delivery to {to}: {subject}")
            return None

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.post(
                    self.config.api_url,
                    headers={"Authorization": f"Bearer {self.config.resend_api_key}"},
                    json={
                        "from": self.config.from_email,
                        "to": [to],
                        "subject": subject,
                        "html": html_body,
                    },
                )
        except httpx.HTTPError as e:
            log_email_delivery(to, subject, success=False)
            raise EmailDeliveryError(str(e)) from e

        if response.status_code >= 400:
            log_email_delivery(to, subject, success=False)
            raise EmailDeliveryError(response.text or f"HTTP {response.status_code}")

        provider_id = response.json().get("id")
        log_email_delivery(to, subject, success=True, provider_id=provider_id)
        return provider_id


def get_email_sender() -> EmailSender:
    return EmailSender(settings.email)


# =====================================================================
# Templates
# =====================================================================


def _layout(heading: str, paragraphs: list[str], action_label: Optional[str] = None, action_url: Optional[str] = None) -> str:
    parts = [f"<h2 style=\"color:#1f2937\">{heading}</h2>"]
    parts.extend(p if p.startswith("<table") else f"<p>{p}</p>" for p in paragraphs)
    if action_label and action_url:
        parts.append(
            f"<p><a href=\"{html.escape(action_url, quote=True)}\" "
            f"style=\"background:#2563eb;color:#fff;padding:10px 18px;border-radius:6px;text-decoration:none\">"
            f"{action_label}</a></p>"
        )
    parts.append(
        "<hr><p style=\"color:#6b7280;font-size:12px\">This message was sent by the Requisition Workflow System. "
        "If you did not expect it, please contact your system administrator.</p>"
    )
    return "<div style=\"font-family:Arial,sans-serif;max-width:600px\">" + "".join(parts) + "</div>"


def verification_email(full_name: str, organization_name: str, link: str) -> tuple[str, str]:
    subject = "Verify your email for Requisition Workflow"
    body = _layout(
        f"Welcome, {html.escape(full_name)}!",
        [
            f"Your organization <strong>{html.escape(organization_name)}</strong> has been created.",
            "Please confirm your email address to finish setting up your account.",
        ],
        "Verify Email",
        link,
    )
    return subject, body


def invitation_email(full_name: str, organization_name: str, role: str, link: str) -> tuple[str, str]:
    subject = "Requisition Workflow System - Set Your Password"
    body = _layout(
        f"Hello {html.escape(full_name)},",
        [
            f"You have been invited to <strong>{html.escape(organization_name)}</strong> "
            f"as <strong>{html.escape(role.replace('_', ' '))}</strong>.",
            "Click the button below to set your password. The link expires in 24 hours.",
        ],
        "Set Password",
        link,
    )
    return subject, body


def password_reset_email(full_name: str, link: str) -> tuple[str, str]:
    subject = "Reset your Requisition Workflow password"
    body = _layout(
        f"Hello {html.escape(full_name)},",
        ["We received a request to reset your password. The link expires in 24 hours."],
        "Reset Password",
        link,
    )
    return subject, body


@dataclass
class RequisitionEmailDetails:
    """What the workflow emails show about a requisition."""

    requisition_number: str
    title: str
    total_amount: Decimal
    organization_name: str
    currency: str = "USD"
    submitter_name: Optional[str] = None
    project_name: Optional[str] = None
    actor_name: Optional[str] = None
    rejection_reason: Optional[str] = None


def _details_table(rows: List[Tuple[str, Optional[str]]]) -> str:
    cells = "".join(
        f"<tr><td style=\"padding:8px;font-weight:bold\">{label}:</td>"
        f"<td style=\"padding:8px\">{html.escape(value or 'N/A')}</td></tr>"
        for label, value in rows
    )
    return f"<table style=\"border-collapse:collapse;margin:20px 0\">{cells}</table>"


def _amount(details: RequisitionEmailDetails) -> str:
    return f"{details.currency} {details.total_amount:,.2f}"


def submitted_email(recipient_name: str, details: RequisitionEmailDetails, link: str) -> tuple[str, str]:
    subject = f"New Requisition Submitted: {details.requisition_number}"
    body = _layout(
        "New Requisition Submitted",
        [
            f"Dear {html.escape(recipient_name)},",
            f"A new requisition has been submitted in <strong>{html.escape(details.organization_name)}</strong> "
            "and requires your attention.",
            _details_table(
                [
                    ("Requisition #", details.requisition_number),
                    ("Title", details.title),
                    ("Submitted By", details.submitter_name),
                    ("Project", details.project_name),
                    ("Amount", _amount(details)),
                ]
            ),
        ],
        "View Requisition",
        link,
    )
    return subject, body


def reviewed_email(recipient_name: str, details: RequisitionEmailDetails, link: str) -> tuple[str, str]:
    subject = f"Requisition Reviewed: {details.requisition_number}"
    body = _layout(
        "Requisition Reviewed",
        [
            f"Dear {html.escape(recipient_name)},",
            f"Your requisition in <strong>{html.escape(details.organization_name)}</strong> has been reviewed "
            "and forwarded for approval.",
            _details_table(
                [
                    ("Requisition #", details.requisition_number),
                    ("Title", details.title),
                    ("Amount", _amount(details)),
                    ("Reviewed By", details.actor_name),
                ]
            ),
        ],
        "View Requisition",
        link,
    )
    return subject, body


def pending_approval_email(recipient_name: str, details: RequisitionEmailDetails, link: str) -> tuple[str, str]:
    subject = f"Requisition Awaiting Approval: {details.requisition_number}"
    body = _layout(
        "Requisition Awaiting Approval",
        [
            f"Dear {html.escape(recipient_name)},",
            f"A reviewed requisition in <strong>{html.escape(details.organization_name)}</strong> "
            "is waiting for your approval.",
            _details_table(
                [
                    ("Requisition #", details.requisition_number),
                    ("Title", details.title),
                    ("Submitted By", details.submitter_name),
                    ("Project", details.project_name),
                    ("Amount", _amount(details)),
                    ("Reviewed By", details.actor_name),
                ]
            ),
        ],
        "Review and Approve",
        link,
    )
    return subject, body


def approved_email(recipient_name: str, details: RequisitionEmailDetails, link: str) -> tuple[str, str]:
    subject = f"Requisition Approved: {details.requisition_number}"
    body = _layout(
        "Requisition Approved",
        [
            f"Dear {html.escape(recipient_name)},",
            f"Your requisition in <strong>{html.escape(details.organization_name)}</strong> has been approved!",
            _details_table(
                [
                    ("Requisition #", details.requisition_number),
                    ("Title", details.title),
                    ("Amount", _amount(details)),
                    ("Approved By", details.actor_name),
                ]
            ),
        ],
        "View Requisition",
        link,
    )
    return subject, body


def rejected_email(recipient_name: str, details: RequisitionEmailDetails, link: str) -> tuple[str, str]:
    subject = f"Requisition Rejected: {details.requisition_number}"
    rows = [
        ("Requisition #", details.requisition_number),
        ("Title", details.title),
        ("Amount", _amount(details)),
        ("Rejected By", details.actor_name),
    ]
    if details.rejection_reason:
        rows.append(("Reason", details.rejection_reason))
    body = _layout(
        "Requisition Rejected",
        [
            f"Dear {html.escape(recipient_name)},",
            f"Your requisition in <strong>{html.escape(details.organization_name)}</strong> has been rejected.",
            _details_table(rows),
        ],
        "View Requisition",
        link,
    )
    return subject, body


RequisitionEmailBuilder = Callable[[str, RequisitionEmailDetails, str], Tuple[str, str]]

REQUISITION_EMAILS: Dict[NotificationType, RequisitionEmailBuilder] = {
    NotificationType.requisition_submitted: submitted_email,
    NotificationType.requisition_reviewed: reviewed_email,
    NotificationType.requisition_pending_approval: pending_approval_email,
    NotificationType.requisition_approved: approved_email,
    NotificationType.requisition_rejected: rejected_email,
}


def requisition_event_email(
    notification_type: NotificationType, recipient_name: str, details: RequisitionEmailDetails, link: str
) -> tuple[str, str]:
    """Subject and HTML body of the email sent for a workflow event."""
    return REQUISITION_EMAILS[notification_type](recipient_name, details, link)


# =====================================================================
# Queue
# =====================================================================


async def process_email_queue(session: AsyncSession, sender: EmailSender) -> EmailQueueResult:
    """
    Send a batch of pending queued emails.

    Emails are taken oldest first. A failed send increments ``retry_count``;
    an email that already failed ``queue_max_retries - 1`` times is marked
    ``failed``. Each outcome is committed before the next send.
    """
    config = sender.config
    repo = EmailNotificationRepository(session)
    pending = await repo.list_pending(max_retries=config.queue_max_retries, limit=config.queue_batch_size)
    result = EmailQueueResult()

    for index, email in enumerate(pending):
        if index > 0 and config.queue_send_interval_seconds:
            await asyncio.sleep(config.queue_send_interval_seconds)

        result.processed += 1
        try:
            await sender.send(email.recipient_email, email.subject, email.body)
            email.status = EmailStatus.sent.value
            email.sent_at = utc_now()
            email.error_message = None
            result.sent += 1
        except EmailDeliveryError as e:
            logger.warning(f"Queued email {email.id} to {email.recipient_email} failed: {e}")
            if email.retry_count >= config.queue_max_retries - 1:
                email.status = EmailStatus.failed.value
            email.retry_count += 1
            email.error_message = str(e)
            result.failed += 1
        await repo.update(email)
        await session.commit()

    logger.info(f"Email queue processed: {result.processed} processed, {result.sent} sent, {result.failed} failed")
    return result
