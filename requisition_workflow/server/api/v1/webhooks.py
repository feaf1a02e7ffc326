"""
Webhook Endpoints.

Receives Stripe events. The raw body is verified against the
``stripe-signature`` header before anything is applied.
"""

from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request, status

from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.io.billing import WebhookAck
from requisition_workflow.server.services.billing import (
    BillingNotConfigured,
    WebhookVerificationError,
    handle_webhook_event,
)
from requisition_workflow.server.services.deps import PaymentGatewayDep, SessionDep

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/stripe",
    response_model=WebhookAck,
    summary="Stripe Webhook",
    description="Apply subscription and invoice events sent by Stripe.",
    responses={
        400: {"description": "Missing or invalid signature"},
        500: {"description": "Webhook secret not configured, or the handler failed"},
    },
)
async def stripe_webhook(
    request: Request,
    session: SessionDep,
    gateway: PaymentGatewayDep,
    stripe_signature: Optional[str] = Header(default=None, alias="stripe-signature"),
) -> WebhookAck:
    """
    Handle a Stripe webhook.

    Unknown event types and events for organizations that cannot be found are
    acknowledged without changes. A failing handler rolls back and answers
    500 so that Stripe retries the delivery.
    """
    if not stripe_signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing stripe-signature header")

    payload = await request.body()
    try:
        event = gateway.construct_event(payload, stripe_signature)
    except BillingNotConfigured as e:
        logger.error(f"Stripe webhook received but not configured: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e
    except WebhookVerificationError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook signature verification failed"
        ) from e

    try:
        await handle_webhook_event(session, gateway, event)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Webhook handler failed for {event.get('type')}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handler failed"
        ) from e

    return WebhookAck(received=True)
