"""
Stripe Billing.

``PaymentGateway`` wraps the calls made to Stripe: customers, checkout and
portal sessions, subscription lookups and webhook signature checks. The
webhook handlers below apply subscription events to organizations and
record them in ``billing_history``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database.entities import BillingHistory, Organization, User
from requisition_workflow.core.database.repositories import (
    BillingHistoryRepository,
    OrganizationMemberRepository,
    OrganizationRepository,
)
from requisition_workflow.core.errors import NotFound, PermissionDenied, ValidationFailed
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import (
    BillingEventType,
    BillingInterval,
    MemberRole,
    OrganizationStatus,
    Plan,
)
from requisition_workflow.core.monitoring import log_billing_event
from requisition_workflow.server.core.config import StripeConfig, settings
from requisition_workflow.server.services.plans import apply_plan, price_interval, price_to_plan

logger = get_logger(__name__)


class BillingNotConfigured(Exception):
    """No Stripe secret key (or webhook secret) is configured."""


class WebhookVerificationError(Exception):
    """The webhook payload or its signature could not be verified."""


class PaymentGateway:
    """Thin client over the ``stripe`` library using an explicit API key."""

    def __init__(self, config: StripeConfig) -> None:
        self.config = config

    def _api_key(self) -> str:
        if not self.config.secret_key:
            raise BillingNotConfigured("Stripe is not configured. Set STRIPE__SECRET_KEY.")
        return self.config.secret_key

    async def create_customer(self, *, email: str, name: str, metadata: Dict[str, str]) -> str:
        customer = await stripe.Customer.create_async(
            api_key=self._api_key(), email=email, name=name, metadata=metadata
        )
        return customer.id

    async def create_checkout_session(
        self,
        *,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> Dict[str, Optional[str]]:
        session = await stripe.checkout.Session.create_async(
            api_key=self._api_key(),
            customer=customer_id,
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            allow_promotion_codes=True,
            subscription_data={"metadata": metadata},
            metadata={"org_id": metadata["org_id"]},
        )
        return {"id": session.id, "url": session.url}

    async def create_portal_session(self, *, customer_id: str, return_url: str) -> str:
        session = await stripe.billing_portal.Session.create_async(
            api_key=self._api_key(), customer=customer_id, return_url=return_url
        )
        return session.url

    async def retrieve_subscription(self, subscription_id: str) -> Any:
        return await stripe.Subscription.retrieve_async(subscription_id, api_key=self._api_key())

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook payload and return the event as a plain dict.

        Raises:
            BillingNotConfigured: no webhook secret configured
            WebhookVerificationError: bad signature or malformed payload
        """
        if not self.config.webhook_secret:
            raise BillingNotConfigured("Stripe webhook secret is not configured. Set STRIPE__WEBHOOK_SECRET.")
        try:
            stripe.Webhook.construct_event(payload, signature, self.config.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise WebhookVerificationError(str(e)) from e
        return json.loads(payload)


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway(settings.stripe)


# =====================================================================
# Checkout and portal
# =====================================================================


async def get_owned_organization(session: AsyncSession, user: User, org_id: str) -> Organization:
    """The organization ``org_id`` if ``user`` is its active owner."""
    membership = await OrganizationMemberRepository(session).get_membership(org_id, user.id)
    if membership is None or membership.role != MemberRole.owner.value:
        raise PermissionDenied("Only the organization owner can manage billing")
    organization = await OrganizationRepository(session).get_by_id(org_id)
    if organization is None:
        raise NotFound("Organization not found")
    return organization


async def create_checkout(
    session: AsyncSession,
    gateway: PaymentGateway,
    user: User,
    organization: Organization,
    price_id: str,
    billing_interval: Optional[str],
) -> Dict[str, Optional[str]]:
    if not organization.stripe_customer_id:
        organization.stripe_customer_id = await gateway.create_customer(
            email=organization.billing_email or user.email,
            name=organization.name,
            metadata={"org_id": organization.id, "user_id": user.id},
        )
        await OrganizationRepository(session).update(organization)
        await session.commit()

    interval = billing_interval or (price_interval(price_id) or BillingInterval.monthly).value
    checkout = await gateway.create_checkout_session(
        customer_id=organization.stripe_customer_id,
        price_id=price_id,
        success_url=f"{settings.app_base_url}/settings/billing?success=true&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{settings.app_base_url}/settings/billing?canceled=true",
        metadata={"org_id": organization.id, "billing_interval": interval},
    )
    logger.info(f"Checkout session {checkout['id']} created for org {organization.id}")
    return checkout


async def create_portal(gateway: PaymentGateway, organization: Organization) -> str:
    if not organization.stripe_customer_id:
        raise ValidationFailed("No billing account found for this organization")
    return await gateway.create_portal_session(
        customer_id=organization.stripe_customer_id,
        return_url=f"{settings.app_base_url}/settings/billing",
    )


# =====================================================================
# Webhooks
# =====================================================================


def _field(obj: Any, *path: Any) -> Any:
    """Walk nested keys and list indexes, returning None when any step is missing."""
    for key in path:
        if obj is None:
            return None
        try:
            obj = obj[key]
        except (KeyError, IndexError, TypeError):
            return None
    return obj


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _period_end(subscription: Any) -> Optional[datetime]:
    return _timestamp(
        _field(subscription, "current_period_end") or _field(subscription, "items", "data", 0, "current_period_end")
    )


def _subscription_status(stripe_status: Optional[str]) -> str:
    if stripe_status in ("active", "past_due"):
        return OrganizationStatus.active.value
    if stripe_status == "trialing":
        return OrganizationStatus.trial.value
    return OrganizationStatus.suspended.value


async def _record(
    session: AsyncSession,
    organization: Organization,
    event: Dict[str, Any],
    event_type: BillingEventType,
    **fields: Any,
) -> None:
    await BillingHistoryRepository(session).create(
        BillingHistory(
            organization_id=organization.id,
            event_type=event_type.value,
            stripe_event_id=event.get("id"),
            **fields,
        )
    )
    log_billing_event(organization.id, event_type.value, fields.get("plan_to"))


async def _org_from_metadata(session: AsyncSession, *sources: Any) -> Optional[Organization]:
    for source in sources:
        org_id = _field(source, "metadata", "org_id")
        if org_id:
            return await OrganizationRepository(session).get_by_id(org_id)
    return None


async def _checkout_completed(session: AsyncSession, gateway: PaymentGateway, event: Dict[str, Any]) -> None:
    checkout = event["data"]["object"]
    subscription_id = checkout.get("subscription")
    if checkout.get("mode") != "subscription" or not subscription_id:
        return

    subscription = await gateway.retrieve_subscription(subscription_id)
    organization = await _org_from_metadata(session, checkout, subscription)
    if organization is None:
        logger.warning(f"Checkout {checkout.get('id')} completed without a known organization")
        return

    price_id = _field(subscription, "items", "data", 0, "price", "id")
    plan = price_to_plan(price_id)
    apply_plan(organization, plan)
    organization.status = OrganizationStatus.active.value
    organization.stripe_subscription_id = subscription_id
    if checkout.get("customer"):
        organization.stripe_customer_id = checkout["customer"]
    interval = _field(subscription, "metadata", "billing_interval") or price_interval(price_id)
    organization.billing_interval = getattr(interval, "value", interval)
    organization.subscription_ends_at = _period_end(subscription)
    organization.trial_ends_at = None
    await OrganizationRepository(session).update(organization)

    await _record(
        session,
        organization,
        event,
        BillingEventType.subscription_created,
        plan_to=plan.value,
        amount_cents=checkout.get("amount_total") or 0,
        currency=checkout.get("currency") or "usd",
        stripe_subscription_id=subscription_id,
    )
    logger.info(f"Org {organization.id} upgraded to {plan.value}")


async def _subscription_updated(session: AsyncSession, gateway: PaymentGateway, event: Dict[str, Any]) -> None:
    subscription = event["data"]["object"]
    organization = await _org_from_metadata(session, subscription)
    if organization is None:
        organization = await OrganizationRepository(session).get_by_stripe_subscription(subscription.get("id", ""))
    if organization is None:
        logger.warning(f"Subscription {subscription.get('id')} updated for an unknown organization")
        return

    previous_plan = organization.plan
    plan = price_to_plan(_field(subscription, "items", "data", 0, "price", "id"))
    apply_plan(organization, plan)
    organization.status = _subscription_status(subscription.get("status"))
    organization.subscription_ends_at = _period_end(subscription)
    await OrganizationRepository(session).update(organization)

    if previous_plan != plan.value:
        await _record(
            session,
            organization,
            event,
            BillingEventType.plan_changed,
            plan_from=previous_plan,
            plan_to=plan.value,
            stripe_subscription_id=subscription.get("id"),
        )
    logger.info(f"Org {organization.id} subscription updated to {plan.value} ({organization.status})")


async def _subscription_deleted(session: AsyncSession, gateway: PaymentGateway, event: Dict[str, Any]) -> None:
    subscription = event["data"]["object"]
    organization = await _org_from_metadata(session, subscription)
    if organization is None:
        organization = await OrganizationRepository(session).get_by_stripe_subscription(subscription.get("id", ""))
    if organization is None:
        logger.warning(f"Subscription {subscription.get('id')} deleted for an unknown organization")
        return

    previous_plan = organization.plan
    apply_plan(organization, Plan.free)
    organization.status = OrganizationStatus.active.value
    organization.stripe_subscription_id = None
    organization.subscription_ends_at = None
    await OrganizationRepository(session).update(organization)

    await _record(
        session,
        organization,
        event,
        BillingEventType.cancelled,
        plan_from=previous_plan,
        plan_to=Plan.free.value,
        stripe_subscription_id=subscription.get("id"),
    )
    logger.info(f"Org {organization.id} subscription cancelled, downgraded to free")


async def _invoice_event(
    session: AsyncSession, event: Dict[str, Any], event_type: BillingEventType, amount_field: str
) -> None:
    invoice = event["data"]["object"]
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        return
    organization = await OrganizationRepository(session).get_by_stripe_subscription(subscription_id)
    if organization is None:
        logger.warning(f"Invoice {invoice.get('id')} refers to unknown subscription {subscription_id}")
        return

    metadata = {}
    if event_type == BillingEventType.payment_failed:
        metadata["attempt_count"] = invoice.get("attempt_count")
    await _record(
        session,
        organization,
        event,
        event_type,
        amount_cents=invoice.get(amount_field),
        currency=invoice.get("currency"),
        stripe_invoice_id=invoice.get("id"),
        stripe_subscription_id=subscription_id,
        event_metadata=metadata,
    )


async def _payment_succeeded(session: AsyncSession, gateway: PaymentGateway, event: Dict[str, Any]) -> None:
    await _invoice_event(session, event, BillingEventType.payment_succeeded, "amount_paid")


async def _payment_failed(session: AsyncSession, gateway: PaymentGateway, event: Dict[str, Any]) -> None:
    await _invoice_event(session, event, BillingEventType.payment_failed, "amount_due")


WEBHOOK_HANDLERS: Dict[str, Callable[..., Any]] = {
    "checkout.session.completed": _checkout_completed,
    "customer.subscription.updated": _subscription_updated,
    "customer.subscription.deleted": _subscription_deleted,
    "invoice.payment_succeeded": _payment_succeeded,
    "invoice.payment_failed": _payment_failed,
}


async def handle_webhook_event(session: AsyncSession, gateway: PaymentGateway, event: Dict[str, Any]) -> bool:
    """
    Apply one verified Stripe event.

    Returns:
        True when the event type is handled, False when it is only acknowledged
    """
    event_type = event.get("type", "")
    logger.info(f"Processing webhook event: {event_type} ({event.get('id')})")
    handler = WEBHOOK_HANDLERS.get(event_type)
    if handler is None:
        logger.debug(f"Unhandled event type: {event_type}")
        return False
    await handler(session, gateway, event)
    return True
