"""
Billing Endpoints.

Plan catalog, Stripe checkout and customer portal sessions, and the billing
history of the active organization. Checkout and portal are reserved to the
organization owner.
"""

from typing import List

import stripe
from fastapi import APIRouter, HTTPException, status

from requisition_workflow.core.database.repositories import BillingHistoryRepository
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import Plan
from requisition_workflow.core.models.io.billing import (
    BillingHistoryRead,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PlanLimitsRead,
    PlanRead,
    PortalSessionRequest,
    PortalSessionResponse,
)
from requisition_workflow.server.core.config import settings
from requisition_workflow.server.services.billing import (
    BillingNotConfigured,
    create_checkout,
    create_portal,
    get_owned_organization,
)
from requisition_workflow.server.services.deps import CurrentUserDep, OrgManagerDep, PaymentGatewayDep, SessionDep
from requisition_workflow.server.services.plans import PLANS

logger = get_logger(__name__)

router = APIRouter()


def _price_ids(plan: Plan) -> tuple:
    stripe_config = settings.stripe
    if plan == Plan.starter:
        return stripe_config.price_starter_monthly, stripe_config.price_starter_yearly
    if plan == Plan.professional:
        return stripe_config.price_professional_monthly, stripe_config.price_professional_yearly
    return None, None


def _not_configured(e: BillingNotConfigured) -> HTTPException:
    logger.error(f"Billing request failed: {e}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _stripe_failed(action: str, e: stripe.StripeError) -> HTTPException:
    logger.error(f"Stripe {action} failed: {e}", exc_info=True)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Payment provider request failed")


@router.get(
    "/plans",
    response_model=List[PlanRead],
    summary="List Plans",
    description="The subscription plans with their limits, prices and Stripe price ids.",
)
async def list_plans() -> List[PlanRead]:
    plans = []
    for definition in PLANS:
        monthly_price_id, yearly_price_id = _price_ids(definition.plan)
        plans.append(
            PlanRead(
                id=definition.plan.value,
                name=definition.name,
                monthly_price=definition.monthly_price,
                yearly_price=definition.yearly_price,
                limits=PlanLimitsRead(
                    max_users=definition.limits.max_users,
                    max_projects=definition.limits.max_projects,
                    max_requisitions_per_month=definition.limits.max_requisitions_per_month,
                ),
                monthly_price_id=monthly_price_id,
                yearly_price_id=yearly_price_id,
            )
        )
    return plans


@router.post(
    "/checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Create Checkout Session",
    description="Start a Stripe Checkout for a subscription of the given organization.",
    responses={
        400: {"description": "Missing priceId or orgId"},
        403: {"description": "Only the organization owner can manage billing"},
        500: {"description": "Stripe is not configured"},
        502: {"description": "Stripe rejected or failed the request"},
    },
)
async def create_checkout_session(
    data: CheckoutSessionRequest, user: CurrentUserDep, session: SessionDep, gateway: PaymentGatewayDep
) -> CheckoutSessionResponse:
    """
    Create a checkout session.

    The organization's Stripe customer is created on first use. The
    subscription carries the organization id in its metadata so that the
    webhook can find it.
    """
    if not data.price_id or not data.org_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: priceId, orgId")

    organization = await get_owned_organization(session, user, data.org_id)
    try:
        checkout = await create_checkout(session, gateway, user, organization, data.price_id, data.billing_interval)
    except BillingNotConfigured as e:
        raise _not_configured(e) from e
    except stripe.StripeError as e:
        raise _stripe_failed("checkout", e) from e
    return CheckoutSessionResponse(url=checkout["url"], session_id=checkout["id"])


@router.post(
    "/portal-session",
    response_model=PortalSessionResponse,
    summary="Create Portal Session",
    description="Open the Stripe customer portal for the organization's subscription.",
    responses={
        400: {"description": "Missing orgId, or the organization has no billing account"},
        403: {"description": "Only the organization owner can manage billing"},
        500: {"description": "Stripe is not configured"},
        502: {"description": "Stripe rejected or failed the request"},
    },
)
async def create_portal_session(
    data: PortalSessionRequest, user: CurrentUserDep, session: SessionDep, gateway: PaymentGatewayDep
) -> PortalSessionResponse:
    if not data.org_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required field: orgId")

    organization = await get_owned_organization(session, user, data.org_id)
    try:
        url = await create_portal(gateway, organization)
    except BillingNotConfigured as e:
        raise _not_configured(e) from e
    except stripe.StripeError as e:
        raise _stripe_failed("portal", e) from e
    return PortalSessionResponse(url=url)


@router.get(
    "/history",
    response_model=List[BillingHistoryRead],
    summary="Billing History",
    description="Subscription and payment events of the current organization, newest first.",
)
async def billing_history(ctx: OrgManagerDep, session: SessionDep) -> List[BillingHistoryRead]:
    rows = await BillingHistoryRepository(session).list_for_org(ctx.org_id)
    return [BillingHistoryRead.model_validate(row) for row in rows]
