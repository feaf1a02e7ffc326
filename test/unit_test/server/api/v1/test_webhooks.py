import pytest
from httpx import AsyncClient

from requisition_workflow.core.database.repositories import BillingHistoryRepository, OrganizationRepository
from requisition_workflow.server.core.config import settings

pytestmark = pytest.mark.asyncio

API = "/api/v1/webhooks/stripe"

PERIOD_END = 1924992000  # 2031-01-01T00:00:00Z


@pytest.fixture(autouse=True)
def stripe_prices(monkeypatch):
    monkeypatch.setattr(settings.stripe, "price_starter_monthly", "price_starter_m")
    monkeypatch.setattr(settings.stripe, "price_professional_monthly", "price_pro_m")


def subscription(sub_id: str, price_id: str, org_id=None, status: str = "active"):
    return {
        "id": sub_id,
        "object": "subscription",
        "status": status,
        "metadata": {"org_id": org_id, "billing_interval": "monthly"} if org_id else {},
        "items": {"data": [{"price": {"id": price_id}, "current_period_end": PERIOD_END}]},
    }


async def post_event(client: AsyncClient, payload: bytes, signature: str):
    return await client.post(
        API, content=payload, headers={"stripe-signature": signature, "content-type": "application/json"}
    )


async def test_missing_signature(client: AsyncClient):
    response = await client.post(API, content=b"{}")

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing stripe-signature header"


async def test_bad_signature(client: AsyncClient, stripe_event):
    payload, _ = stripe_event("invoice.payment_succeeded", {})

    response = await post_event(client, payload, "t=1,v1=deadbeef")

    assert response.status_code == 400
    assert response.json()["detail"] == "Webhook signature verification failed"


async def test_webhook_secret_not_configured(client: AsyncClient, payment_gateway, stripe_event):
    payment_gateway.config.webhook_secret = None
    payload, signature = stripe_event("invoice.payment_succeeded", {})

    response = await post_event(client, payload, signature)

    assert response.status_code == 500


async def test_unknown_event_is_acknowledged(client: AsyncClient, stripe_event):
    payload, signature = stripe_event("customer.created", {"id": "cus_1"})

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    assert response.json() == {"received": True}


async def test_checkout_completed_upgrades_plan(client: AsyncClient, session, tenant, payment_gateway, stripe_event):
    org_id = tenant.organization.id
    payment_gateway.subscriptions["sub_1"] = subscription("sub_1", "price_starter_m", org_id)
    payload, signature = stripe_event(
        "checkout.session.completed",
        {
            "id": "cs_1",
            "mode": "subscription",
            "subscription": "sub_1",
            "customer": "cus_42",
            "amount_total": 800,
            "currency": "usd",
            "metadata": {"org_id": org_id},
        },
        event_id="evt_checkout",
    )

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    organization = await OrganizationRepository(session).get_by_id(org_id)
    assert organization.plan == "starter"
    assert organization.max_users == 10
    assert organization.status == "active"
    assert organization.stripe_subscription_id == "sub_1"
    assert organization.stripe_customer_id == "cus_42"
    assert organization.billing_interval == "monthly"
    assert organization.trial_ends_at is None
    assert organization.subscription_ends_at.year == 2031

    history = await BillingHistoryRepository(session).list_for_org(org_id)
    assert [(h.event_type, h.plan_to, h.amount_cents, h.stripe_event_id) for h in history] == [
        ("subscription_created", "starter", 800, "evt_checkout")
    ]


async def test_checkout_without_subscription_is_ignored(client: AsyncClient, session, tenant, stripe_event):
    payload, signature = stripe_event("checkout.session.completed", {"id": "cs_1", "mode": "payment"})

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    assert await BillingHistoryRepository(session).count() == 0


async def test_subscription_updated_changes_plan(client: AsyncClient, session, tenant, stripe_event):
    org_id = tenant.organization.id
    tenant.organization.plan = "starter"
    tenant.organization.stripe_subscription_id = "sub_9"
    await session.commit()
    payload, signature = stripe_event(
        "customer.subscription.updated", subscription("sub_9", "price_pro_m", status="past_due")
    )

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    organization = await OrganizationRepository(session).get_by_id(org_id)
    assert organization.plan == "professional"
    assert organization.max_projects == 25
    assert organization.status == "active"
    history = await BillingHistoryRepository(session).list_for_org(org_id)
    assert [(h.event_type, h.plan_from, h.plan_to) for h in history] == [("plan_changed", "starter", "professional")]


async def test_unpaid_subscription_suspends_organization(client: AsyncClient, session, tenant, stripe_event):
    org_id = tenant.organization.id
    payload, signature = stripe_event(
        "customer.subscription.updated", subscription("sub_9", "price_pro_m", org_id=org_id, status="unpaid")
    )

    await post_event(client, payload, signature)

    organization = await OrganizationRepository(session).get_by_id(org_id)
    assert organization.status == "suspended"
    assert await BillingHistoryRepository(session).count() == 0


async def test_subscription_deleted_downgrades_to_free(client: AsyncClient, session, tenant, stripe_event):
    org_id = tenant.organization.id
    tenant.organization.stripe_subscription_id = "sub_9"
    await session.commit()
    payload, signature = stripe_event("customer.subscription.deleted", subscription("sub_9", "price_pro_m"))

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    organization = await OrganizationRepository(session).get_by_id(org_id)
    assert organization.plan == "free"
    assert organization.max_users == 3
    assert organization.stripe_subscription_id is None
    history = await BillingHistoryRepository(session).list_for_org(org_id)
    assert [(h.event_type, h.plan_from) for h in history] == [("cancelled", "professional")]


@pytest.mark.parametrize(
    "event_type, amount_field, expected_type",
    [
        ("invoice.payment_succeeded", "amount_paid", "payment_succeeded"),
        ("invoice.payment_failed", "amount_due", "payment_failed"),
    ],
)
async def test_invoice_events_are_recorded(
    client: AsyncClient, session, tenant, stripe_event, event_type, amount_field, expected_type
):
    org_id = tenant.organization.id
    tenant.organization.stripe_subscription_id = "sub_9"
    await session.commit()
    payload, signature = stripe_event(
        event_type,
        {"id": "in_1", "subscription": "sub_9", amount_field: 1200, "currency": "usd", "attempt_count": 3},
    )

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    (row,) = await BillingHistoryRepository(session).list_for_org(org_id)
    assert row.event_type == expected_type
    assert row.amount_cents == 1200
    assert row.stripe_invoice_id == "in_1"
    if expected_type == "payment_failed":
        assert row.event_metadata == {"attempt_count": 3}


async def test_invoice_for_unknown_subscription_is_acknowledged(client: AsyncClient, session, stripe_event):
    payload, signature = stripe_event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_missing"})

    response = await post_event(client, payload, signature)

    assert response.status_code == 200
    assert await BillingHistoryRepository(session).count() == 0


async def test_handler_failure_answers_500(client: AsyncClient, tenant, stripe_event):
    """The subscription lookup fails, so Stripe must retry the delivery."""
    payload, signature = stripe_event(
        "checkout.session.completed",
        {"id": "cs_1", "mode": "subscription", "subscription": "sub_unknown", "metadata": {"org_id": tenant.organization.id}},
    )

    response = await post_event(client, payload, signature)

    assert response.status_code == 500
    assert response.json()["detail"] == "Webhook handler failed"
