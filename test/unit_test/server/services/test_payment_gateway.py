"""Unit tests for the Stripe gateway wrapper."""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import stripe

from requisition_workflow.server.core.config import StripeConfig
from requisition_workflow.server.services.billing import (
    BillingNotConfigured,
    PaymentGateway,
    WebhookVerificationError,
)

WEBHOOK_SECRET = "whsec_gateway_test"


def sign_stripe_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    return f"t={timestamp},v1={hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()}"


@pytest.fixture
def gateway() -> PaymentGateway:
    return PaymentGateway(StripeConfig(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET))


def event_payload(event_type: str = "invoice.payment_succeeded") -> bytes:
    return json.dumps(
        {"id": "evt_1", "object": "event", "type": event_type, "data": {"object": {"id": "in_1"}}}
    ).encode("utf-8")


class TestConstructEvent:
    def test_valid_signature_returns_plain_dict(self, gateway):
        payload = event_payload()

        event = gateway.construct_event(payload, sign_stripe_payload(payload))

        assert isinstance(event, dict)
        assert event["type"] == "invoice.payment_succeeded"
        assert event["data"]["object"]["id"] == "in_1"

    def test_wrong_secret(self, gateway):
        payload = event_payload()

        with pytest.raises(WebhookVerificationError):
            gateway.construct_event(payload, sign_stripe_payload(payload, secret="whsec_other"))

    def test_tampered_payload(self, gateway):
        signature = sign_stripe_payload(event_payload())

        with pytest.raises(WebhookVerificationError):
            gateway.construct_event(event_payload("customer.subscription.deleted"), signature)

    def test_expired_timestamp(self, gateway):
        payload = event_payload()

        with pytest.raises(WebhookVerificationError):
            gateway.construct_event(payload, sign_stripe_payload(payload, timestamp=int(time.time()) - 3600))

    def test_missing_webhook_secret(self):
        gateway = PaymentGateway(StripeConfig(secret_key="sk_test_123"))
        payload = event_payload()

        with pytest.raises(BillingNotConfigured):
            gateway.construct_event(payload, sign_stripe_payload(payload))


@pytest.mark.asyncio
class TestStripeCalls:
    async def test_create_customer_passes_api_key(self, gateway, monkeypatch):
        create = AsyncMock(return_value=SimpleNamespace(id="cus_1"))
        monkeypatch.setattr(stripe.Customer, "create_async", create)

        customer_id = await gateway.create_customer(email="b@grace.org", name="Grace", metadata={"org_id": "o1"})

        assert customer_id == "cus_1"
        assert create.call_args.kwargs == {
            "api_key": "sk_test_123",
            "email": "b@grace.org",
            "name": "Grace",
            "metadata": {"org_id": "o1"},
        }

    async def test_checkout_session_is_a_subscription(self, gateway, monkeypatch):
        create = AsyncMock(return_value=SimpleNamespace(id="cs_1", url="https://checkout.test/cs_1"))
        monkeypatch.setattr(stripe.checkout.Session, "create_async", create)

        result = await gateway.create_checkout_session(
            customer_id="cus_1",
            price_id="price_1",
            success_url="https://app.test/ok",
            cancel_url="https://app.test/cancel",
            metadata={"org_id": "o1", "billing_interval": "monthly"},
        )

        assert result == {"id": "cs_1", "url": "https://checkout.test/cs_1"}
        kwargs = create.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["line_items"] == [{"price": "price_1", "quantity": 1}]
        assert kwargs["subscription_data"] == {"metadata": {"org_id": "o1", "billing_interval": "monthly"}}
        assert kwargs["metadata"] == {"org_id": "o1"}

    async def test_calls_require_secret_key(self, monkeypatch):
        create = AsyncMock()
        monkeypatch.setattr(stripe.Customer, "create_async", create)
        gateway = PaymentGateway(StripeConfig())

        with pytest.raises(BillingNotConfigured):
            await gateway.create_customer(email="b@grace.org", name="Grace", metadata={})

        create.assert_not_called()
