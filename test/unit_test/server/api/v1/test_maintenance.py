from datetime import timedelta

import pytest
from httpx import AsyncClient

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import (
    EmailNotification,
    Organization,
    OrganizationMember,
    RateLimitLog,
    User,
)
from requisition_workflow.core.database.repositories import (
    EmailNotificationRepository,
    OrganizationRepository,
    UserRepository,
)
from requisition_workflow.core.errors import EmailDeliveryError
from requisition_workflow.server.core.config import settings

pytestmark = pytest.mark.asyncio

API = "/api/v1/maintenance"
SECRET = "cleanup-s3cret"


@pytest.fixture
def cleanup_secret(monkeypatch):
    monkeypatch.setattr(settings.maintenance, "cleanup_secret_key", SECRET)
    return {"x-cleanup-secret": SECRET}


@pytest.mark.parametrize("path", ["cleanup-orphaned-signups", "process-email-queue", "cleanup-rate-limits"])
async def test_wrong_secret_is_unauthorized(client: AsyncClient, cleanup_secret, path):
    missing = await client.post(f"{API}/{path}")
    wrong = await client.post(f"{API}/{path}", headers={"x-cleanup-secret": "guess"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


async def test_secret_not_configured(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings.maintenance, "cleanup_secret_key", None)

    response = await client.post(f"{API}/cleanup-rate-limits", headers={"x-cleanup-secret": "anything"})

    assert response.status_code == 500


async def test_cleanup_orphaned_signups(client: AsyncClient, session, tenant, cleanup_secret):
    old = utc_now() - timedelta(days=10)
    abandoned_org = Organization(name="Abandoned", slug="abandoned", created_at=old)
    session.add(abandoned_org)
    await session.flush()
    abandoned_owner = User(email="gone@abandoned.org", full_name="Gone", org_id=abandoned_org.id, created_at=old)
    session.add(abandoned_owner)
    await session.flush()
    session.add(OrganizationMember(organization_id=abandoned_org.id, user_id=abandoned_owner.id, role="owner"))
    half_signup = User(email="half@nowhere.org", full_name="Half", created_at=old)
    recent = User(email="fresh@nowhere.org", full_name="Fresh")
    session.add_all([half_signup, recent])
    await session.commit()
    ids = {
        "org": abandoned_org.id,
        "owner": abandoned_owner.id,
        "half": half_signup.id,
        "recent": recent.id,
    }

    response = await client.post(f"{API}/cleanup-orphaned-signups", headers=cleanup_secret)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["stats"] == {"organizationsDeleted": 1, "usersDeleted": 1, "authUsersDeleted": 1, "errors": []}
    users = UserRepository(session)
    assert await users.get_by_id(ids["owner"]) is None
    assert await users.get_by_id(ids["half"]) is None
    assert await users.get_by_id(ids["recent"]) is not None
    assert await OrganizationRepository(session).get_by_id(ids["org"]) is None
    assert await OrganizationRepository(session).get_by_id(tenant.organization.id) is not None


async def test_unverified_owner_with_members_is_kept(client: AsyncClient, session, tenant, cleanup_secret):
    tenant.owner.email_confirmed_at = None
    tenant.owner.created_at = utc_now() - timedelta(days=30)
    await session.commit()

    response = await client.post(f"{API}/cleanup-orphaned-signups", headers=cleanup_secret)

    assert response.json()["stats"]["organizationsDeleted"] == 0
    assert await UserRepository(session).get_by_id(tenant.owner.id) is not None


class TestEmailQueue:
    async def _queue(self, session, tenant, count=2, **fields):
        emails = [
            EmailNotification(
                org_id=tenant.organization.id,
                recipient_email=f"user{i}@acme.org",
                subject=f"Subject {i}",
                body="<p>Hi</p>",
                **fields,
            )
            for i in range(count)
        ]
        session.add_all(emails)
        await session.commit()
        return emails

    async def test_sends_pending_emails(self, client: AsyncClient, session, tenant, email_sender, cleanup_secret):
        emails = await self._queue(session, tenant)

        response = await client.post(f"{API}/process-email-queue", headers=cleanup_secret)

        assert response.json() == {"processed": 2, "sent": 2, "failed": 0}
        assert sorted(m.to for m in email_sender.sent) == ["user0@acme.org", "user1@acme.org"]
        for email in emails:
            stored = await EmailNotificationRepository(session).get_by_id(email.id)
            assert stored.status == "sent"
            assert stored.sent_at is not None

    async def test_failures_are_retried_then_failed(
        self, client: AsyncClient, session, tenant, email_sender, cleanup_secret
    ):
        (fresh,) = await self._queue(session, tenant, count=1)
        (last_try,) = await self._queue(session, tenant, count=1, retry_count=2)
        email_sender.fail_with = EmailDeliveryError("mailbox full")

        response = await client.post(f"{API}/process-email-queue", headers=cleanup_secret)

        assert response.json() == {"processed": 2, "sent": 0, "failed": 2}
        repo = EmailNotificationRepository(session)
        fresh = await repo.get_by_id(fresh.id)
        assert (fresh.status, fresh.retry_count, fresh.error_message) == ("pending", 1, "mailbox full")
        last_try = await repo.get_by_id(last_try.id)
        assert (last_try.status, last_try.retry_count) == ("failed", 3)

    async def test_sent_and_exhausted_emails_are_skipped(
        self, client: AsyncClient, session, tenant, email_sender, cleanup_secret
    ):
        await self._queue(session, tenant, count=1, status="sent")
        await self._queue(session, tenant, count=1, retry_count=3)

        response = await client.post(f"{API}/process-email-queue", headers=cleanup_secret)

        assert response.json()["processed"] == 0
        assert email_sender.sent == []


async def test_cleanup_rate_limits(client: AsyncClient, session, cleanup_secret):
    stale = utc_now() - timedelta(hours=25)
    session.add_all(
        [
            RateLimitLog(endpoint="login_ip", identifier="203.0.113.7", first_attempt_at=stale, last_attempt_at=stale),
            RateLimitLog(endpoint="login_ip", identifier="198.51.100.1"),
        ]
    )
    await session.commit()

    response = await client.post(f"{API}/cleanup-rate-limits", headers=cleanup_secret)

    assert response.json() == {"deleted": 1}
