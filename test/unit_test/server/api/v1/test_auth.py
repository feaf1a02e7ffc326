from datetime import timedelta

import pytest
from httpx import AsyncClient

from requisition_workflow.core.database.entities import OrganizationMember, User
from requisition_workflow.core.database.repositories import (
    FiscalYearSettingsRepository,
    OrganizationMemberRepository,
    OrganizationRepository,
    OrganizationSettingsRepository,
    UserRepository,
)
from requisition_workflow.core.security import TokenType, create_token, decode_token, hash_password, verify_password

pytestmark = pytest.mark.asyncio

API = "/api/v1/auth"


def signup_payload(slug: str = "grace-church", email: str = "pastor@grace.org", **overrides):
    payload = {
        "organization": {"name": "Grace Church", "slug": slug, "email": "office@grace.org"},
        "admin": {"fullName": "Mary Pastor", "email": email, "password": "s3cure-pass"},
    }
    for key, value in overrides.items():
        section, field = key.split("__")
        payload[section][field] = value
    return payload


class TestSignup:
    async def test_signup_creates_organization_owner_and_settings(self, client: AsyncClient, session, email_sender):
        """Signup creates the tenant on the free plan with its owner as super admin."""
        response = await client.post(f"{API}/signup", json=signup_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        org_id = body["organizationId"]
        user_id = body["userId"]

        organization = await OrganizationRepository(session).get_by_id(org_id)
        assert organization.slug == "grace-church"
        assert organization.plan == "free"
        assert organization.max_users == 3
        assert organization.trial_ends_at is not None
        assert organization.billing_email == "office@grace.org"

        user = await UserRepository(session).get_by_id(user_id)
        assert user.org_id == org_id
        assert user.email_confirmed_at is None
        assert verify_password("s3cure-pass", user.password_hash)

        membership = await OrganizationMemberRepository(session).get_membership(org_id, user_id)
        assert membership.role == "owner"
        assert membership.workflow_role == "super_admin"

        org_settings = await OrganizationSettingsRepository(session).get_for_org(org_id)
        assert org_settings.organization_name == "Grace Church"
        fiscal = await FiscalYearSettingsRepository(session).list(filters={"org_id": org_id})
        assert len(fiscal) == 1

    async def test_signup_sends_verification_email(self, client: AsyncClient, email_sender):
        await client.post(f"{API}/signup", json=signup_payload())

        assert len(email_sender.sent) == 1
        sent = email_sender.sent[0]
        assert sent.to == "pastor@grace.org"
        assert "/verify-email?token=" in sent.html_body

    async def test_signup_sanitizes_slug_and_email(self, client: AsyncClient, session):
        response = await client.post(
            f"{API}/signup",
            json=signup_payload(slug="  Grace--Church!! ", email="  Pastor@Grace.ORG "),
        )

        assert response.status_code == 201
        assert await OrganizationRepository(session).get_by_slug("grace-church") is not None
        assert await UserRepository(session).get_by_email("pastor@grace.org") is not None

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"organization__slug": "admin"}, "reserved"),
            ({"organization__slug": "ab"}, "at least 3"),
            ({"admin__password": "short"}, "at least 8"),
            ({"admin__email": "not-an-email"}, "Invalid email"),
            ({"organization__name": ""}, "required"),
            ({"admin__fullName": None}, "required"),
        ],
    )
    async def test_signup_rejects_invalid_input(self, client: AsyncClient, overrides, message):
        response = await client.post(f"{API}/signup", json=signup_payload(**overrides))

        assert response.status_code == 400
        assert message in response.json()["detail"]

    async def test_signup_rejects_taken_slug(self, client: AsyncClient, tenant):
        response = await client.post(f"{API}/signup", json=signup_payload(slug="acme"))

        assert response.status_code == 409
        assert "already taken" in response.json()["detail"]

    async def test_signup_rejects_email_of_active_member(self, client: AsyncClient, tenant):
        response = await client.post(f"{API}/signup", json=signup_payload(email=tenant.reviewer.email))

        assert response.status_code == 409
        assert response.json()["detail"] == "An account with this email already exists"

    async def test_signup_reuses_email_of_orphaned_account(self, client: AsyncClient, session):
        """An account without profile or membership is removed so the email can sign up again."""
        orphan = User(email="pastor@grace.org", full_name="Half Signup")
        session.add(orphan)
        await session.commit()
        orphan_id = orphan.id

        response = await client.post(f"{API}/signup", json=signup_payload())

        assert response.status_code == 201
        assert response.json()["userId"] != orphan_id
        assert await UserRepository(session).get_by_id(orphan_id) is None

    async def test_signup_is_rate_limited_per_ip(self, client: AsyncClient):
        headers = {"X-Forwarded-For": "203.0.113.7"}
        for attempt in range(5):
            response = await client.post(
                f"{API}/signup", json=signup_payload(slug="admin"), headers=headers
            )
            assert response.status_code == 400

        response = await client.post(f"{API}/signup", json=signup_payload(), headers=headers)

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0

        other_ip = await client.post(f"{API}/signup", json=signup_payload(), headers={"X-Forwarded-For": "198.51.100.1"})
        assert other_ip.status_code == 201

    async def test_signup_succeeds_when_verification_email_fails(self, client: AsyncClient, email_sender):
        from requisition_workflow.core.errors import EmailDeliveryError

        email_sender.fail_with = EmailDeliveryError("provider down")

        response = await client.post(f"{API}/signup", json=signup_payload())

        assert response.status_code == 201


class TestPasswordHashingOffTheEventLoop:
    async def test_signup_hashes_in_threadpool(self, client: AsyncClient, threadpool_calls):
        response = await client.post(f"{API}/signup", json=signup_payload())

        assert response.status_code == 201
        assert threadpool_calls == [hash_password]

    async def test_login_verifies_in_threadpool(self, client: AsyncClient, tenant, test_password, threadpool_calls):
        response = await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": test_password})

        assert response.status_code == 200
        assert threadpool_calls == [verify_password]

    async def test_password_reset_hashes_in_threadpool(self, client: AsyncClient, tenant, threadpool_calls):
        token = create_token(tenant.submitter.id, TokenType.recovery)

        response = await client.post(f"{API}/password-reset", json={"token": token, "password": "brand-new-pass"})

        assert response.status_code == 200
        assert threadpool_calls == [hash_password]


class TestLogin:
    async def test_login_returns_access_token(self, client: AsyncClient, tenant, test_password):
        response = await client.post(f"{API}/login", json={"email": "Reviewer@Acme.org", "password": test_password})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["id"] == tenant.reviewer.id
        assert body["user"]["email_confirmed"] is True
        assert decode_token(body["access_token"], TokenType.access)["sub"] == tenant.reviewer.id

    async def test_login_records_last_login(self, client: AsyncClient, tenant, session, test_password):
        await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": test_password})

        user = await UserRepository(session).get_by_id(tenant.reviewer.id)
        assert user.last_login_at is not None

    async def test_login_with_wrong_password(self, client: AsyncClient, tenant):
        response = await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_CREDENTIALS"

    async def test_login_with_unknown_email(self, client: AsyncClient):
        response = await client.post(f"{API}/login", json={"email": "ghost@acme.org", "password": "whatever1"})

        assert response.status_code == 401

    async def test_login_of_deactivated_user(self, client: AsyncClient, tenant, session, test_password):
        tenant.reviewer.is_active = False
        await session.commit()

        response = await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": test_password})

        assert response.status_code == 401

    async def test_login_is_rate_limited_per_email(self, client: AsyncClient, tenant):
        for _ in range(5):
            await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": "bad-password"})

        response = await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": "bad-password"})

        assert response.status_code == 429
        detail = response.json()["detail"]
        assert detail["code"] == "RATE_LIMITED"
        assert detail["retry_after"] > 0

    async def test_successful_login_resets_attempts(self, client: AsyncClient, tenant, test_password):
        for _ in range(4):
            await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": "bad-password"})
        ok = await client.post(f"{API}/login", json={"email": tenant.reviewer.email, "password": test_password})
        assert ok.status_code == 200

        for _ in range(4):
            response = await client.post(
                f"{API}/login", json={"email": tenant.reviewer.email, "password": "bad-password"}
            )
            assert response.status_code == 401


class TestEmailVerification:
    async def test_verify_email_confirms_account(self, client: AsyncClient, session, tenant):
        tenant.owner.email_confirmed_at = None
        await session.commit()
        token = create_token(tenant.owner.id, TokenType.email_verification)

        response = await client.post(f"{API}/verify-email", json={"token": token})

        assert response.status_code == 200
        user = await UserRepository(session).get_by_id(tenant.owner.id)
        assert user.email_confirmed_at is not None

    async def test_verify_email_rejects_access_token(self, client: AsyncClient, tenant):
        token = create_token(tenant.owner.id, TokenType.access)

        response = await client.post(f"{API}/verify-email", json={"token": token})

        assert response.status_code == 400

    async def test_verify_email_rejects_expired_token(self, client: AsyncClient, tenant):
        token = create_token(tenant.owner.id, TokenType.email_verification, expires_delta=timedelta(seconds=-5))

        response = await client.post(f"{API}/verify-email", json={"token": token})

        assert response.status_code == 400
        assert response.json()["detail"] == "Token has expired"


class TestPasswordReset:
    async def test_request_sends_recovery_link(self, client: AsyncClient, tenant, email_sender):
        response = await client.post(f"{API}/password-reset/request", json={"email": tenant.submitter.email})

        assert response.status_code == 200
        assert [m.to for m in email_sender.sent] == [tenant.submitter.email]
        assert "/reset-password?token=" in email_sender.sent[0].html_body

    async def test_request_for_unknown_email_does_not_reveal_it(self, client: AsyncClient, email_sender):
        response = await client.post(f"{API}/password-reset/request", json={"email": "nobody@acme.org"})

        assert response.status_code == 200
        assert email_sender.sent == []

    async def test_reset_sets_new_password(self, client: AsyncClient, tenant, session):
        token = create_token(tenant.submitter.id, TokenType.recovery)

        response = await client.post(f"{API}/password-reset", json={"token": token, "password": "brand-new-pass"})

        assert response.status_code == 200
        user = await UserRepository(session).get_by_id(tenant.submitter.id)
        assert verify_password("brand-new-pass", user.password_hash)

    async def test_reset_rejects_short_password(self, client: AsyncClient, tenant):
        token = create_token(tenant.submitter.id, TokenType.recovery)

        response = await client.post(f"{API}/password-reset", json={"token": token, "password": "short"})

        assert response.status_code == 400


class TestMe:
    async def test_me_lists_memberships(self, client: AsyncClient, session, tenant, make_tenant, auth_headers):
        other = await make_tenant("bethel")
        session.add(
            OrganizationMember(
                organization_id=other.organization.id,
                user_id=tenant.reviewer.id,
                role="member",
                workflow_role="approver",
            )
        )
        await session.commit()

        response = await client.get(f"{API}/me", headers=auth_headers(tenant.reviewer))

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == tenant.reviewer.id
        primary = [m for m in body["memberships"] if m["is_primary"]]
        assert len(primary) == 1
        assert primary[0]["organization_id"] == tenant.organization.id
        assert primary[0]["workflow_role"] == "reviewer"

    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get(f"{API}/me")

        assert response.status_code == 401

    async def test_me_rejects_garbage_token(self, client: AsyncClient):
        response = await client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    async def test_me_reports_notification_preference(self, client: AsyncClient, tenant, auth_headers):
        response = await client.get(f"{API}/me", headers=auth_headers(tenant.reviewer))

        assert response.json()["user"]["email_notifications_enabled"] is True

    async def test_opt_out_of_email_notifications(self, client: AsyncClient, session, tenant, auth_headers):
        response = await client.patch(
            f"{API}/me", json={"email_notifications_enabled": False}, headers=auth_headers(tenant.reviewer)
        )

        assert response.status_code == 200
        assert response.json()["email_notifications_enabled"] is False
        assert response.json()["full_name"] == tenant.reviewer.full_name
        user = await UserRepository(session).get_by_id(tenant.reviewer.id)
        assert user.email_notifications_enabled is False

    async def test_update_rejects_blank_name(self, client: AsyncClient, tenant, auth_headers):
        response = await client.patch(f"{API}/me", json={"full_name": ""}, headers=auth_headers(tenant.reviewer))

        assert response.status_code == 422
