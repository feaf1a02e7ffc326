"""Shared fixtures for unit tests.

Every test gets a fresh in-memory SQLite database, fakes for the email
provider and Stripe, and factories that seed an organization with members in
each workflow role.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.pool import StaticPool

from requisition_workflow.core.database import create_all, utc_now
from requisition_workflow.core.database.entities import (
    ExpenseAccount,
    Organization,
    OrganizationMember,
    Project,
    Requisition,
    RequisitionItem,
    User,
)
from requisition_workflow.core.errors import EmailNotConfigured
from requisition_workflow.core.models.domain.enums import MemberRole, Plan, RequisitionStatus, WorkflowRole
from requisition_workflow.core.security import TokenType, create_token, hash_password
from requisition_workflow.server.core.config import EmailConfig, StripeConfig
from requisition_workflow.server.services.access import OrgContext
from requisition_workflow.server.services.billing import PaymentGateway
from requisition_workflow.server.services.email import EmailSender
from requisition_workflow.server.services.plans import apply_plan

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"
WEBHOOK_SECRET = "whsec_test_secret"

# Low iteration count keeps seeded users fast; verify_password reads it from the hash.
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD, iterations=1000)


# =====================================================================
# Database
# =====================================================================


@pytest.fixture(scope="function")
async def test_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async_session_maker = sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:  # type: ignore[attr-defined]
        yield session


# =====================================================================
# Fakes
# =====================================================================


@dataclass
class SentEmail:
    to: str
    subject: str
    html_body: str


class FakeEmailSender(EmailSender):
    """Records messages instead of calling the provider."""

    def __init__(self, configured: bool = True) -> None:
        super().__init__(
            EmailConfig(
                resend_api_key="re_test_key" if configured else None,
                queue_send_interval_seconds=0,
            )
        )
        self.sent: List[SentEmail] = []
        self.fail_with: Optional[Exception] = None

    async def send(self, to: str, subject: str, html_body: str, *, require_configured: bool = False) -> Optional[str]:
        if not self.configured:
            if require_configured:
                raise EmailNotConfigured("RESEND_API_KEY not configured")
            return None
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(SentEmail(to, subject, html_body))
        return f"email_{len(self.sent)}"


class FakePaymentGateway(PaymentGateway):
    """Stripe gateway whose API calls are answered locally. Webhook verification is the real one."""

    def __init__(self, config: Optional[StripeConfig] = None) -> None:
        super().__init__(config or StripeConfig(secret_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET))
        self.customers: List[Dict[str, Any]] = []
        self.checkouts: List[Dict[str, Any]] = []
        self.portals: List[Dict[str, Any]] = []
        self.subscriptions: Dict[str, Dict[str, Any]] = {}

    async def create_customer(self, *, email: str, name: str, metadata: Dict[str, str]) -> str:
        self._api_key()
        self.customers.append({"email": email, "name": name, "metadata": metadata})
        return f"cus_test_{len(self.customers)}"

    async def create_checkout_session(self, **kwargs: Any) -> Dict[str, Optional[str]]:
        self._api_key()
        self.checkouts.append(kwargs)
        return {"id": f"cs_test_{len(self.checkouts)}", "url": "https://checkout.stripe.test/session"}

    async def create_portal_session(self, *, customer_id: str, return_url: str) -> str:
        self._api_key()
        self.portals.append({"customer_id": customer_id, "return_url": return_url})
        return "https://billing.stripe.test/portal"

    async def retrieve_subscription(self, subscription_id: str) -> Any:
        return self.subscriptions[subscription_id]


def sign_stripe_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a ``stripe-signature`` header the way Stripe does."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def stripe_event():
    """Serialize an event and sign it with the test webhook secret."""

    def _build(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test") -> tuple[bytes, str]:
        payload = json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}}).encode("utf-8")
        return payload, sign_stripe_payload(payload)

    return _build


# =====================================================================
# Tenant factories
# =====================================================================


@dataclass
class Tenant:
    """An organization seeded with one member per workflow role."""

    organization: Organization
    owner: User
    admin: User
    submitter: User
    reviewer: User
    approver: User
    project: Project
    expense_account: ExpenseAccount
    memberships: Dict[str, OrganizationMember] = field(default_factory=dict)

    def context(self, user: User) -> OrgContext:
        return OrgContext(user=user, organization=self.organization, membership=self.memberships[user.id])


async def add_member(
    session: AsyncSession,
    organization: Organization,
    email: str,
    workflow_role: WorkflowRole = WorkflowRole.submitter,
    role: MemberRole = MemberRole.member,
    *,
    full_name: Optional[str] = None,
    is_active: bool = True,
    primary: bool = True,
) -> tuple[User, OrganizationMember]:
    user = User(
        email=email,
        full_name=full_name or email.split("@")[0].title(),
        password_hash=TEST_PASSWORD_HASH,
        org_id=organization.id if primary else None,
        email_confirmed_at=utc_now(),
    )
    session.add(user)
    await session.flush()
    membership = OrganizationMember(
        organization_id=organization.id,
        user_id=user.id,
        role=role.value,
        workflow_role=workflow_role.value,
        is_active=is_active,
        accepted_at=utc_now(),
    )
    session.add(membership)
    await session.flush()
    return user, membership


async def build_tenant(session: AsyncSession, slug: str = "acme", plan: Plan = Plan.professional) -> Tenant:
    organization = Organization(name=f"{slug.title()} Ministries", slug=slug, billing_email=f"billing@{slug}.org")
    apply_plan(organization, plan)
    session.add(organization)
    await session.flush()

    memberships: Dict[str, OrganizationMember] = {}
    users: Dict[str, User] = {}
    for key, workflow_role, role in (
        ("owner", WorkflowRole.super_admin, MemberRole.owner),
        ("admin", WorkflowRole.submitter, MemberRole.admin),
        ("submitter", WorkflowRole.submitter, MemberRole.member),
        ("reviewer", WorkflowRole.reviewer, MemberRole.member),
        ("approver", WorkflowRole.approver, MemberRole.member),
    ):
        user, membership = await add_member(session, organization, f"{key}@{slug}.org", workflow_role, role)
        users[key] = user
        memberships[user.id] = membership

    project = Project(
        org_id=organization.id,
        code="BLD",
        name="Building Fund",
        budget=Decimal("10000.00"),
        created_by=users["owner"].id,
    )
    session.add(project)
    await session.flush()
    account = ExpenseAccount(
        org_id=organization.id,
        project_id=project.id,
        code="MAT",
        name="Materials",
        created_by=users["owner"].id,
    )
    session.add(account)
    await session.commit()

    return Tenant(
        organization=organization,
        project=project,
        expense_account=account,
        memberships=memberships,
        **users,
    )


async def create_requisition(
    session: AsyncSession,
    tenant: Tenant,
    *,
    submitter: Optional[User] = None,
    status: RequisitionStatus = RequisitionStatus.draft,
    number: str = "REQ-26-00001",
    amount: Decimal = Decimal("250.00"),
    with_item: bool = True,
) -> Requisition:
    submitter = submitter or tenant.submitter
    requisition = Requisition(
        org_id=tenant.organization.id,
        requisition_number=number,
        title="Cement bags",
        project_id=tenant.project.id,
        expense_account_id=tenant.expense_account.id,
        submitted_by=submitter.id,
        status=status.value,
        total_amount=amount if with_item else Decimal("0"),
    )
    session.add(requisition)
    await session.flush()
    if with_item:
        session.add(
            RequisitionItem(
                requisition_id=requisition.id,
                org_id=tenant.organization.id,
                line_number=1,
                item_description="Portland cement, 50kg",
                quantity=Decimal("10"),
                unit_price=amount / 10,
                total_price=amount,
            )
        )
    await session.commit()
    return requisition


@pytest.fixture
async def tenant(session: AsyncSession) -> Tenant:
    return await build_tenant(session)


@pytest.fixture
def make_tenant(session: AsyncSession):
    async def _make(slug: str, plan: Plan = Plan.professional) -> Tenant:
        return await build_tenant(session, slug, plan)

    return _make


@pytest.fixture
def make_member(session: AsyncSession):
    async def _make(organization: Organization, email: str, workflow_role=WorkflowRole.submitter, role=MemberRole.member, **kwargs):
        return await add_member(session, organization, email, workflow_role, role, **kwargs)

    return _make


@pytest.fixture
def make_requisition(session: AsyncSession):
    async def _make(tenant: Tenant, **kwargs) -> Requisition:
        return await create_requisition(session, tenant, **kwargs)

    return _make


@pytest.fixture
def auth_headers():
    """Bearer token (and optionally the acting organization) for a user."""

    def _headers(user: User, organization: Optional[Organization] = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {create_token(user.id, TokenType.access)}"}
        if organization is not None:
            headers["X-Organization-Id"] = organization.id
        return headers

    return _headers


@pytest.fixture
def test_password() -> str:
    """Password of every seeded user."""
    return TEST_PASSWORD
