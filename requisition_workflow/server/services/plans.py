"""
Subscription Plans and Limits.

Plan catalog, price id mapping, usage counting and limit enforcement.
A limit of -1 means unlimited.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import Organization
from requisition_workflow.core.database.repositories import (
    OrganizationMemberRepository,
    ProjectRepository,
    RequisitionRepository,
)
from requisition_workflow.core.errors import PlanLimitExceeded
from requisition_workflow.core.models.domain.enums import BillingInterval, Plan
from requisition_workflow.core.models.io.organizations import OrganizationUsage, UsageLimits
from requisition_workflow.server.core.config import settings

UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    max_users: int
    max_projects: int
    max_requisitions_per_month: int


@dataclass(frozen=True)
class PlanDefinition:
    plan: Plan
    name: str
    limits: PlanLimits
    monthly_price: Optional[int] = None
    yearly_price: Optional[int] = None


PLAN_LIMITS: Dict[Plan, PlanLimits] = {
    Plan.free: PlanLimits(max_users=3, max_projects=2, max_requisitions_per_month=25),
    Plan.starter: PlanLimits(max_users=10, max_projects=10, max_requisitions_per_month=200),
    Plan.professional: PlanLimits(max_users=25, max_projects=25, max_requisitions_per_month=500),
    Plan.enterprise: PlanLimits(max_users=UNLIMITED, max_projects=UNLIMITED, max_requisitions_per_month=UNLIMITED),
}

PLANS: List[PlanDefinition] = [
    PlanDefinition(Plan.free, "Free", PLAN_LIMITS[Plan.free]),
    PlanDefinition(Plan.starter, "Starter", PLAN_LIMITS[Plan.starter], monthly_price=8, yearly_price=80),
    PlanDefinition(Plan.professional, "Professional", PLAN_LIMITS[Plan.professional], monthly_price=12, yearly_price=120),
    PlanDefinition(Plan.enterprise, "Enterprise", PLAN_LIMITS[Plan.enterprise]),
]


class LimitKind(str, Enum):
    users = "users"
    projects = "projects"
    requisitions = "requisitions"


def price_ids() -> Dict[str, tuple[Plan, BillingInterval]]:
    """Configured Stripe price ids mapped to their plan and interval."""
    stripe_config = settings.stripe
    mapping = {
        stripe_config.price_starter_monthly: (Plan.starter, BillingInterval.monthly),
        stripe_config.price_starter_yearly: (Plan.starter, BillingInterval.yearly),
        stripe_config.price_professional_monthly: (Plan.professional, BillingInterval.monthly),
        stripe_config.price_professional_yearly: (Plan.professional, BillingInterval.yearly),
    }
    return {price_id: value for price_id, value in mapping.items() if price_id}


def price_to_plan(price_id: Optional[str]) -> Plan:
    """Plan bought by a Stripe price id; unknown prices map to the free plan."""
    if not price_id:
        return Plan.free
    entry = price_ids().get(price_id)
    return entry[0] if entry else Plan.free


def price_interval(price_id: Optional[str]) -> Optional[BillingInterval]:
    entry = price_ids().get(price_id or "")
    return entry[1] if entry else None


def apply_plan(organization: Organization, plan: Plan) -> None:
    limits = PLAN_LIMITS[plan]
    organization.plan = plan.value
    organization.max_users = limits.max_users
    organization.max_projects = limits.max_projects
    organization.max_requisitions_per_month = limits.max_requisitions_per_month


def start_of_month():
    now = utc_now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def get_usage(session: AsyncSession, organization: Organization) -> OrganizationUsage:
    users = await OrganizationMemberRepository(session).count_active(organization.id)
    projects = await ProjectRepository(session).count_active(organization.id)
    requisitions = await RequisitionRepository(session).count_created_since(organization.id, start_of_month())
    return OrganizationUsage(
        plan=organization.plan,
        status=organization.status,
        users=users,
        projects=projects,
        requisitions_this_month=requisitions,
        limits=UsageLimits(
            max_users=organization.max_users,
            max_projects=organization.max_projects,
            max_requisitions_per_month=organization.max_requisitions_per_month,
        ),
    )


async def ensure_within_limit(session: AsyncSession, organization: Organization, kind: LimitKind) -> None:
    """
    Refuse an operation that would exceed the organization's plan.

    Raises:
        PlanLimitExceeded: when the current count already reached the limit
    """
    if kind == LimitKind.users:
        limit = organization.max_users
        current = await OrganizationMemberRepository(session).count_active(organization.id)
        label = "users"
    elif kind == LimitKind.projects:
        limit = organization.max_projects
        current = await ProjectRepository(session).count_active(organization.id)
        label = "active projects"
    else:
        limit = organization.max_requisitions_per_month
        current = await RequisitionRepository(session).count_created_since(organization.id, start_of_month())
        label = "requisitions this month"

    if limit != UNLIMITED and current >= limit:
        raise PlanLimitExceeded(
            f"Your {organization.plan} plan allows {limit} {label}. Upgrade your plan to add more."
        )
