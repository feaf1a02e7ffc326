"""
Organization I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from requisition_workflow.core.models.domain.enums import MemberRole, WorkflowRole


class OrganizationRead(BaseModel):
    """Schema for reading an organization."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    status: str
    plan: str
    max_users: int
    max_projects: int
    max_requisitions_per_month: int
    trial_ends_at: Optional[datetime] = None
    subscription_ends_at: Optional[datetime] = None
    billing_interval: Optional[str] = None
    billing_email: Optional[str] = None
    created_at: datetime


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    billing_email: Optional[str] = Field(default=None, max_length=255)


class OrganizationMembershipRead(BaseModel):
    """An organization as seen from one of its members (the organization switcher)."""

    organization: OrganizationRead
    role: str
    workflow_role: str
    is_primary: bool


class OrganizationSettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    org_id: str
    organization_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    currency: str


class OrganizationSettingsUpdate(BaseModel):
    organization_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class UsageLimits(BaseModel):
    max_users: int
    max_projects: int
    max_requisitions_per_month: int


class OrganizationUsage(BaseModel):
    """Current consumption compared with plan limits (-1 means unlimited)."""

    plan: str
    status: str
    users: int
    projects: int
    requisitions_this_month: int
    limits: UsageLimits


class MemberRead(BaseModel):
    user_id: str
    email: str
    full_name: str
    role: str
    workflow_role: str
    is_active: bool
    email_confirmed: bool
    invited_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None


class MemberUpdate(BaseModel):
    role: Optional[MemberRole] = None
    workflow_role: Optional[WorkflowRole] = None
