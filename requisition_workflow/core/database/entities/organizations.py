"""
Organization entity models.

Organizations are the tenants. Every tenant-owned row elsewhere carries an
``org_id`` pointing here; membership rows tie users to organizations with
an administrative role and a workflow role.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class Organization(Base, table=True):
    """
    Tenant organization with its plan and subscription state.

    Limits of -1 mean unlimited.

    Table: organizations
    """

    __tablename__ = "organizations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=50, unique=True, index=True)
    status: str = Field(default="active", max_length=16, index=True)

    plan: str = Field(default="free", max_length=32)
    max_users: int = Field(default=3)
    max_projects: int = Field(default=2)
    max_requisitions_per_month: int = Field(default=25)

    trial_ends_at: Optional[datetime] = Field(default=None)
    subscription_ends_at: Optional[datetime] = Field(default=None)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, index=True)
    billing_interval: Optional[str] = Field(default=None, max_length=16)
    billing_email: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Organization(id={self.id}, slug={self.slug}, plan={self.plan})"


class OrganizationMember(Base, table=True):
    """
    Membership of a user in an organization.

    Table: organization_members
    """

    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_organization_members_org_user"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    organization_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    role: str = Field(default="member", max_length=16)
    workflow_role: str = Field(default="submitter", max_length=32)
    is_active: bool = Field(default=True, index=True)

    invited_by: Optional[str] = Field(default=None, max_length=36)
    invited_at: Optional[datetime] = Field(default=None)
    accepted_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"OrganizationMember(org={self.organization_id}, user={self.user_id}, role={self.role})"


class OrganizationSettings(Base, table=True):
    """
    Display and contact settings of an organization.

    Table: organization_settings
    """

    __tablename__ = "organization_settings"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", unique=True, index=True)
    organization_name: str = Field(max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    currency: str = Field(default="USD", max_length=3)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class FiscalYearSettings(Base, table=True):
    """
    Table: fiscal_year_settings
    """

    __tablename__ = "fiscal_year_settings"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", unique=True, index=True)
    fiscal_year_start_month: int = Field(default=1, ge=1, le=12)
    fiscal_year_start_day: int = Field(default=1, ge=1, le=31)
    current_fiscal_year: int

    created_at: datetime = Field(default_factory=utc_now)
