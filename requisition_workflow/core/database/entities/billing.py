"""
Billing history entity model.

Append-only log of subscription and payment events received from Stripe.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class BillingHistory(Base, table=True):
    """
    Table: billing_history
    """

    __tablename__ = "billing_history"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    organization_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    event_type: str = Field(max_length=32, index=True)
    plan_from: Optional[str] = Field(default=None, max_length=32)
    plan_to: Optional[str] = Field(default=None, max_length=32)
    amount_cents: Optional[int] = Field(default=None)
    currency: Optional[str] = Field(default=None, max_length=3)

    stripe_event_id: Optional[str] = Field(default=None, max_length=255)
    stripe_invoice_id: Optional[str] = Field(default=None, max_length=255)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255)
    # "metadata" is reserved on declarative classes, hence the attribute name.
    event_metadata: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON, nullable=True))

    created_at: datetime = Field(default_factory=utc_now, index=True)
