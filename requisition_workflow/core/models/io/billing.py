"""
Billing I/O models.

Checkout and portal payloads use the camelCase keys of the web client.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlanLimitsRead(BaseModel):
    max_users: int = Field(serialization_alias="maxUsers")
    max_projects: int = Field(serialization_alias="maxProjects")
    max_requisitions_per_month: int = Field(serialization_alias="maxRequisitionsPerMonth")


class PlanRead(BaseModel):
    id: str
    name: str
    monthly_price: Optional[int] = Field(default=None, description="USD per month")
    yearly_price: Optional[int] = Field(default=None, description="USD per year")
    limits: PlanLimitsRead
    monthly_price_id: Optional[str] = None
    yearly_price_id: Optional[str] = None


class CheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(default=None, alias="priceId")
    org_id: Optional[str] = Field(default=None, alias="orgId")
    billing_interval: Optional[str] = Field(default=None, alias="billingInterval")


class CheckoutSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str]
    session_id: str = Field(alias="sessionId")


class PortalSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    org_id: Optional[str] = Field(default=None, alias="orgId")


class PortalSessionResponse(BaseModel):
    url: str


class BillingHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_type: str
    plan_from: Optional[str] = None
    plan_to: Optional[str] = None
    amount_cents: Optional[int] = None
    currency: Optional[str] = None
    stripe_invoice_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="event_metadata")
    created_at: datetime


class WebhookAck(BaseModel):
    received: bool = True
