"""
Requisition I/O models for API requests and responses.

This module contains the schemas for requisitions, their line items,
comments, the approval trail and workflow action payloads.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from requisition_workflow.core.models.domain.enums import RequisitionType


class RequisitionItemCreate(BaseModel):
    """Schema for adding a line item."""

    item_id: Optional[str] = Field(default=None, description="Catalog item the line was picked from")
    item_description: str = Field(min_length=1, max_length=500)
    quantity: Decimal = Field(gt=0, max_digits=12, decimal_places=3)
    unit_of_measure: Optional[str] = Field(default=None, max_length=32)
    unit_price: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    notes: Optional[str] = None


class RequisitionItemUpdate(BaseModel):
    item_id: Optional[str] = None
    item_description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    quantity: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=3)
    unit_of_measure: Optional[str] = Field(default=None, max_length=32)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    notes: Optional[str] = None


class RequisitionItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    line_number: int
    item_id: Optional[str] = None
    item_description: str
    quantity: Decimal
    unit_of_measure: Optional[str] = None
    unit_price: Decimal
    total_price: Decimal
    notes: Optional[str] = None


class RequisitionCreate(BaseModel):
    """Schema for creating a draft requisition, optionally with its first items."""

    type: RequisitionType = RequisitionType.purchase
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    justification: Optional[str] = None
    project_id: str
    expense_account_id: Optional[str] = None
    required_by: Optional[date] = None
    delivery_location: Optional[str] = Field(default=None, max_length=255)
    supplier_preference: Optional[str] = Field(default=None, max_length=255)
    items: List[RequisitionItemCreate] = Field(default_factory=list)


class RequisitionUpdate(BaseModel):
    type: Optional[RequisitionType] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    justification: Optional[str] = None
    project_id: Optional[str] = None
    expense_account_id: Optional[str] = None
    required_by: Optional[date] = None
    delivery_location: Optional[str] = Field(default=None, max_length=255)
    supplier_preference: Optional[str] = Field(default=None, max_length=255)


class RequisitionRead(BaseModel):
    """Schema for reading a requisition header."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    requisition_number: str
    type: str
    title: str
    description: Optional[str] = None
    justification: Optional[str] = None
    project_id: str
    expense_account_id: Optional[str] = None
    required_by: Optional[date] = None
    delivery_location: Optional[str] = None
    supplier_preference: Optional[str] = None
    submitted_by: str
    status: str
    total_amount: Decimal
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CommentCreate(BaseModel):
    comment_text: str = Field(min_length=1)
    is_internal: bool = False


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    comment_text: str
    is_internal: bool
    created_at: datetime


class RequisitionApprovalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    actor_id: str
    action: str
    from_status: str
    to_status: str
    note: Optional[str] = None
    created_at: datetime


class RequisitionDetail(RequisitionRead):
    """Requisition with its items and the comments visible to the caller."""

    items: List[RequisitionItemRead] = Field(default_factory=list)
    comments: List[CommentRead] = Field(default_factory=list)


class WorkflowActionRequest(BaseModel):
    comment: Optional[str] = Field(default=None, description="Optional note recorded with the action")


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(default=None, description="Why the requisition is rejected")
