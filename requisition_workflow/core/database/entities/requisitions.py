"""
Requisition entity models.

This module contains the requisition header, its line items and the
comment thread. Monetary values are fixed-point decimals.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Requisition(Base, table=True):
    """
    Purchase, expense or petty-cash request moving through the approval workflow.

    Table: requisitions
    """

    __tablename__ = "requisitions"
    __table_args__ = (UniqueConstraint("org_id", "requisition_number", name="uq_requisitions_org_number"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    requisition_number: str = Field(max_length=20, index=True)
    type: str = Field(default="purchase", max_length=16)

    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, sa_type=Text)
    justification: Optional[str] = Field(default=None, sa_type=Text)
    project_id: str = Field(foreign_key="projects.id", index=True)
    expense_account_id: Optional[str] = Field(default=None, foreign_key="expense_accounts.id")
    required_by: Optional[date] = Field(default=None)
    delivery_location: Optional[str] = Field(default=None, max_length=255)
    supplier_preference: Optional[str] = Field(default=None, max_length=255)

    submitted_by: str = Field(max_length=36, index=True)
    status: str = Field(default="draft", max_length=32, index=True)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)

    submitted_at: Optional[datetime] = Field(default=None)
    reviewed_by: Optional[str] = Field(default=None, max_length=36)
    reviewed_at: Optional[datetime] = Field(default=None)
    approved_by: Optional[str] = Field(default=None, max_length=36)
    approved_at: Optional[datetime] = Field(default=None)
    rejection_reason: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Requisition(id={self.id}, number={self.requisition_number}, status={self.status})"


class RequisitionItem(Base, table=True):
    """
    Line item of a requisition. ``total_price`` is quantity times unit price.
    ``item_id`` links the line to a catalog item when it was picked from one.

    Table: requisition_items
    """

    __tablename__ = "requisition_items"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    requisition_id: str = Field(foreign_key="requisitions.id", ondelete="CASCADE", index=True)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    line_number: int = Field(default=1)
    item_id: Optional[str] = Field(default=None, foreign_key="items.id", ondelete="SET NULL", index=True)
    item_description: str = Field(max_length=500)
    quantity: Decimal = Field(max_digits=12, decimal_places=3)
    unit_of_measure: Optional[str] = Field(default=None, max_length=32)
    unit_price: Decimal = Field(max_digits=14, decimal_places=2)
    total_price: Decimal = Field(max_digits=14, decimal_places=2)
    notes: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now)


class Comment(Base, table=True):
    """
    Comment on a requisition. Internal comments are hidden from plain submitters.

    Table: comments
    """

    __tablename__ = "comments"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    requisition_id: str = Field(foreign_key="requisitions.id", ondelete="CASCADE", index=True)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    user_id: str = Field(max_length=36)
    comment_text: str = Field(sa_type=Text)
    is_internal: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, index=True)
