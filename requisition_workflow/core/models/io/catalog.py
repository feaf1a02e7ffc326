"""
Item catalog I/O models.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryStats(BaseModel):
    total_items: int
    active_items: int


class UomTypeCreate(BaseModel):
    code: str = Field(min_length=1, max_length=10)
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None


class UomTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool


class ItemCreate(BaseModel):
    """Schema for adding a catalog item. The code is generated when omitted."""

    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[str] = None
    default_uom_id: Optional[str] = None


class ItemUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[str] = None
    default_uom_id: Optional[str] = None


class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    default_uom_id: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ItemStats(BaseModel):
    requisition_count: int
    total_quantity_used: Decimal
    total_amount_spent: Decimal
