"""
Project and expense account I/O models.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from requisition_workflow.core.models.domain.enums import ProjectRole


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)


class ProjectUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    code: str
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProjectMemberCreate(BaseModel):
    user_id: str
    role: ProjectRole = ProjectRole.submitter


class ProjectMemberRead(BaseModel):
    user_id: str
    email: str
    full_name: str
    role: str
    is_active: bool
    assigned_at: datetime


class ProjectBudget(BaseModel):
    """Budget consumption of a project."""

    project_id: str
    budget: Optional[Decimal] = None
    committed: Decimal = Field(description="Sum of requisitions still in the approval pipeline")
    spent: Decimal = Field(description="Sum of approved, partially received and completed requisitions")
    remaining: Optional[Decimal] = Field(default=None, description="Budget minus spent; null without a budget")


class ExpenseAccountCreate(BaseModel):
    project_id: str
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class ExpenseAccountUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None


class ExpenseAccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    project_id: str
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
