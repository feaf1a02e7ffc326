"""
Expense account entity model.

Expense accounts are the chart-of-accounts lines a requisition is charged
to. They belong to a project.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class ExpenseAccount(Base, table=True):
    """
    Table: expense_accounts
    """

    __tablename__ = "expense_accounts"
    __table_args__ = (UniqueConstraint("project_id", "code", name="uq_expense_accounts_project_code"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", index=True)
    code: str = Field(max_length=50)
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, sa_type=Text)
    is_active: bool = Field(default=True, index=True)
    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"ExpenseAccount(id={self.id}, code={self.code})"
