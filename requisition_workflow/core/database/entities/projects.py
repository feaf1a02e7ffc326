"""
Project entity models.

Projects group requisitions and carry an optional budget. Deleting a
project only deactivates it so that historical requisitions keep a valid
reference.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class ProjectBase(Base):
    """Base fields for a project."""

    code: str = Field(max_length=50, description="Short project code, unique within the organization")
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, sa_type=Text)
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    budget: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=2)


class Project(ProjectBase, table=True):
    """
    Table: projects
    """

    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("org_id", "code", name="uq_projects_org_code"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    is_active: bool = Field(default=True, index=True)
    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Project(id={self.id}, code={self.code}, active={self.is_active})"


class ProjectMember(Base, table=True):
    """
    Assignment of a user to a project.

    Table: project_members
    """

    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", index=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    role: str = Field(default="submitter", max_length=16)
    is_active: bool = Field(default=True)
    assigned_by: Optional[str] = Field(default=None, max_length=36)
    assigned_at: datetime = Field(default_factory=utc_now)
