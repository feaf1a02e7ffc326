"""
Item catalog entity models.

The catalog is the organization's master list of goods and services that
requisition lines can point at. Items are grouped into categories and carry
a default unit of measure. Nothing in the catalog is ever hard deleted:
deactivating keeps historical requisition lines pointing at a valid row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class ItemCategory(Base, table=True):
    """
    Table: item_categories
    """

    __tablename__ = "item_categories"
    __table_args__ = (
        UniqueConstraint("org_id", "code", name="uq_item_categories_org_code"),
        UniqueConstraint("org_id", "name", name="uq_item_categories_org_name"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    code: str = Field(max_length=50)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, sa_type=Text)
    is_active: bool = Field(default=True, index=True)
    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"ItemCategory(id={self.id}, code={self.code})"


class UomType(Base, table=True):
    """
    Unit of measure (``BAG``, ``M3``, ``EA``).

    Table: uom_types
    """

    __tablename__ = "uom_types"
    __table_args__ = (UniqueConstraint("org_id", "code", name="uq_uom_types_org_code"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    code: str = Field(max_length=10)
    name: str = Field(max_length=50)
    description: Optional[str] = Field(default=None, sa_type=Text)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)


class CatalogItem(Base, table=True):
    """
    Table: items
    """

    __tablename__ = "items"
    __table_args__ = (UniqueConstraint("org_id", "code", name="uq_items_org_code"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    org_id: str = Field(foreign_key="organizations.id", ondelete="CASCADE", index=True)
    code: str = Field(max_length=50)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    category_id: Optional[str] = Field(
        default=None, foreign_key="item_categories.id", ondelete="SET NULL", index=True
    )
    default_uom_id: Optional[str] = Field(default=None, foreign_key="uom_types.id", ondelete="SET NULL")
    is_active: bool = Field(default=True, index=True)
    created_by: Optional[str] = Field(default=None, max_length=36)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"CatalogItem(id={self.id}, code={self.code}, active={self.is_active})"
