"""
Item catalog repositories: categories, units of measure and items.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.catalog import CatalogItem, ItemCategory, UomType
from ..entities.requisitions import RequisitionItem
from .base import SQLModelRepository

CodedT = TypeVar("CodedT", CatalogItem, ItemCategory, UomType)


class _OrgCodedRepository(SQLModelRepository[CodedT]):
    """Lookups shared by catalog tables keyed by ``(org_id, code)``."""

    async def get_in_org(self, org_id: str, entity_id: str) -> Optional[CodedT]:
        stmt = select(self.model).where(self.model.id == entity_id, self.model.org_id == org_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_code(self, org_id: str, code: str) -> Optional[CodedT]:
        stmt = select(self.model).where(self.model.org_id == org_id, func.upper(self.model.code) == code.upper())
        result = await self.session.execute(stmt)
        return result.scalars().first()


class ItemCategoryRepository(_OrgCodedRepository[ItemCategory]):
    """Repository for item categories."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ItemCategory)

    async def get_by_name(self, org_id: str, name: str) -> Optional[ItemCategory]:
        stmt = select(ItemCategory).where(
            ItemCategory.org_id == org_id, func.lower(ItemCategory.name) == name.lower()
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_org(
        self, org_id: str, *, active_only: bool = False, search: Optional[str] = None
    ) -> List[ItemCategory]:
        stmt = select(ItemCategory).where(ItemCategory.org_id == org_id)
        if active_only:
            stmt = stmt.where(ItemCategory.is_active == True)  # noqa: E712
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    ItemCategory.code.ilike(pattern),  # type: ignore[attr-defined]
                    ItemCategory.name.ilike(pattern),  # type: ignore[attr-defined]
                    ItemCategory.description.ilike(pattern),  # type: ignore[union-attr]
                )
            )
        stmt = stmt.order_by(ItemCategory.name.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def item_counts(self, category_id: str) -> Dict[str, int]:
        """Total and active catalog items filed under a category."""
        stmt = select(CatalogItem.is_active, func.count()).where(CatalogItem.category_id == category_id).group_by(
            CatalogItem.is_active
        )
        result = await self.session.execute(stmt)
        by_state = {bool(active): count for active, count in result.all()}
        return {"total_items": sum(by_state.values()), "active_items": by_state.get(True, 0)}


class UomTypeRepository(_OrgCodedRepository[UomType]):
    """Repository for units of measure."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UomType)

    async def list_for_org(self, org_id: str, *, active_only: bool = True) -> List[UomType]:
        stmt = select(UomType).where(UomType.org_id == org_id)
        if active_only:
            stmt = stmt.where(UomType.is_active == True)  # noqa: E712
        stmt = stmt.order_by(UomType.code.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class CatalogItemRepository(_OrgCodedRepository[CatalogItem]):
    """Repository for catalog items."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CatalogItem)

    async def list_for_org(
        self,
        org_id: str,
        *,
        is_active: Optional[bool] = None,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[CatalogItem]:
        """
        List catalog items ordered by code.

        Args:
            org_id: Organization ID
            is_active: Restrict to active (True) or inactive (False) items
            category_id: Restrict to one category
            search: Case-insensitive match on code, name or description
        """
        stmt = select(CatalogItem).where(CatalogItem.org_id == org_id)
        if is_active is not None:
            stmt = stmt.where(CatalogItem.is_active == is_active)
        if category_id:
            stmt = stmt.where(CatalogItem.category_id == category_id)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    CatalogItem.code.ilike(pattern),  # type: ignore[attr-defined]
                    CatalogItem.name.ilike(pattern),  # type: ignore[attr-defined]
                    CatalogItem.description.ilike(pattern),  # type: ignore[union-attr]
                )
            )
        stmt = stmt.order_by(CatalogItem.code.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def codes_with_prefix(self, org_id: str, prefix: str) -> List[str]:
        stmt = select(CatalogItem.code).where(
            CatalogItem.org_id == org_id,
            CatalogItem.code.startswith(prefix),  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def usage(self, item_id: str) -> Dict[str, object]:
        """How often requisition lines referenced the item and what they added up to."""
        stmt = select(
            func.count(RequisitionItem.id),
            func.coalesce(func.sum(RequisitionItem.quantity), 0),
            func.coalesce(func.sum(RequisitionItem.total_price), 0),
        ).where(RequisitionItem.item_id == item_id)
        count, quantity, amount = (await self.session.execute(stmt)).one()
        return {
            "requisition_count": int(count or 0),
            "total_quantity_used": Decimal(str(quantity)),
            "total_amount_spent": Decimal(str(amount)),
        }
