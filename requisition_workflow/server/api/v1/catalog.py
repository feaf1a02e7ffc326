"""
Item Catalog Endpoints.

The organization's master list of goods and services, their categories and
units of measure. Every member can browse the catalog; organization admins
maintain it. Codes are unique within the organization (case-insensitive)
and deleting only deactivates.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from requisition_workflow.core.database.entities import CatalogItem, ItemCategory, UomType
from requisition_workflow.core.database.repositories import (
    CatalogItemRepository,
    ItemCategoryRepository,
    UomTypeRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.io.catalog import (
    CategoryCreate,
    CategoryRead,
    CategoryStats,
    CategoryUpdate,
    ItemCreate,
    ItemRead,
    ItemStats,
    ItemUpdate,
    UomTypeCreate,
    UomTypeRead,
)
from requisition_workflow.server.services.access import OrgContext
from requisition_workflow.server.services.deps import OrgContextDep, OrgManagerDep, SessionDep
from requisition_workflow.server.services.numbering import generate_item_code
from requisition_workflow.server.services.sanitize import sanitize_string

logger = get_logger(__name__)

router = APIRouter()


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def _code_taken(what: str, code: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{what} with code {code} already exists")


def _code(value: str) -> str:
    return sanitize_string(value, 50).upper()


# =====================================================================
# Categories
# =====================================================================


async def _get_category(session, ctx: OrgContext, category_id: str) -> ItemCategory:
    category = await ItemCategoryRepository(session).get_in_org(ctx.org_id, category_id)
    if category is None:
        raise _not_found("Category")
    return category


async def _ensure_category_free(
    session, org_id: str, code: Optional[str], name: Optional[str], category_id: Optional[str] = None
) -> None:
    categories = ItemCategoryRepository(session)
    if code is not None:
        existing = await categories.get_by_code(org_id, code)
        if existing is not None and existing.id != category_id:
            raise _code_taken("A category", code)
    if name is not None:
        existing = await categories.get_by_name(org_id, name)
        if existing is not None and existing.id != category_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=f"A category named {name} already exists"
            )


@router.get(
    "/categories",
    response_model=List[CategoryRead],
    summary="List Categories",
    description="List item categories by name, optionally only active ones or those matching a search term.",
)
async def list_categories(
    ctx: OrgContextDep,
    session: SessionDep,
    active_only: bool = Query(default=False),
    search: Optional[str] = Query(default=None),
) -> List[CategoryRead]:
    categories = await ItemCategoryRepository(session).list_for_org(
        ctx.org_id, active_only=active_only, search=search.strip() if search else None
    )
    return [CategoryRead.model_validate(c) for c in categories]


@router.post(
    "/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Category",
    responses={403: {"description": "Not an organization admin"}, 409: {"description": "Code or name taken"}},
)
async def create_category(data: CategoryCreate, ctx: OrgManagerDep, session: SessionDep) -> CategoryRead:
    code, name = _code(data.code), sanitize_string(data.name, 100)
    await _ensure_category_free(session, ctx.org_id, code, name)
    category = await ItemCategoryRepository(session).create(
        ItemCategory(org_id=ctx.org_id, code=code, name=name, description=data.description, created_by=ctx.user_id)
    )
    await session.commit()
    logger.info(f"Category {code} created in org {ctx.org_id}")
    return CategoryRead.model_validate(category)


@router.get(
    "/categories/{category_id}",
    response_model=CategoryRead,
    summary="Get Category",
    responses={404: {"description": "Category not found"}},
)
async def get_category(category_id: str, ctx: OrgContextDep, session: SessionDep) -> CategoryRead:
    return CategoryRead.model_validate(await _get_category(session, ctx, category_id))


@router.get(
    "/categories/{category_id}/stats",
    response_model=CategoryStats,
    summary="Category Usage",
    description="Count the catalog items filed under the category.",
    responses={404: {"description": "Category not found"}},
)
async def category_stats(category_id: str, ctx: OrgContextDep, session: SessionDep) -> CategoryStats:
    category = await _get_category(session, ctx, category_id)
    return CategoryStats(**await ItemCategoryRepository(session).item_counts(category.id))


@router.patch(
    "/categories/{category_id}",
    response_model=CategoryRead,
    summary="Update Category",
    responses={404: {"description": "Category not found"}, 409: {"description": "Code or name taken"}},
)
async def update_category(
    category_id: str, data: CategoryUpdate, ctx: OrgManagerDep, session: SessionDep
) -> CategoryRead:
    category = await _get_category(session, ctx, category_id)
    code = _code(data.code) if data.code is not None else None
    name = sanitize_string(data.name, 100) if data.name is not None else None
    await _ensure_category_free(session, ctx.org_id, code, name, category.id)
    if code is not None:
        category.code = code
    if name is not None:
        category.name = name
    if "description" in data.model_fields_set:
        category.description = data.description
    await ItemCategoryRepository(session).update(category)
    await session.commit()
    return CategoryRead.model_validate(category)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate Category",
    responses={404: {"description": "Category not found"}},
)
async def deactivate_category(category_id: str, ctx: OrgManagerDep, session: SessionDep) -> None:
    category = await _get_category(session, ctx, category_id)
    category.is_active = False
    await ItemCategoryRepository(session).update(category)
    await session.commit()


@router.post(
    "/categories/{category_id}/activate",
    response_model=CategoryRead,
    summary="Activate Category",
    responses={404: {"description": "Category not found"}},
)
async def activate_category(category_id: str, ctx: OrgManagerDep, session: SessionDep) -> CategoryRead:
    category = await _get_category(session, ctx, category_id)
    category.is_active = True
    await ItemCategoryRepository(session).update(category)
    await session.commit()
    return CategoryRead.model_validate(category)


# =====================================================================
# Units of measure
# =====================================================================


@router.get(
    "/uom-types",
    response_model=List[UomTypeRead],
    summary="List Units of Measure",
    description="List the organization's active units of measure by code.",
)
async def list_uom_types(ctx: OrgContextDep, session: SessionDep) -> List[UomTypeRead]:
    return [UomTypeRead.model_validate(u) for u in await UomTypeRepository(session).list_for_org(ctx.org_id)]


@router.post(
    "/uom-types",
    response_model=UomTypeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Unit of Measure",
    responses={403: {"description": "Not an organization admin"}, 409: {"description": "Code taken"}},
)
async def create_uom_type(data: UomTypeCreate, ctx: OrgManagerDep, session: SessionDep) -> UomTypeRead:
    code = sanitize_string(data.code, 10).upper()
    uom_types = UomTypeRepository(session)
    if await uom_types.get_by_code(ctx.org_id, code) is not None:
        raise _code_taken("A unit of measure", code)
    uom = await uom_types.create(
        UomType(org_id=ctx.org_id, code=code, name=sanitize_string(data.name, 50), description=data.description)
    )
    await session.commit()
    return UomTypeRead.model_validate(uom)


# =====================================================================
# Items
# =====================================================================


async def _get_item(session, ctx: OrgContext, item_id: str) -> CatalogItem:
    item = await CatalogItemRepository(session).get_in_org(ctx.org_id, item_id)
    if item is None:
        raise _not_found("Item")
    return item


async def _validate_item_references(
    session, org_id: str, category_id: Optional[str], default_uom_id: Optional[str]
) -> None:
    if category_id and await ItemCategoryRepository(session).get_in_org(org_id, category_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found")
    if default_uom_id and await UomTypeRepository(session).get_in_org(org_id, default_uom_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unit of measure not found")


@router.get(
    "/items",
    response_model=List[ItemRead],
    summary="List Items",
    description="List catalog items by code, filtered by state, category or a search term.",
)
async def list_items(
    ctx: OrgContextDep,
    session: SessionDep,
    is_active: Optional[bool] = Query(default=None),
    category_id: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
) -> List[ItemRead]:
    items = await CatalogItemRepository(session).list_for_org(
        ctx.org_id, is_active=is_active, category_id=category_id, search=search.strip() if search else None
    )
    return [ItemRead.model_validate(i) for i in items]


@router.post(
    "/items",
    response_model=ItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Item",
    description="Add an item to the catalog. Without a code the next ``ITEM-nnn`` code is assigned.",
    responses={
        400: {"description": "Unknown category or unit of measure"},
        403: {"description": "Not an organization admin"},
        409: {"description": "Code taken"},
    },
)
async def create_item(data: ItemCreate, ctx: OrgManagerDep, session: SessionDep) -> ItemRead:
    await _validate_item_references(session, ctx.org_id, data.category_id, data.default_uom_id)
    items = CatalogItemRepository(session)
    if data.code:
        code = _code(data.code)
        if await items.get_by_code(ctx.org_id, code) is not None:
            raise _code_taken("An item", code)
    else:
        code = await generate_item_code(session, ctx.org_id)

    item = await items.create(
        CatalogItem(
            org_id=ctx.org_id,
            code=code,
            name=sanitize_string(data.name, 255),
            description=data.description,
            category_id=data.category_id or None,
            default_uom_id=data.default_uom_id or None,
            created_by=ctx.user_id,
        )
    )
    await session.commit()
    logger.info(f"Catalog item {code} created in org {ctx.org_id}")
    return ItemRead.model_validate(item)


@router.get(
    "/items/{item_id}",
    response_model=ItemRead,
    summary="Get Item",
    responses={404: {"description": "Item not found"}},
)
async def get_item(item_id: str, ctx: OrgContextDep, session: SessionDep) -> ItemRead:
    return ItemRead.model_validate(await _get_item(session, ctx, item_id))


@router.get(
    "/items/{item_id}/stats",
    response_model=ItemStats,
    summary="Item Usage",
    description="How many requisition lines used the item, with their total quantity and amount.",
    responses={404: {"description": "Item not found"}},
)
async def item_stats(item_id: str, ctx: OrgContextDep, session: SessionDep) -> ItemStats:
    item = await _get_item(session, ctx, item_id)
    return ItemStats(**await CatalogItemRepository(session).usage(item.id))


@router.patch(
    "/items/{item_id}",
    response_model=ItemRead,
    summary="Update Item",
    responses={
        400: {"description": "Unknown category or unit of measure"},
        404: {"description": "Item not found"},
        409: {"description": "Code taken"},
    },
)
async def update_item(item_id: str, data: ItemUpdate, ctx: OrgManagerDep, session: SessionDep) -> ItemRead:
    item = await _get_item(session, ctx, item_id)
    items = CatalogItemRepository(session)
    await _validate_item_references(session, ctx.org_id, data.category_id, data.default_uom_id)
    if data.code is not None:
        code = _code(data.code)
        existing = await items.get_by_code(ctx.org_id, code)
        if existing is not None and existing.id != item.id:
            raise _code_taken("An item", code)
        item.code = code
    if data.name is not None:
        item.name = sanitize_string(data.name, 255)
    if "description" in data.model_fields_set:
        item.description = data.description
    if "category_id" in data.model_fields_set:
        item.category_id = data.category_id or None
    if "default_uom_id" in data.model_fields_set:
        item.default_uom_id = data.default_uom_id or None
    await items.update(item)
    await session.commit()
    return ItemRead.model_validate(item)


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate Item",
    responses={404: {"description": "Item not found"}},
)
async def deactivate_item(item_id: str, ctx: OrgManagerDep, session: SessionDep) -> None:
    item = await _get_item(session, ctx, item_id)
    item.is_active = False
    await CatalogItemRepository(session).update(item)
    await session.commit()


@router.post(
    "/items/{item_id}/activate",
    response_model=ItemRead,
    summary="Activate Item",
    responses={404: {"description": "Item not found"}},
)
async def activate_item(item_id: str, ctx: OrgManagerDep, session: SessionDep) -> ItemRead:
    item = await _get_item(session, ctx, item_id)
    item.is_active = True
    await CatalogItemRepository(session).update(item)
    await session.commit()
    return ItemRead.model_validate(item)
