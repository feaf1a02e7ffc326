"""
Requisition Service.

Creation, editing and visibility of requisitions and their line items.
Status changes live in ``workflow``; this module only edits drafts.

Visibility rules:
- submitters always see their own requisitions
- super admins see everything in the organization
- organization owners/admins and reviewers see every non-draft requisition
- approvers see requisitions once they are reviewed (and their outcome)

Requisitions the caller may not see are reported as not found.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database.entities import (
    Comment,
    Requisition,
    RequisitionApproval,
    RequisitionItem,
)
from requisition_workflow.core.database.repositories import (
    CatalogItemRepository,
    CommentRepository,
    ExpenseAccountRepository,
    ProjectRepository,
    RequisitionApprovalRepository,
    RequisitionItemRepository,
    RequisitionRepository,
)
from requisition_workflow.core.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import RequisitionStatus, WorkflowRole
from requisition_workflow.core.models.io.requisitions import (
    CommentCreate,
    RequisitionCreate,
    RequisitionItemCreate,
    RequisitionItemUpdate,
    RequisitionUpdate,
)
from requisition_workflow.server.services.access import (
    OrgContext,
    can_see_internal_comments,
    is_super_admin,
    user_is_org_admin,
)
from requisition_workflow.server.services.numbering import generate_requisition_number
from requisition_workflow.server.services.plans import LimitKind, ensure_within_limit

logger = get_logger(__name__)

CENTS = Decimal("0.01")

NON_DRAFT_STATUSES = tuple(s.value for s in RequisitionStatus if s != RequisitionStatus.draft)
APPROVER_STATUSES = (
    RequisitionStatus.reviewed.value,
    RequisitionStatus.approved.value,
    RequisitionStatus.rejected.value,
)


def visible_statuses(ctx: OrgContext) -> Optional[List[str]]:
    """Statuses the caller may see on other users' requisitions; None means all."""
    if is_super_admin(ctx):
        return None
    statuses: set[str] = set()
    if user_is_org_admin(ctx) or ctx.workflow_role == WorkflowRole.reviewer.value:
        statuses.update(NON_DRAFT_STATUSES)
    if ctx.workflow_role == WorkflowRole.approver.value:
        statuses.update(APPROVER_STATUSES)
    return sorted(statuses)


def can_view(ctx: OrgContext, requisition: Requisition) -> bool:
    if requisition.submitted_by == ctx.user_id:
        return True
    statuses = visible_statuses(ctx)
    return statuses is None or requisition.status in statuses


def line_total(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return (Decimal(quantity) * Decimal(unit_price)).quantize(CENTS, rounding=ROUND_HALF_UP)


class RequisitionService:
    """Requisition operations performed by one caller inside one organization."""

    def __init__(self, session: AsyncSession, ctx: OrgContext) -> None:
        self.session = session
        self.ctx = ctx
        self.requisitions = RequisitionRepository(session)
        self.items = RequisitionItemRepository(session)
        self.comments = CommentRepository(session)
        self.approvals = RequisitionApprovalRepository(session)

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    async def list(
        self,
        *,
        status: Optional[str] = None,
        project_id: Optional[str] = None,
        type: Optional[str] = None,
        mine: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Requisition]:
        filters = {
            "status": status,
            "project_id": project_id,
            "type": type,
            "submitted_by": self.ctx.user_id if mine else None,
        }
        return await self.requisitions.list_for_org(
            self.ctx.org_id,
            viewer_id=self.ctx.user_id,
            visible_statuses=visible_statuses(self.ctx),
            filters=filters,
            limit=limit,
            offset=offset,
        )

    async def get_visible(self, requisition_id: str) -> Requisition:
        requisition = await self.requisitions.get_in_org(self.ctx.org_id, requisition_id)
        if requisition is None or not can_view(self.ctx, requisition):
            raise NotFound(f"Requisition {requisition_id} not found")
        return requisition

    async def list_items(self, requisition: Requisition) -> List[RequisitionItem]:
        return await self.items.list_for_requisition(requisition.id)

    async def list_comments(self, requisition: Requisition) -> List[Comment]:
        return await self.comments.list_for_requisition(
            requisition.id, include_internal=can_see_internal_comments(self.ctx)
        )

    async def list_approvals(self, requisition: Requisition) -> List[RequisitionApproval]:
        return await self.approvals.list_for_requisition(requisition.id)

    # -----------------------------------------------------------------
    # Drafts
    # -----------------------------------------------------------------

    async def create(self, data: RequisitionCreate) -> Requisition:
        await self._validate_references(data.project_id, data.expense_account_id)
        for item in data.items:
            await self._validate_catalog_item(item.item_id)
        await ensure_within_limit(self.session, self.ctx.organization, LimitKind.requisitions)

        requisition = Requisition(
            org_id=self.ctx.org_id,
            requisition_number=await generate_requisition_number(self.session, self.ctx.org_id),
            type=data.type.value,
            title=data.title,
            description=data.description,
            justification=data.justification,
            project_id=data.project_id,
            expense_account_id=data.expense_account_id,
            required_by=data.required_by,
            delivery_location=data.delivery_location,
            supplier_preference=data.supplier_preference,
            submitted_by=self.ctx.user_id,
            status=RequisitionStatus.draft.value,
        )
        number, org_id = requisition.requisition_number, self.ctx.org_id
        try:
            await self.requisitions.create(requisition)
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Requisition number {number} already taken in org {org_id}: {e.orig}")
            raise Conflict(f"Requisition number {number} was just taken, please retry") from e

        for line_number, item in enumerate(data.items, start=1):
            await self.items.create(self._build_item(requisition, item, line_number))
        await self._recalculate_total(requisition)

        logger.info(f"Created requisition {requisition.requisition_number} in org {self.ctx.org_id}")
        return requisition

    async def update(self, requisition_id: str, data: RequisitionUpdate) -> Requisition:
        requisition = await self._editable_draft(requisition_id)
        changes = data.model_dump(exclude_unset=True)
        for required in ("type", "title", "project_id"):
            if changes.get(required, "") is None:
                changes.pop(required)

        if "project_id" in changes or "expense_account_id" in changes:
            project_id = changes.get("project_id") or requisition.project_id
            account_id = changes.get("expense_account_id", requisition.expense_account_id)
            if "project_id" in changes and "expense_account_id" not in changes:
                account_id = None if project_id != requisition.project_id else account_id
                changes["expense_account_id"] = account_id
            await self._validate_references(project_id, account_id)

        for key, value in changes.items():
            if key == "type" and value is not None:
                value = getattr(value, "value", value)
            setattr(requisition, key, value)
        return await self.requisitions.update(requisition)

    async def delete(self, requisition_id: str) -> None:
        requisition = await self.get_visible(requisition_id)
        if requisition.status != RequisitionStatus.draft.value:
            raise Conflict("Only draft requisitions can be deleted")
        if requisition.submitted_by != self.ctx.user_id and not is_super_admin(self.ctx):
            raise PermissionDenied("Only the submitter can delete this requisition")
        await self.requisitions.delete_with_children(requisition)
        logger.info(f"Deleted draft requisition {requisition.requisition_number}")

    async def add_item(self, requisition_id: str, data: RequisitionItemCreate) -> RequisitionItem:
        requisition = await self._editable_draft(requisition_id)
        await self._validate_catalog_item(data.item_id)
        existing = await self.items.list_for_requisition(requisition.id)
        next_line = max((item.line_number for item in existing), default=0) + 1
        item = await self.items.create(self._build_item(requisition, data, next_line))
        await self._recalculate_total(requisition)
        return item

    async def update_item(self, requisition_id: str, item_id: str, data: RequisitionItemUpdate) -> RequisitionItem:
        requisition = await self._editable_draft(requisition_id)
        item = await self.items.get_in_requisition(requisition.id, item_id)
        if item is None:
            raise NotFound(f"Item {item_id} not found")
        if "item_id" in data.model_fields_set:
            await self._validate_catalog_item(data.item_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if key in ("quantity", "unit_price", "item_description") and value is None:
                continue
            setattr(item, key, value)
        item.total_price = line_total(item.quantity, item.unit_price)
        await self.items.update(item)
        await self._recalculate_total(requisition)
        return item

    async def delete_item(self, requisition_id: str, item_id: str) -> None:
        requisition = await self._editable_draft(requisition_id)
        item = await self.items.get_in_requisition(requisition.id, item_id)
        if item is None:
            raise NotFound(f"Item {item_id} not found")
        await self.items.delete(item.id)
        for line_number, remaining in enumerate(await self.items.list_for_requisition(requisition.id), start=1):
            if remaining.line_number != line_number:
                remaining.line_number = line_number
                await self.items.update(remaining)
        await self._recalculate_total(requisition)

    async def add_comment(self, requisition_id: str, data: CommentCreate) -> Comment:
        requisition = await self.get_visible(requisition_id)
        if data.is_internal and not can_see_internal_comments(self.ctx):
            raise PermissionDenied("Only reviewers, approvers and admins can add internal comments")
        return await self.comments.create(
            Comment(
                requisition_id=requisition.id,
                org_id=self.ctx.org_id,
                user_id=self.ctx.user_id,
                comment_text=data.comment_text,
                is_internal=data.is_internal,
            )
        )

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    async def _editable_draft(self, requisition_id: str) -> Requisition:
        requisition = await self.get_visible(requisition_id)
        if requisition.submitted_by != self.ctx.user_id:
            raise PermissionDenied("Only the submitter can edit this requisition")
        if requisition.status != RequisitionStatus.draft.value:
            raise Conflict(f"Cannot edit a requisition in status {requisition.status}")
        return requisition

    async def _validate_references(self, project_id: str, expense_account_id: Optional[str]) -> None:
        project = await ProjectRepository(self.session).get_in_org(self.ctx.org_id, project_id)
        if project is None or not project.is_active:
            raise ValidationFailed("Project not found or inactive")
        if expense_account_id:
            account = await ExpenseAccountRepository(self.session).get_in_org(self.ctx.org_id, expense_account_id)
            if account is None or not account.is_active or account.project_id != project.id:
                raise ValidationFailed("Expense account does not belong to the selected project")

    async def _validate_catalog_item(self, item_id: Optional[str]) -> None:
        if not item_id:
            return
        item = await CatalogItemRepository(self.session).get_in_org(self.ctx.org_id, item_id)
        if item is None or not item.is_active:
            raise ValidationFailed("Catalog item not found or inactive")

    def _build_item(self, requisition: Requisition, data: RequisitionItemCreate, line_number: int) -> RequisitionItem:
        return RequisitionItem(
            requisition_id=requisition.id,
            org_id=requisition.org_id,
            line_number=line_number,
            item_id=data.item_id or None,
            item_description=data.item_description,
            quantity=data.quantity,
            unit_of_measure=data.unit_of_measure,
            unit_price=data.unit_price,
            total_price=line_total(data.quantity, data.unit_price),
            notes=data.notes,
        )

    async def _recalculate_total(self, requisition: Requisition) -> None:
        requisition.total_amount = (await self.items.sum_total(requisition.id)).quantize(CENTS)
        await self.requisitions.update(requisition)
