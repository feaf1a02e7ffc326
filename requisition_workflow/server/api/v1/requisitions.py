"""
Requisition Endpoints.

CRUD on draft requisitions and their line items, the workflow actions
(submit, start review, mark reviewed, approve, reject, cancel), comments and
the approval trail. Requisitions the caller may not see answer 404.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from requisition_workflow.core.database.entities import Requisition
from requisition_workflow.core.models.domain.enums import RequisitionStatus, RequisitionType
from requisition_workflow.core.models.io.requisitions import (
    CommentCreate,
    CommentRead,
    RejectRequest,
    RequisitionApprovalRead,
    RequisitionCreate,
    RequisitionDetail,
    RequisitionItemCreate,
    RequisitionItemRead,
    RequisitionItemUpdate,
    RequisitionRead,
    RequisitionUpdate,
    WorkflowActionRequest,
)
from requisition_workflow.server.services.access import OrgContext
from requisition_workflow.server.services.deps import OrgContextDep, SessionDep
from requisition_workflow.server.services.requisitions import RequisitionService
from requisition_workflow.server.services.workflow import WorkflowService

router = APIRouter()

WORKFLOW_RESPONSES = {
    403: {"description": "The caller's role does not allow this action"},
    404: {"description": "Requisition not found"},
    409: {"description": "The action is not allowed in the current status"},
}


async def _detail(service: RequisitionService, requisition: Requisition) -> RequisitionDetail:
    items = await service.list_items(requisition)
    comments = await service.list_comments(requisition)
    return RequisitionDetail.model_validate(
        {
            **RequisitionRead.model_validate(requisition).model_dump(),
            "items": [RequisitionItemRead.model_validate(item) for item in items],
            "comments": [CommentRead.model_validate(comment) for comment in comments],
        }
    )


def _comment(data: Optional[WorkflowActionRequest]) -> Optional[str]:
    return data.comment if data else None


@router.get(
    "",
    response_model=List[RequisitionRead],
    summary="List Requisitions",
    description="List the requisitions visible to the caller, newest first.",
)
async def list_requisitions(
    ctx: OrgContextDep,
    session: SessionDep,
    status_filter: Optional[RequisitionStatus] = Query(default=None, alias="status"),
    project_id: Optional[str] = Query(default=None),
    type: Optional[RequisitionType] = Query(default=None),
    mine: bool = Query(default=False, description="Only requisitions submitted by the caller"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> List[RequisitionRead]:
    requisitions = await RequisitionService(session, ctx).list(
        status=status_filter.value if status_filter else None,
        project_id=project_id,
        type=type.value if type else None,
        mine=mine,
        limit=limit,
        offset=offset,
    )
    return [RequisitionRead.model_validate(r) for r in requisitions]


@router.post(
    "",
    response_model=RequisitionDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create Requisition",
    description="Create a draft requisition, optionally with its first line items.",
    responses={
        400: {"description": "Unknown or inactive project, or expense account outside the project"},
        403: {"description": "Monthly requisition limit of the plan reached"},
    },
)
async def create_requisition(data: RequisitionCreate, ctx: OrgContextDep, session: SessionDep) -> RequisitionDetail:
    """
    Create a requisition.

    The requisition gets the next ``REQ-YY-NNNNN`` number of the organization
    and starts as a draft owned by the caller.
    """
    service = RequisitionService(session, ctx)
    requisition = await service.create(data)
    await session.commit()
    return await _detail(service, requisition)


@router.get(
    "/{requisition_id}",
    response_model=RequisitionDetail,
    summary="Get Requisition",
    description="Requisition with its line items and the comments visible to the caller.",
    responses={404: {"description": "Requisition not found"}},
)
async def get_requisition(requisition_id: str, ctx: OrgContextDep, session: SessionDep) -> RequisitionDetail:
    service = RequisitionService(session, ctx)
    return await _detail(service, await service.get_visible(requisition_id))


@router.patch(
    "/{requisition_id}",
    response_model=RequisitionRead,
    summary="Update Requisition",
    description="Edit a draft. Only its submitter may do so.",
    responses={
        400: {"description": "Invalid project or expense account"},
        403: {"description": "Not the submitter"},
        404: {"description": "Requisition not found"},
        409: {"description": "The requisition is no longer a draft"},
    },
)
async def update_requisition(
    requisition_id: str, data: RequisitionUpdate, ctx: OrgContextDep, session: SessionDep
) -> RequisitionRead:
    requisition = await RequisitionService(session, ctx).update(requisition_id, data)
    await session.commit()
    return RequisitionRead.model_validate(requisition)


@router.delete(
    "/{requisition_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Requisition",
    description="Delete a draft together with its items, comments and approval trail.",
    responses={
        403: {"description": "Not the submitter"},
        404: {"description": "Requisition not found"},
        409: {"description": "Only drafts can be deleted"},
    },
)
async def delete_requisition(requisition_id: str, ctx: OrgContextDep, session: SessionDep) -> None:
    await RequisitionService(session, ctx).delete(requisition_id)
    await session.commit()


# =====================================================================
# Line items
# =====================================================================


@router.post(
    "/{requisition_id}/items",
    response_model=RequisitionItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Line Item",
    responses={403: {"description": "Not the submitter"}, 409: {"description": "Not a draft"}},
)
async def add_item(
    requisition_id: str, data: RequisitionItemCreate, ctx: OrgContextDep, session: SessionDep
) -> RequisitionItemRead:
    item = await RequisitionService(session, ctx).add_item(requisition_id, data)
    await session.commit()
    return RequisitionItemRead.model_validate(item)


@router.patch(
    "/{requisition_id}/items/{item_id}",
    response_model=RequisitionItemRead,
    summary="Update Line Item",
    responses={403: {"description": "Not the submitter"}, 404: {"description": "Not found"}, 409: {"description": "Not a draft"}},
)
async def update_item(
    requisition_id: str, item_id: str, data: RequisitionItemUpdate, ctx: OrgContextDep, session: SessionDep
) -> RequisitionItemRead:
    item = await RequisitionService(session, ctx).update_item(requisition_id, item_id, data)
    await session.commit()
    return RequisitionItemRead.model_validate(item)


@router.delete(
    "/{requisition_id}/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Line Item",
    description="Remove a line item; remaining lines are renumbered.",
    responses={403: {"description": "Not the submitter"}, 404: {"description": "Not found"}, 409: {"description": "Not a draft"}},
)
async def delete_item(requisition_id: str, item_id: str, ctx: OrgContextDep, session: SessionDep) -> None:
    await RequisitionService(session, ctx).delete_item(requisition_id, item_id)
    await session.commit()


# =====================================================================
# Workflow actions
# =====================================================================


async def _run(session, ctx: OrgContext, action: str, requisition_id: str, *args) -> RequisitionRead:
    requisition = await getattr(WorkflowService(session, ctx), action)(requisition_id, *args)
    await session.commit()
    return RequisitionRead.model_validate(requisition)


@router.post(
    "/{requisition_id}/submit",
    response_model=RequisitionRead,
    summary="Submit Requisition",
    description="Send a draft for review. Requires at least one line item.",
    responses={400: {"description": "The requisition has no items"}, **WORKFLOW_RESPONSES},
)
async def submit(
    requisition_id: str, ctx: OrgContextDep, session: SessionDep, data: Optional[WorkflowActionRequest] = None
) -> RequisitionRead:
    return await _run(session, ctx, "submit", requisition_id, _comment(data))


@router.post(
    "/{requisition_id}/start-review",
    response_model=RequisitionRead,
    summary="Start Review",
    responses=WORKFLOW_RESPONSES,
)
async def start_review(
    requisition_id: str, ctx: OrgContextDep, session: SessionDep, data: Optional[WorkflowActionRequest] = None
) -> RequisitionRead:
    return await _run(session, ctx, "start_review", requisition_id, _comment(data))


@router.post(
    "/{requisition_id}/mark-reviewed",
    response_model=RequisitionRead,
    summary="Mark Reviewed",
    description="Finish the review and hand the requisition to the approvers.",
    responses=WORKFLOW_RESPONSES,
)
async def mark_reviewed(
    requisition_id: str, ctx: OrgContextDep, session: SessionDep, data: Optional[WorkflowActionRequest] = None
) -> RequisitionRead:
    return await _run(session, ctx, "mark_reviewed", requisition_id, _comment(data))


@router.post(
    "/{requisition_id}/approve",
    response_model=RequisitionRead,
    summary="Approve Requisition",
    responses=WORKFLOW_RESPONSES,
)
async def approve(
    requisition_id: str, ctx: OrgContextDep, session: SessionDep, data: Optional[WorkflowActionRequest] = None
) -> RequisitionRead:
    return await _run(session, ctx, "approve", requisition_id, _comment(data))


@router.post(
    "/{requisition_id}/reject",
    response_model=RequisitionRead,
    summary="Reject Requisition",
    description="Reject a requisition under review or awaiting approval. A reason is required.",
    responses={400: {"description": "Missing rejection reason"}, **WORKFLOW_RESPONSES},
)
async def reject(requisition_id: str, data: RejectRequest, ctx: OrgContextDep, session: SessionDep) -> RequisitionRead:
    return await _run(session, ctx, "reject", requisition_id, data.reason or "")


@router.post(
    "/{requisition_id}/cancel",
    response_model=RequisitionRead,
    summary="Cancel Requisition",
    description="Withdraw a draft or pending requisition.",
    responses=WORKFLOW_RESPONSES,
)
async def cancel(
    requisition_id: str, ctx: OrgContextDep, session: SessionDep, data: Optional[WorkflowActionRequest] = None
) -> RequisitionRead:
    return await _run(session, ctx, "cancel", requisition_id, _comment(data))


# =====================================================================
# Comments and approval trail
# =====================================================================


@router.get(
    "/{requisition_id}/comments",
    response_model=List[CommentRead],
    summary="List Comments",
    description="Comments on the requisition; internal ones only for reviewers, approvers and admins.",
)
async def list_comments(requisition_id: str, ctx: OrgContextDep, session: SessionDep) -> List[CommentRead]:
    service = RequisitionService(session, ctx)
    comments = await service.list_comments(await service.get_visible(requisition_id))
    return [CommentRead.model_validate(c) for c in comments]


@router.post(
    "/{requisition_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Comment",
    responses={403: {"description": "Internal comments require a reviewer, approver or admin role"}},
)
async def add_comment(requisition_id: str, data: CommentCreate, ctx: OrgContextDep, session: SessionDep) -> CommentRead:
    comment = await RequisitionService(session, ctx).add_comment(requisition_id, data)
    await session.commit()
    return CommentRead.model_validate(comment)


@router.get(
    "/{requisition_id}/approvals",
    response_model=List[RequisitionApprovalRead],
    summary="List Approval Trail",
    description="Every workflow action taken on the requisition, oldest first.",
)
async def list_approvals(
    requisition_id: str, ctx: OrgContextDep, session: SessionDep
) -> List[RequisitionApprovalRead]:
    service = RequisitionService(session, ctx)
    approvals = await service.list_approvals(await service.get_visible(requisition_id))
    return [RequisitionApprovalRead.model_validate(a) for a in approvals]
