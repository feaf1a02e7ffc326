"""
Expense Account Endpoints.

Expense accounts belong to a project and are what requisitions are charged
to. Codes are unique within a project. Deleting an account deactivates it.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from requisition_workflow.core.database.entities import ExpenseAccount
from requisition_workflow.core.database.repositories import ExpenseAccountRepository, ProjectRepository
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.io.projects import (
    ExpenseAccountCreate,
    ExpenseAccountRead,
    ExpenseAccountUpdate,
)
from requisition_workflow.server.services.access import OrgContext
from requisition_workflow.server.services.deps import OrgContextDep, OrgManagerDep, SessionDep
from requisition_workflow.server.services.sanitize import sanitize_string

logger = get_logger(__name__)

router = APIRouter()


async def _get_account(session, ctx: OrgContext, account_id: str) -> ExpenseAccount:
    account = await ExpenseAccountRepository(session).get_in_org(ctx.org_id, account_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense account not found")
    return account


async def _ensure_code_free(session, project_id: str, code: str, account_id: Optional[str] = None) -> None:
    existing = await ExpenseAccountRepository(session).get_by_code(project_id, code)
    if existing is not None and existing.id != account_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"An expense account with code {code} already exists in this project",
        )


@router.get(
    "",
    response_model=List[ExpenseAccountRead],
    summary="List Expense Accounts",
    description="List expense accounts of the organization, optionally for one project.",
)
async def list_expense_accounts(
    ctx: OrgContextDep,
    session: SessionDep,
    project_id: Optional[str] = Query(default=None),
    active_only: bool = Query(default=True),
) -> List[ExpenseAccountRead]:
    accounts = await ExpenseAccountRepository(session).list_for_org(
        ctx.org_id, project_id=project_id, active_only=active_only
    )
    return [ExpenseAccountRead.model_validate(a) for a in accounts]


@router.post(
    "",
    response_model=ExpenseAccountRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Expense Account",
    responses={
        403: {"description": "Not an organization admin"},
        404: {"description": "Project not found"},
        409: {"description": "Code already used in the project"},
    },
)
async def create_expense_account(
    data: ExpenseAccountCreate, ctx: OrgManagerDep, session: SessionDep
) -> ExpenseAccountRead:
    project = await ProjectRepository(session).get_in_org(ctx.org_id, data.project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    code = sanitize_string(data.code, 50)
    await _ensure_code_free(session, project.id, code)
    account = await ExpenseAccountRepository(session).create(
        ExpenseAccount(
            org_id=ctx.org_id,
            project_id=project.id,
            code=code,
            name=sanitize_string(data.name, 200),
            description=data.description,
            created_by=ctx.user_id,
        )
    )
    await session.commit()
    logger.info(f"Expense account {code} created in project {project.code}")
    return ExpenseAccountRead.model_validate(account)


@router.get(
    "/{account_id}",
    response_model=ExpenseAccountRead,
    summary="Get Expense Account",
    responses={404: {"description": "Expense account not found"}},
)
async def get_expense_account(account_id: str, ctx: OrgContextDep, session: SessionDep) -> ExpenseAccountRead:
    return ExpenseAccountRead.model_validate(await _get_account(session, ctx, account_id))


@router.patch(
    "/{account_id}",
    response_model=ExpenseAccountRead,
    summary="Update Expense Account",
    responses={404: {"description": "Expense account not found"}, 409: {"description": "Code already used"}},
)
async def update_expense_account(
    account_id: str, data: ExpenseAccountUpdate, ctx: OrgManagerDep, session: SessionDep
) -> ExpenseAccountRead:
    account = await _get_account(session, ctx, account_id)
    if data.code is not None:
        code = sanitize_string(data.code, 50)
        await _ensure_code_free(session, account.project_id, code, account.id)
        account.code = code
    if data.name is not None:
        account.name = sanitize_string(data.name, 200)
    if "description" in data.model_fields_set:
        account.description = data.description
    await ExpenseAccountRepository(session).update(account)
    await session.commit()
    return ExpenseAccountRead.model_validate(account)


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate Expense Account",
    responses={404: {"description": "Expense account not found"}},
)
async def deactivate_expense_account(account_id: str, ctx: OrgManagerDep, session: SessionDep) -> None:
    account = await _get_account(session, ctx, account_id)
    account.is_active = False
    await ExpenseAccountRepository(session).update(account)
    await session.commit()


@router.post(
    "/{account_id}/activate",
    response_model=ExpenseAccountRead,
    summary="Activate Expense Account",
    responses={404: {"description": "Expense account not found"}},
)
async def activate_expense_account(account_id: str, ctx: OrgManagerDep, session: SessionDep) -> ExpenseAccountRead:
    account = await _get_account(session, ctx, account_id)
    account.is_active = True
    await ExpenseAccountRepository(session).update(account)
    await session.commit()
    return ExpenseAccountRead.model_validate(account)
