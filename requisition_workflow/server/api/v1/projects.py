"""
Project Endpoints.

Projects group requisitions and carry an optional budget. Any member of the
organization can read them; organization managers create, edit, deactivate
and staff them. Deactivation is a soft delete.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from requisition_workflow.core.database.entities import Project, ProjectMember
from requisition_workflow.core.database.repositories import (
    OrganizationMemberRepository,
    ProjectMemberRepository,
    ProjectRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import ProjectRole, RequisitionStatus
from requisition_workflow.core.models.io.projects import (
    ProjectBudget,
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)
from requisition_workflow.server.services.access import OrgContext
from requisition_workflow.server.services.deps import OrgContextDep, OrgManagerDep, SessionDep
from requisition_workflow.server.services.plans import LimitKind, ensure_within_limit
from requisition_workflow.server.services.sanitize import sanitize_string

logger = get_logger(__name__)

router = APIRouter()

COMMITTED_STATUSES = (
    RequisitionStatus.pending.value,
    RequisitionStatus.under_review.value,
    RequisitionStatus.reviewed.value,
)
SPENT_STATUSES = (
    RequisitionStatus.approved.value,
    RequisitionStatus.partially_received.value,
    RequisitionStatus.completed.value,
)


async def _get_project(session, ctx: OrgContext, project_id: str) -> Project:
    project = await ProjectRepository(session).get_in_org(ctx.org_id, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


async def _ensure_code_free(session, ctx: OrgContext, code: str, project_id: Optional[str] = None) -> None:
    existing = await ProjectRepository(session).get_by_code(ctx.org_id, code)
    if existing is not None and existing.id != project_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=f"A project with code {code} already exists"
        )


@router.get(
    "",
    response_model=List[ProjectRead],
    summary="List Projects",
    description="List the projects of the current organization, ordered by code.",
)
async def list_projects(
    ctx: OrgContextDep,
    session: SessionDep,
    active_only: bool = Query(default=True, description="Hide deactivated projects"),
) -> List[ProjectRead]:
    projects = await ProjectRepository(session).list_for_org(ctx.org_id, active_only=active_only)
    return [ProjectRead.model_validate(project) for project in projects]


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Project",
    description="Create a project. Requires organization admin access and room in the plan's project limit.",
    responses={
        403: {"description": "Not an organization admin, or the plan's project limit is reached"},
        409: {"description": "Project code already used in this organization"},
    },
)
async def create_project(data: ProjectCreate, ctx: OrgManagerDep, session: SessionDep) -> ProjectRead:
    """
    Create a project.

    The creator is assigned to the new project as its manager.
    """
    code = sanitize_string(data.code, 50)
    await _ensure_code_free(session, ctx, code)
    await ensure_within_limit(session, ctx.organization, LimitKind.projects)

    project = await ProjectRepository(session).create(
        Project(
            org_id=ctx.org_id,
            code=code,
            name=sanitize_string(data.name, 200),
            description=data.description,
            start_date=data.start_date,
            end_date=data.end_date,
            budget=data.budget,
            created_by=ctx.user_id,
        )
    )
    await ProjectMemberRepository(session).create(
        ProjectMember(
            project_id=project.id,
            user_id=ctx.user_id,
            org_id=ctx.org_id,
            role=ProjectRole.manager.value,
            assigned_by=ctx.user_id,
        )
    )
    await session.commit()
    logger.info(f"Project {project.code} created in org {ctx.org_id} by {ctx.user_id}")
    return ProjectRead.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get Project",
    responses={404: {"description": "Project not found"}},
)
async def get_project(project_id: str, ctx: OrgContextDep, session: SessionDep) -> ProjectRead:
    return ProjectRead.model_validate(await _get_project(session, ctx, project_id))


@router.patch(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Update Project",
    description="Update a project's fields. Requires organization admin access.",
    responses={404: {"description": "Project not found"}, 409: {"description": "Project code already used"}},
)
async def update_project(project_id: str, data: ProjectUpdate, ctx: OrgManagerDep, session: SessionDep) -> ProjectRead:
    project = await _get_project(session, ctx, project_id)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("code"):
        changes["code"] = sanitize_string(changes["code"], 50)
        await _ensure_code_free(session, ctx, changes["code"], project.id)
    if changes.get("name"):
        changes["name"] = sanitize_string(changes["name"], 200)
    for key, value in changes.items():
        if key in ("code", "name") and value is None:
            continue
        setattr(project, key, value)

    await ProjectRepository(session).update(project)
    await session.commit()
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate Project",
    description="Soft-delete a project; its requisitions keep their reference. Requires organization admin access.",
    responses={404: {"description": "Project not found"}},
)
async def deactivate_project(project_id: str, ctx: OrgManagerDep, session: SessionDep) -> None:
    project = await _get_project(session, ctx, project_id)
    project.is_active = False
    await ProjectRepository(session).update(project)
    await session.commit()
    logger.info(f"Project {project.code} deactivated in org {ctx.org_id}")


@router.post(
    "/{project_id}/activate",
    response_model=ProjectRead,
    summary="Activate Project",
    description="Re-activate a deactivated project. Counts against the plan's project limit.",
    responses={403: {"description": "Plan project limit reached"}, 404: {"description": "Project not found"}},
)
async def activate_project(project_id: str, ctx: OrgManagerDep, session: SessionDep) -> ProjectRead:
    project = await _get_project(session, ctx, project_id)
    if not project.is_active:
        await ensure_within_limit(session, ctx.organization, LimitKind.projects)
        project.is_active = True
        await ProjectRepository(session).update(project)
        await session.commit()
    return ProjectRead.model_validate(project)


@router.get(
    "/{project_id}/members",
    response_model=List[ProjectMemberRead],
    summary="List Project Members",
    responses={404: {"description": "Project not found"}},
)
async def list_project_members(project_id: str, ctx: OrgContextDep, session: SessionDep) -> List[ProjectMemberRead]:
    await _get_project(session, ctx, project_id)
    rows = await ProjectMemberRepository(session).list_with_users(project_id)
    return [
        ProjectMemberRead(
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=assignment.role,
            is_active=assignment.is_active,
            assigned_at=assignment.assigned_at,
        )
        for assignment, user in rows
    ]


@router.post(
    "/{project_id}/members",
    response_model=ProjectMemberRead,
    summary="Assign Project Member",
    description="Assign a member of the organization to the project, or change their project role.",
    responses={
        400: {"description": "The user is not an active member of the organization"},
        404: {"description": "Project not found"},
    },
)
async def assign_project_member(
    project_id: str, data: ProjectMemberCreate, ctx: OrgManagerDep, session: SessionDep
) -> ProjectMemberRead:
    """
    Assign a project member.

    An existing assignment is updated and re-activated.
    """
    await _get_project(session, ctx, project_id)
    rows = await OrganizationMemberRepository(session).list_with_users(ctx.org_id)
    user = next((u for m, u in rows if u.id == data.user_id and m.is_active), None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="User is not an active member of this organization"
        )

    assignments = ProjectMemberRepository(session)
    assignment = await assignments.get_assignment(project_id, data.user_id)
    if assignment is None:
        assignment = await assignments.create(
            ProjectMember(
                project_id=project_id,
                user_id=data.user_id,
                org_id=ctx.org_id,
                role=data.role.value,
                assigned_by=ctx.user_id,
            )
        )
    else:
        assignment.role = data.role.value
        assignment.is_active = True
        assignment.assigned_by = ctx.user_id
        await assignments.update(assignment)
    await session.commit()

    return ProjectMemberRead(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=assignment.role,
        is_active=assignment.is_active,
        assigned_at=assignment.assigned_at,
    )


@router.delete(
    "/{project_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Project Member",
    responses={404: {"description": "Project or assignment not found"}},
)
async def remove_project_member(project_id: str, user_id: str, ctx: OrgManagerDep, session: SessionDep) -> None:
    await _get_project(session, ctx, project_id)
    assignments = ProjectMemberRepository(session)
    assignment = await assignments.get_assignment(project_id, user_id)
    if assignment is None or not assignment.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project member not found")
    assignment.is_active = False
    await assignments.update(assignment)
    await session.commit()


@router.get(
    "/{project_id}/budget",
    response_model=ProjectBudget,
    summary="Get Project Budget",
    description="Budget, committed and spent amounts of the project.",
    responses={404: {"description": "Project not found"}},
)
async def get_project_budget(project_id: str, ctx: OrgContextDep, session: SessionDep) -> ProjectBudget:
    """
    Get a project's budget.

    ``committed`` sums requisitions still moving through review and approval,
    ``spent`` sums approved and fulfilled ones. ``remaining`` is null when the
    project has no budget.
    """
    project = await _get_project(session, ctx, project_id)
    repo = ProjectRepository(session)
    committed = await repo.sum_requisitions(project.id, COMMITTED_STATUSES)
    spent = await repo.sum_requisitions(project.id, SPENT_STATUSES)
    remaining = project.budget - spent if project.budget is not None else None
    return ProjectBudget(project_id=project.id, budget=project.budget, committed=committed, spent=spent, remaining=remaining)
