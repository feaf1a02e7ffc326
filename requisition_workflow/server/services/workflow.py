"""
Requisition Workflow.

State machine moving a requisition from draft to its outcome:

    draft -> pending -> under_review -> reviewed -> approved
                 \\           \\             \\-> rejected
                  \\           \\-> rejected
                   \\-> rejected
    draft | pending -> cancelled

The status check comes first (409), then the actor's role (403). Every
transition is recorded in ``requisition_approvals`` and notifies the
people who act next. The caller commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import Comment, Requisition, RequisitionApproval, User
from requisition_workflow.core.database.repositories import (
    CommentRepository,
    OrganizationMemberRepository,
    OrganizationSettingsRepository,
    ProjectRepository,
    RequisitionApprovalRepository,
    RequisitionItemRepository,
    RequisitionRepository,
    UserRepository,
)
from requisition_workflow.core.errors import PermissionDenied, ValidationFailed, WorkflowError
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import (
    NotificationType,
    RequisitionStatus,
    WorkflowAction,
    WorkflowRole,
)
from requisition_workflow.core.monitoring import log_requisition_transition
from requisition_workflow.server.services.access import OrgContext, has_workflow_role, is_super_admin
from requisition_workflow.server.services.email import RequisitionEmailDetails
from requisition_workflow.server.services.notifications import notify_users, requisition_link
from requisition_workflow.server.services.requisitions import RequisitionService

logger = get_logger(__name__)

S = RequisitionStatus


@dataclass(frozen=True)
class Transition:
    sources: FrozenSet[RequisitionStatus]
    target: RequisitionStatus


TRANSITIONS: Dict[WorkflowAction, Transition] = {
    WorkflowAction.submit: Transition(frozenset({S.draft}), S.pending),
    WorkflowAction.start_review: Transition(frozenset({S.pending}), S.under_review),
    WorkflowAction.mark_reviewed: Transition(frozenset({S.under_review}), S.reviewed),
    WorkflowAction.approve: Transition(frozenset({S.reviewed}), S.approved),
    WorkflowAction.reject: Transition(frozenset({S.pending, S.under_review, S.reviewed}), S.rejected),
    WorkflowAction.cancel: Transition(frozenset({S.draft, S.pending}), S.cancelled),
}


def allowed_actions(status: str) -> List[WorkflowAction]:
    """Actions whose source statuses include ``status``."""
    return [action for action, t in TRANSITIONS.items() if status in {s.value for s in t.sources}]


class WorkflowService:
    """Applies workflow actions on behalf of the caller in ``ctx``."""

    def __init__(self, session: AsyncSession, ctx: OrgContext) -> None:
        self.session = session
        self.ctx = ctx
        self.requisitions = RequisitionService(session, ctx)

    async def submit(self, requisition_id: str, comment: Optional[str] = None) -> Requisition:
        requisition = await self._load(requisition_id, WorkflowAction.submit)
        if requisition.submitted_by != self.ctx.user_id:
            raise PermissionDenied("Only the submitter can submit this requisition")
        if not await RequisitionItemRepository(self.session).list_for_requisition(requisition.id):
            raise ValidationFailed("A requisition needs at least one item before it can be submitted")

        requisition.submitted_at = utc_now()
        await self._apply(requisition, WorkflowAction.submit, comment)

        reviewers = await self._members_with_roles(WorkflowRole.reviewer, WorkflowRole.super_admin)
        await self._notify(
            requisition,
            reviewers,
            NotificationType.requisition_submitted,
            "New requisition submitted",
            f"Requisition {requisition.requisition_number} \"{requisition.title}\" is waiting for review.",
        )
        return requisition

    async def start_review(self, requisition_id: str, comment: Optional[str] = None) -> Requisition:
        requisition = await self._load(requisition_id, WorkflowAction.start_review)
        self._require_role(WorkflowAction.start_review, WorkflowRole.reviewer)

        await self._add_comment(requisition, "Started review", internal=True)
        await self._apply(requisition, WorkflowAction.start_review, comment)
        return requisition

    async def mark_reviewed(self, requisition_id: str, comment: Optional[str] = None) -> Requisition:
        requisition = await self._load(requisition_id, WorkflowAction.mark_reviewed)
        self._require_role(WorkflowAction.mark_reviewed, WorkflowRole.reviewer)

        requisition.reviewed_by = self.ctx.user_id
        requisition.reviewed_at = utc_now()
        if comment:
            await self._add_comment(requisition, f"Reviewed: {comment}", internal=False)
        else:
            await self._add_comment(requisition, "Marked as reviewed", internal=True)
        await self._apply(requisition, WorkflowAction.mark_reviewed, comment)

        submitter = await self._user(requisition.submitted_by)
        await self._notify(
            requisition,
            [submitter] if submitter else [],
            NotificationType.requisition_reviewed,
            "Requisition reviewed",
            f"Your requisition {requisition.requisition_number} has been reviewed and sent for approval.",
        )
        approvers = [
            user
            for user in await self._members_with_roles(WorkflowRole.approver, WorkflowRole.super_admin)
            if user.id != requisition.submitted_by
        ]
        await self._notify(
            requisition,
            approvers,
            NotificationType.requisition_pending_approval,
            "Requisition pending approval",
            f"Requisition {requisition.requisition_number} \"{requisition.title}\" is waiting for approval.",
        )
        return requisition

    async def approve(self, requisition_id: str, comment: Optional[str] = None) -> Requisition:
        requisition = await self._load(requisition_id, WorkflowAction.approve)
        self._require_role(WorkflowAction.approve, WorkflowRole.approver)

        requisition.approved_by = self.ctx.user_id
        requisition.approved_at = utc_now()
        if comment:
            await self._add_comment(requisition, f"Approved: {comment}", internal=False)
        await self._apply(requisition, WorkflowAction.approve, comment)

        await self._notify(
            requisition,
            await self._submitter_and_reviewer(requisition, requisition.reviewed_by),
            NotificationType.requisition_approved,
            "Requisition approved",
            f"Requisition {requisition.requisition_number} \"{requisition.title}\" has been approved.",
        )
        return requisition

    async def reject(self, requisition_id: str, reason: str) -> Requisition:
        requisition = await self._load(requisition_id, WorkflowAction.reject)
        if requisition.status == S.reviewed.value:
            self._require_role(WorkflowAction.reject, WorkflowRole.approver)
        else:
            self._require_role(WorkflowAction.reject, WorkflowRole.reviewer)
        if not reason or not reason.strip():
            raise ValidationFailed("A rejection reason is required")

        previous_reviewer = requisition.reviewed_by
        requisition.rejection_reason = reason
        requisition.reviewed_by = self.ctx.user_id
        requisition.reviewed_at = utc_now()
        await self._add_comment(requisition, f"Rejected: {reason}", internal=False)
        await self._apply(requisition, WorkflowAction.reject, reason)

        await self._notify(
            requisition,
            await self._submitter_and_reviewer(requisition, previous_reviewer),
            NotificationType.requisition_rejected,
            "Requisition rejected",
            f"Requisition {requisition.requisition_number} was rejected: {reason}",
        )
        return requisition

    async def cancel(self, requisition_id: str, comment: Optional[str] = None) -> Requisition:
        requisition = await self._load(requisition_id, WorkflowAction.cancel)
        if requisition.submitted_by != self.ctx.user_id and not is_super_admin(self.ctx):
            raise PermissionDenied("Only the submitter can cancel this requisition")
        await self._apply(requisition, WorkflowAction.cancel, comment)
        return requisition

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    async def _load(self, requisition_id: str, action: WorkflowAction) -> Requisition:
        requisition = await self.requisitions.get_visible(requisition_id)
        if requisition.status not in {s.value for s in TRANSITIONS[action].sources}:
            raise WorkflowError(f"Cannot {action.value} a requisition in status {requisition.status}")
        return requisition

    def _require_role(self, action: WorkflowAction, role: WorkflowRole) -> None:
        if not has_workflow_role(self.ctx, role):
            raise PermissionDenied(
                f"Only users with the {role.value} workflow role can {action.value.replace('_', ' ')} requisitions"
            )

    async def _apply(self, requisition: Requisition, action: WorkflowAction, note: Optional[str]) -> None:
        from_status = requisition.status
        to_status = TRANSITIONS[action].target.value
        requisition.status = to_status
        await RequisitionRepository(self.session).update(requisition)
        await RequisitionApprovalRepository(self.session).create(
            RequisitionApproval(
                requisition_id=requisition.id,
                org_id=requisition.org_id,
                actor_id=self.ctx.user_id,
                action=action.value,
                from_status=from_status,
                to_status=to_status,
                note=note,
            )
        )
        log_requisition_transition(
            requisition_id=requisition.id,
            org_id=requisition.org_id,
            action=action.value,
            from_status=from_status,
            to_status=to_status,
            actor_id=self.ctx.user_id,
        )
        logger.info(
            f"Requisition {requisition.requisition_number}: {from_status} -> {to_status} by {self.ctx.user_id}"
        )

    async def _add_comment(self, requisition: Requisition, text: str, *, internal: bool) -> None:
        await CommentRepository(self.session).create(
            Comment(
                requisition_id=requisition.id,
                org_id=requisition.org_id,
                user_id=self.ctx.user_id,
                comment_text=text,
                is_internal=internal,
            )
        )

    async def _user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        return await UserRepository(self.session).get_by_id(user_id)

    async def _members_with_roles(self, *roles: WorkflowRole) -> List[User]:
        return await OrganizationMemberRepository(self.session).list_users_with_workflow_roles(
            self.ctx.org_id, [role.value for role in roles]
        )

    async def _submitter_and_reviewer(self, requisition: Requisition, reviewer_id: Optional[str]) -> List[User]:
        users = [await self._user(requisition.submitted_by)]
        if reviewer_id and reviewer_id != self.ctx.user_id:
            users.append(await self._user(reviewer_id))
        return [user for user in users if user is not None]

    async def _email_details(self, requisition: Requisition) -> RequisitionEmailDetails:
        submitter = await self._user(requisition.submitted_by)
        project = await ProjectRepository(self.session).get_by_id(requisition.project_id)
        org_settings = await OrganizationSettingsRepository(self.session).get_for_org(requisition.org_id)
        return RequisitionEmailDetails(
            requisition_number=requisition.requisition_number,
            title=requisition.title,
            total_amount=requisition.total_amount,
            organization_name=self.ctx.organization.name,
            currency=org_settings.currency if org_settings else "USD",
            submitter_name=submitter.full_name if submitter else None,
            project_name=project.name if project else None,
            actor_name=self.ctx.user.full_name,
            rejection_reason=requisition.rejection_reason,
        )

    async def _notify(
        self,
        requisition: Requisition,
        recipients: List[User],
        notification_type: NotificationType,
        title: str,
        message: str,
    ) -> None:
        await notify_users(
            self.session,
            org_id=requisition.org_id,
            recipients=[user for user in recipients if user.id != self.ctx.user_id],
            notification_type=notification_type,
            title=title,
            message=message,
            link=requisition_link(requisition.id),
            email_details=await self._email_details(requisition),
        )
