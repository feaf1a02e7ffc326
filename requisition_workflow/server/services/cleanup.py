"""
Orphaned Signup Cleanup.

Removes signups abandoned before email verification. Runs from the
maintenance endpoint, usually once a day. Each account is handled in its
own transaction; a failure is recorded in the stats and the job moves on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.repositories import (
    OrganizationMemberRepository,
    OrganizationRepository,
    UserRepository,
)
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.models.domain.enums import MemberRole
from requisition_workflow.core.models.io.maintenance import CleanupStats

logger = get_logger(__name__)


@dataclass
class _Removed:
    organizations: int = 0
    users: int = 0
    auth_users: int = 0


async def _cleanup_user(session: AsyncSession, user_id: str) -> _Removed:
    members = OrganizationMemberRepository(session)
    users = UserRepository(session)
    removed = _Removed()

    user = await users.get_by_id(user_id)
    if user is None:
        return removed

    memberships = await members.list_for_user(user.id, active_only=False)
    owned = next((org for member, org in memberships if member.role == MemberRole.owner.value), None)

    if owned is not None:
        if await members.count_active(owned.id, exclude_user_id=user.id) > 0:
            logger.info(f"Organization {owned.id} has other members, keeping it and its owner {user.email}")
            return removed
        logger.info(f"Deleting orphaned organization {owned.id} of unverified user {user.email}")
        await OrganizationRepository(session).delete_with_tenant_data(owned)
        await users.delete_account(user)
        removed.organizations = removed.users = 1
        return removed

    if any(member.is_active for member, _ in memberships):
        return removed

    never_profiled = user.org_id is None and not memberships
    await users.delete_account(user)
    if never_profiled:
        logger.info(f"Deleting account {user.email} that never got a profile")
        removed.auth_users = 1
    else:
        logger.info(f"Deleting unverified user {user.email} without an active membership")
        removed.users = 1
    return removed


async def _cleanup_organization(session: AsyncSession, org_id: str) -> _Removed:
    organizations = OrganizationRepository(session)
    organization = await organizations.get_by_id(org_id)
    if organization is None:
        return _Removed()
    await organizations.delete_with_tenant_data(organization)
    return _Removed(organizations=1)


def _apply(stats: CleanupStats, removed: _Removed) -> None:
    stats.organizations_deleted += removed.organizations
    stats.users_deleted += removed.users
    stats.auth_users_deleted += removed.auth_users


async def cleanup_orphaned_signups(
    session: AsyncSession, retention_days: int, now: Optional[datetime] = None
) -> CleanupStats:
    """
    Delete unverified signups older than ``retention_days`` and organizations left without members.

    Candidates are collected as ids up front and re-read inside their own
    transaction, so a rollback after one failure leaves the rest of the
    batch untouched. Counts only include committed deletions.

    Returns:
        Counts of deleted organizations and users, plus per-item error messages
    """
    cutoff = (now or utc_now()) - timedelta(days=retention_days)
    stats = CleanupStats()
    logger.info(f"Starting cleanup for orphaned signups created before {cutoff.isoformat()}")

    user_ids = [user.id for user in await UserRepository(session).list_unverified_before(cutoff)]
    for user_id in user_ids:
        try:
            removed = await _cleanup_user(session, user_id)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Error processing user {user_id}: {e}")
            stats.errors.append(f"Error processing user {user_id}: {e}")
            continue
        _apply(stats, removed)

    org_ids = [org.id for org in await OrganizationRepository(session).list_without_members_before(cutoff)]
    for org_id in org_ids:
        try:
            removed = await _cleanup_organization(session, org_id)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Failed to delete organization {org_id}: {e}")
            stats.errors.append(f"Failed to delete org {org_id}: {e}")
            continue
        _apply(stats, removed)

    logger.info(
        f"Cleanup finished: {stats.organizations_deleted} organizations, {stats.users_deleted} users, "
        f"{stats.auth_users_deleted} accounts deleted, {len(stats.errors)} errors"
    )
    return stats
