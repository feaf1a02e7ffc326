"""
Database repository layer using SQLModel.

Each module provides type-safe data access for its corresponding entity
models. Repositories flush but never commit; the caller owns the
transaction.

Modules:
- base: BaseRepository interface, SQLModelRepository and QueryBuilder
- organizations: organizations, memberships and settings
- users: login identities
- projects: projects and project assignments
- expense_accounts: expense accounts
- catalog: item catalog, categories and units of measure
- requisitions: requisitions, items and comments
- approvals: workflow action trail
- notifications: in-app notifications and the email queue
- billing: billing history
- feedback: platform feedback and votes
- rate_limits: rate limit log
"""

from .approvals import RequisitionApprovalRepository
from .base import BaseRepository, QueryBuilder, SQLModelRepository
from .billing import BillingHistoryRepository
from .catalog import CatalogItemRepository, ItemCategoryRepository, UomTypeRepository
from .expense_accounts import ExpenseAccountRepository
from .feedback import FeedbackRepository, FeedbackVoteRepository
from .notifications import EmailNotificationRepository, NotificationRepository
from .organizations import (
    FiscalYearSettingsRepository,
    OrganizationMemberRepository,
    OrganizationRepository,
    OrganizationSettingsRepository,
)
from .projects import ProjectMemberRepository, ProjectRepository
from .rate_limits import RateLimitRepository
from .requisitions import CommentRepository, RequisitionItemRepository, RequisitionRepository
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "BillingHistoryRepository",
    "CatalogItemRepository",
    "CommentRepository",
    "EmailNotificationRepository",
    "ExpenseAccountRepository",
    "FeedbackRepository",
    "FeedbackVoteRepository",
    "FiscalYearSettingsRepository",
    "ItemCategoryRepository",
    "NotificationRepository",
    "OrganizationMemberRepository",
    "OrganizationRepository",
    "OrganizationSettingsRepository",
    "ProjectMemberRepository",
    "ProjectRepository",
    "QueryBuilder",
    "RateLimitRepository",
    "RequisitionApprovalRepository",
    "RequisitionItemRepository",
    "RequisitionRepository",
    "SQLModelRepository",
    "UomTypeRepository",
    "UserRepository",
]
