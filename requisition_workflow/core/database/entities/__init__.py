"""
Database entity models.

This package contains all database entity models organized by business
domain. Importing it registers every table on the shared metadata.

Modules:
- organizations: tenants, memberships, settings and fiscal year settings
- users: login identities
- projects: projects and project assignments
- expense_accounts: per-project expense accounts
- catalog: item catalog with categories and units of measure
- requisitions: requisitions, line items and comments
- approvals: requisition workflow audit trail
- notifications: in-app notifications and the outgoing email queue
- billing: billing history
- feedback: platform feedback and votes
- rate_limits: rate limit log
"""

from .approvals import RequisitionApproval
from .billing import BillingHistory
from .catalog import CatalogItem, ItemCategory, UomType
from .expense_accounts import ExpenseAccount
from .feedback import FeedbackVote, PlatformFeedback
from .notifications import EmailNotification, Notification
from .organizations import (
    FiscalYearSettings,
    Organization,
    OrganizationMember,
    OrganizationSettings,
)
from .projects import Project, ProjectMember
from .rate_limits import RateLimitLog
from .requisitions import Comment, Requisition, RequisitionItem
from .users import User

__all__ = [
    "BillingHistory",
    "CatalogItem",
    "Comment",
    "EmailNotification",
    "ExpenseAccount",
    "FeedbackVote",
    "FiscalYearSettings",
    "ItemCategory",
    "Notification",
    "Organization",
    "OrganizationMember",
    "OrganizationSettings",
    "PlatformFeedback",
    "Project",
    "ProjectMember",
    "RateLimitLog",
    "Requisition",
    "RequisitionApproval",
    "RequisitionItem",
    "UomType",
    "User",
]
