"""Domain enums for requisition workflow models."""

from __future__ import annotations

from enum import Enum


class OrganizationStatus(str, Enum):
    """Lifecycle status of a tenant organization."""

    active = "active"
    trial = "trial"
    suspended = "suspended"
    cancelled = "cancelled"


class Plan(str, Enum):
    """Subscription plan tiers."""

    free = "free"
    starter = "starter"
    professional = "professional"
    enterprise = "enterprise"


class BillingInterval(str, Enum):
    monthly = "monthly"
    yearly = "yearly"


class MemberRole(str, Enum):
    """
    Administrative role of a user inside an organization.

    Independent from the workflow role: an ``admin`` manages people and
    projects, while the workflow role decides who reviews and approves.
    """

    owner = "owner"
    admin = "admin"
    member = "member"


class WorkflowRole(str, Enum):
    """
    Role a user plays in the requisition approval workflow.

    ``super_admin`` passes every workflow check within its organization.
    """

    submitter = "submitter"
    reviewer = "reviewer"
    approver = "approver"
    store_manager = "store_manager"
    super_admin = "super_admin"


class ProjectRole(str, Enum):
    submitter = "submitter"
    reviewer = "reviewer"
    approver = "approver"
    manager = "manager"


class RequisitionType(str, Enum):
    purchase = "purchase"
    expense = "expense"
    petty_cash = "petty_cash"


class RequisitionStatus(str, Enum):
    """Lifecycle status of a requisition."""

    draft = "draft"
    pending = "pending"  # Submitted, waiting for a reviewer.
    under_review = "under_review"
    reviewed = "reviewed"  # Reviewed, waiting for an approver.
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"
    partially_received = "partially_received"
    completed = "completed"


class WorkflowAction(str, Enum):
    """Actions that move a requisition between statuses."""

    submit = "submit"
    start_review = "start_review"
    mark_reviewed = "mark_reviewed"
    approve = "approve"
    reject = "reject"
    cancel = "cancel"


class NotificationType(str, Enum):
    requisition_submitted = "requisition_submitted"
    requisition_reviewed = "requisition_reviewed"
    requisition_pending_approval = "requisition_pending_approval"
    requisition_approved = "requisition_approved"
    requisition_rejected = "requisition_rejected"


class EmailStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class BillingEventType(str, Enum):
    subscription_created = "subscription_created"
    plan_changed = "plan_changed"
    cancelled = "cancelled"
    payment_succeeded = "payment_succeeded"
    payment_failed = "payment_failed"


class FeedbackCategory(str, Enum):
    feature_request = "feature_request"
    bug_report = "bug_report"
    improvement = "improvement"
    question = "question"
    other = "other"


class FeedbackPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class FeedbackStatus(str, Enum):
    open = "open"
    in_review = "in_review"
    planned = "planned"
    in_progress = "in_progress"
    completed = "completed"
    declined = "declined"
