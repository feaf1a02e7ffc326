from .enums import (
    BillingEventType,
    BillingInterval,
    EmailStatus,
    FeedbackCategory,
    FeedbackPriority,
    FeedbackStatus,
    MemberRole,
    NotificationType,
    OrganizationStatus,
    Plan,
    ProjectRole,
    RequisitionStatus,
    RequisitionType,
    WorkflowAction,
    WorkflowRole,
)

__all__ = [
    "BillingEventType",
    "BillingInterval",
    "EmailStatus",
    "FeedbackCategory",
    "FeedbackPriority",
    "FeedbackStatus",
    "MemberRole",
    "NotificationType",
    "OrganizationStatus",
    "Plan",
    "ProjectRole",
    "RequisitionStatus",
    "RequisitionType",
    "WorkflowAction",
    "WorkflowRole",
]
