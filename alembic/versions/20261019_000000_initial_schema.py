"""Initial schema for Requisition Workflow

Revision ID: 20261019_000000
Revises: None
Create Date: 2026-10-19 00:00:00.000000

Creates every table of the service:
- Tenancy (organizations, users, memberships, organization and fiscal year settings)
- Projects, project assignments and expense accounts
- The item catalog (units of measure, categories and items)
- Requisitions, line items, comments and the approval trail
- In-app notifications and the outgoing email queue
- Billing history, platform feedback and votes, and the rate limit log

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def upgrade() -> None:
    """Create all tables."""

    # Tenancy
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("plan", sa.String(32), nullable=False),
        sa.Column("max_users", sa.Integer(), nullable=False),
        sa.Column("max_projects", sa.Integer(), nullable=False),
        sa.Column("max_requisitions_per_month", sa.Integer(), nullable=False),
        sa.Column("trial_ends_at", sa.DateTime(), nullable=True),
        sa.Column("subscription_ends_at", sa.DateTime(), nullable=True),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        sa.Column("billing_interval", sa.String(16), nullable=True),
        sa.Column("billing_email", sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)
    op.create_index("ix_organizations_status", "organizations", ["status"])
    op.create_index("ix_organizations_stripe_customer_id", "organizations", ["stripe_customer_id"])
    op.create_index("ix_organizations_stripe_subscription_id", "organizations", ["stripe_subscription_id"])
    op.create_index("ix_organizations_created_at", "organizations", ["created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("org_id", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_platform_admin", sa.Boolean(), nullable=False),
        sa.Column("email_notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_org_id", "users", ["org_id"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "organization_members",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("workflow_role", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("invited_by", sa.String(36), nullable=True),
        sa.Column("invited_at", sa.DateTime(), nullable=True),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "user_id", name="uq_organization_members_org_user"),
    )
    op.create_index("ix_organization_members_organization_id", "organization_members", ["organization_id"])
    op.create_index("ix_organization_members_user_id", "organization_members", ["user_id"])
    op.create_index("ix_organization_members_is_active", "organization_members", ["is_active"])

    op.create_table(
        "organization_settings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("organization_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_organization_settings_org_id", "organization_settings", ["org_id"], unique=True)

    op.create_table(
        "fiscal_year_settings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("fiscal_year_start_month", sa.Integer(), nullable=False),
        sa.Column("fiscal_year_start_day", sa.Integer(), nullable=False),
        sa.Column("current_fiscal_year", sa.Integer(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fiscal_year_settings_org_id", "fiscal_year_settings", ["org_id"], unique=True)

    # Projects and expense accounts
    op.create_table(
        "projects",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "code", name="uq_projects_org_code"),
    )
    op.create_index("ix_projects_org_id", "projects", ["org_id"])
    op.create_index("ix_projects_is_active", "projects", ["is_active"])

    op.create_table(
        "project_members",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("assigned_by", sa.String(36), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )
    op.create_index("ix_project_members_project_id", "project_members", ["project_id"])
    op.create_index("ix_project_members_user_id", "project_members", ["user_id"])
    op.create_index("ix_project_members_org_id", "project_members", ["org_id"])

    op.create_table(
        "expense_accounts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "code", name="uq_expense_accounts_project_code"),
    )
    op.create_index("ix_expense_accounts_org_id", "expense_accounts", ["org_id"])
    op.create_index("ix_expense_accounts_project_id", "expense_accounts", ["project_id"])
    op.create_index("ix_expense_accounts_is_active", "expense_accounts", ["is_active"])

    # Item catalog
    op.create_table(
        "uom_types",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "code", name="uq_uom_types_org_code"),
    )
    op.create_index("ix_uom_types_org_id", "uom_types", ["org_id"])

    op.create_table(
        "item_categories",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "code", name="uq_item_categories_org_code"),
        sa.UniqueConstraint("org_id", "name", name="uq_item_categories_org_name"),
    )
    op.create_index("ix_item_categories_org_id", "item_categories", ["org_id"])
    op.create_index("ix_item_categories_is_active", "item_categories", ["is_active"])

    op.create_table(
        "items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column("default_uom_id", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["item_categories.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["default_uom_id"], ["uom_types.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "code", name="uq_items_org_code"),
    )
    op.create_index("ix_items_org_id", "items", ["org_id"])
    op.create_index("ix_items_category_id", "items", ["category_id"])
    op.create_index("ix_items_is_active", "items", ["is_active"])

    # Requisitions
    op.create_table(
        "requisitions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("requisition_number", sa.String(20), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("expense_account_id", sa.String(), nullable=True),
        sa.Column("required_by", sa.Date(), nullable=True),
        sa.Column("delivery_location", sa.String(255), nullable=True),
        sa.Column("supplier_preference", sa.String(255), nullable=True),
        sa.Column("submitted_by", sa.String(36), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_by", sa.String(36), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["expense_account_id"], ["expense_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "requisition_number", name="uq_requisitions_org_number"),
    )
    op.create_index("ix_requisitions_org_id", "requisitions", ["org_id"])
    op.create_index("ix_requisitions_requisition_number", "requisitions", ["requisition_number"])
    op.create_index("ix_requisitions_project_id", "requisitions", ["project_id"])
    op.create_index("ix_requisitions_submitted_by", "requisitions", ["submitted_by"])
    op.create_index("ix_requisitions_status", "requisitions", ["status"])
    op.create_index("ix_requisitions_created_at", "requisitions", ["created_at"])

    op.create_table(
        "requisition_items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("requisition_id", sa.String(), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.String(), nullable=True),
        sa.Column("item_description", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("unit_of_measure", sa.String(32), nullable=True),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["requisition_id"], ["requisitions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_requisition_items_requisition_id", "requisition_items", ["requisition_id"])
    op.create_index("ix_requisition_items_org_id", "requisition_items", ["org_id"])
    op.create_index("ix_requisition_items_item_id", "requisition_items", ["item_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("requisition_id", sa.String(), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("comment_text", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["requisition_id"], ["requisitions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_requisition_id", "comments", ["requisition_id"])
    op.create_index("ix_comments_org_id", "comments", ["org_id"])
    op.create_index("ix_comments_created_at", "comments", ["created_at"])

    op.create_table(
        "requisition_approvals",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("requisition_id", sa.String(), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("from_status", sa.String(32), nullable=False),
        sa.Column("to_status", sa.String(32), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["requisition_id"], ["requisitions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_requisition_approvals_requisition_id", "requisition_approvals", ["requisition_id"])
    op.create_index("ix_requisition_approvals_org_id", "requisition_approvals", ["org_id"])
    op.create_index("ix_requisition_approvals_actor_id", "requisition_approvals", ["actor_id"])
    op.create_index("ix_requisition_approvals_action", "requisition_approvals", ["action"])
    op.create_index("ix_requisition_approvals_created_at", "requisition_approvals", ["created_at"])

    # Notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(255), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_org_id", "notifications", ["org_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "email_notifications",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=True),
        sa.Column("recipient_email", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_notifications_org_id", "email_notifications", ["org_id"])
    op.create_index("ix_email_notifications_status", "email_notifications", ["status"])
    op.create_index("ix_email_notifications_created_at", "email_notifications", ["created_at"])

    # Billing, feedback and rate limiting
    op.create_table(
        "billing_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("plan_from", sa.String(32), nullable=True),
        sa.Column("plan_to", sa.String(32), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=True),
        sa.Column("stripe_event_id", sa.String(255), nullable=True),
        sa.Column("stripe_invoice_id", sa.String(255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_billing_history_organization_id", "billing_history", ["organization_id"])
    op.create_index("ix_billing_history_event_type", "billing_history", ["event_type"])
    op.create_index("ix_billing_history_created_at", "billing_history", ["created_at"])

    op.create_table(
        "platform_feedback",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("org_id", sa.String(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("priority", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("upvotes", sa.Integer(), nullable=False),
        sa.Column("admin_response", sa.Text(), nullable=True),
        sa.Column("responded_by", sa.String(36), nullable=True),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_platform_feedback_org_id", "platform_feedback", ["org_id"])
    op.create_index("ix_platform_feedback_user_id", "platform_feedback", ["user_id"])
    op.create_index("ix_platform_feedback_category", "platform_feedback", ["category"])
    op.create_index("ix_platform_feedback_status", "platform_feedback", ["status"])
    op.create_index("ix_platform_feedback_created_at", "platform_feedback", ["created_at"])

    op.create_table(
        "feedback_votes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("feedback_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["feedback_id"], ["platform_feedback.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("feedback_id", "user_id", name="uq_feedback_votes_feedback_user"),
    )
    op.create_index("ix_feedback_votes_feedback_id", "feedback_votes", ["feedback_id"])
    op.create_index("ix_feedback_votes_user_id", "feedback_votes", ["user_id"])

    op.create_table(
        "rate_limit_log",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("endpoint", sa.String(64), nullable=False),
        sa.Column("identifier", sa.String(255), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False),
        sa.Column("first_attempt_at", sa.DateTime(), nullable=False),
        sa.Column("last_attempt_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rate_limit_log_endpoint", "rate_limit_log", ["endpoint"])
    op.create_index("ix_rate_limit_log_identifier", "rate_limit_log", ["identifier"])
    op.create_index("ix_rate_limit_log_last_attempt_at", "rate_limit_log", ["last_attempt_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("rate_limit_log")
    op.drop_table("feedback_votes")
    op.drop_table("platform_feedback")
    op.drop_table("billing_history")
    op.drop_table("email_notifications")
    op.drop_table("notifications")
    op.drop_table("requisition_approvals")
    op.drop_table("comments")
    op.drop_table("requisition_items")
    op.drop_table("requisitions")
    op.drop_table("items")
    op.drop_table("item_categories")
    op.drop_table("uom_types")
    op.drop_table("expense_accounts")
    op.drop_table("project_members")
    op.drop_table("projects")
    op.drop_table("fiscal_year_settings")
    op.drop_table("organization_settings")
    op.drop_table("organization_members")
    op.drop_table("users")
    op.drop_table("organizations")
