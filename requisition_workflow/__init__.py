"""
Requisition Workflow.

Backend service for multi-tenant procurement: organizations sign up, invite
their people, and move purchase requisitions through a draft, review and
approval workflow. Billing runs through Stripe and transactional email
through Resend.

Package layout:

- core: logging, monitoring, security primitives, domain enums, I/O schemas
  and the database layer (entities and repositories).
- server: the FastAPI application, its configuration, routers and the
  services that hold the business rules (tenancy predicates, signup,
  invitations, the requisition state machine, billing, email and
  maintenance jobs).
"""

__version__ = "0.1.0"
