"""
Request Dependencies.

Annotated aliases used by the API endpoints.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from requisition_workflow.core.database import get_session
from requisition_workflow.core.database.entities import User
from requisition_workflow.server.services.access import (
    OrgContext,
    get_current_user,
    get_org_context,
    require_org_manager,
    require_platform_admin,
)
from requisition_workflow.server.services.billing import PaymentGateway, get_payment_gateway
from requisition_workflow.server.services.email import EmailSender, get_email_sender

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
PlatformAdminDep = Annotated[User, Depends(require_platform_admin)]
OrgContextDep = Annotated[OrgContext, Depends(get_org_context)]
OrgManagerDep = Annotated[OrgContext, Depends(require_org_manager)]
EmailSenderDep = Annotated[EmailSender, Depends(get_email_sender)]
PaymentGatewayDep = Annotated[PaymentGateway, Depends(get_payment_gateway)]
