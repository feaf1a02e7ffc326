"""
Invitation I/O models.

Payloads use the camelCase keys of the web client. Required fields are
checked by the invitation service so that a missing field yields a 400
with a readable message.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InviteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    full_name: Optional[str] = Field(default=None, alias="fullName")
    role: Optional[str] = Field(default=None, description="Workflow role granted to the invited user")
    project_assignments: List[str] = Field(
        default_factory=list,
        alias="projectAssignments",
        description="Project ids the user is assigned to as submitter",
    )


class InvitedUser(BaseModel):
    id: str
    email: str
    full_name: str
    role: str


class InviteResponse(BaseModel):
    success: bool = True
    user: InvitedUser
    message: str


class ResendInvitationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    email: Optional[str] = None


class ResendInvitationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user: InvitedUser
    message: str
    email_id: Optional[str] = Field(default=None, alias="emailId")
