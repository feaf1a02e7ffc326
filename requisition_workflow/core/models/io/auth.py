"""
Authentication and signup I/O models.

Signup mirrors the public signup form, whose payload uses camelCase keys.
Required fields are validated by the signup service (400 with a message)
rather than by the schema, so they are optional here.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupOrganization(BaseModel):
    name: Optional[str] = Field(default=None, description="Organization display name")
    slug: Optional[str] = Field(default=None, description="URL slug; sanitized to [a-z0-9-]")
    email: Optional[str] = Field(default=None, description="Organization contact email")


class SignupAdmin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    email: Optional[str] = None
    password: Optional[str] = None


class SignupRequest(BaseModel):
    """Schema for creating an organization together with its owner account."""

    organization: SignupOrganization = Field(default_factory=SignupOrganization)
    admin: SignupAdmin = Field(default_factory=SignupAdmin)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "organization": {"name": "Acme Ministries", "slug": "acme", "email": "office@acme.org"},
                "admin": {"fullName": "Jane Doe", "email": "jane@acme.org", "password": "s3cure-pass"},
            }
        }
    )


class SignupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    organization_id: str = Field(alias="organizationId")
    user_id: str = Field(alias="userId")
    message: str


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserRead(BaseModel):
    """Schema for reading a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    org_id: Optional[str] = None
    is_active: bool
    is_platform_admin: bool = False
    email_notifications_enabled: bool = True
    email_confirmed: bool = Field(default=False, description="Whether the email address has been verified")
    last_login_at: Optional[datetime] = None
    created_at: datetime


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email_notifications_enabled: Optional[bool] = None


class MembershipRead(BaseModel):
    """Organization membership of the current user."""

    organization_id: str
    organization_name: str
    organization_slug: str
    role: str
    workflow_role: str
    is_primary: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserRead


class MeResponse(BaseModel):
    user: UserRead
    memberships: List[MembershipRead]


class VerifyEmailRequest(BaseModel):
    token: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    password: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str
