"""
Maintenance job I/O models.

Cleanup statistics keep the camelCase keys expected by the scheduler.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CleanupStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organizations_deleted: int = Field(default=0, alias="organizationsDeleted")
    users_deleted: int = Field(default=0, alias="usersDeleted")
    auth_users_deleted: int = Field(default=0, alias="authUsersDeleted")
    errors: List[str] = Field(default_factory=list)


class CleanupResponse(BaseModel):
    success: bool = True
    stats: CleanupStats


class EmailQueueResult(BaseModel):
    processed: int = 0
    sent: int = 0
    failed: int = 0


class RateLimitCleanupResult(BaseModel):
    deleted: int
