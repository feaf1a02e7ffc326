"""
Rate limit log entity model.

One row per (endpoint, identifier) window; the identifier is a client IP
or an email address depending on the endpoint.
"""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field

from ..base import Base, new_id, utc_now


class RateLimitLog(Base, table=True):
    """
    Table: rate_limit_log
    """

    __tablename__ = "rate_limit_log"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    endpoint: str = Field(max_length=64, index=True)
    identifier: str = Field(max_length=255, index=True)
    attempt_count: int = Field(default=1)
    first_attempt_at: datetime = Field(default_factory=utc_now)
    last_attempt_at: datetime = Field(default_factory=utc_now, index=True)
