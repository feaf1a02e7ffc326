from datetime import timedelta

import pytest
from starlette.requests import Request

from requisition_workflow.core.database import utc_now
from requisition_workflow.core.database.entities import RateLimitLog
from requisition_workflow.core.database.repositories import RateLimitRepository
from requisition_workflow.server.services.rate_limit import (
    check_rate_limit,
    cleanup_rate_limits,
    get_client_ip,
    reset_rate_limit,
)


def make_request(headers: dict) -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        }
    )


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, "203.0.113.7"),
        ({"X-Forwarded-For": " , 10.0.0.1", "X-Real-IP": "198.51.100.4"}, "198.51.100.4"),
        ({"X-Real-IP": "198.51.100.4"}, "198.51.100.4"),
        ({"CF-Connecting-IP": "192.0.2.9"}, "192.0.2.9"),
        ({}, "unknown"),
    ],
)
def test_get_client_ip(headers, expected):
    assert get_client_ip(make_request(headers)) == expected


@pytest.mark.asyncio
class TestCheckRateLimit:
    async def test_counts_down_then_blocks(self, session):
        results = [await check_rate_limit(session, "signup", "203.0.113.7", 3, 3600) for _ in range(4)]

        assert [(r.allowed, r.remaining) for r in results] == [(True, 2), (True, 1), (True, 0), (False, 0)]
        assert 3590 <= results[-1].retry_after <= 3600

    async def test_identifiers_are_independent(self, session):
        await check_rate_limit(session, "signup", "203.0.113.7", 1, 3600)

        other_ip = await check_rate_limit(session, "signup", "198.51.100.4", 1, 3600)
        other_endpoint = await check_rate_limit(session, "login", "203.0.113.7", 1, 3600)

        assert other_ip.allowed and other_endpoint.allowed

    async def test_stale_window_starts_fresh(self, session):
        old = utc_now() - timedelta(hours=2)
        session.add(
            RateLimitLog(
                endpoint="signup", identifier="203.0.113.7", attempt_count=5, first_attempt_at=old, last_attempt_at=old
            )
        )
        await session.flush()

        result = await check_rate_limit(session, "signup", "203.0.113.7", 3, 3600)

        assert (result.allowed, result.remaining) == (True, 2)

    async def test_reset_clears_the_window(self, session):
        for _ in range(2):
            await check_rate_limit(session, "login", "pastor@grace.org", 2, 900)

        await reset_rate_limit(session, "login", "pastor@grace.org")
        result = await check_rate_limit(session, "login", "pastor@grace.org", 2, 900)

        assert (result.allowed, result.remaining) == (True, 1)


@pytest.mark.asyncio
async def test_cleanup_rate_limits_keeps_recent(session):
    stale = utc_now() - timedelta(days=2)
    session.add_all(
        [
            RateLimitLog(endpoint="signup", identifier="old", first_attempt_at=stale, last_attempt_at=stale),
            RateLimitLog(endpoint="signup", identifier="new"),
        ]
    )
    await session.flush()

    assert await cleanup_rate_limits(session) == 1
    assert [log.identifier for log in await RateLimitRepository(session).list()] == ["new"]
