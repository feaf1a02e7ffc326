from typing import AsyncGenerator, Callable, List
from unittest.mock import patch

import pytest
from fastapi.concurrency import run_in_threadpool
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession


@pytest.fixture(name="client")
async def client_fixture(
    session: AsyncSession, email_sender, payment_gateway
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from requisition_workflow.core.database import get_session
    from requisition_workflow.server.main import app
    from requisition_workflow.server.services.billing import get_payment_gateway
    from requisition_workflow.server.services.email import get_email_sender

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("requisition_workflow.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def threadpool_calls(monkeypatch) -> List[Callable]:
    """Record the functions the password hashing call sites hand to the threadpool."""
    from requisition_workflow.server.api.v1 import auth
    from requisition_workflow.server.services import invitations, signup

    calls: List[Callable] = []

    async def recording(func, *args, **kwargs):
        calls.append(func)
        return await run_in_threadpool(func, *args, **kwargs)

    for module in (auth, invitations, signup):
        monkeypatch.setattr(module, "run_in_threadpool", recording)
    return calls
