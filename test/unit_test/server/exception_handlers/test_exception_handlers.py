"""
Unit tests for the exception handlers.

Tests verify that domain errors map to their HTTP status and detail shape,
and that unexpected exceptions are logged and answered with a 500 carrying
an error id.
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from requisition_workflow.core.errors import (
    Conflict,
    DomainError,
    NotFound,
    PermissionDenied,
    PlanLimitExceeded,
    ValidationFailed,
    WorkflowError,
)
from requisition_workflow.server.exception_handlers import setup_exception_handlers

MODULE = "requisition_workflow.server.exception_handlers.global_handler"


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/raise/{kind}")
    async def raise_error(kind: str):
        errors = {
            "validation": ValidationFailed("Title is required"),
            "forbidden": PermissionDenied("Only approvers can approve"),
            "missing": NotFound("Requisition not found"),
            "conflict": Conflict("Project code already exists"),
            "workflow": WorkflowError("Cannot approve a draft requisition"),
            "limit": PlanLimitExceeded("Monthly requisition limit reached"),
            "runtime": RuntimeError("database exploded"),
        }
        raise errors[kind]

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestDomainExceptionHandler:
    @pytest.mark.parametrize(
        "kind, status_code, detail",
        [
            ("validation", 400, "Title is required"),
            ("forbidden", 403, "Only approvers can approve"),
            ("missing", 404, "Requisition not found"),
            ("conflict", 409, "Project code already exists"),
            ("workflow", 409, "Cannot approve a draft requisition"),
        ],
    )
    def test_status_and_message(self, client: TestClient, kind, status_code, detail):
        response = client.get(f"/raise/{kind}")

        assert response.status_code == status_code
        assert response.json() == {"detail": detail}

    def test_plan_limit_carries_code(self, client: TestClient):
        response = client.get("/raise/limit")

        assert response.status_code == 403
        assert response.json() == {
            "detail": {"code": "PLAN_LIMIT_REACHED", "message": "Monthly requisition limit reached"}
        }


class TestDomainError:
    def test_plain_detail_without_code(self):
        assert NotFound("gone").to_detail() == "gone"

    def test_explicit_code_overrides_class_default(self):
        error = PermissionDenied("nope", code="EMAIL_NOT_VERIFIED")

        assert error.to_detail() == {"code": "EMAIL_NOT_VERIFIED", "message": "nope"}
        assert PermissionDenied.code is None

    def test_base_error_is_bad_request(self):
        assert DomainError("x").status_code == 400


class TestGlobalExceptionHandler:
    def test_unhandled_exception_returns_500(self, client: TestClient):
        response = client.get("/raise/runtime")

        assert response.status_code == 500
        body = response.json()
        assert body["detail"] == "Internal server error"
        assert body["error_type"] == "RuntimeError"
        assert isinstance(body["error_id"], int)

    def test_unhandled_exception_is_logged(self, client: TestClient):
        with patch(f"{MODULE}.logger") as mock_logger, patch(f"{MODULE}.log_error") as mock_log_error:
            client.get("/raise/runtime?page=2")

        mock_logger.error.assert_called_once()
        extra = mock_logger.error.call_args.kwargs["extra"]
        assert extra["path"] == "/raise/runtime"
        assert extra["query_params"] == {"page": "2"}
        mock_log_error.assert_called_once()
        assert mock_log_error.call_args.kwargs["error_type"] == "RuntimeError"

    def test_domain_errors_are_not_logged_as_errors(self, client: TestClient):
        with patch(f"{MODULE}.logger") as mock_logger:
            client.get("/raise/missing")

        mock_logger.error.assert_not_called()
        mock_logger.info.assert_called_once()
