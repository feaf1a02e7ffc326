"""
Exception Handlers for FastAPI Application.

Domain errors raised by the services become JSON responses with their
status code and a ``detail`` that is either a message or a
``{code, message}`` object. Anything else is caught by the global handler,
which logs the full context and returns a 500 with an error id.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from requisition_workflow.core.errors import DomainError
from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.monitoring import log_error

logger = get_logger(__name__)


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Map a business-rule violation to its HTTP status.

    Args:
        request: The HTTP request that caused the exception
        exc: The domain error that was raised

    Returns:
        JSONResponse with ``{"detail": ...}``
    """
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} ({exc.status_code}) in {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(
        error_type=type(exc).__name__,
        error_message=str(exc),
        context={"error_id": error_id, "method": request.method, "path": request.url.path},
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
