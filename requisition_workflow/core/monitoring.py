"""
Monitoring and Tracing Configuration Module.

Integrates Pydantic Logfire for tracing of the Requisition Workflow service:
- API endpoint tracing and latency
- Database operation monitoring
- Outbound HTTP calls to the email provider
- Workflow, billing and email delivery events

All helpers are safe to call when Logfire is disabled; they degrade to a
debug log line.
"""

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "requisition-workflow")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "requisition-workflow-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

LOGFIRE_SAMPLE_RATE = float(os.getenv("LOGFIRE_SAMPLE_RATE", "1.0"))
LOGFIRE_TRACE_SAMPLE_RATE = float(os.getenv("LOGFIRE_TRACE_SAMPLE_RATE", "1.0"))

LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_HTTPX = os.getenv("LOGFIRE_TRACE_HTTPX", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire for monitoring and tracing.

    Sets up Logfire with automatic instrumentation for SQLAlchemy, HTTPX and,
    when an application instance is given, FastAPI.

    Args:
        app: FastAPI application instance for endpoint instrumentation (optional).

    Returns:
        True when Logfire was configured, False otherwise.
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        import logfire
        from logfire import SamplingOptions

        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
            sampling=SamplingOptions(
                head=LOGFIRE_SAMPLE_RATE,
                tail=LOGFIRE_TRACE_SAMPLE_RATE,
            ),
        )

        if LOGFIRE_TRACE_SQLALCHEMY:
            try:
                logfire.instrument_sqlalchemy()
                logger.info("Logfire: SQLAlchemy instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument SQLAlchemy: {e}")

        if LOGFIRE_TRACE_HTTPX:
            try:
                logfire.instrument_httpx()
                logger.info("Logfire: HTTPX instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument HTTPX: {e}")

        if LOGFIRE_TRACE_FASTAPI and app is not None:
            try:
                logfire.instrument_fastapi(app=app)
                logger.info("Logfire: FastAPI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument FastAPI: {e}")

        logger.info(
            f"Logfire monitoring initialized: "
            f"project={LOGFIRE_PROJECT_NAME}, "
            f"environment={LOGFIRE_ENVIRONMENT}, "
            f"service={LOGFIRE_SERVICE_NAME}"
        )
        return True

    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False


def _emit(message: str, level: str = "info", **attributes: Any) -> None:
    if not LOGFIRE_ENABLED:
        logger.debug(f"{message} {attributes}")
        return
    try:
        import logfire

        getattr(logfire, level)(message, **attributes)
    except Exception:
        logger.debug(f"Could not log to Logfire: {message}")


def log_api_request(
    method: str, path: str, status_code: int, duration_ms: float, org_id: Optional[str] = None
) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
        org_id: Organization named by the request's context header, if any
    """
    attributes: dict[str, Any] = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }
    if org_id:
        attributes["org_id"] = org_id
    _emit("API request", **attributes)


def log_requisition_transition(
    requisition_id: str,
    org_id: str,
    action: str,
    from_status: str,
    to_status: str,
    actor_id: str,
) -> None:
    """Log a requisition moving through the approval workflow."""
    _emit(
        "Requisition transition",
        requisition_id=requisition_id,
        org_id=org_id,
        action=action,
        from_status=from_status,
        to_status=to_status,
        actor_id=actor_id,
    )


def log_billing_event(org_id: Optional[str], event_type: str, plan: Optional[str] = None) -> None:
    """
    Log a billing lifecycle event.

    Args:
        org_id: Organization affected (None when it could not be resolved)
        event_type: Billing history event type or raw Stripe event type
        plan: Plan the organization ended up on, when relevant
    """
    _emit("Billing event", org_id=org_id, event_type=event_type, plan=plan)


def log_email_delivery(recipient: str, subject: str, success: bool, provider_id: Optional[str] = None) -> None:
    _emit(
        "Email delivery",
        level="info" if success else "warn",
        recipient=recipient,
        subject=subject,
        success=success,
        provider_id=provider_id,
    )


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context.

    Args:
        error_type: The type of error
        error_message: The error message
        context: Additional context information (optional)
    """
    _emit(f"{error_type}: {error_message}", level="error", **(context or {}))
