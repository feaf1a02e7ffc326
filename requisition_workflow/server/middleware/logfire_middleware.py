"""
Logfire Middleware for FastAPI.

Times every API request and reports it through the monitoring helpers:
- Request/response logging tagged with the acting organization
- Performance metrics (X-Process-Time header)
- Slow request warnings
- Error tracking
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from requisition_workflow.core.logging_config import get_logger
from requisition_workflow.core.monitoring import log_api_request
from requisition_workflow.server.core.constant import ORG_CONTEXT_HEADER

logger = get_logger(__name__)

SLOW_REQUEST_MS = 1000


class LogfireMiddleware(BaseHTTPMiddleware):
    """Middleware for tracing API requests with Logfire."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and log metrics.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware/handler

        Returns:
            The HTTP response
        """
        start_time = time.time()
        request.state.start_time = start_time
        context = {
            "method": request.method,
            "path": request.url.path,
            "org_id": request.headers.get(ORG_CONTEXT_HEADER),
        }

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"API request failed: {context['method']} {context['path']}",
                exc_info=True,
                extra={**context, "duration_ms": duration_ms, "error": str(e)},
            )
            log_api_request(status_code=500, duration_ms=duration_ms, **context)
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_api_request(status_code=response.status_code, duration_ms=duration_ms, **context)
        response.headers["X-Process-Time"] = str(duration_ms)

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow API request: {context['method']} {context['path']} took {duration_ms:.2f}ms",
                extra={**context, "duration_ms": duration_ms, "status_code": response.status_code},
            )

        return response
