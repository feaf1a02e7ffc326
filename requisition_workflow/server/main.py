"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers exception handlers and includes all API routers.
It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from requisition_workflow import __version__
from requisition_workflow.core.database import init_db
from requisition_workflow.core.logging_config import get_logger, setup_logging
from requisition_workflow.core.monitoring import initialize_logfire

from .api.v1 import (
    auth,
    billing,
    catalog,
    expense_accounts,
    feedback,
    health,
    invitations,
    maintenance,
    notifications,
    organizations,
    projects,
    requisitions,
    webhooks,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Initializes the database schema (when auto-create is enabled) on startup.
    """
    try:
        logger.info("Starting up Requisition Workflow Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    logger.info("Shutting down Requisition Workflow Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Requisition Workflow API

    Multi-tenant backend for purchase, expense and petty-cash requisitions.
    It covers organization signup and membership, projects and expense accounts,
    the submit / review / approve workflow with notifications, and Stripe billing.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(organizations.router, prefix=f"{constant.API_V1_STR}/organizations", tags=["organizations"])
app.include_router(invitations.router, prefix=f"{constant.API_V1_STR}/invitations", tags=["invitations"])
app.include_router(projects.router, prefix=f"{constant.API_V1_STR}/projects", tags=["projects"])
app.include_router(
    expense_accounts.router, prefix=f"{constant.API_V1_STR}/expense-accounts", tags=["expense-accounts"]
)
app.include_router(catalog.router, prefix=f"{constant.API_V1_STR}/catalog", tags=["catalog"])
app.include_router(requisitions.router, prefix=f"{constant.API_V1_STR}/requisitions", tags=["requisitions"])
app.include_router(notifications.router, prefix=f"{constant.API_V1_STR}/notifications", tags=["notifications"])
app.include_router(billing.router, prefix=f"{constant.API_V1_STR}/billing", tags=["billing"])
app.include_router(webhooks.router, prefix=f"{constant.API_V1_STR}/webhooks", tags=["webhooks"])
app.include_router(feedback.router, prefix=f"{constant.API_V1_STR}/feedback", tags=["feedback"])
app.include_router(maintenance.router, prefix=f"{constant.API_V1_STR}/maintenance", tags=["maintenance"])
