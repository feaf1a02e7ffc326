"""
Exception handlers for the Requisition Workflow server.

This package contains the handlers that turn domain errors and unexpected
exceptions into JSON responses, and a setup function to register them with
the FastAPI application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
