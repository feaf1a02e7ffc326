"""
Core utilities for Requisition Workflow.

This package provides logging configuration, monitoring hooks, security
primitives and the database layer shared by the server.
"""

from requisition_workflow.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
