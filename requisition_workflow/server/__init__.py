"""
Server package for Requisition Workflow.

Contains the FastAPI application, its routers, middleware, exception
handlers and the service layer that implements the business rules.
"""
