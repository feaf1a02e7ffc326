"""
I/O models for API requests and responses.

Pydantic schemas that define the contract between the API and its
clients, one module per resource.
"""
