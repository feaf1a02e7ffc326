"""
Service layer.

Business rules live here; routers translate HTTP into service calls and
own the transaction commit.
"""
