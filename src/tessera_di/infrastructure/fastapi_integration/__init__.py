"""
FastAPI integration module.

Provides helpers and utilities for integrating tessera-di with FastAPI.
"""

from .integration import (
    ChildContainerMiddleware,
    create_async_dependency,
    create_fastapi_dependency,
    create_request_dependency,
)

__all__ = [
    "create_fastapi_dependency",
    "create_async_dependency",
    "create_request_dependency",
    "ChildContainerMiddleware",
]
