"""
Shared infrastructure for services.

This package contains shared building blocks used across multiple services,
such as database abstractions, error types and background task dispatch.
"""

from .database import Database, PostgreSQLDatabase
from .dispatcher import TaskDispatcher
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    MarketplaceError,
    NotFoundError,
    PersistenceError,
    ProviderError,
    ValidationError,
)
from .pagination import Page, build_pagination, normalize_paging, resolve_sort
from .text_match import like_pattern

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "Database",
    "MarketplaceError",
    "NotFoundError",
    "Page",
    "PersistenceError",
    "PostgreSQLDatabase",
    "ProviderError",
    "TaskDispatcher",
    "ValidationError",
    "build_pagination",
    "like_pattern",
    "normalize_paging",
    "resolve_sort",
]
