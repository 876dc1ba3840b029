"""Database infrastructure module."""

from passbook.infrastructure.database.session import (
    AsyncSessionLocal,
    async_engine,
)

__all__ = [
    "async_engine",
    "AsyncSessionLocal",
]
