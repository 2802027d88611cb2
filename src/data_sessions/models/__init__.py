"""SQLAlchemy ORM models for data session persistence."""

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all ORM models."""


from .shared_session import SharedSession  # noqa: E402

__all__ = [
    "Base",
    "SharedSession",
]
