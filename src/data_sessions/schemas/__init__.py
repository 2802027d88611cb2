"""Schemas for data session configuration and stored entries."""

from .session import DataSessionEntry, SessionSpec

__all__ = [
    "DataSessionEntry",
    "SessionSpec",
]
