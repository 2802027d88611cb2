"""Memoization and invalidation of data sessions."""

from .dependencies import load_entry, resolve_timestamps
from .invalidation import InvalidationDecision, InvalidationReason, SessionAction, decide
from .manager import DataSessionManager

__all__ = [
    "DataSessionManager",
    "InvalidationDecision",
    "InvalidationReason",
    "SessionAction",
    "decide",
    "load_entry",
    "resolve_timestamps",
]
