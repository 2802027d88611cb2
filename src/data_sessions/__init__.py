"""Data sessions: memoize expensive setup work across invocations and processes."""

__version__ = "1.0.0"

from .exceptions import (
    ConfigurationError,
    DataSessionError,
    InconsistentEntryError,
    MissingDependencyError,
    PersistenceError,
    SetupYieldedAbsentError,
)
from .keys import SESSION_KEY_PREFIX, extract_name, format_key, is_session_key
from .persistence import InMemoryPersistenceBridge, PersistenceBridge, SqlitePersistenceBridge
from .schemas import DataSessionEntry, SessionSpec
from .sessions import DataSessionManager
from .store import EntryStore, InMemoryEntryStore

__all__ = [
    "SESSION_KEY_PREFIX",
    "ConfigurationError",
    "DataSessionEntry",
    "DataSessionError",
    "DataSessionManager",
    "EntryStore",
    "InMemoryEntryStore",
    "InMemoryPersistenceBridge",
    "InconsistentEntryError",
    "MissingDependencyError",
    "PersistenceBridge",
    "PersistenceError",
    "SessionSpec",
    "SetupYieldedAbsentError",
    "SqlitePersistenceBridge",
    "extract_name",
    "format_key",
    "is_session_key",
]
