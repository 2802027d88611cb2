"""Exception hierarchy for data sessions.

Every error is raised synchronously to the caller of the current
orchestration run and is never retried internally.

    DataSessionError(Exception)              -- base; never raised directly
      ConfigurationError                     -- bad session name or options
      SetupYieldedAbsentError                -- setup produced None
      MissingDependencyError                 -- dependency has no cached entry
      InconsistentEntryError                 -- entry lacks dependency timestamps
      PersistenceError                       -- persistence bridge failure
"""

from __future__ import annotations


class DataSessionError(Exception):
    """Base class for all data session errors."""


class ConfigurationError(DataSessionError):
    """Raised for an empty session name or malformed session options."""


class SetupYieldedAbsentError(DataSessionError):
    """Raised when a setup computation yields ``None``."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Data session {name!r} setup cannot yield None")


class MissingDependencyError(DataSessionError):
    """Raised when a declared dependency has no cached entry."""

    def __init__(self, dependency: str, session: str) -> None:
        self.dependency = dependency
        self.session = session
        super().__init__(
            f"Cannot find data session {dependency!r} "
            f"that session {session!r} depends on"
        )


class InconsistentEntryError(DataSessionError):
    """Raised when an entry declares dependencies but has no recorded timestamps."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing depends on timestamps for data session {name!r}")


class PersistenceError(DataSessionError):
    """Raised when the persistence bridge fails to save, load or clear."""
