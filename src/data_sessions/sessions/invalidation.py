"""Invalidation decisions for cached data session entries.

A cached entry is reused only when its validate predicate accepts the cached
data and every dependency still carries the timestamp recorded when the entry
was computed. Dependency staleness overrides local validity.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..exceptions import InconsistentEntryError
from ..schemas import DataSessionEntry
from .callables import call_maybe_async


class SessionAction(StrEnum):
    """What the session manager does with a cached entry."""
    RECOMPUTE = "recompute"
    REUSE = "reuse"
    TRANSFORM_AND_REUSE = "transform_and_reuse"


class InvalidationReason(StrEnum):
    """Why an action was chosen."""
    FIRST_TIME = "first_time"
    INVALID = "invalid"
    DEPENDENCY_CHANGED = "dependency_changed"
    VALID = "valid"


@dataclass(frozen=True)
class InvalidationDecision:
    action: SessionAction
    reason: InvalidationReason

    @property
    def invalidated(self) -> bool:
        """True when an existing entry is being thrown away."""
        return self.reason in (InvalidationReason.INVALID, InvalidationReason.DEPENDENCY_CHANGED)


def dependencies_unchanged(
    name: str,
    entry: DataSessionEntry,
    depends_on: Sequence[str],
    current_timestamps: Sequence[int],
) -> bool:
    """Compare current dependency timestamps with the entry's snapshot.

    Raises:
        InconsistentEntryError: If dependencies are declared but the entry
            never recorded their timestamps
    """
    if entry.depends_on_timestamps is None:
        if depends_on:
            raise InconsistentEntryError(name)
        return True
    return list(entry.depends_on_timestamps) == list(current_timestamps)


async def decide(
    name: str,
    entry: DataSessionEntry | None,
    validate: Callable[[Any], Any],
    depends_on: Sequence[str],
    current_timestamps: Sequence[int],
    has_recreate: bool = False,
) -> InvalidationDecision:
    """Choose between recomputing and reusing a cached entry.

    Args:
        name: Session name, for error reporting
        entry: Cached entry, or None when nothing is cached
        validate: Predicate over the cached data; may be async
        depends_on: Declared dependency names
        current_timestamps: Current dependency timestamps, in ``depends_on`` order
        has_recreate: Whether reuse goes through a recreate transform

    Returns:
        The decision and the reason behind it
    """
    if entry is None or not entry.is_present:
        return InvalidationDecision(SessionAction.RECOMPUTE, InvalidationReason.FIRST_TIME)

    valid = await call_maybe_async(validate, entry.data)
    if not valid:
        return InvalidationDecision(SessionAction.RECOMPUTE, InvalidationReason.INVALID)

    if not dependencies_unchanged(name, entry, depends_on, current_timestamps):
        return InvalidationDecision(SessionAction.RECOMPUTE, InvalidationReason.DEPENDENCY_CHANGED)

    if has_recreate:
        return InvalidationDecision(SessionAction.TRANSFORM_AND_REUSE, InvalidationReason.VALID)
    return InvalidationDecision(SessionAction.REUSE, InvalidationReason.VALID)
