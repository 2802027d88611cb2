"""Data session manager: memoizes expensive setup work across invocations.

The manager owns an entry store (one entry per session name), an optional
persistence bridge for sessions shared across process runs, and the
process-wide enabled flag. Each ``run`` either returns cached data, returns a
recreated copy of it, or runs setup again and records a fresh entry.
"""

import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import structlog
from pydantic import ValidationError

from ..config import config
from ..exceptions import ConfigurationError, PersistenceError, SetupYieldedAbsentError
from ..keys import extract_name, format_key, is_session_key
from ..persistence import PersistenceBridge
from ..schemas import DataSessionEntry, SessionSpec
from ..store import EntryStore, InMemoryEntryStore
from .callables import call_maybe_async
from .dependencies import load_entry, resolve_timestamps
from .invalidation import InvalidationReason, SessionAction, decide

logger = structlog.get_logger()


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class DataSessionManager:
    """Session orchestrator and registry over an injected entry store."""

    def __init__(
        self,
        store: EntryStore | None = None,
        persistence: PersistenceBridge | None = None,
        enabled: bool | None = None,
        clock: Callable[[], int] | None = None,
    ):
        """Initialize the manager.

        Args:
            store: Entry store; defaults to a fresh in-memory store
            persistence: Bridge used by sessions with ``share_across_specs``
            enabled: Initial enabled flag; defaults to ``sessions.enabled`` config
            clock: Millisecond clock used for entry timestamps
        """
        self.store = store if store is not None else InMemoryEntryStore()
        self.persistence = persistence
        self._enabled = config.sessions_enabled if enabled is None else bool(enabled)
        self._clock = clock or _now_ms
        self._last_timestamp = 0

    # -- orchestration -------------------------------------------------

    async def register(
        self,
        name: str | SessionSpec | Mapping[str, Any],
        setup: Callable[[], Any] | None = None,
        validate: Callable[[Any], Any] | bool | None = None,
        on_invalidated: Callable[[Any], Any] | None = None,
        **options: Any,
    ) -> Any:
        """Register a session and return its (possibly cached) data.

        Accepts a session name with positional callables, a ``SessionSpec``
        or a mapping of named options.
        """
        if isinstance(name, (SessionSpec, Mapping)):
            if setup is not None or validate is not None or on_invalidated is not None or options:
                raise ConfigurationError(
                    "Pass session options either in a SessionSpec or mapping, or as arguments, not both"
                )
            if isinstance(name, SessionSpec):
                spec = name
            else:
                spec = SessionSpec.from_options(name)
        else:
            spec = SessionSpec.from_options({
                "name": name,
                "setup": setup,
                "validate": validate,
                "on_invalidated": on_invalidated,
                **options,
            })
        return await self.run(spec)

    async def run(self, spec: SessionSpec) -> Any:
        """Return cached data for ``spec`` or compute and store it.

        Raises:
            MissingDependencyError: If a dependency has no cached entry
            InconsistentEntryError: If the cached entry lacks dependency timestamps
            SetupYieldedAbsentError: If setup yields None
            PersistenceError: If the persistence bridge fails
        """
        name = spec.name

        if not self._enabled:
            logger.info("Data sessions disabled, running setup", name=name)
            return await self._run_setup(spec)

        key = format_key(name)
        logger.debug("Data session", name=name, key=key)

        if spec.share_across_specs and self.persistence is None:
            raise ConfigurationError(
                f"Data session {name!r} is shared across specs but no persistence bridge is configured"
            )

        current_timestamps = resolve_timestamps(self.store, spec.depends_on, name)

        entry = load_entry(self.store, key)
        loaded_shared = False
        if entry is None and spec.share_across_specs:
            entry = await self._load_shared(key, name)
            loaded_shared = entry is not None

        decision = await decide(
            name,
            entry,
            spec.validate,
            spec.depends_on,
            current_timestamps,
            has_recreate=spec.recreate is not None,
        )

        if decision.action is SessionAction.REUSE:
            logger.info("Data session is still valid", name=name)
            if loaded_shared:
                self._adopt(key, entry)
            return entry.data

        if decision.action is SessionAction.TRANSFORM_AND_REUSE:
            logger.info("Data session is still valid", name=name)
            logger.info("Recreating data session", name=name)
            recreated = await call_maybe_async(spec.recreate, entry.data)
            if loaded_shared:
                self._adopt(key, entry)
            return recreated

        if decision.reason is InvalidationReason.FIRST_TIME:
            logger.info("First time for data session", name=name)
        elif decision.reason is InvalidationReason.DEPENDENCY_CHANGED:
            logger.info("Recomputing data session because a parent session was recomputed",
                       name=name,
                       depends_on=list(spec.depends_on))

        if decision.invalidated and spec.on_invalidated is not None:
            await call_maybe_async(spec.on_invalidated, entry.data)

        if decision.reason is InvalidationReason.INVALID:
            logger.info("Recomputing data session because cached data is invalid", name=name)

        data = await self._run_setup(spec)
        previous = load_entry(self.store, key)
        new_entry = DataSessionEntry(
            data=data,
            timestamp=self._next_timestamp(entry),
            depends_on_timestamps=list(current_timestamps),
        )
        await self._write_entry(key, new_entry, previous, spec.share_across_specs)
        return data

    async def _run_setup(self, spec: SessionSpec) -> Any:
        if spec.pre_setup is not None:
            await call_maybe_async(spec.pre_setup)
        data = await call_maybe_async(spec.setup)
        if data is None:
            raise SetupYieldedAbsentError(spec.name)
        return data

    def _next_timestamp(self, previous: DataSessionEntry | None = None) -> int:
        """Issue a timestamp strictly greater than any issued before."""
        floor = self._last_timestamp
        if previous is not None:
            floor = max(floor, previous.timestamp)
        timestamp = max(self._clock(), floor + 1)
        self._last_timestamp = timestamp
        return timestamp

    async def _write_entry(
        self,
        key: str,
        entry: DataSessionEntry,
        previous: DataSessionEntry | None,
        shared: bool,
    ) -> None:
        self.store.set(key, entry)
        if not shared:
            return
        try:
            await self.persistence.save(key, entry.model_dump())
        except PersistenceError:
            # Leave the local store as it was before this run
            if previous is None:
                self.store.delete(key)
            else:
                self.store.set(key, previous)
            raise

    def _adopt(self, key: str, entry: DataSessionEntry) -> None:
        """Keep a reused shared entry locally so dependents can resolve its timestamp."""
        self.store.set(key, entry)
        self._last_timestamp = max(self._last_timestamp, entry.timestamp)

    async def _load_shared(self, key: str, name: str) -> DataSessionEntry | None:
        """Load an entry saved by another process, without touching the local store."""
        value = await self.persistence.load(key)
        if value is None:
            return None
        try:
            entry = DataSessionEntry.model_validate(value)
        except ValidationError as e:
            raise PersistenceError(f"Saved data session {name!r} is malformed: {e}") from e
        if not entry.is_present:
            return None

        logger.info("Loaded shared data session", name=name, timestamp=entry.timestamp)
        return entry

    # -- registry ------------------------------------------------------

    def get(self, name: str) -> Any | None:
        """Return the cached data for ``name``, or None."""
        entry = self.get_details(name)
        return entry.data if entry is not None else None

    def get_details(self, name: str) -> DataSessionEntry | None:
        """Return the full cached entry for ``name``, or None."""
        return load_entry(self.store, format_key(name))

    def set_data(self, name: str, data: Any, depends_on: Sequence[str] | str = ()) -> DataSessionEntry:
        """Store ``data`` for ``name`` as if setup had just produced it.

        Raises:
            SetupYieldedAbsentError: If ``data`` is None
            MissingDependencyError: If a dependency has no cached entry
        """
        key = format_key(name)
        if data is None:
            raise SetupYieldedAbsentError(name)
        if isinstance(depends_on, str):
            depends_on = (depends_on,)

        entry = DataSessionEntry(
            data=data,
            timestamp=self._next_timestamp(load_entry(self.store, key)),
            depends_on_timestamps=resolve_timestamps(self.store, depends_on, name),
        )
        self.store.set(key, entry)
        logger.info("Data session set", name=name)
        return entry

    def list_all(self) -> list[dict[str, Any]]:
        """Snapshot every cached session as ``{"name", "value"}`` records."""
        sessions = []
        for key in list(self.store.keys()):
            if not is_session_key(key):
                continue
            entry = load_entry(self.store, key)
            if entry is None:
                continue
            sessions.append({"name": extract_name(key), "value": entry.data})
        return sessions

    def names(self) -> list[str]:
        return [session["name"] for session in self.list_all()]

    async def clear(self, name: str) -> bool:
        """Remove the cached entry for ``name`` locally and from the bridge.

        A missing local entry or a missing saved copy is logged, not raised.

        Returns:
            True if the persistence bridge held a saved copy
        """
        key = format_key(name)
        if self.store.get(key) is None:
            logger.warning("Could not find data session",
                          name=name,
                          available=self.names())
        else:
            self.store.delete(key)
            logger.info("Data session cleared", name=name)

        if self.persistence is None:
            return False

        cleared = await self.persistence.clear(key)
        if cleared:
            logger.info("Cleared saved data session", name=name)
        else:
            logger.warning("Could not find saved data session", name=name)
        return cleared

    def clear_all(self) -> int:
        """Remove every session entry from the local store.

        Returns:
            Number of entries removed
        """
        removed = 0
        for key in list(self.store.keys()):
            if is_session_key(key):
                self.store.delete(key)
                removed += 1
        logger.info("All data sessions cleared", removed=removed)
        return removed

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable caching for every session."""
        self._enabled = bool(enabled)
        logger.info("Data sessions toggled", enabled=self._enabled)

    def is_enabled(self) -> bool:
        return self._enabled
