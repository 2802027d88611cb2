"""Dependency timestamp resolution for data sessions."""

from collections.abc import Sequence

from ..exceptions import MissingDependencyError
from ..keys import format_key
from ..schemas import DataSessionEntry
from ..store import EntryStore


def load_entry(store: EntryStore, key: str) -> DataSessionEntry | None:
    """Read an entry from the store, treating absent data as no entry.

    Stores that serialize their values may hand back plain dicts, which are
    validated into entries.
    """
    value = store.get(key)
    if value is None:
        return None
    if not isinstance(value, DataSessionEntry):
        value = DataSessionEntry.model_validate(value)
    if not value.is_present:
        return None
    return value


def resolve_timestamps(
    store: EntryStore,
    depends_on: Sequence[str],
    session_name: str,
) -> list[int]:
    """Look up the current timestamp of every dependency, in order.

    Args:
        store: Entry store holding the dependencies' entries
        depends_on: Ordered dependency session names
        session_name: Name of the dependent session, for error reporting

    Returns:
        One timestamp per dependency, in ``depends_on`` order

    Raises:
        MissingDependencyError: If a dependency has no cached entry
    """
    timestamps = []
    for dependency in depends_on:
        entry = load_entry(store, format_key(dependency))
        if entry is None:
            raise MissingDependencyError(dependency, session_name)
        timestamps.append(entry.timestamp)
    return timestamps
