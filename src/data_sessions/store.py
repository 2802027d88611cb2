"""Process-local entry store holding data session entries."""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EntryStore(Protocol):
    """Key/value store contract used by the session manager."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


class InMemoryEntryStore:
    """Dictionary-backed entry store for a single process."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._entries: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        # Snapshot so callers can delete while iterating
        return list(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
