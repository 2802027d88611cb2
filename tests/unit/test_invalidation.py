"""Unit tests for the invalidation decision engine and dependency resolver."""

import pytest
from unittest.mock import AsyncMock, Mock

from data_sessions import (
    DataSessionEntry,
    InconsistentEntryError,
    InMemoryEntryStore,
    MissingDependencyError,
    format_key,
)
from data_sessions.sessions import (
    InvalidationReason,
    SessionAction,
    decide,
    load_entry,
    resolve_timestamps,
)


def entry(data="x", timestamp=10, depends_on_timestamps=None):
    return DataSessionEntry(
        data=data,
        timestamp=timestamp,
        depends_on_timestamps=[] if depends_on_timestamps is None else depends_on_timestamps,
    )


class TestDecide:
    """Test cases for decide."""

    @pytest.mark.asyncio
    async def test_no_entry_recomputes(self):
        validate = Mock(return_value=True)

        decision = await decide("A", None, validate, (), [])

        assert decision.action is SessionAction.RECOMPUTE
        assert decision.reason is InvalidationReason.FIRST_TIME
        assert not decision.invalidated
        validate.assert_not_called()

    @pytest.mark.asyncio
    async def test_entry_without_data_counts_as_missing(self):
        decision = await decide("A", entry(data=None), Mock(return_value=True), (), [])
        assert decision.reason is InvalidationReason.FIRST_TIME

    @pytest.mark.asyncio
    async def test_invalid_data_recomputes(self):
        validate = Mock(return_value=False)

        decision = await decide("A", entry(data="old"), validate, (), [])

        assert decision.action is SessionAction.RECOMPUTE
        assert decision.reason is InvalidationReason.INVALID
        assert decision.invalidated
        validate.assert_called_once_with("old")

    @pytest.mark.asyncio
    async def test_valid_data_is_reused(self):
        decision = await decide("A", entry(), Mock(return_value=True), (), [])

        assert decision.action is SessionAction.REUSE
        assert decision.reason is InvalidationReason.VALID

    @pytest.mark.asyncio
    async def test_valid_data_with_recreate_is_transformed(self):
        decision = await decide("A", entry(), Mock(return_value=True), (), [], has_recreate=True)
        assert decision.action is SessionAction.TRANSFORM_AND_REUSE

    @pytest.mark.asyncio
    async def test_async_validate_is_awaited(self):
        validate = AsyncMock(return_value=False)

        decision = await decide("A", entry(data="old"), validate, (), [])

        assert decision.reason is InvalidationReason.INVALID
        validate.assert_awaited_once_with("old")

    @pytest.mark.asyncio
    async def test_truthy_validate_result_counts_as_valid(self):
        decision = await decide("A", entry(), Mock(return_value="yes"), (), [])
        assert decision.action is SessionAction.REUSE

    @pytest.mark.asyncio
    async def test_same_dependency_timestamps_reuse(self):
        cached = entry(depends_on_timestamps=[1, 2])

        decision = await decide("A", cached, Mock(return_value=True), ("p", "q"), [1, 2])

        assert decision.action is SessionAction.REUSE

    @pytest.mark.asyncio
    async def test_changed_dependency_overrides_validity(self):
        cached = entry(depends_on_timestamps=[1, 2])

        decision = await decide("A", cached, Mock(return_value=True), ("p", "q"), [1, 3])

        assert decision.action is SessionAction.RECOMPUTE
        assert decision.reason is InvalidationReason.DEPENDENCY_CHANGED
        assert decision.invalidated

    @pytest.mark.asyncio
    async def test_dependency_order_matters(self):
        cached = entry(depends_on_timestamps=[1, 2])

        decision = await decide("A", cached, Mock(return_value=True), ("p", "q"), [2, 1])

        assert decision.reason is InvalidationReason.DEPENDENCY_CHANGED

    @pytest.mark.asyncio
    async def test_new_dependency_shape_recomputes(self):
        cached = entry(depends_on_timestamps=[])

        decision = await decide("A", cached, Mock(return_value=True), ("p",), [5])

        assert decision.reason is InvalidationReason.DEPENDENCY_CHANGED

    @pytest.mark.asyncio
    async def test_missing_dependency_timestamps_is_inconsistent(self):
        cached = DataSessionEntry(data="x", timestamp=1, depends_on_timestamps=None)

        with pytest.raises(InconsistentEntryError, match="'A'"):
            await decide("A", cached, Mock(return_value=True), ("p",), [5])

    @pytest.mark.asyncio
    async def test_missing_dependency_timestamps_without_dependencies_is_fine(self):
        cached = DataSessionEntry(data="x", timestamp=1, depends_on_timestamps=None)

        decision = await decide("A", cached, Mock(return_value=True), (), [])

        assert decision.action is SessionAction.REUSE

    @pytest.mark.asyncio
    async def test_invalid_data_skips_dependency_check(self):
        cached = DataSessionEntry(data="x", timestamp=1, depends_on_timestamps=None)

        decision = await decide("A", cached, Mock(return_value=False), ("p",), [5])

        assert decision.reason is InvalidationReason.INVALID


class TestResolveTimestamps:
    """Test cases for the dependency resolver."""

    def test_returns_timestamps_in_order(self):
        store = InMemoryEntryStore()
        store.set(format_key("p"), entry(timestamp=5))
        store.set(format_key("q"), entry(timestamp=3))

        assert resolve_timestamps(store, ("q", "p"), "child") == [3, 5]

    def test_no_dependencies(self):
        assert resolve_timestamps(InMemoryEntryStore(), (), "child") == []

    def test_missing_dependency(self):
        store = InMemoryEntryStore()
        store.set(format_key("p"), entry(timestamp=5))

        with pytest.raises(MissingDependencyError) as exc_info:
            resolve_timestamps(store, ("p", "q"), "child")

        assert exc_info.value.dependency == "q"
        assert exc_info.value.session == "child"

    def test_dependency_without_data_is_missing(self):
        store = InMemoryEntryStore()
        store.set(format_key("p"), entry(data=None))

        with pytest.raises(MissingDependencyError):
            resolve_timestamps(store, ("p",), "child")


class TestLoadEntry:
    """Test cases for reading entries from a store."""

    def test_validates_plain_dicts(self):
        store = InMemoryEntryStore()
        store.set("k", {"data": [1, 2], "timestamp": 7, "depends_on_timestamps": [3]})

        loaded = load_entry(store, "k")

        assert isinstance(loaded, DataSessionEntry)
        assert loaded.data == [1, 2]
        assert loaded.depends_on_timestamps == [3]

    def test_missing_key(self):
        assert load_entry(InMemoryEntryStore(), "k") is None
