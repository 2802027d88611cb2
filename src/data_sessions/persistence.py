"""Persistence bridges for sharing data sessions across process runs.

A bridge stores one value per derived session key. The session manager saves
the whole entry (data, timestamp and dependency timestamps) so that an entry
loaded by another process keeps its dependency snapshot.
"""

import copy
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .exceptions import PersistenceError
from .models import Base, SharedSession

logger = structlog.get_logger()


@runtime_checkable
class PersistenceBridge(Protocol):
    """External store contract for sessions shared across specs."""

    async def save(self, key: str, value: Any) -> None: ...

    async def load(self, key: str) -> Any | None: ...

    async def clear(self, key: str) -> bool: ...


class InMemoryPersistenceBridge:
    """Bridge kept in process memory; values are deep-copied in and out."""

    def __init__(self):
        self._values: dict[str, Any] = {}

    async def save(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    async def load(self, key: str) -> Any | None:
        value = self._values.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def clear(self, key: str) -> bool:
        return self._values.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return sorted(self._values)

    async def close(self) -> None:
        self._values.clear()


class SqlitePersistenceBridge:
    """SQLite-backed bridge shared by every process pointing at the same file."""

    def __init__(self, db_path: Path | str):
        """Initialize the bridge.

        Args:
            db_path: Path to the SQLite database file; created on first use
        """
        self.db_path = Path(db_path).expanduser()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self) -> None:
        """Create the engine and the shared sessions table if needed."""
        if self._engine is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.db_path}",
            echo=False,
        )
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            await engine.dispose()
            logger.error("Failed to initialize persistence database",
                        db_path=str(self.db_path),
                        error=str(e))
            raise PersistenceError(f"Cannot open {self.db_path}: {e}") from e

        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        logger.debug("Persistence bridge initialized", db_path=str(self.db_path))

    async def _execute(self, query_func, *args):
        """Run ``query_func(session, *args)`` translating database errors."""
        await self.initialize()
        try:
            async with self._session_factory() as session:
                return await query_func(session, *args)
        except SQLAlchemyError as e:
            logger.error("Persistence bridge query failed",
                        db_path=str(self.db_path),
                        query=query_func.__name__,
                        error=str(e))
            raise PersistenceError(str(e)) from e

    async def save(self, key: str, value: Any) -> None:
        """Insert or replace the value stored under ``key``.

        Raises:
            PersistenceError: If the value is not JSON serializable or the write fails
        """
        async def _save(session: AsyncSession):
            row = await session.get(SharedSession, key)
            if row is None:
                row = SharedSession(key=key)
                session.add(row)
            row.set_value(value)
            await session.commit()

        try:
            await self._execute(_save)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize value for {key!r}: {e}") from e

        logger.debug("Data session saved", key=key, db_path=str(self.db_path))

    async def load(self, key: str) -> Any | None:
        """Return the value stored under ``key``, or None."""
        async def _load(session: AsyncSession):
            row = await session.get(SharedSession, key)
            return row.get_value() if row is not None else None

        try:
            return await self._execute(_load)
        except ValueError as e:
            raise PersistenceError(f"Corrupted value stored for {key!r}: {e}") from e

    async def clear(self, key: str) -> bool:
        """Delete the value stored under ``key``.

        Returns:
            True if a stored value was found and removed
        """
        async def _clear(session: AsyncSession):
            result = await session.execute(
                delete(SharedSession).where(SharedSession.key == key),
            )
            await session.commit()
            return result.rowcount > 0

        return await self._execute(_clear)

    async def keys(self) -> list[str]:
        """List every stored key in sorted order."""
        async def _keys(session: AsyncSession):
            result = await session.execute(
                select(SharedSession.key).order_by(SharedSession.key),
            )
            return list(result.scalars().all())

        return await self._execute(_keys)

    async def close(self) -> None:
        """Dispose of the database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
