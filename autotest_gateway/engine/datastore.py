"""SQLAlchemy-backed store for received commit targets."""

from __future__ import annotations

import asyncio
import hashlib
import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from autotest_gateway.engine.storage import CommitTargetRecord, init_autotest_storage
from autotest_gateway.github.models import target_kind, to_json_dict

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from autotest_gateway.github.models import CommitTarget


class DataStorePersistError(RuntimeError):
    """Raised when a duplicate row vanishes between insert and lookup."""

    def __init__(self) -> None:
        """Use a fixed message for logging."""
        super().__init__("expected existing commit target after rollback")


def make_dedupe_key(target: CommitTarget) -> str:
    """Return a stable key identifying ``target`` across redeliveries.

    Two deliveries of the same GitHub event produce the same kind,
    repository, commit, actor and timestamp, and therefore the same key.
    """
    material = "|".join(
        [
            target_kind(target),
            target.repo_id,
            target.commit_sha,
            target.person_id,
            target.ref or "",
            target.timestamp.isoformat(),
        ]
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class SQLAlchemyDataStore:
    """Record commit targets in the ``commit_targets`` table.

    The schema is created on first use. Saving is idempotent: a target whose
    dedupe key already exists returns the stored row with ``created`` False.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Bind the store to an engine and its session factory."""
        self._engine = engine
        self._session_factory = session_factory
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if not self._schema_ready:
                await init_autotest_storage(self._engine)
                self._schema_ready = True

    async def save_target(
        self, target: CommitTarget
    ) -> tuple[CommitTargetRecord, bool]:
        """Persist ``target`` unless an identical delivery was stored before.

        Returns
        -------
        tuple[CommitTargetRecord, bool]
            The stored row and True when this call inserted it.

        Raises
        ------
        DataStorePersistError
            If the insert conflicts but no existing row can be found.

        """
        await self._ensure_schema()
        dedupe_key = make_dedupe_key(target)

        async with self._session_factory() as session:
            record = CommitTargetRecord(
                kind=target_kind(target),
                repo_id=target.repo_id,
                commit_sha=target.commit_sha,
                ref=target.ref,
                person_id=target.person_id,
                deliverable_id=target.deliverable_id,
                occurred_at=target.timestamp,
                dedupe_key=dedupe_key,
                payload=to_json_dict(target),
            )
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                existing = await session.scalar(
                    select(CommitTargetRecord).where(
                        CommitTargetRecord.dedupe_key == dedupe_key
                    )
                )
                if existing is None:
                    raise DataStorePersistError from exc
                return (existing, False)

            await session.refresh(record)
            return (record, True)

    async def aclose(self) -> None:
        """Dispose of the database engine's connection pool."""
        await self._engine.dispose()


__all__ = ["DataStorePersistError", "SQLAlchemyDataStore", "make_dedupe_key"]
