"""Persistence models for commit targets received by the engine."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import JSON, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp for column defaults."""
    return dt.datetime.now(dt.UTC)


class Base(DeclarativeBase):
    """Declarative base for AutoTest tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """Timezone-aware UTC datetimes, including on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Store values in UTC; naive datetimes are rejected."""
        if value is None:
            return None
        if value.tzinfo is None:
            msg = "commit target timestamps must be timezone-aware"
            raise ValueError(msg)
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Return stored values as aware UTC datetimes."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class CommitTargetRecord(Base):
    """One commit target as received from the webhook gateway."""

    __tablename__ = "commit_targets"
    __table_args__ = (
        UniqueConstraint("dedupe_key", name="uq_commit_target_dedupe"),
        Index("ix_commit_targets_repo_commit", "repo_id", "commit_sha"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(16))
    repo_id: Mapped[str] = mapped_column(String(255))
    commit_sha: Mapped[str] = mapped_column(String(64))
    ref: Mapped[str | None] = mapped_column(String(255), default=None)
    person_id: Mapped[str] = mapped_column(String(255))
    deliverable_id: Mapped[str | None] = mapped_column(String(64), default=None)
    occurred_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    received_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    dedupe_key: Mapped[str] = mapped_column(String(64))
    payload: Mapped[dict[str, typ.Any]] = mapped_column(JSON)


async def init_autotest_storage(engine: AsyncEngine) -> None:
    """Create the AutoTest tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = [
    "Base",
    "CommitTargetRecord",
    "UTCDateTime",
    "init_autotest_storage",
    "utcnow",
]
