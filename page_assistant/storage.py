"""Relational store: tool-created records and remembered thread handles."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Integer, String, Text, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from page_assistant.threads import ThreadStore


def to_utc_naive(value: datetime) -> datetime:
    """Convert to the naive-UTC form DateTime columns hold; naive input is taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _utcnow() -> datetime:
    return to_utc_naive(datetime.now(UTC))


class Base(DeclarativeBase):
    """Declarative base for all page-assistant models."""


class ScheduledPost(Base):
    __tablename__ = "scheduled_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    scheduled_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class ProjectTask(Base):
    __tablename__ = "project_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    assignee: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="todo")


class ThreadHandle(Base):
    """Remembered assistant thread for a session key."""

    __tablename__ = "thread_handles"

    session_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    thread_id: Mapped[str] = mapped_column(String(100), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )


def create_session_factory(
    url: str,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    engine = create_async_engine(url)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    return factory, engine


async def init_db(engine: AsyncEngine) -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SqlThreadStore(ThreadStore):
    """ThreadStore backed by the ``thread_handles`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get(self, key: str) -> Optional[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ThreadHandle.thread_id).where(ThreadHandle.session_key == key)
            )
            return result.scalar_one_or_none()

    async def put(self, key: str, thread_id: str) -> None:
        async with self.session_factory() as session:
            handle = await session.get(ThreadHandle, key)
            if handle is None:
                session.add(ThreadHandle(session_key=key, thread_id=thread_id))
            else:
                handle.thread_id = thread_id
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self.session_factory() as session:
            handle = await session.get(ThreadHandle, key)
            if handle is not None:
                await session.delete(handle)
                await session.commit()
