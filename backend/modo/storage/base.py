# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  存储基类 - 会话/事务获取与通用版本管理辅助
  Base storage - session/transaction access plus shared helpers for
  soft-delete and single-active-row versioning.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Iterable, Optional, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modo.database import Database, get_database
from modo.exceptions import NotFoundError

ModelT = TypeVar("ModelT")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseStorage:
    """
    数据库存储基类 / Base class for database-backed storages

    Storages are cheap to construct and resolve the Database lazily, so a
    module-level instance picks up the database swapped in by tests.
    """

    def __init__(self, database: Optional[Database] = None):
        self._database = database

    @property
    def db(self) -> Database:
        return self._database or get_database()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.db.session() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        async with self.db.transaction() as session:
            yield session

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def get_live(
        session: AsyncSession,
        model: Type[ModelT],
        entity_id: str,
        label: Optional[str] = None,
    ) -> ModelT:
        """
        读取未删除实体，不存在时抛出 NotFoundError

        Load a row by id, raising NotFoundError when it is missing or soft-deleted.
        """
        obj = await session.get(model, entity_id)
        if obj is None or getattr(obj, "deleted_at", None) is not None:
            raise NotFoundError(f"{label or model.__name__} not found")
        return obj

    async def fetch(self, model: Type[ModelT], entity_id: str, label: Optional[str] = None) -> ModelT:
        async with self.session() as session:
            return await self.get_live(session, model, entity_id, label)

    @staticmethod
    def apply_updates(obj: Any, updates: Dict[str, Any], allowed: Iterable[str]) -> Any:
        """Copy whitelisted, non-None fields onto an ORM object."""
        for field in allowed:
            if field in updates and updates[field] is not None:
                setattr(obj, field, updates[field])
        return obj

    # ------------------------------------------------------------------
    # Versioning (at most one active row per parent)
    # ------------------------------------------------------------------

    @staticmethod
    async def next_version_number(session: AsyncSession, model: Type[Any], parent_column: str, parent_id: str) -> int:
        """Return max(version_number) + 1 among the parent's rows, deleted ones included."""
        column = getattr(model, parent_column)
        result = await session.execute(
            select(func.max(model.version_number)).where(column == parent_id)
        )
        current = result.scalar()
        return int(current or 0) + 1

    @staticmethod
    async def deactivate_siblings(
        session: AsyncSession,
        model: Type[Any],
        parent_column: str,
        parent_id: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        column = getattr(model, parent_column)
        stmt = update(model).where(column == parent_id, model.is_active.is_(True))
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        await session.execute(stmt.values(is_active=False).execution_options(synchronize_session="fetch"))

    async def activate_exclusive(
        self,
        session: AsyncSession,
        model: Type[ModelT],
        version_id: str,
        parent_column: str,
        label: Optional[str] = None,
    ) -> ModelT:
        """
        在当前事务中激活版本并停用其兄弟版本

        Activate one version and deactivate its siblings inside the caller's
        transaction.
        """
        version = await self.get_live(session, model, version_id, label)
        parent_id = getattr(version, parent_column)
        await self.deactivate_siblings(session, model, parent_column, parent_id, exclude_id=version.id)
        version.is_active = True
        await session.flush()
        return version
