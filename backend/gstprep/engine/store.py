"""
Record store over a SQLModel session.

Every call is one committed round trip scoped by a FilingContext. A failing
call rolls back its own work only, so a multi-step action (delete then insert)
that fails midway stays half-applied; callers must re-run the whole action.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence, Type, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, col, func, select

from gstprep.core.errors import BackendError, RecordNotFound
from gstprep.engine.context import FilingContext

M = TypeVar("M", bound=SQLModel)


class RecordStore:
    def __init__(self, session: Session):
        self.session = session

    # ── helpers ──────────────────────────────────────────────────────────────

    def _scoped(self, stmt, model: Type[M], ctx: FilingContext, filters: dict):
        for name, value in {**ctx.scope(), **filters}.items():
            stmt = stmt.where(getattr(model, name) == value)
        return stmt

    def _fail(self, action: str, model: Type[SQLModel], exc: Exception) -> BackendError:
        self.session.rollback()
        logger.error(f"store: {action} on {model.__tablename__} failed: {exc}")
        return BackendError(f"{action} {model.__tablename__} failed: {exc}")

    # ── reads ────────────────────────────────────────────────────────────────

    def select(
        self,
        model: Type[M],
        ctx: FilingContext,
        order_by: Optional[str] = None,
        **filters: Any,
    ) -> list[M]:
        stmt = self._scoped(select(model), model, ctx, filters)
        if order_by:
            stmt = stmt.order_by(col(getattr(model, order_by)))
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as exc:
            raise self._fail("select", model, exc)

    def first(self, model: Type[M], ctx: FilingContext, **filters: Any) -> Optional[M]:
        rows = self.select(model, ctx, order_by="id", **filters)
        return rows[-1] if rows else None

    def get(self, model: Type[M], ctx: FilingContext, record_id: int) -> M:
        rows = self.select(model, ctx, id=record_id)
        if not rows:
            raise RecordNotFound(f"{model.__tablename__} record {record_id} not found")
        return rows[0]

    def count(self, model: Type[SQLModel], ctx: FilingContext, **filters: Any) -> int:
        stmt = self._scoped(select(func.count()).select_from(model), model, ctx, filters)
        try:
            return int(self.session.exec(stmt).one())
        except SQLAlchemyError as exc:
            raise self._fail("count", model, exc)

    # ── writes ───────────────────────────────────────────────────────────────

    def insert(self, obj: M) -> M:
        return self.insert_many([obj])[0]

    def insert_many(self, objs: Sequence[M]) -> list[M]:
        if not objs:
            return []
        model = type(objs[0])
        try:
            for obj in objs:
                self.session.add(obj)
            self.session.commit()
            for obj in objs:
                self.session.refresh(obj)
        except SQLAlchemyError as exc:
            raise self._fail("insert", model, exc)
        logger.debug(f"store: inserted {len(objs)} row(s) into {model.__tablename__}")
        return list(objs)

    def update(self, model: Type[M], ctx: FilingContext, record_id: int, values: dict) -> M:
        existing = self.get(model, ctx, record_id)
        return self._apply(existing, values, "update")

    def upsert(
        self,
        model: Type[M],
        ctx: FilingContext,
        values: dict,
        key: Iterable[str] = (),
    ) -> M:
        """Update the row matching ctx + key fields, inserting it if absent."""
        key_filters = {k: values[k] for k in key}
        existing = self.first(model, ctx, **key_filters)
        if existing is not None:
            return self._apply(existing, values, "upsert")
        return self.insert(model(**ctx.scope(), **values))

    def upsert_many(
        self,
        model: Type[M],
        ctx: FilingContext,
        rows: Sequence[dict],
        key: Iterable[str],
    ) -> list[M]:
        key = tuple(key)
        return [self.upsert(model, ctx, values, key=key) for values in rows]

    def delete(self, model: Type[SQLModel], ctx: FilingContext, **filters: Any) -> int:
        stmt = self._scoped(select(model), model, ctx, filters)
        try:
            rows = self.session.exec(stmt).all()
            for row in rows:
                self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", model, exc)
        logger.debug(f"store: deleted {len(rows)} row(s) from {model.__tablename__}")
        return len(rows)

    def _apply(self, obj: M, values: dict, action: str) -> M:
        model = type(obj)
        try:
            for k, v in values.items():
                setattr(obj, k, v)
            if hasattr(obj, "updated_at"):
                obj.updated_at = datetime.utcnow()
            self.session.add(obj)
            self.session.commit()
            self.session.refresh(obj)
        except SQLAlchemyError as exc:
            raise self._fail(action, model, exc)
        return obj
