"""Declarative base for SQLAlchemy models."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from gateway.utils.datetime import utc_now


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """UUID string primary keys; every ``datetime`` column is timezone-aware."""

    type_annotation_map = {datetime: DateTime(timezone=True)}

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)


__all__ = ["Base", "CreatedAtMixin", "new_id"]
