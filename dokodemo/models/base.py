"""Base classes for SQLAlchemy models."""

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Return current UTC datetime (naive, stored the same way in both engines)."""
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models.

    Схема создаётся миграциями (dokodemo/migrations), не через metadata.create_all().
    """

    pass


class TimestampMixin:
    """Mixin for adding created_at and updated_at timestamps.

    updated_at выставляет сервис (никогда не уменьшается), поэтому onupdate нет.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
