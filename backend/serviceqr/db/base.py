"""SQLAlchemy declarative base and common utilities."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from serviceqr.core.clock import utcnow


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class CreatedAtMixin:
    """Mixin for an insert timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin for created_at and updated_at timestamps.

    No version column; concurrent updates to the same row are
    last-write-wins.
    """

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
