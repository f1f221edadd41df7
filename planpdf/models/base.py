"""
Base model classes for PlanPDF.

Provides SQLAlchemy declarative base and shared mixins.
"""
import enum
from datetime import datetime
from typing import Callable
from sqlalchemy import DateTime, String, Enum as SQLEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class LenientEnum(TypeDecorator):
    """
    VARCHAR column read back through a parse function.

    Rows written by other tools may hold values outside the enum; parse
    maps those to a member instead of failing the load.
    """
    impl = String(32)
    cache_ok = True

    def __init__(self, parse: Callable[[str | None], enum.Enum]):
        super().__init__()
        self.parse = parse

    def process_bind_param(self, value, dialect):
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        return self.parse(value)


def enum_column(enum_cls: type[enum.Enum], parse: Callable[[str | None], enum.Enum] | None = None):
    """
    VARCHAR-backed enum column that stores member values, not names.

    With parse, unknown stored values are mapped through it on load.
    """
    if parse is not None:
        return LenientEnum(parse)
    return SQLEnum(
        enum_cls,
        native_enum=False,
        create_constraint=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamps to models.

    Uses server-side defaults for automatic timestamp management.
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
