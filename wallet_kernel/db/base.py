"""
Module: wallet_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models, plus the
    type annotation map that keeps column types consistent.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Money precision: type_annotation_map maps Python Decimal to MinorUnits,
      so every Mapped[Decimal] column is an exact integer count of cents.
      NEVER use float for monetary amounts.
    - Timestamps: datetime maps to UTCDateTime, which always hands back a
      timezone-aware UTC datetime even on SQLite.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from wallet_kernel.db.types import MinorUnits


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as naive UTC.

    Contract:
        SQLite drops tzinfo on round trip.  Values are normalised to UTC on
        the way in and re-tagged as UTC on the way out.

    Guarantees:
        - process_bind_param: aware datetime -> naive UTC datetime.
        - process_result_value: naive datetime -> aware UTC datetime.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Naive datetime passed to a UTCDateTime column")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to MinorUnits (integer cents on disk).
        - datetime maps to UTCDateTime -- always timezone-aware.
        - int maps to Integer so SQLite INTEGER PRIMARY KEY stays a rowid alias.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: MinorUnits(),
        datetime: UTCDateTime(),
        int: Integer,
    }
