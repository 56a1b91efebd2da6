"""
Module: delivery_kernel.db.base
Responsibility: Declarative base for the procurement tables: UUID primary
    keys, column types for annotated attributes, constraint naming, and the
    audit columns every order-store row carries.
Architecture position: Kernel > DB.  Imported by ORM modules only.

Invariants enforced:
    - Primary keys are uuid4 values stored as 36-character strings, so the
      same schema runs on SQLite and PostgreSQL.
    - ``int`` attributes are unit quantities and map to Integer.
    - Every tracked row records the actor that created it; the actor of the
      last change is recorded through ``touch``.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, MetaData, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UUIDString(TypeDecorator):
    """UUID in Python, CHAR-like string in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        datetime: DateTime(timezone=True),
        int: Integer,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base adding who/when audit columns.

    ``created_at``/``updated_at`` are filled by the database; the actor
    columns are filled by the procurement service.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[UUID] = mapped_column()
    updated_by_id: Mapped[UUID | None] = mapped_column()

    def touch(self, actor_id: UUID) -> None:
        """Record ``actor_id`` as the last actor to change this row."""
        self.updated_by_id = actor_id
