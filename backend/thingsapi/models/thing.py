"""
Things API: Thing SQLAlchemy Model
====================================

What:  ORM model representing the `things` table.
Who:   Used by ThingService for CRUD operations and by alembic for schema management.

Table Design:
    - Integer autoincrement primary key: assigned by the database, never
      changed afterwards (request bodies cannot set it)
    - name: required domain field
    - description: optional domain field
    - created_at / updated_at: UTC with timezone
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from thingsapi.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Thing(Base):
    """
    A named resource exposed at /api/things.

    Lifecycle:
        1. Created by POST /api/things
        2. Read by GET /api/things and GET /api/things/{id}
        3. Mutated by PATCH/PUT /api/things/{id} (updated_at bumped)
        4. Removed by DELETE /api/things/{id}
    """

    __tablename__ = "things"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Unique identifier, immutable once assigned",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name of the thing",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Free-form description",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    # Python-side defaults win on ORM inserts, so the values are known after
    # flush without a refresh; server defaults cover raw SQL inserts.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this thing was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this thing was last changed (UTC)",
    )

    def __repr__(self) -> str:
        return f"<Thing(id={self.id}, name={self.name!r})>"
