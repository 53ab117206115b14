"""
Sites API — Site SQLAlchemy Model
===================================

What:  ORM model representing the `sites` table.
Why:   Maps Python objects to database rows for type-safe database operations.
Who:   Used by SiteService for CRUD operations and by initialize_schema()
       to create the table.

Table Design Rationale:
    - UUID primary key: assigned by the application, rendered as a string in
      JSON (`_id`), portable across PostgreSQL and SQLite via sqlalchemy.Uuid
    - name / description / town: free text, matched case-insensitively by the
      list filters
    - year: integer, matched by equality
    - province_or_territory_code: short code such as "ON" or "BC"
    - created_at: UTC with timezone; gives list pages a stable order
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Site(Base):
    """
    Represents a site record.

    Lifecycle:
        1. Created by POST /api/sites (id and created_at assigned here)
        2. Optionally updated field-by-field by PUT /api/sites/{id}
        3. Deleted by DELETE /api/sites/{id}

    Query Patterns:
        - Filtered page: WHERE ... ORDER BY created_at, id OFFSET :skip LIMIT :n
        - Single site:   WHERE id = :uuid (primary key lookup)
    """

    __tablename__ = "sites"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    town: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    province_or_territory_code: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        comment="Two-letter province or territory code, e.g. ON",
    )

    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When this site was created (UTC)",
    )

    # ── Indexes ───────────────────────────────────────────────────────────
    # Listing orders by created_at; year and province are the equality filters
    __table_args__ = (
        Index("idx_sites_created_at", "created_at"),
        Index("idx_sites_year", "year"),
        Index("idx_sites_province", "province_or_territory_code"),
    )

    def __repr__(self) -> str:
        return f"<Site(id={self.id}, name='{self.name}')>"
