"""
SQLAlchemy model for the `documents` table.

Every collection (projects, feedback, contact_requests, past_projects)
lives in this one table as schemaless JSONB, keyed by (collection, id).

Design notes:
  • The composite primary key is what makes INSERT … ON CONFLICT DO NOTHING
    an atomic create-if-absent — project tokens rely on it for uniqueness.
  • Ordering fields (created_at, completed_at) are kept inside `data` as
    epoch milliseconds so queries can sort on them uniformly.
"""

import datetime

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Document(Base):
    """One record in a named collection."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(
        String(64), primary_key=True,
    )
    id: Mapped[str] = mapped_column(
        String(255), primary_key=True,
    )
    data: Mapped[dict] = mapped_column(
        JSONB, nullable=False,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_documents_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.id}>"
