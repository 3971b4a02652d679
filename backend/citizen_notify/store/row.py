"""
Citizen Notify — Document SQLAlchemy Model
==========================================

What:  ORM model for the `documents` table, which holds every physical
       document of every collection.
Who:   Used only by SqlDocumentStore and Alembic.

Table Design:
    - (collection, partition_key, id) primary key: a physical document id is
      unique inside its partition, so the second writer of the same version
      of a logical entity fails with an integrity error (→ ConflictError).
    - body: the document JSON exactly as stored (JSONB on PostgreSQL).
    - self_link / ts / etag: store-assigned metadata, echoed back as
      `_self`, `_ts`, `_etag`.
    - Rows are never updated or deleted by the application.
"""

from sqlalchemy import JSON, BigInteger, Index, PrimaryKeyConstraint, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from citizen_notify.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in development and tests)
DocumentBody = JSON().with_variant(JSONB(), "postgresql")


class DocumentRow(Base):
    """One immutable physical document."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Collection name, e.g. profiles or sender-services",
    )

    partition_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Partition key value; all versions of an entity share it",
    )

    id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Physical document id, <logicalId>-<16-digit version>",
    )

    body: Mapped[dict] = mapped_column(
        DocumentBody,
        nullable=False,
        comment="Document JSON without store metadata",
    )

    self_link: Mapped[str] = mapped_column(String(1024), nullable=False)

    # Epoch seconds, as DocumentDB's _ts
    ts: Mapped[int] = mapped_column(BigInteger, nullable=False)

    etag: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("collection", "partition_key", "id", name="pk_documents"),
        Index("idx_documents_collection_partition", "collection", "partition_key"),
    )

    def to_document(self) -> dict:
        """Stored body plus the store metadata fields."""
        return {
            **self.body,
            "id": self.id,
            "_self": self.self_link,
            "_ts": self.ts,
            "_etag": self.etag,
        }

    def __repr__(self) -> str:
        return (
            f"<DocumentRow(collection='{self.collection}', "
            f"partition_key='{self.partition_key}', id='{self.id}')>"
        )
