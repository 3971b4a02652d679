"""Create documents table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `documents` table holding every physical document of
       every collection (profiles, organizations, services, sender-services).
How:   JSONB body on PostgreSQL, JSON elsewhere. The composite primary key
       makes a physical id unique inside its partition; a second writer of
       the same version fails with an integrity error.

Rollback: downgrade() drops the table and every stored version with it.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the documents table, its primary key and partition index."""
    op.create_table(
        "documents",
        sa.Column(
            "collection",
            sa.String(255),
            nullable=False,
            comment="Collection name, e.g. profiles or sender-services",
        ),
        sa.Column(
            "partition_key",
            sa.String(255),
            nullable=False,
            comment="Partition key value; all versions of an entity share it",
        ),
        sa.Column(
            "id",
            sa.String(255),
            nullable=False,
            comment="Physical document id, <logicalId>-<16-digit version>",
        ),
        sa.Column(
            "body",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
            comment="Document JSON without store metadata",
        ),
        sa.Column("self_link", sa.String(1024), nullable=False),
        sa.Column("ts", sa.BigInteger(), nullable=False),
        sa.Column("etag", sa.String(64), nullable=False),
        sa.PrimaryKeyConstraint("collection", "partition_key", "id", name="pk_documents"),
    )

    # Latest-version and per-recipient queries always stay inside one partition
    op.create_index(
        "idx_documents_collection_partition",
        "documents",
        ["collection", "partition_key"],
    )


def downgrade() -> None:
    """Drop the documents table. Destructive: the full version history is lost."""
    op.drop_index("idx_documents_collection_partition", table_name="documents")
    op.drop_table("documents")
