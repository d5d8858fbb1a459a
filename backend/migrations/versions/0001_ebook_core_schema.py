"""ebook core schema

Revision ID: 0001_ebook_core
Revises:
Create Date: 2026-10-16 09:00:00

Creates the draft slot, version metadata, version/media mapping, media
usage ledger, pending-deletion queue and audit log, then seeds the
'main' document slot.
"""
import uuid
from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_ebook_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    ebooks = op.create_table(
        "ebooks",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ebooks_id", "ebooks", ["id"])
    op.create_index("ix_ebooks_slug", "ebooks", ["slug"], unique=True)
    op.create_index("ix_ebooks_created_at", "ebooks", ["created_at"])

    op.create_table(
        "ebook_versions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("document_id", sa.String(length=36), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("storage_key", sa.String(length=512), nullable=False),
        sa.Column("label", sa.String(length=200), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["document_id"], ["ebooks.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_key"),
    )
    op.create_index("ix_ebook_versions_id", "ebook_versions", ["id"])
    op.create_index("ix_ebook_versions_document_id", "ebook_versions", ["document_id"])
    op.create_index("ix_ebook_versions_kind", "ebook_versions", ["kind"])
    op.create_index("ix_ebook_versions_created_at", "ebook_versions", ["created_at"])
    op.create_index("idx_ebook_versions_doc_created", "ebook_versions", ["document_id", "created_at"])

    op.create_table(
        "ebook_version_media",
        sa.Column("version_id", sa.String(length=36), nullable=False),
        sa.Column("media_key", sa.String(length=512), nullable=False),
        sa.ForeignKeyConstraint(["version_id"], ["ebook_versions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("version_id", "media_key"),
    )
    op.create_index("ix_ebook_version_media_media_key", "ebook_version_media", ["media_key"])

    op.create_table(
        "ebook_media_usage",
        sa.Column("media_key", sa.String(length=512), nullable=False),
        sa.Column("in_autosave", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("manual_refs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("published_refs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("manual_refs >= 0", name="ck_media_usage_manual_refs"),
        sa.CheckConstraint("published_refs >= 0", name="ck_media_usage_published_refs"),
        sa.PrimaryKeyConstraint("media_key"),
    )
    op.create_index("ix_ebook_media_usage_last_seen_at", "ebook_media_usage", ["last_seen_at"])

    op.create_table(
        "ebook_media_pending_deletion",
        sa.Column("media_key", sa.String(length=512), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("not_before", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("media_key"),
    )
    op.create_index(
        "ix_ebook_media_pending_deletion_not_before",
        "ebook_media_pending_deletion",
        ["not_before"],
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=512), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_cursor", "audit_logs", ["created_at", "id"])

    now = datetime.now(timezone.utc)
    op.bulk_insert(
        ebooks,
        [
            {
                "id": str(uuid.uuid4()),
                "slug": "main",
                "content": {},
                "created_at": now,
                "updated_at": now,
            }
        ],
    )


def downgrade():
    op.drop_table("audit_logs")
    op.drop_table("ebook_media_pending_deletion")
    op.drop_table("ebook_media_usage")
    op.drop_table("ebook_version_media")
    op.drop_table("ebook_versions")
    op.drop_table("ebooks")
