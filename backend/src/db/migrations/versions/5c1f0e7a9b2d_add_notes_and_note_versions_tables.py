"""
Add notes and note_versions tables.

Revision ID: 5c1f0e7a9b2d
Revises:
Create Date: 2026-10-17 09:12:41.503114
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1f0e7a9b2d"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notes_updated_at"), "notes", ["updated_at"], unique=False)

    op.create_table(
        "note_versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("note_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "change_description",
            sa.String(length=50),
            nullable=True,
            comment="ChangeDescription value, free text for older rows",
        ),
        sa.Column("custom_name", sa.String(length=200), nullable=True),
        sa.Column("is_forced_save", sa.Boolean(), nullable=False),
        sa.Column("ai_provider", sa.String(length=50), nullable=True),
        sa.Column("ai_model", sa.String(length=100), nullable=True),
        sa.Column("ai_duration_ms", sa.Integer(), nullable=True),
        sa.Column(
            "diff_ops_json",
            sa.Text(),
            nullable=True,
            comment="Edit operations from the previous version (see services.edit_ops)",
        ),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_note_versions_note_id_created_at",
        "note_versions",
        ["note_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_note_versions_note_id_created_at", table_name="note_versions")
    op.drop_table("note_versions")
    op.drop_index(op.f("ix_notes_updated_at"), table_name="notes")
    op.drop_table("notes")
