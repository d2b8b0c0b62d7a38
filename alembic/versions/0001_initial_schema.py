"""Create members and revocation_entries tables.

revocation_entries holds both per-credential revocations (looked up by
the unique credential index) and password-change cutoffs (looked up by the
subject/reason/created_at index). Rows are pruned once expires_at passes.

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="member"),
        sa.Column("organization_id", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_members_email", "members", ["email"], unique=True)
    op.create_index("ix_members_organization_id", "members", ["organization_id"])

    op.create_table(
        "revocation_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("credential", sa.Text(), nullable=False, unique=True),
        sa.Column("subject_id", sa.String(64), nullable=False),
        sa.Column("reason", sa.String(32), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_revocation_entries_subject_reason_created",
        "revocation_entries",
        ["subject_id", "reason", "created_at"],
    )
    op.create_index("ix_revocation_entries_expires_at", "revocation_entries", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_revocation_entries_expires_at", table_name="revocation_entries")
    op.drop_index(
        "ix_revocation_entries_subject_reason_created", table_name="revocation_entries"
    )
    op.drop_table("revocation_entries")
    op.drop_index("ix_members_organization_id", table_name="members")
    op.drop_index("ix_members_email", table_name="members")
    op.drop_table("members")
