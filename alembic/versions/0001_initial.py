"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-05 10:12:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_ota_settings",
        sa.Column("user_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("ota_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "releases",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("runtime_version", sa.String(length=64), nullable=False),
        sa.Column("version", sa.String(length=64), nullable=True),
        sa.Column("path", sa.String(length=255), nullable=False),
        sa.Column("commit_hash", sa.String(length=64), nullable=True),
        sa.Column("commit_message", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_releases_runtime_version"), "releases", ["runtime_version"], unique=False)
    op.create_index(
        "ix_releases_runtime_active_created",
        "releases",
        ["runtime_version", "is_active", "created_at"],
        unique=False,
    )

    op.create_table(
        "bundles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("release_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("hash", sa.String(length=128), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["release_id"], ["releases.id"], name="fk_bundles_release_id_releases"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("release_id", name="uq_bundles_release_id"),
    )


def downgrade() -> None:
    op.drop_table("bundles")
    op.drop_index("ix_releases_runtime_active_created", table_name="releases")
    op.drop_index(op.f("ix_releases_runtime_version"), table_name="releases")
    op.drop_table("releases")
    op.drop_table("user_ota_settings")
