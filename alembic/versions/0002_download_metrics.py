"""Add download metrics table

Revision ID: 0002_download_metrics
Revises: 0001_initial
Create Date: 2026-10-12 16:40:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_download_metrics"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "download_metrics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("release_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("platform", sa.Enum("ios", "android", name="platform"), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["release_id"], ["releases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("release_id", "platform", name="uq_download_metric_release_platform"),
    )
    op.create_index(
        op.f("ix_download_metrics_release_id"), "download_metrics", ["release_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_download_metrics_release_id"), table_name="download_metrics")
    op.drop_table("download_metrics")
    op.execute("DROP TYPE IF EXISTS platform")
