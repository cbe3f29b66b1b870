"""Job metadata schema baseline

Revision ID: 20261018_01
Revises: None
Create Date: 2026-10-18
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "job_series",
        sa.Column("series_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("user_identity", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_job_series_user_identity", "job_series", ["user_identity"])

    op.create_table(
        "job",
        sa.Column("job_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column(
            "series_id",
            sa.BigInteger(),
            sa.ForeignKey("job_series.series_id", name="fk_job_series_id"),
            nullable=False,
        ),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("instance_reference", sa.Text(), nullable=True),
        sa.Column("output_location", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("submitted_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('Pending', 'Active', 'Done', 'Failed', 'Cancelled')",
            name="ck_job_status",
        ),
    )
    op.create_index("ix_job_series_id", "job", ["series_id"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_job_series_id", table_name="job")
    op.drop_table("job")
    op.drop_index("ix_job_series_user_identity", table_name="job_series")
    op.drop_table("job_series")
