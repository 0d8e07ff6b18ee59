"""campaign and ad group name history

Revision ID: 0002
Revises: 0001
Create Date: 2026-03-09 00:00:00.000000
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "campaign_name_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("campaign_id", sa.String(), nullable=False),
        sa.Column("name_norm", sa.String(), nullable=False),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_campaign_name_history")),
    )
    op.create_index(
        op.f("ix_campaign_name_history_account_id"),
        "campaign_name_history",
        ["account_id"],
        unique=False,
    )

    op.create_table(
        "ad_group_name_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("ad_group_id", sa.String(), nullable=False),
        sa.Column("campaign_id", sa.String(), nullable=False),
        sa.Column("name_norm", sa.String(), nullable=False),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ad_group_name_history")),
    )
    op.create_index(
        op.f("ix_ad_group_name_history_account_id"),
        "ad_group_name_history",
        ["account_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_ad_group_name_history_account_id"), table_name="ad_group_name_history"
    )
    op.drop_table("ad_group_name_history")
    op.drop_index(
        op.f("ix_campaign_name_history_account_id"), table_name="campaign_name_history"
    )
    op.drop_table("campaign_name_history")
