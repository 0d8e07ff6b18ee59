"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-03-02 00:00:00.000000
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM = sa.String(length=32)
MONEY = sa.Numeric(18, 4)

FACT_KEYS: dict[str, tuple[str, ...]] = {
    "fact_campaign": ("campaign_id",),
    "fact_placement": ("campaign_id", "placement_code", "placement_norm"),
    "fact_targeting": ("campaign_id", "ad_group_id", "target_id"),
    "fact_search_term": (
        "campaign_id",
        "ad_group_id",
        "target_key",
        "customer_search_term_norm",
    ),
}


def _metric_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("impressions", sa.Integer(), nullable=True),
        sa.Column("clicks", sa.Integer(), nullable=True),
        sa.Column("spend", MONEY, nullable=True),
        sa.Column("sales", MONEY, nullable=True),
        sa.Column("orders", sa.Integer(), nullable=True),
        sa.Column("units", sa.Integer(), nullable=True),
    ]


def _name_chain_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("ad_group_id", sa.String(), nullable=False),
        sa.Column("ad_group_name_raw", sa.String(), nullable=True),
        sa.Column("ad_group_name_norm", sa.String(), nullable=True),
        sa.Column("targeting_raw", sa.String(), nullable=True),
        sa.Column("targeting_norm", sa.String(), nullable=True),
        sa.Column("match_type_raw", sa.String(), nullable=True),
        sa.Column("match_type_norm", sa.String(), nullable=True),
    ]


def _create_fact_table(name: str, *columns: sa.Column[object]) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("upload_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("exported_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("campaign_id", sa.String(), nullable=False),
        sa.Column("portfolio_id", sa.String(), nullable=True),
        sa.Column("campaign_name_raw", sa.String(), nullable=False),
        sa.Column("campaign_name_norm", sa.String(), nullable=False),
        sa.Column("portfolio_name_raw", sa.String(), nullable=True),
        sa.Column("portfolio_name_norm", sa.String(), nullable=True),
        *columns,
        *_metric_columns(),
        sa.ForeignKeyConstraint(
            ["upload_id"],
            ["upload.upload_id"],
            name=op.f(f"fk_{name}_{name}_upload_id_upload"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f(f"pk_{name}")),
        sa.UniqueConstraint(
            "account_id",
            "upload_id",
            "date",
            *FACT_KEYS[name],
            name=f"uq_{name}_natural_key",
        ),
    )


def upgrade() -> None:
    op.create_table(
        "upload",
        sa.Column("upload_id", sa.String(), nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("report_type", ENUM, nullable=False),
        sa.Column("exported_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("upload_id", name=op.f("pk_upload")),
    )
    op.create_index(op.f("ix_upload_account_id"), "upload", ["account_id"], unique=False)

    op.create_table(
        "report_raw_row",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("upload_id", sa.String(), nullable=False),
        sa.Column("row_index", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("campaign_name_raw", sa.String(), nullable=False),
        sa.Column("campaign_name_norm", sa.String(), nullable=False),
        sa.Column("portfolio_name_raw", sa.String(), nullable=True),
        sa.Column("portfolio_name_norm", sa.String(), nullable=True),
        sa.Column("ad_group_name_raw", sa.String(), nullable=True),
        sa.Column("ad_group_name_norm", sa.String(), nullable=True),
        sa.Column("targeting_raw", sa.String(), nullable=True),
        sa.Column("targeting_norm", sa.String(), nullable=True),
        sa.Column("match_type_raw", sa.String(), nullable=True),
        sa.Column("match_type_norm", sa.String(), nullable=True),
        sa.Column("customer_search_term_raw", sa.String(), nullable=True),
        sa.Column("customer_search_term_norm", sa.String(), nullable=True),
        sa.Column("placement_raw", sa.String(), nullable=True),
        sa.Column("placement_norm", sa.String(), nullable=True),
        sa.Column("placement_code", sa.String(), nullable=True),
        *_metric_columns(),
        sa.ForeignKeyConstraint(
            ["upload_id"],
            ["upload.upload_id"],
            name=op.f("fk_report_raw_row_report_raw_row_upload_id_upload"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_report_raw_row")),
        sa.UniqueConstraint("upload_id", "row_index", name="uq_report_raw_row_position"),
    )

    op.create_table(
        "bulk_snapshot",
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint("account_id", "snapshot_date", name=op.f("pk_bulk_snapshot")),
    )

    op.create_table(
        "bulk_campaign",
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("campaign_id", sa.String(), nullable=False),
        sa.Column("name_raw", sa.String(), nullable=False),
        sa.Column("name_norm", sa.String(), nullable=False),
        sa.Column("portfolio_id", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint(
            "account_id", "snapshot_date", "campaign_id", name=op.f("pk_bulk_campaign")
        ),
    )
    op.create_index(
        "ix_bulk_campaign_snapshot_name",
        "bulk_campaign",
        ["account_id", "snapshot_date", "name_norm"],
        unique=False,
    )

    op.create_table(
        "bulk_ad_group",
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("ad_group_id", sa.String(), nullable=False),
        sa.Column("campaign_id", sa.String(), nullable=False),
        sa.Column("name_raw", sa.String(), nullable=False),
        sa.Column("name_norm", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint(
            "account_id", "snapshot_date", "ad_group_id", name=op.f("pk_bulk_ad_group")
        ),
    )

    op.create_table(
        "bulk_target",
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("target_id", sa.String(), nullable=False),
        sa.Column("ad_group_id", sa.String(), nullable=False),
        sa.Column("expression_raw", sa.String(), nullable=False),
        sa.Column("expression_norm", sa.String(), nullable=False),
        sa.Column("match_type_norm", ENUM, nullable=False),
        sa.Column("is_negative", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint(
            "account_id", "snapshot_date", "target_id", name=op.f("pk_bulk_target")
        ),
    )

    op.create_table(
        "bulk_portfolio",
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("portfolio_id", sa.String(), nullable=False),
        sa.Column("name_raw", sa.String(), nullable=False),
        sa.Column("name_norm", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint(
            "account_id", "snapshot_date", "portfolio_id", name=op.f("pk_bulk_portfolio")
        ),
    )

    op.create_table(
        "manual_name_override",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("entity_level", ENUM, nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("name_norm", sa.String(), nullable=False),
        sa.Column("valid_from", sa.Date(), nullable=True),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_manual_name_override")),
    )
    op.create_index(
        op.f("ix_manual_name_override_account_id"),
        "manual_name_override",
        ["account_id"],
        unique=False,
    )

    op.create_table(
        "category_id_map",
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("category_name_norm", sa.String(), nullable=False),
        sa.Column("category_id", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint(
            "account_id", "category_name_norm", name=op.f("pk_category_id_map")
        ),
    )

    _create_fact_table("fact_campaign")
    _create_fact_table(
        "fact_placement",
        sa.Column("placement_raw", sa.String(), nullable=True),
        sa.Column("placement_norm", sa.String(), nullable=False),
        sa.Column("placement_code", sa.String(), nullable=False),
    )
    _create_fact_table(
        "fact_targeting",
        *_name_chain_columns(),
        sa.Column("target_id", sa.String(), nullable=False),
    )
    _create_fact_table(
        "fact_search_term",
        *_name_chain_columns(),
        sa.Column("target_id", sa.String(), nullable=True),
        sa.Column("target_key", sa.String(), nullable=False),
        sa.Column("customer_search_term_raw", sa.String(), nullable=True),
        sa.Column("customer_search_term_norm", sa.String(), nullable=False),
    )

    op.create_table(
        "mapping_issue",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("upload_id", sa.String(), nullable=False),
        sa.Column("report_type", ENUM, nullable=False),
        sa.Column("entity_level", ENUM, nullable=False),
        sa.Column("issue_type", ENUM, nullable=False),
        sa.Column("key_json", sa.Text(), nullable=False),
        sa.Column("candidates_json", sa.Text(), nullable=True),
        sa.Column("row_count", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["upload_id"],
            ["upload.upload_id"],
            name=op.f("fk_mapping_issue_mapping_issue_upload_id_upload"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_mapping_issue")),
        sa.UniqueConstraint(
            "upload_id", "report_type", "entity_level", "key_json", name="uq_mapping_issue_key"
        ),
    )


def downgrade() -> None:
    op.drop_table("mapping_issue")
    for name in reversed(FACT_KEYS):
        op.drop_table(name)
    op.drop_table("category_id_map")
    op.drop_index(op.f("ix_manual_name_override_account_id"), table_name="manual_name_override")
    op.drop_table("manual_name_override")
    op.drop_table("bulk_portfolio")
    op.drop_table("bulk_target")
    op.drop_table("bulk_ad_group")
    op.drop_index("ix_bulk_campaign_snapshot_name", table_name="bulk_campaign")
    op.drop_table("bulk_campaign")
    op.drop_table("bulk_snapshot")
    op.drop_table("report_raw_row")
    op.drop_index(op.f("ix_upload_account_id"), table_name="upload")
    op.drop_table("upload")
