"""SQLAlchemy Core table metadata for uploads, inventory snapshots, facts and issues."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

from adrecon.domain.model import EntityLevel, IssueType, MatchType, ReportType
from adrecon.domain.reconciliation import natural_key_columns

if TYPE_CHECKING:
    from enum import StrEnum

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

ENUM_LENGTH: Final[int] = 32
MONEY = Numeric(18, 4)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum(enum_cls: type[StrEnum]) -> Enum:
    """Store enum *values* as plain strings."""

    return Enum(
        enum_cls,
        native_enum=False,
        length=ENUM_LENGTH,
        values_callable=lambda members: [member.value for member in members],
    )


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Uploads ---------------------------------------------------------------------

upload_table = Table(
    "upload",
    metadata,
    Column("upload_id", String, primary_key=True),
    Column("account_id", String, nullable=False, index=True),
    Column("report_type", _enum(ReportType), nullable=False),
    Column("exported_at", UTCDateTime, nullable=True),
)


def _metric_columns() -> list[Column[Any]]:
    return [
        Column("impressions", Integer),
        Column("clicks", Integer),
        Column("spend", MONEY),
        Column("sales", MONEY),
        Column("orders", Integer),
        Column("units", Integer),
    ]


report_raw_row_table = Table(
    "report_raw_row",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "upload_id",
        String,
        ForeignKey("upload.upload_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("row_index", Integer, nullable=False),
    Column("date", Date, nullable=False),
    Column("campaign_name_raw", String, nullable=False),
    Column("campaign_name_norm", String, nullable=False),
    Column("portfolio_name_raw", String),
    Column("portfolio_name_norm", String),
    Column("ad_group_name_raw", String),
    Column("ad_group_name_norm", String),
    Column("targeting_raw", String),
    Column("targeting_norm", String),
    Column("match_type_raw", String),
    Column("match_type_norm", String),
    Column("customer_search_term_raw", String),
    Column("customer_search_term_norm", String),
    Column("placement_raw", String),
    Column("placement_norm", String),
    Column("placement_code", String),
    *_metric_columns(),
    UniqueConstraint("upload_id", "row_index", name="uq_report_raw_row_position"),
)

# Inventory snapshots ---------------------------------------------------------

bulk_snapshot_table = Table(
    "bulk_snapshot",
    metadata,
    Column("account_id", String, nullable=False),
    Column("snapshot_date", Date, nullable=False),
    PrimaryKeyConstraint("account_id", "snapshot_date"),
)

bulk_campaign_table = Table(
    "bulk_campaign",
    metadata,
    Column("account_id", String, nullable=False),
    Column("snapshot_date", Date, nullable=False),
    Column("campaign_id", String, nullable=False),
    Column("name_raw", String, nullable=False),
    Column("name_norm", String, nullable=False),
    Column("portfolio_id", String),
    PrimaryKeyConstraint("account_id", "snapshot_date", "campaign_id"),
    Index("ix_bulk_campaign_snapshot_name", "account_id", "snapshot_date", "name_norm"),
)

bulk_ad_group_table = Table(
    "bulk_ad_group",
    metadata,
    Column("account_id", String, nullable=False),
    Column("snapshot_date", Date, nullable=False),
    Column("ad_group_id", String, nullable=False),
    Column("campaign_id", String, nullable=False),
    Column("name_raw", String, nullable=False),
    Column("name_norm", String, nullable=False),
    PrimaryKeyConstraint("account_id", "snapshot_date", "ad_group_id"),
)

bulk_target_table = Table(
    "bulk_target",
    metadata,
    Column("account_id", String, nullable=False),
    Column("snapshot_date", Date, nullable=False),
    Column("target_id", String, nullable=False),
    Column("ad_group_id", String, nullable=False),
    Column("expression_raw", String, nullable=False),
    Column("expression_norm", String, nullable=False),
    Column("match_type_norm", _enum(MatchType), nullable=False),
    Column("is_negative", Boolean, nullable=False, default=False),
    PrimaryKeyConstraint("account_id", "snapshot_date", "target_id"),
)

bulk_portfolio_table = Table(
    "bulk_portfolio",
    metadata,
    Column("account_id", String, nullable=False),
    Column("snapshot_date", Date, nullable=False),
    Column("portfolio_id", String, nullable=False),
    Column("name_raw", String, nullable=False),
    Column("name_norm", String, nullable=False),
    PrimaryKeyConstraint("account_id", "snapshot_date", "portfolio_id"),
)

# Account-wide naming tables ---------------------------------------------------

manual_name_override_table = Table(
    "manual_name_override",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", String, nullable=False, index=True),
    Column("entity_level", _enum(EntityLevel), nullable=False),
    Column("entity_id", String, nullable=False),
    Column("name_norm", String, nullable=False),
    Column("valid_from", Date),
    Column("valid_to", Date),
)

category_id_map_table = Table(
    "category_id_map",
    metadata,
    Column("account_id", String, nullable=False),
    Column("category_name_norm", String, nullable=False),
    Column("category_id", String, nullable=False),
    PrimaryKeyConstraint("account_id", "category_name_norm"),
)

# Name history tables are optional; deployments without them get empty history.
campaign_name_history_table = Table(
    "campaign_name_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", String, nullable=False, index=True),
    Column("campaign_id", String, nullable=False),
    Column("name_norm", String, nullable=False),
    Column("valid_from", Date, nullable=False),
    Column("valid_to", Date),
)

ad_group_name_history_table = Table(
    "ad_group_name_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", String, nullable=False, index=True),
    Column("ad_group_id", String, nullable=False),
    Column("campaign_id", String, nullable=False),
    Column("name_norm", String, nullable=False),
    Column("valid_from", Date, nullable=False),
    Column("valid_to", Date),
)

# Facts -----------------------------------------------------------------------


def _fact_table(name: str, report_type: ReportType, *columns: Column[Any]) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("account_id", String, nullable=False),
        Column(
            "upload_id",
            String,
            ForeignKey("upload.upload_id", ondelete="CASCADE"),
            nullable=False,
        ),
        Column("date", Date, nullable=False),
        Column("exported_at", UTCDateTime, nullable=False),
        Column("campaign_id", String, nullable=False),
        Column("portfolio_id", String),
        Column("campaign_name_raw", String, nullable=False),
        Column("campaign_name_norm", String, nullable=False),
        Column("portfolio_name_raw", String),
        Column("portfolio_name_norm", String),
        *columns,
        *_metric_columns(),
        UniqueConstraint(*natural_key_columns(report_type), name=f"uq_{name}_natural_key"),
    )


def _name_chain_columns() -> list[Column[Any]]:
    return [
        Column("ad_group_id", String, nullable=False),
        Column("ad_group_name_raw", String),
        Column("ad_group_name_norm", String),
        Column("targeting_raw", String),
        Column("targeting_norm", String),
        Column("match_type_raw", String),
        Column("match_type_norm", String),
    ]


fact_campaign_table = _fact_table("fact_campaign", ReportType.CAMPAIGN)

fact_placement_table = _fact_table(
    "fact_placement",
    ReportType.PLACEMENT,
    Column("placement_raw", String),
    Column("placement_norm", String, nullable=False),
    Column("placement_code", String, nullable=False),
)

fact_targeting_table = _fact_table(
    "fact_targeting",
    ReportType.TARGETING,
    *_name_chain_columns(),
    Column("target_id", String, nullable=False),
)

fact_search_term_table = _fact_table(
    "fact_search_term",
    ReportType.SEARCH_TERM,
    *_name_chain_columns(),
    Column("target_id", String),
    Column("target_key", String, nullable=False),
    Column("customer_search_term_raw", String),
    Column("customer_search_term_norm", String, nullable=False),
)

FACT_TABLES: Final[dict[ReportType, Table]] = {
    ReportType.CAMPAIGN: fact_campaign_table,
    ReportType.PLACEMENT: fact_placement_table,
    ReportType.TARGETING: fact_targeting_table,
    ReportType.SEARCH_TERM: fact_search_term_table,
}

# Issues ----------------------------------------------------------------------

mapping_issue_table = Table(
    "mapping_issue",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", String, nullable=False),
    Column(
        "upload_id",
        String,
        ForeignKey("upload.upload_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("report_type", _enum(ReportType), nullable=False),
    Column("entity_level", _enum(EntityLevel), nullable=False),
    Column("issue_type", _enum(IssueType), nullable=False),
    Column("key_json", Text, nullable=False),
    Column("candidates_json", Text),
    Column("row_count", Integer, nullable=False),
    UniqueConstraint(
        "upload_id", "report_type", "entity_level", "key_json", name="uq_mapping_issue_key"
    ),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
