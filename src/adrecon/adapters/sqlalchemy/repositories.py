"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import json
from itertools import batched
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from adrecon.adapters.sqlalchemy.mappings import (
    FACT_TABLES,
    ad_group_name_history_table,
    bulk_ad_group_table,
    bulk_campaign_table,
    bulk_portfolio_table,
    bulk_snapshot_table,
    bulk_target_table,
    campaign_name_history_table,
    category_id_map_table,
    manual_name_override_table,
    mapping_issue_table,
    report_raw_row_table,
    upload_table,
)
from adrecon.config.mapping import DEFAULT_READ_CHUNK_SIZE
from adrecon.domain.model import (
    AdGroup,
    Campaign,
    CategoryMapping,
    EntityLevel,
    InventorySnapshot,
    ManualOverride,
    MappingIssue,
    NameHistoryRecord,
    Portfolio,
    RawReportRow,
    ReportMetrics,
    ReportType,
    Target,
    Upload,
)
from adrecon.domain.ports import StoreWriteError
from adrecon.domain.reconciliation import natural_key_columns

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date

    from sqlalchemy import Row, Table
    from sqlalchemy.orm import Session

    from adrecon.domain.model import MappedFactRow


class SqlAlchemyInventoryRepository:
    def __init__(self, session: Session, *, read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE) -> None:
        self.session = session
        self.read_chunk_size = read_chunk_size

    def add(self, entity: InventorySnapshot) -> None:
        """Store the snapshot's entities; naming tables are written separately."""

        scope = {"account_id": entity.account_id, "snapshot_date": entity.snapshot_date}
        self.session.execute(bulk_snapshot_table.insert().values(**scope))
        self._insert_many(
            bulk_campaign_table,
            [
                {
                    **scope,
                    "campaign_id": campaign.campaign_id,
                    "name_raw": campaign.name_raw,
                    "name_norm": campaign.name_norm,
                    "portfolio_id": campaign.portfolio_id,
                }
                for campaign in entity.campaigns
            ],
        )
        self._insert_many(
            bulk_ad_group_table,
            [
                {
                    **scope,
                    "ad_group_id": ad_group.ad_group_id,
                    "campaign_id": ad_group.campaign_id,
                    "name_raw": ad_group.name_raw,
                    "name_norm": ad_group.name_norm,
                }
                for ad_group in entity.ad_groups
            ],
        )
        self._insert_many(
            bulk_target_table,
            [
                {
                    **scope,
                    "target_id": target.target_id,
                    "ad_group_id": target.ad_group_id,
                    "expression_raw": target.expression_raw,
                    "expression_norm": target.expression_norm,
                    "match_type_norm": target.match_type_norm,
                    "is_negative": target.is_negative,
                }
                for target in entity.targets
            ],
        )
        self._insert_many(
            bulk_portfolio_table,
            [
                {
                    **scope,
                    "portfolio_id": portfolio.portfolio_id,
                    "name_raw": portfolio.name_raw,
                    "name_norm": portfolio.name_norm,
                }
                for portfolio in entity.portfolios
            ],
        )

    def add_overrides(self, account_id: str, overrides: Iterable[ManualOverride]) -> None:
        self._insert_many(
            manual_name_override_table,
            [
                {
                    "account_id": account_id,
                    "entity_level": override.entity_level,
                    "entity_id": override.entity_id,
                    "name_norm": override.name_norm,
                    "valid_from": override.valid_from,
                    "valid_to": override.valid_to,
                }
                for override in overrides
            ],
        )

    def add_history(self, account_id: str, records: Iterable[NameHistoryRecord]) -> None:
        campaigns: list[dict[str, Any]] = []
        ad_groups: list[dict[str, Any]] = []
        for record in records:
            window = {
                "account_id": account_id,
                "name_norm": record.name_norm,
                "valid_from": record.valid_from,
                "valid_to": record.valid_to,
            }
            if record.entity_level is EntityLevel.CAMPAIGN:
                campaigns.append({**window, "campaign_id": record.entity_id})
            elif record.entity_level is EntityLevel.AD_GROUP:
                if record.parent_id is None:
                    raise ValueError(
                        f"Ad group history for {record.entity_id!r} needs its campaign as parent_id"
                    )
                ad_groups.append(
                    {**window, "ad_group_id": record.entity_id, "campaign_id": record.parent_id}
                )
            else:
                raise ValueError(f"No name history is kept for {record.entity_level} entities")
        self._insert_many(campaign_name_history_table, campaigns)
        self._insert_many(ad_group_name_history_table, ad_groups)

    def replace_history(self, account_id: str, records: Iterable[NameHistoryRecord]) -> None:
        for table in (campaign_name_history_table, ad_group_name_history_table):
            self.session.execute(delete(table).where(table.c.account_id == account_id))
        self.add_history(account_id, records)

    def add_category_mappings(self, account_id: str, mappings: Iterable[CategoryMapping]) -> None:
        self._insert_many(
            category_id_map_table,
            [
                {
                    "account_id": account_id,
                    "category_name_norm": mapping.category_name_norm,
                    "category_id": mapping.category_id,
                }
                for mapping in mappings
            ],
        )

    def snapshot_dates(self, account_id: str) -> list[date]:
        stmt = (
            select(bulk_snapshot_table.c.snapshot_date)
            .where(bulk_snapshot_table.c.account_id == account_id)
            .order_by(bulk_snapshot_table.c.snapshot_date)
        )
        return list(self.session.execute(stmt).scalars())

    def count_campaign_matches(
        self,
        account_id: str,
        snapshot_date: date,
        names: Iterable[str],
    ) -> int:
        matched: set[str] = set()
        for chunk in batched(sorted(set(names)), self.read_chunk_size):
            stmt = (
                select(bulk_campaign_table.c.name_norm)
                .distinct()
                .where(bulk_campaign_table.c.account_id == account_id)
                .where(bulk_campaign_table.c.snapshot_date == snapshot_date)
                .where(bulk_campaign_table.c.name_norm.in_(chunk))
            )
            matched.update(self.session.execute(stmt).scalars())
        return len(matched)

    def load_snapshot(self, account_id: str, snapshot_date: date) -> InventorySnapshot:
        return InventorySnapshot(
            account_id=account_id,
            snapshot_date=snapshot_date,
            campaigns=tuple(
                Campaign(
                    campaign_id=row.campaign_id,
                    name_raw=row.name_raw,
                    name_norm=row.name_norm,
                    portfolio_id=row.portfolio_id,
                )
                for row in self._snapshot_rows(bulk_campaign_table, account_id, snapshot_date)
            ),
            ad_groups=tuple(
                AdGroup(
                    ad_group_id=row.ad_group_id,
                    campaign_id=row.campaign_id,
                    name_raw=row.name_raw,
                    name_norm=row.name_norm,
                )
                for row in self._snapshot_rows(bulk_ad_group_table, account_id, snapshot_date)
            ),
            targets=tuple(
                Target(
                    target_id=row.target_id,
                    ad_group_id=row.ad_group_id,
                    expression_raw=row.expression_raw,
                    expression_norm=row.expression_norm,
                    match_type_norm=row.match_type_norm,
                    is_negative=row.is_negative,
                )
                for row in self._snapshot_rows(bulk_target_table, account_id, snapshot_date)
            ),
            portfolios=tuple(
                Portfolio(
                    portfolio_id=row.portfolio_id,
                    name_raw=row.name_raw,
                    name_norm=row.name_norm,
                )
                for row in self._snapshot_rows(bulk_portfolio_table, account_id, snapshot_date)
            ),
            overrides=self._overrides(account_id),
            history=self._history(account_id),
            category_mappings=tuple(
                CategoryMapping(row.category_name_norm, row.category_id)
                for row in self._account_rows(category_id_map_table, account_id)
            ),
        )

    def _snapshot_rows(
        self, table: Table, account_id: str, snapshot_date: date
    ) -> Sequence[Row[Any]]:
        stmt = (
            select(table)
            .where(table.c.account_id == account_id)
            .where(table.c.snapshot_date == snapshot_date)
        )
        return self.session.execute(stmt).all()

    def _account_rows(self, table: Table, account_id: str) -> Sequence[Row[Any]]:
        stmt = select(table).where(table.c.account_id == account_id)
        return self.session.execute(stmt).all()

    def _overrides(self, account_id: str) -> tuple[ManualOverride, ...]:
        return tuple(
            ManualOverride(
                entity_level=row.entity_level,
                entity_id=row.entity_id,
                name_norm=row.name_norm,
                valid_from=row.valid_from,
                valid_to=row.valid_to,
            )
            for row in self._account_rows(manual_name_override_table, account_id)
        )

    def _history(self, account_id: str) -> tuple[NameHistoryRecord, ...]:
        records: list[NameHistoryRecord] = []
        if self._has_table(campaign_name_history_table):
            records.extend(
                NameHistoryRecord(
                    entity_level=EntityLevel.CAMPAIGN,
                    entity_id=row.campaign_id,
                    name_norm=row.name_norm,
                    valid_from=row.valid_from,
                    valid_to=row.valid_to,
                )
                for row in self._account_rows(campaign_name_history_table, account_id)
            )
        if self._has_table(ad_group_name_history_table):
            records.extend(
                NameHistoryRecord(
                    entity_level=EntityLevel.AD_GROUP,
                    entity_id=row.ad_group_id,
                    name_norm=row.name_norm,
                    valid_from=row.valid_from,
                    valid_to=row.valid_to,
                    parent_id=row.campaign_id,
                )
                for row in self._account_rows(ad_group_name_history_table, account_id)
            )
        return tuple(records)

    def _has_table(self, table: Table) -> bool:
        return inspect(self.session.connection()).has_table(table.name)

    def _insert_many(self, table: Table, rows: list[dict[str, Any]]) -> None:
        if rows:
            self.session.execute(table.insert(), rows)


class SqlAlchemyUploadRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Upload) -> None:
        self.session.execute(
            upload_table.insert().values(
                upload_id=entity.upload_id,
                account_id=entity.account_id,
                report_type=entity.report_type,
                exported_at=entity.exported_at,
            )
        )

    def get(self, upload_id: str) -> Upload | None:
        stmt = select(upload_table).where(upload_table.c.upload_id == upload_id)
        row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return Upload(
            upload_id=row.upload_id,
            account_id=row.account_id,
            report_type=row.report_type,
            exported_at=row.exported_at,
        )

    def add_raw_rows(self, upload_id: str, rows: Iterable[RawReportRow]) -> None:
        """Append rows after any already stored for ``upload_id``."""

        offset_stmt = select(func.count()).where(report_raw_row_table.c.upload_id == upload_id)
        offset = self.session.execute(offset_stmt).scalar_one()
        payload = [
            {"upload_id": upload_id, "row_index": offset + position, **_raw_row_values(row)}
            for position, row in enumerate(rows)
        ]
        if payload:
            self.session.execute(report_raw_row_table.insert(), payload)

    def campaign_names(self, upload_id: str) -> frozenset[str]:
        stmt = (
            select(report_raw_row_table.c.campaign_name_norm)
            .distinct()
            .where(report_raw_row_table.c.upload_id == upload_id)
        )
        return frozenset(name for name in self.session.execute(stmt).scalars() if name)

    def raw_rows(self, upload_id: str) -> list[RawReportRow]:
        stmt = (
            select(report_raw_row_table)
            .where(report_raw_row_table.c.upload_id == upload_id)
            .order_by(report_raw_row_table.c.row_index)
        )
        return [_raw_row_from_db(row) for row in self.session.execute(stmt)]


class SqlAlchemyFactRepository:
    """Upserts fact rows by natural key, one SAVEPOINT per chunk."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(self, report_type: ReportType, rows: Sequence[MappedFactRow]) -> None:
        if not rows:
            return
        table = FACT_TABLES[report_type]
        payload = [_fact_values(table, row) for row in rows]
        key_columns = natural_key_columns(report_type)
        insert = _dialect_insert(self.session)
        stmt = insert(table)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={
                column.name: stmt.excluded[column.name]
                for column in table.columns
                if column.name not in key_columns and not column.primary_key
            },
        )
        try:
            with self.session.begin_nested():
                self.session.execute(stmt, payload)
        except SQLAlchemyError as exc:
            raise StoreWriteError(
                f"Failed upserting {len(payload)} rows into {table.name}: {exc}"
            ) from exc

    def count(self, report_type: ReportType, upload_id: str) -> int:
        table = FACT_TABLES[report_type]
        stmt = select(func.count()).select_from(table).where(table.c.upload_id == upload_id)
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyIssueRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def replace(
        self,
        upload: Upload,
        report_type: ReportType,
        issues: Iterable[MappingIssue],
    ) -> None:
        self.session.execute(
            delete(mapping_issue_table)
            .where(mapping_issue_table.c.upload_id == upload.upload_id)
            .where(mapping_issue_table.c.report_type == report_type)
        )
        payload = [
            {
                "account_id": upload.account_id,
                "upload_id": upload.upload_id,
                "report_type": report_type,
                "entity_level": issue.entity_level,
                "issue_type": issue.issue_type,
                "key_json": issue.key_json,
                "candidates_json": issue.candidates_json,
                "row_count": issue.row_count,
            }
            for issue in issues
        ]
        if payload:
            self.session.execute(mapping_issue_table.insert(), payload)

    def list_for(self, upload_id: str, report_type: ReportType) -> list[MappingIssue]:
        stmt = (
            select(mapping_issue_table)
            .where(mapping_issue_table.c.upload_id == upload_id)
            .where(mapping_issue_table.c.report_type == report_type)
            .order_by(mapping_issue_table.c.id)
        )
        return [
            MappingIssue(
                entity_level=row.entity_level,
                issue_type=row.issue_type,
                key=json.loads(row.key_json),
                candidates=_load_candidates(row.candidates_json),
                row_count=row.row_count,
            )
            for row in self.session.execute(stmt)
        ]


def _dialect_insert(session: Session) -> Any:
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "sqlite":
        return sqlite.insert
    if dialect_name == "postgresql":
        return postgresql.insert
    raise StoreWriteError(f"Upserts are not supported on the {dialect_name!r} dialect")


def _raw_row_values(row: RawReportRow) -> dict[str, Any]:
    metrics = row.metrics
    return {
        "date": row.date,
        "campaign_name_raw": row.campaign_name_raw,
        "campaign_name_norm": row.campaign_name_norm,
        "portfolio_name_raw": row.portfolio_name_raw,
        "portfolio_name_norm": row.portfolio_name_norm,
        "ad_group_name_raw": row.ad_group_name_raw,
        "ad_group_name_norm": row.ad_group_name_norm,
        "targeting_raw": row.targeting_raw,
        "targeting_norm": row.targeting_norm,
        "match_type_raw": row.match_type_raw,
        "match_type_norm": row.match_type_norm,
        "customer_search_term_raw": row.customer_search_term_raw,
        "customer_search_term_norm": row.customer_search_term_norm,
        "placement_raw": row.placement_raw,
        "placement_norm": row.placement_norm,
        "placement_code": row.placement_code,
        "impressions": metrics.impressions,
        "clicks": metrics.clicks,
        "spend": metrics.spend,
        "sales": metrics.sales,
        "orders": metrics.orders,
        "units": metrics.units,
    }


def _raw_row_from_db(row: Row[Any]) -> RawReportRow:
    return RawReportRow(
        date=row.date,
        campaign_name_raw=row.campaign_name_raw,
        campaign_name_norm=row.campaign_name_norm,
        portfolio_name_raw=row.portfolio_name_raw,
        portfolio_name_norm=row.portfolio_name_norm,
        ad_group_name_raw=row.ad_group_name_raw,
        ad_group_name_norm=row.ad_group_name_norm,
        targeting_raw=row.targeting_raw,
        targeting_norm=row.targeting_norm,
        match_type_raw=row.match_type_raw,
        match_type_norm=row.match_type_norm,
        customer_search_term_raw=row.customer_search_term_raw,
        customer_search_term_norm=row.customer_search_term_norm,
        placement_raw=row.placement_raw,
        placement_norm=row.placement_norm,
        placement_code=row.placement_code,
        metrics=ReportMetrics(
            impressions=row.impressions,
            clicks=row.clicks,
            spend=row.spend,
            sales=row.sales,
            orders=row.orders,
            units=row.units,
        ),
    )


# Natural-key columns are NOT NULL so that ON CONFLICT matches them.
_KEY_DEFAULTS: dict[str, str] = {
    "placement_code": "",
    "placement_norm": "",
    "customer_search_term_norm": "",
}


def _fact_values(table: Table, row: MappedFactRow) -> dict[str, Any]:
    values: dict[str, Any] = {
        "account_id": row.account_id,
        "upload_id": row.upload_id,
        "exported_at": row.exported_at,
        "campaign_id": row.campaign_id,
        "portfolio_id": row.portfolio_id,
        "ad_group_id": row.ad_group_id,
        "target_id": row.target_id,
        "target_key": row.target_key,
        **_raw_row_values(row.raw),
    }
    for column, default in _KEY_DEFAULTS.items():
        if values.get(column) is None:
            values[column] = default
    return {name: value for name, value in values.items() if name in table.c}


def _load_candidates(value: str | None) -> tuple[dict[str, Any], ...] | None:
    if value is None:
        return None
    loaded = json.loads(value)
    if not isinstance(loaded, list):
        raise TypeError("Invalid candidates format")
    return tuple(cast(list[dict[str, Any]], loaded))


if TYPE_CHECKING:
    from adrecon.domain.ports.persistence import (
        FactRepository,
        InventoryRepository,
        IssueRepository,
        UploadRepository,
    )

    _session_stub = cast("Session", object())
    _inventory_repo: InventoryRepository = SqlAlchemyInventoryRepository(_session_stub)
    _upload_repo: UploadRepository = SqlAlchemyUploadRepository(_session_stub)
    _fact_repo: FactRepository = SqlAlchemyFactRepository(_session_stub)
    _issue_repo: IssueRepository = SqlAlchemyIssueRepository(_session_stub)
