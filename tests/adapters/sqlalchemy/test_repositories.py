"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session  # noqa: TC002

from adrecon.adapters.sqlalchemy.mappings import fact_campaign_table
from adrecon.adapters.sqlalchemy.repositories import (
    SqlAlchemyFactRepository,
    SqlAlchemyInventoryRepository,
    SqlAlchemyIssueRepository,
    SqlAlchemyUploadRepository,
)
from adrecon.domain.model import (
    CategoryMapping,
    EntityLevel,
    IssueType,
    ManualOverride,
    MappingIssue,
    MatchType,
    NameHistoryRecord,
    RawReportRow,
    ReportMetrics,
    ReportType,
)
from adrecon.domain.ports import StoreWriteError
from tests.helpers.inventory import (
    ACCOUNT_ID,
    SNAPSHOT_DATE,
    make_ad_group,
    make_campaign,
    make_portfolio,
    make_snapshot,
    make_target,
)
from tests.helpers.reports import make_fact, make_row, make_upload


def _seed_upload(
    session: Session, *, report_type: ReportType = ReportType.CAMPAIGN
) -> None:
    SqlAlchemyUploadRepository(session).add(make_upload(report_type=report_type))


def test_inventory_snapshot_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyInventoryRepository(sqlite_session)
    snapshot = make_snapshot(
        campaigns=[make_campaign("C1", "Summer Sale", portfolio_id="P1")],
        ad_groups=[make_ad_group("AG1", "C1", "Mice")],
        targets=[
            make_target(
                "T1", "AG1", "wireless mouse", match_type=MatchType.PHRASE, is_negative=True
            )
        ],
        portfolios=[make_portfolio("P1", "Seasonal")],
    )
    override = ManualOverride(
        entity_level=EntityLevel.CAMPAIGN,
        entity_id="C1",
        name_norm="summer promo",
        valid_from=date(2026, 1, 1),
    )
    campaign_record = NameHistoryRecord(
        entity_level=EntityLevel.CAMPAIGN,
        entity_id="C1",
        name_norm="old summer",
        valid_from=date(2025, 1, 1),
        valid_to=date(2026, 1, 1),
    )
    ad_group_record = NameHistoryRecord(
        entity_level=EntityLevel.AD_GROUP,
        entity_id="AG1",
        name_norm="old mice",
        valid_from=date(2025, 1, 1),
        parent_id="C1",
    )

    repository.add(snapshot)
    repository.add_overrides(ACCOUNT_ID, [override])
    repository.add_history(ACCOUNT_ID, [campaign_record, ad_group_record])
    repository.add_category_mappings(ACCOUNT_ID, [CategoryMapping("home & kitchen", "987")])
    sqlite_session.commit()

    loaded = repository.load_snapshot(ACCOUNT_ID, snapshot.snapshot_date)

    assert loaded.campaigns == snapshot.campaigns
    assert loaded.ad_groups == snapshot.ad_groups
    assert loaded.targets == snapshot.targets
    assert loaded.targets[0].match_type_norm is MatchType.PHRASE
    assert loaded.portfolios == snapshot.portfolios
    assert loaded.overrides == (override,)
    assert set(loaded.history) == {campaign_record, ad_group_record}
    assert loaded.category_mappings == (CategoryMapping("home & kitchen", "987"),)


def test_snapshot_dates_are_ordered_and_account_scoped(sqlite_session: Session) -> None:
    repository = SqlAlchemyInventoryRepository(sqlite_session)
    for day in (date(2026, 2, 20), date(2026, 2, 10)):
        repository.add(make_snapshot(snapshot_date=day))
    repository.add(make_snapshot(account_id="other", snapshot_date=date(2026, 2, 15)))
    sqlite_session.commit()

    assert repository.snapshot_dates(ACCOUNT_ID) == [date(2026, 2, 10), date(2026, 2, 20)]
    assert repository.snapshot_dates("nobody") == []


def test_campaign_matches_are_counted_across_read_chunks(sqlite_session: Session) -> None:
    repository = SqlAlchemyInventoryRepository(sqlite_session, read_chunk_size=1)
    repository.add(
        make_snapshot(
            campaigns=[
                make_campaign("C1", "Summer Sale"),
                make_campaign("C2", "Summer Sale"),
                make_campaign("C3", "Winter Sale"),
            ]
        )
    )
    sqlite_session.commit()

    count = repository.count_campaign_matches(
        ACCOUNT_ID,
        date(2026, 2, 10),
        ["summer sale", "winter sale", "autumn sale"],
    )

    assert count == 2


def test_replace_history_keeps_other_accounts(sqlite_session: Session) -> None:
    repository = SqlAlchemyInventoryRepository(sqlite_session)
    repository.add(make_snapshot())
    repository.add(make_snapshot(account_id="other"))
    stale = NameHistoryRecord(
        entity_level=EntityLevel.CAMPAIGN,
        entity_id="C1",
        name_norm="stale name",
        valid_from=date(2025, 1, 1),
    )
    fresh = NameHistoryRecord(
        entity_level=EntityLevel.AD_GROUP,
        entity_id="AG1",
        name_norm="mice",
        valid_from=date(2026, 1, 1),
        parent_id="C1",
    )
    repository.add_history(ACCOUNT_ID, [stale])
    repository.add_history("other", [stale])

    repository.replace_history(ACCOUNT_ID, [fresh])
    sqlite_session.commit()

    assert repository.load_snapshot(ACCOUNT_ID, SNAPSHOT_DATE).history == (fresh,)
    assert repository.load_snapshot("other", SNAPSHOT_DATE).history == (stale,)


def test_history_requires_supported_levels(sqlite_session: Session) -> None:
    repository = SqlAlchemyInventoryRepository(sqlite_session)

    with pytest.raises(ValueError, match="parent_id"):
        repository.add_history(
            ACCOUNT_ID,
            [
                NameHistoryRecord(
                    entity_level=EntityLevel.AD_GROUP,
                    entity_id="AG1",
                    name_norm="x",
                    valid_from=date(2026, 1, 1),
                )
            ],
        )
    with pytest.raises(ValueError, match="No name history"):
        repository.add_history(
            ACCOUNT_ID,
            [
                NameHistoryRecord(
                    entity_level=EntityLevel.TARGET,
                    entity_id="T1",
                    name_norm="x",
                    valid_from=date(2026, 1, 1),
                )
            ],
        )


def test_upload_and_raw_rows_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyUploadRepository(sqlite_session)
    exported_at = datetime(2026, 2, 15, 8, 30, tzinfo=UTC)
    repository.add(make_upload(report_type=ReportType.PLACEMENT, exported_at=exported_at))
    first = RawReportRow(
        date=date(2026, 2, 14),
        campaign_name_raw="Summer Sale",
        campaign_name_norm="summer sale",
        placement_raw="Top of Search",
        placement_norm="top of search",
        placement_code="TOS",
        metrics=ReportMetrics(impressions=100, clicks=4, spend=Decimal("1.25")),
    )

    repository.add_raw_rows("up-1", [first])
    repository.add_raw_rows("up-1", [make_row("Winter Sale"), make_row("")])
    sqlite_session.commit()

    upload = repository.get("up-1")
    assert upload is not None
    assert upload.report_type is ReportType.PLACEMENT
    assert upload.exported_at == exported_at
    assert repository.get("missing") is None

    rows = repository.raw_rows("up-1")
    assert [row.campaign_name_norm for row in rows] == ["summer sale", "winter sale", ""]
    assert rows[0] == first
    assert repository.campaign_names("up-1") == frozenset({"summer sale", "winter sale"})


def test_issue_replace_clears_previous_set(sqlite_session: Session) -> None:
    _seed_upload(sqlite_session)
    repository = SqlAlchemyIssueRepository(sqlite_session)
    upload = make_upload()
    stale = MappingIssue(
        entity_level=EntityLevel.CAMPAIGN,
        issue_type=IssueType.UNMAPPED,
        key={"campaign_name_norm": "gone", "portfolio_name_norm": None},
    )
    ambiguous = MappingIssue(
        entity_level=EntityLevel.CAMPAIGN,
        issue_type=IssueType.AMBIGUOUS,
        key={"campaign_name_norm": "brand defense", "portfolio_name_norm": None},
        candidates=({"entity_id": "C1"}, {"entity_id": "C2"}),
        row_count=4,
    )

    repository.replace(upload, ReportType.CAMPAIGN, [stale])
    repository.replace(upload, ReportType.CAMPAIGN, [ambiguous])
    sqlite_session.commit()

    assert repository.list_for("up-1", ReportType.CAMPAIGN) == [ambiguous]
    assert repository.list_for("up-1", ReportType.TARGETING) == []


def test_fact_upsert_updates_rows_in_place(sqlite_session: Session) -> None:
    _seed_upload(sqlite_session)
    repository = SqlAlchemyFactRepository(sqlite_session)

    repository.upsert(ReportType.CAMPAIGN, [make_fact(make_row("Summer Sale", clicks=1))])
    repository.upsert(ReportType.CAMPAIGN, [make_fact(make_row("Summer Sale", clicks=7))])
    sqlite_session.commit()

    assert repository.count(ReportType.CAMPAIGN, "up-1") == 1
    clicks = sqlite_session.execute(select(fact_campaign_table.c.clicks)).scalar_one()
    assert clicks == 7


def test_search_term_facts_without_term_upsert_once(sqlite_session: Session) -> None:
    _seed_upload(sqlite_session, report_type=ReportType.SEARCH_TERM)
    repository = SqlAlchemyFactRepository(sqlite_session)
    fact = make_fact(
        make_row("Summer Sale", ad_group="Mice", targeting="*"),
        report_type=ReportType.SEARCH_TERM,
        ad_group_id="AG1",
        target_key="signature",
    )

    repository.upsert(ReportType.SEARCH_TERM, [fact])
    repository.upsert(ReportType.SEARCH_TERM, [fact])
    sqlite_session.commit()

    assert repository.count(ReportType.SEARCH_TERM, "up-1") == 1


def test_failed_chunk_raises_and_leaves_session_usable(sqlite_session: Session) -> None:
    _seed_upload(sqlite_session, report_type=ReportType.TARGETING)
    repository = SqlAlchemyFactRepository(sqlite_session)
    missing_target = make_fact(
        make_row("Summer Sale", ad_group="Mice", targeting="mouse"),
        report_type=ReportType.TARGETING,
        ad_group_id="AG1",
        target_id=None,
    )
    valid = make_fact(
        make_row("Summer Sale", ad_group="Mice", targeting="mouse"),
        report_type=ReportType.TARGETING,
        ad_group_id="AG1",
        target_id="T1",
    )

    with pytest.raises(StoreWriteError, match="fact_targeting"):
        repository.upsert(ReportType.TARGETING, [missing_target])
    repository.upsert(ReportType.TARGETING, [valid])
    sqlite_session.commit()

    assert repository.count(ReportType.TARGETING, "up-1") == 1
