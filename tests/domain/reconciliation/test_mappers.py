from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING

import pytest

from adrecon.domain.model import EntityLevel, IssueType, MatchType, NameHistoryRecord, ReportType
from adrecon.domain.naming import build_target_key
from adrecon.domain.reconciliation import (
    ScopeViolationError,
    map_campaign_rows,
    map_placement_rows,
    map_rows,
    map_search_term_rows,
    map_targeting_rows,
)
from tests.helpers.inventory import (
    make_ad_group,
    make_campaign,
    make_index,
    make_portfolio,
    make_target,
)
from tests.helpers.reports import EXPORTED_AT, make_batch, make_row

if TYPE_CHECKING:
    from adrecon.domain.reconciliation import SnapshotIndex

REFERENCE = date(2026, 2, 15)


@pytest.fixture
def index() -> SnapshotIndex:
    return make_index(
        campaigns=[
            make_campaign("C1", "Summer Sale", portfolio_id="P1"),
            make_campaign("C2", "Winter Sale"),
        ],
        ad_groups=[make_ad_group("AG1", "C1", "Mice"), make_ad_group("AG2", "C2", "Keyboards")],
        targets=[
            make_target("T1", "AG1", "wireless mouse", match_type=MatchType.EXACT),
            make_target("T2", "AG1", "wireless mouse", match_type=MatchType.PHRASE),
            make_target(
                "T3", "AG1", "wireless mouse", match_type=MatchType.EXACT, is_negative=True
            ),
        ],
        portfolios=[make_portfolio("P1", "Seasonal")],
    )


def test_campaign_rows_map_to_ids_with_batch_context(index: SnapshotIndex) -> None:
    output = map_campaign_rows(
        [make_row("Summer Sale", clicks=3), make_row("WINTER sale")],
        index,
        reference_date=REFERENCE,
        batch=make_batch("up-7"),
    )

    assert [fact.campaign_id for fact in output.facts] == ["C1", "C2"]
    first = output.facts[0]
    assert first.portfolio_id == "P1"
    assert first.upload_id == "up-7"
    assert first.exported_at == EXPORTED_AT
    assert first.raw.metrics.clicks == 3
    assert first.ad_group_id is None
    assert first.target_id is None
    assert output.issues == ()


def test_unknown_campaign_becomes_unmapped_issue(index: SnapshotIndex) -> None:
    output = map_campaign_rows(
        [make_row("Autumn Sale", portfolio="Seasonal")],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    assert output.facts == ()
    (issue,) = output.issues
    assert issue.entity_level is EntityLevel.CAMPAIGN
    assert issue.issue_type is IssueType.UNMAPPED
    assert issue.key == {"campaign_name_norm": "autumn sale", "portfolio_name_norm": "seasonal"}


def test_rows_sharing_unresolved_ad_group_yield_one_issue(index: SnapshotIndex) -> None:
    rows = [
        make_row(
            "Summer Sale",
            ad_group="Missing Group",
            targeting="wireless mouse",
            match_type="Exact",
            clicks=position,
        )
        for position in range(500)
    ]

    output = map_targeting_rows(rows, index, reference_date=REFERENCE, batch=make_batch())

    assert output.facts == ()
    (issue,) = output.issues
    assert issue.entity_level is EntityLevel.AD_GROUP
    assert issue.issue_type is IssueType.UNMAPPED
    assert issue.row_count == 500
    assert issue.key == {
        "campaign_name_norm": "summer sale",
        "portfolio_name_norm": None,
        "ad_group_name_norm": "missing group",
    }


def test_targeting_rows_resolve_the_full_chain(index: SnapshotIndex) -> None:
    output = map_targeting_rows(
        [
            make_row(
                "Summer Sale", ad_group="Mice", targeting="Wireless Mouse", match_type="Exact"
            ),
            make_row(
                "Summer Sale",
                ad_group="Mice",
                targeting="wireless mouse",
                match_type="Negative Exact",
            ),
        ],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    assert [(f.campaign_id, f.ad_group_id, f.target_id) for f in output.facts] == [
        ("C1", "AG1", "T1"),
        ("C1", "AG1", "T3"),
    ]
    assert output.facts[0].target_key == "T1"
    assert output.issues == ()


def test_target_without_match_type_is_ambiguous(index: SnapshotIndex) -> None:
    output = map_targeting_rows(
        [make_row("Summer Sale", ad_group="Mice", targeting="wireless mouse")],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    assert output.facts == ()
    (issue,) = output.issues
    assert issue.entity_level is EntityLevel.TARGET
    assert issue.issue_type is IssueType.AMBIGUOUS
    assert issue.candidates is not None
    assert [candidate["entity_id"] for candidate in issue.candidates] == ["T1", "T2"]
    assert issue.key["targeting_norm"] == "wireless mouse"
    assert issue.key["is_negative"] is False


def test_target_issue_key_uses_the_effective_match_type(index: SnapshotIndex) -> None:
    no_match_type = make_row("Summer Sale", ad_group="Mice", targeting="wireless mouse")
    broad_raw_only = replace(no_match_type, match_type_raw="Broad")

    output = map_targeting_rows(
        [no_match_type, broad_raw_only],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    assert output.facts == ()
    assert [(issue.issue_type, issue.key["match_type_norm"]) for issue in output.issues] == [
        (IssueType.AMBIGUOUS, "UNKNOWN"),
        (IssueType.UNMAPPED, "BROAD"),
    ]
    assert len({issue.key_json for issue in output.issues}) == 2


def test_wildcard_search_term_rows_get_a_stable_target_key(index: SnapshotIndex) -> None:
    row = make_row(
        "Summer Sale",
        ad_group="Mice",
        targeting="*",
        search_term="Wireless Mouse",
    )

    first = map_search_term_rows([row], index, reference_date=REFERENCE, batch=make_batch())
    second = map_search_term_rows([row], index, reference_date=REFERENCE, batch=make_batch())

    (fact,) = first.facts
    assert fact.target_id is None
    assert fact.ad_group_id == "AG1"
    assert fact.target_key == build_target_key(
        campaign_name_norm="summer sale",
        portfolio_name_norm=None,
        ad_group_name_norm="mice",
        targeting_norm="*",
        match_type_norm=None,
        is_negative=False,
    )
    assert second.facts[0].target_key == fact.target_key


def test_search_term_rows_skip_target_resolution(index: SnapshotIndex) -> None:
    output = map_search_term_rows(
        [
            make_row(
                "Summer Sale",
                ad_group="Mice",
                targeting="not in snapshot",
                match_type="Broad",
                search_term="cheap mouse",
            )
        ],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    (fact,) = output.facts
    assert fact.target_id is None
    assert fact.target_key is not None
    assert output.issues == ()


def test_search_term_rows_without_term_resolve_targets(index: SnapshotIndex) -> None:
    output = map_search_term_rows(
        [make_row("Summer Sale", ad_group="Mice", targeting="wireless mouse", match_type="PHRASE")],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    (fact,) = output.facts
    assert fact.target_id == "T2"
    assert fact.target_key == "T2"


def test_placement_rows_keep_placement_fields(index: SnapshotIndex) -> None:
    output = map_placement_rows(
        [make_row("Winter Sale", placement="Top of Search", placement_code="TOS")],
        index,
        reference_date=REFERENCE,
        batch=make_batch(),
    )

    (fact,) = output.facts
    assert fact.report_type is ReportType.PLACEMENT
    assert fact.campaign_id == "C2"
    assert fact.raw.placement_norm == "top of search"
    assert fact.raw.placement_code == "TOS"


def test_every_row_is_either_a_fact_or_counted_in_an_issue(index: SnapshotIndex) -> None:
    rows = [
        make_row("Summer Sale", ad_group="Mice", targeting="wireless mouse", match_type="Exact"),
        make_row("Summer Sale", ad_group="Mice", targeting="wireless mouse", match_type="Phrase"),
        make_row("Winter Sale", ad_group="Keyboards", targeting="gaming keyboard"),
        make_row("Unknown", ad_group="Mice", targeting="wireless mouse", match_type="Exact"),
        make_row("Summer Sale", ad_group="Pads", targeting="mouse pad", match_type="Exact"),
    ]

    output = map_targeting_rows(rows, index, reference_date=REFERENCE, batch=make_batch())

    assert len(output.facts) == 2
    assert sum(issue.row_count for issue in output.issues) == 3
    assert {issue.entity_level for issue in output.issues} == {
        EntityLevel.CAMPAIGN,
        EntityLevel.AD_GROUP,
        EntityLevel.TARGET,
    }


def test_map_rows_dispatches_by_report_type(index: SnapshotIndex) -> None:
    rows = [make_row("Summer Sale")]

    dispatched = map_rows(
        ReportType.CAMPAIGN, rows, index, reference_date=REFERENCE, batch=make_batch()
    )
    direct = map_campaign_rows(rows, index, reference_date=REFERENCE, batch=make_batch())

    assert dispatched == direct


def test_ad_group_owned_by_another_campaign_raises() -> None:
    index = make_index(
        campaigns=[make_campaign("C1", "Summer Sale"), make_campaign("C2", "Winter Sale")],
        ad_groups=[make_ad_group("AG2", "C2", "Keyboards")],
        history=[
            NameHistoryRecord(
                entity_level=EntityLevel.AD_GROUP,
                entity_id="AG2",
                name_norm="old keyboards",
                valid_from=date(2026, 1, 1),
                parent_id="C1",
            )
        ],
    )

    with pytest.raises(ScopeViolationError) as exc:
        map_targeting_rows(
            [make_row("Summer Sale", ad_group="Old Keyboards", targeting="x", match_type="Exact")],
            index,
            reference_date=REFERENCE,
            batch=make_batch(),
        )

    assert exc.value.entity_id == "AG2"
    assert exc.value.expected_parent == "C1"
    assert exc.value.actual_parent == "C2"
