"""Row mappers, one per report shape.

Responsibilities of this stage:
- stream raw rows through the resolver top-down (campaign, ad group, target)
- drop a row entirely at the first level that fails and record a pending issue
- emit one ``MappedFactRow`` per fully resolved row
- verify ownership of every resolved ID against the snapshot index

Out of scope for this stage:
- deduplication by natural key
- persistence
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from adrecon.domain.model import EntityLevel, MappedFactRow, ReportType
from adrecon.domain.naming import (
    build_target_key,
    effective_match_type,
    infer_is_negative,
    is_wildcard_expression,
)

from .contracts import Resolved
from .issues import IssueCollector
from .resolve import resolve_ad_group, resolve_campaign, resolve_target

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import date, datetime
    from typing import Any

    from adrecon.domain.model import MappingIssue, RawReportRow

    from .index import SnapshotIndex


class ScopeViolationError(RuntimeError):
    """Raised when a resolved ID does not belong to its resolved parent."""

    def __init__(
        self,
        *,
        level: EntityLevel,
        entity_id: str,
        expected_parent: str,
        actual_parent: str,
    ) -> None:
        self.level = level
        self.entity_id = entity_id
        self.expected_parent = expected_parent
        self.actual_parent = actual_parent
        super().__init__(
            f"Resolved {level} {entity_id!r} belongs to {actual_parent!r}, "
            f"expected {expected_parent!r}"
        )


@dataclass(frozen=True, slots=True)
class BatchContext:
    """Identity of the upload a batch of rows came from."""

    account_id: str
    upload_id: str
    exported_at: datetime


@dataclass(frozen=True, slots=True)
class MappingOutput:
    facts: tuple[MappedFactRow, ...]
    issues: tuple[MappingIssue, ...]


class _TargetMode(StrEnum):
    NONE = "none"
    REQUIRED = "required"
    SEARCH_TERM = "search_term"


def map_campaign_rows(
    rows: Iterable[RawReportRow],
    index: SnapshotIndex,
    *,
    reference_date: date,
    batch: BatchContext,
) -> MappingOutput:
    return _map_chain(
        ReportType.CAMPAIGN,
        rows,
        index,
        reference_date=reference_date,
        batch=batch,
        requires_ad_group=False,
        target_mode=_TargetMode.NONE,
    )


def map_placement_rows(
    rows: Iterable[RawReportRow],
    index: SnapshotIndex,
    *,
    reference_date: date,
    batch: BatchContext,
) -> MappingOutput:
    return _map_chain(
        ReportType.PLACEMENT,
        rows,
        index,
        reference_date=reference_date,
        batch=batch,
        requires_ad_group=False,
        target_mode=_TargetMode.NONE,
    )


def map_targeting_rows(
    rows: Iterable[RawReportRow],
    index: SnapshotIndex,
    *,
    reference_date: date,
    batch: BatchContext,
) -> MappingOutput:
    return _map_chain(
        ReportType.TARGETING,
        rows,
        index,
        reference_date=reference_date,
        batch=batch,
        requires_ad_group=True,
        target_mode=_TargetMode.REQUIRED,
    )


def map_search_term_rows(
    rows: Iterable[RawReportRow],
    index: SnapshotIndex,
    *,
    reference_date: date,
    batch: BatchContext,
) -> MappingOutput:
    """Map search-term rows.

    Rows carrying a customer search term, and rows whose targeting is the ``*``
    wildcard, skip target resolution. Their ``target_key`` is a deterministic
    signature of the identifying names so they still dedupe and upsert stably.
    """

    return _map_chain(
        ReportType.SEARCH_TERM,
        rows,
        index,
        reference_date=reference_date,
        batch=batch,
        requires_ad_group=True,
        target_mode=_TargetMode.SEARCH_TERM,
    )


type RowMapper = Callable[..., MappingOutput]

_MAPPERS: dict[ReportType, RowMapper] = {
    ReportType.CAMPAIGN: map_campaign_rows,
    ReportType.PLACEMENT: map_placement_rows,
    ReportType.TARGETING: map_targeting_rows,
    ReportType.SEARCH_TERM: map_search_term_rows,
}


def map_rows(
    report_type: ReportType,
    rows: Iterable[RawReportRow],
    index: SnapshotIndex,
    *,
    reference_date: date,
    batch: BatchContext,
) -> MappingOutput:
    """Dispatch to the mapper for ``report_type``."""

    mapper = _MAPPERS[ReportType(report_type)]
    return mapper(rows, index, reference_date=reference_date, batch=batch)


def _map_chain(
    report_type: ReportType,
    rows: Iterable[RawReportRow],
    index: SnapshotIndex,
    *,
    reference_date: date,
    batch: BatchContext,
    requires_ad_group: bool,
    target_mode: _TargetMode,
) -> MappingOutput:
    facts: list[MappedFactRow] = []
    collector = IssueCollector()

    for row in rows:
        campaign_key = _campaign_issue_key(row)
        campaign = resolve_campaign(
            row.campaign_name_norm, row.portfolio_name_norm, reference_date, index
        )
        if not isinstance(campaign, Resolved):
            collector.add_failure(EntityLevel.CAMPAIGN, campaign_key, campaign)
            continue
        collector.mark_resolved(EntityLevel.CAMPAIGN, campaign_key)
        campaign_id = campaign.entity_id

        ad_group_id: str | None = None
        if requires_ad_group:
            ad_group_key = _ad_group_issue_key(row)
            ad_group = resolve_ad_group(
                campaign_id, row.ad_group_name_norm or "", reference_date, index
            )
            if not isinstance(ad_group, Resolved):
                collector.add_failure(EntityLevel.AD_GROUP, ad_group_key, ad_group)
                continue
            collector.mark_resolved(EntityLevel.AD_GROUP, ad_group_key)
            ad_group_id = ad_group.entity_id
            _check_owner(
                EntityLevel.AD_GROUP,
                ad_group_id,
                expected_parent=campaign_id,
                actual_parent=index.campaign_of_ad_group(ad_group_id),
            )

        target_id: str | None = None
        target_key: str | None = None
        if target_mode is not _TargetMode.NONE and ad_group_id is not None:
            if target_mode is _TargetMode.SEARCH_TERM and _skips_target_resolution(row):
                target_key = _target_signature(row)
            else:
                target_issue_key = _target_issue_key(row)
                target = resolve_target(
                    ad_group_id,
                    row.targeting_norm or "",
                    effective_match_type(row.match_type_norm, row.match_type_raw),
                    infer_is_negative(row.match_type_raw),
                    reference_date,
                    index,
                )
                if not isinstance(target, Resolved):
                    collector.add_failure(EntityLevel.TARGET, target_issue_key, target)
                    continue
                collector.mark_resolved(EntityLevel.TARGET, target_issue_key)
                target_id = target.entity_id
                target_key = target_id
                _check_owner(
                    EntityLevel.TARGET,
                    target_id,
                    expected_parent=ad_group_id,
                    actual_parent=index.ad_group_of_target(target_id),
                )

        snapshot_campaign = index.campaigns_by_id.get(campaign_id)
        facts.append(
            MappedFactRow(
                report_type=report_type,
                account_id=batch.account_id,
                upload_id=batch.upload_id,
                exported_at=batch.exported_at,
                raw=row,
                campaign_id=campaign_id,
                portfolio_id=snapshot_campaign.portfolio_id if snapshot_campaign else None,
                ad_group_id=ad_group_id,
                target_id=target_id,
                target_key=target_key,
            )
        )

    return MappingOutput(facts=tuple(facts), issues=collector.issues())


def _check_owner(
    level: EntityLevel,
    entity_id: str,
    *,
    expected_parent: str,
    actual_parent: str | None,
) -> None:
    # IDs resolved through history or overrides may be absent from the snapshot.
    if actual_parent is not None and actual_parent != expected_parent:
        raise ScopeViolationError(
            level=level,
            entity_id=entity_id,
            expected_parent=expected_parent,
            actual_parent=actual_parent,
        )


def _skips_target_resolution(row: RawReportRow) -> bool:
    has_search_term = bool((row.customer_search_term_norm or "").strip())
    return has_search_term or is_wildcard_expression(row.targeting_norm)


def _campaign_issue_key(row: RawReportRow) -> dict[str, Any]:
    return {
        "campaign_name_norm": row.campaign_name_norm,
        "portfolio_name_norm": row.portfolio_name_norm,
    }


def _ad_group_issue_key(row: RawReportRow) -> dict[str, Any]:
    return {**_campaign_issue_key(row), "ad_group_name_norm": row.ad_group_name_norm}


def _target_issue_key(row: RawReportRow) -> dict[str, Any]:
    return {
        **_ad_group_issue_key(row),
        "targeting_norm": row.targeting_norm,
        "match_type_norm": str(effective_match_type(row.match_type_norm, row.match_type_raw)),
        "is_negative": infer_is_negative(row.match_type_raw),
    }


def _target_signature(row: RawReportRow) -> str:
    return build_target_key(
        campaign_name_norm=row.campaign_name_norm,
        portfolio_name_norm=row.portfolio_name_norm,
        ad_group_name_norm=row.ad_group_name_norm,
        targeting_norm=row.targeting_norm,
        match_type_norm=row.match_type_norm,
        is_negative=infer_is_negative(row.match_type_raw),
    )


__all__ = [
    "BatchContext",
    "MappingOutput",
    "ScopeViolationError",
    "map_campaign_rows",
    "map_placement_rows",
    "map_rows",
    "map_search_term_rows",
    "map_targeting_rows",
]
