"""Natural keys and intra-batch deduplication of mapped fact rows.

Responsibilities of this stage:
- define the natural key of each report shape
- collapse rows sharing a natural key, last write wins
- avoid persistence lookups
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adrecon.domain.model import ReportType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from adrecon.domain.model import MappedFactRow

type NaturalKey = tuple[object, ...]

_BASE_COLUMNS: tuple[str, ...] = ("account_id", "upload_id", "date")

_SHAPE_COLUMNS: dict[ReportType, tuple[str, ...]] = {
    ReportType.CAMPAIGN: ("campaign_id",),
    ReportType.PLACEMENT: ("campaign_id", "placement_code", "placement_norm"),
    ReportType.TARGETING: ("campaign_id", "ad_group_id", "target_id"),
    ReportType.SEARCH_TERM: (
        "campaign_id",
        "ad_group_id",
        "target_key",
        "customer_search_term_norm",
    ),
}

_SHAPE_VALUES: dict[ReportType, Callable[[MappedFactRow], NaturalKey]] = {
    ReportType.CAMPAIGN: lambda row: (row.campaign_id,),
    ReportType.PLACEMENT: lambda row: (
        row.campaign_id,
        _text_key(row.raw.placement_code),
        _text_key(row.raw.placement_norm),
    ),
    ReportType.TARGETING: lambda row: (row.campaign_id, row.ad_group_id, row.target_id),
    ReportType.SEARCH_TERM: lambda row: (
        row.campaign_id,
        row.ad_group_id,
        row.target_key,
        _text_key(row.raw.customer_search_term_norm),
    ),
}


def _text_key(value: str | None) -> str:
    # Stored key columns are NOT NULL; a missing value is kept as "".
    return value or ""


def natural_key_columns(report_type: ReportType) -> tuple[str, ...]:
    """Column names forming the upsert conflict target for ``report_type``."""

    return _BASE_COLUMNS + _SHAPE_COLUMNS[ReportType(report_type)]


def natural_key(row: MappedFactRow) -> NaturalKey:
    return (row.account_id, row.upload_id, row.date, *_SHAPE_VALUES[row.report_type](row))


def dedupe_fact_rows(rows: Iterable[MappedFactRow]) -> list[MappedFactRow]:
    """Keep the last-seen row per natural key.

    Output order follows the first appearance of each key, so a batch that
    repeats a key keeps its position but carries the later row's values.
    """

    by_key: dict[NaturalKey, MappedFactRow] = {}
    for row in rows:
        by_key[natural_key(row)] = row
    return list(by_key.values())


__all__ = ["NaturalKey", "dedupe_fact_rows", "natural_key", "natural_key_columns"]
