"""Reconciliation of report rows against inventory snapshots.

Layered flow:
1) select the snapshot a report batch reconciles against
2) build a read-only index over that snapshot
3) resolve each row's name chain (campaign, ad group, target) to stable IDs
4) collect unresolved rows as deduplicated issues
5) deduplicate mapped facts by natural key, last write wins
6) upsert facts chunk by chunk and replace the batch's issues
"""

from __future__ import annotations

from .contracts import (
    Ambiguous,
    CandidateInfo,
    CandidateSource,
    NotFound,
    Resolution,
    ResolutionStatus,
    Resolved,
)
from .deduplicate import NaturalKey, dedupe_fact_rows, natural_key, natural_key_columns
from .engine import (
    MappingError,
    MappingRunResult,
    MappingRunStatus,
    MissingExportDateError,
    UploadMismatchError,
    UploadNotFoundError,
    map_upload,
)
from .history import build_name_history, rebuild_name_history
from .index import SnapshotIndex
from .issues import IssueCollector
from .mappers import (
    BatchContext,
    MappingOutput,
    ScopeViolationError,
    map_campaign_rows,
    map_placement_rows,
    map_rows,
    map_search_term_rows,
    map_targeting_rows,
)
from .persist import ChunkFailure, FactWriteError, FactWriteResult, write_facts
from .resolve import resolve_ad_group, resolve_campaign, resolve_target
from .select import distinct_campaign_names, pick_snapshot_by_date, select_snapshot

__all__ = [
    "Ambiguous",
    "BatchContext",
    "CandidateInfo",
    "CandidateSource",
    "ChunkFailure",
    "FactWriteError",
    "FactWriteResult",
    "IssueCollector",
    "MappingError",
    "MappingOutput",
    "MappingRunResult",
    "MappingRunStatus",
    "MissingExportDateError",
    "NaturalKey",
    "NotFound",
    "Resolution",
    "ResolutionStatus",
    "Resolved",
    "ScopeViolationError",
    "SnapshotIndex",
    "UploadMismatchError",
    "UploadNotFoundError",
    "build_name_history",
    "dedupe_fact_rows",
    "distinct_campaign_names",
    "map_campaign_rows",
    "map_placement_rows",
    "map_rows",
    "map_search_term_rows",
    "map_targeting_rows",
    "map_upload",
    "natural_key",
    "natural_key_columns",
    "pick_snapshot_by_date",
    "rebuild_name_history",
    "resolve_ad_group",
    "resolve_campaign",
    "resolve_target",
    "select_snapshot",
    "write_facts",
]
