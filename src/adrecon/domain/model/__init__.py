"""Domain model for report reconciliation."""

from __future__ import annotations

from .enums import EntityLevel, IssueType, MatchType, ReportType
from .inventory import (
    AdGroup,
    Campaign,
    CategoryMapping,
    InventorySnapshot,
    ManualOverride,
    NameHistoryRecord,
    Portfolio,
    Target,
)
from .issues import IssueKey, MappingIssue, serialize_issue_key
from .reports import MappedFactRow, RawReportRow, ReportMetrics, Upload

__all__ = [
    "AdGroup",
    "Campaign",
    "CategoryMapping",
    "EntityLevel",
    "InventorySnapshot",
    "IssueKey",
    "IssueType",
    "ManualOverride",
    "MappedFactRow",
    "MappingIssue",
    "MatchType",
    "NameHistoryRecord",
    "Portfolio",
    "RawReportRow",
    "ReportMetrics",
    "ReportType",
    "Target",
    "Upload",
    "serialize_issue_key",
]
