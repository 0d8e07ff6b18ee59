"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ReportType(StrEnum):
    """Shape of an ingested performance report."""

    CAMPAIGN = "campaign"
    PLACEMENT = "placement"
    TARGETING = "targeting"
    SEARCH_TERM = "search_term"


class EntityLevel(StrEnum):
    """Position of an entity (or the snapshot itself) in the name chain."""

    SNAPSHOT = "snapshot"
    CAMPAIGN = "campaign"
    AD_GROUP = "ad_group"
    TARGET = "target"


class IssueType(StrEnum):
    UNMAPPED = "unmapped"
    AMBIGUOUS = "ambiguous"
    MISSING_BULK_SNAPSHOT = "missing_bulk_snapshot"


class MatchType(StrEnum):
    """Normalized keyword/target match types."""

    EXACT = "EXACT"
    PHRASE = "PHRASE"
    BROAD = "BROAD"
    TARGETING_EXPRESSION = "TARGETING_EXPRESSION"
    UNKNOWN = "UNKNOWN"
