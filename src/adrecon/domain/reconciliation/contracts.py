"""Shared reconciliation contract components.

This module intentionally holds only:
- the tagged resolution union returned by the entity resolver
- candidate records attached to ambiguous resolutions
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from datetime import date


class ResolutionStatus(StrEnum):
    """Outcome of one name-chain resolution step."""

    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


class CandidateSource(StrEnum):
    """Which tier produced a candidate."""

    SNAPSHOT = "snapshot"
    HISTORY = "history"
    OVERRIDE = "override"


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateInfo:
    entity_id: str
    source: CandidateSource
    valid_from: date | None = None
    valid_to: date | None = None

    def as_dict(self) -> dict[str, Any]:
        """JSON-compatible form stored alongside ambiguous issues."""

        return {
            "entity_id": self.entity_id,
            "source": str(self.source),
            "valid_from": self.valid_from.isoformat() if self.valid_from else None,
            "valid_to": self.valid_to.isoformat() if self.valid_to else None,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class Resolved:
    """Step resolved to exactly one entity."""

    entity_id: str
    source: CandidateSource
    status: Literal[ResolutionStatus.RESOLVED] = ResolutionStatus.RESOLVED


@dataclass(frozen=True, slots=True, kw_only=True)
class Ambiguous:
    """Step matched several distinct entities within one tier."""

    candidates: tuple[CandidateInfo, ...]
    status: Literal[ResolutionStatus.AMBIGUOUS] = ResolutionStatus.AMBIGUOUS

    def __post_init__(self) -> None:
        if len(self.candidates) < 2:
            raise ValueError("Ambiguous resolution must include at least two candidates")


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFound:
    """No tier produced a candidate."""

    status: Literal[ResolutionStatus.NOT_FOUND] = ResolutionStatus.NOT_FOUND


type Resolution = Resolved | Ambiguous | NotFound


__all__ = [
    "Ambiguous",
    "CandidateInfo",
    "CandidateSource",
    "NotFound",
    "Resolution",
    "ResolutionStatus",
    "Resolved",
]
