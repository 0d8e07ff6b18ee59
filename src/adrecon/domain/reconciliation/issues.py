"""Issue aggregation for one mapping batch.

Failures are collected as *pending* while rows stream through the mapper. A
pending issue only becomes a ``MappingIssue`` if no row with the same key
resolved at the same level. Each level and key yields at most one issue, with an
aggregated ``row_count``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from adrecon.domain.model import EntityLevel, IssueType, MappingIssue, serialize_issue_key

from .contracts import Ambiguous

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from adrecon.domain.model import IssueKey

    from .contracts import Resolution

type IssueSlot = tuple[EntityLevel, str]


@dataclass(slots=True)
class _PendingIssue:
    entity_level: EntityLevel
    issue_type: IssueType
    key: IssueKey
    candidates: tuple[Mapping[str, Any], ...] | None
    row_count: int = 0


@dataclass(slots=True)
class IssueCollector:
    _pending: dict[IssueSlot, _PendingIssue] = field(
        default_factory=dict["IssueSlot", "_PendingIssue"]
    )
    _resolved: dict[EntityLevel, set[str]] = field(
        default_factory=dict["EntityLevel", "set[str]"]
    )

    def add_failure(self, level: EntityLevel, key: IssueKey, resolution: Resolution) -> None:
        """Record one row that failed to resolve at ``level``."""

        if isinstance(resolution, Ambiguous):
            issue_type = IssueType.AMBIGUOUS
            candidates = tuple(candidate.as_dict() for candidate in resolution.candidates)
        else:
            issue_type = IssueType.UNMAPPED
            candidates = None
        self.add(level, issue_type, key, candidates=candidates)

    def add(
        self,
        level: EntityLevel,
        issue_type: IssueType,
        key: IssueKey,
        *,
        candidates: tuple[Mapping[str, Any], ...] | None = None,
        row_count: int = 1,
    ) -> None:
        slot = (level, serialize_issue_key(key))
        pending = self._pending.get(slot)
        if pending is None:
            pending = _PendingIssue(
                entity_level=level,
                issue_type=issue_type,
                key=dict(key),
                candidates=candidates if issue_type is IssueType.AMBIGUOUS else None,
            )
            self._pending[slot] = pending
        elif issue_type is IssueType.AMBIGUOUS and pending.issue_type is not IssueType.AMBIGUOUS:
            # Ambiguous outranks unmapped for the same key.
            pending.issue_type = issue_type
            pending.candidates = candidates
        pending.row_count += row_count

    def mark_resolved(self, level: EntityLevel, key: IssueKey) -> None:
        self._resolved.setdefault(level, set()).add(serialize_issue_key(key))

    def issues(self) -> tuple[MappingIssue, ...]:
        """Pending issues whose key never resolved at their level, in first-seen order."""

        resolved_keys = self._resolved
        return tuple(
            MappingIssue(
                entity_level=pending.entity_level,
                issue_type=pending.issue_type,
                key=pending.key,
                candidates=pending.candidates,
                row_count=pending.row_count,
            )
            for (level, key_json), pending in self._pending.items()
            if key_json not in resolved_keys.get(level, ())
        )


__all__ = ["IssueCollector"]
