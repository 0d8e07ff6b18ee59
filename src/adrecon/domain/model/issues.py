"""Structured records for rows that could not be reconciled."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .enums import EntityLevel, IssueType

if TYPE_CHECKING:
    from collections.abc import Mapping


type IssueKey = Mapping[str, Any]


def serialize_issue_key(key: IssueKey) -> str:
    """Canonical JSON for an issue key; equal keys always serialize identically."""

    return json.dumps(dict(key), sort_keys=True, separators=(",", ":"), default=str)


@dataclass(frozen=True, slots=True, kw_only=True)
class MappingIssue:
    """One distinct unresolved key within a batch.

    ``candidates`` is populated only for ambiguous issues and holds plain
    JSON-compatible dictionaries so adapters can store it verbatim.
    """

    entity_level: EntityLevel
    issue_type: IssueType
    key: IssueKey
    candidates: tuple[Mapping[str, Any], ...] | None = None
    row_count: int = 1

    @property
    def key_json(self) -> str:
        return serialize_issue_key(self.key)

    @property
    def candidates_json(self) -> str | None:
        if self.candidates is None:
            return None
        return json.dumps([dict(candidate) for candidate in self.candidates], default=str)
