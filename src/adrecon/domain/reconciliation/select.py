"""Snapshot selection for one report batch.

Responsibilities of this stage:
- build the candidate set (snapshots on/before the export date plus a bounded
  look-ahead window after it)
- score candidates by campaign-name overlap with the report
- break ties deterministically

Pure date proximity can pick a snapshot whose campaign set has diverged through
renames or deletions; scoring against the report's own campaign names anchors
the choice to reconciliation quality.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from adrecon.domain.naming import normalize_name
from adrecon.domain.time_windows import days_between, within_lookahead

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from adrecon.domain.model import RawReportRow

log = getLogger(__name__)

DEFAULT_LOOKAHEAD_DAYS = 7


class ScoreSnapshot(Protocol):
    """Count how many of ``names`` exist as campaign names in one snapshot."""

    def __call__(
        self,
        account_id: str,
        snapshot_date: date,
        names: frozenset[str],
    ) -> int: ...


def distinct_campaign_names(rows: Iterable[RawReportRow]) -> frozenset[str]:
    """Normalized, non-blank campaign names referenced by ``rows``."""

    names: set[str] = set()
    for row in rows:
        name = row.campaign_name_norm or normalize_name(row.campaign_name_raw)
        if name:
            names.add(name)
    return frozenset(names)


def pick_snapshot_by_date(exported_at_date: date, candidate_dates: Iterable[date]) -> date | None:
    """Latest snapshot on or before the export date, or ``None``."""

    eligible = [candidate for candidate in candidate_dates if candidate <= exported_at_date]
    return max(eligible, default=None)


def select_snapshot(
    account_id: str,
    campaign_names: Iterable[str],
    exported_at_date: date,
    candidate_dates: Iterable[date],
    *,
    score_snapshot: ScoreSnapshot,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> date | None:
    """Choose the snapshot date a report batch reconciles against.

    Highest overlap score wins. Ties go to the smaller distance from the export
    date, then to the candidate on/before it, then to the earlier date.
    """

    names = frozenset(name for name in campaign_names if name)
    dates = sorted(set(candidate_dates))
    if not names:
        chosen = pick_snapshot_by_date(exported_at_date, dates)
        log.debug(
            "No campaign names for %s; picked %s by date (export %s)",
            account_id,
            chosen,
            exported_at_date,
        )
        return chosen

    candidates = [
        candidate
        for candidate in dates
        if within_lookahead(candidate, exported_at_date, lookahead_days=lookahead_days)
    ]
    if not candidates:
        return None

    ranked: list[tuple[int, int, int, date]] = []
    for candidate in candidates:
        score = score_snapshot(account_id, candidate, names)
        ranked.append(
            (
                -score,
                days_between(candidate, exported_at_date),
                0 if candidate <= exported_at_date else 1,
                candidate,
            )
        )
        log.debug("Snapshot %s scored %d/%d for %s", candidate, score, len(names), account_id)

    return min(ranked)[3]


__all__ = [
    "DEFAULT_LOOKAHEAD_DAYS",
    "ScoreSnapshot",
    "distinct_campaign_names",
    "pick_snapshot_by_date",
    "select_snapshot",
]
