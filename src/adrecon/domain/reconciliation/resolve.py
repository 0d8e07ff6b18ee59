"""Name-chain resolution against a snapshot index.

Responsibilities of this stage:
- resolve one step of the chain (campaign, ad group or target) to an ID
- classify failures as ``Ambiguous`` or ``NotFound`` instead of guessing
- keep every lookup scoped to the already resolved parent

Tier order for every level:
1) live snapshot (campaigns narrowed by portfolio when that yields one match)
2) name history, consulted only when the snapshot found nothing
3) manual overrides, consulted while the step is still unresolved

Each function is pure over ``(index, reference_date, keys)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adrecon.domain.model import EntityLevel, MatchType
from adrecon.domain.naming import normalize_category_expression, normalize_match_type

from .contracts import Ambiguous, CandidateInfo, CandidateSource, NotFound, Resolved

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import date

    from adrecon.domain.model import ManualOverride, NameHistoryRecord

    from .contracts import Resolution
    from .index import SnapshotIndex


def resolve_campaign(
    name_norm: str,
    portfolio_name_norm: str | None,
    reference_date: date,
    index: SnapshotIndex,
) -> Resolution:
    campaigns = index.campaigns_by_name.get(name_norm, ())
    snapshot = [
        CandidateInfo(entity_id=campaign.campaign_id, source=CandidateSource.SNAPSHOT)
        for campaign in campaigns
    ]

    def narrow_by_portfolio(candidates: list[CandidateInfo]) -> list[CandidateInfo]:
        if not portfolio_name_norm:
            return candidates
        portfolio_ids = index.portfolio_ids_named(portfolio_name_norm)
        if not portfolio_ids:
            return candidates
        return [
            candidate
            for candidate in candidates
            if index.campaigns_by_id[candidate.entity_id].portfolio_id in portfolio_ids
        ]

    return _resolve_tiers(
        snapshot,
        narrow=narrow_by_portfolio,
        history=lambda: _history_candidates(
            index.history_for(EntityLevel.CAMPAIGN, name_norm), reference_date
        ),
        overrides=lambda: _override_candidates(
            index.overrides_for(EntityLevel.CAMPAIGN, name_norm), reference_date
        ),
    )


def resolve_ad_group(
    campaign_id: str,
    name_norm: str,
    reference_date: date,
    index: SnapshotIndex,
) -> Resolution:
    """Resolve an ad group; never crosses into another campaign."""

    snapshot = [
        CandidateInfo(entity_id=ad_group.ad_group_id, source=CandidateSource.SNAPSHOT)
        for ad_group in index.ad_groups_by_campaign_name.get((campaign_id, name_norm), ())
    ]

    def history() -> list[CandidateInfo]:
        records = [
            record
            for record in index.history_for(EntityLevel.AD_GROUP, name_norm)
            if (record.parent_id or index.campaign_of_ad_group(record.entity_id)) == campaign_id
        ]
        return _history_candidates(records, reference_date)

    def overrides() -> list[CandidateInfo]:
        records = [
            record
            for record in index.overrides_for(EntityLevel.AD_GROUP, name_norm)
            if index.campaign_of_ad_group(record.entity_id) == campaign_id
        ]
        return _override_candidates(records, reference_date)

    return _resolve_tiers(snapshot, history=history, overrides=overrides)


def resolve_target(
    ad_group_id: str,
    expression_norm: str,
    match_type_norm: MatchType | str | None,
    is_negative: bool,
    reference_date: date,
    index: SnapshotIndex,
) -> Resolution:
    """Resolve a target within one ad group.

    Category names in the expression are replaced by category IDs first. An
    ``UNKNOWN`` or missing match type matches any stored match type. Targets have
    no history tier.
    """

    expression = normalize_category_expression(expression_norm, index.category_id_by_name)
    match_type = normalize_match_type(match_type_norm)
    if match_type is MatchType.UNKNOWN:
        targets = index.targets_by_expression.get((ad_group_id, expression, is_negative), ())
    else:
        targets = index.targets_by_key.get(
            (ad_group_id, expression, match_type, is_negative), ()
        )
    snapshot = [
        CandidateInfo(entity_id=target.target_id, source=CandidateSource.SNAPSHOT)
        for target in targets
    ]

    def overrides() -> list[CandidateInfo]:
        records = [
            record
            for record in index.overrides_for(EntityLevel.TARGET, expression)
            if index.ad_group_of_target(record.entity_id) == ad_group_id
        ]
        return _override_candidates(records, reference_date)

    return _resolve_tiers(snapshot, history=list, overrides=overrides)


def _resolve_tiers(
    snapshot: list[CandidateInfo],
    *,
    history: Callable[[], list[CandidateInfo]],
    overrides: Callable[[], list[CandidateInfo]],
    narrow: Callable[[list[CandidateInfo]], list[CandidateInfo]] | None = None,
) -> Resolution:
    first_ambiguity: Ambiguous | None = None

    candidates = _distinct(snapshot)
    if len(candidates) == 1:
        return _resolved(candidates[0])
    if candidates:
        narrowed = _distinct(narrow(candidates)) if narrow is not None else candidates
        if len(narrowed) == 1:
            return _resolved(narrowed[0])
        first_ambiguity = Ambiguous(candidates=tuple(candidates))
    else:
        candidates = _distinct(history())
        if len(candidates) == 1:
            return _resolved(candidates[0])
        if candidates:
            first_ambiguity = Ambiguous(candidates=tuple(candidates))

    candidates = _distinct(overrides())
    if len(candidates) == 1:
        return _resolved(candidates[0])
    if candidates and first_ambiguity is None:
        first_ambiguity = Ambiguous(candidates=tuple(candidates))

    return first_ambiguity if first_ambiguity is not None else NotFound()


def _resolved(candidate: CandidateInfo) -> Resolved:
    return Resolved(entity_id=candidate.entity_id, source=candidate.source)


def _distinct(candidates: Iterable[CandidateInfo]) -> list[CandidateInfo]:
    """One candidate per entity ID, ordered by ID."""

    by_id: dict[str, CandidateInfo] = {}
    for candidate in candidates:
        by_id.setdefault(candidate.entity_id, candidate)
    return [by_id[entity_id] for entity_id in sorted(by_id)]


def _history_candidates(
    records: Iterable[NameHistoryRecord],
    reference_date: date,
) -> list[CandidateInfo]:
    return [
        CandidateInfo(
            entity_id=record.entity_id,
            source=CandidateSource.HISTORY,
            valid_from=record.valid_from,
            valid_to=record.valid_to,
        )
        for record in records
        if record.window.contains(reference_date)
    ]


def _override_candidates(
    records: Iterable[ManualOverride],
    reference_date: date,
) -> list[CandidateInfo]:
    return [
        CandidateInfo(
            entity_id=record.entity_id,
            source=CandidateSource.OVERRIDE,
            valid_from=record.valid_from,
            valid_to=record.valid_to,
        )
        for record in records
        if record.window.contains(reference_date)
    ]


__all__ = ["resolve_ad_group", "resolve_campaign", "resolve_target"]
