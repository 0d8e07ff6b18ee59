"""Builders for inventory snapshots and their lookup index."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from adrecon.domain.model import (
    AdGroup,
    Campaign,
    InventorySnapshot,
    MatchType,
    Portfolio,
    Target,
)
from adrecon.domain.naming import normalize_name
from adrecon.domain.reconciliation import SnapshotIndex

if TYPE_CHECKING:
    from collections.abc import Iterable

    from adrecon.domain.model import CategoryMapping, ManualOverride, NameHistoryRecord

ACCOUNT_ID = "acct-1"
SNAPSHOT_DATE = date(2026, 2, 10)


def make_campaign(campaign_id: str, name: str, *, portfolio_id: str | None = None) -> Campaign:
    return Campaign(
        campaign_id=campaign_id,
        name_raw=name,
        name_norm=normalize_name(name),
        portfolio_id=portfolio_id,
    )


def make_ad_group(ad_group_id: str, campaign_id: str, name: str) -> AdGroup:
    return AdGroup(
        ad_group_id=ad_group_id,
        campaign_id=campaign_id,
        name_raw=name,
        name_norm=normalize_name(name),
    )


def make_target(
    target_id: str,
    ad_group_id: str,
    expression: str,
    *,
    match_type: MatchType = MatchType.EXACT,
    is_negative: bool = False,
) -> Target:
    return Target(
        target_id=target_id,
        ad_group_id=ad_group_id,
        expression_raw=expression,
        expression_norm=normalize_name(expression),
        match_type_norm=match_type,
        is_negative=is_negative,
    )


def make_portfolio(portfolio_id: str, name: str) -> Portfolio:
    return Portfolio(portfolio_id=portfolio_id, name_raw=name, name_norm=normalize_name(name))


def make_snapshot(
    *,
    account_id: str = ACCOUNT_ID,
    snapshot_date: date = SNAPSHOT_DATE,
    campaigns: Iterable[Campaign] = (),
    ad_groups: Iterable[AdGroup] = (),
    targets: Iterable[Target] = (),
    portfolios: Iterable[Portfolio] = (),
    overrides: Iterable[ManualOverride] = (),
    history: Iterable[NameHistoryRecord] = (),
    category_mappings: Iterable[CategoryMapping] = (),
) -> InventorySnapshot:
    return InventorySnapshot(
        account_id=account_id,
        snapshot_date=snapshot_date,
        campaigns=tuple(campaigns),
        ad_groups=tuple(ad_groups),
        targets=tuple(targets),
        portfolios=tuple(portfolios),
        overrides=tuple(overrides),
        history=tuple(history),
        category_mappings=tuple(category_mappings),
    )


def make_index(
    *,
    campaigns: Iterable[Campaign] = (),
    ad_groups: Iterable[AdGroup] = (),
    targets: Iterable[Target] = (),
    portfolios: Iterable[Portfolio] = (),
    overrides: Iterable[ManualOverride] = (),
    history: Iterable[NameHistoryRecord] = (),
    category_mappings: Iterable[CategoryMapping] = (),
) -> SnapshotIndex:
    return SnapshotIndex.build(
        make_snapshot(
            campaigns=campaigns,
            ad_groups=ad_groups,
            targets=targets,
            portfolios=portfolios,
            overrides=overrides,
            history=history,
            category_mappings=category_mappings,
        )
    )
