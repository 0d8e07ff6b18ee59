"""Read-only lookup structure over one inventory snapshot.

Responsibilities of this stage:
- group snapshot entities into multi-valued name maps (a name can map to 0, 1 or
  many entities)
- expose ID maps for reverse and ownership lookups
- keep account-wide overrides and history keyed by ``(level, name_norm)`` with
  no date filtering; time scoping happens at resolve time

Out of scope for this stage:
- any resolution policy
- loading from persistence
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Mapping
    from datetime import date

    from adrecon.domain.model import (
        AdGroup,
        Campaign,
        EntityLevel,
        InventorySnapshot,
        ManualOverride,
        MatchType,
        NameHistoryRecord,
        Portfolio,
        Target,
    )

log = getLogger(__name__)

type AdGroupKey = tuple[str, str]
type TargetKey = tuple[str, str, MatchType, bool]
type TargetExpressionKey = tuple[str, str, bool]
type LevelNameKey = tuple[EntityLevel, str]


def _group[K: Hashable, V](
    items: Iterable[V],
    key: Callable[[V], K],
) -> Mapping[K, tuple[V, ...]]:
    grouped: dict[K, list[V]] = defaultdict(list)
    for item in items:
        grouped[key(item)].append(item)
    return MappingProxyType({name: tuple(values) for name, values in grouped.items()})


def _by_id[V](items: Iterable[V], key: Callable[[V], str]) -> Mapping[str, V]:
    return MappingProxyType({key(item): item for item in items})


@dataclass(frozen=True, slots=True, kw_only=True)
class SnapshotIndex:
    """Immutable lookup maps built once per ``(account, snapshot_date)``."""

    account_id: str
    snapshot_date: date
    campaigns_by_name: Mapping[str, tuple[Campaign, ...]]
    campaigns_by_id: Mapping[str, Campaign]
    ad_groups_by_campaign_name: Mapping[AdGroupKey, tuple[AdGroup, ...]]
    ad_groups_by_id: Mapping[str, AdGroup]
    targets_by_key: Mapping[TargetKey, tuple[Target, ...]]
    targets_by_expression: Mapping[TargetExpressionKey, tuple[Target, ...]]
    targets_by_id: Mapping[str, Target]
    portfolios_by_name: Mapping[str, tuple[Portfolio, ...]]
    portfolios_by_id: Mapping[str, Portfolio]
    overrides_by_level_name: Mapping[LevelNameKey, tuple[ManualOverride, ...]]
    history_by_level_name: Mapping[LevelNameKey, tuple[NameHistoryRecord, ...]]
    category_id_by_name: Mapping[str, str]

    @classmethod
    def build(cls, snapshot: InventorySnapshot) -> SnapshotIndex:
        index = cls(
            account_id=snapshot.account_id,
            snapshot_date=snapshot.snapshot_date,
            campaigns_by_name=_group(snapshot.campaigns, lambda c: c.name_norm),
            campaigns_by_id=_by_id(snapshot.campaigns, lambda c: c.campaign_id),
            ad_groups_by_campaign_name=_group(
                snapshot.ad_groups, lambda ag: (ag.campaign_id, ag.name_norm)
            ),
            ad_groups_by_id=_by_id(snapshot.ad_groups, lambda ag: ag.ad_group_id),
            targets_by_key=_group(
                snapshot.targets,
                lambda t: (t.ad_group_id, t.expression_norm, t.match_type_norm, t.is_negative),
            ),
            targets_by_expression=_group(
                snapshot.targets,
                lambda t: (t.ad_group_id, t.expression_norm, t.is_negative),
            ),
            targets_by_id=_by_id(snapshot.targets, lambda t: t.target_id),
            portfolios_by_name=_group(snapshot.portfolios, lambda p: p.name_norm),
            portfolios_by_id=_by_id(snapshot.portfolios, lambda p: p.portfolio_id),
            overrides_by_level_name=_group(
                snapshot.overrides, lambda o: (o.entity_level, o.name_norm)
            ),
            history_by_level_name=_group(
                snapshot.history, lambda h: (h.entity_level, h.name_norm)
            ),
            category_id_by_name=MappingProxyType(
                {m.category_name_norm: m.category_id for m in snapshot.category_mappings}
            ),
        )
        log.debug(
            "Built snapshot index for %s@%s: %d campaigns, %d ad groups, %d targets",
            snapshot.account_id,
            snapshot.snapshot_date,
            len(index.campaigns_by_id),
            len(index.ad_groups_by_id),
            len(index.targets_by_id),
        )
        return index

    def campaign_of_ad_group(self, ad_group_id: str) -> str | None:
        ad_group = self.ad_groups_by_id.get(ad_group_id)
        return ad_group.campaign_id if ad_group is not None else None

    def ad_group_of_target(self, target_id: str) -> str | None:
        target = self.targets_by_id.get(target_id)
        return target.ad_group_id if target is not None else None

    def portfolio_ids_named(self, name_norm: str) -> frozenset[str]:
        return frozenset(p.portfolio_id for p in self.portfolios_by_name.get(name_norm, ()))

    def overrides_for(self, level: EntityLevel, name_norm: str) -> tuple[ManualOverride, ...]:
        return self.overrides_by_level_name.get((level, name_norm), ())

    def history_for(self, level: EntityLevel, name_norm: str) -> tuple[NameHistoryRecord, ...]:
        return self.history_by_level_name.get((level, name_norm), ())


__all__ = ["SnapshotIndex"]
