"""Inventory snapshot entities keyed by stable platform identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from adrecon.domain.time_windows import ValidityWindow

from .enums import EntityLevel, MatchType

if TYPE_CHECKING:
    from datetime import date


@dataclass(frozen=True, slots=True, kw_only=True)
class Campaign:
    campaign_id: str
    name_raw: str
    name_norm: str
    portfolio_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AdGroup:
    ad_group_id: str
    campaign_id: str
    name_raw: str
    name_norm: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Target:
    """Keyword or product target; identity needs expression, match type and polarity."""

    target_id: str
    ad_group_id: str
    expression_raw: str
    expression_norm: str
    match_type_norm: MatchType = MatchType.UNKNOWN
    is_negative: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class Portfolio:
    portfolio_id: str
    name_raw: str
    name_norm: str


@dataclass(frozen=True, slots=True, kw_only=True)
class NameHistoryRecord:
    """An entity was known by ``name_norm`` during ``[valid_from, valid_to)``.

    ``parent_id`` carries the owning campaign for ad-group records so that history
    lookups can stay scoped to one campaign.
    """

    entity_level: EntityLevel
    entity_id: str
    name_norm: str
    valid_from: date
    valid_to: date | None = None
    parent_id: str | None = None

    @property
    def window(self) -> ValidityWindow:
        return ValidityWindow(valid_from=self.valid_from, valid_to=self.valid_to)


@dataclass(frozen=True, slots=True, kw_only=True)
class ManualOverride:
    """Operator-asserted name → ID mapping, optionally time-bounded."""

    entity_level: EntityLevel
    entity_id: str
    name_norm: str
    valid_from: date | None = None
    valid_to: date | None = None

    @property
    def window(self) -> ValidityWindow:
        return ValidityWindow(valid_from=self.valid_from, valid_to=self.valid_to)


@dataclass(frozen=True, slots=True)
class CategoryMapping:
    category_name_norm: str
    category_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class InventorySnapshot:
    """Point-in-time inventory export plus the account-wide naming tables.

    Entity collections belong to ``snapshot_date``; overrides, history and category
    mappings are account-scoped and loaded without date filtering.
    """

    account_id: str
    snapshot_date: date
    campaigns: tuple[Campaign, ...] = ()
    ad_groups: tuple[AdGroup, ...] = ()
    targets: tuple[Target, ...] = ()
    portfolios: tuple[Portfolio, ...] = ()
    overrides: tuple[ManualOverride, ...] = ()
    history: tuple[NameHistoryRecord, ...] = ()
    category_mappings: tuple[CategoryMapping, ...] = ()
