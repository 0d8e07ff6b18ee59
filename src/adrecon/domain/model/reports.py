"""Report-side records: uploads, raw rows and the fact rows mapped from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import ReportType

if TYPE_CHECKING:
    from datetime import date, datetime
    from decimal import Decimal


@dataclass(frozen=True, slots=True, kw_only=True)
class Upload:
    """Metadata of one ingested report file."""

    upload_id: str
    account_id: str
    report_type: ReportType
    exported_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReportMetrics:
    impressions: int | None = None
    clicks: int | None = None
    spend: Decimal | None = None
    sales: Decimal | None = None
    orders: int | None = None
    units: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RawReportRow:
    """One parsed report line. Names only, never platform IDs.

    Which optional fields are populated depends on the report shape: ad group and
    targeting fields for targeting/search-term reports, the customer search term for
    search-term reports and placement fields for placement reports.
    """

    date: date
    campaign_name_raw: str
    campaign_name_norm: str
    portfolio_name_raw: str | None = None
    portfolio_name_norm: str | None = None
    ad_group_name_raw: str | None = None
    ad_group_name_norm: str | None = None
    targeting_raw: str | None = None
    targeting_norm: str | None = None
    match_type_raw: str | None = None
    match_type_norm: str | None = None
    customer_search_term_raw: str | None = None
    customer_search_term_norm: str | None = None
    placement_raw: str | None = None
    placement_norm: str | None = None
    placement_code: str | None = None
    metrics: ReportMetrics = field(default_factory=ReportMetrics)


@dataclass(frozen=True, slots=True, kw_only=True)
class MappedFactRow:
    """A raw row enriched with the IDs resolved for its report shape."""

    report_type: ReportType
    account_id: str
    upload_id: str
    exported_at: datetime
    raw: RawReportRow
    campaign_id: str
    portfolio_id: str | None = None
    ad_group_id: str | None = None
    target_id: str | None = None
    target_key: str | None = None

    @property
    def date(self) -> date:
        return self.raw.date
