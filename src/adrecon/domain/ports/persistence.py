"""Ports for reading inventory/report state and persisting mapping results."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from adrecon.domain.model import (
    CategoryMapping,
    InventorySnapshot,
    ManualOverride,
    MappedFactRow,
    MappingIssue,
    NameHistoryRecord,
    RawReportRow,
    ReportType,
    Upload,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date


class StoreWriteError(RuntimeError):
    """Raised by store adapters when one write chunk could not be persisted."""


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class InventoryRepository(Repository[InventorySnapshot], Protocol):
    """Dated inventory snapshots plus the account-wide naming tables."""

    def snapshot_dates(self, account_id: str) -> list[date]: ...

    def count_campaign_matches(
        self,
        account_id: str,
        snapshot_date: date,
        names: Iterable[str],
    ) -> int: ...

    def load_snapshot(self, account_id: str, snapshot_date: date) -> InventorySnapshot:
        """Entities of one snapshot plus all overrides, history and category mappings.

        Absent history tables yield empty history.
        """
        ...

    def add_overrides(self, account_id: str, overrides: Iterable[ManualOverride]) -> None: ...

    def add_history(self, account_id: str, records: Iterable[NameHistoryRecord]) -> None: ...

    def replace_history(self, account_id: str, records: Iterable[NameHistoryRecord]) -> None:
        """Drop the stored history of ``account_id`` and store ``records`` instead."""
        ...

    def add_category_mappings(
        self, account_id: str, mappings: Iterable[CategoryMapping]
    ) -> None: ...


@runtime_checkable
class UploadRepository(Repository[Upload], Protocol):
    def get(self, upload_id: str) -> Upload | None: ...

    def add_raw_rows(self, upload_id: str, rows: Iterable[RawReportRow]) -> None: ...

    def campaign_names(self, upload_id: str) -> frozenset[str]: ...

    def raw_rows(self, upload_id: str) -> list[RawReportRow]: ...


@runtime_checkable
class FactRepository(Protocol):
    """Idempotent fact store keyed by the natural key of each report shape."""

    def upsert(self, report_type: ReportType, rows: Sequence[MappedFactRow]) -> None:
        """Insert or update one chunk of rows; raise ``StoreWriteError`` on failure."""
        ...

    def count(self, report_type: ReportType, upload_id: str) -> int: ...


@runtime_checkable
class IssueRepository(Protocol):
    def replace(
        self,
        upload: Upload,
        report_type: ReportType,
        issues: Iterable[MappingIssue],
    ) -> None:
        """Clear the issue set of ``(upload, report_type)`` and store ``issues``."""
        ...

    def list_for(self, upload_id: str, report_type: ReportType) -> list[MappingIssue]: ...
