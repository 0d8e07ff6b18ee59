"""Mapping pipeline for one uploaded report.

Selector -> index build -> row mapper -> deduplication -> chunked write, all
inside one unit of work. Issues for ``(upload, report_type)`` are replaced on
every run; facts are upserted by natural key, so re-running a mapping never
duplicates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from adrecon.config import MappingConfig
from adrecon.domain.model import EntityLevel, IssueType, MappingIssue, ReportType

from .deduplicate import dedupe_fact_rows
from .index import SnapshotIndex
from .mappers import BatchContext, map_rows
from .persist import FactWriteError, write_facts
from .select import select_snapshot

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date, datetime

    from adrecon.domain.ports import MappingUnitOfWork

    from .persist import FactWriteResult

log = getLogger(__name__)


class MappingError(ValueError):
    """Raised when a mapping run request cannot be served."""


class UploadNotFoundError(MappingError):
    def __init__(self, upload_id: str) -> None:
        self.upload_id = upload_id
        super().__init__(f"Upload {upload_id!r} not found")


class UploadMismatchError(MappingError):
    def __init__(self, upload_id: str, *, actual: ReportType, expected: ReportType) -> None:
        self.upload_id = upload_id
        self.actual = actual
        self.expected = expected
        super().__init__(f"Upload {upload_id!r} is {actual}, expected {expected}")


class MissingExportDateError(MappingError):
    def __init__(self, upload_id: str) -> None:
        self.upload_id = upload_id
        super().__init__(f"Upload {upload_id!r} has no exported_at")


class MappingRunStatus(StrEnum):
    OK = "ok"
    MISSING_SNAPSHOT = "missing_snapshot"


@dataclass(frozen=True, slots=True, kw_only=True)
class MappingRunResult:
    """Outcome of one mapping run."""

    upload_id: str
    report_type: ReportType
    status: MappingRunStatus
    snapshot_date: date | None
    fact_rows: int
    issue_rows: int
    write: FactWriteResult | None = None


def map_upload(
    upload_id: str,
    *,
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
    expected_report_type: ReportType | None = None,
    config: MappingConfig | None = None,
) -> MappingRunResult:
    """Map one upload's raw rows to facts and issues and persist both.

    Raises ``FactWriteError`` after committing every chunk that did succeed
    when at least one fact chunk failed.
    """

    settings = config or MappingConfig()

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        upload = repositories.uploads.get(upload_id)
        if upload is None:
            raise UploadNotFoundError(upload_id)
        if expected_report_type is not None and upload.report_type != expected_report_type:
            raise UploadMismatchError(
                upload_id, actual=upload.report_type, expected=expected_report_type
            )
        if upload.exported_at is None:
            raise MissingExportDateError(upload_id)

        exported_at_date = _export_date(upload.exported_at)
        snapshot_date = select_snapshot(
            upload.account_id,
            repositories.uploads.campaign_names(upload_id),
            exported_at_date,
            repositories.inventory.snapshot_dates(upload.account_id),
            score_snapshot=repositories.inventory.count_campaign_matches,
            lookahead_days=settings.snapshot_lookahead_days,
        )

        if snapshot_date is None:
            log.warning(
                "No inventory snapshot for upload %s (account %s, exported %s)",
                upload_id,
                upload.account_id,
                exported_at_date,
            )
            missing = MappingIssue(
                entity_level=EntityLevel.SNAPSHOT,
                issue_type=IssueType.MISSING_BULK_SNAPSHOT,
                key={"exported_at_date": exported_at_date.isoformat()},
            )
            repositories.issues.replace(upload, upload.report_type, (missing,))
            uow.commit()
            return MappingRunResult(
                upload_id=upload_id,
                report_type=upload.report_type,
                status=MappingRunStatus.MISSING_SNAPSHOT,
                snapshot_date=None,
                fact_rows=0,
                issue_rows=1,
            )

        log.info(
            "Mapping upload %s (%s) against snapshot %s",
            upload_id,
            upload.report_type,
            snapshot_date,
        )
        index = SnapshotIndex.build(
            repositories.inventory.load_snapshot(upload.account_id, snapshot_date)
        )
        output = map_rows(
            upload.report_type,
            repositories.uploads.raw_rows(upload_id),
            index,
            reference_date=exported_at_date,
            batch=BatchContext(
                account_id=upload.account_id,
                upload_id=upload_id,
                exported_at=upload.exported_at,
            ),
        )
        facts = dedupe_fact_rows(output.facts)
        write = write_facts(
            repositories.facts,
            upload.report_type,
            facts,
            settings.write_chunk_size,
        )
        repositories.issues.replace(upload, upload.report_type, output.issues)
        uow.commit()

    log.info(
        f"Finished mapping upload {upload_id}: facts={len(write.written_keys)}/{len(facts)}, "
        f"issues={len(output.issues)}, failed_chunks={len(write.failures)}"
    )
    if not write.ok:
        raise FactWriteError(write)

    return MappingRunResult(
        upload_id=upload_id,
        report_type=upload.report_type,
        status=MappingRunStatus.OK,
        snapshot_date=snapshot_date,
        fact_rows=len(write.written_keys),
        issue_rows=len(output.issues),
        write=write,
    )


def _export_date(exported_at: datetime) -> date:
    if exported_at.tzinfo is None:
        return exported_at.date()
    return exported_at.astimezone(UTC).date()


__all__ = [
    "MappingError",
    "MappingRunResult",
    "MappingRunStatus",
    "MissingExportDateError",
    "UploadMismatchError",
    "UploadNotFoundError",
    "map_upload",
]
