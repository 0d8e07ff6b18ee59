"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from adrecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    is_started,
    startup,
)
from adrecon.config import get_mapping_config
from adrecon.domain.ports.unit_of_work import MappingUnitOfWork
from adrecon.domain.reconciliation import MappingRunResult, map_upload, rebuild_name_history

if TYPE_CHECKING:
    from adrecon.config import MappingConfig
    from adrecon.domain.model import ReportType

UnitOfWorkFactory = Callable[[], MappingUnitOfWork]


log = getLogger(__name__)


def map_upload_with_sqlalchemy(
    upload_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    expected_report_type: ReportType | None = None,
    config: MappingConfig | None = None,
) -> MappingRunResult:
    """Map one stored upload using the configured SQLAlchemy adapter."""

    if not is_started():
        startup()
    settings = config or get_mapping_config()
    effective_uow = unit_of_work_factory or (
        lambda: SqlAlchemyMappingUnitOfWork(read_chunk_size=settings.read_chunk_size)
    )
    log.info(
        "Starting mapping run: upload=%s, expected=%s, lookahead_days=%s, write_chunk_size=%s",
        upload_id,
        expected_report_type,
        settings.snapshot_lookahead_days,
        settings.write_chunk_size,
    )

    result = map_upload(
        upload_id,
        unit_of_work_factory=effective_uow,
        expected_report_type=expected_report_type,
        config=settings,
    )

    log.info(
        f"Finished mapping run: upload={result.upload_id}, status={result.status}, "
        f"snapshot={result.snapshot_date}, facts={result.fact_rows}, issues={result.issue_rows}"
    )

    return result


def rebuild_name_history_with_sqlalchemy(
    account_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    """Recompute an account's campaign and ad group name history from its snapshots."""

    if not is_started():
        startup()
    effective_uow = unit_of_work_factory or SqlAlchemyMappingUnitOfWork
    return rebuild_name_history(account_id, unit_of_work_factory=effective_uow)
