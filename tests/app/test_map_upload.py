from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from adrecon.app import map_upload_with_sqlalchemy, rebuild_name_history_with_sqlalchemy
from adrecon.config import MappingConfig
from adrecon.domain.model import ReportType
from adrecon.domain.reconciliation import MappingRunStatus, UploadMismatchError
from tests.helpers.inventory import ACCOUNT_ID, make_campaign, make_snapshot
from tests.helpers.mapping import FakeMappingUnitOfWork, make_fake_repositories
from tests.helpers.reports import make_row, make_upload

if TYPE_CHECKING:
    from collections.abc import Callable

    from adrecon.adapters.sqlalchemy.unit_of_work import SqlAlchemyMappingUnitOfWork


def test_map_upload_starts_adapter_when_needed(monkeypatch: pytest.MonkeyPatch) -> None:
    startup_calls: list[None] = []
    monkeypatch.setattr("adrecon.app.is_started", lambda: False)
    monkeypatch.setattr("adrecon.app.startup", lambda: startup_calls.append(None))

    repositories = make_fake_repositories(
        [make_snapshot(campaigns=[make_campaign("C1", "Summer Sale")])]
    )
    repositories.uploads.add(make_upload())
    repositories.uploads.add_raw_rows("up-1", [make_row("Summer Sale")])

    result = map_upload_with_sqlalchemy(
        "up-1",
        unit_of_work_factory=lambda: FakeMappingUnitOfWork(repositories),
        config=MappingConfig(write_chunk_size=1),
    )

    assert startup_calls == [None]
    assert result.status is MappingRunStatus.OK
    assert result.fact_rows == 1


def test_map_upload_uses_configured_sqlalchemy_adapter(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMappingUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.uploads.add(make_upload(report_type=ReportType.PLACEMENT))
        uow.commit()

    result = map_upload_with_sqlalchemy("up-1")

    assert result.status is MappingRunStatus.MISSING_SNAPSHOT
    with sqlite_unit_of_work() as uow:
        assert len(uow.repositories.issues.list_for("up-1", ReportType.PLACEMENT)) == 1


def test_map_upload_checks_expected_report_type(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMappingUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.uploads.add(make_upload(report_type=ReportType.PLACEMENT))
        uow.commit()

    with pytest.raises(UploadMismatchError):
        map_upload_with_sqlalchemy("up-1", expected_report_type=ReportType.CAMPAIGN)


def test_rebuild_name_history_with_sqlalchemy_stores_windows(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMappingUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        inventory = uow.repositories.inventory
        inventory.add(
            make_snapshot(
                snapshot_date=date(2026, 1, 20), campaigns=[make_campaign("C1", "Summer Sale")]
            )
        )
        inventory.add(
            make_snapshot(
                snapshot_date=date(2026, 2, 10), campaigns=[make_campaign("C1", "Summer Deals")]
            )
        )
        uow.commit()

    written = rebuild_name_history_with_sqlalchemy(ACCOUNT_ID)

    assert written == 2
    with sqlite_unit_of_work() as uow:
        history = uow.repositories.inventory.load_snapshot(ACCOUNT_ID, date(2026, 2, 10)).history
    assert sorted((record.valid_from, record.name_norm, record.valid_to) for record in history) == [
        (date(2026, 1, 20), "summer sale", date(2026, 2, 10)),
        (date(2026, 2, 10), "summer deals", None),
    ]
