"""Name history derived from a dated series of inventory snapshots.

Every campaign and ad group gets one record per contiguous stretch of snapshots
in which it kept the same name (and, for ad groups, the same campaign). A
window opens on the first snapshot showing that name and closes, half-open, on
the first snapshot that shows a different name or no longer lists the entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from adrecon.domain.model import EntityLevel, NameHistoryRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import date

    from adrecon.domain.model import InventorySnapshot
    from adrecon.domain.ports.unit_of_work import MappingUnitOfWork

log = getLogger(__name__)

type _EntityRef = tuple[EntityLevel, str]


@dataclass(slots=True)
class _OpenWindow:
    name_norm: str
    parent_id: str | None
    valid_from: date
    valid_to: date | None = None


def build_name_history(snapshots: Iterable[InventorySnapshot]) -> list[NameHistoryRecord]:
    """Campaign and ad group name windows, in the order the windows opened."""

    windows: list[tuple[_EntityRef, _OpenWindow]] = []
    current: dict[_EntityRef, _OpenWindow] = {}

    for snapshot in sorted(snapshots, key=lambda item: item.snapshot_date):
        day = snapshot.snapshot_date
        seen: dict[_EntityRef, tuple[str, str | None]] = {}
        for campaign in snapshot.campaigns:
            seen[(EntityLevel.CAMPAIGN, campaign.campaign_id)] = (campaign.name_norm, None)
        for ad_group in snapshot.ad_groups:
            seen[(EntityLevel.AD_GROUP, ad_group.ad_group_id)] = (
                ad_group.name_norm,
                ad_group.campaign_id,
            )

        for ref, window in current.items():
            if window.valid_to is None and seen.get(ref) != (window.name_norm, window.parent_id):
                window.valid_to = day

        for ref, (name_norm, parent_id) in seen.items():
            window = current.get(ref)
            if window is not None and window.valid_to is None:
                continue
            opened = _OpenWindow(name_norm=name_norm, parent_id=parent_id, valid_from=day)
            current[ref] = opened
            windows.append((ref, opened))

    return [
        NameHistoryRecord(
            entity_level=level,
            entity_id=entity_id,
            name_norm=window.name_norm,
            valid_from=window.valid_from,
            valid_to=window.valid_to,
            parent_id=window.parent_id,
        )
        for (level, entity_id), window in windows
    ]


def rebuild_name_history(
    account_id: str,
    *,
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
) -> int:
    """Recompute the stored name history of ``account_id`` from all its snapshots.

    Returns the number of history records written.
    """

    with unit_of_work_factory() as uow:
        inventory = uow.repositories.inventory
        snapshots = [
            inventory.load_snapshot(account_id, snapshot_date)
            for snapshot_date in inventory.snapshot_dates(account_id)
        ]
        records = build_name_history(snapshots)
        inventory.replace_history(account_id, records)
        uow.commit()

    log.info(
        f"Rebuilt name history for account {account_id}: "
        f"{len(records)} records from {len(snapshots)} snapshots"
    )
    return len(records)


__all__ = ["build_name_history", "rebuild_name_history"]
