"""Chunked, idempotent fact writes.

Responsibilities of this stage:
- split the deduplicated rows into store-sized chunks
- attempt every chunk, even after one failed
- report exactly which natural keys were written and which were not
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from adrecon.domain.ports import StoreWriteError

from .deduplicate import natural_key

if TYPE_CHECKING:
    from collections.abc import Sequence

    from adrecon.domain.model import MappedFactRow, ReportType
    from adrecon.domain.ports import FactRepository

    from .deduplicate import NaturalKey

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ChunkFailure:
    index: int
    natural_keys: tuple[NaturalKey, ...]
    error: StoreWriteError


@dataclass(slots=True)
class FactWriteResult:
    written_keys: list[NaturalKey] = field(default_factory=list["NaturalKey"])
    failures: list[ChunkFailure] = field(default_factory=list["ChunkFailure"])

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_keys(self) -> list[NaturalKey]:
        return [key for failure in self.failures for key in failure.natural_keys]


class FactWriteError(RuntimeError):
    """Raised after all chunks were attempted and at least one failed."""

    def __init__(self, result: FactWriteResult) -> None:
        self.result = result
        chunks = ", ".join(str(failure.index) for failure in result.failures)
        super().__init__(
            f"{len(result.failed_keys)} fact rows failed to write (chunks {chunks})"
        )


def write_facts(
    repository: FactRepository,
    report_type: ReportType,
    rows: Sequence[MappedFactRow],
    chunk_size: int,
) -> FactWriteResult:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    result = FactWriteResult()
    for chunk_index, start in enumerate(range(0, len(rows), chunk_size)):
        chunk = rows[start : start + chunk_size]
        keys = tuple(natural_key(row) for row in chunk)
        try:
            repository.upsert(report_type, chunk)
        except StoreWriteError as exc:
            log.warning(
                "Fact chunk %d (%d rows) for %s failed: %s",
                chunk_index,
                len(chunk),
                report_type,
                exc,
            )
            result.failures.append(ChunkFailure(index=chunk_index, natural_keys=keys, error=exc))
            continue
        result.written_keys.extend(keys)
    return result


__all__ = ["ChunkFailure", "FactWriteError", "FactWriteResult", "write_facts"]
