"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    FactRepository,
    InventoryRepository,
    IssueRepository,
    Repository,
    StoreWriteError,
    UploadRepository,
)
from .unit_of_work import (
    MappingRepositories,
    MappingUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "FactRepository",
    "InventoryRepository",
    "IssueRepository",
    "MappingRepositories",
    "MappingUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "StoreWriteError",
    "UnitOfWork",
    "UploadRepository",
]
