"""SQLAlchemy adapter package for adrecon."""

from __future__ import annotations

from .mappings import FACT_TABLES, create_all_tables, metadata
from .repositories import (
    SqlAlchemyFactRepository,
    SqlAlchemyInventoryRepository,
    SqlAlchemyIssueRepository,
    SqlAlchemyUploadRepository,
)
from .unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "FACT_TABLES",
    "SqlAlchemyFactRepository",
    "SqlAlchemyInventoryRepository",
    "SqlAlchemyIssueRepository",
    "SqlAlchemyMappingUnitOfWork",
    "SqlAlchemyUploadRepository",
    "StartupError",
    "build_engine",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
