"""Tuning values for snapshot selection and store access."""

from __future__ import annotations

from dataclasses import dataclass

from .env import positive_int_env_var

DEFAULT_SNAPSHOT_LOOKAHEAD_DAYS = 7
DEFAULT_WRITE_CHUNK_SIZE = 500
DEFAULT_READ_CHUNK_SIZE = 500


@dataclass(frozen=True, slots=True)
class MappingConfig:
    snapshot_lookahead_days: int = DEFAULT_SNAPSHOT_LOOKAHEAD_DAYS
    write_chunk_size: int = DEFAULT_WRITE_CHUNK_SIZE
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE


def get_mapping_config() -> MappingConfig:
    return MappingConfig(
        snapshot_lookahead_days=positive_int_env_var(
            "ADRECON_SNAPSHOT_LOOKAHEAD_DAYS", DEFAULT_SNAPSHOT_LOOKAHEAD_DAYS
        ),
        write_chunk_size=positive_int_env_var(
            "ADRECON_WRITE_CHUNK_SIZE", DEFAULT_WRITE_CHUNK_SIZE
        ),
        read_chunk_size=positive_int_env_var("ADRECON_READ_CHUNK_SIZE", DEFAULT_READ_CHUNK_SIZE),
    )
