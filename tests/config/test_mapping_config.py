from __future__ import annotations

import pytest

from adrecon.config import ConfigurationError, MappingConfig, get_mapping_config


def test_mapping_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "ADRECON_SNAPSHOT_LOOKAHEAD_DAYS",
        "ADRECON_WRITE_CHUNK_SIZE",
        "ADRECON_READ_CHUNK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)

    assert get_mapping_config() == MappingConfig(
        snapshot_lookahead_days=7, write_chunk_size=500, read_chunk_size=500
    )


def test_mapping_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADRECON_SNAPSHOT_LOOKAHEAD_DAYS", "3")
    monkeypatch.setenv("ADRECON_WRITE_CHUNK_SIZE", "100")
    monkeypatch.setenv("ADRECON_READ_CHUNK_SIZE", "50")

    config = get_mapping_config()

    assert config.snapshot_lookahead_days == 3
    assert config.write_chunk_size == 100
    assert config.read_chunk_size == 50


def test_mapping_config_rejects_non_positive_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADRECON_WRITE_CHUNK_SIZE", "0")

    with pytest.raises(ConfigurationError):
        get_mapping_config()
