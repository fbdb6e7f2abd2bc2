"""Infrastructure layer for admin configuration persistence."""
from __future__ import annotations

from typing import Protocol

from portal.domain import ConfigurationRecord


class ConfigurationRepository(Protocol):
    """Persistence contract for configuration records."""

    def get(self, config_type: str) -> ConfigurationRecord | None: ...

    def find_or_create(self, config_type: str, value_type: str) -> ConfigurationRecord: ...

    def save(self, record: ConfigurationRecord) -> None: ...


class InMemoryConfigurationRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._records: dict[str, ConfigurationRecord] = {}

    def get(self, config_type: str) -> ConfigurationRecord | None:
        return self._records.get(config_type)

    def find_or_create(self, config_type: str, value_type: str) -> ConfigurationRecord:
        record = self._records.get(config_type)
        if record is None:
            record = ConfigurationRecord(config_type=config_type, value_type=value_type)
            self._records[config_type] = record
        return record

    def save(self, record: ConfigurationRecord) -> None:
        # last write wins
        self._records[record.config_type] = record
