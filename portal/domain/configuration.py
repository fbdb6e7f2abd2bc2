"""Site-wide admin configuration records."""
from __future__ import annotations

from dataclasses import dataclass

ACCESS_CONFIG_TYPE = "FireCloud Access"
NOTIFIER_CONFIG_TYPE = "API Health Check Notifier"


@dataclass(slots=True)
class ConfigurationRecord:
    """One admin setting, keyed by ``config_type``."""

    config_type: str
    value_type: str
    value: str | None = None
    multiplier: str | None = None
