"""Runtime configuration read from the environment."""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from portal.domain import AccessMode, restriction_level

DEFAULT_API_BASE = "https://api.firecloud.org"
DEFAULT_COMPUTE_BLACKLIST = ("single-cell-portal",)


def _default_pid_dir() -> Path:
    return Path(__file__).resolve().parents[2] / "tmp" / "pids"


def _split_csv(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings(BaseModel):
    platform_api_base: str = DEFAULT_API_BASE
    platform_api_token: str | None = None
    platform_timeout: float = Field(default=30.0, gt=0)
    # platform-billed projects whose workspaces are managed automatically
    compute_blacklist: list[str] = Field(default_factory=lambda: list(DEFAULT_COMPUTE_BLACKLIST))
    environment: str = "development"
    pid_dir: Path = Field(default_factory=_default_pid_dir)
    bulk_concurrency: int = Field(default=4, ge=1)
    outage_restriction: AccessMode = AccessMode.READONLY
    log_level: str = "INFO"
    log_json: bool = False
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    @field_validator("outage_restriction", mode="before")
    @classmethod
    def _check_restriction(cls, value: object) -> AccessMode:
        mode = AccessMode.parse(value)  # type: ignore[arg-type]
        restriction_level(mode)
        return mode

    @property
    def production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        values: dict[str, object] = {}
        env_map = {
            "PLATFORM_API_BASE": "platform_api_base",
            "PLATFORM_API_TOKEN": "platform_api_token",
            "PLATFORM_TIMEOUT": "platform_timeout",
            "PORTAL_ENV": "environment",
            "PID_DIR": "pid_dir",
            "BULK_CONCURRENCY": "bulk_concurrency",
            "OUTAGE_RESTRICTION": "outage_restriction",
            "LOG_LEVEL": "log_level",
        }
        for env_name, field_name in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = raw

        blacklist = _split_csv(os.getenv("COMPUTE_BLACKLIST"))
        if blacklist:
            values["compute_blacklist"] = blacklist
        origins = _split_csv(os.getenv("API_CORS_ORIGINS"))
        if origins:
            values["cors_origins"] = origins
        values["log_json"] = os.getenv("LOG_JSON", "").lower() in {"1", "true", "yes"}
        return cls(**values)
