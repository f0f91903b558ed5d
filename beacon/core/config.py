"""
Beacon Configuration Management

Centralized configuration for the instrumentation engine with:
- Environment-based configuration
- Type-safe settings with Pydantic
- JSON config file loading
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class LogLevel(str, Enum):
    """Logging levels for Beacon."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RoutingConfig(BaseModel):
    """Configuration for router instrumentation."""
    instrument_page_load: bool = True
    instrument_navigation: bool = True


class CronJob(BaseModel):
    """A scheduled job definition, keyed by the request path it calls."""
    path: str
    schedule: str = Field(description="Crontab expression")

    @field_validator("path", "schedule")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v


class CronsConfig(BaseModel):
    """Configuration for scheduled-job check-ins."""
    checkin_margin: int = Field(default=2, ge=0, description="Minutes a job may start late")
    max_runtime: int = Field(default=60 * 12, ge=1, description="Minutes a job may run")
    scheduler_user_agent: str = "vercel-cron"
    jobs: List[CronJob] = Field(default_factory=list)


class BeaconConfig(BaseSettings):
    """
    Main Beacon Configuration

    Loads configuration from environment variables and/or config files.
    Environment variables are prefixed with BEACON_ (e.g., BEACON_LOG_LEVEL=DEBUG)
    """

    service_name: str = "beacon"
    environment: Literal["development", "staging", "production"] = "development"

    # Name used when tagging framework spans (e.g. "handler.fastapi")
    framework: str = "fastapi"

    log_level: LogLevel = LogLevel.INFO
    log_json: bool = False

    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    crons: CronsConfig = Field(default_factory=CronsConfig)

    model_config = {
        "env_prefix": "BEACON_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    @classmethod
    def from_file(cls, config_path: Path) -> "BeaconConfig":
        """Load configuration from a JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config_data = json.load(f)

        return cls(**config_data)


# Global configuration instance (lazy loaded)
_config: Optional[BeaconConfig] = None


def get_config() -> BeaconConfig:
    """Get the global Beacon configuration instance."""
    global _config
    if _config is None:
        _config = BeaconConfig()
    return _config


def set_config(config: Optional[BeaconConfig]) -> None:
    """Set the global Beacon configuration instance."""
    global _config
    _config = config
