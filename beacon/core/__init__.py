"""Beacon Core Module - configuration and error types."""

from beacon.core.config import (
    BeaconConfig,
    CronJob,
    CronsConfig,
    RoutingConfig,
    get_config,
    set_config,
)
from beacon.core.errors import BeaconError, ExpectedError, RouterContextError

__all__ = [
    "BeaconConfig",
    "CronJob",
    "CronsConfig",
    "RoutingConfig",
    "get_config",
    "set_config",
    "BeaconError",
    "ExpectedError",
    "RouterContextError",
]
