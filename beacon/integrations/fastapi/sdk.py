"""
FastAPI flavour of Beacon initialization.
"""

from __future__ import annotations

from typing import Iterable, Optional

from beacon.core.config import BeaconConfig, get_config
from beacon.observability.client import Integration, TracingClient
from beacon.observability.sink import ReportingSink
from beacon import sdk

FRAMEWORK = "fastapi"


def init(
    config: Optional[BeaconConfig] = None,
    sink: Optional[ReportingSink] = None,
    integrations: Iterable[Integration] = (),
    configure_logs: bool = True,
) -> TracingClient:
    """Initialize Beacon for a FastAPI application.

    Spans tagged with ``fastapi.type`` get op ``<type>.fastapi``.
    """
    config = (config or get_config()).model_copy(update={"framework": FRAMEWORK})
    return sdk.init(
        config=config,
        sink=sink,
        integrations=integrations,
        sdk_name=FRAMEWORK,
        configure_logs=configure_logs,
    )
