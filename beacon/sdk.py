"""
Beacon SDK initialization.

Creates the tracing client, binds it to the context and installs the
framework span enrichment.
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog

from beacon.core.config import BeaconConfig, get_config, set_config
from beacon.instrumentation.enrichment import register_framework_enrichment
from beacon.observability.client import Integration, TracingClient
from beacon.observability.context import set_current_client
from beacon.observability.logging import configure_logging
from beacon.observability.sink import ReportingSink

logger = structlog.get_logger(__name__)

__version__ = "0.4.0"


def apply_sdk_metadata(client: TracingClient, name: str, package: str = "beacon") -> None:
    """Tag the client with the SDK name and packages it was set up by."""
    client.sdk_metadata = {
        "name": f"beacon.{name}",
        "version": __version__,
        "packages": [{"name": f"pypi:{package}", "version": __version__}],
    }


def init(
    config: Optional[BeaconConfig] = None,
    sink: Optional[ReportingSink] = None,
    integrations: Iterable[Integration] = (),
    sdk_name: str = "python",
    configure_logs: bool = True,
) -> TracingClient:
    """
    Initialize Beacon and bind the client.

    Args:
        config: Configuration; defaults to the environment-based config
        sink: Where telemetry goes; defaults to an in-memory sink
        integrations: Integrations to install on the client
        sdk_name: SDK flavour recorded in the client metadata
        configure_logs: Whether to configure structlog
    """
    if config is not None:
        set_config(config)
    config = get_config()

    if configure_logs:
        configure_logging(config.log_level, config.log_json)

    client = TracingClient(config=config, sink=sink)
    apply_sdk_metadata(client, sdk_name)
    set_current_client(client)

    register_framework_enrichment(client, config.framework)

    for integration in integrations:
        client.add_integration(integration)

    logger.info(
        "Beacon initialized",
        service_name=config.service_name,
        environment=config.environment,
        framework=config.framework,
        sdk=client.sdk_metadata["name"],
    )
    return client
