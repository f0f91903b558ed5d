"""Shared fixtures: every test starts from a clean context and config."""

import pytest

from beacon.core.config import set_config
from beacon.observability.client import TracingClient
from beacon.observability.context import reset_context, set_current_client
from beacon.observability.sink import InMemorySink


@pytest.fixture(autouse=True)
def clean_context():
    reset_context()
    set_config(None)
    yield
    reset_context()
    set_config(None)


@pytest.fixture
def sink():
    return InMemorySink()


@pytest.fixture
def client(sink):
    client = TracingClient(sink=sink)
    set_current_client(client)
    return client


@pytest.fixture
def started_spans(client):
    """Serialized spans, in start order."""
    spans = []
    client.on_span_start(lambda span: spans.append(span.to_dict()))
    return spans
