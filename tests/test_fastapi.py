"""
FastAPI Integration Tests

Tests cover: request middleware, transaction naming, the global exception
filter and the rethrowing filter variant.
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from beacon.core.errors import ExpectedError
from beacon.integrations.fastapi import (
    BeaconModule,
    GlobalExceptionFilter,
    RethrowingExceptionFilter,
    init,
    is_expected_error,
    set_transaction_name_from_route,
)
from beacon.observability.context import get_current_scope, isolation_scope
from beacon.observability.semantic import SpanAttributes


class NotFoundYet(ExpectedError):
    pass


def create_app(**module_options) -> FastAPI:
    app = FastAPI()

    @app.get("/items/{item_id}")
    def read_item(item_id: int):
        return {"item_id": item_id}

    @app.get("/boom")
    def boom():
        raise RuntimeError("boom")

    @app.get("/missing")
    def missing():
        raise HTTPException(status_code=404, detail="Not here")

    @app.get("/expected")
    def expected():
        raise NotFoundYet("later")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return BeaconModule.for_root(app, **module_options)


@pytest.fixture
def beacon_client(sink):
    return init(sink=sink, configure_logs=False)


@pytest.fixture
def transaction_names(beacon_client):
    """Transaction names seen when each request span ends."""
    names = []
    beacon_client.on("span_end", lambda span: names.append(get_current_scope().transaction_name))
    return names


# =============================================================================
# Middleware Tests
# =============================================================================

class TestBeaconMiddleware:
    """Test per-request spans and transaction names."""

    def test_request_span_is_enriched(self, beacon_client, sink):
        """Test the request span attributes."""
        http = TestClient(create_app())

        response = http.get("/items/5")

        assert response.status_code == 200
        assert len(sink.spans) == 1
        span = sink.spans[0]
        assert span.op == "request_context.fastapi"
        assert span.origin == "auto.http.otel.fastapi"
        assert span.attributes[SpanAttributes.HTTP_ROUTE] == "/items/{item_id}"
        assert span.attributes[SpanAttributes.HTTP_STATUS_CODE] == 200
        assert span.end_timestamp is not None

    def test_transaction_name_from_route(self, beacon_client, transaction_names):
        """Test transaction names use the route template."""
        http = TestClient(create_app())

        http.get("/items/5")
        http.get("/items/6")

        assert transaction_names == ["GET /items/{item_id}", "GET /items/{item_id}"]
        assert get_current_scope().transaction_name is None

    def test_excluded_paths(self, beacon_client, sink):
        """Test excluded paths are not traced."""
        http = TestClient(create_app())

        http.get("/health")

        assert sink.spans == []

    def test_without_client(self, sink):
        """Test requests pass through without a client."""
        http = TestClient(create_app())

        assert http.get("/items/5").json() == {"item_id": 5}
        assert sink.spans == []

    def test_default_scope_is_not_named(self):
        """Test the default scope is never named."""
        route = type("Route", (), {"path": "/items/{item_id}"})()

        with capture_logs() as logs:
            name = set_transaction_name_from_route({"type": "http", "method": "GET", "route": route})

        assert name is None
        assert logs[0]["log_level"] == "warning"

    def test_route_name_in_isolation_scope(self):
        """Test naming inside an isolation scope."""
        route = type("Route", (), {"path": "/users/{user_id}"})()

        with isolation_scope() as scope:
            name = set_transaction_name_from_route({"type": "http", "method": "post", "route": route})

        assert name == "POST /users/{user_id}"
        assert scope.transaction_name == "POST /users/{user_id}"

    def test_no_route_matched(self):
        """Test requests without a matched route."""
        with isolation_scope() as scope:
            assert set_transaction_name_from_route({"type": "http", "method": "GET"}) is None

        assert scope.transaction_name is None


# =============================================================================
# Global Exception Filter Tests
# =============================================================================

class TestGlobalExceptionFilter:
    """Test reporting decisions of the global filter."""

    def test_unexpected_error_is_reported(self, beacon_client, sink):
        """Test unexpected errors are reported with a 500 body."""
        http = TestClient(create_app(), raise_server_exceptions=False)

        response = http.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"statusCode": 500, "message": "Internal server error"}
        assert [type(e) for e in sink.exceptions] == [RuntimeError]
        assert sink.spans[0].attributes[SpanAttributes.HTTP_STATUS_CODE] == 500

    def test_unexpected_error_still_propagates(self, beacon_client, sink):
        """Test unexpected errors still reach the server."""
        http = TestClient(create_app())

        with pytest.raises(RuntimeError, match="boom"):
            http.get("/boom")

        assert len(sink.exceptions) == 1

    def test_http_exception_is_not_reported(self, beacon_client, sink):
        """Test HTTP exceptions are not reported."""
        http = TestClient(create_app())

        response = http.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not here"}
        assert sink.exceptions == []

    def test_validation_error_is_not_reported(self, beacon_client, sink):
        """Test validation errors are not reported."""
        http = TestClient(create_app())

        response = http.get("/items/abc")

        assert response.status_code == 422
        assert sink.exceptions == []

    def test_expected_error_is_not_reported(self, beacon_client, sink):
        """Test expected errors are not reported."""
        http = TestClient(create_app(), raise_server_exceptions=False)

        response = http.get("/expected")

        assert response.status_code == 500
        assert sink.exceptions == []

    def test_custom_predicate(self, beacon_client, sink):
        """Test a custom expected-error predicate."""
        app = create_app(is_expected=lambda exc: isinstance(exc, RuntimeError))
        http = TestClient(app, raise_server_exceptions=False)

        http.get("/boom")
        http.get("/missing")

        assert [type(e) for e in sink.exceptions] == [HTTPException]

    @pytest.mark.asyncio
    async def test_catch_directly(self, beacon_client, sink):
        """Test calling catch directly."""
        from starlette.requests import Request

        request = Request({"type": "http", "method": "GET", "path": "/x", "headers": []})
        exception_filter = GlobalExceptionFilter()

        response = await exception_filter.catch(KeyError("k"), request)

        assert response.status_code == 500
        assert len(sink.exceptions) == 1

    def test_default_predicate(self):
        """Test the default expected-error predicate."""
        assert is_expected_error(HTTPException(status_code=400))
        assert is_expected_error(NotFoundYet())
        assert not is_expected_error(ValueError())


# =============================================================================
# Rethrowing Filter Tests
# =============================================================================

class TestRethrowingExceptionFilter:
    """Test the filter variant for contexts that rethrow."""

    def test_client_error_rethrown_without_report_or_log(self, beacon_client, sink):
        """Test client errors are rethrown silently."""
        error = HTTPException(status_code=403, detail="Forbidden")

        with capture_logs() as logs:
            with pytest.raises(HTTPException) as exc_info:
                RethrowingExceptionFilter().catch(error)

        assert exc_info.value is error
        assert sink.exceptions == []
        assert logs == []

    def test_other_error_logged_reported_and_rethrown(self, beacon_client, sink):
        """Test other errors are logged, reported and rethrown."""
        error = ValueError("bad resolver")

        with capture_logs() as logs:
            with pytest.raises(ValueError) as exc_info:
                RethrowingExceptionFilter().catch(error)

        assert exc_info.value is error
        assert sink.exceptions == [error]
        assert logs[0]["event"] == "bad resolver"
        assert logs[0]["log_level"] == "error"

    def test_wrap_sync_resolver(self, beacon_client, sink):
        """Test wrapping a sync resolver."""
        @RethrowingExceptionFilter().wrap
        def resolver(value):
            if value < 0:
                raise ArithmeticError("negative")
            return value * 2

        assert resolver(2) == 4
        with pytest.raises(ArithmeticError):
            resolver(-1)
        assert len(sink.exceptions) == 1

    @pytest.mark.asyncio
    async def test_wrap_async_resolver(self, beacon_client, sink):
        """Test wrapping an async resolver."""
        @RethrowingExceptionFilter().wrap
        async def resolver():
            raise HTTPException(status_code=401)

        with pytest.raises(HTTPException):
            await resolver()
        assert sink.exceptions == []
