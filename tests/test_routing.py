"""
Route Instrumentation Tests

Pageload/navigation spans and transaction names driven by MemoryRouter.
"""

import pytest

from beacon.core.errors import RouterContextError
from beacon.instrumentation.routing import (
    MemoryHistory,
    MemoryRouter,
    Route,
    RouteTracker,
    RouterTracingIntegration,
    match_path,
    with_router_instrumentation,
)
from beacon.observability.context import get_current_scope
from beacon.observability.semantic import SpanAttributes


ROUTES = [
    Route("/"),
    Route("/about", children=[Route("/"), Route("/us")]),
    Route("/user", children=[Route("/:id"), Route("/:id/post/:postId")]),
    Route("/navigate-to-about", redirect="/about"),
    Route("/navigate-to-about-us", redirect="/about/us"),
    Route("/navigate-to-user", redirect="/user/5"),
    Route("/navigate-to-user-post", redirect="/user/5/post/12"),
]


def render_router(initial: str, **integration_options) -> MemoryRouter:
    from beacon.observability.context import get_client

    get_client().add_integration(RouterTracingIntegration(**integration_options))
    router_cls = with_router_instrumentation(MemoryRouter)
    router = router_cls(ROUTES, history=MemoryHistory(initial))
    router.mount()
    return router


def spans_with_op(spans, op):
    return [s for s in spans if s["op"] == op]


# =============================================================================
# Router Tests
# =============================================================================

class TestMemoryRouter:
    """Test the in-memory routing library."""

    def test_match_nested_params(self):
        """Test matching nested params."""
        router = MemoryRouter(ROUTES)

        match = router.match("/user/5/post/12")

        assert match.pattern == "/user/:id/post/:postId"
        assert match.params == {"id": "5", "postId": "12"}

    def test_match_nested_index_route(self):
        """Test matching nested index routes."""
        router = MemoryRouter(ROUTES)

        assert router.match("/about").pattern == "/about"
        assert router.match("/about/us").pattern == "/about/us"
        assert router.match("/nowhere") is None

    def test_match_path(self):
        """Test single pattern matching."""
        assert match_path("/user/:id", "/user/7") == {"id": "7"}
        assert match_path("/user/:id", "/user/7/extra") is None
        assert match_path("/about", "/contact") is None

    def test_hooks_outside_router_context(self):
        """Test hooks outside a mounted router."""
        router = MemoryRouter(ROUTES)

        with pytest.raises(RouterContextError):
            router.current_resolved_path()
        with pytest.raises(RouterContextError):
            router.subscribe_before_leave(lambda event: None)

    def test_redirect_on_mount(self):
        """Test redirects are followed on mount."""
        router = MemoryRouter(ROUTES, history=MemoryHistory("/navigate-to-user"))
        router.mount()

        assert router.current_resolved_path() == "/user/5"
        assert router.current_match.params == {"id": "5"}

    def test_navigate_to_current_path_is_not_a_transition(self):
        """Test navigating to the current path."""
        router = MemoryRouter(ROUTES, history=MemoryHistory("/about"))
        router.mount()
        events = []
        router.subscribe_before_leave(events.append)

        assert router.navigate("/about") is False
        assert events == []

    def test_before_leave_fires_before_commit(self):
        """Test before-leave fires before the route commits."""
        router = MemoryRouter(ROUTES, history=MemoryHistory("/"))
        router.mount()
        seen = []
        router.subscribe_before_leave(
            lambda event: seen.append((event.from_path, event.to_path, router.current_resolved_path()))
        )

        router.navigate("/about")

        assert seen == [("/", "/about", "/")]
        assert router.current_resolved_path() == "/about"

    def test_history_back(self):
        """Test history back."""
        history = MemoryHistory("/")
        history.push("/about")

        assert history.back() == "/"
        assert history.back() is None


# =============================================================================
# Instrumentation Tests
# =============================================================================

class TestRouterTracingIntegration:
    """Test pageload and navigation spans."""

    def test_starts_pageload_span(self, client, started_spans):
        """Test the pageload span."""
        render_router("/")

        assert started_spans[0]["op"] == "pageload"
        assert started_spans[0]["description"] == "/"
        assert started_spans[0]["data"] == {
            SpanAttributes.SOURCE: "url",
            SpanAttributes.OP: "pageload",
            SpanAttributes.ORIGIN: "auto.pageload.browser",
        }

    def test_skips_pageload_span(self, client, started_spans):
        """Test disabling pageload spans."""
        render_router("/", instrument_page_load=False)

        assert spans_with_op(started_spans, "pageload") == []

    @pytest.mark.parametrize("navigation_path,path", [
        ("/navigate-to-about", "/about"),
        ("/navigate-to-about-us", "/about/us"),
        ("/navigate-to-user", "/user/5"),
        ("/navigate-to-user-post", "/user/5/post/12"),
    ])
    def test_starts_navigation_span(self, client, started_spans, navigation_path, path):
        """Test navigation spans after redirects."""
        render_router(navigation_path)

        navigations = spans_with_op(started_spans, "navigation")
        assert len(navigations) == 1
        assert navigations[0]["description"] == path
        assert navigations[0]["data"] == {
            SpanAttributes.SOURCE: "url",
            SpanAttributes.OP: "navigation",
            SpanAttributes.ORIGIN: "auto.navigation.beacon.router",
        }

    def test_skips_navigation_span(self, client, started_spans):
        """Test disabling navigation spans."""
        render_router("/navigate-to-about", instrument_navigation=False)

        assert spans_with_op(started_spans, "navigation") == []
        assert len(spans_with_op(started_spans, "pageload")) == 1

    def test_updates_transaction_name_on_navigation(self, client):
        """Test navigation updates the transaction name."""
        render_router("/navigate-to-about")

        assert get_current_scope().get_scope_data().transaction_name == "/about"

    def test_transaction_name_updated_with_navigation_disabled(self, client):
        """Test transaction name without navigation spans."""
        render_router("/navigate-to-user", instrument_navigation=False)

        assert get_current_scope().transaction_name == "/user/5"

    def test_home_to_about(self, client, started_spans):
        """Test navigating from home to about."""
        router = render_router("/")
        router.navigate("/about")

        assert [(s["op"], s["description"]) for s in started_spans] == [
            ("pageload", "/"),
            ("navigation", "/about"),
        ]
        assert get_current_scope().transaction_name == "/about"

    def test_one_pageload_and_one_navigation_per_transition(self, client, started_spans):
        """Test span counts over several transitions."""
        router = render_router("/")
        for path in ["/about", "/user/1", "/about/us", "/about/us", "/user/1/post/2"]:
            router.navigate(path)

        assert len(spans_with_op(started_spans, "pageload")) == 1
        # The repeated "/about/us" is not a transition
        assert len(spans_with_op(started_spans, "navigation")) == 4

    def test_previous_route_span_ends_on_navigation(self, client, sink):
        """Test route spans end on the next transition."""
        router = render_router("/")
        router.navigate("/about")

        assert [s.description for s in sink.spans] == ["/"]
        assert sink.spans[0].end_timestamp is not None

        router.unmount()
        assert [s.description for s in sink.spans] == ["/", "/about"]

    def test_unmount_releases_subscription(self, client, started_spans):
        """Test unmounting releases the subscription."""
        router = render_router("/")
        router.unmount()
        router.mount()
        router.navigate("/about")

        # Remounting is not a new initial load
        assert [(s["op"], s["description"]) for s in started_spans] == [
            ("pageload", "/"),
            ("navigation", "/about"),
        ]

    def test_one_pageload_per_session_across_routers(self, client, started_spans):
        """Test one pageload per session across routers."""
        first = render_router("/")
        second = with_router_instrumentation(MemoryRouter)(ROUTES, history=MemoryHistory("/about"))
        second.mount()
        second.navigate("/user/3")

        assert [s["description"] for s in spans_with_op(started_spans, "pageload")] == ["/"]
        assert [s["description"] for s in spans_with_op(started_spans, "navigation")] == ["/user/3"]
        assert first.current_resolved_path() == "/"

    def test_failing_span_start_does_not_break_mount(self, client):
        """Test span start failures do not break mounting."""
        client.add_integration(RouterTracingIntegration())

        def broken_subscriber(span):
            raise RuntimeError("subscriber")

        client.on_span_start(broken_subscriber)
        router = with_router_instrumentation(MemoryRouter)(ROUTES, history=MemoryHistory("/"))

        router.mount()
        router.navigate("/about")

        assert router.current_resolved_path() == "/about"

    def test_user_root_still_runs(self, client):
        """Test a user root still runs."""
        client.add_integration(RouterTracingIntegration())
        calls = []
        router = with_router_instrumentation(MemoryRouter)(
            ROUTES,
            history=MemoryHistory("/"),
            root=lambda router: calls.append(router.current_resolved_path()),
        )
        router.mount()

        assert calls == ["/"]

    def test_without_integration_installed(self, client, started_spans):
        """Test routers without the integration installed."""
        router = with_router_instrumentation(MemoryRouter)(ROUTES, history=MemoryHistory("/"))
        router.mount()
        router.navigate("/about")

        assert started_spans == []
        assert router.current_resolved_path() == "/about"

    def test_reentrant_navigation(self, client, started_spans):
        """Test navigating from a span-start subscriber."""
        router = render_router("/")

        def navigate_again(span):
            if span.description == "/about":
                router.navigate("/user/7")

        client.on_span_start(navigate_again)
        router.navigate("/about")

        descriptions = [s["description"] for s in spans_with_op(started_spans, "navigation")]
        assert sorted(descriptions) == ["/about", "/user/7"]
        assert get_current_scope().transaction_name == "/about"


class TestRouteTracker:
    """Test hook failure handling."""

    class BrokenHooks:
        def subscribe_before_leave(self, callback):
            raise RouterContextError("subscribe_before_leave used outside of a mounted router")

        def current_resolved_path(self):
            raise RouterContextError("current_resolved_path used outside of a mounted router")

    def test_unavailable_hooks_are_a_no_op(self, client, started_spans):
        """Test unavailable hooks are a no-op."""
        tracker = RouteTracker(client, self.BrokenHooks())

        teardown = tracker.attach()
        teardown()

        assert started_spans == []

    def test_hooks_adapter(self, client, started_spans):
        """Test a hooks adapter."""
        class LegacyRouter:
            location = "/legacy/3"

        class Adapter:
            def __init__(self, router):
                self.router = router

            def subscribe_before_leave(self, callback):
                return lambda: None

            def current_resolved_path(self):
                return self.router.location

        integration = RouterTracingIntegration(hooks=Adapter)
        client.add_integration(integration)
        integration.instrument(LegacyRouter())

        assert started_spans[0]["description"] == "/legacy/3"

    def test_options_default_from_config(self, client):
        """Test options default from configuration."""
        from beacon.core.config import BeaconConfig, RoutingConfig, set_config

        set_config(BeaconConfig(routing=RoutingConfig(instrument_page_load=False)))
        integration = RouterTracingIntegration()

        assert integration.instrument_page_load is False
        assert integration.instrument_navigation is True
