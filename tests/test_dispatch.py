"""Tests for the match-and-dispatch loop and parameter-map assembly."""

from __future__ import annotations

import logging

import pytest

from deeproute import (
    GLOBAL_SCHEME,
    ROUTE_PATTERN_KEY,
    ROUTE_SCHEME_KEY,
    ROUTE_URL_KEY,
    ROUTE_WILDCARD_COMPONENTS_KEY,
    DecomposedURL,
    RouteEntry,
    RouteMatch,
    Router,
    build_parameters,
)
from deeproute.testing import HandlerRecorder


class TestBuildParameters:
    def _url(self, query: dict) -> DecomposedURL:  # type: ignore[type-arg]
        return DecomposedURL(url="app:///u/1", scheme="app", path_segments=("u", "1"), query=query)

    def test_precedence(self) -> None:
        entry = RouteEntry(pattern="/u/:id")
        match = RouteMatch(variables={"id": "1", "k": "placeholder"})
        params = build_parameters(
            entry,
            match,
            self._url({"id": "q", "k": "q", "only_query": "q", ROUTE_URL_KEY: "q"}),
            "app",
            {"k": "extra", "only_extra": "e", ROUTE_PATTERN_KEY: "e"},
        )
        assert params["only_query"] == "q"
        assert params["id"] == "1"
        assert params["k"] == "extra"
        assert params["only_extra"] == "e"
        assert params[ROUTE_PATTERN_KEY] == "/u/:id"
        assert params[ROUTE_URL_KEY] == "app:///u/1"
        assert params[ROUTE_SCHEME_KEY] == "app"

    def test_wildcard_key_only_with_wildcard(self) -> None:
        entry = RouteEntry(pattern="/u/:id")
        plain = build_parameters(entry, RouteMatch(), self._url({}), "app")
        assert ROUTE_WILDCARD_COMPONENTS_KEY not in plain

        wild = build_parameters(
            entry, RouteMatch(wildcard_components=("a", "b")), self._url({}), "app"
        )
        assert wild[ROUTE_WILDCARD_COMPONENTS_KEY] == ["a", "b"]

    def test_query_lists_copied(self) -> None:
        url = self._url({"tag": ["a", "b"]})
        params = build_parameters(RouteEntry(pattern="/u/:id"), RouteMatch(), url, "app")
        params["tag"].append("c")
        assert url.query["tag"] == ["a", "b"]


class TestRoute:
    def test_round_trip(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.add_route("/user/:id", recorder.handler("user"))
        assert ns.route("/user/42") is True
        assert recorder.calls[0].parameters["id"] == "42"

    def test_declination_tries_next(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.add_route("/x/:id", recorder.handler("no", result=False), priority=1)
        ns.add_route("/x/*", recorder.handler("yes"))
        ns.add_route("/x/:id", recorder.handler("never"))
        assert ns.route("app:///x/1") is True
        assert recorder.names() == ["no", "yes"]

    def test_each_handler_gets_a_fresh_map(self, router: Router) -> None:
        seen: list[dict] = []  # type: ignore[type-arg]

        def mutating(params: dict) -> bool:  # type: ignore[type-arg]
            params["id"] = "tampered"
            seen.append(params)
            return False

        def reader(params: dict) -> bool:  # type: ignore[type-arg]
            seen.append(dict(params))
            return True

        ns = router.namespace("app")
        ns.add_route("/x/:id", mutating)
        ns.add_route("/x/:id", reader)
        assert ns.route("app:///x/1") is True
        assert seen[1]["id"] == "1"

    def test_none_handler_always_handles(self, router: Router) -> None:
        ns = router.namespace("app")
        ns.add_route("/x", None)
        assert ns.route("app:///x") is True

    def test_truthy_result_counts_as_handled(self, router: Router) -> None:
        ns = router.namespace("app")
        ns.add_route("/x", lambda params: 1)  # type: ignore[arg-type,return-value]
        assert ns.route("app:///x") is True

    def test_handler_exception_propagates(self, router: Router) -> None:
        def boom(params: dict) -> bool:  # type: ignore[type-arg]
            msg = "handler failed"
            raise RuntimeError(msg)

        ns = router.namespace("app")
        ns.add_route("/x", boom)
        with pytest.raises(RuntimeError, match="handler failed"):
            ns.route("app:///x")

    def test_none_url(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        assert ns.route(None) is False
        assert ns.can_route(None) is False
        assert recorder.unmatched == []

    def test_empty_path_matches_root(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.add_route("/", recorder.handler("root"))
        assert ns.route("app://") is True
        assert ns.route("") is True

    def test_extra_parameters_reach_handler(
        self, router: Router, recorder: HandlerRecorder
    ) -> None:
        ns = router.namespace("app")
        ns.add_route("/x", recorder.handler("x"))
        ns.route("app:///x", {"animated": True})
        assert recorder.calls[0].parameters["animated"] is True

    def test_handler_may_register_routes(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")

        def installer(params: dict) -> bool:  # type: ignore[type-arg]
            ns.add_route("/installed", recorder.handler("installed"))
            return True

        ns.add_route("/install", installer)
        assert ns.route("app:///install") is True
        assert ns.route("app:///installed") is True


class TestUnmatched:
    def test_called_with_url_and_parameters(
        self, router: Router, recorder: HandlerRecorder
    ) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        extra = {"from": "test"}
        assert ns.route("app:///nothing", extra) is False
        assert recorder.unmatched == [("app:///nothing", extra)]

    def test_called_after_all_decline(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        ns.add_route("/x", recorder.handler("x", result=False))
        assert ns.route("app:///x") is False
        assert recorder.names() == ["x"]
        assert len(recorder.unmatched) == 1

    def test_called_on_decode_failure(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        ns.add_route("/*", recorder.handler("any"))
        assert ns.route("app:///bad%zz") is False
        assert recorder.names() == []
        assert len(recorder.unmatched) == 1

    def test_called_on_unencodable_url(
        self, router: Router, recorder: HandlerRecorder
    ) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        ns.add_route("/*", recorder.handler("any"))
        url = "app:///files/\ud800"
        assert ns.can_route(url) is False
        assert ns.route(url) is False
        assert recorder.names() == []
        assert recorder.unmatched == [(url, None)]

    def test_not_called_on_success(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        ns.add_route("/x", recorder.handler("x"))
        ns.route("app:///x")
        assert recorder.unmatched == []


class TestFallback:
    def test_enabled(self, router: Router, recorder: HandlerRecorder) -> None:
        router.global_namespace().add_route("/help", recorder.handler("help"))
        ns = router.namespace("app")
        ns.should_fallback_to_global = True
        assert ns.route("app:///help") is True
        assert recorder.calls[0].parameters[ROUTE_SCHEME_KEY] == GLOBAL_SCHEME

    def test_disabled_never_touches_global(
        self, router: Router, recorder: HandlerRecorder
    ) -> None:
        router.global_namespace().add_route("/help", recorder.handler("help"))
        ns = router.namespace("app")
        assert ns.route("app:///help") is False
        assert ns.can_route("app:///help") is False
        assert recorder.names() == []

    def test_local_declines_then_global(self, router: Router, recorder: HandlerRecorder) -> None:
        router.global_namespace().add_route("/x", recorder.handler("global"))
        ns = router.namespace("app")
        ns.should_fallback_to_global = True
        ns.add_route("/x", recorder.handler("local", result=False))
        assert ns.route("app:///x") is True
        assert recorder.names() == ["local", "global"]

    def test_missing_global_namespace(self, router: Router) -> None:
        ns = router.namespace("app")
        ns.should_fallback_to_global = True
        assert ns.route("app:///x") is False
        assert GLOBAL_SCHEME not in router

    def test_global_does_not_fall_back_to_itself(
        self, router: Router, recorder: HandlerRecorder
    ) -> None:
        glob = router.global_namespace()
        glob.should_fallback_to_global = True
        glob.add_route("/x", recorder.handler("x", result=False))
        assert glob.route("/x") is False
        assert recorder.names() == ["x"]


class TestCanRoute:
    def test_never_calls_handlers(self, router: Router, recorder: HandlerRecorder) -> None:
        ns = router.namespace("app")
        ns.unmatched_url_handler = recorder.unmatched_handler
        ns.add_route("/x", recorder.handler("x", result=False))
        assert ns.can_route("app:///x") is True
        assert ns.can_route("app:///y") is False
        assert recorder.calls == []
        assert recorder.unmatched == []

    @pytest.mark.parametrize(
        "url",
        [
            "app:///x",
            "app:///y",
            "app:///files/a/b",
            "app:///user/1",
            "app:///user",
            "app:///%zz",
            "app:///files/\ud800",
        ],
    )
    def test_agrees_with_route(self, router: Router, url: str) -> None:
        ns = router.namespace("app")
        hits: list[str] = []
        for pattern in ("/x", "/files/*", "/user/:id"):
            ns.add_route(pattern, lambda params, p=pattern: hits.append(p) is None)
        assert ns.can_route(url) == ns.route(url)
        assert ns.can_route(url) == bool(hits)


class TestVerboseLogging:
    def test_traces_when_enabled(
        self, router: Router, recorder: HandlerRecorder, caplog: pytest.LogCaptureFixture
    ) -> None:
        router.set_verbose_logging(True)
        ns = router.namespace("app")
        ns.add_route("/x", recorder.handler("x", result=False))
        with caplog.at_level(logging.DEBUG, logger="deeproute"):
            ns.route("app:///x")
        messages = [r.getMessage() for r in caplog.records]
        assert any("routing 'app:///x'" in m for m in messages)
        assert any("declined" in m for m in messages)
        assert any("no route handled" in m for m in messages)
        assert all(r.levelno == logging.DEBUG for r in caplog.records)

    def test_silent_when_disabled(
        self, router: Router, recorder: HandlerRecorder, caplog: pytest.LogCaptureFixture
    ) -> None:
        ns = router.namespace("app")
        ns.add_route("/x", recorder.handler("x"))
        with caplog.at_level(logging.DEBUG, logger="deeproute"):
            ns.route("app:///x")
            ns.route("app:///%zz")
        assert caplog.records == []

    def test_decode_failure_logged_at_debug(
        self, router: Router, caplog: pytest.LogCaptureFixture
    ) -> None:
        router.set_verbose_logging(True)
        ns = router.namespace("app")
        with caplog.at_level(logging.DEBUG, logger="deeproute"):
            ns.route("app:///%zz")
        assert any("malformed percent-escape" in r.getMessage() for r in caplog.records)
        assert not any(r.levelno >= logging.WARNING for r in caplog.records)
