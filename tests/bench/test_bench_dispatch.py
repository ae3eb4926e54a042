"""Dispatch benchmarks for deeproute.

Measures the hot path: URL decomposition, first-accepting-handler
scanning, miss-heavy workloads, global fallback, and verbose-trace
overhead.

Run: uv run pytest tests/bench/test_bench_dispatch.py --benchmark-only
"""

from __future__ import annotations

from deeproute import DEFAULT_OPTIONS, Router, decompose_url

# ── Fixtures ─────────────────────────────────────────────────────────────────


def _accept(params):
    return True


def _decline(params):
    return False


def _router_with_n_routes(n: int) -> Router:
    router = Router()
    ns = router.namespace("app")
    for i in range(n):
        ns.add_route(f"/route/{i}/:id", _accept)
    return router


# ── URL decomposition ────────────────────────────────────────────────────────


def test_bench_decompose_simple(benchmark):
    benchmark(decompose_url, "app:///user/42", DEFAULT_OPTIONS)


def test_bench_decompose_with_query(benchmark):
    benchmark(
        decompose_url,
        "app:///search/shoes?color=red&size=10&tag=a&tag=b&q=running+shoes",
        DEFAULT_OPTIONS,
    )


def test_bench_decompose_escaped(benchmark):
    benchmark(decompose_url, "app:///caf%C3%A9/men%C3%BC/%E2%9C%93", DEFAULT_OPTIONS)


# ── Core scenarios ───────────────────────────────────────────────────────────


def test_bench_route_first_hit(benchmark):
    router = _router_with_n_routes(100)
    assert benchmark(router.route, "app:///route/0/x")


def test_bench_route_last_hit(benchmark):
    router = _router_with_n_routes(100)
    assert benchmark(router.route, "app:///route/99/x")


def test_bench_route_miss(benchmark):
    router = _router_with_n_routes(100)
    assert not benchmark(router.route, "app:///nothing/here")


def test_bench_can_route_miss(benchmark):
    router = _router_with_n_routes(100)
    assert not benchmark(router.can_route, "app:///nothing/here")


def test_bench_route_declining_chain(benchmark):
    router = Router()
    ns = router.namespace("app")
    for _ in range(20):
        ns.add_route("/item/:id", _decline)
    ns.add_route("/item/:id", _accept)
    assert benchmark(router.route, "app:///item/7")


def test_bench_route_trailing_wildcard(benchmark):
    router = Router()
    router.namespace("app").add_route("/files/*", _accept)
    assert benchmark(router.route, "app:///files/a/b/c/d/e/f/g/h")


def test_bench_route_global_fallback(benchmark):
    router = _router_with_n_routes(50)
    ns = router.namespace("app")
    ns.should_fallback_to_global = True
    router.global_namespace().add_route("/help", _accept)
    assert benchmark(router.route, "app:///help")


# ── Trace overhead ───────────────────────────────────────────────────────────


def test_bench_route_verbose(benchmark):
    router = _router_with_n_routes(100)
    router.set_verbose_logging(True)
    assert benchmark(router.route, "app:///route/99/x")
