"""Handler registry for config-driven route tables.

Route tables name their handlers; the registry maps those names to the
callables the application provides.

- HandlerRegistryBuilder → .build() → HandlerRegistry (immutable)
- HandlerRegistry.load() compiles a RouteTableConfig into a Router

Example::

    builder = HandlerRegistryBuilder()
    builder.handler("open_user", open_user)
    registry = builder.build()

    config = parse_route_table(yaml.safe_load(text))
    router = registry.load(config)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from deeproute._route import build_entries
from deeproute._router import Router
from deeproute._types import RouteError

if TYPE_CHECKING:
    from deeproute._config import RouteTableConfig
    from deeproute._route import RouteEntry
    from deeproute._types import Handler, UnmatchedHandler

# ═══════════════════════════════════════════════════════════════════════════════
# Limits
# ═══════════════════════════════════════════════════════════════════════════════

MAX_ROUTES_PER_NAMESPACE = 1024

# ═══════════════════════════════════════════════════════════════════════════════
# Error types
# ═══════════════════════════════════════════════════════════════════════════════


class UnknownHandlerError(RouteError):
    """A handler name was not found in the registry."""

    def __init__(self, name: str, kind: str, available: list[str]) -> None:
        self.name = name
        self.kind = kind
        self.available = sorted(available)
        if self.available:
            registered = ", ".join(self.available)
            msg = f"unknown {kind} {name!r} (registered: {registered})"
        else:
            msg = f"unknown {kind} {name!r} (no {kind}s are registered)"
        super().__init__(msg)


class InvalidConfigError(RouteError):
    """A config payload was semantically invalid."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"invalid config: {source}")


class TooManyRoutesError(RouteError):
    """A namespace in a route table expands to too many route entries.

    ``count`` is the number of entries built when the limit was crossed;
    optional groups are counted after expansion.
    """

    def __init__(self, scheme: str, count: int, max_: int) -> None:
        self.scheme = scheme
        self.count = count
        self.max = max_
        super().__init__(
            f"too many routes for {scheme!r}: {count} exceeds maximum {max_}"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Builder
# ═══════════════════════════════════════════════════════════════════════════════


class HandlerRegistryBuilder:
    """Builder for constructing a HandlerRegistry.

    Register route handlers and unmatched-URL handlers by name, then call
    build() to produce an immutable HandlerRegistry.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._unmatched_handlers: dict[str, UnmatchedHandler] = {}

    def handler(self, name: str, fn: Handler) -> HandlerRegistryBuilder:
        """Register a route handler under *name*."""
        if not callable(fn):
            msg = f"handler {name!r} is not callable"
            raise InvalidConfigError(msg)
        self._handlers[name] = fn
        return self

    def unmatched_handler(self, name: str, fn: UnmatchedHandler) -> HandlerRegistryBuilder:
        """Register an unmatched-URL handler under *name*."""
        if not callable(fn):
            msg = f"unmatched handler {name!r} is not callable"
            raise InvalidConfigError(msg)
        self._unmatched_handlers[name] = fn
        return self

    def build(self) -> HandlerRegistry:
        """Freeze the registry. No further registration is possible."""
        return HandlerRegistry(
            _handlers=MappingProxyType(dict(self._handlers)),
            _unmatched_handlers=MappingProxyType(dict(self._unmatched_handlers)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class HandlerRegistry:
    """Immutable name → handler mapping. Use load() to build a Router."""

    _handlers: MappingProxyType[str, Handler] = field(
        default_factory=lambda: MappingProxyType({})
    )
    _unmatched_handlers: MappingProxyType[str, UnmatchedHandler] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def handler_count(self) -> int:
        """Number of registered route handlers."""
        return len(self._handlers)

    def contains_handler(self, name: str) -> bool:
        return name in self._handlers

    def contains_unmatched_handler(self, name: str) -> bool:
        return name in self._unmatched_handlers

    def handler_names(self) -> list[str]:
        """Return all registered route handler names (sorted)."""
        return sorted(self._handlers.keys())

    def load(self, config: RouteTableConfig, router: Router | None = None) -> Router:
        """Register every route in *config* on *router* (or a new Router).

        Every handler is resolved and every pattern compiled before the
        router is touched, so a failing table leaves it unchanged.

        Raises:
            UnknownHandlerError: a handler name is not registered
            TooManyRoutesError: a namespace expands to too many entries
            InvalidPatternError: a pattern is illegal
        """
        plan: list[tuple[str, bool, UnmatchedHandler | None, list[RouteEntry]]] = []
        for ns in config.namespaces:
            if len(ns.routes) > MAX_ROUTES_PER_NAMESPACE:
                raise TooManyRoutesError(ns.scheme, len(ns.routes), MAX_ROUTES_PER_NAMESPACE)

            unmatched = None
            if ns.unmatched_handler is not None:
                unmatched = self._unmatched_handlers.get(ns.unmatched_handler)
                if unmatched is None:
                    raise UnknownHandlerError(
                        ns.unmatched_handler,
                        "unmatched handler",
                        list(self._unmatched_handlers.keys()),
                    )

            entries: list[RouteEntry] = []
            for route in ns.routes:
                entries.extend(
                    build_entries(
                        route.pattern,
                        self._resolve(route.handler),
                        priority=route.priority,
                        trailing_wildcard=route.trailing_wildcard,
                    )
                )
                # Optional groups expand one route into several entries.
                if len(entries) > MAX_ROUTES_PER_NAMESPACE:
                    raise TooManyRoutesError(ns.scheme, len(entries), MAX_ROUTES_PER_NAMESPACE)
            plan.append((ns.scheme, ns.fallback_to_global, unmatched, entries))

        if router is None:
            router = Router(options=config.options)
        elif config.options is not None:
            router.set_options(config.options)
        if config.fallback_to_global is not None:
            router.should_fallback_to_global = config.fallback_to_global

        for scheme, fallback, unmatched, entries in plan:
            namespace = router.namespace(scheme)
            namespace.should_fallback_to_global = fallback
            if unmatched is not None:
                namespace.unmatched_url_handler = unmatched
            for entry in entries:
                namespace.add_route(entry)
        return router

    def _resolve(self, name: str | None) -> Handler | None:
        if name is None:
            return None
        fn = self._handlers.get(name)
        if fn is None:
            raise UnknownHandlerError(name, "handler", list(self._handlers.keys()))
        return fn
