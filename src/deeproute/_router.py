"""Router: the scheme-to-namespace registry and its options.

A Router is the context object every dispatch runs against. It owns:
- the Namespace for each registered scheme, created on first reference
- the GlobalOptions snapshot read by every dispatch

Create one per application (or per test). Nothing is process-global.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING, Any

from deeproute._namespace import Namespace
from deeproute._options import DEFAULT_OPTIONS, GlobalOptions
from deeproute._types import GLOBAL_SCHEME
from deeproute._url import DecodeFailure, split_url

if TYPE_CHECKING:
    from collections.abc import Mapping

    from deeproute._route import RouteEntry

logger = logging.getLogger("deeproute")


class Router:
    """Registry of routing namespaces keyed by scheme.

    Example::

        router = Router()
        router.namespace("myapp").add_route("/user/:id", open_user)
        router.global_namespace().add_route("/help", show_help)

        router.route("myapp:///user/42")   # -> open_user({"id": "42", ...})
        router.route("other:///help")      # no "other" namespace -> global

    ``should_fallback_to_global`` governs only URL-driven dispatch
    (Router.route / Router.can_route) when the URL's scheme has no
    namespace. Each Namespace has its own flag for falling back after its
    entries are exhausted.
    """

    __slots__ = ("_lock", "_namespaces", "_options", "should_fallback_to_global")

    def __init__(
        self,
        options: GlobalOptions | None = None,
        *,
        should_fallback_to_global: bool = True,
    ) -> None:
        self._lock = threading.Lock()
        self._namespaces: dict[str, Namespace] = {}
        self._options = options if options is not None else DEFAULT_OPTIONS
        self.should_fallback_to_global = should_fallback_to_global

    def __repr__(self) -> str:
        return f"Router(schemes={self.schemes()!r}, options={self._options!r})"

    def __contains__(self, scheme: object) -> bool:
        with self._lock:
            return scheme in self._namespaces

    def __len__(self) -> int:
        with self._lock:
            return len(self._namespaces)

    # ── Options ────────────────────────────────────────────────────────────

    @property
    def options(self) -> GlobalOptions:
        """The current options snapshot. Read once per dispatch."""
        return self._options

    @property
    def verbose_logging(self) -> bool:
        return self._options.verbose_logging

    @property
    def decode_plus_symbols(self) -> bool:
        return self._options.decode_plus_symbols

    @property
    def treats_host_as_path_component(self) -> bool:
        return self._options.treat_host_as_path_component

    def set_verbose_logging(self, enabled: bool) -> None:
        self._replace_options(verbose_logging=enabled)

    def set_decode_plus_symbols(self, enabled: bool) -> None:
        self._replace_options(decode_plus_symbols=enabled)

    def set_treats_host_as_path_component(self, enabled: bool) -> None:
        self._replace_options(treat_host_as_path_component=enabled)

    def set_options(self, options: GlobalOptions) -> None:
        """Swap in a whole new options snapshot."""
        with self._lock:
            self._options = options

    def _replace_options(self, **changes: bool) -> None:
        with self._lock:
            self._options = dataclasses.replace(self._options, **changes)

    # ── Namespaces ────────────────────────────────────────────────────────

    def global_namespace(self) -> Namespace:
        """The fallback namespace, created on first reference."""
        return self.namespace(GLOBAL_SCHEME)

    def namespace(self, scheme: str) -> Namespace:
        """The namespace for *scheme*, created on first reference."""
        if not isinstance(scheme, str) or not scheme:
            msg = f"scheme must be a non-empty string, got {scheme!r}"
            raise ValueError(msg)
        with self._lock:
            ns = self._namespaces.get(scheme)
            if ns is None:
                ns = Namespace(scheme, self)
                self._namespaces[scheme] = ns
                if self._options.verbose_logging:
                    logger.debug("created namespace %r", scheme)
            return ns

    def find_namespace(self, scheme: str) -> Namespace | None:
        """The namespace for *scheme* if one exists. Never creates."""
        with self._lock:
            return self._namespaces.get(scheme)

    def unregister(self, scheme: str) -> None:
        """Drop the namespace for *scheme* and all its routes. No-op if absent."""
        with self._lock:
            self._namespaces.pop(scheme, None)

    def unregister_all(self) -> None:
        """Drop every namespace, the global one included."""
        with self._lock:
            self._namespaces.clear()

    def schemes(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._namespaces)

    def all_routes(self) -> dict[str, tuple[RouteEntry, ...]]:
        """Every namespace's entries in match order, keyed by scheme."""
        with self._lock:
            namespaces = list(self._namespaces.values())
        return {ns.scheme: ns.list_routes() for ns in namespaces}

    # ── Routing URLs ──────────────────────────────────────────────────────

    def namespace_for_url(self, url: str | None) -> Namespace | None:
        """Pick the namespace that URL-driven dispatch would use for *url*.

        The URL's own scheme if it has a namespace; otherwise the global
        namespace when should_fallback_to_global is set and it exists. A
        URL that cannot be split has no scheme.
        """
        if url is None:
            return None
        try:
            scheme = split_url(url)[0]
        except DecodeFailure:
            scheme = None
        ns = self.find_namespace(scheme) if scheme else None
        if ns is None and self.should_fallback_to_global:
            ns = self.find_namespace(GLOBAL_SCHEME)
        return ns

    def can_route(self, url: str | None) -> bool:
        """Dry-run dispatch by the URL's own scheme. Calls no handlers."""
        ns = self.namespace_for_url(url)
        return ns is not None and ns.can_route(url)

    def route(self, url: str | None, parameters: Mapping[str, Any] | None = None) -> bool:
        """Dispatch *url* through the namespace named by its scheme."""
        ns = self.namespace_for_url(url)
        if ns is None:
            if self._options.verbose_logging:
                logger.debug("no namespace for %r", url)
            return False
        return ns.route(url, parameters)
