"""Namespace: the route entries registered under one scheme.

Entries are kept sorted by (priority desc, registration order asc) at all
times. Structural mutations and snapshots are serialized by a per-namespace
lock; dispatch iterates a snapshot, so handlers run without the lock held
and may register or remove routes themselves.
"""

from __future__ import annotations

import bisect
import dataclasses
import itertools
import threading
from typing import TYPE_CHECKING

from deeproute._dispatch import route_url
from deeproute._pattern import normalize_pattern
from deeproute._route import RouteEntry, build_entries
from deeproute._types import GLOBAL_SCHEME

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Any

    from deeproute._router import Router
    from deeproute._types import Handler, UnmatchedHandler


class Namespace:
    """Routes for one scheme, plus that scheme's dispatch settings.

    Obtain instances from Router.namespace() / Router.global_namespace()
    rather than constructing them directly.

    Example::

        app = router.namespace("myapp")
        app.add_route("/user/:id", open_user)
        app.route("myapp:///user/42")
    """

    __slots__ = (
        "_entries",
        "_lock",
        "_router",
        "_sequence",
        "scheme",
        "should_fallback_to_global",
        "unmatched_url_handler",
    )

    def __init__(self, scheme: str, router: Router) -> None:
        self.scheme = scheme
        self._router = router
        self._lock = threading.Lock()
        self._entries: list[RouteEntry] = []
        self._sequence = itertools.count()
        # Retry unmatched URLs against the global namespace. Default off.
        self.should_fallback_to_global = False
        # Called with (url, parameters) whenever route() returns False.
        self.unmatched_url_handler: UnmatchedHandler | None = None

    def __repr__(self) -> str:
        return f"Namespace(scheme={self.scheme!r}, routes={len(self)})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def is_global(self) -> bool:
        return self.scheme == GLOBAL_SCHEME

    @property
    def router(self) -> Router:
        return self._router

    # ── Managing routes ────────────────────────────────────────────────────

    def add_route(
        self,
        route: str | RouteEntry,
        handler: Handler | None = None,
        *,
        priority: int = 0,
        trailing_wildcard: bool = True,
    ) -> list[RouteEntry]:
        """Register a pattern, or insert a pre-built RouteEntry.

        With a pattern string, optional groups are expanded and one entry
        per expansion is added at *priority*. With a RouteEntry, the entry
        is inserted as given; *handler*, *priority* and *trailing_wildcard*
        must be left at their defaults.

        Returns the inserted entries, carrying their assigned sequence.

        Raises:
            InvalidPatternError: the pattern is illegal; nothing is added
        """
        if isinstance(route, RouteEntry):
            if handler is not None or priority != 0 or not trailing_wildcard:
                msg = "handler, priority and trailing_wildcard come from the RouteEntry"
                raise TypeError(msg)
            entries = [route]
        else:
            entries = build_entries(
                route, handler, priority=priority, trailing_wildcard=trailing_wildcard
            )
        return self._insert(entries)

    def add_routes(
        self,
        patterns: Iterable[str],
        handler: Handler | None = None,
        *,
        priority: int = 0,
        trailing_wildcard: bool = True,
    ) -> list[RouteEntry]:
        """Register several patterns for one handler.

        All patterns are compiled before any is inserted, so one invalid
        pattern rejects the whole batch.
        """
        entries = [
            entry
            for pattern in patterns
            for entry in build_entries(
                pattern, handler, priority=priority, trailing_wildcard=trailing_wildcard
            )
        ]
        return self._insert(entries)

    def __setitem__(self, pattern: str, handler: Handler | None) -> None:
        self.add_route(pattern, handler)

    def remove_route(self, pattern: str) -> int:
        """Remove every entry registered under *pattern*. Returns the count.

        Matches the pattern as registered (after leading-slash
        normalization), so removing ``/a(/b)`` removes both expansions.
        """
        target = normalize_pattern(pattern)
        with self._lock:
            kept = [e for e in self._entries if e.source_pattern != target]
            removed = len(self._entries) - len(kept)
            self._entries = kept
        return removed

    def remove_all_routes(self) -> None:
        with self._lock:
            self._entries = []

    def list_routes(self) -> tuple[RouteEntry, ...]:
        """Snapshot of the entries in the order dispatch tries them."""
        with self._lock:
            return tuple(self._entries)

    # ── Routing URLs ──────────────────────────────────────────────────────

    def can_route(self, url: str | None) -> bool:
        """Whether any entry (or global entry, with fallback) would match.

        Never calls a handler or the unmatched-URL handler.
        """
        return route_url(self, url, None, execute=False)

    def route(self, url: str | None, parameters: Mapping[str, Any] | None = None) -> bool:
        """Dispatch *url*, calling matching handlers until one returns True.

        *parameters* are merged into every handler's parameter map. Returns
        False when nothing handled the URL, after calling the
        unmatched-URL handler if one is set. Handler exceptions propagate.
        """
        return route_url(self, url, parameters, execute=True)

    def _insert(self, entries: list[RouteEntry]) -> list[RouteEntry]:
        inserted: list[RouteEntry] = []
        with self._lock:
            for entry in entries:
                entry = dataclasses.replace(entry, sequence=next(self._sequence))
                bisect.insort(self._entries, entry, key=_sort_key)
                inserted.append(entry)
        return inserted


def _sort_key(entry: RouteEntry) -> tuple[int, int]:
    return entry.sort_key
