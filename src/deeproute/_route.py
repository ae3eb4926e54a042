"""RouteEntry: a matcher paired with its handler, priority, and position."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from deeproute._pattern import compile_pattern, expand_optional_groups, normalize_pattern
from deeproute._types import RouteMatcher

if TYPE_CHECKING:
    from deeproute._pattern import RouteMatch
    from deeproute._types import Handler, ParameterMap
    from deeproute._url import DecomposedURL


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A registered route. Immutable once added to a Namespace.

    ``pattern`` is the concrete pattern this entry matches (reported to the
    handler under ROUTE_PATTERN_KEY). ``source_pattern`` is the string the
    caller registered, which differs from ``pattern`` only for entries
    expanded from optional groups; remove_route() matches on it.

    When ``matcher`` is omitted, ``pattern`` is compiled into a RoutePattern.
    Pass any RouteMatcher to customize structural matching.

    ``sequence`` is assigned by the Namespace on insertion and breaks ties
    between equal priorities (lower = registered earlier = tried first).
    """

    pattern: str
    handler: Handler | None = None
    priority: int = 0
    matcher: RouteMatcher | None = None
    source_pattern: str | None = None
    sequence: int = -1

    def __post_init__(self) -> None:
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            msg = f"priority must be an int, got {type(self.priority).__name__}"
            raise TypeError(msg)
        if self.matcher is None:
            object.__setattr__(self, "matcher", compile_pattern(self.pattern))
        elif not isinstance(self.matcher, RouteMatcher):
            msg = f"matcher must implement RouteMatcher, got {type(self.matcher).__name__}"
            raise TypeError(msg)
        if self.source_pattern is None:
            object.__setattr__(self, "source_pattern", normalize_pattern(self.pattern))

    @property
    def sort_key(self) -> tuple[int, int]:
        """Higher priority first, then registration order."""
        return (-self.priority, self.sequence)

    def match(self, url: DecomposedURL) -> RouteMatch | None:
        return self.matcher.match(url)  # type: ignore[union-attr]

    def call(self, parameters: ParameterMap) -> bool:
        """Invoke the handler. A route without a handler always handles."""
        if self.handler is None:
            return True
        return bool(self.handler(parameters))


def build_entries(
    pattern: str,
    handler: Handler | None,
    *,
    priority: int = 0,
    trailing_wildcard: bool = True,
) -> list[RouteEntry]:
    """Compile *pattern* into one entry per optional-group expansion.

    Every pattern is compiled before anything is returned, so an invalid
    expansion rejects the whole registration.

    Raises:
        InvalidPatternError: If the pattern (or any expansion) is illegal.
    """
    source = normalize_pattern(pattern)
    return [
        RouteEntry(
            pattern=compiled.pattern,
            handler=handler,
            priority=priority,
            matcher=compiled,
            source_pattern=source,
        )
        for compiled in (
            compile_pattern(p, trailing_wildcard=trailing_wildcard)
            for p in expand_optional_groups(pattern)
        )
    ]
