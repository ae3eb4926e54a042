"""Core protocols, type aliases, and reserved names for deeproute.

- ParameterMap is what every handler receives
- Handler is the caller-supplied callback (True = handled, False = declined)
- RouteMatcher is the structural-matching port a RouteEntry delegates to
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from deeproute._pattern import RouteMatch
    from deeproute._url import DecomposedURL

# Values are str, or list[str] for repeated query keys and wildcard captures.
# Caller-supplied extra parameters may carry anything.
ParameterMap: TypeAlias = dict[str, Any]

Handler: TypeAlias = Callable[[ParameterMap], bool]

UnmatchedHandler: TypeAlias = Callable[[str | None, Mapping[str, Any] | None], None]

# Reserved parameter-map keys. Always win over query, placeholder and
# caller-supplied values.
ROUTE_PATTERN_KEY = "route.pattern"
ROUTE_URL_KEY = "route.url"
ROUTE_SCHEME_KEY = "route.scheme"
ROUTE_WILDCARD_COMPONENTS_KEY = "route.wildcard_components"

# Scheme name of the fallback namespace.
GLOBAL_SCHEME = "deeproute.global"


@runtime_checkable
class RouteMatcher(Protocol):
    """Structurally match a decomposed URL.

    RoutePattern is the default implementation. Custom matchers only need
    ``match``; returning None means "no match" and the dispatcher moves on
    to the next entry without calling the handler.
    """

    def match(self, url: DecomposedURL, /) -> RouteMatch | None: ...


class RouteError(Exception):
    """Base class for every error deeproute raises."""
