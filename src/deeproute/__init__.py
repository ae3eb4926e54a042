"""deeproute: URL-pattern dispatch for deep links and custom URL schemes.

All public types are exported from this module for flat imports:

    from deeproute import Router, RouteEntry, ROUTE_PATTERN_KEY
"""

__version__ = "0.1.0"

# Config types, see deeproute._config for details
from deeproute._config import (
    ConfigParseError,
    NamespaceConfig,
    RouteConfig,
    RouteTableConfig,
    parse_route_table,
)
from deeproute._dispatch import build_parameters, dispatch, iter_matches
from deeproute._namespace import Namespace
from deeproute._options import DEFAULT_OPTIONS, GlobalOptions

# Patterns
from deeproute._pattern import (
    MAX_OPTIONAL_GROUPS,
    MAX_PATTERN_LENGTH,
    InvalidPatternError,
    LiteralSegment,
    PatternTooLongError,
    PlaceholderSegment,
    RouteMatch,
    RoutePattern,
    Segment,
    TooManyOptionalGroupsError,
    TrailingWildcardSegment,
    WildcardSegment,
    compile_pattern,
    expand_optional_groups,
    normalize_pattern,
)

# Registry, see deeproute._registry for details
from deeproute._registry import (
    MAX_ROUTES_PER_NAMESPACE,
    HandlerRegistry,
    HandlerRegistryBuilder,
    InvalidConfigError,
    TooManyRoutesError,
    UnknownHandlerError,
)
from deeproute._route import RouteEntry, build_entries
from deeproute._router import Router
from deeproute._types import (
    GLOBAL_SCHEME,
    ROUTE_PATTERN_KEY,
    ROUTE_SCHEME_KEY,
    ROUTE_URL_KEY,
    ROUTE_WILDCARD_COMPONENTS_KEY,
    Handler,
    ParameterMap,
    RouteError,
    RouteMatcher,
    UnmatchedHandler,
)
from deeproute._url import (
    DecodeFailure,
    DecomposedURL,
    decompose_url,
    parse_query,
    percent_decode,
    split_url,
)

__all__ = [
    # Protocols and aliases
    "RouteMatcher",
    "Handler",
    "UnmatchedHandler",
    "ParameterMap",
    # Reserved names
    "ROUTE_PATTERN_KEY",
    "ROUTE_URL_KEY",
    "ROUTE_SCHEME_KEY",
    "ROUTE_WILDCARD_COMPONENTS_KEY",
    "GLOBAL_SCHEME",
    # Patterns
    "LiteralSegment",
    "PlaceholderSegment",
    "WildcardSegment",
    "TrailingWildcardSegment",
    "Segment",
    "RoutePattern",
    "RouteMatch",
    "compile_pattern",
    "expand_optional_groups",
    "normalize_pattern",
    "MAX_PATTERN_LENGTH",
    "MAX_OPTIONAL_GROUPS",
    # URLs
    "DecomposedURL",
    "decompose_url",
    "split_url",
    "parse_query",
    "percent_decode",
    # Routes and dispatch
    "RouteEntry",
    "build_entries",
    "Namespace",
    "Router",
    "GlobalOptions",
    "DEFAULT_OPTIONS",
    "build_parameters",
    "dispatch",
    "iter_matches",
    # Errors
    "RouteError",
    "InvalidPatternError",
    "PatternTooLongError",
    "TooManyOptionalGroupsError",
    "DecodeFailure",
    # Config types
    "RouteConfig",
    "NamespaceConfig",
    "RouteTableConfig",
    "ConfigParseError",
    "parse_route_table",
    # Registry
    "HandlerRegistryBuilder",
    "HandlerRegistry",
    "UnknownHandlerError",
    "InvalidConfigError",
    "TooManyRoutesError",
    "MAX_ROUTES_PER_NAMESPACE",
]
