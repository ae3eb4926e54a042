"""Config types for route tables declared as data.

Config-driven construction path:
  dict → parse_route_table() → RouteTableConfig → HandlerRegistry.load() → Router

The dict shape is what ``json.load`` or ``yaml.safe_load`` produce::

    options:
      decode_plus_symbols: true
    fallback_to_global: true
    namespaces:
      - scheme: myapp
        fallback_to_global: true
        unmatched_handler: log_unmatched
        routes:
          - pattern: /user/:id
            handler: open_user
            priority: 10
      - global: true
        routes:
          - pattern: /help
            handler: show_help

| Config type        | Runtime type              |
|--------------------|---------------------------|
| RouteTableConfig   | Router                    |
| NamespaceConfig    | Namespace                 |
| RouteConfig        | RouteEntry (one or more)  |
| GlobalOptions      | GlobalOptions             |
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from deeproute._options import GlobalOptions
from deeproute._types import GLOBAL_SCHEME, RouteError

# ═══════════════════════════════════════════════════════════════════════════════
# Config types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class RouteConfig:
    """One route: a pattern and the name of the handler it dispatches to.

    ``handler`` None registers a route that always handles.
    """

    pattern: str
    handler: str | None = None
    priority: int = 0
    trailing_wildcard: bool = True


@dataclass(frozen=True, slots=True)
class NamespaceConfig:
    """Routes and dispatch settings for one scheme."""

    scheme: str
    routes: tuple[RouteConfig, ...] = ()
    fallback_to_global: bool = False
    unmatched_handler: str | None = None


@dataclass(frozen=True, slots=True)
class RouteTableConfig:
    """A whole route table.

    ``options`` and ``fallback_to_global`` are None when the table leaves
    the router's current settings alone.
    """

    namespaces: tuple[NamespaceConfig, ...]
    options: GlobalOptions | None = None
    fallback_to_global: bool | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing (dict → config types)
# ═══════════════════════════════════════════════════════════════════════════════

_OPTION_FIELDS = frozenset(
    {"verbose_logging", "decode_plus_symbols", "treat_host_as_path_component"}
)


class ConfigParseError(RouteError):
    """Error parsing a config dict into config types."""


def parse_route_table(data: dict[str, Any]) -> RouteTableConfig:
    """Parse a dict into a RouteTableConfig.

    Raises:
        ConfigParseError: If the dict is malformed.
    """
    if not isinstance(data, dict):
        msg = f"expected dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    raw_namespaces = data.get("namespaces")
    if raw_namespaces is None:
        msg = "missing required field 'namespaces'"
        raise ConfigParseError(msg)
    if not isinstance(raw_namespaces, list):
        msg = f"'namespaces' must be a list, got {type(raw_namespaces).__name__}"
        raise ConfigParseError(msg)

    namespaces = tuple(_parse_namespace(ns) for ns in raw_namespaces)

    options = None
    if "options" in data:
        options = _parse_options(data["options"])

    fallback = None
    if "fallback_to_global" in data:
        fallback = _parse_bool(data["fallback_to_global"], "fallback_to_global")

    return RouteTableConfig(
        namespaces=namespaces, options=options, fallback_to_global=fallback
    )


def _parse_namespace(data: dict[str, Any]) -> NamespaceConfig:
    """Parse a namespace dict. Exactly one of 'scheme' or 'global: true'."""
    if not isinstance(data, dict):
        msg = f"namespace must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    is_global = _parse_bool(data.get("global", False), "global")
    has_scheme = "scheme" in data
    if is_global and has_scheme:
        msg = "namespace must set exactly one of 'scheme' or 'global', got both"
        raise ConfigParseError(msg)
    if not is_global and not has_scheme:
        msg = "namespace requires 'scheme' or 'global: true'"
        raise ConfigParseError(msg)

    if is_global:
        scheme = GLOBAL_SCHEME
    else:
        scheme = data["scheme"]
        if not isinstance(scheme, str) or not scheme:
            msg = f"'scheme' must be a non-empty string, got {scheme!r}"
            raise ConfigParseError(msg)

    raw_routes = data.get("routes", [])
    if not isinstance(raw_routes, list):
        msg = f"'routes' must be a list, got {type(raw_routes).__name__}"
        raise ConfigParseError(msg)

    unmatched = data.get("unmatched_handler")
    if unmatched is not None and not isinstance(unmatched, str):
        msg = f"'unmatched_handler' must be a string, got {type(unmatched).__name__}"
        raise ConfigParseError(msg)

    return NamespaceConfig(
        scheme=scheme,
        routes=tuple(_parse_route(r) for r in raw_routes),
        fallback_to_global=_parse_bool(
            data.get("fallback_to_global", False), "fallback_to_global"
        ),
        unmatched_handler=unmatched,
    )


def _parse_route(data: dict[str, Any]) -> RouteConfig:
    """Parse a route dict. 'pattern' is required."""
    if not isinstance(data, dict):
        msg = f"route must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    if "pattern" not in data:
        msg = "route missing required field 'pattern'"
        raise ConfigParseError(msg)
    pattern = data["pattern"]
    if not isinstance(pattern, str):
        msg = f"'pattern' must be a string, got {type(pattern).__name__}"
        raise ConfigParseError(msg)

    handler = data.get("handler")
    if handler is not None and not isinstance(handler, str):
        msg = f"'handler' must be a string or null, got {type(handler).__name__}"
        raise ConfigParseError(msg)

    priority = data.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        msg = f"'priority' must be an integer, got {type(priority).__name__}"
        raise ConfigParseError(msg)

    return RouteConfig(
        pattern=pattern,
        handler=handler,
        priority=priority,
        trailing_wildcard=_parse_bool(
            data.get("trailing_wildcard", True), "trailing_wildcard"
        ),
    )


def _parse_options(data: dict[str, Any]) -> GlobalOptions:
    """Parse an options dict. Missing flags take their defaults."""
    if not isinstance(data, dict):
        msg = f"options must be a dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    unknown = sorted(set(data) - _OPTION_FIELDS)
    if unknown:
        msg = f"unknown options {unknown}, expected some of {sorted(_OPTION_FIELDS)}"
        raise ConfigParseError(msg)

    return GlobalOptions(**{k: _parse_bool(v, k) for k, v in data.items()})


def _parse_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        msg = f"'{name}' must be a boolean, got {type(value).__name__}"
        raise ConfigParseError(msg)
    return value
