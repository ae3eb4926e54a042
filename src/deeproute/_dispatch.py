"""Match-and-dispatch: the loop that turns a URL into a handler call.

Semantics:
- Entries are tried in namespace order (priority desc, registration asc)
- A structural match builds the parameter map and calls the handler
- A handler returning False declines; the next matching entry is tried
- The first handler returning True ends dispatch with success
- On exhaustion, namespaces with fallback enabled retry against the
  global namespace, then the unmatched-URL handler is called

Parameter map precedence, lowest to highest: query string, placeholder
captures, caller-supplied parameters, reserved keys.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from deeproute._types import (
    GLOBAL_SCHEME,
    ROUTE_PATTERN_KEY,
    ROUTE_SCHEME_KEY,
    ROUTE_URL_KEY,
    ROUTE_WILDCARD_COMPONENTS_KEY,
)
from deeproute._url import DecodeFailure, decompose_url

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from deeproute._namespace import Namespace
    from deeproute._pattern import RouteMatch
    from deeproute._route import RouteEntry
    from deeproute._types import ParameterMap
    from deeproute._url import DecomposedURL

logger = logging.getLogger("deeproute")


def build_parameters(
    entry: RouteEntry,
    match: RouteMatch,
    url: DecomposedURL,
    scheme: str,
    extra: Mapping[str, Any] | None = None,
) -> ParameterMap:
    """Assemble the map handed to *entry*'s handler.

    Each call returns a fresh dict, so a handler that mutates its map
    cannot affect the next candidate.
    """
    params: ParameterMap = {
        k: list(v) if isinstance(v, list) else v for k, v in url.query.items()
    }
    params.update(match.variables)
    if extra:
        params.update(extra)
    params[ROUTE_PATTERN_KEY] = entry.pattern
    params[ROUTE_URL_KEY] = url.url
    params[ROUTE_SCHEME_KEY] = scheme
    if match.wildcard_components is not None:
        params[ROUTE_WILDCARD_COMPONENTS_KEY] = list(match.wildcard_components)
    return params


def iter_matches(
    entries: Iterable[RouteEntry], url: DecomposedURL
) -> Iterator[tuple[RouteEntry, RouteMatch]]:
    """Yield (entry, match) for each entry that structurally matches, in order."""
    for entry in entries:
        match = entry.match(url)
        if match is not None:
            yield entry, match


def dispatch(
    entries: Iterable[RouteEntry],
    url: DecomposedURL,
    scheme: str,
    extra: Mapping[str, Any] | None = None,
    *,
    execute: bool = True,
    verbose: bool = False,
) -> bool:
    """Try *entries* in order until a handler accepts.

    With ``execute=False`` this is a dry run: True on the first structural
    match, no handler called.
    """
    for entry, match in iter_matches(entries, url):
        if not execute:
            if verbose:
                logger.debug("%r would match %r", entry.pattern, url.url)
            return True
        params = build_parameters(entry, match, url, scheme, extra)
        if verbose:
            logger.debug("calling handler for %r with %r", entry.pattern, params)
        if entry.call(params):
            if verbose:
                logger.debug("%r handled %r", entry.pattern, url.url)
            return True
        if verbose:
            logger.debug("%r declined %r, trying next route", entry.pattern, url.url)
    return False


def route_url(
    namespace: Namespace,
    url: str | None,
    parameters: Mapping[str, Any] | None,
    *,
    execute: bool,
) -> bool:
    """Route *url* through *namespace*, with global fallback if enabled."""
    if url is None:
        return False

    router = namespace.router
    options = router.options
    verbose = options.verbose_logging
    if verbose:
        verb = "routing" if execute else "checking"
        logger.debug("%s %r in namespace %r", verb, url, namespace.scheme)

    did_route = False
    try:
        request = decompose_url(url, options)
    except DecodeFailure as e:
        if verbose:
            logger.debug("no match for %r: %s", url, e)
    else:
        did_route = dispatch(
            namespace.list_routes(),
            request,
            namespace.scheme,
            parameters,
            execute=execute,
            verbose=verbose,
        )
        if not did_route and namespace.should_fallback_to_global and not namespace.is_global:
            fallback = router.find_namespace(GLOBAL_SCHEME)
            if fallback is not None:
                if verbose:
                    logger.debug("falling back to global routes for %r", url)
                did_route = dispatch(
                    fallback.list_routes(),
                    request,
                    fallback.scheme,
                    parameters,
                    execute=execute,
                    verbose=verbose,
                )

    if not did_route:
        if verbose:
            logger.debug("no route handled %r", url)
        if execute and namespace.unmatched_url_handler is not None:
            namespace.unmatched_url_handler(url, parameters)
    return did_route
