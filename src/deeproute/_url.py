"""URL decomposition: raw URL text into scheme, path segments, and query.

URL text comes from outside the process (deep links, push payloads,
pasteboard contents), so it is parsed with ``google-re2``: every pattern here
runs in linear time regardless of input.

Decomposition is all-or-nothing. A malformed percent-escape anywhere in the
path or query raises DecodeFailure, and the dispatcher treats the whole URL
as unmatchable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import unquote

import re2

from deeproute._types import RouteError

if TYPE_CHECKING:
    from deeproute._options import GlobalOptions

# RFC 3986, appendix B. Groups: scheme, authority, path, query, fragment.
_URL_RE = re2.compile(
    r"(?s)^(?:([^:/?#]+):)?(?://([^/?#]*))?([^?#]*)(?:\?([^#]*))?(?:#(.*))?$"
)

# Every '%' must start a two-digit hex escape.
_PERCENT_RE = re2.compile(r"(?s)(?:[^%]|%[0-9A-Fa-f]{2})*")


class DecodeFailure(RouteError):
    """A path segment or query component could not be percent-decoded."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"cannot decode {value!r}: {reason}")


@dataclass(frozen=True, slots=True)
class DecomposedURL:
    """A URL split into the pieces route matching works on.

    ``path_segments`` are percent-decoded, with empty segments from
    leading, trailing, or doubled slashes removed. When the host is treated
    as a path component it is the first segment.

    ``query`` maps each key to its value, or to a list of values when the
    key is repeated. Plus-decoding has already been applied to the values
    when ``decode_plus_symbols`` is set.
    """

    url: str
    scheme: str | None = None
    host: str | None = None
    path_segments: tuple[str, ...] = ()
    query: dict[str, str | list[str]] = field(default_factory=dict)
    decode_plus_symbols: bool = True


def percent_decode(value: str) -> str:
    """Percent-decode *value* as UTF-8.

    Raises:
        DecodeFailure: On a truncated or non-hex escape, when *value*
            holds lone surrogates, or when the decoded bytes are not
            valid UTF-8.
    """
    if "%" not in value:
        return value
    try:
        well_formed = _PERCENT_RE.fullmatch(value) is not None
    except UnicodeEncodeError as e:
        raise DecodeFailure(value, "not encodable as UTF-8") from e
    if not well_formed:
        raise DecodeFailure(value, "malformed percent-escape")
    try:
        return unquote(value, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeFailure(value, "escaped bytes are not valid UTF-8") from e


def split_url(url: str) -> tuple[str | None, str | None, str, str | None]:
    """Split URL text into (scheme, host, raw path, raw query).

    Text that is not a well-formed URL still splits into *something*,
    typically a bare path.

    Raises:
        DecodeFailure: If *url* holds lone surrogates (as produced by
            ``os.fsdecode`` for undecodable bytes) and so has no UTF-8 form.
    """
    try:
        m = _URL_RE.match(url)
    except UnicodeEncodeError as e:
        raise DecodeFailure(url, "not encodable as UTF-8") from e
    if m is None:  # pragma: no cover
        return None, None, url, None
    scheme, authority, path, query = m.group(1), m.group(2), m.group(3), m.group(4)
    return scheme or None, _host_from_authority(authority), path or "", query


def decompose_url(url: str, options: GlobalOptions) -> DecomposedURL:
    """Decompose *url* for matching under *options*.

    Raises:
        DecodeFailure: If *url* has no UTF-8 form, or if any path
            segment, the host (when used as a path component), or any
            query key or value is malformed.
    """
    scheme, host, raw_path, raw_query = split_url(url)

    segments = [percent_decode(part) for part in raw_path.split("/") if part]
    if options.treat_host_as_path_component and host:
        segments.insert(0, percent_decode(host))

    query = parse_query(raw_query or "", decode_plus_symbols=options.decode_plus_symbols)

    return DecomposedURL(
        url=url,
        scheme=scheme,
        host=host,
        path_segments=tuple(segments),
        query=query,
        decode_plus_symbols=options.decode_plus_symbols,
    )


def parse_query(
    raw_query: str, *, decode_plus_symbols: bool = True
) -> dict[str, str | list[str]]:
    """Parse ``a=1&b=2&a=3`` into ``{"a": ["1", "3"], "b": "2"}``.

    A key without ``=`` maps to the empty string. Pairs with an empty key
    are dropped.

    Raises:
        DecodeFailure: If a key or value is malformed.
    """
    params: dict[str, str | list[str]] = {}
    for part in raw_query.split("&"):
        if not part:
            continue
        raw_key, _, raw_value = part.partition("=")
        key = percent_decode(raw_key)
        if not key:
            continue
        value = percent_decode(raw_value)
        if decode_plus_symbols:
            value = value.replace("+", " ")

        existing = params.get(key)
        if existing is None:
            params[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            params[key] = [existing, value]
    return params


def _host_from_authority(authority: str | None) -> str | None:
    """Strip userinfo and port from an authority component."""
    if not authority:
        return None
    host = authority.rpartition("@")[2]
    if host.startswith("["):
        # IPv6 literal: keep the brackets, drop any port after them
        end = host.find("]")
        return host[: end + 1] if end != -1 else host
    host = host.partition(":")[0]
    return host or None
