"""Pattern compilation: route-pattern strings into segment matchers.

Pattern syntax, one ``/``-separated segment at a time:

| Segment   | Compiles to               | Matches                              |
|-----------|---------------------------|--------------------------------------|
| ``users`` | LiteralSegment            | exactly ``users`` (case-sensitive)   |
| ``:id``   | PlaceholderSegment        | any non-empty segment, captured      |
| ``*``     | WildcardSegment           | any one segment                      |
| ``*`` last| TrailingWildcardSegment   | zero or more remaining segments      |
| ``**``    | TrailingWildcardSegment   | same; only legal as the last segment |

A final ``*`` is a trailing wildcard unless compiled with
``trailing_wildcard=False``, in which case it stays single-level.

Parenthesised optional groups (``/post/:id(/edit)``) are not part of the
compiled form. expand_optional_groups() turns one such pattern into the
plain patterns it stands for, and each of those is compiled separately.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from deeproute._types import RouteError
from deeproute._url import DecodeFailure, percent_decode

if TYPE_CHECKING:
    from deeproute._url import DecomposedURL

MAX_PATTERN_LENGTH = 8192
MAX_OPTIONAL_GROUPS = 8


class InvalidPatternError(RouteError):
    """A route pattern is structurally illegal. Registration is rejected."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        shown = pattern if len(pattern) <= 64 else pattern[:64] + "..."
        super().__init__(f"invalid route pattern {shown!r}: {reason}")


class PatternTooLongError(InvalidPatternError):
    """A route pattern exceeds MAX_PATTERN_LENGTH."""

    def __init__(self, pattern: str, max_: int) -> None:
        self.max = max_
        super().__init__(pattern, f"length {len(pattern)} exceeds maximum {max_}")


class TooManyOptionalGroupsError(InvalidPatternError):
    """A route pattern has more optional groups than MAX_OPTIONAL_GROUPS."""

    def __init__(self, pattern: str, count: int, max_: int) -> None:
        self.count = count
        self.max = max_
        super().__init__(
            pattern, f"{count} optional groups exceeds maximum {max_}"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Segments
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class LiteralSegment:
    """Matches one URL segment equal to ``text`` (already percent-decoded)."""

    text: str


@dataclass(frozen=True, slots=True)
class PlaceholderSegment:
    """Matches any one non-empty segment and captures it under ``name``."""

    name: str


@dataclass(frozen=True, slots=True)
class WildcardSegment:
    """Matches any one segment. The value goes to the wildcard components."""


@dataclass(frozen=True, slots=True)
class TrailingWildcardSegment:
    """Matches all remaining segments, including none. Always last."""


Segment: TypeAlias = (
    LiteralSegment | PlaceholderSegment | WildcardSegment | TrailingWildcardSegment
)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful structural match.

    ``wildcard_components`` is None when the pattern has no wildcard, and a
    (possibly empty) tuple when it does.
    """

    variables: dict[str, str] = field(default_factory=dict)
    wildcard_components: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class RoutePattern:
    """A compiled route pattern. Implements the RouteMatcher protocol.

    INV: a TrailingWildcardSegment, if present, is the last segment.
    """

    pattern: str
    segments: tuple[Segment, ...]
    _fixed: int = field(init=False, repr=False, compare=False)
    _trailing: bool = field(init=False, repr=False, compare=False)
    _has_wildcard: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for seg in self.segments[:-1]:
            if isinstance(seg, TrailingWildcardSegment):
                raise InvalidPatternError(
                    self.pattern, "trailing wildcard must be the final segment"
                )
        trailing = bool(self.segments) and isinstance(
            self.segments[-1], TrailingWildcardSegment
        )
        object.__setattr__(self, "_trailing", trailing)
        object.__setattr__(self, "_fixed", len(self.segments) - int(trailing))
        object.__setattr__(
            self,
            "_has_wildcard",
            any(
                isinstance(s, WildcardSegment | TrailingWildcardSegment)
                for s in self.segments
            ),
        )

    @property
    def has_wildcard(self) -> bool:
        return self._has_wildcard

    @property
    def has_trailing_wildcard(self) -> bool:
        return self._trailing

    @property
    def placeholder_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.segments if isinstance(s, PlaceholderSegment))

    def match(self, url: DecomposedURL, /) -> RouteMatch | None:
        """Match the URL's path segments against this pattern.

        Segment counts must be equal unless the pattern ends in a trailing
        wildcard, which absorbs whatever is left over.
        """
        parts = url.path_segments
        if self._trailing:
            if len(parts) < self._fixed:
                return None
        elif len(parts) != self._fixed:
            return None

        variables: dict[str, str] = {}
        wildcards: list[str] = []
        for seg, value in zip(self.segments[: self._fixed], parts, strict=False):
            match seg:
                case LiteralSegment(text=text):
                    if value != text:
                        return None
                case PlaceholderSegment(name=name):
                    if not value:
                        return None
                    variables[name] = (
                        value.replace("+", " ") if url.decode_plus_symbols else value
                    )
                case WildcardSegment():
                    wildcards.append(value)

        if self._trailing:
            wildcards.extend(parts[self._fixed :])

        return RouteMatch(
            variables=variables,
            wildcard_components=tuple(wildcards) if self._has_wildcard else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Compilation
# ═══════════════════════════════════════════════════════════════════════════════


def normalize_pattern(pattern: str) -> str:
    """Give *pattern* a leading slash if it lacks one."""
    return pattern if pattern.startswith("/") else f"/{pattern}"


def compile_pattern(pattern: str, *, trailing_wildcard: bool = True) -> RoutePattern:
    """Compile a plain (group-free) pattern string into a RoutePattern.

    Raises:
        PatternTooLongError: pattern longer than MAX_PATTERN_LENGTH
        InvalidPatternError: optional-group syntax, misplaced ``**``,
            empty or duplicate placeholder name, malformed escape in a
            literal segment
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        raise PatternTooLongError(pattern, MAX_PATTERN_LENGTH)
    if "(" in pattern or ")" in pattern:
        msg = "optional groups must be expanded before compiling"
        raise InvalidPatternError(pattern, msg)

    normalized = normalize_pattern(pattern)
    parts = [p for p in normalized.split("/") if p]
    segments: list[Segment] = []
    seen: set[str] = set()

    for i, part in enumerate(parts):
        is_last = i == len(parts) - 1
        if part == "**":
            if not is_last:
                msg = "trailing wildcard '**' must be the final segment"
                raise InvalidPatternError(pattern, msg)
            segments.append(TrailingWildcardSegment())
        elif part == "*":
            if is_last and trailing_wildcard:
                segments.append(TrailingWildcardSegment())
            else:
                segments.append(WildcardSegment())
        elif part.startswith(":"):
            name = part[1:]
            if not name:
                raise InvalidPatternError(pattern, "placeholder without a name")
            if name in seen:
                raise InvalidPatternError(pattern, f"duplicate placeholder {name!r}")
            seen.add(name)
            segments.append(PlaceholderSegment(name=name))
        else:
            try:
                segments.append(LiteralSegment(text=percent_decode(part)))
            except DecodeFailure as e:
                raise InvalidPatternError(pattern, e.reason) from e

    return RoutePattern(pattern=normalized, segments=tuple(segments))


def expand_optional_groups(pattern: str) -> list[str]:
    """Expand parenthesised optional groups into plain patterns.

    ``/post/:id(/edit)(/:tab)`` expands to::

        /post/:id/edit/:tab
        /post/:id/edit
        /post/:id/:tab
        /post/:id

    Most segments first; among equal lengths, earlier groups present first.
    A pattern without groups expands to itself.

    Raises:
        PatternTooLongError: pattern longer than MAX_PATTERN_LENGTH, checked
            before anything is expanded
        InvalidPatternError: unbalanced, nested, or empty groups
        TooManyOptionalGroupsError: more than MAX_OPTIONAL_GROUPS groups
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        raise PatternTooLongError(pattern, MAX_PATTERN_LENGTH)
    if "(" not in pattern and ")" not in pattern:
        return [pattern]

    # Alternating fixed text and group bodies: [fixed, group, fixed, group, ..., fixed]
    pieces: list[str] = []
    current: list[str] = []
    in_group = False
    for ch in pattern:
        if ch == "(":
            if in_group:
                raise InvalidPatternError(pattern, "nested optional groups")
            pieces.append("".join(current))
            current = []
            in_group = True
        elif ch == ")":
            if not in_group:
                raise InvalidPatternError(pattern, "unbalanced ')'")
            if not current:
                raise InvalidPatternError(pattern, "empty optional group")
            pieces.append("".join(current))
            current = []
            in_group = False
        else:
            current.append(ch)
    if in_group:
        raise InvalidPatternError(pattern, "unbalanced '('")
    pieces.append("".join(current))

    fixed = pieces[0::2]
    groups = pieces[1::2]
    if len(groups) > MAX_OPTIONAL_GROUPS:
        raise TooManyOptionalGroupsError(pattern, len(groups), MAX_OPTIONAL_GROUPS)

    expanded: list[str] = []
    for present in itertools.product((True, False), repeat=len(groups)):
        out = [fixed[0]]
        for keep, group, tail in zip(present, groups, fixed[1:], strict=True):
            if keep:
                out.append(group)
            out.append(tail)
        expanded.append("".join(out))

    unique = list(dict.fromkeys(expanded))
    return sorted(unique, key=_segment_count, reverse=True)


def _segment_count(pattern: str) -> int:
    return sum(1 for p in pattern.split("/") if p)
