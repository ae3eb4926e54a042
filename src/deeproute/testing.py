"""Test utilities for deeproute.

Provides recording handlers for use in tests and examples. A
HandlerRecorder hands out named handlers that accept or decline and logs
every call in order, across all of them, so a test can assert on the
exact sequence dispatch walked through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deeproute._registry import HandlerRegistryBuilder
    from deeproute._types import Handler, ParameterMap


@dataclass(frozen=True, slots=True)
class HandlerCall:
    """One recorded handler invocation."""

    name: str
    parameters: ParameterMap
    result: bool


@dataclass
class HandlerRecorder:
    """Shared call log for any number of named handlers.

    >>> from deeproute import Router
    >>> from deeproute.testing import HandlerRecorder
    >>> rec = HandlerRecorder()
    >>> ns = Router().namespace("app")
    >>> _ = ns.add_route("/a/:id", rec.handler("first", result=False))
    >>> _ = ns.add_route("/a/:id", rec.handler("second"))
    >>> ns.route("app:///a/1")
    True
    >>> rec.names()
    ['first', 'second']
    """

    calls: list[HandlerCall] = field(default_factory=list)
    unmatched: list[tuple[str | None, Any]] = field(default_factory=list)

    def handler(self, name: str, *, result: bool = True) -> Handler:
        """A handler that records its call under *name* and returns *result*."""

        def _handler(parameters: ParameterMap) -> bool:
            self.calls.append(HandlerCall(name=name, parameters=parameters, result=result))
            return result

        _handler.__name__ = name
        return _handler

    def unmatched_handler(self, url: str | None, parameters: Any) -> None:
        """Records unmatched-URL callbacks."""
        self.unmatched.append((url, parameters))

    def names(self) -> list[str]:
        """Handler names in call order."""
        return [c.name for c in self.calls]

    def accepted(self) -> HandlerCall | None:
        """The call that handled the URL, if any."""
        for call in reversed(self.calls):
            if call.result:
                return call
        return None

    def clear(self) -> None:
        self.calls.clear()
        self.unmatched.clear()


def register(
    builder: HandlerRegistryBuilder,
    recorder: HandlerRecorder,
    names: Iterable[str],
    declining: Iterable[str] = (),
) -> HandlerRegistryBuilder:
    """Register a recording handler for each of *names*.

    Handlers named in *declining* return False; the rest return True. The
    recorder's unmatched callback is registered as ``"unmatched"``.
    """
    declined = set(declining)
    for name in names:
        builder.handler(name, recorder.handler(name, result=name not in declined))
    return builder.unmatched_handler("unmatched", recorder.unmatched_handler)
