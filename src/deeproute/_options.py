"""GlobalOptions: per-router knobs that alter parsing and matching.

A Router holds one frozen snapshot. Setters never mutate a snapshot; they
swap in a replacement, so a dispatch that read ``router.options`` once sees
all three flags from the same generation.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options read by the URL decomposer and the dispatcher.

    verbose_logging: trace every dispatch step on the ``deeproute`` logger.
    decode_plus_symbols: turn ``+`` into a space in query values and
        placeholder captures, after percent-decoding.
    treat_host_as_path_component: prepend the URL host to the path
        segments, so ``app://user/42`` lines up against ``/user/:id``.
    """

    verbose_logging: bool = False
    decode_plus_symbols: bool = True
    treat_host_as_path_component: bool = False


DEFAULT_OPTIONS = GlobalOptions()
