"""Debug mode management for multiopt.

When debug mode is on, algorithms verify their run-time invariants (iterates
of projected methods stay feasible, box-transformed points stay inside the
box) and raise ``AssertionError`` on a violation. The switch is global and
can be set through the ``MULTIOPT_DEBUG`` environment variable.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

_DEBUG_ENV_VAR = "MULTIOPT_DEBUG"
_debug_enabled: bool = os.getenv(_DEBUG_ENV_VAR, "0").lower() in (
    "1",
    "true",
    "yes",
    "on",
)


def is_debug_enabled() -> bool:
    """
    Return whether multiopt debug mode is currently enabled.

    Returns
    -------
    bool
        True if debug mode is enabled, False otherwise.
    """
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    """
    Globally enable or disable multiopt debug mode.

    Parameters
    ----------
    enabled:
        Whether to enable debug mode.
    """
    global _debug_enabled
    _debug_enabled = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Context manager to temporarily enable or disable debug mode.

    Example
    -------
    >>> with debug_context(True):
    ...     state = algorithm.find_minimum(x0)
    """
    global _debug_enabled
    prev = _debug_enabled
    _debug_enabled = bool(enabled)
    try:
        yield
    finally:
        _debug_enabled = prev


def check_invariant(condition: bool, message: str) -> None:
    """Raise ``AssertionError`` with ``message`` if debug mode is on and ``condition`` fails."""
    if _debug_enabled and not condition:
        raise AssertionError(message)


__all__ = ["is_debug_enabled", "set_debug_enabled", "debug_context", "check_invariant"]
