"""Tests for debug mode functionality."""

import numpy as np
import pytest

from multiopt.convex.regions import BoxRegion
from multiopt.diagnostics import (
    check_invariant,
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)
from multiopt.optimize import LevenbergMarquardtOptimizer


def test_debug_mode_toggle_and_context() -> None:
    """Test debug mode toggling and context manager."""
    set_debug_enabled(False)
    assert not is_debug_enabled()

    with debug_context(True):
        assert is_debug_enabled()

    # Back to previous (False in this block)
    assert not is_debug_enabled()

    set_debug_enabled(True)
    with debug_context(False):
        assert not is_debug_enabled()
    assert is_debug_enabled()


def test_debug_context_restores_on_error() -> None:
    """The previous mode is restored when the block raises."""
    set_debug_enabled(False)
    with pytest.raises(RuntimeError):
        with debug_context(True):
            raise RuntimeError("boom")
    assert not is_debug_enabled()


def test_check_invariant_only_raises_in_debug_mode() -> None:
    """Invariant violations are ignored unless debug mode is on."""
    set_debug_enabled(False)
    check_invariant(False, "ignored")
    with debug_context(True):
        check_invariant(True, "holds")
        with pytest.raises(AssertionError, match="broken"):
            check_invariant(False, "broken")


def test_debug_mode_runs_projected_optimizer() -> None:
    """A projected run passes its feasibility checks in debug mode."""
    box = BoxRegion.uniform(2, 0.0, 1.0)
    algorithm = LevenbergMarquardtOptimizer().create_constrained(box)
    algorithm.set_function(lambda x: x - 2.0, codomain_dimension=2, jac=lambda x: np.eye(2))
    with debug_context(True):
        state = algorithm.find_minimum(np.array([0.5, 0.5]))
    assert np.allclose(state.x, [1.0, 1.0])
