"""
Numerical helper routines for feasible regions and their projections.

These helpers emphasize determinism and graceful degradation when matrices are
nearly singular.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


def symmetrize(matrix: np.ndarray) -> np.ndarray:
    """
    Return the symmetric part of ``matrix``.

    The active-set solver assumes an exactly symmetric Hessian; this returns
    ``0.5 * (matrix + matrix.T)``.
    """

    return 0.5 * (matrix + matrix.T)


def stable_solve(matrix: np.ndarray, rhs: np.ndarray, reg: float = 1e-12) -> np.ndarray:
    """
    Solve ``A x = b`` with simple regularization fallbacks.

    The function first attempts ``np.linalg.solve``. Upon encountering a
    ``LinAlgError`` it retries with Tikhonov regularization by adding ``reg``
    to the diagonal. If the system remains singular it falls back to a
    least-squares solve via ``np.linalg.lstsq``.
    """

    try:
        return np.linalg.solve(matrix, rhs)
    except np.linalg.LinAlgError:
        if reg > 0.0:
            augmented = matrix + reg * np.eye(matrix.shape[0], dtype=matrix.dtype)
            try:
                return np.linalg.solve(augmented, rhs)
            except np.linalg.LinAlgError:
                pass
    sol, *_ = np.linalg.lstsq(matrix, rhs, rcond=None)
    return sol


def project_box(x: np.ndarray, lb: Optional[np.ndarray], ub: Optional[np.ndarray]) -> np.ndarray:
    """
    Project ``x`` onto the box defined by ``lb`` and ``ub``.

    Parameters may be ``None`` (interpreted as ``-inf``/``+inf``), in which
    case the projection leaves the corresponding coordinates unchanged.
    Infinite entries of ``lb``/``ub`` are handled the same way.
    """

    projected = np.array(x, dtype=float, copy=True)
    if lb is not None:
        projected = np.maximum(projected, lb)
    if ub is not None:
        projected = np.minimum(projected, ub)
    return projected


def as_vector(x: np.ndarray, dimension: Optional[int] = None, name: str = "x") -> np.ndarray:
    """
    Return ``x`` as a fresh 1-D float array, optionally checking its length.

    Raises:
        ValueError: If ``dimension`` is given and does not match ``x``.
    """

    vec = np.array(x, dtype=float, copy=True).reshape(-1)
    if dimension is not None and vec.shape[0] != dimension:
        raise ValueError(
            f"{name} has dimension {vec.shape[0]}, expected {dimension}"
        )
    return vec


__all__ = ["symmetrize", "stable_solve", "project_box", "as_vector"]
