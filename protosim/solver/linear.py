from __future__ import annotations
import warnings
import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from ..errors import SingularMatrixError

Array = np.ndarray

# Pivots below this fraction of the largest entry in their column are round-off
# left by cancelling a dependent column, not a real conductance.
PIVOT_RTOL = 1e-12


def solve_dense(M: Array, b: Array) -> Array:
    """
    Solve M x = b with a dense LU decomposition (partial pivoting).

    The matrix is factorized once and the solution obtained by forward and back
    substitution. A pivot that is zero, or at most PIVOT_RTOL times the largest
    entry of its column, means the column of that unknown is linearly
    dependent on the previous ones: a floating node, or voltage sources forcing
    contradictory values on the same net. No fallback is attempted.

    Args:
        M: Square system matrix, shape (n, n).
        b: Right-hand side, shape (n,).

    Returns:
        Solution vector x, shape (n,).

    Raises:
        ValueError: If the shapes do not match.
        SingularMatrixError: If M is singular or the solution is not finite.
            `index` holds the unknown of the first unusable pivot when known.
    """
    M = np.asarray(M, dtype=float)
    b = np.asarray(b, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError(f"System matrix must be square, got shape {M.shape}.")
    if b.shape != (M.shape[0],):
        raise ValueError(f"Right-hand side of shape {b.shape} does not match matrix of shape {M.shape}.")
    if M.shape[0] == 0:
        return np.zeros(0)
    if not (np.all(np.isfinite(M)) and np.all(np.isfinite(b))):
        raise SingularMatrixError("System contains non-finite entries.")

    with warnings.catch_warnings():
        # singular factors are reported below through SingularMatrixError
        warnings.simplefilter("ignore", LinAlgWarning)
        lu, piv = lu_factor(M, check_finite=False)

    tol = PIVOT_RTOL * np.abs(M).max(axis=0)
    pivots = np.abs(np.diag(lu))
    singular = np.flatnonzero(pivots <= tol)
    if singular.size:
        idx = int(singular[0])
        raise SingularMatrixError(f"Singular matrix: no usable pivot for unknown {idx}.", index=idx)

    x = lu_solve((lu, piv), b, check_finite=False)
    if not np.all(np.isfinite(x)):
        raise SingularMatrixError("Singular matrix: solution is not finite.")
    return x
