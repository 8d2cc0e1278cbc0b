"""
Linear algebra for Gaussian Process computations.

Cholesky factorisation of symmetric positive-definite matrices and the
triangular solves used for GP inference. Callers are responsible for adding
diagonal jitter before factorising; nothing here retries.
"""

import logging
import numpy as np
from typing import Optional, Sequence

from .exceptions import NotPositiveDefiniteError, ShapeError
from .matrix import Matrix

logger = logging.getLogger(__name__)


def cholesky(K: Matrix) -> Matrix:
    """
    Cholesky–Banachiewicz factorisation K = L L^T.

    Rows are processed top to bottom; within row i the columns j = 0..i are
    filled left to right, so every L[j, j] is known before it is divided by.

    Parameters
    ----------
    K : Matrix, shape (n, n)
        Symmetric positive-definite matrix. Only the lower triangle is read.

    Returns
    -------
    L : Matrix, shape (n, n)
        Lower-triangular Cholesky factor.

    Raises
    ------
    ShapeError
        If K is not square.
    NotPositiveDefiniteError
        If a diagonal term under the square root is <= 0 (or NaN).
    """
    if not K.is_square:
        raise ShapeError(f"Cholesky requires a square matrix, got {K.rows}x{K.columns}")

    A = K.values
    n = K.rows
    L = np.zeros((n, n))

    for i in range(n):
        for j in range(i + 1):
            s = np.dot(L[i, :j], L[j, :j])
            if i == j:
                diagonal = A[j, j] - s
                # `not >` so that NaN also fails
                if not diagonal > 0.0:
                    logger.debug(f"Cholesky of {n}x{n} matrix failed at row {j}: {diagonal:.3e}")
                    raise NotPositiveDefiniteError(j, float(diagonal))
                L[j, j] = np.sqrt(diagonal)
            else:
                L[i, j] = (A[i, j] - s) / L[j, j]

    return Matrix.from_numpy(L, copy=False)


def _check_system(L: Matrix, b: Sequence[float]) -> np.ndarray:
    if not L.is_square:
        raise ShapeError(f"Triangular factor must be square, got {L.rows}x{L.columns}")
    b = np.asarray(b, dtype=np.float64)
    if b.ndim != 1 or b.shape[0] != L.rows:
        raise ShapeError(f"Right-hand side has shape {b.shape}, expected ({L.rows},)")
    return b


def forward_substitution(L: Matrix, b: Sequence[float]) -> np.ndarray:
    """
    Solve L x = b for lower-triangular L.

    Parameters
    ----------
    L : Matrix, shape (n, n)
        Lower-triangular matrix with non-zero diagonal.
    b : array-like, shape (n,)
        Right-hand side.

    Returns
    -------
    x : np.ndarray, shape (n,)
    """
    b = _check_system(L, b)
    A = L.values
    n = L.rows
    x = np.empty(n)

    for i in range(n):
        if A[i, i] == 0.0:
            raise np.linalg.LinAlgError(f"Singular triangular factor: zero diagonal at row {i}")
        x[i] = (b[i] - np.dot(A[i, :i], x[:i])) / A[i, i]

    return x


def back_substitution(L: Matrix, b: Sequence[float]) -> np.ndarray:
    """
    Solve L^T x = b given lower-triangular L.

    L^T is never formed: row i of L^T is read as column i of L, i.e. the
    entries L[j, i] for j > i.
    """
    b = _check_system(L, b)
    A = L.values
    n = L.rows
    x = np.empty(n)

    for i in range(n - 1, -1, -1):
        if A[i, i] == 0.0:
            raise np.linalg.LinAlgError(f"Singular triangular factor: zero diagonal at row {i}")
        x[i] = (b[i] - np.dot(A[i + 1:, i], x[i + 1:])) / A[i, i]

    return x


def cholesky_solve(L: Matrix, b: Sequence[float]) -> np.ndarray:
    """
    Solve K x = b given Cholesky factor L where K = LL^T.

    Two-step triangular solve:
      1. Solve L z = b  (forward substitution)
      2. Solve L^T x = z  (backward substitution)
    """
    z = forward_substitution(L, b)
    return back_substitution(L, z)


def log_marginal_likelihood(
    y: Sequence[float],
    L: Matrix,
    alpha: Optional[np.ndarray] = None
) -> float:
    """
    Log marginal likelihood of GP regression from a Cholesky factor.

    log p(y|X,θ) = -0.5 * y^T K^{-1} y - 0.5 * log|K| - (n/2) * log(2π)

    Parameters
    ----------
    y : array-like, shape (n,)
        Training targets.
    L : Matrix, shape (n, n)
        Cholesky factor of the covariance matrix (noise included).
    alpha : np.ndarray, optional
        Pre-computed K^{-1} y. Solved from L when omitted.

    Returns
    -------
    lml : float
    """
    y = np.asarray(y, dtype=np.float64)
    n = y.shape[0]

    if alpha is None:
        alpha = cholesky_solve(L, y)

    # Data fit term: -0.5 * y^T K^{-1} y
    data_fit = -0.5 * np.dot(y, alpha)

    # Complexity penalty: -0.5 * log|K| = -sum(log(diag(L)))
    log_det = -np.sum(np.log(L.diagonal()))

    # Normalisation constant
    const = -0.5 * n * np.log(2 * np.pi)

    return float(data_fit + log_det + const)
