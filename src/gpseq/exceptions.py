"""
Error types raised by the GP engine.

Each class also derives from the builtin (or numpy) exception raised for the
same situation elsewhere, so ``except ValueError`` style handlers keep working.
"""

import numpy as np


class GPError(Exception):
    """Base class for all errors raised by gpseq."""


class ShapeError(GPError, ValueError):
    """Raised for ragged matrices and mismatched array shapes."""


class NotPositiveDefiniteError(GPError, np.linalg.LinAlgError):
    """
    Raised when Cholesky factorisation meets a non-positive diagonal term.

    Parameters
    ----------
    row : int
        Index of the row whose diagonal term failed.
    value : float, optional
        The offending value under the square root.
    """

    def __init__(self, row: int, value: float = float('nan')):
        self.row = row
        self.value = value
        super().__init__(
            f"Matrix is not positive definite at row {row} "
            f"(diagonal term {value:.3e}); increase the noise variance"
        )


class NotFittedError(GPError, RuntimeError):
    """Raised when prediction is attempted before a successful fit."""
