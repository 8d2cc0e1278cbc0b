"""
Kernel functions for Gaussian Processes.

Stationary covariance functions of the Euclidean distance between two
feature vectors. Kernels are immutable: build a modified copy with
``with_params``.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Union
import logging

from .exceptions import ShapeError
from .matrix import Matrix, MatrixLike, as_matrix

logger = logging.getLogger(__name__)


def _as_vector(x: Sequence[float]) -> np.ndarray:
    return np.atleast_1d(np.asarray(x, dtype=np.float64)).ravel()


def squared_euclidean_distance(x1: Sequence[float], x2: Sequence[float]) -> float:
    """Squared Euclidean distance between two feature vectors."""
    a = _as_vector(x1)
    b = _as_vector(x2)
    if a.shape != b.shape:
        raise ShapeError(f"Feature vectors differ in length: {a.shape[0]} vs {b.shape[0]}")
    diff = a - b
    return float(np.dot(diff, diff))


def euclidean_distance(x1: Sequence[float], x2: Sequence[float]) -> float:
    """Euclidean distance between two feature vectors."""
    return float(np.sqrt(squared_euclidean_distance(x1, x2)))


def _positive(name: str, value: float) -> float:
    value = float(value)
    if not np.isfinite(value) or value <= 0.0:
        raise ValueError(f"{name} must be a finite positive number, got {value!r}")
    return value


class Kernel(ABC):
    """
    Abstract base class for GP kernels.

    Subclasses implement ``compute`` for a single pair of points and
    ``get_params``; the Gram matrix builder is shared.
    """

    _frozen = False

    def __setattr__(self, name, value):
        if self._frozen:
            raise AttributeError(
                f"{type(self).__name__} is immutable; use with_params() to change '{name}'"
            )
        super().__setattr__(name, value)

    def _freeze(self) -> None:
        self._frozen = True

    @abstractmethod
    def compute(self, x1: Sequence[float], x2: Sequence[float]) -> float:
        """
        Covariance k(x1, x2) between two feature vectors.

        Parameters
        ----------
        x1, x2 : array-like, shape (d,)
            Feature vectors of equal length.

        Returns
        -------
        k : float
        """

    @abstractmethod
    def get_params(self) -> Dict[str, float]:
        """Return hyperparameters keyed by constructor argument name."""

    def with_params(self, **changes: float) -> 'Kernel':
        """Return a new kernel of the same type with some parameters replaced."""
        params = self.get_params()
        unknown = set(changes) - set(params)
        if unknown:
            raise ValueError(
                f"Unknown parameter(s) for {type(self).__name__}: {sorted(unknown)}; "
                f"expected a subset of {sorted(params)}"
            )
        params.update(changes)
        return type(self)(**params)

    def gram(self, X1: MatrixLike, X2: Optional[MatrixLike] = None) -> Matrix:
        """
        Compute covariance matrix K(X1, X2) by pairwise evaluation.

        Parameters
        ----------
        X1 : array-like, shape (n, d)
            First set of inputs.
        X2 : array-like, shape (m, d), optional
            Second set of inputs. If None, uses X1 and the result is the
            symmetric Gram matrix.

        Returns
        -------
        K : Matrix, shape (n, m)
        """
        A = as_matrix(X1)
        symmetric = X2 is None
        B = A if symmetric else as_matrix(X2)
        if A.columns != B.columns:
            raise ShapeError(
                f"Input dimension mismatch: {A.columns} vs {B.columns} features"
            )

        a = A.values
        b = B.values
        K = np.empty((A.rows, B.rows))
        for i in range(A.rows):
            # Only the upper triangle is evaluated for a Gram matrix
            start = i if symmetric else 0
            for j in range(start, B.rows):
                K[i, j] = self.compute(a[i], b[j])
                if symmetric:
                    K[j, i] = K[i, j]

        return Matrix.from_numpy(K, copy=False)

    def diag(self, X: MatrixLike) -> np.ndarray:
        """Prior variances k(x, x) for every row of X."""
        A = as_matrix(X).values
        return np.array([self.compute(x, x) for x in A])

    def __call__(
        self,
        X1: MatrixLike,
        X2: Optional[MatrixLike] = None,
        diag: bool = False
    ) -> Union[Matrix, np.ndarray]:
        """
        Compute K(X1, X2), or only its diagonal over X1 if ``diag`` is True.
        """
        if diag:
            return self.diag(X1)
        return self.gram(X1, X2)

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.get_params() == other.get_params()

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(self.get_params().items()))))

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.get_params().items())
        return f"{type(self).__name__}({args})"


class RBF(Kernel):
    """
    Radial Basis Function (Squared Exponential) kernel.

    k(x, x') = σ² exp(-0.5 ||x - x'||² / ℓ²)

    Parameters
    ----------
    length_scale : float, default=1.0
        Characteristic length scale ℓ.
    variance : float, default=1.0
        Signal variance σ².
    """

    def __init__(self, length_scale: float = 1.0, variance: float = 1.0):
        self.length_scale = _positive('length_scale', length_scale)
        self.variance = _positive('variance', variance)
        self._freeze()

    def compute(self, x1: Sequence[float], x2: Sequence[float]) -> float:
        d = euclidean_distance(x1, x2)
        return self.variance * float(np.exp(-0.5 * (d / self.length_scale) ** 2))

    def get_params(self) -> Dict[str, float]:
        return {'length_scale': self.length_scale, 'variance': self.variance}


class Periodic(Kernel):
    """
    Periodic (Exp-Sine-Squared) kernel.

    k(x, x') = σ² exp(-2 sin²(π ||x - x'|| / p) / ℓ²)

    Parameters
    ----------
    length_scale : float, default=1.0
        Length scale ℓ.
    periodicity : float, default=1.0
        Period p.
    variance : float, default=1.0
        Signal variance σ².
    """

    def __init__(
        self,
        length_scale: float = 1.0,
        periodicity: float = 1.0,
        variance: float = 1.0
    ):
        self.length_scale = _positive('length_scale', length_scale)
        self.periodicity = _positive('periodicity', periodicity)
        self.variance = _positive('variance', variance)
        self._freeze()

    def compute(self, x1: Sequence[float], x2: Sequence[float]) -> float:
        d = euclidean_distance(x1, x2)
        sin_term = np.sin(np.pi * d / self.periodicity)
        return self.variance * float(np.exp(-2.0 * (sin_term / self.length_scale) ** 2))

    def get_params(self) -> Dict[str, float]:
        return {
            'length_scale': self.length_scale,
            'periodicity': self.periodicity,
            'variance': self.variance,
        }


class RationalQuadratic(Kernel):
    """
    Rational Quadratic kernel (infinite mixture of RBF kernels).

    k(x, x') = σ² (1 + ||x - x'||² / (2 α ℓ²))^(-α)

    Parameters
    ----------
    length_scale : float, default=1.0
        Characteristic length scale ℓ.
    alpha : float, default=1.0
        Scale mixture parameter α. Unrelated to the regressor's noise term.
    variance : float, default=1.0
        Signal variance σ².
    """

    def __init__(
        self,
        length_scale: float = 1.0,
        alpha: float = 1.0,
        variance: float = 1.0
    ):
        self.length_scale = _positive('length_scale', length_scale)
        self.alpha = _positive('alpha', alpha)
        self.variance = _positive('variance', variance)
        self._freeze()

    def compute(self, x1: Sequence[float], x2: Sequence[float]) -> float:
        d2 = squared_euclidean_distance(x1, x2)
        base = 1.0 + d2 / (2.0 * self.alpha * self.length_scale ** 2)
        return self.variance * float(base ** (-self.alpha))

    def get_params(self) -> Dict[str, float]:
        return {
            'length_scale': self.length_scale,
            'alpha': self.alpha,
            'variance': self.variance,
        }


KERNELS = {
    'rbf': RBF,
    'periodic': Periodic,
    'rational_quadratic': RationalQuadratic,
}


def make_kernel(kind: str, **params: float) -> Kernel:
    """
    Build a kernel from its tag.

    Parameters
    ----------
    kind : str
        One of 'rbf', 'periodic', 'rational_quadratic' (case-insensitive,
        '-' and '_' interchangeable).
    **params
        Constructor arguments of the chosen kernel.

    Raises
    ------
    ValueError
        If the tag is unknown.
    """
    key = kind.strip().lower().replace('-', '_')
    if key not in KERNELS:
        raise ValueError(f"Unknown kernel '{kind}'; expected one of {sorted(KERNELS)}")
    return KERNELS[key](**params)
