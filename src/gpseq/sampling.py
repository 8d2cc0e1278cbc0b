"""
Random sampling for Gaussian Processes.

All draws go through an explicit ``numpy.random.Generator``; nothing here
touches global random state.
"""

import logging
import numpy as np
from typing import Sequence, Union

from .exceptions import ShapeError
from .kernels import Kernel
from .linalg import cholesky
from .matrix import Matrix, MatrixLike, as_matrix

logger = logging.getLogger(__name__)

RandomState = Union[None, int, np.random.Generator]


def check_random_state(seed: RandomState) -> np.random.Generator:
    """
    Turn ``seed`` into a ``numpy.random.Generator``.

    None gives a freshly seeded generator, an int a deterministic one, and
    an existing Generator is returned unchanged.
    """
    if isinstance(seed, np.random.Generator):
        return seed
    if seed is None or isinstance(seed, (int, np.integer)):
        return np.random.default_rng(seed)
    raise ValueError(f"{seed!r} cannot be used to seed a numpy.random.Generator")


def box_muller(rng: np.random.Generator, size: int) -> np.ndarray:
    """
    Standard normal variates via the Box–Muller transform.

    z = sqrt(-2 log u1) cos(2π u2),  u1 ∈ (0, 1], u2 ∈ [0, 1)
    """
    # 1 - U[0, 1) keeps u1 away from zero
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def sample_normal(
    mean: float = 0.0,
    std: float = 1.0,
    rng: RandomState = None
) -> float:
    """Draw a single N(mean, std²) variate."""
    z = box_muller(check_random_state(rng), 1)[0]
    return float(mean + std * z)


def sample_multivariate_normal(
    mean: Sequence[float],
    cov: MatrixLike,
    rng: RandomState = None
) -> np.ndarray:
    """
    Draw one joint sample from N(mean, cov).

    Computes L = cholesky(cov) and returns mean + L z with z standard normal.

    Parameters
    ----------
    mean : array-like, shape (n,)
        Mean vector.
    cov : Matrix or array-like, shape (n, n)
        Symmetric positive-definite covariance.
    rng : Generator, int or None
        Random source.

    Returns
    -------
    sample : np.ndarray, shape (n,)

    Raises
    ------
    ShapeError
        If mean and cov do not agree in size.
    NotPositiveDefiniteError
        If cov cannot be factorised.
    """
    mean = np.asarray(mean, dtype=np.float64)
    cov = cov if isinstance(cov, Matrix) else Matrix(cov)
    if mean.ndim != 1 or cov.shape != (mean.shape[0], mean.shape[0]):
        raise ShapeError(
            f"Mean of shape {mean.shape} does not match covariance of shape {cov.shape}"
        )

    L = cholesky(cov)
    z = box_muller(check_random_state(rng), mean.shape[0])
    return mean + L.values.dot(z)


def sample_prior(
    kernel: Kernel,
    X: MatrixLike,
    n_samples: int = 1,
    noise_variance: float = 0.0,
    mean: float = 0.0,
    rng: RandomState = None
) -> np.ndarray:
    """
    Draw functions from the GP prior at points X.

    The covariance is kernel(X, X) + noise_variance * I and the mean is the
    constant ``mean``. Unlike posterior sampling this is a full joint draw.

    Parameters
    ----------
    kernel : Kernel
        Prior covariance function.
    X : array-like, shape (n, d)
        Input points.
    n_samples : int, default=1
        Number of independent draws.
    noise_variance : float, default=0.0
        Diagonal term added to the Gram matrix. Must be >= 0; a small positive
        value is usually needed for dense inputs.
    mean : float, default=0.0
        Constant prior mean.
    rng : Generator, int or None
        Random source.

    Returns
    -------
    samples : np.ndarray, shape (n_samples, n)
    """
    if n_samples < 1:
        raise ValueError(f"n_samples must be >= 1, got {n_samples}")
    if not noise_variance >= 0.0:
        raise ValueError(f"noise_variance must be >= 0, got {noise_variance!r}")

    X = as_matrix(X)
    K = kernel.gram(X).add_diagonal(noise_variance)
    L = cholesky(K)
    rng = check_random_state(rng)

    Z = np.stack([box_muller(rng, X.rows) for _ in range(n_samples)])
    samples = mean + Z.dot(L.values.T)

    logger.debug(f"Drew {n_samples} prior sample(s) at {X.rows} points")
    return samples
