"""
Gaussian Process Regression (Algorithm 2.1).

Exact GP regression with fixed hyperparameters: fit, posterior mean and
standard deviation, log marginal likelihood and posterior sampling.
"""

import logging
import numpy as np
from typing import NamedTuple, Optional, Union

from .exceptions import NotFittedError, NotPositiveDefiniteError, ShapeError
from .kernels import Kernel, RBF, make_kernel
from .linalg import (
    back_substitution,
    cholesky,
    forward_substitution,
    log_marginal_likelihood,
)
from .matrix import Matrix, MatrixLike, as_matrix
from .sampling import RandomState, box_muller, check_random_state

logger = logging.getLogger(__name__)

DEFAULT_NOISE_VARIANCE = 1e-10


class FittedState(NamedTuple):
    """Everything ``fit`` produces; replaced as a whole on every fit."""
    X_train: Matrix
    y_train: np.ndarray
    L: Matrix
    dual_coef: np.ndarray


class Prediction(NamedTuple):
    """Posterior mean and standard deviation at the test points."""
    mean: np.ndarray
    std: np.ndarray


class GaussianProcessRegressor:
    """
    Gaussian Process Regressor implementing Algorithm 2.1.

    Performs exact GP inference for regression with Gaussian noise. Kernel
    hyperparameters are used as given; compare settings with
    ``log_marginal_likelihood``.

    Parameters
    ----------
    kernel : Kernel or str, optional
        Covariance function, or a tag understood by ``make_kernel``.
        Defaults to RBF with unit parameters.
    noise_variance : float, default=1e-10
        Value added to the diagonal of the training Gram matrix (noise
        variance / jitter). Increase it if ``fit`` raises
        NotPositiveDefiniteError.
    random_state : int or Generator, optional
        Default random source for ``sample_y``.
    verbose : bool, default=False
        Enable logging output.
    """

    def __init__(
        self,
        kernel: Union[Kernel, str, None] = None,
        noise_variance: float = DEFAULT_NOISE_VARIANCE,
        random_state: RandomState = None,
        verbose: bool = False
    ):
        if kernel is None:
            kernel = RBF()
        elif isinstance(kernel, str):
            kernel = make_kernel(kernel)
        elif not isinstance(kernel, Kernel):
            raise TypeError(f"kernel must be a Kernel or a kernel name, got {type(kernel).__name__}")
        self.kernel = kernel

        noise_variance = float(noise_variance)
        if not np.isfinite(noise_variance) or noise_variance < 0.0:
            raise ValueError(f"noise_variance must be finite and >= 0, got {noise_variance!r}")
        self.noise_variance = noise_variance
        self.random_state = random_state
        self.verbose = verbose

        if verbose:
            logger.setLevel(logging.INFO)

        self._state: Optional[FittedState] = None

    @property
    def is_fitted(self) -> bool:
        return self._state is not None

    def _fitted_state(self) -> FittedState:
        if self._state is None:
            raise NotFittedError("Model must be fitted before prediction")
        return self._state

    @property
    def X_train_(self) -> Matrix:
        return self._fitted_state().X_train.copy()

    @property
    def y_train_(self) -> np.ndarray:
        return self._fitted_state().y_train.copy()

    @property
    def L_(self) -> Matrix:
        return self._fitted_state().L.copy()

    @property
    def dual_coef_(self) -> np.ndarray:
        return self._fitted_state().dual_coef.copy()

    @property
    def n_features_in_(self) -> int:
        return self._fitted_state().X_train.columns

    def fit(self, X: MatrixLike, y) -> 'GaussianProcessRegressor':
        """
        Fit Gaussian Process regression model (Algorithm 2.1).

        Computes:
          - K = k(X, X) + σ_n² I
          - L = cholesky(K)
          - α = L^T \\ (L \\ y)

        Any failure leaves the model unfitted, discarding a previous fit.

        Parameters
        ----------
        X : array-like, shape (n, d)
            Training inputs.
        y : array-like, shape (n,)
            Training targets.

        Returns
        -------
        self : GaussianProcessRegressor
            Fitted estimator.

        Raises
        ------
        ShapeError
            If X is not 2-D, is empty, or y does not have one value per row.
        NotPositiveDefiniteError
            If K is not numerically positive-definite.
        """
        try:
            self._state = None
            self._state = self._fit_state(X, y)
        except NotPositiveDefiniteError as exc:
            logger.warning(
                f"Cholesky factorisation failed at row {exc.row} with "
                f"noise_variance={self.noise_variance:.2e}; "
                "a larger noise_variance may be required"
            )
            raise

        logger.info(f"GP fitted with {self._state.X_train.rows} samples")
        logger.info(f"Log marginal likelihood: {self.log_marginal_likelihood():.4f}")

        return self

    def _fit_state(self, X: MatrixLike, y) -> FittedState:
        X_train = Matrix(as_matrix(X))
        y_train = np.array(y, dtype=np.float64)

        if y_train.ndim != 1:
            raise ShapeError(f"y must be one-dimensional, got shape {y_train.shape}")
        if X_train.rows == 0:
            raise ShapeError("At least one training sample is required")
        if X_train.rows != y_train.shape[0]:
            raise ShapeError(
                f"X and y have incompatible shapes: {X_train.rows} vs {y_train.shape[0]}"
            )
        if not (np.all(np.isfinite(X_train.values)) and np.all(np.isfinite(y_train))):
            raise ValueError("Training data must be finite")

        K = self.kernel.gram(X_train).add_diagonal(self.noise_variance)
        L = cholesky(K)
        dual_coef = back_substitution(L, forward_substitution(L, y_train))

        return FittedState(X_train, y_train, L, dual_coef)

    def _check_test_points(self, X: MatrixLike, state: FittedState) -> Matrix:
        X_test = as_matrix(X)
        if X_test.columns != state.X_train.columns:
            raise ShapeError(
                f"X has {X_test.columns} features, but the model was fitted "
                f"with {state.X_train.columns}"
            )
        return X_test

    def predict(
        self,
        X: MatrixLike,
        return_std: bool = False
    ) -> Union[np.ndarray, Prediction]:
        """
        Predict using GP regression (Algorithm 2.1 steps 4-5).

        Computes posterior mean and variance:
          - f̄_* = K_*^T α
          - v = L \\ k_*
          - V[f_*] = k(x_*, x_*) - v^T v

        Parameters
        ----------
        X : array-like, shape (m, d)
            Test inputs.
        return_std : bool, default=False
            If True, return standard deviation along with mean.

        Returns
        -------
        mean : np.ndarray, shape (m,)
            Posterior mean predictions (if return_std=False).
        prediction : Prediction
            ``(mean, std)`` named tuple (if return_std=True).
        """
        state = self._fitted_state()
        X_test = self._check_test_points(X, state)

        K_star = self.kernel.gram(state.X_train, X_test)  # Shape (n, m)
        mean = K_star.values.T.dot(state.dual_coef)  # Shape (m,)

        if not return_std:
            return mean

        return Prediction(mean, self._compute_std(X_test, K_star, state))

    def predict_with_uncertainty(self, X: MatrixLike) -> Prediction:
        """Posterior mean and standard deviation at X."""
        return self.predict(X, return_std=True)

    def _compute_std(
        self,
        X_test: Matrix,
        K_star: Matrix,
        state: FittedState
    ) -> np.ndarray:
        k_star_star = self.kernel.diag(X_test)
        std = np.empty(X_test.rows)

        for i in range(X_test.rows):
            v = forward_substitution(state.L, K_star.get_column(i))
            var = k_star_star[i] - np.dot(v, v)
            # Cancellation can leave tiny negative variances
            std[i] = np.sqrt(max(0.0, var))

        return std

    def sample_y(
        self,
        X: MatrixLike,
        n_samples: int = 1,
        rng: RandomState = None
    ) -> np.ndarray:
        """
        Draw samples from the posterior marginals at X.

        Each test point is sampled independently as mean + std * z, ignoring
        the posterior covariance between test points.

        Parameters
        ----------
        X : array-like, shape (m, d)
            Test inputs.
        n_samples : int, default=1
            Number of samples.
        rng : Generator, int or None
            Random source. Falls back to ``random_state``; an int or None
            builds a new generator for this call.

        Returns
        -------
        samples : np.ndarray, shape (n_samples, m)
        """
        if n_samples < 1:
            raise ValueError(f"n_samples must be >= 1, got {n_samples}")

        mean, std = self.predict_with_uncertainty(X)
        rng = check_random_state(self.random_state if rng is None else rng)

        samples = np.empty((n_samples, mean.shape[0]))
        for s in range(n_samples):
            samples[s] = mean + std * box_muller(rng, mean.shape[0])

        return samples

    sample = sample_y

    def log_marginal_likelihood(self) -> float:
        """
        Log marginal likelihood of the training data under the fitted model.

        log p(y|X,θ) = -0.5 * y^T α - Σ log L_ii - (n/2) * log(2π)

        Returns
        -------
        lml : float
        """
        state = self._fitted_state()
        return log_marginal_likelihood(state.y_train, state.L, state.dual_coef)

    def __repr__(self) -> str:
        return (
            f"GaussianProcessRegressor(kernel={self.kernel!r}, "
            f"noise_variance={self.noise_variance!r})"
        )
