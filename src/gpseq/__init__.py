"""
Gaussian Process regression engine for generative sequences.

Implements exact GP regression (Algorithm 2.1 of "Gaussian Processes for
Machine Learning" by Rasmussen and Williams) on a small dense-matrix and
Cholesky layer, with RBF, Periodic and Rational Quadratic kernels.
"""

from .exceptions import GPError, NotFittedError, NotPositiveDefiniteError, ShapeError
from .matrix import Matrix, as_matrix
from .linalg import back_substitution, cholesky, cholesky_solve, forward_substitution
from .kernels import Kernel, Periodic, RationalQuadratic, RBF, make_kernel
from .regression import FittedState, GaussianProcessRegressor, Prediction
from .sampling import sample_multivariate_normal, sample_prior
from . import kernels

__version__ = "0.1.0"
__all__ = [
    'GaussianProcessRegressor',
    'FittedState',
    'Prediction',
    'Kernel',
    'RBF',
    'Periodic',
    'RationalQuadratic',
    'make_kernel',
    'kernels',
    'Matrix',
    'as_matrix',
    'cholesky',
    'forward_substitution',
    'back_substitution',
    'cholesky_solve',
    'sample_prior',
    'sample_multivariate_normal',
    'GPError',
    'ShapeError',
    'NotPositiveDefiniteError',
    'NotFittedError',
]
