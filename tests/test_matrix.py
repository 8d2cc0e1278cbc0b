"""
Unit tests for the dense Matrix container.

Tests construction, bounds checking, copy semantics and transformations.
"""

import numpy as np
import pytest

import sys
from pathlib import Path

# Add src directory to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from gpseq.exceptions import ShapeError
from gpseq.matrix import Matrix, as_matrix


class TestConstruction:
    """Shapes are inferred from the input; malformed input is rejected."""

    def test_shape_inferred_from_nested_lists(self):
        m = Matrix([[1, 2, 3], [4, 5, 6]])
        assert m.rows == 2
        assert m.columns == 3
        assert m.shape == (2, 3)
        assert m.get(1, 2) == 6.0

    def test_ragged_rows_raise_shape_error(self):
        with pytest.raises(ShapeError):
            Matrix([[1, 2], [3]])

    def test_shape_error_is_value_error(self):
        with pytest.raises(ValueError):
            Matrix([[1, 2, 3], [4, 5]])

    def test_scalar_rows_raise_shape_error(self):
        with pytest.raises(ShapeError):
            Matrix([1, 2, 3])

    def test_non_2d_array_rejected(self):
        with pytest.raises(ShapeError):
            Matrix(np.zeros(4))
        with pytest.raises(ShapeError):
            Matrix(np.zeros((2, 2, 2)))

    def test_empty_matrix(self):
        m = Matrix([])
        assert m.shape == (0, 0)

    def test_three_dimensional_nesting_rejected(self):
        with pytest.raises(ShapeError):
            Matrix([[[1.0]], [[2.0]]])
        with pytest.raises(ShapeError):
            Matrix([[[1.0, 2.0]]])

    def test_rows_of_strings_rejected(self):
        with pytest.raises(ShapeError):
            Matrix([["a", "b"]])

    def test_constructor_copies_input(self):
        arr = np.array([[1.0, 2.0], [3.0, 4.0]])
        m = Matrix(arr)
        arr[0, 0] = 99.0
        assert m.get(0, 0) == 1.0

    def test_zeros_and_identity(self):
        z = Matrix.zeros(2, 3)
        assert z.shape == (2, 3)
        assert z.to_list() == [[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]]

        eye = Matrix.identity(3)
        np.testing.assert_array_equal(eye.to_numpy(), np.eye(3))


class TestElementAccess:
    """get/set are bounds-checked and never wrap negative indices."""

    @pytest.fixture
    def m(self):
        return Matrix([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])

    def test_set_then_get(self, m):
        m.set(2, 1, -7.5)
        assert m.get(2, 1) == -7.5

    @pytest.mark.parametrize("row, column", [(3, 0), (0, 2), (-1, 0), (0, -1), (10, 10)])
    def test_get_out_of_bounds(self, m, row, column):
        with pytest.raises(IndexError):
            m.get(row, column)

    @pytest.mark.parametrize("row, column", [(3, 0), (0, 2), (-1, 1)])
    def test_set_out_of_bounds(self, m, row, column):
        with pytest.raises(IndexError):
            m.set(row, column, 0.0)

    def test_row_and_column_bounds(self, m):
        with pytest.raises(IndexError):
            m.get_row(3)
        with pytest.raises(IndexError):
            m.get_column(-1)

    def test_get_row_returns_copy(self, m):
        row = m.get_row(0)
        row[0] = 100.0
        assert m.get(0, 0) == 1.0
        np.testing.assert_array_equal(m.get_row(0), [1.0, 2.0])

    def test_get_column_returns_copy(self, m):
        col = m.get_column(1)
        np.testing.assert_array_equal(col, [2.0, 4.0, 6.0])
        col[:] = 0.0
        assert m.get(1, 1) == 4.0

    def test_values_view_is_read_only(self, m):
        with pytest.raises(ValueError):
            m.values[0, 0] = 10.0
        assert m.get(0, 0) == 1.0


class TestTransformations:
    """Transformations return new matrices and leave the original intact."""

    def test_transpose_swaps_dimensions(self):
        m = Matrix([[1, 2, 3], [4, 5, 6]])
        t = m.transpose()
        assert t.shape == (3, 2)
        assert t.to_list() == [[1.0, 4.0], [2.0, 5.0], [3.0, 6.0]]
        t.set(0, 1, 0.0)
        assert m.get(1, 0) == 4.0

    def test_double_transpose_is_identity(self):
        m = Matrix(np.random.default_rng(0).standard_normal((4, 7)))
        assert m.transpose().transpose() == m

    def test_add_diagonal_returns_new_matrix(self):
        m = Matrix([[1.0, 0.5], [0.5, 1.0]])
        shifted = m.add_diagonal(0.25)
        assert shifted.to_list() == [[1.25, 0.5], [0.5, 1.25]]
        assert m.to_list() == [[1.0, 0.5], [0.5, 1.0]]

    def test_add_diagonal_requires_square(self):
        with pytest.raises(ShapeError):
            Matrix.zeros(2, 3).add_diagonal(1.0)

    def test_matmul(self):
        a = Matrix([[1, 2], [3, 4]])
        b = Matrix([[5], [6]])
        assert (a @ b).to_list() == [[17.0], [39.0]]

    def test_matmul_shape_mismatch(self):
        with pytest.raises(ShapeError):
            Matrix.zeros(2, 3) @ Matrix.zeros(2, 3)

    def test_copy_is_independent(self):
        m = Matrix([[1.0]])
        c = m.copy()
        c.set(0, 0, 2.0)
        assert m.get(0, 0) == 1.0
        assert c != m


class TestAsMatrix:
    """Coercion of caller input to (n, d) point sets."""

    def test_flat_list_is_column_of_points(self):
        m = as_matrix([0.0, 1.0, 2.5])
        assert m.shape == (3, 1)
        np.testing.assert_array_equal(m.get_column(0), [0.0, 1.0, 2.5])

    def test_flat_array_is_column_of_points(self):
        m = as_matrix(np.arange(4.0))
        assert m.shape == (4, 1)

    def test_nested_list_kept(self):
        m = as_matrix([[0.0, 1.0], [2.0, 3.0]])
        assert m.shape == (2, 2)

    def test_matrix_passes_through(self):
        m = Matrix([[1.0]])
        assert as_matrix(m) is m

    def test_empty_list_is_empty_column(self):
        assert as_matrix([]).shape == (0, 1)
        assert as_matrix([]) == as_matrix(np.array([]))
