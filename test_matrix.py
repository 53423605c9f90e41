"""
Matrix nodes: closed-form adjoints against finite differences, known
gradients, zero-size conventions and shape errors.
"""

import numpy as np
import pytest

from aad_density.aad import (
    Tape, grad, jacobian, matrix, ADVar, DimensionError,
)

H = 1e-6


def fd_gradient(f, x0):
    """Centred finite differences of scalar f over every element of x0."""
    x0 = np.asarray(x0, dtype=np.float64)
    g = np.zeros_like(x0)
    for k in range(x0.size):
        e = np.zeros_like(x0)
        e.flat[k] = H
        g.flat[k] = (float(f(x0 + e)) - float(f(x0 - e))) / (2.0 * H)
    return g


def assert_gradient_matches(f, x0, rtol=1e-5, atol=1e-7):
    """f must accept both float arrays (constant path) and ADVar arrays."""
    tape = Tape()
    xs = tape.vars(x0)
    y = f(xs)
    assert isinstance(y, ADVar)
    assert float(y.val) == pytest.approx(float(f(np.asarray(x0, dtype=np.float64))))
    g = grad(y, xs).reshape(np.shape(x0))
    np.testing.assert_allclose(g, fd_gradient(f, x0), rtol=rtol, atol=atol)


A0 = np.array([[2.0, 1.0, 0.5], [0.3, 3.0, -1.0], [1.0, -0.4, 2.5]])
W3 = np.array([[1.0, -2.0, 0.5], [0.7, 1.5, -1.0], [2.0, 0.1, 3.0]])


# ----------------------------- determinant / inverse ----------------------------- #
def test_determinant_known_gradient():
    tape = Tape()
    A = tape.vars([[2.0, 3.0], [5.0, 7.0]])
    n = len(tape)
    d = matrix.determinant(A)
    assert len(tape) == n + 1
    assert float(d.val) == pytest.approx(-1.0)
    np.testing.assert_allclose(grad(d, A), [7.0, -5.0, -3.0, 2.0])


def test_determinant_matches_finite_differences():
    assert_gradient_matches(matrix.determinant, A0)


def test_log_determinant_matches_finite_differences():
    assert_gradient_matches(matrix.log_determinant, A0)


def test_determinant_non_square_raises_before_allocation():
    tape = Tape()
    A = tape.vars(np.ones((2, 3)))
    n = len(tape)
    with pytest.raises(DimensionError):
        matrix.determinant(A)
    assert len(tape) == n


def test_inverse_value_and_gradient():
    tape = Tape()
    A = tape.vars(A0)
    inv = matrix.inverse(A)
    np.testing.assert_allclose(matrix.values(inv), np.linalg.inv(A0))
    assert_gradient_matches(lambda a: matrix.sum(matrix.elt_multiply(matrix.inverse(a), W3)), A0)


def test_inverse_records_one_carrier_plus_outputs():
    tape = Tape()
    A = tape.vars([[2.0, 1.0], [1.0, 3.0]])
    n = len(tape)
    matrix.inverse(A)
    assert len(tape) == n + 1 + 4
    assert tape.nodes[n].op_tag == "inverse"
    assert tape.nodes[n + 1].op_tag == "inverse_out"


def test_inverse_of_inverse_sum_has_unit_gradient():
    tape = Tape()
    A = tape.vars([[2.0, 3.0], [5.0, 7.0]])
    y = matrix.sum(matrix.inverse(matrix.inverse(A)))
    np.testing.assert_allclose(grad(y, A), np.ones(4))


def test_singular_inverse_gives_non_finite_values():
    inv = matrix.inverse([[1.0, 2.0], [2.0, 4.0]])
    assert not np.all(np.isfinite(inv))


SINGULAR = [[1.0, 2.0], [2.0, 4.0]]


@pytest.mark.filterwarnings("ignore")
def test_singular_determinant_has_non_finite_adjoints():
    tape = Tape()
    A = tape.vars(SINGULAR)
    d = matrix.determinant(A)
    assert isinstance(d, ADVar)
    assert float(d.val) == pytest.approx(0.0)
    assert not np.all(np.isfinite(grad(d, A)))


@pytest.mark.filterwarnings("ignore")
def test_singular_inverse_stays_on_tape():
    tape = Tape()
    A = tape.vars(SINGULAR)
    inv = matrix.inverse(A)
    assert all(isinstance(e, ADVar) for e in inv.flat)
    y = matrix.sum(inv)
    assert isinstance(y, ADVar)
    assert not np.isfinite(float(y.val))
    assert not np.all(np.isfinite(grad(y, A)))


@pytest.mark.filterwarnings("ignore")
def test_singular_mdivide_left_has_non_finite_adjoints():
    tape = Tape()
    A = tape.vars(SINGULAR)
    b = tape.vars([1.0, 1.0])
    y = matrix.sum(matrix.mdivide_left(A, b))
    assert isinstance(y, ADVar)
    assert not np.isfinite(float(y.val))
    g = grad(y, np.concatenate([A.ravel(), b]))
    assert not np.all(np.isfinite(g[:4]))
    assert not np.all(np.isfinite(g[4:]))


def test_matrix_results_are_handles():
    tape = Tape()
    A = tape.vars([[2.0, 1.0], [1.0, 3.0]])
    B = np.array([[1.0, 0.0], [2.0, -1.0]])
    results = [matrix.inverse(A), matrix.mdivide_left(A, B), matrix.mdivide_right(B, A),
               matrix.mdivide_left_tri(A, B), matrix.mdivide_left_tri(A, B, lower=False)]
    for out in results:
        assert out.shape == (2, 2)
        assert all(isinstance(e, ADVar) for e in out.flat)


def test_inverse_non_square_raises():
    with pytest.raises(DimensionError):
        matrix.inverse(np.ones((2, 3)))


# ----------------------------- products ----------------------------- #
def test_lower_tri_self_transpose_value_and_jacobian():
    tape = Tape()
    x = tape.vars([1.0, 2.0, 3.0])
    L = np.array([[x[0], 0.0], [x[1], x[2]]], dtype=object)
    C = matrix.multiply_lower_tri_self_transpose(L)
    np.testing.assert_allclose(matrix.values(C), [[1.0, 2.0], [2.0, 13.0]])
    J = jacobian([C[0, 0], C[0, 1], C[1, 1]], x)
    np.testing.assert_allclose(J[0], [2.0, 0.0, 0.0])
    np.testing.assert_allclose(J[1], [2.0, 1.0, 0.0])
    np.testing.assert_allclose(J[2], [0.0, 4.0, 6.0])


def test_lower_tri_self_transpose_ignores_upper_triangle():
    tape = Tape()
    L = tape.vars([[1.0, 5.0], [2.0, 3.0]])
    y = matrix.sum(matrix.multiply_lower_tri_self_transpose(L))
    assert grad(y, L)[1] == 0.0


def test_multiply_matrix_matrix_gradients():
    B = np.array([[1.0, 2.0], [-1.0, 0.5], [0.3, 0.7]])
    W = np.array([[1.0, -1.0], [2.0, 0.5]])
    A = np.array([[0.5, 1.5, -2.0], [1.0, 0.2, 0.4]])
    assert_gradient_matches(lambda a: matrix.sum(matrix.elt_multiply(matrix.multiply(a, B), W)), A)
    assert_gradient_matches(lambda b: matrix.sum(matrix.elt_multiply(matrix.multiply(A, b), W)), B)


def test_multiply_vector_shapes():
    tape = Tape()
    A = tape.vars(np.arange(6.0).reshape(2, 3))
    v3 = tape.vars([1.0, 2.0, 3.0])
    v2 = tape.vars([1.0, -1.0])
    assert matrix.multiply(A, v3).shape == (2,)
    assert matrix.multiply(v2, A).shape == (3,)
    d = matrix.multiply(v3, v3)
    assert isinstance(d, ADVar) and float(d.val) == pytest.approx(14.0)
    scaled = matrix.multiply(2.0, A)
    np.testing.assert_allclose(matrix.values(scaled), 2.0 * np.arange(6.0).reshape(2, 3))
    np.testing.assert_allclose(matrix.values(matrix.multiply(A, v3)),
                               np.arange(6.0).reshape(2, 3) @ [1.0, 2.0, 3.0])


def test_multiply_inner_dimension_mismatch():
    with pytest.raises(DimensionError):
        matrix.multiply(np.ones((2, 3)), np.ones((2, 3)))


def test_multiply_two_scalars_returns_handle():
    tape = Tape()
    x, y = tape.var(2.0), tape.var(3.0)
    z = matrix.multiply(x, y)
    assert isinstance(z, ADVar)
    np.testing.assert_allclose(grad(z, [x, y]), [3.0, 2.0])
    assert isinstance(matrix.add(x, 1.0), ADVar)
    assert matrix.multiply(2.0, 3.0) == 6.0


def test_tcrossprod_and_crossprod_gradients():
    M = np.array([[1.0, 2.0, -0.5], [0.3, -1.0, 2.0]])
    W2 = np.array([[1.0, 2.0], [-0.5, 3.0]])
    assert_gradient_matches(lambda m: matrix.sum(matrix.elt_multiply(matrix.tcrossprod(m), W2)), M)
    assert_gradient_matches(lambda m: matrix.sum(matrix.elt_multiply(matrix.crossprod(m), W3)), M)


# ----------------------------- solves ----------------------------- #
def test_mdivide_left_gradients():
    b = np.array([1.0, -2.0, 0.5])
    w = np.array([0.3, 1.0, -2.0])
    assert_gradient_matches(lambda a: matrix.dot_product(matrix.mdivide_left(a, b), w), A0)
    assert_gradient_matches(lambda v: matrix.dot_product(matrix.mdivide_left(A0, v), w), b)
    B = np.array([[1.0, 0.0], [2.0, -1.0], [0.5, 3.0]])
    W = np.array([[1.0, 2.0], [-1.0, 0.5], [0.2, 1.0]])
    assert_gradient_matches(lambda m: matrix.sum(matrix.elt_multiply(matrix.mdivide_left(A0, m), W)), B)


def test_mdivide_left_value():
    b = np.array([1.0, -2.0, 0.5])
    np.testing.assert_allclose(matrix.mdivide_left(A0, b), np.linalg.solve(A0, b))


def test_mdivide_right_gradients():
    B = np.array([[1.0, 0.0, 2.0], [2.0, -1.0, 0.5]])
    W = np.array([[1.0, 2.0, -1.0], [0.5, 0.2, 1.0]])
    np.testing.assert_allclose(matrix.mdivide_right(B, A0), B @ np.linalg.inv(A0))
    assert_gradient_matches(lambda m: matrix.sum(matrix.elt_multiply(matrix.mdivide_right(m, A0), W)), B)
    assert_gradient_matches(lambda a: matrix.sum(matrix.elt_multiply(matrix.mdivide_right(B, a), W)), A0)


def test_mdivide_left_size_mismatch():
    with pytest.raises(DimensionError):
        matrix.mdivide_left(A0, np.ones(2))
    with pytest.raises(DimensionError):
        matrix.mdivide_right(np.ones(2), A0)


def test_mdivide_left_tri_lower():
    A = np.array([[2.0, 5.0], [1.0, 3.0]])
    b = np.array([1.0, 2.0])
    np.testing.assert_allclose(matrix.mdivide_left_tri(A, b), np.linalg.solve(np.tril(A), b))

    tape = Tape()
    Av = tape.vars(A)
    y = matrix.sum(matrix.mdivide_left_tri(Av, b))
    g = grad(y, Av)
    assert g[1] == 0.0
    assert_gradient_matches(lambda a: matrix.sum(matrix.mdivide_left_tri(a, b)), A)
    assert_gradient_matches(lambda v: matrix.sum(matrix.mdivide_left_tri(A, v)), b)


def test_mdivide_left_tri_upper():
    A = np.array([[2.0, 5.0], [7.0, 3.0]])
    b = np.array([1.0, 2.0])
    np.testing.assert_allclose(matrix.mdivide_left_tri(A, b, lower=False),
                               np.linalg.solve(np.triu(A), b))
    assert_gradient_matches(lambda a: matrix.sum(matrix.mdivide_left_tri(a, b, lower=False)), A)


@pytest.mark.filterwarnings("ignore")
def test_mdivide_left_tri_zero_diagonal_gives_non_finite_values():
    A = np.array([[0.0, 0.0], [1.0, 1.0]])
    assert not np.all(np.isfinite(matrix.mdivide_left_tri(A, np.ones(2))))
    assert not np.all(np.isfinite(matrix.mdivide_left_tri(A.T, np.ones(2), lower=False)))

    tape = Tape()
    Av = tape.vars(A)
    b = tape.vars([1.0, 1.0])
    y = matrix.sum(matrix.mdivide_left_tri(Av, b))
    assert not np.isfinite(float(y.val))
    g = grad(y, np.concatenate([Av.ravel(), b]))
    assert not np.all(np.isfinite(g))


# ----------------------------- reductions ----------------------------- #
def test_dot_self_known_gradient():
    tape = Tape()
    v = tape.vars([-1.0, 0.0, 3.0])
    y = matrix.dot_self(v)
    assert float(y.val) == pytest.approx(10.0)
    np.testing.assert_allclose(grad(y, v), [-2.0, 0.0, 6.0])


def test_dot_product_gradients_and_mismatch():
    tape = Tape()
    a = tape.vars([1.0, 2.0, 3.0])
    b = tape.vars([4.0, 5.0, 6.0])
    y = matrix.dot_product(a, b)
    assert float(y.val) == pytest.approx(32.0)
    np.testing.assert_allclose(grad(y, np.concatenate([a, b])), [4.0, 5.0, 6.0, 1.0, 2.0, 3.0])
    y2 = matrix.dot_product(a, a)
    np.testing.assert_allclose(grad(y2, a), [2.0, 4.0, 6.0])
    with pytest.raises(DimensionError):
        matrix.dot_product(a, [1.0, 2.0])


def test_reductions_are_single_nodes():
    tape = Tape()
    v = tape.vars(np.arange(1.0, 7.0))
    n = len(tape)
    for f in (matrix.sum, matrix.prod, matrix.mean, matrix.variance, matrix.sd,
              matrix.log_sum_exp, matrix.squared_norm, matrix.norm, matrix.norm1, matrix.norm_inf):
        f(v)
    assert len(tape) == n + 10


@pytest.mark.parametrize("f", [
    matrix.sum, matrix.prod, matrix.mean, matrix.variance, matrix.sd,
    matrix.log_sum_exp, matrix.squared_norm, matrix.norm,
], ids=lambda f: f.__name__)
def test_reduction_gradients_match_finite_differences(f):
    x0 = np.array([[0.5, -1.2, 2.0], [1.1, 0.3, -0.7]])
    assert_gradient_matches(f, x0)


def test_prod_with_zero_element():
    tape = Tape()
    v = tape.vars([2.0, 0.0, 3.0])
    y = matrix.prod(v)
    assert float(y.val) == 0.0
    np.testing.assert_allclose(grad(y, v), [0.0, 6.0, 0.0])


def test_zero_size_conventions():
    empty = np.array([])
    assert matrix.sum(empty) == 0.0
    assert matrix.prod(empty) == 1.0
    assert matrix.max(empty) == -np.inf
    assert matrix.min(empty) == np.inf
    assert matrix.log_sum_exp(empty) == -np.inf
    for f in (matrix.mean, matrix.variance, matrix.sd, matrix.softmax):
        with pytest.raises(DimensionError):
            f(empty)


def test_log_sum_exp_with_infinite_element():
    tape = Tape()
    v = tape.vars([np.inf, 1.0, np.inf])
    y = matrix.log_sum_exp(v)
    assert float(y.val) == np.inf
    np.testing.assert_allclose(grad(y, v), [0.5, 0.0, 0.5])


def test_single_element_variance_and_sd():
    tape = Tape()
    v = tape.vars([4.0])
    for f in (matrix.variance, matrix.sd):
        y = f(v)
        assert float(y.val) == 0.0
        assert grad(y, v)[0] == 0.0
    assert matrix.mean(v).val == 4.0


def test_min_max_return_the_selected_element():
    tape = Tape()
    v = tape.vars([3.0, 1.0, 3.0, 1.0])
    n = len(tape)
    assert matrix.max(v) is v[0]
    assert matrix.min(v) is v[1]
    assert len(tape) == n
    assert matrix.max([1.0, 5.0, 2.0]) == 5.0


def test_norms_subgradients():
    tape = Tape()
    v = tape.vars([2.0, 0.0, -3.0])
    np.testing.assert_allclose(grad(matrix.norm1(v), v), [1.0, 0.0, -1.0])
    w = tape.vars([-4.0, 1.0, 4.0])
    y = matrix.norm_inf(w)
    assert float(y.val) == 4.0
    np.testing.assert_allclose(grad(y, w), [-1.0, 0.0, 0.0])
    z = tape.vars([0.0, 0.0])
    np.testing.assert_allclose(grad(matrix.norm(z), z), [0.0, 0.0])


def test_trace_of_rectangular_matrix():
    tape = Tape()
    M = tape.vars(np.arange(6.0).reshape(2, 3))
    y = matrix.trace(M)
    assert float(y.val) == 4.0
    np.testing.assert_allclose(grad(y, M), [1.0, 0.0, 0.0, 0.0, 1.0, 0.0])


def test_columns_dot_self_and_product():
    tape = Tape()
    M = tape.vars([[1.0, 2.0], [3.0, 4.0]])
    c = matrix.columns_dot_self(M)
    assert c.shape == (1, 2)
    np.testing.assert_allclose(matrix.values(c), [[10.0, 20.0]])
    np.testing.assert_allclose(grad(c[0, 1], M), [0.0, 4.0, 0.0, 8.0])
    p = matrix.columns_dot_product(M, np.ones((2, 2)))
    np.testing.assert_allclose(matrix.values(p), [[4.0, 6.0]])


# ----------------------------- elementwise ----------------------------- #
def test_softmax():
    v0 = np.array([0.5, -1.0, 2.0, 0.1])
    w = np.array([1.0, -2.0, 0.5, 3.0])
    theta = matrix.softmax(v0)
    assert theta.sum() == pytest.approx(1.0)
    assert_gradient_matches(lambda v: matrix.dot_product(matrix.softmax(v), w), v0)


def test_elementwise_gradients():
    A = np.array([[0.5, 1.5], [2.0, 0.8]])
    B = np.array([[1.0, -0.5], [0.3, 2.0]])
    assert_gradient_matches(
        lambda a: matrix.sum(matrix.elt_divide(matrix.exp(a), matrix.add(a, B))), A)
    assert_gradient_matches(
        lambda a: matrix.sum(matrix.subtract(matrix.log(a), matrix.divide(matrix.minus(a), 3.0))), A)


def test_elementwise_scalar_broadcast():
    tape = Tape()
    x = tape.var(2.0)
    A = np.ones((2, 2))
    y = matrix.sum(matrix.add(A, x))
    assert float(y.val) == 12.0
    assert grad(y, [x])[0] == pytest.approx(4.0)


def test_elementwise_shape_errors():
    with pytest.raises(DimensionError):
        matrix.add(np.ones((2, 2)), np.ones((2, 3)))
    with pytest.raises(DimensionError):
        matrix.elt_multiply(np.ones(3), np.ones(2))
    with pytest.raises(DimensionError):
        matrix.divide(np.ones(3), np.ones(3))


# ----------------------------- structure ----------------------------- #
def test_col_and_row_are_one_based():
    tape = Tape()
    M = tape.vars(np.arange(6.0).reshape(2, 3))
    assert matrix.col(M, 1)[1] is M[1, 0]
    assert matrix.row(M, 2)[2] is M[1, 2]
    for bad in (0, 4):
        with pytest.raises(DimensionError):
            matrix.col(M, bad)
    for bad in (0, 3):
        with pytest.raises(DimensionError):
            matrix.row(M, bad)
    assert matrix.rows(M) == 2 and matrix.cols(M) == 3
    assert matrix.rows(np.ones(4)) == 4 and matrix.cols(np.ones(4)) == 1


def test_transpose_and_diag_matrix_share_handles():
    tape = Tape()
    M = tape.vars([[1.0, 2.0], [3.0, 4.0]])
    n = len(tape)
    T = matrix.transpose(M)
    assert T[0, 1] is M[1, 0]
    v = tape.vars([1.0, 2.0])
    D = matrix.diag_matrix(v)
    assert D[1, 1] is v[1]
    assert D[0, 1] == 0.0 and not isinstance(D[0, 1], ADVar)
    assert len(tape) == n + 2


def test_to_var_promotes_constants_only():
    tape = Tape()
    x = tape.var(1.0)
    out = matrix.to_var(np.array([x, 2.0], dtype=object), tape)
    assert out[0] is x
    assert isinstance(out[1], ADVar) and float(out[1].val) == 2.0
    assert isinstance(matrix.to_var(3.0, tape), ADVar)
