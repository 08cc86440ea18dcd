import numpy as np
from scipy.optimize._numdiff import approx_derivative


def compare_finite_difference(x, jac, fun, method='3-point',
                              rtol=1e-06, atol=1e-12):
    expected_jac = approx_derivative(fun, x, method=method)
    np.testing.assert_allclose(jac, expected_jac, rtol=rtol, atol=atol)


def random_polynomials(n_rows, degree, seed=None):
    """Generate `n_rows` random polynomials of specified degree, as a list of
    `numpy.polynomial.Polynomial` instances."""
    rng = np.random.default_rng(seed)
    coef = rng.normal(size=(n_rows, degree + 1))
    return [np.polynomial.Polynomial(c) for c in coef]


def evaluate_polynomials(polys, t):
    """Evaluate a list of polynomials at times `t`, stacked by row."""
    return np.stack([p(t) for p in polys], axis=0)
