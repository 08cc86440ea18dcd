import numpy as np
import pytest

from trajopt.collocation import chebyshev, time_maps

from tests._utilities import random_polynomials, evaluate_polynomials


rng = np.random.default_rng(123)


@pytest.mark.parametrize('n', [0, 1, 2])
def test_small_n_raises(n):
    for fun in (chebyshev.make_cgl, chebyshev.make_cgl_nodes):
        with pytest.raises(ValueError, match="n_nodes >= 3"):
            fun(n)


@pytest.mark.parametrize('n', [3, 4, 9, 10, 25])
def test_cgl_nodes(n):
    tau = chebyshev.make_cgl_nodes(n)

    assert tau.shape == (n,)
    assert tau[0] == -1.
    assert tau[-1] == 1.
    assert np.all(np.diff(tau) > 0.)
    np.testing.assert_allclose(tau, -tau[::-1], atol=1e-15)
    if n % 2:
        assert tau[n // 2] == 0.


def test_diff_matrix_known_values():
    """Compare the differentiation matrix to hand-computed values for small
    numbers of nodes."""
    D3 = chebyshev.make_cgl_diff_matrix(chebyshev.make_cgl_nodes(3))
    D3_expected = [[-1.5, 2., -0.5],
                   [-0.5, 0., 0.5],
                   [0.5, -2., 1.5]]
    np.testing.assert_allclose(D3, D3_expected, atol=1e-14)

    D4 = chebyshev.make_cgl_diff_matrix(chebyshev.make_cgl_nodes(4))
    D4_expected = [[-19. / 6., 4., -4. / 3., 1. / 2.],
                   [-1., 1. / 3., 1., -1. / 3.],
                   [1. / 3., -1., -1. / 3., 1.],
                   [-1. / 2., 4. / 3., -4., 19. / 6.]]
    np.testing.assert_allclose(D4, D4_expected, atol=1e-13)


@pytest.mark.parametrize('n', [3, 4, 9, 12, 20])
def test_diff_matrix_polynomial(n):
    """The differentiation matrix should be exact for all polynomials of degree
    less than the number of nodes."""
    tau, w, D = chebyshev.make_cgl(n)

    # Differentiating constants gives exactly zero
    np.testing.assert_allclose(D @ np.ones(n), 0., atol=1e-12)

    for degree in range(n):
        polys = random_polynomials(2, degree, seed=degree)
        p = evaluate_polynomials(polys, tau)
        dpdt = evaluate_polynomials([poly.deriv() for poly in polys], tau)
        np.testing.assert_allclose(p @ D.T, dpdt, atol=1e-09 * n ** 2,
                                   rtol=1e-09)


def test_barycentric_weights():
    tau = chebyshev.make_cgl_nodes(7)
    v = chebyshev.make_barycentric_weights(tau)

    assert np.max(np.abs(v)) == 1.

    # CGL weights alternate in sign, with halved weights at the endpoints
    expected = (-1.) ** np.arange(7)
    expected[[0, -1]] /= 2.
    expected /= np.max(np.abs(expected))
    np.testing.assert_allclose(v * np.sign(v[0]), expected * np.sign(
        expected[0]), atol=1e-14)


def test_cgl_weights_known_values():
    tau = chebyshev.make_cgl_nodes(3)
    w = chebyshev.make_cgl_weights(tau)
    np.testing.assert_allclose(w, [1. / 3., 4. / 3., 1. / 3.], atol=1e-15)


@pytest.mark.parametrize('n', [3, 4, 9, 10, 15])
def test_cgl_weights_integrate_polynomials(n):
    """Clenshaw-Curtis quadrature should integrate polynomials of degree up to
    `n - 1` exactly."""
    tau, w, _ = chebyshev.make_cgl(n)

    assert np.all(w > 0.)
    np.testing.assert_allclose(np.sum(w), 2., atol=1e-14)

    for degree in range(n):
        poly = random_polynomials(1, degree, seed=degree)[0]
        P = poly.integ()
        np.testing.assert_allclose(np.dot(w, poly(tau)), P(1.) - P(-1.),
                                   atol=1e-12, rtol=1e-12)


@pytest.mark.parametrize('domain', [(-1., 1.), (0., 3.), (-2.5, 7.)])
def test_chebyshev_points(domain):
    t = chebyshev.chebyshev_points(11, domain)
    np.testing.assert_allclose(t[[0, -1]], domain, atol=1e-14)
    t_map = time_maps.AffineTimeMap(*domain)
    np.testing.assert_allclose(t_map.physical_to_reference(t),
                               chebyshev.make_cgl_nodes(11), atol=1e-14)


@pytest.mark.parametrize('n', [5, 12])
@pytest.mark.parametrize('domain', [(-1., 1.), (2., 5.)])
def test_chebyshev_interpolate(n, domain):
    """Interpolating samples of a polynomial of degree less than `n` should
    reproduce the polynomial anywhere, including outside the domain."""
    polys = random_polynomials(3, n - 1, seed=n)
    t_nodes = chebyshev.chebyshev_points(n, domain)
    values = evaluate_polynomials(polys, t_nodes)

    t = rng.uniform(domain[0] - 0.1, domain[1] + 0.1, size=50)
    values_interp = chebyshev.chebyshev_interpolate(values, t, domain)

    np.testing.assert_allclose(values_interp, evaluate_polynomials(polys, t),
                               atol=1e-08, rtol=1e-06)


@pytest.mark.parametrize('t0', [0., -3.])
@pytest.mark.parametrize('tf', [1., 10.])
def test_affine_time_map(t0, tf):
    t_map = time_maps.AffineTimeMap(t0, tf)
    t = rng.uniform(t0, tf, size=20)

    tau = t_map.physical_to_reference(t)
    assert np.all(np.abs(tau) <= 1.)
    np.testing.assert_allclose(t_map.reference_to_physical(tau), t)
    np.testing.assert_allclose(t_map.reference_to_physical([-1., 1.]),
                               [t0, tf])


@pytest.mark.parametrize('domain', [(1., 1.), (2., 1.), (0., np.inf),
                                    (np.nan, 1.)])
def test_bad_time_domain(domain):
    with pytest.raises(ValueError):
        time_maps.AffineTimeMap(*domain)
    with pytest.raises(ValueError):
        chebyshev.chebyshev_points(5, domain)
