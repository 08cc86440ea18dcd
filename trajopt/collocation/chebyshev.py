import numpy as np
from scipy.interpolate import BarycentricInterpolator

from .time_maps import AffineTimeMap


def make_cgl(n_nodes):
    """
    Constructs Chebyshev-Gauss-Lobatto (CGL) collocation points, quadrature
    weights, and differentiation matrix. See `make_cgl_nodes`,
    `make_cgl_weights`, and `make_cgl_diff_matrix` for details.

    Parameters
    ----------
    n_nodes : int
        Number of collocation nodes. Must be `n_nodes >= 3`.

    Returns
    -------
    tau : (n_nodes,) array
        CGL collocation nodes on [-1, 1].
    w : (n_nodes,) array
        Clenshaw-Curtis quadrature weights corresponding to the collocation
        points `tau`.
    D : (n_nodes, n_nodes) array
        Differentiation matrix corresponding to the collocation points `tau`.
    """
    n_nodes = _check_size_n(n_nodes)

    tau = make_cgl_nodes(n_nodes)
    w = make_cgl_weights(tau)
    D = make_cgl_diff_matrix(tau)

    return tau, w, D


def make_cgl_nodes(n):
    r"""
    Constructs the CGL points, `tau[k] = - cos(pi * k / (n - 1))` for
    `k = 0, ..., n - 1`. These are the extrema of the Chebyshev polynomial
    $T_{n-1}$ together with the endpoints, sorted in ascending order. They
    cluster at the ends of the interval, which keeps polynomial interpolation
    well-conditioned.

    Parameters
    ----------
    n : int
        Number of collocation nodes. Must be `n >= 3`.

    Returns
    -------
    tau : (n,) array
        CGL collocation nodes on [-1, 1].
    """
    n = _check_size_n(n)
    tau = - np.cos(np.pi * np.arange(n) / (n - 1))
    # Exact zero at the midpoint and exact endpoints
    tau[[0, -1]] = -1., 1.
    if n % 2:
        tau[n // 2] = 0.
    return tau


def make_barycentric_weights(tau):
    """
    Constructs the barycentric interpolation weights
    ```
    v[j] = 1 / prod(tau[j] - tau[k] for k != j),
    ```
    normalized so that `max(abs(v)) == 1`.

    Parameters
    ----------
    tau : (n_nodes,) array
        Distinct interpolation nodes.

    Returns
    -------
    v : (n_nodes,) array
        Barycentric weights.
    """
    tau = np.reshape(tau, (-1,))
    diff = tau[:, None] - tau[None, :]
    np.fill_diagonal(diff, 1.)
    v = 1. / np.prod(diff, axis=1)
    return v / np.max(np.abs(v))


def make_cgl_weights(tau):
    """
    Constructs Clenshaw-Curtis quadrature weights for the CGL nodes `tau`. These
    integrate polynomials of degree up to `n_nodes - 1` exactly on [-1, 1] and
    sum to 2. The construction follows L. N. Trefethen, *Spectral Methods in
    MATLAB*, SIAM, 2000, program `clencurt`.

    Parameters
    ----------
    tau : (n_nodes,) array
        CGL collocation nodes on [-1, 1].

    Returns
    -------
    w : (n_nodes,) array
        Quadrature weights corresponding to the collocation points `tau`.
    """
    n = _check_size_n(np.size(tau)) - 1

    theta = np.pi * np.arange(n + 1) / n
    inner = theta[1:-1]

    w = np.empty(n + 1)
    v = np.ones(n - 1)
    if n % 2 == 0:
        w[0] = w[-1] = 1. / (n ** 2 - 1)
        for k in range(1, n // 2):
            v -= 2. * np.cos(2 * k * inner) / (4 * k ** 2 - 1)
        v -= np.cos(n * inner) / (n ** 2 - 1)
    else:
        w[0] = w[-1] = 1. / n ** 2
        for k in range(1, (n - 1) // 2 + 1):
            v -= 2. * np.cos(2 * k * inner) / (4 * k ** 2 - 1)
    w[1:-1] = 2. * v / n

    return w


def make_cgl_diff_matrix(tau):
    """
    Constructs the differentiation matrix, `D`, for polynomial interpolants on
    the nodes `tau`. The off-diagonal entries are given by
    ```
    D[i, j] = (v[j] / v[i]) / (tau[i] - tau[j]),
    ```
    where `v` are the barycentric weights, and the diagonal entries are the
    negative row sums of the off-diagonal entries, so that `D` annihilates
    constants exactly. `D @ p(tau)` is the derivative of `p` at `tau` for any
    polynomial `p` of degree less than `n_nodes`.

    Parameters
    ----------
    tau : (n_nodes,) array
        CGL collocation nodes on [-1, 1].

    Returns
    -------
    D : (n_nodes, n_nodes) array
        Differentiation matrix corresponding to the collocation points `tau`.
    """
    tau = np.reshape(tau, (-1,))
    n = _check_size_n(tau.shape[0])

    v = make_barycentric_weights(tau)

    D = np.zeros((n, n))
    for i in range(n):
        for j in range(n):
            if i != j:
                D[i, j] = (v[j] / v[i]) / (tau[i] - tau[j])
        D[i, i] = - np.sum(D[i])

    return D


def chebyshev_points(n_nodes, domain=(-1., 1.)):
    """
    CGL points mapped affinely onto a time domain.

    Parameters
    ----------
    n_nodes : int
        Number of points. Must be `n_nodes >= 3`.
    domain : (2,) array_like, default=(-1, 1)
        Interval `[t0, tf]` with `t0 < tf`.

    Returns
    -------
    t : (n_nodes,) array
        CGL points on `domain`, in ascending order.
    """
    t_map = AffineTimeMap(*domain)
    return t_map.reference_to_physical(make_cgl_nodes(n_nodes))


def chebyshev_interpolate(values, t, domain=(-1., 1.)):
    """
    Evaluate the polynomial interpolant of samples taken at the CGL points of
    `domain` (see `chebyshev_points`).

    Parameters
    ----------
    values : (..., n_nodes) array
        Samples at the CGL points, arranged by (dimension, time).
    t : array_like
        Times at which to evaluate the interpolant. Points outside `domain`
        are extrapolated.
    domain : (2,) array_like, default=(-1, 1)
        Interval `[t0, tf]` on which the samples were taken.

    Returns
    -------
    values_interp : (..., n_points) array
        The interpolant evaluated at `t`.
    """
    values = np.asarray(values, dtype=float)
    tau = AffineTimeMap(*domain).physical_to_reference(np.reshape(t, (-1,)))
    interp = BarycentricInterpolator(make_cgl_nodes(values.shape[-1]), values,
                                     axis=-1)
    return interp(tau)


def _check_size_n(n_nodes):
    """
    Chebyshev collocation is only defined here for `n_nodes >= 3`. This utility
    function checks to make sure `n_nodes` is the right size.

    Parameters
    ----------
    n_nodes : int
        Number of collocation nodes.

    Returns
    -------
    n_nodes : int
        Number of collocation nodes, only returned if `n_nodes >= 3`.

    Raises
    ------
    ValueError
        If `n_nodes < 3`.
    """
    n_nodes = int(n_nodes)
    if n_nodes < 3:
        raise ValueError("Number of nodes must be at least n_nodes >= 3.")
    return n_nodes
