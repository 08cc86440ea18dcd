import numpy as np

from trajopt.utilities import check_int_input

from .chebyshev import make_cgl, _check_size_n
from .time_maps import AffineTimeMap


class Grid:
    """
    Base class for transcription grids. A grid is a set of `n_nodes` points
    `tau` on the reference interval [-1, 1] together with quadrature weights
    `w`, which integrate functions sampled at `tau` over [-1, 1]. Grids do not
    depend on the time domain: node times are obtained by mapping `tau` with
    `node_times`.
    """
    kind = None

    def __init__(self, tau, w):
        self.tau = np.asarray(tau, dtype=float)
        self.w = np.asarray(w, dtype=float)
        self.tau.setflags(write=False)
        self.w.setflags(write=False)

    @property
    def n_nodes(self):
        return self.tau.shape[0]

    def node_times(self, t0, tf):
        """
        Map the grid nodes to physical time.

        Parameters
        ----------
        t0 : float
            Initial time.
        tf : float
            Final time, `tf > t0`.

        Returns
        -------
        t : (n_nodes,) array
            Node times in ascending order, with `t[0] == t0` and `t[-1] == tf`.

        Raises
        ------
        ValueError
            If `t0 >= tf`.
        """
        t_map = AffineTimeMap(t0, tf)
        t = t_map.reference_to_physical(self.tau)
        t[[0, -1]] = t_map.t0, t_map.tf
        return t

    def same_nodes(self, other):
        """Check if `other` is a grid of the same kind with the same nodes."""
        return (isinstance(other, Grid) and other.kind == self.kind
                and other.n_nodes == self.n_nodes)

    def __repr__(self):
        return f"{type(self).__name__}(n_nodes={self.n_nodes})"


class ChebyshevGrid(Grid):
    """
    Pseudospectral grid of Chebyshev-Gauss-Lobatto points with Clenshaw-Curtis
    quadrature weights and the polynomial differentiation matrix `D`.
    """
    kind = 'chebyshev'

    def __init__(self, n_nodes):
        tau, w, D = make_cgl(n_nodes)
        super().__init__(tau, w)
        self.D = D
        self.D.setflags(write=False)


class ShootingGrid(Grid):
    """
    Multiple shooting grid of uniformly spaced segment boundaries. The state is
    propagated across each of the `n_nodes - 1` segments with `n_substeps`
    fixed RK4 steps. Quadrature uses the trapezoid rule. There is no
    differentiation matrix.
    """
    kind = 'shooting'
    D = None

    def __init__(self, n_nodes, n_substeps=4):
        n_nodes = _check_size_n(n_nodes)
        self.n_substeps = check_int_input(n_substeps, 'n_substeps', low=1)

        tau = np.linspace(-1., 1., n_nodes)
        h = 2. / (n_nodes - 1)
        w = np.full(n_nodes, h)
        w[[0, -1]] = h / 2.

        super().__init__(tau, w)

    def same_nodes(self, other):
        return (super().same_nodes(other)
                and other.n_substeps == self.n_substeps)

    def __repr__(self):
        return (f"{type(self).__name__}(n_nodes={self.n_nodes}, "
                f"n_substeps={self.n_substeps})")


def make_grid(n_nodes, method='chebyshev', n_substeps=4):
    """
    Construct a transcription grid.

    Parameters
    ----------
    n_nodes : int
        Number of nodes. Must be `n_nodes >= 3`.
    method : {'chebyshev', 'shooting'}, default='chebyshev'
        Pseudospectral collocation on Chebyshev points, or multiple shooting on
        uniform segments.
    n_substeps : int, default=4
        Number of RK4 steps per segment, used if `method == 'shooting'`.

    Returns
    -------
    grid : `ChebyshevGrid` or `ShootingGrid`

    Raises
    ------
    ValueError
        If `n_nodes < 3` or `method` is not recognized.
    """
    if method == 'chebyshev':
        return ChebyshevGrid(n_nodes)
    elif method == 'shooting':
        return ShootingGrid(n_nodes, n_substeps=n_substeps)
    raise ValueError("method must be one of 'chebyshev' or 'shooting'")
