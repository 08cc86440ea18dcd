import numpy as np
from scipy.interpolate import make_interp_spline

from trajopt.utilities import saturate, unpack_dataframe

from .chebyshev import chebyshev_interpolate
from .packing import Trajectory
from .solutions import TrajectorySolution


def fresh_guess(problem, n_nodes):
    """
    Build a first guess without any prior solution. States are interpolated
    linearly, in node index, between the start and finish states given by
    `problem.guess_boundaries`, with the boundary columns set exactly. Controls
    are zero (clipped to the control bounds) and the duration is the midpoint
    of the duration bounds.

    Parameters
    ----------
    problem : `TrajectoryProblem`
        The problem to build a guess for.
    n_nodes : int
        Number of grid nodes.

    Returns
    -------
    guess : `Trajectory`
    """
    x0, x1 = problem.guess_boundaries()
    x0 = np.reshape(x0, (-1, 1))
    x1 = np.reshape(x1, (-1, 1))

    s = np.linspace(0., 1., n_nodes).reshape(1, -1)
    x = x0 + (x1 - x0) * s
    x[:, 0], x[:, -1] = x0[:, 0], x1[:, 0]

    u = np.zeros((problem.n_controls, n_nodes))
    u = saturate(u, problem.control_lb, problem.control_ub)

    duration = np.mean(problem.duration_bounds)

    return Trajectory(duration, x, u)


def interp_guess(t, x, u, t_nodes):
    """
    Linearly interpolate initial guesses for the state and control in physical
    time to node times. Nodes outside `[t[0], t[-1]]` simply use the first or
    last values of `x` and `u`.

    Parameters
    ----------
    t : (n_points,) array
        Time points for initial guess, sorted in increasing order.
    x : (n_states, n_points) array
        Initial guess for the state values x(t).
    u : (n_controls, n_points) array
        Initial guess for the control values u(t).
    t_nodes : (n_nodes,) array
        Node times, e.g. from `Grid.node_times`.

    Returns
    -------
    x_interp : (n_states, n_nodes) array
        Interpolated states, `x(t_nodes)`.
    u_interp : (n_controls, n_nodes) array
        Interpolated controls, `u(t_nodes)`.
    """
    t = np.reshape(t, (-1,))
    t_nodes = np.reshape(t_nodes, (-1,))
    x = np.atleast_2d(x)
    u = np.reshape(u, (-1, t.shape[0]))

    def interp(y):
        if y.shape[0] == 0:
            return np.empty((0, t_nodes.shape[0]))
        if t.shape[0] == 1:
            return np.tile(y, (1, t_nodes.shape[0]))
        y_interp = make_interp_spline(t, y, k=1, axis=-1)(t_nodes)
        y_interp[:, t_nodes < t[0]] = y[:, :1]
        y_interp[:, t_nodes > t[-1]] = y[:, -1:]
        return y_interp

    return interp(x), interp(u)


def resample(previous, grid):
    """
    Transfer a previous solution onto a new grid, for warm starts and mesh
    refinement. If the previous solution lives on a grid with the same nodes,
    it is copied unchanged. Otherwise its continuous-time interpolant is
    evaluated at the new node times, separately for states and controls. For a
    bare `Trajectory`, the values are taken to be samples at Chebyshev points.

    Resampling a Chebyshev solution is exact when its states and controls are
    polynomials of degree less than the number of previous nodes.

    Parameters
    ----------
    previous : `TrajectorySolution` or `Trajectory`
        Previous solution.
    grid : `Grid`
        The new grid.

    Returns
    -------
    guess : `Trajectory`
        States and controls at the nodes of `grid`.
    """
    if isinstance(previous, TrajectorySolution):
        if grid.same_nodes(previous.grid):
            return previous.trajectory
        t0 = previous.t[0]
        t_nodes = grid.node_times(t0, t0 + previous.duration)
        x, u = previous(t_nodes)
        return Trajectory(previous.duration, x, u)

    if not isinstance(previous, Trajectory):
        raise TypeError("previous must be a TrajectorySolution or Trajectory")

    if previous.n_nodes == grid.n_nodes:
        return previous.copy()

    x = chebyshev_interpolate(previous.x, grid.tau)
    if previous.u.shape[0]:
        u = chebyshev_interpolate(previous.u, grid.tau)
    else:
        u = np.empty((0, grid.n_nodes))

    return Trajectory(previous.duration, x, u)


def initial_guess(problem, grid, previous=None, guess=None):
    """
    Build the starting trajectory for a solve on `grid`: resample `previous` if
    given, else interpolate a user supplied `guess`, else use `fresh_guess`.

    Parameters
    ----------
    problem : `TrajectoryProblem`
        The problem to build a guess for.
    grid : `Grid`
        The grid on which the problem is to be solved.
    previous : `TrajectorySolution` or `Trajectory`, optional
        Previous solution, see `resample`.
    guess : dict, DataFrame, or tuple, optional
        Guess in physical time, either as a tuple `(t, x, u)` or in a format
        accepted by `trajopt.utilities.unpack_dataframe`. The guessed duration
        `t[-1] - t[0]` is clipped to the duration bounds.

    Returns
    -------
    guess : `Trajectory`
    """
    if previous is not None:
        return resample(previous, grid)

    if guess is None:
        return fresh_guess(problem, grid.n_nodes)

    if isinstance(guess, (Trajectory, TrajectorySolution)):
        return resample(guess, grid)

    if isinstance(guess, tuple):
        t, x, u = guess
    else:
        t, x, u = unpack_dataframe(guess)
    t = np.reshape(t, (-1,))

    duration = np.clip(t[-1] - t[0], *problem.duration_bounds)
    t_nodes = grid.node_times(t[0], t[0] + duration)
    x, u = interp_guess(t, x, u, t_nodes)

    return Trajectory(duration, x, u)
