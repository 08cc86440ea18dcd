import numpy as np
from scipy.optimize import Bounds

from trajopt.utilities import check_int_input, resize_vector


_order_err_msg = ("order must be one of 'C' (C, row-major) or 'F' "
                  "(Fortran, column-major)")


class Trajectory:
    """
    A discrete trajectory: duration, and states and controls at the nodes of a
    grid.

    Parameters
    ----------
    duration : float
        Length of the time domain.
    x : (n_states, n_nodes) array
        States arranged by (dimension, time).
    u : (n_controls, n_nodes) array
        Controls arranged by (dimension, time). May have zero rows. A 1d
        array is accepted for a single control with `n_nodes` entries, or
        for no controls if it is empty.

    Raises
    ------
    ValueError
        If `u` cannot be read as (n_controls, n_nodes) without reordering.
    """
    def __init__(self, duration, x, u):
        self.duration = float(duration)
        self.x = np.atleast_2d(np.asarray(x, dtype=float))

        u = np.asarray(u, dtype=float)
        n_nodes = self.x.shape[1]
        if u.ndim == 1 and u.shape[0] in (0, n_nodes):
            u = u.reshape(-1, n_nodes)
        if u.ndim != 2 or u.shape[1] != n_nodes:
            raise ValueError(f"u has shape {u.shape} but should have shape "
                             f"(n_controls, {n_nodes:d})")
        self.u = u

    @property
    def n_nodes(self):
        return self.x.shape[1]

    def copy(self):
        return Trajectory(self.duration, np.copy(self.x), np.copy(self.u))

    def __repr__(self):
        return (f"Trajectory(duration={self.duration}, "
                f"x.shape={self.x.shape}, u.shape={self.u.shape})")


class VariablePacker:
    """
    Bidirectional map between `Trajectory` instances and flat decision vectors.
    The decision vector is laid out as
    ```
    z = [duration (if free), x[:, free_columns].flatten(order),
         u.flatten(order)].
    ```
    Columns of `x` hard-fixed by `x_start` or `x_finish` are left out of `z` and
    re-attached by `unpack`, as is a fixed `duration`. The same packer must be
    used to build the initial guess and to evaluate constraints, so the layout
    is fixed for the lifetime of the instance.
    """
    def __init__(self, n_states, n_controls, n_nodes, duration=None,
                 x_start=None, x_finish=None, order='F'):
        """
        Parameters
        ----------
        n_states : int
            Number of states.
        n_controls : int
            Number of controls. May be 0.
        n_nodes : int
            Number of grid nodes.
        duration : float, optional
            Fixed duration. If None, the duration is the first decision
            variable.
        x_start : (n_states,) array, optional
            Fixed initial state. If None, the first column of `x` is free.
        x_finish : (n_states,) array, optional
            Fixed final state. If None, the last column of `x` is free.
        order : {'C', 'F'}, default='F'
            Use C (row-major, dimension by dimension) or Fortran (column-major,
            node by node) ordering.
        """
        self.n_states = check_int_input(n_states, 'n_states', low=1)
        self.n_controls = check_int_input(n_controls, 'n_controls', low=0)
        self.n_nodes = check_int_input(n_nodes, 'n_nodes', low=2)

        if order not in ('C', 'F'):
            raise ValueError(_order_err_msg)
        self.order = order

        self.duration = None if duration is None else float(duration)

        if x_start is not None:
            x_start = resize_vector(x_start, self.n_states).flatten()
        if x_finish is not None:
            x_finish = resize_vector(x_finish, self.n_states).flatten()
        self.x_start, self.x_finish = x_start, x_finish

        free = np.ones(self.n_nodes, dtype=bool)
        free[0] = x_start is None
        free[-1] = x_finish is None
        self.free_columns = np.flatnonzero(free)

    @property
    def free_duration(self):
        """bool. True if the duration is a decision variable."""
        return self.duration is None

    @property
    def n_free_states(self):
        return self.n_states * self.free_columns.shape[0]

    @property
    def n_vars(self):
        """int. Length of the decision vector."""
        return (int(self.free_duration) + self.n_free_states
                + self.n_controls * self.n_nodes)

    def pack(self, trajectory):
        """
        Flatten a trajectory into a decision vector.

        Parameters
        ----------
        trajectory : `Trajectory`
            Trajectory with `n_nodes` nodes. Fixed boundary columns and a fixed
            duration are ignored.

        Returns
        -------
        z : (n_vars,) array
            Decision vector.

        Raises
        ------
        ValueError
            If the dimensions of `trajectory` do not match the packer.
        """
        x, u = np.asarray(trajectory.x), np.asarray(trajectory.u)
        if x.shape != (self.n_states, self.n_nodes):
            raise ValueError(f"trajectory.x has shape {x.shape} but should "
                             f"have shape {(self.n_states, self.n_nodes)}")
        if u.shape != (self.n_controls, self.n_nodes):
            raise ValueError(f"trajectory.u has shape {u.shape} but should "
                             f"have shape {(self.n_controls, self.n_nodes)}")

        z = collect_vars(x[:, self.free_columns], u, order=self.order)
        if self.free_duration:
            z = np.concatenate(([trajectory.duration], z))
        return z

    def unpack(self, z):
        """
        Rebuild a trajectory from a decision vector, re-attaching the fixed
        boundary columns and fixed duration.

        Parameters
        ----------
        z : (n_vars,) array
            Decision vector.

        Returns
        -------
        trajectory : `Trajectory`

        Raises
        ------
        ValueError
            If `z` does not have `n_vars` entries.
        """
        z = np.reshape(z, (-1,))
        if z.shape[0] != self.n_vars:
            raise ValueError(f"decision vector has size {z.shape[0]:d} but "
                             f"should have size {self.n_vars:d}")

        if self.free_duration:
            duration, z = z[0], z[1:]
        else:
            duration = self.duration

        x_free, u = separate_vars(z, self.n_states, self.n_controls,
                                  n_nodes=self.n_nodes, order=self.order)

        x = np.empty((self.n_states, self.n_nodes))
        x[:, self.free_columns] = x_free
        if self.x_start is not None:
            x[:, 0] = self.x_start
        if self.x_finish is not None:
            x[:, -1] = self.x_finish

        return Trajectory(duration, x, u)

    def expand_bounds(self, state_lb=None, state_ub=None, control_lb=None,
                      control_ub=None, duration_lb=0., duration_ub=np.inf):
        """
        Assemble per-variable bounds in the decision vector layout.

        Parameters
        ----------
        state_lb, state_ub : (n_states,) array, optional
            Box bounds on the states, applied at every free node. None means
            unbounded.
        control_lb, control_ub : (n_controls,) array, optional
            Box bounds on the controls, applied at every node. None means
            unbounded.
        duration_lb, duration_ub : float, default=(0, inf)
            Bounds on the duration, used if the duration is free.

        Returns
        -------
        bounds : `scipy.optimize.Bounds`
            Instance of `Bounds` mapped to the decision vector.

        Raises
        ------
        ValueError
            If any lower bound exceeds the corresponding upper bound.
        """
        n_free = self.free_columns.shape[0]

        def tile(bound, n_rows, n_cols, fill):
            if bound is None or n_rows == 0:
                return np.full((n_rows, n_cols), fill)
            return np.tile(resize_vector(bound, n_rows), (1, n_cols))

        x_lb = tile(state_lb, self.n_states, n_free, -np.inf)
        x_ub = tile(state_ub, self.n_states, n_free, np.inf)
        u_lb = tile(control_lb, self.n_controls, self.n_nodes, -np.inf)
        u_ub = tile(control_ub, self.n_controls, self.n_nodes, np.inf)

        lb = collect_vars(x_lb, u_lb, order=self.order)
        ub = collect_vars(x_ub, u_ub, order=self.order)

        if self.free_duration:
            lb = np.concatenate(([duration_lb], lb))
            ub = np.concatenate(([duration_ub], ub))

        if np.any(lb > ub):
            raise ValueError("lower bounds must not exceed upper bounds")

        return Bounds(lb=lb, ub=ub)


def collect_vars(x, u, order='F'):
    """
    Gather separate state and control matrices arranged by (dimension, time)
    into a single 1d array for optimization, with states first and controls
    second.

    Parameters
    ----------
    x : (n_states, n_nodes) array
        States arranged by (dimension, time).
    u : (n_controls, n_nodes) array
        Controls arranged by (dimension, time).
    order : {'C', 'F'}, default='F'
        Use C (row-major) or Fortran (column-major) ordering.

    Returns
    -------
    xu : 1d array
        Array containing states `x` and controls `u`, with
        `xu[:x.size] == x.flatten(order=order)` and
        `xu[x.size:] == u.flatten(order=order)`.
    """
    return np.concatenate((np.reshape(x, -1, order=order),
                           np.reshape(u, -1, order=order)))


def separate_vars(xu, n_states, n_controls, n_nodes=None, order='F'):
    """
    Given a single 1d array containing states and controls, assembled using
    `collect_vars`, separate the array into states and controls and reshape
    these into 2d arrays arranged by (dimension, time).

    Parameters
    ----------
    xu : 1d array
        Array containing states `x` and controls `u`.
    n_states : int
        Number of states.
    n_controls : int
        Number of controls.
    n_nodes : int, optional
        Number of nodes of the controls. If None, `x` and `u` are assumed to
        have the same number of nodes, `xu.size // (n_states + n_controls)`.
        Otherwise `x` has `(xu.size - n_controls * n_nodes) // n_states` nodes.
    order : {'C', 'F'}, default='F'
        Use C (row-major) or Fortran (column-major) ordering.

    Returns
    -------
    x : (n_states, n_x_nodes) array
        States extracted from `xu` arranged by (dimension, time).
    u : (n_controls, n_nodes) array
        Controls extracted from `xu` arranged by (dimension, time).
    """
    if n_nodes is None:
        n_nodes = xu.size // (n_states + n_controls)
        nx = n_states * n_nodes
    else:
        nx = xu.size - n_controls * n_nodes
    x = xu[:nx].reshape((n_states, -1), order=order)
    u = xu[nx:].reshape((n_controls, n_nodes), order=order)
    return x, u
