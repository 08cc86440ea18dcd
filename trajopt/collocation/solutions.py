import numpy as np
from scipy.interpolate import (BarycentricInterpolator, CubicHermiteSpline,
                               make_interp_spline)

from trajopt.problem import NumericalSingularityError
from trajopt.utilities import saturate, pack_dataframe

from .packing import Trajectory


class TrajectorySolution:
    """
    Object containing a solved (or partially solved) trajectory at the nodes of
    a grid, the solver's exit information, and a continuous-time interpolant
    built in the basis of the grid. On Chebyshev grids states and controls are
    interpolated by the global polynomial through the nodes. On shooting grids
    states use cubic Hermite splines matching the node derivatives and controls
    are piecewise linear, consistent with the transcription.
    """
    def __init__(self, t, x, u, status, message, grid, success=None, cost=None,
                 dxdt=None, u_lb=None, u_ub=None):
        self.t = np.asarray(t, dtype=float)
        """(n_nodes,) array. Node times."""
        self.x = np.asarray(x, dtype=float)
        """(n_states, n_nodes) array. The state trajectory."""
        self.u = np.asarray(u, dtype=float).reshape(-1, self.t.shape[0])
        """(n_controls, n_nodes) array. The control profile."""
        self.status = int(status)
        """int. Reason for solver termination. `status==0` indicates success
        for SLSQP, and `status==-1` indicates that the problem could not be
        evaluated. See `message` for details."""
        self.message = str(message)
        """str. Human-readable description of `status`."""
        if success is None:
            success = self.status == 0
        self.success = bool(success)
        """bool. Whether the solver reported convergence."""
        self.cost = cost
        """float or None. Objective value of the discrete trajectory."""
        self.grid = grid
        """`Grid`. The grid the solution was computed on."""

        self._u_lb, self._u_ub = u_lb, u_ub

        n_controls = self.u.shape[0]
        if grid is None or grid.kind == 'chebyshev':
            self._x_interp = BarycentricInterpolator(self.t, self.x, axis=-1)
            if n_controls:
                self._u_interp = BarycentricInterpolator(self.t, self.u,
                                                         axis=-1)
        else:
            if dxdt is None or not np.isfinite(dxdt).all():
                dxdt = np.gradient(self.x, self.t, axis=-1)
            self._x_interp = CubicHermiteSpline(self.t, self.x, dxdt, axis=-1)
            if n_controls:
                self._u_interp = make_interp_spline(self.t, self.u, k=1,
                                                    axis=-1)

    @property
    def duration(self):
        return self.t[-1] - self.t[0]

    @property
    def trajectory(self):
        """`Trajectory`. Copy of the discrete solution."""
        return Trajectory(self.duration, np.copy(self.x), np.copy(self.u))

    def __call__(self, t, return_x=True, return_u=True):
        """
        Interpolate the solution at new times `t`. Times outside
        `[t[0], t[-1]]` are extrapolated without any accuracy guarantee.

        Parameters
        ----------
        t : (n_points,) array
            Time points at which to evaluate the continuous solution.
        return_x : bool, default=True
            If True (default), interpolate and return the state `x`.
        return_u : bool, default=True
            If True (default), interpolate and return the control `u`, clipped
            to the control bounds.

        Returns
        -------
        x : (n_states, n_points) array
            Values of the state trajectory at times `t`. Returned if
            `return_x=True`.
        u : (n_controls, n_points) array
            Values of the control at times `t`. Returned if `return_u=True`.
        """
        t = np.reshape(t, (-1,))

        x, u = None, None
        if return_x:
            x = self._x_interp(t)
        if return_u:
            if self.u.shape[0]:
                u = self._u_interp(t)
                u = saturate(u, self._u_lb, self._u_ub)
            else:
                u = np.empty((0, t.shape[0]))

        return self._get_return_args(x=x, u=u)

    @staticmethod
    def _get_return_args(x=None, u=None):
        """Get appropriate subsets of returned values for `__call__`."""
        args = [arg for arg in (x, u) if arg is not None]
        if len(args) == 0:
            return
        if len(args) == 1:
            return args[0]
        return args

    def to_dataframe(self):
        """
        Export the node values as a `DataFrame` with columns 't', 'x1', ...,
        'u1', ....
        """
        return pack_dataframe(self.t, self.x, self.u)

    @classmethod
    def from_minimize_result(cls, minimize_result, transcription, z=None,
                             status=None, message=None):
        """
        Build a solution from the output of `scipy.optimize.minimize`.

        Parameters
        ----------
        minimize_result : `OptimizeResult` or None
            Result returned by the solver. May be None if the solver raised.
        transcription : `Transcription`
            The transcription which was solved.
        z : (n_vars,) array, optional
            Decision vector to use instead of `minimize_result.x`.
        status : int, optional
            Exit status overriding `minimize_result.status`.
        message : str, optional
            Message overriding `minimize_result.message`.

        Returns
        -------
        sol : `TrajectorySolution`
        """
        if z is None:
            z = minimize_result.x
        if status is None:
            status = minimize_result.status
            success = minimize_result.success
        else:
            success = False
        if message is None:
            message = minimize_result.message

        problem, grid = transcription.problem, transcription.grid

        traj = transcription.packer.unpack(z)
        t0 = problem.initial_time
        t = grid.node_times(t0, t0 + traj.duration)

        dxdt = None
        if grid.kind != 'chebyshev':
            try:
                dxdt = problem.dynamics(traj.x, traj.u)
            except NumericalSingularityError:
                dxdt = None

        cost = transcription.objective(z)

        return cls(t, traj.x, traj.u, status, message, grid, success=success,
                   cost=cost, dxdt=dxdt, u_lb=problem.control_lb,
                   u_ub=problem.control_ub)
