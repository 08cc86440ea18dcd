from contextlib import contextmanager

import numpy as np

from trajopt.utilities import resize_vector


class NumericalSingularityError(ArithmeticError):
    """Raised when dynamics or constraints cannot be evaluated at a point, e.g.
    coincident point masses or non-finite values. Solvers treat this as a
    failed solve rather than letting NaNs propagate."""


class TrajectoryProblem:
    """
    Template superclass for trajectory optimization problems: continuous-time
    dynamics, a cost made of a running and an endpoint part, box bounds on
    states, controls and duration, and optional boundary and path constraints.

    Physical constants and problem configuration live in a `ProblemParameters`
    instance attached as `self.parameters`. Subclasses declare defaults in
    `_required_parameters` and `_optional_parameters`. The following parameter
    names are recognized by the base class:

        * `duration` : fixed duration, or `duration_lb` and `duration_ub` for
            a free duration.
        * `t0` : initial time, default 0.
        * `x_start`, `x_finish` : hard-fixed start/finish states (optional).
        * `x_lb`, `x_ub`, `u_lb`, `u_ub` : state and control box bounds.
    """
    _required_parameters = {}
    _optional_parameters = {}

    def __init__(self, **problem_parameters):
        """
        Parameters
        ----------
        problem_parameters : dict, default={}
            Parameters specifying the dynamics, cost and constraints. Anything
            not given falls back to the defaults defined by the subclass.
        """
        problem_parameters = {**self._required_parameters,
                              **self._optional_parameters,
                              **problem_parameters}
        self.parameters = ProblemParameters(
            required=self._required_parameters.keys(),
            update_fun=type(self)._parameter_update_fun)
        """`ProblemParameters`. Physical constants and configuration."""
        self.parameters.update(**problem_parameters)

    @property
    def n_states(self):
        """The number of system states (positive int)."""
        raise NotImplementedError

    @property
    def n_controls(self):
        """The number of control inputs (non-negative int)."""
        raise NotImplementedError

    @property
    def initial_time(self):
        """float. Time at which trajectories start."""
        return float(getattr(self.parameters, 't0', 0.))

    @property
    def duration_bounds(self):
        """
        (2,) tuple of floats. Lower and upper bounds on the trajectory duration.
        Both are equal when the duration is fixed.
        """
        duration = getattr(self.parameters, 'duration', None)
        if duration is not None:
            lb = ub = float(duration)
        else:
            bounds = []
            for name in ('duration_lb', 'duration_ub'):
                bound = getattr(self.parameters, name, None)
                if bound is None:
                    raise ValueError(f"{name} must be set when duration is "
                                     f"None")
                bounds.append(float(bound))
            lb, ub = bounds
        if not 0. < lb <= ub:
            raise ValueError(f"duration bounds ({lb}, {ub}) must satisfy "
                             f"0 < lb <= ub")
        return lb, ub

    @property
    def x_start(self):
        """(`n_states`,) array or None. Hard-fixed initial state."""
        return self._get_state_param('x_start')

    @property
    def x_finish(self):
        """(`n_states`,) array or None. Hard-fixed final state."""
        return self._get_state_param('x_finish')

    @property
    def state_lb(self):
        """(`n_states`,) array or None. Lower bounds `x >= state_lb`."""
        return self._get_bound_param('x_lb', self.n_states)

    @property
    def state_ub(self):
        """(`n_states`,) array or None. Upper bounds `x <= state_ub`."""
        return self._get_bound_param('x_ub', self.n_states)

    @property
    def control_lb(self):
        """(`n_controls`,) array or None. Lower bounds `u >= control_lb`."""
        return self._get_bound_param('u_lb', self.n_controls)

    @property
    def control_ub(self):
        """(`n_controls`,) array or None. Upper bounds `u <= control_ub`."""
        return self._get_bound_param('u_ub', self.n_controls)

    def _get_state_param(self, name):
        x = getattr(self.parameters, name, None)
        if x is None:
            return None
        return np.reshape(x, (self.n_states,))

    def _get_bound_param(self, name, n):
        bound = getattr(self.parameters, name, None)
        if bound is None or n == 0:
            return None
        return resize_vector(bound, n).flatten()

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        """
        Performs operations on `self.parameters` during initialization and each
        time `self.parameters.update` is called, for checking parameter shapes
        and precomputing derived quantities.

        Parameters
        ----------
        obj : `ProblemParameters`
            In standard use, `obj` refers to `self.parameters`.
        **new_params : dict
            Parameters which are being set or changed.
        """
        pass

    def dynamics(self, x, u):
        """
        Evaluate the system dynamics at one or more state-control pairs.

        Parameters
        ----------
        x : (n_states,) or (n_states, n_points) array
            State(s) arranged by (dimension, time).
        u : (n_controls,) or (n_controls, n_points) array
            Control(s) arranged by (dimension, time).

        Returns
        -------
        dxdt : (n_states,) or (n_states, n_points) array
            System dynamics $dx/dt = f(x,u)$ evaluated at pairs (`x`, `u`).

        Raises
        ------
        NumericalSingularityError
            If the dynamics are undefined at any of the given points.
        """
        raise NotImplementedError

    def running_cost(self, x, u):
        """
        Evaluate the running cost `L(x, u)` at one or more state-control pairs.
        The default is zero, i.e. a feasibility problem.

        Parameters
        ----------
        x : (n_states, n_points) array
            States arranged by (dimension, time).
        u : (n_controls, n_points) array
            Controls arranged by (dimension, time).

        Returns
        -------
        L : (n_points,) array
            Running cost evaluated at each pair (`x`, `u`).
        """
        return np.zeros(np.shape(x)[-1])

    def endpoint_cost(self, x0, x1, duration):
        """
        Evaluate the cost of the trajectory endpoints and duration. The default
        is zero.

        Parameters
        ----------
        x0 : (n_states,) array
            Initial state.
        x1 : (n_states,) array
            Final state.
        duration : float
            Trajectory duration.

        Returns
        -------
        cost : float
        """
        return 0.

    @property
    def n_boundary_constraints(self):
        """int. Number of entries returned by `boundary_constraints`."""
        return 0

    def boundary_constraints(self, x0, x1, duration):
        """
        Evaluate nonlinear constraints on the trajectory endpoints and
        duration, e.g. periodicity. Constraints are satisfied when
        `boundary_lb <= c <= boundary_ub`.

        Parameters
        ----------
        x0 : (n_states,) array
            Initial state.
        x1 : (n_states,) array
            Final state.
        duration : float
            Trajectory duration.

        Returns
        -------
        c : (n_boundary_constraints,) array
        """
        return np.empty(0)

    @property
    def boundary_lb(self):
        """(`n_boundary_constraints`,) array. Defaults to equality with 0."""
        return np.zeros(self.n_boundary_constraints)

    @property
    def boundary_ub(self):
        """(`n_boundary_constraints`,) array. Defaults to equality with 0."""
        return np.zeros(self.n_boundary_constraints)

    @property
    def n_path_constraints(self):
        """int. Number of rows returned by `path_constraints`."""
        return 0

    def path_constraints(self, x, u):
        """
        Evaluate nonlinear path constraints at each node, satisfied when
        `path_lb <= c <= path_ub`.

        Parameters
        ----------
        x : (n_states, n_points) array
            States arranged by (dimension, time).
        u : (n_controls, n_points) array
            Controls arranged by (dimension, time).

        Returns
        -------
        c : (n_path_constraints, n_points) array
        """
        return np.empty((0, np.shape(x)[-1]))

    @property
    def path_lb(self):
        """(`n_path_constraints`,) array. Defaults to `-inf`."""
        return np.full(self.n_path_constraints, -np.inf)

    @property
    def path_ub(self):
        """(`n_path_constraints`,) array. Defaults to 0."""
        return np.zeros(self.n_path_constraints)

    def guess_boundaries(self):
        """
        Start and finish states used to build a first guess by interpolation.
        Defaults to `x_start` and `x_finish`. A missing finish state is taken
        to equal the start state, and a missing start state is zero.

        Returns
        -------
        x0 : (n_states,) array
        x1 : (n_states,) array
        """
        x0, x1 = self.x_start, self.x_finish
        if x0 is None:
            x0 = np.zeros(self.n_states) if x1 is None else x1
        if x1 is None:
            x1 = x0
        return x0, x1

    def _reshape_inputs(self, x, u):
        """
        Reshape 1d array states and controls into 2d arrays.

        Parameters
        ----------
        x : (n_states,) or (n_states, n_points) array
            State(s) arranged by (dimension, time).
        u : (n_controls,) or (n_controls, n_points) array
            Control(s) arranged by (dimension, time).

        Returns
        -------
        x : (n_states, n_points) array
        u : (n_controls, n_points) array
        squeeze : bool
            True if `x` was passed as a 1d array.

        Raises
        ------
        ValueError
            If the inputs cannot be reshaped to the correct sizes, or if the
            number of state and control points differ.
        """
        squeeze = np.ndim(x) < 2

        x = np.asarray(x, dtype=float)
        if x.ndim > 2 or x.shape[0] != self.n_states:
            raise ValueError("x must be an array of shape (n_states,) or "
                             "(n_states, n_points)")
        x = x.reshape(self.n_states, -1)

        n_points = x.shape[1]
        if u is None or np.size(u) == 0:
            u = np.zeros((self.n_controls, n_points))
        else:
            u = np.asarray(u, dtype=float)
            if u.ndim > 2 or u.shape[0] != self.n_controls:
                raise ValueError("u must be an array of shape (n_controls,) "
                                 "or (n_controls, n_points)")
            u = u.reshape(self.n_controls, -1)

        if u.shape[1] != n_points:
            raise ValueError(f"x has {n_points:d} points but u has "
                             f"{u.shape[1]:d} points")

        return x, u, squeeze


class ProblemParameters:
    """
    Container for the physical constants and configuration of a problem.

    Parameters are set at construction and with `update`. Numeric arrays are
    stored as read-only copies, and updates are refused while the container is
    frozen (see `frozen`), which solvers use to guarantee parameters do not
    change in the middle of a solve.
    """
    def __init__(self, required=[], update_fun=None, **params):
        """
        Parameters
        ----------
        required : list or set of strings, default=[]
            Names of parameters which cannot be None.
        update_fun : callable, optional
            Function with call signature `update_fun(obj, **params)` executed
            whenever parameters are modified by `update`, where `obj` is this
            `ProblemParameters` instance.
        **params : dict
            Parameters to set at initialization, as keyword arguments.
        """
        if update_fun is None:
            self._update_fun = lambda s, **p: None
        elif callable(update_fun):
            self._update_fun = update_fun
        else:
            raise TypeError("update_fun must be set with a callable")

        self._param_dict = dict()
        self._frozen = False
        self.required = set(required)
        if len(params):
            self.update(**params)

    def update(self, check_required=True, **params):
        """
        Modify individual or multiple parameters using keyword arguments, then
        call `self._update_fun(self, **params)`.

        Parameters
        ----------
        check_required : bool, default=True
            Ensure that all required parameters are set after updating.
        **params : dict
            Parameters to change, as keyword arguments.

        Raises
        ------
        RuntimeError
            If the parameters are frozen, or if `check_required` is True and
            any required parameter is None after updating.
        """
        if self._frozen:
            raise RuntimeError("Parameters cannot be updated during a solve")

        params = {key: _read_only(val) for key, val in params.items()}
        self._param_dict.update(params)
        self.__dict__.update(params)

        if check_required:
            for p in self.required:
                if getattr(self, p, None) is None:
                    raise RuntimeError(f"{p} is required but has not been set")

        self._update_fun(self, **params)

    @property
    def is_frozen(self):
        """bool. True while updates are refused."""
        return self._frozen

    @contextmanager
    def frozen(self):
        """Context manager which refuses `update` calls until exited."""
        was_frozen = self._frozen
        self._frozen = True
        try:
            yield self
        finally:
            self._frozen = was_frozen

    def as_dict(self):
        """
        Return all named parameters in the form of a dict.

        Returns
        -------
        parameter_dict : dict
            Dict containing all parameters set using `__init__` or `update`.
        """
        return dict(self._param_dict)


def _read_only(val):
    if isinstance(val, (list, tuple)) and len(val) and all(
            np.isscalar(v) for v in val):
        val = np.asarray(val, dtype=float)
    if isinstance(val, np.ndarray):
        val = np.array(val, copy=True)
        val.setflags(write=False)
    return val
