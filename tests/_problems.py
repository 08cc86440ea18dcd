import numpy as np

from trajopt.problem import (TrajectoryProblem, PointMass,
                             NumericalSingularityError)


class PolynomialDynamics(TrajectoryProblem):
    """
    Define a dummy `TrajectoryProblem` with states that evolve polynomially in
    physical time. To enable this time-dependence, the first state, `x[0]`, is
    assumed to be equal to `t`.

    Parameters
    ----------
    coef : (n_states - 1, deg + 1) array
        Polynomial coefficients of `dx[1:]/dt` in terms of `t`, starting from
        constant terms up to `t ** deg`.
    n_controls : int
        The number of control inputs to accept. Note that these do not affect
        the dynamics at all.
    duration : float
        Fixed duration.
    """
    _required_parameters = {'coef': None, 'n_controls': None, 'duration': 1.}

    @property
    def n_states(self):
        return len(self.parameters._poly_x) + 1

    @property
    def n_controls(self):
        return int(self.parameters.n_controls)

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        if 'coef' in new_params:
            obj._poly_x = [np.polynomial.Polynomial(c)
                           for c in np.atleast_2d(obj.coef)]

    def dynamics(self, x, u):
        x, u, squeeze = self._reshape_inputs(x, u)
        t = x[0]
        dxdt = [np.ones_like(t)] + [p(t) for p in self.parameters._poly_x]
        dxdt = np.stack(dxdt, axis=0)
        if squeeze:
            return dxdt[:, 0]
        return dxdt

    def running_cost(self, x, u):
        return np.sum(np.reshape(u, (self.n_controls, -1)) ** 2, axis=0)

    def exact_solution(self, t, x0):
        """
        States at times `t` starting from `x0[1:]` at `t = t0`. The first state
        is always `t`.
        """
        t = np.asarray(t, dtype=float)
        t0 = self.initial_time
        x = [t]
        for p, x0_i in zip(self.parameters._poly_x, x0[1:]):
            P = p.integ(lbnd=t0)
            x.append(x0_i + P(t))
        return np.stack(x, axis=0)


class ConstrainedPointMass(PointMass):
    """
    `PointMass` with a free final state. The distance travelled is enforced as
    a boundary constraint and the velocity is limited by the path constraint
    `v <= v_max`.
    """
    _required_parameters = {'mass': 1., 'force': 0., 'x_start': [0., 1.],
                            'distance': 1., 'v_max': np.inf}
    _optional_parameters = {'duration': 1., 'duration_lb': None,
                            'duration_ub': None, 'x_finish': None,
                            'u_lb': None, 'u_ub': None}

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        new_params.pop('x_finish', None)
        PointMass._parameter_update_fun(obj, **new_params)

    @property
    def n_boundary_constraints(self):
        return 1

    def boundary_constraints(self, x0, x1, duration):
        return np.array([x1[0] - x0[0] - self.parameters.distance])

    @property
    def n_path_constraints(self):
        return 1

    def path_constraints(self, x, u):
        return np.atleast_2d(x)[1:2]

    @property
    def path_ub(self):
        return np.array([self.parameters.v_max])


class SingularPointMass(PointMass):
    """
    `PointMass` whose dynamics are undefined beyond the position `x_singular`.
    Records whether the parameters were frozen every time the dynamics were
    evaluated.
    """
    _required_parameters = {**PointMass._required_parameters,
                            'x_singular': np.inf}

    def __init__(self, **problem_parameters):
        self.frozen_log = []
        super().__init__(**problem_parameters)

    def dynamics(self, x, u):
        self.frozen_log.append(self.parameters.is_frozen)
        if np.any(np.atleast_2d(x)[0] > self.parameters.x_singular):
            raise NumericalSingularityError("position beyond x_singular")
        return super().dynamics(x, u)
