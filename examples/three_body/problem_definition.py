import numpy as np
from scipy.integrate import solve_ivp

from trajopt.problem import TrajectoryProblem, NumericalSingularityError


# Initial conditions and period of the figure-eight orbit for G = m = 1, found
# by Chenciner and Montgomery (2000)
_FIGURE_EIGHT_R1 = np.array([0.97000436, -0.24308753])
_FIGURE_EIGHT_V3 = np.array([-0.93240737, -0.86473146])
FIGURE_EIGHT_PERIOD = 6.32591398


class ThreeBody(TrajectoryProblem):
    """
    Search for periodic orbits of three point masses under Newtonian gravity in
    the plane. There are no controls and no cost: the problem is to find a
    trajectory and a period (the duration, which is free) such that the final
    state equals the initial state.

    The center of mass is fixed at the origin, so only the first two bodies
    appear in the state, `x = [r1, r2, v1, v2]` with each entry a 2d vector.
    The position and velocity of the third body are `r3 = -(m1 r1 + m2 r2) / m3`
    and `v3 = -(m1 v1 + m2 v2) / m3`.

    Orbits come in continuous families related by time shifts and rotations.
    These are removed by the phase conditions that the third body starts at the
    origin and that the first body starts on the line through the origin at
    angle `phase_angle`.
    """
    _required_parameters = {'G': 1., 'm1': 1., 'm2': 1., 'm3': 1.,
                            'duration_lb': 6., 'duration_ub': 6.6,
                            'min_distance': 1e-03,
                            'phase_angle': float(np.arctan2(
                                *_FIGURE_EIGHT_R1[::-1]))}

    @property
    def n_states(self):
        return 8

    @property
    def n_controls(self):
        return 0

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        for key in ('G', 'm1', 'm2', 'm3', 'min_distance'):
            if key in new_params and not getattr(obj, key) > 0.:
                raise ValueError(f"{key} must be positive")

    def third_body(self, x):
        """
        Position and velocity of the third body, from zero total momentum and
        the center of mass at the origin.

        Parameters
        ----------
        x : (8,) or (8, n_points) array
            State(s) arranged by (dimension, time).

        Returns
        -------
        r3 : (2,) or (2, n_points) array
        v3 : (2,) or (2, n_points) array
        """
        x = np.asarray(x, dtype=float)
        m1, m2, m3 = self.parameters.m1, self.parameters.m2, self.parameters.m3
        r3 = - (m1 * x[0:2] + m2 * x[2:4]) / m3
        v3 = - (m1 * x[4:6] + m2 * x[6:8]) / m3
        return r3, v3

    def dynamics(self, x, u=None):
        x, _, squeeze = self._reshape_inputs(x, u)
        G = self.parameters.G
        m1, m2, m3 = self.parameters.m1, self.parameters.m2, self.parameters.m3

        r1, r2 = x[0:2], x[2:4]
        r3, _ = self.third_body(x)

        r12, r13, r23 = r2 - r1, r3 - r1, r3 - r2
        d12, d13, d23 = (np.linalg.norm(r, axis=0) for r in (r12, r13, r23))

        min_dist = np.minimum(np.minimum(d12, d13), d23)
        if not np.all(min_dist >= self.parameters.min_distance):
            raise NumericalSingularityError(
                f"Bodies are closer than min_distance = "
                f"{self.parameters.min_distance:1.1e}")

        a1 = G * (m2 * r12 / d12 ** 3 + m3 * r13 / d13 ** 3)
        a2 = G * (- m1 * r12 / d12 ** 3 + m3 * r23 / d23 ** 3)

        dxdt = np.vstack((x[4:8], a1, a2))

        if squeeze:
            return dxdt[:, 0]
        return dxdt

    @property
    def n_boundary_constraints(self):
        return 11

    def boundary_constraints(self, x0, x1, duration):
        """
        Periodicity `x1 - x0 = 0`, followed by the phase conditions `r3(0) = 0`
        and `r1(0)` parallel to the direction given by `phase_angle`.
        """
        r3, _ = self.third_body(x0)
        angle = self.parameters.phase_angle
        rotation = - np.sin(angle) * x0[0] + np.cos(angle) * x0[1]
        return np.concatenate((x1 - x0, r3, [rotation]))

    def energy(self, x):
        """
        Total energy of the three bodies.

        Parameters
        ----------
        x : (8,) or (8, n_points) array
            State(s) arranged by (dimension, time).

        Returns
        -------
        E : float or (n_points,) array
        """
        x = np.asarray(x, dtype=float)
        G = self.parameters.G
        m1, m2, m3 = self.parameters.m1, self.parameters.m2, self.parameters.m3

        r1, r2, v1, v2 = x[0:2], x[2:4], x[4:6], x[6:8]
        r3, v3 = self.third_body(x)

        kinetic = 0.5 * (m1 * np.sum(v1 ** 2, axis=0)
                         + m2 * np.sum(v2 ** 2, axis=0)
                         + m3 * np.sum(v3 ** 2, axis=0))
        potential = - G * (m1 * m2 / np.linalg.norm(r2 - r1, axis=0)
                           + m1 * m3 / np.linalg.norm(r3 - r1, axis=0)
                           + m2 * m3 / np.linalg.norm(r3 - r2, axis=0))
        return kinetic + potential

    def figure_eight_state(self):
        """
        Initial state of the figure-eight orbit. Only a periodic orbit when
        `G = m1 = m2 = m3 = 1`.

        Returns
        -------
        x0 : (8,) array
        """
        v1 = - _FIGURE_EIGHT_V3 / 2.
        return np.concatenate((_FIGURE_EIGHT_R1, -_FIGURE_EIGHT_R1, v1, v1))

    def figure_eight_guess(self, n_points=101, rtol=1e-10, atol=1e-10):
        """
        Build a guess by integrating the dynamics from the figure-eight initial
        state over one period.

        Parameters
        ----------
        n_points : int, default=101
            Number of time points to return.
        rtol : float, default=1e-10
            See `scipy.integrate.solve_ivp`.
        atol : float, default=1e-10
            See `scipy.integrate.solve_ivp`.

        Returns
        -------
        t : (n_points,) array
        x : (8, n_points) array
        u : (0, n_points) array
        """
        t_eval = np.linspace(0., FIGURE_EIGHT_PERIOD, n_points)
        t_span = (0., FIGURE_EIGHT_PERIOD)
        ode_sol = solve_ivp(lambda t, x: self.dynamics(x), t_span,
                            self.figure_eight_state(),
                            t_eval=t_eval, vectorized=True, method='DOP853',
                            rtol=rtol, atol=atol)
        return ode_sol.t, ode_sol.y, np.empty((0, ode_sol.t.shape[0]))
