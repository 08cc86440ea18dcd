import numpy as np

from trajopt.problem import TrajectoryProblem


class CartPole(TrajectoryProblem):
    """
    Swing-up of a pendulum on a cart. A horizontal force `u` acts on the cart,
    which must move a distance `d` along the track in a time between
    `duration_lb` and `duration_ub` while swinging the pendulum from hanging
    straight down to balancing straight up.
    The running cost is the control effort `u ** 2`.

    The state is `x = [q1, q2, dq1, dq2]`, where `q1` is the horizontal
    position of the cart and `q2` is the angle of the pendulum measured from
    straight down.
    """
    _required_parameters = {'m1': 1., 'm2': 1., 'g': 9.81, 'l': 1.,
                            'd': 1., 'u_max': 20., 'track_length': 4.,
                            'duration_lb': 1.5, 'duration_ub': 3.}
    _optional_parameters = {'duration': None, 'x_start': None,
                            'x_finish': None}

    @property
    def n_states(self):
        return 4

    @property
    def n_controls(self):
        return 1

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        for key in ('m1', 'm2', 'l', 'u_max', 'track_length'):
            if key in new_params and not getattr(obj, key) > 0.:
                raise ValueError(f"{key} must be positive")

        if 'd' in new_params or 'track_length' in new_params:
            if 2. * np.abs(obj.d) > obj.track_length:
                raise ValueError("The target distance d must lie on the track")

    @property
    def x_start(self):
        x_start = self._get_state_param('x_start')
        if x_start is None:
            return np.zeros(4)
        return x_start

    @property
    def x_finish(self):
        x_finish = self._get_state_param('x_finish')
        if x_finish is None:
            return np.array([self.parameters.d, np.pi, 0., 0.])
        return x_finish

    @property
    def state_lb(self):
        half_length = self.parameters.track_length / 2.
        return np.array([-half_length, -2. * np.pi, -np.inf, -np.inf])

    @property
    def state_ub(self):
        half_length = self.parameters.track_length / 2.
        return np.array([half_length, 2. * np.pi, np.inf, np.inf])

    @property
    def control_lb(self):
        return np.array([-self.parameters.u_max])

    @property
    def control_ub(self):
        return np.array([self.parameters.u_max])

    def dynamics(self, x, u):
        x, u, squeeze = self._reshape_inputs(x, u)

        m1, m2 = self.parameters.m1, self.parameters.m2
        g, l = self.parameters.g, self.parameters.l

        q2, dq2 = x[1], x[3]
        u = u[0]

        sin_q, cos_q = np.sin(q2), np.cos(q2)

        ddq1 = (l * m2 * sin_q * dq2 ** 2 + u + m2 * g * cos_q * sin_q)
        ddq1 /= m1 + m2 * (1. - cos_q ** 2)

        ddq2 = (l * m2 * cos_q * sin_q * dq2 ** 2 + u * cos_q
                + (m1 + m2) * g * sin_q)
        ddq2 /= - (l * m1 + l * m2 * (1. - cos_q ** 2))

        dxdt = np.vstack((x[2], x[3], ddq1, ddq2))

        if squeeze:
            return dxdt[:, 0]
        return dxdt

    def running_cost(self, x, u):
        return np.sum(np.reshape(u, (1, -1)) ** 2, axis=0)

    def energy(self, x):
        """Total mechanical energy, with zero potential energy at the track."""
        x = np.asarray(x, dtype=float)
        m1, m2 = self.parameters.m1, self.parameters.m2
        g, l = self.parameters.g, self.parameters.l
        q2, dq1, dq2 = x[1], x[2], x[3]
        kinetic = (0.5 * (m1 + m2) * dq1 ** 2
                   + m2 * l * np.cos(q2) * dq1 * dq2
                   + 0.5 * m2 * l ** 2 * dq2 ** 2)
        return kinetic - m2 * g * l * np.cos(q2)

    def pole_tip(self, x):
        """
        Position of the end of the pendulum.

        Parameters
        ----------
        x : (4,) or (4, n_points) array
            State(s) arranged by (dimension, time).

        Returns
        -------
        p : (2,) or (2, n_points) array
            Horizontal and vertical position of the pendulum tip.
        """
        x = np.asarray(x, dtype=float)
        l = self.parameters.l
        return np.stack((x[0] + l * np.sin(x[1]), - l * np.cos(x[1])))
