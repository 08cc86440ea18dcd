import numpy as np

from trajopt.problem import TrajectoryProblem


class Acrobot(TrajectoryProblem):
    """
    Swing-up of the acrobot, a planar double pendulum actuated only by a torque
    `u` at the elbow joint. Starting from rest hanging straight down, the
    acrobot must reach the upright equilibrium in a fixed time while
    minimizing the control effort `u ** 2`.

    The state is `x = [q1, q2, dq1, dq2]`, where `q1` is the angle of the first
    link measured from straight down and `q2` is the angle of the second link
    relative to the first. The links have masses `m1`, `m2`, lengths `l1`,
    `l2`, centers of mass at distances `lc1`, `lc2` from their joints, and
    moments of inertia `I1`, `I2` about their joints.
    """
    _required_parameters = {'m1': 1., 'm2': 1., 'l1': 1., 'l2': 1.,
                            'lc1': 0.5, 'lc2': 0.5, 'I1': 1. / 3.,
                            'I2': 1. / 3., 'g': 9.81, 'duration': 4.,
                            'u_max': 15.}
    _optional_parameters = {'x_start': [0., 0., 0., 0.],
                            'x_finish': [np.pi, 0., 0., 0.]}

    @property
    def n_states(self):
        return 4

    @property
    def n_controls(self):
        return 1

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        for key in ('m1', 'm2', 'l1', 'l2', 'I1', 'I2', 'u_max'):
            if key in new_params and not getattr(obj, key) > 0.:
                raise ValueError(f"{key} must be positive")

    @property
    def control_lb(self):
        return np.array([-self.parameters.u_max])

    @property
    def control_ub(self):
        return np.array([self.parameters.u_max])

    def mass_matrix(self, x):
        """
        Evaluate the entries of the (symmetric) mass matrix.

        Parameters
        ----------
        x : (4, n_points) array
            States arranged by (dimension, time).

        Returns
        -------
        M11, M12, M22 : (n_points,) arrays
        """
        p = self.parameters
        c2 = np.cos(x[1])
        M12 = p.I2 + p.m2 * p.l1 * p.lc2 * c2
        M11 = p.I1 + p.m2 * p.l1 ** 2 + M12 + p.m2 * p.l1 * p.lc2 * c2
        M22 = np.full_like(c2, p.I2)
        return M11, M12, M22

    def dynamics(self, x, u):
        x, u, squeeze = self._reshape_inputs(x, u)
        p = self.parameters

        q1, q2, dq1, dq2 = x
        s1, s2, s12 = np.sin(q1), np.sin(q2), np.sin(q1 + q2)

        M11, M12, M22 = self.mass_matrix(x)

        # Coriolis, centrifugal and gravity terms, plus the elbow torque
        h = p.m2 * p.l1 * p.lc2 * s2
        rhs1 = (2. * h * dq1 * dq2 + h * dq2 ** 2
                - (p.m1 * p.lc1 + p.m2 * p.l1) * p.g * s1
                - p.m2 * p.g * p.lc2 * s12)
        rhs2 = - h * dq1 ** 2 - p.m2 * p.g * p.lc2 * s12 + u[0]

        det = M11 * M22 - M12 ** 2
        ddq1 = (M22 * rhs1 - M12 * rhs2) / det
        ddq2 = (M11 * rhs2 - M12 * rhs1) / det

        dxdt = np.vstack((dq1, dq2, ddq1, ddq2))

        if squeeze:
            return dxdt[:, 0]
        return dxdt

    def running_cost(self, x, u):
        return np.sum(np.reshape(u, (1, -1)) ** 2, axis=0)

    def energy(self, x):
        """
        Total mechanical energy, with zero potential energy at the pivot.

        Parameters
        ----------
        x : (4,) or (4, n_points) array
            State(s) arranged by (dimension, time).

        Returns
        -------
        E : float or (n_points,) array
        """
        x = np.asarray(x, dtype=float)
        squeeze = x.ndim < 2
        x = x.reshape(4, -1)
        p = self.parameters

        M11, M12, M22 = self.mass_matrix(x)
        dq1, dq2 = x[2], x[3]
        kinetic = 0.5 * (M11 * dq1 ** 2 + 2. * M12 * dq1 * dq2
                         + M22 * dq2 ** 2)
        potential = - ((p.m1 * p.lc1 + p.m2 * p.l1) * p.g * np.cos(x[0])
                       + p.m2 * p.g * p.lc2 * np.cos(x[0] + x[1]))

        E = kinetic + potential
        if squeeze:
            return E[0]
        return E

    def joint_positions(self, x):
        """
        Positions of the elbow and the end of the second link.

        Parameters
        ----------
        x : (4,) or (4, n_points) array
            State(s) arranged by (dimension, time).

        Returns
        -------
        elbow : (2,) or (2, n_points) array
        tip : (2,) or (2, n_points) array
        """
        x = np.asarray(x, dtype=float)
        l1, l2 = self.parameters.l1, self.parameters.l2
        elbow = np.stack((l1 * np.sin(x[0]), - l1 * np.cos(x[0])))
        tip = elbow + np.stack((l2 * np.sin(x[0] + x[1]),
                                - l2 * np.cos(x[0] + x[1])))
        return elbow, tip
