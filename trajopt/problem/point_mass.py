import numpy as np

from .problem import TrajectoryProblem


class PointMass(TrajectoryProblem):
    """
    A point mass on a line, pushed by a constant external force and a control
    force, which must travel between fixed states in a fixed time. The state is
    `x = [position, velocity]` and the running cost is the control effort
    `u ** 2`.

    When `x_finish` is reached by the uncontrolled motion from `x_start`, the
    optimal control is zero and the optimal trajectory is the constant
    acceleration motion returned by `free_motion`.
    """
    _required_parameters = {'mass': 1., 'force': 0., 'duration': 1.,
                            'x_start': [0., 1.], 'x_finish': [1., 1.]}
    _optional_parameters = {'u_lb': None, 'u_ub': None}

    @property
    def n_states(self):
        return 2

    @property
    def n_controls(self):
        return 1

    @staticmethod
    def _parameter_update_fun(obj, **new_params):
        if 'mass' in new_params and obj.mass <= 0.:
            raise ValueError("mass must be positive")
        for key in ('x_start', 'x_finish'):
            if key in new_params:
                if np.size(getattr(obj, key)) != 2:
                    raise ValueError(f"{key} must have size 2")

    def dynamics(self, x, u):
        x, u, squeeze = self._reshape_inputs(x, u)
        mass = self.parameters.mass
        dxdt = np.vstack((x[1], (self.parameters.force + u[0]) / mass))
        if squeeze:
            return dxdt[:, 0]
        return dxdt

    def running_cost(self, x, u):
        return np.sum(np.reshape(u, (1, -1)) ** 2, axis=0)

    def free_motion(self, t):
        """
        Uncontrolled motion starting from `x_start`.

        Parameters
        ----------
        t : (n_points,) array
            Times at which to evaluate the motion, relative to `t0`.

        Returns
        -------
        x : (2, n_points) array
            Positions and velocities at times `t`.
        """
        t = np.asarray(t, dtype=float) - self.initial_time
        a = self.parameters.force / self.parameters.mass
        x0, v0 = self.x_start
        return np.vstack((x0 + v0 * t + a * t ** 2 / 2., v0 + a * t))
