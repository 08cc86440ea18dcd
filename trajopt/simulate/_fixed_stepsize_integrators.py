import numpy as np


class ButcherTableau:
    """
    Coefficients of an explicit Runge-Kutta method.

    Parameters
    ----------
    A : (n_stages, n_stages) array
        Strictly lower triangular stage coefficients.
    B : (n_stages,) array
        Weights combining the stages into a step.
    C : (n_stages,) array
        Fractions of the step at which the stages are evaluated.
    """
    def __init__(self, A, B, C):
        self.A = np.asarray(A, dtype=float)
        self.B = np.asarray(B, dtype=float)
        self.C = np.asarray(C, dtype=float)

    @property
    def n_stages(self):
        return self.C.shape[0]

    def step(self, fun, t, y, dt):
        """
        Take a single step of size `dt` from `(t, y)`. `y` may be any shape
        accepted by `fun`.
        """
        K = np.empty((self.n_stages,) + y.shape)
        for s in range(self.n_stages):
            dy = np.tensordot(self.A[s, :s], K[:s], axes=1) * dt
            K[s] = fun(t + self.C[s] * dt, y + dy)
        return y + np.tensordot(self.B, K, axes=1) * dt


METHODS = {
    'Euler': ButcherTableau(A=[[0.]], B=[1.], C=[0.]),
    'Midpoint': ButcherTableau(A=[[0., 0.],
                                  [1/2, 0.]],
                               B=[0., 1.],
                               C=[0., 1/2]),
    'RK4': ButcherTableau(A=[[0., 0., 0., 0.],
                             [1/2, 0., 0., 0.],
                             [0., 1/2, 0., 0.],
                             [0., 0., 1., 0.]],
                          B=[1/6, 1/3, 1/3, 1/6],
                          C=[0., 1/2, 1/2, 1.])}


def _get_tableau(method):
    try:
        return METHODS[method]
    except (KeyError, TypeError):
        raise ValueError(f"method must be one of {list(METHODS.keys())}")


def integrate_fixed_step(fun, t0, y0, dt, n_steps, method='RK4'):
    """
    Integrate many initial value problems at once with an explicit fixed step
    Runge-Kutta method. The state `y0` may be a 2d array of independent
    initial conditions, as needed for multiple shooting.

    Parameters
    ----------
    fun : callable
        Right-hand side of the system, `fun(t, y)`, where `t` is a float and
        `y` has the same shape as `y0`.
    t0 : float
        Initial time.
    y0 : (n,) or (n, n_segments) array
        Initial state(s).
    dt : float
        Time step. May be negative.
    n_steps : int
        Number of steps to take.
    method : {'Euler', 'Midpoint', 'RK4'}, default='RK4'
        Which tableau to use.

    Returns
    -------
    y : array with same shape as `y0`
        State(s) at time `t0 + n_steps * dt`.
    """
    tableau = _get_tableau(method)

    y = np.asarray(y0, dtype=float)
    for step in range(n_steps):
        y = tableau.step(fun, t0 + step * dt, y, dt)

    return y


def integrate_fixed_grid(fun, t, y0, dt, method='RK4'):
    """
    Integrate a single initial value problem with fixed steps, storing the
    state at each of the times `t`. Each interval between consecutive times is
    split into the fewest equal steps no longer than `dt`.

    Parameters
    ----------
    fun : callable
        Right-hand side of the system, `fun(t, y)`.
    t : (n_points,) array
        Output times, sorted in increasing order. The integration starts from
        `y0` at `t[0]`.
    y0 : (n,) array
        Initial state.
    dt : float
        Maximum step size. Must be positive.
    method : {'Euler', 'Midpoint', 'RK4'}, default='RK4'
        Which tableau to use.

    Returns
    -------
    y : (n, n_points) array
        States at times `t`.
    """
    tableau = _get_tableau(method)
    if dt is None or not dt > 0.:
        raise ValueError("dt must be positive")

    t = np.reshape(t, (-1,))
    y = np.empty((np.size(y0), t.shape[0]))
    y[:, 0] = y0

    for k, span in enumerate(np.diff(t)):
        n_steps = max(int(np.ceil(span / dt * (1. - 1e-09))), 1)
        y[:, k + 1] = y[:, k]
        h = span / n_steps
        for step in range(n_steps):
            y[:, k + 1] = tableau.step(fun, t[k] + step * h, y[:, k + 1], h)

    return y
