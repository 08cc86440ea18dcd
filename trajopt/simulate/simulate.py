import numpy as np
from scipy.integrate import solve_ivp

from trajopt.utilities import saturate

from ._fixed_stepsize_integrators import METHODS, integrate_fixed_grid


def integrate_open_loop(problem, solution, t_eval=None, method='RK45',
                        atol=1e-06, rtol=1e-03, dt=None):
    """
    Integrate continuous-time system dynamics under the open-loop control
    interpolated from a solution, starting from the solution's initial state.
    Comparing the result to `solution(t)` shows how well the discrete
    trajectory satisfies the continuous dynamics.

    Parameters
    ----------
    problem : `TrajectoryProblem`
        An instance of a `TrajectoryProblem` subclass implementing `dynamics`.
    solution : `TrajectorySolution`
        Solution whose interpolated control is applied. Controls are clipped
        to the problem's control bounds.
    t_eval : array_like, optional
        Times at which to store the computed solution, must be sorted and lie
        within `(solution.t[0], solution.t[-1])`. If `None` (default), use
        points selected by the solver.
    method : string or `OdeSolver`, default='RK45'
        See `scipy.integrate.solve_ivp`. Also accepts 'Euler', 'Midpoint', and
        'RK4' for fixed step integration, in which case `dt` is required.
    atol : float or array_like, default=1e-06
        See `scipy.integrate.solve_ivp`.
    rtol : float or array_like, default=1e-03
        See `scipy.integrate.solve_ivp`.
    dt : float, optional
        Time step for fixed step methods.

    Returns
    -------
    t : (n_points,) array
        Time points.
    x : (`problem.n_states`, n_points) array
        System states at times `t`.
    status : int
        Reason for algorithm termination:

            * -1: Integration step failed.
            *  0: The solver successfully reached the end of the time span.
    """
    u_lb, u_ub = problem.control_lb, problem.control_ub

    def fun(t, x):
        u = solution(t, return_x=False)
        u = saturate(u, u_lb, u_ub).reshape(problem.n_controls, 1)
        u = np.broadcast_to(u, (problem.n_controls, np.shape(x)[1]))
        return problem.dynamics(x, u)

    t_span = (solution.t[0], solution.t[-1])

    if method in METHODS:
        if dt is None:
            raise ValueError(f"dt is required for method {method}")
        if t_eval is None:
            n_steps = max(int(np.ceil((t_span[1] - t_span[0]) / dt)), 1)
            t = np.linspace(*t_span, n_steps + 1)
        else:
            t = np.concatenate(([t_span[0]], np.reshape(t_eval, (-1,))))

        def fun_1d(t, x):
            return fun(t, x.reshape(-1, 1))[:, 0]

        x = integrate_fixed_grid(fun_1d, t, solution.x[:, 0], dt,
                                 method=method)
        status = 0 if np.isfinite(x).all() else -1
        if t_eval is not None:
            # Drop the initial condition, which was not requested
            t, x = t[1:], x[:, 1:]
        return t, x, status

    ode_sol = solve_ivp(fun, t_span, solution.x[:, 0], t_eval=t_eval,
                        vectorized=True, method=method, rtol=rtol, atol=atol)

    return ode_sol.t, ode_sol.y, ode_sol.status
