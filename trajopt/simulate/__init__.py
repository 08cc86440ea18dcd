"""
The `simulate` module contains explicit fixed step Runge-Kutta integrators,
used for multiple shooting transcription, and a convenient interface between
`TrajectoryProblem` and `TrajectorySolution` classes with
`scipy.integrate.solve_ivp` for validating open-loop solutions.

---

* [`integrate_open_loop`](simulate/simulate#integrate_open_loop):
    Integrate a system under the interpolated control of a solution.

* [`integrate_fixed_step`](simulate/_fixed_stepsize_integrators):
    Vectorized fixed step integration of many initial value problems.
"""

from .simulate import integrate_open_loop
from ._fixed_stepsize_integrators import integrate_fixed_step, METHODS
