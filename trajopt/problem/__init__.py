"""
The `problem` module implements the `TrajectoryProblem` class which serves as a
template for subclasses describing specific trajectory optimization problems:
dynamics, running and endpoint costs, box bounds, and boundary and path
constraints. Physical constants and configuration are not hard-coded in the
subclasses; they are stored in a `ProblemParameters` instance attached to each
problem, which is frozen by the solvers while a solve is running.

---

* [`TrajectoryProblem`](problem/problem#TrajectoryProblem):
    Base superclass used to implement trajectory optimization problems.

* [`PointMass`](problem/point_mass#PointMass):
    A point mass pushed by a constant force, with a known analytic solution.

* [`ProblemParameters`](problem/problem#ProblemParameters):
    Class housing dynamics and cost function parameters for
    `TrajectoryProblem` instances.

* [`NumericalSingularityError`](problem/problem#NumericalSingularityError):
    Raised when dynamics or constraints are undefined at a point.
"""

from .problem import (TrajectoryProblem, ProblemParameters,
                      NumericalSingularityError)
from .point_mass import PointMass
