"""
This module transcribes `TrajectoryProblem`s into nonlinear programs and
solves them with `scipy.optimize.minimize`. Two transcriptions are available:
Chebyshev pseudospectral collocation, in which the state is a global polynomial
through Chebyshev-Gauss-Lobatto (CGL) points and the dynamics are enforced at
every node, and multiple shooting, in which fixed step RK4 integration between
uniformly spaced nodes must meet the next node's state. Solutions can be
resampled onto refined grids to warm start further solves.

##### Functions

* [`solve`](collocation/solve#solve):
    Solve a problem on a single grid.

* [`solve_with_refinement`](collocation/solve#solve_with_refinement):
    Solve a problem on a sequence of increasingly fine grids, warm starting
    each solve from the last.

##### Classes

* [`TrajectoryOptimizer`](collocation/solve#TrajectoryOptimizer):
    Step-by-step driver for a single solve.

* [`TrajectorySolution`](collocation/solutions#TrajectorySolution):
    Solved trajectory with a continuous-time interpolant.

##### Submodules

* [`chebyshev`](collocation/chebyshev):
    CGL points, Clenshaw-Curtis weights, differentiation matrices, and
    barycentric interpolation.

* [`grids`](collocation/grids):
    Chebyshev and shooting grids over a reference interval.

* [`packing`](collocation/packing):
    Mapping between trajectories and flat decision vectors.

* [`setup_nlp`](collocation/setup_nlp):
    Objective, constraints, Jacobian sparsity, and bounds of the transcribed
    problem.

* [`guess`](collocation/guess):
    Initial guesses and resampling between grids.

##### References

1. L. N. Trefethen, *Spectral Methods in MATLAB*, SIAM, 2000.
    https://doi.org/10.1137/1.9780898719598
2. J. T. Betts, *Practical Methods for Optimal Control and Estimation Using
    Nonlinear Programming*, 2nd ed., SIAM, 2010.
    https://doi.org/10.1137/1.9780898718577
"""

from .solve import *
from .solutions import TrajectorySolution
