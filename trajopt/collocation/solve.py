import numpy as np
from scipy.optimize import minimize, BFGS
from tqdm import tqdm

from .grids import make_grid
from .guess import initial_guess
from .setup_nlp import make_transcription
from .solutions import TrajectorySolution


__all__ = ['TrajectoryOptimizer', 'solve', 'solve_with_refinement']


# Exit status of each solver when it reaches the iteration limit
_ITER_LIMIT_STATUS = {'SLSQP': 9, 'trust-constr': 0}


class TrajectoryOptimizer:
    """
    Drives a single solve of a `TrajectoryProblem` on one grid. The optimizer
    moves through the stages
    ```
    'idle' -> 'grid_built' -> 'guess_ready' -> 'solving' -> 'solved'
                                                          -> 'failed'
    ```
    with `build_grid`, `make_guess` and `run`. Calling a later step runs any
    earlier steps which have not been run yet. The problem's parameters are
    frozen while solving.
    """
    def __init__(self, problem, n_nodes=9, method='chebyshev', n_substeps=4,
                 order='F'):
        """
        Parameters
        ----------
        problem : `TrajectoryProblem`
            The problem to solve.
        n_nodes : int, default=9
            Number of grid nodes. Must be `n_nodes >= 3`.
        method : {'chebyshev', 'shooting'}, default='chebyshev'
            Pseudospectral collocation on Chebyshev points, or multiple
            shooting on uniform segments.
        n_substeps : int, default=4
            Number of RK4 steps per segment for multiple shooting.
        order : {'C', 'F'}, default='F'
            Use C (row-major) or Fortran (column-major) ordering for the NLP
            decision variables.
        """
        self.problem = problem
        self.n_nodes = n_nodes
        self.method = method
        self.n_substeps = n_substeps
        self.order = order

        self.stage = 'idle'
        self.grid = None
        self.transcription = None
        self.guess = None
        self.solution = None

    def build_grid(self):
        """
        Construct the grid and the transcription of the problem on it.

        Returns
        -------
        grid : `Grid`
        """
        self.grid = make_grid(self.n_nodes, method=self.method,
                              n_substeps=self.n_substeps)
        self.transcription = make_transcription(self.problem, self.grid,
                                                order=self.order)
        self.stage = 'grid_built'
        return self.grid

    def make_guess(self, previous=None, guess=None):
        """
        Build the initial guess, by resampling a previous solution, by
        interpolating a user supplied guess, or from the problem's boundary
        states. See `guess.initial_guess`.

        Parameters
        ----------
        previous : `TrajectorySolution` or `Trajectory`, optional
            Previous solution to warm start from.
        guess : dict, DataFrame, or tuple, optional
            Guess `(t, x, u)` in physical time.

        Returns
        -------
        guess : `Trajectory`
        """
        if self.stage == 'idle':
            self.build_grid()
        self.guess = initial_guess(self.problem, self.grid, previous=previous,
                                   guess=guess)
        self.stage = 'guess_ready'
        return self.guess

    def run(self, tol=1e-06, max_iter=500, solver='SLSQP', verbose=0):
        """
        Solve the transcribed problem with `scipy.optimize.minimize`.

        Parameters
        ----------
        tol : float, default=1e-06
            Convergence tolerance for the optimizer.
        max_iter : int, default=500
            Maximum number of optimizer iterations.
        solver : {'SLSQP', 'trust-constr'}, default='SLSQP'
            Which `minimize` method to use.
        verbose : {0, 1, 2}, default=0
            Level of algorithm's verbosity:

                * 0 (default) : work silently.
                * 1 : display a termination report.
                * 2 : display progress during iterations.

        Returns
        -------
        sol : `TrajectorySolution`
            Solution of the problem. Should only be trusted if `sol.success`.
            If the dynamics or constraints could not be evaluated,
            `sol.status == -1` and `sol` holds the last decision vector whose
            constraints evaluated cleanly.
        """
        if solver not in _ITER_LIMIT_STATUS:
            raise ValueError(f"solver must be one of "
                             f"{list(_ITER_LIMIT_STATUS.keys())}")
        if self.stage != 'guess_ready':
            self.make_guess()

        transcription = self.transcription
        bounds = transcription.bounds()
        z0 = transcription.packer.pack(self.guess)
        z0 = np.clip(z0, bounds.lb, bounds.ub)

        if verbose:
            print(f"\nNumber of {self.grid.kind} nodes: {self.grid.n_nodes}")
            print("-" * 80)

        self.stage = 'solving'
        transcription.last_iterate = None

        with self.problem.parameters.frozen():
            try:
                result = _minimize(transcription, z0, bounds, tol=tol,
                                   max_iter=max_iter, solver=solver,
                                   verbose=verbose)
                sol = TrajectorySolution.from_minimize_result(result,
                                                              transcription)
            except ArithmeticError as e:
                z = transcription.last_iterate
                if z is None:
                    z = z0
                sol = TrajectorySolution.from_minimize_result(
                    None, transcription, z=z, status=-1,
                    message=f"{type(e).__name__}: {e}")

        self.stage = 'solved' if sol.success else 'failed'
        self.solution = sol

        if verbose:
            print(f"Solver exited with status {sol.status:d}: {sol.message}")
            if sol.cost is not None:
                print(f"Objective value: {sol.cost:1.6e}")

        return sol

    def accepts_warm_start(self, solver='SLSQP'):
        """
        Check if the current solution is good enough to warm start a refined
        solve: it either converged or stopped at the iteration limit.
        """
        if self.solution is None:
            return False
        return (self.solution.success
                or self.solution.status == _ITER_LIMIT_STATUS[solver])


def _minimize(transcription, z0, bounds, tol, max_iter, solver, verbose):
    if solver == 'SLSQP':
        constraint = transcription.make_constraint(dense=True)
        options = {'maxiter': max_iter, 'disp': verbose >= 2}
        return minimize(transcription.objective, z0,
                        jac=transcription.objective_grad, bounds=bounds,
                        constraints=constraint, method='SLSQP', tol=tol,
                        options=options)

    constraint = transcription.make_constraint(dense=False)
    options = {'maxiter': max_iter, 'verbose': max(verbose - 1, 0)}
    return minimize(transcription.objective, z0,
                    jac=transcription.objective_grad, hess=BFGS(),
                    bounds=bounds, constraints=constraint,
                    method='trust-constr', tol=tol, options=options)


def solve(problem, n_nodes=9, method='chebyshev', n_substeps=4, previous=None,
          guess=None, tol=1e-06, max_iter=500, solver='SLSQP', order='F',
          verbose=0):
    """
    Solve a trajectory optimization problem on a single grid.

    Parameters
    ----------
    problem : `TrajectoryProblem`
        The problem to solve.
    n_nodes : int, default=9
        Number of grid nodes. Must be `n_nodes >= 3`.
    method : {'chebyshev', 'shooting'}, default='chebyshev'
        Pseudospectral collocation on Chebyshev points, or multiple shooting on
        uniform segments.
    n_substeps : int, default=4
        Number of RK4 steps per segment for multiple shooting.
    previous : `TrajectorySolution` or `Trajectory`, optional
        Previous solution to warm start from.
    guess : dict, DataFrame, or tuple, optional
        Guess `(t, x, u)` in physical time, used if `previous` is None.
    tol : float, default=1e-06
        Convergence tolerance for the optimizer.
    max_iter : int, default=500
        Maximum number of optimizer iterations.
    solver : {'SLSQP', 'trust-constr'}, default='SLSQP'
        Which `scipy.optimize.minimize` method to use.
    order : {'C', 'F'}, default='F'
        Use C (row-major) or Fortran (column-major) ordering for the NLP
        decision variables.
    verbose : {0, 1, 2}, default=0
        Level of algorithm's verbosity:

            * 0 (default) : work silently.
            * 1 : display a termination report.
            * 2 : display progress during iterations.

    Returns
    -------
    sol : `TrajectorySolution`
        Solution of the problem. Should only be trusted if `sol.success`.
    """
    optimizer = TrajectoryOptimizer(problem, n_nodes=n_nodes, method=method,
                                    n_substeps=n_substeps, order=order)
    optimizer.build_grid()
    optimizer.make_guess(previous=previous, guess=guess)
    return optimizer.run(tol=tol, max_iter=max_iter, solver=solver,
                         verbose=verbose)


def solve_with_refinement(problem, n_nodes=(9, 15, 25), method='chebyshev',
                          n_substeps=4, previous=None, guess=None, tol=1e-06,
                          max_iter=500, solver='SLSQP', order='F', verbose=0):
    """
    Solve a trajectory optimization problem on a sequence of grids, warm
    starting each solve with the previous solution resampled onto the new grid.
    Solutions which converged or stopped at the iteration limit are passed on;
    failed solutions are skipped and the next grid is warm started from the
    last accepted solution instead.

    Parameters
    ----------
    problem : `TrajectoryProblem`
        The problem to solve.
    n_nodes : sequence of ints, default=(9, 15, 25)
        Number of grid nodes for each solve, in order. Each must be at least 3.
    method : {'chebyshev', 'shooting'}, default='chebyshev'
        Pseudospectral collocation on Chebyshev points, or multiple shooting on
        uniform segments.
    n_substeps : int, default=4
        Number of RK4 steps per segment for multiple shooting.
    previous : `TrajectorySolution` or `Trajectory`, optional
        Previous solution to warm start the first solve from.
    guess : dict, DataFrame, or tuple, optional
        Guess `(t, x, u)` in physical time for the first solve, used if
        `previous` is None.
    tol : float, default=1e-06
        Convergence tolerance for the optimizer.
    max_iter : int, default=500
        Maximum number of optimizer iterations per solve.
    solver : {'SLSQP', 'trust-constr'}, default='SLSQP'
        Which `scipy.optimize.minimize` method to use.
    order : {'C', 'F'}, default='F'
        Use C (row-major) or Fortran (column-major) ordering for the NLP
        decision variables.
    verbose : {0, 1, 2}, default=0
        Level of algorithm's verbosity. A progress bar is shown if
        `verbose >= 1`.

    Returns
    -------
    sol : `TrajectorySolution`
        Solution on the last grid. Should only be trusted if `sol.success`.
    """
    n_nodes = np.atleast_1d(n_nodes).astype(int)
    if n_nodes.size < 1:
        raise ValueError("n_nodes must contain at least one grid size")

    sol = None
    for n in tqdm(n_nodes, disable=not verbose):
        optimizer = TrajectoryOptimizer(problem, n_nodes=n, method=method,
                                        n_substeps=n_substeps, order=order)
        optimizer.make_guess(previous=previous, guess=guess)
        sol = optimizer.run(tol=tol, max_iter=max_iter, solver=solver,
                            verbose=verbose)

        if optimizer.accepts_warm_start(solver=solver):
            # Accept successful solutions or solutions which maxed out the
            # allowed number of iterations
            previous = sol
        elif verbose:
            print("Ignoring failed warm start solution...")

    return sol
