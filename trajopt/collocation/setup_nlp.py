import numpy as np
from scipy import sparse
from scipy.optimize import NonlinearConstraint
from scipy.optimize._numdiff import approx_derivative, group_columns

from trajopt.problem import NumericalSingularityError
from trajopt.simulate import integrate_fixed_step

from .packing import VariablePacker


class Transcription:
    """
    Base class mapping a `TrajectoryProblem` on a grid to a nonlinear program
    in a flat decision vector `z` (see `VariablePacker` for the layout). The
    NLP is
    ```
    minimize objective(z)
    subject to constraint_lb <= constraints(z) <= constraint_ub,
               bounds.lb <= z <= bounds.ub.
    ```
    The constraints are stacked in a fixed order:

        1. Dynamics defects, arranged by (dimension, node) and flattened with
            the packing order.
        2. Boundary constraints, `problem.boundary_constraints(x0, x1, T)`.
        3. Path constraints, `problem.path_constraints(x, u)` arranged by
            (constraint, node) and flattened with the packing order.

    Subclasses implement `dynamics_defects` and `_defect_sparsity`.
    """
    def __init__(self, problem, grid, order='F'):
        """
        Parameters
        ----------
        problem : `TrajectoryProblem`
            The problem to transcribe.
        grid : `Grid`
            The grid on which to transcribe it.
        order : {'C', 'F'}, default='F'
            Use C (row-major) or Fortran (column-major) ordering.
        """
        self.problem = problem
        self.grid = grid
        self.order = order

        self.duration_lb, self.duration_ub = problem.duration_bounds
        duration = self.duration_lb
        if self.duration_lb < self.duration_ub:
            duration = None

        self.packer = VariablePacker(problem.n_states, problem.n_controls,
                                     grid.n_nodes, duration=duration,
                                     x_start=problem.x_start,
                                     x_finish=problem.x_finish, order=order)

        self.n_boundary = problem.n_boundary_constraints
        self.n_path = problem.n_path_constraints

        self.last_iterate = None
        """Last decision vector whose constraints evaluated cleanly."""

        self._sparsity = None
        self._groups = None

    @property
    def n_defect_nodes(self):
        """int. Number of nodes at which dynamics defects are evaluated."""
        raise NotImplementedError

    @property
    def n_defects(self):
        return self.problem.n_states * self.n_defect_nodes

    @property
    def n_constraints(self):
        return (self.n_defects + self.n_boundary
                + self.n_path * self.grid.n_nodes)

    def dynamics_defects(self, trajectory):
        """
        Evaluate the dynamics defects of a trajectory, which are zero when the
        trajectory satisfies the discretized dynamics.

        Parameters
        ----------
        trajectory : `Trajectory`
            Trajectory on `self.grid`.

        Returns
        -------
        defects : (n_states, n_defect_nodes) array
            Defects arranged by (dimension, node).
        """
        raise NotImplementedError

    def objective(self, z):
        """
        Quadrature approximation of the running cost integral plus the endpoint
        cost,
        ```
        duration / 2 * dot(w, running_cost(x, u)) + endpoint_cost(x0, x1, T).
        ```

        Parameters
        ----------
        z : (n_vars,) array
            Decision vector.

        Returns
        -------
        cost : float
        """
        traj = self.packer.unpack(z)
        L = self.problem.running_cost(traj.x, traj.u)
        cost = traj.duration / 2. * np.dot(self.grid.w, L)
        cost += self.problem.endpoint_cost(traj.x[:, 0], traj.x[:, -1],
                                           traj.duration)
        return float(cost)

    def objective_grad(self, z):
        """Central finite difference gradient of `objective`."""
        return approx_derivative(self.objective, z, method='3-point')

    def constraints(self, z):
        """
        Evaluate all constraints in the documented order, and record `z` as the
        `last_iterate` if this succeeds.

        Parameters
        ----------
        z : (n_vars,) array
            Decision vector.

        Returns
        -------
        c : (n_constraints,) array

        Raises
        ------
        NumericalSingularityError
            If the dynamics are undefined at some node or any constraint is not
            finite.
        """
        c = self._constraints(z)
        self.last_iterate = np.array(z, dtype=float)
        return c

    def _constraints(self, z):
        traj = self.packer.unpack(z)
        x0, x1 = traj.x[:, 0], traj.x[:, -1]

        defects = self.dynamics_defects(traj)
        boundary = self.problem.boundary_constraints(x0, x1, traj.duration)
        path = self.problem.path_constraints(traj.x, traj.u)

        c = np.concatenate((np.reshape(defects, -1, order=self.order),
                            np.reshape(boundary, -1),
                            np.reshape(path, -1, order=self.order)))

        if not np.isfinite(c).all():
            raise NumericalSingularityError(
                "constraints could not be evaluated to finite values")

        return c

    def evaluate(self, z):
        """
        Evaluate the objective and constraints together.

        Parameters
        ----------
        z : (n_vars,) array
            Decision vector.

        Returns
        -------
        cost : float
        c : (n_constraints,) array
        """
        return self.objective(z), self.constraints(z)

    def constraints_jac(self, z):
        """
        Finite difference Jacobian of `constraints`. Columns are grouped by the
        sparsity pattern returned by `jac_sparsity`, so variables which never
        appear in the same constraint are perturbed together.

        Parameters
        ----------
        z : (n_vars,) array
            Decision vector.

        Returns
        -------
        jac : (n_constraints, n_vars) sparse csr matrix
        """
        structure = self.jac_sparsity()
        return approx_derivative(self._constraints, z, method='3-point',
                                 sparsity=(structure, self._groups))

    def jac_sparsity(self):
        """
        Sparsity pattern of the constraint Jacobian implied by the grid
        topology.

        Returns
        -------
        structure : (n_constraints, n_vars) sparse csr matrix
            Ones wherever a constraint may depend on a decision variable.
        """
        if self._sparsity is not None:
            return self._sparsity

        x_idx, u_idx, t_idx = self._variable_indices()
        n_x, n_t = self.problem.n_states, self.grid.n_nodes

        rows, cols = [], []

        def couple(row, variables):
            variables = np.reshape(variables, -1)
            variables = variables[variables >= 0]
            rows.append(np.full(variables.shape, row))
            cols.append(variables)

        defect_rows = np.arange(self.n_defects).reshape(
            (n_x, self.n_defect_nodes), order=self.order)
        for (i, k), row in np.ndenumerate(defect_rows):
            couple(row, np.concatenate((self._defect_sparsity(i, k, x_idx,
                                                              u_idx), t_idx)))

        boundary_vars = np.concatenate((x_idx[:, 0], x_idx[:, -1], t_idx))
        for row in range(self.n_defects, self.n_defects + self.n_boundary):
            couple(row, boundary_vars)

        path_rows = self.n_defects + self.n_boundary + np.arange(
            self.n_path * n_t).reshape((self.n_path, n_t), order=self.order)
        for (_, k), row in np.ndenumerate(path_rows):
            couple(row, np.concatenate((x_idx[:, k], u_idx[:, k])))

        rows = np.concatenate(rows + [np.empty(0, dtype=int)])
        cols = np.concatenate(cols + [np.empty(0, dtype=int)])

        structure = sparse.coo_matrix(
            (np.ones(rows.shape[0]), (rows, cols)),
            shape=(self.n_constraints, self.packer.n_vars)).tocsr()
        structure.data[:] = 1.

        self._sparsity = structure
        self._groups = group_columns(structure)
        return structure

    def _variable_indices(self):
        """
        Positions of the states, controls and duration in the decision vector,
        with -1 for entries which are fixed.
        """
        packer = self.packer
        n_x, n_u, n_t = packer.n_states, packer.n_controls, packer.n_nodes

        offset = int(packer.free_duration)
        t_idx = np.arange(offset)

        x_idx = np.full((n_x, n_t), -1)
        n_free = packer.free_columns.shape[0]
        x_idx[:, packer.free_columns] = np.arange(
            offset, offset + n_x * n_free).reshape((n_x, n_free),
                                                   order=self.order)
        offset += n_x * n_free

        u_idx = np.arange(offset, offset + n_u * n_t).reshape((n_u, n_t),
                                                              order=self.order)

        return x_idx, u_idx, t_idx

    def _defect_sparsity(self, i, k, x_idx, u_idx):
        """Decision variables on which defect `(i, k)` depends."""
        raise NotImplementedError

    def bounds(self):
        """
        Box bounds on the decision vector: state and control bounds from the
        problem at every free node, and duration bounds if the duration is free.

        Returns
        -------
        bounds : `scipy.optimize.Bounds`
        """
        p = self.problem
        return self.packer.expand_bounds(state_lb=p.state_lb,
                                         state_ub=p.state_ub,
                                         control_lb=p.control_lb,
                                         control_ub=p.control_ub,
                                         duration_lb=self.duration_lb,
                                         duration_ub=self.duration_ub)

    def constraint_bounds(self):
        """
        Lower and upper bounds on `constraints`: zero for dynamics defects, and
        the problem's boundary and path constraint bounds.

        Returns
        -------
        lb : (n_constraints,) array
        ub : (n_constraints,) array
        """
        n_t = self.grid.n_nodes
        p = self.problem

        def stack(defect_val, boundary, path):
            path = np.tile(np.reshape(path, (self.n_path, 1)), (1, n_t))
            return np.concatenate((np.full(self.n_defects, defect_val),
                                   np.reshape(boundary, -1),
                                   path.reshape(-1, order=self.order)))

        lb = stack(0., p.boundary_lb, p.path_lb)
        ub = stack(0., p.boundary_ub, p.path_ub)
        return lb, ub

    def make_constraint(self, dense=True):
        """
        Collect `constraints`, `constraints_jac` and `constraint_bounds` into a
        `NonlinearConstraint` for `scipy.optimize.minimize`.

        Parameters
        ----------
        dense : bool, default=True
            Return the Jacobian as a dense array, as required by SLSQP.

        Returns
        -------
        constraint : `scipy.optimize.NonlinearConstraint`
        """
        if dense:
            def jac(z):
                return self.constraints_jac(z).toarray()
        else:
            jac = self.constraints_jac

        lb, ub = self.constraint_bounds()
        return NonlinearConstraint(fun=self.constraints, jac=jac, lb=lb, ub=ub)


class PseudospectralTranscription(Transcription):
    """
    Chebyshev pseudospectral collocation. The state is a global polynomial
    through the nodes, and the dynamics defects are
    ```
    x @ D.T - duration / 2 * f(x, u),
    ```
    evaluated at every node, including the endpoints.
    """
    def __init__(self, problem, grid, order='F'):
        if grid.D is None:
            raise ValueError("pseudospectral transcription requires a grid "
                             "with a differentiation matrix")
        super().__init__(problem, grid, order=order)

    @property
    def n_defect_nodes(self):
        return self.grid.n_nodes

    def dynamics_defects(self, trajectory):
        f = self.problem.dynamics(trajectory.x, trajectory.u)
        Dx = np.matmul(trajectory.x, self.grid.D.T)
        return Dx - trajectory.duration / 2. * f

    def _defect_sparsity(self, i, k, x_idx, u_idx):
        # D is dense: each defect sees its own dimension at every node, and
        # the full state and control at its node through f
        return np.concatenate((x_idx[i], x_idx[:, k], u_idx[:, k]))


class ShootingTranscription(Transcription):
    """
    Multiple shooting. The state at each node is propagated to the next node
    with `grid.n_substeps` fixed RK4 steps, with the control linearly
    interpolated between the two node values of the segment. All segments are
    integrated at once. The dynamics defects are
    ```
    x[:, k + 1] - RK4(x[:, k], u[:, k], u[:, k + 1]),
    ```
    for `k = 0, ..., n_nodes - 2`.
    """
    def __init__(self, problem, grid, order='F'):
        if not hasattr(grid, 'n_substeps'):
            raise ValueError("shooting transcription requires a ShootingGrid")
        super().__init__(problem, grid, order=order)

    @property
    def n_defect_nodes(self):
        return self.grid.n_nodes - 1

    def propagate(self, trajectory):
        """
        Integrate every segment of a trajectory from its left node.

        Parameters
        ----------
        trajectory : `Trajectory`
            Trajectory on `self.grid`.

        Returns
        -------
        x_end : (n_states, n_nodes - 1) array
            States integrated to the right end of each segment.
        """
        n_sub = self.grid.n_substeps
        h = trajectory.duration / (self.grid.n_nodes - 1)

        u_left, u_right = trajectory.u[:, :-1], trajectory.u[:, 1:]
        du = u_right - u_left

        def fun(t, x):
            return self.problem.dynamics(x, u_left + (t / h) * du)

        return integrate_fixed_step(fun, 0., trajectory.x[:, :-1], h / n_sub,
                                    n_sub, method='RK4')

    def dynamics_defects(self, trajectory):
        return trajectory.x[:, 1:] - self.propagate(trajectory)

    def _defect_sparsity(self, i, k, x_idx, u_idx):
        return np.concatenate(([x_idx[i, k + 1]], x_idx[:, k], u_idx[:, k],
                               u_idx[:, k + 1]))


def make_transcription(problem, grid, order='F'):
    """
    Build the transcription matching the kind of `grid`.

    Parameters
    ----------
    problem : `TrajectoryProblem`
        The problem to transcribe.
    grid : `ChebyshevGrid` or `ShootingGrid`
        The grid on which to transcribe it.
    order : {'C', 'F'}, default='F'
        Use C (row-major) or Fortran (column-major) ordering.

    Returns
    -------
    transcription : `PseudospectralTranscription` or `ShootingTranscription`
    """
    if grid.kind == 'chebyshev':
        return PseudospectralTranscription(problem, grid, order=order)
    elif grid.kind == 'shooting':
        return ShootingTranscription(problem, grid, order=order)
    raise ValueError(f"grid kind {grid.kind} is not supported")
