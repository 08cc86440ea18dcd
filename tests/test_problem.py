import pytest

import numpy as np

from trajopt.problem import (TrajectoryProblem, ProblemParameters, PointMass,
                             NumericalSingularityError)

from tests._problems import (PolynomialDynamics, ConstrainedPointMass,
                             SingularPointMass)


rng = np.random.default_rng(123)


def _make_problems():
    return {'PointMass': PointMass(),
            'ConstrainedPointMass': ConstrainedPointMass(),
            'SingularPointMass': SingularPointMass(),
            'PolynomialDynamics': PolynomialDynamics(
                coef=rng.normal(size=(2, 3)), n_controls=1)}


@pytest.mark.parametrize('ocp_name', _make_problems().keys())
def test_init(ocp_name):
    """Basic check that each problem can be initialized and allows parameters
    to be updated as expected."""
    ocp = _make_problems()[ocp_name]

    assert ocp.n_states
    assert ocp.n_controls >= 0
    assert isinstance(ocp.parameters, ProblemParameters)
    assert ocp.initial_time == 0.

    for param in ocp.parameters.required:
        assert getattr(ocp.parameters, param) is not None

    ocp.parameters.update(dummy_variable=True)
    assert ocp.parameters.dummy_variable
    assert ocp.parameters.as_dict()['dummy_variable']

    # Updating with nothing shouldn't make any errors
    ocp.parameters.update()

    # A new instance of the problem shouldn't carry old parameters
    ocp2 = _make_problems()[ocp_name]
    assert not hasattr(ocp2.parameters, 'dummy_variable')


@pytest.mark.parametrize('ocp_name', _make_problems().keys())
@pytest.mark.parametrize('n_points', [1, 3])
def test_shapes(ocp_name, n_points):
    """Check the output shapes of dynamics, costs and constraints for 1d and 2d
    inputs."""
    ocp = _make_problems()[ocp_name]

    x = rng.uniform(-0.5, 0.5, size=(ocp.n_states, n_points))
    u = rng.uniform(-1., 1., size=(ocp.n_controls, n_points))

    assert ocp.dynamics(x, u).shape == (ocp.n_states, n_points)
    assert ocp.dynamics(x[:, 0], u[:, 0]).shape == (ocp.n_states,)

    assert ocp.running_cost(x, u).shape == (n_points,)
    assert np.ndim(ocp.endpoint_cost(x[:, 0], x[:, -1], 1.)) == 0

    c = ocp.boundary_constraints(x[:, 0], x[:, -1], 1.)
    assert np.shape(c) == (ocp.n_boundary_constraints,)
    assert ocp.boundary_lb.shape == ocp.boundary_ub.shape == c.shape

    c = ocp.path_constraints(x, u)
    assert np.shape(c) == (ocp.n_path_constraints, n_points)
    assert ocp.path_lb.shape == ocp.path_ub.shape == (ocp.n_path_constraints,)


def test_reshape_inputs():
    ocp = PointMass()

    x, u, squeeze = ocp._reshape_inputs([1., 2.], [3.])
    assert squeeze
    assert x.shape == (2, 1)
    assert u.shape == (1, 1)

    x, u, squeeze = ocp._reshape_inputs(np.ones((2, 4)), None)
    assert not squeeze
    np.testing.assert_array_equal(u, np.zeros((1, 4)))

    with pytest.raises(ValueError):
        ocp._reshape_inputs(np.ones((3, 4)), np.ones((1, 4)))
    with pytest.raises(ValueError):
        ocp._reshape_inputs(np.ones((2, 4)), np.ones((2, 4)))
    with pytest.raises(ValueError):
        ocp._reshape_inputs(np.ones((2, 4)), np.ones((1, 5)))
    with pytest.raises(ValueError):
        ocp._reshape_inputs(np.ones((2, 4, 1)), np.ones((1, 4)))


def test_duration_bounds():
    ocp = ConstrainedPointMass(duration=2.)
    assert ocp.duration_bounds == (2., 2.)

    ocp = ConstrainedPointMass(duration=None, duration_lb=1., duration_ub=3.)
    assert ocp.duration_bounds == (1., 3.)

    for lb, ub in ((3., 1.), (0., 1.), (-1., 1.)):
        ocp.parameters.update(duration_lb=lb, duration_ub=ub)
        with pytest.raises(ValueError):
            ocp.duration_bounds

    # A free duration needs both bounds
    ocp = ConstrainedPointMass(duration=None, duration_lb=1.)
    with pytest.raises(ValueError, match="duration_ub"):
        ocp.duration_bounds
    ocp = ConstrainedPointMass(duration=None, duration_ub=1.)
    with pytest.raises(ValueError, match="duration_lb"):
        ocp.duration_bounds


def test_state_and_control_bounds():
    ocp = PointMass()
    assert ocp.state_lb is None and ocp.state_ub is None
    assert ocp.control_lb is None and ocp.control_ub is None

    ocp.parameters.update(u_lb=-2., x_ub=[1., np.inf])
    np.testing.assert_array_equal(ocp.control_lb, [-2.])
    np.testing.assert_array_equal(ocp.state_ub, [1., np.inf])
    assert ocp.control_ub is None


def test_guess_boundaries():
    ocp = ConstrainedPointMass(x_start=[1., 2.])
    assert ocp.x_finish is None
    x0, x1 = ocp.guess_boundaries()
    np.testing.assert_array_equal(x0, [1., 2.])
    np.testing.assert_array_equal(x1, [1., 2.])

    x0, x1 = PointMass(x_start=[0., 1.], x_finish=[3., 4.]).guess_boundaries()
    np.testing.assert_array_equal(x1, [3., 4.])


def test_base_class_not_implemented():
    ocp = TrajectoryProblem()
    with pytest.raises(NotImplementedError):
        ocp.n_states
    with pytest.raises(NotImplementedError):
        ocp.dynamics(np.zeros(1), np.zeros(1))


def test_parameters_read_only():
    """Array parameters should be stored as copies which cannot be modified in
    place."""
    x_start = np.array([0., 1.])
    ocp = PointMass(x_start=x_start)

    x_start[0] = 5.
    assert ocp.parameters.x_start[0] == 0.

    with pytest.raises(ValueError):
        ocp.parameters.x_start[0] = 1.

    ocp.parameters.update(x_finish=[2., 3.])
    assert isinstance(ocp.parameters.x_finish, np.ndarray)
    assert not ocp.parameters.x_finish.flags.writeable


def test_parameters_frozen():
    ocp = PointMass()
    params = ocp.parameters
    assert not params.is_frozen

    with params.frozen():
        assert params.is_frozen
        with pytest.raises(RuntimeError):
            params.update(mass=2.)
        # Nested freezing keeps the parameters frozen until the outer block
        with params.frozen():
            pass
        assert params.is_frozen

    assert not params.is_frozen
    params.update(mass=2.)
    assert params.mass == 2.

    # Parameters are unfrozen even if an error occurs during a solve
    with pytest.raises(NumericalSingularityError):
        with params.frozen():
            raise NumericalSingularityError
    assert not params.is_frozen


def test_parameters_required():
    with pytest.raises(RuntimeError):
        PointMass(mass=None)

    params = ProblemParameters(required=['a'], a=1.)
    with pytest.raises(RuntimeError):
        params.update(a=None)
    params.update(check_required=False, a=None)
    assert params.a is None

    with pytest.raises(TypeError):
        ProblemParameters(update_fun=5.)


def test_parameter_update_fun():
    """Derived quantities should be recomputed when parameters change, and
    invalid parameters should be rejected."""
    ocp = PolynomialDynamics(coef=[[1., 2.]], n_controls=0)
    assert ocp.n_states == 2
    ocp.parameters.update(coef=np.ones((3, 2)))
    assert ocp.n_states == 4

    with pytest.raises(ValueError):
        PointMass(mass=-1.)
    with pytest.raises(ValueError):
        PointMass(x_finish=[1., 2., 3.])


def test_point_mass_free_motion():
    ocp = PointMass(mass=2., force=1., x_start=[1., -1.])
    t = np.linspace(0., 2., 11)
    x = ocp.free_motion(t)

    np.testing.assert_allclose(x[:, 0], [1., -1.])
    # Finite difference of the position matches the velocity at midpoints
    np.testing.assert_allclose(np.diff(x[0]) / np.diff(t),
                               (x[1, 1:] + x[1, :-1]) / 2.)
    np.testing.assert_allclose(ocp.dynamics(x, np.zeros((1, 11)))[1], 0.5)


def test_singular_dynamics():
    ocp = SingularPointMass(x_singular=1.)
    ocp.dynamics([0.5, 0.], [0.])
    with pytest.raises(NumericalSingularityError):
        ocp.dynamics([1.5, 0.], [0.])
    assert issubclass(NumericalSingularityError, ArithmeticError)
    assert ocp.frozen_log == [False, False]
