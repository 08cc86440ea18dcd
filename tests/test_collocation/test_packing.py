import numpy as np
import pytest

from trajopt.collocation import packing


rng = np.random.default_rng(123)


@pytest.mark.parametrize('n_states', [1, 2, 3])
@pytest.mark.parametrize('n_controls', [1, 2, 3])
@pytest.mark.parametrize('n_nodes', [12, 13])
@pytest.mark.parametrize('order', ['F', 'C'])
def test_reshaping_funs(n_states, n_controls, n_nodes, order):
    x = rng.normal(size=(n_states, n_nodes))
    u = rng.normal(size=(n_controls, n_nodes))

    xu = packing.collect_vars(x, u, order=order)
    assert xu.ndim == 1
    assert xu.shape[0] == (n_states + n_controls) * n_nodes

    _x, _u = packing.separate_vars(xu, n_states, n_controls, order=order)
    np.testing.assert_array_equal(_x, x)
    np.testing.assert_array_equal(_u, u)


def _make_packer(n_states, n_controls, n_nodes, fixed_duration, fix_start,
                 fix_finish, order):
    duration = rng.uniform(1., 2.) if fixed_duration else None
    x_start = rng.normal(size=n_states) if fix_start else None
    x_finish = rng.normal(size=n_states) if fix_finish else None
    return packing.VariablePacker(n_states, n_controls, n_nodes,
                                  duration=duration, x_start=x_start,
                                  x_finish=x_finish, order=order)


@pytest.mark.parametrize('n_states', [1, 3])
@pytest.mark.parametrize('n_controls', [0, 2])
@pytest.mark.parametrize('fixed_duration', [True, False])
@pytest.mark.parametrize('fix_start', [True, False])
@pytest.mark.parametrize('fix_finish', [True, False])
@pytest.mark.parametrize('order', ['F', 'C'])
def test_pack_unpack(n_states, n_controls, fixed_duration, fix_start,
                     fix_finish, order):
    """Test that `unpack(pack(traj))` reproduces a trajectory consistent with
    the fixed values, and that `pack(unpack(z))` reproduces any `z`."""
    n_nodes = 9
    packer = _make_packer(n_states, n_controls, n_nodes, fixed_duration,
                          fix_start, fix_finish, order)

    n_free = n_nodes - int(fix_start) - int(fix_finish)
    assert packer.free_duration == (not fixed_duration)
    assert packer.free_columns.shape[0] == n_free
    assert packer.n_vars == (int(not fixed_duration) + n_states * n_free
                             + n_controls * n_nodes)

    x = rng.normal(size=(n_states, n_nodes))
    if fix_start:
        x[:, 0] = packer.x_start
    if fix_finish:
        x[:, -1] = packer.x_finish
    u = rng.normal(size=(n_controls, n_nodes))
    duration = packer.duration if fixed_duration else rng.uniform(1., 2.)
    traj = packing.Trajectory(duration, x, u)

    z = packer.pack(traj)
    assert z.shape == (packer.n_vars,)
    if not fixed_duration:
        assert z[0] == duration

    _traj = packer.unpack(z)
    assert _traj.duration == traj.duration
    np.testing.assert_array_equal(_traj.x, traj.x)
    np.testing.assert_array_equal(_traj.u, traj.u)

    z = rng.normal(size=packer.n_vars)
    np.testing.assert_array_equal(packer.pack(packer.unpack(z)), z)


@pytest.mark.parametrize('order', ['F', 'C'])
def test_pack_layout(order):
    """Free states come before controls, each flattened in `order`."""
    n_states, n_controls, n_nodes = 2, 1, 5
    packer = packing.VariablePacker(n_states, n_controls, n_nodes,
                                    x_start=np.zeros(n_states), order=order)

    x = np.arange(n_states * n_nodes, dtype=float).reshape(n_states, n_nodes)
    u = -np.arange(n_nodes, dtype=float).reshape(1, -1)
    x[:, 0] = 0.

    z = packer.pack(packing.Trajectory(1.5, x, u))

    assert packer.free_duration
    assert z[0] == 1.5
    z = z[1:]
    np.testing.assert_array_equal(z[:n_states * (n_nodes - 1)],
                                  x[:, 1:].flatten(order=order))
    np.testing.assert_array_equal(z[n_states * (n_nodes - 1):],
                                  u.flatten(order=order))


def test_fixed_boundaries_ignored():
    """Values of fixed boundary columns and a fixed duration in the
    trajectory being packed should be replaced by the fixed values."""
    packer = packing.VariablePacker(2, 1, 6, duration=3., x_start=[1., 2.],
                                    x_finish=[3., 4.])
    traj = packing.Trajectory(10., rng.normal(size=(2, 6)),
                              rng.normal(size=(1, 6)))
    _traj = packer.unpack(packer.pack(traj))

    assert _traj.duration == 3.
    np.testing.assert_array_equal(_traj.x[:, 0], [1., 2.])
    np.testing.assert_array_equal(_traj.x[:, -1], [3., 4.])
    np.testing.assert_array_equal(_traj.x[:, 1:-1], traj.x[:, 1:-1])


def test_dimension_mismatch():
    packer = packing.VariablePacker(2, 1, 6)

    with pytest.raises(ValueError):
        packer.pack(packing.Trajectory(1., np.zeros((3, 6)), np.zeros((1, 6))))
    with pytest.raises(ValueError):
        packer.pack(packing.Trajectory(1., np.zeros((2, 5)), np.zeros((1, 5))))
    with pytest.raises(ValueError):
        packer.pack(packing.Trajectory(1., np.zeros((2, 6)), np.zeros((2, 6))))
    with pytest.raises(ValueError):
        packer.unpack(np.zeros(packer.n_vars + 1))


def test_control_shape():
    """Controls must be arranged by (dimension, time). Arrays which could only
    be read that way after reordering are rejected."""
    x = np.zeros((2, 4))

    # Transposed controls, (n_nodes, n_controls)
    with pytest.raises(ValueError):
        packing.Trajectory(1., x, np.arange(8.).reshape(4, 2))
    with pytest.raises(ValueError):
        packing.Trajectory(1., x, np.arange(8.))
    with pytest.raises(ValueError):
        packing.Trajectory(1., x, np.zeros((1, 2, 4)))

    traj = packing.Trajectory(1., x, np.arange(4.))
    np.testing.assert_array_equal(traj.u, [[0., 1., 2., 3.]])

    traj = packing.Trajectory(1., x, [])
    assert traj.u.shape == (0, 4)

    u = rng.normal(size=(2, 4))
    traj = packing.Trajectory(1., x, u)
    np.testing.assert_array_equal(traj.u, u)
    z = packing.VariablePacker(2, 2, 4).pack(traj)
    np.testing.assert_array_equal(packing.VariablePacker(2, 2, 4).unpack(z).u,
                                  u)


def test_bad_order():
    with pytest.raises(ValueError, match="order must be one of"):
        packing.VariablePacker(2, 1, 6, order='A')


@pytest.mark.parametrize('order', ['F', 'C'])
@pytest.mark.parametrize('fixed_duration', [True, False])
def test_expand_bounds(order, fixed_duration):
    n_states, n_controls, n_nodes = 3, 2, 7
    duration = 2. if fixed_duration else None
    packer = packing.VariablePacker(n_states, n_controls, n_nodes,
                                    duration=duration, x_start=np.zeros(3),
                                    order=order)

    state_lb = np.array([-1., -np.inf, -3.])
    state_ub = np.array([1., 2., np.inf])
    control_lb = np.array([-0.5, -4.])

    bounds = packer.expand_bounds(state_lb=state_lb, state_ub=state_ub,
                                  control_lb=control_lb, control_ub=None,
                                  duration_lb=0.5, duration_ub=4.)

    assert bounds.lb.shape == bounds.ub.shape == (packer.n_vars,)

    lb, ub = packer.unpack(bounds.lb), packer.unpack(bounds.ub)
    if not fixed_duration:
        assert lb.duration == 0.5
        assert ub.duration == 4.
    np.testing.assert_array_equal(lb.x[:, 1:],
                                  np.tile(state_lb.reshape(-1, 1), (1, 6)))
    np.testing.assert_array_equal(ub.x[:, 1:],
                                  np.tile(state_ub.reshape(-1, 1), (1, 6)))
    np.testing.assert_array_equal(lb.u,
                                  np.tile(control_lb.reshape(-1, 1), (1, 7)))
    assert np.all(np.isposinf(ub.u))


def test_expand_bounds_inconsistent():
    packer = packing.VariablePacker(2, 1, 6)
    with pytest.raises(ValueError):
        packer.expand_bounds(state_lb=[0., 1.], state_ub=[1., 0.])
    with pytest.raises(ValueError):
        packer.expand_bounds(duration_lb=2., duration_ub=1.)
