import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

import numpy as np
import pytest

from trajopt import animate


@pytest.mark.parametrize('key,long_key', [(' ', 'space'),
                                          ('up', 'uparrow'),
                                          ('escape', 'escape')])
def test_key_aliases(key, long_key):
    states = [animate.PlaybackState(verbose=0) for _ in range(2)]
    assert states[0].handle_key(key)
    assert states[1].handle_key(long_key)
    for attr in ('paused', 'speed', 'sim_time', 'quit'):
        assert getattr(states[0], attr) == getattr(states[1], attr)


def test_playback_state(capsys):
    state = animate.PlaybackState(speed=1., frame_rate=10., sim_time=2.)
    assert state.dt_real == 0.1

    assert state.step() == 0.1
    np.testing.assert_allclose(state.sim_time, 2.1)

    state.handle_key('space')
    assert state.paused
    assert state.step() == 0.
    np.testing.assert_allclose(state.sim_time, 2.1)
    state.handle_key('space')
    assert not state.paused

    state.handle_key('up')
    assert state.speed == 2.
    state.handle_key('down')
    state.handle_key('down')
    assert state.speed == 0.5

    state.handle_key('right')
    np.testing.assert_allclose(state.sim_time, 2.1 + 5. * 0.5 * 0.1)
    state.handle_key('left')
    np.testing.assert_allclose(state.sim_time, 2.1)

    assert not state.handle_key('q')
    assert not state.handle_key(None)
    assert not state.quit
    state.handle_key('esc')
    assert state.quit

    out = capsys.readouterr().out
    assert "paused" in out
    assert "speed set to 2.000" in out
    assert "skipping backward" in out
    assert "aborted" in out


def test_playback_state_silent(capsys):
    state = animate.PlaybackState(verbose=0)
    for key in ('space', 'up', 'right', 'escape'):
        state.handle_key(key)
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize('kwargs', [{'speed': 0.}, {'speed': -1.},
                                    {'frame_rate': 0.}])
def test_bad_playback_settings(kwargs):
    with pytest.raises(ValueError):
        animate.PlaybackState(**kwargs)


def test_pause_time():
    # Simulation running behind wall-clock time waits as little as possible
    buffer = np.array([10., 9.5, 9.])
    assert animate._pause_time(0.1, buffer, 30.) == 1e-03
    # and never longer than one frame
    buffer = np.array([10., 10., 10.])
    assert animate._pause_time(1., buffer, 30.) == 1. / 30.
    buffer = np.array([10.02, 10.01, 10.])
    np.testing.assert_allclose(animate._pause_time(0.02, buffer, 30.), 0.02)


@pytest.mark.filterwarnings('ignore::UserWarning')
def test_animate_runs_to_end():
    t = np.linspace(0., 0.5, 6)
    x = np.vstack((t, 2. * t))
    calls = []

    def plot_fun(t, x):
        calls.append((t, np.copy(x)))

    state = animate.animate(t, x, plot_fun, speed=5., frame_rate=40.,
                            fig_num=123, verbose=0)

    assert state.sim_time >= 0.5
    assert not state.quit
    assert len(calls) == 4
    for k, (_t, _x) in enumerate(calls):
        np.testing.assert_allclose(_t, k * 5. / 40.)
        np.testing.assert_allclose(_x, [_t, 2. * _t])

    plt.close(123)


def test_animate_bad_times():
    with pytest.raises(ValueError):
        animate.animate([0., 1., 1.], np.zeros((2, 3)), lambda t, x: None)
    with pytest.raises(ValueError):
        animate.animate([1., 0.5, 2.], np.zeros((2, 3)), lambda t, x: None)
