import time

import numpy as np
import matplotlib.pyplot as plt
from scipy.interpolate import interp1d


_KEY_ALIASES = {' ': 'space', 'up': 'uparrow', 'down': 'downarrow',
                'right': 'rightarrow', 'left': 'leftarrow', 'esc': 'escape'}


class PlaybackState:
    """
    Mutable state of an animation: whether it is paused, the playback speed
    relative to real time, the current simulation time, and whether the user
    asked to quit. The render loop only reads this state; it is changed by
    `handle_key` and advanced by `step`.

    Keys:

        * space : pause or resume.
        * up / down : double or halve the playback speed.
        * right / left : skip forward or backward by `5 * speed / frame_rate`.
        * escape : quit.
    """
    def __init__(self, speed=1., frame_rate=30., sim_time=0., verbose=1):
        if speed <= 0.:
            raise ValueError("speed must be positive")
        if frame_rate <= 0.:
            raise ValueError("frame_rate must be positive")
        self.paused = False
        self.speed = float(speed)
        self.sim_time = float(sim_time)
        self.quit = False
        self.frame_rate = float(frame_rate)
        self.verbose = verbose

    @property
    def dt_real(self):
        """float. Target wall-clock time between frames."""
        return 1. / self.frame_rate

    def handle_key(self, key):
        """
        Update the playback state in response to a key press.

        Parameters
        ----------
        key : str or None
            Key name, as given by `matplotlib` key press events ('up', ' ', ...)
            or in long form ('uparrow', 'space', ...).

        Returns
        -------
        handled : bool
            False if the key has no meaning for playback.
        """
        key = _KEY_ALIASES.get(key, key)

        if key == 'space':
            self.paused = not self.paused
            if self.verbose:
                if self.paused:
                    print("--> animation paused...", end="")
                else:
                    print(" resumed!")
        elif key == 'uparrow':
            self.speed *= 2.
            if self.verbose:
                print(f"--> speed set to {self.speed:3.3f} x real time")
        elif key == 'downarrow':
            self.speed /= 2.
            if self.verbose:
                print(f"--> speed set to {self.speed:3.3f} x real time")
        elif key in ('rightarrow', 'leftarrow'):
            skip = 5. * self.speed * self.dt_real
            if key == 'rightarrow':
                self.sim_time += skip
                direction = 'forward'
            else:
                self.sim_time -= skip
                direction = 'backward'
            if self.verbose:
                print(f"--> skipping {direction} by {skip:3.3f} seconds")
        elif key == 'escape':
            self.quit = True
            if self.verbose:
                print("--> animation aborted")
        else:
            return False

        return True

    def step(self):
        """
        Advance the simulation time by one frame.

        Returns
        -------
        dt_sim : float
            Simulation time elapsed, zero if paused.
        """
        dt_sim = 0. if self.paused else self.speed * self.dt_real
        self.sim_time += dt_sim
        return dt_sim


def _pause_time(dt_sim, time_buffer, frame_rate, min_pause=1e-03):
    """
    Time to wait before the next frame so that simulation time keeps pace with
    wall-clock time, averaged over the last two frames.
    """
    pause = 2. * dt_sim - (time_buffer[0] - time_buffer[2])
    return float(np.clip(pause, min_pause, 1. / frame_rate))


def animate(t, x, plot_fun, speed=1., frame_rate=30., fig_num=1000, verbose=1):
    """
    Play back a trajectory in real time, calling a user supplied plotting
    function on each frame. The state is linearly interpolated (and
    extrapolated) at the current simulation time. See `PlaybackState` for the
    keyboard controls. Playback ends at `t[-1]`, when escape is pressed, or when
    the figure is closed.

    Parameters
    ----------
    t : (n_points,) array
        Strictly increasing time points.
    x : (n_states, n_points) array
        States at times `t`.
    plot_fun : callable
        Function with call signature `plot_fun(t, x)` which draws the system at
        time `t` (float) and state `x` ((n_states,) array) on the current
        figure.
    speed : float, default=1
        Playback speed as a multiple of real time.
    frame_rate : float, default=30
        Target frames per second.
    fig_num : int, default=1000
        Number of the figure to draw in.
    verbose : int, default=1
        Set `verbose=0` to suppress messages about key presses.

    Returns
    -------
    state : `PlaybackState`
        The playback state when the animation ended.
    """
    t = np.reshape(t, (-1,))
    x = np.reshape(x, (-1, t.shape[0]))
    if np.any(np.diff(t) <= 0.):
        raise ValueError("t must be strictly increasing")

    x_interp = interp1d(t, x, axis=-1, fill_value='extrapolate',
                        assume_sorted=True)

    state = PlaybackState(speed=speed, frame_rate=frame_rate, sim_time=t[0],
                          verbose=verbose)

    fig = plt.figure(fig_num)
    cid = fig.canvas.mpl_connect('key_press_event',
                                 lambda event: state.handle_key(event.key))

    time_buffer = np.full(3, time.perf_counter())

    try:
        while state.sim_time < t[-1] and not state.quit:
            plot_fun(state.sim_time, x_interp(state.sim_time))
            fig.canvas.draw_idle()

            dt_sim = state.step()

            time_buffer[1:] = time_buffer[:-1]
            time_buffer[0] = time.perf_counter()
            plt.pause(_pause_time(dt_sim, time_buffer, state.frame_rate))

            if not plt.fignum_exists(fig.number):
                break
    finally:
        fig.canvas.mpl_disconnect(cid)

    return state
