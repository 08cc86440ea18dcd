import numpy as np
from matplotlib import pyplot as plt
from matplotlib.patches import Rectangle


def draw_cart_pole(t, x, problem):
    """
    Draw the cart and pendulum on the current figure, for use as the plotting
    callback in `trajopt.animate.animate`.

    Parameters
    ----------
    t : float
        Current time, shown in the title.
    x : (4,) array
        Current state.
    problem : `CartPole`
        Supplies the pendulum length and track length.
    """
    cart_width, cart_height = 0.3, 0.15
    half_length = problem.parameters.track_length / 2.
    l = problem.parameters.l

    tip = problem.pole_tip(x)

    plt.clf()
    ax = plt.gca()

    ax.plot([-half_length, half_length], [0., 0.], 'k-', linewidth=2)
    ax.add_patch(Rectangle((x[0] - cart_width / 2., - cart_height / 2.),
                           cart_width, cart_height, facecolor=(0.2, 0.7, 0.2),
                           edgecolor='k'))
    ax.plot([x[0], tip[0]], [0., tip[1]], '-', color=(0.1, 0.2, 0.8),
            linewidth=3)
    ax.plot(tip[0], tip[1], 'o', color=(0.8, 0.1, 0.1), markersize=12)

    ax.set_xlim(-half_length - l, half_length + l)
    ax.set_ylim(-1.5 * l, 1.5 * l)
    ax.set_aspect('equal')
    ax.set_title(f'Cart-pole swing-up, $t = {t:2.2f}$', fontsize=14)


def plot_snapshots(sol, problem, n_frames=9, title='Cart-pole swing-up'):
    """
    Plot a sequence of snapshots of the pendulum over the course of a solution,
    shaded from light (start) to dark (finish).

    Parameters
    ----------
    sol : `TrajectorySolution`
        The solved trajectory.
    problem : `CartPole`
        The problem which was solved.
    n_frames : int, default=9
        Number of snapshots.
    title : str, default='Cart-pole swing-up'
        Title for the figure.

    Returns
    -------
    fig : `matplotlib.figure.Figure`
    """
    t = np.linspace(sol.t[0], sol.t[-1], n_frames)
    x = sol(t, return_u=False)
    tip = problem.pole_tip(x)

    fig, ax = plt.subplots(layout='constrained')

    for k, shade in enumerate(np.linspace(0.8, 0., n_frames)):
        color = (shade, shade, shade)
        ax.plot([x[0, k], tip[0, k]], [0., tip[1, k]], '-', color=color)
        ax.plot(tip[0, k], tip[1, k], 'o', color=color)
        ax.plot(x[0, k], 0., 's', color=color)

    ax.set_aspect('equal')
    ax.set_xlabel('horizontal position', fontsize=12)
    ax.set_ylabel('vertical position', fontsize=12)
    ax.set_title(title, fontsize=14)

    return fig
