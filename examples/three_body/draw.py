import numpy as np
from matplotlib import pyplot as plt


_COLORS = [(0.8, 0.1, 0.1), (0.1, 0.6, 0.1), (0.1, 0.2, 0.8)]


def body_positions(x, problem):
    """Stack the positions of all three bodies into a (3, 2, ...) array."""
    r3, _ = problem.third_body(x)
    return np.stack((x[0:2], x[2:4], r3))


def draw_three_body(t, x, problem, extent=1.5):
    """
    Draw the three bodies on the current figure, for use as the plotting
    callback in `trajopt.animate.animate`.
    """
    positions = body_positions(np.asarray(x, dtype=float), problem)

    plt.clf()
    ax = plt.gca()

    for color, r in zip(_COLORS, positions):
        ax.plot(r[0], r[1], 'o', color=color, markersize=10)

    ax.set_xlim(-extent, extent)
    ax.set_ylim(-extent, extent)
    ax.set_aspect('equal')
    ax.set_title(f'Three-body orbit, $t = {t:2.2f}$', fontsize=14)


def plot_orbit(sol, problem, n_plot=501, title='Periodic three-body orbit'):
    """
    Plot the paths of the three bodies over one period.

    Parameters
    ----------
    sol : `TrajectorySolution`
        The solved orbit.
    problem : `ThreeBody`
        The problem which was solved.
    n_plot : int, default=501
        Number of points at which to evaluate the interpolant.
    title : str, default='Periodic three-body orbit'
        Title for the figure.

    Returns
    -------
    fig : `matplotlib.figure.Figure`
    """
    t = np.linspace(sol.t[0], sol.t[-1], n_plot)
    positions = body_positions(sol(t, return_u=False), problem)
    nodes = body_positions(sol.x, problem)

    fig, ax = plt.subplots(layout='constrained')

    for k, color in enumerate(_COLORS):
        ax.plot(positions[k, 0], positions[k, 1], '-', color=color,
                label=f'body {k + 1:d}')
        ax.plot(nodes[k, 0], nodes[k, 1], '.', color=color)

    ax.set_aspect('equal')
    ax.set_xlabel('$x$', fontsize=12)
    ax.set_ylabel('$y$', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend()

    return fig
