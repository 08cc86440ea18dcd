import os

import numpy as np
from matplotlib import pyplot as plt


_mpl_markers = ['o', 'x', 'd', '*', '+', 'v', '^', '<', '>', 's', 'p', 'h', '8',
                'X', 'P', '.', '1', '2', '3', '4']


def save_fig_dict(figures, save_dir):
    """
    Save a (possibly nested) dict of figures as pdf files. Nested dicts are
    saved in subdirectories named after their keys.

    Parameters
    ----------
    figures : dict
        Maps file names (without extension) to `matplotlib.figure.Figure`
        instances or to other dicts of figures.
    save_dir : path_like
        Directory in which to save the figures.
    """
    if not isinstance(figures, dict):
        raise TypeError("figures must be a dict")

    os.makedirs(save_dir, exist_ok=True)

    for fig_name, fig in figures.items():
        if isinstance(fig, plt.Figure):
            plt.figure(fig)
            plt.savefig(os.path.join(save_dir, fig_name + '.pdf'))
        else:
            subdir = os.path.join(save_dir, fig_name)
            save_fig_dict(fig, subdir)


def plot_trajectory(sols, n_plot=201, x_index=None, u_index=None,
                    x_labels=(), u_labels=(), title='Optimal trajectory',
                    fig_kwargs={}, plot_kwargs={}):
    """
    Plot the states and controls vs. time for one or more trajectory
    optimization solutions. Each solution's continuous interpolant is drawn as a
    line, with markers at the grid nodes.

    Parameters
    ----------
    sols : `TrajectorySolution` or list of `TrajectorySolution`s
        Solutions to plot, e.g. the results on successively refined grids.
    n_plot : int, default=201
        Number of points at which to evaluate each interpolant.
    x_index : array_like of ints, default=[0, 1, ..., n_states]
        Indices of which states to plot.
    u_index : array_like of ints, default=[0, 1, ..., n_controls]
        Indices of which controls to plot.
    x_labels : tuple, default=('$x_1$', '$x_2$', ...)
        Tuple of strings specifying how to label plot axes for states.
    u_labels : tuple, default=('$u_1$', '$u_2$', ...)
        Tuple of strings specifying how to label plot axes for controls.
    title : str, default='Optimal trajectory'
        Title for the figure.
    fig_kwargs : dict, optional
        Keyword arguments to pass during figure creation. See
        `matplotlib.pyplot.figure`.
    plot_kwargs : dict, optional
        Keyword arguments to pass when generating line plots. See
        `matplotlib.pyplot.plot`.

    Returns
    -------
    fig : `matplotlib.figure.Figure`
        Figure instance with one plot for each selected state and control.
    """
    if not isinstance(sols, (list, tuple)):
        sols = [sols]

    n_states = sols[0].x.shape[0]
    n_controls = sols[0].u.shape[0]

    if x_index is None:
        x_index = np.arange(n_states)
    x_index = np.reshape(x_index, -1)
    if u_index is None:
        u_index = np.arange(n_controls)
    u_index = np.reshape(u_index, -1)

    n_plots = x_index.shape[0] + u_index.shape[0]

    x_labels = _check_labels(n_states, 'x', *x_labels)
    u_labels = _check_labels(n_controls, 'u', *u_labels)

    fig_kwargs = {'layout': 'constrained', 'figsize': (6.4, n_plots * 1.5),
                  **fig_kwargs}

    fig, axes = plt.subplots(nrows=n_plots, squeeze=False, **fig_kwargs)
    axes = axes[:, 0]

    axes[0].set_title(title, fontsize=14)
    axes[-1].set_xlabel('$t$', fontsize=12)

    for marker, sol in zip(_mpl_markers, sols):
        label = f'$N = {sol.t.shape[0]:d}$'
        t = np.linspace(sol.t[0], sol.t[-1], n_plot)
        x, u = sol(t)

        rows = [(x, sol.x, j, x_labels[j]) for j in x_index]
        rows += [(u, sol.u, j, u_labels[j]) for j in u_index]

        for ax, (y, y_nodes, j, y_label) in zip(axes, rows):
            lines = ax.plot(t, y[j], label=label, **plot_kwargs)
            ax.plot(sol.t, y_nodes[j], marker, color=lines[0].get_color(),
                    label=label)
            ax.set_ylabel(y_label, fontsize=12)

    if len(sols) > 1:
        make_legend(axes[0], fontsize=10)

    return fig


def make_legend(ax, **opts):
    """
    Make a legend without duplicate entries.

    Parameters
    ----------
    ax : pyplot.Axes
        `Axes` instance for which to add legend.
    **opts : dict, optional
        Keyword arguments to pass to the legend creation. Default arguments are
        `frameon=True`.

    Returns
    -------
    leg : matplotlib.Legend
        `Legend` instance created for `ax`.
    """
    handles, labels = ax.get_legend_handles_labels()
    by_label = dict(zip(labels, handles))
    opts = {'frameon': True, **opts}
    leg = ax.legend(by_label.values(), by_label.keys(), **opts)
    return leg


def _check_labels(n_labels, backup_label, *labels):
    if len(labels) < n_labels:
        if n_labels == 1:
            labels = [f'${backup_label:s}$']
        else:
            new_labels = tuple(f'${backup_label:s}' + '_{' + f'{i + 1:d}' + '}$'
                               for i in range(n_labels))
            labels = labels + new_labels[len(labels):]

    return labels
