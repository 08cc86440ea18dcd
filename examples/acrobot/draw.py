from matplotlib import pyplot as plt


def draw_acrobot(t, x, problem):
    """
    Draw the acrobot on the current figure, for use as the plotting callback in
    `trajopt.animate.animate`.

    Parameters
    ----------
    t : float
        Current time, shown in the title.
    x : (4,) array
        Current state.
    problem : `Acrobot`
        Supplies the link lengths.
    """
    elbow, tip = problem.joint_positions(x)
    reach = 1.1 * (problem.parameters.l1 + problem.parameters.l2)

    plt.clf()
    ax = plt.gca()

    ax.plot([0., elbow[0]], [0., elbow[1]], '-', color=(0.1, 0.2, 0.8),
            linewidth=4)
    ax.plot([elbow[0], tip[0]], [elbow[1], tip[1]], '-',
            color=(0.8, 0.1, 0.1), linewidth=4)
    ax.plot([0., elbow[0], tip[0]], [0., elbow[1], tip[1]], 'ko',
            markersize=6)

    ax.set_xlim(-reach, reach)
    ax.set_ylim(-reach, reach)
    ax.set_aspect('equal')
    ax.set_title(f'Acrobot swing-up, $t = {t:2.2f}$', fontsize=14)
