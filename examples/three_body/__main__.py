import argparse as ap
import os

import numpy as np
from matplotlib import pyplot as plt

from trajopt import simulate, utilities
from trajopt.animate import animate
from trajopt.collocation import solve_with_refinement

from examples.common_utilities import plotting

from examples.three_body import ThreeBody, FIGURE_EIGHT_PERIOD
from examples.three_body import example_config as config
from examples.three_body.draw import draw_three_body, plot_orbit


parser = ap.ArgumentParser()
parser.add_argument('-s', '--show_plots', action='store_true',
                    help="Show plots at runtime, in addition to saving.")
parser.add_argument('-a', '--animate', action='store_true',
                    help="Animate the periodic orbit.")
args = parser.parse_args()

ocp = ThreeBody(**config.params)

guess = ocp.figure_eight_guess(n_points=config.n_guess)

sol = solve_with_refinement(ocp, n_nodes=config.n_nodes, guess=guess,
                            **config.solve_kwargs)

print("\n" + "+" * 80)

print(f"\nPeriod: {sol.duration:.8f} (reference {FIGURE_EIGHT_PERIOD:.8f})")

energy = ocp.energy(sol.x)
print(f"Energy: {np.mean(energy):.8f}, "
      f"max. variation at nodes: {np.ptp(energy):1.2e}")

# Check periodicity by integrating the dynamics from the initial state
t_sim, x_sim, sim_status = simulate.integrate_open_loop(ocp, sol,
                                                        **config.sim_kwargs)
print(f"Periodicity error in simulation: "
      f"{np.max(np.abs(x_sim[:, -1] - x_sim[:, 0])):1.2e}")

utilities.save_data([sol], os.path.join(config.data_dir, 'solution.csv'))

figs = {'orbit': plot_orbit(sol, ocp),
        'trajectory': plotting.plot_trajectory(
            sol, x_index=[0, 1, 2, 3],
            x_labels=('$x_1$', '$y_1$', '$x_2$', '$y_2$'),
            title='Three-body positions')}
plotting.save_fig_dict(figs, config.fig_dir)

if args.animate:
    t_anim = np.linspace(sol.t[0], sol.t[-1], 300)
    animate(t_anim, sol(t_anim, return_u=False),
            lambda t, x: draw_three_body(t, x, ocp), **config.animation_kwargs)

if args.show_plots:
    plt.show()
