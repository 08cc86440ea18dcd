import argparse as ap
import os

import numpy as np
from matplotlib import pyplot as plt

from trajopt import simulate, utilities
from trajopt.animate import animate
from trajopt.collocation import solve_with_refinement

from examples.common_utilities import plotting

from examples.acrobot import Acrobot
from examples.acrobot import example_config as config
from examples.acrobot.draw import draw_acrobot


parser = ap.ArgumentParser()
parser.add_argument('-s', '--show_plots', action='store_true',
                    help="Show plots at runtime, in addition to saving.")
parser.add_argument('-a', '--animate', action='store_true',
                    help="Animate the optimal trajectory.")
args = parser.parse_args()

ocp = Acrobot(**config.params)

sol = solve_with_refinement(ocp, n_nodes=config.n_nodes,
                            **config.solve_kwargs)

print("\n" + "+" * 80)

# Check the solution by integrating the dynamics with the optimal control
t_sim, x_sim, sim_status = simulate.integrate_open_loop(ocp, sol,
                                                        **config.sim_kwargs)
print(f"\nFinal state error in open-loop simulation: "
      f"{np.max(np.abs(x_sim[:, -1] - ocp.x_finish)):1.2e}")
energy_gain = ocp.energy(x_sim[:, -1]) - ocp.energy(x_sim[:, 0])
print(f"Energy gained: {energy_gain:.4f}")

utilities.save_data([sol], os.path.join(config.data_dir, 'solution.csv'))

figs = {'trajectory': plotting.plot_trajectory(
            sol, x_labels=('$q_1$', '$q_2$', r'$\dot q_1$', r'$\dot q_2$'),
            u_labels=(r'$\tau$',), title='Acrobot swing-up')}
plotting.save_fig_dict(figs, config.fig_dir)

if args.animate:
    t_anim = np.linspace(sol.t[0], sol.t[-1], 200)
    animate(t_anim, sol(t_anim, return_u=False),
            lambda t, x: draw_acrobot(t, x, ocp), **config.animation_kwargs)

if args.show_plots:
    plt.show()
