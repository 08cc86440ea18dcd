import argparse as ap
import os

import numpy as np
from matplotlib import pyplot as plt

from trajopt import export, simulate, utilities
from trajopt.animate import animate
from trajopt.collocation import solve_with_refinement

from examples.common_utilities import plotting

from examples.cart_pole import CartPole
from examples.cart_pole import example_config as config
from examples.cart_pole.draw import draw_cart_pole, plot_snapshots


parser = ap.ArgumentParser()
parser.add_argument('-s', '--show_plots', action='store_true',
                    help="Show plots at runtime, in addition to saving.")
parser.add_argument('-a', '--animate', action='store_true',
                    help="Animate the optimal trajectory.")
args = parser.parse_args()

ocp = CartPole(**config.params)

sol = solve_with_refinement(ocp, n_nodes=config.n_nodes,
                            **config.solve_kwargs)

print("\n" + "+" * 80)

# Check the solution by integrating the dynamics with the optimal control
t_sim, x_sim, sim_status = simulate.integrate_open_loop(ocp, sol,
                                                        **config.sim_kwargs)
x_interp = sol(t_sim, return_u=False)
print(f"\nMax. difference between the interpolated and simulated state: "
      f"{np.max(np.abs(x_interp - x_sim)):1.2e}")
print(f"Final state error: "
      f"{np.max(np.abs(x_sim[:, -1] - ocp.x_finish)):1.2e}")

utilities.save_data([sol], os.path.join(config.data_dir, 'solution.csv'))

# Parameters for compiled controllers, skipping unset optional parameters
params = {key: val for key, val in ocp.parameters.as_dict().items()
          if val is not None}
param_vec = export.write_parameter_file(params, directory=config.data_dir)
print(f"Exported {param_vec.shape[0]:d} parameters to {config.data_dir}")

figs = {'trajectory': plotting.plot_trajectory(
            sol, x_labels=('$q_1$', '$q_2$', r'$\dot q_1$', r'$\dot q_2$'),
            title='Cart-pole swing-up'),
        'snapshots': plot_snapshots(sol, ocp)}
plotting.save_fig_dict(figs, config.fig_dir)

if args.animate:
    t_anim = np.linspace(sol.t[0], sol.t[-1], 150)
    animate(t_anim, sol(t_anim, return_u=False),
            lambda t, x: draw_cart_pole(t, x, ocp), **config.animation_kwargs)

if args.show_plots:
    plt.show()
