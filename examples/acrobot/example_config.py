import os


# Directories where data and figures will be saved
main_dir = os.path.join('examples', 'acrobot')
data_dir = os.path.join(main_dir, 'data')
fig_dir = os.path.join(main_dir, 'figures')

for directory in [data_dir, fig_dir]:
    os.makedirs(directory, exist_ok=True)

# Changes to default problem parameters
params = {'duration': 4., 'u_max': 15.}

# Sequence of grid sizes for mesh refinement
n_nodes = (15, 25, 35)

# Keyword arguments for the trajectory optimization solver
solve_kwargs = {'method': 'shooting', 'n_substeps': 4, 'solver': 'SLSQP',
                'tol': 1e-06, 'max_iter': 500, 'verbose': 1}

# Keyword arguments for open-loop validation of the solution
sim_kwargs = {'method': 'RK45', 'atol': 1e-08, 'rtol': 1e-06}

# Keyword arguments for the animation
animation_kwargs = {'speed': 0.5, 'frame_rate': 30., 'fig_num': 102}
