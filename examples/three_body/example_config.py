import os


# Directories where data and figures will be saved
main_dir = os.path.join('examples', 'three_body')
data_dir = os.path.join(main_dir, 'data')
fig_dir = os.path.join(main_dir, 'figures')

for directory in [data_dir, fig_dir]:
    os.makedirs(directory, exist_ok=True)

# Changes to default problem parameters
params = {'duration_lb': 6., 'duration_ub': 6.6}

# Number of points in the integrated figure-eight guess
n_guess = 201

# Sequence of grid sizes for mesh refinement
n_nodes = (25, 41, 61)

# Keyword arguments for the trajectory optimization solver
solve_kwargs = {'method': 'chebyshev', 'solver': 'SLSQP', 'tol': 1e-08,
                'max_iter': 300, 'verbose': 1}

# Keyword arguments for open-loop validation of the solution
sim_kwargs = {'method': 'DOP853', 'atol': 1e-10, 'rtol': 1e-10}

# Keyword arguments for the animation
animation_kwargs = {'speed': 1., 'frame_rate': 30., 'fig_num': 102}
