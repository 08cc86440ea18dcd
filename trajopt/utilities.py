import numpy as np
import pandas as pd


def saturate(u, lb=None, ub=None):
    """
    Clip controls between lower and upper bounds.

    Parameters
    ----------
    u : (n_controls, n_points) or (n_controls,) array
        Control(s) arranged by (dimension, time).
    lb : (n_controls, 1) or (n_controls,) array, optional
        Lower control bounds. Entries may be `-np.inf`.
    ub : (n_controls, 1) or (n_controls,) array, optional
        Upper control bounds. Entries may be `np.inf`.

    Returns
    -------
    u : array with same shape as `u`
        Control(s) `u` clipped to `[lb, ub]`.
    """
    if lb is None and ub is None:
        return u

    if np.ndim(u) == 0:
        bound_shape = ()
    else:
        bound_shape = (-1,) + (1,) * (np.ndim(u) - 1)
    if lb is not None:
        lb = np.reshape(lb, bound_shape)
    if ub is not None:
        ub = np.reshape(ub, bound_shape)

    return np.clip(u, lb, ub)


def check_int_input(n, argname, low=None):
    """
    Convert an input to an int, raising errors if this is not possible without
    losing information or if the result is smaller than a given minimum.

    Parameters
    ----------
    n : array_like, size 1
        Input to check.
    argname : str
        How to refer to `n` in error messages.
    low : int, optional
        Minimum value which `n` may take.

    Returns
    -------
    n : int
        Input `n` converted to an int.

    Raises
    ------
    TypeError
        If `n` is not an int or an int-valued array_like of size 1.
    ValueError
        If `n < low`.
    """
    if not isinstance(argname, str):
        raise TypeError("argname must be a str")
    if low is not None:
        low = check_int_input(low, 'low')

    try:
        n = int(np.squeeze(n).astype(np.int64, casting='safe'))
    except TypeError:
        raise TypeError(f"{argname} must be an int")

    if low is not None and n < low:
        raise ValueError(f"{argname} must be greater than or equal to {low:d}")

    return n


def resize_vector(array, n_rows):
    """
    Reshape or tile an array_like into a column vector of length `n_rows`.
    Scalars (and arrays of size one) are repeated `n_rows` times.

    Parameters
    ----------
    array : array_like
        Array to reshape or tile into shape `(n_rows, 1)`.
    n_rows : int
        Desired number of rows. `n_rows == -1` uses `np.size(array)`.

    Returns
    -------
    reshaped_array : (n_rows, 1) array
        Column vector version of `array`.

    Raises
    ------
    ValueError
        If the size of `array` is neither 1 nor `n_rows`.
    """
    n_rows = check_int_input(n_rows, 'n_rows')
    if n_rows == -1:
        n_rows = np.size(array)
    elif n_rows < 0:
        raise ValueError("n_rows must be a non-negative int or -1")

    array = np.reshape(np.asarray(array, dtype=float), (-1, 1))
    if array.shape[0] == n_rows:
        return array
    elif array.shape[0] == 1:
        return np.tile(array, (n_rows, 1))

    raise ValueError(f"array has size {array.shape[0]:d}, which is not "
                     f"compatible with the desired shape ({n_rows:d}, 1)")


def pack_dataframe(t, x, u):
    """
    Collect a trajectory into a `DataFrame` which is convenient for saving as a
    csv file.

    Parameters
    ----------
    t : (n_points,) array
        Time values of each data point.
    x : (n_states, n_points) array
        States at times `t`.
    u : (n_controls, n_points) array
        Controls at times `t`. May have zero rows.

    Returns
    -------
    data : DataFrame
        `DataFrame` with `n_points` rows and columns 't', 'x1', ..., 'xn',
        'u1', ..., 'um'.
    """
    t = np.reshape(t, (1, -1))
    x = np.reshape(x, (np.shape(x)[0], t.shape[1]))
    u = np.reshape(u, (np.shape(u)[0], t.shape[1]))

    columns = (['t'] + ['x' + str(i + 1) for i in range(x.shape[0])]
               + ['u' + str(i + 1) for i in range(u.shape[0])])

    return pd.DataFrame(np.vstack((t, x, u)).T, columns=columns)


def unpack_dataframe(data):
    """
    Extract arrays from a `DataFrame` or dict formatted by `pack_dataframe`.

    Parameters
    ----------
    data : DataFrame or dict
        Contains keys/columns 't', 'x1', ..., 'xn', 'u1', ..., 'um' (or 't',
        'x', 'u' for a dict of 2d arrays).

    Returns
    -------
    t : (n_points,) array
    x : (n_states, n_points) array
    u : (n_controls, n_points) array
    """
    if isinstance(data, pd.DataFrame):
        t = data['t'].to_numpy()
        x = data[[c for c in data.columns if c.startswith('x')]].to_numpy().T
        u = data[[c for c in data.columns if c.startswith('u')]].to_numpy().T
        return t, x, u

    if isinstance(data, dict):
        t = np.asarray(data['t'])
        if 'x' in data:
            x, u = np.atleast_2d(data['x']), np.asarray(data['u'])
            return t, x, u.reshape(-1, t.shape[0])
        x = np.stack([data[c] for c in data if c.startswith('x')])
        u = [data[c] for c in data if c.startswith('u')]
        u = np.stack(u) if len(u) else np.empty((0, t.shape[0]))
        return t, x, u

    raise TypeError("data must be a DataFrame or dict")


def save_data(data, filepath, overwrite=True):
    """
    Save a list of trajectories to a single csv file, stacked vertically. Each
    trajectory is assumed to start at `t == 0`, which is used by `load_data`
    to split the file again.

    Parameters
    ----------
    data : list of DataFrames, dicts, or objects with `t`, `x`, `u` attributes
        Trajectories to save.
    filepath : path-like
        Where the csv file should be saved.
    overwrite : bool, default=True
        If False, append to the end of an existing csv file.
    """
    frames = []
    for traj in data:
        if hasattr(traj, 't') and hasattr(traj, 'x'):
            traj = pack_dataframe(traj.t, traj.x, traj.u)
        elif isinstance(traj, dict):
            traj = pack_dataframe(*unpack_dataframe(traj))
        frames.append(traj)

    frames = pd.concat(frames, ignore_index=True)

    if not overwrite:
        try:
            frames = pd.concat([pd.read_csv(filepath), frames],
                               ignore_index=True)
        except FileNotFoundError:
            pass

    frames.to_csv(filepath, index=False)


def load_data(filepath, unpack=True):
    """
    Load trajectories saved by `save_data`.

    Parameters
    ----------
    filepath : path-like
        Location of the csv file.
    unpack : bool, default=True
        If True, return dicts with keys 't', 'x', 'u' holding arrays. If False,
        return one `DataFrame` per trajectory.

    Returns
    -------
    data : list of dicts or DataFrames
        One entry per trajectory found in the file.
    """
    dataframe = pd.read_csv(filepath)

    t0_idx = np.where(dataframe['t'].to_numpy() == 0.)[0]
    t1_idx = np.concatenate((t0_idx[1:], [len(dataframe)]))

    data = []
    for i0, i1 in zip(t0_idx, t1_idx):
        traj = dataframe.iloc[i0:i1].reset_index(drop=True)
        if unpack:
            traj = dict(zip(['t', 'x', 'u'], unpack_dataframe(traj)))
        data.append(traj)

    return data
