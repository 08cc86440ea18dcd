import os

import numpy as np
import pytest

from trajopt import export
from trajopt.problem import PointMass


def _nested_params():
    return {'mass': 2.,
            'Controls': {'K': np.array([[1., 2., 3.], [4., 5., 6.]]),
                         'gain': 0.5,
                         'Limits': {'u_max': 7., 'u_min': -7.}},
            'a': [8., 9.],
            'length': np.array([3.])}


def test_flatten_order():
    """Fields are flattened in sorted order, matrices row by row, and nested
    groups recursively in place."""
    param_vec = export.flatten_parameters(_nested_params())

    # Sorted: 'Controls' < 'a' < 'length' < 'mass'
    #   Controls: 'K' < 'Limits' < 'gain'
    expected = [1., 2., 3., 4., 5., 6.,
                7., -7.,
                0.5,
                8., 9.,
                3.,
                2.]
    np.testing.assert_array_equal(param_vec, expected)


def test_build_tree():
    tree = export.build_tree(_nested_params())

    assert isinstance(tree, export.GroupNode)
    assert [child.name for child in tree.children] == ['Controls', 'a',
                                                       'length', 'mass']
    assert tree.size == 13

    controls = tree.children[0]
    assert isinstance(controls, export.GroupNode)
    assert isinstance(controls.children[0], export.MatrixNode)
    assert controls.children[0].shape == (2, 3)
    assert isinstance(tree.children[1], export.MatrixNode)
    assert tree.children[1].shape == (1, 2)
    # Arrays of size one are scalars
    assert isinstance(tree.children[2], export.ScalarNode)


def test_problem_parameters():
    ocp = PointMass(mass=3., force=-1.)
    # Unset control bounds are skipped
    with pytest.warns(RuntimeWarning):
        param_vec = export.flatten_parameters(ocp.parameters)
    # duration, force, mass, x_finish, x_start
    np.testing.assert_array_equal(param_vec, [1., -1., 3., 1., 1., 0., 1.])


def test_render_headers():
    headers = export.render_headers(_nested_params(),
                                    base_file_name='GetParameters')

    assert set(headers) == {'GetParameters', 'GetParameters_Controls',
                            'GetParameters_Controls_Limits'}

    top = headers['GetParameters']
    assert "DO NOT EDIT THIS FILE" in top
    assert "double *paramsarray = mxGetPr(params);" in top
    assert "    static double mass;" in top
    assert "    static double length;" in top
    assert "    static double a[2];" in top
    assert "    static double P_Controls[9];" in top
    for j in range(9):
        assert f"    P_Controls[{j:d}] = paramsarray[{j:d}];" in top
    assert "    a[0] = paramsarray[9];" in top
    assert "    a[1] = paramsarray[10];" in top
    assert "    length = paramsarray[11];" in top
    assert "    mass = paramsarray[12];" in top

    controls = headers['GetParameters_Controls']
    assert "mxGetPr" not in controls
    assert "    static double K[2][3];" in controls
    assert "    K[1][2] = P_Controls[5];" in controls
    assert "    static double P_Controls_Limits[2];" in controls
    assert "    P_Controls_Limits[1] = P_Controls[7];" in controls
    assert "    gain = P_Controls[8];" in controls

    limits = headers['GetParameters_Controls_Limits']
    assert "    u_max = P_Controls_Limits[0];" in limits
    assert "    u_min = P_Controls_Limits[1];" in limits


def test_write_parameter_file(tmp_path):
    param_vec = export.write_parameter_file(_nested_params(),
                                            base_file_name='Params',
                                            directory=tmp_path)
    assert param_vec.shape == (13,)
    assert sorted(os.listdir(tmp_path)) == ['Params.h', 'Params_Controls.h',
                                            'Params_Controls_Limits.h']


@pytest.mark.parametrize('name', ['class', 'double', 'requires', 'co_await'])
def test_keyword_name_rejected(tmp_path, name):
    params = {'mass': 1., 'Controls': {name: 2.}}
    with pytest.raises(ValueError, match="reserved word in C\\+\\+"):
        export.write_parameter_file(params, directory=tmp_path)
    assert os.listdir(tmp_path) == []


def test_invalid_identifier_rejected():
    with pytest.raises(ValueError):
        export.flatten_parameters({'1x': 1.})


def test_unsupported_field_skipped():
    params = {'mass': 1., 'label': 'cart', 'callback': print}
    with pytest.warns(RuntimeWarning):
        tree = export.build_tree(params)

    assert [child.name for child in tree.children] == ['mass']
    assert tree.skipped == ['callback', 'label']

    with pytest.warns(RuntimeWarning):
        header = export.render_headers(params)['GetParameters']
    assert ("// Warning: Data type for field: label is an unsupported data "
            "type and was ignored.") in header
