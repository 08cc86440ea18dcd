"""
Export of nested numeric parameters for use in compiled C++ code. A parameter
structure (nested dicts or `ProblemParameters`) is converted to a tree of
`ScalarNode`, `MatrixNode` and `GroupNode` objects, with the fields of each
group sorted by name. The tree is then

    * flattened into a single vector of numbers: fields in sorted order,
        matrices row by row, and nested groups flattened recursively into one
        entry of their parent;
    * rendered as C++ header files, one per group, which declare a variable for
        each field and assign it from the flat vector. The top level header is
        `GetParameters.h` and reads the vector from a MEX array `params`; the
        header for a group `Controls` is `GetParameters_Controls.h` and reads
        from an array named `P_Controls`, and so on recursively.
"""

import os
import warnings
from numbers import Number

import numpy as np


CPP_KEYWORDS = frozenset((
    'alignas', 'alignof', 'and', 'and_eq', 'asm', 'auto', 'bitand', 'bitor',
    'bool', 'break', 'case', 'catch', 'char', 'char8_t', 'char16_t',
    'char32_t', 'class', 'compl', 'concept', 'const', 'consteval',
    'constexpr', 'constinit', 'const_cast', 'continue', 'co_await',
    'co_return', 'co_yield', 'decltype', 'default', 'delete', 'do', 'double',
    'dynamic_cast', 'else', 'enum', 'explicit', 'export', 'extern', 'false',
    'float', 'for', 'friend', 'goto', 'if', 'inline', 'int', 'long',
    'mutable', 'namespace', 'new', 'noexcept', 'not', 'not_eq', 'nullptr',
    'operator', 'or', 'or_eq', 'private', 'protected', 'public', 'register',
    'reinterpret_cast', 'requires', 'return', 'short', 'signed', 'sizeof',
    'static', 'static_assert', 'static_cast', 'struct', 'switch', 'template',
    'this', 'thread_local', 'throw', 'true', 'try', 'typedef', 'typeid',
    'typename', 'union', 'unsigned', 'using', 'virtual', 'void', 'volatile',
    'wchar_t', 'while', 'xor', 'xor_eq'))
"""C++20 keywords and alternative operator names, which cannot be used as
parameter names."""

_TOP_LEVEL_ARRAY = 'paramsarray'

_BANNER = ("//////////////////////////////////////////////////////////\n"
           "// DO NOT EDIT THIS FILE                                //\n"
           "//                                                      //\n"
           "// It has been automatically generated by               //\n"
           "//     trajopt.export.write_parameter_file              //\n"
           "//////////////////////////////////////////////////////////\n\n")

_RULE = "////~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~////\n"


class ScalarNode:
    """A single number."""
    def __init__(self, name, value):
        self.name = name
        self.value = float(value)

    @property
    def size(self):
        return 1

    def accept(self, visitor):
        return visitor.visit_scalar(self)


class MatrixNode:
    """A 2d array of numbers. 1d arrays are stored as row vectors."""
    def __init__(self, name, value):
        self.name = name
        value = np.asarray(value, dtype=float)
        if value.ndim < 2:
            value = value.reshape(1, -1)
        self.value = value

    @property
    def size(self):
        return self.value.size

    @property
    def shape(self):
        return self.value.shape

    def accept(self, visitor):
        return visitor.visit_matrix(self)


class GroupNode:
    """
    A named collection of nodes, sorted by name. `skipped` lists the names of
    fields which could not be exported.
    """
    def __init__(self, name, children, skipped=()):
        self.name = name
        self.children = sorted(children, key=lambda node: node.name)
        self.skipped = sorted(skipped)

    @property
    def size(self):
        return sum(child.size for child in self.children)

    def accept(self, visitor):
        return visitor.visit_group(self)


def build_tree(params, name=_TOP_LEVEL_ARRAY):
    """
    Convert nested parameters into a tree of nodes. Fields which are neither
    numeric nor nested groups trigger a `RuntimeWarning` and are left out.

    Parameters
    ----------
    params : dict or `ProblemParameters`
        Parameters to convert. Nested dicts and objects with an `as_dict`
        method become `GroupNode`s.
    name : str, default='paramsarray'
        Name of the root group.

    Returns
    -------
    tree : `GroupNode`

    Raises
    ------
    ValueError
        If a field name is a C++ keyword or not a valid identifier.
    """
    if hasattr(params, 'as_dict'):
        params = params.as_dict()

    children, skipped = [], []
    for key in sorted(params):
        _check_name(key)
        val = params[key]

        if isinstance(val, dict) or hasattr(val, 'as_dict'):
            children.append(build_tree(val, name=key))
            continue

        node = _make_numeric_node(key, val)
        if node is None:
            warnings.warn(f"Parameter {key} has unsupported type "
                          f"{type(val).__name__} and was ignored",
                          RuntimeWarning)
            skipped.append(key)
        else:
            children.append(node)

    return GroupNode(name, children, skipped=skipped)


def _check_name(name):
    if not isinstance(name, str) or not name.isidentifier():
        raise ValueError(f"Parameter name {name!r} is not a valid identifier")
    if name in CPP_KEYWORDS:
        raise ValueError(f"Parameter name {name} is a reserved word in C++. "
                         f"Change it.")


def _make_numeric_node(name, val):
    if isinstance(val, (Number, np.number)) and not isinstance(val, complex):
        return ScalarNode(name, val)
    if isinstance(val, (str, bytes)) or val is None:
        return None

    try:
        val = np.asarray(val)
    except (TypeError, ValueError):
        return None
    if val.dtype.kind not in 'biuf' or val.size == 0 or val.ndim > 2:
        return None
    if val.size == 1:
        return ScalarNode(name, val.item())
    return MatrixNode(name, val)


class _Flattener:
    """Collapses a tree into a single vector."""
    def visit_scalar(self, node):
        return np.array([node.value])

    def visit_matrix(self, node):
        return node.value.reshape(-1, order='C')

    def visit_group(self, node):
        parts = [child.accept(self) for child in node.children]
        return np.concatenate(parts + [np.empty(0)])


class _HeaderWriter:
    """
    Renders one header per group. `visit_group` returns a dict mapping file
    names (without extension) to header text.
    """
    def __init__(self, file_name, array_name=_TOP_LEVEL_ARRAY):
        self.file_name = file_name
        self.array_name = array_name

    def _child_array_name(self, child):
        if self.array_name == _TOP_LEVEL_ARRAY:
            return 'P_' + child.name
        return self.array_name + '_' + child.name

    def visit_group(self, node):
        headers = {}

        # Nested groups appear in this header as flat arrays
        fields = []
        for child in node.children:
            if isinstance(child, GroupNode):
                child_name = self._child_array_name(child)
                writer = _HeaderWriter(self.file_name + '_' + child.name,
                                       array_name=child_name)
                headers.update(child.accept(writer))
                fields.append((child_name, (1, child.size), 'matrix'))
            elif isinstance(child, ScalarNode):
                fields.append((child.name, (1, 1), 'scalar'))
            else:
                fields.append((child.name, child.shape, 'matrix'))

        headers[self.file_name] = self._render(node, fields)
        return headers

    def _render(self, node, fields):
        lines = [_BANNER]

        for name in node.skipped:
            boundary = "//" + "#" * 71 + "\n"
            lines.append(boundary + f"// Warning: Data type for field: {name} "
                         f"is an unsupported data type and was ignored.\n"
                         + boundary + "\n")

        lines.append("\n" + _RULE
                     + "////  Declare each parameter variable                 "
                       "////\n\n")
        lines.append("//Scalar Variables:\n")
        for name, _, kind in fields:
            if kind == 'scalar':
                lines.append(f"    static double {name};\n")
        lines.append("\n//Array Variables:\n")
        for name, shape, kind in fields:
            if kind == 'matrix':
                lines.append(f"    static double {name}{_dims(shape)};\n")
        lines.append("\n////" + " " * 50 + "////\n" + _RULE + "\n\n")

        if self.array_name == _TOP_LEVEL_ARRAY:
            lines.append("\n//Get the pointer to the parameters:\n"
                         f"double *{_TOP_LEVEL_ARRAY} = mxGetPr(params);\n\n")

        lines.append("\n\n" + _RULE
                     + "////  Assign values to each new parameter variable    "
                       "////\n\n")

        offsets = [0]
        for _, (n_rows, n_cols), _ in fields:
            offsets.append(offsets[-1] + n_rows * n_cols)

        lines.append("//Scalar parameters initialized here\n")
        for (name, _, kind), start in zip(fields, offsets):
            if kind == 'scalar':
                lines.append(f"    {name} = {self.array_name}[{start:d}];\n")
        lines.append("\n//Array initialization goes here\n")
        for (name, shape, kind), start in zip(fields, offsets):
            if kind == 'matrix':
                lines.extend(self._assign_matrix(name, shape, start))
                lines.append("\n")

        lines.append("////" + " " * 50 + "////\n" + _RULE + "\n")
        return "".join(lines)

    def _assign_matrix(self, name, shape, start):
        n_rows, n_cols = shape
        if n_rows == 1 or n_cols == 1:
            return [f"    {name}[{j:d}] = {self.array_name}[{start + j:d}];\n"
                    for j in range(n_rows * n_cols)]
        return [f"    {name}[{i:d}][{j:d}] = "
                f"{self.array_name}[{start + i * n_cols + j:d}];\n"
                for i in range(n_rows) for j in range(n_cols)]


def _dims(shape):
    n_rows, n_cols = shape
    if n_rows == 1 and n_cols == 1:
        return "[1]"
    dims = ""
    if n_rows > 1:
        dims += f"[{n_rows:d}]"
    if n_cols > 1:
        dims += f"[{n_cols:d}]"
    return dims


def flatten_parameters(params):
    """
    Collapse nested parameters into a single vector. See `build_tree`.

    Parameters
    ----------
    params : dict, `ProblemParameters`, or `GroupNode`
        Parameters to flatten.

    Returns
    -------
    param_vec : 1d array
        Every numeric value in `params`, with fields in sorted order, matrices
        row by row, and nested groups flattened recursively.
    """
    if not isinstance(params, GroupNode):
        params = build_tree(params)
    return params.accept(_Flattener())


def render_headers(params, base_file_name='GetParameters'):
    """
    Render the C++ headers which unpack the vector from `flatten_parameters`
    into named variables.

    Parameters
    ----------
    params : dict, `ProblemParameters`, or `GroupNode`
        Parameters to export.
    base_file_name : str, default='GetParameters'
        Name of the top level header, without extension. Headers for nested
        groups append `_<field name>`.

    Returns
    -------
    headers : dict
        Maps each header's file name (without extension) to its text.
    """
    if not isinstance(params, GroupNode):
        params = build_tree(params)
    return params.accept(_HeaderWriter(base_file_name))


def write_parameter_file(params, base_file_name='GetParameters',
                         directory='.'):
    """
    Flatten parameters into a vector and write the C++ headers needed to
    unpack it.

    Parameters
    ----------
    params : dict or `ProblemParameters`
        Parameters to export.
    base_file_name : str, default='GetParameters'
        Name of the top level header, without extension.
    directory : path-like, default='.'
        Where to write the headers.

    Returns
    -------
    param_vec : 1d array
        The flattened parameters. See `flatten_parameters`.

    Raises
    ------
    ValueError
        If a field name is a C++ keyword. No files are written in this case.
    """
    tree = build_tree(params)
    headers = render_headers(tree, base_file_name=base_file_name)

    for file_name, text in headers.items():
        with open(os.path.join(directory, file_name + '.h'), 'w') as f:
            f.write(text)

    return flatten_parameters(tree)
