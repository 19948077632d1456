"""
Derived columns built from the numerical functions.

A derived column is described by a small mapping, usually taken from the
YAML configuration:

    mll:
      function: Mxx
      args: [lep1_pt, lep1_eta, lep1_phi, lep1_m, lep2_pt, lep2_eta, lep2_phi, lep2_m]
      clean: -1

String arguments name fields of the input record array, numbers are
passed through as constants. The optional `clean` entry replaces
non-finite results by the given default.
"""

import numbers

import awkward as ak

from src.analysis.functions import FUNCTIONS, clean


def get_function(name):
    """
    Look up a registered function by name.
    """
    try:
        return FUNCTIONS[name]
    except KeyError:
        known = ", ".join(sorted(FUNCTIONS))
        raise KeyError(f"Unknown function '{name}' (known: {known})") from None


def resolve_argument(arg, arrays):
    """
    Turn one configured argument into a value for the function call.

    Parameters
    ----------
    arg : str or number
        Column name in `arrays`, or a numeric constant.
    arrays : ak.Array
        Record array holding the input (and already derived) columns.

    Returns
    -------
    ak.Array or number
    """
    if isinstance(arg, str):
        if arg not in arrays.fields:
            raise KeyError(f"No column named '{arg}'")
        return arrays[arg]

    # YAML true/false would otherwise pass as 1/0
    if isinstance(arg, numbers.Real) and not isinstance(arg, bool):
        return arg

    raise TypeError(
        f"Argument {arg!r} must be a column name or a number, "
        f"not {type(arg).__name__}"
    )


def compute_column(arrays, spec):
    """
    Evaluate a single derived-column spec against `arrays`.
    """
    function = get_function(spec["function"])

    args = [resolve_argument(arg, arrays) for arg in (spec.get("args") or [])]
    kwargs = {
        key: resolve_argument(value, arrays)
        for key, value in (spec.get("kwargs") or {}).items()
    }

    result = function(*args, **kwargs)

    if "clean" in spec:
        result = clean(result, spec["clean"])

    return result


def compute_columns(arrays, column_specs):
    """
    Evaluate every spec in order and attach the results as new fields.
    Later columns may use earlier ones as arguments.
    """
    for name, spec in column_specs.items():
        arrays = ak.with_field(arrays, compute_column(arrays, spec), name)
    return arrays
