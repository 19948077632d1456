"""
Main entry point for evaluating the numerical functions.

Reads a YAML configuration holding a small table of input columns
(particle kinematics, fit variables, ...) and a set of derived columns,
evaluates each derived column with the function it names, and prints
the results together with a short summary.
"""

import argparse
import time

import yaml
import awkward as ak
import numpy as np

from src.analysis.columns import compute_column


# Argument parsing and config loading
def parse_args():
    parser = argparse.ArgumentParser(
        description="Evaluate derived columns with the analysis numerical functions."
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--columns",
        nargs="+",
        default=None,
        help="Only evaluate these derived columns (default: all configured).",
    )
    return parser.parse_args()


def load_config(path):
    with open(path) as f:
        return yaml.safe_load(f)


def build_inputs(config):
    """
    Build the input record array from the 'inputs' block of the config.
    Each entry is a column: a flat list, or a list of lists for jagged data.
    """
    inputs = config.get("inputs") or {}
    if not inputs:
        raise RuntimeError("No input columns found under 'inputs' in the configuration.")
    return ak.Array(inputs)


def safe_compute_column(arrays, name, spec):
    """
    Wrapper so that a bad column doesn't kill the whole job.
    """
    try:
        return compute_column(arrays, spec)
    except Exception as e:
        print(f"[WARN] Error in column {name}: {e}")
        return None


def count_non_finite(values):
    if isinstance(values, ak.Array):
        flat = ak.to_numpy(ak.flatten(values, axis=None))
    else:
        flat = np.ravel(values)
    return int(np.count_nonzero(~np.isfinite(flat)))


def main():
    args = parse_args()
    config = load_config(args.config)

    arrays = build_inputs(config)
    print(f"Loaded {len(arrays)} rows with input columns {arrays.fields}.")

    column_specs = config.get("columns") or {}
    names = args.columns if args.columns else list(column_specs)

    for name in names:
        if name not in column_specs:
            print(f"[WARN] Column {name} is not defined in {args.config}; skipping.")
    names = [name for name in names if name in column_specs]

    print_rows = config.get("print_rows", 5)

    start_time = time.perf_counter()

    results = {}
    for i, name in enumerate(names, start=1):
        values = safe_compute_column(arrays, name, column_specs[name])
        if values is not None:
            results[name] = values
            # make the result available to the columns that follow
            if isinstance(values, ak.Array):
                arrays = ak.with_field(arrays, values, name)
        print(f"[{i}/{len(names)}] Completed {name}")

    wall_time = time.perf_counter() - start_time

    if not results:
        raise RuntimeError("No derived columns were computed!")

    for name, values in results.items():
        if isinstance(values, ak.Array):
            preview = ak.to_list(values[:print_rows])
        else:
            preview = values
        n_bad = count_non_finite(values)
        print(f"{name} = {preview}")
        if n_bad > 0:
            print(f"[INFO] {name}: {n_bad} non-finite value(s)")

    # Final summary
    print(f"Computed {len(results)} of {len(names)} column(s) over {len(arrays)} rows.")
    print(f"Total wall time: {wall_time:.3f} s")

    return results


if __name__ == "__main__":
    main()
