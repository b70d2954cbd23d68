#!/usr/bin/env python3
"""
music_deconv.config

Contains:
- USER_DEFAULTS: baseline defaults for CLI & drivers
- resolve_paths(args): expand user paths, normalize relative ones
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional


# -------------------------------------------------------------
# Default user-configurable parameters (used by CLI & drivers)
# -------------------------------------------------------------
# Central defaults used by the CLI. Make sure EVERY key the CLI reads exists here.
USER_DEFAULTS = {
    # Reference inputs (either an .h5ad file/folder OR the TSV pair)
    "ref_h5ad":    "",
    "layer":       "",            # AnnData layer holding raw counts; "" means .X
    "sc_counts":   "",            # genes x cells, first column 'gene'
    "sc_metadata": "",            # one row per cell, first column = barcode

    # Label columns in the cell metadata
    "clusters": "cell_type",
    "samples":  "individual_id",

    # Optional basis inputs
    "select_ct": [],              # empty -> every cell type present
    "markers":   "",              # marker table (gene / cluster columns)
    "cell_size": "",              # two-column table: cell type, size

    # Outputs
    "outdir": "",                 # "" -> ~/music_runs/<timestamp>

    # Flags (strings on purpose; drivers normalize)
    "non_zero": "true",
    "ct_cov":   "false",
    "verbose":  "true",
}

# -------------------------------------------------------------
# Helper: normalize and expand paths
# -------------------------------------------------------------
def _expand_path(p: Optional[str]) -> Optional[str]:
    """Expand ~ and make absolute, or None if blank."""
    if p is None:
        return None
    p = str(p).strip()
    if not p:
        return None
    path = Path(p).expanduser()
    return str(path if path.is_absolute() else path.resolve())


def resolve_paths(args: Any) -> Dict[str, Optional[str]]:
    """
    Normalize all input/output paths in a CLI namespace or dict.

    Works with argparse.Namespace or plain dict.
    Returns a dict of resolved absolute paths (None for blank entries).

    Examples
    --------
    >>> from argparse import Namespace
    >>> ns = Namespace(ref_h5ad='ref.h5ad', outdir='out')
    >>> resolve_paths(ns)["ref_h5ad"]  # doctest: +SKIP
    '/home/me/project/ref.h5ad'
    """
    if hasattr(args, "__dict__"):
        items = vars(args)
    elif isinstance(args, dict):
        items = args
    else:
        raise TypeError("resolve_paths() expects dict or argparse.Namespace")

    keys = [
        "ref_h5ad", "sc_counts", "sc_metadata",
        "markers", "cell_size", "outdir",
    ]
    return {k: _expand_path(items.get(k)) for k in keys}


# -------------------------------------------------------------
# Optional: run as script to print defaults
# -------------------------------------------------------------
if __name__ == "__main__":
    import json
    print(json.dumps(USER_DEFAULTS, indent=2))
