#!/usr/bin/env python3
"""
Basis: TSV/JSON export
export_basis_bundle
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from .bundle import BasisBundle

FLOAT_FORMAT = "%.8g"


def export_basis_bundle(
    bundle: BasisBundle,
    outdir: str,
    extra_summary: Optional[Dict[str, Any]] = None,
) -> Dict[str, str]:
    """
    Write every bundle member to `outdir`.

    Outputs
    -------
      - design_matrix.tsv            (genes × cell types)
      - mean_relative_abundance.tsv  (genes × cell types)
      - variance.tsv | covariance.tsv
      - library_size.tsv             (subjects × cell types; empty cells = missing)
      - cell_size.tsv                (cell_type, cell_size)
      - basis_summary.json

    Returns
    -------
    dict
        Output name -> absolute path.
    """
    os.makedirs(outdir, exist_ok=True)
    paths: Dict[str, str] = {}

    def _write(name: str, frame, index_label=None) -> None:
        path = os.path.abspath(os.path.join(outdir, f"{name}.tsv"))
        frame.to_csv(path, sep="\t", float_format=FLOAT_FORMAT, index_label=index_label)
        paths[name] = path
        print(f"[EXPORT] ✓ {name}.tsv ({frame.shape[0]:,} rows)")

    _write("design_matrix", bundle.design_matrix, index_label="gene")
    _write("mean_relative_abundance", bundle.mean_abundance, index_label="gene")
    if bundle.ct_cov:
        _write("covariance", bundle.covariance)
    else:
        _write("variance", bundle.variance, index_label="gene")
    _write("library_size", bundle.library_size, index_label="subject")
    _write("cell_size", bundle.cell_size.to_frame(), index_label="cell_type")

    summary = bundle.summary()
    if extra_summary:
        summary.update(extra_summary)
    summary["files"] = dict(paths)

    json_path = os.path.abspath(os.path.join(outdir, "basis_summary.json"))
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)
    paths["basis_summary"] = json_path

    print(f"[EXPORT] Output directory: {outdir}")
    return paths


__all__ = ["export_basis_bundle"]
