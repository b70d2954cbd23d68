# src/music_deconv/basis/run.py
#!/usr/bin/env python3
"""
Basis stage: Entrypoint
run_basis_stage
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..reference.container import SingleCellReference
from ..reference.io import (
    load_reference,
    read_cell_size_table,
    read_marker_table,
    read_reference_tsvs,
)
from .export import export_basis_bundle
from .orchestrator import music_basis


def load_stage_reference(
    ref_h5ad: Optional[str] = None,
    sc_counts: Optional[str] = None,
    sc_metadata: Optional[str] = None,
    layer: Optional[str] = None,
) -> SingleCellReference:
    """Load the reference from an .h5ad file/folder, or else from the TSV pair."""
    if ref_h5ad:
        return load_reference(ref_h5ad, layer=layer)
    if sc_counts and sc_metadata:
        return read_reference_tsvs(sc_counts, sc_metadata)
    raise ValueError("Provide ref_h5ad, or both sc_counts and sc_metadata.")


def run_basis_stage(
    *,
    outdir: str,
    clusters: str,
    samples: str,
    ref_h5ad: Optional[str] = None,
    sc_counts: Optional[str] = None,
    sc_metadata: Optional[str] = None,
    layer: Optional[str] = None,
    select_ct: Optional[List[str]] = None,
    markers_path: Optional[str] = None,
    cell_size_path: Optional[str] = None,
    non_zero: bool = True,
    ct_cov: bool = False,
    verbose: bool = True,
    reference: Optional[SingleCellReference] = None,
) -> Tuple[Dict[str, str], Dict[str, Any]]:
    """
    Load inputs, build the basis and export it.

    An already-loaded `reference` skips the loading step.

    Returns
    -------
    (paths, summary)
    """
    if reference is None:
        reference = load_stage_reference(ref_h5ad, sc_counts, sc_metadata, layer)

    markers = read_marker_table(markers_path) if markers_path else None
    cell_size = read_cell_size_table(cell_size_path) if cell_size_path else None

    print(f"[BASIS] clusters='{clusters}', samples='{samples}', ct_cov={ct_cov}, non_zero={non_zero}")
    bundle = music_basis(
        reference,
        clusters,
        samples,
        non_zero=non_zero,
        markers=markers,
        select_ct=select_ct,
        cell_size=cell_size,
        ct_cov=ct_cov,
        verbose=verbose,
    )

    run_info = {
        "inputs": {
            "ref_h5ad": ref_h5ad,
            "sc_counts": sc_counts,
            "sc_metadata": sc_metadata,
            "layer": layer,
            "markers": markers_path,
            "cell_size": cell_size_path,
        },
        "clusters": clusters,
        "samples": samples,
        "select_ct": select_ct,
        "non_zero": non_zero,
        "cell_size_source": "user" if cell_size is not None else "estimated",
    }
    paths = export_basis_bundle(bundle, outdir, extra_summary=run_info)
    summary = {**bundle.summary(), **run_info}

    print(f"[BASIS] Design matrix: {bundle.design_matrix.shape[0]:,} genes × {bundle.design_matrix.shape[1]} cell types")
    return paths, summary


__all__ = ["load_stage_reference", "run_basis_stage"]
