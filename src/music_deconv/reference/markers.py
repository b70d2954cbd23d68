#!/usr/bin/env python3
"""
Reference: marker genes
flatten_markers, compute_markers
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import anndata as ad
import numpy as np
import scanpy as sc


def flatten_markers(markers: Any) -> List[str]:
    """
    Flatten a marker specification into one gene list.

    Accepts a single gene name, a flat list, a list of lists, or a mapping of
    cell type -> gene list. Duplicates are dropped keeping the first occurrence.
    """
    if markers is None:
        return []
    if isinstance(markers, str):
        return [markers]
    if isinstance(markers, Mapping):
        markers = list(markers.values())

    out: List[str] = []
    seen = set()
    for item in markers:
        genes = flatten_markers(item) if not isinstance(item, str) else [item]
        for g in genes:
            if g not in seen:
                seen.add(g)
                out.append(g)
    return out


def compute_markers(
    adata: ad.AnnData,
    cell_type_key: str,
    top_n: int = 50,
    min_cells_per_group: int = 10,
) -> Dict[str, List[str]]:
    """
    Rank per-cell-type marker genes with Scanpy's rank_genes_groups (Wilcoxon).

    Parameters
    ----------
    adata : AnnData
        Single-cell reference holding raw counts in `.X`.
    cell_type_key : str
        Column in `adata.obs` containing cell-type labels.
    top_n : int
        Number of top markers per cell type to keep.
    min_cells_per_group : int
        Skip cell types with fewer than this many cells.

    Returns
    -------
    dict
        cell type -> ranked marker genes; feed it straight to `markers=`.
    """
    if cell_type_key not in adata.obs.columns:
        return {}

    counts = adata.obs[cell_type_key].astype(str).value_counts()
    valid_groups = counts[counts >= min_cells_per_group].index.tolist()
    if len(valid_groups) < 2:
        return {}

    tmp = adata[adata.obs[cell_type_key].astype(str).isin(valid_groups)].copy()
    tmp.obs[cell_type_key] = tmp.obs[cell_type_key].astype(str).astype("category")

    # rank on normalized, log-scaled values; the basis itself uses raw counts
    tmp.raw = None
    sc.pp.normalize_total(tmp, target_sum=1e4)
    sc.pp.log1p(tmp)
    sc.tl.rank_genes_groups(
        tmp,
        groupby=cell_type_key,
        method="wilcoxon",
        n_genes=top_n,
        use_raw=False,
    )

    names = tmp.uns["rank_genes_groups"]["names"]
    out: Dict[str, List[str]] = {}
    for grp in names.dtype.names:
        out[grp] = np.array(names[grp]).astype(str)[:top_n].tolist()
    return out


__all__ = ["flatten_markers", "compute_markers"]
