"""
Basis: relative abundance per (cell type, subject).

For each realized group the counts of its cells are summed gene-wise and
divided by the group's grand total, giving a gene vector that sums to 1.
A group whose total is 0 yields an all-NaN vector; it is never coerced to 0.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..reference.container import SingleCellReference
from .grouping import CellGrouping


def group_profile(reference: SingleCellReference, idx: np.ndarray) -> np.ndarray:
    """Gene-wise summed counts of the cells at positions `idx`."""
    if len(idx) == 1:
        return reference.column(int(idx[0]))
    return reference.column_sum(idx)


def relative_abundance(profile: np.ndarray) -> np.ndarray:
    """Normalize a summed-count vector to sum 1; NaN everywhere when the total is 0."""
    total = profile.sum()
    if total > 0:
        return profile / total
    return np.full(profile.shape, np.nan)


def relative_abundance_table(
    reference: SingleCellReference,
    grouping: CellGrouping,
) -> pd.DataFrame:
    """
    Genes x (cell type, subject) relative-abundance table.

    Groups are reduced one at a time into a preallocated block, so peak memory
    is bounded by genes x groups rather than genes x cells. Only realized
    pairs get a column; an unrealized pair is simply absent.
    """
    values = np.empty((reference.n_genes, len(grouping)), dtype=float)
    for j, (_, idx) in enumerate(grouping):
        values[:, j] = relative_abundance(group_profile(reference, idx))
    return pd.DataFrame(values, index=reference.genes, columns=grouping.pair_index())


__all__ = ["group_profile", "relative_abundance", "relative_abundance_table"]
