#!/usr/bin/env python3
"""
Bulk: artificial bulk tissue from single cells
bulk_construct
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import InvalidInputError
from ..reference.container import SingleCellReference


@dataclass
class BulkConstruct:
    """
    Attributes
    ----------
    bulk_counts : pd.DataFrame
        Genes x subjects, summed counts of each subject's cells.
    num_real : pd.DataFrame
        Subjects x cell types, number of cells of each type (0 if absent).
    """

    bulk_counts: pd.DataFrame
    num_real: pd.DataFrame

    def true_proportions(self) -> pd.DataFrame:
        """Subjects x cell types cell fractions (rows sum to 1)."""
        totals = self.num_real.sum(axis=1)
        return self.num_real.div(totals.where(totals > 0), axis=0)


def bulk_construct(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    select_ct: Optional[Sequence[str]] = None,
) -> BulkConstruct:
    """
    Sum all cells of each subject into one artificial bulk sample.

    With `select_ct`, only cells of those types are summed and `num_real`
    columns follow the selection order; otherwise cell types keep their order
    of first appearance. Subjects keep their order of first appearance.
    """
    ct = reference.labels(clusters)
    reference.labels(samples)
    if select_ct is not None:
        select_ct = list(dict.fromkeys(str(c) for c in select_ct))
        keep = np.isin(ct, select_ct)
        if not keep.any():
            raise InvalidInputError(f"None of the selected cell types {select_ct} found in column '{clusters}'.")
        reference = reference.select_cells(keep)
        ct = ct[keep]
    sid = reference.labels(samples)

    subjects = [str(s) for s in pd.unique(sid)]
    cell_types = select_ct if select_ct is not None else [str(c) for c in pd.unique(ct)]

    bulk = np.empty((reference.n_genes, len(subjects)), dtype=float)
    for j, s in enumerate(subjects):
        idx = np.flatnonzero(sid == s)
        if len(idx) == 1:
            bulk[:, j] = reference.column(int(idx[0]))
        else:
            bulk[:, j] = reference.column_sum(idx)

    num_real = pd.crosstab(pd.Series(sid, name="subject"), pd.Series(ct, name="cell_type"))
    num_real = num_real.reindex(index=subjects, columns=cell_types, fill_value=0)

    return BulkConstruct(
        bulk_counts=pd.DataFrame(bulk, index=reference.genes, columns=pd.Index(subjects, name="subject")),
        num_real=num_real,
    )


__all__ = ["BulkConstruct", "bulk_construct"]
