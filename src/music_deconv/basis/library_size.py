"""
Basis: cell-type-specific library size.

Per (cell type, subject) the library size is the mean total count per cell of
that group. It is computed from per-cell totals of the raw counts, independently
of the relative-abundance table. Zero entries are treated as missing before the
cross-subject average, so a subject lacking a cell type never pulls it down.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ..reference.container import SingleCellReference
from .grouping import CELL_TYPE, SUBJECT, CellGrouping

logger = logging.getLogger(__name__)


def group_library_size(cell_totals: np.ndarray, idx: np.ndarray) -> float:
    """Mean total count per cell over the cells at positions `idx`."""
    if len(idx) == 1:
        return float(cell_totals[idx[0]])
    return float(cell_totals[idx].sum()) / len(idx)


def library_size_table(reference: SingleCellReference, grouping: CellGrouping) -> pd.DataFrame:
    """
    Subjects x cell types mean library size.

    Unrealized pairs and zero-size groups are NaN; entries are otherwise > 0.
    """
    totals = reference.cell_totals()
    out = pd.DataFrame(
        np.nan,
        index=pd.Index(grouping.subjects, name=SUBJECT),
        columns=pd.Index(grouping.cell_types, name=CELL_TYPE),
    )
    for (ct, sid), idx in grouping:
        out.at[sid, ct] = group_library_size(totals, idx)
    return out.mask(out == 0)


def cell_type_library_size(library_size: pd.DataFrame) -> pd.Series:
    """Cross-subject mean of each cell type's library size, NaN omitted."""
    scalar = library_size.mean(axis=0, skipna=True)
    empty = scalar.index[scalar.isna()].tolist()
    if empty:
        logger.warning("No subject with a non-zero library size for cell type(s): %s", empty)
    scalar.name = "cell_size"
    return scalar


__all__ = ["group_library_size", "library_size_table", "cell_type_library_size"]
