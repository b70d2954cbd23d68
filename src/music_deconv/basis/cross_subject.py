"""
Basis: cross-subject statistics of relative abundance.

All three statistics read the same genes x (cell type, subject) table built by
`relative_abundance_table`:

- mean      : per cell type, NaN entries omitted gene by gene
- variance  : per cell type, unbiased (n - 1), NaN omitted; < 2 subjects -> NaN
- covariance: per gene, cell type x cell type across subjects; NaN propagates,
              then the optional fallback refills the affected rows/columns
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from .grouping import CELL_TYPE, SUBJECT

logger = logging.getLogger(__name__)


def cross_subject_mean(theta: pd.DataFrame, cell_types: Sequence[str]) -> pd.DataFrame:
    """
    Genes x cell types mean relative abundance.

    Subjects without cells of a type contribute nothing (they have no column);
    NaN entries are omitted per gene, so a gene observed in only some subjects
    is averaged over those. A gene with no observed subject stays NaN.
    """
    mean = theta.T.groupby(level=CELL_TYPE, sort=False).mean().T
    return mean.reindex(columns=pd.Index(list(cell_types), name=CELL_TYPE))


def cross_subject_variance(theta: pd.DataFrame, cell_types: Sequence[str]) -> pd.DataFrame:
    """
    Genes x cell types sample variance (n - 1 denominator) across subjects.

    NaN entries are omitted per gene; fewer than two observed subjects gives NaN.
    """
    var = theta.T.groupby(level=CELL_TYPE, sort=False).var(ddof=1).T
    return var.reindex(columns=pd.Index(list(cell_types), name=CELL_TYPE))


def subject_cube(
    theta: pd.DataFrame,
    cell_types: Sequence[str],
    subjects: Sequence[str],
) -> np.ndarray:
    """
    Reshape the table into a (subjects, cell types, genes) array.

    Pairs with no cells, and cell types absent from the table, are filled with
    NaN.
    """
    cell_types, subjects = list(cell_types), list(subjects)
    full = pd.MultiIndex.from_product([cell_types, subjects], names=[CELL_TYPE, SUBJECT])
    grid = theta.reindex(columns=full).to_numpy(dtype=float)
    cube = grid.reshape(theta.shape[0], len(cell_types), len(subjects))
    return cube.transpose(2, 1, 0)


def sample_covariance(cube: np.ndarray) -> np.ndarray:
    """
    Per-gene covariance of a (subjects, cell types, genes) array.

    Returns (cell types, cell types, genes). NaN propagates: any entry that
    involves a cell type with a NaN subject is NaN. Fewer than two subjects
    gives an all-NaN result.
    """
    n_sub, n_ct, n_genes = cube.shape
    if n_sub < 2:
        return np.full((n_ct, n_ct, n_genes), np.nan)
    centered = cube - cube.mean(axis=0, keepdims=True)
    return np.einsum("sig,sjg->ijg", centered, centered) / (n_sub - 1)


def cross_subject_covariance(
    theta: pd.DataFrame,
    cell_types: Sequence[str],
    subjects: Sequence[str],
    fallback: bool = True,
) -> pd.DataFrame:
    """
    (cell type, cell type) x genes covariance of relative abundance.

    With `fallback`, every row and column that belongs to a cell type with a
    missing subject is replaced by the covariance over complete subjects only,
    i.e. subjects that have a value for every cell type at the first gene.
    This is an approximation: the complete-subject estimate stands in for the
    affected cell types rather than dropping them.
    """
    cell_types = list(cell_types)
    cube = subject_cube(theta, cell_types, subjects)
    cov = sample_covariance(cube)

    if fallback and cube.shape[2] > 0:
        missing = np.isnan(cube).any(axis=0)
        if missing.any():
            complete = ~np.isnan(cube[:, :, 0]).any(axis=1)
            affected = [ct for ct, m in zip(cell_types, missing.any(axis=1)) if m]
            logger.warning(
                "Covariance for %s uses %d complete subject(s) out of %d (missing subject/cell type pairs).",
                affected, int(complete.sum()), cube.shape[0],
            )
            cov_complete = sample_covariance(cube[complete])
            replace = missing[:, None, :] | missing[None, :, :]
            cov = np.where(replace, cov_complete, cov)

    return covariance_frame(cov, cell_types, theta.index)


def covariance_frame(cov: np.ndarray, cell_types: Sequence[str], genes: pd.Index) -> pd.DataFrame:
    """Flatten a (ct, ct, genes) array into a (ct_i, ct_j) x genes DataFrame."""
    n_ct = len(cell_types)
    index = pd.MultiIndex.from_product(
        [list(cell_types), list(cell_types)], names=[f"{CELL_TYPE}_i", f"{CELL_TYPE}_j"]
    )
    return pd.DataFrame(cov.reshape(n_ct * n_ct, len(genes)), index=index, columns=genes)


__all__ = [
    "cross_subject_mean",
    "cross_subject_variance",
    "subject_cube",
    "sample_covariance",
    "cross_subject_covariance",
    "covariance_frame",
]
