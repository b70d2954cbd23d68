#!/usr/bin/env python3
"""
Basis: per-statistic wrappers

Each wrapper runs the same preparation as `music_basis` (cell-type selection,
optional zero-gene filter) and returns a single statistic. Use `music_basis`
when more than one statistic is needed; it aggregates only once.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

import pandas as pd

from ..reference.container import SingleCellReference
from . import cross_subject as xs
from .design import build_design_matrix
from .library_size import cell_type_library_size, library_size_table
from .orchestrator import PreparedReference, prepare_reference
from .relative_abundance import relative_abundance_table

__all__ = [
    "mean_relative_abundance",
    "relative_abundance_by_subject",
    "cross_subject_variance",
    "cross_subject_covariance",
    "library_size_matrix",
    "design_matrix",
]


def _theta(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool,
    select_ct: Optional[Sequence[str]],
    markers: Any = None,
) -> Tuple[PreparedReference, pd.DataFrame]:
    prep = prepare_reference(
        reference, clusters, samples, non_zero=non_zero, select_ct=select_ct, markers=markers
    )
    return prep, relative_abundance_table(prep.reference, prep.grouping)


def mean_relative_abundance(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = False,
    markers: Any = None,
    select_ct: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Genes x cell types cross-subject mean of relative abundance."""
    prep, theta = _theta(reference, clusters, samples, non_zero, select_ct, markers)
    return prep.restrict_genes(xs.cross_subject_mean(theta, prep.cell_types))


def relative_abundance_by_subject(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = False,
    select_ct: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Genes x (cell type, subject) relative abundance.

    With `select_ct` the columns follow the selection order, subjects keeping
    their order of appearance within each cell type.
    """
    prep, theta = _theta(reference, clusters, samples, non_zero, select_ct)
    if select_ct is None:
        return theta
    order = [pair for ct in prep.cell_types for pair in theta.columns if pair[0] == ct]
    return theta.loc[:, order]


def cross_subject_variance(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = False,
    markers: Any = None,
    select_ct: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Genes x cell types cross-subject variance of relative abundance."""
    prep, theta = _theta(reference, clusters, samples, non_zero, select_ct, markers)
    return prep.restrict_genes(xs.cross_subject_variance(theta, prep.cell_types))


def cross_subject_covariance(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = False,
    markers: Any = None,
    select_ct: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    (cell type, cell type) x genes covariance across subjects.

    Plain covariance: entries touching a cell type with a missing subject stay
    NaN. `music_basis(..., ct_cov=True)` applies the complete-subject fallback.
    """
    prep, theta = _theta(reference, clusters, samples, non_zero, select_ct, markers)
    cov = xs.cross_subject_covariance(theta, prep.cell_types, prep.grouping.subjects, fallback=False)
    return prep.restrict_genes(cov, axis=1)


def library_size_matrix(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = False,
    select_ct: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Subjects x cell types mean library size; zero and missing entries are NaN."""
    prep = prepare_reference(reference, clusters, samples, non_zero=non_zero, select_ct=select_ct)
    return library_size_table(prep.reference, prep.grouping).reindex(columns=prep.cell_type_index)


def design_matrix(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = False,
    markers: Any = None,
    select_ct: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Genes x cell types mean relative abundance scaled by the estimated cell size."""
    prep, theta = _theta(reference, clusters, samples, non_zero, select_ct, markers)
    mean = xs.cross_subject_mean(theta, prep.cell_types)
    sizes = cell_type_library_size(library_size_table(prep.reference, prep.grouping))
    return prep.restrict_genes(build_design_matrix(mean, sizes))
