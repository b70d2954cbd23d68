"""
Basis: entry point
music_basis
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import InvalidInputError
from ..reference.container import SingleCellReference
from ..reference.markers import flatten_markers
from .bundle import BasisBundle
from .cross_subject import cross_subject_covariance, cross_subject_mean, cross_subject_variance
from .design import build_design_matrix, validate_cell_size
from .grouping import CELL_TYPE, CellGrouping
from .library_size import cell_type_library_size, library_size_table
from .relative_abundance import relative_abundance_table

logger = logging.getLogger(__name__)


def _progress(verbose: bool, msg: str) -> None:
    if verbose:
        print(f"[BASIS] {msg}")


@dataclass(frozen=True)
class PreparedReference:
    """Reference after cell-type selection and gene filtering, with its grouping."""

    reference: SingleCellReference
    grouping: CellGrouping
    cell_types: List[str]
    marker_genes: Optional[pd.Index]

    @property
    def cell_type_index(self) -> pd.Index:
        return pd.Index(self.cell_types, name=CELL_TYPE)

    def restrict_genes(self, frame: pd.DataFrame, axis: int = 0) -> pd.DataFrame:
        """Keep marker genes only (input row order); no-op without markers."""
        if self.marker_genes is None:
            return frame
        if axis == 0:
            return frame.loc[self.marker_genes]
        return frame.loc[:, self.marker_genes]


def resolve_markers(markers: Any, genes: pd.Index) -> Optional[pd.Index]:
    """
    Intersect a marker specification with the available genes.

    The result follows the reference's gene order, not the marker list's.
    """
    if markers is None:
        return None
    wanted = set(flatten_markers(markers))
    keep = genes[genes.isin(wanted)]
    n_missing = len(wanted) - len(keep)
    if n_missing:
        logger.warning("%d of %d marker gene(s) not found in the reference were ignored.",
                       n_missing, len(wanted))
    if len(keep) == 0:
        logger.warning("No marker gene is present in the reference; gene-indexed outputs will be empty.")
    return keep


def prepare_reference(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    non_zero: bool = True,
    select_ct: Optional[Sequence[str]] = None,
    markers: Any = None,
) -> PreparedReference:
    """
    Select cells of the chosen cell types, then drop genes with zero total.

    Label columns are checked first; an unknown column raises
    InvalidInputError before anything is filtered.
    """
    ct = reference.labels(clusters)
    reference.labels(samples)

    if select_ct is not None:
        select_ct = list(dict.fromkeys(str(c) for c in select_ct))
        keep = np.isin(ct, select_ct)
        if not keep.any():
            raise InvalidInputError(
                f"None of the selected cell types {select_ct} found in column '{clusters}'."
            )
        absent = sorted(set(select_ct) - set(ct[keep]))
        if absent:
            logger.warning("Selected cell type(s) absent from the reference: %s", absent)
        reference = reference.select_cells(keep)
    elif reference.n_cells == 0:
        raise InvalidInputError("Reference contains no cells.")

    if non_zero:
        expressed = reference.gene_totals() > 0
        if not expressed.all():
            logger.info("Dropping %d gene(s) with zero total count.", int((~expressed).sum()))
            reference = reference.select_genes(expressed)

    grouping = CellGrouping.from_reference(reference, clusters, samples)
    cell_types = select_ct if select_ct is not None else list(grouping.cell_types)
    return PreparedReference(
        reference=reference,
        grouping=grouping,
        cell_types=cell_types,
        marker_genes=resolve_markers(markers, reference.genes),
    )


def music_basis(
    reference: SingleCellReference,
    clusters: str,
    samples: str,
    *,
    non_zero: bool = True,
    markers: Any = None,
    select_ct: Optional[Sequence[str]] = None,
    cell_size: Optional[pd.DataFrame] = None,
    ct_cov: bool = False,
    verbose: bool = True,
) -> BasisBundle:
    """
    Build the design matrix, library sizes and cross-subject dispersion.

    Parameters
    ----------
    reference : SingleCellReference
        Raw counts (genes x cells) with per-cell metadata.
    clusters, samples : str
        Metadata columns holding cell-type and subject labels.
    non_zero : bool
        Drop genes whose total count over the retained cells is 0.
    markers : list | list of lists | dict | None
        Genes to keep in the gene-indexed outputs; None keeps all.
    select_ct : sequence of str | None
        Cell types to use, in output order; None uses every type present.
    cell_size : DataFrame | None
        Two columns (cell type, size) replacing the estimated cell sizes.
    ct_cov : bool
        Compute the cell-type covariance per gene instead of the variance.
    verbose : bool
        Print a progress line after each stage.

    Returns
    -------
    BasisBundle

    Raises
    ------
    InvalidInputError
        Unknown label column or unusable reference.
    ConfigurationError
        Malformed `cell_size`. Raised before any aggregation.
    """
    prep = prepare_reference(
        reference, clusters, samples, non_zero=non_zero, select_ct=select_ct, markers=markers
    )
    grouping = prep.grouping
    size_override = None
    if cell_size is not None:
        size_override = validate_cell_size(cell_size, grouping.cell_types)

    theta = relative_abundance_table(prep.reference, grouping)
    mean_abundance = cross_subject_mean(theta, grouping.cell_types)
    _progress(verbose, "Creating relative abundance matrix...")

    variance = covariance = None
    if ct_cov:
        covariance = cross_subject_covariance(theta, prep.cell_types, grouping.subjects, fallback=True)
        covariance = prep.restrict_genes(covariance, axis=1)
        _progress(verbose, "Creating covariance matrix...")
    else:
        variance = cross_subject_variance(theta, prep.cell_types)
        variance = prep.restrict_genes(variance)
        _progress(verbose, "Creating variance matrix...")

    library_size = library_size_table(prep.reference, grouping)
    cell_sizes = cell_type_library_size(library_size)
    _progress(verbose, "Creating library size matrix...")

    if size_override is not None:
        size_override.index.name = cell_sizes.index.name
        cell_sizes = size_override

    design = build_design_matrix(mean_abundance, cell_sizes)
    _progress(verbose, "Creating design matrix...")

    cts = prep.cell_type_index
    return BasisBundle(
        design_matrix=prep.restrict_genes(design.reindex(columns=cts)),
        library_size=library_size.reindex(columns=cts),
        cell_size=cell_sizes.reindex(cts),
        mean_abundance=prep.restrict_genes(mean_abundance.reindex(columns=cts)),
        variance=variance,
        covariance=covariance,
    )


__all__ = ["PreparedReference", "prepare_reference", "resolve_markers", "music_basis"]
