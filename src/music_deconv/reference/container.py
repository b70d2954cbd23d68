#!/usr/bin/env python3
"""
Reference: single-cell count container
SingleCellReference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import anndata as ad
import numpy as np
import pandas as pd
import scipy.sparse as sp

from ..errors import InvalidInputError

Counts = Union[np.ndarray, sp.csc_matrix]


@dataclass(frozen=True)
class SingleCellReference:
    """
    Read-only genes x cells count matrix plus per-cell metadata.

    Every selection method returns a new container; the caller's arrays are
    never written to. Sparse input is kept as CSC so that the per-group column
    slices taken by the aggregators stay cheap.

    Attributes
    ----------
    counts : np.ndarray | scipy.sparse.csc_matrix
        Non-negative counts, genes (rows) x cells (columns).
    genes : pd.Index
        Unique gene names, one per row of `counts`.
    obs : pd.DataFrame
        Cell metadata, one row per column of `counts`.
    """

    counts: Counts
    genes: pd.Index
    obs: pd.DataFrame

    def __post_init__(self):
        counts = self.counts
        if sp.issparse(counts):
            counts = counts.tocsc()
        else:
            counts = np.asarray(counts)
        if counts.ndim != 2:
            raise InvalidInputError(f"Count matrix must be 2-D, got {counts.ndim}-D.")

        genes = pd.Index(self.genes).astype(str)
        if len(genes) != counts.shape[0]:
            raise InvalidInputError(
                f"Gene names ({len(genes)}) != number of rows in counts ({counts.shape[0]})."
            )
        if genes.has_duplicates:
            dups = genes[genes.duplicated()].unique().tolist()[:5]
            raise InvalidInputError(f"Gene names must be unique; duplicated: {dups}")

        if len(self.obs) != counts.shape[1]:
            raise InvalidInputError(
                f"Metadata rows ({len(self.obs)}) != number of cells in counts ({counts.shape[1]})."
            )

        values = counts.data if sp.issparse(counts) else counts
        if values.size:
            if not np.all(np.isfinite(values)):
                raise InvalidInputError("Counts contain NaN or infinite values.")
            if values.min() < 0:
                raise InvalidInputError("Counts must be non-negative.")

        object.__setattr__(self, "counts", counts)
        object.__setattr__(self, "genes", genes.rename("gene"))

    # ---------------- constructors ----------------
    @classmethod
    def from_dataframe(cls, counts: pd.DataFrame, obs: pd.DataFrame) -> "SingleCellReference":
        """
        Build from a genes x cells DataFrame.

        If `obs` is indexed by the same cell barcodes as the count columns it is
        aligned by label; otherwise rows are taken in order.
        """
        if obs.index.isin(counts.columns).all() and len(obs) == counts.shape[1]:
            obs = obs.loc[counts.columns]
        return cls(counts=counts.to_numpy(), genes=counts.index, obs=obs)

    @classmethod
    def from_anndata(cls, adata: ad.AnnData, layer: Optional[str] = None) -> "SingleCellReference":
        """Build from an AnnData (cells x genes); counts are transposed to genes x cells."""
        if layer:
            if layer not in adata.layers:
                raise InvalidInputError(f"Layer '{layer}' not found in AnnData layers {list(adata.layers)}")
            X = adata.layers[layer]
        else:
            X = adata.X
        counts = X.T.tocsc() if sp.issparse(X) else np.asarray(X).T
        return cls(counts=counts, genes=adata.var_names, obs=adata.obs)

    # ---------------- shape ----------------
    @property
    def n_genes(self) -> int:
        return int(self.counts.shape[0])

    @property
    def n_cells(self) -> int:
        return int(self.counts.shape[1])

    @property
    def is_sparse(self) -> bool:
        return sp.issparse(self.counts)

    # ---------------- access ----------------
    def labels(self, column: str) -> np.ndarray:
        """Per-cell labels of a metadata column, as strings."""
        if column not in self.obs.columns:
            raise InvalidInputError(
                f"Column '{column}' not found in cell metadata (available: {list(self.obs.columns)})"
            )
        return self.obs[column].astype(str).to_numpy()

    def gene_totals(self) -> np.ndarray:
        """Total count of each gene across all cells."""
        return np.asarray(self.counts.sum(axis=1), dtype=float).ravel()

    def cell_totals(self) -> np.ndarray:
        """Total count of each cell across all genes."""
        return np.asarray(self.counts.sum(axis=0), dtype=float).ravel()

    def column(self, j: int) -> np.ndarray:
        """Dense count vector of a single cell."""
        col = self.counts[:, j]
        if sp.issparse(col):
            return col.toarray().ravel().astype(float)
        return np.asarray(col, dtype=float).ravel()

    def column_sum(self, idx: np.ndarray) -> np.ndarray:
        """Gene-wise sum over the cells in `idx` (more than one cell)."""
        return np.asarray(self.counts[:, idx].sum(axis=1), dtype=float).ravel()

    # ---------------- selection ----------------
    def select_cells(self, mask: np.ndarray) -> "SingleCellReference":
        mask = np.asarray(mask, dtype=bool)
        return SingleCellReference(
            counts=self.counts[:, mask],
            genes=self.genes,
            obs=self.obs.loc[mask],
        )

    def select_genes(self, mask: np.ndarray) -> "SingleCellReference":
        mask = np.asarray(mask, dtype=bool)
        return SingleCellReference(
            counts=self.counts[mask, :],
            genes=self.genes[mask],
            obs=self.obs,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Dense genes x cells DataFrame (for small references and exports)."""
        dense = self.counts.toarray() if self.is_sparse else self.counts
        return pd.DataFrame(dense, index=self.genes, columns=self.obs.index)


__all__ = ["SingleCellReference", "Counts"]
