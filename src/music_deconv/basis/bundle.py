"""
Basis: result container.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd


@dataclass
class BasisBundle:
    """
    Everything a downstream deconvolution solver needs from the reference.

    All members share one cell-type order; `design_matrix`, `mean_abundance`
    and `variance` (or the columns of `covariance`) share one gene order.

    Attributes
    ----------
    design_matrix : pd.DataFrame
        Genes x cell types, mean relative abundance scaled by cell size.
    library_size : pd.DataFrame
        Subjects x cell types mean total count per cell (NaN where missing).
    cell_size : pd.Series
        Cell type -> size used for the design matrix (estimated or user-given).
    mean_abundance : pd.DataFrame
        Genes x cell types cross-subject mean relative abundance.
    variance : pd.DataFrame | None
        Genes x cell types cross-subject variance (variance mode).
    covariance : pd.DataFrame | None
        (cell type, cell type) x genes cross-subject covariance (covariance mode).
    """

    design_matrix: pd.DataFrame
    library_size: pd.DataFrame
    cell_size: pd.Series
    mean_abundance: pd.DataFrame
    variance: Optional[pd.DataFrame] = None
    covariance: Optional[pd.DataFrame] = None

    @property
    def ct_cov(self) -> bool:
        return self.covariance is not None

    @property
    def cell_types(self) -> List[str]:
        return [str(c) for c in self.design_matrix.columns]

    @property
    def genes(self) -> List[str]:
        return [str(g) for g in self.design_matrix.index]

    def covariance_for_gene(self, gene: str) -> pd.DataFrame:
        """Cell type x cell type covariance of one gene."""
        if self.covariance is None:
            raise ValueError("Bundle was built without ct_cov; no covariance available.")
        if gene not in self.covariance.columns:
            raise KeyError(f"Gene '{gene}' not in covariance columns")
        cts = self.cell_types
        values = self.covariance[gene].to_numpy().reshape(len(cts), len(cts))
        return pd.DataFrame(values, index=cts, columns=cts)

    def summary(self) -> Dict[str, Any]:
        """JSON-ready overview of shapes, flags and missingness."""
        dispersion = self.covariance if self.ct_cov else self.variance
        return {
            "n_genes": int(self.design_matrix.shape[0]),
            "n_cell_types": int(self.design_matrix.shape[1]),
            "n_subjects": int(self.library_size.shape[0]),
            "cell_types": self.cell_types,
            "ct_cov": self.ct_cov,
            "cell_size": {str(k): (None if pd.isna(v) else float(v)) for k, v in self.cell_size.items()},
            "dispersion_shape": list(map(int, dispersion.shape)) if dispersion is not None else None,
            "n_missing_library_size": int(np.isnan(self.library_size.to_numpy(dtype=float)).sum()),
            "n_missing_design": int(np.isnan(self.design_matrix.to_numpy(dtype=float)).sum()),
        }


__all__ = ["BasisBundle"]
