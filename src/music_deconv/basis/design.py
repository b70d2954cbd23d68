"""
Basis: design matrix and cell-size override.
"""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from ..errors import ConfigurationError


def validate_cell_size(cell_size: Any, cell_types: Sequence[str]) -> pd.Series:
    """
    Check a user cell-size table and return it as a Series over `cell_types`.

    The table's first column holds cell type names and its second column the
    sizes. Every cell type must be listed and every size must be numeric;
    the first row wins when a name is repeated.
    """
    if not isinstance(cell_size, pd.DataFrame) or cell_size.shape[1] < 2:
        raise ConfigurationError(
            "cell_size parameter should be a DataFrame with 1st column for cell type names "
            "and 2nd column for cell sizes"
        )

    names = cell_size.iloc[:, 0].astype(str)
    missing = [ct for ct in cell_types if ct not in set(names)]
    if missing:
        raise ConfigurationError(f"Cell type names in cell_size must match clusters; missing: {missing}")

    sizes = pd.to_numeric(cell_size.iloc[:, 1], errors="coerce")
    if sizes.isna().any():
        bad = cell_size.loc[sizes.isna()].iloc[:, 1].tolist()
        raise ConfigurationError(f"Cell sizes should all be numeric; got {bad}")

    table = pd.Series(sizes.to_numpy(dtype=float), index=names.to_numpy())
    table = table[~table.index.duplicated(keep="first")]
    return table.reindex(list(cell_types)).rename("cell_size")


def build_design_matrix(mean_abundance: pd.DataFrame, cell_size: pd.Series) -> pd.DataFrame:
    """Scale each cell type's mean relative abundance by its size (matched by label)."""
    return mean_abundance.mul(cell_size.reindex(mean_abundance.columns), axis=1)


__all__ = ["validate_cell_size", "build_design_matrix"]
