# src/music_deconv/reference/io.py
"""
Reference: loaders
load_table_auto, find_h5ad_files, load_reference, read_reference_tsvs,
read_cell_size_table, read_marker_table
"""
from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Optional

import anndata as ad
import pandas as pd

from ..errors import ConfigurationError, InvalidInputError
from .container import SingleCellReference


def load_table_auto(path: str, index_col: Optional[int] = None) -> pd.DataFrame:
    """
    Load a delimited table with delimiter detection.

    - .csv → comma
    - .tsv / .txt → tab (also with a trailing .gz)
    - Other extensions → sniff between [',', '\\t', ';', '|']
    - Lines starting with '#' are treated as comments
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Table not found: {path}")

    suffixes = [s.lower() for s in p.suffixes if s.lower() != ".gz"]
    ext = suffixes[-1] if suffixes else ""
    sep: Optional[str]
    if ext == ".csv":
        sep = ","
    elif ext in {".tsv", ".txt"}:
        sep = "\t"
    else:
        with p.open("r", encoding="utf-8", errors="ignore", newline="") as f:
            sample = f.read(8192)
        try:
            sep = csv.Sniffer().sniff(sample, delimiters=[",", "\t", ";", "|"]).delimiter
        except csv.Error:
            sep = ","

    try:
        return pd.read_csv(path, sep=sep, index_col=index_col, comment="#", low_memory=False)
    except UnicodeDecodeError:
        return pd.read_csv(
            path, sep=sep, index_col=index_col, comment="#", low_memory=False, encoding="latin-1"
        )


def find_h5ad_files(root_or_file: str) -> List[str]:
    """
    If given a .h5ad file, return [that file].
    If given a directory, return all *.h5ad files under it (non-recursive).
    """
    p = Path(root_or_file)
    if p.is_file() and p.suffix.lower() == ".h5ad":
        return [str(p.resolve())]
    if p.is_dir():
        return [str(q.resolve()) for q in sorted(p.glob("*.h5ad"))]
    raise FileNotFoundError(f"Not a file/dir or missing: {root_or_file}")


def load_reference(path: str, layer: Optional[str] = None) -> SingleCellReference:
    """
    Load a single-cell reference from one .h5ad file or a folder of them.

    Several files are concatenated along cells keeping only the genes shared
    by all of them, so no gene is padded with made-up zeros.
    """
    files = find_h5ad_files(path)
    if not files:
        raise FileNotFoundError(f"No .h5ad files found under: {path}")
    print(f"[REF] Found {len(files)} .h5ad file(s)")

    adatas = [ad.read_h5ad(f) for f in files]
    if len(adatas) == 1:
        adata = adatas[0]
    else:
        adata = ad.concat(adatas, axis=0, join="inner", merge="unique", index_unique="-")
    print(f"[REF] Reference: {adata.n_obs:,} cells × {adata.n_vars:,} genes")
    return SingleCellReference.from_anndata(adata, layer=layer or None)


def read_reference_tsvs(counts_path: str, metadata_path: str) -> SingleCellReference:
    """
    Load the TSV pair layout: a genes x cells count table whose first column
    holds gene names, and a per-cell metadata table whose first column holds
    the cell barcodes.
    """
    counts = load_table_auto(counts_path, index_col=0)
    meta = load_table_auto(metadata_path, index_col=0)
    counts.index = counts.index.astype(str)
    counts.columns = counts.columns.astype(str)
    meta.index = meta.index.astype(str)

    non_numeric = [c for c in counts.columns if not pd.api.types.is_numeric_dtype(counts[c])]
    if non_numeric:
        raise InvalidInputError(f"Non-numeric count columns in {counts_path}: {non_numeric[:5]}")

    if len(meta) != counts.shape[1]:
        raise InvalidInputError(
            f"Metadata rows ({len(meta)}) != number of cells in counts ({counts.shape[1]}). "
            "Re-export so sizes match."
        )
    print(f"[REF] Reference: {counts.shape[1]:,} cells × {counts.shape[0]:,} genes")
    return SingleCellReference.from_dataframe(counts, meta)


def read_cell_size_table(path: str) -> pd.DataFrame:
    """Two-column table: cell type name, cell size. Extra columns are dropped."""
    df = load_table_auto(path)
    if df.shape[1] < 2:
        raise ConfigurationError(f"Cell size table needs two columns (cell type, size): {path}")
    return df.iloc[:, :2]


def read_marker_table(
    path: str,
    gene_col: str = "gene",
    cluster_col: str = "cluster",
) -> List[List[str]]:
    """
    Read a marker table into a list of per-cluster gene lists.

    Clusters keep their order of first appearance. Without a cluster column
    the whole gene column is returned as a single list.
    """
    df = load_table_auto(path)
    if gene_col not in df.columns:
        gene_col = df.columns[0]
    genes = df[gene_col].dropna().astype(str)
    if cluster_col not in df.columns:
        return [genes.tolist()]
    grouped = genes.groupby(df.loc[genes.index, cluster_col].astype(str), sort=False)
    return [g.tolist() for _, g in grouped]


__all__ = [
    "load_table_auto",
    "find_h5ad_files",
    "load_reference",
    "read_reference_tsvs",
    "read_cell_size_table",
    "read_marker_table",
]
