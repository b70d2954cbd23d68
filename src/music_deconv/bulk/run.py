# src/music_deconv/bulk/run.py
from __future__ import annotations

import os
from typing import Dict, List, Optional

from ..reference.container import SingleCellReference
from .construct import bulk_construct


def run_bulk_stage(
    *,
    reference: SingleCellReference,
    outdir: str,
    clusters: str,
    samples: str,
    select_ct: Optional[List[str]] = None,
) -> Dict[str, str]:
    """
    Write artificial bulk samples built from the reference.

    Outputs: bulk_counts.tsv (genes × subjects), num_real.tsv and
    true_proportions.tsv (subjects × cell types).
    """
    os.makedirs(outdir, exist_ok=True)
    print(f"[BULK] Constructing artificial bulk samples by '{samples}'")

    result = bulk_construct(reference, clusters, samples, select_ct=select_ct)

    paths = {
        "bulk_counts": os.path.join(outdir, "bulk_counts.tsv"),
        "num_real": os.path.join(outdir, "num_real.tsv"),
        "true_proportions": os.path.join(outdir, "true_proportions.tsv"),
    }
    result.bulk_counts.to_csv(paths["bulk_counts"], sep="\t", index_label="gene")
    result.num_real.to_csv(paths["num_real"], sep="\t", index_label="subject")
    result.true_proportions().to_csv(
        paths["true_proportions"], sep="\t", index_label="subject", float_format="%.6g"
    )

    print(f"[BULK] {result.bulk_counts.shape[1]} bulk sample(s) written to: {outdir}")
    return paths


__all__ = ["run_bulk_stage"]
