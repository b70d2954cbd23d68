# src/music_deconv/cli.py
from __future__ import annotations

import argparse
import logging
import os
import sys

from .config import USER_DEFAULTS, resolve_paths
from .errors import MusicDeconvError
from .utils import timestamped_run_root


def _D(key: str, fallback):
    """pull from USER_DEFAULTS with a safe fallback"""
    return USER_DEFAULTS.get(key, fallback)


def _parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        "music-deconv",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Build the MuSiC deconvolution basis (design matrix, library size, "
                    "cross-subject variance/covariance) from a single-cell reference.",
    )

    # ---------- Reference ----------
    ap.add_argument("--ref_h5ad",    default=_D("ref_h5ad", ""), help=".h5ad file or folder of .h5ad files")
    ap.add_argument("--layer",       default=_D("layer", ""), help="AnnData layer with raw counts ('' = X)")
    ap.add_argument("--sc_counts",   default=_D("sc_counts", ""), help="genes x cells TSV (used if no --ref_h5ad)")
    ap.add_argument("--sc_metadata", default=_D("sc_metadata", ""), help="per-cell metadata TSV")

    # ---------- Labels ----------
    ap.add_argument("--clusters", default=_D("clusters", "cell_type"))
    ap.add_argument("--samples",  default=_D("samples", "individual_id"))

    # ---------- Basis options ----------
    ap.add_argument("--select_ct", nargs="*", default=_D("select_ct", []))
    ap.add_argument("--markers",   default=_D("markers", ""), help="marker table (gene, cluster)")
    ap.add_argument("--cell_size", default=_D("cell_size", ""), help="table of cell type, size")

    # ---------- Flags (strings on purpose; drivers normalize) ----------
    ap.add_argument("--non_zero", default=_D("non_zero", "true"))
    ap.add_argument("--ct_cov",   default=_D("ct_cov", "false"))
    ap.add_argument("--verbose",  default=_D("verbose", "true"))

    # ---------- Outputs ----------
    ap.add_argument("--outdir", default=_D("outdir", ""))

    # ---------- Orchestration toggles ----------
    ap.add_argument("--skip_basis", action="store_true", help="Skip basis construction")
    ap.add_argument("--skip_bulk",  action="store_true", help="Skip artificial bulk construction")

    return ap.parse_args(argv)


def main(argv=None) -> None:
    a = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    # --- resolve paths ---
    p = resolve_paths(a)
    if not (p["ref_h5ad"] or (p["sc_counts"] and p["sc_metadata"])):
        raise SystemExit("Provide --ref_h5ad (file/folder) OR both --sc_counts and --sc_metadata.")

    outdir = p["outdir"] or timestamped_run_root()
    out_basis = os.path.join(outdir, "basis")
    out_bulk = os.path.join(outdir, "bulk")

    from .drivers import load_reference_for_run, run_basis, run_bulk

    try:
        reference = load_reference_for_run(
            ref_h5ad=p["ref_h5ad"],
            sc_counts=p["sc_counts"],
            sc_metadata=p["sc_metadata"],
            layer=a.layer,
        )

        # --- Basis ---
        if not a.skip_basis:
            run_basis(
                reference=reference,
                outdir=out_basis,
                clusters=a.clusters,
                samples=a.samples,
                select_ct=a.select_ct,
                markers=p["markers"],
                cell_size=p["cell_size"],
                non_zero=a.non_zero,
                ct_cov=a.ct_cov,
                verbose=a.verbose,
            )
        else:
            print("[CLI] Skipping basis")

        # --- Bulk ---
        if not a.skip_bulk:
            run_bulk(
                reference=reference,
                outdir=out_bulk,
                clusters=a.clusters,
                samples=a.samples,
                select_ct=a.select_ct,
            )
        else:
            print("[CLI] Skipping bulk")
    except (MusicDeconvError, FileNotFoundError) as e:
        raise SystemExit(f"[CLI] {type(e).__name__}: {e}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(130)
