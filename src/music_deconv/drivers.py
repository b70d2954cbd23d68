from __future__ import annotations

from .utils import split_list_arg, str_to_bool


def _blank(v):
    return None if v is None or str(v).strip().lower() in {"", "none"} else v


def load_reference_for_run(*, ref_h5ad, sc_counts, sc_metadata, layer):
    from .basis.run import load_stage_reference  # import late
    return load_stage_reference(
        ref_h5ad=_blank(ref_h5ad),
        sc_counts=_blank(sc_counts),
        sc_metadata=_blank(sc_metadata),
        layer=_blank(layer),
    )


def run_basis(*, reference, outdir, clusters, samples, select_ct, markers, cell_size,
              non_zero, ct_cov, verbose):
    from .basis.run import run_basis_stage  # import late
    return run_basis_stage(
        reference=reference,
        outdir=outdir,
        clusters=clusters,
        samples=samples,
        select_ct=split_list_arg(select_ct),
        markers_path=_blank(markers),
        cell_size_path=_blank(cell_size),
        non_zero=str_to_bool(non_zero),
        ct_cov=str_to_bool(ct_cov),
        verbose=str_to_bool(verbose),
    )


def run_bulk(*, reference, outdir, clusters, samples, select_ct):
    from .bulk.run import run_bulk_stage  # import late
    return run_bulk_stage(
        reference=reference,
        outdir=outdir,
        clusters=clusters,
        samples=samples,
        select_ct=split_list_arg(select_ct),
    )
