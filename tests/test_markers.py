import anndata as ad
import numpy as np
import pandas as pd

from music_deconv.reference.markers import compute_markers, flatten_markers


def test_flatten_markers_shapes():
    assert flatten_markers(None) == []
    assert flatten_markers("CD3E") == ["CD3E"]
    assert flatten_markers(["a", "b", "a"]) == ["a", "b"]
    assert flatten_markers([["a", "b"], ["b", "c"]]) == ["a", "b", "c"]
    assert flatten_markers({"T": ["a"], "B": ("c", "a")}) == ["a", "c"]


def _marker_adata(n_per_type=20, seed=3):
    rng = np.random.default_rng(seed)
    types = ["A", "B", "C"]
    genes = [f"g{i}" for i in range(30)]
    X = rng.poisson(1.0, size=(n_per_type * len(types), len(genes))).astype(float)
    for k in range(len(types)):
        rows = slice(k * n_per_type, (k + 1) * n_per_type)
        X[rows, k * 5:(k + 1) * 5] += rng.poisson(40.0, size=(n_per_type, 5))
    obs = pd.DataFrame(
        {"cell_type": np.repeat(types, n_per_type)},
        index=[f"cell{i}" for i in range(X.shape[0])],
    )
    return ad.AnnData(X=X, obs=obs, var=pd.DataFrame(index=genes))


def test_compute_markers_recovers_planted_genes():
    adata = _marker_adata()
    before = adata.X.copy()
    markers = compute_markers(adata, "cell_type", top_n=5)
    assert set(markers) == {"A", "B", "C"}
    assert set(markers["A"]) == {"g0", "g1", "g2", "g3", "g4"}
    assert set(markers["C"]) == {"g10", "g11", "g12", "g13", "g14"}
    np.testing.assert_array_equal(adata.X, before)


def test_compute_markers_degenerate_inputs():
    adata = _marker_adata(n_per_type=4)
    assert compute_markers(adata, "missing") == {}
    assert compute_markers(adata, "cell_type", min_cells_per_group=10) == {}
