import numpy as np
import pandas as pd
import pytest
import scipy.sparse as sp

from music_deconv.reference.container import SingleCellReference


# 3 genes x 4 cells:
#   c1, c2 -> subject A, type X
#   c3     -> subject B, type X
#   c4     -> subject B, type Y
TOY_COUNTS = pd.DataFrame(
    {
        "c1": [1, 2, 3],
        "c2": [3, 0, 1],
        "c3": [2, 2, 0],
        "c4": [0, 5, 5],
    },
    index=["g1", "g2", "g3"],
)
TOY_OBS = pd.DataFrame(
    {
        "cell_type": ["X", "X", "X", "Y"],
        "subject": ["A", "A", "B", "B"],
    },
    index=["c1", "c2", "c3", "c4"],
)


@pytest.fixture
def toy_reference():
    return SingleCellReference.from_dataframe(TOY_COUNTS.copy(), TOY_OBS.copy())


@pytest.fixture
def toy_reference_with_zero_gene():
    counts = TOY_COUNTS.copy()
    counts.loc["g0"] = 0
    counts = counts.loc[["g1", "g0", "g2", "g3"]]
    return SingleCellReference.from_dataframe(counts, TOY_OBS.copy())


def make_multi_subject(sparse: bool = False, seed: int = 7):
    """
    3 subjects x 3 cell types, 12 genes.

    - S1/T has a single cell (single-cell branch)
    - M is absent from S3 (unrealized pair)
    - gene ZERO is never expressed
    """
    rng = np.random.default_rng(seed)
    layout = {
        ("T", "S1"): 1, ("T", "S2"): 3, ("T", "S3"): 4,
        ("B", "S1"): 3, ("B", "S2"): 2, ("B", "S3"): 5,
        ("M", "S1"): 4, ("M", "S2"): 2,
    }
    cell_types, subjects = [], []
    for (ct, sid), n in layout.items():
        cell_types += [ct] * n
        subjects += [sid] * n
    n_cells = len(cell_types)
    genes = [f"G{i}" for i in range(11)] + ["ZERO"]
    counts = rng.poisson(4.0, size=(len(genes), n_cells)).astype(float)
    counts[0, :] += 1  # no empty cell
    counts[genes.index("ZERO"), :] = 0

    obs = pd.DataFrame(
        {"cell_type": cell_types, "subject": subjects},
        index=[f"cell{i}" for i in range(n_cells)],
    )
    matrix = sp.csc_matrix(counts) if sparse else counts
    return SingleCellReference(counts=matrix, genes=genes, obs=obs)


@pytest.fixture
def multi_reference():
    return make_multi_subject()


@pytest.fixture
def multi_reference_sparse():
    return make_multi_subject(sparse=True)


@pytest.fixture
def zero_group_reference():
    """Subject C has one Y cell with no counts at all."""
    counts = pd.DataFrame(
        {
            "a1": [4, 1, 5], "a2": [2, 2, 2],
            "b1": [1, 3, 0], "b2": [6, 0, 3],
            "c1": [3, 3, 3], "c2": [0, 0, 0],
        },
        index=["g1", "g2", "g3"],
    )
    obs = pd.DataFrame(
        {
            "cell_type": ["X", "Y", "X", "Y", "X", "Y"],
            "subject": ["A", "A", "B", "B", "C", "C"],
        },
        index=counts.columns,
    )
    return SingleCellReference.from_dataframe(counts, obs)
