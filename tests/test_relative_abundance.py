import numpy as np
import pandas as pd
import pytest

from music_deconv.basis.grouping import CellGrouping
from music_deconv.basis.relative_abundance import (
    group_profile,
    relative_abundance,
    relative_abundance_table,
)


def _table(ref):
    return relative_abundance_table(ref, CellGrouping.from_reference(ref, "cell_type", "subject"))


def test_grouping_orders_by_first_appearance(multi_reference):
    grouping = CellGrouping.from_reference(multi_reference, "cell_type", "subject")
    assert grouping.cell_types == ["T", "B", "M"]
    assert grouping.subjects == ["S1", "S2", "S3"]
    assert ("M", "S3") not in grouping.indices
    assert grouping.pairs[0] == ("T", "S1")
    counts = grouping.cell_counts()
    assert counts.loc["S1", "T"] == 1
    assert counts.loc["S3", "M"] == 0


def test_toy_table_columns_and_values(toy_reference):
    theta = _table(toy_reference)
    assert list(theta.columns) == [("X", "A"), ("X", "B"), ("Y", "B")]
    np.testing.assert_allclose(theta[("X", "A")], [0.4, 0.2, 0.4])
    np.testing.assert_allclose(theta[("X", "B")], [0.5, 0.5, 0.0])
    np.testing.assert_allclose(theta[("Y", "B")], [0.0, 0.5, 0.5])


def test_single_cell_group_is_that_cell_normalized(multi_reference):
    grouping = CellGrouping.from_reference(multi_reference, "cell_type", "subject")
    idx = grouping.indices[("T", "S1")]
    assert len(idx) == 1
    cell = multi_reference.column(int(idx[0]))
    np.testing.assert_allclose(group_profile(multi_reference, idx), cell)
    theta = relative_abundance_table(multi_reference, grouping)
    np.testing.assert_allclose(theta[("T", "S1")], cell / cell.sum())


def test_columns_sum_to_one(multi_reference):
    theta = _table(multi_reference)
    np.testing.assert_allclose(theta.sum(axis=0).to_numpy(), 1.0)


def test_sparse_matches_dense(multi_reference, multi_reference_sparse):
    pd.testing.assert_frame_equal(_table(multi_reference), _table(multi_reference_sparse))


def test_zero_total_group_is_all_nan(zero_group_reference):
    theta = _table(zero_group_reference)
    assert theta[("Y", "C")].isna().all()
    valid = theta.drop(columns=[("Y", "C")])
    assert not valid.isna().any().any()


def test_relative_abundance_zero_vector_is_nan_not_zero():
    out = relative_abundance(np.zeros(4))
    assert np.isnan(out).all()


@pytest.mark.parametrize("profile", [np.array([1.0, 3.0]), np.array([0.0, 5.0, 5.0])])
def test_relative_abundance_sums_to_one(profile):
    assert relative_abundance(profile).sum() == pytest.approx(1.0)
