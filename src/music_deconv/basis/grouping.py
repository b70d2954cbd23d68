"""
Basis: (cell type, subject) grouping of cells.

Cell types and subjects keep their order of first appearance in the cell
metadata; every matrix built from a grouping is assembled by these labels,
never by position.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

import numpy as np
import pandas as pd

from ..reference.container import SingleCellReference

CELL_TYPE = "cell_type"
SUBJECT = "subject"


@dataclass(frozen=True)
class CellGrouping:
    """
    Partition of cells into realized (cell type, subject) groups.

    Attributes
    ----------
    cell_types : list[str]
        Distinct cell types, in order of first appearance.
    subjects : list[str]
        Distinct subjects, in order of first appearance.
    indices : dict[(str, str), np.ndarray]
        Column positions of each realized group, cell-type major then subject.
        Pairs with no cells are absent.
    """

    cell_types: List[str]
    subjects: List[str]
    indices: Dict[Tuple[str, str], np.ndarray]

    @classmethod
    def from_reference(
        cls, reference: SingleCellReference, clusters: str, samples: str
    ) -> "CellGrouping":
        ct = reference.labels(clusters)
        sid = reference.labels(samples)
        frame = pd.DataFrame({CELL_TYPE: ct, SUBJECT: sid})
        positions = frame.groupby([CELL_TYPE, SUBJECT], sort=False).indices

        cell_types = [str(c) for c in pd.unique(ct)]
        subjects = [str(s) for s in pd.unique(sid)]
        indices = {}
        for c in cell_types:
            for s in subjects:
                idx = positions.get((c, s))
                if idx is not None:
                    indices[(c, s)] = np.asarray(idx, dtype=np.int64)
        return cls(cell_types=cell_types, subjects=subjects, indices=indices)

    @property
    def pairs(self) -> List[Tuple[str, str]]:
        return list(self.indices)

    def __iter__(self) -> Iterator[Tuple[Tuple[str, str], np.ndarray]]:
        return iter(self.indices.items())

    def __len__(self) -> int:
        return len(self.indices)

    def pair_index(self) -> pd.MultiIndex:
        """Column index of the realized groups."""
        if not self.indices:
            return pd.MultiIndex.from_arrays([[], []], names=[CELL_TYPE, SUBJECT])
        return pd.MultiIndex.from_tuples(self.pairs, names=[CELL_TYPE, SUBJECT])

    def cell_counts(self) -> pd.DataFrame:
        """Subjects x cell types number of cells (0 where a pair is not realized)."""
        out = pd.DataFrame(0, index=pd.Index(self.subjects, name=SUBJECT),
                           columns=pd.Index(self.cell_types, name=CELL_TYPE))
        for (c, s), idx in self.indices.items():
            out.at[s, c] = len(idx)
        return out


__all__ = ["CellGrouping", "CELL_TYPE", "SUBJECT"]
