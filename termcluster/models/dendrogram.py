"""Merge tree produced by agglomerative clustering."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, model_validator


class Merge(BaseModel):
    """One agglomeration step.

    Cluster ids are arena style: leaves are 0..D-1 in document order and the
    s-th merge creates id D + s.
    """

    model_config = ConfigDict(frozen=True)

    left: int
    right: int
    distance: float  # Ward linkage height
    size: int
    node_id: int

    @property
    def cost(self) -> float:
        """Increase in within-cluster sum of squares caused by this merge."""
        return self.distance * self.distance / 2.0


class Dendrogram(BaseModel):
    """Complete merge history over a fixed set of documents."""

    model_config = ConfigDict(frozen=True)

    doc_ids: Tuple[str, ...]
    merges: Tuple[Merge, ...]

    @model_validator(mode="after")
    def _check_merges(self) -> "Dendrogram":
        n = len(self.doc_ids)
        if n == 0:
            raise ValueError("Dendrogram needs at least one document")
        if len(self.merges) != n - 1:
            raise ValueError(f"Expected {n - 1} merges for {n} documents, got {len(self.merges)}")
        for step, merge in enumerate(self.merges):
            if merge.node_id != n + step:
                raise ValueError(f"Merge {step} has node id {merge.node_id}, expected {n + step}")
            if not (0 <= merge.left < merge.right < merge.node_id):
                raise ValueError(f"Merge {step} joins invalid clusters {merge.left}, {merge.right}")
        return self

    @property
    def n_documents(self) -> int:
        return len(self.doc_ids)

    @property
    def heights(self) -> List[float]:
        return [m.distance for m in self.merges]

    def to_linkage_matrix(self) -> np.ndarray:
        """Merges in scipy's (D - 1) x 4 linkage layout.

        Columns: left id, right id, distance, size. Suitable for
        scipy.cluster.hierarchy.dendrogram and fcluster.
        """
        out = np.zeros((len(self.merges), 4), dtype=np.float64)
        for i, m in enumerate(self.merges):
            out[i] = (m.left, m.right, m.distance, m.size)
        return out
