"""Agglomerative clustering with Ward linkage.

The working state is a dense table of squared linkage distances indexed by
slot. A slot holds one live cluster; when clusters i and j merge, the new
cluster takes the lower slot and the other slot is retired. Cluster ids
follow the arena scheme of the Dendrogram model: leaves 0..D-1, then
D, D+1, ... in merge order.

Distances to a merged cluster come from the Lance-Williams update for Ward

    d(k, i+j)^2 = ((n_i + n_k) d(k, i)^2 + (n_j + n_k) d(k, j)^2 - n_k d(i, j)^2)
                  / (n_i + n_j + n_k)

so no centroid is ever materialized. Every live row also caches its
minimum and the slot where it occurs; only rows whose cached partner took
part in a merge are rescanned.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple, Union

import numpy as np

from .. import config
from ..exceptions import InvalidInputError
from ..models.dendrogram import Dendrogram, Merge
from ..models.matrix import DistanceMatrix

logger = logging.getLogger(__name__)


def _validated_distances(
    distance: Union[DistanceMatrix, np.ndarray],
    doc_ids: Optional[List[str]],
    symmetry_tolerance: float,
) -> Tuple[np.ndarray, Tuple[str, ...]]:
    if isinstance(distance, DistanceMatrix):
        values = np.array(distance.values, dtype=np.float64)
        ids = distance.doc_ids
    else:
        values = np.array(distance, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise InvalidInputError(f"Distance matrix must be square, got shape {values.shape}")
        ids = tuple(doc_ids) if doc_ids is not None else tuple(str(i) for i in range(values.shape[0]))
        if len(ids) != values.shape[0]:
            raise InvalidInputError(
                f"{len(ids)} document ids given for a {values.shape[0]}x{values.shape[0]} matrix"
            )

    n = values.shape[0]
    if n == 0:
        raise InvalidInputError("Cannot build a dendrogram over zero documents")
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("Distance matrix contains non-finite values")
    if np.any(values < 0):
        raise InvalidInputError("Distance matrix contains negative values")
    asymmetry = float(np.max(np.abs(values - values.T)))
    if asymmetry > symmetry_tolerance:
        raise InvalidInputError(
            f"Distance matrix is not symmetric (max deviation {asymmetry:.3g})",
            details={"max_deviation": asymmetry},
        )
    return values, ids


class _WardTable:
    """Mutable linkage state; lives only for the duration of one build."""

    def __init__(self, values: np.ndarray, tie_tolerance: float):
        n = values.shape[0]
        self.n = n
        self.tie_tolerance = tie_tolerance
        # Symmetrize exactly so both triangles stay identical under updates
        sym = (values + values.T) / 2.0
        self.d2 = sym * sym
        np.fill_diagonal(self.d2, np.inf)
        self.size = np.ones(n, dtype=np.int64)
        self.cluster_id = np.arange(n, dtype=np.int64)
        self.active = np.ones(n, dtype=bool)
        self.row_min = np.full(n, np.inf)
        self.row_arg = np.full(n, -1, dtype=np.int64)
        if n > 1:
            self.row_arg = np.argmin(self.d2, axis=1).astype(np.int64)
            self.row_min = self.d2[np.arange(n), self.row_arg]

    def _rescan(self, rows: np.ndarray) -> None:
        if rows.size == 0:
            return
        sub = self.d2[rows]
        self.row_arg[rows] = np.argmin(sub, axis=1)
        self.row_min[rows] = sub[np.arange(rows.size), self.row_arg[rows]]

    def closest_pair(self) -> Tuple[int, int]:
        """Slots (a, b) of the cheapest merge, ties resolved by cluster id."""
        best = float(np.min(self.row_min))
        threshold = best + self.tie_tolerance * max(1.0, abs(best))
        rows = np.flatnonzero(self.row_min <= threshold)
        if rows.size == 2 and self.row_arg[rows[0]] == rows[1]:
            return int(rows[0]), int(rows[1])

        # Several near-equal candidates: enumerate them all
        ri, ci = np.nonzero(self.d2[rows] <= threshold)
        a = rows[ri]
        b = ci
        id_a = self.cluster_id[a]
        id_b = self.cluster_id[b]
        lo = np.minimum(id_a, id_b)
        hi = np.maximum(id_a, id_b)
        pick = np.lexsort((hi, lo))[0]
        return int(a[pick]), int(b[pick])

    def merge(self, a: int, b: int, node_id: int) -> Merge:
        keep, drop = (a, b) if a < b else (b, a)
        d2_ab = self.d2[keep, drop]
        n_keep = self.size[keep]
        n_drop = self.size[drop]
        id_keep = int(self.cluster_id[keep])
        id_drop = int(self.cluster_id[drop])

        others = self.active.copy()
        others[[keep, drop]] = False
        k = np.flatnonzero(others)
        n_k = self.size[k].astype(np.float64)
        updated = (
            (n_keep + n_k) * self.d2[keep, k]
            + (n_drop + n_k) * self.d2[drop, k]
            - n_k * d2_ab
        ) / (n_keep + n_drop + n_k)
        np.maximum(updated, 0.0, out=updated)

        self.d2[keep, k] = updated
        self.d2[k, keep] = updated
        self.d2[drop, :] = np.inf
        self.d2[:, drop] = np.inf

        self.active[drop] = False
        self.row_min[drop] = np.inf
        self.row_arg[drop] = -1
        self.size[keep] = n_keep + n_drop
        self.cluster_id[keep] = node_id

        stale = k[(self.row_arg[k] == keep) | (self.row_arg[k] == drop)]
        self._rescan(stale)
        improved = k[updated < self.row_min[k]]
        self.row_min[improved] = self.d2[improved, keep]
        self.row_arg[improved] = keep
        if k.size:
            self._rescan(np.array([keep], dtype=np.int64))
        else:
            self.row_min[keep] = np.inf
            self.row_arg[keep] = -1

        left, right = sorted((id_keep, id_drop))
        return Merge(
            left=left,
            right=right,
            distance=float(np.sqrt(max(d2_ab, 0.0))),
            size=int(n_keep + n_drop),
            node_id=node_id,
        )


def build_dendrogram(
    distance: Union[DistanceMatrix, np.ndarray],
    *,
    doc_ids: Optional[List[str]] = None,
    tie_tolerance: Optional[float] = None,
    symmetry_tolerance: Optional[float] = None,
) -> Dendrogram:
    """Run Ward agglomeration until a single cluster remains.

    Args:
        distance: DistanceMatrix, or a square array of pairwise distances.
        doc_ids: Document ids for a raw array (default "0", "1", ...).
        tie_tolerance: Relative band in which merge costs count as equal;
            equal candidates are resolved by the smallest (low id, high id)
            pair of current cluster ids.
        symmetry_tolerance: Largest accepted |d[a, b] - d[b, a]|.

    Returns:
        Dendrogram with D - 1 merges. Merge heights equal those of
        scipy.cluster.hierarchy.linkage(method="ward") on the same input.

    Raises:
        InvalidInputError: If the matrix is empty, not square, not finite,
            negative, or not symmetric within tolerance.
    """
    tie_tol = config.TIE_TOLERANCE if tie_tolerance is None else tie_tolerance
    sym_tol = config.SYMMETRY_TOLERANCE if symmetry_tolerance is None else symmetry_tolerance
    values, ids = _validated_distances(distance, doc_ids, sym_tol)

    n = values.shape[0]
    table = _WardTable(values, tie_tol)
    merges: List[Merge] = []
    for step in range(n - 1):
        a, b = table.closest_pair()
        merge = table.merge(a, b, node_id=n + step)
        merges.append(merge)
        logger.debug(
            f"Merge {step}: {merge.left} + {merge.right} -> {merge.node_id} "
            f"(distance={merge.distance:.6g}, size={merge.size})"
        )

    logger.info(f"Built Ward dendrogram over {n} documents")
    return Dendrogram(doc_ids=ids, merges=tuple(merges))
