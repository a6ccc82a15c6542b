"""Flat clusterings read off a built dendrogram."""

from __future__ import annotations

import logging
import math
import numbers
from typing import Dict, List

from ..exceptions import InvalidInputError
from ..models.cluster import ClusterAssignment
from ..models.dendrogram import Dendrogram

logger = logging.getLogger(__name__)


def _apply_merges(dendrogram: Dendrogram, n_merges: int) -> ClusterAssignment:
    """Replay the first `n_merges` merges and label the resulting groups."""
    n = dendrogram.n_documents
    groups: Dict[int, List[int]] = {i: [i] for i in range(n)}
    for merge in dendrogram.merges[:n_merges]:
        left = groups.pop(merge.left)
        right = groups.pop(merge.right)
        if len(left) < len(right):
            left, right = right, left
        left.extend(right)
        groups[merge.node_id] = left

    # Label clusters by their first document so labels are stable across calls
    ordered = sorted(groups.values(), key=min)
    labels: Dict[str, int] = {}
    for label, members in enumerate(ordered):
        for i in members:
            labels[dendrogram.doc_ids[i]] = label
    labels = {doc: labels[doc] for doc in dendrogram.doc_ids}
    return ClusterAssignment(labels=labels, n_clusters=len(ordered))


def cut_tree(dendrogram: Dendrogram, k: int) -> ClusterAssignment:
    """Cut the tree so that exactly `k` clusters remain.

    Args:
        dendrogram: Output of build_dendrogram.
        k: Number of clusters, 1 <= k <= number of documents.

    Returns:
        ClusterAssignment with labels 0..k-1.

    Raises:
        InvalidInputError: If k is not an integer in range.
    """
    n = dendrogram.n_documents
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidInputError(f"Cluster count must be an integer, got {k!r}")
    k = int(k)
    if not 1 <= k <= n:
        raise InvalidInputError(
            f"Cluster count {k} is out of range for {n} documents (expected 1..{n})",
            details={"k": k, "n_documents": n},
        )
    assignment = _apply_merges(dendrogram, n - k)
    logger.info(f"Cut dendrogram into {k} clusters")
    return assignment


def cut_tree_at_height(dendrogram: Dendrogram, height: float) -> ClusterAssignment:
    """Apply every merge whose linkage distance is at most `height`.

    Ward heights never decrease along the merge sequence, so this is a
    prefix of the merges, matching scipy's fcluster(criterion="distance").
    """
    if isinstance(height, bool) or not isinstance(height, numbers.Real):
        raise InvalidInputError(f"Height must be a number, got {height!r}")
    if not math.isfinite(height) or height < 0:
        raise InvalidInputError(f"Height must be finite and nonnegative, got {height}")
    n_merges = 0
    for merge in dendrogram.merges:
        if merge.distance > height:
            break
        n_merges += 1
    assignment = _apply_merges(dendrogram, n_merges)
    logger.info(f"Cut dendrogram at height {height:.6g} into {assignment.n_clusters} clusters")
    return assignment
