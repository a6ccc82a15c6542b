"""Cluster characterization by term distinctiveness.

A term's score in cluster c is p_c(t) - p(t): its share of all term
occurrences inside the cluster minus its share across the corpus. Positive
scores mark terms over-represented in the cluster.
"""

from __future__ import annotations

import logging
import numbers
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from . import config
from .exceptions import DimensionMismatchError, InvalidInputError
from .models.cluster import ClusterAssignment, ClusterSummary, TermScore
from .models.matrix import TermDocMatrix

logger = logging.getLogger(__name__)


def _cluster_rows(counts: TermDocMatrix, assignment: ClusterAssignment) -> Dict[int, List[int]]:
    unknown = [doc for doc in assignment.labels if not counts.has_document(doc)]
    if unknown:
        raise DimensionMismatchError(
            f"Assignment references {len(unknown)} unknown document(s), e.g. {unknown[:5]}",
            details={"unknown_documents": unknown},
        )
    rows: Dict[int, List[int]] = {}
    for doc, label in assignment.labels.items():
        rows.setdefault(int(label), []).append(counts.doc_position(doc))
    return dict(sorted(rows.items()))


def _top_terms(
    terms: Tuple[str, ...],
    cluster_totals: np.ndarray,
    corpus_share: np.ndarray,
    top_n: int,
) -> List[TermScore]:
    """Rank terms that occur in the cluster by p_c - p, highest first."""
    cluster_sum = int(cluster_totals.sum())
    if cluster_sum == 0 or top_n == 0:
        return []
    present = np.flatnonzero(cluster_totals)
    scores = cluster_totals[present] / cluster_sum - corpus_share[present]
    # Descending score, ties by term text
    order = sorted(range(present.size), key=lambda i: (-scores[i], terms[present[i]]))
    return [
        TermScore(term=terms[present[i]], score=float(scores[i]))
        for i in order[:top_n]
    ]


def summarize(
    counts: TermDocMatrix,
    assignment: ClusterAssignment,
    top_n: Optional[int] = None,
) -> List[ClusterSummary]:
    """Size and most distinctive terms of every cluster.

    Args:
        counts: The raw count matrix the clustering was derived from.
        assignment: Cluster label per document.
        top_n: Number of terms per cluster (default config.DEFAULT_TOP_N).

    Returns:
        One ClusterSummary per label, in ascending label order.

    Raises:
        DimensionMismatchError: If the assignment names unknown documents.
        InvalidInputError: If top_n is negative or not an integer.
    """
    top_n = config.DEFAULT_TOP_N if top_n is None else top_n
    if isinstance(top_n, bool) or not isinstance(top_n, numbers.Integral) or top_n < 0:
        raise InvalidInputError(f"top_n must be a nonnegative integer, got {top_n!r}")

    rows_per_cluster = _cluster_rows(counts, assignment)

    corpus_totals = counts.column_totals()
    corpus_sum = int(corpus_totals.sum())
    if corpus_sum:
        corpus_share = corpus_totals / corpus_sum
    else:
        corpus_share = np.zeros(counts.n_terms, dtype=np.float64)

    summaries: List[ClusterSummary] = []
    for cid, rows in rows_per_cluster.items():
        cluster_totals = np.asarray(counts.values[rows].sum(axis=0), dtype=np.int64).ravel()
        summaries.append(
            ClusterSummary(
                cluster_id=cid,
                size=len(rows),
                top_terms=_top_terms(counts.terms, cluster_totals, corpus_share, int(top_n)),
            )
        )

    logger.info(f"Summarized {len(summaries)} clusters (top {top_n} terms each)")
    return summaries


def keywords_summary(summaries: List[ClusterSummary], top: int = 6) -> List[Tuple[int, List[str]]]:
    """Return list of (cluster_id, top_keywords) pairs for quick printing."""
    return [(s.cluster_id, s.keywords[:top]) for s in sorted(summaries, key=lambda s: s.cluster_id)]


def summaries_to_frame(summaries: List[ClusterSummary]) -> pd.DataFrame:
    """Long format: one row per (cluster, term) with rank and score."""
    rows = [
        {
            "cluster": s.cluster_id,
            "size": s.size,
            "rank": rank,
            "term": ts.term,
            "score": ts.score,
        }
        for s in summaries
        for rank, ts in enumerate(s.top_terms, start=1)
    ]
    return pd.DataFrame(rows, columns=["cluster", "size", "rank", "term", "score"])
