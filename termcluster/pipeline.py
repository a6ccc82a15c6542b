"""
termcluster pipeline - end to end entry point

Chains the four stages:
    counts -> TF-IDF weights -> cosine distances -> Ward dendrogram
           -> flat cut -> cluster summaries

The expensive part (weighting, distances, dendrogram) runs once in fit();
cut() is cheap and can be called for as many cluster counts as needed.

Example usage:
    counts = TermDocMatrix.from_mapping({"a": {"tax": 2, "road": 1}, ...})
    clusterer = TopicClusterer().fit(counts)
    for k in (2, 3, 4):
        result = clusterer.cut(k)
        print(keywords_summary(result.clusters))
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from sklearn.metrics import silhouette_score

from .clustering import build_dendrogram, cut_tree
from .config import ClusteringConfig
from .exceptions import NotFittedError
from .models.cluster import ClusterAssignment, ClusterResult
from .models.dendrogram import Dendrogram
from .models.matrix import DistanceMatrix, IdfVector, TermDocMatrix, WeightedMatrix
from .profiler import summarize
from .similarity import cosine_distance
from .weighting import apply_tfidf, compute_idf

logger = logging.getLogger(__name__)


def _silhouette(distance: DistanceMatrix, assignment: ClusterAssignment) -> Optional[float]:
    """Silhouette over precomputed distances; None when it is undefined."""
    n = distance.n_documents
    if not 2 <= assignment.n_clusters <= n - 1:
        return None
    values = np.array(distance.values)
    # Degenerate documents carry 1.0 on their own diagonal
    np.fill_diagonal(values, 0.0)
    labels = [assignment.labels[d] for d in distance.doc_ids]
    return float(silhouette_score(values, labels, metric="precomputed"))


class TopicClusterer:
    """Two-phase clusterer: fit() builds the dendrogram, cut() reads it."""

    def __init__(self, config: Optional[ClusteringConfig] = None):
        self.config = config or ClusteringConfig()
        self.counts: Optional[TermDocMatrix] = None
        self.idf: Optional[IdfVector] = None
        self.weighted: Optional[WeightedMatrix] = None
        self.distance: Optional[DistanceMatrix] = None
        self.dendrogram: Optional[Dendrogram] = None

    @property
    def is_fitted(self) -> bool:
        return self.dendrogram is not None

    def fit(self, counts: TermDocMatrix) -> "TopicClusterer":
        """Weight, compare and agglomerate the corpus.

        Args:
            counts: Document-term count matrix.

        Returns:
            self, for chaining.
        """
        cfg = self.config
        logger.info(
            f"Fitting on {counts.n_documents} documents x {counts.n_terms} terms "
            f"({counts.nnz} nonzero counts)"
        )
        idf = compute_idf(counts)
        weighted = apply_tfidf(counts, idf)
        distance = cosine_distance(
            weighted,
            block_size=cfg.block_size,
            n_workers=cfg.n_workers,
            zero_tolerance=cfg.zero_tolerance,
        )
        dendrogram = build_dendrogram(
            distance,
            tie_tolerance=cfg.tie_tolerance,
            symmetry_tolerance=cfg.symmetry_tolerance,
        )

        self.counts = counts
        self.idf = idf
        self.weighted = weighted
        self.distance = distance
        self.dendrogram = dendrogram
        return self

    def cut(self, n_clusters: int, top_n: Optional[int] = None) -> ClusterResult:
        """Flat clustering with `n_clusters` groups plus their summaries.

        Raises:
            NotFittedError: If fit() has not been called.
            InvalidInputError: If n_clusters is out of range.
        """
        if not self.is_fitted:
            raise NotFittedError("TopicClusterer.cut() called before fit()")

        assignment = cut_tree(self.dendrogram, n_clusters)
        top_n = self.config.top_n if top_n is None else top_n
        clusters = summarize(self.counts, assignment, top_n)
        silhouette = _silhouette(self.distance, assignment) if self.config.compute_silhouette else None

        doc_ids = list(self.dendrogram.doc_ids)
        return ClusterResult(
            n_clusters=assignment.n_clusters,
            clusters=clusters,
            doc_ids=doc_ids,
            cluster_ids=[assignment.labels[d] for d in doc_ids],
            silhouette=silhouette,
        )


def cluster_documents(
    counts: TermDocMatrix,
    n_clusters: int,
    *,
    top_n: Optional[int] = None,
    config: Optional[ClusteringConfig] = None,
) -> ClusterResult:
    """Cluster a corpus into `n_clusters` groups in one call."""
    return TopicClusterer(config).fit(counts).cut(n_clusters, top_n=top_n)
