"""Topical clustering of text documents from a document-term count matrix."""

from .exceptions import (
    DimensionMismatchError,
    InvalidInputError,
    NotFittedError,
    TermClusterError,
)
from .models import (
    ClusterAssignment,
    ClusterResult,
    ClusterSummary,
    Dendrogram,
    DistanceMatrix,
    IdfVector,
    Merge,
    TermDocMatrix,
    TermScore,
    WeightedMatrix,
)
from .weighting import apply_tfidf, compute_idf, document_frequency
from .similarity import cosine_distance, normalize_rows
from .clustering import build_dendrogram, cut_tree, cut_tree_at_height
from .profiler import keywords_summary, summaries_to_frame, summarize
from .pipeline import TopicClusterer, cluster_documents

__version__ = "0.1.0"

__all__ = [
    "TermClusterError",
    "InvalidInputError",
    "DimensionMismatchError",
    "NotFittedError",
    "TermDocMatrix",
    "WeightedMatrix",
    "IdfVector",
    "DistanceMatrix",
    "Dendrogram",
    "Merge",
    "ClusterAssignment",
    "ClusterResult",
    "ClusterSummary",
    "TermScore",
    "document_frequency",
    "compute_idf",
    "apply_tfidf",
    "normalize_rows",
    "cosine_distance",
    "build_dendrogram",
    "cut_tree",
    "cut_tree_at_height",
    "summarize",
    "keywords_summary",
    "summaries_to_frame",
    "TopicClusterer",
    "cluster_documents",
]
