"""Data models for termcluster."""

from .matrix import DistanceMatrix, IdfVector, TermDocMatrix, WeightedMatrix
from .dendrogram import Dendrogram, Merge
from .cluster import ClusterAssignment, ClusterResult, ClusterSummary, TermScore

__all__ = [
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
]
