"""Cluster data models."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TermScore(BaseModel):
    """A term and its distinctiveness score within one cluster."""

    model_config = ConfigDict(frozen=True)

    term: str
    score: float


class ClusterSummary(BaseModel):
    """Size and characteristic terms of a single cluster."""

    model_config = ConfigDict(frozen=True)

    cluster_id: int
    size: int = 0
    top_terms: List[TermScore] = Field(default_factory=list)

    @property
    def keywords(self) -> List[str]:
        return [ts.term for ts in self.top_terms]

    @property
    def label(self) -> str:
        kws = self.keywords
        return ", ".join(kws[:3]) if kws else f"Cluster {self.cluster_id}"


class ClusterAssignment(BaseModel):
    """Flat clustering: document id -> cluster label.

    Labels run from 0 to n_clusters - 1 in order of each cluster's first
    document. They carry no meaning beyond identity.
    """

    model_config = ConfigDict(frozen=True)

    labels: Mapping[str, int]
    n_clusters: int

    @model_validator(mode="after")
    def _check_labels(self) -> "ClusterAssignment":
        distinct = len(set(self.labels.values()))
        if distinct != self.n_clusters:
            raise ValueError(
                f"n_clusters={self.n_clusters} but labels use {distinct} distinct cluster(s)"
            )
        # Read-only view over a private copy
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))
        return self

    def __len__(self) -> int:
        return len(self.labels)

    def label_of(self, doc_id: str) -> int:
        return self.labels[doc_id]

    def members(self, label: int) -> List[str]:
        return [doc for doc, lbl in self.labels.items() if lbl == label]

    def sizes(self) -> Dict[int, int]:
        out: Dict[int, int] = {}
        for lbl in self.labels.values():
            out[lbl] = out.get(lbl, 0) + 1
        return dict(sorted(out.items()))

    def to_series(self) -> pd.Series:
        return pd.Series(dict(self.labels), name="cluster", dtype="int64").rename_axis("doc_id")


class ClusterResult(BaseModel):
    """Full result of one cut: assignment plus per-cluster summaries."""

    n_clusters: int = 0
    clusters: List[ClusterSummary] = Field(default_factory=list)
    # Per-document data for downstream plotting
    doc_ids: List[str] = Field(default_factory=list)
    cluster_ids: List[int] = Field(default_factory=list)
    silhouette: Optional[float] = None

    @property
    def assignment(self) -> ClusterAssignment:
        return ClusterAssignment(
            labels=dict(zip(self.doc_ids, self.cluster_ids)),
            n_clusters=self.n_clusters,
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per document with its cluster id and cluster label."""
        labels = {c.cluster_id: c.label for c in self.clusters}
        return pd.DataFrame(
            {
                "doc_id": self.doc_ids,
                "cluster": self.cluster_ids,
                "cluster_label": [labels.get(cid, f"Cluster {cid}") for cid in self.cluster_ids],
            }
        )
