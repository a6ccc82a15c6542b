"""Tests for cluster summaries and distinctiveness scores."""

import pytest

from termcluster.exceptions import DimensionMismatchError, InvalidInputError
from termcluster.models import ClusterAssignment, TermDocMatrix
from termcluster.profiler import keywords_summary, summaries_to_frame, summarize


@pytest.fixture
def two_clusters():
    return ClusterAssignment(labels={"A": 0, "B": 0, "C": 1, "D": 1}, n_clusters=2)


class TestSummarize:
    def test_scenario_sizes_and_terms(self, four_docs, two_clusters):
        summaries = summarize(four_docs, two_clusters, top_n=5)
        assert [s.cluster_id for s in summaries] == [0, 1]
        assert [s.size for s in summaries] == [2, 2]
        assert summaries[0].keywords == ["t1", "t3"]
        assert summaries[1].keywords == ["t2", "t3"]

    def test_scenario_scores(self, four_docs, two_clusters):
        first, second = summarize(four_docs, two_clusters, top_n=5)
        # Corpus totals: t1=4, t2=6, t3=3 out of 13
        assert first.top_terms[0].score == pytest.approx(4 / 6 - 4 / 13)
        assert first.top_terms[1].score == pytest.approx(2 / 6 - 3 / 13)
        assert second.top_terms[0].score == pytest.approx(6 / 7 - 6 / 13)
        assert second.top_terms[1].score == pytest.approx(1 / 7 - 3 / 13)
        assert second.top_terms[1].score < 0

    def test_top_n_truncates(self, four_docs, two_clusters):
        summaries = summarize(four_docs, two_clusters, top_n=1)
        assert [s.keywords for s in summaries] == [["t1"], ["t2"]]

    def test_top_n_zero_gives_no_terms(self, four_docs, two_clusters):
        assert all(s.top_terms == [] for s in summarize(four_docs, two_clusters, top_n=0))

    def test_whole_corpus_cluster_scores_exactly_zero(self, four_docs):
        everything = ClusterAssignment(labels={d: 0 for d in four_docs.doc_ids}, n_clusters=1)
        (summary,) = summarize(four_docs, everything, top_n=10)
        assert summary.size == 4
        assert len(summary.top_terms) == 3
        assert all(ts.score == 0.0 for ts in summary.top_terms)

    def test_equal_scores_ordered_by_term(self, four_docs):
        everything = ClusterAssignment(labels={d: 0 for d in four_docs.doc_ids}, n_clusters=1)
        (summary,) = summarize(four_docs, everything, top_n=10)
        assert summary.keywords == ["t1", "t2", "t3"]

    def test_cluster_of_empty_documents_has_no_terms(self):
        counts = TermDocMatrix.from_dense([[1, 2], [0, 0]], ["full", "empty"], ["x", "y"])
        assignment = ClusterAssignment(labels={"full": 0, "empty": 1}, n_clusters=2)
        summaries = summarize(counts, assignment, top_n=3)
        assert summaries[1].size == 1
        assert summaries[1].top_terms == []
        assert summaries[1].label == "Cluster 1"

    def test_terms_absent_from_cluster_are_dropped(self, four_docs, two_clusters):
        first, _ = summarize(four_docs, two_clusters, top_n=10)
        assert "t2" not in first.keywords

    def test_unknown_document_rejected(self, four_docs):
        assignment = ClusterAssignment(labels={"A": 0, "Z": 1}, n_clusters=2)
        with pytest.raises(DimensionMismatchError):
            summarize(four_docs, assignment, top_n=3)

    @pytest.mark.parametrize("top_n", [-1, 1.5, True])
    def test_invalid_top_n_rejected(self, four_docs, two_clusters, top_n):
        with pytest.raises(InvalidInputError):
            summarize(four_docs, two_clusters, top_n=top_n)

    def test_default_top_n_from_config(self, four_docs, two_clusters, monkeypatch):
        monkeypatch.setattr("termcluster.config.DEFAULT_TOP_N", 1)
        summaries = summarize(four_docs, two_clusters)
        assert all(len(s.top_terms) == 1 for s in summaries)


class TestSummaryHelpers:
    def test_keywords_summary(self, four_docs, two_clusters):
        pairs = keywords_summary(summarize(four_docs, two_clusters, top_n=5), top=1)
        assert pairs == [(0, ["t1"]), (1, ["t2"])]

    def test_summaries_to_frame(self, four_docs, two_clusters):
        df = summaries_to_frame(summarize(four_docs, two_clusters, top_n=5))
        assert list(df.columns) == ["cluster", "size", "rank", "term", "score"]
        assert len(df) == 4
        assert df.loc[df["cluster"] == 1, "term"].tolist() == ["t2", "t3"]

    def test_summaries_to_frame_empty(self):
        assert summaries_to_frame([]).empty
