"""Tests for IDF computation and TF-IDF weighting."""

import math

import numpy as np
import pytest

from termcluster.exceptions import DimensionMismatchError, InvalidInputError
from termcluster.models import IdfVector, TermDocMatrix
from termcluster.weighting import apply_tfidf, compute_idf, document_frequency


class TestDocumentFrequency:
    def test_counts_documents_not_occurrences(self, four_docs):
        assert document_frequency(four_docs).tolist() == [2, 2, 3]

    def test_is_read_only(self, four_docs):
        df = document_frequency(four_docs)
        with pytest.raises(ValueError):
            df[0] = 10


class TestComputeIdf:
    def test_scenario_values(self, four_docs):
        idf = compute_idf(four_docs)
        assert idf.n_documents == 4
        assert idf.as_dict() == pytest.approx(
            {"t1": math.log(2), "t2": math.log(2), "t3": math.log(4 / 3)}
        )

    def test_more_common_term_has_lower_idf(self, four_docs):
        idf = compute_idf(four_docs).as_dict()
        assert idf["t3"] < idf["t2"]

    def test_term_in_every_document_has_zero_idf(self):
        counts = TermDocMatrix.from_dense([[1, 5], [3, 0], [2, 0]], ["a", "b", "c"], ["all", "one"])
        idf = compute_idf(counts).as_dict()
        assert idf["all"] == 0.0
        assert idf["one"] == pytest.approx(math.log(3))

    def test_zero_document_frequency_rejected(self):
        counts = TermDocMatrix.from_dense([[1, 0], [2, 0]], ["a", "b"], ["used", "unused"])
        with pytest.raises(InvalidInputError) as exc:
            compute_idf(counts)
        assert exc.value.details["terms"] == ["unused"]

    def test_does_not_mutate_input(self, four_docs):
        before = four_docs.values.toarray().copy()
        compute_idf(four_docs)
        np.testing.assert_array_equal(four_docs.values.toarray(), before)

    def test_values_are_read_only(self, four_docs):
        idf = compute_idf(four_docs)
        with pytest.raises(ValueError):
            idf.values[0] = 1.0


class TestApplyTfidf:
    def test_weights_are_count_times_idf(self, four_docs):
        weighted = apply_tfidf(four_docs, compute_idf(four_docs))
        expected = np.array(
            [
                [2 * math.log(2), 0, math.log(4 / 3)],
                [2 * math.log(2), 0, math.log(4 / 3)],
                [0, 3 * math.log(2), 0],
                [0, 3 * math.log(2), math.log(4 / 3)],
            ]
        )
        np.testing.assert_allclose(weighted.values.toarray(), expected)
        assert weighted.doc_ids == four_docs.doc_ids
        assert weighted.terms == four_docs.terms

    def test_zero_counts_stay_zero(self, four_docs):
        weighted = apply_tfidf(four_docs, compute_idf(four_docs)).values.toarray()
        counts = four_docs.values.toarray()
        assert np.all(weighted[counts == 0] == 0.0)

    def test_ubiquitous_term_contributes_nothing(self):
        counts = TermDocMatrix.from_dense([[4, 1], [2, 0]], ["a", "b"], ["all", "rare"])
        weighted = apply_tfidf(counts, compute_idf(counts))
        assert weighted.get("a", "all") == 0.0
        assert weighted.get("a", "rare") == pytest.approx(math.log(2))
        assert weighted.nnz == 1

    def test_permuted_idf_terms_are_realigned(self, four_docs):
        idf = compute_idf(four_docs)
        permuted = IdfVector(
            terms=("t3", "t1", "t2"),
            values=[idf.values[2], idf.values[0], idf.values[1]],
            document_frequency=[3, 2, 2],
            n_documents=4,
        )
        a = apply_tfidf(four_docs, idf).values.toarray()
        b = apply_tfidf(four_docs, permuted).values.toarray()
        np.testing.assert_allclose(a, b)

    def test_mismatched_terms_rejected(self, four_docs):
        idf = IdfVector(terms=("t1", "t2", "other"), values=[1.0, 1.0, 1.0], document_frequency=[1, 1, 1], n_documents=4)
        with pytest.raises(DimensionMismatchError):
            apply_tfidf(four_docs, idf)
