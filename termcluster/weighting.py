"""TF-IDF weighting of a raw document-term count matrix."""

from __future__ import annotations

import logging

import numpy as np
from scipy import sparse

from .exceptions import InvalidInputError
from .models.matrix import IdfVector, TermDocMatrix, WeightedMatrix

logger = logging.getLogger(__name__)


def document_frequency(counts: TermDocMatrix) -> np.ndarray:
    """Number of documents in which each term occurs at least once.

    Returns:
        Read-only int64 array aligned with `counts.terms`.
    """
    # Stored zeros are eliminated on construction, so nnz per column is df
    df = np.asarray(counts.values.getnnz(axis=0), dtype=np.int64)
    df.flags.writeable = False
    return df


def compute_idf(counts: TermDocMatrix) -> IdfVector:
    """Compute idf(t) = ln(N / df(t)) for every term of the matrix.

    Terms present in every document get an idf of exactly 0 and therefore
    contribute nothing to later distances. That is intended.

    Args:
        counts: Document-term count matrix.

    Returns:
        IdfVector aligned with `counts.terms`.

    Raises:
        InvalidInputError: If any term occurs in no document.
    """
    n_docs = counts.n_documents
    df = document_frequency(counts)

    unused = np.flatnonzero(df == 0)
    if unused.size:
        names = [counts.terms[i] for i in unused[:10]]
        raise InvalidInputError(
            f"{unused.size} term(s) have zero document frequency, e.g. {names}",
            details={"terms": [counts.terms[i] for i in unused]},
        )

    values = np.log(n_docs / df.astype(np.float64)) if df.size else np.zeros(0)
    # ln(N / N) is exactly 0.0; keep it from drifting to -0.0
    values[df == n_docs] = 0.0

    logger.info(
        f"Computed IDF over {n_docs} documents and {df.size} terms "
        f"({int(np.sum(df == n_docs))} ubiquitous)"
    )
    return IdfVector(
        terms=counts.terms,
        values=values,
        document_frequency=df,
        n_documents=n_docs,
    )


def apply_tfidf(counts: TermDocMatrix, idf: IdfVector) -> WeightedMatrix:
    """Multiply every count by the idf of its term.

    Only stored nonzeros are touched, so zero counts stay zero. Rows and
    columns are not normalized here.

    Raises:
        DimensionMismatchError: If the matrix and IDF vector disagree on terms.
    """
    idf_values = idf.reindex(counts.terms)

    weighted = counts.values.astype(np.float64)
    # CSR stores column indices per nonzero; scale each by its term's idf
    weighted.data = weighted.data * idf_values[weighted.indices]
    weighted = sparse.csr_matrix(weighted)
    weighted.eliminate_zeros()

    logger.debug(f"Applied TF-IDF: {counts.nnz} counts -> {weighted.nnz} nonzero weights")
    return WeightedMatrix(doc_ids=counts.doc_ids, terms=counts.terms, values=weighted)
