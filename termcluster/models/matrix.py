"""Matrix artifacts passed between pipeline stages.

Each artifact is a frozen dataclass keyed by document and term identifiers.
Constructors copy their inputs, so a stage can never alias a buffer that
belongs to its caller. Every numeric buffer, the CSR data, indices and
indptr arrays included, is then marked read-only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from scipy.spatial.distance import squareform

from ..exceptions import DimensionMismatchError, InvalidInputError


def _unique_keys(keys: Iterable[Any], kind: str) -> Tuple[Any, ...]:
    out = tuple(keys)
    if len(set(out)) != len(out):
        dupes = sorted(str(k) for k, n in Counter(out).items() if n > 1)
        raise InvalidInputError(
            f"Duplicate {kind} keys: {dupes[:5]}",
            details={"kind": kind, "duplicates": dupes},
        )
    return out


def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def _readonly_csr(matrix: sparse.csr_matrix) -> sparse.csr_matrix:
    # Settle the canonical-format flags first so scipy never needs to
    # rewrite these buffers in place later
    matrix.sum_duplicates()
    matrix.sort_indices()
    for array in (matrix.data, matrix.indices, matrix.indptr):
        array.flags.writeable = False
    return matrix


def _to_csr(values: Any, dtype: Any) -> sparse.csr_matrix:
    """Copy `values` into canonical CSR form (no duplicates, no stored zeros)."""
    if sparse.issparse(values):
        matrix = sparse.csr_matrix(values, copy=True)
    else:
        dense = np.asarray(values)
        if dense.ndim != 2:
            raise InvalidInputError(f"Expected a 2D matrix, got {dense.ndim} dimension(s)")
        matrix = sparse.csr_matrix(dense)
    matrix.sum_duplicates()
    if matrix.dtype.kind not in "biuf":
        raise InvalidInputError(f"Matrix values must be numeric, got dtype {matrix.dtype}")
    matrix = matrix.astype(dtype) if matrix.dtype != dtype else matrix
    matrix.eliminate_zeros()
    matrix.sort_indices()
    return matrix


@dataclass(frozen=True, eq=False)
class _KeyedMatrix(ABC):
    """Sparse documents x terms matrix with unique row and column keys."""

    doc_ids: Tuple[str, ...]
    terms: Tuple[str, ...]
    values: sparse.csr_matrix
    _doc_index: Dict[str, int] = field(init=False, repr=False)
    _term_index: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        doc_ids = _unique_keys(self.doc_ids, "document")
        terms = _unique_keys(self.terms, "term")
        values = _readonly_csr(self._coerce(self.values))
        if values.shape != (len(doc_ids), len(terms)):
            raise DimensionMismatchError(
                f"Matrix shape {values.shape} does not match "
                f"{len(doc_ids)} documents x {len(terms)} terms",
                details={"shape": values.shape, "n_docs": len(doc_ids), "n_terms": len(terms)},
            )
        object.__setattr__(self, "doc_ids", doc_ids)
        object.__setattr__(self, "terms", terms)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "_doc_index", {d: i for i, d in enumerate(doc_ids)})
        object.__setattr__(self, "_term_index", {t: i for i, t in enumerate(terms)})

    @abstractmethod
    def _coerce(self, values: Any) -> sparse.csr_matrix:
        """Validate and convert raw values to this matrix's CSR dtype."""

    @property
    def n_documents(self) -> int:
        return len(self.doc_ids)

    @property
    def n_terms(self) -> int:
        return len(self.terms)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n_documents, self.n_terms)

    @property
    def nnz(self) -> int:
        return int(self.values.nnz)

    def doc_position(self, doc_id: str) -> int:
        try:
            return self._doc_index[doc_id]
        except KeyError:
            raise DimensionMismatchError(f"Unknown document: {doc_id!r}") from None

    def term_position(self, term: str) -> int:
        try:
            return self._term_index[term]
        except KeyError:
            raise DimensionMismatchError(f"Unknown term: {term!r}") from None

    def has_document(self, doc_id: str) -> bool:
        return doc_id in self._doc_index

    def get(self, doc_id: str, term: str) -> Any:
        """Value at (doc_id, term); absent entries are zero."""
        return self.values[self.doc_position(doc_id), self.term_position(term)]

    def to_frame(self) -> pd.DataFrame:
        """Dense DataFrame with documents as index and terms as columns."""
        return pd.DataFrame(
            self.values.toarray(),
            index=pd.Index(self.doc_ids, name="doc_id"),
            columns=pd.Index(self.terms, name="term"),
        )


@dataclass(frozen=True, eq=False)
class TermDocMatrix(_KeyedMatrix):
    """Raw occurrence counts: rows are documents, columns are terms."""

    def _coerce(self, values: Any) -> sparse.csr_matrix:
        matrix = _to_csr(values, np.float64)
        data = matrix.data
        if not np.all(np.isfinite(data)):
            raise InvalidInputError("Counts must be finite")
        if np.any(data < 0):
            raise InvalidInputError("Counts must be nonnegative")
        if np.any(data != np.floor(data)):
            raise InvalidInputError("Counts must be whole numbers")
        return matrix.astype(np.int64)

    @classmethod
    def from_dense(
        cls,
        values: Any,
        doc_ids: Sequence[str],
        terms: Sequence[str],
    ) -> "TermDocMatrix":
        return cls(doc_ids=tuple(doc_ids), terms=tuple(terms), values=np.asarray(values))

    @classmethod
    def from_mapping(
        cls,
        counts: Mapping[str, Mapping[str, int]],
        *,
        terms: Optional[Sequence[str]] = None,
    ) -> "TermDocMatrix":
        """Build from {doc_id: {term: count}}.

        Args:
            counts: Per-document term counts. Document order is preserved.
            terms: Optional fixed vocabulary. When omitted, terms are ordered
                by first appearance.

        Returns:
            TermDocMatrix
        """
        doc_ids = list(counts.keys())
        if terms is None:
            vocab: Dict[str, int] = {}
            for row in counts.values():
                for term in row:
                    vocab.setdefault(term, len(vocab))
            term_list: List[str] = list(vocab)
        else:
            term_list = list(terms)
            vocab = {t: i for i, t in enumerate(term_list)}

        rows: List[int] = []
        cols: List[int] = []
        data: List[float] = []
        for i, doc_id in enumerate(doc_ids):
            for term, count in counts[doc_id].items():
                j = vocab.get(term)
                if j is None:
                    raise DimensionMismatchError(
                        f"Document {doc_id!r} uses term {term!r} outside the vocabulary"
                    )
                rows.append(i)
                cols.append(j)
                data.append(count)

        matrix = sparse.coo_matrix(
            (np.asarray(data, dtype=np.float64), (rows, cols)),
            shape=(len(doc_ids), len(term_list)),
        )
        return cls(doc_ids=tuple(doc_ids), terms=tuple(term_list), values=matrix)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "TermDocMatrix":
        """Build from a DataFrame indexed by document with one column per term."""
        return cls(
            doc_ids=tuple(str(d) for d in frame.index),
            terms=tuple(str(t) for t in frame.columns),
            values=frame.to_numpy(),
        )

    def column_totals(self) -> np.ndarray:
        """Total count of every term across the corpus."""
        return np.asarray(self.values.sum(axis=0), dtype=np.int64).ravel()


@dataclass(frozen=True, eq=False)
class WeightedMatrix(_KeyedMatrix):
    """TF-IDF weights, same keys as the count matrix they came from."""

    def _coerce(self, values: Any) -> sparse.csr_matrix:
        matrix = _to_csr(values, np.float64)
        if not np.all(np.isfinite(matrix.data)):
            raise InvalidInputError("Weights must be finite")
        if np.any(matrix.data < 0):
            raise InvalidInputError("Weights must be nonnegative")
        return matrix

    def row_norms(self) -> np.ndarray:
        """Euclidean length of every document row."""
        squared = self.values.multiply(self.values).sum(axis=1)
        return np.sqrt(np.asarray(squared, dtype=np.float64).ravel())


@dataclass(frozen=True, eq=False)
class IdfVector:
    """Inverse document frequency per term, fixed once computed."""

    terms: Tuple[str, ...]
    values: np.ndarray
    document_frequency: np.ndarray
    n_documents: int

    def __post_init__(self) -> None:
        terms = _unique_keys(self.terms, "term")
        values = np.array(self.values, dtype=np.float64)
        df = np.array(self.document_frequency, dtype=np.int64)
        if values.shape != (len(terms),) or df.shape != (len(terms),):
            raise DimensionMismatchError(
                f"IDF arrays of shape {values.shape}/{df.shape} do not match {len(terms)} terms"
            )
        object.__setattr__(self, "terms", terms)
        object.__setattr__(self, "values", _readonly(values))
        object.__setattr__(self, "document_frequency", _readonly(df))

    def __len__(self) -> int:
        return len(self.terms)

    def as_dict(self) -> Dict[str, float]:
        return {t: float(v) for t, v in zip(self.terms, self.values)}

    def reindex(self, terms: Sequence[str]) -> np.ndarray:
        """IDF values in the order of `terms`, which must be the same term set."""
        terms = tuple(terms)
        if terms == self.terms:
            return self.values
        if len(terms) != len(self.terms) or set(terms) != set(self.terms):
            missing = sorted(set(terms) - set(self.terms))
            extra = sorted(set(self.terms) - set(terms))
            raise DimensionMismatchError(
                "Term keys differ between matrix and IDF vector",
                details={"missing_from_idf": missing[:10], "missing_from_matrix": extra[:10]},
            )
        position = {t: i for i, t in enumerate(self.terms)}
        return _readonly(self.values[[position[t] for t in terms]])


@dataclass(frozen=True, eq=False)
class DistanceMatrix:
    """Symmetric pairwise document distances.

    `degenerate` flags documents whose weighted row was all zeros; their
    distance to every document, themselves included, is 1.0.
    """

    doc_ids: Tuple[str, ...]
    values: np.ndarray
    degenerate: Optional[np.ndarray] = None
    _doc_index: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        doc_ids = _unique_keys(self.doc_ids, "document")
        values = np.array(self.values, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise InvalidInputError(f"Distance matrix must be square, got shape {values.shape}")
        if values.shape[0] != len(doc_ids):
            raise DimensionMismatchError(
                f"Distance matrix of size {values.shape[0]} does not match {len(doc_ids)} documents"
            )
        if self.degenerate is None:
            degenerate = np.zeros(len(doc_ids), dtype=bool)
        else:
            degenerate = np.array(self.degenerate, dtype=bool)
            if degenerate.shape != (len(doc_ids),):
                raise DimensionMismatchError("Degenerate mask does not match document count")
        object.__setattr__(self, "doc_ids", doc_ids)
        object.__setattr__(self, "values", _readonly(values))
        object.__setattr__(self, "degenerate", _readonly(degenerate))
        object.__setattr__(self, "_doc_index", {d: i for i, d in enumerate(doc_ids)})

    @property
    def n_documents(self) -> int:
        return len(self.doc_ids)

    def get(self, a: str, b: str) -> float:
        try:
            return float(self.values[self._doc_index[a], self._doc_index[b]])
        except KeyError as e:
            raise DimensionMismatchError(f"Unknown document: {e.args[0]!r}") from None

    def condensed(self) -> np.ndarray:
        """Upper triangle in scipy's condensed layout (diagonal dropped)."""
        return squareform(self.values, force="tovector", checks=False)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, index=list(self.doc_ids), columns=list(self.doc_ids))
