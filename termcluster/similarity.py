"""Cosine distance between TF-IDF weighted documents.

Distances are 1 - u_a . u_b over L2-normalized rows. The dense D x D
product dominates the whole pipeline, so it is computed in independent row
blocks that may run on a thread pool and are then assembled.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np
from scipy import sparse
from sklearn.preprocessing import normalize

from . import config
from .exceptions import InvalidInputError
from .models.matrix import DistanceMatrix, WeightedMatrix

logger = logging.getLogger(__name__)

# Distance assigned to any pair that involves an all-zero document
DEGENERATE_DISTANCE = 1.0


def normalize_rows(weighted: WeightedMatrix) -> Tuple[sparse.csr_matrix, np.ndarray]:
    """Scale every document row to unit Euclidean length.

    Returns:
        Tuple of (unit-row CSR matrix, boolean mask of zero-norm rows). Zero
        rows are left as zeros rather than divided.
    """
    degenerate = weighted.row_norms() == 0.0
    unit = normalize(weighted.values, norm="l2", axis=1, copy=True)
    return sparse.csr_matrix(unit), degenerate


def _row_blocks(n: int, block_size: int) -> List[Tuple[int, int]]:
    return [(start, min(start + block_size, n)) for start in range(0, n, block_size)]


def _similarity_block(unit: sparse.csr_matrix, unit_t: sparse.csc_matrix, start: int, stop: int) -> np.ndarray:
    block = unit[start:stop] @ unit_t
    return np.asarray(block.toarray() if sparse.issparse(block) else block, dtype=np.float64)


def cosine_distance(
    weighted: WeightedMatrix,
    *,
    block_size: Optional[int] = None,
    n_workers: Optional[int] = None,
    zero_tolerance: Optional[float] = None,
) -> DistanceMatrix:
    """Pairwise cosine distance between all documents.

    Args:
        weighted: TF-IDF weighted matrix.
        block_size: Rows per similarity block (default config.BLOCK_SIZE).
        n_workers: Threads used for blocks; 1 computes them inline.
        zero_tolerance: Distances within this band of 0 become exactly 0.

    Returns:
        DistanceMatrix with values in [0, 2] (in [0, 1] for nonnegative
        weights), zero diagonal for regular documents, and 1.0 for every
        entry in the row and column of a degenerate document.

    Raises:
        InvalidInputError: If there are no documents, or every document
            has an all-zero weight row.
    """
    n = weighted.n_documents
    if n == 0:
        raise InvalidInputError("Cannot compute distances for an empty corpus")

    block_size = config.BLOCK_SIZE if block_size is None else block_size
    n_workers = config.N_WORKERS if n_workers is None else n_workers
    tol = config.ZERO_TOLERANCE if zero_tolerance is None else zero_tolerance
    if block_size < 1 or n_workers < 1:
        raise InvalidInputError("block_size and n_workers must be positive")

    unit, degenerate = normalize_rows(weighted)
    n_degenerate = int(degenerate.sum())
    if n_degenerate == n:
        raise InvalidInputError(
            f"All {n} documents have zero weight; nothing to cluster",
            details={"n_documents": n},
        )
    if n_degenerate:
        logger.warning(
            f"{n_degenerate} of {n} documents have zero weight; "
            f"their distances are fixed at {DEGENERATE_DISTANCE}"
        )

    unit_t = unit.T.tocsc()
    blocks = _row_blocks(n, block_size)
    similarity = np.empty((n, n), dtype=np.float64)

    if n_workers > 1 and len(blocks) > 1:
        logger.debug(f"Computing {len(blocks)} similarity blocks on {n_workers} threads")
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = {
                executor.submit(_similarity_block, unit, unit_t, start, stop): (start, stop)
                for start, stop in blocks
            }
            for future, (start, stop) in futures.items():
                similarity[start:stop] = future.result()
    else:
        for start, stop in blocks:
            similarity[start:stop] = _similarity_block(unit, unit_t, start, stop)

    distance = 1.0 - similarity
    distance = (distance + distance.T) / 2.0
    distance[np.abs(distance) < tol] = 0.0
    np.clip(distance, 0.0, 2.0, out=distance)
    np.fill_diagonal(distance, 0.0)
    distance[degenerate, :] = DEGENERATE_DISTANCE
    distance[:, degenerate] = DEGENERATE_DISTANCE

    logger.info(f"Computed {n}x{n} cosine distance matrix in {len(blocks)} block(s)")
    return DistanceMatrix(doc_ids=weighted.doc_ids, values=distance, degenerate=degenerate)
