import numpy as np
import pytest

from termcluster.models import TermDocMatrix, WeightedMatrix


@pytest.fixture
def four_docs():
    """Two topical pairs: {A, B} share term t1, {C, D} share term t2."""
    return TermDocMatrix.from_dense(
        [
            [2, 0, 1],
            [2, 0, 1],
            [0, 3, 0],
            [0, 3, 1],
        ],
        doc_ids=["A", "B", "C", "D"],
        terms=["t1", "t2", "t3"],
    )


@pytest.fixture
def random_weights():
    """Tie-free positive weights for comparisons against scipy."""
    rng = np.random.default_rng(7)
    values = rng.random((12, 6))
    return WeightedMatrix(
        doc_ids=tuple(f"doc{i}" for i in range(12)),
        terms=tuple(f"term{j}" for j in range(6)),
        values=values,
    )
