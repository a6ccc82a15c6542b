"""
Configuration settings for termcluster.

Every setting has a working default; environment variables (or a .env file
in the project root) only override them.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load environment variables from .env file
# Look for .env file in project root (parent of termcluster/)
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)

# ===================
# Profiling
# ===================

# Number of characteristic terms reported per cluster
DEFAULT_TOP_N = int(os.getenv("TERMCLUSTER_TOP_N", "10"))

# ===================
# Numerical tolerances
# ===================

# Relative band within which two merge costs count as tied
TIE_TOLERANCE = float(os.getenv("TERMCLUSTER_TIE_TOLERANCE", "1e-12"))

# Distances closer than this to zero are clamped to exactly zero
ZERO_TOLERANCE = float(os.getenv("TERMCLUSTER_ZERO_TOLERANCE", "1e-12"))

# Maximum |d[a,b] - d[b,a]| accepted by build_dendrogram
SYMMETRY_TOLERANCE = float(os.getenv("TERMCLUSTER_SYMMETRY_TOLERANCE", "1e-9"))

# ===================
# Similarity throughput
# ===================

BLOCK_SIZE = int(os.getenv("TERMCLUSTER_BLOCK_SIZE", "512"))
N_WORKERS = int(os.getenv("TERMCLUSTER_N_WORKERS", "1"))

# ===================
# Logging
# ===================

LOG_LEVEL = os.getenv("TERMCLUSTER_LOG_LEVEL", "WARNING")


class ClusteringConfig(BaseModel):
    """Settings consumed by TopicClusterer."""

    model_config = ConfigDict(frozen=True)

    top_n: int = Field(default=DEFAULT_TOP_N, ge=0)
    tie_tolerance: float = Field(default=TIE_TOLERANCE, ge=0.0)
    zero_tolerance: float = Field(default=ZERO_TOLERANCE, ge=0.0)
    symmetry_tolerance: float = Field(default=SYMMETRY_TOLERANCE, ge=0.0)
    block_size: int = Field(default=BLOCK_SIZE, ge=1)
    n_workers: int = Field(default=N_WORKERS, ge=1)
    compute_silhouette: bool = True

    @classmethod
    def from_env(cls) -> "ClusteringConfig":
        """Build a config from the current TERMCLUSTER_* environment."""
        return cls(
            top_n=int(os.getenv("TERMCLUSTER_TOP_N", str(DEFAULT_TOP_N))),
            tie_tolerance=float(os.getenv("TERMCLUSTER_TIE_TOLERANCE", str(TIE_TOLERANCE))),
            zero_tolerance=float(os.getenv("TERMCLUSTER_ZERO_TOLERANCE", str(ZERO_TOLERANCE))),
            symmetry_tolerance=float(
                os.getenv("TERMCLUSTER_SYMMETRY_TOLERANCE", str(SYMMETRY_TOLERANCE))
            ),
            block_size=int(os.getenv("TERMCLUSTER_BLOCK_SIZE", str(BLOCK_SIZE))),
            n_workers=int(os.getenv("TERMCLUSTER_N_WORKERS", str(N_WORKERS))),
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a basic stderr handler at the configured level.

    Applications call this; the library itself never configures logging.
    """
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="[%(levelname)s] %(name)s: %(message)s",
    )
