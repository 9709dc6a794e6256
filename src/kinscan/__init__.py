"""kinscan: pairwise genotype scanning for close-kin and duplicate detection.

kinscan is the numeric engine behind close-kin mark-recapture style workflows.
It provides two bulk scans over integer genotype matrices (rows are
individuals, columns are loci, negative codes are missing):

- comp_ind_pairwise: sum precomputed per-locus genotype-pair values (e.g. log
  likelihood ratios) for every source individual against one target
- pairwise_geno_id: find every pair of individuals that mismatch at no more
  than a given number of loci, abandoning pairs as soon as they exceed it

Both return columnar tables with 1-based individual indices.

Example:
    >>> from kinscan import GenotypeMatrix, pairwise_geno_id
    >>> G = GenotypeMatrix([[0, 0, 0], [0, 0, 1], [0, 1, 1]])
    >>> pairwise_geno_id(G, max_miss=1).pairs()
    {(1, 2), (2, 3)}
"""

import sys
from importlib.metadata import PackageNotFoundError, version

from loguru import logger

try:
    __version__ = version("kinscan")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add() or setup_logging()
logger.remove()
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from kinscan.core import (  # noqa: E402
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidArgumentError,
    KinscanError,
    ScanConfig,
)
from kinscan.genotype import MISSING, FlatLookupTable, GenotypeMatrix  # noqa: E402
from kinscan.scan import (  # noqa: E402
    DuplicateScanner,
    MismatchRecord,
    MismatchResult,
    PairwiseLikelihoodScanner,
    PairwiseRecord,
    PairwiseResult,
    ScanStats,
    comp_ind_pairwise,
    pairwise_geno_id,
)

__all__ = [
    "__version__",
    "MISSING",
    "GenotypeMatrix",
    "FlatLookupTable",
    "PairwiseLikelihoodScanner",
    "DuplicateScanner",
    "comp_ind_pairwise",
    "pairwise_geno_id",
    "PairwiseResult",
    "PairwiseRecord",
    "MismatchResult",
    "MismatchRecord",
    "ScanStats",
    "ScanConfig",
    "KinscanError",
    "DimensionMismatchError",
    "IndexOutOfRangeError",
    "InvalidArgumentError",
]
