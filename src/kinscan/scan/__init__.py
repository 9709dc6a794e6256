"""Pairwise genotype scanners.

- pairwise: PairwiseLikelihoodScanner, single-target lookup accumulation
- duplicates: DuplicateScanner, all-pairs mismatch scan with early exit
- results: Columnar PairwiseResult and MismatchResult tables
"""

from kinscan.scan.duplicates import DuplicateScanner, pairwise_geno_id
from kinscan.scan.pairwise import PairwiseLikelihoodScanner, comp_ind_pairwise
from kinscan.scan.results import (
    MismatchRecord,
    MismatchResult,
    PairwiseRecord,
    PairwiseResult,
    ScanStats,
)

__all__ = [
    "DuplicateScanner",
    "PairwiseLikelihoodScanner",
    "comp_ind_pairwise",
    "pairwise_geno_id",
    "MismatchRecord",
    "MismatchResult",
    "PairwiseRecord",
    "PairwiseResult",
    "ScanStats",
]
