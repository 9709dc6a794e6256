"""Validation modules for kinscan.

This package contains utilities for checking scanner output:
- reference: Naive nested-loop scans used as ground truth
- tolerances: Tolerance thresholds for the floating-point value column
- compare: Structured result comparison with tolerance configuration
"""

from kinscan.validation.compare import (
    ComparisonResult,
    compare_arrays,
    compare_mismatch_results,
    compare_pairwise_results,
)
from kinscan.validation.reference import reference_geno_id, reference_pairwise
from kinscan.validation.tolerances import ToleranceConfig

__all__ = [
    "ToleranceConfig",
    "ComparisonResult",
    "compare_arrays",
    "compare_mismatch_results",
    "compare_pairwise_results",
    "reference_geno_id",
    "reference_pairwise",
]
