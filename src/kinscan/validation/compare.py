"""Comparison utilities for validating scan results against a reference.

This module provides structured comparison functions that return detailed
results rather than raising exceptions, so parity checks can be collected
and reported programmatically.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.testing import assert_allclose

from kinscan.scan.results import MismatchResult, PairwiseResult
from kinscan.validation.tolerances import ToleranceConfig


@dataclass
class ComparisonResult:
    """Result of a result-table comparison.

    Attributes:
        passed: Whether the comparison passed within tolerance.
        max_abs_diff: Maximum absolute difference found.
        max_rel_diff: Maximum relative difference found (inf if expected was 0).
        worst_location: Index tuple of the worst mismatch, or None if passed.
        message: Human-readable description of the result.

    Example:
        >>> result = compare_pairwise_results(fast, reference_pairwise(...))
        >>> if not result.passed:
        ...     print(result.message)
    """

    passed: bool
    max_abs_diff: float
    max_rel_diff: float
    worst_location: tuple[int, ...] | None
    message: str


def compare_arrays(
    actual: np.ndarray,
    expected: np.ndarray,
    rtol: float,
    atol: float,
    name: str = "array",
) -> ComparisonResult:
    """Compare two arrays with tolerance and return structured result.

    Uses numpy.testing.assert_allclose internally but catches the assertion
    to return a structured ComparisonResult instead of raising. NaN values in
    the same positions compare equal.

    Args:
        actual: The computed array to validate.
        expected: The reference array to compare against.
        rtol: Relative tolerance for comparison.
        atol: Absolute tolerance for comparison.
        name: Name to use in messages for context.

    Returns:
        ComparisonResult with pass/fail status and diagnostic information.

    Example:
        >>> a = np.array([1.0, 2.0, 3.0])
        >>> compare_arrays(a, a.copy(), rtol=0.0, atol=0.0, name="test").passed
        True
    """
    actual = np.asarray(actual)
    expected = np.asarray(expected)

    if actual.shape != expected.shape:
        return ComparisonResult(
            passed=False,
            max_abs_diff=np.inf,
            max_rel_diff=np.inf,
            worst_location=None,
            message=(
                f"{name} shape mismatch: "
                f"actual {actual.shape} vs expected {expected.shape}"
            ),
        )

    if actual.size == 0:
        return ComparisonResult(
            passed=True,
            max_abs_diff=0.0,
            max_rel_diff=0.0,
            worst_location=None,
            message=f"{name} comparison passed (empty)",
        )

    with np.errstate(invalid="ignore"):
        abs_diff = np.abs(actual.astype(np.float64) - expected.astype(np.float64))
    both_nan = np.isnan(actual.astype(np.float64)) & np.isnan(
        expected.astype(np.float64)
    )
    abs_diff = np.where(both_nan, 0.0, abs_diff)

    try:
        assert_allclose(
            actual,
            expected,
            rtol=rtol,
            atol=atol,
            equal_nan=True,
            err_msg=f"{name} comparison",
        )
        max_abs_diff = float(np.max(abs_diff))

        with np.errstate(divide="ignore", invalid="ignore"):
            rel_diff = abs_diff / np.abs(expected)
            rel_diff = np.where(np.isfinite(rel_diff), rel_diff, 0.0)
        max_rel_diff = float(np.max(rel_diff))

        return ComparisonResult(
            passed=True,
            max_abs_diff=max_abs_diff,
            max_rel_diff=max_rel_diff,
            worst_location=None,
            message=(
                f"{name} comparison passed "
                f"(max abs diff: {max_abs_diff:.2e}, max rel diff: {max_rel_diff:.2e})"
            ),
        )

    except AssertionError:
        # NaN against a number is the worst possible difference
        abs_diff = np.where(np.isnan(abs_diff), np.inf, abs_diff)
        max_abs_diff = float(np.max(abs_diff))

        worst_idx_raw = np.unravel_index(np.argmax(abs_diff), abs_diff.shape)
        worst_idx = tuple(int(i) for i in worst_idx_raw)

        with np.errstate(divide="ignore", invalid="ignore"):
            rel_diff = abs_diff / np.abs(expected)
            rel_diff = np.where(np.isfinite(rel_diff), rel_diff, np.inf)
        max_rel_diff = float(np.max(rel_diff))

        return ComparisonResult(
            passed=False,
            max_abs_diff=max_abs_diff,
            max_rel_diff=max_rel_diff,
            worst_location=worst_idx,
            message=f"{name} comparison failed at {worst_idx}: "
            f"actual={actual[worst_idx]!r}, expected={expected[worst_idx]!r}, "
            f"abs_diff={abs_diff[worst_idx]:.2e} (rtol={rtol}, atol={atol})",
        )


def _first_failure(results: list[ComparisonResult], name: str) -> ComparisonResult:
    for result in results:
        if not result.passed:
            return result
    worst_abs = max((r.max_abs_diff for r in results), default=0.0)
    worst_rel = max((r.max_rel_diff for r in results), default=0.0)
    return ComparisonResult(
        passed=True,
        max_abs_diff=worst_abs,
        max_rel_diff=worst_rel,
        worst_location=None,
        message=f"{name} comparison passed ({len(results)} columns)",
    )


def compare_pairwise_results(
    actual: PairwiseResult,
    expected: PairwiseResult,
    config: ToleranceConfig | None = None,
) -> ComparisonResult:
    """Compare two pairwise scan results column by column.

    ind and num_loc must match exactly; value is compared with
    config.value_rtol / config.atol (exact by default).

    Args:
        actual: Result under test.
        expected: Reference result.
        config: Tolerances for the value column. Defaults to ToleranceConfig().

    Returns:
        The first failing column's ComparisonResult, or a passing summary.
    """
    if config is None:
        config = ToleranceConfig()

    if actual.target != expected.target:
        return ComparisonResult(
            passed=False,
            max_abs_diff=np.inf,
            max_rel_diff=np.inf,
            worst_location=None,
            message=f"target mismatch: actual {actual.target} vs "
            f"expected {expected.target}",
        )

    return _first_failure(
        [
            compare_arrays(actual.ind, expected.ind, 0.0, 0.0, name="ind"),
            compare_arrays(
                actual.num_loc, expected.num_loc, 0.0, 0.0, name="num_loc"
            ),
            compare_arrays(
                actual.value,
                expected.value,
                rtol=config.value_rtol,
                atol=config.atol,
                name="value",
            ),
        ],
        name="pairwise",
    )


def _sorted_columns(result: MismatchResult) -> dict[str, np.ndarray]:
    order = np.lexsort((result.ind2, result.ind1))
    return {key: column[order] for key, column in result.to_dict().items()}


def compare_mismatch_results(
    actual: MismatchResult,
    expected: MismatchResult,
    ordered: bool = False,
) -> ComparisonResult:
    """Compare two duplicate scan results exactly.

    Args:
        actual: Result under test.
        expected: Reference result.
        ordered: If True, row order must match too. Otherwise both tables are
            sorted by (ind1, ind2) before comparing.

    Returns:
        The first failing column's ComparisonResult, or a passing summary.
    """
    if ordered:
        actual_cols = actual.to_dict()
        expected_cols = expected.to_dict()
    else:
        actual_cols = _sorted_columns(actual)
        expected_cols = _sorted_columns(expected)

    return _first_failure(
        [
            compare_arrays(actual_cols[key], expected_cols[key], 0.0, 0.0, name=key)
            for key in ("ind1", "ind2", "num_mismatch", "num_loc")
        ],
        name="mismatch",
    )
