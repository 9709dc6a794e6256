"""Pytest fixtures for the kinscan test suite."""

from __future__ import annotations

import numpy as np
import pytest
from loguru import logger

from kinscan import FlatLookupTable, GenotypeMatrix

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast unit tests (pure computation, no I/O)
#   - Run on every commit
#   - Run: pytest -m tier0
#
# slow - Scale tests (thousands of individuals, seconds each)
#   - Run manually before releases
#   - Run: pytest -m slow
#
# Quick reference:
#   pytest -m tier0           # Fast tests only
#   pytest -m "not slow"      # Everything except scale tests
#   pytest                    # All tests
# =============================================================================


@pytest.fixture
def caplog_loguru():
    """Capture loguru messages (DEBUG and above) into a list."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def two_locus_table() -> FlatLookupTable:
    """Asymmetric two-locus table with two genotypes per locus.

    Every entry is distinct, so each (locus, source, target) lookup can be
    identified from the value it returns:
        locus 0: [[0.1, 0.2], [0.3, 0.4]]
        locus 1: [[1.0, 2.0], [3.0, 4.0]]
    """
    return FlatLookupTable.from_blocks(
        [
            np.array([[0.1, 0.2], [0.3, 0.4]]),
            np.array([[1.0, 2.0], [3.0, 4.0]]),
        ]
    )


@pytest.fixture
def duplicate_genotypes() -> GenotypeMatrix:
    """Three individuals over three loci with one and two mismatches."""
    return GenotypeMatrix([[0, 0, 0], [0, 0, 1], [0, 1, 1]])


@pytest.fixture
def random_genotypes():
    """Factory for random genotype matrices with a given missing rate."""

    def _make(
        n_individuals: int,
        n_loci: int,
        n_genos: int = 3,
        missing_rate: float = 0.1,
        seed: int = 42,
    ) -> GenotypeMatrix:
        rng = np.random.default_rng(seed)
        codes = rng.integers(0, n_genos, size=(n_individuals, n_loci))
        codes[rng.random((n_individuals, n_loci)) < missing_rate] = -1
        return GenotypeMatrix(codes)

    return _make


def make_pairwise_inputs(
    n_source: int,
    n_target: int,
    n_loci: int,
    max_genos: int = 4,
    missing_rate: float = 0.1,
    seed: int = 7,
) -> tuple[GenotypeMatrix, GenotypeMatrix, FlatLookupTable]:
    """Random source/target matrices and a table whose blocks fit their codes."""
    rng = np.random.default_rng(seed)
    n_genos = rng.integers(1, max_genos + 1, size=n_loci)
    blocks = [rng.normal(size=(k, k)) for k in n_genos]

    def _codes(n_rows: int) -> np.ndarray:
        codes = (rng.random((n_rows, n_loci)) * n_genos).astype(np.int64)
        codes[rng.random((n_rows, n_loci)) < missing_rate] = -1
        return codes

    return (
        GenotypeMatrix(_codes(n_source)),
        GenotypeMatrix(_codes(n_target)),
        FlatLookupTable.from_blocks(blocks),
    )


@pytest.fixture
def pairwise_inputs():
    """Factory fixture wrapping make_pairwise_inputs."""
    return make_pairwise_inputs
