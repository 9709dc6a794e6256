"""Single-target pairwise likelihood accumulation.

Every source individual is compared against one fixed target individual. At
each locus where both are observed, the lookup value for the ordered pair
(source genotype, target genotype) is added to the individual's total:

    value[i] = sum over loci j observed in both of
               values[starts[j] + n_genos[j] * S[i, j] + T[t, j]]

Loci missing in either individual contribute nothing and are not counted.

Totals are accumulated strictly in locus order (a sequential running sum, not
a pairwise reduction), so results are bit-identical to a plain nested loop
over individuals and loci on both backends.
"""

from __future__ import annotations

import numbers
import time

import numpy as np
from loguru import logger

from kinscan.core.backend import resolve_backend
from kinscan.core.config import ScanConfig
from kinscan.core.errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidArgumentError,
)
from kinscan.genotype.lookup import FlatLookupTable
from kinscan.genotype.matrix import GenotypeMatrix, as_genotype_matrix
from kinscan.scan.results import PairwiseResult


def _check_inputs(
    source: GenotypeMatrix,
    target: GenotypeMatrix,
    target_index: int,
    table: FlatLookupTable,
) -> int:
    """Validate shapes and the 1-based target index; return the 0-based row."""
    if source.n_loci != target.n_loci:
        raise DimensionMismatchError(
            f"Source has {source.n_loci} loci but target has {target.n_loci}"
        )
    if table.n_loci != source.n_loci:
        raise DimensionMismatchError(
            f"Lookup table covers {table.n_loci} loci but genotypes have "
            f"{source.n_loci}"
        )
    if isinstance(target_index, bool) or not isinstance(
        target_index, numbers.Integral
    ):
        raise InvalidArgumentError(
            f"Target index must be an integer, got {target_index!r}"
        )
    if not 1 <= target_index <= target.n_individuals:
        raise IndexOutOfRangeError(
            f"Target index {target_index} out of range "
            f"[1, {target.n_individuals}]"
        )
    return int(target_index) - 1


# Peak bytes per (row, locus) cell of one block: an int64 offsets or cumsum
# buffer, the float64 gather, the observed mask and its negation
_BYTES_PER_BLOCK_CELL = 18


def auto_tune_block_loci(n_rows: int, n_loci: int, mem_budget_mb: float) -> int:
    """Compute the widest locus block whose temporaries fit the budget.

    Args:
        n_rows: Rows in one row chunk.
        n_loci: Total number of loci.
        mem_budget_mb: Budget for per-block temporaries in megabytes.

    Returns:
        Block width in loci, at least 1 and at most n_loci.
    """
    per_locus = max(n_rows, 1) * _BYTES_PER_BLOCK_CELL
    width = int(mem_budget_mb * 1e6 // per_locus)
    return max(1, min(width, n_loci))


def _add_block_numpy(
    table: FlatLookupTable,
    source_block: np.ndarray,
    target_block: np.ndarray,
    loci: slice,
    totals: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    offsets, observed = table.pair_offsets(source_block, target_block, loci)
    contrib = table.values.take(offsets)
    del offsets
    # Assign rather than multiply: lookup values may be -inf
    contrib[~observed] = 0.0
    # Seeding the first column with the carried totals keeps the cumsum a
    # single left-to-right running sum across blocks; a 0.0 seed turns -0.0
    # into 0.0 as a loop seeded at 0.0 would
    contrib[:, 0] += totals
    # Copy the last column so the full cumsum buffer is freed with the block
    return np.cumsum(contrib, axis=1)[:, -1].copy(), observed.sum(axis=1)


def _add_block_jax(
    table: FlatLookupTable,
    source_block: np.ndarray,
    target_block: np.ndarray,
    loci: slice,
    totals: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    from kinscan.scan.pairwise_jax import accumulate_block

    # Offsets are bounds-checked on the host before anything reaches JAX
    offsets, observed = table.pair_offsets(source_block, target_block, loci)
    block_totals, block_counts = accumulate_block(
        table.values, offsets, observed, totals
    )
    return np.asarray(block_totals), np.asarray(block_counts)


def _accumulate(
    source_codes: np.ndarray,
    target_row: np.ndarray,
    table: FlatLookupTable,
    config: ScanConfig,
    add_block,
) -> tuple[np.ndarray, np.ndarray]:
    """Sum lookup values per source row over row chunks and locus blocks.

    Temporaries are bounded by config.mem_budget_mb regardless of the number
    of loci; each row's total is carried from one locus block to the next.

    Returns:
        Tuple of (totals, counts), one entry per source row.
    """
    n_rows, n_loci = source_codes.shape
    totals = np.zeros(n_rows, dtype=np.float64)
    counts = np.zeros(n_rows, dtype=np.int64)

    if n_rows == 0 or n_loci == 0:
        return totals, counts

    chunk_rows = min(config.row_chunk_size, n_rows)
    width = auto_tune_block_loci(chunk_rows, n_loci, config.mem_budget_mb)
    logger.debug(
        f"Pairwise blocks: {chunk_rows} rows x {width} loci "
        f"(budget {config.mem_budget_mb:g} MB)"
    )

    for start in range(0, n_rows, chunk_rows):
        stop = min(start + chunk_rows, n_rows)
        chunk_totals = np.zeros(stop - start, dtype=np.float64)
        for first in range(0, n_loci, width):
            loci = slice(first, min(first + width, n_loci))
            chunk_totals, block_counts = add_block(
                table,
                source_codes[start:stop, loci],
                target_row[loci],
                loci,
                chunk_totals,
            )
            counts[start:stop] += block_counts
        totals[start:stop] = chunk_totals

    return totals, counts


class PairwiseLikelihoodScanner:
    """Compare every source individual against one target individual.

    The scanner holds only configuration; inputs are passed to scan() and
    never modified, so one scanner can serve many calls.

    Args:
        config: Scan configuration. Defaults to ScanConfig().
        backend: "numpy" or "jax". Overrides config.backend; None defers to
            config.backend and then to KINSCAN_BACKEND.

    Example:
        >>> scanner = PairwiseLikelihoodScanner()
        >>> result = scanner.scan(source, target, 1, table)
        >>> result.value.argmax() + 1  # most likely parent of target 1
    """

    def __init__(self, config: ScanConfig | None = None, backend: str | None = None):
        self.config = config or ScanConfig()
        self.config.validate()
        self.backend = resolve_backend(backend or self.config.backend)

    def scan(
        self,
        source: GenotypeMatrix | np.ndarray,
        target: GenotypeMatrix | np.ndarray,
        target_index: int,
        table: FlatLookupTable,
    ) -> PairwiseResult:
        """Accumulate lookup values of each source individual against one target.

        Args:
            source: Source (parent-like) genotypes, individuals x loci.
            target: Target (offspring-like) genotypes, individuals x loci.
            target_index: 1-based row of the target individual in ``target``.
            table: Per-locus lookup blocks indexed [source][target].

        Returns:
            PairwiseResult with one row per source individual, in source order.

        Raises:
            DimensionMismatchError: If source, target and table disagree on
                the number of loci.
            IndexOutOfRangeError: If target_index is outside
                [1, target.n_individuals] or an observed genotype code falls
                outside its locus lookup block.
            InvalidArgumentError: If target_index is not an integer.
        """
        source = as_genotype_matrix(source)
        target = as_genotype_matrix(target)
        target_row = _check_inputs(source, target, target_index, table)

        logger.debug(
            f"Pairwise scan: {source.n_individuals} source individuals x "
            f"{source.n_loci} loci against target {target_index} "
            f"(backend={self.backend})"
        )
        t0 = time.perf_counter()

        add_block = _add_block_jax if self.backend == "jax" else _add_block_numpy
        totals, counts = _accumulate(
            source.codes,
            target.codes[target_row],
            table,
            self.config,
            add_block,
        )

        elapsed = time.perf_counter() - t0
        logger.debug(f"Pairwise scan against target {target_index} in {elapsed:.3f}s")

        return PairwiseResult.from_zero_based(
            np.arange(source.n_individuals), totals, counts, target_row
        )


def comp_ind_pairwise(
    source: GenotypeMatrix | np.ndarray,
    target: GenotypeMatrix | np.ndarray,
    t: int,
    table: FlatLookupTable,
    config: ScanConfig | None = None,
    backend: str | None = None,
) -> PairwiseResult:
    """Compare all source individuals against target individual ``t`` (1-based).

    Functional form of PairwiseLikelihoodScanner.scan().

    Example:
        >>> source = GenotypeMatrix([[0, 1], [1, -1]])
        >>> target = GenotypeMatrix([[1, 0]])
        >>> table = FlatLookupTable.from_blocks([block0, block1])
        >>> result = comp_ind_pairwise(source, target, 1, table)
        >>> result.num_loc.tolist()
        [2, 1]
    """
    return PairwiseLikelihoodScanner(config, backend=backend).scan(
        source, target, t, table
    )
