"""Near-duplicate genotype detection with bounded-mismatch early exit.

Every unordered pair of individuals (i, j), i < j, is compared locus by locus.
A locus counts as compared when both genotypes are observed, and as a
mismatch when the observed genotypes differ. A pair is reported when its
mismatch count over all loci is at most ``max_mismatch``.

The mismatch count never decreases as more loci are scanned, so once it
exceeds the bound the pair can be dropped without looking at the remaining
loci: early exit returns exactly what a full scan followed by a threshold
filter would. Datasets are normally screened for high-missingness individuals
first, which makes most unrelated pairs exceed a small bound within the first
few loci.

Algorithm (per anchor row i):
1. Start with every candidate j > i and a block width of
   ScanConfig.initial_block_loci.
2. Compare the anchor with all remaining candidates over the next block of
   loci, keeping running mismatch and compared counts.
3. Drop candidates whose running mismatch count exceeds the bound anywhere in
   the block (checking the block's last column is enough, by monotonicity).
4. Double the block width (capped at max_block_loci) and repeat until the
   loci or the candidates run out. Survivors are emitted.

Doubling keeps the work spent on a pruned pair within a constant factor of
the locus where it was pruned, while long runs of surviving pairs are
compared in wide vectorized blocks.
"""

from __future__ import annotations

import numbers
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from loguru import logger

from kinscan.core.config import ScanConfig
from kinscan.core.errors import InvalidArgumentError
from kinscan.core.progress import pair_progress
from kinscan.core.threading import blas_threads, resolve_worker_count
from kinscan.genotype.matrix import GenotypeMatrix, as_genotype_matrix
from kinscan.scan.results import MismatchResult, ScanStats

# Anchor blocks per worker; several per worker evens out the shrinking
# candidate count of later anchors.
_BLOCKS_PER_WORKER = 4


@dataclass
class _AnchorBlockResult:
    rows1: list[np.ndarray]
    rows2: list[np.ndarray]
    num_mismatch: list[np.ndarray]
    num_loc: list[np.ndarray]
    n_pairs: int = 0
    n_pruned: int = 0
    locus_visits: int = 0
    cells_evaluated: int = 0


def _validate_max_mismatch(max_mismatch: int) -> int:
    if isinstance(max_mismatch, bool) or not isinstance(
        max_mismatch, numbers.Integral
    ):
        raise InvalidArgumentError(
            f"max_mismatch must be a non-negative integer, got {max_mismatch!r}"
        )
    if max_mismatch < 0:
        raise InvalidArgumentError(
            f"max_mismatch must be a non-negative integer, got {max_mismatch}"
        )
    return int(max_mismatch)


def _scan_anchor(
    codes: np.ndarray,
    anchor: int,
    max_mismatch: int,
    initial_block: int,
    max_block: int,
    out: _AnchorBlockResult,
) -> None:
    """Compare one anchor row with every later row, appending survivors to out."""
    n_rows, n_loci = codes.shape
    candidates = np.arange(anchor + 1, n_rows)
    if candidates.size == 0:
        return

    anchor_row = codes[anchor]
    mismatches = np.zeros(candidates.size, dtype=np.int64)
    compared = np.zeros(candidates.size, dtype=np.int64)
    out.n_pairs += candidates.size

    start = 0
    width = initial_block
    while start < n_loci and candidates.size:
        stop = min(start + width, n_loci)
        span = stop - start

        a = anchor_row[start:stop]
        b = codes[candidates, start:stop]
        observed = (a >= 0) & (b >= 0)
        running = mismatches[:, None] + np.cumsum(observed & (a != b), axis=1)
        out.cells_evaluated += b.size

        over = running[:, -1] > max_mismatch
        if over.any():
            # Loci a sequential scan would have visited: up to and including
            # the first one that pushed the pair over the bound
            first_over = np.argmax(running[over] > max_mismatch, axis=1)
            out.locus_visits += int(first_over.sum()) + first_over.size
            out.n_pruned += first_over.size

            keep = ~over
            candidates = candidates[keep]
            running = running[keep]
            observed = observed[keep]
            compared = compared[keep]

        out.locus_visits += candidates.size * span
        mismatches = running[:, -1]
        compared = compared + observed.sum(axis=1)

        start = stop
        width = min(width * 2, max_block)

    if candidates.size:
        out.rows1.append(np.full(candidates.size, anchor, dtype=np.int64))
        out.rows2.append(candidates)
        out.num_mismatch.append(mismatches)
        out.num_loc.append(compared)


def _scan_anchor_block(
    codes: np.ndarray,
    anchors: np.ndarray,
    max_mismatch: int,
    initial_block: int,
    max_block: int,
) -> _AnchorBlockResult:
    out = _AnchorBlockResult([], [], [], [])
    for anchor in anchors:
        _scan_anchor(codes, int(anchor), max_mismatch, initial_block, max_block, out)
    return out


def _concat(parts: list[np.ndarray]) -> np.ndarray:
    if not parts:
        return np.zeros(0, dtype=np.int64)
    return np.concatenate(parts)


class DuplicateScanner:
    """Find all pairs of individuals with at most ``max_mismatch`` mismatching loci.

    Args:
        config: Scan configuration (block sizes, workers, progress).
            Defaults to ScanConfig().

    Example:
        >>> scanner = DuplicateScanner(ScanConfig(n_workers=4))
        >>> result = scanner.find_close_genotype_pairs(genotypes, max_mismatch=2)
        >>> for rec in result:
        ...     print(rec.ind1, rec.ind2, rec.num_mismatch, rec.num_loc)
    """

    def __init__(self, config: ScanConfig | None = None):
        self.config = config or ScanConfig()
        self.config.validate()

    def _anchor_blocks(self, n_anchors: int, n_workers: int) -> list[np.ndarray]:
        n_blocks = min(n_anchors, n_workers * _BLOCKS_PER_WORKER)
        return [b for b in np.array_split(np.arange(n_anchors), n_blocks) if b.size]

    def find_close_genotype_pairs(
        self,
        source: GenotypeMatrix | np.ndarray,
        max_mismatch: int,
    ) -> MismatchResult:
        """Return every pair whose mismatch count is at most ``max_mismatch``.

        Args:
            source: Genotypes, individuals x loci, negative codes missing.
            max_mismatch: Largest number of mismatching loci a reported pair
                may have. Loci missing in either individual never count.

        Returns:
            MismatchResult ordered by (ind1, ind2), 1-based, ind1 < ind2.

        Raises:
            InvalidArgumentError: If max_mismatch is negative or not an integer.
        """
        max_mismatch = _validate_max_mismatch(max_mismatch)
        source = as_genotype_matrix(source)
        codes = source.codes
        n_rows = source.n_individuals
        n_workers = resolve_worker_count(self.config.n_workers)
        initial_block = self.config.initial_block_loci
        max_block = self.config.max_block_loci

        logger.debug(
            f"Duplicate scan: {n_rows} individuals x {source.n_loci} loci, "
            f"max_mismatch={max_mismatch}, workers={n_workers}"
        )
        t0 = time.perf_counter()

        n_anchors = max(n_rows - 1, 0)
        if n_anchors == 0:
            block_results: list[_AnchorBlockResult] = []
        elif n_workers == 1:
            anchors = range(n_anchors)
            if self.config.show_progress:
                anchors = pair_progress(
                    anchors, [n_rows - 1 - anchor for anchor in anchors]
                )
            out = _AnchorBlockResult([], [], [], [])
            for anchor in anchors:
                _scan_anchor(codes, anchor, max_mismatch, initial_block, max_block, out)
            block_results = [out]
        else:
            blocks = self._anchor_blocks(n_anchors, n_workers)
            with blas_threads(1), ThreadPoolExecutor(max_workers=n_workers) as pool:
                # map() yields in submission order, so anchor order is preserved
                mapped = pool.map(
                    lambda anchors: _scan_anchor_block(
                        codes, anchors, max_mismatch, initial_block, max_block
                    ),
                    blocks,
                )
                if self.config.show_progress:
                    mapped = pair_progress(
                        mapped,
                        [int((n_rows - 1 - block).sum()) for block in blocks],
                        desc="Scanning pair blocks",
                    )
                block_results = list(mapped)

        elapsed = time.perf_counter() - t0
        stats = ScanStats(
            n_pairs=sum(r.n_pairs for r in block_results),
            n_pruned=sum(r.n_pruned for r in block_results),
            locus_visits=sum(r.locus_visits for r in block_results),
            cells_evaluated=sum(r.cells_evaluated for r in block_results),
            elapsed_s=elapsed,
        )
        result = MismatchResult.from_zero_based(
            _concat([p for r in block_results for p in r.rows1]),
            _concat([p for r in block_results for p in r.rows2]),
            _concat([p for r in block_results for p in r.num_mismatch]),
            _concat([p for r in block_results for p in r.num_loc]),
            max_mismatch=max_mismatch,
            stats=stats,
        )

        logger.debug(
            f"Duplicate scan: {len(result)} of {stats.n_pairs} pairs within "
            f"{max_mismatch} mismatches ({stats.n_pruned} pruned, "
            f"{stats.locus_visits} locus visits) in {elapsed:.3f}s"
        )
        return result


def pairwise_geno_id(
    source: GenotypeMatrix | np.ndarray,
    max_miss: int,
    config: ScanConfig | None = None,
) -> MismatchResult:
    """Return every pair of individuals mismatching at no more than ``max_miss`` loci.

    Functional form of DuplicateScanner.find_close_genotype_pairs().

    Example:
        >>> G = GenotypeMatrix([[0, 0, 0], [0, 0, 1], [0, 1, 1]])
        >>> pairwise_geno_id(G, 1).records()
        [MismatchRecord(ind1=1, ind2=2, num_mismatch=1, num_loc=3),
         MismatchRecord(ind1=2, ind2=3, num_mismatch=1, num_loc=3)]
    """
    return DuplicateScanner(config).find_close_genotype_pairs(source, max_miss)
