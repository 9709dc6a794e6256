"""Naive reference scans.

Literal nested loops over individuals and loci, one genotype at a time. They
are slow and exist only as the ground truth the fast scanners are checked
against: same inputs, same summation order, same visit counts.
"""

from __future__ import annotations

import numpy as np

from kinscan.core.errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidArgumentError,
)
from kinscan.genotype.lookup import FlatLookupTable
from kinscan.genotype.matrix import GenotypeMatrix, as_genotype_matrix
from kinscan.scan.results import MismatchResult, PairwiseResult, ScanStats


def reference_pairwise(
    source: GenotypeMatrix | np.ndarray,
    target: GenotypeMatrix | np.ndarray,
    t: int,
    table: FlatLookupTable,
) -> PairwiseResult:
    """Per-individual, per-locus loop version of comp_ind_pairwise()."""
    source = as_genotype_matrix(source)
    target = as_genotype_matrix(target)
    if source.n_loci != target.n_loci or table.n_loci != source.n_loci:
        raise DimensionMismatchError(
            f"Loci disagree: source {source.n_loci}, target {target.n_loci}, "
            f"table {table.n_loci}"
        )
    if not 1 <= t <= target.n_individuals:
        raise IndexOutOfRangeError(
            f"Target index {t} out of range [1, {target.n_individuals}]"
        )

    S = source.codes.tolist()
    T = target.codes[t - 1].tolist()
    values = table.values.tolist()
    n_genos = table.n_genos.tolist()
    starts = table.starts.tolist()

    totals = []
    counts = []
    for row in S:
        total = 0.0
        n = 0
        for j, (sG, tG) in enumerate(zip(row, T)):
            if sG >= 0 and tG >= 0:
                if sG >= n_genos[j] or tG >= n_genos[j]:
                    raise IndexOutOfRangeError(
                        f"Genotype pair ({sG}, {tG}) outside locus {j} block"
                    )
                n += 1
                total += values[starts[j] + n_genos[j] * sG + tG]
        totals.append(total)
        counts.append(n)

    return PairwiseResult.from_zero_based(
        np.arange(len(S)), np.array(totals), np.array(counts), t - 1
    )


def reference_geno_id(
    source: GenotypeMatrix | np.ndarray,
    max_mismatch: int,
    prune: bool = True,
) -> MismatchResult:
    """Per-pair loop version of pairwise_geno_id().

    Args:
        source: Genotypes, individuals x loci.
        max_mismatch: Mismatch bound.
        prune: If True, abandon a pair as soon as it exceeds the bound (the
            early-exit scan). If False, scan every locus of every pair and
            filter afterwards.

    Returns:
        MismatchResult whose stats.locus_visits and stats.cells_evaluated
        both equal the number of loci the loop actually visited.
    """
    if max_mismatch < 0:
        raise InvalidArgumentError(f"max_mismatch must be >= 0, got {max_mismatch}")

    source = as_genotype_matrix(source)
    G = source.codes.tolist()
    n_rows = len(G)

    rows1, rows2, mism, comp = [], [], [], []
    visits = 0
    pruned = 0
    for i in range(n_rows):
        for j in range(i + 1, n_rows):
            mm = 0
            n = 0
            bailed = False
            for g1, g2 in zip(G[i], G[j]):
                visits += 1
                if g1 >= 0 and g2 >= 0:
                    n += 1
                    mm += g1 != g2
                if prune and mm > max_mismatch:
                    bailed = True
                    break
            if bailed or mm > max_mismatch:
                pruned += 1
                continue
            rows1.append(i)
            rows2.append(j)
            mism.append(mm)
            comp.append(n)

    stats = ScanStats(
        n_pairs=n_rows * (n_rows - 1) // 2,
        n_pruned=pruned,
        locus_visits=visits,
        cells_evaluated=visits,
    )
    return MismatchResult.from_zero_based(
        np.array(rows1, dtype=np.int64),
        np.array(rows2, dtype=np.int64),
        np.array(mism, dtype=np.int64),
        np.array(comp, dtype=np.int64),
        max_mismatch=max_mismatch,
        stats=stats,
    )
