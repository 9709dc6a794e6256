"""Columnar result tables returned by the scanners.

Results are stored as parallel numpy arrays, one per field, because callers
mostly want whole columns (for a data frame, a threshold mask, a histogram).
Record access is layered on top for the cases where rows are easier to read.

Individual indices in every result are 1-based. The scanners index rows from
0 internally; the shift happens only in the ``from_zero_based`` constructors
below.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np


def _column(values, dtype) -> np.ndarray:
    array = np.array(values, dtype=dtype, copy=True).reshape(-1)
    array.setflags(write=False)
    return array


class PairwiseRecord(NamedTuple):
    """One source individual compared against the target."""

    ind: int
    value: float
    num_loc: int


class MismatchRecord(NamedTuple):
    """One pair of individuals within the mismatch bound."""

    ind1: int
    ind2: int
    num_mismatch: int
    num_loc: int


@dataclass(frozen=True, eq=False)
class PairwiseResult:
    """Accumulated values of every source individual against one target.

    Attributes:
        ind: 1-based source row index, in source-row order.
        value: Sum of lookup values over loci observed in both individuals.
        num_loc: Number of loci observed in both individuals.
        target: 1-based index of the target individual.
    """

    ind: np.ndarray
    value: np.ndarray
    num_loc: np.ndarray
    target: int

    @classmethod
    def from_zero_based(
        cls,
        rows: np.ndarray,
        value: np.ndarray,
        num_loc: np.ndarray,
        target_row: int,
    ) -> PairwiseResult:
        """Build a result from 0-based row indices and a 0-based target row."""
        return cls(
            ind=_column(np.asarray(rows) + 1, np.int64),
            value=_column(value, np.float64),
            num_loc=_column(num_loc, np.int64),
            target=int(target_row) + 1,
        )

    def __len__(self) -> int:
        return self.ind.size

    def __iter__(self) -> Iterator[PairwiseRecord]:
        for ind, value, num_loc in zip(
            self.ind.tolist(), self.value.tolist(), self.num_loc.tolist()
        ):
            yield PairwiseRecord(ind, value, num_loc)

    def records(self) -> list[PairwiseRecord]:
        return list(self)

    def to_dict(self) -> dict[str, np.ndarray]:
        """Return the columns as a dict of parallel arrays (data frame ready)."""
        return {"ind": self.ind, "value": self.value, "num_loc": self.num_loc}


@dataclass(frozen=True)
class ScanStats:
    """Work counters from a duplicate scan.

    Attributes:
        n_pairs: Unordered pairs considered, n * (n - 1) / 2.
        n_pruned: Pairs abandoned because mismatches exceeded the bound.
        locus_visits: Loci a per-pair sequential early-exit scan visits:
            the pruning locus + 1 for pruned pairs, all loci for kept pairs.
        cells_evaluated: Genotype comparisons actually performed. Loci are
            compared in blocks, so this is at least locus_visits.
        elapsed_s: Wall-clock duration of the scan in seconds.
    """

    n_pairs: int = 0
    n_pruned: int = 0
    locus_visits: int = 0
    cells_evaluated: int = 0
    elapsed_s: float = 0.0


@dataclass(frozen=True, eq=False)
class MismatchResult:
    """Pairs of individuals whose mismatch count stays within a bound.

    Rows are ordered by ind1, then ind2, the order of a nested loop over
    (i, j) with i < j. Parallel scans keep this order.

    Attributes:
        ind1: 1-based index of the first individual (always < ind2).
        ind2: 1-based index of the second individual.
        num_mismatch: Loci where both are observed and the genotypes differ.
        num_loc: Loci where both individuals are observed.
        max_mismatch: The bound the scan was run with.
        stats: Work counters for the scan.
    """

    ind1: np.ndarray
    ind2: np.ndarray
    num_mismatch: np.ndarray
    num_loc: np.ndarray
    max_mismatch: int
    stats: ScanStats = field(default_factory=ScanStats)

    @classmethod
    def from_zero_based(
        cls,
        rows1: np.ndarray,
        rows2: np.ndarray,
        num_mismatch: np.ndarray,
        num_loc: np.ndarray,
        max_mismatch: int,
        stats: ScanStats | None = None,
    ) -> MismatchResult:
        """Build a result from 0-based row index arrays."""
        return cls(
            ind1=_column(np.asarray(rows1, dtype=np.int64) + 1, np.int64),
            ind2=_column(np.asarray(rows2, dtype=np.int64) + 1, np.int64),
            num_mismatch=_column(num_mismatch, np.int64),
            num_loc=_column(num_loc, np.int64),
            max_mismatch=int(max_mismatch),
            stats=stats if stats is not None else ScanStats(),
        )

    def __len__(self) -> int:
        return self.ind1.size

    def __iter__(self) -> Iterator[MismatchRecord]:
        for row in zip(
            self.ind1.tolist(),
            self.ind2.tolist(),
            self.num_mismatch.tolist(),
            self.num_loc.tolist(),
        ):
            yield MismatchRecord(*row)

    def records(self) -> list[MismatchRecord]:
        return list(self)

    def pairs(self) -> set[tuple[int, int]]:
        """Return the qualifying pairs as a set of (ind1, ind2) tuples."""
        return set(zip(self.ind1.tolist(), self.ind2.tolist()))

    def to_dict(self) -> dict[str, np.ndarray]:
        """Return the columns as a dict of parallel arrays (data frame ready)."""
        return {
            "ind1": self.ind1,
            "ind2": self.ind2,
            "num_mismatch": self.num_mismatch,
            "num_loc": self.num_loc,
        }
