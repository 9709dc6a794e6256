"""Integer genotype matrix with a negative missing-data sentinel.

Rows are individuals, columns are loci. A non-negative entry is a
locus-specific genotype class; any negative entry means the genotype was not
called. Negative codes of any magnitude (R's NA_integer_, int64 sentinels)
are stored as MISSING, so the scanners only ever test ``code >= 0``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from kinscan.core.errors import IndexOutOfRangeError, InvalidArgumentError

MISSING = -1

_INT32_MAX = np.iinfo(np.int32).max


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class GenotypeMatrix:
    """Read-only (n_individuals, n_loci) table of integer genotype codes.

    The constructor copies its input, so later changes to the caller's array
    never reach the matrix and the scanners can share it across threads.

    Attributes:
        codes: Read-only int32 array of shape (n_individuals, n_loci).

    Example:
        >>> G = GenotypeMatrix([[0, 1], [1, -1]])
        >>> G.shape
        (2, 2)
        >>> G.observed_mask().sum()
        3
    """

    __slots__ = ("_codes",)

    def __init__(self, codes: np.ndarray | Sequence[Sequence[int]]):
        array = np.asarray(codes)

        if array.ndim != 2:
            raise InvalidArgumentError(
                f"Genotype matrix must be 2-D (individuals x loci), "
                f"got {array.ndim}-D array with shape {array.shape}"
            )

        if array.size == 0:
            array = array.astype(np.int32)
        elif not np.issubdtype(array.dtype, np.integer):
            if array.dtype == np.bool_ or not np.issubdtype(array.dtype, np.number):
                raise InvalidArgumentError(
                    f"Genotype codes must be integers, got dtype {array.dtype}"
                )
            if not np.all(np.isfinite(array)) or np.any(array != np.round(array)):
                raise InvalidArgumentError(
                    "Genotype codes must be integral; use GenotypeMatrix.from_float "
                    "for float matrices with NaN as missing"
                )

        # Any negative code is missing; collapse them all (NA_integer_,
        # int64 sentinels) to MISSING so only called codes need range checks
        if array.size:
            array = np.where(array < 0, np.int64(MISSING), array)
            if array.max() > _INT32_MAX:
                raise InvalidArgumentError(
                    "Genotype codes must fit in 32-bit integers"
                )

        self._codes = _frozen(np.array(array, dtype=np.int32, copy=True))

    @classmethod
    def from_float(cls, genotypes: np.ndarray) -> GenotypeMatrix:
        """Build a matrix from float genotypes with NaN marking missing calls.

        This is the layout of PLINK-style dosage arrays (0.0, 1.0, 2.0, NaN).

        Args:
            genotypes: 2-D float array. NaN becomes MISSING; every other value
                must be integral.

        Returns:
            GenotypeMatrix with the same shape.

        Raises:
            InvalidArgumentError: If the array is not 2-D or holds
                non-integral or infinite values.
        """
        array = np.asarray(genotypes, dtype=np.float64)
        if array.ndim != 2:
            raise InvalidArgumentError(
                f"Genotype matrix must be 2-D (individuals x loci), "
                f"got {array.ndim}-D array with shape {array.shape}"
            )

        missing = np.isnan(array)
        observed = array[~missing]
        if not np.all(np.isfinite(observed)) or np.any(observed != np.round(observed)):
            raise InvalidArgumentError(
                "Float genotypes must be integral or NaN (missing)"
            )

        return cls(np.where(missing, MISSING, array).astype(np.int32))

    @property
    def codes(self) -> np.ndarray:
        return self._codes

    @property
    def shape(self) -> tuple[int, int]:
        return self._codes.shape

    @property
    def n_individuals(self) -> int:
        return self._codes.shape[0]

    @property
    def n_loci(self) -> int:
        return self._codes.shape[1]

    def __len__(self) -> int:
        return self.n_individuals

    def __repr__(self) -> str:
        return (
            f"GenotypeMatrix(n_individuals={self.n_individuals}, "
            f"n_loci={self.n_loci})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenotypeMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(
            np.array_equal(self._codes, other._codes)
        )

    __hash__ = None

    def row(self, index: int) -> np.ndarray:
        """Return the read-only genotype row of one individual (0-based)."""
        if not 0 <= index < self.n_individuals:
            raise IndexOutOfRangeError(
                f"Individual index {index} out of range [0, {self.n_individuals})"
            )
        return self._codes[index]

    def observed_mask(self) -> np.ndarray:
        """Boolean (n_individuals, n_loci) mask of called genotypes."""
        return self._codes >= 0

    def missing_mask(self) -> np.ndarray:
        """Boolean (n_individuals, n_loci) mask of missing genotypes."""
        return self._codes < 0

    def missing_rate_per_individual(self) -> np.ndarray:
        """Fraction of loci missing for each individual.

        Duplicate screening assumes individuals with lots of missing data were
        removed beforehand; this is the quantity to filter on.

        Returns:
            Float array of length n_individuals. All zeros when n_loci is 0.
        """
        if self.n_loci == 0:
            return np.zeros(self.n_individuals, dtype=np.float64)
        return self.missing_mask().mean(axis=1)

    def select_loci(self, loci: np.ndarray | Sequence[int]) -> GenotypeMatrix:
        """Return a new matrix restricted to a subset of loci.

        Args:
            loci: Boolean mask of length n_loci, or integer column indices.

        Returns:
            New GenotypeMatrix holding the selected columns in the given order.
        """
        selector = np.asarray(loci)
        if selector.dtype == np.bool_:
            if selector.shape != (self.n_loci,):
                raise InvalidArgumentError(
                    f"Locus mask must have shape ({self.n_loci},), "
                    f"got {selector.shape}"
                )
        else:
            selector = selector.astype(np.intp)
            if selector.size and (
                selector.min() < -self.n_loci or selector.max() >= self.n_loci
            ):
                raise IndexOutOfRangeError(
                    f"Locus indices out of range for {self.n_loci} loci"
                )
        return GenotypeMatrix(self._codes[:, selector])


def as_genotype_matrix(value: GenotypeMatrix | np.ndarray) -> GenotypeMatrix:
    """Coerce array-likes to GenotypeMatrix; pass matrices through unchanged."""
    if isinstance(value, GenotypeMatrix):
        return value
    array = np.asarray(value)
    if np.issubdtype(array.dtype, np.floating):
        return GenotypeMatrix.from_float(array)
    return GenotypeMatrix(array)
