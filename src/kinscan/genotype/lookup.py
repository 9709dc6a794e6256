"""Locus-partitioned lookup table of per-genotype-pair values.

The table packs one square block per locus into a single flat float array.
For locus j the block starts at ``starts[j]`` and holds
``n_genos[j] * n_genos[j]`` values in row-major order, indexed
``[source_genotype][target_genotype]``:

    values[starts[j] + n_genos[j] * source_genotype + target_genotype]

The two axes are not interchangeable. Source individuals play the
parent-like role and targets the offspring-like role, so block[a, b] and
block[b, a] generally differ.

All block bounds are checked once at construction, and every offset used by a
scan is checked against its own locus block, so a bad genotype code raises
IndexOutOfRangeError instead of silently reading a neighbouring locus.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from kinscan.core.errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidArgumentError,
)


def _as_1d(value, dtype, name: str) -> np.ndarray:
    array = np.asarray(value)
    if array.ndim != 1:
        raise InvalidArgumentError(
            f"{name} must be 1-D, got {array.ndim}-D array with shape {array.shape}"
        )
    if (
        dtype is np.int64
        and array.size
        and not np.issubdtype(array.dtype, np.integer)
    ):
        if np.any(array != np.round(array)):
            raise InvalidArgumentError(f"{name} must hold integers")
    converted = np.array(array, dtype=dtype, copy=True)
    converted.setflags(write=False)
    return converted


class FlatLookupTable:
    """Flat array of per-locus genotype-pair values plus block metadata.

    Attributes:
        values: Read-only float64 array holding every locus block.
        n_genos: Read-only int64 array, number of genotype classes per locus.
        starts: Read-only int64 array, 0-based offset of each locus block.

    Example:
        >>> table = FlatLookupTable.from_blocks([[[0.1, 0.2], [0.3, 0.4]]])
        >>> table.block(0)[1, 0]
        0.3
    """

    __slots__ = ("_values", "_n_genos", "_starts")

    def __init__(
        self,
        values: np.ndarray | Sequence[float],
        n_genos: np.ndarray | Sequence[int],
        starts: np.ndarray | Sequence[int],
    ):
        values_arr = _as_1d(values, np.float64, "values")
        n_genos_arr = _as_1d(n_genos, np.int64, "n_genos")
        starts_arr = _as_1d(starts, np.int64, "starts")

        if n_genos_arr.shape != starts_arr.shape:
            raise DimensionMismatchError(
                f"n_genos has {n_genos_arr.size} loci but starts has "
                f"{starts_arr.size}"
            )

        bad_card = np.flatnonzero(n_genos_arr <= 0)
        if bad_card.size:
            j = int(bad_card[0])
            raise InvalidArgumentError(
                f"Genotype count must be positive, got {int(n_genos_arr[j])} "
                f"at locus {j}"
            )

        ends = starts_arr + n_genos_arr * n_genos_arr
        bad_block = np.flatnonzero((starts_arr < 0) | (ends > values_arr.size))
        if bad_block.size:
            j = int(bad_block[0])
            raise IndexOutOfRangeError(
                f"Lookup block for locus {j} spans [{int(starts_arr[j])}, "
                f"{int(ends[j])}) but the flat table has {values_arr.size} values"
            )

        self._values = values_arr
        self._n_genos = n_genos_arr
        self._starts = starts_arr

    @classmethod
    def from_arrays(
        cls,
        values: np.ndarray | Sequence[float],
        n_genos: np.ndarray | Sequence[int],
        starts: np.ndarray | Sequence[int],
        base: int = 0,
    ) -> FlatLookupTable:
        """Build a table from flat arrays whose block starts use ``base`` indexing.

        Args:
            values: Flat value array.
            n_genos: Genotype count per locus.
            starts: Block start offset per locus, 0-based or 1-based.
            base: 0 or 1, the indexing base of ``starts``.

        Returns:
            FlatLookupTable with 0-based starts.
        """
        if base not in (0, 1):
            raise InvalidArgumentError(f"base must be 0 or 1, got {base}")
        return cls(values, n_genos, np.asarray(starts, dtype=np.int64) - base)

    @classmethod
    def from_blocks(cls, blocks: Sequence[np.ndarray]) -> FlatLookupTable:
        """Pack a sequence of square per-locus blocks into one flat table.

        Args:
            blocks: One (n_genos_j, n_genos_j) array per locus, indexed
                [source_genotype, target_genotype].

        Returns:
            FlatLookupTable with contiguous blocks in locus order.

        Raises:
            InvalidArgumentError: If a block is not square or is empty.
        """
        flat_parts = []
        n_genos = []
        starts = []
        offset = 0
        for j, block in enumerate(blocks):
            arr = np.asarray(block, dtype=np.float64)
            if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] == 0:
                raise InvalidArgumentError(
                    f"Lookup block for locus {j} must be a non-empty square "
                    f"matrix, got shape {arr.shape}"
                )
            flat_parts.append(arr.ravel())
            n_genos.append(arr.shape[0])
            starts.append(offset)
            offset += arr.size

        values = np.concatenate(flat_parts) if flat_parts else np.zeros(0)
        return cls(values, np.asarray(n_genos, dtype=np.int64), starts)

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def n_genos(self) -> np.ndarray:
        return self._n_genos

    @property
    def starts(self) -> np.ndarray:
        return self._starts

    @property
    def n_loci(self) -> int:
        return self._n_genos.size

    def __repr__(self) -> str:
        return f"FlatLookupTable(n_loci={self.n_loci}, n_values={self._values.size})"

    def block(self, locus: int) -> np.ndarray:
        """Return the read-only (n_genos, n_genos) value block of one locus."""
        if not 0 <= locus < self.n_loci:
            raise IndexOutOfRangeError(
                f"Locus {locus} out of range [0, {self.n_loci})"
            )
        n = int(self._n_genos[locus])
        start = int(self._starts[locus])
        return self._values[start : start + n * n].reshape(n, n)

    def pair_offsets(
        self,
        source_codes: np.ndarray,
        target_codes: np.ndarray,
        loci: slice | None = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Compute checked flat offsets for source/target genotype pairs.

        Columns of both arrays are loci; ``target_codes`` broadcasts against
        ``source_codes`` (a single target row is typical). A pair is observed
        when both codes are non-negative. Unobserved pairs get offset 0 so the
        result can be used directly as a gather index; callers must mask them
        with the returned observed array.

        Args:
            source_codes: Integer array (..., n_columns).
            target_codes: Integer array broadcastable to source_codes.
            loci: Contiguous range of loci the columns cover. Defaults to all
                loci of the table.

        Returns:
            Tuple of (offsets, observed), both shaped like the broadcast inputs.

        Raises:
            DimensionMismatchError: If the column count does not match the
                number of loci covered.
            IndexOutOfRangeError: If an observed code is not below its locus
                genotype count.
        """
        source_codes = np.asarray(source_codes)
        target_codes = np.asarray(target_codes)
        first, stop, _ = (loci or slice(None)).indices(self.n_loci)
        n_genos = self._n_genos[first:stop]
        width = n_genos.size
        if source_codes.shape[-1] != width or target_codes.shape[-1] != width:
            raise DimensionMismatchError(
                f"Lookup table covers {width} loci but genotypes have "
                f"{source_codes.shape[-1]} (source) and {target_codes.shape[-1]} "
                "(target)"
            )

        observed = (source_codes >= 0) & (target_codes >= 0)
        out_of_block = observed & (
            (source_codes >= n_genos) | (target_codes >= n_genos)
        )
        if np.any(out_of_block):
            where = np.argwhere(out_of_block)[0]
            column = int(where[-1])
            src = int(np.broadcast_to(source_codes, out_of_block.shape)[tuple(where)])
            tgt = int(np.broadcast_to(target_codes, out_of_block.shape)[tuple(where)])
            raise IndexOutOfRangeError(
                f"Genotype pair (source={src}, target={tgt}) at locus "
                f"{first + column} outside lookup block of {int(n_genos[column])} "
                "genotypes"
            )
        del out_of_block

        # One int64 buffer, updated in place
        offsets = np.array(
            np.broadcast_to(source_codes, observed.shape), dtype=np.int64
        )
        offsets *= n_genos
        offsets += self._starts[first:stop]
        offsets += target_codes
        offsets[~observed] = 0
        return offsets, observed
