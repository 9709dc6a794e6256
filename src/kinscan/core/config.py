"""Configuration dataclasses for kinscan.

This module contains the dataclass that tunes how the scanners walk their
inputs: row and locus blocking for the pairwise accumulator, locus block sizes
for the duplicate scanner, worker count and progress display.
"""

from dataclasses import dataclass

from kinscan.core.errors import InvalidArgumentError


@dataclass(frozen=True)
class ScanConfig:
    """Tuning knobs for the pairwise and duplicate scanners.

    None of these settings change results; they only trade memory and
    overhead against speed.

    Attributes:
        row_chunk_size: Most source rows the pairwise accumulator processes
            together.
        mem_budget_mb: Budget for the pairwise accumulator's temporaries.
            Loci are processed in blocks sized so that a row chunk times a
            locus block stays within it (about 18 bytes per cell), whatever
            the total number of loci.
        initial_block_loci: Width of the first locus block the duplicate
            scanner compares before checking the mismatch bound.
        max_block_loci: Upper limit for the block width, which doubles after
            every block a candidate survives.
        n_workers: Threads used by the duplicate scanner. 1 runs sequentially,
            0 picks a count from KINSCAN_WORKERS or the physical core count.
        show_progress: Show a progressbar2 bar over scanned pairs.
        backend: Pairwise accumulator backend ("numpy" or "jax"). None uses
            get_compute_backend().

    Example:
        >>> config = ScanConfig(initial_block_loci=4, n_workers=2)
        >>> config.validate()
    """

    row_chunk_size: int = 4096
    mem_budget_mb: float = 256.0
    initial_block_loci: int = 8
    max_block_loci: int = 1024
    n_workers: int = 1
    show_progress: bool = False
    backend: str | None = None

    def validate(self) -> None:
        """Check that all sizes are usable.

        Raises:
            InvalidArgumentError: If a size is non-positive, the block limits
                are inverted, or n_workers is negative.
        """
        if self.row_chunk_size < 1:
            raise InvalidArgumentError(
                f"row_chunk_size must be >= 1, got {self.row_chunk_size}"
            )
        if not self.mem_budget_mb > 0:
            raise InvalidArgumentError(
                f"mem_budget_mb must be > 0, got {self.mem_budget_mb}"
            )
        if self.initial_block_loci < 1:
            raise InvalidArgumentError(
                f"initial_block_loci must be >= 1, got {self.initial_block_loci}"
            )
        if self.max_block_loci < self.initial_block_loci:
            raise InvalidArgumentError(
                f"max_block_loci ({self.max_block_loci}) must be >= "
                f"initial_block_loci ({self.initial_block_loci})"
            )
        if self.n_workers < 0:
            raise InvalidArgumentError(
                f"n_workers must be >= 0, got {self.n_workers}"
            )
