"""Worker and BLAS thread management.

The duplicate scanner can split its anchor rows across a thread pool. Each
worker runs small numpy comparisons, so BLAS-level threading buys nothing and
only competes with the workers; blas_threads() pins it for the duration of a
scan.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import contextmanager

import psutil
from loguru import logger
from threadpoolctl import threadpool_limits


def get_worker_count() -> int:
    """Determine the number of scan workers to use.

    Priority:
    1. KINSCAN_WORKERS env var (explicit override)
    2. Physical core count via psutil (avoids hyperthreading oversubscription)

    Returns:
        Positive integer worker count, capped at os.cpu_count().
    """
    max_threads = os.cpu_count() or 64

    env_override = os.environ.get("KINSCAN_WORKERS")
    if env_override is not None:
        try:
            n = int(env_override)
        except ValueError:
            logger.warning(
                f"KINSCAN_WORKERS={env_override!r} is not a valid integer, "
                "falling back to physical core count"
            )
        else:
            n = max(1, min(n, max_threads))
            logger.debug(f"Workers from KINSCAN_WORKERS: {n}")
            return n

    n = psutil.cpu_count(logical=False) or max_threads
    n = max(1, min(n, max_threads))
    logger.debug(f"Workers from physical core count: {n}")
    return n


def resolve_worker_count(n_workers: int) -> int:
    """Map a configured worker count to an actual one (0 means auto)."""
    if n_workers == 0:
        return get_worker_count()
    return n_workers


@contextmanager
def blas_threads(n_threads: int = 1) -> Generator[None, None, None]:
    """Context manager for scoped BLAS thread control.

    Args:
        n_threads: Number of BLAS threads allowed inside the block.

    Example:
        >>> with blas_threads(1):
        ...     result = pairwise_geno_id(genotypes, max_miss=2)
    """
    with threadpool_limits(limits=n_threads, user_api="blas"):
        yield
