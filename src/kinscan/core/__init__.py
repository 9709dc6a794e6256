"""Core infrastructure for kinscan.

This package contains the shared plumbing used by the scanners:
- config: Scan configuration dataclass
- errors: Exception hierarchy
- backend: Pairwise accumulator backend detection
- jax_config: JAX x64 configuration
- progress: Pair-weighted progress bar
- threading: Worker count and BLAS thread control
"""

from kinscan.core.backend import get_compute_backend, resolve_backend
from kinscan.core.config import ScanConfig
from kinscan.core.errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidArgumentError,
    KinscanError,
)
from kinscan.core.jax_config import configure_jax, ensure_jax_configured

__all__ = [
    "ScanConfig",
    "KinscanError",
    "DimensionMismatchError",
    "IndexOutOfRangeError",
    "InvalidArgumentError",
    "get_compute_backend",
    "resolve_backend",
    "configure_jax",
    "ensure_jax_configured",
]
