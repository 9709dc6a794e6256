"""JAX configuration for the jax pairwise backend.

The jax backend must sum float64 values to stay bit-identical with the numpy
backend. JAX defaults to 32-bit, so x64 mode is enabled before any JAX
computation via ensure_jax_configured().
"""

from __future__ import annotations

import jax
from loguru import logger

_configured = False


def configure_jax(enable_x64: bool = True) -> None:
    """Configure JAX for kinscan computations.

    Args:
        enable_x64: Enable 64-bit floating point precision. Required for
            the jax backend to match numpy sums exactly. Defaults to True.
    """
    global _configured

    if enable_x64:
        jax.config.update("jax_enable_x64", True)

    _configured = True
    logger.debug(
        f"JAX configured: version={jax.__version__}, "
        f"backend={jax.default_backend()}, x64={jax.config.jax_enable_x64}"
    )


def ensure_jax_configured() -> None:
    """Enable x64 mode once per process if nobody configured JAX yet."""
    if not _configured or not jax.config.jax_enable_x64:
        configure_jax(enable_x64=True)
