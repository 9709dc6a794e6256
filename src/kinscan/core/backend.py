"""Compute backend detection for the pairwise accumulator.

kinscan supports two backends for the single-target likelihood scan:

- numpy: Gather over row chunks and locus blocks, summed by a sequential
  cumulative sum. No compilation step, preferred for one-off calls and small
  inputs.

- jax: jit-compiled lax.scan over loci with 64-bit floats. Pays a
  compilation cost per input shape, useful when the same shapes are
  scanned against many targets.

Both backends accumulate in locus order, so results are bit-identical.
The duplicate scanner has no backend choice: its early exit is driven by
data-dependent control flow that a traced program cannot express cheaply.

Backend selection is automatic (preferring numpy) but can be overridden
via the KINSCAN_BACKEND environment variable.
"""

import os
import warnings
from functools import cache
from typing import Literal

from loguru import logger

from kinscan.core.errors import InvalidArgumentError

Backend = Literal["numpy", "jax"]

# Alternate spellings (alias -> canonical name)
BACKEND_ALIASES: dict[str, str] = {
    "np": "numpy",
    "jax.numpy": "jax",
}

VALID_BACKENDS: tuple[str, ...] = ("numpy", "jax")


def normalize_backend_name(value: str) -> str:
    """Normalize backend name to canonical form.

    Handles case-insensitivity, whitespace, and aliases. Emits a
    deprecation warning for aliased names.

    Args:
        value: Backend name from user input or environment.

    Returns:
        Normalized backend name.

    Examples:
        >>> normalize_backend_name("NumPy")
        'numpy'
        >>> normalize_backend_name(" jax ")
        'jax'
    """
    normalized = value.lower().strip()

    if normalized in BACKEND_ALIASES:
        canonical = BACKEND_ALIASES[normalized]
        warnings.warn(
            f"Backend name '{normalized}' is deprecated. Use '{canonical}' instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        return canonical

    return normalized


def resolve_backend(value: str | None) -> Backend:
    """Resolve an explicit backend request, or auto-detect when None.

    Args:
        value: Backend name, or None to defer to get_compute_backend().

    Returns:
        Canonical backend name.

    Raises:
        InvalidArgumentError: If the name is not a known backend.
    """
    if value is None:
        return get_compute_backend()

    normalized = normalize_backend_name(value)
    if normalized not in VALID_BACKENDS:
        raise InvalidArgumentError(
            f"Unknown backend '{value}'. Valid backends: {', '.join(VALID_BACKENDS)}"
        )
    return normalized


@cache
def get_compute_backend() -> Backend:
    """Detect the compute backend for the pairwise accumulator.

    Priority:
    1. KINSCAN_BACKEND environment variable override
       - Valid values: 'numpy', 'jax', 'auto'
       - Unknown values log a warning and fall through to auto-selection
    2. Auto-selection: numpy

    Returns:
        Backend identifier ('numpy' or 'jax').

    Examples:
        >>> import os
        >>> os.environ["KINSCAN_BACKEND"] = "jax"
        >>> get_compute_backend.cache_clear()
        >>> get_compute_backend()
        'jax'
    """
    override = os.environ.get("KINSCAN_BACKEND", "").strip()
    if override:
        override = normalize_backend_name(override)

        if override in VALID_BACKENDS:
            logger.debug(f"Backend override via KINSCAN_BACKEND={override}")
            return override

        if override != "auto":
            logger.warning(
                f"KINSCAN_BACKEND={override!r} is not a valid backend, "
                "falling back to auto-selection"
            )

    # numpy needs no compilation, so it wins for the common single-call case
    logger.debug("Using numpy backend (default)")
    return "numpy"
