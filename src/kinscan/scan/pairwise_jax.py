"""JAX kernel for the pairwise likelihood accumulator.

The running sum is a lax.scan over loci so each row is accumulated in locus
order, matching the numpy backend bit for bit. A scan over a locus block
starts from the totals of the previous block. Offsets must already be
bounds-checked: JAX clamps out-of-range gathers instead of raising.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
from jax import jit

from kinscan.core.jax_config import ensure_jax_configured


@jit
def _accumulate(
    values: jnp.ndarray,
    offsets: jnp.ndarray,
    observed: jnp.ndarray,
    init: jnp.ndarray,
) -> tuple[jnp.ndarray, jnp.ndarray]:
    contrib = jnp.where(observed, values[offsets], 0.0)

    def step(acc, column):
        return acc + column, None

    totals, _ = jax.lax.scan(step, init, contrib.T)
    counts = jnp.sum(observed, axis=1)
    return totals, counts


def accumulate_block(
    values: np.ndarray,
    offsets: np.ndarray,
    observed: np.ndarray,
    totals: np.ndarray,
) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Continue the per-row running sums over one block of loci.

    Args:
        values: Flat float64 lookup values.
        offsets: Checked int64 gather offsets (rows, loci); 0 where unobserved.
        observed: Boolean mask (rows, loci) of loci observed in both individuals.
        totals: Float64 running sums carried in from earlier loci.

    Returns:
        Tuple of (totals, counts) as JAX arrays of length rows; counts cover
        this block only.
    """
    ensure_jax_configured()
    return _accumulate(
        jnp.asarray(values, dtype=jnp.float64),
        jnp.asarray(offsets),
        jnp.asarray(observed),
        jnp.asarray(totals, dtype=jnp.float64),
    )
