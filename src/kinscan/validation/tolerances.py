"""Tolerance configuration for comparing scan results.

Integer columns (indices, counts) must always match exactly. Only the
accumulated lookup values of the pairwise scanner are floating point, and
both backends sum them in locus order, so the default tolerance is exact
equality. Looser settings are for comparing against implementations that sum
in a different order (tree reductions, GPU atomics, other languages).
"""

from dataclasses import dataclass


@dataclass
class ToleranceConfig:
    """Tolerances for the floating-point value column.

    Attributes:
        value_rtol: Relative tolerance for accumulated lookup values.
        atol: Absolute tolerance for values near zero.

    Example:
        >>> ToleranceConfig().value_rtol
        0.0
        >>> ToleranceConfig.relaxed().value_rtol
        1e-12
    """

    value_rtol: float = 0.0
    atol: float = 0.0

    @classmethod
    def exact(cls) -> "ToleranceConfig":
        """Bit-exact comparison (same summation order)."""
        return cls(value_rtol=0.0, atol=0.0)

    @classmethod
    def relaxed(cls) -> "ToleranceConfig":
        """Allow rounding differences from a different summation order."""
        return cls(value_rtol=1e-12, atol=1e-12)
