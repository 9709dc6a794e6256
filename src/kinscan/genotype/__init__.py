"""Genotype data model.

- matrix: GenotypeMatrix, integer codes with negative values as missing
- lookup: FlatLookupTable, per-locus genotype-pair value blocks
"""

from kinscan.genotype.lookup import FlatLookupTable
from kinscan.genotype.matrix import MISSING, GenotypeMatrix, as_genotype_matrix

__all__ = [
    "MISSING",
    "FlatLookupTable",
    "GenotypeMatrix",
    "as_genotype_matrix",
]
