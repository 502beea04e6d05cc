"""
quantimport - import transcript quantifications and summarize them to genes.
"""

__version__ = "0.1.0"

from .bundle import OutputBundle
from .errors import (
    QuantImportError, SchemaMismatchError, ConflictingMappingError,
    UnsupportedFormatError, EmptyInputError, QuantFileError, MissingValueError,
    MissingMappingWarning, ScaledCountsWarning, ZeroLengthWarning,
)
from .mapping import TxToGeneMap
from .matrices import QuantRecord, SampleMatrixSet, GeneMatrixSet
from .quantify import import_quants, summarize_to_gene, read_bundle, write_bundle

__all__ = [
    "OutputBundle",
    "QuantImportError",
    "SchemaMismatchError",
    "ConflictingMappingError",
    "UnsupportedFormatError",
    "EmptyInputError",
    "QuantFileError",
    "MissingValueError",
    "MissingMappingWarning",
    "ScaledCountsWarning",
    "ZeroLengthWarning",
    "TxToGeneMap",
    "QuantRecord",
    "SampleMatrixSet",
    "GeneMatrixSet",
    "import_quants",
    "summarize_to_gene",
    "read_bundle",
    "write_bundle",
]
