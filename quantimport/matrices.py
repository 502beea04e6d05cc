"""
In-memory matrix representation shared by every quantification format.

A matrix set holds three aligned ``pandas.DataFrame`` objects (abundance,
counts and effective length) with features as rows and samples as columns.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, NamedTuple

import pandas as pd

logger = logging.getLogger(__name__)

QUANT_COLUMNS = ('abundance', 'counts', 'length')


class QuantRecord(NamedTuple):
    """One transcript's estimates in one sample."""
    transcript_id: str
    abundance: float
    counts: float
    length: float


def records_to_frame(records: Iterable[QuantRecord]) -> pd.DataFrame:
    """Build a per-sample quantification table from ``QuantRecord`` tuples."""
    frame = pd.DataFrame.from_records(
        [tuple(r) for r in records],
        columns=['transcript_id', *QUANT_COLUMNS],
    )
    frame = frame.set_index('transcript_id')
    return frame.astype(float)


@dataclass(frozen=True, eq=False)
class MatrixSet:
    """
    Abundance, counts and length matrices sharing row and column labels.

    Attributes:
        abundance: features x samples abundance estimates
        counts: features x samples estimated counts
        length: features x samples effective lengths
    """
    abundance: pd.DataFrame
    counts: pd.DataFrame
    length: pd.DataFrame

    def __post_init__(self):
        check_aligned(self.abundance, self.counts, self.length)

    @property
    def features(self) -> pd.Index:
        return self.counts.index

    @property
    def samples(self) -> pd.Index:
        return self.counts.columns

    @property
    def shape(self):
        return self.counts.shape


class SampleMatrixSet(MatrixSet):
    """Transcript-level matrices (rows are transcript IDs)."""
    level = 'transcript'


class GeneMatrixSet(MatrixSet):
    """Gene-level matrices (rows are gene IDs)."""
    level = 'gene'


def check_aligned(abundance: pd.DataFrame, counts: pd.DataFrame, length: pd.DataFrame) -> None:
    """
    Check that three matrices share dimensions and labels.

    Raises:
        ValueError: If shapes or labels differ, or row labels repeat
    """
    if not (abundance.shape == counts.shape == length.shape):
        raise ValueError(
            f"Matrix shapes differ: abundance {abundance.shape}, "
            f"counts {counts.shape}, length {length.shape}"
        )
    for name, other in (('abundance', abundance), ('length', length)):
        if not other.index.equals(counts.index):
            raise ValueError(f"Row labels of {name} differ from counts")
        if not other.columns.equals(counts.columns):
            raise ValueError(f"Column labels of {name} differ from counts")
    if not counts.index.is_unique:
        dupes = counts.index[counts.index.duplicated()].unique().tolist()
        raise ValueError(f"Row labels are not unique: {dupes[:10]}")
