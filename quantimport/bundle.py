"""
Output bundle returned by every import call.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd

from .errors import MissingValueError
from .matrices import check_aligned
from .scaling import COUNTS_FROM_ABUNDANCE, NO_SCALING, library_size

logger = logging.getLogger(__name__)

LEVELS = ('transcript', 'gene')


@dataclass(frozen=True, eq=False)
class OutputBundle:
    """
    Abundance, counts and length matrices from one import call.

    Matrices are copied into read-only arrays on construction: later changes
    to the frames passed in do not reach the bundle, and in-place writes to
    the bundle's frames raise ValueError.

    Attributes:
        abundance: features x samples abundance
        counts: features x samples counts (derived from abundance unless
            counts_from_abundance is 'no')
        length: features x samples effective length
        counts_from_abundance: Scaling policy used for counts
        level: 'transcript' or 'gene'
        warnings: Non-fatal warnings collected during the call
    """
    abundance: pd.DataFrame
    counts: pd.DataFrame
    length: pd.DataFrame
    counts_from_abundance: str = NO_SCALING
    level: str = 'gene'
    warnings: Tuple[Warning, ...] = ()

    def __post_init__(self):
        if self.counts_from_abundance not in COUNTS_FROM_ABUNDANCE:
            raise ValueError(
                f"countsFromAbundance must be one of {list(COUNTS_FROM_ABUNDANCE)}, "
                f"got '{self.counts_from_abundance}'"
            )
        if self.level not in LEVELS:
            raise ValueError(f"level must be one of {list(LEVELS)}, got '{self.level}'")

        check_aligned(self.abundance, self.counts, self.length)
        for name in ('abundance', 'counts', 'length'):
            matrix = getattr(self, name)
            values = matrix.to_numpy(dtype=float, copy=True)
            if not np.isfinite(values).all():
                bad = matrix.columns[~np.isfinite(values).all(axis=0)]
                raise MissingValueError(name, [str(s) for s in bad])
            values.flags.writeable = False
            object.__setattr__(self, name, pd.DataFrame(
                values, index=matrix.index.copy(), columns=matrix.columns.copy(), copy=False
            ))
        object.__setattr__(self, 'warnings', tuple(self.warnings))

    @property
    def samples(self) -> pd.Index:
        return self.counts.columns

    @property
    def features(self) -> pd.Index:
        return self.counts.index

    @property
    def library_size(self) -> pd.Series:
        return library_size(self.counts)

    @property
    def length_is_offset(self) -> bool:
        """Whether ``length`` may be used as a model offset alongside ``counts``."""
        return self.counts_from_abundance == NO_SCALING

    def metadata(self) -> dict:
        return {
            'countsFromAbundance': self.counts_from_abundance,
            'level': self.level,
            'samples': [str(s) for s in self.samples],
            'n_features': int(len(self.features)),
            'warnings': [str(w) for w in self.warnings],
        }
