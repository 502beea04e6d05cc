"""
Counts derived from abundance.

Three policies are supported:

- ``no``: counts are returned unchanged.
- ``scaledTPM``: each sample's abundance is treated as proportions and
  scaled up to that sample's library size (column sum of counts).
- ``lengthScaledTPM``: abundance is first multiplied by each row's mean
  effective length across samples, then scaled to library size as above.

Derived counts from either scaling policy already correct for length, so
the length matrix must not be used as a model offset afterwards.
"""

import logging
import math

import pandas as pd

logger = logging.getLogger(__name__)

NO_SCALING = 'no'
SCALED_TPM = 'scaledTPM'
LENGTH_SCALED_TPM = 'lengthScaledTPM'
COUNTS_FROM_ABUNDANCE = (NO_SCALING, SCALED_TPM, LENGTH_SCALED_TPM)


def validate_policy(counts_from_abundance: str) -> str:
    """
    Check a countsFromAbundance policy name.

    Raises:
        ValueError: If the policy is not one of COUNTS_FROM_ABUNDANCE
    """
    if counts_from_abundance not in COUNTS_FROM_ABUNDANCE:
        raise ValueError(
            f"countsFromAbundance must be one of {list(COUNTS_FROM_ABUNDANCE)}, "
            f"got '{counts_from_abundance}'"
        )
    return counts_from_abundance


def column_totals(matrix: pd.DataFrame) -> pd.Series:
    """Correctly rounded per-sample sums, independent of row order and memory layout."""
    return matrix.apply(math.fsum, axis=0).astype(float)


def library_size(counts: pd.DataFrame) -> pd.Series:
    """Total counts per sample."""
    return column_totals(counts)


def mean_row_length(length: pd.DataFrame) -> pd.Series:
    """
    Mean effective length of each row across samples.

    Zero (or negative) lengths are treated as missing and left out of the
    mean; a row with no positive length in any sample gets 0.
    """
    positive = length.where(length > 0)
    n_positive = positive.notna().sum(axis=1)
    total = positive.fillna(0.0).apply(math.fsum, axis=1).astype(float)
    return (total / n_positive.where(n_positive > 0)).fillna(0.0)


def make_counts_from_abundance(
    counts: pd.DataFrame,
    abundance: pd.DataFrame,
    length: pd.DataFrame,
    counts_from_abundance: str = NO_SCALING,
) -> pd.DataFrame:
    """
    Derive a counts matrix from abundance under a scaling policy.

    Args:
        counts: features x samples estimated counts (defines library size)
        abundance: features x samples abundance
        length: features x samples effective length
        counts_from_abundance: One of 'no', 'scaledTPM', 'lengthScaledTPM'

    Returns:
        features x samples counts matrix
    """
    validate_policy(counts_from_abundance)
    if counts_from_abundance == NO_SCALING:
        return counts.copy()

    lib_size = library_size(counts)
    if counts_from_abundance == LENGTH_SCALED_TPM:
        unscaled = abundance.mul(mean_row_length(length), axis=0)
    else:
        unscaled = abundance

    column_total = column_totals(unscaled)
    # a sample with no abundance anywhere stays all-zero
    factor = (lib_size / column_total.where(column_total != 0)).fillna(0.0)
    derived = unscaled.mul(factor, axis=1)

    logger.info(f"Derived counts from abundance using {counts_from_abundance}")
    return derived
