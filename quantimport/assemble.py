"""
Sample matrix assembly.

Combines per-sample quantification tables into transcripts x samples
matrices. Row order follows the first sample; every other sample is
matched to it by transcript ID rather than by position.
"""

import logging
from typing import List, Optional, Sequence, Union, Iterable

import numpy as np
import pandas as pd

from .errors import EmptyInputError, MissingValueError, SchemaMismatchError
from .matrices import QUANT_COLUMNS, QuantRecord, SampleMatrixSet, records_to_frame

logger = logging.getLogger(__name__)

SampleInput = Union[pd.DataFrame, Iterable[QuantRecord]]


def default_sample_names(n_samples: int) -> List[str]:
    """Positional sample labels: sample1, sample2, ..."""
    return [f"sample{i + 1}" for i in range(n_samples)]


def _as_frame(sample: SampleInput) -> pd.DataFrame:
    if isinstance(sample, pd.DataFrame):
        return sample
    return records_to_frame(sample)


def assemble_samples(
    samples: Sequence[SampleInput],
    sample_names: Optional[Sequence[str]] = None,
) -> SampleMatrixSet:
    """
    Assemble per-sample quantifications into a SampleMatrixSet.

    Args:
        samples: One quantification table per sample, either a DataFrame
            indexed by transcript ID with abundance/counts/length columns or
            an iterable of QuantRecord tuples
        sample_names: Column labels, defaulting to sample1, sample2, ...

    Returns:
        SampleMatrixSet with rows in the first sample's order

    Raises:
        EmptyInputError: If no samples or no transcripts are supplied
        SchemaMismatchError: If a sample's transcript set differs from the
            first sample's, or a sample repeats a transcript ID
    """
    frames = [_as_frame(s) for s in samples]
    if not frames:
        raise EmptyInputError("No samples were supplied")

    if sample_names is None:
        sample_names = default_sample_names(len(frames))
    sample_names = [str(name) for name in sample_names]
    if len(sample_names) != len(frames):
        raise ValueError(
            f"Got {len(sample_names)} sample names for {len(frames)} samples"
        )
    if len(set(sample_names)) != len(sample_names):
        raise ValueError(f"Sample names are not unique: {sample_names}")

    for i, (name, frame) in enumerate(zip(sample_names, frames)):
        missing_cols = [col for col in QUANT_COLUMNS if col not in frame.columns]
        if missing_cols:
            raise ValueError(f"Sample '{name}' is missing columns: {missing_cols}")
        if len(frame) == 0:
            raise EmptyInputError(f"Sample '{name}' reports no transcripts")
        if not frame.index.is_unique:
            dupes = frame.index[frame.index.duplicated()].unique().tolist()
            raise SchemaMismatchError(name, i, duplicated=dupes)

    reference = frames[0].index
    reference_ids = set(reference)
    for i in range(1, len(frames)):
        ids = set(frames[i].index)
        if ids != reference_ids:
            missing = [tx for tx in reference if tx not in ids]
            extra = [tx for tx in frames[i].index if tx not in reference_ids]
            raise SchemaMismatchError(sample_names[i], i, missing=missing, extra=extra)

    matrices = {}
    for col in QUANT_COLUMNS:
        data = np.column_stack([
            frame[col].reindex(reference).to_numpy(dtype=float) for frame in frames
        ])
        if not np.isfinite(data).all():
            bad = [sample_names[j] for j in np.where(~np.isfinite(data).all(axis=0))[0]]
            raise MissingValueError(col, bad)
        matrices[col] = pd.DataFrame(
            data, index=pd.Index(reference, name='transcript_id'), columns=sample_names
        )

    logger.info(f"Assembled {len(reference)} transcripts x {len(frames)} samples")
    return SampleMatrixSet(**matrices)
