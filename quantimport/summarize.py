"""
Transcript-to-gene summarization.

Counts and abundance are summed over a gene's transcripts. Gene length is
the abundance-weighted mean of transcript effective lengths; where a gene
has zero total abundance in a sample, the weighted mean is undefined and
the unweighted mean of its transcripts' lengths is used for that cell.
"""

import logging

import numpy as np
import pandas as pd

from .errors import EmptyInputError
from .mapping import GeneGrouping
from .matrices import GeneMatrixSet, MatrixSet

logger = logging.getLogger(__name__)


def _by_gene(matrix: pd.DataFrame, genes: np.ndarray, order: pd.Index, how: str) -> pd.DataFrame:
    grouped = matrix.groupby(genes, sort=False)
    result = grouped.sum() if how == 'sum' else grouped.mean()
    result = result.reindex(order)
    result.index.name = order.name
    return result


def gene_lengths(
    abundance: pd.DataFrame,
    length: pd.DataFrame,
    genes: np.ndarray,
    order: pd.Index,
) -> pd.DataFrame:
    """
    Abundance-weighted mean transcript length per gene and sample.

    Args:
        abundance: transcripts x samples abundance
        length: transcripts x samples effective length
        genes: Gene ID for each row of the matrices
        order: Output gene order

    Returns:
        genes x samples length matrix with no missing cells
    """
    total = _by_gene(abundance, genes, order, 'sum')
    weighted = _by_gene(length * abundance, genes, order, 'sum')

    # cells with no observed abundance have no weighted mean
    weighted_mean = weighted / total.where(total != 0)
    simple_mean = _by_gene(length, genes, order, 'mean')

    n_fallback = int(weighted_mean.isna().to_numpy().sum())
    if n_fallback:
        logger.debug(f"{n_fallback} gene/sample cells use the unweighted mean length")
    return weighted_mean.fillna(simple_mean)


def summarize_matrices(matrices: MatrixSet, grouping: GeneGrouping) -> GeneMatrixSet:
    """
    Aggregate transcript-level matrices to gene level.

    Args:
        matrices: Transcript-level abundance, counts and length
        grouping: Mapped transcripts and gene order from TxToGeneMap.group

    Returns:
        GeneMatrixSet with genes in grouping order

    Raises:
        EmptyInputError: If no quantified transcript is mapped to a gene
    """
    kept = grouping.tx_to_gene.index
    if len(kept) == 0:
        raise EmptyInputError("None of the quantified transcripts are present in tx2gene")

    genes = grouping.tx_to_gene.to_numpy()
    order = grouping.gene_order

    abundance = matrices.abundance.loc[kept]
    counts = matrices.counts.loc[kept]
    length = matrices.length.loc[kept]

    gene_set = GeneMatrixSet(
        abundance=_by_gene(abundance, genes, order, 'sum'),
        counts=_by_gene(counts, genes, order, 'sum'),
        length=gene_lengths(abundance, length, genes, order),
    )
    logger.info(
        f"Summarized {len(kept)} transcripts to {len(order)} genes"
    )
    return gene_set
