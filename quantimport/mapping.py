"""
Transcript-to-gene mapping for quantimport.

This module provides the TxToGeneMap table, identifier cleanup helpers and
the grouping of quantified transcripts by gene used for summarization.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .errors import ConflictingMappingError, EmptyInputError, MissingMappingWarning
from .utils import validate_file_exists

logger = logging.getLogger(__name__)

TxToGeneInput = Union[pd.DataFrame, Mapping[str, str], Sequence[Tuple[str, str]]]


def clean_transcript_ids(
    ids: Sequence[str],
    ignore_tx_version: bool = False,
    ignore_after_bar: bool = False,
) -> pd.Index:
    """
    Normalize transcript identifiers.

    Args:
        ids: Transcript identifiers
        ignore_tx_version: Drop everything from the first '.' (version suffix)
        ignore_after_bar: Drop everything from the first '|' (GENCODE headers)

    Returns:
        Cleaned identifiers as a string Index
    """
    ids = pd.Index(ids).astype(str)
    if ignore_after_bar:
        ids = ids.str.replace(r'\|.*$', '', regex=True)
    if ignore_tx_version:
        ids = ids.str.replace(r'\..*$', '', regex=True)
    return ids


class TxToGeneMap:
    """
    Validated transcript-to-gene table.

    The table is functional: every transcript maps to exactly one gene.
    Identical duplicate rows are dropped; a transcript listed against two
    different genes raises ConflictingMappingError.
    """

    def __init__(self, table: TxToGeneInput, ignore_tx_version: bool = False):
        frame = self._to_frame(table)

        n_na = int(frame.isna().any(axis=1).sum())
        if n_na:
            logger.warning(f"Dropping {n_na} tx2gene rows with a missing transcript or gene ID")
            frame = frame.dropna()

        frame = frame.astype(str)
        if ignore_tx_version:
            frame['transcript_id'] = clean_transcript_ids(
                frame['transcript_id'], ignore_tx_version=True
            )

        n_rows = len(frame)
        frame = frame.drop_duplicates()
        if len(frame) < n_rows:
            logger.debug(f"Dropped {n_rows - len(frame)} duplicate tx2gene rows")

        genes_per_tx = frame.groupby('transcript_id', sort=False)['gene_id'].unique()
        conflicts = {
            tx: list(genes) for tx, genes in genes_per_tx.items() if len(genes) > 1
        }
        if conflicts:
            raise ConflictingMappingError(conflicts)

        if frame.empty:
            raise EmptyInputError("tx2gene table contains no transcript-gene pairs")

        self._tx_to_gene = pd.Series(
            frame['gene_id'].to_numpy(),
            index=pd.Index(frame['transcript_id'].to_numpy(), name='transcript_id'),
            name='gene_id',
        )

    @staticmethod
    def _to_frame(table: TxToGeneInput) -> pd.DataFrame:
        if isinstance(table, pd.DataFrame):
            if table.shape[1] < 2:
                raise ValueError("tx2gene table needs two columns: transcript ID, gene ID")
            frame = table.iloc[:, :2].copy()
        elif isinstance(table, Mapping):
            frame = pd.DataFrame(list(table.items()))
        else:
            frame = pd.DataFrame(list(table))
            if frame.shape[1] != 2 and not frame.empty:
                raise ValueError("tx2gene pairs must be (transcript ID, gene ID)")
        if frame.empty:
            raise EmptyInputError("tx2gene table contains no transcript-gene pairs")
        frame.columns = ['transcript_id', 'gene_id']
        return frame.reset_index(drop=True)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        ignore_tx_version: bool = False,
        header: bool = True,
        sep: Optional[str] = None,
    ) -> 'TxToGeneMap':
        """
        Read a two-column transcript-to-gene file.

        Args:
            path: Delimited text file (tab-separated, or comma for .csv)
            ignore_tx_version: Strip version suffixes from transcript IDs
            header: Whether the first line is a header row (names are ignored)
            sep: Field separator, inferred from the extension when omitted

        Returns:
            TxToGeneMap
        """
        path = validate_file_exists(path)
        if sep is None:
            sep = ',' if '.csv' in path.suffixes else '\t'
        df = pd.read_csv(
            path,
            sep=sep,
            header=0 if header else None,
            usecols=[0, 1],
            dtype=str,
            comment='#',
        )
        logger.debug(f"Read {len(df)} tx2gene rows from {path}")
        return cls(df, ignore_tx_version=ignore_tx_version)

    def __len__(self) -> int:
        return len(self._tx_to_gene)

    def __contains__(self, transcript_id) -> bool:
        return transcript_id in self._tx_to_gene.index

    def __getitem__(self, transcript_id) -> str:
        return self._tx_to_gene[transcript_id]

    @property
    def transcripts(self) -> pd.Index:
        return self._tx_to_gene.index

    @property
    def genes(self) -> pd.Index:
        """Gene IDs in first-occurrence order."""
        return pd.Index(self._tx_to_gene.unique(), name='gene_id')

    def to_frame(self) -> pd.DataFrame:
        return self._tx_to_gene.reset_index()

    def group(self, transcript_ids: Sequence[str]) -> 'GeneGrouping':
        """
        Group quantified transcripts by gene.

        Args:
            transcript_ids: Transcript IDs present in the quantification

        Returns:
            GeneGrouping restricted to quantified, mapped transcripts
        """
        quantified = pd.Index(transcript_ids)
        in_map = self._tx_to_gene.index.isin(quantified)

        observed = self._tx_to_gene[in_map]
        gene_order = pd.Index(observed.unique(), name='gene_id')

        # quantification order for the transcripts that made it through
        tx_to_gene = self._tx_to_gene.reindex(quantified).dropna()

        missing = quantified[~quantified.isin(self._tx_to_gene.index)].tolist()
        unquantified = self._tx_to_gene.index[~in_map].tolist()

        warnings = []
        if missing:
            warning = MissingMappingWarning(missing)
            logger.warning(str(warning))
            warnings.append(warning)
        if unquantified:
            logger.info(f"{len(unquantified)} tx2gene transcripts were not quantified")

        logger.debug(
            f"Grouped {len(tx_to_gene)} transcripts into {len(gene_order)} genes"
        )
        return GeneGrouping(
            tx_to_gene=tx_to_gene,
            gene_order=gene_order,
            missing=missing,
            unquantified=unquantified,
            warnings=tuple(warnings),
        )


@dataclass(frozen=True, eq=False)
class GeneGrouping:
    """
    Quantified transcripts indexed by gene.

    Attributes:
        tx_to_gene: Gene ID for each mapped transcript, in quantification order
        gene_order: Observed genes in first-occurrence order of the table
        missing: Quantified transcripts absent from the table
        unquantified: Table transcripts absent from the quantification
        warnings: Non-fatal warnings raised while grouping
    """
    tx_to_gene: pd.Series
    gene_order: pd.Index
    missing: List[str] = field(default_factory=list)
    unquantified: List[str] = field(default_factory=list)
    warnings: tuple = ()

    @property
    def n_genes(self) -> int:
        return len(self.gene_order)

    def groups(self) -> Dict[str, List[str]]:
        """Transcript IDs per gene, genes in output order."""
        members = {gene: [] for gene in self.gene_order}
        for tx, gene in self.tx_to_gene.items():
            members[gene].append(tx)
        return members
