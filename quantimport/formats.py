"""
Format adapters for per-sample quantification output.

Each adapter reads one sample's quantification file and returns a table
indexed by transcript ID with float columns ``abundance``, ``counts`` and
``length``. Adapters are selected by name through ``FORMAT_ADAPTERS``.
"""

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Dict, Optional, TextIO, Type, Union

import pandas as pd

from .errors import QuantFileError, UnsupportedFormatError
from .matrices import QUANT_COLUMNS
from .utils import GZIP_MAGIC, is_gzipped, validate_file_exists

logger = logging.getLogger(__name__)

QuantSource = Union[str, Path, bytes, BinaryIO, TextIO]


class FormatAdapter(ABC):
    """Abstract interface for reading one sample's quantification."""

    name: str = ''

    @abstractmethod
    def parse(self, source: QuantSource) -> pd.DataFrame:
        """
        Read one sample's quantification.

        Args:
            source: File path, output directory, raw bytes or open stream

        Returns:
            DataFrame indexed by ID with abundance, counts and length columns
        """


class TableAdapter(FormatAdapter):
    """Adapter for delimited text output with one row per transcript."""

    default_filename: Optional[str] = None
    id_col: str = ''
    abundance_col: str = ''
    counts_col: str = ''
    length_col: str = ''
    sep: str = '\t'
    comment: Optional[str] = None

    def column_map(self) -> Dict[str, str]:
        """Source column name for each output column."""
        return {
            self.abundance_col: 'abundance',
            self.counts_col: 'counts',
            self.length_col: 'length',
        }

    def resolve(self, path: Path) -> Path:
        """Pick the quantification file inside an output directory."""
        if path.is_dir():
            if self.default_filename is None:
                raise QuantFileError(str(path), f"{self.name} input must be a file, not a directory")
            path = validate_file_exists(path / self.default_filename)
        return path

    def read_table(self, source: QuantSource) -> pd.DataFrame:
        """Read the raw table from a path, bytes or stream."""
        options = dict(sep=self.sep, comment=self.comment, dtype={self.id_col: str})

        if isinstance(source, (str, Path)):
            path = self.resolve(validate_file_exists(source))
            compression = 'gzip' if is_gzipped(path) else None
            return pd.read_csv(path, compression=compression, **options)

        data = source if isinstance(source, bytes) else source.read()
        if isinstance(data, bytes):
            compression = 'gzip' if data[:2] == GZIP_MAGIC else None
            return pd.read_csv(io.BytesIO(data), compression=compression, **options)
        return pd.read_csv(io.StringIO(data), **options)

    def parse(self, source: QuantSource) -> pd.DataFrame:
        label = str(source) if isinstance(source, (str, Path)) else f"<{self.name} stream>"
        raw = self.read_table(source)

        required = [self.id_col, *self.column_map()]
        missing = [col for col in required if col not in raw.columns]
        if missing:
            raise QuantFileError(
                label,
                f"missing {self.name} column(s) {missing}; found {list(raw.columns)}",
                missing_columns=missing,
            )

        table = raw[list(self.column_map())].rename(columns=self.column_map())
        table = table.apply(pd.to_numeric, errors='coerce')[list(QUANT_COLUMNS)]
        table.index = pd.Index(raw[self.id_col].astype(str), name='transcript_id')

        if table.isna().to_numpy().any():
            bad = table.index[table.isna().any(axis=1)].tolist()
            raise QuantFileError(label, f"non-numeric or empty values for {bad[:10]}")
        if (table < 0).to_numpy().any():
            bad = table.index[(table < 0).any(axis=1)].tolist()
            raise QuantFileError(label, f"negative values for {bad[:10]}")

        logger.debug(f"Parsed {len(table)} rows from {label} ({self.name})")
        return table


class KallistoAdapter(TableAdapter):
    """kallisto ``abundance.tsv``."""
    name = 'kallisto'
    default_filename = 'abundance.tsv'
    id_col = 'target_id'
    abundance_col = 'tpm'
    counts_col = 'est_counts'
    length_col = 'eff_length'


class SalmonAdapter(TableAdapter):
    """Salmon ``quant.sf``."""
    name = 'salmon'
    default_filename = 'quant.sf'
    id_col = 'Name'
    abundance_col = 'TPM'
    counts_col = 'NumReads'
    length_col = 'EffectiveLength'


class SailfishAdapter(SalmonAdapter):
    """Sailfish ``quant.sf``; older releases prefix the table with ``#`` lines."""
    name = 'sailfish'
    comment = '#'


class RSEMAdapter(TableAdapter):
    """
    RSEM ``isoforms.results`` or, with ``gene_level=True``, ``genes.results``.
    """
    name = 'rsem'
    abundance_col = 'TPM'
    counts_col = 'expected_count'
    length_col = 'effective_length'

    def __init__(self, gene_level: bool = False):
        self.gene_level = gene_level
        self.id_col = 'gene_id' if gene_level else 'transcript_id'


class CustomAdapter(TableAdapter):
    """Delimited table with user-specified column names."""
    name = 'custom'

    def __init__(
        self,
        tx_id_col: Optional[str] = None,
        abundance_col: Optional[str] = None,
        counts_col: Optional[str] = None,
        length_col: Optional[str] = None,
        sep: str = '\t',
        comment: Optional[str] = None,
    ):
        columns = {
            'tx_id_col': tx_id_col,
            'abundance_col': abundance_col,
            'counts_col': counts_col,
            'length_col': length_col,
        }
        unset = [key for key, value in columns.items() if not value]
        if unset:
            raise ValueError(f"Custom format requires column names for: {unset}")
        self.id_col = tx_id_col
        self.abundance_col = abundance_col
        self.counts_col = counts_col
        self.length_col = length_col
        self.sep = sep
        self.comment = comment


FORMAT_ADAPTERS: Dict[str, Type[FormatAdapter]] = {
    'kallisto': KallistoAdapter,
    'salmon': SalmonAdapter,
    'sailfish': SailfishAdapter,
    'rsem': RSEMAdapter,
    'custom': CustomAdapter,
}

FORMAT_ALIASES = {'none': 'custom'}


def get_adapter(type: str, **options) -> FormatAdapter:
    """
    Look up and instantiate the adapter registered for a format name.

    Args:
        type: Format name (kallisto, salmon, sailfish, rsem, custom/none)
        **options: Adapter constructor options

    Returns:
        FormatAdapter instance

    Raises:
        UnsupportedFormatError: If no adapter is registered under ``type``
    """
    key = str(type).lower()
    key = FORMAT_ALIASES.get(key, key)
    if key not in FORMAT_ADAPTERS:
        raise UnsupportedFormatError(type, list(FORMAT_ADAPTERS))
    return FORMAT_ADAPTERS[key](**options)
