"""
Run configuration for quantimport.

Import options can be kept in a YAML file and overridden from the command
line. Relative paths in the file are resolved against the file's directory.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .mapping import TxToGeneMap
from .utils import validate_file_exists

logger = logging.getLogger(__name__)

PATH_KEYS = ('tx2gene', 'output_dir')


@dataclass
class ImportConfig:
    """Options for one import run."""
    type: Optional[str] = None
    files: List[str] = field(default_factory=list)
    sample_names: Optional[List[str]] = None
    tx2gene: Optional[str] = None
    tx2gene_header: bool = True
    tx_out: bool = False
    tx_in: bool = True
    counts_from_abundance: str = 'no'
    ignore_tx_version: bool = False
    ignore_after_bar: bool = False
    threads: int = 1
    output_dir: str = './quantimport_results'
    tx_id_col: Optional[str] = None
    abundance_col: Optional[str] = None
    counts_col: Optional[str] = None
    length_col: Optional[str] = None

    def update(self, **overrides) -> 'ImportConfig':
        """Return a copy with every override that is not None applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def adapter_options(self) -> Dict[str, Any]:
        """Column options for the custom format adapter."""
        if str(self.type).lower() not in ('custom', 'none'):
            return {}
        return {
            'tx_id_col': self.tx_id_col,
            'abundance_col': self.abundance_col,
            'counts_col': self.counts_col,
            'length_col': self.length_col,
        }

    def tx2gene_map(self) -> Optional[TxToGeneMap]:
        if self.tx2gene is None:
            return None
        return TxToGeneMap.from_file(self.tx2gene, header=self.tx2gene_header)


def load_config(config_file: Union[str, Path]) -> ImportConfig:
    """
    Load import options from a YAML file.

    Args:
        config_file: Path to YAML config

    Returns:
        ImportConfig

    Raises:
        ValueError: If the YAML is malformed or holds unknown keys
    """
    config_file = validate_file_exists(config_file)
    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Could not parse config {config_file}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {config_file} must be a mapping of option names to values")

    known = {f.name for f in fields(ImportConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {config_file}: {unknown}")

    base = config_file.parent
    for key in PATH_KEYS:
        if data.get(key) is not None:
            data[key] = str(base / Path(data[key]).expanduser())
    if data.get('files'):
        data['files'] = [str(base / Path(f).expanduser()) for f in data['files']]

    logger.debug(f"Loaded config from {config_file}: {sorted(data)}")
    return ImportConfig(**data)
