"""
Quantification import module.

This module provides the import entry point that turns per-sample
quantification output into an OutputBundle, the post-hoc transcript-to-gene
summarization of an existing bundle, and reading/writing bundles on disk.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from .assemble import assemble_samples
from .bundle import OutputBundle
from .config import ImportConfig
from .errors import EmptyInputError, ScaledCountsWarning, SchemaMismatchError, ZeroLengthWarning
from .formats import FormatAdapter, QuantSource, RSEMAdapter, get_adapter
from .mapping import TxToGeneInput, TxToGeneMap, clean_transcript_ids
from .matrices import GeneMatrixSet, MatrixSet, SampleMatrixSet
from .scaling import NO_SCALING, make_counts_from_abundance, validate_policy
from .summarize import summarize_matrices
from .utils import (
    validate_directory_exists, validate_file_exists,
    save_metrics_json, load_metrics_json
)

logger = logging.getLogger(__name__)

MATRIX_FILES = {
    'abundance': 'abundance.tsv',
    'counts': 'counts.tsv',
    'length': 'length.tsv',
}
METADATA_FILE = 'metadata.json'


def load_tx2gene(
    tx2gene: Union[TxToGeneMap, TxToGeneInput, str, Path],
    ignore_tx_version: bool = False,
) -> TxToGeneMap:
    """Coerce a table, mapping, file path or TxToGeneMap into a TxToGeneMap."""
    if isinstance(tx2gene, TxToGeneMap):
        if ignore_tx_version:
            return TxToGeneMap(tx2gene.to_frame(), ignore_tx_version=True)
        return tx2gene
    if isinstance(tx2gene, (str, Path)):
        return TxToGeneMap.from_file(tx2gene, ignore_tx_version=ignore_tx_version)
    return TxToGeneMap(tx2gene, ignore_tx_version=ignore_tx_version)


def read_samples(
    files: Sequence[QuantSource],
    adapter: FormatAdapter,
    threads: int = 1,
    ignore_tx_version: bool = False,
    ignore_after_bar: bool = False,
) -> List[pd.DataFrame]:
    """
    Parse each sample with a format adapter.

    Args:
        files: One quantification source per sample
        adapter: Format adapter used for every sample
        threads: Number of samples parsed concurrently
        ignore_tx_version: Strip transcript version suffixes
        ignore_after_bar: Cut transcript IDs at the first '|'

    Returns:
        Per-sample tables in the order of ``files``
    """
    n_samples = len(files)
    frames: List[Optional[pd.DataFrame]] = [None] * n_samples

    if threads <= 1 or n_samples == 1:
        for i, source in enumerate(files):
            logger.info(f"Reading sample {i + 1}/{n_samples}")
            frames[i] = adapter.parse(source)
    else:
        logger.info(f"Reading {n_samples} samples with {threads} workers")
        with ThreadPoolExecutor(max_workers=threads) as executor:
            futures = {
                executor.submit(adapter.parse, source): i
                for i, source in enumerate(files)
            }
            completed = 0
            for future in as_completed(futures):
                # results are slotted by sample index, not completion order
                frames[futures[future]] = future.result()
                completed += 1
                logger.info(f"Read {completed}/{n_samples} samples")

    if ignore_tx_version or ignore_after_bar:
        for frame in frames:
            frame.index = pd.Index(
                clean_transcript_ids(frame.index, ignore_tx_version, ignore_after_bar),
                name=frame.index.name,
            )
    return frames


def _length_warnings(matrices: MatrixSet) -> List[Warning]:
    zero_rows = (matrices.length == 0).any(axis=1)
    if not zero_rows.any():
        return []
    warning = ZeroLengthWarning(matrices.features[zero_rows.to_numpy()].tolist())
    logger.warning(str(warning))
    return [warning]


def _build_bundle(
    matrices: MatrixSet,
    counts_from_abundance: str,
    level: str,
    warnings: List[Warning],
) -> OutputBundle:
    counts = make_counts_from_abundance(
        matrices.counts, matrices.abundance, matrices.length, counts_from_abundance
    )
    return OutputBundle(
        abundance=matrices.abundance,
        counts=counts,
        length=matrices.length,
        counts_from_abundance=counts_from_abundance,
        level=level,
        warnings=tuple(warnings),
    )


def _gene_bundle(
    matrices: SampleMatrixSet,
    tx_map: TxToGeneMap,
    counts_from_abundance: str,
    warnings: List[Warning],
) -> OutputBundle:
    grouping = tx_map.group(matrices.features)
    warnings.extend(grouping.warnings)
    genes = summarize_matrices(matrices, grouping)
    return _build_bundle(genes, counts_from_abundance, 'gene', warnings)


def import_quants(
    files: Sequence[QuantSource],
    type: str,
    tx2gene: Optional[Union[TxToGeneMap, TxToGeneInput, str, Path]] = None,
    tx_out: bool = False,
    counts_from_abundance: str = NO_SCALING,
    sample_names: Optional[Sequence[str]] = None,
    tx_in: bool = True,
    ignore_tx_version: bool = False,
    ignore_after_bar: bool = False,
    threads: int = 1,
    adapter_options: Optional[Dict[str, Any]] = None,
) -> OutputBundle:
    """
    Import per-sample quantifications into an OutputBundle.

    Args:
        files: One quantification file, directory or stream per sample
        type: Quantifier format (kallisto, salmon, sailfish, rsem, custom)
        tx2gene: Transcript-to-gene table; required for gene-level output
        tx_out: Return transcript-level matrices without summarization
        counts_from_abundance: 'no', 'scaledTPM' or 'lengthScaledTPM'
        sample_names: Column labels (default sample1, sample2, ...)
        tx_in: False when the input is already gene-level (RSEM genes.results)
        ignore_tx_version: Strip version suffixes from transcript IDs
        ignore_after_bar: Cut transcript IDs at the first '|'
        threads: Number of samples parsed concurrently
        adapter_options: Extra options for the format adapter (custom columns)

    Returns:
        OutputBundle

    Raises:
        UnsupportedFormatError: If ``type`` has no adapter
        EmptyInputError: If no files or no transcripts are supplied
        SchemaMismatchError: If samples report different transcripts
        ConflictingMappingError: If tx2gene assigns a transcript to two genes
    """
    validate_policy(counts_from_abundance)
    adapter = get_adapter(type, **(adapter_options or {}))

    if not tx_in:
        if not isinstance(adapter, RSEMAdapter):
            raise ValueError("Gene-level input (tx_in=False) is only supported for rsem")
        if tx_out:
            raise ValueError("tx_out=True cannot be combined with gene-level input")
        adapter = RSEMAdapter(gene_level=True)

    files = list(files)
    if not files:
        raise EmptyInputError("No quantification files were supplied")

    summarize = tx_in and not tx_out
    tx_map = None
    if summarize:
        if tx2gene is None:
            raise ValueError(
                "tx2gene is required for gene-level output; use tx_out=True for transcript-level output"
            )
        tx_map = load_tx2gene(tx2gene, ignore_tx_version=ignore_tx_version)

    logger.info(f"Importing {len(files)} {adapter.name} samples")
    frames = read_samples(
        files, adapter, threads=threads,
        ignore_tx_version=ignore_tx_version, ignore_after_bar=ignore_after_bar,
    )
    matrices = assemble_samples(frames, sample_names=sample_names)
    warnings = _length_warnings(matrices)

    if summarize:
        return _gene_bundle(matrices, tx_map, counts_from_abundance, warnings)

    if not tx_in:
        genes = GeneMatrixSet(
            abundance=matrices.abundance.rename_axis('gene_id'),
            counts=matrices.counts.rename_axis('gene_id'),
            length=matrices.length.rename_axis('gene_id'),
        )
        return _build_bundle(genes, counts_from_abundance, 'gene', warnings)

    return _build_bundle(matrices, counts_from_abundance, 'transcript', warnings)


def summarize_to_gene(
    bundle: OutputBundle,
    tx2gene: Union[TxToGeneMap, TxToGeneInput, str, Path],
    counts_from_abundance: str = NO_SCALING,
    ignore_tx_version: bool = False,
) -> OutputBundle:
    """
    Summarize a transcript-level bundle to gene level.

    Gives the same matrices as importing with gene-level output directly.

    Args:
        bundle: Transcript-level OutputBundle
        tx2gene: Transcript-to-gene table
        counts_from_abundance: Scaling policy for the gene-level counts
        ignore_tx_version: Strip version suffixes from transcript IDs

    Returns:
        Gene-level OutputBundle
    """
    validate_policy(counts_from_abundance)
    if bundle.level != 'transcript':
        raise ValueError("summarize_to_gene requires a transcript-level bundle")

    warnings: List[Warning] = []
    if bundle.counts_from_abundance != NO_SCALING:
        warning = ScaledCountsWarning(bundle.counts_from_abundance)
        logger.warning(str(warning))
        warnings.append(warning)

    tx_map = load_tx2gene(tx2gene, ignore_tx_version=ignore_tx_version)

    frames = {
        'abundance': bundle.abundance,
        'counts': bundle.counts,
        'length': bundle.length,
    }
    if ignore_tx_version:
        ids = pd.Index(clean_transcript_ids(bundle.features, ignore_tx_version=True),
                       name=bundle.features.name)
        if not ids.is_unique:
            dupes = ids[ids.duplicated()].unique().tolist()
            raise SchemaMismatchError(str(bundle.samples[0]), 0, duplicated=dupes)
        frames ={name: frame.set_axis(ids, axis=0) for name, frame in frames.items()}

    matrices = SampleMatrixSet(**frames)
    warnings.extend(_length_warnings(matrices))
    return _gene_bundle(matrices, tx_map, counts_from_abundance, warnings)


def write_bundle(bundle: OutputBundle, output_dir: Union[str, Path]) -> Dict[str, Path]:
    """
    Write a bundle as three TSV matrices plus a JSON metadata file.

    Args:
        bundle: OutputBundle to write
        output_dir: Output directory (created if needed)

    Returns:
        Dictionary mapping each output name to its file path
    """
    output_dir = validate_directory_exists(output_dir, create=True)
    id_column = bundle.features.name or f"{bundle.level}_id"

    outputs = {}
    for name, filename in MATRIX_FILES.items():
        path = output_dir / filename
        getattr(bundle, name).to_csv(path, sep='\t', index_label=id_column)
        outputs[name] = path

    metadata = bundle.metadata()
    metadata['id_column'] = id_column
    outputs['metadata'] = output_dir / METADATA_FILE
    save_metrics_json(metadata, outputs['metadata'])

    logger.info(f"Wrote {bundle.level}-level bundle to {output_dir}")
    return outputs


def read_bundle(bundle_dir: Union[str, Path]) -> OutputBundle:
    """
    Read a bundle written by ``write_bundle``.

    Args:
        bundle_dir: Directory containing the matrices and metadata.json

    Returns:
        OutputBundle
    """
    bundle_dir = validate_directory_exists(bundle_dir)
    metadata = load_metrics_json(validate_file_exists(bundle_dir / METADATA_FILE))
    id_column = metadata.get('id_column', f"{metadata.get('level', 'gene')}_id")

    matrices = {}
    for name, filename in MATRIX_FILES.items():
        matrices[name] = pd.read_csv(
            validate_file_exists(bundle_dir / filename),
            sep='\t',
            index_col=id_column,
            dtype={id_column: str},
            float_precision='round_trip',
        )

    return OutputBundle(
        counts_from_abundance=metadata.get('countsFromAbundance', NO_SCALING),
        level=metadata.get('level', 'gene'),
        warnings=tuple(UserWarning(w) for w in metadata.get('warnings', [])),
        **matrices,
    )


def run_quantification(config: ImportConfig) -> Dict[str, Any]:
    """
    Run an import described by an ImportConfig and write the bundle.

    Args:
        config: Import options

    Returns:
        Dictionary with the bundle and the written file paths
    """
    if not config.type:
        raise ValueError("Quantification type is required")

    bundle = import_quants(
        files=config.files,
        type=config.type,
        tx2gene=config.tx2gene_map(),
        tx_out=config.tx_out,
        counts_from_abundance=config.counts_from_abundance,
        sample_names=config.sample_names,
        tx_in=config.tx_in,
        ignore_tx_version=config.ignore_tx_version,
        ignore_after_bar=config.ignore_after_bar,
        threads=config.threads,
        adapter_options=config.adapter_options(),
    )
    outputs = write_bundle(bundle, config.output_dir)
    return {"bundle": bundle, "outputs": outputs, "n_features": len(bundle.features)}
