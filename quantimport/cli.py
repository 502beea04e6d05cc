#!/usr/bin/env python3
"""
quantimport CLI

Command-line interface for importing kallisto, Salmon, Sailfish and RSEM
quantifications, summarizing transcripts to genes and deriving counts
from abundance.
"""

import typer
import sys
from pathlib import Path
from typing import Optional, List
from rich.console import Console
import logging

from . import __version__
from .config import ImportConfig, load_config
from .errors import QuantImportError
from .mapping import TxToGeneMap
from .quantify import run_quantification, read_bundle, summarize_to_gene, write_bundle
from .utils import setup_logging, format_number

app = typer.Typer(
    name="quantimport",
    help="quantimport - Import transcript quantifications and summarize them to genes",
    add_completion=False,
)

console = Console()


# Global options
def version_callback(value: bool):
    if value:
        console.print(f"quantimport v{__version__}")
        raise typer.Exit()


def verbose_callback(value: bool):
    if value:
        setup_logging(level=logging.DEBUG)
    else:
        setup_logging(level=logging.INFO)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False, "--verbose",
        callback=verbose_callback,
        help="Enable verbose logging"
    ),
):
    """quantimport CLI"""
    pass


def _print_bundle_summary(bundle) -> None:
    console.print(
        f"{bundle.level.capitalize()}-level matrices: "
        f"{len(bundle.features)} features x {len(bundle.samples)} samples"
    )
    for sample, size in bundle.library_size.items():
        console.print(f"  {sample}: {format_number(size)} counts")
    if not bundle.length_is_offset:
        console.print(
            f"[yellow]Counts were derived with {bundle.counts_from_abundance}; "
            "do not use the length matrix as an offset[/yellow]"
        )
    for warning in bundle.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")


@app.command("import")
def import_cmd(
    files: Optional[List[Path]] = typer.Argument(None, help="Quantification files or output directories, one per sample"),
    quant_type: Optional[str] = typer.Option(None, "--type", "-t", help="Quantifier: kallisto, salmon, sailfish, rsem, custom"),
    tx2gene: Optional[Path] = typer.Option(None, help="Two-column transcript-to-gene table"),
    tx_out: bool = typer.Option(False, "--tx-out", help="Return transcript-level matrices"),
    counts_from_abundance: Optional[str] = typer.Option(
        None, help="Counts from abundance: no, scaledTPM, lengthScaledTPM"
    ),
    sample_name: Optional[List[str]] = typer.Option(None, help="Sample name (repeat once per file)"),
    ignore_tx_version: bool = typer.Option(False, "--ignore-tx-version", help="Strip transcript version suffixes"),
    ignore_after_bar: bool = typer.Option(False, "--ignore-after-bar", help="Cut transcript IDs at the first '|'"),
    gene_level_input: bool = typer.Option(False, "--gene-level-input", help="Input is RSEM genes.results"),
    no_header: bool = typer.Option(False, "--no-header", help="tx2gene file has no header row"),
    threads: Optional[int] = typer.Option(None, help="Number of samples read in parallel"),
    output_dir: Optional[Path] = typer.Option(None, help="Output directory"),
    config: Optional[Path] = typer.Option(None, help="YAML file with import options"),
    tx_id_col: Optional[str] = typer.Option(None, help="Custom format: transcript ID column"),
    abundance_col: Optional[str] = typer.Option(None, help="Custom format: abundance column"),
    counts_col: Optional[str] = typer.Option(None, help="Custom format: counts column"),
    length_col: Optional[str] = typer.Option(None, help="Custom format: length column"),
):
    """Import quantification files and write abundance, counts and length matrices."""
    try:
        settings = load_config(config) if config else ImportConfig()
        settings = settings.update(
            type=quant_type,
            files=[str(f) for f in files] if files else None,
            sample_names=list(sample_name) if sample_name else None,
            tx2gene=str(tx2gene) if tx2gene else None,
            tx2gene_header=False if no_header else None,
            tx_out=tx_out or None,
            tx_in=False if gene_level_input else None,
            counts_from_abundance=counts_from_abundance,
            ignore_tx_version=ignore_tx_version or None,
            ignore_after_bar=ignore_after_bar or None,
            threads=threads,
            output_dir=str(output_dir) if output_dir else None,
            tx_id_col=tx_id_col,
            abundance_col=abundance_col,
            counts_col=counts_col,
            length_col=length_col,
        )
        console.print(f"[bold blue]Importing {len(settings.files)} {settings.type} samples[/bold blue]")

        results = run_quantification(settings)
        _print_bundle_summary(results["bundle"])
        console.print("[bold green]Import completed successfully![/bold green]")
        console.print(f"Results saved to: {settings.output_dir}")

    except (QuantImportError, ValueError, OSError) as e:
        console.print(f"[bold red]Error in import: {e}[/bold red]")
        sys.exit(1)


@app.command()
def summarize(
    bundle_dir: Path = typer.Argument(..., help="Directory with a transcript-level bundle"),
    tx2gene: Path = typer.Option(..., help="Two-column transcript-to-gene table"),
    counts_from_abundance: str = typer.Option("no", help="Counts from abundance: no, scaledTPM, lengthScaledTPM"),
    ignore_tx_version: bool = typer.Option(False, "--ignore-tx-version", help="Strip transcript version suffixes"),
    no_header: bool = typer.Option(False, "--no-header", help="tx2gene file has no header row"),
    output_dir: Path = typer.Option("./quantimport_genes", help="Output directory"),
):
    """Summarize a transcript-level bundle to gene level."""
    console.print("[bold blue]Summarizing transcripts to genes[/bold blue]")

    try:
        bundle = read_bundle(bundle_dir)
        tx_map = TxToGeneMap.from_file(tx2gene, header=not no_header)
        genes = summarize_to_gene(
            bundle,
            tx_map,
            counts_from_abundance=counts_from_abundance,
            ignore_tx_version=ignore_tx_version,
        )
        write_bundle(genes, output_dir)
        _print_bundle_summary(genes)
        console.print("[bold green]Summarization completed![/bold green]")
        console.print(f"Results saved to: {output_dir}")

    except (QuantImportError, ValueError, OSError) as e:
        console.print(f"[bold red]Error in summarization: {e}[/bold red]")
        sys.exit(1)


@app.command()
def validate_tx2gene(
    tx2gene: Path = typer.Argument(..., help="Transcript-to-gene table to validate"),
    ignore_tx_version: bool = typer.Option(False, "--ignore-tx-version", help="Strip transcript version suffixes"),
    no_header: bool = typer.Option(False, "--no-header", help="tx2gene file has no header row"),
):
    """Check that a transcript-to-gene table maps each transcript to one gene."""
    console.print("[bold blue]Validating tx2gene table[/bold blue]")

    try:
        tx_map = TxToGeneMap.from_file(
            tx2gene, ignore_tx_version=ignore_tx_version, header=not no_header
        )
        console.print("[bold green]tx2gene table is valid![/bold green]")
        console.print(f"Found {len(tx_map)} transcripts in {len(tx_map.genes)} genes")

    except (QuantImportError, ValueError, OSError) as e:
        console.print(f"[bold red]tx2gene validation failed: {e}[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    app()
