"""
Error taxonomy for quantimport.

Fatal conditions are raised as ``QuantImportError`` subclasses. Non-fatal
conditions are ``UserWarning`` subclasses that are instantiated, logged and
collected on the returned bundle rather than raised.
"""

from typing import Dict, List, Optional, Sequence

from .utils import preview_ids


class QuantImportError(Exception):
    """Base class for all fatal import errors."""


class SchemaMismatchError(QuantImportError, ValueError):
    """Samples disagree on their transcript-ID set."""

    def __init__(
        self,
        sample: str,
        index: int,
        missing: Sequence[str] = (),
        extra: Sequence[str] = (),
        duplicated: Sequence[str] = (),
    ):
        self.sample = sample
        self.index = index
        self.missing = list(missing)
        self.extra = list(extra)
        self.duplicated = list(duplicated)
        if self.duplicated:
            self.differing = sorted(self.duplicated)
            message = (
                f"Sample '{sample}' (position {index + 1}) reports duplicated "
                f"transcript IDs: {preview_ids(self.differing)}"
            )
        else:
            self.differing = sorted(set(self.missing) | set(self.extra))
            message = (
                f"Sample '{sample}' (position {index + 1}) does not report the same "
                f"transcripts as the first sample; differing IDs: {preview_ids(self.differing)}"
            )
        super().__init__(message)


class ConflictingMappingError(QuantImportError, ValueError):
    """The transcript-to-gene table assigns one transcript to several genes."""

    def __init__(self, conflicts: Dict[str, List[str]]):
        self.conflicts = conflicts
        details = "; ".join(
            f"{tx} -> {', '.join(genes)}" for tx, genes in list(conflicts.items())[:10]
        )
        if len(conflicts) > 10:
            details += f"; ... ({len(conflicts) - 10} more)"
        super().__init__(
            f"{len(conflicts)} transcript(s) are assigned to more than one gene: {details}"
        )


class UnsupportedFormatError(QuantImportError, ValueError):
    """No format adapter is registered for the requested type."""

    def __init__(self, requested: str, supported: Sequence[str]):
        self.requested = requested
        self.supported = list(supported)
        super().__init__(
            f"Unsupported quantification type '{requested}'. "
            f"Supported types: {', '.join(self.supported)}"
        )


class EmptyInputError(QuantImportError, ValueError):
    """Zero samples or zero transcripts were supplied."""


class MissingValueError(QuantImportError, ValueError):
    """A matrix cell is missing or not finite."""

    def __init__(self, matrix: str, samples: Sequence[str]):
        self.matrix = matrix
        self.samples = list(samples)
        super().__init__(
            f"Missing or infinite {matrix} values in samples: {preview_ids(self.samples)}"
        )


class QuantFileError(QuantImportError, ValueError):
    """A quantification file cannot be interpreted by its adapter."""

    def __init__(self, source: str, message: str, missing_columns: Optional[Sequence[str]] = None):
        self.source = source
        self.missing_columns = list(missing_columns or [])
        super().__init__(f"{source}: {message}")


class MissingMappingWarning(UserWarning):
    """Quantified transcripts absent from the transcript-to-gene table."""

    def __init__(self, transcripts: Sequence[str]):
        self.transcripts = list(transcripts)
        self.count = len(self.transcripts)
        super().__init__(
            f"{self.count} quantified transcript(s) missing from tx2gene were excluded "
            f"from gene-level output: {preview_ids(self.transcripts)}"
        )


class ScaledCountsWarning(UserWarning):
    """Gene summarization was run on counts that were already scaled from abundance."""

    def __init__(self, incoming: str):
        self.incoming = incoming
        super().__init__(
            f"Incoming counts were generated with countsFromAbundance='{incoming}'; "
            "the original counts are not available, scaled counts were summed instead. "
            "Import with countsFromAbundance='no' and txOut to summarize raw counts."
        )


class ZeroLengthWarning(UserWarning):
    """Transcripts with an effective length of zero in at least one sample."""

    def __init__(self, transcripts: Sequence[str]):
        self.transcripts = list(transcripts)
        self.count = len(self.transcripts)
        super().__init__(
            f"{self.count} transcript(s) have an effective length of 0 in at least one sample: "
            f"{preview_ids(self.transcripts)}"
        )
