"""
Reseed Errors

Per-record and per-file errors are caught by the orchestrator and
aggregated into the run report. Clear, seed, cancellation and (by default)
parse failures abort the run.
"""


class ReseedError(Exception):
    """Base error for the reseed pipeline"""


class SourceReadError(ReseedError):
    """Source file missing or unreadable. The file is skipped."""
    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot read source {path}: {cause}")


class SourceParseError(ReseedError):
    """Source file is not a JSON array of records."""
    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot parse source {path}: {reason}")


class ResolutionError(ReseedError):
    """A vendor name did not resolve to a stored vendor."""
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Unresolved {kind}: {name!r}")


class WriteError(ReseedError):
    """A chunk commit failed; remaining chunks were skipped."""
    def __init__(self, message: str, processed: int = 0, chunk_index: int = None):
        self.processed = processed
        self.chunk_index = chunk_index
        super().__init__(message)


class ClearError(ReseedError):
    pass


class SeedError(ReseedError):
    pass


class PipelineCancelled(ReseedError):
    pass


class PipelineAborted(ReseedError):
    """The run stopped in FAILED state. ``report`` holds the partial results."""
    def __init__(self, message: str, report=None):
        self.report = report
        super().__init__(message)
