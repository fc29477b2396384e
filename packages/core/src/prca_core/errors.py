"""Error kinds raised by the report-to-comment pipeline.

Each pipeline stage has its own exception so the orchestrator (and the CLI)
can tell which stage failed. Only ``CommentDeletionError`` is recoverable.
"""

from __future__ import annotations


class PrcaError(Exception):
    """Base class for every pipeline failure."""


class ReportNotFoundError(PrcaError):
    pass


class ReportMalformedError(PrcaError):
    pass


class CommentDeletionError(PrcaError):
    pass


class ChangedFilesUnavailableError(PrcaError):
    pass


class CommentPostingError(PrcaError):
    pass


class SeverityThresholdExceeded(PrcaError):
    """Posted comments include issues at or above the configured failure severity.

    A policy outcome rather than an I/O failure: posting succeeded.
    """

    def __init__(self, threshold: str, count: int):
        super().__init__(f"{count} posted issue(s) have a severity of '{threshold}' or higher.")
        self.threshold = threshold
        self.count = count


class ConfigurationError(PrcaError, ValueError):
    pass
