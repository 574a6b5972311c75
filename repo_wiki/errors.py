"""Caller-visible error outcomes for wiki generation.

Every failure that leaves a generation entry point is one of these; the HTTP
layer maps each class to a status code.
"""


class WikiError(Exception):
    """Base class for all wiki generation errors."""

    status_code: int = 500


class InvalidRepoUrlError(WikiError, ValueError):
    """The repository URL is missing or not a recognised GitHub URL."""

    status_code = 400


class NotFoundError(WikiError, LookupError):
    """A repository, wiki page, subsystem or file does not exist."""

    status_code = 404


class NoValidFilesError(WikiError):
    """Filtering or selection left nothing to process."""

    status_code = 422


class PipelineError(WikiError):
    """A stage failed in a way that cannot be masked."""

    status_code = 500


class EmbeddingError(PipelineError):
    """An embedding request failed; the file could not be placed in any cluster."""


class PipelineTimeoutError(PipelineError):
    """The run exceeded its wall-clock budget."""


class LabelParseError(ValueError):
    """A labeling response did not match the expected JSON shape."""
